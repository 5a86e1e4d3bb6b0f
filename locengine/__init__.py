"""locengine — resolves object-repository element descriptors to live elements."""

from locengine.browser import BrowserSession
from locengine.config import EngineConfig
from locengine.element import ElementProxy
from locengine.engine import ResolutionEngine
from locengine.exceptions import (
    BrowserError,
    DescriptorNotFoundError,
    DescriptorValidationError,
    ElementNotResolvedError,
    LocatorEngineError,
    StaleReferenceError,
    StrategyError,
)
from locengine.models import (
    Ambiguous,
    ElementDescriptor,
    NotFound,
    ResolutionOptions,
    ResolutionOutcome,
    Resolved,
    ResolvedHandle,
    SelectorCandidate,
    StrategyKind,
    Timeout,
    TimeoutPolicy,
)
from locengine.repository import DescriptorRepository, load_all, load_descriptor

__version__ = "0.1.0"

__all__ = [
    "Ambiguous",
    "BrowserError",
    "BrowserSession",
    "DescriptorNotFoundError",
    "DescriptorRepository",
    "DescriptorValidationError",
    "ElementDescriptor",
    "ElementNotResolvedError",
    "ElementProxy",
    "EngineConfig",
    "LocatorEngineError",
    "NotFound",
    "ResolutionEngine",
    "ResolutionOptions",
    "ResolutionOutcome",
    "Resolved",
    "ResolvedHandle",
    "SelectorCandidate",
    "StaleReferenceError",
    "StrategyError",
    "StrategyKind",
    "Timeout",
    "TimeoutPolicy",
    "__version__",
    "load_all",
    "load_descriptor",
]
