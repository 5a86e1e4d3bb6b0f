"""Object repository loader for ``.rs`` element descriptors."""

from __future__ import annotations

from pathlib import Path

from lxml import etree
from pydantic import ValidationError

from locengine.exceptions import DescriptorNotFoundError, DescriptorValidationError
from locengine.logger import get_logger
from locengine.models import (
    ElementDescriptor,
    ResolutionOptions,
    SelectorCandidate,
    StrategyKind,
)

log = get_logger(__name__)

RECORD_SUFFIX = ".rs"
_ROOT_TAG = "WebElementEntity"
# Spelling of the image option as it appears in the source format
_IMAGE_PATH_TAG = "useRalativeImagePath"

_PARSER = etree.XMLParser(resolve_entities=False, no_network=True, remove_comments=True)
_REPOSITORY_DIR = "Object Repository/"


def _child_text(element: etree._Element, tag: str) -> str:
    value = element.findtext(tag)
    return value.strip() if value else ""


def _normalize_key(path: str) -> str:
    key = path.replace("\\", "/").strip("/")
    if key.endswith(RECORD_SUFFIX):
        key = key[: -len(RECORD_SUFFIX)]
    if key.startswith(_REPOSITORY_DIR):
        key = key[len(_REPOSITORY_DIR):]
    return key


def _parse_kind(descriptor_id: str, raw: str, what: str) -> StrategyKind:
    try:
        return StrategyKind(raw.strip().upper())
    except ValueError:
        raise DescriptorValidationError(
            descriptor_id, f"unknown {what} {raw!r}"
        ) from None


def parse_descriptor(
    data: bytes, label: str, source_path: str | None = None
) -> ElementDescriptor:
    """Parse one ``WebElementEntity`` record.

    ``label`` names the record in errors until its id has been read.
    """
    try:
        root = etree.fromstring(data, _PARSER)
    except etree.XMLSyntaxError as exc:
        raise DescriptorValidationError(label, f"malformed XML: {exc}") from exc

    if root.tag != _ROOT_TAG:
        raise DescriptorValidationError(
            label, f"expected <{_ROOT_TAG}> root, got <{root.tag}>"
        )

    descriptor_id = _child_text(root, "elementGuidId")
    if not descriptor_id:
        raise DescriptorValidationError(label, "missing elementGuidId")

    collection = root.find("selectorCollection")
    entries = collection.findall("entry") if collection is not None else []
    if not entries:
        raise DescriptorValidationError(descriptor_id, "selectorCollection is empty")

    candidates: list[SelectorCandidate] = []
    seen: set[StrategyKind] = set()
    for entry in entries:
        kind = _parse_kind(descriptor_id, _child_text(entry, "key"), "selector strategy")
        if kind in seen:
            raise DescriptorValidationError(
                descriptor_id, f"duplicate selector strategy {kind.value}"
            )
        expression = _child_text(entry, "value")
        if not expression:
            raise DescriptorValidationError(
                descriptor_id, f"{kind.value} selector is empty"
            )
        seen.add(kind)
        candidates.append(SelectorCandidate(kind=kind, expression=expression))

    preferred: StrategyKind | None = None
    method = _child_text(root, "selectorMethod")
    if method:
        preferred = _parse_kind(descriptor_id, method, "selector method")
        if preferred not in seen:
            raise DescriptorValidationError(
                descriptor_id,
                f"selector method {preferred.value} has no matching selector",
            )

    try:
        return ElementDescriptor(
            id=descriptor_id,
            name=_child_text(root, "name") or descriptor_id,
            description=_child_text(root, "description"),
            selector_candidates=tuple(candidates),
            preferred_strategy=preferred,
            options=ResolutionOptions(
                use_relative_image_path=_child_text(root, _IMAGE_PATH_TAG).lower()
                == "true"
            ),
            source_path=source_path,
        )
    except ValidationError as exc:
        raise DescriptorValidationError(descriptor_id, str(exc)) from exc


class DescriptorRepository:
    """Loads and validates element descriptors from an object repository.

    ``source`` is a directory searched recursively for ``.rs`` records, or a
    single record file. Everything is validated on first load; one bad record
    fails the whole load.
    """

    def __init__(self, source: str | Path) -> None:
        self.source = Path(source)
        self._by_id: dict[str, ElementDescriptor] | None = None
        self._by_path: dict[str, ElementDescriptor] = {}

    def load_all(self) -> dict[str, ElementDescriptor]:
        """All descriptors keyed by id, using the cache if available."""
        return dict(self._index())

    def reload(self) -> dict[str, ElementDescriptor]:
        """Read every record from disk, bypassing the cache."""
        by_id: dict[str, ElementDescriptor] = {}
        by_path: dict[str, ElementDescriptor] = {}
        for path in self._record_files():
            descriptor = self.parse_file(path)
            if descriptor.id in by_id:
                raise DescriptorValidationError(
                    descriptor.id,
                    f"id also used by {by_id[descriptor.id].source_path}",
                )
            by_id[descriptor.id] = descriptor
            if descriptor.source_path:
                by_path[descriptor.source_path] = descriptor

        self._by_id = by_id
        self._by_path = by_path
        log.info(
            "descriptor_repository_loaded",
            count=len(by_id),
            path=str(self.source),
        )
        return dict(by_id)

    def load(self, descriptor_id: str) -> ElementDescriptor:
        """Load one descriptor by id."""
        try:
            return self._index()[descriptor_id]
        except KeyError:
            raise DescriptorNotFoundError(descriptor_id) from None

    def load_by_path(self, path: str) -> ElementDescriptor:
        """Load one descriptor by its repository path.

        Accepts ``Pages/Login/txt_Email``, with or without the ``.rs``
        suffix or a leading ``Object Repository/``.
        """
        self._index()
        key = _normalize_key(path)
        try:
            return self._by_path[key]
        except KeyError:
            raise DescriptorNotFoundError(path) from None

    def parse_file(self, path: Path) -> ElementDescriptor:
        """Parse a single record file."""
        path = Path(path)
        return parse_descriptor(
            path.read_bytes(),
            label=str(path),
            source_path=self._relative_key(path),
        )

    def ids(self) -> list[str]:
        """Sorted descriptor ids."""
        return sorted(self._index())

    def __contains__(self, descriptor_id: object) -> bool:
        return descriptor_id in self._index()

    def __len__(self) -> int:
        return len(self._index())

    # --- Private helpers ---

    def _index(self) -> dict[str, ElementDescriptor]:
        if self._by_id is None:
            self.reload()
        assert self._by_id is not None
        return self._by_id

    def _record_files(self) -> list[Path]:
        if self.source.is_file():
            return [self.source]
        if not self.source.is_dir():
            raise DescriptorNotFoundError(str(self.source))
        return sorted(self.source.rglob(f"*{RECORD_SUFFIX}"))

    def _relative_key(self, path: Path) -> str:
        base = self.source if self.source.is_dir() else self.source.parent
        try:
            relative = path.relative_to(base)
        except ValueError:
            relative = Path(path.name)
        return _normalize_key(relative.as_posix())


def load_all(source: str | Path) -> dict[str, ElementDescriptor]:
    """Load every descriptor under ``source``."""
    return DescriptorRepository(source).load_all()


def load_descriptor(source: str | Path, descriptor_id: str) -> ElementDescriptor:
    """Load the descriptor ``descriptor_id`` from ``source``."""
    return DescriptorRepository(source).load(descriptor_id)
