#!/usr/bin/env python3
"""Validate an object repository and optionally resolve it against a page."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

# Ensure project root is importable
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from locengine import (
    BrowserSession,
    DescriptorRepository,
    EngineConfig,
    LocatorEngineError,
    ResolutionEngine,
)
from locengine.logger import configure_logging


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("repository", type=Path, help="Object Repository directory or .rs file")
    parser.add_argument("--url", help="Page to resolve every descriptor against")
    parser.add_argument("--timeout", type=float, default=None, help="Seconds per descriptor")
    parser.add_argument("--headed", action="store_true", help="Show the browser")
    return parser.parse_args(argv)


def print_repository(repository: DescriptorRepository) -> None:
    """List every descriptor with its candidate order."""
    descriptors = repository.load_all()
    print(f"\n{len(descriptors)} descriptor(s) in {repository.source}")
    for descriptor in sorted(descriptors.values(), key=lambda d: d.source_path or d.id):
        order = " > ".join(c.kind.value for c in descriptor.candidate_order())
        print(f"  {descriptor.id:<32} {descriptor.source_path}  [{order}]")


async def resolve_all(
    repository: DescriptorRepository, url: str, config: EngineConfig, headed: bool
) -> int:
    """Resolve every descriptor on ``url``; return the number of failures."""
    policy = config.default_policy()
    failures = 0

    session = BrowserSession()
    await session.start(headless=not headed)
    try:
        await session.goto(url)
        async with ResolutionEngine(session, repository, config) as engine:
            outcomes = await engine.resolve_many(repository.ids(), policy)
    finally:
        await session.stop()

    print(f"\n{'='*60}")
    for _, outcome in sorted(outcomes.items()):
        icon = "✓" if outcome.ok else "✗"
        print(f"  {icon} {outcome.describe()}")
        if not outcome.ok:
            failures += 1
    print(f"{'='*60}")
    print(f"  {len(outcomes) - failures} resolved, {failures} failed")
    return failures


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    config = EngineConfig.from_env()
    if args.timeout is not None:
        config.timeout = args.timeout
    configure_logging(config.log_level, config.log_json)

    repository = DescriptorRepository(args.repository)
    try:
        print_repository(repository)
    except LocatorEngineError as exc:
        print(f"\n✗ Repository invalid: {exc}")
        sys.exit(2)

    if not args.url:
        return

    failures = asyncio.run(resolve_all(repository, args.url, config, args.headed))
    sys.exit(1 if failures else 0)


if __name__ == "__main__":
    main()
