"""
Root conftest.py for the agswitch test suite.

Pytest plugin that checks TRA (Test Responsibility Architecture) and Tier markers.
- Reports tests missing a TRA marker or a tier marker
- Applies tier timeouts when pytest-timeout is installed
- Runs in enforcement='warn' mode by default (no collection failures)

Usage:
    @pytest.mark.tier(1)
    @pytest.mark.tra("UseCase.SynchronizationWaiter")
    def test_something():
        ...

Configuration:
    TRA_ENFORCE=1 / TIER_ENFORCE=1 fail collection instead of warning
    TRA_ENFORCE=0 / TIER_ENFORCE=0 disable the checks
    TIER_TIMEOUT_MULTIPLIER scales tier timeouts (slow CI machines)
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from _pytest.config import Config
    from _pytest.nodes import Item


# Valid TRA namespace prefixes
VALID_TRA_PREFIXES = frozenset(
    [
        "Domain.Invariant.",
        "Domain.Policy.",
        "UseCase.",
        "Port.",
        "Adapter.",
        "Contract.",
        "Factory.",
        "Cli.",
    ]
)

# Tier timeout limits in seconds
TIER_TIMEOUTS: dict[int, float] = {
    0: 0.1,  # 100ms - instant
    1: 2.0,  # 2s - fast (pre-commit)
    2: 30.0,  # 30s - standard (CI)
    3: 300.0,  # 5min - slow (real SQL Server)
    4: 0,  # No limit - manual
}


def pytest_configure(config: Config) -> None:
    """Register custom markers for TRA and Tier enforcement."""
    config.addinivalue_line(
        "markers",
        "tra(anchor): Test Responsibility Anchor - declares the single responsibility this test protects. "
        "Must start with one of: Domain.Invariant, Domain.Policy, UseCase, Port, Adapter, Contract, Factory, Cli",
    )
    config.addinivalue_line(
        "markers",
        "tier(level): Test tier (0=instant, 1=fast, 2=standard, 3=slow, 4=manual). "
        "Determines when test runs and enforces timeout.",
    )
    config.addinivalue_line("markers", "property: Property-based tests using Hypothesis")


def _get_tier(item: Item) -> int | None:
    """Extract tier level from item's markers."""
    for marker in item.iter_markers(name="tier"):
        if marker.args:
            tier = marker.args[0]
            if isinstance(tier, int) and 0 <= tier <= 4:
                return tier
    return None


def _check_tra_markers(items: list[Item]) -> list[str]:
    """Return one message per test with a missing or malformed TRA marker."""
    if os.environ.get("TRA_ENFORCE", "warn") == "0":
        return []

    errors = []
    for item in items:
        # Class-level and function-level markers both count; the closest wins.
        marker = item.get_closest_marker("tra")
        if marker is None:
            errors.append(f"{item.nodeid}: Missing @pytest.mark.tra('...')")
            continue

        anchor = marker.args[0] if marker.args else None
        if not isinstance(anchor, str) or not anchor.strip():
            errors.append(f"{item.nodeid}: @tra anchor must be a non-empty string")
            continue

        if not any(anchor.startswith(prefix) for prefix in VALID_TRA_PREFIXES):
            valid = ", ".join(sorted(VALID_TRA_PREFIXES))
            errors.append(
                f"{item.nodeid}: Invalid TRA anchor '{anchor}'. Must start with one of: {valid}"
            )
    return errors


def _check_tier_markers(items: list[Item]) -> list[str]:
    """Return one message per test with a missing or invalid tier marker."""
    if os.environ.get("TIER_ENFORCE", "warn") == "0":
        return []

    errors = []
    for item in items:
        if item.get_closest_marker("tier") is None:
            errors.append(f"{item.nodeid}: Missing @pytest.mark.tier()")
        elif _get_tier(item) is None:
            errors.append(f"{item.nodeid}: Invalid tier value")
    return errors


def _apply_tier_timeouts(items: list[Item]) -> None:
    """Apply timeout based on tier level.

    Only applies if pytest-timeout is installed and no explicit timeout is set.
    """
    try:
        import pytest_timeout as _  # type: ignore[import-untyped]  # noqa: F401
    except ImportError:
        return

    multiplier = float(os.environ.get("TIER_TIMEOUT_MULTIPLIER", "1.0"))
    for item in items:
        tier = _get_tier(item)
        if tier is None or any(item.iter_markers(name="timeout")):
            continue
        timeout = TIER_TIMEOUTS.get(tier, 0)
        if timeout > 0:
            item.add_marker(pytest.mark.timeout(timeout * multiplier))


@pytest.hookimpl(tryfirst=True)
def pytest_collection_modifyitems(config: Config, items: list[Item]) -> None:
    """Check TRA and Tier markers at collection time."""
    errors = _check_tra_markers(items) + _check_tier_markers(items)

    if errors:
        strict = (
            os.environ.get("TRA_ENFORCE", "warn") == "1"
            or os.environ.get("TIER_ENFORCE", "warn") == "1"
        )
        if strict:
            pytest.fail(
                "TRA/Tier Enforcement Errors:\n" + "\n".join(f"  - {e}" for e in errors),
                pytrace=False,
            )
        print("\nTRA/Tier Enforcement Warnings:")
        for error in errors:
            print(f"  {error}")

    _apply_tier_timeouts(items)


@pytest.hookimpl(trylast=True)
def pytest_report_header(config: Config) -> str:
    """Add enforcement info to pytest header."""
    tra_enforce = os.environ.get("TRA_ENFORCE", "warn")
    tier_enforce = os.environ.get("TIER_ENFORCE", "warn")
    return f"TRA enforcement: {tra_enforce} | Tier enforcement: {tier_enforce}"
