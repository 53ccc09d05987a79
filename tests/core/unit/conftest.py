"""Pytest configuration and shared fixtures for agswitch core unit tests."""

from __future__ import annotations

from typing import Any, Callable

import pytest

from agswitch.adapters.fakes import (
    FakeClusterGateway,
    FakeMetricsAdapter,
    FakeTimeProvider,
)
from agswitch.domain.settings import OrchestratorSettings
from agswitch.usecases.run_context import RunContext

from tests.core.unit.fakes import FakeEventEmitter, FakeLoggingAdapter


def pytest_configure(config: Any) -> None:
    """Register custom markers for unit tests."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line(
        "markers", "property: Property-based tests using Hypothesis"
    )


@pytest.fixture
def clock() -> FakeTimeProvider:
    return FakeTimeProvider()


@pytest.fixture
def gateway(clock: FakeTimeProvider) -> FakeClusterGateway:
    """Empty fake cluster sharing the test clock."""
    return FakeClusterGateway(clock=clock)


@pytest.fixture
def logger() -> FakeLoggingAdapter:
    return FakeLoggingAdapter()


@pytest.fixture
def metrics() -> FakeMetricsAdapter:
    return FakeMetricsAdapter()


@pytest.fixture
def events() -> FakeEventEmitter:
    return FakeEventEmitter()


@pytest.fixture
def make_context(
    gateway: FakeClusterGateway,
    logger: FakeLoggingAdapter,
    metrics: FakeMetricsAdapter,
    clock: FakeTimeProvider,
    events: FakeEventEmitter,
) -> Callable[..., RunContext]:
    """Build a RunContext wired to the fakes; keyword args override settings.

    Pass cluster= to use a differently configured FakeClusterGateway.

    Example:
        def test_skip(make_context):
            context = make_context(on_sync_timeout=SyncTimeoutPolicy.SKIP)
    """

    def _make(
        cluster: FakeClusterGateway | None = None, **settings_fields: Any
    ) -> RunContext:
        fields: dict[str, Any] = {
            "target_node": "SQL2",
            "sync_timeout_seconds": 30.0,
            "poll_interval_seconds": 10.0,
        }
        fields.update(settings_fields)
        return RunContext(
            settings=OrchestratorSettings(**fields),
            gateway=cluster if cluster is not None else gateway,
            logger=logger,
            metrics=metrics,
            clock=clock,
            events=events,
            run_id="testrun",
        )

    return _make
