"""Shared fixtures for BDD tests."""

from __future__ import annotations

import pytest

from agswitch.adapters.fakes import FakeClusterGateway, FakeTimeProvider


@pytest.fixture
def clock() -> FakeTimeProvider:
    """Fake clock, so synchronization waits finish instantly."""
    return FakeTimeProvider()


@pytest.fixture
def cluster(clock: FakeTimeProvider) -> FakeClusterGateway:
    """Empty in-memory cluster sharing the fake clock."""
    return FakeClusterGateway(clock=clock)
