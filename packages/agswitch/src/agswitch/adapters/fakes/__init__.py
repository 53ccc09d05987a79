"""Fake adapters for testing.

This module provides test doubles for port interfaces, enabling
deterministic testing without a real cluster.
"""

from agswitch.adapters.fakes.fake_cluster_gateway import (
    FakeClusterGateway,
    FakeGroup,
    FakeReplica,
    GatewayCall,
)
from agswitch.adapters.fakes.fake_metrics import FakeMetricsAdapter, MetricCall
from agswitch.adapters.fakes.fake_time_provider import FakeTimeProvider

__all__ = [
    "FakeClusterGateway",
    "FakeGroup",
    "FakeReplica",
    "GatewayCall",
    "FakeMetricsAdapter",
    "MetricCall",
    "FakeTimeProvider",
]
