"""Fake adapters for testing."""

from .fake_event_emitter import FakeEventEmitter
from .fake_logging_adapter import FakeLoggingAdapter

__all__ = [
    "FakeEventEmitter",
    "FakeLoggingAdapter",
]
