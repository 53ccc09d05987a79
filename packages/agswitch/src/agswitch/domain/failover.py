"""Failover outcome value objects."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class SyncOutcome(Enum):
    """Result of waiting for a group's databases to synchronize."""

    READY = "ready"
    TIMED_OUT = "timed_out"


class SyncTimeoutPolicy(Enum):
    """What to do when synchronization times out before failover.

    Attributes:
        PROCEED: Attempt the failover anyway (log at critical level).
        SKIP: Do not fail over; record a TIMED_OUT attempt.
        ASK: Let the approval provider decide per group.
    """

    PROCEED = "proceed"
    SKIP = "skip"
    ASK = "ask"


class FailoverOutcome(Enum):
    """Outcome of one failover attempt.

    Attributes:
        SUCCEEDED: The engine acknowledged the failover command.
        FAILED: The command was rejected or raised an error.
        TIMED_OUT: Synchronization timed out and the failover was not issued.
    """

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class FailoverAttempt:
    """Immutable record of one failover (or failback) command.

    Attributes:
        group_name: Availability group that was failed over.
        target_endpoint: Node the command was issued on (the new primary).
        started_at: UTC timestamp at which the command was issued.
        duration: Wall-clock seconds until the command returned or raised.
        outcome: Final outcome of the attempt.
        error: Error message when the outcome is not SUCCEEDED.
    """

    group_name: str
    target_endpoint: str
    started_at: datetime
    duration: float
    outcome: FailoverOutcome
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is FailoverOutcome.SUCCEEDED
