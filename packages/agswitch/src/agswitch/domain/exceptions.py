"""Domain exceptions.

Exception hierarchy:
- AgSwitchError: Base exception for everything raised by agswitch.
  - ConfigError: Invalid settings or configuration file.
  - GatewayError: An administrative command was rejected by the engine.
    Scoped to the replica group being processed.
    - GatewayUnavailable: A node cannot be reached at all. Fatal when it
      happens during inventory.
      - HadrNotEnabledError: The node is reachable but has HADR disabled.
    - FailoverRejectedError: The failover command failed; carries the
      closed FailoverAttempt.
  - AuditError: Observational failure while auditing replica health.
  - InvalidTransitionError: A replica group state transition that the
    lifecycle does not allow.

A synchronization timeout is deliberately not an exception: it is the
SyncOutcome.TIMED_OUT value, surfaced to the caller as a decision point.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from agswitch.domain.failover import FailoverAttempt
    from agswitch.domain.lifecycle import GroupState


class AgSwitchError(Exception):
    """Base exception for all agswitch errors."""

    pass


class ConfigError(AgSwitchError):
    """Raised when orchestrator configuration is invalid.

    Raised by domain value objects (e.g., OrchestratorSettings) during
    validation and by the ConfigParser use case when a configuration file
    cannot be read.
    """

    pass


class GatewayError(AgSwitchError):
    """Raised when an administrative command is rejected or fails.

    Attributes:
        message: Human-readable error description.
        node: Node the command was issued against (optional).
        group: Replica group the command targeted (optional).
        operation: Gateway operation name, e.g. "set_replica_mode" (optional).
        original_error: The underlying driver exception (optional).
    """

    def __init__(
        self,
        message: str,
        node: str | None = None,
        group: str | None = None,
        operation: str | None = None,
        original_error: BaseException | None = None,
    ) -> None:
        """Initialize GatewayError.

        Args:
            message: Human-readable error description.
            node: Node the command was issued against.
            group: Replica group the command targeted.
            operation: Gateway operation name.
            original_error: The underlying driver exception.
        """
        super().__init__(message)
        self.message = message
        self.node = node
        self.group = group
        self.operation = operation
        self.original_error = original_error


class GatewayUnavailable(GatewayError):
    """Raised when a node cannot be reached at all."""

    pass


class HadrNotEnabledError(GatewayUnavailable):
    """Raised when the Always On availability groups feature is disabled."""

    pass


class FailoverRejectedError(GatewayError):
    """Raised by the FailoverExecutor when the failover command fails.

    Attributes:
        attempt: The FailoverAttempt record, closed with outcome FAILED.
    """

    def __init__(
        self,
        message: str,
        attempt: FailoverAttempt,
        node: str | None = None,
        group: str | None = None,
        original_error: BaseException | None = None,
    ) -> None:
        super().__init__(
            message,
            node=node,
            group=group,
            operation="initiate_failover",
            original_error=original_error,
        )
        self.attempt = attempt


class AuditError(AgSwitchError):
    """Raised when a health audit cannot be completed.

    Never propagates out of the PostFailoverAuditor; it exists so audit
    failures are logged with a consistent type.
    """

    pass


class InvalidTransitionError(AgSwitchError):
    """Raised when a replica group lifecycle transition is not allowed.

    Attributes:
        group: Name of the replica group.
        current: State the group is in.
        requested: State that was requested.
    """

    def __init__(self, group: str, current: GroupState, requested: GroupState) -> None:
        super().__init__(
            f"invalid transition for group {group!r}: "
            f"{current.value} -> {requested.value}"
        )
        self.group = group
        self.current = current
        self.requested = requested
