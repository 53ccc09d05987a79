"""Orchestrator settings domain entity."""

from __future__ import annotations

from dataclasses import dataclass

from agswitch.domain.exceptions import ConfigError
from agswitch.domain.failover import SyncTimeoutPolicy
from agswitch.domain.replica_group import ReplicaRole

DEFAULT_SYNC_TIMEOUT_SECONDS = 300.0
DEFAULT_POLL_INTERVAL_SECONDS = 10.0


@dataclass(frozen=True)
class OrchestratorSettings:
    """Settings for one orchestration run.

    Value object with zero external dependencies, validated on construction.

    Attributes:
        target_node: Node to inventory and to fail groups over to.
                    Must be non-empty with no surrounding whitespace.
        candidate_role: Local role a group must have on target_node to be a
                       candidate. Defaults to SECONDARY.
        sync_timeout_seconds: Upper bound on the synchronization wait.
                             Must be positive. Defaults to 300.
        poll_interval_seconds: Delay between synchronization polls.
                              Must be positive. Defaults to 10.
        on_sync_timeout: Decision taken when synchronization times out.
        benchmark: If True, the audit also fails back to the original
                   primary and times both health probes.
        approved_groups: Pre-approved group names for non-interactive runs.
                        None means approval is asked elsewhere.
        gateway_url_template: SQLAlchemy URL template with a {node}
                             placeholder, used by the SQL Server gateway.
    """

    target_node: str
    candidate_role: ReplicaRole = ReplicaRole.SECONDARY
    sync_timeout_seconds: float = DEFAULT_SYNC_TIMEOUT_SECONDS
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    on_sync_timeout: SyncTimeoutPolicy = SyncTimeoutPolicy.PROCEED
    benchmark: bool = False
    approved_groups: tuple[str, ...] | None = None
    gateway_url_template: str | None = None

    def __post_init__(self) -> None:
        """Validate settings."""
        self._validate_target_node()
        self._validate_timings()
        self._validate_approved_groups()
        self._validate_url_template()

    def _validate_target_node(self) -> None:
        if not self.target_node or not self.target_node.strip():
            raise ConfigError("target_node cannot be empty or whitespace-only")

        if self.target_node != self.target_node.strip():
            raise ConfigError(
                f"target_node cannot have leading/trailing whitespace, got: {self.target_node!r}"
            )

    def _validate_timings(self) -> None:
        if self.sync_timeout_seconds <= 0:
            raise ConfigError("sync_timeout_seconds must be positive")

        if self.poll_interval_seconds <= 0:
            raise ConfigError("poll_interval_seconds must be positive")

    def _validate_approved_groups(self) -> None:
        if self.approved_groups is None:
            return

        for name in self.approved_groups:
            if not isinstance(name, str) or not name.strip():
                raise ConfigError(
                    f"approved_groups entries must be non-empty strings, got: {name!r}"
                )

    def _validate_url_template(self) -> None:
        if self.gateway_url_template is None:
            return

        if "{node}" not in self.gateway_url_template:
            raise ConfigError("gateway_url_template must contain a {node} placeholder")
