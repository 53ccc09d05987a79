"""ModeTransitionController use case: synchronous/asynchronous commit changes."""

from __future__ import annotations

from agswitch.domain.exceptions import GatewayError
from agswitch.domain.replica_group import AvailabilityMode, ReplicaGroup
from agswitch.usecases.run_context import RunContext


class ModeTransitionController:
    """Raises replica groups to synchronous commit and puts them back.

    A planned failover without data loss needs every replica committing
    synchronously, so asynchronous groups are upgraded before cutover and
    downgraded afterwards to restore the operator's topology.

    Mode changes are ALTER AVAILABILITY GROUP ... MODIFY REPLICA statements
    and must be issued on the current primary: before failover that is the
    group's primary_endpoint, after a successful failover it is the new
    primary, passed explicitly to revert().
    """

    def __init__(self, context: RunContext) -> None:
        self._gateway = context.gateway
        self._logger = context.logger

    def ensure_synchronous(self, group: ReplicaGroup) -> ReplicaGroup:
        """Set every replica of group to synchronous commit.

        Idempotent: a group whose current_mode is already SYNCHRONOUS is
        returned untouched, without any gateway call.

        Raises:
            GatewayError: If a mode change is rejected. Replicas changed
                before the failure stay changed and current_mode is set to
                SYNCHRONOUS so that revert() undoes them.
        """
        if group.current_mode is AvailabilityMode.SYNCHRONOUS:
            return group

        node = group.primary_endpoint
        changed = 0
        try:
            for replica in group.replicas:
                self._gateway.set_replica_mode(
                    node, group.name, replica.name, AvailabilityMode.SYNCHRONOUS
                )
                changed += 1
                self._logger.info(
                    f"mode: {group.name}/{replica.name} set to synchronous commit"
                )
        except GatewayError:
            if changed:
                group.current_mode = AvailabilityMode.SYNCHRONOUS
            raise

        group.current_mode = AvailabilityMode.SYNCHRONOUS
        return group

    def revert(self, group: ReplicaGroup, node: str | None = None) -> ReplicaGroup:
        """Restore the group's original commit mode.

        No-op when current_mode already equals original_mode. Otherwise
        every replica that was asynchronous at discovery is set back to
        asynchronous; replicas that were synchronous are left alone. All
        replicas are attempted even if one fails.

        Args:
            group: Group to revert.
            node: Current primary to issue the changes on. Defaults to the
                  group's primary_endpoint.

        Raises:
            GatewayError: If any replica could not be reverted; current_mode
                is left unchanged in that case.
        """
        if not group.needs_revert:
            return group

        node = node or group.primary_endpoint
        failures: list[str] = []
        last_error: GatewayError | None = None
        for replica in group.asynchronous_replicas:
            try:
                self._gateway.set_replica_mode(
                    node, group.name, replica.name, AvailabilityMode.ASYNCHRONOUS
                )
            except GatewayError as exc:
                failures.append(replica.name)
                last_error = exc
                self._logger.error(
                    f"mode: {group.name}/{replica.name} could not be reverted "
                    f"to asynchronous commit on {node}: {exc}"
                )
                continue
            self._logger.info(
                f"mode: {group.name}/{replica.name} reverted to asynchronous commit"
            )

        if failures:
            raise GatewayError(
                f"revert of {group.name!r} failed for replica(s): {', '.join(failures)}",
                node=node,
                group=group.name,
                operation="set_replica_mode",
                original_error=last_error,
            )

        group.current_mode = group.original_mode
        return group
