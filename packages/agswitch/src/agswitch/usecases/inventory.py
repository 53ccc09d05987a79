"""ReplicaGroupInventory use case: discover and classify replica groups."""

from __future__ import annotations

from agswitch.domain.exceptions import (
    GatewayError,
    GatewayUnavailable,
    HadrNotEnabledError,
)
from agswitch.domain.replica_group import AvailabilityMode, ReplicaGroup
from agswitch.usecases.run_context import RunContext


class ReplicaGroupInventory:
    """Enumerates the replica groups visible from a node.

    Each group is classified by the local role of the queried node and by a
    conservative commit mode: one asynchronous replica makes the whole group
    asynchronous. The classification becomes the group's original_mode, the
    mode it is reverted to at the end of the run.

    Dependencies:
        - ClusterAdminGatewayPort (via RunContext)
    """

    def __init__(self, context: RunContext) -> None:
        self._gateway = context.gateway
        self._logger = context.logger

    def list_groups(self, node: str) -> list[ReplicaGroup]:
        """Discover and classify every replica group on node.

        Args:
            node: Server to query.

        Returns:
            Groups in the order the gateway reports them.

        Raises:
            GatewayUnavailable: If node cannot be reached or has HADR
                disabled.
            GatewayError: If the engine rejects the property or group
                query. Both are fatal to the run.
        """
        enabled = self._gateway.query_server_property(node, "IsHadrEnabled")
        if not enabled:
            raise HadrNotEnabledError(
                f"Always On availability groups are not enabled on {node}",
                node=node,
                operation="query_server_property",
            )

        groups: list[ReplicaGroup] = []
        for descriptor in self._gateway.list_groups(node):
            try:
                replicas = self._gateway.list_replicas(node, descriptor.name)
            except GatewayUnavailable:
                raise
            except GatewayError as exc:
                # Without its replicas a group cannot be classified, and an
                # unclassified group cannot be reverted safely.
                self._logger.error(
                    f"inventory: skipping group {descriptor.name!r} on {node}: "
                    f"cannot read replicas: {exc}"
                )
                continue

            if not replicas:
                self._logger.warning(
                    f"inventory: group {descriptor.name!r} reports no replicas on {node}"
                )

            group = ReplicaGroup.from_descriptor(descriptor, replicas)
            self._logger.debug(
                f"inventory: {group.name} role={group.local_role.value} "
                f"mode={group.original_mode.value} replicas={len(group.replicas)}"
            )
            groups.append(group)

        self._logger.info(f"inventory: {len(groups)} replica group(s) found on {node}")
        return groups

    @staticmethod
    def count_by_mode(groups: list[ReplicaGroup]) -> dict[AvailabilityMode, int]:
        """Count groups per original commit mode (shown by the plan command)."""
        counts = {mode: 0 for mode in AvailabilityMode}
        for group in groups:
            counts[group.original_mode] += 1
        return counts
