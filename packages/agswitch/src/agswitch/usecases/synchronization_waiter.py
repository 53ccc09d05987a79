"""SynchronizationWaiter use case: wait for a group's databases to synchronize."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from agswitch.adapters.ports import TimeProvider
from agswitch.domain.failover import SyncOutcome
from agswitch.domain.replica_group import ReplicaGroup
from agswitch.usecases.run_context import RunContext


@dataclass
class PollingSession:
    """Bookkeeping for one bounded polling loop.

    Attributes:
        group_name: Group being polled.
        started: Clock reading when the session opened.
        polls: Number of polls performed.
        outcome: Final outcome; None while polling or if the loop raised.
    """

    group_name: str
    started: float
    clock: TimeProvider
    polls: int = 0
    outcome: SyncOutcome | None = None

    def elapsed(self) -> float:
        return self.clock.get_time_seconds() - self.started


class SynchronizationWaiter:
    """Polls database synchronization state until ready or timed out.

    Every database of the group on the given node is polled at a fixed
    interval. The wait ends READY as soon as all of them report
    SYNCHRONIZED, or TIMED_OUT once the elapsed time reaches the timeout.
    Sleeps are capped at the remaining time, so TIMED_OUT is returned no
    later than timeout plus one poll.

    The loop runs inside a polling session that records duration and
    outcome (log + metrics) on every exit path, including gateway errors,
    which propagate to the caller.
    """

    def __init__(self, context: RunContext) -> None:
        self._gateway = context.gateway
        self._logger = context.logger
        self._metrics = context.metrics
        self._clock = context.clock
        self._poll_interval = context.settings.poll_interval_seconds
        self._default_timeout = context.settings.sync_timeout_seconds

    @contextmanager
    def _polling_session(self, group_name: str) -> Iterator[PollingSession]:
        session = PollingSession(
            group_name=group_name,
            started=self._clock.get_time_seconds(),
            clock=self._clock,
        )
        try:
            yield session
        finally:
            label = session.outcome.value if session.outcome is not None else "error"
            duration = session.elapsed()
            self._metrics.observe_sync_wait(group_name, label, duration)
            self._logger.info(
                f"sync: {group_name} {label} after {duration:.1f}s "
                f"({session.polls} poll(s))"
            )

    def wait_until_synchronized(
        self,
        group: ReplicaGroup,
        node: str,
        timeout_seconds: float | None = None,
    ) -> SyncOutcome:
        """Block until every database of group on node is synchronized.

        Args:
            group: Group whose databases are polled.
            node: Node whose local database states are read (the failover
                  target).
            timeout_seconds: Upper bound on the wait. Defaults to the run
                             settings (300 seconds unless configured).

        Returns:
            SyncOutcome.READY or SyncOutcome.TIMED_OUT.

        Raises:
            GatewayError: If polling fails.
        """
        timeout = (
            self._default_timeout if timeout_seconds is None else timeout_seconds
        )

        with self._polling_session(group.name) as session:
            while True:
                databases = self._gateway.list_group_databases(node, group.name)
                session.polls += 1
                pending = [db for db in databases if not db.is_synchronized]
                if not pending:
                    session.outcome = SyncOutcome.READY
                    return session.outcome

                elapsed = session.elapsed()
                if elapsed >= timeout:
                    session.outcome = SyncOutcome.TIMED_OUT
                    self._logger.critical(
                        f"sync: {group.name} not synchronized on {node} after "
                        f"{timeout:.0f}s; pending: "
                        + ", ".join(
                            f"{db.database_name}={db.synchronization_state.value}"
                            for db in pending
                        )
                    )
                    return session.outcome

                self._logger.debug(
                    f"sync: {group.name} waiting on {len(pending)} database(s)"
                )
                self._clock.sleep(min(self._poll_interval, timeout - elapsed))
