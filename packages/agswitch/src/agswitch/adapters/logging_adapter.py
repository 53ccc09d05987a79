"""Standard library logging adapter implementing LoggingPort."""

from __future__ import annotations

import logging


class StdlibLoggingAdapter:
    """LoggingPort implementation backed by the logging module.

    Every message is prefixed with the run id so log lines from one
    orchestration can be correlated. Handlers and levels are configured by
    the caller (the CLI uses logging.basicConfig).

    Example:
        >>> adapter = StdlibLoggingAdapter(run_id="3f2a9c1e")
        >>> adapter.info("inventory complete")  # "[run 3f2a9c1e] inventory complete"
    """

    def __init__(
        self,
        run_id: str | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            run_id: Operation identifier prefixed to every message.
            logger: Logger to write to. Defaults to the "agswitch" logger.
        """
        self._logger = logger or logging.getLogger("agswitch")
        self._prefix = f"[run {run_id}] " if run_id else ""

    def bind(self, run_id: str) -> StdlibLoggingAdapter:
        """Return an adapter on the same logger with a different run id."""
        return StdlibLoggingAdapter(run_id=run_id, logger=self._logger)

    def debug(self, message: str) -> None:
        self._logger.debug("%s%s", self._prefix, message)

    def info(self, message: str) -> None:
        self._logger.info("%s%s", self._prefix, message)

    def warning(self, message: str) -> None:
        self._logger.warning("%s%s", self._prefix, message)

    def error(self, message: str) -> None:
        self._logger.error("%s%s", self._prefix, message)

    def critical(self, message: str) -> None:
        self._logger.critical("%s%s", self._prefix, message)
