"""Failure sinks receiving every captured error event.

Reporting is best effort: a sink never raises into the caller, so a broken
Sentry transport cannot interrupt message handling.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import sentry_sdk

from ..base.loggable import Loggable
from ..config.settings import Settings


class FailureSink(Loggable, ABC):
    """Receives captured errors together with diagnostic context."""

    def report(self, error: BaseException, context: Optional[Dict[str, Any]] = None) -> None:
        """Report an error; failures inside the sink are logged and dropped.

        Args:
            error: The captured exception.
            context: Diagnostic fields, typically ``conversation_id`` and
                ``operation``.
        """
        try:
            self._report(error, context or {})
        except Exception as sink_error:
            self.logger.warning(
                f"Failure sink could not report {type(error).__name__}: {sink_error}"
            )

    @abstractmethod
    def _report(self, error: BaseException, context: Dict[str, Any]) -> None:
        pass


class LoggingFailureSink(FailureSink):
    """Write failures to the application log."""

    def _report(self, error: BaseException, context: Dict[str, Any]) -> None:
        self.logger.error(
            f"{type(error).__name__}: {error} context={context}",
            exc_info=(type(error), error, error.__traceback__),
        )


class SentryFailureSink(LoggingFailureSink):
    """Log failures and capture them in Sentry with context as tags."""

    def __init__(self, dsn: str, environment: str = "development") -> None:
        super().__init__()
        sentry_sdk.init(dsn=dsn, environment=environment)

    def _report(self, error: BaseException, context: Dict[str, Any]) -> None:
        super()._report(error, context)
        with sentry_sdk.new_scope() as scope:
            for key, value in context.items():
                scope.set_tag(key, str(value))
            error_code = getattr(error, "error_code", None)
            if error_code:
                scope.set_tag("error_code", error_code)
            sentry_sdk.capture_exception(error)


def create_failure_sink(settings: Settings) -> FailureSink:
    """Return a Sentry sink when a DSN is configured, otherwise a logging sink."""
    if settings.sentry_dsn:
        return SentryFailureSink(settings.sentry_dsn, settings.sentry_environment)
    return LoggingFailureSink()


def install_loop_exception_handler(
    loop: asyncio.AbstractEventLoop, failure_sink: FailureSink
) -> None:
    """Forward exceptions nobody retrieved from tasks/callbacks to the sink."""

    def handle(loop: asyncio.AbstractEventLoop, context: Dict[str, Any]) -> None:
        error = context.get("exception")
        if error is None:
            loop.default_exception_handler(context)
            return
        failure_sink.report(
            error, {"operation": "event_loop", "message": context.get("message", "")}
        )

    loop.set_exception_handler(handle)
