"""Failure reporting exports.

Exposes:
- `FailureSink`: reporting interface
- `LoggingFailureSink`: logs failures with traceback
- `SentryFailureSink`: forwards failures to Sentry
- `create_failure_sink()`: picks a sink from settings
- `install_loop_exception_handler()`: routes unhandled task errors to a sink
"""

from .failure_sink import (
    FailureSink,
    LoggingFailureSink,
    SentryFailureSink,
    create_failure_sink,
    install_loop_exception_handler,
)

__all__ = [
    "FailureSink",
    "LoggingFailureSink",
    "SentryFailureSink",
    "create_failure_sink",
    "install_loop_exception_handler",
]
