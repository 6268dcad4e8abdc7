import asyncio
import logging

from chatrelay.config.settings import Settings
from chatrelay.core.errors import GenerationError
from chatrelay.observability.failure_sink import (
    FailureSink,
    LoggingFailureSink,
    SentryFailureSink,
    create_failure_sink,
    install_loop_exception_handler,
)
from tests.fakes import RecordingFailureSink


class ExplodingSink(FailureSink):
    def _report(self, error, context):
        raise RuntimeError("sink offline")


def test_sink_errors_never_reach_the_caller(caplog):
    ExplodingSink().report(GenerationError("timeout"), {"operation": "generate_reply"})

    assert "could not report GenerationError" in caplog.text


def test_logging_sink_logs_error_with_context(caplog):
    with caplog.at_level(logging.ERROR):
        LoggingFailureSink().report(
            GenerationError("timeout"), {"conversation_id": 42, "operation": "generate_reply"}
        )

    [record] = caplog.records
    assert record.levelno == logging.ERROR
    assert "Generation failed: timeout" in record.getMessage()
    assert "'conversation_id': 42" in record.getMessage()


def test_create_failure_sink_without_dsn_logs_only():
    sink = create_failure_sink(Settings(_env_file=None, sentry_dsn=None))

    assert type(sink) is LoggingFailureSink


def test_sentry_sink_captures_with_tags(monkeypatch):
    captured = []
    monkeypatch.setattr("sentry_sdk.init", lambda **kwargs: None)
    monkeypatch.setattr(
        "sentry_sdk.capture_exception", lambda error: captured.append(error)
    )
    sink = SentryFailureSink("https://key@sentry.example/1")
    error = GenerationError("timeout")

    sink.report(error, {"conversation_id": 42, "operation": "generate_reply"})

    assert captured == [error]


async def test_loop_handler_forwards_unretrieved_task_errors():
    sink = RecordingFailureSink()
    loop = asyncio.get_running_loop()
    previous = loop.get_exception_handler()
    install_loop_exception_handler(loop, sink)
    try:
        error = RuntimeError("lost")
        loop.call_exception_handler(
            {"message": "Task exception was never retrieved", "exception": error}
        )
    finally:
        loop.set_exception_handler(previous)

    [(reported, context)] = sink.reports
    assert reported is error
    assert context["operation"] == "event_loop"
