import asyncio
import json

import httpx
import pytest

from chatrelay.transport.telegram import (
    TelegramBotAPI,
    TelegramPoller,
    TelegramTransport,
    parse_update,
)
from tests.fakes import RecordingFailureSink


def text_update(update_id, chat_id, text, kind="message"):
    return {
        "update_id": update_id,
        kind: {"message_id": update_id, "chat": {"id": chat_id, "type": "private"}, "text": text},
    }


def mock_api(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return TelegramBotAPI("123:abc", "https://telegram.test", client=client)


def test_parse_update_reads_chat_and_text():
    message = parse_update(text_update(1, 42, "/start"))

    assert message.conversation_id == 42
    assert message.text == "/start"


def test_parse_update_accepts_edited_messages():
    message = parse_update(text_update(2, -100123, "fixed typo", kind="edited_message"))

    assert message.conversation_id == -100123
    assert message.text == "fixed typo"


@pytest.mark.parametrize(
    "update",
    [
        {"update_id": 3},
        {"update_id": 4, "message": {"chat": {"id": 42}, "sticker": {"file_id": "x"}}},
        {"update_id": 5, "message": {"text": "no chat"}},
        {"update_id": 6, "callback_query": {"id": "1"}},
    ],
)
def test_parse_update_ignores_non_text_updates(update):
    assert parse_update(update) is None


async def test_send_posts_send_message():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={"ok": True, "result": {"message_id": 9}})

    api = mock_api(handler)
    await TelegramTransport(api).send(42, "Hello")
    await api.close()

    [request] = requests
    assert request.url.path == "/bot123:abc/sendMessage"
    assert json.loads(request.content) == {"chat_id": 42, "text": "Hello"}


async def test_send_failure_is_logged_not_raised(caplog):
    api = mock_api(lambda request: httpx.Response(500, json={"ok": False}))

    await TelegramTransport(api).send(42, "Hello")
    await api.close()

    assert "Delivery to chat 42 failed" in caplog.text


async def test_call_raises_when_telegram_rejects():
    api = mock_api(
        lambda request: httpx.Response(
            200, json={"ok": False, "description": "Bad Request: chat not found"}
        )
    )

    with pytest.raises(ValueError, match="chat not found"):
        await api.call("sendMessage", {"chat_id": 1, "text": "x"})
    await api.close()


async def test_poll_once_dispatches_text_and_advances_offset():
    payloads = []
    batches = [
        [
            text_update(10, 42, "/start"),
            {"update_id": 11, "message": {"chat": {"id": 42}, "photo": []}},
            text_update(12, 7, "hello"),
        ],
        [],
    ]

    def handler(request):
        payloads.append(json.loads(request.content))
        return httpx.Response(200, json={"ok": True, "result": batches.pop(0)})

    received = []

    async def on_message(message):
        received.append((message.conversation_id, message.text))

    api = mock_api(handler)
    poller = TelegramPoller(api, on_message, RecordingFailureSink(), poll_timeout=0)

    assert await poller.poll_once() == 2
    await asyncio.gather(*list(poller._tasks))
    assert await poller.poll_once() == 0
    await api.close()

    assert received == [(42, "/start"), (7, "hello")]
    assert "offset" not in payloads[0]
    assert payloads[1]["offset"] == 13
    assert payloads[0]["allowed_updates"] == ["message", "edited_message"]


async def test_run_reports_unexpected_errors_and_keeps_polling():
    sink = RecordingFailureSink()
    api = mock_api(lambda request: httpx.Response(200, json={"ok": True, "result": []}))
    poller = TelegramPoller(api, lambda message: None, sink, retry_delay=0)
    outcomes = [KeyError("update_id"), httpx.ConnectError("offline"), asyncio.CancelledError()]
    calls = []

    async def flaky_poll_once():
        calls.append(len(calls))
        raise outcomes.pop(0)

    poller.poll_once = flaky_poll_once

    with pytest.raises(asyncio.CancelledError):
        await poller.run()
    await api.close()

    assert len(calls) == 3
    [(error, context)] = sink.reports
    assert isinstance(error, KeyError)
    assert context == {"operation": "poll_updates"}
