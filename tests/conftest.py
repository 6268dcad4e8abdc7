import pytest

from chatrelay.core.locks import ConversationLocks
from chatrelay.core.orchestrator import ConversationOrchestrator
from chatrelay.storage.memory import InMemoryChatStateStore
from tests.fakes import RecordingFailureSink, RecordingTransport, ScriptedGenerationClient


@pytest.fixture
def failure_sink():
    return RecordingFailureSink()


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def store(failure_sink):
    return InMemoryChatStateStore(failure_sink)


@pytest.fixture
def make_orchestrator(store, transport, failure_sink):
    """Build an orchestrator around the shared fakes and a scripted client."""

    def build(*outcomes, generation_client=None, locks=True, chat_store=None):
        client = generation_client or ScriptedGenerationClient(*outcomes)
        return ConversationOrchestrator(
            store=chat_store or store,
            generation_client=client,
            transport=transport,
            failure_sink=failure_sink,
            start_command="/start",
            locks=ConversationLocks() if locks else None,
        )

    return build
