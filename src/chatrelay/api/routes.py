"""FastAPI routes and service wiring for chatrelay.

Exposes HTTP endpoints for:

- Receiving Telegram updates in webhook mode (`POST /telegram/webhook`)
- Inspecting a conversation's stored state
- Reporting overall service status and liveness

Also provides `initialize_api()` / `shutdown_api()` to construct and tear
down the failure sink, state store, generation client, Telegram transport,
orchestrator and (in polling mode) the Telegram poller.
"""

import asyncio
import contextlib
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, BackgroundTasks, Body, Depends, Header, HTTPException
from pydantic import BaseModel

from ..base.loggable import Loggable
from ..config.settings import Settings
from ..core.errors import StoreUnavailable
from ..core.locks import ConversationLocks
from ..core.orchestrator import ConversationOrchestrator
from ..llm.client import LanguageGenerationClient
from ..llm.factory import LLMModelFactory
from ..observability.failure_sink import FailureSink, create_failure_sink
from ..storage import ChatStateStore, create_state_store
from ..transport.base import MessageTransport
from ..transport.telegram import (
    TelegramBotAPI,
    TelegramPoller,
    TelegramTransport,
    parse_update,
)


class ExchangeResponse(BaseModel):
    """One recorded exchange."""

    user_text: str
    assistant_text: str


class ConversationResponse(BaseModel):
    """Stored state of one conversation.

    Attributes:
        conversation_id: Telegram chat id.
        step: Completed transitions.
        engaged: Whether the start command has been handled.
        history: Exchanges in arrival order.
    """

    conversation_id: int
    step: int
    engaged: bool
    history: List[ExchangeResponse]


class SystemStatus(BaseModel):
    """Aggregated service status snapshot."""

    status: str
    llm_provider: str
    llm_model: str
    storage_backend: str
    telegram_mode: str
    polling: bool


class APIServiceContainer(Loggable):
    """Container for API services and dependencies.

    Accessors raise HTTP 503 until `initialize()` has run.
    """

    def __init__(self) -> None:
        super().__init__()
        self.settings: Optional[Settings] = None
        self.orchestrator: Optional[ConversationOrchestrator] = None
        self.store: Optional[ChatStateStore] = None
        self.transport: Optional[MessageTransport] = None
        self.failure_sink: Optional[FailureSink] = None
        self.poller_task: Optional[asyncio.Task] = None

    def initialize(
        self,
        settings: Settings,
        orchestrator: ConversationOrchestrator,
        store: ChatStateStore,
        transport: MessageTransport,
        failure_sink: FailureSink,
    ) -> None:
        """Register initialized services."""
        self.settings = settings
        self.orchestrator = orchestrator
        self.store = store
        self.transport = transport
        self.failure_sink = failure_sink
        self.logger.info("API services initialized")

    def start_polling(self, poller: TelegramPoller) -> None:
        """Run the Telegram poller as a background task."""
        self.poller_task = asyncio.create_task(poller.run())

    async def shutdown(self) -> None:
        """Stop polling and release transport and store resources."""
        if self.poller_task:
            self.poller_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self.poller_task
            self.poller_task = None
        if self.transport:
            await self.transport.close()
        if self.store:
            await self.store.close()
        self.orchestrator = None
        self.store = None
        self.transport = None
        self.logger.info("API services shut down")

    def get_settings(self) -> Settings:
        if not self.settings:
            raise HTTPException(status_code=503, detail="Service not initialized")
        return self.settings

    def get_orchestrator(self) -> ConversationOrchestrator:
        if not self.orchestrator:
            raise HTTPException(status_code=503, detail="Orchestrator not initialized")
        return self.orchestrator

    def get_store(self) -> ChatStateStore:
        if not self.store:
            raise HTTPException(status_code=503, detail="State store not initialized")
        return self.store


# Global service container
service_container = APIServiceContainer()
router = APIRouter(prefix="/api/v1")


def get_settings() -> Settings:
    """FastAPI dependency providing the active settings."""
    return service_container.get_settings()


def get_orchestrator() -> ConversationOrchestrator:
    """FastAPI dependency providing the initialized orchestrator instance."""
    return service_container.get_orchestrator()


def get_store() -> ChatStateStore:
    """FastAPI dependency providing the initialized state store."""
    return service_container.get_store()


@router.post("/telegram/webhook")
async def telegram_webhook(
    background_tasks: BackgroundTasks,
    update: Dict[str, Any] = Body(...),
    x_telegram_bot_api_secret_token: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
    orch: ConversationOrchestrator = Depends(get_orchestrator),
):
    """Accept a Telegram update and dispatch it in the background.

    Telegram only needs a quick 2xx; the reply is delivered through the
    transport once the orchestrator finishes.

    Raises:
        HTTPException: 403 if a webhook secret is configured and the header
            does not match.
    """
    secret = settings.telegram_webhook_secret
    if secret and x_telegram_bot_api_secret_token != secret:
        raise HTTPException(status_code=403, detail="Invalid webhook secret")

    message = parse_update(update)
    if message is None:
        return {"status": "ignored"}

    background_tasks.add_task(orch.handle_message, message)
    return {"status": "accepted", "conversation_id": message.conversation_id}


@router.get("/conversations/{conversation_id}", response_model=ConversationResponse)
async def get_conversation(conversation_id: int, store: ChatStateStore = Depends(get_store)):
    """Return the stored state of a conversation.

    Raises:
        HTTPException: 404 if unknown, 503 if the store is unreachable.
    """
    try:
        state = await store.get(conversation_id)
    except StoreUnavailable as e:
        raise HTTPException(status_code=503, detail=e.message)

    if state is None:
        raise HTTPException(
            status_code=404, detail=f"Conversation {conversation_id} not found"
        )

    return ConversationResponse(
        conversation_id=state.conversation_id,
        step=state.step,
        engaged=not state.is_fresh,
        history=[
            ExchangeResponse(
                user_text=exchange.user_text, assistant_text=exchange.assistant_text
            )
            for exchange in state.history
        ],
    )


@router.get("/status", response_model=SystemStatus)
async def system_status(settings: Settings = Depends(get_settings)):
    """Return a snapshot of overall service status."""
    return SystemStatus(
        status="operational" if service_container.orchestrator else "starting",
        llm_provider=settings.default_llm_provider,
        llm_model=settings.llm_model_name,
        storage_backend=settings.storage_backend,
        telegram_mode=settings.telegram_mode,
        polling=service_container.poller_task is not None,
    )


@router.get("/health")
async def health_check():
    """Simple liveness probe for the API service."""
    return {"status": "healthy"}


async def initialize_api(settings: Settings) -> None:
    """Initialize API components and wire services into the container.

    Args:
        settings: Application settings.

    Raises:
        ValueError: If the Telegram token or LLM credentials are missing.
    """
    if not settings.telegram_bot_token:
        raise ValueError("No Telegram bot token configured (CHATRELAY_TELEGRAM_BOT_TOKEN)")

    failure_sink = create_failure_sink(settings)

    llm_factory = LLMModelFactory(settings)
    generation_client = LanguageGenerationClient.from_settings(settings, llm_factory)

    store = await create_state_store(settings, failure_sink)

    api = TelegramBotAPI(settings.telegram_bot_token, settings.telegram_api_base)
    transport = TelegramTransport(api)

    orchestrator = ConversationOrchestrator(
        store=store,
        generation_client=generation_client,
        transport=transport,
        failure_sink=failure_sink,
        start_command=settings.start_command,
        locks=ConversationLocks() if settings.serialize_conversations else None,
    )
    service_container.initialize(settings, orchestrator, store, transport, failure_sink)

    if settings.telegram_mode == "polling":
        service_container.start_polling(
            TelegramPoller(
                api,
                orchestrator.handle_message,
                failure_sink,
                poll_timeout=settings.telegram_poll_timeout,
            )
        )

    service_container.logger.info(
        f"API initialized: storage={settings.storage_backend}, "
        f"telegram={settings.telegram_mode}, llm={settings.default_llm_provider}"
    )


async def shutdown_api() -> None:
    """Tear down services registered by `initialize_api()`."""
    await service_container.shutdown()
