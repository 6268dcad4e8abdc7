"""Application entrypoint and FastAPI app factory for chatrelay.

Defines the `ChatRelayApplication` which:

- Configures logging and CORS middleware
- Initializes services during app lifespan (failure sink, state store,
  generation client, Telegram transport and poller, orchestrator via
  `initialize_api()`), and routes unhandled event-loop errors to the
  failure sink
- Registers HTTP routes from `src/chatrelay/api/routes.py`
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api.routes import initialize_api, router, service_container, shutdown_api
from .config.settings import Settings
from .observability.failure_sink import install_loop_exception_handler


class ChatRelayApplication:
    """Create and run the chatrelay FastAPI application.

    Responsibilities:
    - Provide lifecycle hooks to initialize and tear down services
    - Configure CORS and include API routes
    - Expose `create_app()` and `run()` helpers
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or Settings()
        self.app: FastAPI | None = None
        self._setup_logging(self.settings.log_level)
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def _setup_logging(level: str) -> None:
        """Configure application logging."""
        logging.basicConfig(
            level=getattr(logging, level.upper(), logging.INFO),
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )
        # httpx logs every request URL, which embeds the bot token.
        logging.getLogger("httpx").setLevel(logging.WARNING)

    def _create_lifespan_manager(self):
        """Create an async lifespan manager that initializes services.

        Returns:
            Callable: An async context manager suitable for FastAPI's
            `lifespan` parameter.
        """

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            self.logger.info("Starting chatrelay...")
            await initialize_api(self.settings)
            install_loop_exception_handler(
                asyncio.get_running_loop(), service_container.failure_sink
            )
            self.logger.info("chatrelay started successfully")
            yield
            self.logger.info("Shutting down chatrelay...")
            await shutdown_api()

        return lifespan

    def _configure_middleware(self) -> None:
        """Configure CORS using origins from `Settings.cors_origins`."""
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=self.settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    def _register_routes(self) -> None:
        """Register application routes including the root info route."""
        self.app.include_router(router)

        @self.app.get("/")
        async def root() -> Dict[str, Any]:
            """Root endpoint providing service information."""
            return {
                "message": self.settings.app_name,
                "version": __version__,
                "status": "running",
            }

    def create_app(self) -> FastAPI:
        """Create and configure the FastAPI application instance.

        Returns:
            FastAPI: Configured app with routes, middleware, and lifespan.
        """
        self.app = FastAPI(
            title="chatrelay",
            description="Telegram to LLM conversation relay",
            version=__version__,
            lifespan=self._create_lifespan_manager(),
        )

        self._configure_middleware()
        self._register_routes()

        return self.app

    def run(self) -> None:
        """Run the application server with Uvicorn.

        Honors host/port from `Settings`; debug mode raises the log level.
        """
        if not self.app:
            self.create_app()

        if self.app is None:
            raise RuntimeError("Failed to create FastAPI application")

        uvicorn.run(
            self.app,
            host=self.settings.api_host,
            port=self.settings.api_port,
            log_level="info" if not self.settings.debug else "debug",
        )


# Global application instance
chatrelay_app = ChatRelayApplication()
app = chatrelay_app.create_app()


def main() -> None:
    """Main entry point for the application."""
    chatrelay_app.run()


if __name__ == "__main__":
    main()
