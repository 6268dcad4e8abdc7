"""API package exports.

Exposes:
- `router`: FastAPI APIRouter with all endpoints
- `initialize_api()` / `shutdown_api()`: service wiring and teardown
"""

from .routes import initialize_api, router, shutdown_api

__all__ = ["router", "initialize_api", "shutdown_api"]
