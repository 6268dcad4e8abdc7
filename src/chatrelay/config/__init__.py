"""Configuration package exports.

Exposes:
- `Settings`: Pydantic settings for application configuration
"""

from .settings import Settings

__all__ = ["Settings"]
