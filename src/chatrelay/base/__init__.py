"""Shared base classes.

Exposes:
- `Loggable`: mixin providing a per-class ``self.logger``
"""

from .loggable import Loggable

__all__ = ["Loggable"]
