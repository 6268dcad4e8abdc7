"""Logging mixin shared by service classes."""

import logging


class Loggable:
    """Attach a class-scoped logger as ``self.logger``.

    The logger name is ``{module}.{ClassName}`` so log lines can be filtered
    per component.
    """

    def __init__(self) -> None:
        self.logger = logging.getLogger(
            f"{self.__class__.__module__}.{self.__class__.__name__}"
        )
