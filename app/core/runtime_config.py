"""In-process snapshot of applied platform settings."""

import copy
import logging
import time
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class RuntimeConfig:
    """
    Latest applied value per platform settings type.

    Categories publish here from their ``apply`` step; the password policy,
    the IP allow-list, the test mailer and the enabled-gateway lookup read
    it back before falling through to the cache. A snapshot older than
    *max_age* seconds is treated as absent, which bounds how long a process
    keeps serving a value another instance has since replaced.
    """

    def __init__(
        self, max_age: float | None = 60.0, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self.max_age = max_age
        self._clock = clock
        self._values: dict[str, tuple[float, dict[str, Any]]] = {}

    def publish(self, settings_type: str, value: dict[str, Any]) -> None:
        self._values[settings_type] = (self._clock(), copy.deepcopy(value))
        logger.debug("Applied %s settings to runtime configuration", settings_type)

    def get(self, settings_type: str) -> dict[str, Any] | None:
        """The published value, or ``None`` when never published or expired."""
        entry = self._values.get(settings_type)
        if entry is None:
            return None
        published_at, value = entry
        if self.max_age is not None and self._clock() - published_at > self.max_age:
            return None
        return copy.deepcopy(value)
