"""Outcome of a best-effort operation.

Cache writes, audit writes and live-update broadcasts never raise. They
return an :class:`OpResult` instead, which the caller may inspect, log or
discard.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class OpResult:
    """Success flag plus the error message of a failed best-effort call."""

    ok: bool
    error: str | None = None

    @classmethod
    def success(cls) -> "OpResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, error: BaseException | str) -> "OpResult":
        return cls(ok=False, error=str(error) or type(error).__name__)

    def __bool__(self) -> bool:
        return self.ok
