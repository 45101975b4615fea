"""Outcome of best-effort side effects (cache invalidation, event publishing).

Side effects never raise into the request path.  Instead they report
whether they completed or degraded, so the caller can decide to log or
alert.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Optional


class SideEffectStatus(StrEnum):
    OK = "ok"
    DEGRADED = "degraded"


@dataclass(frozen=True)
class SideEffectResult:
    status: SideEffectStatus
    operation: str
    error: Optional[str] = None

    @classmethod
    def ok(cls, operation: str) -> SideEffectResult:
        return cls(status=SideEffectStatus.OK, operation=operation)

    @classmethod
    def degraded(cls, operation: str, error: BaseException | str) -> SideEffectResult:
        return cls(
            status=SideEffectStatus.DEGRADED,
            operation=operation,
            error=str(error),
        )

    @property
    def is_degraded(self) -> bool:
        return self.status == SideEffectStatus.DEGRADED
