"""Wall-clock helpers shared by the scheduler, session runtime and store."""
from __future__ import annotations

import datetime as dt
from typing import Callable

TZ = dt.timezone.utc

Clock = Callable[[], dt.datetime]


def utcnow() -> dt.datetime:
    return dt.datetime.now(TZ)


def ensure_aware(value: dt.datetime) -> dt.datetime:
    """Interpret naive timestamps as UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=TZ)
    return value


__all__ = ["TZ", "Clock", "utcnow", "ensure_aware"]
