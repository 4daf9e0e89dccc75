"""Explicit result values for soft failures crossing async boundaries."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Soft failure categories handled by the deck store."""

    PRIMARY_UNAVAILABLE = "primary_unavailable"
    PRIMARY_WRITE_FAILED = "primary_write_failed"
    MALFORMED_CACHE = "malformed_cache"
    ENRICHMENT_FAILED = "enrichment_failed"


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    detail: str = ""

    @property
    def is_ok(self) -> bool:
        return False


Result = Union[Ok[T], Err]


async def guard(awaitable: Awaitable[T], kind: ErrorKind) -> Result[T]:
    """Await an adapter call and fold any exception into an :class:`Err`."""

    try:
        value = await awaitable
    except Exception as exc:  # adapters may raise anything
        return Err(kind, f"{type(exc).__name__}: {exc}")
    return Ok(value)


__all__ = ["ErrorKind", "Ok", "Err", "Result", "guard"]
