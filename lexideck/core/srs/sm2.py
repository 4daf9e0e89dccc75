"""Anki-style SM-2 scheduler with fixed learning steps.

Learning phase (``repetition == 0``): minute-scale steps, independent of the
ease factor.

    Again -> 1 min,  Hard -> 5 min,  Good -> graduate (1 day),  Easy -> graduate (5 days)

Review phase (``repetition > 0``): day intervals that grow with the ease factor.

    Again -> lapse back to learning (1 min)
    Hard  -> interval * 1.2
    Good  -> interval * ease
    Easy  -> interval * ease * 1.3

Every non-lapse review moves the interval forward by at least one day.
"""
from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Literal, Optional

from lexideck.core.clock import utcnow
from lexideck.schemas.card import Card

MIN_EASE_FACTOR = 1.3

HARD_MULTIPLIER = 1.2
EASY_BONUS = 1.3

# Learning steps
AGAIN_STEP = dt.timedelta(minutes=1)
HARD_STEP = dt.timedelta(minutes=5)

# Graduation intervals
GRADUATING_INTERVAL = 1  # days
EASY_INTERVAL = 5  # days


class Rating(IntEnum):
    """Four-point recall scale, encoded on the SM-2 quality range."""

    AGAIN = 0
    HARD = 2
    GOOD = 4
    EASY = 5


@dataclass(frozen=True, slots=True)
class IntervalPreview:
    """Would-be interval for a rating, used for button labels."""

    value: int
    unit: Literal["min", "day"]


def _as_rating(rating: int) -> Rating:
    try:
        return Rating(rating)
    except ValueError:
        raise ValueError(f"Unknown rating: {rating!r}") from None


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def update_ease_factor(ease_factor: float, rating: int) -> float:
    """Update ease factor based on the rating.

    SM-2 formula: EF = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)),
    floored at 1.3 with no ceiling.
    """

    q = int(_as_rating(rating))
    new_ef = ease_factor + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))
    return max(MIN_EASE_FACTOR, new_ef)


def learning_delay(rating: int) -> dt.timedelta:
    """Return the minute-scale step for a rating that keeps a card learning."""

    return AGAIN_STEP if _as_rating(rating) is Rating.AGAIN else HARD_STEP


def _review_interval(interval: int, ease_factor: float, rating: Rating) -> int:
    if rating is Rating.HARD:
        grown = interval * HARD_MULTIPLIER
    elif rating is Rating.GOOD:
        grown = interval * ease_factor
    else:
        grown = interval * ease_factor * EASY_BONUS
    return max(_round_half_up(grown), interval + 1)


def advance(card: Card, rating: int, now: Optional[dt.datetime] = None) -> Card:
    """Return the card's next scheduling state after a rating.

    Pure: the input card is left untouched. ``now`` defaults to the current
    UTC time.
    """

    rating = _as_rating(rating)
    now = now or utcnow()
    ease_factor = update_ease_factor(card.ease_factor, rating)
    interval = card.interval
    repetition = card.repetition

    if repetition == 0:
        if rating is Rating.AGAIN:
            interval = 0
            next_review = now + AGAIN_STEP
        elif rating is Rating.HARD:
            interval = 0
            next_review = now + HARD_STEP
        elif rating is Rating.GOOD:
            repetition = 1
            interval = GRADUATING_INTERVAL
            next_review = now + dt.timedelta(days=interval)
        else:
            repetition = 1
            interval = EASY_INTERVAL
            next_review = now + dt.timedelta(days=interval)
    elif rating is Rating.AGAIN:
        # Lapse
        repetition = 0
        interval = 0
        next_review = now + AGAIN_STEP
    else:
        interval = _review_interval(interval, ease_factor, rating)
        repetition += 1
        next_review = now + dt.timedelta(days=interval)

    return card.model_copy(
        update={
            "ease_factor": ease_factor,
            "interval": interval,
            "repetition": repetition,
            "next_review_date": next_review,
            "last_reviewed_at": now,
        }
    )


def preview_interval(card: Card, rating: int, now: Optional[dt.datetime] = None) -> IntervalPreview:
    """Compute the interval a rating would produce without keeping the result."""

    rating = _as_rating(rating)
    updated = advance(card, rating, now)
    if updated.repetition == 0:
        minutes = int(learning_delay(rating).total_seconds() // 60)
        return IntervalPreview(value=minutes, unit="min")
    return IntervalPreview(value=updated.interval, unit="day")


def format_preview(preview: IntervalPreview) -> str:
    """Render a preview as a compact label such as ``5m``, ``3d``, ``2mo`` or ``1.4y``."""

    if preview.unit == "min":
        return f"{preview.value}m"
    days = preview.value
    if days < 30:
        return f"{days}d"
    if days < 365:
        return f"{_round_half_up(days / 30)}mo"
    return f"{days / 365:.1f}y"


__all__ = [
    "MIN_EASE_FACTOR",
    "Rating",
    "IntervalPreview",
    "update_ease_factor",
    "learning_delay",
    "advance",
    "preview_interval",
    "format_preview",
]
