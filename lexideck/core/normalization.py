"""Card identity helpers."""
from __future__ import annotations

import unicodedata


def normalize_card_id(word: str) -> str:
    """Return the deduplication key for a headword.

    The key is case-folded, keeps letters of any script and drops everything
    else (punctuation, digits, whitespace). ``ё`` collapses onto ``е`` so both
    spellings map to the same card.
    """

    folded = word.casefold()
    letters = "".join(char for char in folded if unicodedata.category(char).startswith("L"))
    return letters.replace("ё", "е")


__all__ = ["normalize_card_id"]
