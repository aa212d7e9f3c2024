"""Small text helpers shared by the import pipeline and the player services."""

from __future__ import annotations

import re
import unicodedata
from typing import Optional

_LAST_INT_RE = re.compile(r"(\d+)(?!.*\d)")


def normalize_key(value: str) -> str:
    """Accent- and case-insensitive key for matching team names."""
    decomposed = unicodedata.normalize("NFD", value or "")
    stripped = "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")
    return stripped.lower().strip()


def split_full_name(name: Optional[str]) -> tuple[str, str]:
    """Split "Lionel Andrés Messi" into ("Lionel Andrés", "Messi").

    A single token becomes the first name with an empty last name.
    """
    parts = (name or "").split()
    if not parts:
        return "", ""
    if len(parts) == 1:
        return parts[0], ""
    return " ".join(parts[:-1]), parts[-1]


def parse_round_number(round_label: Optional[str]) -> Optional[int]:
    """Last integer in a round label ("Regular Season - 12" -> 12)."""
    if not round_label:
        return None
    match = _LAST_INT_RE.search(round_label)
    return int(match.group(1)) if match else None
