"""
speakeval.levels - CEFR proficiency scale.

Level labels, category points, and the mapping from a five-category
total (out of 30) back to a single level.
"""

from __future__ import annotations

from enum import Enum


class CEFRLevel(str, Enum):
    A1 = "A1"
    A2 = "A2"
    B1 = "B1"
    B2 = "B2"
    C1 = "C1"
    C2 = "C2"


LEVEL_POINTS: dict[CEFRLevel, int] = {
    CEFRLevel.A1: 1,
    CEFRLevel.A2: 2,
    CEFRLevel.B1: 3,
    CEFRLevel.B2: 4,
    CEFRLevel.C1: 5,
    CEFRLevel.C2: 6,
}

CATEGORY_COUNT = 5
MAX_TOTAL = CATEGORY_COUNT * LEVEL_POINTS[CEFRLevel.C2]

# Inclusive upper bound of each band of the 30-point total.
TOTAL_BANDS: list[tuple[int, CEFRLevel]] = [
    (10, CEFRLevel.A1),
    (14, CEFRLevel.A2),
    (18, CEFRLevel.B1),
    (20, CEFRLevel.B2),
    (24, CEFRLevel.C1),
    (MAX_TOTAL, CEFRLevel.C2),
]


def parse_level(label: str | None) -> CEFRLevel | None:
    """Parse a level label such as "b2" or "C1+".

    Plus bands fold down to their base level.

    Returns:
        The matching level, or None if the label is not recognised
    """
    if not label:
        return None
    text = str(label).strip().upper().rstrip("+").strip()
    try:
        return CEFRLevel(text)
    except ValueError:
        return None


def level_from_total(total: float) -> CEFRLevel:
    """Map a five-category total (6-30) to a level."""
    for upper, level in TOTAL_BANDS:
        if total <= upper:
            return level
    return CEFRLevel.C2


def score_from_total(total: float) -> float:
    """Convert a five-category total into a 0-100 score."""
    score = round(total / MAX_TOTAL * 100)
    return float(min(100, max(0, score)))
