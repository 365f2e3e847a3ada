"""
Hydration Calculator
Stateless metrics derived from an ingredient list
"""
import math
from typing import Any, Iterable, Tuple

from core.keywords import DEFAULT_KEYWORDS, KeywordSets
from models.recipe import RecipeMetrics


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, halves going up (2.5 -> 3)

    Python's round() uses banker's rounding, which would make derived
    gram weights depend on parity.
    """
    return int(math.floor(value + 0.5))


def _name_weight(entry: Any) -> Tuple[str, float]:
    if isinstance(entry, dict):
        return entry.get("name", ""), entry.get("weight", 0) or 0
    return entry.name, entry.weight


def total_reference_weight(entries: Iterable[Any], keywords: KeywordSets = DEFAULT_KEYWORDS) -> float:
    """
    Sum of weights of reference-classified (flour) entries

    Args:
        entries: objects or dicts with name and weight

    Returns:
        grams, 0 when there is no flour
    """
    total = 0.0
    for entry in entries:
        name, weight = _name_weight(entry)
        if keywords.is_reference(name):
            total += weight
    return total


def total_hydrating_weight(entries: Iterable[Any], keywords: KeywordSets = DEFAULT_KEYWORDS) -> float:
    """Sum of weights of hydrating-liquid entries"""
    total = 0.0
    for entry in entries:
        name, weight = _name_weight(entry)
        if keywords.is_hydrating(name):
            total += weight
    return total


def total_mass(entries: Iterable[Any]) -> float:
    return sum(_name_weight(entry)[1] for entry in entries)


def hydration_percent(entries: Iterable[Any], keywords: KeywordSets = DEFAULT_KEYWORDS) -> int:
    """
    Hydration as a whole percentage of the flour weight

    Defined as 0 when there is no flour weight or the ratio is not finite.
    """
    entries = list(entries)
    flour = total_reference_weight(entries, keywords)
    if flour == 0:
        return 0
    water = total_hydrating_weight(entries, keywords)
    hydration = water / flour * 100
    if not math.isfinite(hydration):
        return 0
    return round_half_up(hydration)


def hydration_level(hydration: float) -> str:
    """
    Dough firmness label for a hydration percentage

    Returns:
        "firm" below 60, "medium" up to 75, "liquid" above
    """
    if hydration < 60:
        return "firm"
    if hydration <= 75:
        return "medium"
    return "liquid"


def compute_metrics(entries: Iterable[Any], keywords: KeywordSets = DEFAULT_KEYWORDS) -> RecipeMetrics:
    entries = list(entries)
    hydration = hydration_percent(entries, keywords)
    return RecipeMetrics(
        reference_weight=total_reference_weight(entries, keywords),
        hydrating_weight=total_hydrating_weight(entries, keywords),
        total_mass=total_mass(entries),
        hydration=hydration,
        hydration_level=hydration_level(hydration),
    )
