"""
Formatting Utilities
Display strings for weights and percentages
"""
import math
from decimal import ROUND_HALF_UP, Decimal

from core.calculator import round_half_up


def _fixed(value: float, places: str) -> str:
    # Exact binary value, ties away from zero
    return format(Decimal(value).quantize(Decimal(places), rounding=ROUND_HALF_UP), "f")


def format_weight(grams: float) -> str:
    """
    Format a weight for display

    Args:
        grams: weight in grams

    Returns:
        "650g" below one kilogram, "1.25 kg" from 1000 g up
    """
    if not math.isfinite(grams):
        return f"{grams}g"
    if grams >= 1000:
        return f"{_fixed(grams / 1000, '0.01')} kg"
    return f"{round_half_up(grams)}g"


def format_percentage(value: float) -> str:
    """Percentage with one decimal, e.g. "65.0%" """
    if not math.isfinite(value):
        return f"{value}%"
    return f"{_fixed(value, '0.1')}%"
