"""
Ingredient Role Keywords
Name-based classification of reference (flour) and hydrating (water/milk) ingredients
"""
import os
from typing import Iterable, List, Optional, Tuple

import yaml
from pydantic import BaseModel


DEFAULT_REFERENCE_KEYWORDS: Tuple[str, ...] = ("harina", "flour")
DEFAULT_HYDRATING_KEYWORDS: Tuple[str, ...] = ("agua", "water", "leche", "milk")


class KeywordSets(BaseModel):
    """
    Keyword sets used for role classification
    """
    reference: Tuple[str, ...] = DEFAULT_REFERENCE_KEYWORDS
    hydrating: Tuple[str, ...] = DEFAULT_HYDRATING_KEYWORDS

    def is_reference(self, name: str) -> bool:
        return _matches(name, self.reference)

    def is_hydrating(self, name: str) -> bool:
        return _matches(name, self.hydrating)


def _matches(name: str, keywords: Iterable[str]) -> bool:
    lowered = (name or "").lower()
    return any(keyword in lowered for keyword in keywords)


def _normalize(values: Iterable[str]) -> Tuple[str, ...]:
    # Matching is against the lowercased name
    return tuple(v.strip().lower() for v in values if v and v.strip())


def _split_env(value: Optional[str]) -> Optional[Tuple[str, ...]]:
    if value is None or not value.strip():
        return None
    return _normalize(value.split(","))


def parse_keywords(yaml_path: str) -> KeywordSets:
    """
    Parse keyword sets from a YAML file

    Expected layout:
        reference: [harina, flour]
        hydrating: [agua, water, leche, milk]

    Args:
        yaml_path: YAML file path

    Returns:
        KeywordSets (missing keys keep their defaults)
    """
    with open(yaml_path, 'r', encoding='utf-8') as f:
        yaml_data = yaml.safe_load(f) or {}

    reference: List[str] = yaml_data.get('reference') or list(DEFAULT_REFERENCE_KEYWORDS)
    hydrating: List[str] = yaml_data.get('hydrating') or list(DEFAULT_HYDRATING_KEYWORDS)
    return KeywordSets(reference=_normalize(reference), hydrating=_normalize(hydrating))


def load_keywords(yaml_path: Optional[str] = None) -> KeywordSets:
    """
    Resolve keyword sets: environment overrides, then the YAML file, then defaults

    Args:
        yaml_path: YAML file path (KEYWORDS_PATH when omitted)

    Returns:
        KeywordSets
    """
    if yaml_path is None:
        yaml_path = os.getenv("KEYWORDS_PATH", "./resources/keywords.yaml")

    keywords = KeywordSets()
    if yaml_path and os.path.exists(yaml_path):
        try:
            keywords = parse_keywords(yaml_path)
        except (OSError, yaml.YAMLError) as e:
            print(f"Failed to read keyword file {yaml_path}, using defaults: {e}")

    reference = _split_env(os.getenv("REFERENCE_KEYWORDS"))
    hydrating = _split_env(os.getenv("HYDRATING_KEYWORDS"))
    if reference:
        keywords = keywords.model_copy(update={"reference": reference})
    if hydrating:
        keywords = keywords.model_copy(update={"hydrating": hydrating})
    return keywords


DEFAULT_KEYWORDS = KeywordSets()
