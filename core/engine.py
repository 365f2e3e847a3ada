"""
Recalculation Engine
Baker's-percentage reducers keeping weights, percentages, flour weight and total mass consistent

Every edit treats exactly one quantity as the driving value and re-derives the
rest from it. Reducers never mutate their input draft; each returns a new one.
Guard conditions (non-positive or non-finite values, zero percentage sums,
bad indexes, derived weights that overflow) make an edit a no-op instead of
raising.
"""
import math
from typing import Iterable, List, Optional

from core.calculator import round_half_up
from core.keywords import DEFAULT_KEYWORDS, KeywordSets
from models.recipe import IngredientEntry, IngredientInput, RecipeDraft, StoredIngredient
from utils.text_utils import generate_entry_id


DEFAULT_REFERENCE_NAME = "Harina"


def new_draft(name: str = DEFAULT_REFERENCE_NAME, keywords: KeywordSets = DEFAULT_KEYWORDS) -> RecipeDraft:
    """
    Draft for a new recipe: a single flour placeholder at 100%

    When the configured reference keywords do not match the default name,
    the placeholder is named after the first reference keyword instead.
    """
    if not keywords.is_reference(name) and keywords.reference:
        name = keywords.reference[0].capitalize()
    is_reference = keywords.is_reference(name)
    placeholder = IngredientEntry(
        id=generate_entry_id(),
        name=name,
        weight=0,
        percentage=100 if is_reference else 0,
        is_reference=is_reference,
    )
    return RecipeDraft(ingredients=[placeholder], declared_total_mass=0)


def draft_from_recipe(
    ingredients: Iterable[StoredIngredient],
    keywords: KeywordSets = DEFAULT_KEYWORDS,
) -> RecipeDraft:
    """
    Hydrate a draft from persisted ingredients

    Stored percentages are ignored; they are re-derived from the weights
    relative to the total flour weight.

    Args:
        ingredients: persisted rows, in any order
        keywords: role keyword sets

    Returns:
        RecipeDraft (the default draft when there are no ingredients)
    """
    rows = sorted(ingredients, key=lambda i: i.order_index)
    if not rows:
        return new_draft(keywords=keywords)

    flour_weight = sum(r.weight for r in rows if keywords.is_reference(r.name))

    entries = []
    for row in rows:
        is_reference = keywords.is_reference(row.name)
        if is_reference:
            percentage = 100.0
        elif flour_weight > 0:
            percentage = row.weight * 100 / flour_weight
        else:
            percentage = 0.0
        entries.append(IngredientEntry(
            id=generate_entry_id(),
            name=row.name,
            weight=row.weight,
            percentage=percentage,
            is_reference=is_reference,
        ))

    declared = round_half_up(sum(r.weight for r in rows)) if flour_weight > 0 else 0
    return RecipeDraft(ingredients=entries, declared_total_mass=declared)


def to_inputs(draft: RecipeDraft) -> List[IngredientInput]:
    """Ingredients to persist, positions as order_index"""
    return [
        IngredientInput(name=ing.name, weight=ing.weight, order_index=idx)
        for idx, ing in enumerate(draft.ingredients)
    ]


def mass_mismatch(draft: RecipeDraft, tolerance: float = 1.0) -> bool:
    """
    True when the summed weights drift from the declared total by more than tolerance

    A declared total of 0 means no target, so there is nothing to mismatch.
    """
    if draft.declared_total_mass <= 0:
        return False
    return abs(draft.calculated_total_mass - draft.declared_total_mass) > tolerance


def _valid_index(draft: RecipeDraft, index: int) -> bool:
    return 0 <= index < len(draft.ingredients)


def _derive_from_reference(ingredients: List[IngredientEntry], reference_weight: float) -> Optional[List[IngredientEntry]]:
    # Flour rows take the reference weight, the rest their share of it.
    # None when any derived weight is not finite.
    derived = []
    for ing in ingredients:
        if ing.is_reference:
            weight = reference_weight
        else:
            weight = reference_weight * ing.percentage / 100
        if not math.isfinite(weight):
            return None
        derived.append(ing.model_copy(update={"weight": round_half_up(weight)}))
    return derived


def _reference_for_total(total_mass: float, total_percentage: float) -> Optional[float]:
    if not math.isfinite(total_mass) or total_mass <= 0:
        return None
    scale = total_percentage / 100
    # Subnormal sums underflow to 0 here
    if not math.isfinite(scale) or scale <= 0:
        return None
    reference_weight = total_mass / scale
    if not math.isfinite(reference_weight):
        return None
    return reference_weight


def set_total_mass(draft: RecipeDraft, new_total: float) -> RecipeDraft:
    """
    Scale every weight so the recipe sums to new_total

    The flour weight is new_total / (total_percentage / 100). With several
    flour rows each contributes 100 to total_percentage and each receives the
    full reference weight.

    Args:
        draft: current draft
        new_total: declared total mass in grams

    Returns:
        updated draft (unchanged when new_total is not a positive finite
        number or the percentages sum to 0)
    """
    reference_weight = _reference_for_total(new_total, draft.total_percentage)
    if reference_weight is None:
        return draft
    ingredients = _derive_from_reference(draft.ingredients, reference_weight)
    if ingredients is None:
        return draft
    return draft.model_copy(update={
        "ingredients": ingredients,
        "declared_total_mass": new_total,
    })


def set_reference_weight(draft: RecipeDraft, new_reference_weight: float) -> RecipeDraft:
    """
    Drive the recipe from the flour weight

    Flour rows take the value as typed; other rows and the declared total are
    re-derived. Percentages are kept.
    """
    if not math.isfinite(new_reference_weight) or new_reference_weight <= 0:
        return draft

    ingredients = []
    for ing in draft.ingredients:
        if ing.is_reference:
            ingredients.append(ing.model_copy(update={"weight": new_reference_weight}))
            continue
        weight = new_reference_weight * ing.percentage / 100
        if not math.isfinite(weight):
            return draft
        ingredients.append(ing.model_copy(update={"weight": round_half_up(weight)}))

    declared_total = new_reference_weight * draft.total_percentage / 100
    if not math.isfinite(declared_total):
        return draft

    return draft.model_copy(update={
        "ingredients": ingredients,
        "declared_total_mass": round_half_up(declared_total),
    })


def set_percentage(draft: RecipeDraft, index: int, new_percentage: float) -> RecipeDraft:
    """
    Change one row's percentage and re-derive weights from the declared total

    Flour rows accept a non-100 value too; it shifts the scaling baseline.
    Weights are left as they are when there is no usable total.
    """
    if not _valid_index(draft, index) or not math.isfinite(new_percentage):
        return draft

    ingredients = list(draft.ingredients)
    ingredients[index] = ingredients[index].model_copy(update={"percentage": new_percentage})

    total_percentage = sum(i.percentage for i in ingredients)
    reference_weight = _reference_for_total(draft.declared_total_mass, total_percentage)
    if reference_weight is not None:
        ingredients = _derive_from_reference(ingredients, reference_weight)
        if ingredients is None:
            return draft

    return draft.model_copy(update={"ingredients": ingredients})


def set_weight(draft: RecipeDraft, index: int, new_weight: float) -> RecipeDraft:
    """
    Change one row's weight

    A flour row drives the whole recipe (see set_reference_weight). Any other
    row is overwritten alone; its percentage stays stale until the next
    percentage or total edit, which mass_mismatch surfaces.
    """
    if not _valid_index(draft, index) or not math.isfinite(new_weight) or new_weight < 0:
        return draft

    if draft.ingredients[index].is_reference:
        return set_reference_weight(draft, new_weight)

    ingredients = list(draft.ingredients)
    ingredients[index] = ingredients[index].model_copy(update={"weight": new_weight})
    return draft.model_copy(update={"ingredients": ingredients})


def rename(draft: RecipeDraft, index: int, name: str, keywords: KeywordSets = DEFAULT_KEYWORDS) -> RecipeDraft:
    """
    Rename a row and re-classify it

    A row that becomes flour is reset to 100% and 0 g, then given the flour
    weight implied by the declared total when there is one. A row that stops
    being flour keeps its numbers.
    """
    if not _valid_index(draft, index):
        return draft

    ingredients = list(draft.ingredients)
    current = ingredients[index]
    is_reference = keywords.is_reference(name)

    if is_reference and not current.is_reference:
        ingredients[index] = current.model_copy(update={
            "name": name,
            "is_reference": True,
            "percentage": 100,
            "weight": 0,
        })
        total_percentage = sum(i.percentage for i in ingredients)
        reference_weight = _reference_for_total(draft.declared_total_mass, total_percentage)
        if reference_weight is not None:
            ingredients[index] = ingredients[index].model_copy(update={"weight": round_half_up(reference_weight)})
    else:
        ingredients[index] = current.model_copy(update={"name": name, "is_reference": is_reference})

    return draft.model_copy(update={"ingredients": ingredients})


def add_entry(draft: RecipeDraft) -> RecipeDraft:
    """Append an empty row (0 g, 0%); nothing is recomputed"""
    entry = IngredientEntry(id=generate_entry_id(), name="", weight=0, percentage=0, is_reference=False)
    return draft.model_copy(update={"ingredients": list(draft.ingredients) + [entry]})


def remove_entry(draft: RecipeDraft, index: int) -> RecipeDraft:
    """
    Remove a row, re-deriving weights from the declared total over what remains

    The last remaining row cannot be removed.
    """
    if len(draft.ingredients) <= 1 or not _valid_index(draft, index):
        return draft

    ingredients = [ing for i, ing in enumerate(draft.ingredients) if i != index]
    reference_weight = _reference_for_total(draft.declared_total_mass, sum(i.percentage for i in ingredients))
    if reference_weight is not None:
        ingredients = _derive_from_reference(ingredients, reference_weight) or ingredients

    return draft.model_copy(update={"ingredients": ingredients})


def move_entry(draft: RecipeDraft, from_index: int, to_index: int) -> RecipeDraft:
    """Reorder a row; values are untouched"""
    if not _valid_index(draft, from_index) or not _valid_index(draft, to_index):
        return draft
    ingredients = list(draft.ingredients)
    ingredients.insert(to_index, ingredients.pop(from_index))
    return draft.model_copy(update={"ingredients": ingredients})
