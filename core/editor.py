"""
Editing Session
Owns the draft, the editable/locked flag and the saved baseline
"""
import os
from typing import List, Optional

from core import engine
from core.calculator import compute_metrics, round_half_up
from core.keywords import DEFAULT_KEYWORDS, KeywordSets
from models.recipe import IngredientInput, Recipe, RecipeDraft, RecipeMetrics


class EditorLockedError(RuntimeError):
    """Raised when an edit arrives while the session is not in editing mode"""


def _mass_tolerance() -> float:
    try:
        return float(os.getenv("MASS_TOLERANCE_GRAMS", "1"))
    except ValueError:
        return 1.0


class EditingSession:
    """
    One recipe being viewed or edited

    Edits are applied through the engine reducers and only while editing.
    The baseline is the deep copy restored by cancel().
    """

    def __init__(
        self,
        draft: Optional[RecipeDraft] = None,
        editing: bool = False,
        keywords: KeywordSets = DEFAULT_KEYWORDS,
        recipe_id: Optional[str] = None,
    ):
        """
        Args:
            draft: initial draft (a new single-flour draft when omitted)
            editing: start in editing mode
            keywords: role keyword sets
            recipe_id: id of the saved recipe this draft belongs to
        """
        self.keywords = keywords
        self.recipe_id = recipe_id
        self.draft = draft if draft is not None else engine.new_draft(keywords=keywords)
        self.baseline = self.draft.model_copy(deep=True)
        self.editing = editing

    @classmethod
    def for_new_recipe(cls, keywords: KeywordSets = DEFAULT_KEYWORDS) -> "EditingSession":
        return cls(engine.new_draft(keywords=keywords), editing=True, keywords=keywords)

    @classmethod
    def for_recipe(cls, recipe: Recipe, keywords: KeywordSets = DEFAULT_KEYWORDS) -> "EditingSession":
        draft = engine.draft_from_recipe(recipe.ingredients, keywords)
        return cls(draft, editing=False, keywords=keywords, recipe_id=recipe.id)

    def start_editing(self):
        self.baseline = self.draft.model_copy(deep=True)
        self.editing = True

    def commit(self) -> List[IngredientInput]:
        """
        Snapshot the draft as the new baseline and leave editing mode

        Returns:
            ingredients to persist
        """
        self.baseline = self.draft.model_copy(deep=True)
        self.editing = False
        return engine.to_inputs(self.draft)

    def cancel(self):
        """Discard pending edits and restore the baseline"""
        restored = self.baseline.model_copy(deep=True)
        restored.declared_total_mass = round_half_up(restored.calculated_total_mass)
        self.draft = restored
        self.editing = False

    def _apply(self, draft: RecipeDraft) -> RecipeDraft:
        self.draft = draft
        return draft

    def _require_editing(self):
        if not self.editing:
            raise EditorLockedError("recipe is not in editing mode")

    def set_total_mass(self, value: float) -> RecipeDraft:
        self._require_editing()
        return self._apply(engine.set_total_mass(self.draft, value))

    def set_reference_weight(self, value: float) -> RecipeDraft:
        self._require_editing()
        return self._apply(engine.set_reference_weight(self.draft, value))

    def set_percentage(self, index: int, value: float) -> RecipeDraft:
        self._require_editing()
        return self._apply(engine.set_percentage(self.draft, index, value))

    def set_weight(self, index: int, value: float) -> RecipeDraft:
        self._require_editing()
        return self._apply(engine.set_weight(self.draft, index, value))

    def rename(self, index: int, name: str) -> RecipeDraft:
        self._require_editing()
        return self._apply(engine.rename(self.draft, index, name, self.keywords))

    def add_entry(self) -> RecipeDraft:
        self._require_editing()
        return self._apply(engine.add_entry(self.draft))

    def remove_entry(self, index: int) -> RecipeDraft:
        self._require_editing()
        return self._apply(engine.remove_entry(self.draft, index))

    def move_entry(self, from_index: int, to_index: int) -> RecipeDraft:
        self._require_editing()
        return self._apply(engine.move_entry(self.draft, from_index, to_index))

    def metrics(self) -> RecipeMetrics:
        return compute_metrics(self.draft.ingredients, self.keywords)

    def mass_mismatch(self) -> bool:
        return engine.mass_mismatch(self.draft, _mass_tolerance())
