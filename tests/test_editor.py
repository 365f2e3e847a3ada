"""
Editing session tests
"""
from datetime import datetime

import pytest
from core.editor import EditingSession, EditorLockedError
from models.recipe import Recipe, StoredIngredient


@pytest.fixture
def saved_recipe():
    """Saved recipe: 1000 g flour, 650 g water, 20 g salt"""
    return Recipe(
        id="recipe-1",
        name="Pan de campo",
        created_at=datetime(2024, 5, 1, 8, 30),
        ingredients=[
            StoredIngredient(id="a", recipe_id="recipe-1", name="Harina", weight=1000, percentage=100, order_index=0),
            StoredIngredient(id="b", recipe_id="recipe-1", name="Agua", weight=650, percentage=65, order_index=1),
            StoredIngredient(id="c", recipe_id="recipe-1", name="Sal", weight=20, percentage=2, order_index=2),
        ]
    )


class TestEditingSession:
    """EditingSession"""

    def test_new_recipe_starts_editing(self):
        session = EditingSession.for_new_recipe()
        assert session.editing is True
        assert session.recipe_id is None
        assert len(session.draft.ingredients) == 1

    def test_saved_recipe_starts_locked(self, saved_recipe):
        session = EditingSession.for_recipe(saved_recipe)
        assert session.editing is False
        assert session.recipe_id == "recipe-1"
        assert session.draft.declared_total_mass == 1670

    def test_locked_session_rejects_edits(self, saved_recipe):
        session = EditingSession.for_recipe(saved_recipe)
        with pytest.raises(EditorLockedError):
            session.set_total_mass(2000)
        with pytest.raises(EditorLockedError):
            session.add_entry()
        assert session.draft.calculated_total_mass == 1670

    def test_edit_after_start_editing(self, saved_recipe):
        session = EditingSession.for_recipe(saved_recipe)
        session.start_editing()
        draft = session.set_reference_weight(500)
        assert draft is session.draft
        assert [i.weight for i in draft.ingredients] == [500, 325, 10]
        assert draft.declared_total_mass == 835

    def test_cancel_restores_baseline(self, saved_recipe):
        session = EditingSession.for_recipe(saved_recipe)
        session.start_editing()
        session.set_total_mass(3340)
        session.add_entry()
        session.rename(3, "Levadura")

        session.cancel()
        assert session.editing is False
        assert [i.name for i in session.draft.ingredients] == ["Harina", "Agua", "Sal"]
        assert [i.weight for i in session.draft.ingredients] == [1000, 650, 20]
        assert session.draft.declared_total_mass == 1670

    def test_cancel_returns_independent_copy(self, saved_recipe):
        """Edits after a cancel do not leak into the baseline"""
        session = EditingSession.for_recipe(saved_recipe)
        session.start_editing()
        session.cancel()
        session.start_editing()
        session.set_weight(1, 700)
        session.cancel()
        assert session.draft.ingredients[1].weight == 650

    def test_cancel_resets_declared_total_to_baseline_sum(self):
        session = EditingSession.for_new_recipe()
        session.set_weight(0, 500)
        session.add_entry()
        session.set_weight(1, 300)
        session.commit()

        session.start_editing()
        session.set_total_mass(2000)
        session.cancel()
        assert session.draft.declared_total_mass == 800

    def test_commit_snapshots_and_returns_inputs(self):
        session = EditingSession.for_new_recipe()
        session.set_weight(0, 1000)
        session.add_entry()
        session.rename(1, "Agua")
        session.set_percentage(1, 70)
        session.set_total_mass(1700)

        inputs = session.commit()
        assert session.editing is False
        assert [(i.name, i.weight, i.order_index) for i in inputs] == [("Harina", 1000, 0), ("Agua", 700, 1)]

        session.start_editing()
        session.set_total_mass(3400)
        session.cancel()
        assert [i.weight for i in session.draft.ingredients] == [1000, 700]

    def test_metrics_and_mismatch(self, saved_recipe):
        session = EditingSession.for_recipe(saved_recipe)
        metrics = session.metrics()
        assert metrics.hydration == 65
        assert metrics.total_mass == 1670
        assert session.mass_mismatch() is False

        session.start_editing()
        session.set_weight(1, 700)
        assert session.mass_mismatch() is True

    def test_mismatch_tolerance_from_env(self, saved_recipe, monkeypatch):
        monkeypatch.setenv("MASS_TOLERANCE_GRAMS", "100")
        session = EditingSession.for_recipe(saved_recipe)
        session.start_editing()
        session.set_weight(1, 700)
        assert session.mass_mismatch() is False
