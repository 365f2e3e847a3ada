"""
Recipe Repository
Load, create, update and delete recipes with a database primary and a local fallback
"""
import uuid
from datetime import datetime
from typing import List, Optional, Sequence

from core.calculator import total_reference_weight
from core.db_handler import RecipeDB
from core.keywords import DEFAULT_KEYWORDS, KeywordSets
from core.local_store import LocalRecipeStore
from models.recipe import IngredientInput, Recipe, StoredIngredient


class RecipeNotFoundError(KeyError):
    """Raised for operations on an unknown recipe id"""


def compute_percentages(
    ingredients: Sequence[IngredientInput],
    keywords: KeywordSets = DEFAULT_KEYWORDS,
) -> List[float]:
    """
    Percent of the total flour weight for each ingredient

    Args:
        ingredients: ingredient inputs
        keywords: role keyword sets

    Returns:
        one percentage per ingredient, all 0 when there is no flour
    """
    flour = total_reference_weight(ingredients, keywords)
    if flour == 0:
        return [0.0 for _ in ingredients]
    return [i.weight * 100 / flour for i in ingredients]


def build_ingredients(
    recipe_id: str,
    ingredients: Sequence[IngredientInput],
    keywords: KeywordSets = DEFAULT_KEYWORDS,
) -> List[StoredIngredient]:
    """Stored rows with fresh ids; order_index is the position after sorting"""
    ordered = sorted(ingredients, key=lambda i: i.order_index)
    percentages = compute_percentages(ordered, keywords)
    return [
        StoredIngredient(
            id=str(uuid.uuid4()),
            recipe_id=recipe_id,
            name=ing.name,
            weight=ing.weight,
            percentage=percentage,
            order_index=idx
        )
        for idx, (ing, percentage) in enumerate(zip(ordered, percentages))
    ]


class RecipeRepository:
    """
    Recipe storage used by the editing surface

    Every operation tries the database first. A database failure is logged and
    the local store carries on; the local store always mirrors the full list.
    """

    def __init__(
        self,
        db: Optional[RecipeDB],
        local_store: LocalRecipeStore,
        keywords: KeywordSets = DEFAULT_KEYWORDS,
    ):
        """
        Args:
            db: primary store, or None to run on the local store only
            local_store: JSON fallback/cache
            keywords: role keyword sets used for percentages
        """
        self.db = db
        self.local_store = local_store
        self.keywords = keywords
        self.recipes: List[Recipe] = []
        self._loaded = False

    @property
    def is_primary_configured(self) -> bool:
        return self.db is not None

    async def load_recipes(self) -> List[Recipe]:
        """
        Load all recipes, newest first

        Returns:
            Recipe list
        """
        if self.db is not None:
            try:
                recipes = await self.db.get_recipes()
                if recipes:
                    self.recipes = recipes
                    self._loaded = True
                    self.local_store.write(recipes)
                    return list(recipes)
            except Exception as e:
                print(f"Error loading from database, falling back to local store: {e}")

        self.recipes = self.local_store.read()
        self._loaded = True
        return list(self.recipes)

    async def _ensure_loaded(self):
        if not self._loaded:
            await self.load_recipes()

    async def get_recipe(self, recipe_id: str) -> Recipe:
        await self._ensure_loaded()
        for recipe in self.recipes:
            if recipe.id == recipe_id:
                return recipe
        raise RecipeNotFoundError(recipe_id)

    async def create_recipe(self, name: str, ingredients: Sequence[IngredientInput]) -> Recipe:
        """
        Save a new recipe

        Args:
            name: recipe name
            ingredients: ingredient inputs (percentages are computed here)

        Returns:
            the saved Recipe
        """
        await self._ensure_loaded()

        recipe_id = str(uuid.uuid4())
        recipe = Recipe(
            id=recipe_id,
            name=name,
            created_at=datetime.now(),
            ingredients=build_ingredients(recipe_id, ingredients, self.keywords)
        )

        if self.db is not None:
            try:
                await self.db.insert_recipe(recipe)
            except Exception as e:
                print(f"Error saving to database: {e}")

        self.recipes = [recipe] + self.recipes
        self.local_store.write(self.recipes)
        return recipe

    async def update_recipe(self, recipe_id: str, name: str, ingredients: Sequence[IngredientInput]) -> Recipe:
        """
        Rename a recipe and replace all of its ingredients

        Raises:
            RecipeNotFoundError: unknown recipe id
        """
        existing = await self.get_recipe(recipe_id)
        recipe = Recipe(
            id=recipe_id,
            name=name,
            created_at=existing.created_at,
            ingredients=build_ingredients(recipe_id, ingredients, self.keywords)
        )

        if self.db is not None:
            try:
                await self.db.replace_recipe(recipe)
            except Exception as e:
                print(f"Error updating in database: {e}")

        self.recipes = [recipe if r.id == recipe_id else r for r in self.recipes]
        self.local_store.write(self.recipes)
        return recipe

    async def delete_recipe(self, recipe_id: str):
        """
        Delete a recipe and its ingredients

        Raises:
            RecipeNotFoundError: unknown recipe id
        """
        await self.get_recipe(recipe_id)

        if self.db is not None:
            try:
                await self.db.delete_recipe(recipe_id)
            except Exception as e:
                print(f"Error deleting from database: {e}")

        self.recipes = [r for r in self.recipes if r.id != recipe_id]
        self.local_store.write(self.recipes)

    async def close(self):
        if self.db is not None:
            await self.db.close()
