"""
Recipe Models
Ingredient entries, the editable draft and the persisted recipe records
"""
from datetime import datetime
from typing import List

from pydantic import BaseModel, Field, field_validator


class IngredientEntry(BaseModel):
    """
    One row of the draft being edited

    percentage is relative to the reference (flour) weight. Reference rows
    carry 100.
    """
    id: str
    name: str = ""
    weight: float = 0
    percentage: float = 0
    is_reference: bool = False


class RecipeDraft(BaseModel):
    """
    Working state of the recalculation engine
    """
    ingredients: List[IngredientEntry]
    declared_total_mass: float = 0

    @property
    def declared_reference_weight(self) -> float:
        """Sum of the weights of all reference rows"""
        return sum(i.weight for i in self.ingredients if i.is_reference)

    @property
    def total_percentage(self) -> float:
        return sum(i.percentage for i in self.ingredients)

    @property
    def calculated_total_mass(self) -> float:
        return sum(i.weight for i in self.ingredients)


class IngredientInput(BaseModel):
    """
    Ingredient as handed to storage; percentage is always recomputed
    """
    name: str
    weight: float = Field(default=0, ge=0, allow_inf_nan=False)
    order_index: int = 0


class StoredIngredient(BaseModel):
    """
    Persisted ingredient row
    """
    id: str
    recipe_id: str
    name: str
    weight: float
    percentage: float
    order_index: int


class Recipe(BaseModel):
    """
    Persisted recipe with its ordered ingredients
    """
    id: str
    name: str
    created_at: datetime
    ingredients: List[StoredIngredient] = Field(default_factory=list)


class RecipeMetrics(BaseModel):
    """
    Display metrics derived from an ingredient list
    """
    reference_weight: float
    hydrating_weight: float
    total_mass: float
    hydration: int
    hydration_level: str


class IngredientPayload(BaseModel):
    """Ingredient in a request body; position gives the order"""
    name: str
    weight: float = Field(default=0, ge=0, allow_inf_nan=False)


class RecipePayload(BaseModel):
    """
    Create/update request body
    """
    name: str
    ingredients: List[IngredientPayload] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("recipe name must not be empty")
        return value

    def to_inputs(self) -> List[IngredientInput]:
        return [
            IngredientInput(name=ing.name, weight=ing.weight, order_index=idx)
            for idx, ing in enumerate(self.ingredients)
        ]


class MetricsPayload(BaseModel):
    ingredients: List[IngredientPayload] = Field(default_factory=list)
