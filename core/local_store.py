"""
Local Recipe Store
JSON file holding the full recipe list; fallback and cache for the database
"""
import json
from pathlib import Path
from typing import List

from pydantic import TypeAdapter, ValidationError
from models.recipe import Recipe


_recipe_list = TypeAdapter(List[Recipe])


class LocalRecipeStore:
    """Whole-list read/write of recipes in a JSON file"""

    def __init__(self, path: str = "recipes.json"):
        self.path = Path(path)

    def read(self) -> List[Recipe]:
        """
        Returns:
            stored recipes, or an empty list when the file is missing or unreadable
        """
        if not self.path.exists():
            return []
        try:
            with self.path.open("r", encoding="utf-8") as f:
                return _recipe_list.validate_python(json.load(f))
        except (OSError, ValueError, ValidationError) as e:
            print(f"Failed to read local recipes from {self.path}: {e}")
            return []

    def write(self, recipes: List[Recipe]):
        if self.path.parent and not self.path.parent.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(_recipe_list.dump_python(recipes, mode="json"), f, ensure_ascii=False, indent=2)
