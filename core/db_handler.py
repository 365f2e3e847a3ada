"""
Database Handler
Primary recipe store on SQLite
"""
from datetime import datetime
from typing import Dict, List

import aiosqlite
from models.recipe import Recipe, StoredIngredient


class RecipeDB:
    """
    Recipe Database Handler
    """

    def __init__(self, db_path: str = "recipes.db"):
        """
        Args:
            db_path: SQLite database file path
        """
        self.db_path = db_path
        self.connection = None

    async def init_db(self):
        """
        Open the database and create the tables
        """
        self.connection = await aiosqlite.connect(self.db_path)
        await self.connection.execute("PRAGMA foreign_keys = ON")

        await self.connection.execute("""
            CREATE TABLE IF NOT EXISTS recipes (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                created_at TIMESTAMP NOT NULL
            )
        """)
        await self.connection.execute("""
            CREATE TABLE IF NOT EXISTS ingredients (
                id TEXT PRIMARY KEY,
                recipe_id TEXT NOT NULL REFERENCES recipes(id) ON DELETE CASCADE,
                name TEXT NOT NULL,
                weight REAL NOT NULL,
                percentage REAL NOT NULL,
                order_index INTEGER NOT NULL
            )
        """)
        await self.connection.commit()

    async def _ensure_connection(self):
        if self.connection is None:
            await self.init_db()

    async def get_recipes(self) -> List[Recipe]:
        """
        All recipes, newest first, ingredients in order

        Returns:
            Recipe list
        """
        await self._ensure_connection()

        cursor = await self.connection.execute(
            "SELECT id, name, created_at FROM recipes ORDER BY created_at DESC"
        )
        recipe_rows = await cursor.fetchall()
        if not recipe_rows:
            return []

        cursor = await self.connection.execute(
            "SELECT id, recipe_id, name, weight, percentage, order_index "
            "FROM ingredients ORDER BY order_index"
        )
        by_recipe: Dict[str, List[StoredIngredient]] = {}
        for row in await cursor.fetchall():
            ingredient = StoredIngredient(
                id=row[0],
                recipe_id=row[1],
                name=row[2],
                weight=row[3],
                percentage=row[4],
                order_index=row[5]
            )
            by_recipe.setdefault(ingredient.recipe_id, []).append(ingredient)

        return [
            Recipe(
                id=row[0],
                name=row[1],
                created_at=datetime.fromisoformat(row[2]),
                ingredients=by_recipe.get(row[0], [])
            )
            for row in recipe_rows
        ]

    async def _insert_ingredients(self, recipe: Recipe):
        await self.connection.executemany(
            "INSERT INTO ingredients (id, recipe_id, name, weight, percentage, order_index) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            [
                (i.id, recipe.id, i.name, i.weight, i.percentage, i.order_index)
                for i in recipe.ingredients
            ]
        )

    async def insert_recipe(self, recipe: Recipe):
        """
        Save a new recipe and its ingredients

        Args:
            recipe: Recipe instance
        """
        await self._ensure_connection()

        await self.connection.execute(
            "INSERT INTO recipes (id, name, created_at) VALUES (?, ?, ?)",
            (recipe.id, recipe.name, recipe.created_at.isoformat())
        )
        await self._insert_ingredients(recipe)
        await self.connection.commit()

    async def replace_recipe(self, recipe: Recipe):
        """
        Rename a recipe and replace its whole ingredient set

        Args:
            recipe: Recipe instance with the new ingredients
        """
        await self._ensure_connection()

        await self.connection.execute(
            "UPDATE recipes SET name = ? WHERE id = ?",
            (recipe.name, recipe.id)
        )
        await self.connection.execute(
            "DELETE FROM ingredients WHERE recipe_id = ?",
            (recipe.id,)
        )
        await self._insert_ingredients(recipe)
        await self.connection.commit()

    async def delete_recipe(self, recipe_id: str):
        """
        Delete a recipe and all its ingredients

        Args:
            recipe_id: Recipe ID
        """
        await self._ensure_connection()

        await self.connection.execute("DELETE FROM ingredients WHERE recipe_id = ?", (recipe_id,))
        await self.connection.execute("DELETE FROM recipes WHERE id = ?", (recipe_id,))
        await self.connection.commit()

    async def close(self):
        """Close the database connection"""
        if self.connection:
            await self.connection.close()
            self.connection = None
