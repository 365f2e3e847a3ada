"""
Baker's Percentage Recipe Server
REST endpoints for recipes and metrics, WebSocket channel for editing
"""
import os
from contextlib import asynccontextmanager
from typing import Any, Dict

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import Response

from core.calculator import compute_metrics
from core.db_handler import RecipeDB
from core.keywords import KeywordSets, load_keywords
from core.local_store import LocalRecipeStore
from core.recipe import RecipeNotFoundError, RecipeRepository
from handlers.editor_handler import RecipeEditorHandler
from models.recipe import MetricsPayload, Recipe, RecipeMetrics, RecipePayload

# Load environment variables
profile = os.getenv("PROFILE", "")
if profile == "local" or profile == "":
    load_dotenv()


def create_repository(keywords: KeywordSets) -> RecipeRepository:
    """
    Repository from RECIPES_DB_PATH / RECIPES_LOCAL_PATH

    An empty RECIPES_DB_PATH runs on the local JSON store only.
    """
    db_path = os.getenv("RECIPES_DB_PATH", "recipes.db")
    local_path = os.getenv("RECIPES_LOCAL_PATH", "recipes.json")
    db = RecipeDB(db_path) if db_path else None
    return RecipeRepository(db, LocalRecipeStore(local_path), keywords)


@asynccontextmanager
async def lifespan(app: FastAPI):
    keywords = load_keywords()
    repository = create_repository(keywords)
    if repository.db is not None:
        try:
            await repository.db.init_db()
            print(f"✅ Recipe database ready at {repository.db.db_path}")
        except Exception as e:
            print(f"Failed to open recipe database, using local store only: {e}")
            repository.db = None
    await repository.load_recipes()

    app.state.keywords = keywords
    app.state.repository = repository
    yield
    await repository.close()


app = FastAPI(lifespan=lifespan)


def get_repository(request: Request) -> RecipeRepository:
    return request.app.state.repository


def get_keywords(request: Request) -> KeywordSets:
    return request.app.state.keywords


def _with_metrics(recipe: Recipe, keywords: KeywordSets) -> Dict[str, Any]:
    data = recipe.model_dump(mode="json")
    data["metrics"] = compute_metrics(recipe.ingredients, keywords).model_dump()
    return data


@app.get("/recipes")
async def list_recipes(
    repository: RecipeRepository = Depends(get_repository),
    keywords: KeywordSets = Depends(get_keywords),
):
    recipes = await repository.load_recipes()
    return [_with_metrics(r, keywords) for r in recipes]


@app.get("/recipes/{recipe_id}")
async def get_recipe(
    recipe_id: str,
    repository: RecipeRepository = Depends(get_repository),
    keywords: KeywordSets = Depends(get_keywords),
):
    try:
        recipe = await repository.get_recipe(recipe_id)
    except RecipeNotFoundError:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return _with_metrics(recipe, keywords)


@app.post("/recipes", status_code=201)
async def create_recipe(
    payload: RecipePayload,
    repository: RecipeRepository = Depends(get_repository),
    keywords: KeywordSets = Depends(get_keywords),
):
    recipe = await repository.create_recipe(payload.name, payload.to_inputs())
    return _with_metrics(recipe, keywords)


@app.put("/recipes/{recipe_id}")
async def update_recipe(
    recipe_id: str,
    payload: RecipePayload,
    repository: RecipeRepository = Depends(get_repository),
    keywords: KeywordSets = Depends(get_keywords),
):
    try:
        recipe = await repository.update_recipe(recipe_id, payload.name, payload.to_inputs())
    except RecipeNotFoundError:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return _with_metrics(recipe, keywords)


@app.delete("/recipes/{recipe_id}", status_code=204)
async def delete_recipe(recipe_id: str, repository: RecipeRepository = Depends(get_repository)):
    try:
        await repository.delete_recipe(recipe_id)
    except RecipeNotFoundError:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return Response(status_code=204)


@app.post("/metrics", response_model=RecipeMetrics)
async def metrics(payload: MetricsPayload, keywords: KeywordSets = Depends(get_keywords)):
    return compute_metrics(payload.ingredients, keywords)


@app.websocket("/editor")
async def editor_endpoint(websocket: WebSocket):
    """
    Recipe editing channel
    """
    await websocket.accept()
    print("Editor WebSocket connected")

    handler = RecipeEditorHandler(websocket, websocket.app.state.repository, websocket.app.state.keywords)
    try:
        await handler.start()
    except WebSocketDisconnect:
        print("WebSocket disconnected")


if __name__ == "__main__":
    import uvicorn

    print("Server started at :5050")
    uvicorn.run(app, host="0.0.0.0", port=5050)
