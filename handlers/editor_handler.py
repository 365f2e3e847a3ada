"""
Recipe Editor Handler
WebSocket channel driving one EditingSession, one event at a time
"""
import math
import os
from typing import Any, Dict, Optional

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError
from starlette.websockets import WebSocketState

from core.editor import EditingSession, EditorLockedError
from core.keywords import KeywordSets
from core.recipe import RecipeNotFoundError, RecipeRepository
from models.events import EditorEvent
from utils.format_utils import format_percentage, format_weight


class EditorRequestError(ValueError):
    """Malformed or out-of-order editor event"""


class RecipeEditorHandler:
    """
    Recipe editing over a WebSocket

    The client opens a recipe (or a new one), then sends edit events. Every
    event is answered with the full draft state or an error event; errors
    never close the channel.
    """

    def __init__(self, websocket: WebSocket, repository: RecipeRepository, keywords: KeywordSets):
        """
        Args:
            websocket: accepted WebSocket connection
            repository: recipe storage
            keywords: role keyword sets
        """
        self.websocket = websocket
        self.repository = repository
        self.keywords = keywords
        self.session: Optional[EditingSession] = None

    async def start(self):
        """Run the event loop until the client disconnects"""
        while True:
            try:
                msg = await self.websocket.receive_json()
            except WebSocketDisconnect:
                print("Editor WebSocket disconnected")
                break
            except ValueError:
                await self._send_error("message is not valid JSON")
                continue

            if os.getenv("DEBUG_MODE") == "true":
                print(f"Received message: {msg}")

            try:
                event = EditorEvent.model_validate(msg)
                await self.handle_event(event)
                await self._send_state()
            except RecipeNotFoundError as e:
                await self._send_error(f"recipe not found: {e.args[0]}")
            except (EditorLockedError, EditorRequestError, ValidationError) as e:
                await self._send_error(str(e))

    async def handle_event(self, event: EditorEvent):
        """
        Apply one event to the session

        Args:
            event: client event
        """
        data = event.data if isinstance(event.data, dict) else {}
        name = event.event

        if name == "open":
            await self._open(data.get("recipe_id"))
            return

        if self.session is None:
            raise EditorRequestError("no recipe open")
        session = self.session

        if name == "set_total_mass":
            session.set_total_mass(_number(data, "value"))
        elif name == "set_reference_weight":
            session.set_reference_weight(_number(data, "value"))
        elif name == "set_percentage":
            session.set_percentage(_index(data, "index"), _number(data, "value"))
        elif name == "set_weight":
            session.set_weight(_index(data, "index"), _number(data, "value"))
        elif name == "rename":
            session.rename(_index(data, "index"), str(data.get("name", "")))
        elif name == "add":
            session.add_entry()
        elif name == "remove":
            session.remove_entry(_index(data, "index"))
        elif name == "move":
            session.move_entry(_index(data, "from_index"), _index(data, "to_index"))
        elif name == "start_editing":
            session.start_editing()
        elif name == "cancel":
            session.cancel()
        elif name == "save":
            await self._save(str(data.get("name", "")))
        else:
            print(f"Unknown editor event: {name}")
            raise EditorRequestError(f"unknown event: {name}")

    async def _open(self, recipe_id: Optional[str]):
        if recipe_id:
            recipe = await self.repository.get_recipe(recipe_id)
            self.session = EditingSession.for_recipe(recipe, self.keywords)
        else:
            self.session = EditingSession.for_new_recipe(self.keywords)

    async def _save(self, name: str):
        if not name.strip():
            raise EditorRequestError("recipe name must not be empty")
        if not self.session.editing:
            raise EditorLockedError("recipe is not in editing mode")

        ingredients = self.session.commit()
        if self.session.recipe_id is None:
            recipe = await self.repository.create_recipe(name, ingredients)
            self.session.recipe_id = recipe.id
        else:
            await self.repository.update_recipe(self.session.recipe_id, name, ingredients)

    def state(self) -> Dict[str, Any]:
        session = self.session
        if session is None:
            return {"draft": None, "metrics": None, "mass_mismatch": False, "editing": False, "recipe_id": None}
        draft = session.draft.model_dump()
        draft["declared_reference_weight"] = session.draft.declared_reference_weight
        draft["total_percentage"] = session.draft.total_percentage
        draft["calculated_total_mass"] = session.draft.calculated_total_mass
        display = {
            "total_mass": format_weight(session.draft.calculated_total_mass),
            "reference_weight": format_weight(session.draft.declared_reference_weight),
            "percentages": [format_percentage(i.percentage) for i in session.draft.ingredients],
        }
        return {
            "draft": draft,
            "metrics": session.metrics().model_dump(),
            "display": display,
            "mass_mismatch": session.mass_mismatch(),
            "editing": session.editing,
            "recipe_id": session.recipe_id,
        }

    async def _send_state(self):
        await self._write_json(EditorEvent(type="system", event="draft", data=self.state()).model_dump())

    async def _send_error(self, message: str):
        await self._write_json(EditorEvent(type="system", event="error", data=message).model_dump())

    async def _write_json(self, data: Dict[str, Any]):
        if self.websocket.client_state != WebSocketState.CONNECTED:
            return
        await self.websocket.send_json(data)


def _number(data: Dict[str, Any], key: str) -> float:
    try:
        value = float(data[key])
    except (KeyError, TypeError, ValueError):
        raise EditorRequestError(f"'{key}' must be a number")
    if not math.isfinite(value):
        raise EditorRequestError(f"'{key}' must be a finite number")
    return value


def _index(data: Dict[str, Any], key: str) -> int:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise EditorRequestError(f"'{key}' must be an integer")
    return value
