"""
Event Model
Messages exchanged over the editor WebSocket
"""
from typing import Any
from pydantic import BaseModel


class EditorEvent(BaseModel):
    """
    EditorEvent is sent and received over the editor WebSocket
    """
    type: str = "user"  # "system", "user"
    event: str
    data: Any = None
