from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ecs import World

@dataclass
class GameState:
    """Session state that lives outside the world itself."""
    save_name: str = "Untitled"
    world: Optional[World] = None
    running: bool = True
