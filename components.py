from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from ecs import Entity

# Tile grid storage: one record per cell, indexed [y, x]
TILE_DT = np.dtype([
    ("symbol", "U1"),
    ("walkable", np.bool_),
    ("tile_type", "U16"),
])

@dataclass(frozen=True)
class Tile:
    """Read-only view of one grid cell."""
    x: int
    y: int
    symbol: str
    walkable: bool
    tile_type: str

# Components are plain data
@dataclass
class Position:
    x: int
    y: int

@dataclass
class Velocity:
    dx: int = 0
    dy: int = 0

@dataclass
class Renderable:
    char: str
    color: str

@dataclass
class Name:
    name: str

@dataclass
class BlocksMovement:
    pass

@dataclass
class BlocksVision:
    # Stored and saved, not read by any system yet.
    pass

@dataclass
class Health:
    current: int
    max: int

@dataclass
class Experience:
    level: int = 1
    current_xp: int = 0

# --- Variant components: every entity carries exactly one of these ---

@dataclass
class Player:
    pass

@dataclass
class Enemy:
    damage: int

@dataclass
class Item:
    item_type: str
    value: int

@dataclass
class Wall:
    wall_type: str = "Stone"

@dataclass
class Door:
    is_open: bool = False

# --- Intents, added during a turn and removed by the system that handles them ---

@dataclass
class WantsToAttack:
    target: Entity

@dataclass
class ToggleDoorState:
    pass

@dataclass
class WantsToPickUp:
    pass

@dataclass
class ChoosingDoorDirection:
    # Input mode: the next direction key toggles a door instead of moving.
    pass

@dataclass
class WantsToSave:
    name: str
