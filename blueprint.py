from dataclasses import dataclass
from typing import Callable, List, Tuple

from entities import (create_goblin, create_orc, create_rat, create_skeleton,
                      create_healing_potion, create_gold, create_key)

@dataclass(frozen=True)
class Room:
    """A named box room: wall perimeter with a floor interior."""
    name: str
    x: int
    y: int
    width: int
    height: int

    @property
    def x2(self) -> int:
        return self.x + self.width - 1

    @property
    def y2(self) -> int:
        return self.y + self.height - 1

    def contains(self, x: int, y: int) -> bool:
        """True for cells strictly inside the walls."""
        return self.x < x < self.x2 and self.y < y < self.y2

@dataclass(frozen=True)
class Placement:
    factory: Callable
    x: int
    y: int

# --- Fixed dungeon layout ---

ROOMS: List[Room] = [
    Room("Entry Hall", 5, 5, 13, 10),
    Room("Guard Room", 17, 8, 15, 8),
    Room("Vault", 8, 18, 12, 7),
    Room("Shrine", 40, 5, 12, 9),
    Room("Barracks", 45, 20, 20, 10),
]

DOORS: List[Tuple[int, int]] = [
    (17, 11),  # Entry Hall <-> Guard Room
    (31, 12),  # Guard Room, east
    (12, 14),  # Entry Hall, south
    (13, 18),  # Vault, north
    (40, 9),   # Shrine, west
    (54, 20),  # Barracks, north
]

PLAYER_START: Tuple[int, int] = (16, 11)

ENEMY_ROSTER: List[Placement] = [
    Placement(create_goblin, 25, 12),
    Placement(create_orc, 28, 10),
    Placement(create_rat, 15, 21),
    Placement(create_skeleton, 48, 9),
    Placement(create_orc, 55, 25),
]

ITEM_ROSTER: List[Placement] = [
    Placement(create_healing_potion, 7, 7),
    Placement(lambda world, x, y: create_gold(world, x, y, value=50), 30, 14),
    Placement(create_key, 10, 22),
    Placement(create_healing_potion, 44, 11),
    Placement(lambda world, x, y: create_gold(world, x, y, value=100), 60, 27),
]
