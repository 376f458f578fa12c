from __future__ import annotations
import numpy as np
from typing import Dict, Iterator, List, Type, Set, Any, Optional, TYPE_CHECKING

from config import GameConfig
from components import (TILE_DT, Tile, Position, Velocity, BlocksMovement, Door, ToggleDoorState)
from message_log import MessageLog

if TYPE_CHECKING:
    from pygame.event import Event

# An entity is just a unique id
Entity = int

DIRECTIONS = {(dx, dy) for dx in (-1, 0, 1) for dy in (-1, 0, 1)} - {(0, 0)}

# Base class for systems
class System:
    def update(self, world: "World"):
        pass

class World:
    """Owns the tile grid, the entities and their components, and the message log.

    Systems in ``systems`` run once per frame (input, rendering). Systems in
    ``turn_systems`` run once for every resolved player action.
    """
    def __init__(self, config: GameConfig):
        self.entities: Set[Entity] = set()
        self.next_entity = 0
        self.available_entities: List[Entity] = []
        self.components: Dict[Type, Dict[Entity, Any]] = {}
        self.systems: List[System] = []
        self.turn_systems: List[System] = []
        self.config = config
        self.width = config.grid_width
        self.height = config.grid_height
        self.tiles = np.zeros((self.height, self.width), dtype=TILE_DT)
        self.running = True
        self.player_entity: Optional[Entity] = None
        self.player_took_turn: bool = False
        self.message_log = MessageLog(config.message_log_capacity)
        self.events: List[Event] = []
        self.turn = 0
        # Database id and URL once the world has been saved
        self.world_id: Optional[int] = None
        self.save_url: Optional[str] = None

    def create_entity(self) -> Entity:
        if self.available_entities:
            entity_id = self.available_entities.pop()
        else:
            entity_id = self.next_entity
            self.next_entity += 1
        self.entities.add(entity_id)
        return entity_id

    def destroy_entity(self, entity: Entity):
        """Removes the entity and all of its components; the id becomes reusable."""
        if entity not in self.entities:
            return

        for component_pool in self.components.values():
            if entity in component_pool:
                del component_pool[entity]

        self.entities.remove(entity)
        self.available_entities.append(entity)

    def add_component(self, entity: Entity, component: Any):
        component_type = type(component)
        if component_type not in self.components:
            self.components[component_type] = {}
        self.components[component_type][entity] = component

    def get_component(self, entity: Entity, component_type: Type) -> Any:
        return self.components.get(component_type, {}).get(entity)

    def get_entities_with(self, *component_types: Type) -> List[Entity]:
        if not component_types:
            return list(self.entities)

        smallest_pool = min(component_types, key=lambda ct: len(self.components.get(ct, {})))
        # Keep the pool's insertion order so iteration is deterministic
        return [entity for entity in self.components.get(smallest_pool, {})
                if all(entity in self.components.get(ct, {}) for ct in component_types)]

    def add_system(self, system: System):
        self.systems.append(system)

    def add_turn_system(self, system: System):
        self.turn_systems.append(system)

    def update(self):
        for system in self.systems:
            system.update(self)

    # --- Tiles ---

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def tile_at(self, x: int, y: int) -> Optional[Tile]:
        if not self.in_bounds(x, y):
            return None
        cell = self.tiles[y, x]
        return Tile(x, y, str(cell["symbol"]), bool(cell["walkable"]), str(cell["tile_type"]))

    def set_tile(self, x: int, y: int, symbol: str, walkable: bool, tile_type: str):
        self.tiles[y, x] = (symbol, walkable, tile_type)

    # --- Spatial queries ---

    def entities_at(self, x: int, y: int) -> Iterator[Entity]:
        for entity, pos in list(self.components.get(Position, {}).items()):
            if pos.x == x and pos.y == y:
                yield entity

    def entities_in_area(self, x: int, y: int, width: int, height: int) -> Iterator[Entity]:
        for entity, pos in list(self.components.get(Position, {}).items()):
            if x <= pos.x < x + width and y <= pos.y < y + height:
                yield entity

    def can_move_to(self, x: int, y: int) -> bool:
        tile = self.tile_at(x, y)
        if tile is None or not tile.walkable:
            return False
        return not any(self.get_component(e, BlocksMovement) for e in self.entities_at(x, y))

    def find_at(self, x: int, y: int, component_type: Type) -> Optional[Entity]:
        """First entity at (x, y) carrying the given component."""
        return next((e for e in self.entities_at(x, y) if self.get_component(e, component_type)), None)

    # --- Player ---

    @property
    def player_position(self) -> Position:
        return self.get_component(self.player_entity, Position)

    # --- Actions ---

    def move(self, dx: int, dy: int):
        """Resolves one player step: open a door, attack, walk, or bump."""
        _check_direction(dx, dy)
        velocity = self.get_component(self.player_entity, Velocity)
        velocity.dx, velocity.dy = dx, dy
        self.resolve_turn()

    def toggle_door_in_direction(self, dx: int, dy: int):
        _check_direction(dx, dy)
        pos = self.player_position
        door = self.find_at(pos.x + dx, pos.y + dy, Door)
        if door is None:
            self.add_message("There is no door in that direction.")
            return
        self.add_component(door, ToggleDoorState())
        self.resolve_turn()

    def add_message(self, message: str):
        self.message_log.add(message)

    def resolve_turn(self):
        self.player_took_turn = True
        self.turn += 1
        for system in self.turn_systems:
            system.update(self)
        self.player_took_turn = False

def _check_direction(dx: int, dy: int):
    # bool and float compare equal to ints, so check the type as well
    if type(dx) is not int or type(dy) is not int or (dx, dy) not in DIRECTIONS:
        raise ValueError(f"Invalid direction: ({dx}, {dy})")
