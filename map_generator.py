import logging
from typing import List

from config import GameConfig
from ecs import World
from components import Wall
from entities import create_wall, create_door
from blueprint import Room, ROOMS, DOORS
from spawner import spawn_entities
from systems import install_turn_systems

logger = logging.getLogger(__name__)

FLOOR = (".", True, "Floor")

class MapGenerator:
    """
    Lays out the fixed dungeon blueprint on a world.

    Tiles stay walkable floor everywhere; walls and doors are entities on
    top of them. Any coordinate that falls outside the grid is skipped.
    """
    def __init__(self, world: World):
        self.world = world

    def generate(self, rooms: List[Room] = ROOMS, doors=DOORS) -> World:
        self._fill_floor()
        self._create_box(0, 0, self.world.width, self.world.height)
        for room in rooms:
            self._create_room(room)
        for x, y in doors:
            self._carve_door(x, y)
        return self.world

    def _fill_floor(self):
        symbol, walkable, tile_type = FLOOR
        self.world.tiles["symbol"] = symbol
        self.world.tiles["walkable"] = walkable
        self.world.tiles["tile_type"] = tile_type

    def _create_box(self, x: int, y: int, width: int, height: int):
        """Wall entities on the perimeter of the box."""
        for dy in range(height):
            for dx in range(width):
                if dx == 0 or dx == width - 1 or dy == 0 or dy == height - 1:
                    self._place_wall(x + dx, y + dy)

    def _fill_box(self, x: int, y: int, width: int, height: int):
        """Floor tiles inside the box, clearing any walls already there.

        The outer perimeter is left alone, so a room that runs off a small grid
        cannot open a hole in it.
        """
        for py in range(y, y + height):
            for px in range(x, x + width):
                if not self._inside_perimeter(px, py):
                    continue
                self.world.set_tile(px, py, *FLOOR)
                self._remove_walls(px, py)

    def _inside_perimeter(self, x: int, y: int) -> bool:
        return 0 < x < self.world.width - 1 and 0 < y < self.world.height - 1

    def _create_room(self, room: Room):
        self._create_box(room.x, room.y, room.width, room.height)
        self._fill_box(room.x + 1, room.y + 1, room.width - 2, room.height - 2)

    def _place_wall(self, x: int, y: int):
        if not self.world.in_bounds(x, y):
            return
        # Rooms sharing a wall must not stack two wall entities on one cell
        if self.world.find_at(x, y, Wall) is None:
            create_wall(self.world, x, y)

    def _remove_walls(self, x: int, y: int):
        for entity in list(self.world.entities_at(x, y)):
            if self.world.get_component(entity, Wall):
                self.world.destroy_entity(entity)

    def _carve_door(self, x: int, y: int):
        # A door on the outer perimeter would lead off the grid
        if not self._inside_perimeter(x, y):
            return
        self._remove_walls(x, y)
        create_door(self.world, x, y, is_open=False)

def generate_world(config: GameConfig) -> World:
    """Builds a fresh world from the fixed blueprint."""
    world = World(config)
    install_turn_systems(world)
    MapGenerator(world).generate()
    spawn_entities(world)
    logger.info("Generated a %dx%d world with %d entities", world.width, world.height, len(world.entities))
    return world
