import logging
from typing import List, Optional, Tuple

from ecs import World, Entity
from entities import create_player
from blueprint import Placement, PLAYER_START, ENEMY_ROSTER, ITEM_ROSTER

logger = logging.getLogger(__name__)

def _spawn_roster(world: World, roster: List[Placement]) -> List[Entity]:
    spawned = []
    for placement in roster:
        # Placements outside a smaller grid are skipped
        if not world.in_bounds(placement.x, placement.y):
            continue
        spawned.append(placement.factory(world, placement.x, placement.y))
    return spawned

def nearest_open_cell(world: World, x: int, y: int) -> Optional[Tuple[int, int]]:
    """Closest cell the player could step onto, by Chebyshev distance, then row, then column."""
    candidates = (
        (max(abs(cx - x), abs(cy - y)), cy, cx)
        for cy in range(world.height)
        for cx in range(world.width)
        if world.can_move_to(cx, cy)
    )
    best = min(candidates, default=None)
    return None if best is None else (best[2], best[1])

def spawn_player(world: World, start: Tuple[int, int] = PLAYER_START) -> Entity:
    x, y = start
    if not world.in_bounds(x, y):
        clamped = (min(max(x, 0), world.width - 1), min(max(y, 0), world.height - 1))
        logger.warning("Player start %s is outside a %dx%d world, using %s", start, world.width, world.height, clamped)
        x, y = clamped
    if not world.can_move_to(x, y):
        # Fall back to the start cell itself on a grid with no open cell
        x, y = nearest_open_cell(world, x, y) or (x, y)
        logger.warning("Player start %s is blocked, using %s", start, (x, y))
    return create_player(world, x, y)

def spawn_entities(world: World) -> None:
    """Places the player, then the fixed enemy and item rosters."""
    spawn_player(world)
    enemies = _spawn_roster(world, ENEMY_ROSTER)
    items = _spawn_roster(world, ITEM_ROSTER)
    logger.debug("Spawned %d enemies and %d items", len(enemies), len(items))
