from typing import Optional

from ecs import World, Entity
from components import (Position, Velocity, Renderable, Name, BlocksMovement, BlocksVision, Health, Experience,
                        Player, Enemy, Item, Wall, Door)

PLAYER_MAX_HEALTH = 100

DOOR_OPEN_CHAR = "/"
DOOR_CLOSED_CHAR = "+"

# Variant component -> name stored in saves
VARIANTS = {
    Player: "Player",
    Enemy: "Enemy",
    Item: "Item",
    Wall: "Wall",
    Door: "Door",
}

ENEMY_COLORS = {
    "g": "green",
    "o": "dark_green",
    "r": "brown",
    "s": "white",
}

ITEM_COLORS = {
    "Potion": "red",
    "Treasure": "yellow",
    "Key": "silver",
}

def entity_kind(world: World, entity: Entity) -> Optional[str]:
    """Name of the variant component the entity carries, if any."""
    for component_type, kind in VARIANTS.items():
        if world.get_component(entity, component_type) is not None:
            return kind
    return None

def create_player(world: World, x: int, y: int, health: int = PLAYER_MAX_HEALTH,
                  max_health: int = PLAYER_MAX_HEALTH, level: int = 1, experience: int = 0) -> Entity:
    player = world.create_entity()
    world.add_component(player, Position(x, y))
    world.add_component(player, Velocity())
    world.add_component(player, Renderable("@", "red"))
    world.add_component(player, Name("Player"))
    world.add_component(player, BlocksMovement())
    world.add_component(player, Player())
    world.add_component(player, Health(health, max_health))
    world.add_component(player, Experience(level=level, current_xp=experience))
    world.player_entity = player
    return player

def create_enemy(world: World, x: int, y: int, name: str, char: str, health: int, damage: int) -> Entity:
    enemy = world.create_entity()
    world.add_component(enemy, Position(x, y))
    world.add_component(enemy, Renderable(char, ENEMY_COLORS.get(char, "white")))
    world.add_component(enemy, Name(name))
    world.add_component(enemy, BlocksMovement())
    world.add_component(enemy, Enemy(damage=damage))
    world.add_component(enemy, Health(health, health))
    return enemy

def create_goblin(world: World, x: int, y: int) -> Entity:
    return create_enemy(world, x, y, "Goblin", "g", health=30, damage=5)

def create_orc(world: World, x: int, y: int) -> Entity:
    return create_enemy(world, x, y, "Orc", "o", health=50, damage=10)

def create_rat(world: World, x: int, y: int) -> Entity:
    return create_enemy(world, x, y, "Rat", "r", health=10, damage=2)

def create_skeleton(world: World, x: int, y: int) -> Entity:
    return create_enemy(world, x, y, "Skeleton", "s", health=40, damage=8)

def create_item(world: World, x: int, y: int, name: str, char: str, item_type: str, value: int) -> Entity:
    item = world.create_entity()
    world.add_component(item, Position(x, y))
    world.add_component(item, Renderable(char, ITEM_COLORS.get(item_type, "white")))
    world.add_component(item, Name(name))
    world.add_component(item, Item(item_type=item_type, value=value))
    return item

def create_healing_potion(world: World, x: int, y: int, value: int = 25) -> Entity:
    return create_item(world, x, y, "Health Potion", "!", "Potion", value)

def create_gold(world: World, x: int, y: int, value: int = 50) -> Entity:
    return create_item(world, x, y, "Gold Coins", "$", "Treasure", value)

def create_key(world: World, x: int, y: int, name: str = "Silver Key") -> Entity:
    return create_item(world, x, y, name, "k", "Key", 1)

def create_wall(world: World, x: int, y: int, wall_type: str = "Stone") -> Entity:
    wall = world.create_entity()
    world.add_component(wall, Position(x, y))
    world.add_component(wall, Renderable("#", "wall_fg"))
    world.add_component(wall, Name("Wall"))
    world.add_component(wall, BlocksMovement())
    world.add_component(wall, BlocksVision())
    world.add_component(wall, Wall(wall_type=wall_type))
    return wall

def create_door(world: World, x: int, y: int, is_open: bool = False) -> Entity:
    door = world.create_entity()
    world.add_component(door, Position(x, y))
    world.add_component(door, Door(is_open=is_open))
    world.add_component(door, Renderable(DOOR_CLOSED_CHAR, "door_fg_closed"))
    world.add_component(door, Name("Closed Door"))
    set_door_state(world, door, is_open)
    return door

def set_door_state(world: World, door: Entity, is_open: bool):
    """Opens or closes a door, keeping its symbol, name and blocking in step."""
    world.get_component(door, Door).is_open = is_open
    renderable = world.get_component(door, Renderable)
    name = world.get_component(door, Name)
    if is_open:
        renderable.char = DOOR_OPEN_CHAR
        renderable.color = "door_fg_open"
        name.name = "Open Door"
        world.components.get(BlocksMovement, {}).pop(door, None)
        world.components.get(BlocksVision, {}).pop(door, None)
    else:
        renderable.char = DOOR_CLOSED_CHAR
        renderable.color = "door_fg_closed"
        name.name = "Closed Door"
        world.add_component(door, BlocksMovement())
        world.add_component(door, BlocksVision())
