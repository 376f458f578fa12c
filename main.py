import argparse
import logging
import sys
from dataclasses import replace
from typing import List, Optional

import pygame

from config import GameConfig, configure_logging
from game_state import GameState
from ecs import World
from map_generator import generate_world
from persistence import SaveStore, SaveSystem, PersistenceError
from systems import InputSystem, PlayerControlSystem, PygameRenderSystem

logger = logging.getLogger(__name__)

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ecs-dungeon", description="Turn-based dungeon crawler.")
    parser.add_argument("--list", action="store_true", help="list saved games and exit")
    parser.add_argument("--load", type=int, metavar="ID", help="resume the saved game with this id")
    parser.add_argument("--name", default=None, help="name used when saving (default: the loaded save's name)")
    parser.add_argument("--db", default=None, metavar="URL", help="database URL, e.g. sqlite:///roguelike.db")
    return parser

def print_saves(store: SaveStore) -> None:
    saves = store.list_saves()
    if not saves:
        print("No saved games found.")
        return
    for save in saves:
        print(f"{save.id:>4}  {save.name}  (last saved: {save.last_saved_at:%Y-%m-%d %H:%M:%S})")

def open_world(store: SaveStore, config: GameConfig, game_state: GameState, load_id: Optional[int]) -> Optional[World]:
    """New world, or the requested save. None if the save does not exist."""
    if load_id is None:
        return generate_world(config)

    world = store.load(load_id, config)
    if world is None:
        return None
    if game_state.save_name == "Untitled":
        name = next((s.name for s in store.list_saves() if s.id == load_id), None)
        if name:
            game_state.save_name = name
    return world

def run(world: World, store: SaveStore, config: GameConfig, game_state: GameState) -> None:
    world.add_system(InputSystem())
    world.add_system(PlayerControlSystem(game_state.save_name))
    world.add_system(SaveSystem(store))
    world.add_system(PygameRenderSystem(config))

    world.add_message("Welcome to the dungeon.")
    while world.running and game_state.running:
        world.update()

def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = GameConfig.from_env()
    if args.db:
        config = replace(config, database_url=args.db)
    configure_logging(config.log_level)

    try:
        store = SaveStore(config.database_url, config)
    except PersistenceError as e:
        logger.error("%s", e)
        return 1

    try:
        if args.list:
            print_saves(store)
            return 0

        game_state = GameState(save_name=args.name or "Untitled")
        world = open_world(store, config, game_state, args.load)
        if world is None:
            print(f"No saved game with id {args.load}.")
            return 1
        game_state.world = world

        run(world, store, config, game_state)
    except PersistenceError as e:
        logger.error("%s", e)
        return 1
    finally:
        store.close()
        pygame.quit()

    print("Thanks for playing!")
    return 0

if __name__ == "__main__":
    sys.exit(main())
