import unittest
import contextlib
import io
import logging
import os
import sys
import tempfile
import unittest.mock as mock

import pygame
from sqlalchemy import delete, update
from sqlalchemy.orm import Session

# Make the project modules importable when running from another directory
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__))))

from config import GameConfig, configure_logging
from ecs import World
from components import (Tile, Position, Health, Experience, Name, Renderable, BlocksMovement, BlocksVision,
                        Player, Enemy, Item, Wall, Door, ChoosingDoorDirection, WantsToSave)
from entities import (create_player, create_goblin, create_healing_potion, create_gold, create_door, entity_kind)
from message_log import MessageLog
from map_generator import MapGenerator, generate_world
from blueprint import ROOMS, DOORS, PLAYER_START
from systems import Camera, PlayerControlSystem, PygameRenderSystem, install_turn_systems
from persistence import SaveStore, SaveSystem, TileRecord, PersistenceError, CorruptSaveError
from main import main

def make_arena(width: int = 10, height: int = 8) -> World:
    """An empty walled room with turn systems but no player."""
    world = World(GameConfig(grid_width=width, grid_height=height))
    install_turn_systems(world)
    MapGenerator(world).generate(rooms=[], doors=[])
    return world

def door_at(world: World, x: int, y: int):
    return world.find_at(x, y, Door)

def player_xy(world: World):
    pos = world.player_position
    return pos.x, pos.y

def entity_snapshot(world: World):
    """Comparable description of every entity, independent of entity ids."""
    rows = []
    for entity in world.get_entities_with(Position):
        pos = world.get_component(entity, Position)
        health = world.get_component(entity, Health)
        xp = world.get_component(entity, Experience)
        enemy = world.get_component(entity, Enemy)
        item = world.get_component(entity, Item)
        wall = world.get_component(entity, Wall)
        door = world.get_component(entity, Door)
        rows.append((
            entity_kind(world, entity), pos.x, pos.y,
            world.get_component(entity, Renderable).char,
            world.get_component(entity, Name).name,
            world.get_component(entity, BlocksMovement) is not None,
            world.get_component(entity, BlocksVision) is not None,
            (health.current, health.max) if health else None,
            (xp.level, xp.current_xp) if xp else None,
            enemy.damage if enemy else None,
            (item.item_type, item.value) if item else None,
            wall.wall_type if wall else None,
            door.is_open if door else None,
        ))
    return sorted(rows)

class TestMessageLog(unittest.TestCase):

    def test_newest_first_and_bounded(self):
        log = MessageLog(capacity=5)
        for i in range(8):
            log.add(f"message {i}")

        self.assertEqual(len(log), 5)
        self.assertEqual(log.snapshot(), ("message 7", "message 6", "message 5", "message 4", "message 3"))

    def test_blank_messages_are_dropped(self):
        log = MessageLog()
        log.add("")
        log.add("   ")
        log.add("\t\n")
        self.assertEqual(len(log), 0)

        log.add("Hello")
        log.add("  ")
        self.assertEqual(log.snapshot(), ("Hello",))

    def test_clear(self):
        log = MessageLog()
        log.add("one")
        log.clear()
        self.assertEqual(log.snapshot(), ())

class TestCamera(unittest.TestCase):

    def test_top_left_is_center_minus_half_size(self):
        camera = Camera(40, 20)
        camera.center_on(16, 11)
        self.assertEqual(camera.top_left(), (-4, 1))
        self.assertEqual(camera.to_view(16, 11), (20, 10))

    def test_odd_sizes_round_down(self):
        camera = Camera(5, 3)
        camera.center_on(10, 10)
        self.assertEqual(camera.top_left(), (8, 9))

class TestSpatialQueries(unittest.TestCase):

    def setUp(self):
        self.world = make_arena()

    def test_tile_at(self):
        self.assertEqual(self.world.tile_at(3, 3), Tile(3, 3, ".", True, "Floor"))
        for x, y in [(-1, 0), (0, -1), (10, 0), (0, 8)]:
            self.assertIsNone(self.world.tile_at(x, y))

    def test_entities_at(self):
        gold = create_gold(self.world, 3, 3)
        goblin = create_goblin(self.world, 3, 3)

        self.assertEqual(set(self.world.entities_at(3, 3)), {gold, goblin})
        self.assertEqual(list(self.world.entities_at(4, 4)), [])

    def test_entities_in_area_is_half_open(self):
        inside = create_gold(self.world, 2, 2)
        create_gold(self.world, 4, 2)
        create_gold(self.world, 2, 4)

        self.assertEqual(list(self.world.entities_in_area(2, 2, 2, 2)), [inside])

    def test_can_move_to(self):
        world = self.world
        self.assertTrue(world.can_move_to(3, 3))
        self.assertFalse(world.can_move_to(0, 0), "Perimeter wall")
        self.assertFalse(world.can_move_to(-1, 3), "Outside the grid")

        create_door(world, 5, 5, is_open=False)
        self.assertFalse(world.can_move_to(5, 5), "Closed door")
        create_door(world, 6, 5, is_open=True)
        self.assertTrue(world.can_move_to(6, 5), "Open door")

        create_gold(world, 4, 4)
        self.assertTrue(world.can_move_to(4, 4), "Items do not block")

        world.set_tile(2, 2, "~", False, "Water")
        self.assertFalse(world.can_move_to(2, 2), "Tile that is not walkable")

class TestGeneration(unittest.TestCase):

    def setUp(self):
        self.world = generate_world(GameConfig())

    def test_player_and_first_door(self):
        world = self.world
        self.assertEqual(len(world.get_entities_with(Player)), 1)
        self.assertEqual(player_xy(world), PLAYER_START)
        entry_hall = ROOMS[0]
        self.assertTrue(entry_hall.contains(*PLAYER_START))
        self.assertFalse(entry_hall.contains(17, 11), "Doors sit in the wall, not inside the room")

        door = door_at(world, 17, 11)
        self.assertIsNotNone(door)
        self.assertFalse(world.get_component(door, Door).is_open)
        self.assertEqual(world.get_component(door, Renderable).char, "+")
        self.assertEqual(world.get_component(door, Name).name, "Closed Door")
        self.assertIsNotNone(world.get_component(door, BlocksMovement))

    def test_doors_replace_walls(self):
        for x, y in DOORS:
            self.assertIsNotNone(door_at(self.world, x, y), f"Door missing at {(x, y)}")
            self.assertIsNone(self.world.find_at(x, y, Wall), f"Wall left under door at {(x, y)}")

    def test_walls(self):
        world = self.world
        for x, y in [(0, 0), (79, 0), (0, 39), (79, 39), (40, 0), (0, 20)]:
            self.assertIsNotNone(world.find_at(x, y, Wall), f"Perimeter wall missing at {(x, y)}")
        # Entry Hall and Guard Room share the wall at x=17
        walls = [e for e in world.entities_at(17, 10) if world.get_component(e, Wall)]
        self.assertEqual(len(walls), 1)
        # Room interiors are clear
        self.assertIsNone(world.find_at(10, 10, Wall))

    def test_tiles_are_floor(self):
        self.assertTrue(self.world.tiles["walkable"].all())
        self.assertEqual(self.world.tile_at(40, 20).tile_type, "Floor")

    def test_roster(self):
        world = self.world
        names = sorted(world.get_component(e, Name).name for e in world.get_entities_with(Enemy))
        self.assertEqual(names, ["Goblin", "Orc", "Orc", "Rat", "Skeleton"])
        goblin = world.find_at(25, 12, Enemy)
        self.assertEqual(world.get_component(goblin, Health).current, 30)
        potion = world.find_at(7, 7, Item)
        self.assertEqual(world.get_component(potion, Item), Item("Potion", 25))

    def test_deterministic(self):
        other = generate_world(GameConfig())
        self.assertEqual(entity_snapshot(self.world), entity_snapshot(other))

    def test_everything_in_bounds(self):
        for world in (self.world, generate_world(GameConfig(grid_width=20, grid_height=15))):
            for entity in world.get_entities_with(Position):
                pos = world.get_component(entity, Position)
                self.assertTrue(world.in_bounds(pos.x, pos.y))

    def test_small_world_skips_and_clamps(self):
        small = generate_world(GameConfig(grid_width=20, grid_height=15))
        self.assertIsNone(small.find_at(25, 12, Enemy))
        self.assertEqual(player_xy(small), (16, 11))

        # The door at (12, 14) would sit in the outer wall of this grid
        self.assertIsNone(door_at(small, 12, 14))
        self.assertIsNotNone(small.find_at(12, 14, Wall))

    def test_tiny_world_keeps_perimeter_and_player_off_walls(self):
        tiny = generate_world(GameConfig(grid_width=12, grid_height=10))
        self.assertEqual(len(tiny.get_entities_with(Player)), 1)
        # (16, 11) clamps to the corner wall (11, 9), the nearest open cell is (10, 8)
        self.assertEqual(player_xy(tiny), (10, 8))
        self.assertIsNone(tiny.find_at(10, 8, Wall))

        for x in range(tiny.width):
            self.assertIsNotNone(tiny.find_at(x, 0, Wall))
            self.assertIsNotNone(tiny.find_at(x, 9, Wall))
        for y in range(tiny.height):
            self.assertIsNotNone(tiny.find_at(0, y, Wall))
            self.assertIsNotNone(tiny.find_at(11, y, Wall))

class TestMoveResolution(unittest.TestCase):

    def setUp(self):
        self.world = generate_world(GameConfig())
        self.player = self.world.player_entity

    def log(self):
        return self.world.message_log.snapshot()

    def test_bump_opens_door_then_walks_through(self):
        world = self.world
        world.move(1, 0)

        door = door_at(world, 17, 11)
        self.assertTrue(world.get_component(door, Door).is_open)
        self.assertEqual(world.get_component(door, Renderable).char, "/")
        self.assertEqual(world.get_component(door, Name).name, "Open Door")
        self.assertIsNone(world.get_component(door, BlocksMovement))
        self.assertEqual(player_xy(world), (16, 11), "Opening a door spends the turn")
        self.assertEqual(self.log(), ("You open the door.",))

        world.move(1, 0)
        self.assertEqual(player_xy(world), (17, 11))
        self.assertEqual(world.turn, 2)
        self.assertEqual(len(self.log()), 1)

    def test_attack_and_kill(self):
        world = self.world
        goblin = create_goblin(world, 15, 11)

        world.move(-1, 0)
        self.assertEqual(world.get_component(goblin, Health).current, 10)
        self.assertEqual(player_xy(world), (16, 11))
        self.assertEqual(self.log()[0], "You attack the Goblin for 20 damage.")
        self.assertEqual(world.get_component(self.player, Experience).current_xp, 0)

        world.move(-1, 0)
        self.assertNotIn(goblin, world.entities)
        self.assertIsNone(world.find_at(15, 11, Enemy))
        self.assertEqual(world.get_component(self.player, Experience).current_xp, 10)
        self.assertEqual(player_xy(world), (16, 11))
        self.assertEqual(self.log()[:2], ("You defeat the Goblin!", "You attack the Goblin for 20 damage."))

    def test_enemy_in_open_doorway_is_attacked(self):
        world = self.world
        world.move(1, 0)
        goblin = create_goblin(world, 17, 11)

        world.move(1, 0)
        self.assertEqual(world.get_component(goblin, Health).current, 10)
        self.assertEqual(player_xy(world), (16, 11))

    def test_potion_heal_is_capped(self):
        world = self.world
        health = world.get_component(self.player, Health)
        health.current = 90
        potion = create_healing_potion(world, 15, 11, value=25)

        world.move(-1, 0)
        self.assertEqual(player_xy(world), (15, 11))
        self.assertNotIn(potion, world.entities)
        self.assertEqual(health.current, 100)
        self.assertEqual(self.log(), ("You recover 10 health.", "You pick up the Health Potion."))

    def test_potion_heals_full_value(self):
        world = self.world
        health = world.get_component(self.player, Health)
        health.current = 50
        create_healing_potion(world, 16, 12, value=25)

        world.move(0, 1)
        self.assertEqual(health.current, 75)

    def test_treasure_pickup_does_not_heal(self):
        world = self.world
        health = world.get_component(self.player, Health)
        health.current = 40
        gold = create_gold(world, 16, 10)

        world.move(0, -1)
        self.assertNotIn(gold, world.entities)
        self.assertEqual(health.current, 40)
        self.assertEqual(self.log(), ("You pick up the Gold Coins.",))

    def test_plain_step_logs_nothing(self):
        self.world.move(-1, -1)
        self.assertEqual(player_xy(self.world), (15, 10))
        self.assertEqual(self.log(), ())

    def test_blocked_by_wall(self):
        self.world.move(1, -1)
        self.assertEqual(player_xy(self.world), (16, 11))
        self.assertEqual(self.log(), ("You cannot move there.",))

    def test_invalid_direction(self):
        for dx, dy in [(0, 0), (2, 0), (0, -2), (True, 0), (0, False), (1.0, 0), (-1, 1.0)]:
            with self.assertRaises(ValueError):
                self.world.move(dx, dy)
            with self.assertRaises(ValueError):
                self.world.toggle_door_in_direction(dx, dy)
        self.assertEqual(player_xy(self.world), (16, 11))
        self.assertEqual(self.world.turn, 0)

class TestDoorToggle(unittest.TestCase):

    def setUp(self):
        self.world = generate_world(GameConfig())

    def test_open_and_close(self):
        world = self.world
        door = door_at(world, 17, 11)

        world.toggle_door_in_direction(1, 0)
        self.assertTrue(world.get_component(door, Door).is_open)
        self.assertEqual(world.message_log.snapshot()[0], "You open the door.")

        world.toggle_door_in_direction(1, 0)
        self.assertFalse(world.get_component(door, Door).is_open)
        self.assertEqual(world.get_component(door, Renderable).char, "+")
        self.assertIsNotNone(world.get_component(door, BlocksMovement))
        self.assertEqual(world.message_log.snapshot()[0], "You close the door.")
        self.assertEqual(player_xy(world), (16, 11))

    def test_no_door(self):
        world = self.world
        goblin = create_goblin(world, 15, 11)

        world.toggle_door_in_direction(-1, 0)
        self.assertEqual(world.message_log.snapshot(), ("There is no door in that direction.",))
        self.assertEqual(world.get_component(goblin, Health).current, 30)
        self.assertEqual(player_xy(world), (16, 11))

class TestExperience(unittest.TestCase):

    def test_kills_only_grant_experience(self):
        world = generate_world(GameConfig())
        player = world.player_entity

        for _ in range(10):
            create_goblin(world, 15, 11)
            world.move(-1, 0)
            world.move(-1, 0)

        xp = world.get_component(player, Experience)
        health = world.get_component(player, Health)
        self.assertEqual((xp.level, xp.current_xp), (1, 100))
        self.assertEqual((health.current, health.max), (100, 100))
        self.assertEqual(world.message_log.snapshot()[:3], (
            "You defeat the Goblin!",
            "You attack the Goblin for 20 damage.",
            "You attack the Goblin for 20 damage.",
        ))
        self.assertTrue(world.running)

class TestPlayerControl(unittest.TestCase):

    def setUp(self):
        self.world = generate_world(GameConfig())
        self.control = PlayerControlSystem(save_name="slot one")

    def press(self, *keys):
        for key in keys:
            self.world.events = [pygame.event.Event(pygame.KEYDOWN, key=key)]
            self.control.update(self.world)

    def test_arrow_moves(self):
        self.press(pygame.K_UP)
        self.assertEqual(player_xy(self.world), (16, 10))

    def test_vi_key_diagonal(self):
        self.press(pygame.K_y)
        self.assertEqual(player_xy(self.world), (15, 10))

    def test_door_key_then_direction(self):
        self.press(pygame.K_o)
        self.assertIsNotNone(self.world.get_component(self.world.player_entity, ChoosingDoorDirection))
        self.press(pygame.K_RIGHT)

        door = door_at(self.world, 17, 11)
        self.assertTrue(self.world.get_component(door, Door).is_open)
        self.assertEqual(player_xy(self.world), (16, 11))
        self.assertIsNone(self.world.get_component(self.world.player_entity, ChoosingDoorDirection))

    def test_door_key_cancelled(self):
        self.press(pygame.K_o, pygame.K_ESCAPE)
        self.assertEqual(self.world.message_log.snapshot()[0], "Cancelled.")
        self.assertTrue(self.world.running)

    def test_save_key_requests_save(self):
        self.press(pygame.K_s)
        intent = self.world.get_component(self.world.player_entity, WantsToSave)
        self.assertEqual(intent.name, "slot one")

    def test_quit(self):
        self.press(pygame.K_q)
        self.assertFalse(self.world.running)

class TestRendering(unittest.TestCase):

    @mock.patch('pygame.display.flip')
    @mock.patch('pygame.draw.rect')
    @mock.patch('pygame.time.Clock')
    @mock.patch('pygame.font.SysFont')
    @mock.patch('pygame.display.set_caption')
    @mock.patch('pygame.display.set_mode')
    @mock.patch('pygame.init')
    def test_camera_follows_player_and_log_is_drawn(self, mock_init, mock_set_mode, mock_caption, mock_font,
                                                    mock_clock, mock_rect, mock_flip):
        config = GameConfig()
        world = generate_world(config)
        world.move(1, 0)

        renderer = PygameRenderSystem(config)
        renderer.update(world)

        self.assertEqual(renderer.camera.top_left(), (16 - 20, 11 - 10))
        rendered = [c.args[0] for c in mock_font.return_value.render.call_args_list]
        self.assertIn("You open the door.", rendered)
        self.assertIn("@", rendered)
        mock_flip.assert_called_once()

class TestPersistence(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.store = SaveStore(f"sqlite:///{os.path.join(self.tmp.name, 'saves.db')}")
        self.config = GameConfig()

    def tearDown(self):
        self.store.close()
        self.tmp.cleanup()

    def test_round_trip(self):
        world = generate_world(self.config)
        world.move(1, 0)  # open the door
        world.move(1, 0)  # step into the doorway
        goblin = world.find_at(25, 12, Enemy)
        world.get_component(goblin, Health).current = 7
        world.get_component(world.player_entity, Health).current = 64

        world_id = self.store.save(world, "first")
        self.assertEqual(world.world_id, world_id)

        loaded = self.store.load(world_id)
        self.assertIsNot(loaded, world)
        self.assertEqual((loaded.width, loaded.height), (world.width, world.height))
        self.assertEqual(loaded.tiles.tolist(), world.tiles.tolist())
        self.assertEqual(entity_snapshot(loaded), entity_snapshot(world))
        self.assertEqual(len(loaded.get_entities_with(Player)), 1)
        self.assertIsNotNone(loaded.get_component(loaded.player_entity, Player))
        self.assertEqual(player_xy(loaded), (17, 11))
        self.assertEqual(loaded.world_id, world_id)

    def test_loaded_world_plays(self):
        world_id = self.store.save(generate_world(self.config), "fresh")
        loaded = self.store.load(world_id)

        loaded.move(1, 0)
        self.assertEqual(loaded.message_log.snapshot(), ("You open the door.",))

    def test_list_saves(self):
        first = self.store.save(generate_world(self.config), "alpha")
        second = self.store.save(generate_world(self.config), "beta")

        saves = self.store.list_saves()
        self.assertEqual([(s.id, s.name) for s in saves], [(first, "alpha"), (second, "beta")])
        self.assertIsNotNone(saves[0].last_saved_at)

    def test_saving_again_overwrites(self):
        world = generate_world(self.config)
        world_id = self.store.save(world, "slot")
        world.move(-1, 0)
        again = self.store.save(world, "slot renamed")

        self.assertEqual(again, world_id)
        self.assertEqual([(s.id, s.name) for s in self.store.list_saves()], [(world_id, "slot renamed")])
        self.assertEqual(player_xy(self.store.load(world_id)), (15, 11))

    def test_missing_save(self):
        self.assertIsNone(self.store.load(999))
        self.assertEqual(self.store.list_saves(), [])

    def test_save_without_player_is_corrupt(self):
        world = generate_world(self.config)
        world.destroy_entity(world.player_entity)
        world_id = self.store.save(world, "broken")

        with self.assertRaises(CorruptSaveError):
            self.store.load(world_id)

    def test_save_with_two_players_is_corrupt(self):
        world = generate_world(self.config)
        create_player(world, 15, 10)
        world_id = self.store.save(world, "crowded")

        with self.assertRaises(CorruptSaveError):
            self.store.load(world_id)

    def test_entity_outside_grid_is_corrupt(self):
        world = generate_world(self.config)
        create_gold(world, 200, 5)
        world_id = self.store.save(world, "stray gold")

        with self.assertRaises(CorruptSaveError):
            self.store.load(world_id)

    def edit_rows(self, statement):
        with Session(self.store.engine) as session:
            session.execute(statement)
            session.commit()

    def test_missing_tile_rows_are_corrupt(self):
        world_id = self.store.save(generate_world(self.config), "holes")
        self.edit_rows(delete(TileRecord).where(TileRecord.world_id == world_id, TileRecord.y == 11))

        with self.assertRaises(CorruptSaveError):
            self.store.load(world_id)

    def test_repeated_tile_is_corrupt(self):
        world_id = self.store.save(generate_world(self.config), "twice")
        self.edit_rows(update(TileRecord)
                       .where(TileRecord.world_id == world_id, TileRecord.x == 0, TileRecord.y == 0)
                       .values(x=1))

        with self.assertRaises(CorruptSaveError):
            self.store.load(world_id)

    def test_tile_outside_grid_is_corrupt(self):
        world_id = self.store.save(generate_world(self.config), "far tile")
        self.edit_rows(update(TileRecord)
                       .where(TileRecord.world_id == world_id, TileRecord.x == 0, TileRecord.y == 0)
                       .values(x=500))

        with self.assertRaises(CorruptSaveError):
            self.store.load(world_id)

    def test_saving_into_another_store_never_overwrites(self):
        other = SaveStore(f"sqlite:///{os.path.join(self.tmp.name, 'other.db')}")
        try:
            unrelated = other.save(generate_world(self.config), "unrelated")
            world = generate_world(self.config)
            first = self.store.save(world, "mine")
            self.assertEqual(first, unrelated)

            copied = other.save(world, "mine")
            self.assertNotEqual(copied, unrelated)
            self.assertEqual([(s.id, s.name) for s in other.list_saves()], [(unrelated, "unrelated"), (copied, "mine")])
            self.assertEqual((world.world_id, world.save_url), (copied, other.url))
            self.assertEqual([s.name for s in self.store.list_saves()], ["mine"])
        finally:
            other.close()

    def test_delete(self):
        world_id = self.store.save(generate_world(self.config), "gone")
        self.assertTrue(self.store.delete(world_id))
        self.assertFalse(self.store.delete(world_id))
        self.assertIsNone(self.store.load(world_id))

    def test_save_system(self):
        world = generate_world(self.config)
        world.add_component(world.player_entity, WantsToSave("quick"))

        SaveSystem(self.store).update(world)
        self.assertEqual(world.message_log.snapshot()[0], "Game saved as 'quick'.")
        self.assertEqual([s.name for s in self.store.list_saves()], ["quick"])
        self.assertIsNone(world.get_component(world.player_entity, WantsToSave))

    def test_save_system_reports_failure(self):
        world = generate_world(self.config)
        world.add_component(world.player_entity, WantsToSave("quick"))
        store = mock.Mock(spec=SaveStore)
        store.save.side_effect = PersistenceError("disk full")

        with self.assertLogs("persistence", level="ERROR"):
            SaveSystem(store).update(world)
        self.assertEqual(world.message_log.snapshot()[0], "Save failed.")

class TestConfig(unittest.TestCase):

    def test_defaults_without_environment(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            config = GameConfig.from_env()
        self.assertEqual(config, GameConfig())
        self.assertEqual((config.screen_width, config.screen_height), (720, 500))

    def test_environment_overrides(self):
        env = {
            "DUNGEON_DB_URL": "sqlite:///elsewhere.db",
            "DUNGEON_LOG_LEVEL": "debug",
            "DUNGEON_GRID_WIDTH": "30",
            "DUNGEON_GRID_HEIGHT": "20",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            config = GameConfig.from_env()
        self.assertEqual(config.database_url, "sqlite:///elsewhere.db")
        self.assertEqual(config.log_level, "DEBUG")
        self.assertEqual((config.grid_width, config.grid_height), (30, 20))

    @mock.patch('logging.basicConfig')
    def test_configure_logging(self, mock_basic_config):
        configure_logging("debug")
        self.assertEqual(mock_basic_config.call_args.kwargs["level"], logging.DEBUG)
        self.assertEqual(mock_basic_config.call_args.kwargs["format"],
                         "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s")

        configure_logging("nonsense")
        self.assertEqual(mock_basic_config.call_args.kwargs["level"], logging.INFO)

@mock.patch('main.configure_logging')
class TestCommandLine(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.url = f"sqlite:///{os.path.join(self.tmp.name, 'cli.db')}"

    def tearDown(self):
        self.tmp.cleanup()

    def run_main(self, *args):
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            code = main(list(args) + ["--db", self.url])
        return code, out.getvalue()

    def test_list_without_saves(self, mock_configure_logging):
        code, output = self.run_main("--list")
        self.assertEqual(code, 0)
        self.assertIn("No saved games found.", output)
        mock_configure_logging.assert_called_once()

    def test_list_shows_saves(self, mock_configure_logging):
        store = SaveStore(self.url)
        world_id = store.save(generate_world(GameConfig()), "alpha")
        store.close()

        code, output = self.run_main("--list")
        self.assertEqual(code, 0)
        self.assertIn(f"{world_id:>4}  alpha", output)

    def test_load_unknown_id(self, mock_configure_logging):
        code, output = self.run_main("--load", "42")
        self.assertEqual(code, 1)
        self.assertIn("No saved game with id 42.", output)

if __name__ == '__main__':
    unittest.main()
