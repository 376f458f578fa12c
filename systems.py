import pygame
from dataclasses import dataclass
from typing import Dict, Tuple

from ecs import System, World
from components import (Position, Velocity, Renderable, Player, Health, Experience, Enemy, Item, Door, Name,
                        WantsToAttack, ToggleDoorState, WantsToPickUp, ChoosingDoorDirection, WantsToSave)
from entities import set_door_state
from config import GameConfig

class InputSystem(System):
    """Collects the frame's pygame events for the other systems."""
    def update(self, world: World):
        world.events = pygame.event.get()
        for event in world.events:
            if event.type == pygame.QUIT:
                world.running = False

class MovementSystem(System):
    """Decides what a player step means.

    Exactly one outcome per step, checked in this order: open a closed door,
    attack an enemy, walk onto a free cell, or bump into something.
    """
    def update(self, world: World):
        if not world.player_took_turn:
            return

        player = world.player_entity
        vel = world.get_component(player, Velocity)
        if vel.dx == 0 and vel.dy == 0:
            return

        pos = world.get_component(player, Position)
        target_x, target_y = pos.x + vel.dx, pos.y + vel.dy
        vel.dx, vel.dy = 0, 0

        closed_door = next((e for e in world.entities_at(target_x, target_y)
                            if world.get_component(e, Door) and not world.get_component(e, Door).is_open), None)
        if closed_door is not None:
            # Bumping a door opens it and spends the turn
            world.add_component(closed_door, ToggleDoorState())
            return

        enemy = world.find_at(target_x, target_y, Enemy)
        if enemy is not None:
            world.add_component(player, WantsToAttack(target=enemy))
            return

        if world.can_move_to(target_x, target_y):
            pos.x = target_x
            pos.y = target_y
            world.add_component(player, WantsToPickUp())
            return

        world.add_message("You cannot move there.")

class DoorSystem(System):
    """Handles opening and closing doors."""
    def update(self, world: World):
        if not world.player_took_turn:
            return

        for entity in list(world.get_entities_with(Door, ToggleDoorState)):
            door = world.get_component(entity, Door)
            set_door_state(world, entity, not door.is_open)
            world.add_message("You open the door." if door.is_open else "You close the door.")
            del world.components[ToggleDoorState][entity]

class MeleeCombatSystem(System):
    """Resolves attacks. Every hit deals the configured fixed damage."""
    def update(self, world: World):
        damage = world.config.attack_damage
        for entity in list(world.get_entities_with(WantsToAttack)):
            intent = world.get_component(entity, WantsToAttack)
            target_health = world.get_component(intent.target, Health)
            target_name = world.get_component(intent.target, Name).name

            if target_health:
                target_health.current -= damage
                world.add_message(f"You attack the {target_name} for {damage} damage.")

            del world.components[WantsToAttack][entity]

class DeathSystem(System):
    """Removes dead enemies and rewards the player."""
    def update(self, world: World):
        player_xp = world.get_component(world.player_entity, Experience)

        for entity in list(world.get_entities_with(Enemy, Health)):
            health = world.get_component(entity, Health)
            if health.current > 0:
                continue
            name = world.get_component(entity, Name).name
            world.add_message(f"You defeat the {name}!")
            if player_xp:
                player_xp.current_xp += world.config.xp_per_kill
            world.destroy_entity(entity)

class ItemPickupSystem(System):
    """Picks up the item under the player after a successful step."""
    def update(self, world: World):
        player = world.player_entity
        if not world.get_component(player, WantsToPickUp):
            return
        del world.components[WantsToPickUp][player]

        pos = world.get_component(player, Position)
        item_entity = world.find_at(pos.x, pos.y, Item)
        if item_entity is None:
            return

        item = world.get_component(item_entity, Item)
        item_name = world.get_component(item_entity, Name).name
        world.destroy_entity(item_entity)
        world.add_message(f"You pick up the {item_name}.")

        if item.item_type == "Potion":
            health = world.get_component(player, Health)
            healed = min(item.value, health.max - health.current)
            health.current += healed
            world.add_message(f"You recover {healed} health.")

def install_turn_systems(world: World) -> World:
    """Registers the per-action pipeline. Order matters."""
    world.add_turn_system(MovementSystem())
    world.add_turn_system(DoorSystem())
    world.add_turn_system(MeleeCombatSystem())
    world.add_turn_system(DeathSystem())
    world.add_turn_system(ItemPickupSystem())
    return world

class PlayerControlSystem(System):
    """Turns key presses into world actions."""
    def __init__(self, save_name: str = "Untitled"):
        self.save_name = save_name
        self.key_bindings = {
            pygame.K_UP: (0, -1),
            pygame.K_DOWN: (0, 1),
            pygame.K_LEFT: (-1, 0),
            pygame.K_RIGHT: (1, 0),
            pygame.K_KP8: (0, -1),
            pygame.K_KP2: (0, 1),
            pygame.K_KP4: (-1, 0),
            pygame.K_KP6: (1, 0),
            pygame.K_KP7: (-1, -1),
            pygame.K_KP9: (1, -1),
            pygame.K_KP1: (-1, 1),
            pygame.K_KP3: (1, 1),
            pygame.K_k: (0, -1),
            pygame.K_j: (0, 1),
            pygame.K_h: (-1, 0),
            pygame.K_l: (1, 0),
            pygame.K_y: (-1, -1),
            pygame.K_u: (1, -1),
            pygame.K_b: (-1, 1),
            pygame.K_n: (1, 1),
        }

    def update(self, world: World):
        player = world.player_entity
        if player is None:
            return

        for event in world.events:
            if event.type != pygame.KEYDOWN:
                continue

            # Waiting for the direction of a door to toggle
            if world.get_component(player, ChoosingDoorDirection):
                del world.components[ChoosingDoorDirection][player]
                if event.key in self.key_bindings:
                    world.toggle_door_in_direction(*self.key_bindings[event.key])
                else:
                    world.add_message("Cancelled.")
                break

            if event.key in self.key_bindings:
                world.move(*self.key_bindings[event.key])
                # Only one action per frame
                break
            elif event.key == pygame.K_o:
                world.add_component(player, ChoosingDoorDirection())
                world.add_message("Open or close a door in which direction?")
                break
            elif event.key == pygame.K_s:
                world.add_component(player, WantsToSave(self.save_name))
                break
            elif event.key in (pygame.K_q, pygame.K_ESCAPE):
                world.running = False
                return

@dataclass
class Camera:
    """Maps world cells to a width x height window centred on a point."""
    width: int
    height: int
    center_x: int = 0
    center_y: int = 0

    def center_on(self, x: int, y: int):
        self.center_x = x
        self.center_y = y

    def top_left(self) -> Tuple[int, int]:
        return self.center_x - self.width // 2, self.center_y - self.height // 2

    def to_view(self, x: int, y: int) -> Tuple[int, int]:
        left, top = self.top_left()
        return x - left, y - top

class PygameRenderSystem(System):
    def __init__(self, config: GameConfig):
        self.config = config
        pygame.init()
        self.screen = pygame.display.set_mode((config.screen_width, config.screen_height))
        pygame.display.set_caption("ECS Dungeon")
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont('Courier New', 16)

        self.colors = {
            'black': (0, 0, 0),
            'red': (255, 0, 0),
            'green': (0, 255, 0),
            'dark_green': (0, 100, 0),
            'yellow': (255, 255, 0),
            'log_text': (200, 200, 200),
            'white': (255, 255, 255),
            'gray': (50, 50, 50),
            'silver': (192, 192, 192),
            'brown': (139, 69, 19),
            'floor_fg': (70, 70, 70),
            'wall_fg': (130, 110, 90),
            'door_fg_closed': (150, 110, 50),
            'door_fg_open': (255, 255, 150),
        }

        self.text_cache: Dict[Tuple[str, str], pygame.Surface] = {}
        self.camera = Camera(config.view_width, config.view_height)

    def update(self, world: World):
        # Follow the player before drawing
        if world.player_entity is not None:
            player_pos = world.get_component(world.player_entity, Position)
            self.camera.center_on(player_pos.x, player_pos.y)

        self.screen.fill(self.colors['black'])

        self.draw_tiles(world)
        self.draw_entities(world)
        self.draw_info_panel(world)

        pygame.display.flip()
        self.clock.tick(self.config.fps)

    def draw_char(self, char: str, color_name: str, view_x: int, view_y: int):
        cs = self.config.cell_size
        cache_key = (char, color_name)
        if cache_key not in self.text_cache:
            color = self.colors.get(color_name, self.colors['white'])
            self.text_cache[cache_key] = self.font.render(char, True, color)
        text_surface = self.text_cache[cache_key]
        center = (view_x * cs + cs // 2, view_y * cs + cs // 2)
        self.screen.blit(text_surface, text_surface.get_rect(center=center))

    def draw_tiles(self, world: World):
        left, top = self.camera.top_left()
        for view_y in range(self.camera.height):
            for view_x in range(self.camera.width):
                tile = world.tile_at(left + view_x, top + view_y)
                if tile is not None:
                    self.draw_char(tile.symbol, 'floor_fg', view_x, view_y)

    def draw_entities(self, world: World):
        left, top = self.camera.top_left()
        visible = list(world.entities_in_area(left, top, self.camera.width, self.camera.height))
        # Actors are drawn over whatever shares their cell
        visible.sort(key=lambda e: (world.get_component(e, Player) is not None,
                                    world.get_component(e, Enemy) is not None))

        for entity in visible:
            render = world.get_component(entity, Renderable)
            if render is None:
                continue
            pos = world.get_component(entity, Position)
            view_x, view_y = self.camera.to_view(pos.x, pos.y)
            self.draw_char(render.char, render.color, view_x, view_y)

    def draw_info_panel(self, world: World):
        panel_y = self.config.screen_height - self.config.info_panel_height
        panel = pygame.Rect(0, panel_y, self.config.screen_width, self.config.info_panel_height)
        pygame.draw.rect(self.screen, self.colors['gray'], panel)

        lines = []
        if world.player_entity is not None:
            pos = world.get_component(world.player_entity, Position)
            health = world.get_component(world.player_entity, Health)
            xp = world.get_component(world.player_entity, Experience)
            lines.append(f"HP: {health.current}/{health.max} | Level: {xp.level} | XP: {xp.current_xp} | "
                         f"Position: ({pos.x}, {pos.y})")
        lines.append("Arrows/hjklyubn: Move | O: Door | S: Save | Q: Quit")

        y = panel_y + 5
        for text in lines:
            self.screen.blit(self.font.render(text, True, self.colors['white']), (10, y))
            y += 20
        for msg in world.message_log.snapshot():
            self.screen.blit(self.font.render(msg, True, self.colors['log_text']), (10, y))
            y += 18
