"""
SQLite persistence for worlds, built on SQLAlchemy.

A save is one ``worlds`` row plus every tile (row-major) and every entity,
each entity tagged with its variant in ``entity_type``. Saving runs in a single
transaction. Loading builds a new World and returns it only once it is
complete, so a failed load never touches the world the caller already has.
"""

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import List, NamedTuple, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, create_engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship, selectinload, sessionmaker

from config import GameConfig
from ecs import System, World, Entity
from components import (Position, Renderable, Name, BlocksMovement, BlocksVision, Health, Experience,
                        Player, Enemy, Item, Wall, Door, WantsToSave)
from entities import entity_kind, create_player, create_enemy, create_item, create_wall, create_door
from systems import install_turn_systems

logger = logging.getLogger(__name__)

class PersistenceError(Exception):
    """Raised when the save database cannot be read or written."""

class CorruptSaveError(PersistenceError):
    """Raised when a stored world cannot be rebuilt into a valid World."""

def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)

class Base(DeclarativeBase):
    pass

class WorldRecord(Base):
    """One saved world."""

    __tablename__ = "worlds"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    width: Mapped[int] = mapped_column(Integer, nullable=False)
    height: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)
    last_saved_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)

    tiles: Mapped[List["TileRecord"]] = relationship(
        back_populates="world", cascade="all, delete-orphan", order_by="TileRecord.id"
    )
    entities: Mapped[List["EntityRecord"]] = relationship(
        back_populates="world", cascade="all, delete-orphan", order_by="EntityRecord.id"
    )

class TileRecord(Base):
    __tablename__ = "tiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    world_id: Mapped[int] = mapped_column(ForeignKey("worlds.id", ondelete="CASCADE"), nullable=False, index=True)
    x: Mapped[int] = mapped_column(Integer, nullable=False)
    y: Mapped[int] = mapped_column(Integer, nullable=False)
    symbol: Mapped[str] = mapped_column(String(1), nullable=False)
    walkable: Mapped[bool] = mapped_column(Boolean, nullable=False)
    tile_type: Mapped[str] = mapped_column(String(16), nullable=False)

    world: Mapped["WorldRecord"] = relationship(back_populates="tiles")

class EntityRecord(Base):
    """Any entity; the variant columns that do not apply stay NULL."""

    __tablename__ = "entities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    world_id: Mapped[int] = mapped_column(ForeignKey("worlds.id", ondelete="CASCADE"), nullable=False, index=True)
    entity_type: Mapped[str] = mapped_column(String(16), nullable=False)
    x: Mapped[int] = mapped_column(Integer, nullable=False)
    y: Mapped[int] = mapped_column(Integer, nullable=False)
    symbol: Mapped[str] = mapped_column(String(1), nullable=False)
    name: Mapped[str] = mapped_column(String(64), nullable=False)
    blocks_movement: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    blocks_vision: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Player / Enemy
    health: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    max_health: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    level: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    experience: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    damage: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    # Item
    item_type: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    value: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    # Wall
    wall_type: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    # Door
    is_open: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    world: Mapped["WorldRecord"] = relationship(back_populates="entities")

class SaveSummary(NamedTuple):
    id: int
    name: str
    last_saved_at: datetime

# --- World -> records ---

def _tile_records(world: World) -> List[TileRecord]:
    records = []
    for y in range(world.height):
        for x in range(world.width):
            tile = world.tile_at(x, y)
            records.append(TileRecord(x=x, y=y, symbol=tile.symbol, walkable=tile.walkable, tile_type=tile.tile_type))
    return records

def _entity_record(world: World, entity: Entity) -> Optional[EntityRecord]:
    kind = entity_kind(world, entity)
    pos = world.get_component(entity, Position)
    if kind is None or pos is None:
        logger.warning("Entity %d has no variant or position, not saved", entity)
        return None

    record = EntityRecord(
        entity_type=kind,
        x=pos.x,
        y=pos.y,
        symbol=world.get_component(entity, Renderable).char,
        name=world.get_component(entity, Name).name,
        blocks_movement=world.get_component(entity, BlocksMovement) is not None,
        blocks_vision=world.get_component(entity, BlocksVision) is not None,
    )
    health = world.get_component(entity, Health)
    if health:
        record.health, record.max_health = health.current, health.max
    if kind == "Player":
        xp = world.get_component(entity, Experience)
        record.level, record.experience = xp.level, xp.current_xp
    elif kind == "Enemy":
        record.damage = world.get_component(entity, Enemy).damage
    elif kind == "Item":
        item = world.get_component(entity, Item)
        record.item_type, record.value = item.item_type, item.value
    elif kind == "Wall":
        record.wall_type = world.get_component(entity, Wall).wall_type
    elif kind == "Door":
        record.is_open = world.get_component(entity, Door).is_open
    return record

# --- Records -> World ---

def _restore_entity(world: World, record: EntityRecord) -> Entity:
    if not world.in_bounds(record.x, record.y):
        raise CorruptSaveError(f"{record.entity_type} at ({record.x}, {record.y}) is outside the world")

    kind = record.entity_type
    if kind == "Player":
        entity = create_player(world, record.x, record.y, health=record.health, max_health=record.max_health,
                               level=record.level, experience=record.experience)
    elif kind == "Enemy":
        entity = create_enemy(world, record.x, record.y, record.name, record.symbol,
                              health=record.max_health, damage=record.damage)
        world.get_component(entity, Health).current = record.health
    elif kind == "Item":
        entity = create_item(world, record.x, record.y, record.name, record.symbol, record.item_type, record.value)
    elif kind == "Wall":
        entity = create_wall(world, record.x, record.y, wall_type=record.wall_type)
    elif kind == "Door":
        # Symbol, name and blocking all follow from is_open
        return create_door(world, record.x, record.y, is_open=bool(record.is_open))
    else:
        raise CorruptSaveError(f"Unknown entity type {kind!r}")

    world.get_component(entity, Renderable).char = record.symbol
    world.get_component(entity, Name).name = record.name
    _set_marker(world, entity, BlocksMovement, record.blocks_movement)
    _set_marker(world, entity, BlocksVision, record.blocks_vision)
    return entity

def _set_marker(world: World, entity: Entity, marker, present: bool):
    if present:
        world.add_component(entity, marker())
    else:
        world.components.get(marker, {}).pop(entity, None)

def _build_world(record: WorldRecord, config: GameConfig) -> World:
    world = World(replace(config, grid_width=record.width, grid_height=record.height))
    install_turn_systems(world)
    world.world_id = record.id

    seen = set()
    for tile in record.tiles:
        if not world.in_bounds(tile.x, tile.y):
            raise CorruptSaveError(f"Tile ({tile.x}, {tile.y}) is outside a {record.width}x{record.height} world")
        if (tile.x, tile.y) in seen:
            raise CorruptSaveError(f"Tile ({tile.x}, {tile.y}) is stored twice")
        seen.add((tile.x, tile.y))
        world.set_tile(tile.x, tile.y, tile.symbol, tile.walkable, tile.tile_type)
    # Every cell needs its own row
    if len(seen) != record.width * record.height:
        missing = record.width * record.height - len(seen)
        raise CorruptSaveError(f"World {record.id} is missing {missing} tiles")

    for entity_record in record.entities:
        _restore_entity(world, entity_record)

    players = world.get_entities_with(Player)
    if len(players) != 1:
        raise CorruptSaveError(f"World {record.id} has {len(players)} players, expected exactly one")
    world.player_entity = players[0]
    return world

class SaveStore:
    """Saves, loads and lists worlds in a SQL database (SQLite by default)."""

    def __init__(self, url: str = GameConfig.database_url, config: Optional[GameConfig] = None, echo: bool = False):
        self.url = url
        self.config = config or GameConfig()
        try:
            self.engine = create_engine(url, echo=echo)
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Cannot open save database {url}: {e}") from e
        self._sessions = sessionmaker(bind=self.engine, expire_on_commit=False)
        logger.debug("Save database ready at %s", url)

    def save(self, world: World, name: str) -> int:
        """Writes the world and returns its id.

        Saving a world again into the store it came from overwrites its record.
        Into any other store it is written as a new save.
        """
        try:
            with self._sessions.begin() as session:
                record = None
                if world.world_id is not None and world.save_url == self.url:
                    record = session.get(WorldRecord, world.world_id)
                if record is None:
                    record = WorldRecord(name=name, width=world.width, height=world.height)
                    session.add(record)
                else:
                    record.tiles.clear()
                    record.entities.clear()
                    record.name = name
                    record.width, record.height = world.width, world.height
                record.last_saved_at = _utcnow()

                record.tiles.extend(_tile_records(world))
                entity_records = (_entity_record(world, e) for e in world.get_entities_with(Position))
                record.entities.extend(r for r in entity_records if r is not None)
                session.flush()
                world_id = record.id
        except SQLAlchemyError as e:
            logger.error("Saving world '%s' failed: %s", name, e)
            raise PersistenceError(f"Could not save world '{name}'") from e

        world.world_id, world.save_url = world_id, self.url
        logger.info("Saved world '%s' as id %d", name, world_id)
        return world_id

    def load(self, world_id: int, config: Optional[GameConfig] = None) -> Optional[World]:
        """Rebuilds a saved world, or returns None if there is no such save."""
        try:
            with self._sessions() as session:
                record = session.scalars(
                    select(WorldRecord)
                    .where(WorldRecord.id == world_id)
                    .options(selectinload(WorldRecord.tiles), selectinload(WorldRecord.entities))
                ).first()
                if record is None:
                    logger.info("No saved world with id %d", world_id)
                    return None
                world = _build_world(record, config or self.config)
                world.save_url = self.url
        except SQLAlchemyError as e:
            logger.error("Loading world %d failed: %s", world_id, e)
            raise PersistenceError(f"Could not load world {world_id}") from e

        logger.info("Loaded world %d (%d entities)", world_id, len(world.entities))
        return world

    def list_saves(self) -> List[SaveSummary]:
        try:
            with self._sessions() as session:
                rows = session.execute(
                    select(WorldRecord.id, WorldRecord.name, WorldRecord.last_saved_at).order_by(WorldRecord.id)
                ).all()
        except SQLAlchemyError as e:
            raise PersistenceError("Could not list saved worlds") from e
        return [SaveSummary(row.id, row.name, row.last_saved_at) for row in rows]

    def delete(self, world_id: int) -> bool:
        try:
            with self._sessions.begin() as session:
                record = session.get(WorldRecord, world_id)
                if record is None:
                    return False
                session.delete(record)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not delete world {world_id}") from e
        logger.info("Deleted world %d", world_id)
        return True

    def close(self):
        self.engine.dispose()

class SaveSystem(System):
    """Carries out save requests made from the keyboard."""
    def __init__(self, store: SaveStore):
        self.store = store

    def update(self, world: World):
        player = world.player_entity
        intent = world.get_component(player, WantsToSave)
        if not intent:
            return
        del world.components[WantsToSave][player]

        try:
            self.store.save(world, intent.name)
        except PersistenceError:
            logger.exception("Save requested in game failed")
            world.add_message("Save failed.")
            return
        world.add_message(f"Game saved as '{intent.name}'.")
