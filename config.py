import logging
import os
from dataclasses import dataclass, replace

@dataclass
class GameConfig:
    grid_width: int = 80
    grid_height: int = 40
    view_width: int = 40
    view_height: int = 20
    cell_size: int = 18
    info_panel_height: int = 140
    fps: int = 30
    message_log_capacity: int = 5
    attack_damage: int = 20
    xp_per_kill: int = 10
    database_url: str = "sqlite:///roguelike.db"
    log_level: str = "INFO"

    @property
    def screen_width(self) -> int:
        return self.view_width * self.cell_size

    @property
    def screen_height(self) -> int:
        return self.view_height * self.cell_size + self.info_panel_height

    @classmethod
    def from_env(cls) -> "GameConfig":
        """Defaults overridden by DUNGEON_* environment variables."""
        config = cls()
        overrides = {}
        if os.getenv("DUNGEON_DB_URL"):
            overrides["database_url"] = os.environ["DUNGEON_DB_URL"]
        if os.getenv("DUNGEON_LOG_LEVEL"):
            overrides["log_level"] = os.environ["DUNGEON_LOG_LEVEL"].upper()
        if os.getenv("DUNGEON_GRID_WIDTH"):
            overrides["grid_width"] = int(os.environ["DUNGEON_GRID_WIDTH"])
        if os.getenv("DUNGEON_GRID_HEIGHT"):
            overrides["grid_height"] = int(os.environ["DUNGEON_GRID_HEIGHT"])
        return replace(config, **overrides)

def configure_logging(level_name: str = "INFO") -> None:
    """Configure the root logger with the project-wide format."""
    level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )
