"""Configuration management for collectrr."""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from ..core.models import GroupAttribute, GroupBy
from ..core.paths import DEFAULT_VIDEO_EXTENSIONS

logger = logging.getLogger(__name__)

_GROUP_BY_NAMES = {
    "set": GroupBy.SET,
    "movie": GroupBy.MOVIE,
    "episode": GroupBy.EPISODE,
}


class GroupingConfig(BaseModel):
    """Which groupings to apply and how."""
    group_by: list[str] = Field(
        default_factory=lambda: ["set"],
        description="Any of: set, movie, episode",
    )
    ignore_single_set_items: bool = True
    base_directory: str = "videodb://movies/titles/"

    def group_by_flags(self) -> GroupBy:
        """Convert the configured mode names to a GroupBy flag."""
        flags = GroupBy.NONE
        for name in self.group_by:
            try:
                flags |= _GROUP_BY_NAMES[name.lower()]
            except KeyError:
                raise ValueError(f"Unknown grouping mode: {name!r}") from None
        return flags

    def attribute_flags(self) -> GroupAttribute:
        if self.ignore_single_set_items:
            return GroupAttribute.IGNORE_SINGLE_SET_ITEMS
        return GroupAttribute.NONE


class AddressConfig(BaseModel):
    """Library addresses used for aggregate items."""
    set_path_template: str = "videodb://movies/sets/{set_id}/"
    movie_titles_path: str = "videodb://movies/titles/"
    movie_id_option: str = Field(
        default="imdbid",
        description=(
            "Query option carrying the movie id. Kodi's videodb duplicate "
            "addresses spell it 'imbdid'; set that value to produce "
            "addresses Kodi parses."
        ),
    )
    episode_number_option: str = "tvepisodenumber"


class ContextMenuConfig(BaseModel):
    """Default context menu entry installed on aggregates."""
    set_label: str = "List All Members"
    duplicate_label: str = "List All Duplicates"
    window: str = "Videos"


class CollectrrConfig(BaseModel):
    """Main collectrr configuration."""
    grouping: GroupingConfig = Field(default_factory=GroupingConfig)
    addresses: AddressConfig = Field(default_factory=AddressConfig)
    context_menu: ContextMenuConfig = Field(default_factory=ContextMenuConfig)

    video_extensions: list[str] = Field(
        default_factory=lambda: sorted(DEFAULT_VIDEO_EXTENSIONS)
    )

    # Logging
    log_level: str = "INFO"
    log_file: str | None = None


class ConfigManager:
    """Manages configuration loading and saving."""

    DEFAULT_CONFIG_NAME = "collectrr.yaml"

    def __init__(self, config_path: Path | None = None):
        """Initialize config manager."""
        self.config_path = config_path or self._get_default_config_path()
        self._config: CollectrrConfig | None = None

    def load(self) -> CollectrrConfig:
        """Load configuration from file or create default."""
        if self.config_path.exists():
            try:
                with open(self.config_path, encoding="utf-8") as f:
                    data = yaml.safe_load(f) or {}
                self._config = CollectrrConfig(**data)
            except (yaml.YAMLError, ValidationError, TypeError) as e:
                logger.warning(f"Error loading config from {self.config_path}: {e}")
                logger.warning("Using default configuration")
                self._config = CollectrrConfig()
        else:
            logger.info(f"Config file not found at {self.config_path}, creating default")
            self._config = CollectrrConfig()
            self.save()

        return self._config

    def save(self, config: CollectrrConfig | None = None) -> None:
        """Save configuration to file."""
        config_to_save = config or self._config
        if config_to_save is None:
            raise ValueError("No configuration to save")

        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        data = config_to_save.model_dump()
        with open(self.config_path, "w", encoding="utf-8") as f:
            yaml.dump(data, f, default_flow_style=False, indent=2)

        logger.info(f"Configuration saved to {self.config_path}")

    def get_config(self) -> CollectrrConfig:
        """Get current configuration, loading if necessary."""
        if self._config is None:
            self.load()
        return self._config

    def update_config(self, **kwargs) -> None:
        """Update top-level configuration values and save."""
        if self._config is None:
            self.load()

        for key, value in kwargs.items():
            if hasattr(self._config, key):
                setattr(self._config, key, value)

        self.save()

    def _get_default_config_path(self) -> Path:
        """Get default configuration file path."""
        # Current directory first, then user config dir
        current_dir = Path.cwd() / self.DEFAULT_CONFIG_NAME
        if current_dir.exists():
            return current_dir

        config_dir = Path.home() / ".config" / "collectrr"
        return config_dir / self.DEFAULT_CONFIG_NAME


# Global config instance
config_manager = ConfigManager()


def load_config(config_path: Path | None = None) -> CollectrrConfig:
    """Load configuration from specific path."""
    if config_path:
        manager = ConfigManager(config_path)
        return manager.load()
    return config_manager.load()
