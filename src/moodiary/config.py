"""Configuration management for moodiary."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

_DEFAULT_CONFIG_DIR = Path.home() / ".config" / "moodiary"

_DEFAULT_DATA_DIR = Path.home() / ".local" / "share" / "moodiary"


@dataclass
class Config:
    store_file: Path = field(default_factory=lambda: _DEFAULT_DATA_DIR / "diary.json")
    user_id: str = "me"
    default_mode: str = "7d"  # 7d or 30d
    verbose: bool = False

    @classmethod
    def load(cls, overrides: dict | None = None, config_path: Path | None = None) -> Config:
        """Load config from TOML file, then apply CLI overrides."""
        config = cls()

        # Try loading from config file
        config_path = config_path or _DEFAULT_CONFIG_DIR / "config.toml"
        if config_path.exists():
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
            config = cls._apply_dict(config, data)

        # Apply CLI overrides
        if overrides:
            config = cls._apply_dict(config, overrides)

        return config

    @classmethod
    def _apply_dict(cls, config: Config, data: dict) -> Config:
        if "store_file" in data:
            config.store_file = Path(data["store_file"]).expanduser()
        if "user_id" in data:
            config.user_id = str(data["user_id"])
        if "default_mode" in data:
            config.default_mode = str(data["default_mode"])
        if "verbose" in data:
            config.verbose = bool(data["verbose"])
        return config
