# norgdo: configuration
# Override paths and behavior via config.yaml, environment, or CLI args.

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

CONFIG_PATH = Path.home() / ".config" / "norgdo" / "config.yaml"


@dataclass
class Config:
    """Runtime configuration for norgdo."""

    # Where task files live
    data_dir: str = "~/.local/share/norgdo"
    extension: str = ".norg"

    # Parsing: reject items nested more than one level deeper than the
    # previous item instead of clamping them
    strict_nesting: bool = False

    # Saving: write to a .tmp sibling and rename over the task file
    atomic_writes: bool = True

    # Behavior
    log_level: str = "WARNING"
    watch_debounce_ms: int = 500

    def resolve_paths(self):
        """Expand ~ and apply environment overrides."""
        env_dir = os.environ.get("NORGDO_DATA_DIR")
        if env_dir:
            self.data_dir = env_dir
        self.data_dir = str(Path(self.data_dir).expanduser())
        if not self.extension.startswith("."):
            self.extension = f".{self.extension}"

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Config":
        """Load config from YAML file, falling back to defaults."""
        env_path = os.environ.get("NORGDO_CONFIG")
        cfg_path = Path(path or env_path).expanduser() if (path or env_path) else CONFIG_PATH
        if cfg_path.exists():
            try:
                with open(cfg_path, "r") as f:
                    data = yaml.safe_load(f) or {}
                if not isinstance(data, dict):
                    raise TypeError(f"expected a mapping, got {type(data).__name__}")
                cfg = cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})
            except (OSError, yaml.YAMLError, TypeError) as e:
                logger.warning(f"Ignoring unreadable config {cfg_path}: {e}")
                cfg = cls()
        else:
            cfg = cls()
        cfg.resolve_paths()
        return cfg
