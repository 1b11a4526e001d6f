"""
Configuration for classuniq.

Settings come from built-in defaults merged with an optional YAML or JSON
file, found by walking up from the working directory or passed explicitly.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .core.scanner import DEFAULT_CHUNK_SIZE

CONFIG_FILE_NAMES = [".classuniq.yml", ".classuniq.yaml", "classuniq.yml", "classuniq.yaml"]


class Config:
    """Configuration manager with dot-separated key access."""

    DEFAULT_CONFIG: Dict[str, Any] = {
        "analysis": {
            "max_workers": 1,  # 1 = sequential scan
            "chunk_size": DEFAULT_CHUNK_SIZE,
        },
        "report": {
            "format": "text",  # Options: text, json
            "fail_on_identical": False,
            "max_classes_shown": 10,
        },
        "logging": {
            "level": "WARNING",
            "file": False,
            "log_dir": None,
        },
    }

    def __init__(self, config_dict: Optional[Dict] = None):
        """Initialize with optional config dictionary."""
        self.config = self._merge_configs(self.DEFAULT_CONFIG, config_dict or {})
        self.validate()

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Config":
        """Load configuration from a file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, "r") as f:
            if path.suffix in [".yaml", ".yml"]:
                data = yaml.safe_load(f) or {}
            elif path.suffix == ".json":
                data = json.load(f)
            else:
                raise ValueError(f"Unsupported config format: {path.suffix}")

        return cls(data)

    @classmethod
    def find_and_load(cls, start_path: Optional[Path] = None) -> "Config":
        """Find and load configuration from standard locations."""
        current = Path(start_path or Path.cwd()).resolve()

        while True:
            for name in CONFIG_FILE_NAMES:
                config_path = current / name
                if config_path.exists():
                    return cls.from_file(config_path)
            if current == current.parent:
                break
            current = current.parent

        return cls()

    def validate(self) -> None:
        """Validate configuration values."""
        workers = self.get("analysis.max_workers")
        if workers == "auto":
            self.set("analysis.max_workers", os.cpu_count() or 4)
        elif not isinstance(workers, int) or workers < 1:
            raise ValueError(f"analysis.max_workers must be a positive integer or 'auto', got {workers!r}")

        chunk_size = self.get("analysis.chunk_size")
        if not isinstance(chunk_size, int) or chunk_size <= 0:
            raise ValueError(f"analysis.chunk_size must be positive, got {chunk_size!r}")

        report_format = self.get("report.format")
        if report_format not in ("text", "json"):
            raise ValueError(f"report.format must be 'text' or 'json', got {report_format!r}")

    def get(self, key: str, default=None):
        """Get configuration value by dot-separated key."""
        keys = key.split(".")
        value = self.config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    def set(self, key: str, value):
        """Set configuration value by dot-separated key."""
        keys = key.split(".")
        config = self.config

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    def to_dict(self) -> Dict:
        """Convert to dictionary."""
        return self.config.copy()

    def _merge_configs(self, base: Dict, override: Dict) -> Dict:
        """Recursively merge configuration dictionaries."""
        result = {k: (v.copy() if isinstance(v, dict) else v) for k, v in base.items()}

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result
