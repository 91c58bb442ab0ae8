"""
Configuration module for waterflow.

This module provides configuration management for the waterflow library,
including data/output paths, solver defaults and logging.

Configuration can be set via:
1. Environment variables (WATERFLOW_*)
2. Config file (./waterflow.toml or ~/.waterflow/config.toml)
3. Programmatic API

Example:
    >>> from waterflow.config import config
    >>> print(config.data_path)
    /path/to/data
    >>> config.default_strategy = "dfs"
"""

import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


def _get_default_data_path() -> Path:
    """Get the default data path."""
    env_path = os.environ.get('WATERFLOW_DATA_PATH')
    if env_path:
        return Path(env_path)

    return _get_project_root() / "data"


def _get_default_output_path() -> Path:
    """Get the default directory for exported tables."""
    env_path = os.environ.get('WATERFLOW_OUTPUT_PATH')
    if env_path:
        return Path(env_path)

    return Path("output")


@dataclass
class WaterFlowConfig:
    """
    Configuration for the waterflow library.

    Attributes:
        data_path: Root directory holding network datasets
        output_path: Directory where exported tables are written
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        default_strategy: Path search used when none is given ("bfs" or "dfs")
        max_iterations: Augmentation budget per solve (0 = unlimited)
        max_time: Wall-clock budget per solve in seconds (0 = unlimited)
    """

    # Paths
    data_path: Path = field(default_factory=_get_default_data_path)
    output_path: Path = field(default_factory=_get_default_output_path)

    # Logging
    log_level: str = "INFO"

    # Solver settings
    default_strategy: str = "bfs"
    max_iterations: int = 0
    max_time: float = 0.0

    def __post_init__(self):
        """Ensure paths are Path objects."""
        if isinstance(self.data_path, str):
            self.data_path = Path(self.data_path)
        if isinstance(self.output_path, str):
            self.output_path = Path(self.output_path)

    # =========================================================================
    # Path helpers
    # =========================================================================

    def get_dataset_path(self, dataset: str) -> Path:
        """
        Get path to a dataset directory.

        Args:
            dataset: Dataset name (e.g., "sample")

        Returns:
            Path to the dataset directory
        """
        return self.data_path / dataset

    def get_output_file(self, name: str) -> Path:
        """Path of an export file inside the output directory."""
        return self.output_path / name

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "data_path": str(self.data_path),
            "output_path": str(self.output_path),
            "log_level": self.log_level,
            "default_strategy": self.default_strategy,
            "max_iterations": self.max_iterations,
            "max_time": self.max_time,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> 'WaterFlowConfig':
        """Create config from dictionary."""
        return cls(
            data_path=Path(d.get("data_path", _get_default_data_path())),
            output_path=Path(d.get("output_path", _get_default_output_path())),
            log_level=d.get("log_level", "INFO"),
            default_strategy=d.get("default_strategy", "bfs"),
            max_iterations=int(d.get("max_iterations", 0)),
            max_time=float(d.get("max_time", 0.0)),
        )

    def save(self, path: Optional[Path] = None) -> None:
        """
        Save configuration to a TOML file.

        Args:
            path: Path to save to (default: ./waterflow.toml)
        """
        if path is None:
            path = Path("waterflow.toml")

        # Simple TOML-like format (no dependency needed)
        lines = [
            "# waterflow configuration",
            "",
            "[paths]",
            f'data_path = "{self.data_path}"',
            f'output_path = "{self.output_path}"',
            "",
            "[general]",
            f'log_level = "{self.log_level}"',
            "",
            "[solver]",
            f'default_strategy = "{self.default_strategy}"',
            f"max_iterations = {self.max_iterations}",
            f"max_time = {self.max_time}",
        ]

        Path(path).write_text("\n".join(lines) + "\n")

    @classmethod
    def load(cls, path: Optional[Path] = None) -> 'WaterFlowConfig':
        """
        Load configuration from a TOML file.

        Args:
            path: Path to load from (default: ./waterflow.toml or ~/.waterflow/config.toml)

        Returns:
            Loaded configuration (or default if file not found)
        """
        if path is None:
            local_config = Path("waterflow.toml")
            user_config = Path.home() / ".waterflow" / "config.toml"

            if local_config.exists():
                path = local_config
            elif user_config.exists():
                path = user_config
            else:
                return cls()

        path = Path(path)
        if not path.exists():
            return cls()

        # Sections only group keys; every key lives at the top level
        config_dict: dict[str, Any] = {}

        for line in path.read_text().splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if line.startswith("[") and line.endswith("]"):
                continue

            if "=" in line:
                key, value = line.split("=", 1)
                config_dict[key.strip()] = value.strip().strip('"')

        return cls.from_dict(config_dict)


# Global configuration instance
config = WaterFlowConfig()


def set_data_path(path: Union[str, Path]) -> None:
    """
    Set the data path globally.

    Args:
        path: New data path
    """
    config.data_path = Path(path)


def get_data_path() -> Path:
    """Get the current data path."""
    return config.data_path


def get_dataset_path(dataset: str) -> Path:
    """Get path to a dataset directory under the data path."""
    return config.get_dataset_path(dataset)


def configure_logging(
    level: Optional[str] = None,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Configure logging to the console and, optionally, a file.

    Args:
        level: Level name; defaults to ``config.log_level``
        log_file: Extra file to mirror log records into

    Returns:
        The package logger
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='w'))

    logging.basicConfig(
        level=getattr(logging, (level or config.log_level).upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=handlers,
        force=True,
    )
    return logging.getLogger("waterflow")
