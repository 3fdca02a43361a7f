"""
Configuration for repoaudit runs.

Supports YAML and JSON configuration files for choosing which probes run,
how many run concurrently, and where maintainer exemptions live.
"""

import json
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


# Default configuration file names to search for
CONFIG_FILE_NAMES = [
    ".repoaudit.yml",
    ".repoaudit.yaml",
    ".repoaudit.json",
]

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class RunnerConfig:
    """
    Configuration for the probe runner.

    Example YAML config:

    ```yaml
    runner:
      max_workers: 4
      checks:
        - Dangerous-Workflow
      probes: []
    log_level: info
    exemptions_file: .repoaudit-exemptions.yml
    ```
    """
    max_workers: int = 4
    # Probe identifiers to run. Empty means all registered probes.
    probes: List[str] = field(default_factory=list)
    # Restrict the run to the probes of these checks.
    checks: List[str] = field(default_factory=list)
    # Level of the repoaudit logger, applied when a runner is built with this config.
    log_level: str = "INFO"
    exemptions_file: Optional[str] = None

    def __post_init__(self):
        self.log_level = str(self.log_level).upper()
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level}")
        if int(self.max_workers) < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        self.max_workers = int(self.max_workers)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to a dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunnerConfig":
        """Create config from a dictionary."""
        data = dict(data)

        # Handle nested 'runner' section
        if isinstance(data.get("runner"), dict):
            data.update(data.pop("runner"))

        # Map some common alternative names
        if "workers" in data:
            data["max_workers"] = data.pop("workers")
        if "exemptions" in data:
            data["exemptions_file"] = data.pop("exemptions")

        # Filter to only known fields
        known_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered_data = {k: v for k, v in data.items() if k in known_fields}

        return cls(**filtered_data)


def load_config(path: str) -> Dict[str, Any]:
    """
    Load configuration from a file.

    Supports YAML and JSON formats.
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    content = path.read_text(encoding="utf-8")

    if path.suffix == ".json":
        data = json.loads(content)
    else:
        # YAML is a superset of JSON, so unknown suffixes go through it too.
        data = yaml.safe_load(content)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration in {path} must be a mapping")
    return data


def find_config(start_path: str = ".") -> Optional[str]:
    """
    Find a configuration file by searching up the directory tree.

    Returns the path to the first config file found, or None.
    """
    current = Path(start_path).resolve()

    while True:
        for name in CONFIG_FILE_NAMES:
            config_path = current / name
            if config_path.is_file():
                return str(config_path)
        if current == current.parent:
            return None
        current = current.parent


def load_runner_config(path: Optional[str] = None, start_dir: str = ".") -> RunnerConfig:
    """
    Load a RunnerConfig from a file or create a default one.

    If path is None, searches for a config file starting from start_dir.
    """
    if path is None:
        path = find_config(start_dir)

    if path is None:
        return RunnerConfig()

    return RunnerConfig.from_dict(load_config(path))
