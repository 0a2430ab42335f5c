"""
Engine Configuration

Replay window and match-clock constants, loaded from YAML with
built-in defaults.
"""

from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from loguru import logger


DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "engine.yaml"


@dataclass
class EngineConfig:
    """Aggregation engine configuration."""
    window_seconds: int = 7200
    half_time_minute: int = 45
    stoppage_offset_minutes: int = 15
    goal_marker: str = "goal"

    def __post_init__(self):
        if self.window_seconds < 0:
            raise ValueError(f"window_seconds must be non-negative, got {self.window_seconds}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineConfig":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        unknown = set(data) - set(known)
        if unknown:
            logger.warning(f"Ignoring unknown engine config keys: {sorted(unknown)}")
        return cls(**known)

    def to_dict(self) -> Dict:
        return asdict(self)


def _default_config() -> Dict:
    """Return default configuration."""
    return EngineConfig().to_dict()


def load_engine_config(config_path: Optional[Union[str, Path]] = None) -> EngineConfig:
    """
    Load engine configuration from a YAML file.

    Args:
        config_path: Path to config file (defaults to config/engine.yaml)

    Returns:
        EngineConfig, with defaults for anything the file leaves out
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
    config_path = Path(config_path)

    if not config_path.exists():
        logger.warning(f"Config not found: {config_path}, using defaults")
        return EngineConfig.from_dict(_default_config())

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    # Allow the engine settings to sit under a top-level "engine" key
    if "engine" in data and isinstance(data["engine"], dict):
        data = data["engine"]

    config = _default_config()
    config.update(data)
    return EngineConfig.from_dict(config)
