import logging
import os
import yaml
from dataclasses import dataclass, field, asdict
from typing import List

from .errors import ConfigError

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), "config.yaml")

def config_path(path: str = None) -> str:
    return path or os.environ.get("IPSETCTL_CONFIG") or DEFAULT_CONFIG_PATH

def check_level(level: str) -> str:
    name = str(level).upper()
    if not isinstance(logging.getLevelName(name), int):
        raise ConfigError(f"Unknown log level: {level}")
    return name

@dataclass
class Settings:
    binary: str = "ipset"
    options: List[str] = field(default_factory=list)
    log_level: str = "INFO"

def load_config(path: str = None) -> Settings:
    p = config_path(path)
    if not os.path.exists(p):
        return Settings()
    try:
        with open(p, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to read configuration {p}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration {p} must be a mapping")
    options = data.get("options") or []
    if not isinstance(options, list):
        raise ConfigError(f"Configuration {p}: options must be a list")
    return Settings(
        binary=str(data.get("binary") or "ipset"),
        options=[str(o) for o in options],
        log_level=check_level(data.get("log_level") or "INFO"),
    )

def save_config(settings: Settings, path: str = None) -> None:
    p = config_path(path)
    with open(p, "w", encoding="utf-8") as f:
        yaml.safe_dump(asdict(settings), f, allow_unicode=True, sort_keys=False)
