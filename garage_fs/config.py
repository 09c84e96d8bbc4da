"""
Configuration management for garage-fs.

Resolution (highest → lowest):
  1. Explicit overrides (CLI flags)
  2. Environment (GARAGE_* variables, .env loaded via python-dotenv)
  3. ~/.config/garage-fs/config.json
  4. StoreConfig defaults
"""

import fcntl
import json
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

log = logging.getLogger(__name__)


@dataclass
class StoreConfig:
    """Connection settings for the Garage blob store."""
    default_host: str = "localhost"
    default_port: int = 3900
    bucket: str = "garage-fs"
    region: str = "garage"
    key_prefix: str = "filesystem/"
    use_ssl: bool = False
    access_key: str = ""
    secret_key: str = ""
    connect_timeout: float = 5.0
    read_timeout: float = 30.0
    max_attempts: int = 3
    ensure_bucket: bool = True


# Environment variable -> StoreConfig field
ENV_VARS = {
    "GARAGE_FS_HOST": "default_host",
    "GARAGE_FS_PORT": "default_port",
    "GARAGE_BUCKET": "bucket",
    "GARAGE_REGION": "region",
    "GARAGE_FS_PREFIX": "key_prefix",
    "GARAGE_FS_USE_SSL": "use_ssl",
    "GARAGE_ACCESS_KEY_ID": "access_key",
    "GARAGE_SECRET_ACCESS_KEY": "secret_key",
}


# --- Path helpers ---

def get_config_dir() -> Path:
    """Get garage-fs config directory (~/.config/garage-fs/)."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))
    return Path(xdg_config) / "garage-fs"

def get_config_path() -> Path:
    return get_config_dir() / "config.json"


# --- Reading ---

def read_config_file(path: Optional[Path] = None) -> Optional[dict]:
    """Read config.json under a shared lock. Returns None if missing or unreadable."""
    path = path or get_config_path()
    if not path.exists():
        return None
    try:
        with open(path, "r") as f:
            fcntl.flock(f, fcntl.LOCK_SH)
            try:
                data = json.load(f)
            finally:
                fcntl.flock(f, fcntl.LOCK_UN)
    except (json.JSONDecodeError, OSError) as e:
        log.warning(f"Could not read config at {path}: {e}")
        return None
    if not isinstance(data, dict):
        log.warning(f"Ignoring config at {path}: expected a JSON object")
        return None
    return data


def _coerce(name: str, value: Any) -> Any:
    """Convert a raw env/JSON value to the type of the StoreConfig field."""
    default = getattr(StoreConfig, name)
    if isinstance(default, bool):
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)
    if isinstance(default, int):
        return int(value)
    if isinstance(default, float):
        return float(value)
    return str(value)


def _apply(config: StoreConfig, values: dict, source: str) -> None:
    known = {f.name for f in fields(StoreConfig)}
    for name, value in values.items():
        if name not in known:
            log.warning(f"Ignoring unknown setting '{name}' from {source}")
            continue
        if value is None:
            continue
        try:
            setattr(config, name, _coerce(name, value))
        except (TypeError, ValueError) as e:
            log.warning(f"Ignoring invalid value for '{name}' from {source}: {e}")


def load_config(
    overrides: Optional[dict] = None,
    config_path: Optional[Path] = None,
    use_dotenv: bool = True,
) -> StoreConfig:
    """Load StoreConfig from file, environment and explicit overrides."""
    if use_dotenv:
        load_dotenv()

    config = StoreConfig()

    file_data = read_config_file(config_path)
    if file_data:
        _apply(config, file_data, str(config_path or get_config_path()))

    env_values = {
        field_name: os.environ[var]
        for var, field_name in ENV_VARS.items()
        if os.environ.get(var)
    }
    _apply(config, env_values, "environment")

    if overrides:
        _apply(config, overrides, "overrides")

    return config
