"""Runtime configuration: .env, an optional JSON file, then environment overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import orjson
import structlog
from dotenv import load_dotenv

from .core.catalog import DEFAULT_CATALOG_PATH
from .core.store import DEFAULT_TTL_DAYS

LOGGER = structlog.get_logger(__name__)

DEFAULT_CONFIG_PATH = Path("config/config.local.json")
DEFAULT_ASSETS_DIR = Path("assets")
DEFAULT_STATE_DIR = Path.home() / ".truthdare"

ENV_VARS = {
    "assets_dir": "TRUTHDARE_ASSETS_DIR",
    "state_dir": "TRUTHDARE_STATE_DIR",
    "catalog_path": "TRUTHDARE_CATALOG",
    "seed": "TRUTHDARE_SEED",
    "session_ttl_days": "TRUTHDARE_SESSION_TTL_DAYS",
}


@dataclass
class AppConfig:
    """Where content comes from and where the game is saved."""

    assets_dir: Path = DEFAULT_ASSETS_DIR
    state_dir: Path = DEFAULT_STATE_DIR
    catalog_path: str = DEFAULT_CATALOG_PATH
    session_ttl_days: float = DEFAULT_TTL_DAYS
    seed: Optional[int] = None


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


def _number(data: Dict[str, Any], origins: Dict[str, str], key: str, convert: Callable[[Any], Any], default: Any) -> Any:
    value = data.get(key, default)
    try:
        return convert(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{origins.get(key, key)} must be a number, got {value!r}") from exc


def load_config(path: Path = DEFAULT_CONFIG_PATH, *, env: Optional[Dict[str, str]] = None) -> AppConfig:
    """Build an :class:`AppConfig`.

    Values are layered: defaults, then the JSON file at ``path`` when it
    exists, then ``TRUTHDARE_*`` environment variables.
    """
    if env is None:
        load_dotenv()
        env = dict(os.environ)

    data: Dict[str, Any] = {}
    if path.exists():
        try:
            loaded = orjson.loads(path.read_bytes())
        except orjson.JSONDecodeError as exc:
            raise ValueError(f"Config file {path} is not valid JSON") from exc
        if not isinstance(loaded, dict):
            raise ValueError(f"Config file {path} must contain a JSON object")
        data = loaded
    origins = {key: f"{key} in {path}" for key in data}

    overrides = {key: env.get(name) for key, name in ENV_VARS.items()}
    for key, value in overrides.items():
        if value not in (None, ""):
            data[key] = value
            origins[key] = ENV_VARS[key]

    config = AppConfig(
        assets_dir=Path(data.get("assets_dir", DEFAULT_ASSETS_DIR)).expanduser(),
        state_dir=Path(data.get("state_dir", DEFAULT_STATE_DIR)).expanduser(),
        catalog_path=str(data.get("catalog_path", DEFAULT_CATALOG_PATH)),
        session_ttl_days=_number(data, origins, "session_ttl_days", float, DEFAULT_TTL_DAYS),
        seed=_number(data, origins, "seed", _optional_int, None),
    )
    LOGGER.debug("config.loaded", path=str(path), assets=str(config.assets_dir), state=str(config.state_dir))
    return config
