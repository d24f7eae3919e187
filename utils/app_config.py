"""Pre-DB bootstrap configuration. Zero imports from the rest of the app
apart from constants.

Stores user preferences that must be known before opening the DB (db_folder,
the reference time zone, the log level). Config lives in
~/.expense_tracker/config.json to avoid a bootstrapping problem.
"""
import json
import logging
import os
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from utils.constants import DEFAULT_TIME_ZONE

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".expense_tracker"
CONFIG_FILE = CONFIG_DIR / "config.json"


def load_config(path: Path | None = None) -> dict:
    """Returns {} on a missing or corrupt file; never raises."""
    try:
        with open(path or CONFIG_FILE, "r", encoding="utf-8") as f:
            config = json.load(f)
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable config %s: %s", path or CONFIG_FILE, e)
        return {}
    return config if isinstance(config, dict) else {}


def save_config(config: dict, path: Path | None = None) -> None:
    """Creates the config folder if needed; atomic write via .tmp + os.replace()."""
    target = path or CONFIG_FILE
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = target.with_suffix(".tmp")
    try:
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)
        os.replace(tmp, target)
    except OSError as e:
        logger.error("Could not save config %s: %s", target, e)
        tmp.unlink(missing_ok=True)


def get_db_folder(config: dict | None = None) -> str | None:
    """Return config["db_folder"] or None if not set."""
    return (load_config() if config is None else config).get("db_folder")


def get_time_zone(config: dict | None = None) -> ZoneInfo:
    """The reference zone for day boundaries. Unknown names fall back to UTC."""
    name = (load_config() if config is None else config).get("time_zone") or DEFAULT_TIME_ZONE
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, TypeError):
        logger.warning("Unknown time zone %r in config, using %s", name, DEFAULT_TIME_ZONE)
        return ZoneInfo(DEFAULT_TIME_ZONE)


def get_log_level(config: dict | None = None) -> str:
    return str((load_config() if config is None else config).get("log_level", "INFO")).upper()
