import logging
import os
from typing import Any, Dict

from dotenv import find_dotenv, load_dotenv


STORAGE_BACKENDS = ("json", "sql")

DEFAULTS = {
    "storage": "json",
    "json_path": os.path.join("data", "goals.json"),
    "database_url": "sqlite:///data/goals.db",
    "log_level": "INFO",
    "card_height": 130.0,
}


def load_config() -> Dict[str, Any]:
    """Load the configuration from environment variables (and .env if present)"""
    load_dotenv(find_dotenv(usecwd=True))

    storage = os.getenv("GOALS_STORAGE", DEFAULTS["storage"]).lower()
    if storage not in STORAGE_BACKENDS:
        raise ValueError(f"GOALS_STORAGE must be one of {', '.join(STORAGE_BACKENDS)}, got '{storage}'")

    log_level = os.getenv("GOALS_LOG_LEVEL", DEFAULTS["log_level"]).upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ValueError(f"GOALS_LOG_LEVEL '{log_level}' is not a logging level")

    card_height_raw = os.getenv("GOALS_CARD_HEIGHT")
    try:
        card_height = float(card_height_raw) if card_height_raw else DEFAULTS["card_height"]
    except ValueError:
        raise ValueError(f"GOALS_CARD_HEIGHT must be a number, got '{card_height_raw}'")
    if card_height <= 0:
        raise ValueError("GOALS_CARD_HEIGHT must be positive")

    return {
        "storage": storage,
        "json_path": os.getenv("GOALS_JSON_PATH", DEFAULTS["json_path"]),
        "database_url": os.getenv("GOALS_DATABASE_URL", DEFAULTS["database_url"]),
        "log_level": log_level,
        "card_height": card_height,
    }
