"""Preferences manager for secret-courier.

Persists operator preferences (currently only the config file path) in the
XDG Base Directory location ~/.config/secret-courier/preferences.json
"""
import json
from pathlib import Path
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

PREFERENCES_DIR = Path.home() / ".config" / "secret-courier"
PREFERENCES_FILE = PREFERENCES_DIR / "preferences.json"


def _load_preferences() -> Dict[str, Any]:
    """Return stored preferences, or an empty dict if the file is absent or unreadable."""
    if not PREFERENCES_FILE.exists():
        return {}

    try:
        with open(PREFERENCES_FILE, 'r') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Failed to read preferences file {PREFERENCES_FILE}: {e}")
        return {}

    if not isinstance(data, dict):
        logger.error(f"Ignoring preferences file {PREFERENCES_FILE}: expected a JSON object")
        return {}
    return data


def _save_preferences(preferences: Dict[str, Any]) -> None:
    PREFERENCES_DIR.mkdir(parents=True, exist_ok=True)
    with open(PREFERENCES_FILE, 'w') as f:
        json.dump(preferences, f, indent=2)


def get_preference(key: str) -> Optional[str]:
    return _load_preferences().get(key)


def set_preference(key: str, value: str) -> None:
    preferences = _load_preferences()
    preferences[key] = value
    _save_preferences(preferences)
    logger.info(f"Preference '{key}' set to: {value}")


def clear_preference(key: str) -> None:
    """Remove a preference; clearing an unset key is a no-op."""
    preferences = _load_preferences()
    if key not in preferences:
        logger.debug(f"Preference '{key}' not found, nothing to clear")
        return
    del preferences[key]
    _save_preferences(preferences)
    logger.info(f"Preference '{key}' cleared")
