"""Saved viewer preferences.

A single JSON object under the platform config directory holds the Pygments
style, the tree panel width, and whether the tree starts visible. Reading
never fails: a missing or damaged file means defaults. Writing failures are
logged and otherwise ignored.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from platformdirs import user_config_dir

logger = logging.getLogger(__name__)

APP_NAME = "lazymd"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / "config.json"


def load_config() -> dict[str, object]:
    """Return the saved settings object, or ``{}`` when nothing usable is stored."""
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    if not isinstance(data, dict):
        return {}
    return data


def save_config(data: dict[str, object]) -> None:
    payload = json.dumps(data, indent=2, sort_keys=True) + "\n"
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(payload, encoding="utf-8")
    except OSError as exc:
        logger.debug("cannot write config %s: %s", CONFIG_PATH, exc)


def _update_config(key: str, value: object) -> None:
    data = load_config()
    data[key] = value
    save_config(data)


def load_style_name() -> str | None:
    value = load_config().get("style")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def load_tree_width() -> int | None:
    """Saved tree width; booleans and non-positive numbers count as unset."""
    value = load_config().get("tree_width")
    if isinstance(value, int) and not isinstance(value, bool) and value > 0:
        return value
    return None


def save_tree_width(width: int) -> None:
    if width > 0:
        _update_config("tree_width", int(width))


def load_show_tree() -> bool:
    value = load_config().get("show_tree")
    return value if isinstance(value, bool) else True


def save_show_tree(show_tree: bool) -> None:
    _update_config("show_tree", bool(show_tree))


__all__ = [
    "APP_NAME",
    "CONFIG_PATH",
    "load_config",
    "load_show_tree",
    "load_style_name",
    "load_tree_width",
    "save_config",
    "save_show_tree",
    "save_tree_width",
]
