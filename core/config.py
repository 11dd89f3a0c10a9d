# core/config.py — app settings loader + helpers

import json, os
from dataclasses import dataclass
from typing import Any, Dict

APP_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
CONFIG_PATH = os.path.join(APP_DIR, "config", "app.json")

LAYOUTS = ("grid", "split")
SORT_KEYS = ("title", "created_at")

DEFAULTS: Dict[str, Any] = {
    "version": "1.0.0",
    "window_title": "Inventions",
    "layout": "grid",
    "sort_key": "title",
    "search_links": True,
    "edit_on_add": True,
    "new_title": "New invention",
    "untitled_placeholder": "Untitled",
    "grid_min_column_width": 260,
    "grid_spacing": 16,
    "title_lines": 2,
    "details_preview_lines": 4,
}

# ---------- simple in-process cache ----------
_SETTINGS_CACHE = None
_SETTINGS_MTIME = None


@dataclass
class Settings:
    raw: Dict[str, Any]

    def _get(self, key: str):
        return self.raw.get(key, DEFAULTS[key])

    @property
    def version(self) -> str:
        return str(self._get("version"))

    @property
    def window_title(self) -> str:
        return str(self._get("window_title"))

    @property
    def layout(self) -> str:
        v = self._get("layout")
        if v not in LAYOUTS:
            raise ValueError(f"Unknown layout '{v}' in config (expected one of {LAYOUTS})")
        return v

    @property
    def sort_key(self) -> str:
        v = self._get("sort_key")
        if v not in SORT_KEYS:
            raise ValueError(f"Unknown sort_key '{v}' in config (expected one of {SORT_KEYS})")
        return v

    @property
    def search_links(self) -> bool:
        return bool(self._get("search_links"))

    @property
    def edit_on_add(self) -> bool:
        return bool(self._get("edit_on_add"))

    @property
    def new_title(self) -> str:
        return str(self._get("new_title"))

    @property
    def untitled_placeholder(self) -> str:
        return str(self._get("untitled_placeholder"))

    @property
    def grid_min_column_width(self) -> int:
        return max(1, int(self._get("grid_min_column_width")))

    @property
    def grid_spacing(self) -> int:
        return max(0, int(self._get("grid_spacing")))

    @property
    def title_lines(self) -> int:
        return max(1, int(self._get("title_lines")))

    @property
    def details_preview_lines(self) -> int:
        return max(0, int(self._get("details_preview_lines")))


def _read_settings_from_disk(path: str) -> Settings:
    if not os.path.exists(path):
        return Settings({})
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Config at {path} must be a JSON object")
    return Settings(data)


def load_settings(path: str = CONFIG_PATH) -> Settings:
    global _SETTINGS_CACHE, _SETTINGS_MTIME
    try:
        mtime = (path, os.path.getmtime(path))
    except OSError:
        mtime = (path, None)

    if _SETTINGS_CACHE is None or _SETTINGS_MTIME != mtime:
        _SETTINGS_CACHE = _read_settings_from_disk(path)
        _SETTINGS_MTIME = mtime
    return _SETTINGS_CACHE


def reload_settings(path: str = CONFIG_PATH) -> Settings:
    """
    Force cache invalidation + re-read from disk.
    """
    global _SETTINGS_CACHE, _SETTINGS_MTIME
    _SETTINGS_CACHE = None
    _SETTINGS_MTIME = None
    return load_settings(path)
