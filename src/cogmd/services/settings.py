"""Settings dataclass and persistence helpers."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping

from ..ui.view_mode import DEFAULT_LAYOUT, DEFAULT_RIGHT_PANE, migrate_legacy_view_mode, normalize_view

__all__ = [
    "MAX_RECENT_FILES",
    "Settings",
    "SettingsStore",
    "default_data_dir",
    "remember_recent_file",
]

LOGGER = logging.getLogger(__name__)
_SETTINGS_DIR = Path.home() / ".cogmd"
_DEFAULT_SETTINGS_PATH = _SETTINGS_DIR / "settings.json"
_SETTINGS_VERSION = 1
_LEGACY_VIEW_MODE_FIELD = "view_mode"
MAX_RECENT_FILES = 10
_ENV_OVERRIDES: Mapping[str, str] = {
    "COGMD_LAYOUT": "layout",
    "COGMD_RIGHT_PANE": "right_pane",
}
_BOOL_ENV_OVERRIDES: Mapping[str, str] = {
    "COGMD_DEBUG_LOGGING": "debug_logging",
}
_FLOAT_ENV_OVERRIDES: Mapping[str, str] = {
    "COGMD_SESSION_SAVE_DELAY": "session_save_delay",
}
_INT_ENV_OVERRIDES: Mapping[str, str] = {
    "COGMD_CONTEXT_LINES": "context_lines",
    "COGMD_RENDER_DEBOUNCE_MS": "render_debounce_ms",
    "COGMD_LARGE_FILE_THRESHOLD": "large_file_threshold",
    "COGMD_MAX_CACHED_TAB_STATES": "max_cached_tab_states",
}
_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}


def default_data_dir() -> Path:
    """Directory holding settings, session databases and logs."""

    return _SETTINGS_DIR


@dataclass(slots=True)
class Settings:
    """User-configurable settings persisted between sessions."""

    layout: str = DEFAULT_LAYOUT
    right_pane: str = DEFAULT_RIGHT_PANE
    context_lines: int = 3
    render_debounce_ms: int = 80
    session_save_delay: float = 2.0
    large_file_threshold: int = 200 * 1024
    diff_cost_ceiling: int = 10_000_000
    max_cached_tab_states: int = 5
    debug_logging: bool = False
    recent_files: list[str] = field(default_factory=list)
    last_open_dir: str | None = None


class SettingsStore:
    """Persistence adapter for :class:`Settings`."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or _DEFAULT_SETTINGS_PATH

    @property
    def path(self) -> Path:
        """Return the resolved path backing this store."""

        return self._path

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> Settings:
        """Load settings from disk, applying CLI/environment overrides when present."""

        payload = self._read_payload()
        settings = Settings()
        needs_migration = False

        if payload:
            legacy_mode = payload.pop(_LEGACY_VIEW_MODE_FIELD, None)
            if legacy_mode is not None:
                layout, right_pane = migrate_legacy_view_mode(legacy_mode)
                payload.setdefault("layout", layout)
                payload.setdefault("right_pane", right_pane)
                needs_migration = True
                LOGGER.debug("Migrated legacy view_mode=%r to %s/%s", legacy_mode, layout, right_pane)
            data = _filter_fields(payload)
            try:
                settings = Settings(**data)
            except TypeError as exc:
                LOGGER.warning("Settings payload contained unexpected data: %s", exc)
                settings = Settings()
            settings = _sanitize(settings)

        version_mismatch = bool(payload) and payload.get("version") != _SETTINGS_VERSION
        if needs_migration or version_mismatch:
            try:
                self.save(settings)
            except OSError as exc:
                LOGGER.warning("Failed to migrate settings payload: %s", exc)

        if overrides:
            settings = self._apply_overrides(settings, overrides, source="CLI")

        settings = self._apply_env_overrides(settings)
        return _sanitize(settings)

    def save(self, settings: Settings) -> Path:
        """Persist settings to disk with atomic file writes."""

        payload = asdict(settings)
        payload["version"] = _SETTINGS_VERSION
        body = json.dumps(payload, indent=2, sort_keys=True)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        tmp_path.write_text(body, encoding="utf-8")
        tmp_path.replace(self._path)
        LOGGER.debug("Settings saved to %s (layout=%s, right_pane=%s)", self._path, settings.layout, settings.right_pane)
        return self._path

    def _read_payload(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            text = self._path.read_text(encoding="utf-8")
            data = json.loads(text)
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as exc:
            LOGGER.warning("Settings file %s is not valid JSON: %s", self._path, exc)
            return {}
        if not isinstance(data, dict):
            LOGGER.warning("Settings file %s does not contain an object", self._path)
            return {}
        return data

    def _apply_overrides(
        self,
        settings: Settings,
        overrides: Mapping[str, Any],
        *,
        source: str = "runtime",
    ) -> Settings:
        allowed = {field.name for field in fields(Settings)}
        filtered: Dict[str, Any] = {}
        for key, value in overrides.items():
            if key not in allowed or value is None:
                continue
            filtered[key] = value
        if filtered:
            LOGGER.debug("Applying %s settings overrides: %s", source, sorted(filtered))
            settings = replace(settings, **filtered)
        return settings

    def _apply_env_overrides(self, settings: Settings) -> Settings:
        overrides: Dict[str, Any] = {}
        for env_name, field_name in _ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is not None:
                overrides[field_name] = value.strip().lower()
        for env_name, field_name in _BOOL_ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is not None:
                overrides[field_name] = value.strip().lower() in _TRUE_VALUES
        for env_name, field_name in _INT_ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is None:
                continue
            try:
                overrides[field_name] = int(value, 10)
            except ValueError:
                LOGGER.warning(
                    "Environment override %s=%s is not a valid integer",
                    env_name,
                    value,
                )
        for env_name, field_name in _FLOAT_ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is None:
                continue
            try:
                overrides[field_name] = float(value)
            except ValueError:
                LOGGER.warning(
                    "Environment override %s=%s is not a valid float", env_name, value
                )
        if overrides:
            settings = self._apply_overrides(settings, overrides, source="environment")
        return settings


def remember_recent_file(settings: Settings, path: Path | str) -> list[str]:
    """Move ``path`` to the front of the recent-files list."""

    normalized = str(Path(path).expanduser().resolve())
    updated: list[str] = [normalized]
    for existing in settings.recent_files:
        candidate = str(Path(existing).expanduser().resolve())
        if candidate == normalized:
            continue
        updated.append(existing)
        if len(updated) >= MAX_RECENT_FILES:
            break
    settings.recent_files = updated
    settings.last_open_dir = str(Path(normalized).parent)
    LOGGER.debug("remember_recent_file: %s, total=%d", normalized, len(updated))
    return updated


def _filter_fields(payload: Mapping[str, Any]) -> Dict[str, Any]:
    allowed = {field.name for field in fields(Settings)}
    result: Dict[str, Any] = {}
    for key, value in payload.items():
        if key not in allowed:
            continue
        result[key] = value
    return result


def _sanitize(settings: Settings) -> Settings:
    """Clamp out-of-range values back to usable defaults."""

    defaults = Settings()
    layout, right_pane = normalize_view(settings.layout, settings.right_pane)
    updates: Dict[str, Any] = {}
    if (layout, right_pane) != (settings.layout, settings.right_pane):
        updates["layout"] = layout
        updates["right_pane"] = right_pane
    for name, minimum in (
        ("context_lines", 0),
        ("render_debounce_ms", 0),
        ("large_file_threshold", 0),
        ("diff_cost_ceiling", 0),
        ("max_cached_tab_states", 1),
    ):
        value = getattr(settings, name)
        if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
            updates[name] = getattr(defaults, name)
    delay = settings.session_save_delay
    if isinstance(delay, bool) or not isinstance(delay, (int, float)) or delay < 0:
        updates["session_save_delay"] = defaults.session_save_delay
    if not isinstance(settings.recent_files, list):
        updates["recent_files"] = []
    else:
        recent = [entry for entry in settings.recent_files if isinstance(entry, str)]
        if recent != settings.recent_files or len(recent) > MAX_RECENT_FILES:
            updates["recent_files"] = recent[:MAX_RECENT_FILES]
    if not isinstance(settings.debug_logging, bool):
        updates["debug_logging"] = bool(settings.debug_logging)
    if updates:
        LOGGER.warning("Settings values reset to defaults: %s", sorted(updates))
        settings = replace(settings, **updates)
    return settings
