"""Settings for the paste-aware input, read from ``settings.json``.

Global settings live in ``~/.pi/settings.json`` and project settings in
``<cwd>/.pi/settings.json``; project values win. The input reads the
``"pasteInput"`` object::

    {
      "pasteInput": {
        "maxPasteChars": 500,
        "maxPasteLines": 5,
        "manualPasteMinChars": 5,
        "newlineGlyph": "↵"
      }
    }
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

CONFIG_DIR_NAME = ".pi"
SETTINGS_FILE_NAME = "settings.json"
SETTINGS_KEY = "pasteInput"


@dataclass
class PasteSettings:
    """Thresholds deciding when inserted text becomes a placeholder."""

    max_chars: int = 500
    max_lines: int = 5
    # Unflagged insertions longer than this are classified like pastes
    manual_paste_min_chars: int = 5


@dataclass
class InputSettings:
    paste: PasteSettings = field(default_factory=PasteSettings)
    newline_glyph: str = "↵"


def deep_merge_settings(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge overrides into base settings.

    Nested dicts merge; anything else in *overrides* replaces the base value.
    ``None`` overrides are skipped.
    """
    result = dict(base)
    for key, value in overrides.items():
        if value is None:
            continue
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = deep_merge_settings(result[key], value)
        else:
            result[key] = value
    return result


def _load_from_file(path: str) -> tuple[dict[str, Any], Exception | None]:
    """Load settings from a JSON file. Returns (settings, error)."""
    if not os.path.exists(path):
        return {}, None
    try:
        settings = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        return {}, e
    if not isinstance(settings, dict):
        return {}, ValueError(f"{path}: expected a JSON object")
    return settings, None


def _default_agent_dir() -> str:
    """Default agent data directory (~/.pi)."""
    return os.path.join(os.path.expanduser("~"), CONFIG_DIR_NAME)


def _positive_int(value: Any, default: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        return default
    return value


def settings_from_dict(raw: dict[str, Any]) -> InputSettings:
    """Build ``InputSettings`` from a ``"pasteInput"`` object.

    Missing or ill-typed fields keep their defaults.
    """
    defaults = PasteSettings()
    paste = PasteSettings(
        max_chars=_positive_int(raw.get("maxPasteChars"), defaults.max_chars),
        max_lines=_positive_int(raw.get("maxPasteLines"), defaults.max_lines),
        manual_paste_min_chars=_positive_int(
            raw.get("manualPasteMinChars"), defaults.manual_paste_min_chars
        ),
    )
    glyph = raw.get("newlineGlyph")
    if not isinstance(glyph, str) or not glyph:
        glyph = InputSettings.newline_glyph
    return InputSettings(paste=paste, newline_glyph=glyph)


def load_input_settings(
    cwd: str | None = None, agent_dir: str | None = None
) -> tuple[InputSettings, Exception | None]:
    """Load merged global + project input settings.

    Returns ``(settings, error)``; on a read or parse failure the defaults
    for that file are used and the first error is reported.
    """
    adir = agent_dir or _default_agent_dir()
    global_settings, global_error = _load_from_file(os.path.join(adir, SETTINGS_FILE_NAME))

    project_settings: dict[str, Any] = {}
    project_error: Exception | None = None
    if cwd is not None:
        project_settings, project_error = _load_from_file(
            os.path.join(cwd, CONFIG_DIR_NAME, SETTINGS_FILE_NAME)
        )

    merged = deep_merge_settings(global_settings, project_settings)
    section = merged.get(SETTINGS_KEY)
    if not isinstance(section, dict):
        section = {}
    return settings_from_dict(section), global_error or project_error
