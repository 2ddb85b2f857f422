"""Tests for pi.chat_input.config."""

from __future__ import annotations

import json
from pathlib import Path

from pi.chat_input.config import (
    InputSettings,
    PasteSettings,
    deep_merge_settings,
    load_input_settings,
    settings_from_dict,
)


def write_settings(directory: Path, data: object) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / "settings.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestDefaults:
    def test_paste_defaults(self) -> None:
        settings = PasteSettings()
        assert settings.max_chars == 500
        assert settings.max_lines == 5
        assert settings.manual_paste_min_chars == 5

    def test_input_defaults(self) -> None:
        assert InputSettings().newline_glyph == "↵"


class TestDeepMerge:
    def test_nested_merge(self) -> None:
        base = {"pasteInput": {"maxPasteChars": 100, "maxPasteLines": 2}, "theme": "dark"}
        merged = deep_merge_settings(base, {"pasteInput": {"maxPasteLines": 9}})
        assert merged == {"pasteInput": {"maxPasteChars": 100, "maxPasteLines": 9}, "theme": "dark"}

    def test_none_is_skipped(self) -> None:
        assert deep_merge_settings({"a": 1}, {"a": None}) == {"a": 1}

    def test_base_not_mutated(self) -> None:
        base = {"a": {"b": 1}}
        deep_merge_settings(base, {"a": {"b": 2}})
        assert base == {"a": {"b": 1}}


class TestSettingsFromDict:
    def test_reads_fields(self) -> None:
        settings = settings_from_dict(
            {"maxPasteChars": 50, "maxPasteLines": 3, "manualPasteMinChars": 8, "newlineGlyph": "⏎"}
        )
        assert settings.paste == PasteSettings(max_chars=50, max_lines=3, manual_paste_min_chars=8)
        assert settings.newline_glyph == "⏎"

    def test_bad_values_keep_defaults(self) -> None:
        settings = settings_from_dict(
            {"maxPasteChars": "lots", "maxPasteLines": -1, "manualPasteMinChars": True, "newlineGlyph": ""}
        )
        assert settings == InputSettings()


class TestLoadInputSettings:
    def test_no_files(self, tmp_path: Path) -> None:
        settings, error = load_input_settings(cwd=str(tmp_path / "proj"), agent_dir=str(tmp_path / "agent"))
        assert settings == InputSettings()
        assert error is None

    def test_global_file(self, tmp_path: Path) -> None:
        agent = tmp_path / "agent"
        write_settings(agent, {"pasteInput": {"maxPasteChars": 200}})
        settings, error = load_input_settings(agent_dir=str(agent))
        assert settings.paste.max_chars == 200
        assert error is None

    def test_project_overrides_global(self, tmp_path: Path) -> None:
        agent = tmp_path / "agent"
        project = tmp_path / "proj"
        write_settings(agent, {"pasteInput": {"maxPasteChars": 200, "maxPasteLines": 10}})
        write_settings(project / ".pi", {"pasteInput": {"maxPasteLines": 3}})
        settings, _ = load_input_settings(cwd=str(project), agent_dir=str(agent))
        assert settings.paste.max_chars == 200
        assert settings.paste.max_lines == 3

    def test_invalid_json_reports_error(self, tmp_path: Path) -> None:
        agent = tmp_path / "agent"
        agent.mkdir()
        (agent / "settings.json").write_text("{not json", encoding="utf-8")
        settings, error = load_input_settings(agent_dir=str(agent))
        assert settings == InputSettings()
        assert error is not None

    def test_non_object_file(self, tmp_path: Path) -> None:
        agent = tmp_path / "agent"
        write_settings(agent, [1, 2, 3])
        settings, error = load_input_settings(agent_dir=str(agent))
        assert settings == InputSettings()
        assert isinstance(error, ValueError)

    def test_section_not_an_object(self, tmp_path: Path) -> None:
        agent = tmp_path / "agent"
        write_settings(agent, {"pasteInput": "big"})
        settings, error = load_input_settings(agent_dir=str(agent))
        assert settings == InputSettings()
        assert error is None


class TestThresholdValidation:
    def test_zero_thresholds_keep_defaults(self) -> None:
        settings = settings_from_dict({"maxPasteChars": 0, "maxPasteLines": 0, "manualPasteMinChars": 0})
        assert settings.paste == PasteSettings()

    def test_one_is_accepted(self) -> None:
        assert settings_from_dict({"maxPasteLines": 1}).paste.max_lines == 1
