# tests/core/test_config_loader.py
import json
import logging
from pathlib import Path

import pytest

from a11y_auditor.model import RuleConfiguration
from a11y_auditor.utils.config_loader import (
    ScannerSettings, enabled_rules, load_rule_configuration, load_scanner_settings
)


@pytest.fixture
def write_json(tmp_path):
    def _write(name, data):
        path = tmp_path / name
        path.write_text(data if isinstance(data, str) else json.dumps(data), encoding="utf-8")
        return path
    return _write


def test_rule_configuration_from_file(write_json):
    path = write_json("rules.json", {
        "checks": {"color_contrast": True, "table_structure": False},
        "ignored_rules": ["skip_links", {"rule": "heading", "reason": "Legacy admin"}]
    })

    config = load_rule_configuration(path)

    assert config.is_active("color_contrast", default=False)
    assert not config.is_active("table_structure")
    assert config.is_ignored("skip_links")
    assert config.ignored_rules[1].reason == "Legacy admin"


def test_missing_file_gives_defaults(tmp_path, caplog):
    """Test dat een ontbrekend bestand een waarschuwing en de standaardconfiguratie geeft."""
    with caplog.at_level(logging.WARNING):
        config = load_rule_configuration(tmp_path / "nope.json")

    assert config == RuleConfiguration()
    assert "not found" in caplog.text


@pytest.mark.parametrize("content", ["{kapot", "[1, 2]", '{"checks": "ja"}'])
def test_broken_rule_configuration_falls_back(write_json, content):
    assert load_rule_configuration(write_json("rules.json", content)) == RuleConfiguration()


def test_no_path_gives_defaults():
    assert load_rule_configuration() == RuleConfiguration()
    assert load_scanner_settings() == ScannerSettings()


def test_scanner_settings_from_file(write_json):
    settings = load_scanner_settings(write_json("settings.json", {"max_depth": 5, "compose_pages": False}))
    assert settings.max_depth == 5
    assert settings.compose_pages is False
    assert settings.max_files == 200


def test_invalid_scanner_settings_fall_back(write_json):
    assert load_scanner_settings(write_json("settings.json", {"max_depth": 0})) == ScannerSettings()


@pytest.mark.parametrize("filename, expected", [
    ("index.html.erb", "index"),
    ("_form.html.erb", "_form"),
    ("show.erb", "show"),
    ("notes.txt", None),
])
def test_strip_extension(filename, expected):
    assert ScannerSettings().strip_extension(filename) == expected


def test_state_file_resolution(tmp_path):
    root = tmp_path / "app" / "views"
    assert ScannerSettings().resolve_state_file(root) == root.resolve().parent / "tmp" / ".a11y_auditor_state.json"

    absolute = tmp_path / "state.json"
    assert ScannerSettings(state_file=str(absolute)).resolve_state_file(root) == Path(absolute)


def test_enabled_rules():
    defaults = {"heading": True, "color_contrast": False, "skip_links": True}
    config = RuleConfiguration(ignored_rules=["skip_links"])
    assert enabled_rules(config, defaults) == ["heading"]
