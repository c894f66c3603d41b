"""Tests for studydeck.config."""

import json

from studydeck.config import (DEFAULT_SETTINGS, JsonSettings, _parse_toml_simple, ensure_dir,
                              get_data_dir, load_settings)


def test_data_dir_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("STUDYDECK_DIR", str(tmp_path / "env"))
    assert get_data_dir() == tmp_path / "env"


def test_data_dir_from_config_file(monkeypatch, tmp_path):
    monkeypatch.delenv("STUDYDECK_DIR", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    cfg = tmp_path / ".config" / "studydeck"
    cfg.mkdir(parents=True)
    (cfg / "config").write_text(f"# comment\nDIR={tmp_path / 'custom'}\n")
    assert get_data_dir() == tmp_path / "custom"


def test_data_dir_default(monkeypatch, tmp_path):
    monkeypatch.delenv("STUDYDECK_DIR", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    assert get_data_dir() == tmp_path / ".local" / "share" / "studydeck"


def test_ensure_dir(tmp_path):
    path = ensure_dir(tmp_path / "a" / "b")
    assert path.is_dir()
    assert ensure_dir(path) == path


def test_load_settings_defaults(tmp_path):
    assert load_settings(tmp_path) == DEFAULT_SETTINGS


def test_load_settings_overrides(tmp_path):
    (tmp_path / "settings.toml").write_text("randomize_equal_due = true\nbusy_timeout = 9\n")
    settings = load_settings(tmp_path)
    assert settings["randomize_equal_due"] is True
    assert settings["busy_timeout"] == 9


def test_parse_toml_simple():
    text = '# comment\nname = "deck"\ncount = 3\nflag = false\n\nbad line\n'
    assert _parse_toml_simple(text) == {"name": "deck", "count": 3, "flag": False}


def test_json_settings_roundtrip(tmp_path):
    path = tmp_path / "state" / "state.json"
    state = JsonSettings.open(path)
    assert state.read("missing", 7) == 7
    state.save("last_deck_id", 3)
    state.save("nested", {"a": [1, 2]})
    state.flush()
    assert json.loads(path.read_text())["last_deck_id"] == 3
    again = JsonSettings.open(path)
    assert again.read("nested") == {"a": [1, 2]}
    again.delete("nested")
    again.flush()
    assert JsonSettings.open(path).read("nested") is None
    assert not (path.parent / "state.json.tmp").exists()


def test_json_settings_ignores_corrupt_file(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("{not json")
    assert JsonSettings.open(path).read("anything") is None
    path.write_text("[1, 2]")
    assert JsonSettings.open(path).read("anything") is None
