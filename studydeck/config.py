"""Configuration helpers: data directory discovery, settings, and the JSON state store."""

import json
import logging
import os
import pathlib

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS = {"randomize_equal_due": False, "busy_timeout": 5}


def get_data_dir() -> pathlib.Path:
    env_dir = os.environ.get("STUDYDECK_DIR")
    if env_dir:
        return pathlib.Path(env_dir)
    config_path = pathlib.Path.home() / ".config" / "studydeck" / "config"
    if config_path.exists():
        for line in config_path.read_text().splitlines():
            line = line.strip()
            if line.startswith("DIR="):
                return pathlib.Path(line[4:].strip()).expanduser()
    return pathlib.Path.home() / ".local" / "share" / "studydeck"


def ensure_dir(path: pathlib.Path | str) -> pathlib.Path:
    path = pathlib.Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def load_settings(data_dir: pathlib.Path) -> dict:
    settings_path = data_dir / "settings.toml"
    settings = dict(DEFAULT_SETTINGS)
    if settings_path.exists():
        settings.update(_parse_toml_simple(settings_path.read_text()))
    return settings


def _parse_toml_simple(text: str) -> dict:
    """Minimal TOML parser for flat key=value files."""
    result = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" in line:
            k, v = line.split("=", 1)
            k = k.strip()
            v = v.strip()
            if v.startswith('"') and v.endswith('"'):
                v = v[1:-1]
            elif v.isdigit():
                v = int(v)
            elif v == "true":
                v = True
            elif v == "false":
                v = False
            result[k] = v
    return result


class JsonSettings:
    """Persistent key -> JSON value store backed by one file.

    Usage:
        state = JsonSettings.open(data_dir / "state.json")
        state.save("last_deck_id", 3)
        state.flush()
    """

    def __init__(self, path: pathlib.Path, data: dict | None = None):
        self.path = path
        self._data = data if data is not None else {}

    @classmethod
    def open(cls, path: pathlib.Path | str) -> "JsonSettings":
        path = pathlib.Path(path)
        data = {}
        if path.exists():
            try:
                loaded = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                logger.warning("Ignoring unreadable settings file %s: %s", path, e)
            else:
                if isinstance(loaded, dict):
                    data = loaded
                else:
                    logger.warning("Ignoring settings file %s: not a JSON object", path)
        return cls(path, data)

    def read(self, key: str, default=None):
        return self._data.get(key, default)

    def save(self, key: str, value):
        self._data[key] = value

    def delete(self, key: str):
        self._data.pop(key, None)

    def flush(self):
        ensure_dir(self.path.parent)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps(self._data, indent=2, sort_keys=True, ensure_ascii=False),
                       encoding="utf-8")
        os.replace(tmp, self.path)
