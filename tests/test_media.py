"""Tests for studydeck.media."""

import json
import zipfile

from studydeck.archive import ArchiveReader
from studydeck.media import extract_media, load_media_map, sanitize_filename


def _zip(path, entries):
    with zipfile.ZipFile(path, "w") as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
    return path


def test_load_media_map(tmp_path):
    pkg = _zip(tmp_path / "a.apkg", {"media": json.dumps({"0": "cat.jpg", "1": "dog.mp3"})})
    with ArchiveReader.open(pkg) as arc:
        assert load_media_map(arc, "media") == {"0": "cat.jpg", "1": "dog.mp3"}


def test_load_media_map_bad_json_is_empty(tmp_path, caplog):
    pkg = _zip(tmp_path / "a.apkg", {"media": "{not json"})
    with ArchiveReader.open(pkg) as arc:
        assert load_media_map(arc, "media") == {}
    assert "media map" in caplog.text


def test_load_media_map_absent_or_empty(tmp_path):
    pkg = _zip(tmp_path / "a.apkg", {"media": ""})
    with ArchiveReader.open(pkg) as arc:
        assert load_media_map(arc, None) == {}
        assert load_media_map(arc, "media") == {}


def test_sanitize_filename():
    assert sanitize_filename("a/b\\c:d.png") == "a_b_c_d.png"


def test_extract_media(tmp_path):
    pkg = _zip(tmp_path / "a.apkg", {
        "0": b"cat-bytes",
        "1": b"evil-bytes",
        "2": b"unmapped",
    })
    dest = tmp_path / "media" / "Deck"
    with ArchiveReader.open(pkg) as arc:
        written = extract_media(arc, {"0": "cat.jpg", "1": "../../evil.txt", "9": "gone.png"}, dest)
    assert (dest / "cat.jpg").read_bytes() == b"cat-bytes"
    assert (dest / ".._.._evil.txt").read_bytes() == b"evil-bytes"
    assert len(written) == 2
    assert not (tmp_path / "evil.txt").exists()


def test_extract_media_empty_map_creates_nothing(tmp_path):
    pkg = _zip(tmp_path / "a.apkg", {"0": b"x"})
    dest = tmp_path / "media" / "Deck"
    with ArchiveReader.open(pkg) as arc:
        assert extract_media(arc, {}, dest) == []
    assert not dest.exists()
