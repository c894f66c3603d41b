"""Shared test fixtures."""

import json
import sqlite3
import zipfile

import pytest

from studydeck.config import JsonSettings
from studydeck.store import CardStore

SEP = "\x1f"

BASIC_MODEL_ID = "1342697561419"
BASIC_MODELS = {
    BASIC_MODEL_ID: {
        "name": "Basic",
        "flds": [{"name": "Front", "ord": 0}, {"name": "Back", "ord": 1}],
        "tmpls": [{"name": "Card 1", "ord": 0, "qfmt": "{{Front}}",
                   "afmt": "{{FrontSide}}<hr id=answer>{{Back}}"}],
    }
}


def write_collection(db_path, models, notes, cards=None, models_text=None):
    """Write a minimal collection database.

    notes: list of (note_id, mid, [field values]) or (note_id, mid, raw flds str or bytes)
    cards: list of (card_id, note_id, ord); defaults to one card per note with ord 0.
    """
    conn = sqlite3.connect(str(db_path))
    conn.executescript("""
        CREATE TABLE col (id INTEGER PRIMARY KEY, models TEXT NOT NULL);
        CREATE TABLE notes (id INTEGER PRIMARY KEY, mid INTEGER NOT NULL, flds TEXT NOT NULL);
        CREATE TABLE cards (id INTEGER PRIMARY KEY, nid INTEGER NOT NULL, ord INTEGER NOT NULL);
    """)
    if models_text is None:
        models_text = json.dumps(models)
    conn.execute("INSERT INTO col (id, models) VALUES (1, ?)", (models_text,))
    for note_id, mid, fields in notes:
        flds = fields if isinstance(fields, (str, bytes)) else SEP.join(fields)
        conn.execute("INSERT INTO notes (id, mid, flds) VALUES (?, ?, ?)", (note_id, mid, flds))
    if cards is None:
        cards = [(note_id, note_id, 0) for note_id, _, _ in notes]
    for card_id, nid, ord_ in cards:
        conn.execute("INSERT INTO cards (id, nid, ord) VALUES (?, ?, ?)", (card_id, nid, ord_))
    conn.commit()
    conn.close()
    return db_path


@pytest.fixture
def make_package(tmp_path):
    """Factory building a real package zip under tmp_path."""
    def _make(name="Deck.apkg", models=None, notes=(), cards=None,
              db_name="collection.anki2", media=None, media_files=None,
              extra_entries=None, models_text=None):
        work = tmp_path / "build"
        work.mkdir(exist_ok=True)
        (work / f"{name}.db").unlink(missing_ok=True)
        db_path = write_collection(work / f"{name}.db", BASIC_MODELS if models is None else models,
                                   list(notes), cards, models_text=models_text)
        pkg = tmp_path / name
        with zipfile.ZipFile(pkg, "w") as zf:
            zf.write(db_path, db_name)
            if media is not None:
                zf.writestr("media", media if isinstance(media, str) else json.dumps(media))
            for entry, data in (media_files or {}).items():
                zf.writestr(entry, data)
            for entry, data in (extra_entries or {}).items():
                zf.writestr(entry, data)
        return pkg
    return _make


@pytest.fixture
def collection_db(tmp_path):
    """Factory writing a bare collection database."""
    def _make(models=None, notes=(), cards=None, models_text=None):
        return write_collection(tmp_path / "collection.anki2",
                                BASIC_MODELS if models is None else models,
                                list(notes), cards, models_text=models_text)
    return _make


@pytest.fixture
def store(tmp_path):
    return CardStore(tmp_path / "data" / "studydeck.db")


@pytest.fixture
def state(tmp_path):
    return JsonSettings.open(tmp_path / "data" / "state.json")
