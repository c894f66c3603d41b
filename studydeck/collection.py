"""Collection inspector: read models and notes from an extracted collection database."""

import json
import logging
import pathlib
import sqlite3
from contextlib import contextmanager
from typing import Iterator

from studydeck.errors import ExtractError, MetadataDecodeError
from studydeck.htmltext import html_to_text
from studydeck.models import (FieldDef, FieldSamples, InspectionSnapshot, Model,
                              ModelSnapshot, SourceNote, Template)

logger = logging.getLogger(__name__)

FIELD_SEPARATOR = "\x1f"
MAX_SAMPLES = 3


@contextmanager
def open_collection(db_path: pathlib.Path | str, timeout: float = 5) -> Iterator[sqlite3.Connection]:
    """Open the collection read-only; the connection is always closed on exit."""
    db_path = pathlib.Path(db_path)
    if not db_path.exists():
        raise ExtractError(f"Collection database not found: {db_path}")
    uri = db_path.resolve().as_uri() + "?mode=ro"
    try:
        conn = sqlite3.connect(uri, uri=True, timeout=timeout)
    except sqlite3.Error as e:
        raise ExtractError(f"Unable to open collection database: {e}") from e
    try:
        yield conn
    finally:
        conn.close()


def split_fields(flds: str | bytes | None) -> list[str]:
    if isinstance(flds, bytes):
        flds = flds.decode("utf-8", errors="replace")
    if not flds or not isinstance(flds, str):
        return []
    return flds.split(FIELD_SEPARATOR)


def normalized_fields(flds: str | bytes | None) -> list[str]:
    return [html_to_text(v) for v in split_fields(flds)]


def read_models_json(conn: sqlite3.Connection) -> str:
    row = conn.execute("SELECT models FROM col LIMIT 1").fetchone()
    if not row or not row[0]:
        return ""
    value = row[0]
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    return value


def parse_model(mid: str, raw) -> Model | None:
    """Validate one models-JSON entry. Entries without a field list are rejected."""
    if not isinstance(raw, dict) or not isinstance(raw.get("flds"), list):
        return None
    fields = []
    for idx, fdef in enumerate(raw["flds"], start=1):
        name = fdef.get("name") if isinstance(fdef, dict) else None
        fields.append(FieldDef(index=idx, name=str(name) if name is not None else str(idx)))
    templates = []
    raw_tmpls = raw.get("tmpls")
    if isinstance(raw_tmpls, list):
        for position, tdef in enumerate(raw_tmpls):
            if not isinstance(tdef, dict):
                continue
            try:
                ord_ = int(tdef.get("ord", position))
            except (TypeError, ValueError):
                ord_ = position
            templates.append(Template(ord=ord_,
                                      qfmt=tdef.get("qfmt") if isinstance(tdef.get("qfmt"), str) else "",
                                      afmt=tdef.get("afmt") if isinstance(tdef.get("afmt"), str) else ""))
    name = raw.get("name")
    return Model(id=str(mid), name=str(name) if name is not None else "",
                 fields=fields, templates=templates)


def decode_models(models_json: str | bytes | None) -> dict[str, Model]:
    """Decode the models column into model id -> Model.

    A malformed document raises MetadataDecodeError; entries without field
    definitions are skipped.
    """
    if not models_json:
        return {}
    try:
        decoded = json.loads(models_json)
        if not isinstance(decoded, dict):
            raise ValueError("models JSON is not an object")
    except (TypeError, ValueError) as e:
        raise MetadataDecodeError(f"Malformed models JSON: {e}") from e
    models = {}
    for mid, raw in decoded.items():
        model = parse_model(str(mid), raw)
        if model is None:
            logger.debug("Skipping models entry %s without field definitions", mid)
            continue
        models[model.id] = model
    return models


def load_models(conn: sqlite3.Connection) -> dict[str, Model]:
    """Models of the collection; undecodable metadata yields {}."""
    try:
        return decode_models(read_models_json(conn))
    except MetadataDecodeError as e:
        logger.warning("%s", e)
        return {}


def iter_notes(conn: sqlite3.Connection) -> Iterator[SourceNote]:
    """All note rows with a non-empty field string, in rowid order."""
    for mid, flds in conn.execute("SELECT mid, flds FROM notes ORDER BY id"):
        if isinstance(flds, bytes):
            flds = flds.decode("utf-8", errors="replace")
        if not isinstance(flds, str) or not flds:
            continue
        yield SourceNote(mid=str(mid) if mid is not None else None, flds=flds)


def count_rows(conn: sqlite3.Connection) -> tuple[int, int]:
    """(total cards, total notes) in the source collection."""
    cards = conn.execute("SELECT COUNT(*) FROM cards").fetchone()[0]
    notes = conn.execute("SELECT COUNT(*) FROM notes").fetchone()[0]
    return int(cards or 0), int(notes or 0)


def build_snapshot(short_name: str, models: dict[str, Model],
                   notes) -> InspectionSnapshot:
    snapshot = InspectionSnapshot(short_name=short_name)
    for mid, model in models.items():
        snapshot.models[mid] = ModelSnapshot(
            id=mid, name=model.name, note_count=0,
            fields=[FieldSamples(index=f.index, name=f.name) for f in model.fields])
    if not snapshot.models:
        return snapshot

    # Packages with a single model often carry notes whose mid drifted from the
    # models JSON; attribute every note to that model.
    sole = next(iter(snapshot.models.values())) if len(snapshot.models) == 1 else None
    unmatched = 0
    for note in notes:
        entry = snapshot.models.get(note.mid) if note.mid is not None else None
        if entry is None:
            entry = sole
        if entry is None:
            unmatched += 1
            continue
        entry.note_count += 1
        for idx, value in enumerate(normalized_fields(note.flds), start=1):
            if not value or idx > len(entry.fields):
                continue
            samples = entry.fields[idx - 1].samples
            if len(samples) < MAX_SAMPLES:
                samples.append(value)
    if unmatched:
        logger.warning("%s: %d note(s) reference a model id not present in the collection",
                       short_name, unmatched)
    return snapshot


def inspect_collection(db_path: pathlib.Path | str, short_name: str,
                       timeout: float = 5) -> InspectionSnapshot:
    try:
        with open_collection(db_path, timeout) as conn:
            models = load_models(conn)
            return build_snapshot(short_name, models, iter_notes(conn))
    except sqlite3.Error as e:
        raise ExtractError(f"Failed to inspect collection: {e}") from e
