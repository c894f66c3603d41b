"""Import pipeline: package -> collection database -> cards + source notes in the store."""

import logging
import pathlib
import re
import sqlite3
import tempfile

from studydeck import collection
from studydeck.archive import ArchiveReader
from studydeck.errors import ExtractError, NoCardsProducedError, StoreError
from studydeck.extract import extract_cards
from studydeck.mapping import cards_from_notes
from studydeck.media import extract_media, load_media_map
from studydeck.models import FieldMapping, ImportResult, InspectionSnapshot
from studydeck.package import locate_entries, short_name_for
from studydeck.store import CardStore

logger = logging.getLogger(__name__)

NO_CARDS_MESSAGE = ("No cards were produced from this package with the current field "
                    "selection. Try choosing different front/back fields.")
NO_CARDS_FROM_NOTES_MESSAGE = ("No cards were produced from stored notes with the current "
                               "field selection. Try choosing different front/back fields.")


def _extract_collection(arc: ArchiveReader, entry: str, dest_dir: pathlib.Path) -> pathlib.Path:
    dest = dest_dir / pathlib.PurePosixPath(entry).name
    if not arc.extract_to_path(entry, dest):
        raise ExtractError(f"Failed to extract {entry} from {arc.path.name}")
    return dest


def inspect_package(package_path: pathlib.Path | str, tmp_root: pathlib.Path | None = None,
                    timeout: float = 5) -> InspectionSnapshot:
    """Models, fields and sample values of a package, for choosing a field mapping."""
    package_path = pathlib.Path(package_path)
    short_name = short_name_for(package_path)
    with tempfile.TemporaryDirectory(dir=tmp_root) as tmp:
        with ArchiveReader.open(package_path) as arc:
            entries = locate_entries(arc)
            db_path = _extract_collection(arc, entries.collection, pathlib.Path(tmp))
        return collection.inspect_collection(db_path, short_name, timeout=timeout)


def _diagnostics(conn: sqlite3.Connection) -> tuple[int, int]:
    try:
        return collection.count_rows(conn)
    except sqlite3.Error as e:
        logger.warning("Diagnostics on collection failed: %s", e)
        return 0, 0


def import_package(package_path: pathlib.Path | str, store: CardStore,
                   media_root: pathlib.Path, mapping: FieldMapping | None = None,
                   tmp_root: pathlib.Path | None = None, timeout: float = 5,
                   now: float | None = None) -> ImportResult:
    """Import a package into the deck named after its short name, replacing its cards.

    Nothing in the store changes unless at least one card was produced.
    """
    package_path = pathlib.Path(package_path)
    short_name = short_name_for(package_path)
    deck_media_dir = media_root / short_name

    with tempfile.TemporaryDirectory(dir=tmp_root) as tmp, \
            ArchiveReader.open(package_path) as arc:
        entries = locate_entries(arc)
        db_path = _extract_collection(arc, entries.collection, pathlib.Path(tmp))

        try:
            with collection.open_collection(db_path, timeout) as conn:
                try:
                    raw_notes = list(collection.iter_notes(conn))
                except sqlite3.Error as e:
                    logger.warning("Failed to collect raw notes from %s: %s", package_path.name, e)
                    raw_notes = []
                extraction = extract_cards(conn, mapping)
                total_cards, total_notes = _diagnostics(conn)
        except sqlite3.Error as e:
            raise ExtractError(f"Failed to read collection from {package_path.name}: {e}") from e

        if not extraction.cards:
            raise NoCardsProducedError(NO_CARDS_MESSAGE, source_total_cards=total_cards,
                                       source_total_notes=total_notes)

        extract_media(arc, load_media_map(arc, entries.media), deck_media_dir)

    deck_id, count = store.import_or_merge(short_name, extraction.cards, overwrite=True, now=now)
    if raw_notes:
        try:
            store.store_source_notes(deck_id, raw_notes)
        except StoreError as e:
            logger.warning("Failed to store source notes for deck %s: %s", short_name, e)

    logger.info("Imported %s: %d cards stored (source cards: %d, notes: %d, extracted: %d, strategy: %s)",
                short_name, count, total_cards, total_notes, len(extraction.cards),
                extraction.strategy)
    return ImportResult(deck_name=short_name, deck_id=deck_id, card_count=count,
                        media_dir=str(deck_media_dir), source_total_cards=total_cards,
                        source_total_notes=total_notes, extracted_cards=len(extraction.cards),
                        strategy=extraction.strategy)


def rebuild_deck(store: CardStore, deck_id: int, deck_name: str, mapping: FieldMapping,
                 now: float | None = None) -> ImportResult:
    """Re-derive a deck's cards from its stored source notes under a new mapping."""
    notes = store.load_source_notes(deck_id)
    if not notes:
        raise ExtractError("No stored source notes are available for this deck; cannot rebuild cards.")
    cards = cards_from_notes(notes, mapping)
    if not cards:
        raise NoCardsProducedError(NO_CARDS_FROM_NOTES_MESSAGE, source_total_notes=len(notes))
    new_id, count = store.import_or_merge(deck_name, cards, overwrite=True, now=now)
    return ImportResult(deck_name=deck_name, deck_id=new_id, card_count=count,
                        source_total_notes=len(notes), extracted_cards=len(cards),
                        strategy="mapping")


def _squash(name: str) -> str:
    return re.sub(r"[_\s]+", "", name.lower())


def find_package(short_name: str, candidates) -> pathlib.Path | None:
    """Exact case-insensitive stem match first, else the first match ignoring underscores and spaces."""
    if not short_name:
        return None
    target = short_name.lower()
    fuzzy = None
    for path in candidates:
        path = pathlib.Path(path)
        base = short_name_for(path).lower()
        if base == target:
            return path
        if fuzzy is None and _squash(base) == _squash(target):
            fuzzy = path
    return fuzzy
