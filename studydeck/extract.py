"""Card extractor: run the extraction strategies in a fixed order.

With a field mapping only the mapping strategy runs. Without one the chain is
templates, then the naive first-field heuristic. The first strategy that
yields at least one card wins.
"""

import logging
import sqlite3
from dataclasses import dataclass, field
from typing import Callable

from studydeck.collection import iter_notes, load_models, normalized_fields
from studydeck.mapping import cards_from_notes
from studydeck.models import Card, FieldMapping
from studydeck.templates import cards_from_templates

logger = logging.getLogger(__name__)

CARD_NOTE_ROWS = "SELECT c.ord, n.mid, n.flds FROM cards c JOIN notes n ON n.id = c.nid ORDER BY c.id"
CARD_NOTE_FIELDS = "SELECT n.flds FROM cards c JOIN notes n ON n.id = c.nid ORDER BY c.id"
NOTE_FIELDS = "SELECT flds FROM notes ORDER BY id"


@dataclass
class Extraction:
    cards: list[Card] = field(default_factory=list)
    strategy: str = ""


def by_mapping(conn: sqlite3.Connection, mapping: FieldMapping | None) -> list[Card]:
    return cards_from_notes(iter_notes(conn), mapping or FieldMapping())


def by_templates(conn: sqlite3.Connection, mapping: FieldMapping | None) -> list[Card]:
    try:
        models = load_models(conn)
        if not models:
            return []
        rows = conn.execute(CARD_NOTE_ROWS).fetchall()
    except sqlite3.Error as e:
        logger.warning("Template rendering skipped: %s", e)
        return []
    return cards_from_templates(rows, models)


def naive_card(flds: str | None) -> Card | None:
    """First non-empty field is the front; the rest, newline-joined, the back."""
    values = [v for v in normalized_fields(flds) if v]
    if not values:
        return None
    return Card(front=values[0], back="\n".join(values[1:]))


def _naive_from_query(conn: sqlite3.Connection, sql: str) -> list[Card]:
    cards = []
    for (flds,) in conn.execute(sql):
        if isinstance(flds, bytes):
            flds = flds.decode("utf-8", errors="replace")
        card = naive_card(flds if isinstance(flds, str) else None)
        if card is not None:
            cards.append(card)
    return cards


def by_naive_fields(conn: sqlite3.Connection, mapping: FieldMapping | None) -> list[Card]:
    try:
        cards = _naive_from_query(conn, CARD_NOTE_FIELDS)
    except sqlite3.Error as e:
        logger.warning("Cannot read cards table, using notes alone: %s", e)
        cards = []
    if cards:
        return cards
    return _naive_from_query(conn, NOTE_FIELDS)


Strategy = tuple[str, Callable[[sqlite3.Connection, FieldMapping | None], list[Card]]]

MAPPING_STRATEGIES: tuple[Strategy, ...] = (("mapping", by_mapping),)
DEFAULT_STRATEGIES: tuple[Strategy, ...] = (("templates", by_templates),
                                            ("naive", by_naive_fields))


def strategies_for(mapping: FieldMapping | None) -> tuple[Strategy, ...]:
    if mapping is not None and mapping.models:
        return MAPPING_STRATEGIES
    return DEFAULT_STRATEGIES


def extract_cards(conn: sqlite3.Connection, mapping: FieldMapping | None = None) -> Extraction:
    """Return the first non-empty result; empty cards never leave this function."""
    for name, strategy in strategies_for(mapping):
        cards = [c for c in strategy(conn, mapping) if not c.is_empty()]
        if cards:
            if name == "naive":
                logger.info("No template produced cards, used first-field heuristic")
            return Extraction(cards=cards, strategy=name)
    return Extraction()
