"""Card store: decks, cards with scheduling state, and raw source notes."""

import pathlib
import random
import sqlite3
import time
from contextlib import contextmanager
from typing import Iterable, Iterator

from studydeck.db import init_db
from studydeck.errors import StoreError
from studydeck.models import Card, Deck, SourceNote

SAMPLE_DECK = "Default"
SAMPLE_CARDS = [
    ("Capital of France?", "Paris"),
    ("2 + 2 = ?", "4"),
    ('Author of "1984"?', "George Orwell"),
]

CARD_COLUMNS = "id, deck_id, front, back, ease, interval, due, reps, lapses"


def _card_from_row(row: sqlite3.Row) -> Card:
    return Card(id=row["id"], deck_id=row["deck_id"],
                front=row["front"], back=row["back"],
                ease=float(row["ease"]), interval=float(row["interval"]),
                due=float(row["due"]), reps=int(row["reps"]), lapses=int(row["lapses"]))


class CardStore:
    """Persistent study cache. Every operation opens and closes its own connection.

    Usage:
        store = CardStore(data_dir / "studydeck.db")
        deck_id, count = store.import_or_merge("French", cards)
    """

    def __init__(self, db_path: pathlib.Path | str, timeout: float = 5,
                 randomize_equal_due: bool = False):
        self.db_path = pathlib.Path(db_path)
        self.timeout = timeout
        self.randomize_equal_due = randomize_equal_due

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        conn = None
        try:
            conn = init_db(self.db_path, timeout=self.timeout)
            with conn:
                yield conn
        except sqlite3.Error as e:
            raise StoreError(f"Card store failure: {e}") from e
        finally:
            if conn is not None:
                conn.close()

    def import_or_merge(self, deck_name: str, cards: Iterable[Card], overwrite: bool = True,
                        now: float | None = None) -> tuple[int, int]:
        """Find or create the deck, optionally clear it, insert non-empty cards.

        Returns (deck_id, inserted_count).
        """
        if not deck_name:
            raise StoreError("Missing deck name")
        now = time.time() if now is None else now
        with self._connection() as conn:
            row = conn.execute("SELECT id FROM decks WHERE name = ?", (deck_name,)).fetchone()
            if row:
                deck_id = row["id"]
                if overwrite:
                    conn.execute("DELETE FROM cards WHERE deck_id = ?", (deck_id,))
            else:
                deck_id = conn.execute("INSERT INTO decks (name) VALUES (?)",
                                       (deck_name,)).lastrowid
            count = 0
            for card in cards:
                if card.is_empty():
                    continue
                conn.execute(
                    "INSERT INTO cards (deck_id, front, back, due, created_at, updated_at) "
                    "VALUES (?, ?, ?, ?, ?, ?)",
                    (deck_id, card.front or "", card.back or "", now, int(now), int(now)))
                count += 1
            return deck_id, count

    def list_decks(self) -> list[Deck]:
        with self._connection() as conn:
            rows = conn.execute("""
                SELECT d.id, d.name, COUNT(c.id) AS card_count
                FROM decks d
                LEFT JOIN cards c ON c.deck_id = d.id
                GROUP BY d.id, d.name
                ORDER BY d.name COLLATE NOCASE
            """).fetchall()
        return [Deck(id=r["id"], name=r["name"], card_count=r["card_count"]) for r in rows]

    def get_deck_by_name(self, name: str) -> Deck | None:
        with self._connection() as conn:
            row = conn.execute("""
                SELECT d.id, d.name, COUNT(c.id) AS card_count
                FROM decks d LEFT JOIN cards c ON c.deck_id = d.id
                WHERE d.name = ? GROUP BY d.id, d.name
            """, (name,)).fetchone()
        if not row:
            return None
        return Deck(id=row["id"], name=row["name"], card_count=row["card_count"])

    def delete_deck(self, deck_id: int) -> bool:
        with self._connection() as conn:
            cur = conn.execute("DELETE FROM decks WHERE id = ?", (deck_id,))
            return cur.rowcount > 0

    def get_card(self, card_id: int) -> Card | None:
        with self._connection() as conn:
            row = conn.execute(f"SELECT {CARD_COLUMNS} FROM cards WHERE id = ?",
                               (card_id,)).fetchone()
        return _card_from_row(row) if row else None

    def fetch_next_due(self, deck_id: int, now: float | None = None,
                       randomize: bool | None = None) -> Card | None:
        """The card with the smallest due <= now, optionally a random one among ties."""
        now = time.time() if now is None else now
        randomize = self.randomize_equal_due if randomize is None else randomize
        with self._connection() as conn:
            row = conn.execute(f"""
                SELECT {CARD_COLUMNS} FROM cards
                WHERE deck_id = ? AND due <= ?
                ORDER BY due ASC, id ASC
                LIMIT 1
            """, (deck_id, now)).fetchone()
            if row is None:
                return None
            if randomize:
                ties = conn.execute(f"SELECT {CARD_COLUMNS} FROM cards WHERE deck_id = ? AND due = ? ORDER BY id",
                                    (deck_id, row["due"])).fetchall()
                if len(ties) > 1:
                    row = random.choice(ties)
        return _card_from_row(row)

    def update_scheduling(self, card: Card, now: float | None = None):
        now = time.time() if now is None else now
        with self._connection() as conn:
            conn.execute("""
                UPDATE cards
                SET ease = ?, interval = ?, due = ?, reps = ?, lapses = ?, updated_at = ?
                WHERE id = ?
            """, (card.ease, card.interval, card.due, card.reps, card.lapses, int(now), card.id))

    def deck_stats(self, deck_id: int, now: float | None = None) -> dict:
        now = time.time() if now is None else now
        with self._connection() as conn:
            row = conn.execute("""
                SELECT COUNT(*) AS total,
                       COALESCE(SUM(CASE WHEN due <= ? THEN 1 ELSE 0 END), 0) AS due,
                       COALESCE(SUM(CASE WHEN interval = 0 AND reps = 0 THEN 1 ELSE 0 END), 0) AS new
                FROM cards WHERE deck_id = ?
            """, (now, deck_id)).fetchone()
        return {"total": row["total"], "due": row["due"], "new": row["new"]}

    def store_source_notes(self, deck_id: int, notes: Iterable[SourceNote]) -> int:
        """Replace every stored note of the deck. Notes with empty fields are skipped."""
        with self._connection() as conn:
            conn.execute("DELETE FROM source_notes WHERE deck_id = ?", (deck_id,))
            count = 0
            for note in notes:
                if not note.flds:
                    continue
                conn.execute("INSERT INTO source_notes (deck_id, mid, flds) VALUES (?, ?, ?)",
                             (deck_id, note.mid, note.flds))
                count += 1
            return count

    def load_source_notes(self, deck_id: int) -> list[SourceNote]:
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT mid, flds FROM source_notes WHERE deck_id = ? ORDER BY id",
                (deck_id,)).fetchall()
        return [SourceNote(mid=r["mid"], flds=r["flds"]) for r in rows if r["flds"]]

    def ensure_sample_deck(self, now: float | None = None) -> int:
        """Create the Default deck with a few cards when it is empty."""
        deck = self.get_deck_by_name(SAMPLE_DECK)
        if deck and deck.card_count:
            return deck.id
        cards = [Card(front=f, back=b) for f, b in SAMPLE_CARDS]
        deck_id, _ = self.import_or_merge(SAMPLE_DECK, cards, overwrite=False, now=now)
        return deck_id
