"""App: central object that wires together the data dir, settings, store, and scheduler."""

import pathlib

from studydeck import deckmeta, importer
from studydeck.config import JsonSettings, ensure_dir, get_data_dir, load_settings
from studydeck.errors import ExtractError
from studydeck.models import (Card, Deck, FieldMapping, ImportResult, InspectionSnapshot,
                              ModelMapping, Outcome)
from studydeck.package import short_name_for
from studydeck.scheduler import Scheduler
from studydeck.store import CardStore


class App:
    """Holds all shared state for a study session.

    Usage:
        app = App(data_dir="/path/to/data")
        result = app.import_package("French.apkg")
        card = app.next_card(result.deck_id)
        app.rate(card, "good")
        app.close()
    """

    def __init__(self, data_dir: pathlib.Path | str | None = None):
        if data_dir is None:
            data_dir = get_data_dir()
        self.data_dir = pathlib.Path(data_dir)
        self.settings = load_settings(self.data_dir)
        self.state = JsonSettings.open(self.data_dir / "state.json")
        self.timeout = float(self.settings.get("busy_timeout", 5))
        self.store = CardStore(self.data_dir / "studydeck.db", timeout=self.timeout,
                               randomize_equal_due=self.randomize_equal_due)
        self.scheduler = Scheduler(self.store)

    @property
    def media_root(self) -> pathlib.Path:
        return ensure_dir(self.data_dir / "media")

    @property
    def tmp_root(self) -> pathlib.Path:
        return ensure_dir(self.data_dir / "tmp")

    @property
    def shared_dir(self) -> pathlib.Path:
        return ensure_dir(self.data_dir / "shared")

    @property
    def randomize_equal_due(self) -> bool:
        value = self.state.read("randomize_equal_due")
        if value is None:
            value = self.settings.get("randomize_equal_due", False)
        return bool(value)

    def set_randomize_equal_due(self, enabled: bool):
        self.state.save("randomize_equal_due", bool(enabled))
        self.state.flush()
        self.store.randomize_equal_due = bool(enabled)

    def inspect_package(self, package_path: pathlib.Path | str) -> InspectionSnapshot:
        """Inspect a package and refresh its cached snapshot."""
        snapshot = importer.inspect_package(package_path, tmp_root=self.tmp_root,
                                            timeout=self.timeout)
        deckmeta.save_inspection(self.state, snapshot.short_name, snapshot)
        return snapshot

    def cached_inspection(self, short_name: str) -> InspectionSnapshot | None:
        return deckmeta.load_inspection(self.state, short_name)

    def default_selection(self, short_name: str, model_id: str) -> ModelMapping | None:
        """Starting selection for a model of a previously inspected package."""
        snapshot = self.cached_inspection(short_name)
        model = snapshot.models.get(model_id) if snapshot else None
        if model is None or not model.fields:
            return None
        return deckmeta.default_model_mapping(model)

    def field_mapping(self, short_name: str) -> FieldMapping | None:
        return deckmeta.load_field_mapping(self.state, short_name)

    def import_package(self, package_path: pathlib.Path | str,
                       use_saved_mapping: bool = True) -> ImportResult:
        mapping = None
        if use_saved_mapping:
            mapping = self.field_mapping(short_name_for(package_path))
        result = importer.import_package(package_path, self.store, self.media_root,
                                         mapping=mapping, tmp_root=self.tmp_root,
                                         timeout=self.timeout)
        self.remember_deck(result.deck_id)
        return result

    def apply_mapping(self, short_name: str, mapping: FieldMapping) -> ImportResult | None:
        """Save mapping, then rebuild the deck from stored notes or re-import its package.

        Returns None when the mapping was empty and nothing was saved.
        """
        if not deckmeta.save_field_mapping(self.state, short_name, mapping):
            return None
        deck = self.store.get_deck_by_name(short_name)
        package = self.find_package(short_name)
        if deck is not None:
            try:
                return importer.rebuild_deck(self.store, deck.id, deck.name, mapping)
            except ExtractError:
                if package is None:
                    raise
        if package is None:
            raise ExtractError(f"No matching package found for deck {short_name}")
        return self.import_package(package)

    def find_package(self, short_name: str) -> pathlib.Path | None:
        candidates = sorted(self.shared_dir.glob("*.apkg"), key=lambda p: p.name.lower())
        return importer.find_package(short_name, candidates)

    def list_decks(self) -> list[Deck]:
        return self.store.list_decks()

    def deck_by_name(self, name: str) -> Deck | None:
        return self.store.get_deck_by_name(name)

    def delete_deck(self, deck: Deck) -> bool:
        deleted = self.store.delete_deck(deck.id)
        deckmeta.clear_deck_metadata(self.state, deck.name)
        if self.state.read("last_deck_id") == deck.id:
            self.state.delete("last_deck_id")
            self.state.flush()
        return deleted

    def remember_deck(self, deck_id: int):
        self.state.save("last_deck_id", deck_id)
        self.state.flush()

    def last_deck_id(self) -> int | None:
        value = self.state.read("last_deck_id")
        try:
            return int(value) if value is not None else None
        except (TypeError, ValueError):
            return None

    def next_card(self, deck_id: int, now: float | None = None) -> Card | None:
        return self.store.fetch_next_due(deck_id, now)

    def preview(self, card: Card, now: float | None = None) -> dict[str, Outcome]:
        return self.scheduler.preview(card, now)

    def rate(self, card: Card, rating: str, now: float | None = None) -> Card:
        return self.scheduler.commit(card, rating, now)

    def close(self):
        """Flush the state store."""
        self.state.flush()
