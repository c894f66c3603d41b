"""Field mapping resolver: build front/back text from user-selected note fields."""

from typing import Iterable

from studydeck.collection import normalized_fields
from studydeck.models import Card, FieldMapping, ModelMapping, SourceNote

DIVIDER = "──────── "


def join_with_divider(parts: list[str]) -> str:
    """Join parts with a divider line before every part after the first."""
    if not parts:
        return ""
    return "\n".join([parts[0]] + [f"{DIVIDER}\n{p}" for p in parts[1:]])


def collect_by_indexes(values: list[str], indexes: list[int]) -> list[str]:
    """Values at 1-based indexes, in listed order; out-of-range and empty are skipped."""
    parts = []
    for idx in indexes:
        if 1 <= idx <= len(values) and values[idx - 1]:
            parts.append(values[idx - 1])
    return parts


def card_from_values(values: list[str], model_mapping: ModelMapping) -> Card | None:
    front = join_with_divider(collect_by_indexes(values, model_mapping.front_indexes))
    back = join_with_divider(collect_by_indexes(values, model_mapping.back_indexes))
    if not front and back:
        front = back
    if not front and not back:
        return None
    return Card(front=front, back=back)


def mapping_for_note(mapping: FieldMapping, mid: str | None) -> ModelMapping | None:
    """A single-entry mapping applies to every note whatever its model id."""
    if len(mapping.models) == 1:
        return next(iter(mapping.models.values()))
    if mid is None:
        return None
    return mapping.models.get(str(mid))


def cards_from_notes(notes: Iterable[SourceNote], mapping: FieldMapping) -> list[Card]:
    if not mapping.models:
        return []
    cards = []
    for note in notes:
        model_mapping = mapping_for_note(mapping, note.mid)
        if model_mapping is None or not note.flds:
            continue
        card = card_from_values(normalized_fields(note.flds), model_mapping)
        if card is not None:
            cards.append(card)
    return cards
