"""Tests for studydeck.models."""

from studydeck.models import Card, FieldMapping, InspectionSnapshot, ModelMapping, format_deck_title


def test_card_regime():
    assert Card("q", "a").is_new
    assert not Card("q", "a", reps=1).is_new
    assert not Card("q", "a", interval=2).is_new


def test_card_empty():
    assert Card("", "").is_empty()
    assert not Card("", "a").is_empty()


def test_field_mapping_dict():
    mapping = FieldMapping(models={"5": ModelMapping([1], [2])}, short_name="Deck")
    data = mapping.to_dict()
    assert data == {"models": {"5": {"front_indexes": [1], "back_indexes": [2]}},
                    "short_name": "Deck"}
    assert FieldMapping.from_dict(data) == mapping
    assert FieldMapping.from_dict(None) == FieldMapping()


def test_inspection_from_non_dict():
    assert InspectionSnapshot.from_dict("junk") is None


def test_format_deck_title():
    assert format_deck_title("Spanish__Verbs_1") == "Spanish Verbs 1"
    assert format_deck_title("") == ""
    long = format_deck_title("x" * 80)
    assert len(long) == 60
    assert long.endswith("...")
