"""Tests for studydeck.scheduler."""

import pytest

from studydeck.models import Card
from studydeck.scheduler import DAY, MINUTE, RATINGS, Scheduler, format_delta, next_state

T = 1_700_000_000


def _new():
    return Card(front="q", back="a", ease=2.5, interval=0, reps=0, lapses=0, due=T)


def _review(interval=10, ease=2.0, reps=3, lapses=0):
    return Card(front="q", back="a", ease=ease, interval=interval, reps=reps, lapses=lapses, due=T)


def test_new_card_again():
    out = next_state(_new(), "again", T)
    assert out.lapses == 1
    assert out.reps == 0
    assert out.ease == pytest.approx(2.3)
    assert out.due == T + MINUTE


def test_new_card_hard():
    out = next_state(_new(), "hard", T)
    assert out.reps == 1
    assert out.ease == pytest.approx(2.35)
    assert out.due == T + 6 * MINUTE


def test_new_card_good():
    out = next_state(_new(), "good", T)
    assert out.reps == 1
    assert out.ease == 2.5
    assert out.interval == 0
    assert out.due == T + 10 * MINUTE


def test_new_card_easy():
    out = next_state(_new(), "easy", T)
    assert out.ease == pytest.approx(2.65)
    assert out.interval == 4
    assert out.due == T + 4 * DAY


def test_review_again_resets():
    out = next_state(_review(interval=10, ease=2.0, reps=5, lapses=2), "again", T)
    assert out.reps == 0
    assert out.lapses == 3
    assert out.interval == 0
    assert out.ease == pytest.approx(1.8)
    assert out.due == T + 600


def test_review_hard():
    out = next_state(_review(interval=10, ease=2.0), "hard", T)
    assert out.ease == pytest.approx(1.85)
    assert out.interval == pytest.approx(12)
    assert out.due == pytest.approx(T + 12 * DAY)


def test_review_good_and_easy():
    good = next_state(_review(interval=10, ease=2.0), "good", T)
    assert good.interval == pytest.approx(20)
    assert good.due == pytest.approx(T + 20 * DAY)
    easy = next_state(_review(interval=10, ease=2.0), "easy", T)
    assert easy.ease == pytest.approx(2.15)
    assert easy.interval == pytest.approx(10 * 2.15 * 1.3)


def test_review_with_zero_interval():
    card = _review(interval=0, reps=2)
    assert next_state(card, "good", T).interval == 1
    assert next_state(card, "easy", T).interval == 3
    assert next_state(card, "hard", T).interval == pytest.approx(1.2)


@pytest.mark.parametrize("rating", RATINGS)
@pytest.mark.parametrize("ease", [1.3, 1.35, 1.5, 2.5])
@pytest.mark.parametrize("interval,reps", [(0, 0), (0, 2), (3, 1), (30, 8)])
def test_ease_never_below_floor(rating, ease, interval, reps):
    card = Card(front="q", back="a", ease=ease, interval=interval, reps=reps)
    assert next_state(card, rating, T).ease >= 1.3


@pytest.mark.parametrize("ease", [1.0, 1.3, 2.5, 3.0])
def test_review_good_moves_due_forward(ease):
    out = next_state(_review(interval=2, ease=ease), "good", T)
    assert out.due > T


def test_unknown_rating():
    with pytest.raises(ValueError):
        next_state(_new(), "perfect", T)


def test_format_delta():
    assert format_delta(0) == "<1m"
    assert format_delta(-5) == "<1m"
    assert format_delta(60) == "<1m"
    assert format_delta(360) == "<6m"
    assert format_delta(600) == "<10m"
    assert format_delta(2 * 3600) == "<2h"
    assert format_delta(4 * DAY) == "4d"
    assert format_delta(1.6 * DAY) == "2d"


def test_preview_labels_new_card():
    labels = {r: o.label for r, o in Scheduler().preview(_new(), now=T).items()}
    assert labels == {"again": "<1m", "hard": "<6m", "good": "<10m", "easy": "4d"}


def test_preview_does_not_persist(store):
    deck_id, _ = store.import_or_merge("D", [Card(front="q", back="a")], now=T)
    card = store.fetch_next_due(deck_id, now=T)
    Scheduler(store).preview(card, now=T)
    assert store.get_card(card.id) == card


def test_commit_persists(store):
    deck_id, _ = store.import_or_merge("D", [Card(front="q", back="a")], now=T)
    card = store.fetch_next_due(deck_id, now=T)
    updated = Scheduler(store).commit(card, "easy", now=T)
    assert updated.interval == 4
    loaded = store.get_card(card.id)
    assert loaded.interval == 4
    assert loaded.due == T + 4 * DAY
    assert loaded.ease == pytest.approx(2.65)
    assert store.fetch_next_due(deck_id, now=T) is None


def test_commit_without_store():
    card = _new()
    updated = Scheduler().commit(card, "good", now=T)
    assert updated.reps == 1
    assert card.reps == 0
