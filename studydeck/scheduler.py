"""Two-regime scheduler: learning steps for new cards, SM-2 style growth for reviews.

Ease never drops below 1.3. Intervals are in days, due is an absolute epoch
timestamp in seconds.
"""

import time

from studydeck.models import MIN_EASE, Card, Outcome

RATINGS = ("again", "hard", "good", "easy")

MINUTE = 60
HOUR = 3600
DAY = 86400


def _lower_ease(ease: float, amount: float) -> float:
    return max(MIN_EASE, ease - amount)


def next_state(card: Card, rating: str, now: float) -> Outcome:
    """Pure transition: the state card would have after rating at now."""
    if rating not in RATINGS:
        raise ValueError(f"Unknown rating: {rating!r}")
    ease = card.ease
    interval = card.interval
    reps = card.reps
    lapses = card.lapses

    if card.is_new:
        if rating == "again":
            lapses += 1
            ease = _lower_ease(ease, 0.2)
            due = now + 1 * MINUTE
        elif rating == "hard":
            reps += 1
            ease = _lower_ease(ease, 0.15)
            due = now + 6 * MINUTE
        elif rating == "good":
            reps += 1
            due = now + 10 * MINUTE
        else:
            reps += 1
            ease += 0.15
            interval = 4
            due = now + interval * DAY
        return Outcome(ease=ease, interval=interval, reps=reps, lapses=lapses, due=due)

    if rating == "again":
        reps = 0
        lapses += 1
        interval = 0
        ease = _lower_ease(ease, 0.2)
        due = now + 10 * MINUTE
    elif rating == "hard":
        reps += 1
        ease = _lower_ease(ease, 0.15)
        interval = max(interval, 1) * 1.2
        due = now + interval * DAY
    elif rating == "good":
        reps += 1
        interval = 1 if interval == 0 else interval * ease
        due = now + interval * DAY
    else:
        reps += 1
        ease += 0.15
        interval = 3 if interval == 0 else interval * ease * 1.3
        due = now + interval * DAY
    return Outcome(ease=ease, interval=interval, reps=reps, lapses=lapses, due=due)


def format_delta(seconds: float) -> str:
    """Short label: "<Nm" / "<Nh" below a day, "Nd" from a day on."""
    if seconds <= 0:
        return "<1m"
    if seconds < HOUR:
        return f"<{max(1, int(seconds / MINUTE + 0.5))}m"
    if seconds < DAY:
        return f"<{int(seconds / HOUR + 0.5)}h"
    return f"{int(seconds / DAY + 0.5)}d"


class Scheduler:
    """Applies ratings to stored cards.

    Usage:
        sched = Scheduler(store)
        labels = sched.preview(card)
        card = sched.commit(card, "good")
    """

    scheduler_id = "two_regime"

    def __init__(self, store=None):
        self.store = store

    def preview(self, card: Card, now: float | None = None) -> dict[str, Outcome]:
        """All four outcomes; nothing is persisted."""
        now = time.time() if now is None else now
        result = {}
        for rating in RATINGS:
            outcome = next_state(card, rating, now)
            outcome.label = format_delta(outcome.due - now)
            result[rating] = outcome
        return result

    def commit(self, card: Card, rating: str, now: float | None = None) -> Card:
        """Apply rating, persist when a store is attached, return the updated card."""
        now = time.time() if now is None else now
        outcome = next_state(card, rating, now)
        updated = Card(id=card.id, deck_id=card.deck_id, front=card.front, back=card.back,
                       ease=outcome.ease, interval=outcome.interval, due=outcome.due,
                       reps=outcome.reps, lapses=outcome.lapses)
        if self.store is not None and card.id is not None:
            self.store.update_scheduling(updated, now=now)
        return updated
