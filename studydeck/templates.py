"""Template renderer: substitute note fields into a model's question/answer formats."""

import re
from typing import Iterable

from studydeck.collection import split_fields
from studydeck.htmltext import html_to_text
from studydeck.models import Card, Model, Template

_PLACEHOLDER_RE = re.compile(r"\{\{([^}]+)\}\}")
FRONT_SIDE = "{{FrontSide}}"


def field_values_by_name(model: Model, flds: str | bytes) -> dict[str, str]:
    """Map field names (model order) to normalized values; unnamed positions use their 1-based index."""
    names = model.field_names()
    result = {}
    for i, raw in enumerate(split_fields(flds)):
        name = names[i] if i < len(names) else str(i + 1)
        result[name] = html_to_text(raw)
    return result


def find_template(model: Model, ord_: int) -> Template | None:
    if not model.templates:
        return None
    for tmpl in model.templates:
        if tmpl.ord == ord_:
            return tmpl
    if 0 <= ord_ < len(model.templates):
        return model.templates[ord_]
    return model.templates[0]


def substitute(fmt: str, fields: dict[str, str]) -> str:
    return _PLACEHOLDER_RE.sub(lambda m: fields.get(m.group(1).strip(), ""), fmt or "")


def render(tmpl: Template, fields: dict[str, str]) -> tuple[str, str]:
    front = html_to_text(substitute(tmpl.qfmt, fields))
    # The rendered front is spliced in verbatim, never re-substituted.
    pieces = (tmpl.afmt or "").split(FRONT_SIDE)
    back = html_to_text(front.join(substitute(p, fields) for p in pieces))
    return front, back


def cards_from_templates(rows: Iterable[tuple], models: dict[str, Model]) -> list[Card]:
    """Render (card ordinal, note model id, raw fields) rows into cards."""
    cards = []
    for ord_, mid, flds in rows:
        if not flds:
            continue
        model = models.get(str(mid))
        if model is None:
            continue
        try:
            ord_ = int(ord_)
        except (TypeError, ValueError):
            ord_ = 0
        tmpl = find_template(model, ord_)
        if tmpl is None:
            continue
        front, back = render(tmpl, field_values_by_name(model, flds))
        if not front and back:
            front = back
        if front or back:
            cards.append(Card(front=front, back=back))
    return cards
