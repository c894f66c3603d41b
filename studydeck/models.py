"""Shared data classes used across the importer, store, and scheduler."""

import re
from dataclasses import dataclass, field

DEFAULT_EASE = 2.5
MIN_EASE = 1.3


@dataclass
class Card:
    front: str
    back: str
    id: int | None = None
    deck_id: int | None = None
    ease: float = DEFAULT_EASE
    interval: float = 0.0
    due: float = 0.0
    reps: int = 0
    lapses: int = 0

    @property
    def is_new(self) -> bool:
        return self.interval == 0 and self.reps == 0

    def is_empty(self) -> bool:
        return not self.front and not self.back


@dataclass
class Deck:
    id: int
    name: str
    card_count: int = 0


@dataclass
class SourceNote:
    mid: str | None
    flds: str


@dataclass
class FieldDef:
    index: int
    name: str


@dataclass
class Template:
    ord: int
    qfmt: str = ""
    afmt: str = ""


@dataclass
class Model:
    id: str
    name: str
    fields: list[FieldDef] = field(default_factory=list)
    templates: list[Template] = field(default_factory=list)

    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]


@dataclass
class ModelMapping:
    front_indexes: list[int] = field(default_factory=list)
    back_indexes: list[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"front_indexes": list(self.front_indexes),
                "back_indexes": list(self.back_indexes)}

    @classmethod
    def from_dict(cls, data) -> "ModelMapping":
        if not isinstance(data, dict):
            return cls()
        return cls(front_indexes=_coerce_indexes(data.get("front_indexes")),
                   back_indexes=_coerce_indexes(data.get("back_indexes")))


@dataclass
class FieldMapping:
    """Model id -> which 1-based field indices compose the front and back."""

    models: dict[str, ModelMapping] = field(default_factory=dict)
    short_name: str | None = None

    def to_dict(self) -> dict:
        data: dict = {"models": {mid: m.to_dict() for mid, m in self.models.items()}}
        if self.short_name:
            data["short_name"] = self.short_name
        return data

    @classmethod
    def from_dict(cls, data) -> "FieldMapping":
        if not isinstance(data, dict):
            return cls()
        raw_models = data.get("models")
        models = {}
        if isinstance(raw_models, dict):
            for mid, raw in raw_models.items():
                models[str(mid)] = ModelMapping.from_dict(raw)
        short_name = data.get("short_name")
        return cls(models=models,
                   short_name=short_name if isinstance(short_name, str) else None)


@dataclass
class FieldSamples:
    index: int
    name: str
    samples: list[str] = field(default_factory=list)


@dataclass
class ModelSnapshot:
    id: str
    name: str
    note_count: int = 0
    fields: list[FieldSamples] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "note_count": self.note_count,
            "fields": [{"index": f.index, "name": f.name, "samples": list(f.samples)}
                       for f in self.fields],
        }

    @classmethod
    def from_dict(cls, mid: str, data: dict) -> "ModelSnapshot":
        fields = []
        for raw in data.get("fields") or []:
            if not isinstance(raw, dict):
                continue
            try:
                index = int(raw.get("index"))
            except (TypeError, ValueError):
                continue
            samples = [s for s in raw.get("samples") or [] if isinstance(s, str)]
            fields.append(FieldSamples(index=index, name=str(raw.get("name", index)),
                                       samples=samples[:3]))
        try:
            note_count = int(data.get("note_count") or 0)
        except (TypeError, ValueError):
            note_count = 0
        return cls(id=str(data.get("id", mid)), name=str(data.get("name") or ""),
                   note_count=note_count, fields=fields)


@dataclass
class InspectionSnapshot:
    short_name: str
    models: dict[str, ModelSnapshot] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"short_name": self.short_name,
                "models": {mid: m.to_dict() for mid, m in self.models.items()}}

    @classmethod
    def from_dict(cls, data) -> "InspectionSnapshot | None":
        if not isinstance(data, dict):
            return None
        models = {}
        raw_models = data.get("models")
        if isinstance(raw_models, dict):
            for mid, raw in raw_models.items():
                if isinstance(raw, dict):
                    models[str(mid)] = ModelSnapshot.from_dict(str(mid), raw)
        return cls(short_name=str(data.get("short_name") or ""), models=models)


@dataclass
class ImportResult:
    deck_name: str
    deck_id: int
    card_count: int
    media_dir: str | None = None
    source_total_cards: int = 0
    source_total_notes: int = 0
    extracted_cards: int = 0
    strategy: str = ""


@dataclass
class Outcome:
    """Scheduling state a rating would produce."""
    ease: float
    interval: float
    reps: int
    lapses: int
    due: float
    label: str = ""


def _coerce_indexes(values) -> list[int]:
    if not isinstance(values, list):
        return []
    result = []
    for v in values:
        if isinstance(v, bool):
            continue
        try:
            result.append(int(v))
        except (TypeError, ValueError):
            continue
    return result


def format_deck_title(name: str) -> str:
    """Readable deck title: underscores become spaces, long names are cut."""
    if not name:
        return name
    display = re.sub(r"_+", " ", name)
    if len(display) > 60:
        display = display[:57] + "..."
    return display
