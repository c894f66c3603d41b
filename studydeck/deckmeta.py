"""Per-deck metadata kept in the settings store, keyed by package short name."""

from studydeck.config import JsonSettings
from studydeck.models import FieldMapping, InspectionSnapshot, ModelMapping, ModelSnapshot

MAPPINGS_KEY = "mappings"
INSPECT_KEY = "inspect"


def _section(settings: JsonSettings, key: str) -> dict:
    value = settings.read(key)
    return value if isinstance(value, dict) else {}


def load_field_mapping(settings: JsonSettings, short_name: str) -> FieldMapping | None:
    if not short_name:
        return None
    raw = _section(settings, MAPPINGS_KEY).get(short_name)
    if not isinstance(raw, dict):
        return None
    mapping = FieldMapping.from_dict(raw)
    return mapping if mapping.models else None


def save_field_mapping(settings: JsonSettings, short_name: str, mapping: FieldMapping) -> bool:
    """Persist mapping for short_name. A mapping without model entries is refused."""
    if not short_name or not mapping.models:
        return False
    mapping.short_name = short_name
    mappings = _section(settings, MAPPINGS_KEY)
    mappings[short_name] = mapping.to_dict()
    settings.save(MAPPINGS_KEY, mappings)
    settings.flush()
    return True


def load_inspection(settings: JsonSettings, short_name: str) -> InspectionSnapshot | None:
    if not short_name:
        return None
    return InspectionSnapshot.from_dict(_section(settings, INSPECT_KEY).get(short_name))


def save_inspection(settings: JsonSettings, short_name: str, snapshot: InspectionSnapshot):
    if not short_name:
        return
    cache = _section(settings, INSPECT_KEY)
    cache[short_name] = snapshot.to_dict()
    settings.save(INSPECT_KEY, cache)
    settings.flush()


def clear_deck_metadata(settings: JsonSettings, short_name: str):
    if not short_name:
        return
    changed = False
    for key in (MAPPINGS_KEY, INSPECT_KEY):
        section = _section(settings, key)
        if short_name in section:
            del section[short_name]
            settings.save(key, section)
            changed = True
    if changed:
        settings.flush()


def default_model_mapping(model: ModelSnapshot) -> ModelMapping:
    """Field 1 on the front, everything else on the back."""
    indexes = [f.index for f in model.fields]
    return ModelMapping(front_indexes=indexes[:1], back_indexes=indexes[1:])
