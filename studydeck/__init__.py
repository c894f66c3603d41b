"""studydeck: flashcard package import and spaced repetition."""

__version__ = "0.1.0"

from studydeck.models import Card, Deck, FieldMapping, ModelMapping, SourceNote
from studydeck.app import App

__all__ = ["App", "Card", "Deck", "FieldMapping", "ModelMapping", "SourceNote"]
