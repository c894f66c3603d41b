"""Error taxonomy for the import pipeline and the card store."""


class StudyDeckError(Exception):
    """Base class for every failure reported to callers."""


class ArchiveOpenError(StudyDeckError):
    """The package container could not be opened."""


class MissingCollectionError(StudyDeckError):
    """The package holds no recognizable collection database."""


class ExtractError(StudyDeckError):
    """An archive entry or the collection database could not be read."""


class MetadataDecodeError(StudyDeckError):
    """The collection's models JSON is malformed."""


class NoCardsProducedError(StudyDeckError):
    """Every extraction strategy yielded zero cards."""

    def __init__(self, message: str, source_total_cards: int = 0,
                 source_total_notes: int = 0):
        super().__init__(message)
        self.source_total_cards = source_total_cards
        self.source_total_notes = source_total_notes


class StoreError(StudyDeckError):
    """Cards were produced but could not be persisted."""
