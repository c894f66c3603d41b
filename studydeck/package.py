"""Package locator: find the collection database and media index entries."""

import pathlib
from dataclasses import dataclass

from studydeck.archive import ArchiveReader
from studydeck.errors import MissingCollectionError

CURRENT_COLLECTION = "collection.anki21"
LEGACY_COLLECTION = "collection.anki2"
DEFAULT_SHORT_NAME = "Imported deck"


@dataclass
class PackageEntries:
    collection: str
    media: str | None = None


def locate_entries(arc: ArchiveReader) -> PackageEntries:
    """Scan all entries once. The current collection filename wins over the legacy one."""
    current = None
    legacy = None
    media = None
    for entry in arc.iterate():
        if entry.kind != "file":
            continue
        if entry.path.endswith(CURRENT_COLLECTION):
            current = current or entry.path
        elif entry.path.endswith(LEGACY_COLLECTION):
            legacy = legacy or entry.path
        elif media is None and (entry.path == "media" or entry.path.endswith("/media")):
            media = entry.path

    collection = current or legacy
    if collection is None:
        raise MissingCollectionError(
            f"Package {arc.path.name} does not contain {LEGACY_COLLECTION} or {CURRENT_COLLECTION}")
    return PackageEntries(collection=collection, media=media)


def short_name_for(package_path: pathlib.Path | str) -> str:
    """Base file name with the final extension stripped."""
    name = pathlib.PurePath(str(package_path)).name
    stem, dot, _ext = name.rpartition(".")
    short = stem if dot else name
    return short or DEFAULT_SHORT_NAME
