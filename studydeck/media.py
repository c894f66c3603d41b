"""Media resolver: decode the media index and copy mapped files out of a package."""

import json
import logging
import pathlib

from studydeck.archive import ArchiveReader

logger = logging.getLogger(__name__)


def load_media_map(arc: ArchiveReader, media_entry: str | None) -> dict[str, str]:
    """Archive entry name -> real filename. Any decode problem yields {}."""
    if not media_entry:
        return {}
    content = arc.extract_to_memory(media_entry)
    if not content:
        return {}
    try:
        decoded = json.loads(content.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        logger.warning("Failed to decode media map %s in %s: %s", media_entry, arc.path.name, e)
        return {}
    if not isinstance(decoded, dict):
        logger.warning("Media map %s in %s is not a JSON object", media_entry, arc.path.name)
        return {}
    return {str(k): v for k, v in decoded.items() if isinstance(v, str) and v}


def sanitize_filename(name: str) -> str:
    return name.replace("/", "_").replace("\\", "_").replace(":", "_")


def extract_media(arc: ArchiveReader, media_map: dict[str, str],
                  deck_media_dir: pathlib.Path) -> list[pathlib.Path]:
    """Extract each mapped entry into deck_media_dir. Per-file failures are skipped."""
    if not media_map:
        return []
    deck_media_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for entry in arc.iterate():
        if entry.kind != "file":
            continue
        mapped = media_map.get(entry.path)
        if not mapped:
            continue
        safe_name = sanitize_filename(mapped)
        if safe_name in ("", ".", ".."):
            logger.warning("Skipping media entry %s with unusable name %r", entry.path, mapped)
            continue
        dest = deck_media_dir / safe_name
        if arc.extract_to_path(entry.path, dest):
            written.append(dest)
        else:
            logger.warning("Failed to extract media file %s from %s", entry.path, arc.path.name)
    return written
