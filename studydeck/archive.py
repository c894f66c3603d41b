"""Archive reader: a thin scoped wrapper around a zip-compatible package."""

import pathlib
import shutil
import zipfile
from dataclasses import dataclass
from typing import Iterator

from studydeck.errors import ArchiveOpenError


@dataclass
class ArchiveEntry:
    path: str
    kind: str  # "file" or "directory"


class ArchiveReader:
    """Open package container. Entry names are not validated here.

    Usage:
        with ArchiveReader.open(path) as arc:
            for entry in arc.iterate():
                ...
    """

    def __init__(self, zf: zipfile.ZipFile, path: pathlib.Path):
        self._zf = zf
        self.path = path

    @classmethod
    def open(cls, path: pathlib.Path | str) -> "ArchiveReader":
        path = pathlib.Path(path)
        try:
            zf = zipfile.ZipFile(path, "r")
        except (zipfile.BadZipFile, OSError) as e:
            raise ArchiveOpenError(f"Unable to open package archive {path.name}: {e}") from e
        return cls(zf, path)

    def iterate(self) -> Iterator[ArchiveEntry]:
        for info in self._zf.infolist():
            kind = "directory" if info.is_dir() else "file"
            yield ArchiveEntry(path=info.filename, kind=kind)

    def extract_to_memory(self, entry_path: str) -> bytes | None:
        try:
            return self._zf.read(entry_path)
        except (KeyError, OSError, zipfile.BadZipFile, RuntimeError):
            return None

    def extract_to_path(self, entry_path: str, dest_path: pathlib.Path | str) -> bool:
        dest_path = pathlib.Path(dest_path)
        try:
            dest_path.parent.mkdir(parents=True, exist_ok=True)
            with self._zf.open(entry_path) as src, open(dest_path, "wb") as dst:
                shutil.copyfileobj(src, dst)
        except (KeyError, OSError, zipfile.BadZipFile, RuntimeError):
            return False
        return True

    def close(self):
        self._zf.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False
