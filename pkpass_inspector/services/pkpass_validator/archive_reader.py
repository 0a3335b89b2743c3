"""
Read-only access to the entries of a .pkpass ZIP archive.
"""

import logging
import zipfile
import zlib
from io import BytesIO
from pathlib import Path
from typing import List, Union

from .errors import ArchiveUnreadable, MissingEntry

logger = logging.getLogger(__name__)


class ArchiveReader:
    """Named-entry lookup over an in-memory .pkpass archive"""

    def __init__(self, archive_bytes: bytes):
        if not archive_bytes:
            raise ArchiveUnreadable("Empty archive")
        try:
            self._zip = zipfile.ZipFile(BytesIO(archive_bytes), "r")
        except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError) as e:
            raise ArchiveUnreadable(f"Not a valid ZIP archive: {e}") from e
        self._names = self._zip.namelist()
        logger.debug(f"Opened archive with {len(self._names)} entries")

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "ArchiveReader":
        """Open a .pkpass file from disk."""
        return cls(Path(path).read_bytes())

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def close(self) -> None:
        self._zip.close()

    def list_entries(self) -> List[str]:
        """Entry names in archive order."""
        return list(self._names)

    def has_entry(self, name: str) -> bool:
        return name in self._names

    def read_bytes(self, name: str) -> bytes:
        if not self.has_entry(name):
            raise MissingEntry(name)
        try:
            return self._zip.read(name)
        except (zipfile.BadZipFile, zlib.error, EOFError, OSError, RuntimeError) as e:
            # damaged member data, or an entry zipfile cannot decode (encrypted, unknown method)
            raise ArchiveUnreadable(f"Cannot read {name}: {e}") from e

    def read_text(self, name: str, encoding: str = "utf-8") -> str:
        return self.read_bytes(name).decode(encoding)
