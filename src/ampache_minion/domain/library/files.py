"""
File storage lookups: audio files for downloads and images for covers.
"""

import mimetypes
from pathlib import Path
from typing import Optional, Union

from loguru import logger

from ampache_minion.core.path_security import LibraryRoots

from .models import Album, Artist, FileHandle

AUDIO_MIME_TYPES: dict[str, str] = {
    ".opus": "audio/opus",
    ".ogg": "audio/ogg",
    ".mp3": "audio/mpeg",
    ".m4a": "audio/mp4",
    ".flac": "audio/flac",
    ".wav": "audio/wav",
}


def get_mime_type(file_path: Path) -> str:
    """Pure function - deterministic MIME type detection."""
    mime = AUDIO_MIME_TYPES.get(file_path.suffix.lower())
    if mime:
        return mime
    guessed, _ = mimetypes.guess_type(str(file_path))
    return guessed or "application/octet-stream"


class FileStore:
    """Resolves stored file ids to readable paths inside the library."""

    def __init__(self, conn, library_paths: list[str]):
        self.conn = conn
        self.roots = LibraryRoots(library_paths)

    def resolve_file_handles(self, user_id: str, file_id: Optional[int]) -> list[FileHandle]:
        """All existing, in-library files matching the id for this user."""
        if file_id is None:
            return []
        rows = self.conn.execute(
            "SELECT id, user_id, path FROM files WHERE id = ? AND user_id = ?",
            (file_id, user_id),
        ).fetchall()

        handles = []
        for row in rows:
            if self.roots.existing_file(Path(row["path"])) is None:
                logger.warning(f"File {row['id']} is missing or outside library: {row['path']}")
                continue
            handles.append(FileHandle(id=row["id"], user_id=row["user_id"], path=row["path"]))
        return handles

    def get_cover(
        self, entity: Union[Album, Artist], user_id: str
    ) -> Optional[tuple[bytes, str]]:
        """Cover image bytes and MIME type, or None when there is no usable cover."""
        handles = self.resolve_file_handles(user_id, entity.cover_file_id)
        if len(handles) != 1:
            return None
        path = Path(handles[0].path)
        return path.read_bytes(), get_mime_type(path)
