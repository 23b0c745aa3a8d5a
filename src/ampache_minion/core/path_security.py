"""
Library root confinement for files handed out over HTTP.

Stored paths come from the database, so a stale row or a symlink planted in a
library folder could otherwise point the download endpoint anywhere on disk.
"""

from pathlib import Path
from typing import Iterable, Optional


class LibraryRoots:
    """Resolved library root directories.

    Roots are resolved once; candidate paths are resolved on every check so
    that symlinks are judged by where they point now.
    """

    def __init__(self, library_paths: Iterable[str]):
        self.roots = []
        for root in library_paths:
            try:
                self.roots.append(Path(root).expanduser().resolve())
            except (OSError, RuntimeError):
                continue

    def contains(self, file_path: Path) -> bool:
        try:
            resolved = file_path.resolve()
        except (OSError, RuntimeError):
            return False
        return any(resolved.is_relative_to(root) for root in self.roots)

    def existing_file(self, file_path: Path) -> Optional[Path]:
        """The path if it is a regular file inside one of the roots, else None."""
        if not file_path.is_file() or not self.contains(file_path):
            return None
        return file_path
