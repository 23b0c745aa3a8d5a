"""Library domain - stored music, its queries and scanning.

This domain handles:
- Entity models (tracks, albums, artists, genres, playlists)
- Per-user entity queries
- File lookups for downloads and covers
- Library scanning with Mutagen
"""

from .exceptions import LibraryError, NotFoundError
from .files import FileStore, get_mime_type
from .models import (
    ALL_TRACKS_PLAYLIST_ID,
    Album,
    AllTracksPlaylist,
    Artist,
    FileHandle,
    Genre,
    Playlist,
    SortBy,
    Track,
)
from .naming import L10n, display_name
from .queries import Library
from .scanner import ScanResult, scan_music_library

__all__ = [
    # Models
    "ALL_TRACKS_PLAYLIST_ID",
    "Album",
    "AllTracksPlaylist",
    "Artist",
    "FileHandle",
    "Genre",
    "Playlist",
    "SortBy",
    "Track",
    # Errors
    "LibraryError",
    "NotFoundError",
    # Queries and files
    "Library",
    "FileStore",
    "get_mime_type",
    # Names
    "L10n",
    "display_name",
    # Scanning
    "ScanResult",
    "scan_music_library",
]
