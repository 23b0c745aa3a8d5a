"""
Music library domain models.

Read-only projections of the library tables. Names of related entities
(artist_name, album_name, ...) are joined in by the query layer so that the
renderer does not need one lookup per row.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

# Sentinel id of the virtual playlist holding the whole library
ALL_TRACKS_PLAYLIST_ID = 10000000


class SortBy(Enum):
    NAME = "name"
    NEWEST = "newest"
    NONE = "none"


@dataclass(frozen=True)
class Artist:
    id: int
    user_id: str
    name: Optional[str]
    cover_file_id: Optional[int] = None
    starred: Optional[str] = None


@dataclass(frozen=True)
class Album:
    id: int
    user_id: str
    name: Optional[str]
    album_artist_id: Optional[int]
    year: Optional[int] = None
    cover_file_id: Optional[int] = None
    starred: Optional[str] = None
    album_artist_name: Optional[str] = None
    genre_ids: tuple[int, ...] = ()
    disk_count: int = 1


@dataclass
class Track:
    """A library track.

    `album` and `number_on_playlist` are transient annotations set while
    building a response; they are never persisted.
    """

    id: int
    user_id: str
    title: str
    artist_id: Optional[int]
    album_id: Optional[int]
    genre_id: Optional[int] = None
    length: Optional[int] = None  # in seconds
    year: Optional[int] = None
    number: Optional[int] = None
    disk: Optional[int] = None
    bitrate: Optional[int] = None
    mimetype: Optional[str] = None
    size: Optional[int] = None
    file_id: Optional[int] = None
    starred: Optional[str] = None
    artist_name: Optional[str] = None
    album_name: Optional[str] = None
    genre_name: Optional[str] = None
    album: Optional[Album] = field(default=None, compare=False)
    number_on_playlist: Optional[int] = None

    def adjusted_track_number(self) -> Optional[int]:
        """Track number as shown to clients.

        A playlist position wins over the stored number. On multi-disk albums
        the disk number is folded in as hundreds (disk 2, track 3 -> 203).
        """
        if self.number_on_playlist is not None:
            return self.number_on_playlist

        number = self.number
        disk_count = self.album.disk_count if self.album else 1
        if number is not None and self.disk and (self.disk > 1 or disk_count > 1):
            number += 100 * self.disk
        return number


@dataclass(frozen=True)
class Genre:
    id: int
    user_id: str
    name: str
    track_count: int = 0
    album_count: int = 0
    artist_count: int = 0


@dataclass(frozen=True)
class Playlist:
    id: int
    user_id: str
    name: str
    track_ids: tuple[int, ...] = ()

    @property
    def track_count(self) -> int:
        return len(self.track_ids)


@dataclass(frozen=True)
class AllTracksPlaylist:
    """Virtual playlist representing every track of the user. Never persisted."""

    user_id: str
    track_ids: tuple[int, ...] = ()

    @property
    def id(self) -> int:
        return ALL_TRACKS_PLAYLIST_ID

    @property
    def track_count(self) -> int:
        return len(self.track_ids)


PlaylistEntry = Union[Playlist, AllTracksPlaylist]
Entity = Union[Track, Album, Artist, Genre, Playlist]


@dataclass(frozen=True)
class FileHandle:
    """A stored file resolved for a user."""

    id: int
    user_id: str
    path: str
