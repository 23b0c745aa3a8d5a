"""
Ampache response rendering.

Turns library entities into the nested dict/list structure of the Ampache
schema. The structure stays format-neutral; wire.py applies the XML and JSON
specific adjustments.
"""

from typing import Any, Callable, Iterable, Optional, Sequence

from ampache_minion.domain.library.models import (
    Album,
    Artist,
    Entity,
    Genre,
    PlaylistEntry,
    Track,
)
from ampache_minion.domain.library.naming import (
    L10n,
    album_name,
    artist_name,
    display_name,
    genre_name,
)
from ampache_minion.domain.library.queries import Library

from .errors import UnexpectedEntityType, UnsupportedType

ActionUrl = Callable[[str, Any, str], str]


class ActionUrlBuilder:
    """Builds absolute links back into the same Ampache endpoint."""

    def __init__(self, endpoint_url: str):
        self.endpoint_url = endpoint_url

    def __call__(self, action: str, entity_id: Any, auth: str) -> str:
        return f"{self.endpoint_url}?action={action}&id={entity_id}&auth={auth}"


def _ref(entity_id: Any, value: str) -> dict:
    return {"id": str(entity_id), "value": value}


class Renderer:
    """Renders entities for one request.

    Bound to the authenticated user, their auth token and the URL builder of
    the endpoint that received the request.
    """

    def __init__(
        self,
        library: Library,
        user_id: str,
        auth: Optional[str],
        action_url: ActionUrl,
        l10n: Optional[L10n] = None,
    ):
        self.library = library
        self.user_id = user_id
        self.auth = auth or ""
        self.action_url = action_url
        self.l10n = l10n or L10n()

    # -- helpers -----------------------------------------------------------

    def _genre_lookup(self) -> dict[int, Genre]:
        return {genre.id: genre for genre in self.library.genres.find_all(self.user_id)}

    def _tags(self, genre_ids: Iterable[int], genre_map: dict[int, Genre]) -> list[dict]:
        return [
            {
                "id": str(genre_id),
                "value": genre_name(genre_map[genre_id].name, self.l10n),
                "count": 1,
            }
            for genre_id in genre_ids
            if genre_id in genre_map
        ]

    def cover_url(self, entity) -> str:
        if isinstance(entity, Album):
            kind = "album"
        elif isinstance(entity, Artist):
            kind = "artist"
        else:
            raise UnexpectedEntityType("unexpected entity type for cover image")

        if entity.cover_file_id:
            return self.action_url(f"_get_{kind}_cover", entity.id, self.auth)
        return ""

    # -- full renders ------------------------------------------------------

    def artists(self, artists: Sequence[Artist]) -> dict:
        genre_map = self._genre_lookup()
        return {
            "artist": [
                {
                    "id": str(artist.id),
                    "name": display_name(artist, self.l10n),
                    "albums": self.library.albums.count_by_artist(artist.id),
                    "songs": self.library.tracks.count_by_artist(artist.id),
                    "art": self.cover_url(artist),
                    "rating": 0,
                    "preciserating": 0,
                    "tag": self._tags(
                        self.library.tracks.genre_ids_by_artist(artist.id, self.user_id),
                        genre_map,
                    ),
                }
                for artist in artists
            ]
        }

    def albums(self, albums: Sequence[Album]) -> dict:
        genre_map = self._genre_lookup()
        return {
            "album": [
                {
                    "id": str(album.id),
                    "name": display_name(album, self.l10n),
                    "artist": _ref(
                        album.album_artist_id,
                        artist_name(album.album_artist_name, self.l10n),
                    ),
                    "tracks": self.library.tracks.count_by_album(album.id),
                    "rating": 0,
                    "year": album.year,
                    "art": self.cover_url(album),
                    "preciserating": 0,
                    "tag": self._tags(album.genre_ids, genre_map),
                }
                for album in albums
            ]
        }

    def songs(self, tracks: Sequence[Track]) -> dict:
        albums: dict[Any, Album] = {}

        def album_of(track: Track) -> Album:
            if track.album is not None:
                return track.album
            if track.album_id not in albums:
                albums[track.album_id] = self.library.albums.find(track.album_id, self.user_id)
            # disk count of the album decides the adjusted track number
            track.album = albums[track.album_id]
            return track.album

        songs = []
        for track in tracks:
            album = album_of(track)
            song = {
                "id": str(track.id),
                "title": track.title,
                "name": track.title,
                "artist": _ref(track.artist_id, artist_name(track.artist_name, self.l10n)),
                "albumartist": _ref(
                    album.album_artist_id, artist_name(album.album_artist_name, self.l10n)
                ),
                "album": _ref(album.id, album_name(album.name, self.l10n)),
                "url": self.action_url("download", track.id, self.auth),
                "time": track.length,
                "year": track.year,
                "track": track.adjusted_track_number(),
                "bitrate": track.bitrate,
                "mime": track.mimetype,
                "size": track.size,
                "art": self.cover_url(album),
                "rating": 0,
                "preciserating": 0,
            }
            if track.genre_id is not None:
                song["tag"] = [
                    {
                        "id": str(track.genre_id),
                        "value": genre_name(track.genre_name, self.l10n),
                        "count": 1,
                    }
                ]
            songs.append(song)
        return {"song": songs}

    def playlists(self, playlists: Sequence[PlaylistEntry]) -> dict:
        return {
            "playlist": [
                {
                    "id": str(playlist.id),
                    "name": display_name(playlist, self.l10n),
                    "owner": self.user_id,
                    "items": playlist.track_count,
                    "type": "Private",
                }
                for playlist in playlists
            ]
        }

    def tags(self, genres: Sequence[Genre]) -> dict:
        return {
            "tag": [
                {
                    "id": str(genre.id),
                    "name": display_name(genre, self.l10n),
                    "albums": genre.album_count,
                    "artists": genre.artist_count,
                    "songs": genre.track_count,
                    "videos": 0,
                    "playlists": 0,
                    "stream": 0,
                }
                for genre in genres
            ]
        }

    # -- index renders -----------------------------------------------------

    def songs_index(self, tracks: Sequence[Track]) -> dict:
        return {
            "song": [
                {
                    "id": str(track.id),
                    "title": track.title,
                    "name": track.title,
                    "artist": _ref(track.artist_id, artist_name(track.artist_name, self.l10n)),
                    "album": _ref(track.album_id, album_name(track.album_name, self.l10n)),
                }
                for track in tracks
            ]
        }

    def albums_index(self, albums: Sequence[Album]) -> dict:
        return {
            "album": [
                {
                    "id": str(album.id),
                    "name": display_name(album, self.l10n),
                    "artist": _ref(
                        album.album_artist_id,
                        artist_name(album.album_artist_name, self.l10n),
                    ),
                }
                for album in albums
            ]
        }

    def artists_index(self, artists: Sequence[Artist]) -> dict:
        result = []
        for artist in artists:
            albums = self.library.albums.find_all_by_artist(artist.id, self.user_id)
            result.append(
                {
                    "id": str(artist.id),
                    "name": display_name(artist, self.l10n),
                    "album": [
                        _ref(album.id, album_name(album.name, self.l10n)) for album in albums
                    ],
                }
            )
        return {"artist": result}

    def playlists_index(self, playlists: Sequence[PlaylistEntry]) -> dict:
        return {
            "playlist": [
                {
                    "id": str(playlist.id),
                    "name": display_name(playlist, self.l10n),
                    "playlisttrack": [str(track_id) for track_id in playlist.track_ids],
                }
                for playlist in playlists
            ]
        }

    def entity_ids(self, entities: Sequence[Entity]) -> dict:
        return {"id": [str(entity.id) for entity in entities]}

    # -- by type -----------------------------------------------------------

    def entities(self, entities: Sequence[Entity], entity_type: str) -> dict:
        renderers = {
            "song": self.songs,
            "album": self.albums,
            "artist": self.artists,
            "playlist": self.playlists,
            "tag": self.tags,
        }
        if entity_type not in renderers:
            raise UnsupportedType(entity_type)
        return renderers[entity_type](entities)

    def entities_index(self, entities: Sequence[Entity], entity_type: str) -> dict:
        renderers = {
            "song": self.songs_index,
            "album": self.albums_index,
            "artist": self.artists_index,
            "playlist": self.playlists_index,
        }
        if entity_type not in renderers:
            raise UnsupportedType(entity_type)
        return renderers[entity_type](entities)
