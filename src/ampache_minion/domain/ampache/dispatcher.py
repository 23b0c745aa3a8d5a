"""
Ampache action dispatcher.

Each request is authenticated on its own: `handshake` creates a session,
`ping` may come without one, every other action needs a live session token.
The `action` parameter selects one handler from ACTIONS; handlers query the
library for the session's user and return either a response structure for the
wire encoder or a file to send as-is.
"""

import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Union

from loguru import logger

from ampache_minion.core.config import Config
from ampache_minion.domain.library.exceptions import NotFoundError
from ampache_minion.domain.library.files import FileStore, get_mime_type
from ampache_minion.domain.library.models import ALL_TRACKS_PLAYLIST_ID, SortBy
from ampache_minion.domain.library.naming import L10n
from ampache_minion.domain.library.queries import EntityQueries, Library, coerce_ids

from .auth import Authenticator
from .errors import (
    ActionNotSupported,
    EntityNotFound,
    UnsupportedFilter,
    UnsupportedFormat,
    UnsupportedMode,
    UnsupportedOperation,
    UnsupportedType,
)
from .params import ActionRequest, index_is_within_offset_and_limit, parse_bool
from .renderer import ActionUrl, Renderer
from .sessions import SessionStore, UserKeyStore
from .shuffle import RandomIndices, array_multi_get

API_VERSION = 400001
API_MIN_COMPATIBLE_VERSION = 350001

STARRABLE_TYPES = ("song", "album", "artist")


@dataclass(frozen=True)
class FilePayload:
    """A file on disk to send as the response body."""

    path: str
    media_type: str


@dataclass(frozen=True)
class BinaryPayload:
    """In-memory content to send as the response body."""

    content: bytes
    media_type: str


Payload = Union[dict, FilePayload, BinaryPayload]

ACTIONS: dict[str, Callable] = {}


def action(name: str):
    """Register a Dispatcher method as the handler of an Ampache action."""

    def register(func):
        ACTIONS[name] = func
        return func

    return register


def format_time(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp).astimezone().isoformat()


class Dispatcher:
    """Serves Ampache actions against one database connection."""

    def __init__(
        self,
        conn,
        config: Config,
        action_url: ActionUrl,
        clock: Callable[[], float] = time.time,
        random_indices: Optional[RandomIndices] = None,
    ):
        self.config = config
        self.action_url = action_url
        self.clock = clock
        self.library = Library(conn)
        self.files = FileStore(conn, config.music.library_paths)
        self.sessions = SessionStore(conn)
        self.keys = UserKeyStore(conn)
        self.authenticator = Authenticator(
            self.sessions,
            self.keys,
            session_expiry=config.ampache.session_expiry,
            clock_skew=config.ampache.clock_skew,
            clock=clock,
        )
        self.random = random_indices or RandomIndices(
            config.ampache.shuffle_window_seconds, clock=clock
        )
        self.l10n = L10n(config.ampache.locale)

    def dispatch(self, request: ActionRequest) -> Payload:
        logger.debug(f"Ampache action '{request.action}' requested")

        if request.action == "handshake":
            return self.handshake(request)

        if request.action == "ping" and not request.auth:
            user_id = None
        else:
            user_id = self.authenticator.authenticate(request.auth).user_id

        handler = ACTIONS.get(request.action)
        if handler is None:
            logger.warning(f"Unsupported Ampache action '{request.action}' requested")
            raise ActionNotSupported(request.action)

        try:
            return handler(self, request, user_id)
        except NotFoundError as e:
            raise EntityNotFound(str(e)) from e

    # -- helpers -----------------------------------------------------------

    def renderer(self, request: ActionRequest, user_id: str) -> Renderer:
        return Renderer(self.library, user_id, request.auth, self.action_url, self.l10n)

    def queries_for(self, entity_type: str) -> EntityQueries:
        queries = {
            "song": self.library.tracks,
            "album": self.library.albums,
            "artist": self.library.artists,
            "playlist": self.library.playlists,
            "tag": self.library.genres,
        }
        if entity_type not in queries:
            raise UnsupportedType(entity_type)
        return queries[entity_type]

    def find_entities(
        self,
        queries: EntityQueries,
        user_id: str,
        filter: Optional[str],
        exact: bool,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> list:
        if filter:
            return queries.find_all_by_name(filter, user_id, not exact, limit, offset)
        return queries.find_all(user_id, SortBy.NAME, limit, offset)

    @staticmethod
    def _is_all_tracks(list_id: Optional[str]) -> bool:
        return coerce_ids([list_id]) == [ALL_TRACKS_PLAYLIST_ID]

    # -- session actions ---------------------------------------------------

    def handshake(self, request: ActionRequest) -> dict:
        current_time = self.authenticator.now()
        expiry = current_time + self.config.ampache.session_expiry

        self.authenticator.check_handshake_timestamp(request.timestamp, current_time)
        self.authenticator.check_handshake_authentication(
            request.user, request.timestamp, request.auth
        )
        self.sessions.cleanup_expired(current_time)
        token = self.sessions.create(request.user, expiry)
        logger.info(f"Ampache session started for {request.user}")

        user_id = request.user
        now_formatted = format_time(current_time)
        return {
            "auth": token,
            "api": API_VERSION,
            "update": now_formatted,
            "add": now_formatted,
            "clean": now_formatted,
            "songs": self.library.tracks.count(user_id),
            "artists": self.library.artists.count(user_id),
            "albums": self.library.albums.count(user_id),
            "playlists": self.library.playlists.count(user_id) + 1,  # +1 for "All tracks"
            "session_expire": format_time(expiry),
            "tags": self.library.genres.count(user_id),
            "videos": 0,
            "catalogs": 0,
        }

    @action("goodbye")
    def goodbye(self, request: ActionRequest, user_id: str) -> dict:
        session = self.sessions.find_by_token(request.auth)
        self.sessions.delete(session)
        return {"success": f"goodbye: {request.auth}"}

    @action("ping")
    def ping(self, request: ActionRequest, user_id: Optional[str]) -> dict:
        response = {
            "version": API_VERSION,
            "compatible": API_MIN_COMPATIBLE_VERSION,
        }
        if request.auth:
            session = self.sessions.find_by_token(request.auth)
            response["session_expire"] = format_time(session.expiry)
        return response

    # -- listings ----------------------------------------------------------

    @action("get_indexes")
    def get_indexes(self, request: ActionRequest, user_id: str) -> dict:
        entity_type = request.require("type")
        if entity_type not in ("song", "album", "artist", "playlist"):
            raise UnsupportedType(entity_type)

        entities = self.find_entities(
            self.queries_for(entity_type),
            user_id,
            request.filter,
            False,
            request.limit,
            request.offset,
        )
        return self.renderer(request, user_id).entities_index(entities, entity_type)

    @action("stats")
    def stats(self, request: ActionRequest, user_id: str) -> dict:
        entity_type = request.require("type")
        filter_name = request.require("filter")

        if entity_type not in STARRABLE_TYPES:
            raise UnsupportedType(entity_type)
        queries = self.queries_for(entity_type)

        if filter_name == "newest":
            entities = queries.find_all(user_id, SortBy.NEWEST, request.limit, request.offset)
        elif filter_name == "flagged":
            entities = queries.find_all_starred(user_id, request.limit, request.offset)
        elif filter_name == "random":
            entities = queries.find_all(user_id, SortBy.NONE)
            indices = self.random.get_indices(
                len(entities), request.offset, request.limit, user_id, f"ampache_stats_{entity_type}"
            )
            entities = array_multi_get(entities, indices)
        else:
            # highest, frequent, recent and forgotten need play statistics
            raise UnsupportedFilter(filter_name)

        return self.renderer(request, user_id).entities(entities, entity_type)

    # -- artists -----------------------------------------------------------

    @action("artists")
    def artists(self, request: ActionRequest, user_id: str) -> dict:
        artists = self.find_entities(
            self.library.artists,
            user_id,
            request.filter,
            request.exact,
            request.limit,
            request.offset,
        )
        return self.renderer(request, user_id).artists(artists)

    @action("artist")
    def artist(self, request: ActionRequest, user_id: str) -> dict:
        artist = self.library.artists.find(request.filter, user_id)
        return self.renderer(request, user_id).artists([artist])

    @action("artist_albums")
    def artist_albums(self, request: ActionRequest, user_id: str) -> dict:
        albums = self.library.albums.find_all_by_artist(request.filter, user_id)
        return self.renderer(request, user_id).albums(albums)

    @action("artist_songs")
    def artist_songs(self, request: ActionRequest, user_id: str) -> dict:
        tracks = self.library.tracks.find_all_by_artist(request.filter, user_id)
        return self.renderer(request, user_id).songs(tracks)

    # -- albums ------------------------------------------------------------

    @action("albums")
    def albums(self, request: ActionRequest, user_id: str) -> dict:
        albums = self.find_entities(
            self.library.albums,
            user_id,
            request.filter,
            request.exact,
            request.limit,
            request.offset,
        )
        return self.renderer(request, user_id).albums(albums)

    @action("album")
    def album(self, request: ActionRequest, user_id: str) -> dict:
        album = self.library.albums.find(request.filter, user_id)
        return self.renderer(request, user_id).albums([album])

    @action("album_songs")
    def album_songs(self, request: ActionRequest, user_id: str) -> dict:
        album = self.library.albums.find(request.filter, user_id)
        tracks = self.library.tracks.find_all_by_album(album.id, user_id)
        for track in tracks:
            track.album = album
        return self.renderer(request, user_id).songs(tracks)

    # -- songs -------------------------------------------------------------

    @action("songs")
    def songs(self, request: ActionRequest, user_id: str) -> dict:
        # The whole-library fast path orders by artist and title, unlike the
        # name-ordered general case
        if not request.filter and not request.limit and not request.offset:
            tracks = self.library.get_all_tracks(user_id)
        else:
            tracks = self.find_entities(
                self.library.tracks,
                user_id,
                request.filter,
                request.exact,
                request.limit,
                request.offset,
            )
        return self.renderer(request, user_id).songs(tracks)

    @action("song")
    def song(self, request: ActionRequest, user_id: str) -> dict:
        track = self.library.tracks.find(request.filter, user_id)
        return self.renderer(request, user_id).songs([track])

    @action("search_songs")
    def search_songs(self, request: ActionRequest, user_id: str) -> dict:
        tracks = self.library.tracks.find_all_by_name_recursive(request.filter, user_id)
        return self.renderer(request, user_id).songs(tracks)

    # -- playlists ---------------------------------------------------------

    @action("playlists")
    def playlists(self, request: ActionRequest, user_id: str) -> dict:
        playlists = self.find_entities(
            self.library.playlists,
            user_id,
            request.filter,
            request.exact,
            request.limit,
            request.offset,
        )

        # "All tracks" goes last, unless searching by name or paged out
        all_tracks_index = self.library.playlists.count(user_id)
        if not request.filter and index_is_within_offset_and_limit(
            all_tracks_index, request.offset, request.limit
        ):
            playlists.append(self.library.all_tracks_playlist(user_id))

        return self.renderer(request, user_id).playlists(playlists)

    @action("playlist")
    def playlist(self, request: ActionRequest, user_id: str) -> dict:
        if self._is_all_tracks(request.filter):
            playlist = self.library.all_tracks_playlist(user_id)
        else:
            playlist = self.library.playlists.find(request.filter, user_id)
        return self.renderer(request, user_id).playlists([playlist])

    @action("playlist_songs")
    def playlist_songs(self, request: ActionRequest, user_id: str) -> dict:
        if self._is_all_tracks(request.filter):
            start = request.offset or 0
            end = start + request.limit if request.limit is not None else None
            tracks = self.library.get_all_tracks(user_id)[start:end]
        else:
            tracks = self.library.playlists.get_playlist_tracks(
                request.filter, user_id, request.limit, request.offset
            )
        return self.renderer(request, user_id).songs(tracks)

    @action("playlist_generate")
    def playlist_generate(self, request: ActionRequest, user_id: str) -> dict:
        mode = request.get("mode", "random")
        album = request.get("album")
        artist = request.get("artist")
        flag = request.get("flag")
        output_format = request.get("format", "song")

        # limit and offset apply only after filtering
        tracks = self.find_entities(self.library.tracks, user_id, request.filter, False)

        if album is not None:
            album_ids = coerce_ids([album])
            tracks = [t for t in tracks if [t.album_id] == album_ids]
        if artist is not None:
            artist_ids = coerce_ids([artist])
            tracks = [t for t in tracks if [t.artist_id] == artist_ids]
        if flag is not None and flag.strip() == "1":
            tracks = [t for t in tracks if t.starred is not None]

        if mode != "random":
            # recent, forgotten and unplayed need play statistics
            raise UnsupportedMode(mode)
        indices = self.random.get_indices(
            len(tracks), request.offset, request.limit, user_id, "ampache_playlist_generate"
        )
        tracks = array_multi_get(tracks, indices)

        renderer = self.renderer(request, user_id)
        if output_format == "song":
            return renderer.songs(tracks)
        if output_format == "index":
            return renderer.songs_index(tracks)
        if output_format == "id":
            return renderer.entity_ids(tracks)
        raise UnsupportedFormat(output_format)

    # -- tags --------------------------------------------------------------

    @action("tags")
    def tags(self, request: ActionRequest, user_id: str) -> dict:
        genres = self.find_entities(
            self.library.genres,
            user_id,
            request.filter,
            request.exact,
            request.limit,
            request.offset,
        )
        return self.renderer(request, user_id).tags(genres)

    @action("tag")
    def tag(self, request: ActionRequest, user_id: str) -> dict:
        genre = self.library.genres.find(request.filter, user_id)
        return self.renderer(request, user_id).tags([genre])

    @action("tag_artists")
    def tag_artists(self, request: ActionRequest, user_id: str) -> dict:
        artists = self.library.artists.find_all_by_genre(
            request.filter, user_id, request.limit, request.offset
        )
        return self.renderer(request, user_id).artists(artists)

    @action("tag_albums")
    def tag_albums(self, request: ActionRequest, user_id: str) -> dict:
        albums = self.library.albums.find_all_by_genre(
            request.filter, user_id, request.limit, request.offset
        )
        return self.renderer(request, user_id).albums(albums)

    @action("tag_songs")
    def tag_songs(self, request: ActionRequest, user_id: str) -> dict:
        tracks = self.library.tracks.find_all_by_genre(
            request.filter, user_id, request.limit, request.offset
        )
        return self.renderer(request, user_id).songs(tracks)

    # -- flags -------------------------------------------------------------

    @action("flag")
    def flag(self, request: ActionRequest, user_id: str) -> dict:
        entity_type = request.require("type")
        entity_id = request.require("id")
        flag = parse_bool(request.require("flag"))

        if entity_type not in STARRABLE_TYPES:
            raise UnsupportedType(entity_type)

        queries = self.queries_for(entity_type)
        if flag:
            modified = queries.set_starred([entity_id], user_id)
            message = f"flag ADDED to {entity_id}"
        else:
            modified = queries.unset_starred([entity_id], user_id)
            message = f"flag REMOVED from {entity_id}"

        if modified == 0:
            raise EntityNotFound(f"The {entity_type} {entity_id} was not found", code=400)
        return {"success": message}

    # -- files -------------------------------------------------------------

    @action("download")
    def download(self, request: ActionRequest, user_id: str) -> FilePayload:
        track = self.library.tracks.find(request.id, user_id)
        handles = self.files.resolve_file_handles(user_id, track.file_id)
        if len(handles) != 1:
            raise EntityNotFound(f"File of song {track.id} not found")

        path = handles[0].path
        return FilePayload(path=path, media_type=track.mimetype or get_mime_type(Path(path)))

    @action("stream")
    def stream(self, request: ActionRequest, user_id: str) -> FilePayload:
        # Transcoding is not supported and other stream arguments are ignored,
        # but seeking is refused so that clients can fall back to other methods
        if request.offset is not None:
            raise UnsupportedOperation("Streaming with time offset is not supported")
        return self.download(request, user_id)

    def _cover(self, queries: EntityQueries, entity_id: Optional[str], user_id: str) -> BinaryPayload:
        try:
            entity = queries.find(entity_id, user_id)
        except NotFoundError:
            raise EntityNotFound("entity not found") from None

        cover = self.files.get_cover(entity, user_id)
        if cover is None:
            raise EntityNotFound("entity has no cover")
        content, media_type = cover
        return BinaryPayload(content=content, media_type=media_type)

    @action("_get_album_cover")
    def get_album_cover(self, request: ActionRequest, user_id: str) -> BinaryPayload:
        return self._cover(self.library.albums, request.id, user_id)

    @action("_get_artist_cover")
    def get_artist_cover(self, request: ActionRequest, user_id: str) -> BinaryPayload:
        return self._cover(self.library.artists, request.id, user_id)
