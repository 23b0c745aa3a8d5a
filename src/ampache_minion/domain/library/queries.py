"""
Entity queries over the library tables.

Every entity kind gets one query class sharing the same interface (count,
find, find_all, find_all_by_name, ...). All queries are scoped to a user id:
rows owned by somebody else behave exactly like missing rows.
"""

from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Sequence

from loguru import logger

from .exceptions import NotFoundError
from .models import Album, AllTracksPlaylist, Artist, Genre, Playlist, SortBy, Track


def escape_like(pattern: str) -> str:
    """Escape LIKE wildcards so the pattern matches literally."""
    return (
        pattern.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    )


def pagination_clause(limit: Optional[int], offset: Optional[int]) -> tuple[str, list]:
    """Build a LIMIT/OFFSET clause; None means unbounded / from the start."""
    if limit is None and not offset:
        return "", []
    return " LIMIT ? OFFSET ?", [limit if limit is not None else -1, offset or 0]


def coerce_ids(ids: Iterable[Any]) -> list[int]:
    """Convert request-supplied ids to ints, dropping anything non-numeric."""
    result = []
    for value in ids:
        try:
            result.append(int(value))
        except (TypeError, ValueError):
            continue
    return result


def _split_ids(value: Optional[str]) -> tuple[int, ...]:
    if not value:
        return ()
    return tuple(sorted(int(part) for part in str(value).split(",")))


class EntityQueries:
    """Base query class. Subclasses describe their table and row mapping."""

    kind = "entity"
    table = ""
    alias = ""
    name_column = "name"
    select_sql = ""

    def __init__(self, conn):
        self.conn = conn

    # -- hooks -------------------------------------------------------------

    def _to_entity(self, row) -> Any:
        raise NotImplementedError

    def _rows_to_entities(self, rows: Sequence) -> list:
        return [self._to_entity(row) for row in rows]

    # -- helpers -----------------------------------------------------------

    def _column(self, name: str) -> str:
        return f"{self.alias}.{name}"

    def _order_clause(self, sort_by: SortBy) -> str:
        if sort_by == SortBy.NAME:
            name = self._column(self.name_column)
            return f" ORDER BY LOWER({name}), {self._column('id')}"
        if sort_by == SortBy.NEWEST:
            return f" ORDER BY {self._column('id')} DESC"
        # A stable base order keeps random permutations reproducible
        return f" ORDER BY {self._column('id')}"

    def _select(
        self,
        user_id: str,
        where: str = "",
        params: Sequence = (),
        order: str = "",
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> list:
        sql = f"{self.select_sql} WHERE {self._column('user_id')} = ?"
        args: list = [user_id]
        if where:
            sql += f" AND ({where})"
            args.extend(params)
        sql += order
        page_sql, page_args = pagination_clause(limit, offset)
        sql += page_sql
        args.extend(page_args)
        rows = self.conn.execute(sql, args).fetchall()
        return self._rows_to_entities(rows)

    # -- uniform interface -------------------------------------------------

    def count(self, user_id: str) -> int:
        row = self.conn.execute(
            f"SELECT COUNT(*) AS n FROM {self.table} WHERE user_id = ?", (user_id,)
        ).fetchone()
        return row["n"]

    def find(self, entity_id, user_id: str):
        ids = coerce_ids([entity_id])
        if not ids:
            raise NotFoundError(self.kind, entity_id)
        entities = self._select(user_id, f"{self._column('id')} = ?", ids)
        if not entities:
            raise NotFoundError(self.kind, entity_id)
        return entities[0]

    def find_by_ids(self, ids: Iterable[Any], user_id: str) -> list:
        wanted = coerce_ids(ids)
        if not wanted:
            return []
        placeholders = ",".join("?" * len(wanted))
        return self._select(
            user_id, f"{self._column('id')} IN ({placeholders})", wanted
        )

    def find_all(
        self,
        user_id: str,
        sort_by: SortBy = SortBy.NONE,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> list:
        return self._select(
            user_id, order=self._order_clause(sort_by), limit=limit, offset=offset
        )

    def find_all_by_name(
        self,
        pattern: str,
        user_id: str,
        fuzzy: bool = False,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> list:
        """Exact (case-sensitive) or substring (case-insensitive) name match."""
        name = self._column(self.name_column)
        if fuzzy:
            where = f"LOWER({name}) LIKE LOWER(?) ESCAPE '\\'"
            params = [f"%{escape_like(pattern)}%"]
        else:
            where = f"{name} = ?"
            params = [pattern]
        return self._select(
            user_id,
            where,
            params,
            order=self._order_clause(SortBy.NAME),
            limit=limit,
            offset=offset,
        )


class StarrableQueries(EntityQueries):
    """Queries for entity kinds that carry a starred (flagged) timestamp."""

    def find_all_starred(
        self, user_id: str, limit: Optional[int] = None, offset: Optional[int] = None
    ) -> list:
        """Most recently starred first."""
        return self._select(
            user_id,
            f"{self._column('starred')} IS NOT NULL",
            order=f" ORDER BY {self._column('starred')} DESC, {self._column('id')} DESC",
            limit=limit,
            offset=offset,
        )

    def _update_starred(self, ids: Iterable[Any], user_id: str, value) -> int:
        wanted = coerce_ids(ids)
        if not wanted:
            return 0
        placeholders = ",".join("?" * len(wanted))
        cursor = self.conn.execute(
            f"UPDATE {self.table} SET starred = ? "
            f"WHERE user_id = ? AND id IN ({placeholders})",
            [value, user_id, *wanted],
        )
        self.conn.commit()
        return cursor.rowcount

    def set_starred(self, ids: Iterable[Any], user_id: str) -> int:
        starred_at = datetime.now(timezone.utc).isoformat()
        modified = self._update_starred(ids, user_id, starred_at)
        logger.debug(f"Starred {modified} {self.kind}(s) for {user_id}")
        return modified

    def unset_starred(self, ids: Iterable[Any], user_id: str) -> int:
        modified = self._update_starred(ids, user_id, None)
        logger.debug(f"Unstarred {modified} {self.kind}(s) for {user_id}")
        return modified


class TrackQueries(StarrableQueries):
    kind = "track"
    table = "tracks"
    alias = "t"
    name_column = "title"
    select_sql = """
        SELECT t.*, ar.name AS artist_name, al.name AS album_name, g.name AS genre_name
        FROM tracks t
        LEFT JOIN artists ar ON ar.id = t.artist_id
        LEFT JOIN albums al ON al.id = t.album_id
        LEFT JOIN genres g ON g.id = t.genre_id
    """

    def _to_entity(self, row) -> Track:
        return Track(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            artist_id=row["artist_id"],
            album_id=row["album_id"],
            genre_id=row["genre_id"],
            length=row["length"],
            year=row["year"],
            number=row["number"],
            disk=row["disk"],
            bitrate=row["bitrate"],
            mimetype=row["mimetype"],
            size=row["size"],
            file_id=row["file_id"],
            starred=row["starred"],
            artist_name=row["artist_name"],
            album_name=row["album_name"],
            genre_name=row["genre_name"],
        )

    def count_by_artist(self, artist_id: int) -> int:
        row = self.conn.execute(
            "SELECT COUNT(*) AS n FROM tracks WHERE artist_id = ?", (artist_id,)
        ).fetchone()
        return row["n"]

    def count_by_album(self, album_id: int) -> int:
        row = self.conn.execute(
            "SELECT COUNT(*) AS n FROM tracks WHERE album_id = ?", (album_id,)
        ).fetchone()
        return row["n"]

    def find_all_by_artist(
        self,
        artist_id,
        user_id: str,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> list[Track]:
        return self._select(
            user_id,
            "t.artist_id = ?",
            coerce_ids([artist_id]) or [None],
            order=self._order_clause(SortBy.NAME),
            limit=limit,
            offset=offset,
        )

    def find_all_by_album(
        self,
        album_id,
        user_id: str,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> list[Track]:
        """Album tracks in disk/track-number order."""
        return self._select(
            user_id,
            "t.album_id = ?",
            coerce_ids([album_id]) or [None],
            order=" ORDER BY t.disk, t.number, LOWER(t.title), t.id",
            limit=limit,
            offset=offset,
        )

    def find_all_by_genre(
        self,
        genre_id,
        user_id: str,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> list[Track]:
        return self._select(
            user_id,
            "t.genre_id = ?",
            coerce_ids([genre_id]) or [None],
            order=self._order_clause(SortBy.NAME),
            limit=limit,
            offset=offset,
        )

    def find_all_by_name_recursive(
        self,
        pattern: str,
        user_id: str,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> list[Track]:
        """Substring search over track title, artist name and album name."""
        like = f"%{escape_like(pattern or '')}%"
        return self._select(
            user_id,
            "LOWER(t.title) LIKE LOWER(?) ESCAPE '\\' "
            "OR LOWER(ar.name) LIKE LOWER(?) ESCAPE '\\' "
            "OR LOWER(al.name) LIKE LOWER(?) ESCAPE '\\'",
            [like, like, like],
            order=self._order_clause(SortBy.NAME),
            limit=limit,
            offset=offset,
        )

    def genre_ids_by_artist(self, artist_id: int, user_id: str) -> list[int]:
        rows = self.conn.execute(
            """
            SELECT DISTINCT genre_id FROM tracks
            WHERE artist_id = ? AND user_id = ? AND genre_id IS NOT NULL
            ORDER BY genre_id
            """,
            (artist_id, user_id),
        ).fetchall()
        return [row["genre_id"] for row in rows]


class AlbumQueries(StarrableQueries):
    kind = "album"
    table = "albums"
    alias = "a"
    select_sql = """
        SELECT a.*, ar.name AS album_artist_name,
            (SELECT GROUP_CONCAT(DISTINCT genre_id) FROM tracks
             WHERE album_id = a.id AND genre_id IS NOT NULL) AS genre_ids,
            (SELECT COALESCE(MAX(disk), 1) FROM tracks WHERE album_id = a.id) AS disk_count
        FROM albums a
        LEFT JOIN artists ar ON ar.id = a.album_artist_id
    """

    def _to_entity(self, row) -> Album:
        return Album(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            album_artist_id=row["album_artist_id"],
            year=row["year"],
            cover_file_id=row["cover_file_id"],
            starred=row["starred"],
            album_artist_name=row["album_artist_name"],
            genre_ids=_split_ids(row["genre_ids"]),
            disk_count=row["disk_count"] or 1,
        )

    def count_by_artist(self, artist_id: int) -> int:
        """Same albums as find_all_by_artist."""
        row = self.conn.execute(
            "SELECT COUNT(*) AS n FROM albums WHERE album_artist_id = ? "
            "OR id IN (SELECT album_id FROM tracks WHERE artist_id = ?)",
            (artist_id, artist_id),
        ).fetchone()
        return row["n"]

    def find_all_by_artist(
        self,
        artist_id,
        user_id: str,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> list[Album]:
        """Albums by album artist, plus albums where the artist appears on a track."""
        ids = coerce_ids([artist_id]) or [None]
        return self._select(
            user_id,
            "a.album_artist_id = ? OR a.id IN "
            "(SELECT album_id FROM tracks WHERE artist_id = ?)",
            ids * 2,
            order=self._order_clause(SortBy.NAME),
            limit=limit,
            offset=offset,
        )

    def find_all_by_genre(
        self,
        genre_id,
        user_id: str,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> list[Album]:
        return self._select(
            user_id,
            "a.id IN (SELECT album_id FROM tracks WHERE genre_id = ?)",
            coerce_ids([genre_id]) or [None],
            order=self._order_clause(SortBy.NAME),
            limit=limit,
            offset=offset,
        )


class ArtistQueries(StarrableQueries):
    kind = "artist"
    table = "artists"
    alias = "ar"
    select_sql = "SELECT ar.* FROM artists ar"

    def _to_entity(self, row) -> Artist:
        return Artist(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            cover_file_id=row["cover_file_id"],
            starred=row["starred"],
        )

    def find_all_by_genre(
        self,
        genre_id,
        user_id: str,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> list[Artist]:
        return self._select(
            user_id,
            "ar.id IN (SELECT artist_id FROM tracks WHERE genre_id = ?)",
            coerce_ids([genre_id]) or [None],
            order=self._order_clause(SortBy.NAME),
            limit=limit,
            offset=offset,
        )


class GenreQueries(EntityQueries):
    kind = "genre"
    table = "genres"
    alias = "g"
    select_sql = """
        SELECT g.*,
            (SELECT COUNT(*) FROM tracks WHERE genre_id = g.id) AS track_count,
            (SELECT COUNT(DISTINCT album_id) FROM tracks WHERE genre_id = g.id) AS album_count,
            (SELECT COUNT(DISTINCT artist_id) FROM tracks WHERE genre_id = g.id) AS artist_count
        FROM genres g
    """

    def _to_entity(self, row) -> Genre:
        return Genre(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            track_count=row["track_count"],
            album_count=row["album_count"],
            artist_count=row["artist_count"],
        )


class PlaylistQueries(EntityQueries):
    kind = "playlist"
    table = "playlists"
    alias = "p"
    select_sql = "SELECT p.* FROM playlists p"

    def _rows_to_entities(self, rows: Sequence) -> list[Playlist]:
        if not rows:
            return []
        ids = [row["id"] for row in rows]
        placeholders = ",".join("?" * len(ids))
        track_rows = self.conn.execute(
            f"""
            SELECT playlist_id, track_id FROM playlist_tracks
            WHERE playlist_id IN ({placeholders})
            ORDER BY playlist_id, position
            """,
            ids,
        ).fetchall()

        tracks_by_playlist: dict[int, list[int]] = {pid: [] for pid in ids}
        for track_row in track_rows:
            tracks_by_playlist[track_row["playlist_id"]].append(track_row["track_id"])

        return [
            Playlist(
                id=row["id"],
                user_id=row["user_id"],
                name=row["name"],
                track_ids=tuple(tracks_by_playlist[row["id"]]),
            )
            for row in rows
        ]

    def get_playlist_tracks(
        self,
        playlist_id,
        user_id: str,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> list[Track]:
        """Tracks of a playlist in playlist order, annotated with their position."""
        playlist = self.find(playlist_id, user_id)
        start = offset or 0
        end = start + limit if limit is not None else None
        page_ids = playlist.track_ids[start:end]

        tracks_by_id = {
            track.id: track
            for track in TrackQueries(self.conn).find_by_ids(page_ids, user_id)
        }
        result = []
        for index, track_id in enumerate(page_ids):
            track = tracks_by_id.get(track_id)
            if track is None:
                continue
            # a track may be listed more than once, each entry keeps its own position
            result.append(replace(track, number_on_playlist=start + index + 1))
        return result


def _artist_and_title(track: Track) -> tuple[str, str]:
    return ((track.artist_name or "").lower(), (track.title or "").lower())


class Library:
    """Bundle of all entity queries sharing one connection."""

    def __init__(self, conn):
        self.conn = conn
        self.tracks = TrackQueries(conn)
        self.albums = AlbumQueries(conn)
        self.artists = ArtistQueries(conn)
        self.genres = GenreQueries(conn)
        self.playlists = PlaylistQueries(conn)

    def get_all_tracks(self, user_id: str) -> list[Track]:
        """Whole library ordered by artist name then title.

        Albums are fetched with a single query and attached to the tracks, and
        each track is numbered by its 1-based position in the result.
        """
        tracks = self.tracks.find_all(user_id)
        albums = {album.id: album for album in self.albums.find_all(user_id)}
        for track in tracks:
            track.album = albums.get(track.album_id)

        tracks.sort(key=_artist_and_title)
        for index, track in enumerate(tracks):
            track.number_on_playlist = index + 1
        return tracks

    def all_tracks_playlist(self, user_id: str) -> AllTracksPlaylist:
        """The virtual playlist of the whole library, in get_all_tracks order."""
        tracks = sorted(self.tracks.find_all(user_id), key=_artist_and_title)
        return AllTracksPlaylist(user_id=user_id, track_ids=tuple(t.id for t in tracks))
