"""
Music library scanning.

Walks the configured library paths, reads tags with Mutagen and stores
files, artists, albums, genres and tracks for the library owner.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from loguru import logger
from mutagen import File as MutagenFile

from ampache_minion.core.config import Config

from .files import get_mime_type

COVER_NAMES = ("cover.jpg", "folder.jpg", "cover.png", "folder.png")


@dataclass
class ScanResult:
    added: int = 0
    updated: int = 0
    unchanged: int = 0
    removed: int = 0


def get_tag_value(audio_file: Any, tag_names: list[str]) -> Optional[str]:
    """Get tag value, trying multiple possible tag names."""
    for tag_name in tag_names:
        try:
            value = audio_file.get(tag_name)
            if value:
                if isinstance(value, list) and value:
                    value = value[0]
                # MP4 track/disk numbers come as (number, total) tuples
                if isinstance(value, tuple):
                    value = value[0]
                return str(value)
        except (KeyError, ValueError):
            # Some formats (like Vorbis) raise ValueError for non-existent keys
            continue
    return None


def parse_number(value: Optional[str]) -> Optional[int]:
    """Parse '3', '3/12' or '2004-05-01' style values into their leading int."""
    if not value:
        return None
    head = str(value).split("/")[0].split("-")[0].strip()
    try:
        return int(head)
    except ValueError:
        return None


def extract_metadata_from_filename(local_path: str) -> dict[str, Any]:
    """Extract basic info from filename as fallback."""
    path = Path(local_path)
    title = path.stem
    artist = None

    # Try to parse "Artist - Title" format
    if " - " in title:
        parts = title.split(" - ", 1)
        artist = parts[0].strip()
        title = parts[1].strip()

    return {"title": title, "artist": artist}


def extract_track_metadata(local_path: str) -> dict[str, Any]:
    """Extract metadata from audio file using mutagen."""
    metadata: dict[str, Any] = {
        "title": None,
        "artist": None,
        "album_artist": None,
        "album": None,
        "genre": None,
        "year": None,
        "number": None,
        "disk": None,
        "length": None,
        "bitrate": None,
    }
    try:
        audio_file = MutagenFile(local_path)
    except Exception as e:
        logger.warning(f"Could not read tags from {local_path}: {e}")
        audio_file = None

    if audio_file is not None:
        metadata["title"] = get_tag_value(audio_file, ["TIT2", "\xa9nam", "TITLE", "title"])
        metadata["artist"] = get_tag_value(audio_file, ["TPE1", "\xa9ART", "ARTIST", "artist"])
        metadata["album_artist"] = get_tag_value(
            audio_file, ["TPE2", "aART", "ALBUMARTIST", "albumartist"]
        )
        metadata["album"] = get_tag_value(audio_file, ["TALB", "\xa9alb", "ALBUM", "album"])
        metadata["genre"] = get_tag_value(audio_file, ["TCON", "\xa9gen", "GENRE", "genre"])
        metadata["year"] = parse_number(
            get_tag_value(audio_file, ["TDRC", "\xa9day", "DATE", "YEAR", "date", "year"])
        )
        metadata["number"] = parse_number(
            get_tag_value(audio_file, ["TRCK", "trkn", "TRACKNUMBER", "tracknumber"])
        )
        metadata["disk"] = parse_number(
            get_tag_value(audio_file, ["TPOS", "disk", "DISCNUMBER", "discnumber"])
        )
        if hasattr(audio_file, "info"):
            length = getattr(audio_file.info, "length", None)
            bitrate = getattr(audio_file.info, "bitrate", None)
            metadata["length"] = int(round(length)) if length else None
            metadata["bitrate"] = int(bitrate) if bitrate else None

    if not metadata["title"]:
        fallback = extract_metadata_from_filename(local_path)
        metadata["title"] = fallback["title"]
        metadata["artist"] = metadata["artist"] or fallback["artist"]

    return metadata


def _get_or_create(conn, table: str, user_id: str, where: dict[str, Any]) -> int:
    """Find a row matching all columns (NULL-safe) or insert it."""
    conditions = " AND ".join(f"{column} IS ?" for column in where)
    row = conn.execute(
        f"SELECT id FROM {table} WHERE user_id = ? AND {conditions}",
        [user_id, *where.values()],
    ).fetchone()
    if row:
        return row["id"]
    columns = ", ".join(["user_id", *where])
    placeholders = ", ".join("?" * (len(where) + 1))
    cursor = conn.execute(
        f"INSERT INTO {table} ({columns}) VALUES ({placeholders})",
        [user_id, *where.values()],
    )
    return cursor.lastrowid


def _upsert_file(conn, user_id: str, path: Path) -> tuple[int, bool]:
    """Store the file row, returning (file_id, changed_since_last_scan)."""
    mtime = path.stat().st_mtime
    row = conn.execute(
        "SELECT id, mtime FROM files WHERE user_id = ? AND path = ?",
        (user_id, str(path)),
    ).fetchone()
    if row:
        if row["mtime"] == mtime:
            return row["id"], False
        conn.execute("UPDATE files SET mtime = ? WHERE id = ?", (mtime, row["id"]))
        return row["id"], True
    cursor = conn.execute(
        "INSERT INTO files (user_id, path, mtime) VALUES (?, ?, ?)",
        (user_id, str(path), mtime),
    )
    return cursor.lastrowid, True


def _find_cover(directory: Path) -> Optional[Path]:
    for name in COVER_NAMES:
        candidate = directory / name
        if candidate.is_file():
            return candidate
    return None


def store_track(conn, user_id: str, path: Path) -> str:
    """Store one audio file. Returns 'added', 'updated' or 'unchanged'."""
    file_id, changed = _upsert_file(conn, user_id, path)
    existing = conn.execute(
        "SELECT id FROM tracks WHERE file_id = ?", (file_id,)
    ).fetchone()
    if existing and not changed:
        return "unchanged"

    meta = extract_track_metadata(str(path))
    artist_id = _get_or_create(conn, "artists", user_id, {"name": meta["artist"]})
    album_artist_id = _get_or_create(
        conn, "artists", user_id, {"name": meta["album_artist"] or meta["artist"]}
    )
    album_id = _get_or_create(
        conn,
        "albums",
        user_id,
        {"name": meta["album"], "album_artist_id": album_artist_id},
    )
    genre_id = (
        _get_or_create(conn, "genres", user_id, {"name": meta["genre"]})
        if meta["genre"]
        else None
    )

    if meta["year"]:
        conn.execute(
            "UPDATE albums SET year = ? WHERE id = ? AND (year IS NULL OR year < ?)",
            (meta["year"], album_id, meta["year"]),
        )

    cover = _find_cover(path.parent)
    if cover is not None:
        cover_file_id, _ = _upsert_file(conn, user_id, cover)
        conn.execute(
            "UPDATE albums SET cover_file_id = ? WHERE id = ?", (cover_file_id, album_id)
        )

    values = (
        meta["title"],
        artist_id,
        album_id,
        genre_id,
        meta["length"],
        meta["year"],
        meta["number"],
        meta["disk"],
        meta["bitrate"],
        get_mime_type(path),
        os.path.getsize(path),
    )
    if existing:
        conn.execute(
            """
            UPDATE tracks SET title = ?, artist_id = ?, album_id = ?, genre_id = ?,
                length = ?, year = ?, number = ?, disk = ?, bitrate = ?,
                mimetype = ?, size = ?, updated = CURRENT_TIMESTAMP
            WHERE id = ?
            """,
            (*values, existing["id"]),
        )
        return "updated"

    conn.execute(
        """
        INSERT INTO tracks (title, artist_id, album_id, genre_id, length, year,
            number, disk, bitrate, mimetype, size, user_id, file_id)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (*values, user_id, file_id),
    )
    return "added"


def _remove_missing(conn, user_id: str, seen_paths: set[str]) -> int:
    rows = conn.execute(
        "SELECT f.id, f.path FROM files f JOIN tracks t ON t.file_id = f.id WHERE f.user_id = ?",
        (user_id,),
    ).fetchall()
    missing = [row["id"] for row in rows if row["path"] not in seen_paths]
    for file_id in missing:
        conn.execute("DELETE FROM files WHERE id = ?", (file_id,))
    return len(missing)


def _remove_orphans(conn, user_id: str) -> None:
    """Drop albums, artists and genres no remaining track refers to."""
    conn.execute(
        "DELETE FROM albums WHERE user_id = ? "
        "AND id NOT IN (SELECT album_id FROM tracks WHERE album_id IS NOT NULL)",
        (user_id,),
    )
    # Album artists stay as long as one of their albums does
    conn.execute(
        "DELETE FROM artists WHERE user_id = ? "
        "AND id NOT IN (SELECT artist_id FROM tracks WHERE artist_id IS NOT NULL) "
        "AND id NOT IN (SELECT album_artist_id FROM albums WHERE album_artist_id IS NOT NULL)",
        (user_id,),
    )
    conn.execute(
        "DELETE FROM genres WHERE user_id = ? "
        "AND id NOT IN (SELECT genre_id FROM tracks WHERE genre_id IS NOT NULL)",
        (user_id,),
    )


def scan_music_library(conn, config: Config) -> ScanResult:
    """Scan all configured library paths into the database."""
    result = ScanResult()
    user_id = config.music.owner
    seen_paths: set[str] = set()

    for library_path in config.music.library_paths:
        root = Path(library_path).expanduser()
        if not root.exists():
            logger.warning(f"Library path does not exist: {root}")
            continue

        logger.info(f"Scanning: {root}")
        files: list[Path] = []
        for ext in config.music.supported_formats:
            pattern = f"*{ext}"
            files.extend(root.rglob(pattern) if config.music.scan_recursive else root.glob(pattern))

        for path in sorted(files):
            if not path.is_file():
                continue
            seen_paths.add(str(path))
            try:
                outcome = store_track(conn, user_id, path)
            except OSError as e:
                logger.warning(f"Error processing {path}: {e}")
                continue
            setattr(result, outcome, getattr(result, outcome) + 1)

    result.removed = _remove_missing(conn, user_id, seen_paths)
    if result.removed:
        _remove_orphans(conn, user_id)
    conn.commit()
    logger.info(
        f"Library scan complete: {result.added} added, {result.updated} updated, "
        f"{result.unchanged} unchanged, {result.removed} removed"
    )
    return result
