"""Shared fixtures: a temporary database seeded with a small library."""

from pathlib import Path

import pytest

from ampache_minion.core.config import Config, MusicConfig
from ampache_minion.core.database import connect, init_database
from ampache_minion.domain.ampache.sessions import UserKeyStore

# Fixed "current time" used by the dispatcher and authenticator in tests
NOW = 1_700_000_000

COVER_BYTES = b"\xff\xd8\xff\xe0fake-jpeg"
AUDIO_BYTES = b"ID3\x03\x00fake-mp3"


def seed_library(conn, music_dir: Path) -> None:
    """Insert a two-user library.

    alice: 3 artists (one unnamed), 2 albums, 2 genres, 4 tracks, 3 playlists
    bob:   1 artist, 1 album, 1 track, 1 playlist
    """
    music_dir.mkdir(parents=True, exist_ok=True)
    (music_dir / "come_together.mp3").write_bytes(AUDIO_BYTES)
    (music_dir / "cover.jpg").write_bytes(COVER_BYTES)

    conn.executemany(
        "INSERT INTO files (id, user_id, path) VALUES (?, ?, ?)",
        [
            (1, "alice", str(music_dir / "come_together.mp3")),
            (2, "alice", str(music_dir / "something.mp3")),
            (3, "alice", str(music_dir / "dancing_queen.mp3")),
            (4, "alice", str(music_dir / "money.mp3")),
            (5, "alice", str(music_dir / "cover.jpg")),
            (6, "bob", str(music_dir / "bob.mp3")),
        ],
    )
    conn.executemany(
        "INSERT INTO artists (id, user_id, name, cover_file_id, starred) VALUES (?, ?, ?, ?, ?)",
        [
            (1, "alice", "The Beatles", 5, None),
            (2, "alice", "ABBA", None, "2024-01-02T00:00:00+00:00"),
            (3, "alice", None, None, None),
            (4, "bob", "Bob Artist", None, None),
        ],
    )
    conn.executemany(
        "INSERT INTO albums (id, user_id, name, album_artist_id, year, cover_file_id) "
        "VALUES (?, ?, ?, ?, ?, ?)",
        [
            (1, "alice", "Abbey Road", 1, 1969, 5),
            (2, "alice", "Arrival", 2, 1976, None),
            (3, "bob", "Bob Album", 4, 2001, None),
        ],
    )
    conn.executemany(
        "INSERT INTO genres (id, user_id, name) VALUES (?, ?, ?)",
        [(1, "alice", "Rock"), (2, "alice", "Pop"), (3, "bob", "Jazz")],
    )
    conn.executemany(
        """
        INSERT INTO tracks (id, user_id, title, artist_id, album_id, genre_id, length,
            year, number, disk, bitrate, mimetype, size, file_id, starred)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        [
            (1, "alice", "Come Together", 1, 1, 1, 259, 1969, 1, 1, 320000, "audio/mpeg", 100, 1, None),
            (2, "alice", "Something", 1, 1, 1, 182, 1969, 2, 1, 320000, "audio/mpeg", 200, 2,
             "2024-03-01T00:00:00+00:00"),
            (3, "alice", "Dancing Queen", 2, 2, 2, 231, 1976, 2, 1, 256000, "audio/mpeg", 300, 3,
             "2024-02-01T00:00:00+00:00"),
            (4, "alice", "Money, Money, Money", 2, 2, None, 185, 1976, 3, 2, 256000, "audio/mpeg",
             400, 4, None),
            (5, "bob", "Bob Song", 4, 3, 3, 100, 2001, 1, 1, 128000, "audio/mpeg", 500, 6, None),
        ],
    )
    conn.executemany(
        "INSERT INTO playlists (id, user_id, name) VALUES (?, ?, ?)",
        [(1, "alice", "Favourites"), (2, "alice", "Road trip"), (3, "alice", "Zen"), (4, "bob", "Bob list")],
    )
    conn.executemany(
        "INSERT INTO playlist_tracks (playlist_id, track_id, position) VALUES (?, ?, ?)",
        [(1, 3, 0), (1, 1, 1), (2, 2, 0), (4, 5, 0)],
    )
    conn.commit()


@pytest.fixture
def db_conn(tmp_path):
    """Empty database with the full schema."""
    conn = connect(tmp_path / "test.db")
    init_database(conn)
    yield conn
    conn.close()


@pytest.fixture
def music_dir(tmp_path):
    return tmp_path / "music"


@pytest.fixture
def seeded_db(db_conn, music_dir):
    """Database holding the sample library and an API key 'secret' for alice."""
    seed_library(db_conn, music_dir)
    UserKeyStore(db_conn).add_key("alice", "secret", "test key")
    return db_conn


@pytest.fixture
def config(music_dir):
    return Config(music=MusicConfig(library_paths=[str(music_dir)], owner="alice"))


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    return lambda: NOW
