"""
SQLite database operations for Ampache Minion
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path

from loguru import logger

from .config import get_data_dir


# Database schema version for migrations
SCHEMA_VERSION = 1


def get_database_path() -> Path:
    """Get the path to the SQLite database file."""
    return get_data_dir() / "ampache_minion.db"


def connect(db_path) -> sqlite3.Connection:
    """Open a connection configured the way the rest of the app expects."""
    # FastAPI may resolve dependencies and run handlers on different threads
    conn = sqlite3.connect(db_path, timeout=30.0, check_same_thread=False)
    conn.row_factory = sqlite3.Row  # Enable dict-like access
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def get_db_connection():
    """Get a database connection with proper cleanup and concurrency support."""
    db_path = get_database_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = connect(db_path)

    # WAL mode enables concurrent reads during writes
    conn.execute("PRAGMA journal_mode=WAL")

    try:
        yield conn
    finally:
        conn.close()


def create_schema(conn) -> None:
    """Create all tables and indexes (idempotent)."""
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS schema_version (
            version INTEGER PRIMARY KEY
        );

        CREATE TABLE IF NOT EXISTS files (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT NOT NULL,
            path TEXT NOT NULL,
            mtime REAL,
            UNIQUE (user_id, path)
        );

        CREATE TABLE IF NOT EXISTS artists (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT NOT NULL,
            name TEXT,
            cover_file_id INTEGER,
            starred TIMESTAMP,
            created TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS albums (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT NOT NULL,
            name TEXT,
            album_artist_id INTEGER,
            year INTEGER,
            cover_file_id INTEGER,
            starred TIMESTAMP,
            created TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY (album_artist_id) REFERENCES artists (id) ON DELETE SET NULL
        );

        CREATE TABLE IF NOT EXISTS genres (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT NOT NULL,
            name TEXT NOT NULL,
            created TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            UNIQUE (user_id, name)
        );

        CREATE TABLE IF NOT EXISTS tracks (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT NOT NULL,
            title TEXT NOT NULL,
            artist_id INTEGER,
            album_id INTEGER,
            genre_id INTEGER,
            length INTEGER,
            year INTEGER,
            number INTEGER,
            disk INTEGER,
            bitrate INTEGER,
            mimetype TEXT,
            size INTEGER,
            file_id INTEGER NOT NULL,
            starred TIMESTAMP,
            created TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY (artist_id) REFERENCES artists (id) ON DELETE SET NULL,
            FOREIGN KEY (album_id) REFERENCES albums (id) ON DELETE SET NULL,
            FOREIGN KEY (genre_id) REFERENCES genres (id) ON DELETE SET NULL,
            FOREIGN KEY (file_id) REFERENCES files (id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS playlists (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT NOT NULL,
            name TEXT NOT NULL,
            created TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS playlist_tracks (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            playlist_id INTEGER NOT NULL,
            track_id INTEGER NOT NULL,
            position INTEGER NOT NULL,
            FOREIGN KEY (playlist_id) REFERENCES playlists (id) ON DELETE CASCADE,
            FOREIGN KEY (track_id) REFERENCES tracks (id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS ampache_user_keys (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT NOT NULL,
            hash TEXT NOT NULL,
            description TEXT,
            created TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS ampache_sessions (
            token TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            expiry INTEGER NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_artists_user ON artists (user_id, name);
        CREATE INDEX IF NOT EXISTS idx_albums_user ON albums (user_id, name);
        CREATE INDEX IF NOT EXISTS idx_albums_artist ON albums (album_artist_id);
        CREATE INDEX IF NOT EXISTS idx_tracks_user ON tracks (user_id, title);
        CREATE INDEX IF NOT EXISTS idx_tracks_artist ON tracks (artist_id);
        CREATE INDEX IF NOT EXISTS idx_tracks_album ON tracks (album_id, disk, number);
        CREATE INDEX IF NOT EXISTS idx_tracks_genre ON tracks (genre_id);
        CREATE INDEX IF NOT EXISTS idx_playlist_tracks_playlist ON playlist_tracks (playlist_id, position);
        CREATE INDEX IF NOT EXISTS idx_user_keys_user ON ampache_user_keys (user_id);
        CREATE INDEX IF NOT EXISTS idx_sessions_expiry ON ampache_sessions (expiry);
        """
    )


def init_database(conn=None) -> None:
    """Initialize the database schema and record its version."""
    if conn is None:
        with get_db_connection() as own_conn:
            init_database(own_conn)
        return

    create_schema(conn)
    row = conn.execute("SELECT MAX(version) AS version FROM schema_version").fetchone()
    current_version = row["version"] if row and row["version"] is not None else 0
    if current_version < SCHEMA_VERSION:
        conn.execute(
            "INSERT OR REPLACE INTO schema_version (version) VALUES (?)",
            (SCHEMA_VERSION,),
        )
        logger.info(f"Database schema initialized at version {SCHEMA_VERSION}")
    conn.commit()
