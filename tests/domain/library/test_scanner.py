"""Tests for library scanning. Tag reading is mocked; files are real."""

from unittest.mock import patch

import pytest

from ampache_minion.core.config import Config, MusicConfig
from ampache_minion.domain.library.scanner import (
    extract_metadata_from_filename,
    get_tag_value,
    parse_number,
    scan_music_library,
)

TAGS = {
    "a.mp3": {"title": "One", "artist": "Band", "album": "First", "genre": "Rock",
              "year": 1999, "number": 1, "disk": 1},
    "b.mp3": {"title": "Two", "artist": "Band", "album": "First", "genre": "Rock",
              "year": 2000, "number": 2, "disk": 2},
    "c.flac": {"title": "Solo", "artist": "Singer", "album_artist": "Band", "album": None,
               "genre": None, "year": None, "number": None, "disk": None},
}


def fake_metadata(local_path):
    name = local_path.rsplit("/", 1)[-1]
    meta = {"album_artist": None, "length": 120, "bitrate": 320000}
    meta.update(TAGS[name])
    return meta


@pytest.fixture
def library_dir(tmp_path):
    root = tmp_path / "lib"
    (root / "sub").mkdir(parents=True)
    (root / "a.mp3").write_bytes(b"a")
    (root / "b.mp3").write_bytes(b"b")
    (root / "sub" / "c.flac").write_bytes(b"c")
    (root / "notes.txt").write_text("not music")
    (root / "cover.jpg").write_bytes(b"\xff\xd8")
    return root


@pytest.fixture
def scan_config(library_dir):
    return Config(music=MusicConfig(library_paths=[str(library_dir)], owner="alice"))


def scan(conn, config):
    with patch(
        "ampache_minion.domain.library.scanner.extract_track_metadata", side_effect=fake_metadata
    ):
        return scan_music_library(conn, config)


class TestHelpers:
    def test_parse_number(self):
        assert parse_number("3") == 3
        assert parse_number("3/12") == 3
        assert parse_number("2004-05-01") == 2004
        assert parse_number("") is None
        assert parse_number("abc") is None

    def test_filename_fallback(self):
        meta = extract_metadata_from_filename("/music/Artist Name - Track Title.mp3")
        assert meta == {"title": "Track Title", "artist": "Artist Name"}

    def test_get_tag_value_takes_first_of_list(self):
        assert get_tag_value({"TITLE": ["A", "B"]}, ["TIT2", "TITLE"]) == "A"

    def test_get_tag_value_unwraps_tuples(self):
        assert get_tag_value({"trkn": [(4, 10)]}, ["trkn"]) == "4"

    def test_get_tag_value_missing(self):
        assert get_tag_value({}, ["TIT2"]) is None


class TestScanMusicLibrary:
    def test_first_scan_adds_tracks(self, db_conn, scan_config):
        result = scan(db_conn, scan_config)
        assert result.added == 3
        assert db_conn.execute("SELECT COUNT(*) FROM tracks").fetchone()[0] == 3

    def test_entities_are_shared(self, db_conn, scan_config):
        scan(db_conn, scan_config)
        artists = [r["name"] for r in db_conn.execute("SELECT name FROM artists ORDER BY name")]
        assert artists == ["Band", "Singer"]
        assert db_conn.execute("SELECT COUNT(*) FROM genres").fetchone()[0] == 1

    def test_album_gets_latest_year_and_cover(self, db_conn, scan_config, library_dir):
        scan(db_conn, scan_config)
        album = db_conn.execute(
            "SELECT a.year, f.path FROM albums a JOIN files f ON f.id = a.cover_file_id "
            "WHERE a.name = 'First'"
        ).fetchone()
        assert album["year"] == 2000
        assert album["path"] == str(library_dir / "cover.jpg")

    def test_rows_belong_to_owner(self, db_conn, scan_config):
        scan(db_conn, scan_config)
        owners = {r[0] for r in db_conn.execute("SELECT DISTINCT user_id FROM tracks")}
        assert owners == {"alice"}

    def test_rescan_leaves_unchanged_files(self, db_conn, scan_config):
        scan(db_conn, scan_config)
        result = scan(db_conn, scan_config)
        assert (result.added, result.unchanged) == (0, 3)

    def test_deleted_files_are_removed(self, db_conn, scan_config, library_dir):
        scan(db_conn, scan_config)
        (library_dir / "a.mp3").unlink()
        result = scan(db_conn, scan_config)
        assert result.removed == 1
        titles = {r[0] for r in db_conn.execute("SELECT title FROM tracks")}
        assert titles == {"Two", "Solo"}

    def test_removed_track_takes_its_artist_and_album(self, db_conn, scan_config, library_dir):
        scan(db_conn, scan_config)
        (library_dir / "sub" / "c.flac").unlink()
        scan(db_conn, scan_config)

        artists = {r[0] for r in db_conn.execute("SELECT name FROM artists")}
        albums = {r[0] for r in db_conn.execute("SELECT name FROM albums")}
        assert artists == {"Band"}
        assert albums == {"First"}

    def test_album_artist_outlives_own_tracks(self, db_conn, scan_config, library_dir):
        scan(db_conn, scan_config)
        (library_dir / "a.mp3").unlink()
        (library_dir / "b.mp3").unlink()
        scan(db_conn, scan_config)

        # Band still credited as album artist of the remaining track
        artists = {r[0] for r in db_conn.execute("SELECT name FROM artists")}
        assert artists == {"Band", "Singer"}
        assert [r[0] for r in db_conn.execute("SELECT name FROM albums")] == [None]
        assert db_conn.execute("SELECT COUNT(*) FROM genres").fetchone()[0] == 0

    def test_missing_library_path(self, db_conn, tmp_path):
        config = Config(music=MusicConfig(library_paths=[str(tmp_path / "nope")]))
        result = scan(db_conn, config)
        assert result.added == 0
