"""Tests for the XML/JSON wire conventions."""

import xml.etree.ElementTree as ET

from ampache_minion.domain.ampache.wire import (
    error_content,
    prepare_for_json,
    prepare_for_xml,
    to_xml,
)

SONGS = {
    "song": [
        {
            "id": "1",
            "title": "Come Together",
            "artist": {"id": "7", "value": "The Beatles"},
            "tag": [{"id": "3", "value": "Rock", "count": 1}],
            "year": None,
        }
    ]
}


class TestJson:
    def test_single_list_is_unwrapped(self):
        result = prepare_for_json(SONGS)
        assert isinstance(result, list)
        assert result[0]["title"] == "Come Together"

    def test_value_becomes_name(self):
        song = prepare_for_json(SONGS)[0]
        assert song["artist"] == {"id": "7", "name": "The Beatles"}
        assert song["tag"] == [{"id": "3", "name": "Rock", "count": 1}]

    def test_error_value_becomes_message(self):
        assert prepare_for_json(error_content(400, "x")) == {"error": {"code": 400, "message": "x"}}

    def test_scalar_responses_are_not_unwrapped(self):
        assert prepare_for_json({"success": "ok"}) == {"success": "ok"}

    def test_id_list_is_unwrapped(self):
        assert prepare_for_json({"id": ["4", "2"]}) == ["4", "2"]

    def test_empty_list_is_unwrapped(self):
        assert prepare_for_json({"song": []}) == []


class TestXmlPreparation:
    def test_entity_lists_get_total_count_first(self):
        prepared = prepare_for_xml(SONGS)
        assert list(prepared["root"]) == ["total_count", "song"]
        assert prepared["root"]["total_count"] == 1

    def test_id_list_gets_indexes(self):
        prepared = prepare_for_xml({"id": ["4", "2"]})
        assert prepared == {"root": {"id": [{"index": 0, "value": "4"}, {"index": 1, "value": "2"}]}}

    def test_other_responses_are_only_wrapped(self):
        assert prepare_for_xml({"success": "ok"}) == {"root": {"success": "ok"}}


class TestToXml:
    def parse(self, content):
        body = to_xml(prepare_for_xml(content))
        assert body.startswith(b"<?xml")
        return ET.fromstring(body)

    def test_song_list(self):
        root = self.parse(SONGS)
        assert root.tag == "root"
        assert root.find("total_count").text == "1"

        song = root.find("song")
        assert song.get("id") == "1"
        assert song.find("title").text == "Come Together"
        assert song.find("artist").get("id") == "7"
        assert song.find("artist").text == "The Beatles"
        assert song.find("tag").get("count") == "1"

    def test_none_values_are_skipped(self):
        assert self.parse(SONGS).find("song/year") is None

    def test_id_list(self):
        root = self.parse({"id": ["4", "2"]})
        ids = root.findall("id")
        assert [(e.get("index"), e.text) for e in ids] == [("0", "4"), ("1", "2")]

    def test_error(self):
        root = self.parse(error_content(401, "Invalid Login"))
        error = root.find("error")
        assert error.get("code") == "401"
        assert error.text == "Invalid Login"

    def test_repeated_scalar_children(self):
        root = self.parse({"playlist": [{"id": "1", "playlisttrack": ["5", "6"]}]})
        assert [e.text for e in root.findall("playlist/playlisttrack")] == ["5", "6"]

    def test_booleans(self):
        root = self.parse({"flag": True})
        assert root.find("flag").text == "true"

    def test_escaping(self):
        root = self.parse({"song": [{"id": "1", "title": "Rock & <Roll>"}]})
        assert root.find("song/title").text == "Rock & <Roll>"
