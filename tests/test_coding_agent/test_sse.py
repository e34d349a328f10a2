"""Tests for SSE stream parsing."""
from __future__ import annotations

from coding_agent.sse import iter_sse_data, iter_sse_json


class TestIterSseData:
    def test_events_split_on_blank_lines(self) -> None:
        lines = ["data: one", "", "data: two", ""]
        assert list(iter_sse_data(lines)) == ["one", "two"]

    def test_multiline_data_joined(self) -> None:
        lines = ["data: a", "data: b", ""]
        assert list(iter_sse_data(lines)) == ["a\nb"]

    def test_comments_and_other_fields_ignored(self) -> None:
        lines = [": keepalive", "event: message", "id: 3", "data: x", ""]
        assert list(iter_sse_data(lines)) == ["x"]

    def test_stops_at_done(self) -> None:
        lines = ["data: first", "", "data: [DONE]", "", "data: never", ""]
        assert list(iter_sse_data(lines)) == ["first"]

    def test_trailing_event_without_blank_line(self) -> None:
        assert list(iter_sse_data(["data: last"])) == ["last"]

    def test_only_one_leading_space_stripped(self) -> None:
        assert list(iter_sse_data(["data:  indented", ""])) == [" indented"]

    def test_crlf_line_endings(self) -> None:
        assert list(iter_sse_data(["data: x\r\n", "\r\n"])) == ["x"]


class TestIterSseJson:
    def test_decodes_objects(self) -> None:
        lines = ['data: {"a": 1}', ""]
        assert list(iter_sse_json(lines)) == [{"a": 1}]

    def test_skips_malformed_and_non_objects(self, caplog) -> None:
        lines = ["data: {oops", "", "data: [1, 2]", "", 'data: {"ok": true}', ""]
        assert list(iter_sse_json(lines)) == [{"ok": True}]
        assert "malformed" in caplog.text
