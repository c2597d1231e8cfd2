"""Tests for chat replay loading, rendering and slicing."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from chathighlights.chat.events import ChatEvent
from chathighlights.chat.normalize import ChatFormat, load_chat_log, load_chat_records, normalize_records
from chathighlights.chat.render import badge_symbols, default_text_path, render_chat_file, render_event
from chathighlights.chat.slice import default_slice_path, extract_chat_range
from chathighlights.errors import InvalidInputError


def _twitch_comment(offset, body, *, name="viewer", display=None, badges=(), is_action=False, source="chat"):
    return {
        "created_at": "2019-03-02T20:00:00Z",
        "content_offset_seconds": offset,
        "source": source,
        "commenter": {"name": name, "display_name": display or name},
        "message": {
            "body": body,
            "is_action": is_action,
            "user_badges": [{"_id": b, "version": 1} for b in badges],
        },
    }


@pytest.fixture
def twitch_chat(tmp_path: Path) -> Path:
    path = tmp_path / "123456.json"
    comments = [
        _twitch_comment(12.5, "hello chat", name="alice", display="Alice"),
        _twitch_comment(3.0, "first", name="bob", display="xX_Bob_Xx ", badges=("subscriber",)),
        _twitch_comment(3723.25, "waves", name="mod", badges=("moderator", "subscriber"), is_action=True),
        _twitch_comment(40.0, "nice vod", source="comment"),
    ]
    path.write_text(json.dumps(comments), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


class TestNormalize:
    def test_twitch_dump_is_sorted_and_typed(self, twitch_chat: Path):
        log = load_chat_log(twitch_chat)

        assert log.fmt == ChatFormat.TWITCH_V5
        assert [e.offset_s for e in log.events] == [3.0, 12.5, 40.0, 3723.25]
        bob = log.events[0]
        assert bob.text == "first"
        assert bob.author == "bob"
        assert bob.display_name == "xX_Bob_Xx"
        assert bob.badges == ("subscriber",)
        assert log.events[3].is_action
        assert log.events[2].is_non_chat
        assert log.duration_s == 3723.25

    def test_wrapped_object_and_jsonl(self, tmp_path: Path):
        wrapped = tmp_path / "wrapped.json"
        wrapped.write_text(json.dumps({"comments": [_twitch_comment(1, "a")]}), encoding="utf-8")
        assert len(load_chat_records(wrapped)) == 1

        jsonl = tmp_path / "chat.jsonl"
        jsonl.write_text(
            '{"time_ms": 1500, "text": "a"}\nnot json\n{"offset": "00:01:00", "message": "b"}\n',
            encoding="utf-8",
        )
        log = load_chat_log(jsonl)
        assert [(e.offset_s, e.text) for e in log.events] == [(1.5, "a"), (60.0, "b")]
        assert log.fmt == ChatFormat.GENERIC_JSON

    def test_records_without_timestamp_are_dropped(self):
        log = normalize_records([{"text": "no time"}, {"seconds": 4, "text": "ok"}, {"seconds": -2}])
        assert len(log) == 1
        assert log.dropped == 2

    def test_ties_keep_file_order(self):
        log = normalize_records([{"seconds": 5, "text": "a"}, {"seconds": 1, "text": "b"}, {"seconds": 5, "text": "c"}])
        assert [e.text for e in log.events] == ["b", "a", "c"]

    def test_non_finite_offsets_are_dropped(self, tmp_path: Path):
        path = tmp_path / "odd.json"
        path.write_text(
            '[{"content_offset_seconds": Infinity, "message": {"body": "a"}},'
            ' {"content_offset_seconds": NaN, "message": {"body": "b"}},'
            ' {"seconds": "inf", "text": "c"},'
            ' {"content_offset_seconds": 5, "message": {"body": "d"}}]',
            encoding="utf-8",
        )
        log = load_chat_log(path)
        assert [(e.offset_s, e.text) for e in log.events] == [(5.0, "d")]
        assert log.dropped == 3

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_chat_log(tmp_path / "missing.json")


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class TestRender:
    def test_render_event_plain(self):
        e = ChatEvent(offset_s=12.5, text="hello chat", author="alice", display_name="Alice")
        assert render_event(e) == "[00:00:12.500] Alice: hello chat"

    def test_render_event_shows_login_when_display_differs(self):
        e = ChatEvent(offset_s=0, text="hi", author="bob", display_name="xX_Bob_Xx")
        assert render_event(e) == "[00:00:00.000] xX_Bob_Xx (bob): hi"

    def test_render_action_with_badges(self):
        e = ChatEvent(offset_s=3723.25, text="waves", author="mod", display_name="Mod", badges=("moderator", "subscriber"), is_action=True)
        assert render_event(e, show_badges=True) == "[01:02:03.250] @+Mod waves"
        assert render_event(e) == "[01:02:03.250] Mod waves"

    def test_badge_symbol_order(self):
        e = ChatEvent(offset_s=0, badges=("subscriber", "global_mod", "broadcaster", "staff"))
        assert badge_symbols(e) == "*#@+"

    def test_render_chat_file(self, twitch_chat: Path):
        out = render_chat_file(twitch_chat, show_badges=True)
        assert out == twitch_chat.with_suffix(".txt")
        lines = out.read_text(encoding="utf-8").splitlines()
        assert lines[0] == "[00:00:03.000] +xX_Bob_Xx (bob): first"
        assert len(lines) == 4

    def test_render_refuses_overwrite(self, twitch_chat: Path):
        out = render_chat_file(twitch_chat)
        with pytest.raises(FileExistsError):
            render_chat_file(twitch_chat)
        assert render_chat_file(twitch_chat, overwrite=True) == out

    def test_default_text_path_for_txt_input(self, tmp_path: Path):
        assert default_text_path(tmp_path / "log.txt") == tmp_path / "log-p.txt"


# ---------------------------------------------------------------------------
# Range extraction
# ---------------------------------------------------------------------------


class TestSlice:
    def test_extract_is_inclusive(self, twitch_chat: Path, tmp_path: Path):
        out = extract_chat_range(twitch_chat, 3.0, 40.0, tmp_path / "slice.json")
        data = json.loads(out.read_text(encoding="utf-8"))
        assert [d["content_offset_seconds"] for d in data] == [12.5, 3.0, 40.0]
        assert data[0]["commenter"]["name"] == "alice"

    def test_default_slice_name(self, twitch_chat: Path):
        out = extract_chat_range(twitch_chat, 0, 7920)
        assert out == default_slice_path(twitch_chat, 0, 7920)
        assert out.name == "123456_00_00_00_02_12_00.json"

    def test_extract_rejects_inverted_range(self, twitch_chat: Path):
        with pytest.raises(InvalidInputError):
            extract_chat_range(twitch_chat, 50, 10)
