"""Normalize chat replay files into ordered ``ChatEvent`` sequences.

Supports:
  - Twitch v5 comment dumps (``content_offset_seconds`` + ``commenter`` + ``message``)
  - Generic JSON with a timestamp field (seconds, ``*_ms`` keys or ``hh:mm:ss``)
  - Either of the above wrapped in an object (``comments``/``messages``/...) or as JSONL
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .events import ChatEvent

logger = logging.getLogger(__name__)


_TS_KEYS = (
    "content_offset_seconds",
    "offset_seconds",
    "time_in_seconds",
    "offset",
    "seconds",
    "timestamp",
    "time",
    "ts",
    "offset_ms",
    "timestamp_ms",
    "time_ms",
)

_WRAPPER_KEYS = ("comments", "messages", "chat", "items")


class ChatFormat:
    """Detected chat format."""

    TWITCH_V5 = "twitch_v5"
    GENERIC_JSON = "generic_json"
    UNKNOWN = "unknown"


@dataclass
class ChatLog:
    """Parsed chat replay."""

    events: List[ChatEvent] = field(default_factory=list)
    fmt: str = ChatFormat.UNKNOWN
    dropped: int = 0  # Records without a usable timestamp

    @property
    def duration_s(self) -> float:
        return self.events[-1].offset_s if self.events else 0.0

    def __len__(self) -> int:
        return len(self.events)


def detect_chat_format(records: List[Dict[str, Any]]) -> str:
    if not records:
        return ChatFormat.UNKNOWN
    sample = records[0]
    if "content_offset_seconds" in sample and "commenter" in sample:
        return ChatFormat.TWITCH_V5
    for key in _TS_KEYS:
        if key in sample:
            return ChatFormat.GENERIC_JSON
    return ChatFormat.UNKNOWN


def _parse_hhmmss(val: str) -> Optional[float]:
    parts = val.strip().split(":")
    if len(parts) < 2:
        return None
    try:
        parts_f = [float(p) for p in parts]
    except ValueError:
        return None
    sec = 0.0
    for p in parts_f:
        sec = sec * 60.0 + p
    return sec


def _parse_offset(val: Any, key: str) -> Optional[float]:
    if val is None or isinstance(val, bool):
        return None
    if isinstance(val, (int, float)):
        x = float(val)
        if not math.isfinite(x):
            return None
        if key.endswith("_ms"):
            return x / 1000.0
        return x
    if isinstance(val, str):
        val = val.strip()
        if not val:
            return None
        try:
            return _parse_offset(float(val), key)
        except ValueError:
            return _parse_hhmmss(val)
    return None


def extract_offset(rec: Dict[str, Any]) -> Optional[float]:
    for key in _TS_KEYS:
        if key in rec:
            t = _parse_offset(rec[key], key)
            if t is not None:
                return t
    return None


def _extract_text(rec: Dict[str, Any]) -> str:
    msg = rec.get("message")
    if isinstance(msg, dict):
        body = msg.get("body")
        if isinstance(body, str):
            return body
        fragments = msg.get("fragments")
        if isinstance(fragments, list):
            return "".join(f.get("text", "") for f in fragments if isinstance(f, dict))
        return ""
    for key in ("message", "text", "body", "content"):
        if isinstance(rec.get(key), str):
            return rec[key]
    return ""


def _extract_author(rec: Dict[str, Any]) -> Tuple[str, str]:
    """Return (login, display_name)."""
    commenter = rec.get("commenter")
    if isinstance(commenter, dict):
        name = str(commenter.get("name") or "")
        display = str(commenter.get("display_name") or name)
        return name, display.rstrip(" ")
    for key in ("author", "username", "user", "name"):
        if isinstance(rec.get(key), str):
            return rec[key], rec[key]
    return "", ""


def _extract_badges(rec: Dict[str, Any]) -> Tuple[str, ...]:
    badges: List[str] = []
    msg = rec.get("message")
    raw = msg.get("user_badges") if isinstance(msg, dict) else rec.get("badges")
    if isinstance(raw, list):
        for badge in raw:
            if isinstance(badge, str):
                badges.append(badge)
            elif isinstance(badge, dict):
                badge_id = badge.get("_id", badge.get("id"))
                if badge_id:
                    badges.append(str(badge_id))
    return tuple(badges)


def _is_action(rec: Dict[str, Any]) -> bool:
    msg = rec.get("message")
    if isinstance(msg, dict):
        return bool(msg.get("is_action", False))
    return bool(rec.get("is_action", False))


def load_chat_records(path: Path) -> List[Dict[str, Any]]:
    """Load raw chat records from JSON, a wrapped JSON object or JSONL."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Chat file not found: {path}")
    text = path.read_text(encoding="utf-8-sig")
    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError:
        data = []
        for line in text.splitlines():
            line = line.strip()
            if not line:
                continue
            try:
                obj = json.loads(line)
            except json.JSONDecodeError:
                continue
            if isinstance(obj, dict):
                data.append(obj)

    if isinstance(data, dict):
        for key in _WRAPPER_KEYS:
            if isinstance(data.get(key), list):
                data = data[key]
                break
        else:
            return []
    if not isinstance(data, list):
        return []
    return [rec for rec in data if isinstance(rec, dict)]


def normalize_records(records: List[Dict[str, Any]]) -> ChatLog:
    """Map raw records to ``ChatEvent``s sorted by offset.

    Sorting is stable, so messages sharing an offset keep file order.
    """
    events: List[ChatEvent] = []
    dropped = 0
    for rec in records:
        offset = extract_offset(rec)
        if offset is None or offset < 0:
            dropped += 1
            continue
        login, display = _extract_author(rec)
        events.append(
            ChatEvent(
                offset_s=offset,
                text=_extract_text(rec),
                author=login,
                display_name=display,
                badges=_extract_badges(rec),
                is_action=_is_action(rec),
                source=str(rec.get("source") or "chat"),
                raw=rec,
            )
        )
    events.sort(key=lambda e: e.offset_s)
    if dropped:
        logger.warning("Dropped %d chat records without a usable timestamp", dropped)
    return ChatLog(events=events, fmt=detect_chat_format(records), dropped=dropped)


def load_chat_log(path: Path) -> ChatLog:
    records = load_chat_records(path)
    log = normalize_records(records)
    logger.info(
        "Loaded %d chat events from %s (format=%s, span=%.1fs)",
        len(log),
        path,
        log.fmt,
        log.duration_s,
    )
    return log
