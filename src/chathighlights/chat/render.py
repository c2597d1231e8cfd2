"""Human-readable text rendering of chat replays."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

from ..windows import format_timestamp
from .events import ChatEvent
from .normalize import load_chat_log

logger = logging.getLogger(__name__)


def badge_symbols(event: ChatEvent) -> str:
    """``*`` admin/staff, ``#`` broadcaster, ``@`` moderator, ``+`` subscriber."""
    out = ""
    if event.has_badge("admin") or event.has_badge("staff"):
        out += "*"
    if event.has_badge("broadcaster"):
        out += "#"
    if event.has_badge("moderator") or event.has_badge("global_mod"):
        out += "@"
    if event.has_badge("subscriber"):
        out += "+"
    return out


def user_label(event: ChatEvent) -> str:
    display = event.display_name or event.author
    if event.author and display.lower() != event.author.lower():
        return f"{display} ({event.author})"
    return display


def render_event(event: ChatEvent, *, show_badges: bool = False) -> str:
    badges = badge_symbols(event) if show_badges else ""
    sep = "" if event.is_action else ":"
    return f"[{format_timestamp(event.offset_s, millis=True)}] {badges}{user_label(event)}{sep} {event.text}"


def render_events(events: Iterable[ChatEvent], *, show_badges: bool = False) -> list[str]:
    return [render_event(e, show_badges=show_badges) for e in events]


def default_text_path(chat_path: Path) -> Path:
    chat_path = Path(chat_path)
    suffix = "-p.txt" if chat_path.suffix.lower() == ".txt" else ".txt"
    return chat_path.with_name(chat_path.stem + suffix)


def render_chat_file(
    chat_path: Path,
    out_path: Optional[Path] = None,
    *,
    overwrite: bool = False,
    show_badges: bool = False,
) -> Path:
    """Write one readable line per chat message next to ``chat_path``."""
    out_path = Path(out_path) if out_path is not None else default_text_path(chat_path)
    if out_path.exists() and not overwrite:
        raise FileExistsError(f"Output file already exists: {out_path}")

    log = load_chat_log(chat_path)
    lines = render_events(log.events, show_badges=show_badges)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text("".join(line + "\n" for line in lines), encoding="utf-8")
    logger.info("Rendered %d chat lines to %s", len(lines), out_path)
    return out_path
