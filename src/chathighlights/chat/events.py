"""Typed chat event records consumed by the engagement analysis."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class ChatEvent:
    """A single chat message positioned on the video timeline."""

    offset_s: float  # Seconds from video start
    text: str = ""
    author: str = ""  # Login name
    display_name: str = ""
    badges: Tuple[str, ...] = ()
    is_action: bool = False  # "/me" message
    source: str = "chat"
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def is_non_chat(self) -> bool:
        """True for comments posted on the VOD rather than in live chat."""
        return self.source.lower() != "chat"

    def has_badge(self, badge_id: str) -> bool:
        badge_id = badge_id.lower()
        return any(b.lower() == badge_id for b in self.badges)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "offset_s": self.offset_s,
            "text": self.text,
            "author": self.author,
            "display_name": self.display_name,
            "badges": list(self.badges),
            "is_action": self.is_action,
            "source": self.source,
        }
