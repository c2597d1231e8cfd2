"""Chat replay loading, rendering and slicing."""

from .events import ChatEvent
from .normalize import ChatLog, load_chat_log

__all__ = ["ChatEvent", "ChatLog", "load_chat_log"]
