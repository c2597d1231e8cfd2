"""Shared helpers.

- subprocess_flags(): Windows-specific flags to hide console windows
- utc_iso(): UTC timestamp in ISO format
"""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from typing import Any, Dict


def subprocess_flags() -> Dict[str, Any]:
    """Extra ``subprocess`` kwargs that keep ffmpeg from opening a console on Windows."""
    if sys.platform == "win32":
        # CREATE_NO_WINDOW
        return {"creationflags": 0x08000000}
    return {}


def utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
