"""Centralized logging configuration for chathighlights.

Usage:
    from chathighlights.logging_config import setup_logging
    setup_logging()  # Call once at startup

    # Then in any module:
    import logging
    logger = logging.getLogger(__name__)
"""

from __future__ import annotations

import logging
import os
import re
import sys
from pathlib import Path
from typing import Dict, Optional

ROOT_LOGGER = "chathighlights"

_CONFIGURED = False


def _parse_module_levels(spec: str) -> Dict[str, int]:
    """Parse per-module logger levels from an env-var style string.

    Format:
        CHL_LOG_MODULE_LEVELS="chathighlights.peaks=DEBUG,chat=INFO"

    Names not starting with "chathighlights" are prefixed. Entries are split on
    comma/semicolon and assigned with "=" or ":". Invalid entries are ignored.
    """
    out: Dict[str, int] = {}
    if not spec:
        return out
    for part in re.split(r"[;,]+", spec):
        part = part.strip()
        if not part:
            continue
        if "=" in part:
            name, level_str = part.split("=", 1)
        elif ":" in part:
            name, level_str = part.split(":", 1)
        else:
            continue
        name = name.strip()
        level_str = level_str.strip().upper()
        if not name or not level_str:
            continue
        if not name.startswith(ROOT_LOGGER):
            name = f"{ROOT_LOGGER}.{name}"
        level = getattr(logging, level_str, None)
        if isinstance(level, int):
            out[name] = level
    return out


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    format_string: Optional[str] = None,
    *,
    force: bool = False,
) -> None:
    """Configure the ``chathighlights`` logger.

    Args:
        level: Logging level (default: INFO)
        log_file: Optional file path to write logs to
        format_string: Custom format string
        force: Reconfigure even if already configured
    """
    global _CONFIGURED
    if _CONFIGURED and not force:
        return

    if format_string is None:
        format_string = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    # Permissive handler so per-module overrides can enable DEBUG.
    console_handler.setLevel(logging.DEBUG)
    console_handler.setFormatter(logging.Formatter(format_string, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(format_string, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(file_handler)

    logger.propagate = False

    module_levels = _parse_module_levels(os.getenv("CHL_LOG_MODULE_LEVELS", ""))
    for name, lvl in module_levels.items():
        logging.getLogger(name).setLevel(lvl)

    _CONFIGURED = True
