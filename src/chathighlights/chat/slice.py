"""Cut a time range out of a chat replay file."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from ..errors import InvalidInputError
from ..windows import format_timestamp
from .normalize import extract_offset, load_chat_records

logger = logging.getLogger(__name__)


def default_slice_path(chat_path: Path, start_s: float, end_s: float) -> Path:
    chat_path = Path(chat_path)
    start = format_timestamp(start_s).replace(":", "_")
    end = format_timestamp(end_s).replace(":", "_")
    return chat_path.with_name(f"{chat_path.stem}_{start}_{end}.json")


def extract_chat_range(
    chat_path: Path,
    start_s: float,
    end_s: float,
    out_path: Optional[Path] = None,
) -> Path:
    """Copy the raw records with ``start_s <= offset <= end_s`` to a JSON array file.

    Returns:
        The path written.
    """
    if end_s < start_s:
        raise InvalidInputError(f"end ({end_s}s) is before start ({start_s}s)")
    out_path = Path(out_path) if out_path is not None else default_slice_path(chat_path, start_s, end_s)

    records = load_chat_records(chat_path)
    kept = []
    for rec in records:
        offset = extract_offset(rec)
        if offset is not None and start_s <= offset <= end_s:
            kept.append(rec)

    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(kept, ensure_ascii=False), encoding="utf-8")
    logger.info(
        "Extracted %d of %d chat records in %s..%s to %s",
        len(kept),
        len(records),
        format_timestamp(start_s),
        format_timestamp(end_s),
        out_path,
    )
    return out_path
