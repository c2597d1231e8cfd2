from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


def default_profile() -> Dict[str, Any]:
    return {
        "analysis": {
            "chat": {
                "interval_seconds": 15.0,
                "selection": None,  # Substring filter, None counts every message
            },
            "highlights": {
                "mode": "growth",  # "growth" or "top"
                "prelude_seconds": 10.0,
                "skip_empty_windows": True,
                "growth": {
                    "trigger": 2.8,  # Minimum rate of change (messages/s per bucket)
                    "breakoff": 0.3,  # Fraction of the window max that ends a window
                },
                "top": {
                    "count": 10,
                    "decay_tolerance": 0.5,
                },
            },
        },
        "export": {
            "reencode": False,
            "concat": False,
        },
    }


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _deep_merge(out[key], value)
        else:
            out[key] = value
    return out


def load_profile(profile_path: Optional[Path]) -> Dict[str, Any]:
    """Load a YAML profile layered over ``default_profile()``."""
    if profile_path is None:
        return default_profile()

    profile_path = Path(profile_path)
    if not profile_path.exists():
        raise FileNotFoundError(f"Profile not found: {profile_path}")

    data = yaml.safe_load(profile_path.read_text(encoding="utf-8"))
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("Profile YAML must be a mapping")
    return _deep_merge(default_profile(), data)
