from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import List, Optional

from .analysis_chat import MODES, HighlightConfig, compute_chat_highlights_from_file
from .chat.normalize import load_chat_log
from .chat.render import render_chat_file
from .chat.slice import extract_chat_range
from .engagement import NO_SELECTION, SelectionCriterion, build_histogram
from .errors import HighlightError
from .exporter import export_highlights
from .heatmap import render_heatmap
from .logging_config import setup_logging
from .profile import load_profile
from .windows import format_timestamp, parse_timestamp


def _default_out_path(chat_path: Path, suffix: str) -> Path:
    return chat_path.with_name(chat_path.stem + suffix)


def cmd_highlights(args: argparse.Namespace) -> None:
    profile = load_profile(args.profile)
    cfg = HighlightConfig.from_profile(
        profile,
        mode=args.mode,
        interval_seconds=args.interval,
        selection=args.select,
        prelude_seconds=args.prelude,
        growth_rate_trigger=args.trigger,
        breakoff_percentage=args.breakoff,
        top_count=args.top,
        decay_tolerance=args.tolerance,
    )
    result = compute_chat_highlights_from_file(args.chat, cfg, video_path=args.video)

    out_path = args.out or _default_out_path(args.chat, ".highlights.json")
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(result.to_dict(), indent=2), encoding="utf-8")

    print(f"Wrote: {out_path}")
    print()
    print(f"{'Clip':>4}  {'Start':>10}  {'End':>10}  {'Length':>8}")
    for w in result.windows:
        print(f"{w.index:>4}  {format_timestamp(w.start_s):>10}  {format_timestamp(w.end_s):>10}  {w.duration_s:>7.1f}s")
    if result.skipped:
        print(f"({result.skipped} empty windows skipped)")

    if args.export is None:
        return
    if args.video is None:
        raise HighlightError("--export requires --video")
    export_cfg = profile.get("export", {})

    def on_prog(n: int, total: int, frac: float, msg: str) -> None:
        print(f"\r[{n}/{total}] {int(frac * 100):3d}% {msg:10s}", end="", flush=True)

    outputs = export_highlights(
        args.video,
        result.windows,
        args.export,
        concat=args.concat or bool(export_cfg.get("concat", False)),
        reencode=args.reencode or bool(export_cfg.get("reencode", False)),
        on_progress=on_prog,
    )
    print()
    for path in outputs:
        print("Done:", path)


def cmd_heatmap(args: argparse.Namespace) -> None:
    profile = load_profile(args.profile)
    chat_cfg = profile.get("analysis", {}).get("chat", {})
    interval = args.interval if args.interval is not None else float(chat_cfg.get("interval_seconds", 15.0))
    selection = args.select if args.select is not None else chat_cfg.get("selection")

    log = load_chat_log(args.chat)
    counts = build_histogram(log.events, interval, SelectionCriterion.parse(selection))
    out_path = args.out or _default_out_path(args.chat, ".png")
    render_heatmap(counts, out_path)
    print(f"Wrote: {out_path} ({len(counts)} buckets, max {int(counts.max())})")


def cmd_render(args: argparse.Namespace) -> None:
    out_path = render_chat_file(args.chat, args.out, overwrite=args.overwrite, show_badges=args.badges)
    print(f"Wrote: {out_path}")


def cmd_extract(args: argparse.Namespace) -> None:
    start_s = parse_timestamp(args.start)
    end_s = parse_timestamp(args.end)
    out_path = extract_chat_range(args.chat, start_s, end_s, args.out)
    print(f"Wrote: {out_path}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chl", description="Chat engagement highlight finder")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-file", type=Path, default=None)
    sub = parser.add_subparsers(dest="cmd", required=True)

    h = sub.add_parser("highlights", help="Find highlight windows from chat engagement.")
    h.add_argument("chat", type=Path)
    h.add_argument("--video", type=Path, default=None, help="Video file (clamps windows to its duration)")
    h.add_argument("--mode", choices=MODES, default=None)
    h.add_argument("--interval", type=float, default=None, help="Bucket width in seconds")
    h.add_argument("--select", type=str, default=None, help=f"Only count messages containing this text ({NO_SELECTION} for all)")
    h.add_argument("--trigger", type=float, default=None, help="Growth rate that opens a window (growth mode)")
    h.add_argument("--breakoff", type=float, default=None, help="Fraction of window max that closes it (growth mode)")
    h.add_argument("--top", type=int, default=None, help="Number of peaks (top mode)")
    h.add_argument("--tolerance", type=float, default=None, help="Decay tolerance (top mode)")
    h.add_argument("--prelude", type=float, default=None, help="Seconds of lead-in before each window")
    h.add_argument("--profile", type=Path, default=None, help="Path to a YAML profile")
    h.add_argument("--out", type=Path, default=None)
    h.add_argument("--export", type=Path, default=None, help="Directory to write clips to (needs --video)")
    h.add_argument("--concat", action="store_true", help="Also join exported clips into one file")
    h.add_argument("--reencode", action="store_true", help="Re-encode clips for frame-exact cuts")
    h.set_defaults(func=cmd_highlights)

    m = sub.add_parser("heatmap", help="Render a chat engagement heatmap PNG.")
    m.add_argument("chat", type=Path)
    m.add_argument("--select", type=str, default=None)
    m.add_argument("--interval", type=float, default=None)
    m.add_argument("--profile", type=Path, default=None)
    m.add_argument("--out", type=Path, default=None)
    m.set_defaults(func=cmd_heatmap)

    r = sub.add_parser("render", help="Write chat as human-readable text.")
    r.add_argument("chat", type=Path)
    r.add_argument("--out", type=Path, default=None)
    r.add_argument("-b", "--badges", action="store_true", help="Show user badges (e.g. moderator/subscriber)")
    r.add_argument("-o", "--overwrite", action="store_true", help="Overwrite an existing output file")
    r.set_defaults(func=cmd_render)

    e = sub.add_parser("extract", help="Copy the chat messages between two hh:mm:ss timestamps (inclusive).")
    e.add_argument("chat", type=Path)
    e.add_argument("start", type=str)
    e.add_argument("end", type=str)
    e.add_argument("--out", type=Path, default=None)
    e.set_defaults(func=cmd_extract)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO, log_file=args.log_file)
    try:
        args.func(args)
    except (ValueError, OSError, RuntimeError) as e:
        print(f"Error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
