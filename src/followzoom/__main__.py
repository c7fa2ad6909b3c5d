from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from followzoom.trace import export_trace


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="followzoom", description="Replay a recorded camera trace through the follow-zoom controller")
    parser.add_argument(
        "trace",
        help="Path to a trace JSON file: {mode, config, lens, frames: [{camera, target, dt, ...}]}.",
    )
    parser.add_argument(
        "--out",
        default=None,
        help="Output directory for the CSV + JSON summary (default: $FOLLOWZOOM_TRACE_OUT_DIR or ./zoom_traces).",
    )
    parser.add_argument(
        "--print",
        dest="print_summary",
        action="store_true",
        help="Print the JSON summary to stdout after exporting.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging (config clamps, camera state lifecycle).",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    try:
        result = export_trace(Path(args.trace), out_dir=Path(args.out) if args.out else None)
    except (OSError, ValueError) as e:
        parser.error(f"{type(e).__name__}: {e}")

    print(f"[followzoom] frames={result.frame_count} skipped={result.skipped_count}")
    print(f"[followzoom] csv: {result.csv_path}")
    print(f"[followzoom] summary: {result.summary_path}")
    if args.print_summary:
        print(json.dumps(json.loads(result.summary_path.read_text(encoding="utf-8")), indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
