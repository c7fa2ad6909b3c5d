from __future__ import annotations

import csv
import json
import logging
import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from panda3d.core import LVector3f

from followzoom.config import fov_config_from_dict, ortho_config_from_dict
from followzoom.controller import FovFollowZoom, OrthoFollowZoom
from followzoom.observation import CameraObservation, LensSettings

logger = logging.getLogger(__name__)

TRACE_MODES = ("fov", "ortho")


@dataclass(frozen=True)
class ZoomTrace:
    mode: str
    controller: FovFollowZoom | OrthoFollowZoom
    lens: LensSettings
    frames: list[dict[str, Any]]


@dataclass(frozen=True)
class TraceExport:
    source_trace: Path
    csv_path: Path
    summary_path: Path
    frame_count: int
    skipped_count: int


def trace_export_dir() -> Path:
    """
    Default directory for trace exports.

    Override via `FOLLOWZOOM_TRACE_OUT_DIR`.
    """

    override = os.environ.get("FOLLOWZOOM_TRACE_OUT_DIR")
    return Path(override) if override else Path.cwd() / "zoom_traces"


def _vec(raw: Any) -> LVector3f | None:
    if not isinstance(raw, (list, tuple)) or len(raw) != 3:
        return None
    if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in raw):
        return None
    return LVector3f(float(raw[0]), float(raw[1]), float(raw[2]))


def _lens_from_dict(raw: Any) -> LensSettings:
    base = LensSettings()
    if not isinstance(raw, dict):
        return base
    fov = raw.get("fov_deg", base.fov_deg)
    size = raw.get("ortho_size", base.ortho_size)
    fov_ok = isinstance(fov, (int, float)) and not isinstance(fov, bool)
    size_ok = isinstance(size, (int, float)) and not isinstance(size, bool)
    return LensSettings(
        fov_deg=float(fov) if fov_ok else base.fov_deg,
        ortho_size=float(size) if size_ok else base.ortho_size,
        orthographic=bool(raw.get("orthographic", base.orthographic)),
    )


def parse_trace(payload: Any) -> ZoomTrace:
    if not isinstance(payload, dict):
        raise ValueError("Trace payload must be a JSON object")
    mode = str(payload.get("mode", "fov")).strip().lower()
    if mode not in TRACE_MODES:
        raise ValueError(f"Unknown trace mode: {mode!r} (expected one of {', '.join(TRACE_MODES)})")
    frames = payload.get("frames")
    if not isinstance(frames, list):
        raise ValueError("Trace payload is missing a 'frames' list")

    controller: FovFollowZoom | OrthoFollowZoom
    if mode == "fov":
        controller = FovFollowZoom(fov_config_from_dict(payload.get("config")))
    else:
        controller = OrthoFollowZoom(ortho_config_from_dict(payload.get("config")))
    return ZoomTrace(mode=mode, controller=controller, lens=_lens_from_dict(payload.get("lens")), frames=frames)


def load_trace(path: Path) -> ZoomTrace:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    return parse_trace(payload)


def _frame_observation(frame: Any) -> CameraObservation | None:
    if not isinstance(frame, dict):
        return None
    cam = _vec(frame.get("camera"))
    dt = frame.get("dt")
    if cam is None or isinstance(dt, bool) or not isinstance(dt, (int, float)):
        return None
    return CameraObservation(
        camera_pos=cam,
        look_at=_vec(frame.get("target")),
        dt=float(dt),
        previous_state_valid=bool(frame.get("valid", True)),
        target_velocity=_vec(frame.get("target_velocity")),
    )


def run_trace(trace: ZoomTrace) -> tuple[list[dict[str, Any]], int]:
    """Replay trace frames through its controller; returns (rows, skipped_count)."""

    rows: list[dict[str, Any]] = []
    skipped = 0
    # Each camera starts from the trace lens; the controller output feeds the next frame.
    lenses: dict[str, LensSettings] = {}
    for i, frame in enumerate(trace.frames):
        obs = _frame_observation(frame)
        if obs is None:
            skipped += 1
            logger.warning("Skipping malformed trace frame %d", i)
            continue
        camera = str(frame.get("camera_id", "main"))
        # Ortho offsets apply to the authored base size, not last frame's output.
        lens_in = trace.lens if trace.mode == "ortho" else lenses.get(camera, trace.lens)
        lens_out = trace.controller.update(camera, obs, lens_in)
        lenses[camera] = lens_out
        value = lens_out.fov_deg if trace.mode == "fov" else lens_out.ortho_size
        rows.append(
            {
                "frame": int(i),
                "camera_id": camera,
                "dt": float(obs.dt),
                "valid": int(bool(obs.previous_state_valid)),
                "has_target": int(obs.look_at is not None),
                "lens_value": float(value),
            }
        )
    return rows, skipped


def _summary(trace: ZoomTrace, rows: list[dict[str, Any]], skipped: int) -> dict[str, Any]:
    values = [float(r["lens_value"]) for r in rows]
    steps = [abs(b - a) for a, b in zip(values, values[1:])]
    return {
        "mode": trace.mode,
        "frame_count": int(len(rows)),
        "skipped_count": int(skipped),
        "camera_ids": sorted({str(r["camera_id"]) for r in rows}),
        "max_damp_time": float(trace.controller.max_damp_time()),
        "lens_min": float(min(values)) if values else 0.0,
        "lens_max": float(max(values)) if values else 0.0,
        "lens_final": float(values[-1]) if values else 0.0,
        "max_step": float(max(steps)) if steps else 0.0,
        "finite": bool(all(math.isfinite(v) for v in values)),
    }


def export_trace(trace_path: Path, *, out_dir: Path | None = None) -> TraceExport:
    src = Path(trace_path)
    trace = load_trace(src)
    rows, skipped = run_trace(trace)
    target_dir = Path(out_dir) if out_dir is not None else trace_export_dir()
    target_dir.mkdir(parents=True, exist_ok=True)

    csv_path = target_dir / f"{src.stem}_zoom.csv"
    fieldnames = ["frame", "camera_id", "dt", "valid", "has_target", "lens_value"]
    with csv_path.open("w", encoding="utf-8", newline="") as fh:
        writer = csv.DictWriter(fh, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerows(rows)

    summary_path = target_dir / f"{src.stem}_zoom_summary.json"
    summary = _summary(trace, rows, skipped)
    summary["source_trace"] = str(src)
    summary_path.write_text(json.dumps(summary, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    logger.info("Exported %d zoom frames to %s", len(rows), csv_path)
    return TraceExport(
        source_trace=src,
        csv_path=csv_path,
        summary_path=summary_path,
        frame_count=int(len(rows)),
        skipped_count=int(skipped),
    )
