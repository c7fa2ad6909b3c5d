from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any

from followzoom.curve import ZoomCurve
from followzoom.signal_source import SignalPattern

logger = logging.getLogger(__name__)

DAMPING_MIN = 0.0
DAMPING_MAX = 20.0
FOV_MIN_DEG = 1.0
FOV_MAX_DEG = 179.0

RGBA = tuple[float, float, float, float]

# Gizmo gradient stops (near -> far). Only consumed by editor tooling.
DEFAULT_GIZMO_COLORS: tuple[RGBA, ...] = (
    (0.2, 0.9, 0.3, 1.0),
    (0.95, 0.8, 0.2, 1.0),
    (0.95, 0.25, 0.2, 1.0),
)


def _clamped(name: str, value: float, lo: float, hi: float) -> float:
    v = float(value)
    out = max(float(lo), min(float(hi), v))
    if out != v:
        logger.debug("Clamped %s from %s to %s", name, v, out)
    return out


@dataclass(frozen=True)
class FovZoomConfig:
    """Settings for the width-preserving field-of-view controller."""

    # Shot width to keep, in world units, at the target distance.
    width: float = 2.0
    # Larger is heavier and slower to respond; 0 disables damping.
    damping: float = 1.0
    min_fov_deg: float = 6.0
    max_fov_deg: float = 8.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "width", _clamped("width", self.width, 0.0, float("inf")))
        object.__setattr__(self, "damping", _clamped("damping", self.damping, DAMPING_MIN, DAMPING_MAX))
        hi = _clamped("max_fov_deg", self.max_fov_deg, FOV_MIN_DEG, FOV_MAX_DEG)
        object.__setattr__(self, "max_fov_deg", hi)
        object.__setattr__(self, "min_fov_deg", _clamped("min_fov_deg", self.min_fov_deg, FOV_MIN_DEG, hi))

    def edited(self, **changes: Any) -> FovZoomConfig:
        return dataclasses.replace(self, **changes)


@dataclass(frozen=True)
class OrthoZoomConfig:
    """Settings for the curve-driven orthographic size controller."""

    pattern: SignalPattern = SignalPattern.CAMERA_TARGET_DISTANCE
    # Maps the damped measurement to an offset added to the incoming ortho size.
    curve: ZoomCurve = ZoomCurve()
    damping: float = 1.0
    min_size: float = 1.0
    max_size: float = 20.0
    # Divide the target-position fallback by dt instead of reporting raw per-frame displacement.
    velocity_per_second: bool = False
    # Measure in the X/Z screen plane only.
    planar: bool = False
    gizmo_enabled: bool = False
    gizmo_colors: tuple[RGBA, ...] = DEFAULT_GIZMO_COLORS

    def __post_init__(self) -> None:
        object.__setattr__(self, "pattern", SignalPattern.parse(self.pattern))
        if not isinstance(self.curve, ZoomCurve):
            object.__setattr__(self, "curve", ZoomCurve.from_pairs(self.curve))
        object.__setattr__(self, "damping", _clamped("damping", self.damping, DAMPING_MIN, DAMPING_MAX))
        hi = _clamped("max_size", self.max_size, 0.0, float("inf"))
        object.__setattr__(self, "max_size", hi)
        object.__setattr__(self, "min_size", _clamped("min_size", self.min_size, 0.0, hi))
        object.__setattr__(self, "gizmo_colors", tuple(_rgba(c) for c in self.gizmo_colors))

    def edited(self, **changes: Any) -> OrthoZoomConfig:
        return dataclasses.replace(self, **changes)


def _rgba(c: Any) -> RGBA:
    vals = [max(0.0, min(1.0, float(v))) for v in tuple(c)[:4]]
    while len(vals) < 4:
        vals.append(1.0)
    return (vals[0], vals[1], vals[2], vals[3])


def _num(raw: dict[str, Any], key: str, default: float) -> float:
    v = raw.get(key)
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        return float(default)
    return float(v)


def _flag(raw: dict[str, Any], key: str, default: bool) -> bool:
    v = raw.get(key)
    return v if isinstance(v, bool) else bool(default)


def fov_config_from_dict(raw: dict[str, Any] | None) -> FovZoomConfig:
    base = FovZoomConfig()
    if not isinstance(raw, dict):
        return base
    return FovZoomConfig(
        width=_num(raw, "width", base.width),
        damping=_num(raw, "damping", base.damping),
        min_fov_deg=_num(raw, "min_fov_deg", base.min_fov_deg),
        max_fov_deg=_num(raw, "max_fov_deg", base.max_fov_deg),
    )


def ortho_config_from_dict(raw: dict[str, Any] | None) -> OrthoZoomConfig:
    """
    Build an orthographic config from a JSON payload.

    Missing or non-numeric fields fall back to defaults. An unknown `pattern`
    is a configuration error and raises `ValueError`.
    """

    base = OrthoZoomConfig()
    if not isinstance(raw, dict):
        return base
    curve_raw = raw.get("curve")
    curve = ZoomCurve.from_pairs(curve_raw) if isinstance(curve_raw, list) else base.curve
    colors_raw = raw.get("gizmo_colors")
    colors = base.gizmo_colors
    if isinstance(colors_raw, list) and all(isinstance(c, (list, tuple)) and c for c in colors_raw):
        colors = tuple(_rgba(c) for c in colors_raw)
    return OrthoZoomConfig(
        pattern=raw.get("pattern", base.pattern),
        curve=curve,
        damping=_num(raw, "damping", base.damping),
        min_size=_num(raw, "min_size", base.min_size),
        max_size=_num(raw, "max_size", base.max_size),
        velocity_per_second=_flag(raw, "velocity_per_second", base.velocity_per_second),
        planar=_flag(raw, "planar", base.planar),
        gizmo_enabled=_flag(raw, "gizmo_enabled", base.gizmo_enabled),
        gizmo_colors=colors,
    )
