from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from panda3d.core import LVector3f

from followzoom.camera_state import PerCameraState
from followzoom.observation import CameraObservation


class SignalPattern(str, Enum):
    CAMERA_TARGET_DISTANCE = "camera_target_distance"
    CAMERA_TARGET_VELOCITY = "camera_target_velocity"
    TARGET_VELOCITY = "target_velocity"

    @classmethod
    def parse(cls, value: object) -> SignalPattern:
        if isinstance(value, cls):
            return value
        name = str(value).strip().lower().replace("-", "_")
        for p in cls:
            if name in (p.value, p.name.lower()):
                return p
        raise ValueError(f"Unknown signal pattern: {value!r}")


@dataclass(frozen=True)
class SignalSample:
    value: float
    # None when no target is bound.
    distance: float | None
    target_pos: LVector3f | None


def _flatten(v: LVector3f, planar: bool) -> LVector3f:
    # Panda3D is Y-forward: the screen plane is X/Z.
    if planar:
        return LVector3f(float(v.x), 0.0, float(v.z))
    return LVector3f(v)


def camera_target_distance(obs: CameraObservation, *, planar: bool = False) -> float | None:
    if obs.look_at is None:
        return None
    off = _flatten(obs.look_at, planar) - _flatten(obs.camera_pos, planar)
    return float(off.length())


def measure(
    pattern: SignalPattern,
    obs: CameraObservation,
    state: PerCameraState,
    *,
    planar: bool = False,
    per_second: bool = False,
) -> SignalSample:
    """
    Raw (undamped, unclamped) measurement for one frame.

    Pure with respect to `state`: history is read here and committed by the
    caller through `PerCameraState.record`.
    """

    distance = camera_target_distance(obs, planar=planar)
    target_pos = _flatten(obs.look_at, planar) if obs.look_at is not None else None
    if distance is None:
        return SignalSample(value=0.0, distance=None, target_pos=None)

    if pattern is SignalPattern.CAMERA_TARGET_DISTANCE:
        value = distance
    elif pattern is SignalPattern.CAMERA_TARGET_VELOCITY:
        prev = state.previous_distance
        value = abs(distance - float(prev)) if prev is not None else 0.0
    elif pattern is SignalPattern.TARGET_VELOCITY:
        if obs.target_velocity is not None:
            value = float(_flatten(obs.target_velocity, planar).length())
        elif state.previous_target_pos is not None:
            value = float((target_pos - state.previous_target_pos).length())
            dt = float(obs.dt)
            if per_second and dt > 0.0:
                value /= dt
        else:
            value = 0.0
    else:
        raise ValueError(f"Unknown signal pattern: {pattern!r}")
    return SignalSample(value=float(value), distance=distance, target_pos=target_pos)
