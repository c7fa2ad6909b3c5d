from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from panda3d.core import LVector3f


class PipelineStage(str, Enum):
    BODY = "body"
    AIM = "aim"
    NOISE = "noise"
    FINALIZE = "finalize"


@dataclass(frozen=True)
class CameraObservation:
    """One frame of host camera state, read-only for the zoom controllers."""

    camera_pos: LVector3f
    # None means no look-at target is bound.
    look_at: LVector3f | None
    # Seconds since the previous frame; negative signals a pause/seek discontinuity.
    dt: float
    previous_state_valid: bool = True
    # Rigid-body velocity of the target when it has one.
    target_velocity: LVector3f | None = None


@dataclass(frozen=True)
class LensSettings:
    fov_deg: float = 60.0
    ortho_size: float = 5.0
    orthographic: bool = False
