from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Hashable, Iterator

from panda3d.core import LVector3f

if TYPE_CHECKING:
    from followzoom.signal_source import SignalSample

logger = logging.getLogger(__name__)


@dataclass
class PerCameraState:
    # False until the first frame is recorded (and again after a reset).
    ready: bool = False
    previous_value: float = 0.0
    previous_distance: float | None = None
    previous_target_pos: LVector3f | None = None

    def record(self, sample: SignalSample) -> None:
        self.previous_distance = sample.distance
        self.previous_target_pos = LVector3f(sample.target_pos) if sample.target_pos is not None else None

    def snap(self, value: float) -> None:
        self.previous_value = float(value)
        self.ready = True


class CameraStateRegistry:
    """
    Per-camera zoom state, keyed by the host's camera identity.

    Entries are created on first use and live until the host releases the
    camera. One registry belongs to exactly one controller.
    """

    def __init__(self) -> None:
        self._states: dict[Hashable, PerCameraState] = {}

    def state_for(self, camera: Hashable) -> PerCameraState:
        st = self._states.get(camera)
        if st is None:
            st = PerCameraState()
            self._states[camera] = st
            logger.debug("Created zoom state for camera %r", camera)
        return st

    def release(self, camera: Hashable) -> bool:
        if self._states.pop(camera, None) is None:
            return False
        logger.debug("Released zoom state for camera %r", camera)
        return True

    def clear(self) -> None:
        self._states.clear()

    def keys(self) -> Iterator[Hashable]:
        return iter(list(self._states.keys()))

    def __contains__(self, camera: object) -> bool:
        return camera in self._states

    def __len__(self) -> int:
        return len(self._states)
