from __future__ import annotations

import dataclasses
import logging
import math
from typing import Hashable

from followzoom.camera_state import CameraStateRegistry, PerCameraState
from followzoom.config import FovZoomConfig, OrthoZoomConfig
from followzoom.curve import evaluate
from followzoom.damping import damp, is_discontinuity
from followzoom.observation import CameraObservation, LensSettings, PipelineStage
from followzoom.signal_source import camera_target_distance, measure

logger = logging.getLogger(__name__)

DISTANCE_EPSILON = 1e-4


def width_for_fov(distance: float, fov_deg: float) -> float:
    return float(distance) * 2.0 * math.tan(math.radians(float(fov_deg)) * 0.5)


def fov_for_width(distance: float, width: float) -> float:
    return math.degrees(2.0 * math.atan(float(width) / (2.0 * float(distance))))


class _FollowZoomBase:
    """Shared per-camera lifecycle and pipeline-stage routing."""

    def __init__(self) -> None:
        self._states = CameraStateRegistry()

    def max_damp_time(self) -> float:
        return float(self._config.damping)

    def detach_camera(self, camera: Hashable) -> None:
        self._states.release(camera)

    def reset(self) -> None:
        self._states.clear()

    def has_state(self, camera: Hashable) -> bool:
        return camera in self._states

    def post_pipeline_stage(
        self,
        camera: Hashable,
        stage: PipelineStage,
        obs: CameraObservation,
        lens: LensSettings,
    ) -> LensSettings:
        """
        Host callback, invoked after every pipeline stage.

        The zoom runs after the body has been positioned so the aim stage
        composes with the new lens. A discontinuity restarts tracking at the
        body stage only; later stages of the same frame just re-seed, so the
        next frame damps normally.
        """

        st = self._states.state_for(camera)
        reset = is_discontinuity(obs.dt, obs.previous_state_valid)
        if PipelineStage(stage) is not PipelineStage.BODY:
            if reset:
                self._reseed(st, lens)
            return lens
        if reset:
            st.ready = False
        return self._apply(st, obs, lens)

    def update(self, camera: Hashable, obs: CameraObservation, lens: LensSettings) -> LensSettings:
        return self.post_pipeline_stage(camera, PipelineStage.BODY, obs, lens)

    def _reseed(self, st: PerCameraState, lens: LensSettings) -> None:
        pass

    def _apply(self, st: PerCameraState, obs: CameraObservation, lens: LensSettings) -> LensSettings:
        raise NotImplementedError


class FovFollowZoom(_FollowZoomBase):
    """Adjusts field of view to keep a fixed shot width at the target distance."""

    def __init__(self, config: FovZoomConfig | None = None) -> None:
        super().__init__()
        self._config = config if config is not None else FovZoomConfig()

    @property
    def config(self) -> FovZoomConfig:
        return self._config

    def configure(self, config: FovZoomConfig) -> None:
        if not isinstance(config, FovZoomConfig):
            raise TypeError(f"Expected FovZoomConfig, got {type(config).__name__}")
        self._config = config

    def _reseed(self, st: PerCameraState, lens: LensSettings) -> None:
        st.previous_value = float(lens.fov_deg)

    def _apply(self, st: PerCameraState, obs: CameraObservation, lens: LensSettings) -> LensSettings:
        cfg = self._config
        tracking = st.ready
        if not tracking:
            st.snap(lens.fov_deg)

        d = camera_target_distance(obs)
        if d is None or d <= DISTANCE_EPSILON:
            # Angle is undefined this close; hold what we had.
            fov = max(cfg.min_fov_deg, min(cfg.max_fov_deg, st.previous_value))
            st.previous_value = fov
            st.previous_distance = d
            return dataclasses.replace(lens, fov_deg=fov)

        min_w = width_for_fov(d, cfg.min_fov_deg)
        max_w = width_for_fov(d, cfg.max_fov_deg)
        target_w = max(min_w, min(max_w, max(0.0, cfg.width)))

        if tracking and cfg.damping > 0.0 and float(obs.dt) >= 0.0:
            current_w = width_for_fov(d, st.previous_value)
            target_w = current_w + damp(target_w - current_w, cfg.damping, obs.dt)

        fov = max(cfg.min_fov_deg, min(cfg.max_fov_deg, fov_for_width(d, target_w)))
        st.previous_value = fov
        st.previous_distance = d
        return dataclasses.replace(lens, fov_deg=fov)


class OrthoFollowZoom(_FollowZoomBase):
    """Adds a curve-mapped, damped measurement offset to the orthographic size."""

    def __init__(self, config: OrthoZoomConfig | None = None) -> None:
        super().__init__()
        self._config = config if config is not None else OrthoZoomConfig()

    @property
    def config(self) -> OrthoZoomConfig:
        return self._config

    def configure(self, config: OrthoZoomConfig) -> None:
        if not isinstance(config, OrthoZoomConfig):
            raise TypeError(f"Expected OrthoZoomConfig, got {type(config).__name__}")
        self._config = config

    def _apply(self, st: PerCameraState, obs: CameraObservation, lens: LensSettings) -> LensSettings:
        cfg = self._config
        sample = measure(
            cfg.pattern,
            obs,
            st,
            planar=cfg.planar,
            per_second=cfg.velocity_per_second,
        )
        if not st.ready:
            st.snap(sample.value)
        else:
            st.previous_value += damp(sample.value - st.previous_value, cfg.damping, obs.dt)
        st.record(sample)

        offset = evaluate(cfg.curve, st.previous_value)
        size = max(cfg.min_size, min(cfg.max_size, float(lens.ortho_size) + offset))
        return dataclasses.replace(lens, ortho_size=size)
