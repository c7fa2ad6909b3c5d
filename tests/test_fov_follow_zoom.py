from __future__ import annotations

import math

from panda3d.core import LVector3f

from followzoom.config import FovZoomConfig
from followzoom.controller import FovFollowZoom, fov_for_width, width_for_fov
from followzoom.observation import CameraObservation, LensSettings, PipelineStage


def _obs(distance: float, *, dt: float = 0.016, valid: bool = True) -> CameraObservation:
    return CameraObservation(
        camera_pos=LVector3f(0.0, 0.0, 0.0),
        look_at=LVector3f(0.0, float(distance), 0.0),
        dt=dt,
        previous_state_valid=valid,
    )


def test_width_and_fov_conversions_are_inverse() -> None:
    w = width_for_fov(10.0, 40.0)
    assert math.isclose(fov_for_width(10.0, w), 40.0, rel_tol=1e-9)


def test_target_width_is_clamped_to_reachable_fov_range() -> None:
    zoom = FovFollowZoom(FovZoomConfig(width=2.0, damping=0.0, min_fov_deg=6.0, max_fov_deg=8.0))
    lens = zoom.update("cam", _obs(10.0), LensSettings(fov_deg=60.0))
    assert 6.0 <= lens.fov_deg <= 8.0
    assert math.isclose(lens.fov_deg, 8.0, abs_tol=1e-4)


def test_undamped_zoom_reproduces_width() -> None:
    zoom = FovFollowZoom(FovZoomConfig(width=4.0, damping=0.0, min_fov_deg=1.0, max_fov_deg=179.0))
    lens = zoom.update("cam", _obs(10.0), LensSettings(fov_deg=60.0))
    assert math.isclose(lens.fov_deg, fov_for_width(10.0, 4.0), abs_tol=1e-4)


def test_first_frame_snaps_then_damping_smooths() -> None:
    cfg = FovZoomConfig(width=4.0, damping=1.0, min_fov_deg=1.0, max_fov_deg=179.0)
    zoom = FovFollowZoom(cfg)
    first = zoom.update("cam", _obs(10.0), LensSettings(fov_deg=60.0))
    assert math.isclose(first.fov_deg, fov_for_width(10.0, 4.0), abs_tol=1e-4)

    zoom.configure(cfg.edited(width=8.0))
    second = zoom.update("cam", _obs(10.0), first)
    assert first.fov_deg < second.fov_deg < fov_for_width(10.0, 8.0)


def test_negative_dt_resets_without_damping() -> None:
    cfg = FovZoomConfig(width=4.0, damping=5.0, min_fov_deg=1.0, max_fov_deg=179.0)
    zoom = FovFollowZoom(cfg)
    lens = zoom.update("cam", _obs(10.0), LensSettings(fov_deg=60.0))
    zoom.configure(cfg.edited(width=8.0))
    out = zoom.update("cam", _obs(10.0, dt=-1.0), lens)
    assert math.isclose(out.fov_deg, fov_for_width(10.0, 8.0), abs_tol=1e-4)


def test_invalid_previous_state_resets_without_damping() -> None:
    cfg = FovZoomConfig(width=4.0, damping=5.0, min_fov_deg=1.0, max_fov_deg=179.0)
    zoom = FovFollowZoom(cfg)
    lens = zoom.update("cam", _obs(10.0), LensSettings(fov_deg=60.0))
    out = zoom.update("cam", _obs(20.0, valid=False), lens)
    assert math.isclose(out.fov_deg, fov_for_width(20.0, 4.0), abs_tol=1e-4)


def test_zero_elapsed_time_is_idempotent() -> None:
    zoom = FovFollowZoom(FovZoomConfig(width=3.0, damping=2.0, min_fov_deg=1.0, max_fov_deg=179.0))
    lens = zoom.update("cam", _obs(10.0), LensSettings(fov_deg=60.0))
    a = zoom.update("cam", _obs(10.0, dt=0.0), lens)
    b = zoom.update("cam", _obs(10.0, dt=0.0), a)
    # Width <-> angle round trip, so compare with a tolerance.
    assert math.isclose(a.fov_deg, lens.fov_deg, abs_tol=1e-9)
    assert math.isclose(b.fov_deg, a.fov_deg, abs_tol=1e-9)


def test_degenerate_distance_holds_previous_output() -> None:
    zoom = FovFollowZoom(FovZoomConfig(width=3.0, damping=0.0, min_fov_deg=1.0, max_fov_deg=179.0))
    lens = zoom.update("cam", _obs(10.0), LensSettings(fov_deg=60.0))
    held = zoom.update("cam", _obs(0.0), lens)
    assert held.fov_deg == lens.fov_deg


def test_unbound_target_holds_previous_output() -> None:
    zoom = FovFollowZoom(FovZoomConfig(damping=0.0, min_fov_deg=10.0, max_fov_deg=90.0))
    obs = CameraObservation(camera_pos=LVector3f(0, 0, 0), look_at=None, dt=0.016)
    out = zoom.update("cam", obs, LensSettings(fov_deg=45.0))
    assert out.fov_deg == 45.0


def test_non_body_stages_leave_lens_untouched() -> None:
    zoom = FovFollowZoom(FovZoomConfig(width=2.0, damping=0.0))
    lens = LensSettings(fov_deg=60.0)
    for stage in (PipelineStage.AIM, PipelineStage.NOISE, PipelineStage.FINALIZE):
        assert zoom.post_pipeline_stage("cam", stage, _obs(10.0), lens) is lens
    out = zoom.post_pipeline_stage("cam", "body", _obs(10.0), lens)
    assert out.fov_deg != lens.fov_deg


def test_other_lens_fields_are_preserved() -> None:
    zoom = FovFollowZoom(FovZoomConfig(damping=0.0))
    out = zoom.update("cam", _obs(10.0), LensSettings(fov_deg=60.0, ortho_size=3.0, orthographic=False))
    assert out.ortho_size == 3.0
    assert out.orthographic is False


def test_max_damp_time_reports_damping() -> None:
    assert FovFollowZoom(FovZoomConfig(damping=3.5)).max_damp_time() == 3.5


def test_reset_drops_every_camera_state() -> None:
    zoom = FovFollowZoom()
    zoom.update("a", _obs(10.0), LensSettings())
    zoom.update("b", _obs(10.0), LensSettings())
    zoom.reset()
    assert not zoom.has_state("a")
    assert not zoom.has_state("b")


def _frame(zoom: FovFollowZoom, obs: CameraObservation, lens: LensSettings) -> LensSettings:
    # Host order: each later stage sees the lens the body stage produced.
    for stage in PipelineStage:
        lens = zoom.post_pipeline_stage("cam", stage, obs, lens)
    return lens


def test_reset_frame_through_all_stages_resumes_damping_next_frame() -> None:
    cfg = FovZoomConfig(width=4.0, damping=5.0, min_fov_deg=1.0, max_fov_deg=179.0)
    zoom = FovFollowZoom(cfg)
    lens = _frame(zoom, _obs(10.0), LensSettings(fov_deg=60.0))
    lens = _frame(zoom, _obs(10.0, valid=False), lens)
    assert math.isclose(lens.fov_deg, fov_for_width(10.0, 4.0), abs_tol=1e-4)

    zoom.configure(cfg.edited(width=8.0))
    out = _frame(zoom, _obs(10.0), lens)
    expected_w = 4.0 + 4.0 * (1.0 - math.exp(-0.016 / 5.0))
    assert math.isclose(out.fov_deg, fov_for_width(10.0, expected_w), abs_tol=1e-4)
    assert out.fov_deg < fov_for_width(10.0, 8.0) - 1.0


def test_discontinuity_after_body_reseeds_from_lens() -> None:
    zoom = FovFollowZoom(FovZoomConfig(width=4.0, damping=5.0, min_fov_deg=1.0, max_fov_deg=179.0))
    zoom.update("cam", _obs(10.0), LensSettings(fov_deg=60.0))
    zoom.post_pipeline_stage("cam", PipelineStage.AIM, _obs(10.0, dt=-1.0), LensSettings(fov_deg=30.0))
    out = zoom.update("cam", _obs(10.0), LensSettings(fov_deg=30.0))
    current_w = width_for_fov(10.0, 30.0)
    expected_w = current_w + (4.0 - current_w) * (1.0 - math.exp(-0.016 / 5.0))
    assert math.isclose(out.fov_deg, fov_for_width(10.0, expected_w), abs_tol=1e-4)
