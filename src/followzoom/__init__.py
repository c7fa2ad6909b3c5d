from __future__ import annotations

from followzoom.config import FovZoomConfig, OrthoZoomConfig
from followzoom.controller import FovFollowZoom, OrthoFollowZoom
from followzoom.curve import ZoomCurve, evaluate
from followzoom.damping import damp
from followzoom.observation import CameraObservation, LensSettings, PipelineStage
from followzoom.signal_source import SignalPattern, measure

__all__ = [
    "__version__",
    "CameraObservation",
    "FovFollowZoom",
    "FovZoomConfig",
    "LensSettings",
    "OrthoFollowZoom",
    "OrthoZoomConfig",
    "PipelineStage",
    "SignalPattern",
    "ZoomCurve",
    "damp",
    "evaluate",
    "measure",
]

__version__ = "0.1.0"
