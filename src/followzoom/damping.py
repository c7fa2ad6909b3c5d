from __future__ import annotations

import math

DAMP_EPSILON = 1e-4


def damp(delta: float, time_constant: float, elapsed: float) -> float:
    """
    Exponential approach: the fraction of `delta` covered after `elapsed` seconds.

    - `time_constant <= 0` disables damping and returns `delta` unchanged.
    - `elapsed <= 0` with damping on covers nothing.
    - The result never overshoots: `|result| <= |delta|`.
    """

    d = float(delta)
    tc = float(time_constant)
    if tc <= 0.0:
        return d
    t = float(elapsed)
    if t <= 0.0:
        return 0.0
    alpha = 1.0 - math.exp(-t / max(tc, DAMP_EPSILON))
    alpha = max(0.0, min(1.0, alpha))
    return d * alpha


def is_discontinuity(dt: float, previous_state_valid: bool) -> bool:
    # Negative dt is the host's pause/seek signal.
    return float(dt) < 0.0 or not bool(previous_state_valid)
