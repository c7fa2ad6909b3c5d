from __future__ import annotations

import bisect
from dataclasses import dataclass, field
from typing import Iterable


@dataclass(frozen=True)
class ZoomCurve:
    """Piecewise-linear curve authored as (breakpoint, value) pairs.

    Pairs are sorted by breakpoint on construction. The sort is stable, so
    duplicate breakpoints keep their authoring order and form a step.
    """

    points: tuple[tuple[float, float], ...] = ()
    _keys: tuple[float, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        pts = tuple(sorted(((float(x), float(y)) for x, y in self.points), key=lambda p: p[0]))
        object.__setattr__(self, "points", pts)
        object.__setattr__(self, "_keys", tuple(p[0] for p in pts))

    @classmethod
    def from_pairs(cls, pairs: Iterable[object]) -> ZoomCurve:
        """Build from JSON-style `[[x, y], ...]` or `[{"x": .., "y": ..}, ...]`; bad rows are dropped."""

        out: list[tuple[float, float]] = []
        for row in pairs:
            if isinstance(row, dict):
                x, y = row.get("x"), row.get("y")
            elif isinstance(row, (list, tuple)) and len(row) == 2:
                x, y = row
            else:
                continue
            if isinstance(x, bool) or isinstance(y, bool):
                continue
            if not isinstance(x, (int, float)) or not isinstance(y, (int, float)):
                continue
            out.append((float(x), float(y)))
        return cls(points=tuple(out))

    def domain(self) -> tuple[float, float] | None:
        if not self.points:
            return None
        return (self._keys[0], self._keys[-1])

    def __len__(self) -> int:
        return len(self.points)


def evaluate(curve: ZoomCurve, x: float, default: float = 0.0) -> float:
    pts = curve.points
    if not pts:
        return float(default)
    xv = float(x)
    keys = curve._keys
    if xv <= keys[0]:
        return pts[0][1]
    if xv > keys[-1]:
        return pts[-1][1]

    # Exact hits on a duplicated breakpoint resolve to the first pair.
    i = bisect.bisect_left(keys, xv)
    if keys[i] == xv:
        return pts[i][1]
    x0, y0 = pts[i - 1]
    x1, y1 = pts[i]
    span = x1 - x0
    if span <= 0.0:
        return y1
    t = (xv - x0) / span
    return y0 + (y1 - y0) * t
