"""Orthogonal path candidates for a single link.

Every candidate runs from the link's start to its end using only
horizontal and vertical legs:

- straight: the link itself, only when already axis-aligned
- L: one corner, bending horizontally or vertically first
- Z: two corners, with the middle leg placed at a sampled fraction of
  the span (horizontal-first puts a vertical middle leg at ``x1 + r*dx``;
  vertical-first puts a horizontal middle leg at ``y1 + r*dy``)
"""

from __future__ import annotations

import numpy as np

from metro_schematic.layout.constants import (
    AXIS_TOLERANCE,
    FLIP_SAMPLES,
    Z_RATIO_MAX,
    Z_RATIO_MIN,
    Z_SAMPLES,
)
from metro_schematic.layout.geometry import is_axis_aligned
from metro_schematic.layout.rng import shuffled
from metro_schematic.parser.model import Point

Path = list[Point]


def _clean(path: Path) -> Path:
    return [p for i, p in enumerate(path) if i == 0 or p != path[i - 1]]


def l_paths(a: Point, b: Point) -> list[Path]:
    """Both single-corner paths from a to b."""
    return [
        _clean([a, (b[0], a[1]), b]),
        _clean([a, (a[0], b[1]), b]),
    ]


def z_path(a: Point, b: Point, ratio: float, horizontal_first: bool) -> Path:
    if horizontal_first:
        mx = a[0] + (b[0] - a[0]) * ratio
        return _clean([a, (mx, a[1]), (mx, b[1]), b])
    my = a[1] + (b[1] - a[1]) * ratio
    return _clean([a, (a[0], my), (b[0], my), b])


def z_pairs(
    a: Point,
    b: Point,
    rng: np.random.Generator,
    samples: int,
    ratio_range: tuple[float, float],
) -> list[Path]:
    """``samples`` Z paths of each bend order, alternating."""
    lo, hi = ratio_range
    out: list[Path] = []
    for r_h, r_v in zip(rng.uniform(lo, hi, samples), rng.uniform(lo, hi, samples)):
        out.append(z_path(a, b, float(r_h), True))
        out.append(z_path(a, b, float(r_v), False))
    return out


def generate_candidates(
    a: Point,
    b: Point,
    rng: np.random.Generator,
    samples: int = Z_SAMPLES,
    ratio_range: tuple[float, float] = (Z_RATIO_MIN, Z_RATIO_MAX),
) -> list[Path]:
    """Shuffled candidate pool for the link a -> b.

    An axis-aligned link has exactly one candidate: itself.
    """
    if is_axis_aligned(a, b, AXIS_TOLERANCE):
        return [[a, b]]
    pool = l_paths(a, b) + z_pairs(a, b, rng, samples, ratio_range)
    return shuffled(rng, pool)


def generate_full_candidates(
    a: Point,
    b: Point,
    rng: np.random.Generator,
    samples: int = FLIP_SAMPLES,
    ratio_range: tuple[float, float] = (Z_RATIO_MIN, Z_RATIO_MAX),
) -> list[Path]:
    """Unshuffled resampling pool used by the flip optimizer."""
    if is_axis_aligned(a, b, AXIS_TOLERANCE):
        return [[a, b]]
    return l_paths(a, b) + z_pairs(a, b, rng, samples, ratio_range)
