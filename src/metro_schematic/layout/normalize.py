"""Coordinate normalization: sparse per-axis values to consecutive integers."""

from __future__ import annotations

__all__ = ["AxisIndex", "axis_indices", "normalize"]

import bisect
import logging
from collections.abc import Iterable
from dataclasses import dataclass

from metro_schematic.layout.constants import ROUND_DIGITS
from metro_schematic.layout.geometry import cumulative_lengths, point_at_distance
from metro_schematic.parser.model import Network, Point

logger = logging.getLogger(__name__)


@dataclass
class AxisIndex:
    """Sorted distinct values of one axis and their rank lookup."""

    values: list[float]
    digits: int = ROUND_DIGITS

    @classmethod
    def build(cls, values: Iterable[float], digits: int = ROUND_DIGITS) -> AxisIndex:
        return cls(sorted({round(v, digits) for v in values}), digits)

    def __len__(self) -> int:
        return len(self.values)

    def index(self, value: float) -> int:
        """Rank of ``value``; off-grid values take the nearest known rank."""
        v = round(value, self.digits)
        i = bisect.bisect_left(self.values, v)
        if i < len(self.values) and self.values[i] == v:
            return i
        if i == 0:
            return 0
        if i == len(self.values):
            return len(self.values) - 1
        return i if self.values[i] - v < v - self.values[i - 1] else i - 1


def _even_samples(points: list[Point], count: int) -> list[Point]:
    if count <= 1 or len(points) < 2:
        return points[:1]
    cum = cumulative_lengths(points)
    step = cum[-1] / (count - 1)
    return [point_at_distance(points, cum, step * k) for k in range(count)]


def axis_indices(network: Network, sample: bool = False) -> tuple[AxisIndex, AxisIndex]:
    """Build the x and y rank tables for a network.

    With ``sample=True`` each segment also contributes evenly spaced
    samples (one per original point), which keeps long empty legs from
    collapsing to a single step. Sampling can introduce new fractional
    values, so only the default mode is idempotent.
    """
    xs: list[float] = []
    ys: list[float] = []
    for seg in network.segments:
        pts = list(seg.points)
        if sample:
            pts += _even_samples(seg.points, seg.original_count or len(seg.points))
        xs.extend(p[0] for p in pts)
        ys.extend(p[1] for p in pts)
    return AxisIndex.build(xs), AxisIndex.build(ys)


def normalize(network: Network, sample: bool = False) -> Network:
    """Map every coordinate to its per-axis rank."""
    out = network.copy()
    if not out.segments:
        return out
    x_index, y_index = axis_indices(out, sample)
    for seg in out.segments:
        seg.points = [(float(x_index.index(x)), float(y_index.index(y))) for x, y in seg.points]
    logger.info("Normalized coordinates to a %d x %d grid", len(x_index), len(y_index))
    return out
