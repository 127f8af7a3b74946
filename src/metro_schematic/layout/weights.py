"""Segment structure, demand weights and weight simplification.

Weights are attached to station-to-station index ranges of a segment
(:class:`WeightInterval`). Simplification merges neighbouring intervals
around non-transfer stations so that fewer distinct weights remain, then
the layout is re-normalized. Transfer stations always keep their interval
boundary.
"""

from __future__ import annotations

import logging
import math

import numpy as np

from metro_schematic.layout.config import PipelineConfig
from metro_schematic.layout.constants import (
    EQUAL_MERGE_ROUNDS,
    EXPONENT_CAP,
    KEY_EPSILON,
    STRUCTURE_WALK_LIMIT,
    WEIGHT_PROBABILITIES,
    WEIGHT_VALUES,
)
from metro_schematic.layout.normalize import normalize
from metro_schematic.layout.rng import make_rng
from metro_schematic.layout.topology import build_adjacency, walk_to_terminal
from metro_schematic.parser.model import Network, Point, PointKey, Segment, WeightInterval

logger = logging.getLogger(__name__)

# Grid-line margin when projecting an edge onto the rows and columns it spans
_SPAN_EPSILON = 0.001


# ---------------------------------------------------------------------------
# Structure
# ---------------------------------------------------------------------------


def _terminal(G, keys: list[PointKey], limit: int) -> PointKey:
    """Walk outward from ``keys[0]``, away from the rest of the segment."""
    end = keys[0]
    inner = next((k for k in keys[1:] if k != end), None)
    if inner is None:
        return end
    return walk_to_terminal(G, inner, end, limit)


def classify_structure(
    network: Network,
    eps: float = KEY_EPSILON,
    limit: int = STRUCTURE_WALK_LIMIT,
) -> Network:
    """Tag each segment ``"core"`` or ``"branch"``.

    Both ends are followed through degree-2 points; a segment whose two
    terminals are junctions (degree > 2) is part of the core.
    """
    out = network.copy()
    G = build_adjacency(out, eps)
    core = 0
    for seg in out.segments:
        keys = [PointKey.of(p, eps) for p in seg.points]
        if len(set(keys)) < 2:
            seg.structure = "branch"
            continue
        a = _terminal(G, keys, limit)
        b = _terminal(G, keys[::-1], limit)
        if G.degree(a) > 2 and G.degree(b) > 2:
            seg.structure = "core"
            core += 1
        else:
            seg.structure = "branch"
    logger.info("Classified %d core and %d branch segments", core, len(out.segments) - core)
    return out


# ---------------------------------------------------------------------------
# Weight generation
# ---------------------------------------------------------------------------


def _boundaries(seg: Segment) -> list[int]:
    last = len(seg.points) - 1
    return sorted(set(seg.station_indices()) | {0, last})


def assign_random_weights(
    network: Network,
    rng: np.random.Generator | None = None,
    values: tuple[int, ...] = WEIGHT_VALUES,
    probabilities: tuple[int, ...] = WEIGHT_PROBABILITIES,
) -> Network:
    """Draw one weight per consecutive station pair of every segment.

    Low weights are far more likely than high ones. Segment ends always
    bound an interval, so a segment without stations gets a single one.
    """
    rng = rng if rng is not None else make_rng(None, "weights")
    p = np.asarray(probabilities, dtype=float)
    p /= p.sum()
    out = network.copy()
    for seg in out.segments:
        bounds = _boundaries(seg)
        if len(bounds) < 2:
            seg.station_weights = []
            continue
        drawn = rng.choice(values, size=len(bounds) - 1, p=p)
        seg.station_weights = [
            WeightInterval(s, e, int(w)) for s, e, w in zip(bounds, bounds[1:], drawn)
        ]
    return out


# ---------------------------------------------------------------------------
# Simplification
# ---------------------------------------------------------------------------


def _boundary_is_transfer(seg: Segment, idx: int) -> bool:
    return 0 <= idx < len(seg.nodes) and seg.nodes[idx].is_transfer


def _merge_equal(seg: Segment) -> int:
    weights = seg.station_weights
    if len(weights) < 2:
        return 0
    merged = 0
    current = WeightInterval(weights[0].start_idx, weights[0].end_idx, weights[0].weight)
    kept = []
    for nxt in weights[1:]:
        if nxt.weight == current.weight and not _boundary_is_transfer(seg, current.end_idx):
            current.end_idx = nxt.end_idx
            merged += 1
        else:
            kept.append(current)
            current = WeightInterval(nxt.start_idx, nxt.end_idx, nxt.weight)
    kept.append(current)
    seg.station_weights = kept
    return merged


def prune_equal_weights(network: Network, rounds: int = EQUAL_MERGE_ROUNDS) -> Network:
    """Merge runs of equal weight across non-transfer stations."""
    out = network.copy()
    total = 0
    for _ in range(rounds):
        merged = sum(_merge_equal(seg) for seg in out.segments)
        total += merged
        if not merged:
            break
    logger.info("Merged %d equal-weight intervals", total)
    return out


def _merge_gradient_pass(seg: Segment, tolerance: int) -> int:
    weights = seg.station_weights
    kept: list[WeightInterval] = []
    merged = 0
    i = 0
    while i < len(weights):
        cur = weights[i]
        if i + 1 < len(weights):
            nxt = weights[i + 1]
            if abs(cur.weight - nxt.weight) <= tolerance and not _boundary_is_transfer(
                seg, cur.end_idx
            ):
                kept.append(
                    WeightInterval(cur.start_idx, nxt.end_idx, max(cur.weight, nxt.weight))
                )
                merged += 1
                i += 2
                continue
        kept.append(cur)
        i += 1
    seg.station_weights = kept
    return merged


def prune_gradient(network: Network, tolerance: int) -> Network:
    """Pairwise merge of neighbours within ``tolerance``, keeping the larger weight.

    Passes repeat until nothing merges.
    """
    out = network.copy()
    total = 0
    while True:
        merged = sum(_merge_gradient_pass(seg, tolerance) for seg in out.segments)
        if not merged:
            break
        total += merged
    logger.info("Gradient pass (tolerance %d) merged %d intervals", tolerance, total)
    return out


def _spanned(lo: float, hi: float) -> range:
    return range(math.ceil(lo - _SPAN_EPSILON), math.floor(hi + _SPAN_EPSILON) + 1)


def marginal_max(network: Network) -> tuple[dict[int, int], dict[int, int]]:
    """Largest weight touching each integer row and column.

    Returns ``(row_max, col_max)`` keyed by y and x respectively.
    """
    row_max: dict[int, int] = {}
    col_max: dict[int, int] = {}
    for seg in network.segments:
        for w in seg.station_weights:
            sub = seg.points[w.start_idx : w.end_idx + 1]
            for a, b in zip(sub, sub[1:]):
                for x in _spanned(min(a[0], b[0]), max(a[0], b[0])):
                    col_max[x] = max(col_max.get(x, 0), w.weight)
                for y in _spanned(min(a[1], b[1]), max(a[1], b[1])):
                    row_max[y] = max(row_max.get(y, 0), w.weight)
    return row_max, col_max


def simplify_weights(network: Network, config: PipelineConfig | None = None) -> Network:
    """Equal merge, normalize, gradient merges, normalize again."""
    config = config or PipelineConfig()
    current = prune_equal_weights(network)
    current = normalize(current)
    for tolerance in config.weight_tolerances:
        current = prune_gradient(current, tolerance)
    current = normalize(current)
    row_max, col_max = marginal_max(current)
    logger.info(
        "Weighted grid: %d rows (max %d), %d columns (max %d)",
        len(row_max),
        max(row_max.values(), default=0),
        len(col_max),
        max(col_max.values(), default=0),
    )
    return current


# ---------------------------------------------------------------------------
# Exponential grid
# ---------------------------------------------------------------------------


def _cell_edges(lo: int, hi: int, maxima: dict[int, int], cap: int) -> dict[int, float]:
    """Cumulative start coordinate of every cell from ``lo`` to ``hi + 1``."""
    edges_: dict[int, float] = {}
    pos = 0.0
    for i in range(lo, hi + 1):
        edges_[i] = pos
        pos += 2.0 ** min(maxima.get(i, 0), cap)
    edges_[hi + 1] = pos
    return edges_


def _scaled(value: float, edges_: dict[int, float], lo: int, hi: int) -> float:
    def boundary(i: int) -> float:
        if i < lo:
            return edges_[lo] - (lo - i)
        if i > hi + 1:
            return edges_[hi + 1] + (i - hi - 1)
        return edges_[i]

    i = math.floor(value)
    return boundary(i) + (value - i) * (boundary(i + 1) - boundary(i))


def exponential_grid_scale(network: Network, cap: int = EXPONENT_CAP) -> Network:
    """Widen each row and column to ``2 ** weight`` of its heaviest interval.

    Points between grid lines are interpolated within their cell.
    """
    out = network.copy()
    points = out.all_points()
    if not points:
        return out
    row_max, col_max = marginal_max(out)
    x_lo = math.floor(min(p[0] for p in points))
    x_hi = math.ceil(max(p[0] for p in points))
    y_lo = math.floor(min(p[1] for p in points))
    y_hi = math.ceil(max(p[1] for p in points))
    x_edges = _cell_edges(x_lo, x_hi, col_max, cap)
    y_edges = _cell_edges(y_lo, y_hi, row_max, cap)

    def scale(p: Point) -> Point:
        return (_scaled(p[0], x_edges, x_lo, x_hi), _scaled(p[1], y_edges, y_lo, y_hi))

    for seg in out.segments:
        seg.points = [scale(p) for p in seg.points]
    logger.info(
        "Scaled grid to %.0f x %.0f", x_edges[x_hi + 1], y_edges[y_hi + 1]
    )
    return out
