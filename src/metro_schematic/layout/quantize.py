"""Grid quantization and path straightening.

Takes raw geographic features onto an integer grid, compresses the grid,
and replaces every chain between topological nodes with an evenly spaced
straight run. The number of points on a chain never changes, so the node
at index ``i`` keeps describing the point at index ``i``.
"""

from __future__ import annotations

__all__ = [
    "coarse_snap",
    "compress_grid",
    "grid_unit",
    "quantize_features",
    "straighten",
]

import logging
import math
from collections import defaultdict
from typing import Any

from metro_schematic.errors import InputShapeError
from metro_schematic.layout.constants import (
    COARSE_GRID,
    DEFAULT_ROUTE_COLOR,
    DEFAULT_ROUTE_NAME,
    GRID_EPSILON,
    KEY_EPSILON,
)
from metro_schematic.layout.geometry import interpolate
from metro_schematic.layout.topology import extract_chains
from metro_schematic.parser.model import Network, Node, Point, PointKey, Segment
from metro_schematic.parser.records import parse_node

logger = logging.getLogger(__name__)


def nearest_pair(points: list[Point]) -> tuple[Point, Point, float]:
    """Brute-force closest pair of points.

    Raises InputShapeError when fewer than two points are given.
    """
    if len(points) < 2:
        raise InputShapeError(f"Need at least 2 stations, got {len(points)}")
    best = (points[0], points[1], math.dist(points[0], points[1]))
    for i in range(len(points)):
        for j in range(i + 1, len(points)):
            d = math.dist(points[i], points[j])
            if d < best[2]:
                best = (points[i], points[j], d)
    return best


def grid_unit(points: list[Point], epsilon: float = GRID_EPSILON) -> float:
    """Grid cell size: the larger axis delta of the nearest station pair."""
    a, b, _ = nearest_pair(points)
    unit = max(abs(a[0] - b[0]), abs(a[1] - b[1]))
    return unit if unit > 0 else epsilon


def _station_node(props: dict[str, Any]) -> Node:
    raw = dict(props)
    sid = raw.pop("id", None)
    if sid is not None:
        raw.setdefault("station_id", sid)
    node = parse_node(raw)
    if not node.is_real_station:
        node = Node.station(None, None, node.tags)
    return node


def quantize_features(collection: dict[str, Any], epsilon: float = GRID_EPSILON) -> Network:
    """Snap a GeoJSON-like feature collection onto an integer grid.

    Point features are stations (``properties.id``); LineString features
    are routes listing their station ids in ``properties.nodes``. Each
    route becomes one two-point segment per consecutive station pair.
    """
    features = collection.get("features") if isinstance(collection, dict) else None
    if not isinstance(features, list):
        raise InputShapeError("Expected a feature collection with a 'features' list")

    stations: dict[Any, tuple[Point, dict[str, Any]]] = {}
    lines: list[dict[str, Any]] = []
    for feature in features:
        geom = feature.get("geometry") or {}
        props = feature.get("properties") or {}
        gtype = geom.get("type")
        if gtype == "Point":
            try:
                lon, lat = (float(c) for c in geom["coordinates"][:2])
            except (KeyError, TypeError, ValueError):
                raise InputShapeError(f"Bad station coordinates: {geom!r}") from None
            stations[props.get("id")] = ((lon, lat), props)
        elif gtype in ("LineString", "MultiLineString"):
            lines.append(props)

    coords = [p for p, _ in stations.values()]
    unit = grid_unit(coords, epsilon)
    min_x = min(p[0] for p in coords)
    min_y = min(p[1] for p in coords)
    logger.info("Grid unit %.6g over %d stations", unit, len(coords))

    snapped: dict[Any, tuple[Point, Node]] = {}
    for sid, (p, props) in stations.items():
        gx = math.floor((p[0] - min_x) / unit)
        gy = math.floor((p[1] - min_y) / unit)
        snapped[sid] = ((float(gx), float(gy)), _station_node(props))

    segments: list[Segment] = []
    for props in lines:
        tags = dict(props.get("tags") or {})
        route_name = tags.pop("route_name", None) or DEFAULT_ROUTE_NAME
        if not (tags.get("colour") or tags.get("color")):
            tags["colour"] = DEFAULT_ROUTE_COLOR
        path: list[tuple[Point, Node]] = []
        for nid in props.get("nodes") or []:
            if nid not in snapped:
                continue
            if path and path[-1][0] == snapped[nid][0]:
                continue
            path.append(snapped[nid])
        for (pa, na), (pb, nb) in zip(path, path[1:]):
            segments.append(Segment([pa, pb], [na.copy(), nb.copy()], route_name, dict(tags)))

    logger.info("Quantized %d routes into %d segments", len(lines), len(segments))
    return Network(segments)


def _rank_map(values: list[float]) -> dict[int, int]:
    return {v: i for i, v in enumerate(sorted({math.floor(v) for v in values}))}


def compress_grid(network: Network) -> Network:
    """Map the distinct grid columns and rows to consecutive integers."""
    out = network.copy()
    points = out.all_points()
    if not points:
        return out
    xs = _rank_map([p[0] for p in points])
    ys = _rank_map([p[1] for p in points])
    for seg in out.segments:
        seg.points = [
            (float(xs[math.floor(x)]), float(ys[math.floor(y)])) for x, y in seg.points
        ]
    logger.debug("Compressed grid to %d x %d", len(xs), len(ys))
    return out


def straighten(network: Network, eps: float = KEY_EPSILON) -> Network:
    """Rebuild the network as straight, evenly spaced topological chains."""
    chains, connect_ids = extract_chains(network, eps)
    segments: list[Segment] = []
    for chain in chains:
        n = len(chain.points)
        nodes = [node.copy() for node in chain.nodes]
        nodes[0] = chain.nodes[0].as_transfer(connect_ids.get(chain.keys[0]))
        nodes[-1] = chain.nodes[-1].as_transfer(connect_ids.get(chain.keys[-1]))
        segments.append(
            Segment(
                points=interpolate(chain.points[0], chain.points[-1], n),
                nodes=nodes,
                route_name=chain.route_name,
                tags=chain.tags,
                original_count=n,
            )
        )
    logger.info("Straightened %d segments into %d chains", len(network.segments), len(segments))
    return Network(segments)


def _cell(p: Point, grid: int) -> tuple[float, float]:
    return (float(round(p[0] / grid) * grid), float(round(p[1] / grid) * grid))


def frozen_points(points: list[Point], grid: int = COARSE_GRID) -> set[PointKey]:
    """Points that would share a coarse cell with a different point."""
    by_cell: dict[tuple[float, float], set[PointKey]] = defaultdict(set)
    for p in points:
        by_cell[_cell(p, grid)].add(PointKey.of(p))
    return {key for keys in by_cell.values() if len(keys) > 1 for key in keys}


def coarse_snap(network: Network, grid: int = COARSE_GRID) -> Network:
    """Snap chain endpoints to a coarse grid and re-space their interiors.

    Endpoints whose cell is contested by another distinct endpoint stay
    frozen in place so two stations never merge.
    """
    out = network.copy()
    anchors = [
        p
        for seg in out.segments
        for i, (p, node) in enumerate(zip(seg.points, seg.nodes))
        if i in (0, len(seg.points) - 1) or node.is_transfer
    ]
    frozen = frozen_points(anchors, grid)

    def snap(p: Point) -> Point:
        return p if PointKey.of(p) in frozen else _cell(p, grid)

    for seg in out.segments:
        if len(seg.points) < 2:
            continue
        seg.points = interpolate(snap(seg.start), snap(seg.end), len(seg.points))
    logger.info("Coarse snap (grid %d): %d anchors frozen", grid, len(frozen))
    return out
