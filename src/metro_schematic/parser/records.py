"""JSON-shaped record ingestion and serialization.

Segment records arrive in a few historical shapes. Node attributes may sit
on the node itself, be nested under its ``tags``, or be attached as a third
element of the point (``[x, y, {...}]``). All of these are unified here into
the tagged :class:`Node` type so later stages never have to look in more
than one place.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from metro_schematic.errors import InputShapeError
from metro_schematic.parser.model import (
    Network,
    Node,
    NodeKind,
    Segment,
    WeightInterval,
)

logger = logging.getLogger(__name__)

_NODE_FIELDS = {
    "node_type",
    "connect_number",
    "connect_id",
    "station_id",
    "station_name",
    "name",
    "tags",
}


def parse_node(raw: Any, extra: dict[str, Any] | None = None) -> Node:
    """Build a Node from any of the accepted record shapes."""
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise InputShapeError(f"Node record must be an object, got {type(raw).__name__}")

    attrs: dict[str, Any] = {}
    nested = raw.get("tags")
    if isinstance(nested, dict):
        attrs.update(nested)
    attrs.update({k: v for k, v in raw.items() if k != "tags"})
    if extra:
        attrs.update(extra)

    connect = attrs.get("connect_number", attrs.get("connect_id"))
    station_id = attrs.get("station_id")
    name = attrs.get("station_name") or attrs.get("name")
    tags = {k: v for k, v in attrs.items() if k not in _NODE_FIELDS}

    if station_id is not None:
        station_id = str(station_id)

    if attrs.get("node_type") == "connect" or connect is not None:
        try:
            connect_id = int(connect) if connect is not None else None
        except (TypeError, ValueError):
            raise InputShapeError(f"Invalid connect number: {connect!r}") from None
        return Node.transfer(connect_id, station_id, name, tags)
    if station_id is not None or name or attrs.get("node_type") == "station":
        return Node.station(station_id, name, tags)
    return Node.geometry(tags)


def dump_node(node: Node) -> dict[str, Any]:
    rec: dict[str, Any] = dict(node.tags)
    if node.kind is NodeKind.TRANSFER:
        rec["node_type"] = "connect"
        if node.connect_id is not None:
            rec["connect_number"] = node.connect_id
    elif node.kind is NodeKind.STATION:
        rec["node_type"] = "station"
    if node.station_id is not None:
        rec["station_id"] = node.station_id
    if node.name is not None:
        rec["station_name"] = node.name
    return rec


def _parse_point(raw: Any) -> tuple[tuple[float, float], dict[str, Any] | None]:
    if not isinstance(raw, (list, tuple)) or len(raw) < 2:
        raise InputShapeError(f"Point must be [x, y], got {raw!r}")
    try:
        point = (float(raw[0]), float(raw[1]))
    except (TypeError, ValueError):
        raise InputShapeError(f"Non-numeric point coordinates: {raw!r}") from None
    extra = raw[2] if len(raw) > 2 and isinstance(raw[2], dict) else None
    return point, extra


def parse_segment(raw: Any, route_name: str | None = None) -> Segment:
    """Parse one segment record."""
    if not isinstance(raw, dict):
        raise InputShapeError(f"Segment record must be an object, got {type(raw).__name__}")
    raw_points = raw.get("points")
    if not isinstance(raw_points, list) or not raw_points:
        raise InputShapeError("Segment record has no 'points' list")

    parsed = [_parse_point(p) for p in raw_points]
    points = [p for p, _ in parsed]

    raw_nodes = raw.get("nodes")
    if raw_nodes is None:
        raw_nodes = [{} for _ in points]
    if not isinstance(raw_nodes, list) or len(raw_nodes) != len(points):
        raise InputShapeError(
            f"Segment has {len(points)} points but "
            f"{len(raw_nodes) if isinstance(raw_nodes, list) else 'no'} nodes"
        )
    nodes = [parse_node(n, extra) for n, (_, extra) in zip(raw_nodes, parsed)]

    way = raw.get("way_properties") or {}
    tags = dict(way.get("tags") or {}) if isinstance(way, dict) else {}
    name = (
        tags.pop("route_name", None)
        or route_name
        or raw.get("route_name")
        or raw.get("name")
        or tags.get("name")
        or tags.get("ref")
        or "unknown"
    )
    structure = raw.get("structure") or tags.pop("structure", None)

    weights = []
    for w in raw.get("station_weights") or []:
        try:
            weights.append(
                WeightInterval(int(w["start_idx"]), int(w["end_idx"]), int(w["weight"]))
            )
        except (KeyError, TypeError, ValueError):
            raise InputShapeError(f"Malformed station_weights entry: {w!r}") from None

    original = raw.get("original_points")
    original_count = raw.get("original_count")
    if isinstance(original, list):
        original_count = len(original)
    seg = Segment(
        points=points,
        nodes=nodes,
        route_name=str(name),
        tags=tags,
        station_weights=weights,
        structure=structure,
        original_count=int(original_count) if original_count is not None else None,
    )
    return seg


def parse_records(data: Any) -> Network:
    """Parse a flat or route-grouped list of segment records.

    Accepts ``[segment, ...]`` or ``[{"route_name": ..., "segments": [...]}, ...]``
    (the two may be mixed).
    """
    if isinstance(data, dict) and "segments" in data and "route_name" not in data:
        data = data["segments"]
    if not isinstance(data, list):
        raise InputShapeError(f"Expected a list of records, got {type(data).__name__}")

    segments: list[Segment] = []
    for item in data:
        if isinstance(item, dict) and "segments" in item and "points" not in item:
            group_name = item.get("route_name")
            for raw in item["segments"]:
                segments.append(parse_segment(raw, group_name))
        else:
            segments.append(parse_segment(item))

    network = Network(segments)
    network.validate()
    logger.debug("Parsed %d segments", len(segments))
    return network


def dump_segment(seg: Segment) -> dict[str, Any]:
    tags = dict(seg.tags)
    tags["route_name"] = seg.route_name
    rec: dict[str, Any] = {
        "points": [[x, y] for x, y in seg.points],
        "nodes": [dump_node(n) for n in seg.nodes],
        "way_properties": {"tags": tags},
    }
    if seg.station_weights:
        rec["station_weights"] = [
            {"start_idx": w.start_idx, "end_idx": w.end_idx, "weight": w.weight}
            for w in seg.station_weights
        ]
    if seg.structure is not None:
        rec["structure"] = seg.structure
    if seg.original_count is not None:
        rec["original_count"] = seg.original_count
    return rec


def dump_records(network: Network, grouped: bool = False) -> list[dict[str, Any]]:
    """Serialize a network back to the record shape ``parse_records`` reads."""
    if not grouped:
        return [dump_segment(seg) for seg in network.segments]
    return [
        {
            "route_name": route.name,
            "segments": [dump_segment(seg) for seg in route.segments],
        }
        for route in network.routes()
    ]


def load_network(
    path: Path,
    features: Callable[[dict[str, Any]], Network] | None = None,
) -> Network:
    """Read a JSON network file.

    Segment records are parsed directly. A raw ``FeatureCollection`` is
    handed to ``features`` (usually the quantizer); without one it is
    rejected.
    """
    try:
        data = json.loads(Path(path).read_text())
    except json.JSONDecodeError as e:
        raise InputShapeError(f"{path}: invalid JSON ({e})") from e
    if isinstance(data, dict) and data.get("type") == "FeatureCollection":
        if features is None:
            raise InputShapeError(f"{path}: raw FeatureCollection needs quantizing")
        return features(data)
    return parse_records(data)


def save_network(network: Network, path: Path, grouped: bool = False) -> None:
    Path(path).write_text(json.dumps(dump_records(network, grouped), indent=2))
