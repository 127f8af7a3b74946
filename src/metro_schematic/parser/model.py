"""Data model for schematic transit networks."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from metro_schematic.errors import InputShapeError

Point = tuple[float, float]


class NodeKind(Enum):
    """Semantic identity of a point on a segment."""

    GEOMETRY = "geometry"
    STATION = "station"
    TRANSFER = "transfer"


@dataclass(frozen=True, order=True)
class PointKey:
    """Quantized integer coordinate used as a hash key.

    Two points that agree to within ``eps`` on both axes map to the same
    key, which avoids the fragility of using raw floats (or their string
    forms) in adjacency and dedup maps.
    """

    ix: int
    iy: int

    @classmethod
    def of(cls, point: Point, eps: float = 1e-4) -> PointKey:
        return cls(round(point[0] / eps), round(point[1] / eps))


@dataclass
class Node:
    """Per-point metadata carried in parallel with a segment's points."""

    kind: NodeKind = NodeKind.GEOMETRY
    station_id: str | None = None
    name: str | None = None
    connect_id: int | None = None
    tags: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def geometry(cls, tags: dict[str, Any] | None = None) -> Node:
        return cls(NodeKind.GEOMETRY, tags=dict(tags or {}))

    @classmethod
    def station(
        cls,
        station_id: str | None,
        name: str | None = None,
        tags: dict[str, Any] | None = None,
    ) -> Node:
        return cls(NodeKind.STATION, station_id, name, tags=dict(tags or {}))

    @classmethod
    def transfer(
        cls,
        connect_id: int | None,
        station_id: str | None = None,
        name: str | None = None,
        tags: dict[str, Any] | None = None,
    ) -> Node:
        return cls(NodeKind.TRANSFER, station_id, name, connect_id, dict(tags or {}))

    @property
    def is_real_station(self) -> bool:
        """True for stations and transfers, False for pure waypoints."""
        return self.kind is not NodeKind.GEOMETRY

    @property
    def is_transfer(self) -> bool:
        return self.kind is NodeKind.TRANSFER

    def identity(self) -> tuple:
        """Hashable identity that must survive every coordinate mutation."""
        return (self.kind.value, self.station_id, self.name, self.connect_id)

    def as_transfer(self, connect_id: int | None) -> Node:
        """Promote to a transfer node, keeping any station identity."""
        return Node.transfer(connect_id, self.station_id, self.name, self.tags)

    def copy(self) -> Node:
        return Node(self.kind, self.station_id, self.name, self.connect_id, dict(self.tags))


@dataclass
class WeightInterval:
    """Demand weight attached to a station-to-station index range."""

    start_idx: int
    end_idx: int
    weight: int


@dataclass
class Segment:
    """An ordered polyline with strictly parallel node metadata.

    ``points`` and ``nodes`` always have equal length. Direction is not
    canonical: stages reverse segments freely when stitching chains.
    """

    points: list[Point]
    nodes: list[Node]
    route_name: str = "unknown"
    tags: dict[str, Any] = field(default_factory=dict)
    station_weights: list[WeightInterval] = field(default_factory=list)
    structure: str | None = None
    # Point count of the chain before straightening; re-sampling keeps it
    original_count: int | None = None

    def __post_init__(self) -> None:
        self.points = [(float(x), float(y)) for x, y in self.points]
        if len(self.points) != len(self.nodes):
            raise InputShapeError(
                f"Segment on route '{self.route_name}' has {len(self.points)} "
                f"points but {len(self.nodes)} nodes"
            )

    @property
    def start(self) -> Point:
        return self.points[0]

    @property
    def end(self) -> Point:
        return self.points[-1]

    @property
    def color(self) -> str | None:
        return self.tags.get("colour") or self.tags.get("color")

    def station_indices(self) -> list[int]:
        """Indices of real stations (stations and transfers)."""
        return [i for i, n in enumerate(self.nodes) if n.is_real_station]

    def reversed(self) -> Segment:
        """Return a copy running the other way, remapping weight indices."""
        last = len(self.points) - 1
        weights = [
            WeightInterval(last - w.end_idx, last - w.start_idx, w.weight)
            for w in reversed(self.station_weights)
        ]
        seg = self.copy()
        seg.points.reverse()
        seg.nodes.reverse()
        seg.station_weights = weights
        return seg

    def copy(self) -> Segment:
        return Segment(
            points=list(self.points),
            nodes=[n.copy() for n in self.nodes],
            route_name=self.route_name,
            tags=dict(self.tags),
            station_weights=[
                WeightInterval(w.start_idx, w.end_idx, w.weight)
                for w in self.station_weights
            ],
            structure=self.structure,
            original_count=self.original_count,
        )


@dataclass
class Route:
    """A named collection of segments sharing one color."""

    name: str
    color: str | None
    segments: list[Segment] = field(default_factory=list)


@dataclass
class Network:
    """The value passed between pipeline stages."""

    segments: list[Segment] = field(default_factory=list)

    def copy(self) -> Network:
        """Independent copy: new segments, nodes and lists.

        Points are immutable tuples and are shared rather than cloned.
        """
        return Network([seg.copy() for seg in self.segments])

    def routes(self) -> list[Route]:
        """Group segments by route name, in order of first appearance."""
        by_name: dict[str, Route] = {}
        for seg in self.segments:
            route = by_name.get(seg.route_name)
            if route is None:
                route = by_name[seg.route_name] = Route(seg.route_name, seg.color)
            elif route.color is None:
                route.color = seg.color
            route.segments.append(seg)
        return list(by_name.values())

    def all_points(self) -> list[Point]:
        return [p for seg in self.segments for p in seg.points]

    def real_stations(self, eps: float = 1e-4) -> dict[PointKey, tuple[Point, Node]]:
        """Map of every real station position to its point and node."""
        found: dict[PointKey, tuple[Point, Node]] = {}
        for seg in self.segments:
            for p, node in zip(seg.points, seg.nodes):
                if node.is_real_station:
                    found.setdefault(PointKey.of(p, eps), (p, node))
        return found

    def validate(self) -> None:
        """Raise InputShapeError if any segment breaks the parallel-array rule."""
        for i, seg in enumerate(self.segments):
            if len(seg.points) != len(seg.nodes):
                raise InputShapeError(
                    f"Segment {i} ('{seg.route_name}') has {len(seg.points)} "
                    f"points but {len(seg.nodes)} nodes"
                )
            for w in seg.station_weights:
                if not 0 <= w.start_idx <= w.end_idx < len(seg.points):
                    raise InputShapeError(
                        f"Segment {i} weight interval {w.start_idx}..{w.end_idx} "
                        f"is outside 0..{len(seg.points) - 1}"
                    )
