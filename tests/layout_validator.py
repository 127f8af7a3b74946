"""Layout validator: programmatic checks for schematic defects.

Runs a suite of checks against a pipeline output Network and returns
a list of Violation objects describing any problems found.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from metro_schematic.layout.constants import ORTHO_TOLERANCE
from metro_schematic.layout.geometry import is_axis_aligned
from metro_schematic.layout.synthesis import find_illegal_intersections
from metro_schematic.parser.model import Network, PointKey


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass
class Violation:
    check: str
    severity: Severity
    message: str
    context: dict = field(default_factory=dict)


def validate_network(network: Network) -> list[Violation]:
    """Run all checks and return violations."""
    violations: list[Violation] = []
    violations.extend(check_parallel_arrays(network))
    violations.extend(check_axis_aligned(network))
    violations.extend(check_station_clashes(network))
    violations.extend(check_illegal_crossings(network))
    return violations


def check_parallel_arrays(network: Network) -> list[Violation]:
    """Every segment has one node per point and weights inside its range."""
    violations: list[Violation] = []
    for i, seg in enumerate(network.segments):
        if len(seg.points) != len(seg.nodes):
            violations.append(
                Violation(
                    check="parallel_arrays",
                    severity=Severity.ERROR,
                    message=(
                        f"Segment {i} has {len(seg.points)} points "
                        f"but {len(seg.nodes)} nodes"
                    ),
                    context={"segment": i},
                )
            )
        for w in seg.station_weights:
            if not 0 <= w.start_idx <= w.end_idx < len(seg.points):
                violations.append(
                    Violation(
                        check="parallel_arrays",
                        severity=Severity.ERROR,
                        message=f"Segment {i} weight {w} out of range",
                        context={"segment": i},
                    )
                )
    return violations


def check_axis_aligned(
    network: Network, tolerance: float = ORTHO_TOLERANCE
) -> list[Violation]:
    """Every edge is horizontal or vertical."""
    violations: list[Violation] = []
    for i, seg in enumerate(network.segments):
        for a, b in zip(seg.points, seg.points[1:]):
            if not is_axis_aligned(a, b, tolerance):
                violations.append(
                    Violation(
                        check="axis_aligned",
                        severity=Severity.ERROR,
                        message=f"Segment {i} ('{seg.route_name}') edge {a} -> {b} is diagonal",
                        context={"segment": i, "edge": (a, b)},
                    )
                )
    return violations


def check_station_clashes(network: Network) -> list[Violation]:
    """No position holds two different stations."""
    seen: dict[PointKey, set[tuple]] = {}
    for seg in network.segments:
        for p, node in zip(seg.points, seg.nodes):
            if node.is_real_station:
                seen.setdefault(PointKey.of(p), set()).add(node.identity())
    return [
        Violation(
            check="station_clash",
            severity=Severity.WARNING,
            message=f"{len(ids)} stations share one position",
            context={"key": key, "ids": sorted(ids, key=repr)},
        )
        for key, ids in seen.items()
        if len(ids) > 1
    ]


def check_illegal_crossings(network: Network) -> list[Violation]:
    """Edges crossing in their interiors (not guaranteed to reach zero)."""
    points = find_illegal_intersections([seg.points for seg in network.segments])
    return [
        Violation(
            check="illegal_crossing",
            severity=Severity.WARNING,
            message=f"Edges cross at ({p[0]:.2f}, {p[1]:.2f})",
            context={"point": p},
        )
        for p in points
    ]
