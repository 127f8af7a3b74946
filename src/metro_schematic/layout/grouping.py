"""Route grouping and color unification."""

from __future__ import annotations

import logging
from collections import Counter

from metro_schematic.layout.constants import DEFAULT_ROUTE_COLOR, PLACEHOLDER_COLOR
from metro_schematic.parser.model import Network, Segment

logger = logging.getLogger(__name__)


def route_key(seg: Segment) -> str:
    """Base route name: ``"Red (Tamsui)"`` and ``"Red"`` share the key ``"Red"``."""
    raw = seg.route_name
    if not raw or raw == "unknown":
        raw = seg.tags.get("name") or seg.tags.get("ref") or raw or "unknown"
    return str(raw).split("(")[0].strip() or "unknown"


def pick_color(colors: list[str]) -> str:
    """Most common real color; the placeholder only wins when alone."""
    real = [c for c in colors if c and c.lower() != PLACEHOLDER_COLOR]
    if real:
        return Counter(real).most_common(1)[0][0]
    return colors[0] if colors else DEFAULT_ROUTE_COLOR


def group_routes(network: Network) -> Network:
    """Give every segment of a route the same base name and color.

    Segments are returned ordered by route name; order within a route is
    kept.
    """
    out = network.copy()
    groups: dict[str, list[Segment]] = {}
    for seg in out.segments:
        groups.setdefault(route_key(seg), []).append(seg)

    segments: list[Segment] = []
    for name in sorted(groups):
        members = groups[name]
        color = pick_color([s.color for s in members if s.color])
        for seg in members:
            seg.route_name = name
            seg.tags.pop("color", None)
            seg.tags["colour"] = color
            segments.append(seg)
    logger.info("Grouped %d segments into %d routes", len(segments), len(groups))
    out.segments = segments
    return out
