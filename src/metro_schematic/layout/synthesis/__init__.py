"""Orthogonal path synthesis subpackage.

Public API:
- synthesize: Randomized multi-attempt link placement
- optimize_flips: Tabu-guarded second pass over placed links
- decompose_links / Link: Network split into key-node-to-key-node links
- enclosure_anchors: Positions a candidate path must not enclose
- count_crossings / find_illegal_intersections: Crossing metrics
"""

from metro_schematic.layout.synthesis.flip import optimize_flips
from metro_schematic.layout.synthesis.links import Link, decompose_links, enclosure_anchors
from metro_schematic.layout.synthesis.scoring import (
    count_crossings,
    find_illegal_intersections,
)
from metro_schematic.layout.synthesis.search import synthesize

__all__ = [
    "Link",
    "count_crossings",
    "decompose_links",
    "enclosure_anchors",
    "find_illegal_intersections",
    "optimize_flips",
    "synthesize",
]
