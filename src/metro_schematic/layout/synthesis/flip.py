"""Tabu-guarded flip optimizer run after the initial synthesis.

Revisits every link with a larger candidate pool and swaps its path when
the replacement is clearly better under a lexicographic-style weighted
score (crossings, then overlap, then turns, then length). A link that was
just flipped is frozen for a few epochs so neighbours can settle.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from metro_schematic.layout.config import PipelineConfig
from metro_schematic.layout.constants import (
    COLLISION_PENALTY,
    OVERLAP_PENALTY,
    TURN_PENALTY,
)
from metro_schematic.layout.geometry import (
    corners,
    edges,
    overlap_length,
    polyline_length,
    segments_cross,
)
from metro_schematic.layout.injection import spread_stations
from metro_schematic.layout.rng import make_rng, shuffled
from metro_schematic.layout.synthesis.candidates import generate_full_candidates
from metro_schematic.layout.synthesis.constraints import Edge, has_enclosure_violation
from metro_schematic.layout.synthesis.links import decompose_links, enclosure_anchors
from metro_schematic.parser.model import Network, Point, Segment

logger = logging.getLogger(__name__)


@dataclass
class PathScore:
    collisions: int
    overlap: float
    turns: int
    length: float

    @property
    def total(self) -> float:
        return (
            self.collisions * COLLISION_PENALTY
            + self.overlap * OVERLAP_PENALTY
            + self.turns * TURN_PENALTY
            + self.length
        )


def score_path(path: list[Point], others: list[Edge]) -> PathScore:
    collisions = 0
    overlap = 0.0
    for a1, a2 in edges(path):
        for b1, b2 in others:
            if segments_cross(a1, a2, b1, b2, tol=1e-9):
                collisions += 1
            overlap += overlap_length(a1, a2, b1, b2)
    return PathScore(collisions, overlap, max(len(path) - 2, 0), polyline_length(path))


def optimize_flips(
    network: Network,
    config: PipelineConfig | None = None,
    rng: np.random.Generator | None = None,
) -> Network:
    """Improve link paths until an epoch passes with no flip."""
    config = config or PipelineConfig()
    rng = rng if rng is not None else make_rng(config.seed, "flip")
    links = decompose_links(network, config.key_eps)
    if not links:
        return network.copy()

    paths = {link.index: corners(link.points) for link in links}
    anchors = enclosure_anchors(network, links, config.key_eps)
    tabu_until: dict[int, int] = {}
    flipped: set[int] = set()

    epochs = 0
    for epoch in range(config.flip_epochs):
        epochs = epoch + 1
        flips = 0
        for link in shuffled(rng, links):
            if tabu_until.get(link.index, -1) >= epoch:
                continue
            others = [e for idx, p in paths.items() if idx != link.index for e in edges(p)]
            current = score_path(paths[link.index], others)
            if len(paths[link.index]) == 2 and current.collisions == 0 and current.overlap == 0:
                continue

            exclude = link.exclusion_keys(config.key_eps)
            best_total = current.total
            chosen = None
            for cand in generate_full_candidates(
                link.start, link.end, rng, config.flip_samples, config.z_ratio_range
            ):
                if has_enclosure_violation(cand, anchors, exclude, config.key_eps):
                    continue
                s = score_path(cand, others)
                if s.collisions > current.collisions:
                    continue
                if s.total < best_total - config.flip_threshold:
                    best_total, chosen = s.total, cand
            if chosen is not None:
                paths[link.index] = chosen
                tabu_until[link.index] = epoch + config.tabu_epochs
                flipped.add(link.index)
                flips += 1
        logger.debug("Flip epoch %d: %d flips", epochs, flips)
        if flips == 0:
            break

    segments = []
    for link in links:
        if link.index in flipped:
            points, nodes = spread_stations(
                paths[link.index],
                [st.node for st in link.stations],
                link.start_node,
                link.end_node,
            )
        else:
            points, nodes = list(link.points), [n.copy() for n in link.nodes]
        segments.append(
            Segment(
                points=points,
                nodes=nodes,
                route_name=link.route_name,
                tags=dict(link.tags),
                original_count=link.original_count,
            )
        )
    logger.info("Flip optimizer: %d links flipped over %d epochs", len(flipped), epochs)
    return Network(segments)
