"""Randomized multi-attempt search for a low-crossing orthogonal layout."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from metro_schematic.errors import ConstraintUnsatisfiable
from metro_schematic.layout.config import PipelineConfig
from metro_schematic.layout.geometry import edges
from metro_schematic.layout.injection import inject_stations
from metro_schematic.layout.rng import make_rng, shuffled
from metro_schematic.layout.synthesis.candidates import generate_candidates
from metro_schematic.layout.synthesis.constraints import Edge, filter_candidates
from metro_schematic.layout.synthesis.links import Link, decompose_links, enclosure_anchors
from metro_schematic.layout.synthesis.scoring import (
    count_crossings,
    find_illegal_intersections,
)
from metro_schematic.parser.model import Network, Point, Segment

logger = logging.getLogger(__name__)


@dataclass
class Placement:
    """A link and the corner skeleton chosen for it."""

    link: Link
    path: list[Point]


@dataclass
class SearchResult:
    placements: list[Placement]
    score: int
    attempts: int


def place_links(
    links: list[Link],
    anchors: list[Point],
    rng: np.random.Generator,
    config: PipelineConfig,
) -> list[Placement]:
    """Greedily place links in the given order.

    Each link takes the candidate with the fewest crossings against what is
    already placed, among those passing the hard constraints (or, when none
    does, among the whole pool).
    """
    placed: list[Edge] = []
    out: list[Placement] = []
    for link in links:
        pool = generate_candidates(
            link.start, link.end, rng, config.z_samples, config.z_ratio_range
        )
        try:
            candidates = filter_candidates(
                pool, placed, anchors, link.exclusion_keys(config.key_eps),
                link.index, config.key_eps,
            )
        except ConstraintUnsatisfiable as e:
            logger.debug("%s; using unfiltered pool", e)
            candidates = pool

        best, best_hits = candidates[0], math.inf
        for path in candidates:
            hits = count_crossings(path, placed)
            if hits < best_hits:
                best, best_hits = path, hits
                if hits == 0:
                    break
        placed.extend(edges(best))
        out.append(Placement(link, best))
    return out


def search_layout(
    links: list[Link],
    anchors: list[Point],
    rng: np.random.Generator,
    config: PipelineConfig,
) -> SearchResult:
    """Run up to ``config.max_attempts`` shuffled greedy passes.

    Keeps the attempt with the fewest illegal intersections and stops as
    soon as one has none. The best attempt found is always returned.
    """
    best: list[Placement] = []
    best_score = math.inf
    attempts = 0
    for attempt in range(max(1, config.max_attempts)):
        attempts = attempt + 1
        placements = place_links(shuffled(rng, links), anchors, rng, config)
        score = len(find_illegal_intersections([p.path for p in placements]))
        if score < best_score:
            best, best_score = placements, score
            logger.debug("Attempt %d: %d intersections", attempts, score)
        if score == 0:
            break
    best.sort(key=lambda p: p.link.index)
    return SearchResult(best, int(best_score), attempts)


def placements_to_network(placements: list[Placement]) -> Network:
    segments = []
    for pl in placements:
        link = pl.link
        points, nodes = inject_stations(pl.path, link.stations, link.start_node, link.end_node)
        segments.append(
            Segment(
                points=points,
                nodes=nodes,
                route_name=link.route_name,
                tags=dict(link.tags),
                original_count=link.original_count,
            )
        )
    return Network(segments)


def synthesize(
    network: Network,
    config: PipelineConfig | None = None,
    rng: np.random.Generator | None = None,
) -> Network:
    """Replace every link with an orthogonal path, minimizing crossings."""
    config = config or PipelineConfig()
    rng = rng if rng is not None else make_rng(config.seed, "synthesis")
    links = decompose_links(network, config.key_eps)
    if not links:
        return network.copy()

    anchors = enclosure_anchors(network, links, config.key_eps)

    result = search_layout(links, anchors, rng, config)
    logger.info(
        "Synthesized %d links in %d attempts, %d illegal intersections remain",
        len(links),
        result.attempts,
        result.score,
    )
    return placements_to_network(result.placements)
