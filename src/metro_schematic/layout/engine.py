"""Pipeline coordinator: runs the layout stages in order.

Every stage is a pure function ``(Network, PipelineConfig) -> Network``
that works on its own copy of the input. The coordinator checks the
parallel-array invariant between stages and can hand every intermediate
layer to a :class:`LayerStore`.
"""

from __future__ import annotations

__all__ = [
    "STAGES",
    "DictLayerStore",
    "LayerStore",
    "Stage",
    "run_pipeline",
    "run_stage",
    "stage_names",
]

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from metro_schematic.layout.compaction import compact
from metro_schematic.layout.config import PipelineConfig
from metro_schematic.layout.correction import collapse_u_shapes, straighten_dead_ends
from metro_schematic.layout.grouping import group_routes
from metro_schematic.layout.normalize import normalize
from metro_schematic.layout.quantize import coarse_snap, compress_grid, straighten
from metro_schematic.layout.rng import make_rng
from metro_schematic.layout.sequencing import sequence_routes
from metro_schematic.layout.synthesis import optimize_flips, synthesize
from metro_schematic.layout.weights import (
    assign_random_weights,
    classify_structure,
    exponential_grid_scale,
    simplify_weights,
)
from metro_schematic.parser.model import Network

logger = logging.getLogger(__name__)

StageFn = Callable[[Network, PipelineConfig], Network]


@dataclass(frozen=True)
class Stage:
    """A named pipeline step, optionally switched by a config flag."""

    name: str
    run: StageFn
    toggle: str | None = None

    def enabled(self, config: PipelineConfig) -> bool:
        if self.name in config.skip:
            return False
        return self.toggle is None or bool(getattr(config, self.toggle))


STAGES: tuple[Stage, ...] = (
    Stage("compress", lambda n, c: compress_grid(n)),
    Stage("straighten", lambda n, c: straighten(n, c.key_eps)),
    Stage("coarse_snap", lambda n, c: coarse_snap(n, c.coarse_grid), toggle="coarse_snap"),
    Stage("synthesize", lambda n, c: synthesize(n, c)),
    Stage("flip", lambda n, c: optimize_flips(n, c), toggle="flip"),
    Stage("group", lambda n, c: group_routes(n)),
    Stage("dead_ends", lambda n, c: straighten_dead_ends(n), toggle="dead_ends"),
    Stage("u_shapes", lambda n, c: collapse_u_shapes(n, c)),
    Stage("compact", lambda n, c: compact(n, c)),
    Stage("normalize", lambda n, c: normalize(n)),
    Stage("sequence", lambda n, c: sequence_routes(n, c), toggle="sequence"),
    Stage("classify", lambda n, c: classify_structure(n, c.key_eps)),
    Stage(
        "weights",
        lambda n, c: assign_random_weights(n, make_rng(c.seed, "weights")),
        toggle="weights",
    ),
    Stage("simplify", lambda n, c: simplify_weights(n, c), toggle="weights"),
    Stage(
        "scale_grid",
        lambda n, c: exponential_grid_scale(n, c.exponent_cap),
        toggle="scale_grid",
    ),
)


def stage_names() -> list[str]:
    return [stage.name for stage in STAGES]


def _lookup(name: str) -> Stage:
    for stage in STAGES:
        if stage.name == name:
            return stage
    raise ValueError(f"Unknown stage '{name}'. Choose from: {', '.join(stage_names())}")


# ---------------------------------------------------------------------------
# Layer storage
# ---------------------------------------------------------------------------


class LayerStore(Protocol):
    """Somewhere to keep the output of each stage, keyed by stage name."""

    def get(self, layer_id: str) -> Network | None: ...

    def set(self, layer_id: str, network: Network) -> None: ...


@dataclass
class DictLayerStore:
    """In-memory :class:`LayerStore`; stores independent copies."""

    layers: dict[str, Network] = field(default_factory=dict)

    def get(self, layer_id: str) -> Network | None:
        layer = self.layers.get(layer_id)
        return layer.copy() if layer is not None else None

    def set(self, layer_id: str, network: Network) -> None:
        self.layers[layer_id] = network.copy()


# ---------------------------------------------------------------------------
# Running
# ---------------------------------------------------------------------------


def _summary(network: Network) -> str:
    stations = len(network.real_stations())
    points = sum(len(seg.points) for seg in network.segments)
    return f"{len(network.segments)} segments, {points} points, {stations} stations"


def run_stage(
    name: str,
    network: Network,
    config: PipelineConfig | None = None,
) -> Network:
    """Run a single stage in isolation, ignoring its toggle."""
    config = config or PipelineConfig()
    stage = _lookup(name)
    network.validate()
    try:
        out = stage.run(network.copy(), config)
        out.validate()
    except Exception:
        logger.exception("Stage '%s' failed", name)
        raise
    logger.info("%s: %s", name, _summary(out))
    return out


def run_pipeline(
    network: Network,
    config: PipelineConfig | None = None,
    stop_after: str | None = None,
    collect: bool = False,
    store: LayerStore | None = None,
) -> Network | tuple[Network, dict[str, Network]]:
    """Run every enabled stage in order.

    Args:
        network: Input network; never modified.
        config: Caps, seed and stage toggles.
        stop_after: Name of the last stage to run.
        collect: Also return every intermediate layer, keyed by stage name.
        store: Optional layer store that receives each stage's output.

    Returns:
        The final network, or ``(network, layers)`` when ``collect`` is set.
    """
    config = config or PipelineConfig()
    if stop_after is not None:
        _lookup(stop_after)
    layers: dict[str, Network] = {}

    network.validate()
    current = network.copy()
    for stage in STAGES:
        if stage.enabled(config):
            current = run_stage(stage.name, current, config)
            if store is not None:
                store.set(stage.name, current)
            if collect:
                layers[stage.name] = current.copy()
        else:
            logger.debug("Skipping stage '%s'", stage.name)
        if stage.name == stop_after:
            break

    if collect:
        return current, layers
    return current
