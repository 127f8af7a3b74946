"""Tests for the pipeline coordinator."""

from __future__ import annotations

import pytest
from layout_validator import Severity, validate_network
from networks import plus_network, seg, station_names

from metro_schematic.errors import InputShapeError
from metro_schematic.layout import (
    DictLayerStore,
    PipelineConfig,
    run_pipeline,
    run_stage,
    stage_names,
)
from metro_schematic.parser.model import Network


def test_stage_order():
    assert stage_names() == [
        "compress",
        "straighten",
        "coarse_snap",
        "synthesize",
        "flip",
        "group",
        "dead_ends",
        "u_shapes",
        "compact",
        "normalize",
        "sequence",
        "classify",
        "weights",
        "simplify",
        "scale_grid",
    ]


class TestRunPipeline:
    def test_plus_network_end_to_end(self):
        net = plus_network()
        out = run_pipeline(net, PipelineConfig(seed=1))
        assert station_names(out) == station_names(net)
        errors = [v for v in validate_network(out) if v.severity == Severity.ERROR]
        assert errors == []
        assert all(s.structure in ("core", "branch") for s in out.segments)

    def test_reproducible_with_seed(self):
        a = run_pipeline(plus_network(), PipelineConfig(seed=42))
        b = run_pipeline(plus_network(), PipelineConfig(seed=42))
        assert [s.points for s in a.segments] == [s.points for s in b.segments]
        assert [
            [(w.start_idx, w.end_idx, w.weight) for w in s.station_weights] for s in a.segments
        ] == [
            [(w.start_idx, w.end_idx, w.weight) for w in s.station_weights] for s in b.segments
        ]

    def test_input_untouched(self):
        net = plus_network()
        before = [list(s.points) for s in net.segments]
        run_pipeline(net, PipelineConfig(seed=1))
        assert [s.points for s in net.segments] == before

    def test_stop_after(self):
        _, layers = run_pipeline(
            plus_network(), PipelineConfig(seed=1), stop_after="straighten", collect=True
        )
        assert list(layers) == ["compress", "straighten"]

    def test_disabled_stage_not_collected(self):
        _, layers = run_pipeline(plus_network(), PipelineConfig(seed=1, flip=False), collect=True)
        assert "flip" not in layers
        assert "synthesize" in layers

    def test_skip_by_name(self):
        config = PipelineConfig(seed=1, skip=frozenset({"compact", "weights"}))
        _, layers = run_pipeline(plus_network(), config, collect=True)
        assert "compact" not in layers
        assert "weights" not in layers
        assert "simplify" in layers

    def test_no_weights(self):
        out = run_pipeline(plus_network(), PipelineConfig(seed=1, weights=False))
        assert all(s.station_weights == [] for s in out.segments)

    def test_grid_scaling_is_opt_in(self):
        _, layers = run_pipeline(plus_network(), PipelineConfig(seed=1), collect=True)
        assert "scale_grid" not in layers
        assert "sequence" in layers

    def test_grid_scaling_uses_exponent_cap(self):
        flat = run_pipeline(plus_network(), PipelineConfig(seed=1, scale_grid=True, exponent_cap=0))
        plain = run_pipeline(plus_network(), PipelineConfig(seed=1))
        assert [s.points for s in flat.segments] == [s.points for s in plain.segments]

        wide = run_pipeline(plus_network(), PipelineConfig(seed=1, scale_grid=True))
        xs = [p[0] for s in wide.segments for p in s.points]
        assert max(xs) > max(p[0] for s in plain.segments for p in s.points)

    def test_unknown_stop_after(self):
        with pytest.raises(ValueError, match="Unknown stage"):
            run_pipeline(plus_network(), stop_after="nope")

    def test_broken_input_rejected(self):
        net = Network([seg([(0, 0), (1, 0), (2, 0)])])
        net.segments[0].nodes.pop()
        with pytest.raises(InputShapeError):
            run_pipeline(net)

    def test_layer_store(self):
        store = DictLayerStore()
        out = run_pipeline(plus_network(), PipelineConfig(seed=1), store=store)
        assert set(store.layers) == set(stage_names()) - {"scale_grid"}
        final = store.get("simplify")
        assert [s.points for s in final.segments] == [s.points for s in out.segments]
        final.segments.clear()
        assert store.get("simplify").segments

    def test_store_miss(self):
        assert DictLayerStore().get("compress") is None


class TestRunStage:
    def test_single_stage(self):
        net = Network([seg([(0, 0), (10, 0), (10, 25)])])
        out = run_stage("normalize", net)
        assert out.segments[0].points == [(0, 0), (1, 0), (1, 1)]

    def test_toggle_ignored(self):
        out = run_stage("flip", plus_network(), PipelineConfig(seed=1, flip=False))
        assert len(out.segments) >= 2

    def test_unknown_stage(self):
        with pytest.raises(ValueError, match="Unknown stage"):
            run_stage("bogus", plus_network())
