"""Schematic layout pipeline.

Public API:
- run_pipeline / run_stage: Run the stages in order, or one in isolation
- STAGES: Ordered stage registry
- PipelineConfig: Caps, seed and stage toggles
- quantize_features: Geographic features onto the integer grid
"""

from metro_schematic.layout.config import PipelineConfig
from metro_schematic.layout.engine import (
    STAGES,
    DictLayerStore,
    LayerStore,
    run_pipeline,
    run_stage,
    stage_names,
)
from metro_schematic.layout.quantize import quantize_features

__all__ = [
    "STAGES",
    "DictLayerStore",
    "LayerStore",
    "PipelineConfig",
    "quantize_features",
    "run_pipeline",
    "run_stage",
    "stage_names",
]
