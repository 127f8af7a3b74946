"""Pipeline configuration."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from metro_schematic.layout.constants import (
    COARSE_GRID,
    COMPACTION_ITERATIONS,
    EXPONENT_CAP,
    FLIP_EPOCHS,
    FLIP_SAMPLES,
    FLIP_THRESHOLD,
    KEY_EPSILON,
    MAX_ATTEMPTS,
    SHRINK_ROUNDS,
    TABU_EPOCHS,
    U_SHAPE_CAP,
    U_SHAPE_PASSES,
    WEIGHT_TOLERANCES,
    Z_RATIO_MAX,
    Z_RATIO_MIN,
    Z_SAMPLES,
)


@dataclass(frozen=True)
class PipelineConfig:
    """Tunable bounds and toggles for one pipeline run.

    All caps are iteration counts, never wall-clock limits, so a fixed
    ``seed`` reproduces a run exactly.
    """

    seed: int | None = None
    key_eps: float = KEY_EPSILON
    coarse_grid: int = COARSE_GRID
    max_attempts: int = MAX_ATTEMPTS
    z_samples: int = Z_SAMPLES
    z_ratio_range: tuple[float, float] = (Z_RATIO_MIN, Z_RATIO_MAX)
    flip_epochs: int = FLIP_EPOCHS
    flip_samples: int = FLIP_SAMPLES
    flip_threshold: float = FLIP_THRESHOLD
    tabu_epochs: int = TABU_EPOCHS
    u_shape_cap: float = U_SHAPE_CAP
    u_shape_passes: int = U_SHAPE_PASSES
    compaction_iterations: int = COMPACTION_ITERATIONS
    shrink_rounds: int = SHRINK_ROUNDS
    weight_tolerances: tuple[int, ...] = WEIGHT_TOLERANCES
    exponent_cap: int = EXPONENT_CAP
    # Optional stages
    coarse_snap: bool = True
    flip: bool = True
    dead_ends: bool = True
    sequence: bool = True
    weights: bool = True
    scale_grid: bool = False
    skip: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        lo, hi = self.z_ratio_range
        if not 0.0 < lo <= hi < 1.0:
            raise ValueError(
                f"z_ratio_range must satisfy 0 < lo <= hi < 1, got {self.z_ratio_range}"
            )
        for name in (
            "max_attempts",
            "z_samples",
            "flip_epochs",
            "u_shape_passes",
            "compaction_iterations",
            "shrink_rounds",
            "exponent_cap",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")
        if self.key_eps <= 0:
            raise ValueError("key_eps must be positive")

    def with_overrides(self, **changes) -> PipelineConfig:
        """Return a copy with the given fields replaced (None values ignored)."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})
