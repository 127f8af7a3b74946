"""Exceptions raised by the schematic pipeline."""

from __future__ import annotations


class InputShapeError(ValueError):
    """Malformed or insufficient input geometry.

    Raised before any work is done; no partial output is produced.
    """


class ConstraintUnsatisfiable(RuntimeError):
    """No path candidate survived the hard placement constraints.

    The synthesizer catches this and falls back to the unfiltered
    candidate pool, so callers of the pipeline never see it.
    """

    def __init__(self, link_index: int, pool_size: int) -> None:
        super().__init__(
            f"Link {link_index}: none of {pool_size} candidates satisfies "
            f"the overlap and enclosure constraints"
        )
        self.link_index = link_index
        self.pool_size = pool_size
