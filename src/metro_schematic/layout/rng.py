"""Seedable random streams for the randomized stages.

Each stage draws from its own named stream, derived deterministically from
the run seed and the stream name, so adding draws to one stage never
perturbs another.
"""

from __future__ import annotations

from zlib import crc32

import numpy as np


def _u32(x: int) -> int:
    return int(x & 0xFFFFFFFF)


def make_rng(seed: int | None, stream: str = "default") -> np.random.Generator:
    """Return a PCG64 generator for ``stream``.

    With ``seed=None`` the generator is seeded from fresh OS entropy.
    """
    if seed is None:
        return np.random.default_rng()
    ss = np.random.SeedSequence(entropy=[_u32(seed), _u32(crc32(stream.encode("utf-8")))])
    return np.random.Generator(np.random.PCG64(ss))


def shuffled(rng: np.random.Generator, items: list) -> list:
    """Return a new list with ``items`` in random order."""
    order = rng.permutation(len(items))
    return [items[i] for i in order]
