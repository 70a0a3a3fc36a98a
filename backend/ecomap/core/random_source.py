# backend/ecomap/core/random_source.py
from typing import Optional, Protocol

import numpy as np

from ecomap.core.config import settings


class RandomSource(Protocol):
    """Anything with a random() -> float in [0, 1). numpy Generators qualify."""

    def random(self) -> float: ...


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    """Builds the generator threaded through the pipeline (seed from RANDOM_SEED by default)."""
    if seed is None:
        seed = settings.RANDOM_SEED
    return np.random.default_rng(seed)
