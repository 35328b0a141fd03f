#!/usr/bin/env python3
"""
Mutation operator: perturb a layout with a random number of key swaps.
"""

import numpy as np

from evolver.errors import ConfigurationError
from evolver.geometry import NUM_POSITIONS
from evolver.layout_utils import Layout

DEFAULT_DECAY = 0.75


class MutationOperator:
    """
    Swap pairs of keys while a decaying chance keeps succeeding.

    The first swap always happens (the chance starts at 1.0); after each
    swap the chance is multiplied by ``decay``, so the k-th extra swap
    happens with probability decay ** (k * (k + 1) / 2). With the default
    decay a mutation makes about 2.4 swaps on average.
    Transpositions keep the layout a permutation.
    """

    def __init__(self, decay: float = DEFAULT_DECAY):
        if not 0.0 <= decay < 1.0:
            raise ConfigurationError(f"Mutation decay must be in [0, 1), got {decay}")
        self.decay = decay

    def swap_count(self, rng: np.random.Generator) -> int:
        """Draw how many swaps one mutation performs."""
        chance = 1.0
        swaps = 0
        while rng.random() < chance:
            swaps += 1
            chance *= self.decay
        return swaps

    def mutate(self, layout: Layout, rng: np.random.Generator) -> Layout:
        """
        Return a mutated copy of ``layout``; the parent is untouched.

        Args:
            layout: Parent layout
            rng: Random generator owned by the caller

        Returns:
            New Layout differing from the parent by one or more swaps
        """
        keys = layout.keys.copy()
        for _ in range(self.swap_count(rng)):
            first, second = rng.choice(NUM_POSITIONS, size=2, replace=False)
            keys[[first, second]] = keys[[second, first]]
        return Layout(keys)


def mutate(layout: Layout, rng: np.random.Generator, decay: float = DEFAULT_DECAY) -> Layout:
    """Functional form of MutationOperator.mutate()."""
    return MutationOperator(decay).mutate(layout, rng)
