#!/usr/bin/env python3
"""
Physical keyboard geometry and finger travel costs.

The modeled keyboard has 26 letter keys on three rows (8/10/8 keys):

    row 1:    0  1  2  3 |  4  5  6  7
    row 2:  8  9 10 11 12 | 13 14 15 16 17      (home row)
    row 3: 18 19 20 21    | 22 23 24 25

Eight fingers type them. Fingers 0-3 are the left pinky, ring, middle and
index fingers; fingers 4-7 are the right index, middle, ring and pinky.
Each finger rests on a home position and travels from key to key; the cost
of a move is the Euclidean key-to-key distance scaled so that one key width
costs 1000 units.

All tables here are computed once at import time and are read-only.
"""

from itertools import combinations
from typing import Dict, List, Tuple

import numpy as np

from evolver.errors import ConfigurationError

NUM_POSITIONS = 26
NUM_FINGERS = 8
DISTANCE_UNIT = 1000

# Distance matrix sentinel for pairs no single finger travels between
NO_PATH = -1

ROW_SLICES = (slice(0, 8), slice(8, 18), slice(18, 26))

# Position -> finger
FINGER_ASSIGNMENT = np.array([
       1, 2, 3, 3, 4, 4, 5, 6,
    0, 1, 2, 3, 3, 4, 4, 5, 6, 7,
    0, 1, 2, 3,       4, 5, 6, 7,
], dtype=np.int8)

# Finger -> resting position
HOME_POSITIONS = np.array([8, 9, 10, 11, 14, 15, 16, 17], dtype=np.int8)

# Finger -> hand (0 = left, 1 = right)
FINGER_HAND = np.array([0, 0, 0, 0, 1, 1, 1, 1], dtype=np.int8)

FINGER_NAMES = ['L4', 'L3', 'L2', 'L1', 'R1', 'R2', 'R3', 'R4']

STRAIGHT = 1000
REACH = 2000
DIAGONAL = 1414
COMPOUND_DIAGONAL = 2236

# Finger travel between key pairs, listed once per unordered pair
KEY_PAIR_DISTANCES: Dict[str, List[Tuple[int, int, int]]] = {
    'L4': [(8, 18, STRAIGHT)],
    'L3': [(0, 9, STRAIGHT), (9, 19, STRAIGHT), (0, 19, REACH)],
    'L2': [(1, 10, STRAIGHT), (10, 20, STRAIGHT), (1, 20, REACH)],
    'L1': [
        (2, 11, STRAIGHT), (11, 21, STRAIGHT), (2, 21, REACH),
        (3, 12, STRAIGHT), (2, 3, STRAIGHT), (11, 12, STRAIGHT),
        (2, 12, DIAGONAL), (3, 11, DIAGONAL), (12, 21, DIAGONAL),
        (3, 21, COMPOUND_DIAGONAL),
    ],
    'R4': [(17, 25, STRAIGHT)],
    'R3': [(7, 16, STRAIGHT), (16, 24, STRAIGHT), (7, 24, REACH)],
    'R2': [(6, 15, STRAIGHT), (15, 23, STRAIGHT), (6, 23, REACH)],
    'R1': [
        (5, 14, STRAIGHT), (14, 22, STRAIGHT), (5, 22, REACH),
        (4, 13, STRAIGHT), (4, 5, STRAIGHT), (13, 14, STRAIGHT),
        (4, 14, DIAGONAL), (5, 13, DIAGONAL), (13, 22, DIAGONAL),
        (4, 22, COMPOUND_DIAGONAL),
    ],
}


def positions_for_finger(finger: int) -> List[int]:
    """Return the positions typed by a finger, in ascending order."""
    return [int(p) for p in np.flatnonzero(FINGER_ASSIGNMENT == finger)]


def build_distance_matrix() -> np.ndarray:
    """
    Build the 26x26 finger travel cost matrix.

    Returns:
        Read-only int32 array; ``d[i, j]`` is the travel cost between
        positions i and j, 0 on the diagonal and NO_PATH where no single
        finger moves between the two keys

    Raises:
        ConfigurationError: If two positions share a finger but have no cost
    """
    matrix = np.full((NUM_POSITIONS, NUM_POSITIONS), NO_PATH, dtype=np.int32)
    np.fill_diagonal(matrix, 0)

    for pairs in KEY_PAIR_DISTANCES.values():
        for source, target, cost in pairs:
            matrix[source, target] = cost
            matrix[target, source] = cost

    # A finger must be able to reach every key it is assigned
    for finger in range(NUM_FINGERS):
        for source, target in combinations(positions_for_finger(finger), 2):
            if matrix[source, target] == NO_PATH:
                raise ConfigurationError(
                    f"No travel cost for finger {FINGER_NAMES[finger]} "
                    f"between positions {source} and {target}"
                )

    matrix.setflags(write=False)
    return matrix


class DistanceModel:
    """Builds and exposes the shared distance matrix."""

    def __init__(self):
        self.matrix = build_distance_matrix()

    @classmethod
    def build(cls) -> np.ndarray:
        return cls().matrix

    def cost(self, source: int, target: int) -> int:
        """Travel cost between two positions; raises KeyError when unmodeled."""
        value = int(self.matrix[source, target])
        if value == NO_PATH:
            raise KeyError(f"No direct path between positions {source} and {target}")
        return value
