#!/usr/bin/env python3
"""
Fitness evaluation for keyboard layouts.

Simulates typing a corpus on a layout and scores the effort. The
simulation tracks where every finger is:

  - **Initial state**: all fingers rest on their home positions
  - **Newline**: every finger returns home; nothing is counted
  - **Keystroke**: the finger assigned to the target key travels there from
    its last position; the travel cost is added to the total distance and
    the finger's usage count goes up
  - **Repeats**: a keystroke whose finger (or hand) is the same as the
    previous keystroke on the same line counts as a same-finger (or
    same-hand) repeat, unless the finger did not move

The fitness combines four terms, higher is better:

    distance_term      = keystrokes / (total_distance / 1000) * distance_weight
    finger_repeat_term = keystrokes / finger_repeats * finger_weight
    hand_repeat_term   = keystrokes / hand_repeats * hand_weight
    deviation_term     = (max_deviation - sum(|usage - target|)) * deviation_weight

A corpus with no keystrokes raises EvaluationDegenerate. Zero travel or
zero repeats clamp the denominator to its smallest non-zero value (one key
width, one repeat) and are listed in ``degenerate_terms``.

Each evaluate() call builds its own finger state, so one evaluator can be
shared by any number of threads.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple

import numpy as np

from evolver.errors import ConfigurationError, EvaluationDegenerate
from evolver.geometry import (DISTANCE_UNIT, FINGER_ASSIGNMENT, FINGER_HAND, FINGER_NAMES,
                              HOME_POSITIONS, NO_PATH, NUM_FINGERS)
from evolver.layout_utils import Layout
from evolver.text_utils import Corpus

logger = logging.getLogger(__name__)

ENGINES = ('vectorized', 'sequential')

# Favors the middle fingers over the pinkies
DEFAULT_TARGET_DISTRIBUTION = (0.09, 0.13, 0.14, 0.14, 0.14, 0.14, 0.13, 0.09)


@dataclass(frozen=True)
class FitnessWeights:
    """Weights of the fitness terms."""

    distance_weight: float = 50.0
    finger_weight: float = 1.0
    hand_weight: float = 1.0
    max_deviation: float = 1.75
    deviation_weight: float = 15.0
    target_distribution: Tuple[float, ...] = DEFAULT_TARGET_DISTRIBUTION
    engine: str = 'vectorized'

    def __post_init__(self):
        try:
            target = tuple(float(v) for v in self.target_distribution)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"target_distribution must be a list of numbers: {e}")
        object.__setattr__(self, 'target_distribution', target)

        if len(target) != NUM_FINGERS:
            raise ConfigurationError(
                f"target_distribution needs {NUM_FINGERS} entries, got {len(target)}")
        if any(v < 0 for v in target) or not np.isclose(sum(target), 1.0):
            raise ConfigurationError(
                f"target_distribution must be non-negative and sum to 1, got {list(target)}")
        if self.engine not in ENGINES:
            raise ConfigurationError(f"Unknown engine '{self.engine}'. Available: {list(ENGINES)}")

    @classmethod
    def from_config(cls, config: Optional[Mapping[str, Any]]) -> 'FitnessWeights':
        """
        Build weights from the ``fitness`` configuration section.

        Raises:
            ConfigurationError: On unknown keys or invalid values
        """
        config = dict(config or {})
        known = set(cls.__dataclass_fields__)
        values = {key: value for key, value in config.items() if key in known}
        unknown = sorted(key for key in config if key not in known and key not in _SHARED_KEYS)
        if unknown:
            raise ConfigurationError(f"Unknown fitness settings: {unknown}")
        try:
            for key in known - {'target_distribution', 'engine'}:
                if key in values:
                    values[key] = float(values[key])
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid fitness setting: {e}")
        return cls(**values)


# Keys merged in from the ``common`` section that sections may ignore
_SHARED_KEYS = {'output_dir', 'log_level'}


@dataclass(frozen=True)
class PassCounts:
    """Raw counts from one typing pass."""

    keystrokes: int
    total_distance: int
    finger_repeats: int
    hand_repeats: int
    finger_usage: Tuple[int, ...]


@dataclass(frozen=True)
class EvaluationResult:
    """
    Scored layout; immutable once produced.

    ``sequence`` is the submission number given by the evaluation pool and
    is used to break fitness ties deterministically.
    """

    layout: Layout
    fitness: float
    total_distance: int
    keystrokes: int = 0
    finger_repeats: int = 0
    hand_repeats: int = 0
    finger_usage: Tuple[int, ...] = ()
    components: Dict[str, float] = field(default_factory=dict, compare=False)
    degenerate_terms: Tuple[str, ...] = ()
    sequence: int = -1

    @property
    def distance_units(self) -> float:
        """Total distance in key widths."""
        return self.total_distance / DISTANCE_UNIT

    def with_sequence(self, sequence: int) -> 'EvaluationResult':
        return replace(self, sequence=sequence)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert result to dictionary format.

        Returns:
            Flat dictionary suitable for CSV export
        """
        result = {
            'layout': self.layout.to_letters(),
            'fitness': self.fitness,
            'total_distance': self.total_distance,
            'keystrokes': self.keystrokes,
            'finger_repeats': self.finger_repeats,
            'hand_repeats': self.hand_repeats,
        }
        for component, score in self.components.items():
            result[f'component_{component}'] = score
        for name, count in zip(FINGER_NAMES, self.finger_usage):
            result[f'usage_{name}'] = count
        result['degenerate_terms'] = ','.join(self.degenerate_terms)
        return result

    def summary(self) -> str:
        """Brief human-readable summary."""
        lines = [
            f"Fitness: {self.fitness:.6f}",
            f"Total distance: {self.distance_units:.3f} key widths over {self.keystrokes} keystrokes",
        ]
        if self.components:
            lines.append("Components:")
            for name, score in self.components.items():
                lines.append(f"  {name}: {score:.6f}")
        if self.degenerate_terms:
            lines.append(f"Clamped terms: {', '.join(self.degenerate_terms)}")
        return "\n".join(lines)


def _sequential_pass(keys: np.ndarray, corpus: Corpus, distance_matrix: np.ndarray) -> PassCounts:
    """Walk the corpus one character at a time with a local finger state."""
    keys = keys.tolist()
    assignment = FINGER_ASSIGNMENT.tolist()
    hands = FINGER_HAND.tolist()
    matrix = distance_matrix.tolist()

    finger_positions = HOME_POSITIONS.tolist()
    usage = [0] * NUM_FINGERS
    total_distance = 0
    finger_repeats = 0
    hand_repeats = 0
    previous_finger = None

    for char in corpus.text:
        if char == '\n':
            finger_positions = HOME_POSITIONS.tolist()
            previous_finger = None
            continue

        target = keys[ord(char) - ord('a')]
        finger = assignment[target]
        source = finger_positions[finger]

        step = matrix[source][target]
        if step == NO_PATH:
            raise KeyError(f"No direct path between positions {source} and {target}")
        total_distance += step
        finger_positions[finger] = target
        usage[finger] += 1

        if previous_finger is not None and target != source:
            if finger == previous_finger:
                finger_repeats += 1
            if hands[finger] == hands[previous_finger]:
                hand_repeats += 1
        previous_finger = finger

    return PassCounts(
        keystrokes=sum(usage),
        total_distance=total_distance,
        finger_repeats=finger_repeats,
        hand_repeats=hand_repeats,
        finger_usage=tuple(usage),
    )


def _vectorized_pass(keys: np.ndarray, corpus: Corpus, distance_matrix: np.ndarray) -> PassCounts:
    """
    Same pass as _sequential_pass(), computed with numpy.

    A finger's source position is the target of its previous keystroke on
    the same line, or its home position. Grouping keystrokes by finger
    (stable sort keeps time order) makes the previous keystroke of the
    group the previous use of that finger.
    """
    positions = keys.astype(np.intp)[corpus.letters]
    line_ids = corpus.line_ids
    fingers = FINGER_ASSIGNMENT[positions]
    count = positions.size

    order = np.argsort(fingers, kind='stable')
    sorted_fingers = fingers[order]
    sorted_lines = line_ids[order]

    sorted_sources = np.empty(count, dtype=np.intp)
    sorted_sources[1:] = positions[order][:-1]
    fresh = np.ones(count, dtype=bool)
    fresh[1:] = (sorted_fingers[1:] != sorted_fingers[:-1]) | (sorted_lines[1:] != sorted_lines[:-1])
    sorted_sources[fresh] = HOME_POSITIONS[sorted_fingers[fresh]]

    sources = np.empty(count, dtype=np.intp)
    sources[order] = sorted_sources

    steps = distance_matrix[sources, positions]
    if (steps == NO_PATH).any():
        bad = int(np.flatnonzero(steps == NO_PATH)[0])
        raise KeyError(f"No direct path between positions {sources[bad]} and {positions[bad]}")

    counted = (positions[1:] != sources[1:]) & (line_ids[1:] == line_ids[:-1])
    hands = FINGER_HAND[fingers]

    return PassCounts(
        keystrokes=int(count),
        total_distance=int(steps.sum(dtype=np.int64)),
        finger_repeats=int(np.count_nonzero(counted & (fingers[1:] == fingers[:-1]))),
        hand_repeats=int(np.count_nonzero(counted & (hands[1:] == hands[:-1]))),
        finger_usage=tuple(int(v) for v in np.bincount(fingers, minlength=NUM_FINGERS)),
    )


_ENGINES = {
    'vectorized': _vectorized_pass,
    'sequential': _sequential_pass,
}


class FitnessEvaluator:
    """
    Scores layouts against a corpus.

    Holds only the (immutable) weights; the corpus and distance matrix are
    passed to every call so a single evaluator serves the whole pool.
    """

    def __init__(self, weights: Optional[FitnessWeights] = None):
        self.weights = weights or FitnessWeights()
        self._target = np.array(self.weights.target_distribution)
        self._pass = _ENGINES[self.weights.engine]

    def count(self, layout: Layout, corpus: Corpus, distance_matrix: np.ndarray) -> PassCounts:
        """
        Run the typing pass and return the raw counts.

        Raises:
            EvaluationDegenerate: If the corpus has no keystrokes
        """
        if corpus.keystrokes == 0:
            raise EvaluationDegenerate("Cannot score a layout against a corpus with no keystrokes")
        return self._pass(layout.keys, corpus, distance_matrix)

    def score(self, layout: Layout, counts: PassCounts) -> EvaluationResult:
        """Combine the pass counts into an EvaluationResult."""
        weights = self.weights
        keystrokes = counts.keystrokes
        degenerate: List[str] = []

        if counts.total_distance == 0:
            degenerate.append('distance')
        if counts.finger_repeats == 0:
            degenerate.append('finger_repeat')
        if counts.hand_repeats == 0:
            degenerate.append('hand_repeat')
        if degenerate:
            logger.debug("Clamped degenerate terms %s for %r", degenerate, layout)

        travel_units = max(counts.total_distance, DISTANCE_UNIT) / DISTANCE_UNIT
        distance_term = keystrokes / travel_units * weights.distance_weight
        finger_term = keystrokes / max(counts.finger_repeats, 1) * weights.finger_weight
        hand_term = keystrokes / max(counts.hand_repeats, 1) * weights.hand_weight

        usage = np.array(counts.finger_usage, dtype=np.float64) / keystrokes
        deviation = float(np.abs(usage - self._target).sum())
        deviation_term = (weights.max_deviation - deviation) * weights.deviation_weight

        fitness = distance_term + finger_term + hand_term + deviation_term

        return EvaluationResult(
            layout=layout,
            fitness=float(fitness),
            total_distance=counts.total_distance,
            keystrokes=keystrokes,
            finger_repeats=counts.finger_repeats,
            hand_repeats=counts.hand_repeats,
            finger_usage=counts.finger_usage,
            components={
                'distance_term': float(distance_term),
                'finger_repeat_term': float(finger_term),
                'hand_repeat_term': float(hand_term),
                'deviation_term': float(deviation_term),
                'deviation': deviation,
            },
            degenerate_terms=tuple(degenerate),
        )

    def evaluate(self, layout: Layout, corpus: Corpus, distance_matrix: np.ndarray) -> EvaluationResult:
        """
        Score a layout against a corpus.

        Args:
            layout: Layout to score
            corpus: Validated corpus
            distance_matrix: Matrix from build_distance_matrix()

        Returns:
            EvaluationResult with fitness and total distance

        Raises:
            EvaluationDegenerate: If the corpus has no keystrokes
        """
        return self.score(layout, self.count(layout, corpus, distance_matrix))


def evaluate(layout: Layout,
             corpus: Corpus,
             distance_matrix: np.ndarray,
             weights: Optional[FitnessWeights] = None) -> Tuple[float, int]:
    """Convenience wrapper returning ``(fitness, total_distance)``."""
    result = FitnessEvaluator(weights).evaluate(layout, corpus, distance_matrix)
    return result.fitness, result.total_distance
