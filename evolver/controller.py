#!/usr/bin/env python3
"""
Generation controller: drives the evolutionary search.

The controller moves through five states:

  SEEDING      random layouts are generated and dispatched
  EVALUATING   blocks until every dispatched layout has been scored
  SELECTING    sorts by fitness, keeps the elites, tracks stagnation
  REPRODUCING  mutates every elite into offspring and dispatches them
  CONVERGED    the best fitness has not changed for ``stagnation_limit``
               generations (or ``max_generations`` was reached)

Elites survive unmutated into the next generation, so the best fitness
never decreases. Each random layout and each offspring gets its own
generator spawned from one SeedSequence, so a seeded run is reproducible
regardless of the order in which workers finish.
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Mapping, Optional

import numpy as np

from evolver.errors import ConfigurationError
from evolver.evaluation_pool import BACKENDS, EvaluationContext, EvaluationPool
from evolver.fitness import EvaluationResult, FitnessEvaluator
from evolver.layout_utils import Layout
from evolver.mutation import MutationOperator
from evolver.population import Population
from evolver.text_utils import Corpus

logger = logging.getLogger(__name__)

_SHARED_KEYS = {'output_dir', 'log_level'}


def _integral(key: str, value: Any) -> int:
    """Convert a config value to int, refusing anything that would be truncated."""
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid evolution setting {key}: expected an integer, got {value!r}")
    if isinstance(value, (float, np.floating)) and not float(value).is_integer():
        raise ConfigurationError(f"Invalid evolution setting {key}: expected an integer, got {value!r}")
    return int(value)


class ControllerState(enum.Enum):
    SEEDING = 'seeding'
    EVALUATING = 'evaluating'
    SELECTING = 'selecting'
    REPRODUCING = 'reproducing'
    CONVERGED = 'converged'


@dataclass(frozen=True)
class EvolutionSettings:
    """Population sizes, stopping rule and pool settings."""

    population_size: int = 1000
    elite_count: int = 100
    offspring_per_elite: int = 9
    stagnation_limit: int = 100
    mutation_decay: float = 0.75
    workers: int = 8
    backend: str = 'thread'
    seed: Optional[int] = None
    max_generations: Optional[int] = None

    def __post_init__(self):
        if self.elite_count < 1:
            raise ConfigurationError(f"elite_count must be at least 1, got {self.elite_count}")
        if self.population_size < self.elite_count:
            raise ConfigurationError(
                f"population_size ({self.population_size}) must be at least elite_count ({self.elite_count})")
        if self.offspring_per_elite < 1:
            raise ConfigurationError(f"offspring_per_elite must be at least 1, got {self.offspring_per_elite}")
        if self.stagnation_limit < 1:
            raise ConfigurationError(f"stagnation_limit must be at least 1, got {self.stagnation_limit}")
        if not 0.0 <= self.mutation_decay < 1.0:
            raise ConfigurationError(f"mutation_decay must be in [0, 1), got {self.mutation_decay}")
        if self.workers < 1:
            raise ConfigurationError(f"workers must be at least 1, got {self.workers}")
        if self.backend not in BACKENDS:
            raise ConfigurationError(f"Unknown backend '{self.backend}'. Available: {list(BACKENDS)}")
        if self.max_generations is not None and self.max_generations < 0:
            raise ConfigurationError(f"max_generations cannot be negative, got {self.max_generations}")

    @property
    def offspring_count(self) -> int:
        return self.elite_count * self.offspring_per_elite

    @classmethod
    def from_config(cls, config: Optional[Mapping[str, Any]]) -> 'EvolutionSettings':
        """
        Build settings from the ``evolution`` configuration section.

        Raises:
            ConfigurationError: On unknown keys or invalid values
        """
        config = dict(config or {})
        known = set(cls.__dataclass_fields__)
        unknown = sorted(key for key in config if key not in known and key not in _SHARED_KEYS)
        if unknown:
            raise ConfigurationError(f"Unknown evolution settings: {unknown}")

        values = {}
        try:
            for key in known:
                if key not in config:
                    continue
                value = config[key]
                if key == 'mutation_decay':
                    value = float(value)
                elif key == 'backend':
                    value = str(value)
                elif value is not None or key not in ('seed', 'max_generations'):
                    value = _integral(key, value)
                values[key] = value
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid evolution setting: {e}")
        return cls(**values)


@dataclass(frozen=True)
class GenerationRecord:
    """Best layout of one generation."""

    generation: int
    best_fitness: float
    best_distance: int
    stagnant_generations: int
    best: EvaluationResult = field(repr=False)

    @property
    def best_distance_units(self) -> float:
        return self.best.distance_units


@dataclass
class RunHistory:
    """Per-generation best values, indexed by generation number."""

    records: List[GenerationRecord] = field(default_factory=list)
    converged: bool = False

    def append(self, record: GenerationRecord) -> None:
        self.records.append(record)

    @property
    def generations(self) -> int:
        return len(self.records)

    @property
    def fitness(self) -> List[float]:
        return [record.best_fitness for record in self.records]

    @property
    def distance(self) -> List[float]:
        """Best total distance per generation, in key widths."""
        return [record.best_distance_units for record in self.records]

    @property
    def best(self) -> EvaluationResult:
        if not self.records:
            raise IndexError("Run history is empty")
        return self.records[-1].best

    def __len__(self):
        return len(self.records)


class GenerationController:
    """Seeds, selects, mutates and re-evaluates until convergence."""

    def __init__(self,
                 corpus: Corpus,
                 distance_matrix: np.ndarray,
                 evaluator: Optional[FitnessEvaluator] = None,
                 settings: Optional[EvolutionSettings] = None,
                 on_generation: Optional[Callable[[GenerationRecord], None]] = None):
        """
        Args:
            corpus: Shared corpus (read-only)
            distance_matrix: Shared distance matrix (read-only)
            evaluator: Fitness evaluator (default weights if None)
            settings: Evolution settings (defaults if None)
            on_generation: Called with each GenerationRecord after selection
        """
        self.corpus = corpus
        self.distance_matrix = distance_matrix
        self.evaluator = evaluator or FitnessEvaluator()
        self.settings = settings or EvolutionSettings()
        self.on_generation = on_generation

        self.mutation = MutationOperator(self.settings.mutation_decay)
        self.population = Population()
        self.history = RunHistory()
        self.state = ControllerState.SEEDING
        self.generation = 0

        self._seed_sequence = np.random.SeedSequence(self.settings.seed)
        self._last_best: Optional[float] = None
        self._stagnant = 0

    def _spawn_rngs(self, count: int) -> List[np.random.Generator]:
        """Independent generators, one per task."""
        return [np.random.default_rng(child) for child in self._seed_sequence.spawn(count)]

    def run(self) -> RunHistory:
        """
        Run the search until convergence.

        Returns:
            RunHistory with one record per generation

        Raises:
            WorkerFailure: If any evaluation task fails
        """
        settings = self.settings
        context = EvaluationContext(self.evaluator, self.corpus, self.distance_matrix)

        logger.info("Starting evolution: population %d, %d elites x %d offspring, "
                    "stagnation limit %d, %d %s workers",
                    settings.population_size, settings.elite_count, settings.offspring_per_elite,
                    settings.stagnation_limit, settings.workers, settings.backend)

        with EvaluationPool(context, workers=settings.workers, backend=settings.backend) as pool:
            self._seed(pool)
            while True:
                self._select()
                if self.state is ControllerState.CONVERGED:
                    break
                self._reproduce(pool)

        logger.info("Finished after %d generations (%s); best fitness %.6f",
                    self.generation, "converged" if self.history.converged else "generation cap",
                    self.history.best.fitness)
        return self.history

    def _seed(self, pool: EvaluationPool) -> None:
        self.state = ControllerState.SEEDING
        layouts = [Layout.random(rng) for rng in self._spawn_rngs(self.settings.population_size)]
        pool.submit_batch(layouts)
        self._evaluate(pool, len(layouts))

    def _evaluate(self, pool: EvaluationPool, expected: int) -> None:
        self.state = ControllerState.EVALUATING
        self.population.extend(pool.collect(expected))

    def _select(self) -> None:
        self.state = ControllerState.SELECTING
        settings = self.settings

        elites = self.population.select(settings.elite_count)
        best = elites[0]

        if self._last_best is not None and best.fitness == self._last_best:
            self._stagnant += 1
        else:
            self._stagnant = 0
        self._last_best = best.fitness

        record = GenerationRecord(
            generation=self.generation,
            best_fitness=best.fitness,
            best_distance=best.total_distance,
            stagnant_generations=self._stagnant,
            best=best,
        )
        self.history.append(record)
        logger.info("Generation %d: best fitness %.6f, distance %.3f, unchanged for %d",
                    record.generation, record.best_fitness, record.best_distance_units, self._stagnant)
        if self.on_generation is not None:
            self.on_generation(record)

        if self._stagnant >= settings.stagnation_limit:
            self.history.converged = True
            self.state = ControllerState.CONVERGED
        elif settings.max_generations is not None and self.generation >= settings.max_generations:
            self.state = ControllerState.CONVERGED

    def _reproduce(self, pool: EvaluationPool) -> None:
        self.state = ControllerState.REPRODUCING
        per_elite = self.settings.offspring_per_elite
        rngs = iter(self._spawn_rngs(len(self.population) * per_elite))

        offspring = [
            self.mutation.mutate(parent.layout, next(rngs))
            for parent in self.population
            for _ in range(per_elite)
        ]
        pool.submit_batch(offspring)
        self._evaluate(pool, len(offspring))
        self.generation += 1
