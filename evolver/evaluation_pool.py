#!/usr/bin/env python3
"""
Worker pool that evaluates layouts concurrently.

The controller is the only producer and the only consumer. Layouts are
submitted without blocking; each finished task drops its future on a
completion queue, and collect() blocks until exactly the expected number of
results has come back. Results arrive in completion order, not submission
order; each one carries the sequence number it was submitted under.

Two backends are available:
  - thread: a ThreadPoolExecutor sharing the corpus and distance matrix
  - process: a ProcessPoolExecutor; the corpus and distance matrix are sent
    to each worker process once, by the pool initializer

There is no timeout or cancellation. A task that raises aborts the run
with WorkerFailure, since a generation cannot be ranked on partial results.
"""

import logging
import queue
from concurrent.futures import Future, ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

import numpy as np

from evolver.errors import ConfigurationError, WorkerFailure
from evolver.fitness import EvaluationResult, FitnessEvaluator
from evolver.layout_utils import Layout
from evolver.text_utils import Corpus

logger = logging.getLogger(__name__)

BACKENDS = ('thread', 'process')


@dataclass(frozen=True)
class EvaluationTask:
    sequence: int
    layout: Layout


@dataclass(frozen=True, eq=False)
class EvaluationContext:
    """Read-only state shared by every task."""

    evaluator: FitnessEvaluator
    corpus: Corpus
    distance_matrix: np.ndarray


def run_task(context: EvaluationContext, task: EvaluationTask) -> EvaluationResult:
    result = context.evaluator.evaluate(task.layout, context.corpus, context.distance_matrix)
    return result.with_sequence(task.sequence)


# Set once per worker process by _init_worker()
_WORKER_CONTEXT: Optional[EvaluationContext] = None


def _init_worker(context: EvaluationContext) -> None:
    global _WORKER_CONTEXT
    _WORKER_CONTEXT = context


def _run_in_worker(task: EvaluationTask) -> EvaluationResult:
    return run_task(_WORKER_CONTEXT, task)


class EvaluationPool:
    """Fixed-size pool with a completion channel drained by count."""

    def __init__(self, context: EvaluationContext, workers: int = 8, backend: str = 'thread'):
        """
        Start the pool.

        Args:
            context: Evaluator, corpus and distance matrix shared by all tasks
            workers: Number of worker threads or processes
            backend: 'thread' or 'process'

        Raises:
            ConfigurationError: If workers < 1 or backend is unknown
        """
        if workers < 1:
            raise ConfigurationError(f"Worker count must be at least 1, got {workers}")
        if backend not in BACKENDS:
            raise ConfigurationError(f"Unknown pool backend '{backend}'. Available: {list(BACKENDS)}")

        self.context = context
        self.workers = workers
        self.backend = backend

        if backend == 'process':
            self._executor = ProcessPoolExecutor(max_workers=workers,
                                                 initializer=_init_worker,
                                                 initargs=(context,))
        else:
            self._executor = ThreadPoolExecutor(max_workers=workers,
                                                thread_name_prefix='evaluator')

        self._completed: "queue.Queue[Future]" = queue.Queue()
        self._sequences: Dict[Future, int] = {}
        self._outstanding = 0
        self._next_sequence = 0
        logger.debug("Started %s pool with %d workers", backend, workers)

    @property
    def outstanding(self) -> int:
        """Tasks submitted but not yet collected."""
        return self._outstanding

    def submit(self, layout: Layout) -> int:
        """
        Queue one layout for evaluation without waiting for it.

        Returns:
            Sequence number of the task
        """
        task = EvaluationTask(self._next_sequence, layout)
        self._next_sequence += 1

        if self.backend == 'process':
            future = self._executor.submit(_run_in_worker, task)
        else:
            future = self._executor.submit(run_task, self.context, task)

        self._sequences[future] = task.sequence
        self._outstanding += 1
        future.add_done_callback(self._completed.put)
        return task.sequence

    def submit_batch(self, layouts: Iterable[Layout]) -> int:
        """Queue several layouts; returns how many were submitted."""
        submitted = 0
        for layout in layouts:
            self.submit(layout)
            submitted += 1
        logger.debug("Submitted %d tasks (%d outstanding)", submitted, self._outstanding)
        return submitted

    def collect(self, expected: int) -> List[EvaluationResult]:
        """
        Block until ``expected`` results have completed.

        Args:
            expected: Number of results to wait for

        Returns:
            Results in completion order

        Raises:
            ValueError: If more results are expected than were submitted
            WorkerFailure: If any task raised
        """
        if expected > self._outstanding:
            raise ValueError(f"Expected {expected} results but only {self._outstanding} tasks are outstanding")

        results = []
        while len(results) < expected:
            future = self._completed.get()
            sequence = self._sequences.pop(future)
            self._outstanding -= 1

            error = future.exception()
            if error is not None:
                raise WorkerFailure(f"Evaluation task {sequence} failed: {error}", sequence) from error
            results.append(future.result())
        return results

    def close(self) -> None:
        self._executor.shutdown(wait=True, cancel_futures=True)

    def __enter__(self) -> 'EvaluationPool':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
