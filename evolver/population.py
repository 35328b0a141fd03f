#!/usr/bin/env python3
"""
Population of evaluated layouts with truncation selection.
"""

from typing import Iterable, Iterator, List, Optional

from evolver.fitness import EvaluationResult


def _rank_key(result: EvaluationResult):
    # Higher fitness first; earlier submission wins ties
    return (-result.fitness, result.sequence)


class Population:
    """Ordered collection of EvaluationResults."""

    def __init__(self, members: Optional[Iterable[EvaluationResult]] = None):
        self._members: List[EvaluationResult] = list(members or [])

    def extend(self, results: Iterable[EvaluationResult]) -> None:
        self._members.extend(results)

    def sort(self) -> None:
        """Sort descending by fitness."""
        self._members.sort(key=_rank_key)

    def truncate(self, size: int) -> None:
        """Keep only the first ``size`` members (call sort() first)."""
        if size < 1:
            raise ValueError(f"Population cannot be truncated to {size} members")
        del self._members[size:]

    def select(self, elite_count: int) -> List[EvaluationResult]:
        """Sort, truncate to ``elite_count`` and return the elites."""
        self.sort()
        self.truncate(elite_count)
        return list(self._members)

    @property
    def best(self) -> EvaluationResult:
        if not self._members:
            raise IndexError("Population is empty")
        return min(self._members, key=_rank_key)

    def __len__(self):
        return len(self._members)

    def __iter__(self) -> Iterator[EvaluationResult]:
        return iter(self._members)

    def __getitem__(self, index):
        return self._members[index]
