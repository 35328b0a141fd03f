import pytest

from evolver.fitness import EvaluationResult
from evolver.layout_utils import Layout
from evolver.population import Population


def make_result(fitness, sequence, rng):
    return EvaluationResult(layout=Layout.random(rng), fitness=fitness, total_distance=1000, sequence=sequence)


def test_select_keeps_best(rng):
    population = Population(make_result(f, i, rng) for i, f in enumerate([3.0, 9.0, 1.0, 7.0, 5.0]))
    elites = population.select(3)
    assert [e.fitness for e in elites] == [9.0, 7.0, 5.0]
    assert len(population) == 3
    assert [member.fitness for member in population] == [9.0, 7.0, 5.0]


def test_ties_go_to_earlier_submission(rng):
    late = make_result(4.0, 10, rng)
    early = make_result(4.0, 2, rng)
    population = Population([late, early])
    population.sort()
    assert population[0] is early
    assert population.best is early


def test_select_more_than_available(rng):
    population = Population([make_result(1.0, 0, rng), make_result(2.0, 1, rng)])
    assert len(population.select(10)) == 2


def test_extend_and_iterate(rng):
    population = Population()
    population.extend([make_result(1.0, 0, rng), make_result(2.0, 1, rng)])
    assert [r.sequence for r in population] == [0, 1]
    assert population.best.fitness == 2.0


def test_truncate_rejects_empty(rng):
    population = Population([make_result(1.0, 0, rng)])
    with pytest.raises(ValueError):
        population.truncate(0)


def test_best_of_empty_population():
    with pytest.raises(IndexError):
        Population().best
