import pytest

from evolver.errors import ConfigurationError, WorkerFailure
from evolver.evaluation_pool import EvaluationContext, EvaluationPool
from evolver.fitness import FitnessEvaluator
from evolver.layout_utils import Layout

from conftest import FailingEvaluator


@pytest.fixture
def context(sample_corpus, distance_matrix):
    return EvaluationContext(FitnessEvaluator(), sample_corpus, distance_matrix)


def test_collect_returns_every_result(context, rng):
    layouts = [Layout.random(rng) for _ in range(20)]
    with EvaluationPool(context, workers=4) as pool:
        assert pool.submit_batch(layouts) == 20
        assert pool.outstanding == 20
        results = pool.collect(20)
        assert pool.outstanding == 0

    assert sorted(r.sequence for r in results) == list(range(20))
    by_sequence = {r.sequence: r for r in results}
    for sequence, layout in enumerate(layouts):
        assert by_sequence[sequence].layout == layout


def test_results_match_direct_evaluation(context, rng, sample_corpus, distance_matrix):
    layout = Layout.random(rng)
    with EvaluationPool(context, workers=2) as pool:
        pool.submit(layout)
        (result,) = pool.collect(1)
    direct = FitnessEvaluator().evaluate(layout, sample_corpus, distance_matrix)
    assert result.fitness == direct.fitness
    assert result.sequence == 0


def test_sequences_keep_increasing(context, rng):
    with EvaluationPool(context, workers=2) as pool:
        pool.submit_batch([Layout.random(rng) for _ in range(3)])
        pool.collect(3)
        assert pool.submit(Layout.random(rng)) == 3
        pool.collect(1)


def test_collecting_more_than_submitted(context, rng):
    with EvaluationPool(context, workers=2) as pool:
        pool.submit(Layout.random(rng))
        with pytest.raises(ValueError):
            pool.collect(2)
        pool.collect(1)


def test_task_failure_raises_worker_failure(sample_corpus, distance_matrix, rng):
    context = EvaluationContext(FailingEvaluator(), sample_corpus, distance_matrix)
    with EvaluationPool(context, workers=2) as pool:
        pool.submit(Layout.random(rng))
        with pytest.raises(WorkerFailure) as excinfo:
            pool.collect(1)
    assert excinfo.value.sequence == 0
    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_process_backend(context, rng):
    layouts = [Layout.random(rng) for _ in range(6)]
    with EvaluationPool(context, workers=2, backend='process') as pool:
        pool.submit_batch(layouts)
        results = pool.collect(6)
    assert sorted(r.sequence for r in results) == list(range(6))


@pytest.mark.parametrize("kwargs", [{'workers': 0}, {'backend': 'cluster'}])
def test_invalid_pool_settings(context, kwargs):
    with pytest.raises(ConfigurationError):
        EvaluationPool(context, **kwargs)
