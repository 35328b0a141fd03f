import numpy as np
import pytest

from evolver.errors import ConfigurationError
from evolver.layout_utils import Layout, compare_layouts
from evolver.mutation import MutationOperator, mutate


def test_mutation_preserves_bijection(rng):
    operator = MutationOperator()
    layout = Layout.random(rng)
    for _ in range(200):
        layout = operator.mutate(layout, rng)
        assert sorted(layout.keys.tolist()) == list(range(26))


def test_parent_is_untouched(rng, identity_layout):
    before = identity_layout.keys.copy()
    MutationOperator().mutate(identity_layout, rng)
    assert np.array_equal(identity_layout.keys, before)


def test_at_least_one_swap(rng):
    operator = MutationOperator()
    counts = [operator.swap_count(rng) for _ in range(2000)]
    assert min(counts) >= 1
    # 1 + 0.75 + 0.75**3 + 0.75**6 + ... ~= 2.42
    assert 2.2 < np.mean(counts) < 2.65


def test_zero_decay_swaps_exactly_once(rng, identity_layout):
    operator = MutationOperator(decay=0.0)
    for _ in range(20):
        child = operator.mutate(identity_layout, rng)
        assert compare_layouts(identity_layout, child)['identical_positions'] == 24


def test_same_generator_state_gives_same_child(identity_layout):
    first = mutate(identity_layout, np.random.default_rng(8))
    second = mutate(identity_layout, np.random.default_rng(8))
    assert first == second


@pytest.mark.parametrize("decay", [-0.1, 1.0, 1.5])
def test_invalid_decay(decay):
    with pytest.raises(ConfigurationError):
        MutationOperator(decay)
