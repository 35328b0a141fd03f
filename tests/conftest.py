"""Shared fixtures for the evolver tests."""

from typing import Dict

import numpy as np
import pytest

from evolver.fitness import EvaluationResult, FitnessEvaluator
from evolver.geometry import build_distance_matrix
from evolver.layout_utils import ALPHABET, Layout
from evolver.text_utils import Corpus

SAMPLE_TEXT = (
    "the quick brown fox jumps over the lazy dog\n"
    "pack my box with five dozen liquor jugs\n"
    "\n"
    "sphinx of black quartz judge my vow\n"
).replace(' ', '')


def layout_with(placement: Dict[str, int]) -> Layout:
    """Layout with the given letters pinned; the rest fill free keys in order."""
    free = [p for p in range(len(ALPHABET)) if p not in placement.values()]
    rest = [c for c in ALPHABET if c not in placement]
    mapping = dict(placement)
    mapping.update(zip(rest, free))
    return Layout.from_fixed_mapping(mapping)


class ConstantEvaluator(FitnessEvaluator):
    """Gives every layout the same fitness."""

    def evaluate(self, layout, corpus, distance_matrix):
        return EvaluationResult(layout=layout, fitness=1.0, total_distance=1000, keystrokes=1)


class FailingEvaluator(FitnessEvaluator):
    def evaluate(self, layout, corpus, distance_matrix):
        raise RuntimeError("evaluation exploded")


@pytest.fixture(scope="session")
def distance_matrix():
    return build_distance_matrix()


@pytest.fixture
def rng():
    return np.random.default_rng(12345)


@pytest.fixture(scope="session")
def sample_corpus():
    return Corpus.from_text(SAMPLE_TEXT)


@pytest.fixture
def identity_layout():
    # Letter i sits on position i
    return Layout(list(range(len(ALPHABET))))


@pytest.fixture
def evaluator():
    return FitnessEvaluator()


@pytest.fixture
def corpus_file(tmp_path):
    path = tmp_path / "corpus.txt"
    path.write_text(SAMPLE_TEXT, encoding="utf-8")
    return path
