# evolver/__init__.py
"""
Keyboard Layout Evolver

Evolutionary search for 26-key, 8-finger keyboard layouts that minimize
finger travel, same-finger and same-hand repeats, and workload imbalance.
"""

__version__ = "1.0.0"

# Import main classes for easy access
from .controller import EvolutionSettings, GenerationController, RunHistory
from .errors import (ConfigurationError, EvaluationDegenerate, EvolverError, InputError,
                     InvalidCharacter, WorkerFailure)
from .evaluation_pool import EvaluationPool
from .fitness import EvaluationResult, FitnessEvaluator, FitnessWeights
from .geometry import DistanceModel, build_distance_matrix
from .layout_utils import Layout
from .mutation import MutationOperator
from .population import Population
from .text_utils import Corpus, load_corpus

__all__ = [
    'Corpus',
    'ConfigurationError',
    'DistanceModel',
    'EvaluationDegenerate',
    'EvaluationPool',
    'EvaluationResult',
    'EvolutionSettings',
    'EvolverError',
    'FitnessEvaluator',
    'FitnessWeights',
    'GenerationController',
    'InputError',
    'InvalidCharacter',
    'Layout',
    'MutationOperator',
    'Population',
    'RunHistory',
    'WorkerFailure',
    'build_distance_matrix',
    'load_corpus',
]
