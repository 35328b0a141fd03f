#!/usr/bin/env python3
"""
Evolve keyboard layouts that minimize typing effort on a corpus.

(c) Arno Klein (arnoklein.info), MIT License (see LICENSE)

Searches letter-to-key permutations of a 26-key, 8-finger keyboard with a
generational evolutionary algorithm:

  - **Seeding**: a population of random layouts is scored in parallel
  - **Selection**: the best layouts (elites) are kept unchanged
  - **Reproduction**: every elite spawns mutated offspring (random key swaps)
  - **Convergence**: the run stops once the best fitness has not changed
    for a number of consecutive generations

Fitness rewards short finger travel, few same-finger and same-hand
successions, and a finger workload close to an ergonomic target.

Usage:

  # Basic usage (settings from config.yaml)
  python evolve_layout.py --corpus data/dataset.txt

  # Reproducible run with a smaller population
  python evolve_layout.py --corpus data/dataset.txt --seed 42 --population-size 200 --elite-count 20

  # Use worker processes instead of threads
  python evolve_layout.py --corpus data/dataset.txt --backend process --workers 8

  # Corpus from the third column of a CSV file, dropping non-letters
  python evolve_layout.py --corpus data/abstracts.csv --csv-column 2 --policy filter
"""

import argparse
import sys
from typing import Optional, List

from evolver.cli_utils import add_input_arguments, handle_common_errors, load_config_with_overrides, setup_logging
from evolver.config_loader import section_config
from evolver.controller import EvolutionSettings, GenerationController
from evolver.fitness import FitnessEvaluator, FitnessWeights
from evolver.geometry import DistanceModel
from evolver.output_utils import format_detailed_output, print_generation, save_run_history
from evolver.text_utils import load_corpus_from_config


def create_cli_parser() -> argparse.ArgumentParser:
    """Create command-line argument parser for the optimizer."""
    parser = argparse.ArgumentParser(
        description="Evolve keyboard layouts that minimize finger travel and repeats on a corpus",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:

  python evolve_layout.py --corpus data/dataset.txt
  python evolve_layout.py --corpus data/dataset.txt --seed 42 --stagnation 50
  python evolve_layout.py --corpus data/dataset.txt --max-generations 200 --no-plots
"""
    )

    add_input_arguments(parser)

    evolution_group = parser.add_argument_group('Evolution Options')
    evolution_group.add_argument('--seed', type=int, help="Random seed for a reproducible run")
    evolution_group.add_argument('--population-size', type=int, help="Number of random layouts to seed")
    evolution_group.add_argument('--elite-count', type=int, help="Layouts kept after each selection")
    evolution_group.add_argument('--offspring', dest='offspring_per_elite', type=int,
                                 help="Mutated offspring per elite layout")
    evolution_group.add_argument('--stagnation', dest='stagnation_limit', type=int,
                                 help="Stop after this many generations without a fitness change")
    evolution_group.add_argument('--max-generations', type=int, help="Hard cap on generations")
    evolution_group.add_argument('--workers', type=int, help="Number of parallel evaluation workers")
    evolution_group.add_argument('--backend', choices=['thread', 'process'], help="Worker pool backend")
    evolution_group.add_argument('--engine', choices=['vectorized', 'sequential'],
                                 help="Typing pass implementation (results are identical)")

    output_group = parser.add_argument_group('Output Options')
    output_group.add_argument('--output-dir', help="Directory for history files and plots")
    output_group.add_argument('--no-plots', dest='no_plots', action='store_true',
                              help="Do not save fitness and distance plots")
    output_group.add_argument('--no-history', dest='no_history', action='store_true',
                              help="Do not write history files")

    return parser


@handle_common_errors
def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_cli_parser()
    args = parser.parse_args(argv)

    config = load_config_with_overrides(args, {
        'common': {'output_dir': args.output_dir},
        'fitness': {'engine': args.engine},
        'evolution': {
            'seed': args.seed,
            'population_size': args.population_size,
            'elite_count': args.elite_count,
            'offspring_per_elite': args.offspring_per_elite,
            'stagnation_limit': args.stagnation_limit,
            'max_generations': args.max_generations,
            'workers': args.workers,
            'backend': args.backend,
        },
    })
    if args.no_plots:
        config['output']['write_plots'] = False
    if args.no_history:
        config['output']['write_history'] = False

    common = config.get('common', {})
    setup_logging(common.get('log_level', 'INFO'), quiet=args.quiet)

    # Validate every setting before touching the corpus
    weights = FitnessWeights.from_config(section_config(config, 'fitness'))
    settings = EvolutionSettings.from_config(section_config(config, 'evolution'))
    output_config = section_config(config, 'output')

    corpus = load_corpus_from_config(config['corpus'], csv_column=args.csv_column)
    distance_matrix = DistanceModel.build()

    show_every = int(output_config.get('show_every', 1))
    on_generation = None if args.quiet else (lambda record: print_generation(record, show_every))

    controller = GenerationController(
        corpus,
        distance_matrix,
        evaluator=FitnessEvaluator(weights),
        settings=settings,
        on_generation=on_generation,
    )
    history = controller.run()

    print(format_detailed_output(history.best, name=f"Best layout after {history.generations} generations"))

    output_dir = output_config.get('output_dir', 'output')
    if output_config.get('write_history', True):
        save_run_history(history, output_dir, output_config.get('decimal_separator', '.'))
    if output_config.get('write_plots', True):
        from evolver.plot_utils import plot_run_history
        plot_run_history(history, output_dir)

    return 0


if __name__ == "__main__":
    sys.exit(main())
