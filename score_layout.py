#!/usr/bin/env python3
"""
Score fixed keyboard layouts against a corpus.

(c) Arno Klein (arnoklein.info), MIT License (see LICENSE)

Evaluates reference or hand-written layouts with the same fitness function
the optimizer uses, so evolved layouts can be compared with familiar ones.

Layout Format
=============
A layout is written as 26 letters in position order on the 8/10/8 grid:
the 8 top-row keys, then the 10 home-row keys, then the 8 bottom-row keys.
Presets: qwerty, colemak (fitted to the grid).

Usage:
    # Score a preset
    python score_layout.py --corpus data/dataset.txt --layout qwerty

    # Compare presets with a layout of your own
    python score_layout.py --corpus data/dataset.txt --layout qwerty --layout colemak \\
        --layout mine:"wfpgjluyarstdhneiozxcvmkbq"

    # CSV output, saved to a file
    python score_layout.py --corpus data/dataset.txt --layout qwerty --format csv --csv scores.csv
"""

import argparse
import sys
from typing import List, Optional, Tuple

import pandas as pd

from evolver.cli_utils import add_input_arguments, handle_common_errors, load_config_with_overrides, setup_logging
from evolver.config_loader import section_config
from evolver.fitness import FitnessEvaluator, FitnessWeights
from evolver.geometry import DistanceModel
from evolver.layout_utils import REFERENCE_LAYOUTS, Layout, compare_layouts, parse_layout_argument
from evolver.output_utils import format_comparison_output, print_results
from evolver.text_utils import load_corpus_from_config


def parse_layout_specs(specs: List[str]) -> List[Tuple[str, Layout]]:
    """
    Parse ``--layout`` values.

    Each value is a preset name, a 26-letter order, or ``name:letters``.

    Returns:
        (name, Layout) pairs in command-line order
    """
    layouts = []
    for spec in specs:
        if ':' in spec:
            name, letters = spec.split(':', 1)
            layouts.append((name.strip(), parse_layout_argument(letters)))
        else:
            layouts.append((spec.strip(), parse_layout_argument(spec)))
    return layouts


def create_cli_parser() -> argparse.ArgumentParser:
    """Create command-line argument parser."""
    parser = argparse.ArgumentParser(
        description="Score fixed keyboard layouts with the optimizer's fitness function",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Presets: {', '.join(sorted(REFERENCE_LAYOUTS))}

Examples:
  python score_layout.py --corpus data/dataset.txt --layout qwerty
  python score_layout.py --corpus data/dataset.txt --letters "wfpgjluyarstdhneiozxcvmkbq"
  python score_layout.py --corpus data/dataset.txt --layout qwerty --layout colemak --format score_only
"""
    )

    add_input_arguments(parser)

    layout_group = parser.add_argument_group('Layout Definition')
    layout_group.add_argument(
        '--layout',
        action='append',
        default=[],
        help="Preset name, 26-letter order, or name:letters (repeatable)"
    )
    layout_group.add_argument(
        '--letters',
        help="26 letters in position order (top row, home row, bottom row)"
    )

    fitness_group = parser.add_argument_group('Fitness Options')
    fitness_group.add_argument(
        '--engine',
        choices=['vectorized', 'sequential'],
        help="Typing pass implementation (results are identical)"
    )

    output_group = parser.add_argument_group('Output Options')
    output_group.add_argument(
        '--format',
        dest='output_format',
        choices=['detailed', 'csv', 'score_only'],
        default='detailed',
        help="Output format (default: detailed)"
    )
    output_group.add_argument(
        '--csv',
        dest='csv_output',
        help="Also save all results to this CSV file"
    )

    return parser


@handle_common_errors
def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_cli_parser()
    args = parser.parse_args(argv)

    config = load_config_with_overrides(args, {'fitness': {'engine': args.engine}})
    setup_logging(config.get('common', {}).get('log_level', 'INFO'), quiet=args.quiet)

    layouts = parse_layout_specs(args.layout)
    if args.letters:
        layouts.append(('custom', parse_layout_argument(args.letters)))
    if not layouts:
        layouts.append(('qwerty', Layout.reference('qwerty')))

    evaluator = FitnessEvaluator(FitnessWeights.from_config(section_config(config, 'fitness')))
    corpus = load_corpus_from_config(config['corpus'], csv_column=args.csv_column)
    distance_matrix = DistanceModel.build()

    results = [evaluator.evaluate(layout, corpus, distance_matrix) for _, layout in layouts]
    names = [name for name, _ in layouts]

    for i, (name, result) in enumerate(zip(names, results)):
        if args.output_format == 'detailed' and i:
            print()
        print_results(result, args.output_format, name=name)

    if len(results) > 1 and args.output_format == 'detailed':
        print()
        print(format_comparison_output(results, names))
        reference_name, reference = layouts[0]
        for name, layout in layouts[1:]:
            comparison = compare_layouts(reference, layout)
            print(f"  {name} shares {comparison['identical_positions']} of {len(layout.keys)} "
                  f"key positions with {reference_name}")

    if args.csv_output:
        rows = [{'name': name, **result.to_dict()} for name, result in zip(names, results)]
        pd.DataFrame(rows).to_csv(args.csv_output, index=False)
        if not args.quiet:
            print(f"\nSaved {len(rows)} results to {args.csv_output}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
