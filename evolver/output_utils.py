#!/usr/bin/env python3
"""
Output utilities for keyboard layout evolution.

Common functions for displaying layouts, formatting evaluation results in
various formats, and writing run histories to disk.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from evolver.controller import GenerationRecord, RunHistory
from evolver.fitness import EvaluationResult
from evolver.geometry import FINGER_NAMES
from evolver.layout_utils import Layout

logger = logging.getLogger(__name__)

FITNESS_FILENAME = 'fitness.txt'
DISTANCE_FILENAME = 'distance.txt'
HISTORY_FILENAME = 'history.csv'
BEST_LAYOUT_FILENAME = 'best_layout.txt'


def format_layout(layout: Layout, uppercase: bool = True) -> str:
    """
    Draw a layout on the 8/10/8 key grid.

    The top and bottom rows have a gap between the hands; the home row
    spans all ten columns.

    Args:
        layout: Layout to draw
        uppercase: If True, show letters in uppercase

    Returns:
        Three-line string
    """
    top, home, bottom = layout.rows()
    if uppercase:
        top, home, bottom = top.upper(), home.upper(), bottom.upper()
    return "\n".join([
        " " + top[:4] + "  " + top[4:],
        home[:5] + "  " + home[5:],
        bottom[:4] + "    " + bottom[4:],
    ])


def format_generation(record: GenerationRecord) -> str:
    """Layout grid of a generation's best, with fitness beside the home row."""
    lines = format_layout(record.best.layout).split("\n")
    lines[1] += f" - Fitness: {record.best_fitness:.6f}"
    header = f"Generation {record.generation} (distance {record.best_distance_units:.3f}, " \
             f"unchanged {record.stagnant_generations})"
    return "\n".join([header] + lines) + "\n"


def print_generation(record: GenerationRecord, show_every: int = 1, file=None) -> None:
    """Print a generation report every ``show_every`` generations."""
    if show_every < 1 or record.generation % show_every:
        return
    print(format_generation(record), file=file or sys.stdout)


def format_csv_output(result: EvaluationResult,
                      config: Optional[Dict[str, Any]] = None,
                      name: Optional[str] = None) -> str:
    """
    Format an evaluation result as CSV (header plus one row).

    Args:
        result: EvaluationResult to format
        config: Output format configuration (delimiter, precision)
        name: Optional layout name for the first column

    Returns:
        CSV formatted string
    """
    config = config or {}
    delimiter = config.get('delimiter', ',')
    precision = config.get('precision', 6)

    row = result.to_dict()
    if name is not None:
        row = {'name': name, **row}

    values = []
    for value in row.values():
        if isinstance(value, float):
            values.append(f"{value:.{precision}f}")
        else:
            values.append(str(value))
    return delimiter.join(row.keys()) + "\n" + delimiter.join(values)


def format_score_only_output(result: EvaluationResult, precision: int = 6) -> str:
    return f"{result.fitness:.{precision}f} {result.total_distance}"


def format_detailed_output(result: EvaluationResult, name: Optional[str] = None) -> str:
    """
    Format an evaluation result as detailed human-readable output.

    Args:
        result: EvaluationResult to format
        name: Optional layout name for the header

    Returns:
        Formatted detailed output string
    """
    lines = []
    if name:
        lines.append(f"{name}")
        lines.append("=" * 50)
    lines.append(format_layout(result.layout))
    lines.append("")
    lines.append("Scores:")
    lines.append(f"  {'Fitness':<28}: {result.fitness:12.6f}")
    for component, score in result.components.items():
        component_name = component.replace('_', ' ').capitalize()
        lines.append(f"  {component_name:<28}: {score:12.6f}")

    lines.append("")
    lines.append("Counts:")
    lines.append(f"  {'Keystrokes':<28}: {result.keystrokes:12d}")
    lines.append(f"  {'Total distance (key widths)':<28}: {result.distance_units:12.3f}")
    lines.append(f"  {'Same-finger repeats':<28}: {result.finger_repeats:12d}")
    lines.append(f"  {'Same-hand repeats':<28}: {result.hand_repeats:12d}")

    if result.keystrokes:
        lines.append("")
        lines.append("Finger usage:")
        for finger, count in zip(FINGER_NAMES, result.finger_usage):
            lines.append(f"  {finger:<4}: {count:8d} ({count / result.keystrokes:6.1%})")

    if result.degenerate_terms:
        lines.append("")
        lines.append(f"Clamped degenerate terms: {', '.join(result.degenerate_terms)}")

    return "\n".join(lines)


def print_results(result: EvaluationResult,
                  output_format: str = "detailed",
                  name: Optional[str] = None,
                  config: Optional[Dict[str, Any]] = None,
                  file=None) -> None:
    """
    Print an evaluation result in the specified format.

    Args:
        result: EvaluationResult to print
        output_format: Format type ('detailed', 'csv', 'score_only')
        name: Optional layout name
        config: Output format configuration
        file: File object to write to (defaults to stdout)
    """
    if file is None:
        file = sys.stdout

    if output_format == "csv":
        output = format_csv_output(result, config, name)
    elif output_format == "score_only":
        output = format_score_only_output(result)
    elif output_format == "detailed":
        output = format_detailed_output(result, name)
    else:
        raise ValueError(f"Unknown output format: {output_format}")

    print(output, file=file)


def format_comparison_output(results: Sequence[EvaluationResult], names: Sequence[str]) -> str:
    """Rank several evaluated layouts by fitness."""
    if len(names) != len(results):
        raise ValueError("Number of layout names must match number of results")

    lines = ["Layout comparison", "=" * 70]
    ranked = sorted(zip(names, results), key=lambda x: x[1].fitness, reverse=True)
    for i, (name, result) in enumerate(ranked):
        lines.append(f"  #{i + 1:2d} {name:<20}: fitness {result.fitness:12.6f}   "
                     f"distance {result.distance_units:12.3f}")
    return "\n".join(lines)


def history_to_dataframe(history: RunHistory) -> pd.DataFrame:
    """One row per generation."""
    return pd.DataFrame({
        'generation': [record.generation for record in history.records],
        'best_fitness': history.fitness,
        'best_distance': history.distance,
        'stagnant_generations': [record.stagnant_generations for record in history.records],
        'best_layout': [record.best.layout.to_letters() for record in history.records],
    })


def _write_values(path: Path, values: List[float], decimal_separator: str) -> None:
    with open(path, 'w', encoding='utf-8') as f:
        for value in values:
            f.write(repr(float(value)).replace('.', decimal_separator) + "\n")


def save_run_history(history: RunHistory,
                     output_dir: str,
                     decimal_separator: str = '.') -> List[Path]:
    """
    Write the fitness and distance sequences and the history table.

    Args:
        history: Completed run history
        output_dir: Directory for the files (created if missing)
        decimal_separator: Decimal mark for the plain-text sequences

    Returns:
        Paths of the files written
    """
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)

    fitness_path = directory / FITNESS_FILENAME
    distance_path = directory / DISTANCE_FILENAME
    history_path = directory / HISTORY_FILENAME
    best_path = directory / BEST_LAYOUT_FILENAME

    _write_values(fitness_path, history.fitness, decimal_separator)
    _write_values(distance_path, history.distance, decimal_separator)
    history_to_dataframe(history).to_csv(history_path, index=False)

    with open(best_path, 'w', encoding='utf-8') as f:
        f.write(history.best.layout.to_letters() + "\n")
        f.write(format_layout(history.best.layout) + "\n")

    written = [fitness_path, distance_path, history_path, best_path]
    logger.info("Wrote run history to %s", directory)
    return written
