#!/usr/bin/env python3
"""
Plots of the best fitness and best distance per generation.
"""

import logging
from pathlib import Path
from typing import List, Sequence

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

from evolver.controller import RunHistory

logger = logging.getLogger(__name__)


def plot_series(values: Sequence[float], title: str, ylabel: str, output_path: Path) -> Path:
    """Save a line plot of ``values`` against generation number."""
    fig, ax = plt.subplots(figsize=(15, 10))
    ax.plot(range(len(values)), values, linewidth=1.5)
    ax.set_title(title)
    ax.set_xlabel('Generation')
    ax.set_ylabel(ylabel)
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    fig.savefig(output_path, dpi=100, bbox_inches='tight')
    plt.close(fig)
    return output_path


def plot_run_history(history: RunHistory, output_dir: str) -> List[Path]:
    """
    Save fitness.png and distance.png for a run.

    Returns:
        Paths of the saved figures
    """
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)

    paths = [
        plot_series(history.fitness, 'Fitness Score', 'Best fitness',
                    directory / 'fitness.png'),
        plot_series(history.distance, 'Distance Moved', 'Best total distance (key widths)',
                    directory / 'distance.png'),
    ]
    logger.info("Saved plots to %s", directory)
    return paths
