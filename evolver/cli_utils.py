#!/usr/bin/env python3
"""
CLI utilities for the keyboard layout evolver.

Common functions for command-line argument parsing, logging setup,
applying command-line overrides to the configuration, and turning fatal
errors into a diagnostic plus exit code.
"""

import argparse
import functools
import logging
import sys
import traceback
from typing import Any, Dict, Optional

from evolver.config_loader import load_config
from evolver.errors import EvolverError

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def setup_logging(level: str = 'INFO', quiet: bool = False) -> None:
    """Configure root logging for a command-line run."""
    if quiet:
        level = 'WARNING'
    numeric = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric, int):
        numeric = logging.INFO
    logging.basicConfig(level=numeric, format=LOG_FORMAT, force=True)


def add_input_arguments(parser: argparse.ArgumentParser) -> None:
    """Add standard configuration and corpus arguments."""
    input_group = parser.add_argument_group('Input Options')

    input_group.add_argument(
        '--config',
        dest='config',
        default=None,
        help="Path to configuration file (default: config.yaml if present, else built-in defaults)"
    )

    input_group.add_argument(
        '--corpus', '--text-file',
        dest='corpus',
        help="Path to corpus text file (overrides config)"
    )

    input_group.add_argument(
        '--csv-column',
        dest='csv_column',
        type=int,
        help="Treat the corpus as CSV and use this zero-based column as text"
    )

    input_group.add_argument(
        '--policy',
        dest='policy',
        choices=['strict', 'filter'],
        help="Corpus character policy: reject (strict) or drop (filter) non-letters"
    )

    input_group.add_argument(
        '--max-chars',
        dest='max_chars',
        type=int,
        help="Use only the first N characters of the corpus"
    )

    input_group.add_argument(
        '--quiet',
        dest='quiet',
        action='store_true',
        help="Suppress progress output"
    )


def load_config_with_overrides(args: argparse.Namespace,
                               overrides: Optional[Dict[str, Dict[str, Any]]] = None) -> Dict[str, Any]:
    """
    Load the configuration file and apply command-line overrides.

    Args:
        args: Parsed arguments (uses ``config``, ``corpus``, ``policy``, ``max_chars``)
        overrides: Extra ``{section: {key: value}}`` values; None values are skipped

    Returns:
        Full configuration dictionary
    """
    config = load_config(args.config)

    corpus_overrides = {
        'path': getattr(args, 'corpus', None),
        'policy': getattr(args, 'policy', None),
        'max_chars': getattr(args, 'max_chars', None),
    }
    sections = {'corpus': corpus_overrides}
    for section, values in (overrides or {}).items():
        sections.setdefault(section, {}).update(values)

    for section, values in sections.items():
        for key, value in values.items():
            if value is not None:
                config.setdefault(section, {})[key] = value

    return config


def handle_common_errors(func):
    """
    Decorator to handle common CLI errors gracefully.

    Evolver errors are reported with the stage that failed (configuration,
    input, evaluation or worker pool).

    Args:
        func: Function to wrap (typically main())

    Returns:
        Wrapped function with error handling
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            print("\nOperation cancelled by user.", file=sys.stderr)
            return 130
        except EvolverError as e:
            print(f"Error during {e.stage} stage: {e}", file=sys.stderr)
            if e.__cause__ is not None:
                print(f"  caused by: {e.__cause__!r}", file=sys.stderr)
            return 1
        except FileNotFoundError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        except PermissionError as e:
            print(f"Permission error: {e}", file=sys.stderr)
            return 1
        except Exception as e:
            print(f"Unexpected error: {e}", file=sys.stderr)
            traceback.print_exc()
            return 1

    return wrapper
