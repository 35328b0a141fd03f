#!/usr/bin/env python3
"""
Text utilities for keyboard layout evolution.

Loads the typing corpus, enforces the character policy, and precomputes the
arrays the fitness evaluator walks over. The evaluator only understands the
lowercase letters a-z and newline (which returns the hands to rest).

Two policies decide what happens to anything else:
  - strict: the first disallowed character raises InvalidCharacter
  - filter: text is lowercased and disallowed characters are dropped
"""

import csv
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import numpy as np

from evolver.errors import ConfigurationError, InputError, InvalidCharacter
from evolver.layout_utils import ALPHABET

logger = logging.getLogger(__name__)

CORPUS_POLICIES = ('strict', 'filter')
ALLOWED_CHARS = frozenset(ALPHABET + '\n')


def normalize_line_endings(text: str) -> str:
    """Convert Windows and old Mac line endings to '\\n'."""
    return text.replace('\r\n', '\n').replace('\r', '\n')


def clean_text_for_analysis(text: str) -> str:
    """
    Lowercase text and keep only letters and line breaks.

    Args:
        text: Input text to clean

    Returns:
        Text containing only a-z and newline
    """
    if not text:
        return ""
    lowered = normalize_line_endings(text).lower()
    return ''.join(char for char in lowered if char in ALLOWED_CHARS)


def validate_text_input(text: str) -> None:
    """
    Raise InvalidCharacter at the first character outside a-z and newline.
    """
    for offset, char in enumerate(text):
        if char not in ALLOWED_CHARS:
            raise InvalidCharacter(char, offset)


@dataclass(frozen=True, eq=False)
class Corpus:
    """
    Validated typing corpus shared read-only by every evaluation.

    ``letters`` holds the letter index of each keystroke and ``line_ids``
    the line it belongs to, so newlines are implicit in line changes.
    """

    text: str
    letters: np.ndarray = field(repr=False)
    line_ids: np.ndarray = field(repr=False)

    @classmethod
    def from_text(cls, text: str, policy: str = 'strict') -> 'Corpus':
        """
        Build a corpus from a decoded string.

        Args:
            text: Corpus text
            policy: 'strict' or 'filter' (see module docstring)

        Returns:
            Corpus instance (possibly with zero keystrokes)

        Raises:
            InvalidCharacter: If policy is strict and text has other characters
            ConfigurationError: If policy is unknown
        """
        if policy not in CORPUS_POLICIES:
            raise ConfigurationError(f"Unknown corpus policy '{policy}'. Available: {list(CORPUS_POLICIES)}")

        text = normalize_line_endings(text)
        if policy == 'filter':
            text = clean_text_for_analysis(text)
        else:
            validate_text_input(text)

        codes = np.frombuffer(text.encode('ascii'), dtype=np.uint8)
        newlines = codes == ord('\n')
        line_ids = np.cumsum(newlines)[~newlines].astype(np.int32)
        letters = (codes[~newlines] - ord('a')).astype(np.int8)

        letters.setflags(write=False)
        line_ids.setflags(write=False)
        return cls(text=text, letters=letters, line_ids=line_ids)

    @property
    def keystrokes(self) -> int:
        return int(self.letters.size)

    @property
    def line_count(self) -> int:
        return self.text.count('\n') + (0 if self.text.endswith('\n') or not self.text else 1)

    def __len__(self):
        return len(self.text)


def read_text_file(path: str) -> str:
    """Read a UTF-8 text file, wrapping OS errors in InputError."""
    try:
        with open(path, 'r', encoding='utf-8', newline='') as f:
            return f.read()
    except FileNotFoundError:
        raise InputError(f"Corpus file not found: {path}")
    except (OSError, UnicodeDecodeError) as e:
        raise InputError(f"Could not read corpus file {path}: {e}")


def load_corpus(path: str,
                policy: str = 'strict',
                max_chars: Optional[int] = None) -> Corpus:
    """
    Load and validate a corpus file.

    Args:
        path: Path to a plain-text corpus
        policy: Character policy ('strict' or 'filter')
        max_chars: If set, keep only the first max_chars characters

    Returns:
        Corpus with at least one keystroke

    Raises:
        InputError: If the file is unreadable or has no keystrokes
        InvalidCharacter: If the strict policy rejects a character
    """
    text = read_text_file(path)
    if max_chars is not None:
        text = text[:max_chars]

    corpus = Corpus.from_text(text, policy=policy)
    if corpus.keystrokes == 0:
        raise InputError(f"Corpus has no keystrokes: {path}")

    logger.info("Loaded corpus %s: %d characters, %d keystrokes, %d lines",
                Path(path).name, len(corpus), corpus.keystrokes, corpus.line_count)
    return corpus


def load_corpus_from_config(config: dict, csv_column: Optional[int] = None) -> Corpus:
    """
    Load the corpus described by the ``corpus`` configuration section.

    Args:
        config: Section with ``path``, ``policy`` and ``max_chars``
        csv_column: If set, the file is CSV and this column is the text

    Returns:
        Corpus with at least one keystroke
    """
    path = config.get('path')
    if not path:
        raise InputError("No corpus path configured (set corpus.path or pass --corpus)")
    policy = config.get('policy', 'strict')
    max_chars = config.get('max_chars')

    if csv_column is None:
        return load_corpus(path, policy=policy, max_chars=max_chars)

    text = extract_csv_column(path, column=csv_column)
    if max_chars is not None:
        text = text[:max_chars]
    corpus = Corpus.from_text(text, policy=policy)
    if corpus.keystrokes == 0:
        raise InputError(f"Column {csv_column} of {path} has no keystrokes")
    logger.info("Extracted corpus from column %d of %s: %d keystrokes",
                csv_column, Path(path).name, corpus.keystrokes)
    return corpus


def extract_csv_column(path: str, column: int = 2, skip_header: bool = True) -> str:
    """
    Extract one column of a CSV file as corpus text.

    Each record becomes one cleaned line (letters only), so the evaluator
    returns the hands to rest between records.

    Args:
        path: Path to the CSV file (quoted fields may span lines)
        column: Zero-based column index to extract
        skip_header: If True, drop the first record

    Returns:
        Corpus text, one record per line
    """
    lines = []
    try:
        with open(path, 'r', encoding='utf-8', newline='') as f:
            reader = csv.reader(f)
            if skip_header:
                next(reader, None)
            for row in reader:
                if len(row) > column:
                    lines.append(clean_text_for_analysis(' '.join(row[column].split())))
    except FileNotFoundError:
        raise InputError(f"CSV file not found: {path}")
    except (OSError, csv.Error) as e:
        raise InputError(f"Could not read CSV file {path}: {e}")

    return '\n'.join(lines) + ('\n' if lines else '')
