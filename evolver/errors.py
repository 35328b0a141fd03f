#!/usr/bin/env python3
"""
Exception types for the keyboard layout evolver.

Every error raised on purpose by the package derives from EvolverError.
Configuration and input problems also derive from ValueError so callers
that only know about the standard library still catch them.
"""

from typing import Optional


class EvolverError(Exception):
    """Base class for all evolver errors."""

    stage = "run"


class ConfigurationError(EvolverError, ValueError):
    """Malformed settings or fixed-layout mapping (not a bijection)."""

    stage = "configuration"


class InputError(EvolverError, ValueError):
    """Corpus could not be read or is unusable."""

    stage = "input"


class InvalidCharacter(InputError):
    """Corpus contains a character outside a-z and newline."""

    def __init__(self, char: str, offset: int):
        self.char = char
        self.offset = offset
        super().__init__(f"Invalid character {char!r} at offset {offset} "
                         f"(only a-z and newline are allowed)")


class EvaluationDegenerate(EvolverError, ArithmeticError):
    """A layout cannot be scored because the corpus has no keystrokes."""

    stage = "evaluation"


class WorkerFailure(EvolverError, RuntimeError):
    """A dispatched evaluation task failed inside the worker pool."""

    stage = "worker pool"

    def __init__(self, message: str, sequence: Optional[int] = None):
        self.sequence = sequence
        super().__init__(message)
