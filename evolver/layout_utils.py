#!/usr/bin/env python3
"""
Layout utilities for keyboard layout evolution.

A Layout is a bijection from the 26 lowercase letters to the 26 key
positions of the modeled keyboard. It is stored as a read-only numpy array
indexed by letter (``a`` = 0) whose values are positions. Every way of
building a Layout goes through validate_layout_array(), so a Layout that
exists is always a permutation.
"""

import string
from typing import Dict, List, Mapping, Optional, Union

import numpy as np

from evolver.errors import ConfigurationError
from evolver.geometry import NUM_POSITIONS, ROW_SLICES

ALPHABET = string.ascii_lowercase

# Letter orders (position 0 first) for reference layouts fitted to the
# 8/10/8 grid. Letters without a slot on the grid fill the leftover keys.
REFERENCE_LAYOUTS = {
    'qwerty': 'wertyuio' + 'asdfghjklp' + 'zxcvbnmq',
    'colemak': 'wfpgjluy' + 'arstdhneio' + 'zxcvmkbq',
}


def validate_layout_array(keys: np.ndarray) -> List[str]:
    """
    Check that a letter -> position array is a full permutation.

    Args:
        keys: Array indexed by letter holding positions

    Returns:
        List of validation error messages (empty if valid)
    """
    issues = []

    if keys.shape != (NUM_POSITIONS,):
        issues.append(f"Layout must have {NUM_POSITIONS} entries, got shape {keys.shape}")
        return issues

    out_of_range = [int(p) for p in keys if p < 0 or p >= NUM_POSITIONS]
    if out_of_range:
        issues.append(f"Positions out of range: {out_of_range}")

    counts = np.bincount(keys[(keys >= 0) & (keys < NUM_POSITIONS)], minlength=NUM_POSITIONS)
    duplicates = [int(p) for p in np.flatnonzero(counts > 1)]
    if duplicates:
        issues.append(f"Duplicate positions: {duplicates}")
    missing = [int(p) for p in np.flatnonzero(counts == 0)]
    if missing:
        issues.append(f"Unassigned positions: {missing}")

    return issues


class Layout:
    """Immutable letter -> position permutation."""

    __slots__ = ('_keys',)

    def __init__(self, keys: Union[np.ndarray, List[int]]):
        try:
            raw = np.asarray(keys)
        except (TypeError, ValueError, OverflowError) as e:
            raise ConfigurationError(f"Invalid layout: {e}")
        if raw.size and not np.issubdtype(raw.dtype, np.integer):
            raise ConfigurationError(f"Invalid layout: positions must be integers, got {raw.dtype}")

        # Range is checked on the wide array; int8 would wrap or overflow
        issues = validate_layout_array(raw.astype(np.int64))
        if issues:
            raise ConfigurationError("Invalid layout: " + "; ".join(issues))
        array = raw.astype(np.int8)
        array.setflags(write=False)
        self._keys = array

    @classmethod
    def random(cls, rng: np.random.Generator) -> 'Layout':
        """Uniformly random permutation drawn from ``rng``."""
        return cls(rng.permutation(NUM_POSITIONS))

    @classmethod
    def from_fixed_mapping(cls, mapping: Union[str, Mapping[str, int]]) -> 'Layout':
        """
        Build a Layout from an explicit letter ordering.

        Args:
            mapping: Either a 26-letter string in position order (the letter
                typed at position 0 first) or a dict mapping each letter
                to its position

        Returns:
            Layout for the mapping

        Raises:
            ConfigurationError: If the mapping is not a bijection of a-z
                onto the 26 positions
        """
        if isinstance(mapping, str):
            letters = mapping.strip().lower()
            if len(letters) != NUM_POSITIONS:
                raise ConfigurationError(
                    f"Layout needs {NUM_POSITIONS} letters, got {len(letters)}: '{letters}'"
                )
            mapping = {char: position for position, char in enumerate(letters)}
            if len(mapping) != NUM_POSITIONS:
                repeated = sorted({c for c in letters if letters.count(c) > 1})
                raise ConfigurationError(f"Repeated letters in layout: {repeated}")

        unknown = sorted(char for char in mapping if char not in ALPHABET)
        if unknown:
            raise ConfigurationError(f"Characters outside a-z in layout: {unknown}")
        missing = [char for char in ALPHABET if char not in mapping]
        if missing:
            raise ConfigurationError(f"Letters missing from layout: {missing}")

        return cls([mapping[char] for char in ALPHABET])

    @classmethod
    def reference(cls, name: str) -> 'Layout':
        """Look up one of the REFERENCE_LAYOUTS by name."""
        if name not in REFERENCE_LAYOUTS:
            available = sorted(REFERENCE_LAYOUTS)
            raise ConfigurationError(f"Unknown reference layout '{name}'. Available: {available}")
        return cls.from_fixed_mapping(REFERENCE_LAYOUTS[name])

    @property
    def keys(self) -> np.ndarray:
        """Read-only letter -> position array."""
        return self._keys

    def to_letters(self) -> str:
        """Letters in position order; the inverse of from_fixed_mapping()."""
        inverse = np.empty(NUM_POSITIONS, dtype=np.int8)
        inverse[self._keys] = np.arange(NUM_POSITIONS, dtype=np.int8)
        return ''.join(ALPHABET[i] for i in inverse)

    def rows(self) -> List[str]:
        """Letters of each keyboard row, left to right."""
        letters = self.to_letters()
        return [letters[row] for row in ROW_SLICES]

    def __eq__(self, other):
        if not isinstance(other, Layout):
            return NotImplemented
        return bool(np.array_equal(self._keys, other._keys))

    def __hash__(self):
        return hash(self._keys.tobytes())

    def __repr__(self):
        return f"Layout('{self.to_letters()}')"

    def __getstate__(self):
        return self._keys.tolist()

    def __setstate__(self, state):
        array = np.array(state, dtype=np.int8)
        array.setflags(write=False)
        self._keys = array


def compare_layouts(layout1: Layout, layout2: Layout) -> Dict[str, object]:
    """
    Compare two layouts and return the letters placed differently.

    Args:
        layout1: First layout
        layout2: Second layout

    Returns:
        Dictionary with the differing letters and their positions
    """
    position_diffs = [
        (char, int(p1), int(p2))
        for char, p1, p2 in zip(ALPHABET, layout1.keys, layout2.keys)
        if p1 != p2
    ]
    return {
        'position_differences': position_diffs,
        'identical_positions': NUM_POSITIONS - len(position_diffs),
        'similarity_ratio': (NUM_POSITIONS - len(position_diffs)) / NUM_POSITIONS,
    }


def parse_layout_argument(value: str, fallback: Optional[str] = None) -> Layout:
    """Build a Layout from a preset name or a literal 26-letter order."""
    value = (value or fallback or '').strip()
    if value.lower() in REFERENCE_LAYOUTS:
        return Layout.reference(value.lower())
    return Layout.from_fixed_mapping(value)
