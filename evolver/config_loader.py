#!/usr/bin/env python3
"""
Configuration loader for the keyboard layout evolver.

Provides unified configuration management using YAML files.
Handles merging of common settings with section-specific settings.
"""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from evolver.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yaml"
SECTIONS = ('common', 'corpus', 'fitness', 'evolution', 'output')

# Used when no configuration file exists, and for keys a file leaves out
DEFAULT_CONFIG: Dict[str, Dict[str, Any]] = {
    'common': {
        'output_dir': 'output',
        'log_level': 'INFO',
    },
    'corpus': {
        'path': 'data/dataset.txt',
        'policy': 'strict',
        'max_chars': 100000,
    },
    'fitness': {
        'distance_weight': 50.0,
        'finger_weight': 1.0,
        'hand_weight': 1.0,
        'max_deviation': 1.75,
        'deviation_weight': 15.0,
        'target_distribution': [0.09, 0.13, 0.14, 0.14, 0.14, 0.14, 0.13, 0.09],
        'engine': 'vectorized',
    },
    'evolution': {
        'population_size': 1000,
        'elite_count': 100,
        'offspring_per_elite': 9,
        'stagnation_limit': 100,
        'mutation_decay': 0.75,
        'workers': 8,
        'backend': 'thread',
        'seed': None,
        'max_generations': None,
    },
    'output': {
        'write_history': True,
        'write_plots': True,
        'decimal_separator': '.',
        'show_every': 1,
    },
}


class ConfigLoader:
    """Handles loading and processing of YAML configuration files."""

    def __init__(self, config_path: str = DEFAULT_CONFIG_PATH):
        """
        Initialize configuration loader.

        Args:
            config_path: Path to the YAML configuration file
        """
        self.config_path = Path(config_path)
        self._config_cache: Optional[Dict[str, Any]] = None

    def load_config(self) -> Dict[str, Any]:
        """
        Load YAML configuration file, filling gaps from DEFAULT_CONFIG.

        Returns:
            Full configuration dictionary

        Raises:
            FileNotFoundError: If configuration file doesn't exist
            ConfigurationError: If YAML parsing fails or a section is unknown
        """
        if self._config_cache is not None:
            return self._config_cache

        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Error parsing YAML configuration: {e}")

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigurationError(f"Configuration must be a mapping: {self.config_path}")

        unknown = [k for k in loaded if k not in SECTIONS]
        if unknown:
            raise ConfigurationError(f"Unknown configuration sections: {unknown}. Available: {list(SECTIONS)}")

        self._config_cache = merge_config(DEFAULT_CONFIG, loaded)
        return self._config_cache

    def get_section_config(self, section: str) -> Dict[str, Any]:
        """
        Get configuration for one section with common settings merged.

        Args:
            section: Name of the section (e.g., 'evolution')

        Returns:
            Merged configuration dictionary for the section

        Raises:
            ValueError: If section not found in configuration
        """
        full_config = self.load_config()
        return section_config(full_config, section)


def merge_config(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Return ``base`` with each section updated by ``override`` (one level deep)."""
    merged = copy.deepcopy(base)
    for section, values in override.items():
        if values is None:
            continue
        if not isinstance(values, dict):
            raise ConfigurationError(f"Section '{section}' must be a mapping, got {type(values).__name__}")
        merged.setdefault(section, {}).update(values)
    return merged


def section_config(full_config: Dict[str, Any], section: str) -> Dict[str, Any]:
    """Merge ``common`` under one section; section-specific settings take precedence."""
    if section not in full_config:
        available = [k for k in full_config.keys() if k != 'common']
        raise ValueError(f"Section '{section}' not found in configuration. Available sections: {available}")
    return {**full_config.get('common', {}), **full_config[section]}


# Global configuration loader instance
_config_loader: Optional[ConfigLoader] = None


def get_config_loader(config_path: str = DEFAULT_CONFIG_PATH) -> ConfigLoader:
    """
    Get global configuration loader instance (singleton pattern).

    Args:
        config_path: Path to configuration file

    Returns:
        ConfigLoader instance
    """
    global _config_loader

    if _config_loader is None or _config_loader.config_path.resolve() != Path(config_path).resolve():
        _config_loader = ConfigLoader(config_path)

    return _config_loader


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load the full configuration.

    Args:
        config_path: Path to configuration file. If None, DEFAULT_CONFIG_PATH
            is used when it exists, otherwise the built-in defaults

    Returns:
        Full configuration dictionary

    Raises:
        FileNotFoundError: If an explicitly given file doesn't exist
    """
    if config_path is None:
        if not Path(DEFAULT_CONFIG_PATH).exists():
            logger.warning("No %s found, using built-in defaults", DEFAULT_CONFIG_PATH)
            return copy.deepcopy(DEFAULT_CONFIG)
        config_path = DEFAULT_CONFIG_PATH
    return copy.deepcopy(get_config_loader(config_path).load_config())
