"""
Utility functions shared by the morphology modules and the CLI.
"""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional, Union

import yaml


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


# ============================================================================
# Settings
# ============================================================================

def load_settings(path: str) -> Dict[str, Any]:
    """Load a YAML configuration file."""
    if not os.path.exists(path):
        raise FileNotFoundError(f"Settings file not found: {path}")

    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)

    if not isinstance(data, dict):
        raise ValueError("Settings file must define a dictionary at the top level")

    return data


def setup_logging(level: Union[str, int, None] = None, verbose: bool = False) -> None:
    """
    Configure root logging once for command-line use.

    Args:
        level: Level name or number from the settings file
        verbose: Force DEBUG regardless of ``level``
    """
    if verbose:
        resolved: Union[str, int] = logging.DEBUG
    elif level is None:
        resolved = logging.INFO
    elif isinstance(level, str):
        resolved = level.upper()
    else:
        resolved = int(level)

    logging.basicConfig(level=resolved, format=LOG_FORMAT)


# ============================================================================
# Numeric helpers
# ============================================================================

def ensure_odd(value: int) -> int:
    """Force kernel sizes to be odd numbers."""
    value = max(1, int(value))
    return value if value % 2 == 1 else value + 1


def parse_color(value: Any, default: Optional[tuple] = None) -> tuple:
    """
    Turn a config value into an (r, g, b, a) tuple of ints.

    Accepts 3 or 4 components; a missing alpha means fully opaque.
    """
    if value is None:
        if default is None:
            raise ValueError("Color value is required")
        return default

    components = [int(c) for c in value]
    if len(components) == 3:
        components.append(255)
    if len(components) != 4 or any(c < 0 or c > 255 for c in components):
        raise ValueError(f"Color must have 3 or 4 components in 0-255, got {value}")

    return tuple(components)
