"""
Configuration & Constants
=========================
This module serves as the central registry for global constants and the
location of the saved application state.

Why is this file needed?
------------------------
1. Abstraction: It prevents magic numbers (grid size, palette, debounce
   intervals) from being scattered throughout the code.
2. Deployment: It resolves where the state snapshot lives, honouring the
   TABLEVISUALIZER_STATE environment variable.

Exports:
    GRID_SIZE (int): Number of rows/columns of every table.
    TABLE_COUNT (int): Number of table slots.
    TABLE_COLORS (tuple[str, ...]): Display colour per slot index.
    DEFAULT_STATE_PATH (Path): Default location of the JSON state snapshot.
"""
import os
from pathlib import Path
from typing import Union

# Grid / slots
GRID_SIZE: int = 16
TABLE_COUNT: int = 8
TABLE_COLORS: tuple[str, ...] = (
    "#6c63ff", "#ff6384", "#36d399", "#f5a623",
    "#00bcd4", "#e040fb", "#ff5252", "#8bc34a",
)

# Revision source used for a pasted (custom) base table instead of a slot
CUSTOM_SOURCE: int = -1
CUSTOM_SOURCE_COLOR: str = "#888888"

# Rendering boundary
SURFACE_MAX_HEIGHT: float = 6.0

# Heatmap
HEATMAP_ALPHA: float = 0.6
HEATMAP_MIN_RANGE: float = 1e-6
LIGHT_TEXT_COLOR: str = "#fff"
DARK_TEXT_COLOR: str = "#000"

# Text format
VALUE_DECIMALS: int = 3

# Debounce intervals (milliseconds)
NAME_DEBOUNCE_MS: int = 300
AXIS_DEBOUNCE_MS: int = 400
RECOMPUTE_DEBOUNCE_MS: int = 300

STATE_ENV_VAR: str = "TABLEVISUALIZER_STATE"


def slot_color(index: int) -> str:
    """Palette colour for a slot index (palette wraps)."""
    return TABLE_COLORS[index % len(TABLE_COLORS)]


def default_table_name(index: int) -> str:
    return f"Table {index + 1}"


def get_state_path(override: Union[str, Path, None] = None) -> Path:
    """
    Resolve the JSON state file location.
    Priority: explicit override > environment variable > home directory.
    """
    if override:
        return Path(override)
    env_path = os.environ.get(STATE_ENV_VAR)
    if env_path:
        return Path(env_path)
    return Path.home() / ".tablevisualizer" / "state.json"


DEFAULT_STATE_PATH: Path = get_state_path()
