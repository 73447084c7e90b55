"""
Text Codec
==========
Converts between grids and the human-editable delimited text used for
pasting, copying and persisting tables.

Why is this file needed?
------------------------
1. Tolerance: pasted spreadsheet data is rarely clean. Every function here
   degrades gracefully instead of raising (bad tokens become 0, "unset" or
   are skipped, depending on the operation).
2. Round-tripping: tables are exported with exactly 3 decimals, tab
   separated, so a copy from here pastes back into the same cells.

Functions:
    parse_dense: Text -> GridBuffer (bad tokens become 0).
    parse_sparse: Text -> ModifierGrid (blank or bad tokens become unset).
    serialize_dense / serialize_sparse: Grid -> tab separated text.
    paste_region: Write a partial pasted block into an existing grid.
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Context, Decimal
import logging
import math
import re
from typing import Optional, Union

from tablevisualizer.config import GRID_SIZE, VALUE_DECIMALS
from tablevisualizer.model.grid import GridBuffer, ModifierGrid

logger = logging.getLogger(__name__)

TAB = "\t"
COMMA = ","
EXPORT_DELIMITER = TAB

_LINE_SPLIT = re.compile(r"\r?\n")
_TRAILING_NEWLINE = re.compile(r"\r?\n\Z")
_NUMBER_PREFIX = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_PASTE_JUNK = re.compile(r"[^0-9.\-]")

# wide enough for every finite float at 3 decimals
_FIXED_CONTEXT = Context(prec=400)


# ------------------------------------------------------------------------------
# Tokens
# ------------------------------------------------------------------------------

def parse_number(token: str) -> Optional[float]:
    """
    Read the leading number of a token, or None if there is none.

    Leading whitespace is skipped and trailing garbage ignored, so "12abc"
    reads as 12 and "1e3" as 1000. Non-finite results are rejected.
    """
    match = _NUMBER_PREFIX.match(token.lstrip())
    if match is None:
        return None
    value = float(match.group(0))
    if not math.isfinite(value):
        return None
    return value


def parse_cell_text(text: str) -> float:
    """Typed input for a dense cell; anything unreadable is 0."""
    value = parse_number(text)
    return 0.0 if value is None else value


def parse_modifier_text(text: str) -> Optional[float]:
    """Typed input for a modifier cell; blank or unreadable means unset."""
    if not text.strip():
        return None
    return parse_number(text)


def format_value(value: float, decimals: int = VALUE_DECIMALS) -> str:
    """
    Fixed-point text with ties rounded away from zero (0.0625 -> "0.063").
    Negative zero prints as "0.000", tiny negatives keep their sign.
    """
    if value == 0:
        value = 0.0
    # Decimal(float) is exact, so binary ties are real ties here
    quantum = Decimal(1).scaleb(-decimals)
    fixed = Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP, context=_FIXED_CONTEXT)
    return f"{fixed:f}"


def detect_delimiter(line: str) -> str:
    return TAB if TAB in line else COMMA


def _split_fields(line: str, delimiter: str) -> list[str]:
    return line.split(delimiter)


def _content_lines(text: Optional[str]) -> list[str]:
    if not text or not text.strip():
        return []
    return [line for line in _LINE_SPLIT.split(text.strip()) if line.strip()]


def _sparse_lines(text: Optional[str]) -> list[str]:
    # unset rows serialize to bare delimiters, so only truly empty lines are skipped
    if not text or not text.strip():
        return []
    return [line for line in _LINE_SPLIT.split(text) if line.strip(" ")]


# ------------------------------------------------------------------------------
# Whole-table parsing
# ------------------------------------------------------------------------------

def parse_dense(text: Optional[str], size: int = GRID_SIZE) -> Optional[GridBuffer]:
    """
    Parse delimited text into a dense grid.

    The delimiter is a tab if the first non-blank line contains one, a comma
    otherwise. Rows and columns beyond the grid size are ignored, missing
    ones stay 0, unreadable tokens become 0. Returns None for blank text.
    """
    lines = _content_lines(text)
    if not lines:
        return None

    delimiter = detect_delimiter(lines[0])
    grid = GridBuffer.zeros(size)
    for r, line in enumerate(lines[:size]):
        fields = _split_fields(line, delimiter)
        for c, field in enumerate(fields[:size]):
            grid.values[r, c] = parse_cell_text(field.strip())

    logger.debug(f"Parsed dense table from {len(lines)} line(s), delimiter={delimiter!r}")
    return grid


def parse_sparse(text: Optional[str], size: int = GRID_SIZE) -> Optional[ModifierGrid]:
    """
    Parse delimited text into a modifier grid.

    Same tokenisation as parse_dense, but blank and unreadable tokens leave
    the cell unset (no change) instead of 0. A line holding only delimiters
    is an all-unset row and keeps its place.
    """
    lines = _sparse_lines(text)
    if not lines:
        return None

    delimiter = detect_delimiter(lines[0])
    grid = ModifierGrid.empty(size)
    for r, line in enumerate(lines[:size]):
        fields = _split_fields(line, delimiter)
        for c, field in enumerate(fields[:size]):
            grid.set(r, c, parse_modifier_text(field))

    logger.debug(f"Parsed modifier table: {grid.count_defined()} cell(s) set")
    return grid


# ------------------------------------------------------------------------------
# Serialization
# ------------------------------------------------------------------------------

def serialize_dense(grid: Optional[GridBuffer]) -> str:
    """Tab separated rows with 3 decimals; empty string for no grid."""
    if grid is None:
        return ""
    return "\n".join(
        EXPORT_DELIMITER.join(format_value(v) for v in row)
        for row in grid.values.tolist()
    )


def serialize_sparse(grid: Optional[ModifierGrid]) -> str:
    """Like serialize_dense, but unset cells become empty fields."""
    if grid is None:
        return ""
    return "\n".join(
        EXPORT_DELIMITER.join(format_value(v) if d else "" for v, d in zip(row_v, row_d))
        for row_v, row_d in zip(grid.values.tolist(), grid.defined.tolist())
    )


# ------------------------------------------------------------------------------
# Region paste
# ------------------------------------------------------------------------------

def paste_region(
    text: Optional[str],
    start_r: int,
    start_c: int,
    grid: Union[GridBuffer, ModifierGrid],
) -> int:
    """
    Write a pasted block into ``grid`` anchored at (start_r, start_c).

    Each token is stripped of everything except digits, '.' and '-' before
    reading. Tokens that still do not read as numbers leave their cell
    untouched. Cells falling outside the grid are dropped.

    Returns:
        Number of cells written.
    """
    if not text:
        return 0

    # Only one trailing newline goes; leading blank lines shift the block down
    lines = _LINE_SPLIT.split(_TRAILING_NEWLINE.sub("", text, count=1))
    delimiter = detect_delimiter(text)

    written = 0
    dropped = 0
    for i, line in enumerate(lines):
        r = start_r + i
        fields = _split_fields(line, delimiter)
        if r >= grid.size or r < 0:
            dropped += len(fields)
            continue
        for j, field in enumerate(fields):
            c = start_c + j
            if c >= grid.size or c < 0:
                dropped += len(fields) - j
                break
            value = parse_number(_PASTE_JUNK.sub("", field))
            if value is None:
                continue
            grid.set(r, c, value)
            written += 1

    if dropped:
        logger.debug(f"Paste at ({start_r}, {start_c}) dropped {dropped} field(s) outside the grid")
    return written
