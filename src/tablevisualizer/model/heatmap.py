"""
Heatmap Mapper
==============
Derives a background colour and a readable text colour for every cell of a
grid from its value distribution and a base colour.

The lowest value gets the complementary ("inverse") colour of the base,
the highest value the base colour itself, everything in between a linear
blend. Text over each cell is dark or light depending on the luminance of
the blended colour.

Classes:
    CellStyle: Display style of a single coloured cell.
    Heatmap: Colours for a whole grid.
"""
from __future__ import annotations

import colorsys
from dataclasses import dataclass
import logging
from typing import Optional, Union, TYPE_CHECKING

import numpy as np
from matplotlib.colors import to_hex, to_rgb

from tablevisualizer.config import (
    DARK_TEXT_COLOR,
    HEATMAP_ALPHA,
    HEATMAP_MIN_RANGE,
    LIGHT_TEXT_COLOR,
)
from tablevisualizer.model.grid import GridBuffer, ModifierGrid

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

RGB = tuple[float, float, float]
ColorLike = Union[str, RGB]

LUMINANCE_WEIGHTS: RGB = (0.299, 0.587, 0.114)
LIGHT_THRESHOLD: float = 0.5


# ------------------------------------------------------------------------------
# Colour helpers
# ------------------------------------------------------------------------------

def parse_color(color: ColorLike) -> RGB:
    """Any matplotlib colour spec -> (r, g, b) in [0, 1]."""
    r, g, b = to_rgb(color)
    return float(r), float(g), float(b)


def inverse_color(color: ColorLike) -> RGB:
    """Rotate the hue by 180 degrees, keeping saturation and lightness."""
    h, l, s = colorsys.rgb_to_hls(*parse_color(color))
    return colorsys.hls_to_rgb((h + 0.5) % 1.0, l, s)


def luminance(rgb: RGB) -> float:
    w_r, w_g, w_b = LUMINANCE_WEIGHTS
    return w_r * rgb[0] + w_g * rgb[1] + w_b * rgb[2]


def channel_to_byte(value: float) -> int:
    """Scale a [0, 1] channel to 0..255, rounding halves up."""
    return int(np.floor(value * 255 + 0.5))


def css_rgba(rgb: RGB, alpha: float = HEATMAP_ALPHA) -> str:
    r, g, b = (channel_to_byte(ch) for ch in rgb)
    return f"rgba({r}, {g}, {b}, {alpha})"


@dataclass(frozen=True)
class CellStyle:
    rgb: RGB
    is_light: bool

    @property
    def css(self) -> str:
        return css_rgba(self.rgb)

    @property
    def hex(self) -> str:
        return to_hex(self.rgb)

    @property
    def text_color(self) -> str:
        return DARK_TEXT_COLOR if self.is_light else LIGHT_TEXT_COLOR


# ------------------------------------------------------------------------------
# Heatmap
# ------------------------------------------------------------------------------

@dataclass
class Heatmap:
    """
    Per-cell colours of one grid.

    Attributes:
        rgb: (N, N, 3) blended colours, NaN where a cell has no colour.
        light: (N, N) True where the background is light (use dark text).
        colored: (N, N) True where the cell received a colour.
    """
    rgb: npt.NDArray[np.float64]
    light: npt.NDArray[np.bool_]
    colored: npt.NDArray[np.bool_]

    @property
    def size(self) -> int:
        return int(self.colored.shape[0])

    @property
    def is_blank(self) -> bool:
        """No cell coloured; the caller should clear any previous styling."""
        return not bool(self.colored.any())

    def cell(self, r: int, c: int) -> Optional[CellStyle]:
        if not (0 <= r < self.size and 0 <= c < self.size):
            raise IndexError(f"Cell ({r}, {c}) outside {self.size}x{self.size} heatmap.")
        if not self.colored[r, c]:
            return None
        rgb = tuple(float(ch) for ch in self.rgb[r, c])
        return CellStyle(rgb=rgb, is_light=bool(self.light[r, c]))

    def rows(self) -> list[list[Optional[CellStyle]]]:
        return [[self.cell(r, c) for c in range(self.size)] for r in range(self.size)]


def compute_heatmap(grid: Union[GridBuffer, ModifierGrid], base_color: ColorLike) -> Heatmap:
    """
    Colour every defined cell of ``grid`` between the inverse of
    ``base_color`` (lowest value) and ``base_color`` (highest value).

    If all defined values are equal, every cell gets the midpoint colour.
    Unset/NaN cells get no colour.
    """
    size = grid.size
    colored = grid.defined_mask() & ~np.isnan(grid.values)
    rgb = np.full((size, size, 3), np.nan, dtype=np.float64)
    light = np.zeros((size, size), dtype=bool)

    extremes = grid.extremes()
    if extremes is None:
        return Heatmap(rgb=rgb, light=light, colored=np.zeros((size, size), dtype=bool))

    v_min, v_max = extremes
    value_range = v_max - v_min

    if value_range > HEATMAP_MIN_RANGE:
        t = (grid.values - v_min) / value_range
    else:
        t = np.full((size, size), 0.5)

    base = np.array(parse_color(base_color))
    inverse = np.array(inverse_color(base_color))
    blended = inverse + (base - inverse) * t[..., np.newaxis]

    w_r, w_g, w_b = LUMINANCE_WEIGHTS
    lum = w_r * blended[..., 0] + w_g * blended[..., 1] + w_b * blended[..., 2]

    rgb[colored] = blended[colored]
    light[colored] = lum[colored] > LIGHT_THRESHOLD

    logger.debug(f"Heatmap over [{v_min:g}, {v_max:g}] for {int(colored.sum())} cell(s)")
    return Heatmap(rgb=rgb, light=light, colored=colored)
