"""
Surface Normalization
=====================
Maps raw table values to bounded heights for the 3D view.

The largest magnitude in either direction reaches exactly the target
height, and 0 always stays at height 0 (no offset). Mesh building is left
to the rendering layer; this module only hands it numbers.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from tablevisualizer.config import SURFACE_MAX_HEIGHT
from tablevisualizer.model.grid import GridBuffer

if TYPE_CHECKING:
    import numpy as np
    import numpy.typing as npt


def scale_factor(grid: GridBuffer, target_max_height: float = SURFACE_MAX_HEIGHT) -> float:
    """target_max_height / max|value|, or 1.0 for an all-zero grid."""
    abs_max = grid.abs_max()
    if abs_max > 0:
        return target_max_height / abs_max
    return 1.0


def surface_heights(grid: GridBuffer, target_max_height: float = SURFACE_MAX_HEIGHT) -> npt.NDArray[np.float64]:
    """Displacement per cell (value * scale factor). Does not touch the grid."""
    return grid.values * scale_factor(grid, target_max_height)


@dataclass(frozen=True)
class SurfaceLayer:
    """Everything the renderer needs to draw one table."""
    index: int
    name: str
    color: str
    visible: bool
    grid: GridBuffer
    scale: float

    def heights(self) -> npt.NDArray[np.float64]:
        return self.grid.values * self.scale
