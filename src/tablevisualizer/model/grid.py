"""
Grid Buffers
============
Fixed-size square numeric tables, stored row-major in numpy arrays.

Classes:
    GridBuffer: Dense table, every cell holds a number (default 0).
    ModifierGrid: Sparse table, a cell may be unset ("no change").
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence, TYPE_CHECKING

import numpy as np

from tablevisualizer.config import GRID_SIZE, VALUE_DECIMALS

if TYPE_CHECKING:
    import numpy.typing as npt


Extremes = tuple[float, float]


class _Grid(ABC):
    """Shared storage and index arithmetic for dense and sparse grids."""

    def __init__(self, values: npt.NDArray[np.float64]) -> None:
        if values.ndim != 2 or values.shape[0] != values.shape[1]:
            raise ValueError(f"Grid must be square, got shape {values.shape}.")
        self.values: npt.NDArray[np.float64] = values

    @property
    def size(self) -> int:
        return int(self.values.shape[0])

    @property
    def flat(self) -> npt.NDArray[np.float64]:
        """Row-major view, value[r*N+c]."""
        return self.values.reshape(-1)

    def index(self, r: int, c: int) -> int:
        self._check_bounds(r, c)
        return r * self.size + c

    def contains(self, r: int, c: int) -> bool:
        return 0 <= r < self.size and 0 <= c < self.size

    def _check_bounds(self, r: int, c: int) -> None:
        # numpy would wrap negative indexes silently
        if not self.contains(r, c):
            raise IndexError(f"Cell ({r}, {c}) outside {self.size}x{self.size} grid.")

    @abstractmethod
    def defined_mask(self) -> npt.NDArray[np.bool_]:
        """True where a cell holds a value."""

    def extremes(self) -> Optional[Extremes]:
        """(min, max) over defined cells, or None when there is no data."""
        mask = self.defined_mask() & ~np.isnan(self.values)
        if not mask.any():
            return None
        selected = self.values[mask]
        return float(selected.min()), float(selected.max())


class GridBuffer(_Grid):
    """Dense N x N table. Absence of data is represented as 0."""

    @classmethod
    def zeros(cls, size: int = GRID_SIZE) -> GridBuffer:
        return cls(np.zeros((size, size), dtype=np.float64))

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[float]], size: int = GRID_SIZE) -> GridBuffer:
        """Build from nested rows; missing cells stay 0, extra cells are dropped."""
        grid = cls.zeros(size)
        for r, row in enumerate(rows[:size]):
            for c, value in enumerate(list(row)[:size]):
                grid.values[r, c] = float(value)
        return grid

    def get(self, r: int, c: int) -> float:
        self._check_bounds(r, c)
        return float(self.values[r, c])

    def set(self, r: int, c: int, value: float) -> None:
        self._check_bounds(r, c)
        self.values[r, c] = value

    def defined_mask(self) -> npt.NDArray[np.bool_]:
        return np.ones(self.values.shape, dtype=bool)

    def abs_max(self) -> float:
        return float(np.abs(self.values).max()) if self.values.size else 0.0

    def copy(self) -> GridBuffer:
        return GridBuffer(self.values.copy())

    def to_list(self) -> list[list[float]]:
        return self.values.tolist()

    def allclose(self, other: GridBuffer, decimals: int = VALUE_DECIMALS) -> bool:
        """Equality after rounding to the display precision."""
        if other.size != self.size:
            return False
        return bool(np.array_equal(np.round(self.values, decimals), np.round(other.values, decimals)))

    def __repr__(self) -> str:
        return f"GridBuffer(size={self.size}, extremes={self.extremes()})"


class ModifierGrid(_Grid):
    """
    Sparse N x N table of percentage modifiers.

    Unset cells mean "no change". They are tracked by an explicit boolean mask;
    the value stored under an unset cell is 0.0 and never read arithmetically.
    """

    def __init__(self, values: npt.NDArray[np.float64], defined: npt.NDArray[np.bool_]) -> None:
        super().__init__(values)
        if defined.shape != values.shape:
            raise ValueError("Mask shape does not match values shape.")
        self.defined: npt.NDArray[np.bool_] = defined
        self.values[~defined] = 0.0

    @classmethod
    def empty(cls, size: int = GRID_SIZE) -> ModifierGrid:
        return cls(np.zeros((size, size), dtype=np.float64), np.zeros((size, size), dtype=bool))

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[Optional[float]]], size: int = GRID_SIZE) -> ModifierGrid:
        grid = cls.empty(size)
        for r, row in enumerate(rows[:size]):
            for c, value in enumerate(list(row)[:size]):
                grid.set(r, c, value)
        return grid

    def get(self, r: int, c: int) -> Optional[float]:
        self._check_bounds(r, c)
        if not self.defined[r, c]:
            return None
        return float(self.values[r, c])

    def set(self, r: int, c: int, value: Optional[float]) -> None:
        self._check_bounds(r, c)
        if value is None or np.isnan(value):
            self.values[r, c] = 0.0
            self.defined[r, c] = False
        else:
            self.values[r, c] = value
            self.defined[r, c] = True

    def defined_mask(self) -> npt.NDArray[np.bool_]:
        return self.defined

    def has_values(self) -> bool:
        return bool(self.defined.any())

    def count_defined(self) -> int:
        return int(self.defined.sum())

    def clear(self) -> None:
        self.values[:] = 0.0
        self.defined[:] = False

    def copy(self) -> ModifierGrid:
        return ModifierGrid(self.values.copy(), self.defined.copy())

    def to_list(self) -> list[list[Optional[float]]]:
        return [
            [float(v) if d else None for v, d in zip(row_v, row_d)]
            for row_v, row_d in zip(self.values, self.defined)
        ]

    def same_pattern(self, other: ModifierGrid, decimals: int = VALUE_DECIMALS) -> bool:
        """Same set/unset layout and equal set values after rounding."""
        if other.size != self.size or not np.array_equal(self.defined, other.defined):
            return False
        return bool(np.array_equal(np.round(self.values, decimals), np.round(other.values, decimals)))

    def __repr__(self) -> str:
        return f"ModifierGrid(size={self.size}, defined={self.count_defined()})"


def ensure_same_size(*grids: _Grid) -> int:
    sizes = {g.size for g in grids}
    if len(sizes) != 1:
        raise ValueError(f"Grid sizes differ: {sorted(sizes)}")
    return sizes.pop()
