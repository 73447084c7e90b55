"""
Revision Engine
===============
Derives new tables from a base table and a sparse table of percentage
modifiers: a modifier of 5 means +5 %, -100 zeroes the cell, an unset
modifier leaves the base value unchanged.

Classes:
    RevisionReport: Outcome of applying one modifier grid to several slots.
    RevisionSession: The editable base/modifier pair and its source/target selection.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Dict, Optional, Sequence, TYPE_CHECKING

import numpy as np

from tablevisualizer.config import CUSTOM_SOURCE, CUSTOM_SOURCE_COLOR, GRID_SIZE, slot_color
from tablevisualizer.model import codec
from tablevisualizer.model.grid import GridBuffer, ModifierGrid, ensure_same_size
from tablevisualizer.model.heatmap import Heatmap, compute_heatmap

if TYPE_CHECKING:
    from tablevisualizer.model.state import ProjectState

logger = logging.getLogger(__name__)


def apply_revision(base: GridBuffer, modifiers: ModifierGrid) -> GridBuffer:
    """
    result = base * (1 + m / 100) where the modifier is set, base elsewhere.

    Never mutates its inputs; always returns a new grid. Results are not
    clamped, modifiers below -100 give negative values.
    """
    ensure_same_size(base, modifiers)
    revised = base.values * (1.0 + modifiers.values / 100.0)
    return GridBuffer(np.where(modifiers.defined, revised, base.values))


@dataclass
class RevisionReport:
    """Revised grids keyed by slot index. Empty slots do not appear."""
    results: Dict[int, GridBuffer] = field(default_factory=dict)

    @property
    def count(self) -> int:
        return len(self.results)

    def __bool__(self) -> bool:
        return bool(self.results)


def apply_to_all(tables: Sequence[Optional[GridBuffer]], modifiers: ModifierGrid) -> RevisionReport:
    """Apply the same modifiers to every non-empty table independently."""
    report = RevisionReport()
    for index, grid in enumerate(tables):
        if grid is None:
            continue
        report.results[index] = apply_revision(grid, modifiers)
    return report


class RevisionSession:
    """
    The "revise" workspace: an editable dense base grid, a sparse modifier
    grid, and which slot the base came from / the result goes to.

    Not persisted beyond the modifier text and the two selections.
    """

    def __init__(self, size: int = GRID_SIZE) -> None:
        self.size = size
        self.source: int = 0
        self.apply_target: int = 0
        self.base: GridBuffer = GridBuffer.zeros(size)
        self.modifiers: ModifierGrid = ModifierGrid.empty(size)

    # ------------------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------------------

    def is_slot_source(self, slot_count: int) -> bool:
        return 0 <= self.source < slot_count

    def select_source(self, index: int, slots: Sequence) -> None:
        """
        Load the base grid from a slot. A valid slot also becomes the apply
        target. CUSTOM_SOURCE (or any index outside the slots) clears the base
        for a pasted table.
        """
        self.source = index
        if 0 <= index < len(slots):
            self.apply_target = index
            grid = slots[index].grid
            self.base = grid.copy() if grid is not None else GridBuffer.zeros(self.size)
        else:
            self.source = CUSTOM_SOURCE
            self.base = GridBuffer.zeros(self.size)
        logger.debug(f"Revision source set to {self.source}, target {self.apply_target}")

    def base_color(self, slot_count: int) -> str:
        if self.is_slot_source(slot_count):
            return slot_color(self.source)
        return CUSTOM_SOURCE_COLOR

    # ------------------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------------------

    def set_base_cell(self, r: int, c: int, text: str) -> None:
        self.base.set(r, c, codec.parse_cell_text(text))

    def set_modifier_cell(self, r: int, c: int, text: str) -> None:
        self.modifiers.set(r, c, codec.parse_modifier_text(text))

    def paste_base(self, text: str, start_r: int, start_c: int) -> int:
        return codec.paste_region(text, start_r, start_c, self.base)

    def paste_modifiers(self, text: str, start_r: int, start_c: int) -> int:
        return codec.paste_region(text, start_r, start_c, self.modifiers)

    def clear_base(self) -> None:
        self.base = GridBuffer.zeros(self.size)

    def clear_modifiers(self) -> None:
        self.modifiers = ModifierGrid.empty(self.size)

    def load_modifiers(self, text: Optional[str]) -> None:
        self.modifiers = codec.parse_sparse(text, self.size) or ModifierGrid.empty(self.size)

    # ------------------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------------------

    def output(self) -> GridBuffer:
        return apply_revision(self.base, self.modifiers)

    def heatmaps(self, slot_count: int) -> Dict[str, Heatmap]:
        """Base, modifiers and output all coloured with the source colour."""
        color = self.base_color(slot_count)
        return {
            "base": compute_heatmap(self.base, color),
            "modifiers": compute_heatmap(self.modifiers, color),
            "output": compute_heatmap(self.output(), color),
        }

    def apply_to_target(self, state: ProjectState) -> bool:
        """
        Write the revised base into the apply-target slot and clear the
        modifiers. Returns False (no-op) when the target is not a slot.
        """
        if not 0 <= self.apply_target < len(state.slots):
            logger.warning(f"Apply target {self.apply_target} is not a table slot.")
            return False
        state.replace_grid(self.apply_target, self.output())
        self.clear_modifiers()
        logger.info(f"Revision applied to {state.slots[self.apply_target].name}.")
        return True

    def apply_to_all(self, state: ProjectState) -> int:
        """
        Revise every non-empty slot with the current modifiers.
        Returns the number of affected slots; 0 means nothing to do.
        """
        if not self.modifiers.has_values():
            logger.info("No modifiers set, nothing to apply.")
            return 0

        report = apply_to_all([slot.grid for slot in state.slots], self.modifiers)
        for index, grid in report.results.items():
            state.replace_grid(index, grid)

        if report:
            self.clear_modifiers()
            logger.info(f"Revision applied to {report.count} table(s).")
        return report.count

    # ------------------------------------------------------------------------------
    # Clipboard
    # ------------------------------------------------------------------------------

    def copy_base(self) -> str:
        return codec.serialize_dense(self.base)

    def copy_modifiers(self) -> str:
        return codec.serialize_sparse(self.modifiers)

    def copy_output(self) -> str:
        return codec.serialize_dense(self.output())
