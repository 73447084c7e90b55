"""
Project State (Data Model)
==========================
This module defines the central data structure for the running application.

Why is this file needed?
------------------------
1. State Management: It holds the table slots, the axis configuration and
   the revision workspace in one place.
2. Persistence: Its snapshot (to_dict/from_dict) is what gets written to the
   state file and read back on start-up.
3. Decoupling: Views read from this object; the Store writes to it.

Classes:
    TableSlot: One named, coloured, independently visible table holder.
    AxisConfig: Axis labels, units and tick labels of the 3D view.
    ProjectState: The main container class.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields, asdict
import logging
from typing import Any, Dict, List, Optional, Tuple

from tablevisualizer.config import (
    GRID_SIZE,
    SURFACE_MAX_HEIGHT,
    TABLE_COUNT,
    default_table_name,
    slot_color,
)
from tablevisualizer.model import codec
from tablevisualizer.model.grid import GridBuffer
from tablevisualizer.model.revision import RevisionSession
from tablevisualizer.model.surface import SurfaceLayer, scale_factor

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


@dataclass
class TableSlot:
    index: int
    grid: Optional[GridBuffer] = None
    name: str = ""
    visible: bool = True
    color: str = ""

    def __post_init__(self) -> None:
        if not self.name.strip():
            self.name = default_table_name(self.index)
        if not self.color:
            self.color = slot_color(self.index)

    @property
    def is_empty(self) -> bool:
        return self.grid is None

    @property
    def default_name(self) -> str:
        return default_table_name(self.index)

    @property
    def has_custom_name(self) -> bool:
        return self.name != self.default_name

    @property
    def status(self) -> str:
        if self.grid is None:
            return "empty"
        return f"{self.grid.size}×{self.grid.size} ✓"


@dataclass
class AxisConfig:
    x_label: str = ""
    x_units: str = ""
    x_ticks: str = ""
    y_label: str = ""
    y_units: str = ""
    y_ticks: str = ""
    z_label: str = ""
    z_units: str = ""

    @staticmethod
    def parse_ticks(text: str) -> List[str]:
        """Comma separated tick labels, blanks dropped."""
        if not text or not text.strip():
            return []
        return [tick.strip() for tick in text.split(",") if tick.strip()]

    def ticks(self, axis: str) -> List[str]:
        return self.parse_ticks(getattr(self, f"{axis}_ticks", ""))

    def tick_label(self, axis: str, i: int) -> str:
        ticks = self.ticks(axis)
        return ticks[i] if i < len(ticks) else str(i)

    def title(self, axis: str) -> str:
        """'Label (units)', just one of them, or '' when both are blank."""
        label = getattr(self, f"{axis}_label")
        units = getattr(self, f"{axis}_units")
        if units:
            return f"{label} ({units})".strip()
        return label

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(data: Any) -> AxisConfig:
        if not isinstance(data, dict):
            return AxisConfig()
        known = {f.name for f in fields(AxisConfig)}
        return AxisConfig(**{k: str(v) for k, v in data.items() if k in known and v is not None})


def _default_slots(count: int) -> Tuple[TableSlot, ...]:
    return tuple(TableSlot(index=i) for i in range(count))


@dataclass
class ProjectState:
    """
    Holds every table slot plus the revision workspace.
    Pass this instance to the Store and the views.
    """
    grid_size: int = GRID_SIZE
    slot_count: int = TABLE_COUNT
    slots: Tuple[TableSlot, ...] = ()
    axis: AxisConfig = field(default_factory=AxisConfig)
    revision: Optional[RevisionSession] = None

    def __post_init__(self) -> None:
        if not self.slots:
            self.slots = _default_slots(self.slot_count)
        if self.revision is None:
            self.revision = RevisionSession(self.grid_size)

    # ------------------------------------------------------------------------------
    # Slot editing
    # ------------------------------------------------------------------------------

    def slot(self, index: int) -> TableSlot:
        return self.slots[index]

    def _ensure_grid(self, index: int) -> GridBuffer:
        slot = self.slots[index]
        if slot.grid is None:
            slot.grid = GridBuffer.zeros(self.grid_size)
        return slot.grid

    def set_cell(self, index: int, r: int, c: int, text: str) -> float:
        """Typed input. The first edit of an empty slot creates a zero table."""
        grid = self._ensure_grid(index)
        value = codec.parse_cell_text(text)
        grid.set(r, c, value)
        return value

    def paste(self, index: int, r: int, c: int, text: str) -> int:
        """Paste a block anchored at (r, c). Returns the number of cells written."""
        if not text:
            return 0
        grid = self._ensure_grid(index)
        return codec.paste_region(text, r, c, grid)

    def load_text(self, index: int, text: Optional[str]) -> bool:
        """Replace a slot's table with parsed text. Blank text leaves the slot alone."""
        grid = codec.parse_dense(text, self.grid_size)
        if grid is None:
            return False
        self.replace_grid(index, grid)
        return True

    def replace_grid(self, index: int, grid: Optional[GridBuffer]) -> None:
        """Swap in a whole table; the slot owns ``grid`` from now on."""
        self.slots[index].grid = grid

    def clear_slot(self, index: int) -> None:
        self.slots[index].grid = None
        logger.info(f"Cleared {self.slots[index].name}.")

    def rename(self, index: int, name: str) -> str:
        slot = self.slots[index]
        slot.name = name.strip() or slot.default_name
        return slot.name

    def toggle_visibility(self, index: int) -> bool:
        slot = self.slots[index]
        slot.visible = not slot.visible
        return slot.visible

    def copy_table(self, index: int) -> Optional[str]:
        """Clipboard text for a slot, None when there is nothing to copy."""
        grid = self.slots[index].grid
        if grid is None:
            return None
        return codec.serialize_dense(grid)

    # ------------------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------------------

    def non_empty_slots(self) -> List[TableSlot]:
        return [slot for slot in self.slots if slot.grid is not None]

    def legend(self) -> List[Tuple[str, str]]:
        """(name, colour) of every visible, non-empty slot."""
        return [(slot.name, slot.color) for slot in self.slots if slot.grid is not None and slot.visible]

    def surface_layers(self, target_max_height: float = SURFACE_MAX_HEIGHT) -> List[SurfaceLayer]:
        return [
            SurfaceLayer(
                index=slot.index,
                name=slot.name,
                color=slot.color,
                visible=slot.visible,
                grid=slot.grid,
                scale=scale_factor(slot.grid, target_max_height),
            )
            for slot in self.non_empty_slots()
        ]

    # ------------------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": SNAPSHOT_VERSION,
            "axis": self.axis.to_dict(),
            "table_data": [codec.serialize_dense(slot.grid) for slot in self.slots],
            "table_names": [slot.name for slot in self.slots],
            "table_visible": [slot.visible for slot in self.slots],
            "revise_source": self.revision.source,
            "revise_apply_target": self.revision.apply_target,
            "revise_mods": codec.serialize_sparse(self.revision.modifiers),
        }

    @staticmethod
    def from_dict(data: Any, grid_size: int = GRID_SIZE, slot_count: int = TABLE_COUNT) -> ProjectState:
        """
        Rebuild a state from a snapshot. Missing or malformed entries fall
        back to defaults (empty slots, default names, visible).
        """
        state = ProjectState(grid_size=grid_size, slot_count=slot_count)
        if not isinstance(data, dict):
            return state

        state.axis = AxisConfig.from_dict(data.get("axis"))

        table_data = _as_list(data.get("table_data"))
        names = _as_list(data.get("table_names"))
        visible = _as_list(data.get("table_visible"))

        for slot in state.slots:
            i = slot.index
            if i < len(table_data) and isinstance(table_data[i], str):
                slot.grid = codec.parse_dense(table_data[i], grid_size)
            if i < len(names) and isinstance(names[i], str) and names[i].strip():
                slot.name = names[i].strip()
            if i < len(visible):
                slot.visible = visible[i] is not False

        revision = state.revision
        source = data.get("revise_source")
        if _is_index(source):
            revision.select_source(source, state.slots)
        target = data.get("revise_apply_target")
        if _is_index(target) and 0 <= target < slot_count:
            revision.apply_target = target
        mods = data.get("revise_mods")
        if isinstance(mods, str):
            revision.load_modifiers(mods)

        logger.debug(f"Restored state with {len(state.non_empty_slots())} table(s).")
        return state

    def reset(self) -> None:
        """Clear all data for a new session"""
        self.slots = _default_slots(self.slot_count)
        self.axis = AxisConfig()
        self.revision = RevisionSession(self.grid_size)
        logger.info("Project state has been reset.")


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _is_index(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
