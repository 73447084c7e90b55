from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, Hashable, Optional, Union

from PySide6.QtCore import QObject, QTimer, Signal

from tablevisualizer.config import (
    AXIS_DEBOUNCE_MS,
    NAME_DEBOUNCE_MS,
    RECOMPUTE_DEBOUNCE_MS,
)
from tablevisualizer.model.heatmap import Heatmap, compute_heatmap
from tablevisualizer.model.io import IOManager
from tablevisualizer.model.scheduler import Debouncer
from tablevisualizer.model.state import ProjectState

logger = logging.getLogger(__name__)

RENAME = "rename"
AXIS = "axis"
RECOMPUTE = "recompute"

_INTERVALS: Dict[str, int] = {
    RENAME: NAME_DEBOUNCE_MS,
    AXIS: AXIS_DEBOUNCE_MS,
    RECOMPUTE: RECOMPUTE_DEBOUNCE_MS,
}


class Store(QObject):
    """
    Central state store with signals for view/renderer sync.

    Every user action goes through here: the model is mutated, the matching
    signals are emitted and the state snapshot is written. Rapid edits
    (typing a name, an axis label, a revise cell) are coalesced so only the
    latest recomputation runs.
    """
    table_changed = Signal(int)          # slot index whose table was replaced/edited
    scene_changed = Signal()             # renderer must rebuild
    legend_changed = Signal(object)      # list[(name, colour)]
    visibility_changed = Signal(int, bool)
    axis_changed = Signal(object)        # AxisConfig
    revision_changed = Signal(object)    # {"grid": output grid, "heatmaps": {base, modifiers, output}}
    state_saved = Signal(str)
    notice = Signal(str)                 # user-visible no-op messages
    error_occurred = Signal(str)

    def __init__(
        self,
        state: Optional[ProjectState] = None,
        state_path: Union[str, Path, None] = None,
        use_timers: bool = True,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self.state = state if state is not None else ProjectState()
        self.state_path: Optional[Path] = Path(state_path) if state_path else None
        self._debouncer = Debouncer()
        self._use_timers = use_timers
        self._timers: Dict[Hashable, QTimer] = {}

    @classmethod
    def from_state_file(cls, state_path: Union[str, Path], use_timers: bool = True) -> Store:
        """Restore the last session, or start empty if there is none."""
        state = IOManager.load_state(state_path)
        if state is None:
            logger.info("No previous session, starting with empty tables.")
        return cls(state=state, state_path=state_path, use_timers=use_timers)

    # ------------------------------------------------------------------------------
    # Debounce plumbing
    # ------------------------------------------------------------------------------

    def _schedule(self, key: Hashable, fn: Callable[[], None]) -> None:
        self._debouncer.schedule(key, fn)
        if not self._use_timers:
            return
        timer = self._timers.get(key)
        if timer is None:
            timer = QTimer(self)
            timer.setSingleShot(True)
            kind = key[0] if isinstance(key, tuple) else key
            timer.setInterval(_INTERVALS.get(kind, RECOMPUTE_DEBOUNCE_MS))
            timer.timeout.connect(lambda k=key: self._debouncer.flush(k))
            self._timers[key] = timer
        # restarting a running single-shot timer postpones it
        timer.start()

    def flush_pending(self) -> int:
        """Run every pending debounced call now (used on shutdown and in tests)."""
        for timer in self._timers.values():
            timer.stop()
        return self._debouncer.flush()

    def has_pending(self, key: Hashable) -> bool:
        return self._debouncer.pending(key)

    # ------------------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------------------

    def save(self) -> bool:
        if self.state_path is None:
            return False
        try:
            IOManager.save_state(self.state, self.state_path)
        except OSError as e:
            self.error_occurred.emit(f"Could not save state: {e}")
            return False
        self.state_saved.emit(str(self.state_path))
        return True

    def _table_edited(self, index: int) -> None:
        self.table_changed.emit(index)
        self.scene_changed.emit()
        self.legend_changed.emit(self.state.legend())
        self.save()

    # ------------------------------------------------------------------------------
    # Table slots
    # ------------------------------------------------------------------------------

    def edit_cell(self, index: int, r: int, c: int, text: str) -> float:
        value = self.state.set_cell(index, r, c, text)
        self._table_edited(index)
        return value

    def paste(self, index: int, r: int, c: int, text: str) -> int:
        if not text:
            return 0
        written = self.state.paste(index, r, c, text)
        self._table_edited(index)
        return written

    def load_text(self, index: int, text: str) -> bool:
        if not self.state.load_text(index, text):
            self.notice.emit("Nothing to import.")
            return False
        self._table_edited(index)
        return True

    def clear_slot(self, index: int) -> None:
        self.state.clear_slot(index)
        self._table_edited(index)

    def rename(self, index: int, name: str) -> None:
        """Debounced: only the last name typed in quick succession is applied."""
        def apply() -> None:
            self.state.rename(index, name)
            self.legend_changed.emit(self.state.legend())
            self.save()
        self._schedule((RENAME, index), apply)

    def toggle_visibility(self, index: int) -> bool:
        visible = self.state.toggle_visibility(index)
        self.visibility_changed.emit(index, visible)
        self.scene_changed.emit()
        self.legend_changed.emit(self.state.legend())
        self.save()
        return visible

    def set_axis_field(self, field_name: str, value: str) -> None:
        if not hasattr(self.state.axis, field_name):
            raise ValueError(f"Unknown axis field '{field_name}'.")

        setattr(self.state.axis, field_name, value)

        def apply() -> None:
            self.axis_changed.emit(self.state.axis)
            self.scene_changed.emit()
            self.save()
        self._schedule(AXIS, apply)

    def copy_table(self, index: int) -> Optional[str]:
        text = self.state.copy_table(index)
        if text is None:
            self.notice.emit("Nothing to copy.")
        return text

    def heatmap(self, index: int) -> Optional[Heatmap]:
        slot = self.state.slots[index]
        if slot.grid is None:
            return None
        return compute_heatmap(slot.grid, slot.color)

    def layers(self) -> list:
        return self.state.surface_layers()

    # ------------------------------------------------------------------------------
    # Revision workspace
    # ------------------------------------------------------------------------------

    def recompute_revision(self) -> dict:
        revision = self.state.revision
        result = {"grid": revision.output(), "heatmaps": revision.heatmaps(len(self.state.slots))}
        self.revision_changed.emit(result)
        return result

    def _revision_edited(self, debounce: bool) -> None:
        def apply() -> None:
            self.recompute_revision()
            self.save()
        if debounce:
            self._schedule(RECOMPUTE, apply)
        else:
            self._debouncer.cancel(RECOMPUTE)
            apply()

    def select_source(self, index: int) -> None:
        self.state.revision.select_source(index, self.state.slots)
        self._revision_edited(debounce=False)

    def set_apply_target(self, index: int) -> None:
        self.state.revision.apply_target = index
        self._revision_edited(debounce=False)

    def edit_base_cell(self, r: int, c: int, text: str) -> None:
        self.state.revision.set_base_cell(r, c, text)
        self._revision_edited(debounce=True)

    def edit_modifier_cell(self, r: int, c: int, text: str) -> None:
        self.state.revision.set_modifier_cell(r, c, text)
        self._revision_edited(debounce=True)

    def paste_base(self, r: int, c: int, text: str) -> int:
        written = self.state.revision.paste_base(text, r, c)
        self._revision_edited(debounce=False)
        return written

    def paste_modifiers(self, r: int, c: int, text: str) -> int:
        written = self.state.revision.paste_modifiers(text, r, c)
        self._revision_edited(debounce=False)
        return written

    def clear_base(self) -> None:
        self.state.revision.clear_base()
        self._revision_edited(debounce=False)

    def clear_modifiers(self) -> None:
        self.state.revision.clear_modifiers()
        self._revision_edited(debounce=False)

    def apply_revision(self) -> bool:
        revision = self.state.revision
        target = revision.apply_target
        if not revision.apply_to_target(self.state):
            self.notice.emit("Select a table to apply to.")
            return False
        self.table_changed.emit(target)
        self.scene_changed.emit()
        self.legend_changed.emit(self.state.legend())
        self._revision_edited(debounce=False)
        return True

    def apply_revision_to_all(self) -> int:
        count = self.state.revision.apply_to_all(self.state)
        if count == 0:
            self.notice.emit("Nothing to apply.")
            return 0
        for slot in self.state.non_empty_slots():
            self.table_changed.emit(slot.index)
        self.scene_changed.emit()
        self.legend_changed.emit(self.state.legend())
        self._revision_edited(debounce=False)
        return count

    def copy_revision_base(self) -> str:
        return self.state.revision.copy_base()

    def copy_revision_modifiers(self) -> str:
        return self.state.revision.copy_modifiers()

    def copy_revision_output(self) -> str:
        return self.state.revision.copy_output()
