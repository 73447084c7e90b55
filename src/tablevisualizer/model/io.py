"""
Input/Output Manager
Handles saving and loading the ProjectState:
- JSON state snapshots (the auto-saved session state),
- HDF5 project files (.h5), tables stored as numeric datasets,
- plain text tables for import/export.
"""
import json
import logging
import os
from importlib.metadata import version, PackageNotFoundError
from pathlib import Path
from typing import Optional, Union

import h5py
import numpy as np

from tablevisualizer.config import GRID_SIZE
from tablevisualizer.model import codec
from tablevisualizer.model.grid import GridBuffer, ModifierGrid
from tablevisualizer.model.state import AxisConfig, ProjectState

logger = logging.getLogger(__name__)

try:
    APP_VERSION = version("tablevisualizer")
except PackageNotFoundError:
    APP_VERSION = "0.0.0-dev"

PathLike = Union[str, Path]


class IOManager:

    # ---- JSON STATE ----

    @staticmethod
    def save_state(state: ProjectState, filepath: PathLike) -> None:
        """Write the state snapshot as JSON (atomic replace)."""
        path = Path(filepath)
        logger.debug(f"Saving state to: {path}")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_suffix(path.suffix + ".tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(state.to_dict(), f, ensure_ascii=False, indent=1)
            os.replace(tmp_path, path)
        except OSError as e:
            logger.exception(f"Failed to save state: {e}")
            raise e

    @staticmethod
    def load_state(filepath: PathLike) -> Optional[ProjectState]:
        """
        Read a JSON snapshot. A missing, unreadable or corrupt file means
        "no saved state" and returns None.
        """
        path = Path(filepath)
        if not path.exists():
            logger.debug(f"No saved state at: {path}")
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable state file '{path}': {e}")
            return None

        state = ProjectState.from_dict(data)
        logger.info(f"State loaded from: {path}")
        return state

    # ---- HDF5 PROJECT ----

    @staticmethod
    def save_project(state: ProjectState, filepath: PathLike) -> None:
        logger.info(f"Saving project to: {filepath}")
        try:
            with h5py.File(filepath, "w") as f:
                f.attrs["version"] = APP_VERSION
                f.attrs["grid_size"] = state.grid_size
                f.attrs["slot_count"] = state.slot_count

                # --- 1. SAVE TABLES ---
                grp_tables = f.create_group("tables")
                for slot in state.slots:
                    grp_slot = grp_tables.create_group(f"slot_{slot.index}")
                    grp_slot.attrs["name"] = slot.name
                    grp_slot.attrs["visible"] = slot.visible
                    if slot.grid is not None:
                        grp_slot.create_dataset("values", data=slot.grid.values)

                # --- 2. SAVE AXIS ---
                grp_axis = f.create_group("axis")
                for key, val in state.axis.to_dict().items():
                    grp_axis.attrs[key] = val

                # --- 3. SAVE REVISION ---
                revision = state.revision
                grp_rev = f.create_group("revision")
                grp_rev.attrs["source"] = revision.source
                grp_rev.attrs["apply_target"] = revision.apply_target
                grp_rev.create_dataset("base", data=revision.base.values)
                grp_rev.create_dataset("modifiers", data=revision.modifiers.values)
                grp_rev.create_dataset("defined", data=revision.modifiers.defined.astype(np.uint8))

            logger.info(f"Project saved to: {filepath}")

        except Exception as e:
            logger.exception(f"Failed to save project: {e}")
            raise e

    @staticmethod
    def load_project(filepath: PathLike) -> ProjectState:
        logger.info(f"Loading project from: {filepath}")
        if not h5py.is_hdf5(filepath):
            msg = f"File '{filepath}' is not a valid HDF5 file."
            logger.error(msg)
            raise ValueError(msg)

        try:
            with h5py.File(filepath, "r") as f:
                grid_size = int(f.attrs.get("grid_size", ProjectState().grid_size))
                slot_count = int(f.attrs.get("slot_count", ProjectState().slot_count))
                state = ProjectState(grid_size=grid_size, slot_count=slot_count)

                # --- LOAD TABLES ---
                if "tables" in f:
                    grp_tables = f["tables"]
                    for slot in state.slots:
                        key = f"slot_{slot.index}"
                        if key not in grp_tables:
                            continue
                        grp_slot = grp_tables[key]
                        name = _attr_str(grp_slot.attrs.get("name", ""))
                        if name.strip():
                            slot.name = name.strip()
                        slot.visible = bool(grp_slot.attrs.get("visible", True))
                        if "values" in grp_slot:
                            slot.grid = _read_grid(grp_slot["values"][:], grid_size)

                # --- LOAD AXIS ---
                if "axis" in f:
                    state.axis = AxisConfig.from_dict(
                        {key: _attr_str(val) for key, val in f["axis"].attrs.items()}
                    )

                # --- LOAD REVISION ---
                if "revision" in f:
                    grp_rev = f["revision"]
                    revision = state.revision
                    revision.source = int(grp_rev.attrs.get("source", revision.source))
                    revision.apply_target = int(grp_rev.attrs.get("apply_target", revision.apply_target))
                    base = _read_grid(grp_rev["base"][:], grid_size) if "base" in grp_rev else None
                    if base is not None:
                        revision.base = base
                    if "modifiers" in grp_rev and "defined" in grp_rev:
                        values = np.array(grp_rev["modifiers"][:], dtype=np.float64)
                        defined = np.array(grp_rev["defined"][:], dtype=bool)
                        if values.shape == (grid_size, grid_size) and defined.shape == values.shape:
                            revision.modifiers = ModifierGrid(values, defined)

            logger.info(f"Project loaded from: {filepath}")
            return state

        except Exception as e:
            logger.exception(f"Failed to load project: {e}")
            raise e

    # ---- TEXT TABLES ----

    @staticmethod
    def import_table(filepath: PathLike, size: int = GRID_SIZE) -> Optional[GridBuffer]:
        """Read a CSV/TSV file into a dense grid; None when the file has no content."""
        return codec.parse_dense(_read_text(filepath), size)

    @staticmethod
    def import_modifiers(filepath: PathLike, size: int = GRID_SIZE) -> Optional[ModifierGrid]:
        return codec.parse_sparse(_read_text(filepath), size)

    @staticmethod
    def export_table(grid: GridBuffer, filepath: PathLike) -> None:
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(codec.serialize_dense(grid))
        logger.info(f"Table exported to: {filepath}")


def _read_text(filepath: PathLike) -> str:
    # undecodable bytes become U+FFFD and then read as unparsable tokens
    with open(filepath, "r", encoding="utf-8-sig", errors="replace") as f:
        text = f.read()
    if "\ufffd" in text:
        logger.warning(f"{filepath} is not valid UTF-8, undecodable bytes were replaced.")
    return text


def _attr_str(value) -> str:
    # HDF5 hands strings back as bytes or numpy scalars depending on the writer
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


def _read_grid(data: np.ndarray, grid_size: int) -> Optional[GridBuffer]:
    values = np.array(data, dtype=np.float64)
    if values.shape != (grid_size, grid_size):
        logger.warning(f"Skipping table with shape {values.shape}, expected {grid_size}x{grid_size}.")
        return None
    return GridBuffer(values)
