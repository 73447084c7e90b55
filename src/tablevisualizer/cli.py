"""
Table Visualizer Command Line Interface

Usage:
    python -m tablevisualizer <command> [args]

Commands:
    revise      Apply a percentage modifier table to a base table
    heatmap     Print the heatmap colour of every cell
    scale       Print the surface height scale factor of a table
    show        List the table slots of the saved state
    import      Load a text table into a slot of the saved state
    export      Write a slot of the saved state as text

Examples:
    python -m tablevisualizer revise base.csv mods.csv -o revised.tsv
    python -m tablevisualizer heatmap base.csv --color "#ff6384"
    python -m tablevisualizer import 3 measurements.csv
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from tablevisualizer.config import CUSTOM_SOURCE_COLOR, SURFACE_MAX_HEIGHT, get_state_path
from tablevisualizer.logging_config import setup_logging
from tablevisualizer.model import codec
from tablevisualizer.model.grid import ModifierGrid
from tablevisualizer.model.heatmap import compute_heatmap
from tablevisualizer.model.io import IOManager
from tablevisualizer.model.revision import apply_revision
from tablevisualizer.model.state import ProjectState
from tablevisualizer.model.surface import scale_factor

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_NOTHING_TO_DO = 1
EXIT_IO_ERROR = 2


def _write_output(text: str, output: Optional[str]) -> None:
    if output:
        Path(output).write_text(text, encoding="utf-8")
        logger.info(f"Wrote {output}")
    else:
        print(text)


def _load_state(path: Path) -> ProjectState:
    return IOManager.load_state(path) or ProjectState()


# ============================================================
# COMMANDS
# ============================================================

def cmd_revise(args: argparse.Namespace) -> int:
    base = IOManager.import_table(args.base)
    if base is None:
        logger.error(f"No data in {args.base}")
        return EXIT_NOTHING_TO_DO
    modifiers = IOManager.import_modifiers(args.mods) or ModifierGrid.empty(base.size)
    if not modifiers.has_values():
        logger.warning("Modifier table is empty, output equals the base table.")

    _write_output(codec.serialize_dense(apply_revision(base, modifiers)), args.output)
    return EXIT_OK


def cmd_heatmap(args: argparse.Namespace) -> int:
    grid = IOManager.import_table(args.file)
    if grid is None:
        logger.error(f"No data in {args.file}")
        return EXIT_NOTHING_TO_DO

    heatmap = compute_heatmap(grid, args.color)
    lines = []
    for row in heatmap.rows():
        lines.append("\t".join(f"{cell.hex}{'*' if cell.is_light else ''}" if cell else "" for cell in row))
    print("\n".join(lines))
    return EXIT_OK


def cmd_scale(args: argparse.Namespace) -> int:
    grid = IOManager.import_table(args.file)
    if grid is None:
        logger.error(f"No data in {args.file}")
        return EXIT_NOTHING_TO_DO
    print(f"{scale_factor(grid, args.height):.6g}")
    return EXIT_OK


def cmd_show(args: argparse.Namespace) -> int:
    state = _load_state(get_state_path(args.state))
    for slot in state.slots:
        visibility = "visible" if slot.visible else "hidden"
        print(f"{slot.index + 1}\t{slot.name}\t{visibility}\t{slot.status}")
    return EXIT_OK


def cmd_import(args: argparse.Namespace) -> int:
    path = get_state_path(args.state)
    state = _load_state(path)
    index = args.slot - 1
    if not 0 <= index < len(state.slots):
        logger.error(f"Slot must be between 1 and {len(state.slots)}")
        return EXIT_NOTHING_TO_DO

    grid = IOManager.import_table(args.file, state.grid_size)
    if grid is None:
        logger.error(f"No data in {args.file}")
        return EXIT_NOTHING_TO_DO

    state.replace_grid(index, grid)
    if args.name:
        state.rename(index, args.name)
    IOManager.save_state(state, path)
    logger.info(f"Imported {args.file} into {state.slots[index].name}")
    return EXIT_OK


def cmd_export(args: argparse.Namespace) -> int:
    state = _load_state(get_state_path(args.state))
    index = args.slot - 1
    if not 0 <= index < len(state.slots):
        logger.error(f"Slot must be between 1 and {len(state.slots)}")
        return EXIT_NOTHING_TO_DO

    text = state.copy_table(index)
    if text is None:
        logger.error(f"{state.slots[index].name} is empty, nothing to export.")
        return EXIT_NOTHING_TO_DO
    _write_output(text, args.output)
    return EXIT_OK


# ============================================================
# PARSER
# ============================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tablevisualizer",
        description="Edit, colour and revise fixed-size numeric tables.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    parser.add_argument('--log-file', help='Also write the log to this file')
    sub = parser.add_subparsers(dest='command', required=True)

    p = sub.add_parser('revise', help='Apply percentage modifiers to a base table')
    p.add_argument('base', help='[INPUT] base table (CSV/TSV)')
    p.add_argument('mods', help='[INPUT] modifier table, blank cells mean no change')
    p.add_argument('-o', '--output', help='[OUTPUT] result file (default: stdout)')
    p.set_defaults(func=cmd_revise)

    p = sub.add_parser('heatmap', help='Print cell colours ("*" marks a light background)')
    p.add_argument('file', help='[INPUT] table (CSV/TSV)')
    p.add_argument('--color', default=CUSTOM_SOURCE_COLOR, help='Base colour (default: %(default)s)')
    p.set_defaults(func=cmd_heatmap)

    p = sub.add_parser('scale', help='Print the surface height scale factor')
    p.add_argument('file', help='[INPUT] table (CSV/TSV)')
    p.add_argument('--height', type=float, default=SURFACE_MAX_HEIGHT,
                   help='Target maximum height (default: %(default)s)')
    p.set_defaults(func=cmd_scale)

    p = sub.add_parser('show', help='List the slots of the saved state')
    p.add_argument('--state', help='State file (default: $TABLEVISUALIZER_STATE or ~/.tablevisualizer)')
    p.set_defaults(func=cmd_show)

    p = sub.add_parser('import', help='Load a text table into a slot')
    p.add_argument('slot', type=int, help='Slot number, starting at 1')
    p.add_argument('file', help='[INPUT] table (CSV/TSV)')
    p.add_argument('--name', help='Also rename the slot')
    p.add_argument('--state', help='State file')
    p.set_defaults(func=cmd_import)

    p = sub.add_parser('export', help='Write a slot as tab separated text')
    p.add_argument('slot', type=int, help='Slot number, starting at 1')
    p.add_argument('-o', '--output', help='[OUTPUT] file (default: stdout)')
    p.add_argument('--state', help='State file')
    p.set_defaults(func=cmd_export)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO, log_file=args.log_file)
    try:
        return args.func(args)
    except OSError as e:
        logger.error(str(e))
        return EXIT_IO_ERROR


if __name__ == "__main__":
    sys.exit(main())
