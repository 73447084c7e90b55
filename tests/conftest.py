"""
Pytest Configuration
====================

Automatically loaded by pytest. Adds src/ to sys.path
so the package is importable without installation.

Usage:
    pytest tests/ -v
"""

import logging
import sys
from pathlib import Path

import pytest

src_root = Path(__file__).parent.parent / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))

from tablevisualizer.model.grid import GridBuffer  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_app_logger():
    """CLI tests attach handlers to captured streams; drop them afterwards."""
    yield
    logger = logging.getLogger("tablevisualizer")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def ramp_grid():
    """16x16 grid with value r*16 + c."""
    return GridBuffer.from_rows([[r * 16 + c for c in range(16)] for r in range(16)])


@pytest.fixture
def state_file(tmp_path, monkeypatch):
    path = tmp_path / "state.json"
    monkeypatch.setenv("TABLEVISUALIZER_STATE", str(path))
    return path
