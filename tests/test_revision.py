"""
Tests for tablevisualizer.model.revision

Run: python -m pytest tests/test_revision.py -v
"""

import pytest

from tablevisualizer.config import CUSTOM_SOURCE, CUSTOM_SOURCE_COLOR, slot_color
from tablevisualizer.model.grid import GridBuffer, ModifierGrid
from tablevisualizer.model.revision import RevisionSession, apply_revision, apply_to_all
from tablevisualizer.model.state import ProjectState


# =============================================================================
# apply_revision
# =============================================================================

def test_percentage_modifier():
    base = GridBuffer.from_rows([[100, 50]], size=2)
    mods = ModifierGrid.from_rows([[-10, None]], size=2)
    out = apply_revision(base, mods)
    assert out.get(0, 0) == pytest.approx(90.0)
    assert out.get(0, 1) == 50.0


def test_minus_hundred_zeroes_and_below_goes_negative():
    base = GridBuffer.from_rows([[100, 100]], size=2)
    mods = ModifierGrid.from_rows([[-100, -150]], size=2)
    out = apply_revision(base, mods)
    assert out.get(0, 0) == 0.0
    assert out.get(0, 1) == pytest.approx(-50.0)


def test_zero_modifier_keeps_value():
    base = GridBuffer.from_rows([[3.25]], size=2)
    mods = ModifierGrid.from_rows([[0.0]], size=2)
    assert apply_revision(base, mods).get(0, 0) == 3.25


def test_empty_modifiers_are_identity(ramp_grid):
    out = apply_revision(ramp_grid, ModifierGrid.empty(16))
    assert out.allclose(ramp_grid)
    assert out is not ramp_grid


def test_inputs_not_mutated(ramp_grid):
    base = ramp_grid.copy()
    mods = ModifierGrid.from_rows([[50.0] * 16] * 16)
    apply_revision(ramp_grid, mods)
    assert ramp_grid.allclose(base)
    assert mods.count_defined() == 256


def test_size_mismatch_raises():
    with pytest.raises(ValueError):
        apply_revision(GridBuffer.zeros(4), ModifierGrid.empty(16))


def test_apply_to_all_skips_empty_slots():
    a = GridBuffer.from_rows([[10]], size=2)
    b = GridBuffer.from_rows([[20]], size=2)
    mods = ModifierGrid.from_rows([[50]], size=2)
    report = apply_to_all([a, None, b], mods)
    assert report.count == 2
    assert sorted(report.results) == [0, 2]
    assert report.results[0].get(0, 0) == pytest.approx(15.0)
    assert report.results[2].get(0, 0) == pytest.approx(30.0)


def test_apply_to_all_nothing_to_revise():
    report = apply_to_all([None, None], ModifierGrid.empty(2))
    assert not report
    assert report.count == 0


# =============================================================================
# RevisionSession
# =============================================================================

def _state_with_table(index=2, value=100.0):
    state = ProjectState()
    state.replace_grid(index, GridBuffer.from_rows([[value] * 16] * 16))
    return state


def test_select_source_copies_slot_and_sets_target():
    state = _state_with_table(2)
    session = state.revision
    session.select_source(2, state.slots)

    assert session.source == 2
    assert session.apply_target == 2
    assert session.base.get(0, 0) == 100.0
    assert session.base is not state.slots[2].grid
    assert session.base_color(len(state.slots)) == slot_color(2)


def test_select_empty_slot_gives_zero_base():
    state = ProjectState()
    state.revision.select_source(4, state.slots)
    assert state.revision.base.abs_max() == 0.0
    assert state.revision.apply_target == 4


def test_custom_source_keeps_target_and_uses_grey():
    state = _state_with_table(1)
    session = state.revision
    session.select_source(1, state.slots)
    session.select_source(CUSTOM_SOURCE, state.slots)

    assert session.source == CUSTOM_SOURCE
    assert session.apply_target == 1
    assert session.base.abs_max() == 0.0
    assert session.base_color(len(state.slots)) == CUSTOM_SOURCE_COLOR


def test_editing_base_does_not_touch_slot():
    state = _state_with_table(0)
    session = state.revision
    session.select_source(0, state.slots)
    session.set_base_cell(0, 0, "5")
    assert state.slots[0].grid.get(0, 0) == 100.0


def test_modifier_cell_blank_unsets():
    session = RevisionSession()
    session.set_modifier_cell(0, 0, "10")
    assert session.modifiers.get(0, 0) == 10.0
    session.set_modifier_cell(0, 0, " ")
    assert session.modifiers.get(0, 0) is None


def test_output_and_heatmaps():
    session = RevisionSession()
    session.paste_base("100\t50", 0, 0)
    session.paste_modifiers("-10", 0, 0)
    assert session.output().get(0, 0) == pytest.approx(90.0)
    assert session.output().get(0, 1) == 50.0

    heatmaps = session.heatmaps(8)
    assert set(heatmaps) == {"base", "modifiers", "output"}
    assert heatmaps["modifiers"].cell(0, 0) is not None
    assert heatmaps["modifiers"].cell(0, 1) is None


def test_apply_to_target_writes_slot_and_clears_modifiers():
    state = _state_with_table(3)
    session = state.revision
    session.select_source(3, state.slots)
    session.set_modifier_cell(0, 0, "-10")

    assert session.apply_to_target(state)
    assert state.slots[3].grid.get(0, 0) == pytest.approx(90.0)
    assert state.slots[3].grid.get(0, 1) == 100.0
    assert not session.modifiers.has_values()


def test_apply_to_target_outside_slots_is_noop():
    state = ProjectState()
    state.revision.apply_target = CUSTOM_SOURCE
    assert not state.revision.apply_to_target(state)


def test_apply_to_all_revises_every_table():
    state = _state_with_table(0, 100.0)
    state.replace_grid(5, GridBuffer.from_rows([[200.0]]))
    session = state.revision
    session.set_modifier_cell(0, 0, "50")

    assert session.apply_to_all(state) == 2
    assert state.slots[0].grid.get(0, 0) == pytest.approx(150.0)
    assert state.slots[5].grid.get(0, 0) == pytest.approx(300.0)
    assert state.slots[1].grid is None
    assert not session.modifiers.has_values()


def test_apply_to_all_without_modifiers_is_noop():
    state = _state_with_table(0)
    assert state.revision.apply_to_all(state) == 0
    assert state.slots[0].grid.get(0, 0) == 100.0


def test_apply_to_all_with_no_tables_keeps_modifiers():
    state = ProjectState()
    state.revision.set_modifier_cell(0, 0, "5")
    assert state.revision.apply_to_all(state) == 0
    assert state.revision.modifiers.has_values()


def test_clipboard_copies():
    session = RevisionSession(size=2)
    session.paste_base("1\t2\n3\t4", 0, 0)
    session.set_modifier_cell(1, 1, "100")
    assert session.copy_base() == "1.000\t2.000\n3.000\t4.000"
    assert session.copy_modifiers() == "\t\n\t100.000"
    assert session.copy_output() == "1.000\t2.000\n3.000\t8.000"


def test_clear_base_and_modifiers():
    session = RevisionSession()
    session.set_base_cell(0, 0, "7")
    session.set_modifier_cell(0, 0, "7")
    session.clear_base()
    session.clear_modifiers()
    assert session.base.abs_max() == 0.0
    assert not session.modifiers.has_values()
