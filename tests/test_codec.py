"""
Tests for tablevisualizer.model.codec

Run: python -m pytest tests/test_codec.py -v
"""

import pytest

from tablevisualizer.model import codec
from tablevisualizer.model.grid import GridBuffer, ModifierGrid


# =============================================================================
# Tokens
# =============================================================================

@pytest.mark.parametrize("token, expected", [
    ("12", 12.0),
    ("  -3.5", -3.5),
    ("12abc", 12.0),
    ("1e3", 1000.0),
    (".5", 0.5),
    ("+7", 7.0),
    ("5.", 5.0),
    ("abc", None),
    ("", None),
    ("-", None),
    ("1e999", None),
])
def test_parse_number(token, expected):
    assert codec.parse_number(token) == expected


def test_parse_cell_text_defaults_to_zero():
    assert codec.parse_cell_text("x") == 0.0
    assert codec.parse_cell_text("2.25") == 2.25


def test_parse_modifier_text_blank_is_unset():
    assert codec.parse_modifier_text("") is None
    assert codec.parse_modifier_text("   ") is None
    assert codec.parse_modifier_text("n/a") is None
    assert codec.parse_modifier_text("0") == 0.0


def test_format_value():
    assert codec.format_value(1.0) == "1.000"
    assert codec.format_value(-0.0) == "0.000"
    assert codec.format_value(2.0 / 3.0) == "0.667"
    assert codec.format_value(-1.5) == "-1.500"
    assert codec.format_value(-0.0001) == "-0.000"


@pytest.mark.parametrize("value, expected", [
    (0.0625, "0.063"),
    (0.1875, "0.188"),
    (1.0625, "1.063"),
    (-0.0625, "-0.063"),
    (2.5625, "2.563"),
])
def test_format_value_rounds_ties_away_from_zero(value, expected):
    assert codec.format_value(value) == expected


def test_serialize_uses_tie_rounding():
    grid = GridBuffer.from_rows([[0.0625, -1.0625]], size=2)
    assert codec.serialize_dense(grid).splitlines()[0] == "0.063\t-1.063"
    mods = ModifierGrid.from_rows([[None, 0.1875]], size=2)
    assert codec.serialize_sparse(mods).splitlines()[0] == "\t0.188"


def test_detect_delimiter():
    assert codec.detect_delimiter("1\t2,5") == "\t"
    assert codec.detect_delimiter("1,2") == ","
    assert codec.detect_delimiter("1") == ","


# =============================================================================
# Dense parsing
# =============================================================================

def test_parse_dense_comma_rows_are_padded():
    grid = codec.parse_dense("1,2,3\n4,5")
    assert grid.size == 16
    assert grid.to_list()[0][:4] == [1.0, 2.0, 3.0, 0.0]
    assert grid.to_list()[1][:3] == [4.0, 5.0, 0.0]
    assert grid.get(15, 15) == 0.0


def test_parse_dense_tab_and_crlf():
    grid = codec.parse_dense("1\t2\r\n3\t4\r\n", size=2)
    assert grid.to_list() == [[1.0, 2.0], [3.0, 4.0]]


def test_parse_dense_bad_tokens_become_zero():
    grid = codec.parse_dense("x, 2 ,\n", size=3)
    assert grid.to_list()[0] == [0.0, 2.0, 0.0]


def test_parse_dense_skips_blank_lines():
    grid = codec.parse_dense("\n1,2\n\n3,4\n", size=2)
    assert grid.to_list() == [[1.0, 2.0], [3.0, 4.0]]


def test_parse_dense_ignores_excess():
    text = "\n".join(",".join(["1"] * 20) for _ in range(20))
    grid = codec.parse_dense(text)
    assert grid.size == 16
    assert grid.abs_max() == 1.0


@pytest.mark.parametrize("text", ["", "   ", "\n\n", None])
def test_parse_dense_blank_returns_none(text):
    assert codec.parse_dense(text) is None


# =============================================================================
# Sparse parsing
# =============================================================================

def test_parse_sparse_blank_fields_unset():
    grid = codec.parse_sparse("5,,-10\n,abc", size=3)
    assert grid.to_list() == [
        [5.0, None, -10.0],
        [None, None, None],
        [None, None, None],
    ]


def test_parse_sparse_keeps_unset_rows_and_leading_blanks():
    grid = codec.parse_sparse("\t\t\n\t5\t\n1\t\t", size=3)
    assert grid.to_list() == [
        [None, None, None],
        [None, 5.0, None],
        [1.0, None, None],
    ]


def test_parse_sparse_blank_returns_none():
    assert codec.parse_sparse("  \n ") is None


# =============================================================================
# Serialization
# =============================================================================

def test_serialize_dense_format():
    grid = GridBuffer.from_rows([[1, 2.5], [-0.0, 1 / 3]], size=2)
    assert codec.serialize_dense(grid) == "1.000\t2.500\n0.000\t0.333"


def test_serialize_dense_none_is_empty():
    assert codec.serialize_dense(None) == ""
    assert codec.serialize_sparse(None) == ""


def test_serialize_sparse_unset_cells_empty():
    grid = ModifierGrid.from_rows([[5.0, None], [None, -2.0]], size=2)
    assert codec.serialize_sparse(grid) == "5.000\t\n\t-2.000"


def test_dense_text_survives_parse_and_serialize():
    text = "1.000\t2.000\n3.500\t-4.250"
    grid = codec.parse_dense(text, size=2)
    assert codec.serialize_dense(grid) == text
    assert codec.parse_dense(codec.serialize_dense(grid), size=2).allclose(grid)


def test_sparse_pattern_survives_parse_and_serialize():
    grid = ModifierGrid.from_rows([[None, None, None], [None, 5.0, None], [-1.0, None, 2.5]], size=3)
    restored = codec.parse_sparse(codec.serialize_sparse(grid), size=3)
    assert restored.same_pattern(grid)


# =============================================================================
# Region paste
# =============================================================================

def test_paste_region_anchored():
    grid = GridBuffer.zeros(16)
    written = codec.paste_region("7\t8", 2, 2, grid)
    assert written == 2
    assert grid.get(2, 2) == 7.0
    assert grid.get(2, 3) == 8.0
    assert grid.abs_max() == 8.0


def test_paste_region_drops_overflow():
    grid = GridBuffer.zeros(16)
    written = codec.paste_region("1\t2\t3\n4\t5\t6", 15, 14, grid)
    assert written == 2
    assert grid.get(15, 14) == 1.0
    assert grid.get(15, 15) == 2.0


def test_paste_region_strips_junk_and_skips_unreadable():
    grid = GridBuffer.from_rows([[9, 9, 9]], size=4)
    written = codec.paste_region("$1,200\tabc\t45%", 0, 0, grid)
    assert written == 2
    assert grid.get(0, 0) == 1200.0
    assert grid.get(0, 1) == 9.0
    assert grid.get(0, 2) == 45.0


def test_paste_region_single_trailing_newline_removed():
    grid = GridBuffer.zeros(4)
    codec.paste_region("1\n2\n", 0, 0, grid)
    assert grid.get(0, 0) == 1.0
    assert grid.get(1, 0) == 2.0


def test_paste_region_leading_blank_line_shifts_down():
    grid = GridBuffer.zeros(4)
    codec.paste_region("\n5", 0, 0, grid)
    assert grid.get(0, 0) == 0.0
    assert grid.get(1, 0) == 5.0


def test_paste_region_into_modifiers_sets_cells():
    grid = ModifierGrid.empty(4)
    written = codec.paste_region("10,,-5", 1, 0, grid)
    assert written == 2
    assert grid.get(1, 0) == 10.0
    assert grid.get(1, 1) is None
    assert grid.get(1, 2) == -5.0


def test_paste_region_empty_text():
    grid = GridBuffer.zeros(4)
    assert codec.paste_region("", 0, 0, grid) == 0
