import pytest

from hex_quilt import editing
from hex_quilt.design import QuiltDesign
from hex_quilt.errors import UnknownColor, ValidationFailure
from hex_quilt.grid import Anchor


def test_create_sizes_grid_from_measurements():
    d = QuiltDesign.create(2, 30, 40, "in")
    assert (d.cols, d.rows) == (17, 27)
    assert len(d.grid.cells) == d.cols * d.rows
    assert len(d.history) == 1 and not d.history.can_undo


def test_regenerate_keeps_palette_and_resets_the_rest(make_design):
    d = make_design(3, 3)
    red = d.add_color("#ff0000", 10)
    editing.paint(d, 1, 1, color_id=red.id)
    editing.anchor(d, 0, 0, red.id)
    editing.swap(d, 2, 2)

    cols, rows = d.generate_grid(2, 12, 20, "cm")
    assert len(d.grid.cells) == cols * rows
    assert d.unit == "cm"
    assert d.usage_count(red.id) == 0
    assert d.grid.anchors == []
    assert isinstance(d.swap_state, editing.Idle)
    assert len(d.history) == 1
    assert d.palette.get(red.id) is not None


def test_regenerate_rejects_bad_input(make_design):
    d = make_design(2, 2)
    with pytest.raises(ValidationFailure):
        d.generate_grid(0, 30, 40)
    with pytest.raises(ValidationFailure):
        d.generate_grid(2, 30, 40, "furlongs")
    assert (d.cols, d.rows) == (2, 2)


def test_get_cell_out_of_range_is_none(make_design):
    d = make_design(3, 2)
    assert d.get_cell(1, 2) is not None
    for row, col in [(-1, 0), (0, -1), (2, 0), (0, 3)]:
        assert d.get_cell(row, col) is None


def test_ids_are_never_reused(make_design):
    d = make_design()
    ids = [d.add_color(h, 1).id for h in ("#111111", "#222222", "#333333")]
    assert ids == [1, 2, 3]
    d.remove_color(3)
    assert d.add_color("#444444", 1).id == 4


def test_add_color_selects_it_and_remove_clears_selection(make_design):
    d = make_design()
    c = d.add_color("#123456", 4)
    assert d.selected_color_id == c.id
    d.remove_color(c.id)
    assert d.selected_color_id is None


def test_remove_color_clears_cells_and_anchors(make_design):
    d = make_design(4, 4)
    red = d.add_color("#ff0000", 20)
    blue = d.add_color("#0000ff", 20)
    editing.paint(d, 1, 1, radius=1, color_id=red.id)
    editing.paint(d, 3, 3, color_id=blue.id)
    editing.anchor(d, 0, 0, red.id)
    editing.anchor(d, 3, 3, blue.id)
    n = d.usage_count(red.id)

    assert d.remove_color(red.id) == n
    assert d.usage_count(red.id) == 0
    assert d.usage_count(blue.id) == 1
    assert [a.color_id for a in d.grid.anchors] == [blue.id]
    assert red.id not in d.palette


def test_remove_unknown_color(make_design):
    with pytest.raises(UnknownColor):
        make_design().remove_color(42)


def test_remaining_goes_negative_when_limit_lowered(make_design):
    d = make_design(4, 4)
    c = d.add_color("#00ff00", 7)
    editing.paint(d, 1, 1, radius=1)
    assert d.usage_count(c.id) == 7
    assert d.remaining(c.id) == 0
    d.update_quantity(c.id, 3)
    assert d.remaining(c.id) == -4
    # placed cells are left alone
    assert d.usage_count(c.id) == 7


def test_update_quantity_clamps_at_zero(make_design):
    d = make_design()
    c = d.add_color("#00ff00", 7)
    assert d.update_quantity(c.id, -5).total == 0
    with pytest.raises(UnknownColor):
        d.update_quantity(99, 1)


def test_stats(make_design):
    d = make_design(3, 3)
    a = d.add_color("#ff0000", 5)
    d.add_color("#0000ff", 2)
    editing.paint(d, 0, 0, color_id=a.id)
    editing.lock(d, 2, 2)
    d.grid.anchors.append(Anchor(1, 1, a.id))

    s = d.stats()
    assert s["totalCells"] == 9
    assert s["totalPlaced"] == 1
    assert s["totalAvailable"] == 7
    assert s["lockedCells"] == 1
    assert s["anchors"] == 1
    assert s["colors"][0] == {
        "id": 1,
        "rgbHex": "#ff0000",
        "total": 5,
        "used": 1,
        "remaining": 4,
    }
    assert s["canUndo"] and not s["canRedo"]


def test_select_and_tool(make_design):
    d = make_design()
    with pytest.raises(UnknownColor):
        d.select_color(5)
    d.set_tool("swap")
    assert d.tool is editing.Tool.SWAP
    with pytest.raises(ValueError):
        d.set_tool("spray")
