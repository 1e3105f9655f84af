import json

import pytest

from hex_quilt import editing, snapshot
from hex_quilt.errors import MalformedImport


def sample(make_design):
    d = make_design(4, 3)
    red = d.add_color("#ff0000", 8)
    teal = d.add_color("#008080", 2)
    d.add_color("#eeeeee", 1)
    d.remove_color(3)
    editing.paint(d, 1, 1, radius=1, color_id=red.id)
    editing.paint(d, 2, 3, color_id=teal.id)
    editing.anchor(d, 0, 0, red.id)
    editing.anchor(d, 2, 3, teal.id)
    editing.lock(d, 0, 3)
    d.show_numbers = True
    return d


def test_round_trip(make_design):
    d = sample(make_design)
    data = snapshot.to_dict(d)
    again = snapshot.from_dict(data)
    assert snapshot.to_dict(again) == data
    assert again.palette.next_id == 4
    assert len(again.history) == 1


def test_json_round_trip(make_design):
    d = sample(make_design)
    text = snapshot.dumps(d)
    assert json.loads(text)["grid"][3] == {"colorId": None, "locked": True}
    assert snapshot.to_dict(snapshot.loads(text)) == snapshot.to_dict(d)


def test_export_shape(make_design):
    data = snapshot.to_dict(sample(make_design))
    assert data["version"] == "1.0"
    assert len(data["grid"]) == data["cols"] * data["rows"]
    assert data["colors"] == [
        {"id": 1, "rgbHex": "#ff0000", "total": 8},
        {"id": 2, "rgbHex": "#008080", "total": 2},
    ]
    assert data["anchors"] == [
        {"row": 0, "col": 0, "colorId": 1},
        {"row": 2, "col": 3, "colorId": 2},
    ]


def test_missing_fields_use_defaults():
    d = snapshot.from_dict({"cols": 2, "rows": 1, "grid": [{}, {"locked": True}]})
    assert d.hex_real_size == 2
    assert (d.quilt_width, d.quilt_height) == (30, 40)
    assert d.unit == "in"
    assert d.show_numbers is False
    assert len(d.palette) == 0 and d.palette.next_id == 1
    assert d.grid.anchors == []
    assert d.hex_size == 30
    assert d.get_cell(0, 1).locked


def test_legacy_color_key_and_dangling_references():
    d = snapshot.from_dict(
        {
            "cols": 2,
            "rows": 1,
            "grid": [{"colorId": 5}, {"colorId": 9}],
            "colors": [{"id": 5, "color": "#ABCDEF", "total": 3}],
            "nextColorId": 2,
            "anchors": [
                {"row": 0, "col": 0, "colorId": 5},
                {"row": 0, "col": 1, "colorId": 9},
                {"row": 4, "col": 4, "colorId": 5},
            ],
        }
    )
    assert d.palette.get(5).hex == "#abcdef"
    assert d.palette.next_id == 6
    assert d.get_cell(0, 0).color_id == 5
    assert d.get_cell(0, 1).color_id is None
    assert [(a.row, a.col) for a in d.grid.anchors] == [(0, 0)]


@pytest.mark.parametrize(
    "data",
    [
        {"rows": 1, "grid": [{}]},
        {"cols": 1, "grid": [{}]},
        {"cols": 1, "rows": 1},
        {"cols": 2, "rows": 2, "grid": [{}]},
        {"cols": 1, "rows": 1, "grid": ["x"]},
        {"cols": 1, "rows": 1, "grid": [{}], "colors": [{"id": 1, "rgbHex": "nope"}]},
        {"cols": 1, "rows": 1, "grid": [{}], "colors": [{"id": 1}, {"id": 1}]},
        [],
    ],
)
def test_malformed(data):
    with pytest.raises(MalformedImport):
        snapshot.from_dict(data)


def test_bad_json():
    with pytest.raises(MalformedImport):
        snapshot.loads("{not json")
