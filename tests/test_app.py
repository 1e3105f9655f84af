import pytest

from hex_quilt.app import create_app, parse_color
from hex_quilt.errors import ValidationFailure


@pytest.fixture
def client():
    app = create_app(
        {"TESTING": True, "QUILT_WIDTH": 6, "QUILT_HEIGHT": 6, "DITHER_SEED": 1}
    )
    return app.test_client()


def add(client, color, total):
    resp = client.post("/colors", json={"color": color, "total": total})
    assert resp.status_code == 201
    return resp.get_json()["id"]


def test_parse_color():
    assert parse_color("#ABC") == "#aabbcc"
    assert parse_color("red") == "#ff0000"
    assert parse_color("rgb(0 128 255)") == "#0080ff"
    with pytest.raises(ValidationFailure):
        parse_color("not-a-color")


def test_initial_grid(client):
    stats = client.get("/stats").get_json()
    assert (stats["cols"], stats["rows"]) == (3, 4)
    assert stats["totalCells"] == 12


def test_generate_grid(client):
    resp = client.post("/grid", json={"hexRealSize": 2, "quiltWidth": 30, "quiltHeight": 40})
    assert resp.get_json() == {"cols": 17, "rows": 27, "cells": 459}
    assert client.post("/grid", json={"hexRealSize": -1}).status_code == 400


def test_paint_undo_redo(client):
    cid = add(client, "red", 3)
    assert client.post("/tool/paint", json={"row": 0, "col": 0}).get_json() == {"changed": True}
    assert client.get("/cells/0/0").get_json()["colorId"] == cid

    assert client.post("/undo").get_json() == {"changed": True}
    assert client.get("/cells/0/0").get_json()["colorId"] is None
    assert client.post("/redo").get_json() == {"changed": True}
    assert client.get("/cells/0/0").get_json()["colorId"] == cid
    assert client.post("/redo").get_json() == {"changed": False}


def test_missing_cell(client):
    assert client.get("/cells/99/0").status_code == 404
    assert client.get("/cells/-1/0").get_json() == {"error": "no such cell"}


def test_capacity_exceeded(client):
    cid = add(client, "#00ff00", 1)
    resp = client.post("/tool/paint", json={"row": 1, "col": 1, "radius": 1})
    assert resp.status_code == 409
    assert resp.get_json()["painted"] == 1
    assert resp.get_json()["colorId"] == cid


def test_paint_without_color(client):
    resp = client.post("/tool/paint", json={"row": 0, "col": 0})
    assert resp.status_code == 400
    assert client.post("/tool/spray", json={"row": 0, "col": 0}).status_code == 400


def test_palette_endpoints(client):
    cid = add(client, "#0000ff", 4)
    client.post("/tool/paint", json={"row": 0, "col": 0, "radius": 1})
    resp = client.patch(f"/colors/{cid}", json={"total": 1})
    assert resp.get_json()["remaining"] == -2
    assert client.delete(f"/colors/{cid}").get_json() == {"removed": cid, "cleared": 3}
    assert client.delete(f"/colors/{cid}").status_code == 404


def test_gradient(client):
    assert client.post("/gradient").status_code == 400
    red = add(client, "#ff0000", 20)
    blue = add(client, "#0000ff", 20)
    client.post("/tool/anchor", json={"row": 0, "col": 0, "colorId": red})
    client.post("/tool/anchor", json={"row": 3, "col": 2, "colorId": blue})
    resp = client.post("/gradient", json={"dither": True, "intensity": 2})
    body = resp.get_json()
    assert resp.status_code == 200
    assert body["assigned"] == 12 and body["cleared"] == 0
    assert client.get("/cells/0/0").get_json()["colorId"] == red


def test_state_click_and_swap(client):
    red = add(client, "#ff0000", 5)
    client.post("/click", json={"row": 0, "col": 0})
    state = client.put("/state", json={"tool": "swap"}).get_json()
    assert state["tool"] == "swap" and state["selectedColorId"] == red
    first = client.post("/click", json={"row": 0, "col": 0}).get_json()
    assert first == {"changed": False, "pending": {"row": 0, "col": 0}}
    second = client.post("/click", json={"row": 2, "col": 2}).get_json()
    assert second == {"changed": True, "pending": None}
    assert client.get("/cells/2/2").get_json()["colorId"] == red
    assert client.put("/state", json={"tool": "spray"}).status_code == 400


def test_stroke(client):
    add(client, "#ff0000", 10)
    client.post("/stroke/begin")
    for col in range(3):
        client.post("/tool/paint", json={"row": 1, "col": col})
    assert client.post("/stroke/end").get_json()["recorded"] is True
    client.post("/undo")
    assert client.get("/stats").get_json()["totalPlaced"] == 0


def test_import_export(client):
    add(client, "#ff0000", 10)
    client.post("/tool/paint", json={"row": 0, "col": 0})
    exported = client.get("/design").get_json()

    bad = client.post("/design", json={"cols": 3, "rows": 4})
    assert bad.status_code == 400
    assert "failed to import design" in bad.get_json()["error"]
    assert client.get("/design").get_json() == exported

    client.post("/grid", json={"hexRealSize": 1})
    assert client.post("/design", json=exported).get_json() == {"cols": 3, "rows": 4}
    assert client.get("/design").get_json() == exported


def test_add_color_reports_lightness(client):
    resp = client.post("/colors", json={"color": "white", "total": 2})
    assert resp.status_code == 201
    assert resp.get_json() == {"id": 1, "rgbHex": "#ffffff", "total": 2, "light": True}
    dark = client.post("/colors", json={"color": "#101010", "total": 2}).get_json()
    assert dark["light"] is False


def test_undo_inside_open_stroke(client):
    add(client, "#ff0000", 10)
    client.post("/tool/paint", json={"row": 0, "col": 0})
    client.post("/stroke/begin")
    client.post("/tool/paint", json={"row": 2, "col": 2})
    assert client.post("/undo").get_json() == {"changed": True}
    assert client.get("/stats").get_json()["totalPlaced"] == 1
    assert client.post("/stroke/end").get_json()["recorded"] is False
    client.post("/undo")
    assert client.get("/stats").get_json()["totalPlaced"] == 0
    client.post("/redo")
    assert client.get("/cells/0/0").get_json()["colorId"] == 1
