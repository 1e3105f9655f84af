import pytest

from hex_quilt.design import QuiltDesign
from hex_quilt.grid import Grid


@pytest.fixture
def make_design():
    def _make(cols: int = 5, rows: int = 5) -> QuiltDesign:
        return QuiltDesign(grid=Grid(cols, rows))

    return _make
