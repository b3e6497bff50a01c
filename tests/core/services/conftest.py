import os
import sys

import pytest

# Ensure project root is importable when running pytest from repository root
_THIS_DIR = os.path.dirname(__file__)
_REPO_ROOT = os.path.abspath(os.path.join(_THIS_DIR, "..", "..", ".."))
if _REPO_ROOT not in sys.path:
    sys.path.insert(0, _REPO_ROOT)

from canvas_toolkit.core.models import EMPTY, FreeContainer, LeafElement, SlotGrid, SlotStack


def _leaf(element_id, label=None, element_type="text", width=12):
    props = {"label": label if label is not None else element_id}
    return LeafElement(id=element_id, type=element_type, width=width, props=props)


@pytest.fixture
def leaf():
    return _leaf


@pytest.fixture
def sample_tree():
    """Hand-built tree with fixed ids.

    root: [box(a, b), grid(g0, EMPTY, g2), rows(EMPTY, r1), c]
    """
    box = FreeContainer(id="box", type="container", props={"label": "Box"},
                        children=(_leaf("a"), _leaf("b")))
    grid = SlotGrid(id="grid", type="columns", column_count=3, props={"label": "Grid"},
                    children=(_leaf("g0", width=4), EMPTY, _leaf("g2", width=4)))
    rows = SlotStack(id="rows", type="rows", row_count=2, props={"label": "Rows"},
                     children=(EMPTY, _leaf("r1")))
    return (box, grid, rows, _leaf("c"))
