import copy
from dataclasses import replace

import pytest

from canvas_toolkit.core.models import (
    EMPTY,
    ElementKind,
    FlexList,
    FreeContainer,
    LeafElement,
    MenuItem,
    SlotGrid,
    SlotStack,
    element_class_for,
    fit_slots,
    kind_for_type,
)


class TestKindRegistry:

    @pytest.mark.parametrize("element_type,kind", [
        ("text", ElementKind.LEAF),
        ("button", ElementKind.LEAF),
        ("container", ElementKind.FREE_CONTAINER),
        ("grid", ElementKind.FREE_CONTAINER),
        ("columns", ElementKind.SLOT_GRID),
        ("rows", ElementKind.SLOT_STACK),
        ("menu", ElementKind.FLEX_LIST),
    ])
    def test_known_types(self, element_type, kind):
        assert kind_for_type(element_type) is kind

    def test_unknown_type(self):
        assert kind_for_type("carousel") is None
        assert element_class_for("carousel") is None

    def test_element_class_for(self):
        assert element_class_for("columns") is SlotGrid
        assert element_class_for("rows") is SlotStack
        assert element_class_for("menu") is FlexList
        assert element_class_for("email") is LeafElement


class TestEmptySlot:

    def test_singleton_survives_copies(self):
        assert copy.copy(EMPTY) is EMPTY
        assert copy.deepcopy(EMPTY) is EMPTY
        assert copy.deepcopy((EMPTY, EMPTY))[1] is EMPTY

    def test_falsy_and_repr(self):
        assert not EMPTY
        assert repr(EMPTY) == "EMPTY"


class TestElements:

    def test_props_are_owned(self):
        payload = {"label": "Name"}
        leaf = LeafElement(id="a", type="text", props=payload)
        payload["label"] = "Changed"
        assert leaf.label == "Name"

    def test_props_are_read_only(self):
        button = LeafElement(id="b", type="button", props={"buttonText": "Go"})
        with pytest.raises(TypeError):
            button.props["buttonText"] = "Stop"

    def test_replaced_element_does_not_share_nested_props(self):
        original = LeafElement(id="s", type="select", props={"options": [{"label": "A"}]})
        renamed = replace(original, props={**original.props, "label": "Pick"})
        resized = replace(original, width=6)
        renamed.props["options"].append({"label": "B"})
        resized.props["options"][0]["label"] = "Z"
        assert original.props["options"] == [{"label": "A"}]

    def test_equal_payloads_compare_equal(self):
        assert LeafElement(id="a", type="text", props={"x": [1]}) == LeafElement(id="a", type="text", props={"x": [1]})

    def test_label_defaults_to_empty_string(self):
        assert LeafElement(id="a", type="image").label == ""

    def test_is_container(self):
        assert not LeafElement(id="a", type="text").is_container
        assert FreeContainer(id="b", type="container").is_container

    def test_dense_container_drops_holes(self):
        leaf = LeafElement(id="a", type="text")
        container = FreeContainer(id="c", type="container", children=(EMPTY, leaf, EMPTY))
        assert container.children == (leaf,)

    def test_slot_grid_pads_to_column_count(self):
        grid = SlotGrid(id="g", type="columns", column_count=3)
        assert grid.children == (EMPTY, EMPTY, EMPTY)
        assert grid.cardinality == 3
        assert grid.open_slots() == (0, 1, 2)

    def test_slot_grid_truncates_extra_children(self):
        a = LeafElement(id="a", type="text")
        b = LeafElement(id="b", type="text")
        grid = SlotGrid(id="g", type="columns", column_count=1, children=(a, b))
        assert grid.children == (a,)

    def test_none_becomes_empty(self):
        stack = SlotStack(id="r", type="rows", row_count=2, children=(None, LeafElement(id="a", type="text")))
        assert stack.children[0] is EMPTY
        assert stack.open_slots() == (0,)

    def test_cardinality_never_below_one(self):
        assert SlotGrid(id="g", type="columns", column_count=0).column_count == 1

    def test_fit_slots(self):
        leaf = LeafElement(id="a", type="text")
        assert fit_slots([leaf], 3) == (leaf, EMPTY, EMPTY)
        assert fit_slots([leaf, leaf, leaf], 2) == (leaf, leaf)

    def test_menu_item_to_dict(self):
        assert MenuItem("Home").to_dict() == {"label": "Home", "href": "#"}
