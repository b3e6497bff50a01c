import pytest

from canvas_toolkit.core.mirror import (
    coerce_menu_items,
    menu_item_for,
    mirrors_consistent,
    project_menu_items,
    sync_mirrors,
)
from canvas_toolkit.core.models import EMPTY, FlexList, FreeContainer, LeafElement, MenuItem, SlotGrid


def button(element_id, text, url="#"):
    return LeafElement(id=element_id, type="button", props={"label": text, "buttonText": text, "buttonUrl": url})


class TestProjection:

    def test_menu_item_prefers_button_text(self):
        btn = LeafElement(id="b", type="button", props={"label": "Label", "buttonText": "Text", "buttonUrl": "/x"})
        assert menu_item_for(btn) == MenuItem("Text", "/x")

    def test_menu_item_falls_back_to_label(self):
        btn = LeafElement(id="b", type="button", props={"label": "Label"})
        assert menu_item_for(btn) == MenuItem("Label", "#")

    def test_missing_url_matches_menu_item_default(self):
        btn = LeafElement(id="b", type="button", props={"buttonText": "Go"})
        assert menu_item_for(btn) == coerce_menu_items([{"label": "Go"}])[0] == MenuItem("Go")

    def test_only_buttons_are_projected(self):
        children = (button("a", "A"), LeafElement(id="t", type="text", props={"label": "T"}), button("b", "B"))
        assert project_menu_items(children) == (MenuItem("A", "#"), MenuItem("B", "#"))

    def test_coerce_accepts_mappings(self):
        items = coerce_menu_items([{"label": "Home", "href": "/"}, MenuItem("About")])
        assert items == (MenuItem("Home", "/"), MenuItem("About", "#"))

    def test_coerce_rejects_plain_strings(self):
        with pytest.raises(TypeError):
            coerce_menu_items(["Home"])


class TestSync:

    def test_stale_mirror_is_recomputed(self):
        menu = FlexList(id="m", type="menu", children=(button("a", "A"),), mirror=(MenuItem("Old", "#"),))
        synced = sync_mirrors((menu,))
        assert synced[0].mirror == (MenuItem("A", "#"),)

    def test_nested_menu_inside_slot_container(self):
        menu = FlexList(id="m", type="menu", children=(button("a", "A"), button("b", "B")))
        grid = SlotGrid(id="g", type="columns", column_count=2, children=(EMPTY, menu))
        outer = FreeContainer(id="c", type="container", children=(grid,))
        synced = sync_mirrors((outer,))
        assert synced[0].children[0].children[1].mirror == (MenuItem("A", "#"), MenuItem("B", "#"))
        assert synced[0].children[0].children[0] is EMPTY

    def test_consistent_tree_is_returned_as_is(self):
        menu = FlexList(id="m", type="menu", children=(button("a", "A"),), mirror=(MenuItem("A", "#"),))
        tree = (menu, LeafElement(id="t", type="text"))
        assert sync_mirrors(tree) is tree

    def test_idempotent(self):
        menu = FlexList(id="m", type="menu", children=(button("a", "A"),))
        once = sync_mirrors((menu,))
        assert sync_mirrors(once) is once
        assert mirrors_consistent(once)
        assert not mirrors_consistent((menu,))
