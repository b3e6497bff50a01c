import pytest

from canvas_toolkit.core.element_factory import ElementFactory
from canvas_toolkit.core.exceptions import UnknownElementTypeError
from canvas_toolkit.core.models import EMPTY, FlexList, FreeContainer, LeafElement, MenuItem, SlotGrid, SlotStack


class TestLeafDefaults:

    def test_text_at_root(self, factory):
        element = factory.create("text")
        assert isinstance(element, LeafElement)
        assert element.id == "el-1"
        assert element.width == 12
        assert element.props["label"] == "New Text"
        assert element.props["name"] == "new_text"
        assert element.props["marginTop"] == 8
        assert element.props["labelSize"] == "sm"
        assert element.props["required"] is False

    def test_nested_margin(self, factory):
        assert factory.create("text", at_root=False).props["marginTop"] == 0

    def test_type_specific_props(self, factory):
        assert factory.create("star-rating").props["maxStars"] == 5
        assert len(factory.create("radio").props["options"]) == 2

    def test_label_override_and_no_label_props(self, factory):
        element = factory.create("rich-text")
        assert element.props["label"] == ""
        assert "labelSize" not in element.props

    def test_props_not_shared_between_elements(self, factory):
        first = factory.create("select")
        second = factory.create("select")
        first.props["options"].append({"label": "Extra", "value": "extra"})
        assert len(second.props["options"]) == 1

    def test_unknown_type(self, factory):
        with pytest.raises(UnknownElementTypeError) as exc:
            factory.create("carousel")
        assert exc.value.element_type == "carousel"


class TestContainerDefaults:

    def test_columns_prefilled_with_containers(self, factory):
        grid = factory.create("columns")
        assert isinstance(grid, SlotGrid)
        assert grid.column_count == 2
        assert all(isinstance(c, FreeContainer) for c in grid.children)
        assert [c.width for c in grid.children] == [6, 6]
        assert all(c.props["marginTop"] == 0 for c in grid.children)

    def test_bare_columns_start_empty(self, bare_factory):
        grid = bare_factory.create("columns")
        assert grid.children == (EMPTY, EMPTY)

    def test_rows_start_empty(self, factory):
        rows = factory.create("rows")
        assert isinstance(rows, SlotStack)
        assert rows.children == (EMPTY, EMPTY)

    def test_menu_has_three_buttons_and_mirror(self, factory):
        menu = factory.create("menu")
        assert isinstance(menu, FlexList)
        assert [c.type for c in menu.children] == ["button", "button", "button"]
        assert menu.mirror == (MenuItem("Home", "#"), MenuItem("About", "#"), MenuItem("Contact", "#"))
        assert len({c.id for c in menu.children} | {menu.id}) == 4

    def test_menu_fallback_items_without_config(self, id_factory):
        factory = ElementFactory(defaults={}, id_factory=id_factory)
        menu = factory.create("menu")
        assert [item.label for item in menu.mirror] == ["Home", "About", "Contact"]

    def test_unknown_slot_fill_is_ignored(self, id_factory):
        factory = ElementFactory(defaults={"types": {"columns": {"slot_fill": "carousel"}}}, id_factory=id_factory)
        assert factory.create("columns").children == (EMPTY, EMPTY)


class TestButtons:

    def test_create_button_matches_item(self, factory):
        button = factory.create_button(MenuItem("Docs", "/docs"))
        assert button.props["buttonText"] == "Docs"
        assert button.props["label"] == "Docs"
        assert button.props["buttonUrl"] == "/docs"
        assert button.props["buttonStyle"] == "primary"

    def test_buttons_for_mappings(self, factory):
        buttons = factory.buttons_for([{"label": "A", "href": "/a"}, {"label": "B"}])
        assert [b.props["buttonUrl"] for b in buttons] == ["/a", "#"]
