from __future__ import annotations

"""Construction of new elements with type-appropriate defaults.

Defaults come from ``element_defaults.yml`` (see :mod:`canvas_toolkit.config`).
The factory is the only place where fresh ids are allocated for new elements;
structural operations receive ready-made elements from it.
"""

import copy
import logging
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple, Union

from canvas_toolkit.config import ConfigManager
from canvas_toolkit.core.exceptions import UnknownElementTypeError
from canvas_toolkit.core.mirror import coerce_menu_items, project_menu_items
from canvas_toolkit.core.models import (
    BUTTON_TYPE,
    EMPTY,
    GRID_UNITS,
    Element,
    ElementKind,
    FlexList,
    FreeContainer,
    LeafElement,
    MenuItem,
    SlotGrid,
    SlotStack,
    kind_for_type,
)
from canvas_toolkit.core.utils import default_label, generate_element_id, slugify

logger = logging.getLogger(__name__)

__all__ = ["ElementFactory"]

DEFAULT_COLUMN_COUNT = 2
DEFAULT_ROW_COUNT = 2
_FALLBACK_MENU_ITEMS = (
    MenuItem("Home", "#"),
    MenuItem("About", "#"),
    MenuItem("Contact", "#"),
)


class ElementFactory:
    """Builds elements of any registered type.

    Parameters
    ----------
    defaults
        Parsed ``element_defaults.yml`` mapping. Loaded through
        :class:`ConfigManager` when omitted.
    id_factory
        Callable returning a fresh unique id; injectable for tests.
    """

    def __init__(
        self,
        defaults: Optional[Mapping[str, Any]] = None,
        id_factory: Callable[[], str] = generate_element_id,
    ) -> None:
        if defaults is None:
            defaults = ConfigManager().get_element_defaults()
        self._defaults: Mapping[str, Any] = defaults or {}
        self.new_id = id_factory

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def create(self, element_type: str, *, at_root: bool = True, width: int = GRID_UNITS) -> Element:
        """Create a new element of *element_type*.

        Raises UnknownElementTypeError for types outside the registry.
        Containers that ship with an initial shape are returned pre-populated:
        columns get one ``slot_fill`` element per column, menus get their
        default buttons and a matching mirror.
        """
        kind = kind_for_type(element_type)
        if kind is None:
            raise UnknownElementTypeError(element_type)

        type_defaults = self._type_defaults(element_type)
        props = self._initial_props(element_type, type_defaults, at_root)
        element_id = self.new_id()

        if kind is ElementKind.LEAF:
            return LeafElement(id=element_id, type=element_type, width=width, props=props)
        if kind is ElementKind.FREE_CONTAINER:
            return FreeContainer(id=element_id, type=element_type, width=width, props=props)
        if kind is ElementKind.SLOT_GRID:
            column_count = int(type_defaults.get("column_count", DEFAULT_COLUMN_COUNT))
            return SlotGrid(
                id=element_id,
                type=element_type,
                width=width,
                props=props,
                column_count=column_count,
                children=self._slot_fill(type_defaults, column_count, max(1, GRID_UNITS // max(1, column_count))),
            )
        if kind is ElementKind.SLOT_STACK:
            row_count = int(type_defaults.get("row_count", DEFAULT_ROW_COUNT))
            return SlotStack(
                id=element_id,
                type=element_type,
                width=width,
                props=props,
                row_count=row_count,
                children=self._slot_fill(type_defaults, row_count, GRID_UNITS),
            )
        items = coerce_menu_items(type_defaults.get("menu_items") or _FALLBACK_MENU_ITEMS)
        buttons = self.buttons_for(items)
        return FlexList(
            id=element_id,
            type=element_type,
            width=width,
            props=props,
            children=buttons,
            mirror=project_menu_items(buttons),
        )

    def create_button(self, item: MenuItem) -> LeafElement:
        """Create a menu button whose mirror projection equals *item*."""
        type_defaults = self._type_defaults(BUTTON_TYPE)
        props = self._initial_props(BUTTON_TYPE, type_defaults, at_root=False)
        props.update({"label": item.label, "buttonText": item.label, "buttonUrl": item.href})
        props["name"] = slugify(item.label)
        return LeafElement(id=self.new_id(), type=BUTTON_TYPE, width=GRID_UNITS, props=props)

    def buttons_for(self, items: Iterable[Union[MenuItem, Mapping[str, Any]]]) -> Tuple[LeafElement, ...]:
        return tuple(self.create_button(item) for item in coerce_menu_items(items))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _type_defaults(self, element_type: str) -> Mapping[str, Any]:
        types = self._defaults.get("types") or {}
        return types.get(element_type) or {}

    def _initial_props(self, element_type: str, type_defaults: Mapping[str, Any], at_root: bool) -> Dict[str, Any]:
        label = type_defaults["label"] if "label" in type_defaults else default_label(element_type)
        props: Dict[str, Any] = {}
        props.update(copy.deepcopy((self._defaults.get("common") or {}).get("props") or {}))
        if type_defaults.get("has_label", True):
            props.update(copy.deepcopy(self._defaults.get("label_props") or {}))
        placement = "root_props" if at_root else "nested_props"
        props.update(copy.deepcopy(self._defaults.get(placement) or {}))
        props.update(copy.deepcopy(type_defaults.get("props") or {}))
        props["label"] = label
        props["name"] = slugify(label)
        return props

    def _slot_fill(self, type_defaults: Mapping[str, Any], count: int, width: int) -> Tuple[Any, ...]:
        fill_type = type_defaults.get("slot_fill")
        if not fill_type:
            return (EMPTY,) * count
        if kind_for_type(fill_type) is None:
            logger.warning("Ignoring unknown slot_fill type '%s'", fill_type)
            return (EMPTY,) * count
        return tuple(self.create(fill_type, at_root=False, width=width) for _ in range(count))
