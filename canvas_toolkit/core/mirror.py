from __future__ import annotations

"""Menu mirror maintenance.

A menu (flex-list) carries ``mirror``: the ordered ``{label, href}`` summary
of its button children, used by lightweight renderers that do not walk the
children. :func:`sync_mirrors` recomputes every mirror in one bottom-up pass
and is safe to run redundantly: a tree that is already consistent comes back
as the identical object.
"""

from dataclasses import replace
from typing import Any, Iterable, Mapping, Sequence, Tuple, Union

from canvas_toolkit.core.models import (
    BUTTON_TYPE,
    DEFAULT_HREF,
    EMPTY,
    ContainerElement,
    Element,
    Elements,
    FlexList,
    MenuItem,
    Slot,
)

__all__ = [
    "menu_item_for",
    "project_menu_items",
    "coerce_menu_items",
    "sync_mirrors",
    "mirrors_consistent",
]


def menu_item_for(button: Element) -> MenuItem:
    """Project a button element to its mirror entry.

    A button without ``buttonUrl`` links to ``DEFAULT_HREF``, the same
    default :class:`MenuItem` and :func:`coerce_menu_items` use.
    """
    props = button.props
    label = props.get("buttonText")
    if label is None:
        label = props.get("label", "")
    href = props.get("buttonUrl")
    return MenuItem(label=str(label), href=DEFAULT_HREF if href is None else str(href))


def project_menu_items(children: Iterable[Slot]) -> Tuple[MenuItem, ...]:
    return tuple(
        menu_item_for(child)
        for child in children
        if child is not EMPTY and child.type == BUTTON_TYPE
    )


def coerce_menu_items(items: Iterable[Union[MenuItem, Mapping[str, Any]]]) -> Tuple[MenuItem, ...]:
    """Accept MenuItem objects or ``{label, href}`` mappings.

    Raises
    ------
    TypeError
        If an item is neither a MenuItem nor a mapping.
    """
    result = []
    for item in items:
        if isinstance(item, MenuItem):
            result.append(item)
        elif not isinstance(item, Mapping):
            raise TypeError(f"Menu item must be a MenuItem or a mapping, not {type(item).__name__}")
        else:
            result.append(MenuItem(label=str(item.get("label", "")), href=str(item.get("href", DEFAULT_HREF))))
    return tuple(result)


def _sync_element(element: Element) -> Element:
    if not isinstance(element, ContainerElement):
        return element
    children, changed = _sync_sequence(element.children)
    if changed:
        element = replace(element, children=children)
    if isinstance(element, FlexList):
        mirror = project_menu_items(element.children)
        if mirror != element.mirror:
            element = replace(element, mirror=mirror)
    return element


def _sync_sequence(seq: Tuple[Slot, ...]) -> Tuple[Tuple[Slot, ...], bool]:
    out = []
    changed = False
    for item in seq:
        new_item = item if item is EMPTY else _sync_element(item)
        changed = changed or new_item is not item
        out.append(new_item)
    return (tuple(out) if changed else seq), changed


def sync_mirrors(elements: Sequence[Element]) -> Elements:
    """Return *elements* with every menu mirror matching its button children."""
    seq = tuple(elements)
    new_seq, changed = _sync_sequence(seq)
    if not changed and isinstance(elements, tuple):
        return elements
    return new_seq  # type: ignore[return-value]


def mirrors_consistent(elements: Sequence[Element]) -> bool:
    return sync_mirrors(tuple(elements)) == tuple(elements)
