from __future__ import annotations

"""Service layer for structural edits on the document element tree.

This module provides a UI-agnostic, testable service that encapsulates every
structural mutation of the builder (add, remove, duplicate, update, move,
reorder, nest).

Scope and guarantees:
- Operates purely in-memory on immutable element tuples, no file I/O nor UI.
- Every operation is a pure function of its inputs; the input tree is never
  mutated and a new tree is returned inside an :class:`OperationResult`.
- Invalid operations return ``OperationResult(success=False, ...)`` carrying
  the unchanged input tree and ``details["reason"]``; they never raise.
- Successful results always have menu mirrors re-synchronised.

Rejection reasons
-----------------
``not_found``
    An operand id is absent (or the element and target are the same node
    for a relative insert).
``cycle``
    The destination lies inside the subtree being moved.
``type_mismatch``
    The destination is not a container, or a slot operation targets a
    container without slots.
``slot_out_of_range``
    Slot index outside ``[0, cardinality)``.
``container_full``
    A slot container has no EMPTY slot where one is needed.
``boundary``
    Reorder at the first/last position, or a relative slot insert that
    falls outside the container.
``unknown_type``
    The requested element type is not registered.
``invalid_direction``
    ``move_element`` direction other than "up"/"down".
``duplicate_id``
    An update would make an id appear twice in the tree.
``invalid_value``
    An update value cannot be used for its key (non-numeric width or
    count, children that are not elements, malformed menu items).

Examples
--------
Basic usage:

    service = StructureEditingService()
    result = service.add_element((), "columns")
    if not result.success:
        print(result.message)
    elements = result.elements

"""

from dataclasses import dataclass, replace
import logging
from typing import Any, Dict, Iterable, List, Literal, Mapping, Optional, Tuple

from canvas_toolkit.core.element_factory import ElementFactory
from canvas_toolkit.core.exceptions import UnknownElementTypeError
from canvas_toolkit.core.mirror import sync_mirrors
from canvas_toolkit.core.models import (
    EMPTY,
    GRID_UNITS,
    ContainerElement,
    Element,
    Elements,
    FlexList,
    Slot,
    SlotContainer,
    SlotGrid,
    SlotStack,
)
from canvas_toolkit.core.tree import (
    child_width,
    children_of,
    clone_with_new_ids,
    collect_ids,
    detach,
    find_duplicate_ids,
    find_element,
    find_parent,
    index_of,
    is_descendant,
    replace_element,
    update_children,
    with_width,
)


__all__ = ["OperationResult", "StructureEditingService"]

logger = logging.getLogger(__name__)

COPY_SUFFIX = "(Copy)"

_RESERVED_UPDATE_KEYS = frozenset({"id", "type"})
_COLUMN_COUNT_KEYS = ("column_count", "columnCount")
_ROW_COUNT_KEYS = ("row_count", "rowCount")
_MENU_ITEMS_KEYS = ("menu_items", "menuItems", "mirror")


@dataclass(frozen=True)
class OperationResult:
    """Result of a structural editing operation.

    Attributes
    ----------
    success
        Whether the operation was applied.
    message
        Human-readable summary suitable for logs or UI display.
    elements
        The resulting tree. For rejected operations this is the very same
        tuple that was passed in.
    details
        Optional structured details for diagnostics or caller logic
        (``reason``, ``element_id``, ``removed_ids``...).
    """
    success: bool
    message: str
    elements: Elements = ()
    details: Optional[Dict[str, Any]] = None

    @property
    def reason(self) -> Optional[str]:
        if not self.details:
            return None
        return self.details.get("reason")


class StructureEditingService:
    """Encapsulates structural edit operations on an element tree.

    Design principles:
    - No UI dependencies, no disk I/O.
    - No exceptions for expected invalid actions; return OperationResult.
    - Targets are always identified by id, never by a transient index.

    Parameters
    ----------
    factory
        Element factory used to build new elements and allocate fresh ids.
        Defaults to an :class:`ElementFactory` reading packaged defaults.
    """

    def __init__(self, factory: Optional[ElementFactory] = None) -> None:
        self._factory = factory if factory is not None else ElementFactory()

    @property
    def factory(self) -> ElementFactory:
        return self._factory

    # -------------------------------------------------------------------------
    # Public API: creation
    # -------------------------------------------------------------------------

    def add_element(self, elements: Elements, element_type: str, parent_id: Optional[str] = None) -> OperationResult:
        """Create an element of *element_type* and attach it.

        Without *parent_id* the element is appended at the document root.
        Dense parents append it; slot parents receive it in their first EMPTY
        slot (slot containers never grow).
        """
        logger.info("Edit: add_element type=%s parent=%s", element_type, parent_id)
        parent = None
        if parent_id is not None:
            parent = find_element(elements, parent_id)
            if parent is None:
                return self._reject("add_element", "not_found", f"Parent not found for id '{parent_id}'.", elements, parent_id=parent_id)
            if not isinstance(parent, ContainerElement):
                return self._reject("add_element", "type_mismatch", f"Element '{parent_id}' is not a container.", elements, parent_id=parent_id)
            if isinstance(parent, SlotContainer) and not parent.open_slots():
                return self._reject("add_element", "container_full", f"Container '{parent_id}' has no empty slot.", elements, parent_id=parent_id)

        element, failure = self._create(elements, "add_element", element_type, parent)
        if failure is not None:
            return failure

        if parent is None:
            new_elements = tuple(elements) + (element,)
        else:
            new_elements = self._attach(elements, parent, element)
        return self._ok("add_element", f"Added {element_type}.", new_elements, element_id=element.id, parent_id=parent_id)

    def add_element_at_start(self, elements: Elements, element_type: str) -> OperationResult:
        """Create an element and prepend it at the document root."""
        logger.info("Edit: add_element_at_start type=%s", element_type)
        element, failure = self._create(elements, "add_element_at_start", element_type, None)
        if failure is not None:
            return failure
        new_elements = (element,) + tuple(elements)
        return self._ok("add_element_at_start", f"Added {element_type} at start.", new_elements, element_id=element.id, parent_id=None)

    def add_element_before(
        self, elements: Elements, element_type: str, target_id: str, target_parent_id: Optional[str] = None
    ) -> OperationResult:
        """Create an element immediately before *target_id*."""
        return self._add_next_to(elements, element_type, target_id, target_parent_id, after=False)

    def add_element_after(
        self, elements: Elements, element_type: str, target_id: str, target_parent_id: Optional[str] = None
    ) -> OperationResult:
        """Create an element immediately after *target_id*."""
        return self._add_next_to(elements, element_type, target_id, target_parent_id, after=True)

    def add_element_to_slot(
        self, elements: Elements, element_type: str, container_id: str, slot_index: int
    ) -> OperationResult:
        """Create an element straight into slot *slot_index* of a slot container.

        An occupied slot is overwritten, like :meth:`move_to_slot`.
        """
        op = "add_element_to_slot"
        logger.info("Edit: %s type=%s container=%s slot=%s", op, element_type, container_id, slot_index)
        container, failure = self._resolve_slot_target(elements, op, container_id, slot_index)
        if failure is not None:
            return failure
        element, failure = self._create(elements, op, element_type, container)
        if failure is not None:
            return failure
        new_elements, displaced = self._place_in_slot(elements, container_id, slot_index, element)
        return self._slot_result(op, f"Added {element_type} to slot {slot_index}.", new_elements, element.id, container_id, slot_index, displaced)

    def add_block(self, elements: Elements, block: Element, parent_id: Optional[str] = None) -> OperationResult:
        """Insert a fresh-id clone of a saved *block*.

        The clone is appended at the root, or attached to *parent_id* with the
        same rules as :meth:`add_element`.
        """
        logger.info("Edit: add_block type=%s parent=%s", block.type, parent_id)
        parent = None
        if parent_id is not None:
            parent = find_element(elements, parent_id)
            if parent is None:
                return self._reject("add_block", "not_found", f"Parent not found for id '{parent_id}'.", elements, parent_id=parent_id)
            if not isinstance(parent, ContainerElement):
                return self._reject("add_block", "type_mismatch", f"Element '{parent_id}' is not a container.", elements, parent_id=parent_id)
            if isinstance(parent, SlotContainer) and not parent.open_slots():
                return self._reject("add_block", "container_full", f"Container '{parent_id}' has no empty slot.", elements, parent_id=parent_id)

        clone = clone_with_new_ids(block, self._factory.new_id)
        if parent is None:
            new_elements = tuple(elements) + (with_width(clone, GRID_UNITS),)
        else:
            new_elements = self._attach(elements, parent, clone)
        return self._ok("add_block", f"Added block {block.label or block.type}.", new_elements, element_id=clone.id, parent_id=parent_id)

    # -------------------------------------------------------------------------
    # Public API: removal and duplication
    # -------------------------------------------------------------------------

    def remove_element(self, elements: Elements, element_id: str) -> OperationResult:
        """Remove *element_id* and its subtree from wherever it lives."""
        logger.info("Edit: remove_element element=%s", element_id)
        new_elements, removed = detach(elements, element_id)
        if removed is None:
            return self._reject("remove_element", "not_found", f"Element not found for id '{element_id}'.", elements, element_id=element_id)
        removed_ids = collect_ids(removed)
        return self._ok("remove_element", f"Removed {removed.type}.", new_elements, element_id=element_id, removed_ids=removed_ids)

    def duplicate_element(self, elements: Elements, element_id: str) -> OperationResult:
        """Clone *element_id* and place the clone right after the original.

        Every id in the clone is fresh. Only the top-level label receives the
        "(Copy)" suffix, and only when it does not already contain it. In a
        slot parent the clone takes the first EMPTY slot after the original.
        """
        logger.info("Edit: duplicate_element element=%s", element_id)
        location = find_parent(elements, element_id)
        if location is None:
            return self._reject("duplicate_element", "not_found", f"Element not found for id '{element_id}'.", elements, element_id=element_id)

        original = find_element(elements, element_id)
        clone = clone_with_new_ids(original, self._factory.new_id)
        label = original.label
        if "label" in original.props and COPY_SUFFIX not in label:
            props = dict(clone.props)
            props["label"] = f"{label} {COPY_SUFFIX}"
            clone = replace(clone, props=props)

        index = location.index
        if isinstance(location.parent, SlotContainer):
            later = [i for i in location.parent.open_slots() if i > index]
            if not later:
                return self._reject(
                    "duplicate_element", "container_full",
                    f"No empty slot after '{element_id}' in container '{location.parent_id}'.",
                    elements, element_id=element_id,
                )
            target_index = later[0]

            def _fill(children: Tuple[Slot, ...]) -> List[Slot]:
                out = list(children)
                out[target_index] = clone
                return out

            new_elements = update_children(elements, location.parent_id, _fill)
        else:
            new_elements = update_children(
                elements, location.parent_id, lambda children: children[: index + 1] + (clone,) + children[index + 1:]
            )
        return self._ok(
            "duplicate_element", f"Duplicated {original.type}.", new_elements,
            element_id=clone.id, source_id=element_id, parent_id=location.parent_id,
        )

    def remove_from_container(self, elements: Elements, element_id: str, container_id: str) -> OperationResult:
        """Remove *element_id* only if it is a direct child of *container_id*.

        Slot containers keep a hole at the removed position; dense containers
        splice the entry out.
        """
        logger.info("Edit: remove_from_container element=%s container=%s", element_id, container_id)
        container = find_element(elements, container_id)
        if container is None:
            return self._reject("remove_from_container", "not_found", f"Container not found for id '{container_id}'.", elements, container_id=container_id)
        if not isinstance(container, ContainerElement):
            return self._reject("remove_from_container", "type_mismatch", f"Element '{container_id}' is not a container.", elements, container_id=container_id)
        if index_of(container.children, element_id) < 0:
            return self._reject(
                "remove_from_container", "not_found",
                f"Element '{element_id}' is not a child of '{container_id}'.",
                elements, element_id=element_id, container_id=container_id,
            )
        new_elements, removed = detach(elements, element_id)
        return self._ok(
            "remove_from_container", f"Removed {removed.type} from container.", new_elements,
            element_id=element_id, container_id=container_id, removed_ids=collect_ids(removed),
        )

    # -------------------------------------------------------------------------
    # Public API: update
    # -------------------------------------------------------------------------

    def update_element(self, elements: Elements, element_id: str, updates: Mapping[str, Any]) -> OperationResult:
        """Shallow-merge *updates* into an element.

        Recognised keys: ``width``; ``props`` (merged); ``children`` for
        containers; ``column_count``/``columnCount`` for columns;
        ``row_count``/``rowCount`` for rows; ``menu_items``/``menuItems``/
        ``mirror`` for menus, which regenerates the button children from the
        given items. ``id`` and ``type`` are never changed. Any other key is
        merged into ``props``.
        """
        logger.info("Edit: update_element element=%s keys=%s", element_id, sorted(updates or {}))
        element = find_element(elements, element_id)
        if element is None:
            return self._reject("update_element", "not_found", f"Element not found for id '{element_id}'.", elements, element_id=element_id)

        props = dict(element.props)
        changes: Dict[str, Any] = {}
        ignored: List[str] = []
        rewidth = False
        for key, value in (updates or {}).items():
            if key in _RESERVED_UPDATE_KEYS:
                ignored.append(key)
            elif key == "width":
                width = _bounded_int(value, 1, GRID_UNITS)
                if width is None:
                    return self._invalid_value(elements, element_id, key, value)
                changes["width"] = width
            elif key == "props" and isinstance(value, Mapping):
                props.update(value)
            elif key == "children":
                if not isinstance(element, ContainerElement):
                    ignored.append(key)
                    continue
                children = _child_slots(value)
                if children is None:
                    return self._invalid_value(elements, element_id, key, value)
                changes["children"] = children
                rewidth = True
            elif key in _COLUMN_COUNT_KEYS:
                if not isinstance(element, SlotGrid):
                    ignored.append(key)
                    continue
                count = _bounded_int(value, 1)
                if count is None:
                    return self._invalid_value(elements, element_id, key, value)
                changes["column_count"] = count
                rewidth = True
            elif key in _ROW_COUNT_KEYS:
                if not isinstance(element, SlotStack):
                    ignored.append(key)
                    continue
                count = _bounded_int(value, 1)
                if count is None:
                    return self._invalid_value(elements, element_id, key, value)
                changes["row_count"] = count
            elif key in _MENU_ITEMS_KEYS:
                if not isinstance(element, FlexList):
                    ignored.append(key)
                    continue
                try:
                    changes["children"] = self._factory.buttons_for(value)
                except TypeError:
                    return self._invalid_value(elements, element_id, key, value)
                changes["mirror"] = ()
            else:
                props[key] = value

        updated = replace(element, props=props, **changes)
        if rewidth and isinstance(updated, ContainerElement):
            updated = self._rewidth_children(updated)

        new_elements = replace_element(elements, element_id, lambda _: updated)
        duplicates = find_duplicate_ids(new_elements)
        if duplicates:
            return self._reject(
                "update_element", "duplicate_id", f"Update would duplicate ids: {', '.join(duplicates)}.",
                elements, element_id=element_id, duplicate_ids=duplicates,
            )
        kept = set(collect_ids(updated))
        removed_ids = [i for i in collect_ids(element) if i not in kept]
        if removed_ids:
            logger.info("Edit: update_element element=%s dropped %d element(s)", element_id, len(removed_ids))
        return self._ok(
            "update_element", f"Updated {element.type}.", new_elements,
            element_id=element_id, removed_ids=removed_ids, ignored_keys=ignored,
        )

    # -------------------------------------------------------------------------
    # Public API: relocation
    # -------------------------------------------------------------------------

    def move_to_container(self, elements: Elements, element_id: str, container_id: str) -> OperationResult:
        """Detach *element_id* and append it to *container_id*.

        Slot containers receive the element in their first EMPTY slot (after
        the element left its old position); a full slot container rejects.
        """
        op = "move_to_container"
        logger.info("Edit: %s element=%s container=%s", op, element_id, container_id)
        container, failure = self._resolve_move(elements, op, element_id, container_id)
        if failure is not None:
            return failure
        if not isinstance(container, ContainerElement):
            return self._reject(op, "type_mismatch", f"Element '{container_id}' is not a container.", elements, element_id=element_id, container_id=container_id)

        detached, moved = detach(elements, element_id)
        container = find_element(detached, container_id)
        if isinstance(container, SlotContainer) and not container.open_slots():
            return self._reject(op, "container_full", f"Container '{container_id}' has no empty slot.", elements, element_id=element_id, container_id=container_id)
        new_elements = self._attach(detached, container, moved)
        return self._ok(op, f"Moved {moved.type} into {container.type}.", new_elements, element_id=element_id, container_id=container_id)

    def move_to_slot(self, elements: Elements, element_id: str, container_id: str, slot_index: int) -> OperationResult:
        """Detach *element_id* and place it at *slot_index* of a slot container.

        Whatever occupies the target slot is overwritten and destroyed; its
        ids are reported in ``details["removed_ids"]``.
        """
        op = "move_to_slot"
        logger.info("Edit: %s element=%s container=%s slot=%s", op, element_id, container_id, slot_index)
        _, failure = self._resolve_move(elements, op, element_id, container_id)
        if failure is not None:
            return failure
        _, failure = self._resolve_slot_target(elements, op, container_id, slot_index)
        if failure is not None:
            return failure

        detached, moved = detach(elements, element_id)
        new_elements, displaced = self._place_in_slot(detached, container_id, slot_index, moved)
        return self._slot_result(op, f"Moved {moved.type} to slot {slot_index}.", new_elements, element_id, container_id, slot_index, displaced)

    def insert_before(
        self, elements: Elements, element_id: str, target_id: str, target_parent_id: Optional[str] = None
    ) -> OperationResult:
        """Move *element_id* immediately before *target_id* within *target_parent_id* (root if None)."""
        return self._move_next_to(elements, element_id, target_id, target_parent_id, after=False)

    def insert_after(
        self, elements: Elements, element_id: str, target_id: str, target_parent_id: Optional[str] = None
    ) -> OperationResult:
        """Move *element_id* immediately after *target_id* within *target_parent_id* (root if None)."""
        return self._move_next_to(elements, element_id, target_id, target_parent_id, after=True)

    def move_element(
        self,
        elements: Elements,
        element_id: str,
        direction: Literal["up", "down"],
        parent_id: Optional[str] = None,
    ) -> OperationResult:
        """Swap *element_id* with its previous/next sibling by index.

        Holes in slot containers count as siblings, so an element can be
        moved into an adjacent EMPTY slot.
        """
        logger.info("Edit: move_element direction=%s element=%s parent=%s", direction, element_id, parent_id)
        if direction not in ("up", "down"):
            return self._reject(
                "move_element", "invalid_direction", f"Unsupported move direction '{direction}'.",
                elements, allowed=["up", "down"],
            )
        if parent_id is None:
            siblings: Tuple[Slot, ...] = tuple(elements)
        else:
            parent = find_element(elements, parent_id)
            if parent is None:
                return self._reject("move_element", "not_found", f"Parent not found for id '{parent_id}'.", elements, parent_id=parent_id)
            if not isinstance(parent, ContainerElement):
                return self._reject("move_element", "type_mismatch", f"Element '{parent_id}' is not a container.", elements, parent_id=parent_id)
            siblings = parent.children

        index = index_of(siblings, element_id)
        if index < 0:
            return self._reject(
                "move_element", "not_found", f"Element '{element_id}' not found in parent.",
                elements, element_id=element_id, parent_id=parent_id,
            )
        neighbour = index - 1 if direction == "up" else index + 1
        if neighbour < 0 or neighbour >= len(siblings):
            return self._reject(
                "move_element", "boundary", f"Cannot move {direction} (at boundary).",
                elements, element_id=element_id, direction=direction,
            )

        def _swap(children: Tuple[Slot, ...]) -> List[Slot]:
            out = list(children)
            out[index], out[neighbour] = out[neighbour], out[index]
            return out

        new_elements = update_children(elements, parent_id, _swap)
        return self._ok(
            "move_element", f"Moved element {direction}.", new_elements,
            element_id=element_id, direction=direction, index=neighbour,
        )

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _ok(self, op: str, message: str, elements: Elements, **details: Any) -> OperationResult:
        logger.info("Edit OK: %s %s", op, _format_details(details))
        return OperationResult(True, message, sync_mirrors(elements), details)

    def _invalid_value(self, elements: Elements, element_id: str, key: str, value: Any) -> OperationResult:
        return self._reject(
            "update_element", "invalid_value", f"Invalid value for '{key}': {value!r}.",
            elements, element_id=element_id, key=key,
        )

    def _reject(self, op: str, reason: str, message: str, elements: Elements, **details: Any) -> OperationResult:
        details["reason"] = reason
        if reason == "not_found":
            logger.warning("Edit FAIL: %s %s", op, _format_details(details))
        else:
            logger.info("Edit noop: %s %s", op, _format_details(details))
        return OperationResult(False, message, elements, details)

    def _create(
        self, elements: Elements, op: str, element_type: str, parent: Optional[Element]
    ) -> Tuple[Optional[Element], Optional[OperationResult]]:
        try:
            element = self._factory.create(element_type, at_root=parent is None, width=child_width(parent))
        except UnknownElementTypeError as exc:
            return None, self._reject(op, "unknown_type", str(exc), elements, element_type=element_type)
        return element, None

    def _attach(self, elements: Elements, parent: ContainerElement, element: Element) -> Elements:
        """Append to a dense parent, or fill the first EMPTY slot of a slot parent.

        Callers have checked that a slot parent has an open slot.
        """
        child = with_width(element, child_width(parent))
        if isinstance(parent, SlotContainer):
            slot = parent.open_slots()[0]

            def _fill(children: Tuple[Slot, ...]) -> List[Slot]:
                out = list(children)
                out[slot] = child
                return out

            return update_children(elements, parent.id, _fill)
        return update_children(elements, parent.id, lambda children: children + (child,))

    def _rewidth_children(self, container: ContainerElement) -> ContainerElement:
        width = child_width(container)
        children = tuple(child if child is EMPTY else with_width(child, width) for child in container.children)
        if children == container.children:
            return container
        return replace(container, children=children)

    def _resolve_move(
        self, elements: Elements, op: str, element_id: str, container_id: str
    ) -> Tuple[Optional[Element], Optional[OperationResult]]:
        """Look up both operands of a move and reject cycles."""
        if find_element(elements, element_id) is None:
            return None, self._reject(op, "not_found", f"Element not found for id '{element_id}'.", elements, element_id=element_id)
        container = find_element(elements, container_id)
        if container is None:
            return None, self._reject(op, "not_found", f"Container not found for id '{container_id}'.", elements, container_id=container_id)
        if container_id == element_id or is_descendant(elements, container_id, element_id):
            return None, self._reject(
                op, "cycle", f"Cannot move '{element_id}' into itself or its descendant.",
                elements, element_id=element_id, container_id=container_id,
            )
        return container, None

    def _resolve_slot_target(
        self, elements: Elements, op: str, container_id: str, slot_index: int
    ) -> Tuple[Optional[SlotContainer], Optional[OperationResult]]:
        container = find_element(elements, container_id)
        if container is None:
            return None, self._reject(op, "not_found", f"Container not found for id '{container_id}'.", elements, container_id=container_id)
        if not isinstance(container, SlotContainer):
            return None, self._reject(op, "type_mismatch", f"Element '{container_id}' has no slots.", elements, container_id=container_id)
        if not 0 <= slot_index < container.cardinality:
            return None, self._reject(
                op, "slot_out_of_range", f"Slot {slot_index} outside 0..{container.cardinality - 1}.",
                elements, container_id=container_id, slot_index=slot_index,
            )
        return container, None

    def _place_in_slot(
        self, elements: Elements, container_id: str, slot_index: int, element: Element
    ) -> Tuple[Elements, Slot]:
        container = find_element(elements, container_id)
        displaced = container.children[slot_index]
        child = with_width(element, child_width(container))

        def _put(children: Tuple[Slot, ...]) -> List[Slot]:
            out = list(children)
            out[slot_index] = child
            return out

        return update_children(elements, container_id, _put), displaced

    def _slot_result(
        self, op: str, message: str, elements: Elements, element_id: str,
        container_id: str, slot_index: int, displaced: Slot,
    ) -> OperationResult:
        removed_ids: List[str] = []
        if displaced is not EMPTY:
            removed_ids = collect_ids(displaced)
            logger.warning(
                "Edit: %s overwrote occupied slot %d of %s, dropping %s", op, slot_index, container_id, displaced.id
            )
        details: Dict[str, Any] = {
            "element_id": element_id,
            "container_id": container_id,
            "slot_index": slot_index,
            "removed_ids": removed_ids,
        }
        if displaced is not EMPTY:
            details["displaced_id"] = displaced.id
        return self._ok(op, message, elements, **details)

    def _insert_next_to(
        self, elements: Elements, element: Element, target_id: str, parent_id: Optional[str], after: bool
    ) -> Tuple[Optional[Elements], Optional[Tuple[str, str]]]:
        """Place *element* beside *target_id*; return (tree, None) or (None, (reason, message))."""
        if parent_id is None:
            parent = None
            siblings: Tuple[Slot, ...] = tuple(elements)
        else:
            parent = find_element(elements, parent_id)
            if parent is None:
                return None, ("not_found", f"Parent not found for id '{parent_id}'.")
            if not isinstance(parent, ContainerElement):
                return None, ("type_mismatch", f"Element '{parent_id}' is not a container.")
            siblings = parent.children

        index = index_of(siblings, target_id)
        if index < 0:
            return None, ("not_found", f"Target '{target_id}' not found in parent.")
        child = with_width(element, child_width(parent))

        if isinstance(parent, SlotContainer):
            slot = index + 1 if after else index - 1
            if slot < 0 or slot >= len(siblings):
                return None, ("boundary", f"No slot {'after' if after else 'before'} '{target_id}'.")
            if siblings[slot] is not EMPTY:
                return None, ("container_full", f"Slot {slot} of '{parent_id}' is occupied.")

            def _fill(children: Tuple[Slot, ...]) -> List[Slot]:
                out = list(children)
                out[slot] = child
                return out

            return update_children(elements, parent_id, _fill), None

        position = index + 1 if after else index
        return update_children(elements, parent_id, lambda children: children[:position] + (child,) + children[position:]), None

    def _move_next_to(
        self, elements: Elements, element_id: str, target_id: str, target_parent_id: Optional[str], after: bool
    ) -> OperationResult:
        op = "insert_after" if after else "insert_before"
        logger.info("Edit: %s element=%s target=%s parent=%s", op, element_id, target_id, target_parent_id)
        if find_element(elements, element_id) is None:
            return self._reject(op, "not_found", f"Element not found for id '{element_id}'.", elements, element_id=element_id)
        if element_id == target_id:
            return self._reject(op, "not_found", "Element and target are the same.", elements, element_id=element_id)
        if target_parent_id is not None and (
            target_parent_id == element_id or is_descendant(elements, target_parent_id, element_id)
        ):
            return self._reject(
                op, "cycle", f"Cannot move '{element_id}' into itself or its descendant.",
                elements, element_id=element_id, container_id=target_parent_id,
            )
        detached, moved = detach(elements, element_id)
        new_elements, failure = self._insert_next_to(detached, moved, target_id, target_parent_id, after)
        if failure is not None:
            reason, message = failure
            return self._reject(op, reason, message, elements, element_id=element_id, target_id=target_id, parent_id=target_parent_id)
        return self._ok(
            op, f"Moved {moved.type} {'after' if after else 'before'} target.", new_elements,
            element_id=element_id, target_id=target_id, parent_id=target_parent_id,
        )

    def _add_next_to(
        self, elements: Elements, element_type: str, target_id: str, target_parent_id: Optional[str], after: bool
    ) -> OperationResult:
        op = "add_element_after" if after else "add_element_before"
        logger.info("Edit: %s type=%s target=%s parent=%s", op, element_type, target_id, target_parent_id)
        parent = find_element(elements, target_parent_id) if target_parent_id is not None else None
        element, failure = self._create(elements, op, element_type, parent)
        if failure is not None:
            return failure
        new_elements, problem = self._insert_next_to(elements, element, target_id, target_parent_id, after)
        if problem is not None:
            reason, message = problem
            return self._reject(op, reason, message, elements, target_id=target_id, parent_id=target_parent_id)
        return self._ok(
            op, f"Added {element_type} {'after' if after else 'before'} target.", new_elements,
            element_id=element.id, target_id=target_id, parent_id=target_parent_id,
        )


def _format_details(details: Mapping[str, Any]) -> str:
    return " ".join(f"{key}={value}" for key, value in details.items() if value is not None)


def _bounded_int(value: Any, minimum: int, maximum: Optional[int] = None) -> Optional[int]:
    """Return *value* as an int within bounds, or None if it is not one."""
    if isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if number < minimum or (maximum is not None and number > maximum):
        return None
    return number


def _child_slots(value: Any) -> Optional[Tuple[Slot, ...]]:
    """Normalise a ``children`` update (``None`` means EMPTY), or None if unusable."""
    if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Iterable):
        return None
    children = tuple(EMPTY if child is None else child for child in value)
    if any(child is not EMPTY and not isinstance(child, Element) for child in children):
        return None
    return children
