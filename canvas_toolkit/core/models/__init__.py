from __future__ import annotations

"""Shared data structures used across the Canvas Toolkit core.

This package exposes the immutable element variants that make up a document
tree. It is intentionally free of UI / I/O code so that the contained objects
can be reused in any context (unit-tests, CLI, renderers, etc.).

Element kinds
-------------
Every element type maps to exactly one :class:`ElementKind`:

- ``leaf``: text, number, select, button, image, ... (no children)
- ``free-container``: dense, variable-length children (container, grid)
- ``slot-grid``: one slot per column, ``column_count`` slots (columns)
- ``slot-stack``: one slot per row, ``row_count`` slots (rows)
- ``flex-list``: dense children plus a mirrored ``MenuItem`` list (menu)

Slot containers always hold exactly ``cardinality`` entries; an unoccupied
position holds the :data:`EMPTY` marker rather than being absent.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, ClassVar, Dict, Iterable, Mapping, Optional, Tuple, Type, Union

__all__ = [
    "GRID_UNITS",
    "BUTTON_TYPE",
    "DEFAULT_HREF",
    "EMPTY",
    "ElementKind",
    "Element",
    "LeafElement",
    "ContainerElement",
    "FreeContainer",
    "SlotContainer",
    "SlotGrid",
    "SlotStack",
    "FlexList",
    "MenuItem",
    "Slot",
    "Elements",
    "LEAF_TYPES",
    "CONTAINER_TYPES",
    "kind_for_type",
    "element_class_for",
    "fit_slots",
]

GRID_UNITS = 12
BUTTON_TYPE = "button"
DEFAULT_HREF = "#"


class ElementKind(str, Enum):
    """Closed set of structural kinds an element can have."""

    LEAF = "leaf"
    FREE_CONTAINER = "free-container"
    SLOT_GRID = "slot-grid"
    SLOT_STACK = "slot-stack"
    FLEX_LIST = "flex-list"


LEAF_TYPES = frozenset(
    {
        "text",
        "number",
        "email",
        "textarea",
        "checkbox",
        "radio",
        "select",
        "date",
        "time",
        "month",
        "hidden",
        "rich-text",
        "star-rating",
        "button",
        "heading",
        "text-block",
        "image",
        "social",
    }
)

CONTAINER_TYPES: Dict[str, ElementKind] = {
    "container": ElementKind.FREE_CONTAINER,
    "grid": ElementKind.FREE_CONTAINER,
    "columns": ElementKind.SLOT_GRID,
    "rows": ElementKind.SLOT_STACK,
    "menu": ElementKind.FLEX_LIST,
}


def kind_for_type(element_type: str) -> Optional[ElementKind]:
    """Return the kind for *element_type*, or None for unknown types."""
    if element_type in CONTAINER_TYPES:
        return CONTAINER_TYPES[element_type]
    if element_type in LEAF_TYPES:
        return ElementKind.LEAF
    return None


class _EmptySlot:
    """Marker for an unoccupied position inside a slot container."""

    _instance: Optional["_EmptySlot"] = None

    def __new__(cls) -> "_EmptySlot":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "EMPTY"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> "_EmptySlot":
        return self

    def __deepcopy__(self, memo: Dict[int, Any]) -> "_EmptySlot":
        return self

    def __reduce__(self):
        return (_EmptySlot, ())


EMPTY = _EmptySlot()


@dataclass(frozen=True)
class MenuItem:
    """Lightweight ``{label, href}`` summary of a menu button."""

    label: str
    href: str = DEFAULT_HREF

    def to_dict(self) -> Dict[str, str]:
        return {"label": self.label, "href": self.href}


@dataclass(frozen=True)
class Element:
    """Base class of every node in the document tree.

    Attributes
    ----------
    id
        Opaque identifier, assigned at creation and never reused.
    type
        Element type string (``"text"``, ``"columns"``, ``"menu"``...).
    width
        Width in a 12-unit grid relative to the parent's inline extent.
    props
        Type-specific payload (label, options, content...). The structural
        engine treats it as opaque except for labels and button fields.
        Exposed read-only; edits go through ``dataclasses.replace`` with a
        new mapping, which the element deep-copies on construction.
    """

    id: str
    type: str
    width: int = GRID_UNITS
    props: Mapping[str, Any] = field(default_factory=dict)

    kind: ClassVar[ElementKind] = ElementKind.LEAF

    def __post_init__(self) -> None:
        # Private deep copy so no two snapshots share nested values
        object.__setattr__(self, "props", MappingProxyType(copy.deepcopy(dict(self.props))))
        object.__setattr__(self, "width", int(self.width))

    @property
    def label(self) -> str:
        value = self.props.get("label")
        return "" if value is None else str(value)

    @property
    def is_container(self) -> bool:
        return self.kind is not ElementKind.LEAF


@dataclass(frozen=True)
class LeafElement(Element):
    """Element without children (inputs, buttons, text blocks, images...)."""

    kind: ClassVar[ElementKind] = ElementKind.LEAF


Slot = Union[Element, _EmptySlot]
Elements = Tuple[Element, ...]


@dataclass(frozen=True)
class ContainerElement(Element):
    """Element owning an ordered tuple of children."""

    children: Tuple[Slot, ...] = ()

    def __post_init__(self) -> None:
        super().__post_init__()
        # Dense containers never carry holes
        object.__setattr__(self, "children", tuple(c for c in self.children if c is not EMPTY))


@dataclass(frozen=True)
class FreeContainer(ContainerElement):
    """Generic group whose children list grows and shrinks freely."""

    kind: ClassVar[ElementKind] = ElementKind.FREE_CONTAINER


def fit_slots(children: Iterable[Slot], cardinality: int) -> Tuple[Slot, ...]:
    """Pad with EMPTY or truncate *children* to exactly *cardinality* entries."""
    slots = tuple(EMPTY if c is None else c for c in children)[:cardinality]
    return slots + (EMPTY,) * (cardinality - len(slots))


@dataclass(frozen=True)
class SlotContainer(ContainerElement):
    """Container with a fixed number of positional slots."""

    def __post_init__(self) -> None:
        Element.__post_init__(self)
        object.__setattr__(self, "children", fit_slots(self.children, self.cardinality))

    @property
    def cardinality(self) -> int:
        raise NotImplementedError

    def open_slots(self) -> Tuple[int, ...]:
        """Indexes of the slots currently holding EMPTY."""
        return tuple(i for i, c in enumerate(self.children) if c is EMPTY)


@dataclass(frozen=True)
class SlotGrid(SlotContainer):
    """Column layout: one slot per column, children sized ``12 / column_count``."""

    column_count: int = 2

    kind: ClassVar[ElementKind] = ElementKind.SLOT_GRID

    def __post_init__(self) -> None:
        object.__setattr__(self, "column_count", max(1, int(self.column_count)))
        super().__post_init__()

    @property
    def cardinality(self) -> int:
        return self.column_count


@dataclass(frozen=True)
class SlotStack(SlotContainer):
    """Row layout: one full-width slot per row."""

    row_count: int = 2

    kind: ClassVar[ElementKind] = ElementKind.SLOT_STACK

    def __post_init__(self) -> None:
        object.__setattr__(self, "row_count", max(1, int(self.row_count)))
        super().__post_init__()

    @property
    def cardinality(self) -> int:
        return self.row_count


@dataclass(frozen=True)
class FlexList(ContainerElement):
    """Menu-like list; ``mirror`` summarises its button children in order."""

    mirror: Tuple[MenuItem, ...] = ()

    kind: ClassVar[ElementKind] = ElementKind.FLEX_LIST

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(self, "mirror", tuple(self.mirror))


_CLASS_BY_KIND: Dict[ElementKind, Type[Element]] = {
    ElementKind.LEAF: LeafElement,
    ElementKind.FREE_CONTAINER: FreeContainer,
    ElementKind.SLOT_GRID: SlotGrid,
    ElementKind.SLOT_STACK: SlotStack,
    ElementKind.FLEX_LIST: FlexList,
}


def element_class_for(element_type: str) -> Optional[Type[Element]]:
    """Return the element variant used for *element_type*, or None if unknown."""
    kind = kind_for_type(element_type)
    if kind is None:
        return None
    return _CLASS_BY_KIND[kind]
