from __future__ import annotations

"""Generic lookup and copy-on-write primitives over an element tree.

The document root is a plain tuple of elements. Every helper here is pure:
inputs are never mutated, and a helper that finds nothing to change returns
the very same tuple object it was given, so callers can detect a no-op with
an identity check (``new is old``).

Rebuilding only touches the path from the root to the edited element; all
untouched subtrees are shared between the old and the new snapshot.
"""

from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Tuple

from canvas_toolkit.core.models import (
    EMPTY,
    GRID_UNITS,
    ContainerElement,
    Element,
    ElementKind,
    Elements,
    FlexList,
    Slot,
    SlotContainer,
    SlotGrid,
)
from canvas_toolkit.core.utils import generate_element_id

__all__ = [
    "Location",
    "children_of",
    "iter_elements",
    "find_element",
    "find_parent",
    "index_of",
    "is_descendant",
    "detach",
    "replace_element",
    "update_children",
    "child_width",
    "with_width",
    "clone_with_new_ids",
    "collect_ids",
    "count_elements",
    "find_duplicate_ids",
]


@dataclass(frozen=True)
class Location:
    """Where an element lives: its parent (None for the root) and index."""

    parent_id: Optional[str]
    kind: Optional[ElementKind]
    index: int
    parent: Optional[ContainerElement] = field(default=None, compare=False, repr=False)

    @property
    def is_root(self) -> bool:
        return self.parent_id is None


def children_of(element: Optional[Element]) -> Tuple[Slot, ...]:
    """Children of a container (holes included), or an empty tuple."""
    if isinstance(element, ContainerElement):
        return element.children
    return ()


def iter_elements(elements: Iterable[Slot]) -> Iterator[Element]:
    """Yield every element in document order (pre-order), skipping holes."""
    for item in elements:
        if item is EMPTY:
            continue
        yield item
        if isinstance(item, ContainerElement):
            yield from iter_elements(item.children)


def find_element(elements: Sequence[Slot], element_id: str) -> Optional[Element]:
    for element in iter_elements(elements):
        if element.id == element_id:
            return element
    return None


def index_of(siblings: Sequence[Slot], element_id: str) -> int:
    """Position of *element_id* among *siblings*, or -1."""
    for i, item in enumerate(siblings):
        if item is not EMPTY and item.id == element_id:
            return i
    return -1


def find_parent(elements: Sequence[Slot], element_id: str) -> Optional[Location]:
    """Locate the direct parent of *element_id*.

    Returns a root Location (``parent_id`` None) for top-level elements and
    None when the id is absent from the tree.
    """
    idx = index_of(elements, element_id)
    if idx >= 0:
        return Location(parent_id=None, kind=None, index=idx)
    for element in iter_elements(elements):
        if isinstance(element, ContainerElement):
            idx = index_of(element.children, element_id)
            if idx >= 0:
                return Location(parent_id=element.id, kind=element.kind, index=idx, parent=element)
    return None


def is_descendant(elements: Sequence[Slot], candidate_id: str, subtree_root_id: str) -> bool:
    """True when *candidate_id* lives strictly below *subtree_root_id*."""
    root = find_element(elements, subtree_root_id)
    if root is None:
        return False
    return any(e.id == candidate_id for e in iter_elements(children_of(root)))


def _detach_from(
    seq: Tuple[Slot, ...], element_id: str, slotted: bool
) -> Tuple[Tuple[Slot, ...], Optional[Element]]:
    for i, item in enumerate(seq):
        if item is EMPTY:
            continue
        if item.id == element_id:
            if slotted:
                return seq[:i] + (EMPTY,) + seq[i + 1:], item
            return seq[:i] + seq[i + 1:], item
        if isinstance(item, ContainerElement):
            children, removed = _detach_from(item.children, element_id, isinstance(item, SlotContainer))
            if removed is not None:
                return seq[:i] + (replace(item, children=children),) + seq[i + 1:], removed
    return seq, None


def detach(elements: Elements, element_id: str) -> Tuple[Elements, Optional[Element]]:
    """Remove *element_id* (with its subtree) from wherever it lives.

    Slot parents keep their length (the position becomes EMPTY); dense
    parents and the root splice the entry out. Absent ids are not an error:
    the input tuple is returned unchanged together with None.
    """
    new_elements, removed = _detach_from(tuple(elements), element_id, slotted=False)
    if removed is None:
        return elements, None
    return new_elements, removed  # type: ignore[return-value]


def _replace_in(
    seq: Tuple[Slot, ...], element_id: str, fn: Callable[[Element], Element]
) -> Tuple[Tuple[Slot, ...], bool]:
    for i, item in enumerate(seq):
        if item is EMPTY:
            continue
        if item.id == element_id:
            return seq[:i] + (fn(item),) + seq[i + 1:], True
        if isinstance(item, ContainerElement):
            children, hit = _replace_in(item.children, element_id, fn)
            if hit:
                return seq[:i] + (replace(item, children=children),) + seq[i + 1:], True
    return seq, False


def replace_element(elements: Elements, element_id: str, fn: Callable[[Element], Element]) -> Elements:
    """Return a tree where *element_id* is replaced by ``fn(element)``."""
    new_elements, hit = _replace_in(tuple(elements), element_id, fn)
    return new_elements if hit else elements  # type: ignore[return-value]


def update_children(
    elements: Elements,
    parent_id: Optional[str],
    fn: Callable[[Tuple[Slot, ...]], Sequence[Slot]],
) -> Elements:
    """Rewrite the children of *parent_id* (the root when None) with *fn*.

    The parent must be a container; slot parents re-normalise the result to
    their cardinality on construction.
    """
    if parent_id is None:
        return tuple(e for e in fn(tuple(elements)) if e is not EMPTY)

    def _rewrite(parent: Element) -> Element:
        return replace(parent, children=tuple(fn(children_of(parent))))

    return replace_element(elements, parent_id, _rewrite)


def child_width(parent: Optional[Element]) -> int:
    """Width an element takes when attached under *parent* (None = root)."""
    if isinstance(parent, SlotGrid):
        return max(1, GRID_UNITS // parent.column_count)
    return GRID_UNITS


def with_width(element: Element, width: int) -> Element:
    if element.width == width:
        return element
    return replace(element, width=width)


def clone_with_new_ids(element: Element, id_factory: Callable[[], str] = generate_element_id) -> Element:
    """Deep-clone *element*, allocating a fresh id at every level.

    Cloned menus drop their mirror; it is recomputed from the cloned
    children by the next mirror sync.
    """
    changes = {"id": id_factory(), "props": dict(element.props)}
    if isinstance(element, ContainerElement):
        changes["children"] = tuple(
            EMPTY if child is EMPTY else clone_with_new_ids(child, id_factory)
            for child in element.children
        )
    if isinstance(element, FlexList):
        changes["mirror"] = ()
    return replace(element, **changes)


def collect_ids(element: Element) -> List[str]:
    """Ids of *element* and all of its descendants, in document order."""
    return [e.id for e in iter_elements((element,))]


def count_elements(elements: Iterable[Slot]) -> int:
    return sum(1 for _ in iter_elements(elements))


def find_duplicate_ids(elements: Iterable[Slot]) -> List[str]:
    counts = Counter(e.id for e in iter_elements(elements))
    return sorted(i for i, n in counts.items() if n > 1)
