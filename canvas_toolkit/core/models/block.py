from __future__ import annotations

from dataclasses import dataclass, field

from canvas_toolkit.core.models import Element
from canvas_toolkit.core.utils import utc_timestamp

__all__ = ["SavedBlock"]


@dataclass(frozen=True)
class SavedBlock:
    """Reusable snapshot of an element subtree.

    ``source_id`` is the id of the element the block was saved from; inserting
    the block always clones ``element`` with fresh ids.
    """

    id: str
    name: str
    element: Element
    source_id: str
    created_at: str = field(default_factory=utc_timestamp)
