from __future__ import annotations

"""Project record kept by the project library."""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping

from canvas_toolkit.core.models import Elements
from canvas_toolkit.core.utils import utc_timestamp

__all__ = ["Project"]


@dataclass(frozen=True)
class Project:
    """A named document of a given type (form, email, website).

    ``elements`` and ``settings`` are the last state saved into the project;
    the live tree is held by the store.
    """

    id: str
    name: str
    type: str
    elements: Elements = ()
    settings: Mapping[str, Any] = field(default_factory=dict)
    created_at: str = field(default_factory=utc_timestamp)
    updated_at: str = field(default_factory=utc_timestamp)

    def __post_init__(self) -> None:
        object.__setattr__(self, "elements", tuple(self.elements))
        object.__setattr__(self, "settings", dict(self.settings))

    def header(self) -> Dict[str, Any]:
        """Project metadata without the document body (used in exports)."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    def touched(self, **changes: Any) -> "Project":
        """Copy with *changes* applied and ``updated_at`` refreshed."""
        return replace(self, updated_at=utc_timestamp(), **changes)
