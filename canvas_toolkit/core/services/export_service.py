from __future__ import annotations

"""Document export and import.

The export format is a JSON object::

    {
        "project": {...},          # project header, or a minimal record
        "elements": [...],         # element dicts, document order
        "settings": {...},         # document settings
        "exportDate": "...",       # ISO-8601 UTC timestamp
        "version": "1.0"
    }

Each element is written flat: ``id``, ``type``, ``width`` and its props at
the top level, plus ``children`` for containers (``null`` marks an empty
slot), ``columnCount``/``rowCount`` for slot containers and ``menuItems``
(the mirror) for menus.

Import is all-or-nothing: the payload is validated in full and either a
complete :class:`ImportedDocument` is returned or
:class:`ImportValidationError` is raised listing every problem found.
"""

import copy
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from canvas_toolkit.core.exceptions import ImportValidationError
from canvas_toolkit.core.mirror import sync_mirrors
from canvas_toolkit.core.models import (
    EMPTY,
    GRID_UNITS,
    ContainerElement,
    Element,
    ElementKind,
    Elements,
    FlexList,
    FreeContainer,
    LeafElement,
    SlotGrid,
    SlotStack,
    kind_for_type,
)
from canvas_toolkit.core.tree import find_duplicate_ids
from canvas_toolkit.core.utils import utc_timestamp

logger = logging.getLogger(__name__)

__all__ = ["ExportService", "ImportedDocument", "EXPORT_FORMAT_VERSION"]

EXPORT_FORMAT_VERSION = "1.0"

# Keys owned by the element structure; everything else is a prop.
_STRUCTURAL_KEYS = frozenset({"id", "type", "width", "children", "columnCount", "rowCount", "menuItems"})

DOCUMENT_SCHEMA: Dict[str, Any] = {
    "required": ["project", "elements", "settings"],
    "properties": {
        "project": {"type": "object"},
        "elements": {"type": "array"},
        "settings": {"type": "object"},
        "exportDate": {"type": "string"},
        "version": {"type": "string"},
    },
}


@dataclass(frozen=True)
class ImportedDocument:
    """Validated content of an export payload."""

    project: Dict[str, Any]
    elements: Elements
    settings: Dict[str, Any] = field(default_factory=dict)
    export_date: Optional[str] = None
    version: Optional[str] = None


class ExportService:
    """Serialise element trees to the export format and back."""

    # ---------------------------------------------------------------------
    # Element conversion
    # ---------------------------------------------------------------------
    def element_to_dict(self, element: Element) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": element.id, "type": element.type, "width": element.width}
        for key, value in element.props.items():
            if key not in _STRUCTURAL_KEYS:
                data[key] = copy.deepcopy(value)
        if isinstance(element, ContainerElement):
            data["children"] = [None if child is EMPTY else self.element_to_dict(child) for child in element.children]
        if isinstance(element, SlotGrid):
            data["columnCount"] = element.column_count
        elif isinstance(element, SlotStack):
            data["rowCount"] = element.row_count
        elif isinstance(element, FlexList):
            data["menuItems"] = [item.to_dict() for item in element.mirror]
        return data

    def element_from_dict(self, data: Mapping[str, Any]) -> Element:
        """Build an element from its export dict.

        Raises ImportValidationError when the dict (or any descendant) is
        malformed.
        """
        errors: List[str] = []
        element = self._build_element(data, "elements[0]", errors)
        if errors or element is None:
            raise ImportValidationError("Invalid element", validation_errors=errors)
        return element

    # ---------------------------------------------------------------------
    # Documents
    # ---------------------------------------------------------------------
    def document_record(self, document_id: str, elements: Sequence[Element], settings: Mapping[str, Any]) -> Dict[str, Any]:
        """Persisted document shape: ``{id, elements, settings}``."""
        return {
            "id": document_id,
            "elements": [self.element_to_dict(e) for e in elements],
            "settings": dict(settings),
        }

    def export_document(
        self,
        elements: Sequence[Element],
        settings: Mapping[str, Any],
        project: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        payload = {
            "project": dict(project) if project else {"name": settings.get("title", "")},
            "elements": [self.element_to_dict(e) for e in elements],
            "settings": dict(settings),
            "exportDate": utc_timestamp(),
            "version": EXPORT_FORMAT_VERSION,
        }
        logger.info("Export: %d top-level element(s)", len(payload["elements"]))
        return payload

    def dumps(self, elements: Sequence[Element], settings: Mapping[str, Any],
              project: Optional[Mapping[str, Any]] = None, indent: Optional[int] = 2) -> str:
        return json.dumps(self.export_document(elements, settings, project), indent=indent)

    def save(self, path: Union[str, Path], elements: Sequence[Element], settings: Mapping[str, Any],
             project: Optional[Mapping[str, Any]] = None) -> Path:
        """Write the export payload to *path* as UTF-8 JSON and return the path."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.dumps(elements, settings, project), encoding="utf-8")
        logger.info("Export: wrote %s", path)
        return path

    def validate(self, payload: Any) -> List[str]:
        """Return every problem with the top-level shape of *payload*."""
        if not isinstance(payload, Mapping):
            return ["Document must be a JSON object"]
        return _validate_against_schema(payload, DOCUMENT_SCHEMA)

    def import_document(self, payload: Union[Mapping[str, Any], str, bytes]) -> ImportedDocument:
        """Validate and convert an export payload.

        Accepts an already-parsed mapping or the raw JSON text.
        """
        if isinstance(payload, (str, bytes)):
            try:
                payload = json.loads(payload)
            except ValueError as e:
                raise ImportValidationError(f"Invalid JSON in document: {e}", cause=e)

        errors = self.validate(payload)
        if errors:
            logger.warning("Import rejected: %s", "; ".join(errors))
            raise ImportValidationError("Document validation failed", validation_errors=errors)

        elements: List[Element] = []
        for i, item in enumerate(payload["elements"]):
            element = self._build_element(item, f"elements[{i}]", errors)
            if element is not None:
                elements.append(element)

        duplicates = find_duplicate_ids(elements)
        if duplicates:
            errors.append(f"Duplicate element ids: {', '.join(duplicates)}")
        if errors:
            logger.warning("Import rejected: %d element error(s)", len(errors))
            raise ImportValidationError("Document validation failed", validation_errors=errors)

        document = ImportedDocument(
            project=dict(payload["project"]),
            elements=sync_mirrors(tuple(elements)),
            settings=dict(payload["settings"]),
            export_date=payload.get("exportDate"),
            version=payload.get("version"),
        )
        logger.info("Import: %d top-level element(s)", len(document.elements))
        return document

    def load(self, path: Union[str, Path]) -> ImportedDocument:
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ImportValidationError(f"Failed to read document: {e}", cause=e)
        return self.import_document(text)

    # ---------------------------------------------------------------------
    # Internals
    # ---------------------------------------------------------------------
    def _build_element(self, data: Any, path: str, errors: List[str]) -> Optional[Element]:
        if not isinstance(data, Mapping):
            errors.append(f"{path}: element must be an object")
            return None
        element_id = data.get("id")
        element_type = data.get("type")
        if not isinstance(element_id, str) or not element_id:
            errors.append(f"{path}: missing element id")
            return None
        kind = kind_for_type(element_type) if isinstance(element_type, str) else None
        if kind is None:
            errors.append(f"{path}: unknown element type {element_type!r}")
            return None

        width = data.get("width", GRID_UNITS)
        if not isinstance(width, int) or isinstance(width, bool):
            errors.append(f"{path}: width must be an integer")
            width = GRID_UNITS
        props = {k: v for k, v in data.items() if k not in _STRUCTURAL_KEYS}
        common = {"id": element_id, "type": element_type, "width": width, "props": props}

        if kind is ElementKind.LEAF:
            return LeafElement(**common)

        raw_children = data.get("children", [])
        if not isinstance(raw_children, list):
            errors.append(f"{path}: children must be an array")
            raw_children = []
        children = []
        for i, child in enumerate(raw_children):
            if child is None:
                children.append(EMPTY)
                continue
            built = self._build_element(child, f"{path}.children[{i}]", errors)
            if built is not None:
                children.append(built)

        if kind is ElementKind.FREE_CONTAINER:
            return FreeContainer(children=tuple(children), **common)
        if kind is ElementKind.FLEX_LIST:
            # Mirror is recomputed from the children after import
            return FlexList(children=tuple(children), **common)
        if kind is ElementKind.SLOT_GRID:
            count = _positive_int(data.get("columnCount", len(children) or 2), f"{path}: columnCount", errors)
            return SlotGrid(children=tuple(children), column_count=count, **common)
        count = _positive_int(data.get("rowCount", len(children) or 2), f"{path}: rowCount", errors)
        return SlotStack(children=tuple(children), row_count=count, **common)


def _positive_int(value: Any, label: str, errors: List[str]) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        errors.append(f"{label} must be a positive integer")
        return 1
    return value


def _validate_against_schema(data: Mapping[str, Any], schema: Mapping[str, Any]) -> List[str]:
    errors: List[str] = []

    for name in schema.get("required", []):
        if name not in data:
            errors.append(f"Missing required field: {name}")

    for name, value in data.items():
        expected = schema.get("properties", {}).get(name, {}).get("type")
        if expected == "string" and not isinstance(value, str):
            errors.append(f"Field '{name}' must be a string")
        elif expected == "array" and not isinstance(value, list):
            errors.append(f"Field '{name}' must be an array")
        elif expected == "object" and not isinstance(value, Mapping):
            errors.append(f"Field '{name}' must be an object")

    return errors
