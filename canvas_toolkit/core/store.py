from __future__ import annotations

"""Builder store: the single owner of the live document state.

The store holds one immutable snapshot of the element tree together with the
selected element id, the document settings, the saved blocks and the current
project. Each public mutation delegates to
:class:`~canvas_toolkit.core.services.StructureEditingService` and swaps the
snapshot and the selection together. Listeners registered with
:meth:`BuilderStore.subscribe` receive the new :class:`StoreSnapshot` after
every committed change.

Selection rules:
- elements created by an add operation become selected;
- ``duplicate_element`` keeps the original selected;
- a selected id that disappears from the tree resets the selection to None.
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Literal, Mapping, Optional, Sequence, Union

from canvas_toolkit.config import ConfigManager
from canvas_toolkit.core.exceptions import ImportValidationError
from canvas_toolkit.core.mirror import sync_mirrors
from canvas_toolkit.core.models import Element, Elements
from canvas_toolkit.core.models.block import SavedBlock
from canvas_toolkit.core.models.project import Project
from canvas_toolkit.core.services.export_service import ExportService
from canvas_toolkit.core.services.project_service import ProjectService
from canvas_toolkit.core.services.structure_editing_service import OperationResult, StructureEditingService
from canvas_toolkit.core.tree import find_duplicate_ids, find_element
from canvas_toolkit.core.utils import generate_block_id

logger = logging.getLogger(__name__)

__all__ = ["BuilderStore", "StoreSnapshot"]

Listener = Callable[["StoreSnapshot"], None]

# Sentinel for "leave the selection as it is"
_KEEP = object()


@dataclass(frozen=True)
class StoreSnapshot:
    """Consistent view of the store at one point in time."""

    elements: Elements
    selected_id: Optional[str]
    settings: Dict[str, Any] = field(default_factory=dict)
    project_id: Optional[str] = None


class BuilderStore:
    """In-memory state container for the document builder.

    Parameters
    ----------
    service
        Structural edit service. A default one is created when omitted.
    export_service
        Serializer used by :meth:`load_document` and :meth:`export_document`.
    project_service
        Project library used by the project helpers. Created lazily (in
        memory only) when first needed.
    settings
        Initial document settings; defaults come from
        ``document_defaults.yml``.
    """

    def __init__(
        self,
        service: Optional[StructureEditingService] = None,
        export_service: Optional[ExportService] = None,
        project_service: Optional[ProjectService] = None,
        settings: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._service = service or StructureEditingService()
        self._exporter = export_service or ExportService()
        self._projects = project_service
        if settings is None:
            settings = ConfigManager().get_document_defaults().get("settings") or {}
        self._settings: Dict[str, Any] = copy.deepcopy(dict(settings))
        self._elements: Elements = ()
        self._selected_id: Optional[str] = None
        self._blocks: List[SavedBlock] = []
        self._listeners: List[Listener] = []
        self._last_result: Optional[OperationResult] = None
        self._current_project: Optional[Project] = None

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------
    @property
    def elements(self) -> Elements:
        return self._elements

    @property
    def selected_id(self) -> Optional[str]:
        return self._selected_id

    @property
    def selected_element(self) -> Optional[Element]:
        if self._selected_id is None:
            return None
        return find_element(self._elements, self._selected_id)

    @property
    def settings(self) -> Dict[str, Any]:
        return copy.deepcopy(self._settings)

    @property
    def blocks(self) -> List[SavedBlock]:
        return list(self._blocks)

    @property
    def last_result(self) -> Optional[OperationResult]:
        return self._last_result

    @property
    def current_project(self) -> Optional[Project]:
        return self._current_project

    @property
    def project_service(self) -> ProjectService:
        if self._projects is None:
            self._projects = ProjectService()
        return self._projects

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(
            elements=self._elements,
            selected_id=self._selected_id,
            settings=copy.deepcopy(self._settings),
            project_id=self._current_project.id if self._current_project else None,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener*; the returned callable unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------
    def add_element(self, element_type: str, parent_id: Optional[str] = None) -> OperationResult:
        return self._apply(self._service.add_element(self._elements, element_type, parent_id), select_created=True)

    def add_element_at_start(self, element_type: str) -> OperationResult:
        return self._apply(self._service.add_element_at_start(self._elements, element_type), select_created=True)

    def add_element_before(self, element_type: str, target_id: str, target_parent_id: Optional[str] = None) -> OperationResult:
        result = self._service.add_element_before(self._elements, element_type, target_id, target_parent_id)
        return self._apply(result, select_created=True)

    def add_element_after(self, element_type: str, target_id: str, target_parent_id: Optional[str] = None) -> OperationResult:
        result = self._service.add_element_after(self._elements, element_type, target_id, target_parent_id)
        return self._apply(result, select_created=True)

    def add_element_to_slot(self, element_type: str, container_id: str, slot_index: int) -> OperationResult:
        result = self._service.add_element_to_slot(self._elements, element_type, container_id, slot_index)
        return self._apply(result, select_created=True)

    # ------------------------------------------------------------------
    # Removal, duplication, update
    # ------------------------------------------------------------------
    def remove_element(self, element_id: str) -> OperationResult:
        return self._apply(self._service.remove_element(self._elements, element_id))

    def duplicate_element(self, element_id: str) -> OperationResult:
        result = self._service.duplicate_element(self._elements, element_id)
        if result.success:
            return self._apply(result, select=element_id)
        return self._apply(result)

    def update_element(self, element_id: str, updates: Mapping[str, Any]) -> OperationResult:
        return self._apply(self._service.update_element(self._elements, element_id, updates))

    def remove_from_container(self, element_id: str, container_id: str) -> OperationResult:
        return self._apply(self._service.remove_from_container(self._elements, element_id, container_id))

    # ------------------------------------------------------------------
    # Relocation
    # ------------------------------------------------------------------
    def move_to_container(self, element_id: str, container_id: str) -> OperationResult:
        return self._apply(self._service.move_to_container(self._elements, element_id, container_id))

    def move_to_slot(self, element_id: str, container_id: str, slot_index: int) -> OperationResult:
        return self._apply(self._service.move_to_slot(self._elements, element_id, container_id, slot_index))

    def insert_before(self, element_id: str, target_id: str, target_parent_id: Optional[str] = None) -> OperationResult:
        return self._apply(self._service.insert_before(self._elements, element_id, target_id, target_parent_id))

    def insert_after(self, element_id: str, target_id: str, target_parent_id: Optional[str] = None) -> OperationResult:
        return self._apply(self._service.insert_after(self._elements, element_id, target_id, target_parent_id))

    def move_up(self, element_id: str, parent_id: Optional[str] = None) -> OperationResult:
        return self._move(element_id, "up", parent_id)

    def move_down(self, element_id: str, parent_id: Optional[str] = None) -> OperationResult:
        return self._move(element_id, "down", parent_id)

    # ------------------------------------------------------------------
    # Selection and bulk replacement
    # ------------------------------------------------------------------
    def select_element(self, element_id: Optional[str]) -> bool:
        """Select *element_id* (None clears). Unknown ids leave the selection unchanged."""
        if element_id is not None and find_element(self._elements, element_id) is None:
            logger.debug("Store: select ignored, unknown element %s", element_id)
            return False
        if element_id != self._selected_id:
            self._selected_id = element_id
            self._notify()
        return True

    def replace_tree(self, elements: Sequence[Element]) -> OperationResult:
        """Swap in a whole new tree (bulk load)."""
        elements = tuple(elements)
        duplicates = find_duplicate_ids(elements)
        if duplicates:
            result = OperationResult(
                False, f"Tree contains duplicate ids: {', '.join(duplicates)}.", self._elements,
                {"reason": "duplicate_id", "duplicate_ids": duplicates},
            )
            logger.info("Edit noop: replace_tree duplicate_ids=%s", duplicates)
            return self._apply(result)
        logger.info("Edit OK: replace_tree elements=%d", len(elements))
        return self._apply(OperationResult(True, "Tree replaced.", sync_mirrors(elements), {}))

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------
    def update_settings(self, updates: Mapping[str, Any]) -> None:
        self._settings.update(copy.deepcopy(dict(updates)))
        self._notify()

    # ------------------------------------------------------------------
    # Saved blocks
    # ------------------------------------------------------------------
    def save_element_as_block(self, element_id: str, name: Optional[str] = None) -> Optional[SavedBlock]:
        element = find_element(self._elements, element_id)
        if element is None:
            logger.warning("Store: cannot save block, element %s not found", element_id)
            return None
        block = SavedBlock(
            id=generate_block_id(),
            name=name or element.label or element.type,
            element=element,
            source_id=element_id,
        )
        self._blocks.append(block)
        logger.info("Store: saved block %s from %s", block.id, element_id)
        return block

    def is_element_saved_as_block(self, element_id: str) -> bool:
        return any(block.source_id == element_id for block in self._blocks)

    def remove_block(self, block_id: str) -> bool:
        before = len(self._blocks)
        self._blocks = [b for b in self._blocks if b.id != block_id]
        return len(self._blocks) != before

    def add_block(self, block: Union[SavedBlock, str], parent_id: Optional[str] = None) -> OperationResult:
        """Insert a fresh copy of a saved block (given directly or by id)."""
        if isinstance(block, str):
            found = next((b for b in self._blocks if b.id == block), None)
            if found is None:
                logger.warning("Edit FAIL: add_block block_not_found block=%s", block)
                return self._apply(OperationResult(
                    False, f"Block not found for id '{block}'.", self._elements,
                    {"reason": "not_found", "block_id": block},
                ))
            block = found
        return self._apply(self._service.add_block(self._elements, block.element, parent_id), select_created=True)

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------
    def load_document(self, payload: Union[Mapping[str, Any], str, bytes]) -> OperationResult:
        """Replace tree and settings from an export payload.

        The store is left untouched when the payload fails validation.
        """
        try:
            document = self._exporter.import_document(payload)
        except ImportValidationError as e:
            self._last_result = OperationResult(
                False, f"Import rejected: {e}", self._elements,
                {"reason": "invalid_import", "validation_errors": list(e.validation_errors)},
            )
            return self._last_result
        self._settings = copy.deepcopy(document.settings)
        return self._apply(OperationResult(
            True, "Document imported.", document.elements,
            {"project": document.project, "version": document.version},
        ), select=None)

    def export_document(self) -> Dict[str, Any]:
        project = self._current_project.header() if self._current_project else None
        return self._exporter.export_document(self._elements, self._settings, project)

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------
    def create_project(self, name: str, project_type: str = "form") -> Project:
        """Create a project in the library and make it current."""
        project = self.project_service.create_project(name, project_type)
        self._open(project)
        return project

    def load_project(self, project_id: str) -> bool:
        project = self.project_service.get_project(project_id)
        if project is None:
            logger.warning("Store: project %s not found", project_id)
            return False
        self._open(project)
        return True

    def save_project(self) -> Optional[Project]:
        """Save the live tree and settings into the current project."""
        if self._current_project is None:
            return None
        project = self.project_service.save_project(self._current_project.id, self._elements, self._settings)
        if project is not None:
            self._current_project = project
        return project

    def delete_project(self, project_id: str) -> bool:
        deleted = self.project_service.delete_project(project_id)
        if deleted and self._current_project is not None and self._current_project.id == project_id:
            self._current_project = None
            self._notify()
        return deleted

    def duplicate_project(self, project_id: str) -> Optional[Project]:
        return self.project_service.duplicate_project(project_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _move(self, element_id: str, direction: Literal["up", "down"], parent_id: Optional[str]) -> OperationResult:
        return self._apply(self._service.move_element(self._elements, element_id, direction, parent_id))

    def _open(self, project: Project) -> None:
        self._current_project = project
        self._settings = copy.deepcopy(dict(project.settings))
        self._elements = sync_mirrors(project.elements)
        self._selected_id = None
        logger.info("Store: opened project %s", project.id)
        self._notify()

    def _apply(self, result: OperationResult, select_created: bool = False, select: Any = _KEEP) -> OperationResult:
        """Commit *result*: swap the tree and keep the selection coherent."""
        self._last_result = result
        if not result.success:
            return result

        previous = (self._elements, self._selected_id)
        self._elements = result.elements
        if select_created and result.details and result.details.get("element_id"):
            self._selected_id = result.details["element_id"]
        elif select is not _KEEP:
            self._selected_id = select
        if self._selected_id is not None and find_element(self._elements, self._selected_id) is None:
            logger.debug("Store: selection %s cleared, element left the tree", self._selected_id)
            self._selected_id = None

        if self._elements is not previous[0] or self._selected_id != previous[1]:
            self._notify()
        return result

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)
