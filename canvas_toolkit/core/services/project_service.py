from __future__ import annotations

"""Project library: create, duplicate, delete, load and save projects.

Projects live in memory; when a ``storage_dir`` is given each project is also
written there as one export file (``<project id>.json``) and the directory is
scanned on start-up.
"""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from canvas_toolkit.config import ConfigManager
from canvas_toolkit.core.exceptions import CanvasToolkitError, ImportValidationError
from canvas_toolkit.core.models import Element
from canvas_toolkit.core.models.project import Project
from canvas_toolkit.core.services.export_service import ExportService
from canvas_toolkit.core.utils import generate_project_id

logger = logging.getLogger(__name__)

__all__ = ["ProjectService"]

DEFAULT_PROJECT_TYPES = ("form", "email", "website")


class ProjectService:
    """In-memory project library with optional directory persistence.

    Parameters
    ----------
    storage_dir
        Directory holding one JSON export per project. Nothing touches the
        disk when omitted.
    export_service
        Serializer used for the project files.
    """

    def __init__(
        self,
        storage_dir: Optional[Union[str, Path]] = None,
        export_service: Optional[ExportService] = None,
    ) -> None:
        self._exporter = export_service or ExportService()
        self._storage_dir = Path(storage_dir) if storage_dir is not None else None
        self._projects: Dict[str, Project] = {}

        defaults = ConfigManager().get_document_defaults()
        self._default_settings: Dict[str, Any] = dict(defaults.get("settings") or {})
        self._project_types = tuple(defaults.get("project_types") or DEFAULT_PROJECT_TYPES)

        if self._storage_dir is not None:
            self._load_from_disk()

    @property
    def project_types(self) -> tuple:
        return self._project_types

    # ---------------------------------------------------------------------
    # PUBLIC API
    # ---------------------------------------------------------------------
    def create_project(self, name: str, project_type: str = "form",
                       settings: Optional[Mapping[str, Any]] = None) -> Project:
        """Create an empty project.

        Raises ValueError for a blank name or an unsupported project type.
        """
        name = (name or "").strip()
        if not name:
            raise ValueError("Project name must not be empty")
        if project_type not in self._project_types:
            raise ValueError(
                f"Unsupported project type '{project_type}' (expected one of: {', '.join(self._project_types)})"
            )
        merged = copy.deepcopy(self._default_settings)
        merged["title"] = name
        merged.update(settings or {})
        project = Project(id=generate_project_id(), name=name, type=project_type, settings=merged)
        self._store(project)
        logger.info("Project created: %s (%s)", project.id, project_type)
        return project

    def duplicate_project(self, project_id: str) -> Optional[Project]:
        source = self._projects.get(project_id)
        if source is None:
            logger.warning("Project duplicate failed: %s not found", project_id)
            return None
        project = Project(
            id=generate_project_id(),
            name=f"{source.name} (Copy)",
            type=source.type,
            elements=source.elements,
            settings=copy.deepcopy(dict(source.settings)),
        )
        self._store(project)
        logger.info("Project duplicated: %s -> %s", project_id, project.id)
        return project

    def delete_project(self, project_id: str) -> bool:
        if self._projects.pop(project_id, None) is None:
            return False
        if self._storage_dir is not None:
            path = self._path_for(project_id)
            if path.exists():
                path.unlink()
        logger.info("Project deleted: %s", project_id)
        return True

    def get_project(self, project_id: str) -> Optional[Project]:
        return self._projects.get(project_id)

    def list_projects(self) -> List[Project]:
        """Projects, most recently updated first."""
        return sorted(self._projects.values(), key=lambda p: p.updated_at, reverse=True)

    def save_project(self, project_id: str, elements: Sequence[Element],
                     settings: Mapping[str, Any]) -> Optional[Project]:
        """Store the current tree and settings into *project_id*."""
        project = self._projects.get(project_id)
        if project is None:
            logger.warning("Project save failed: %s not found", project_id)
            return None
        project = project.touched(elements=tuple(elements), settings=dict(settings))
        self._store(project)
        logger.info("Project saved: %s (%d top-level element(s))", project_id, len(project.elements))
        return project

    def rename_project(self, project_id: str, name: str) -> Optional[Project]:
        project = self._projects.get(project_id)
        name = (name or "").strip()
        if project is None or not name:
            return None
        project = project.touched(name=name)
        self._store(project)
        return project

    # ---------------------------------------------------------------------
    # Persistence
    # ---------------------------------------------------------------------
    def _path_for(self, project_id: str) -> Path:
        return self._storage_dir / f"{project_id}.json"

    def _store(self, project: Project) -> None:
        self._projects[project.id] = project
        if self._storage_dir is None:
            return
        try:
            self._exporter.save(self._path_for(project.id), project.elements, project.settings, project.header())
        except OSError as e:
            raise CanvasToolkitError(f"Failed to save project {project.id}: {e}", cause=e)

    def _load_from_disk(self) -> None:
        if not self._storage_dir.exists():
            return
        for path in sorted(self._storage_dir.glob("*.json")):
            try:
                document = self._exporter.load(path)
            except ImportValidationError as e:
                logger.warning("Skipping unreadable project file %s: %s", path, e)
                continue
            header = document.project
            project_id = header.get("id") or path.stem
            project = Project(
                id=project_id,
                name=header.get("name") or project_id,
                type=header.get("type") or "form",
                elements=document.elements,
                settings=document.settings,
                created_at=header.get("createdAt") or document.export_date or "",
                updated_at=header.get("updatedAt") or document.export_date or "",
            )
            self._projects[project.id] = project
        logger.info("Projects loaded: %d from %s", len(self._projects), self._storage_dir)
