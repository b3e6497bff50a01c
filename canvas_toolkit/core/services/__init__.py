from __future__ import annotations

"""High-level services (structure editing, export/import, projects).

Services hold no UI state and can be instantiated directly.
"""

from .structure_editing_service import OperationResult, StructureEditingService  # noqa: F401
from .export_service import ExportService, ImportedDocument  # noqa: F401
from .project_service import ProjectService  # noqa: F401

__all__: list[str] = [
    "OperationResult",
    "StructureEditingService",
    "ExportService",
    "ImportedDocument",
    "ProjectService",
]
