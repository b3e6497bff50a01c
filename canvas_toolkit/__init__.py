"""Top-level package for the business-logic portion of Canvas Toolkit.

Front-ends (canvas, preview, property panels, CLI) should only depend on the
public API exposed here rather than importing internal modules directly.
"""

from .core.models import EMPTY, Element, MenuItem  # re-export for convenience
from .core.services import OperationResult, StructureEditingService
from .core.store import BuilderStore

__all__: list[str] = [
    "BuilderStore",
    "StructureEditingService",
    "OperationResult",
    "Element",
    "MenuItem",
    "EMPTY",
]
