from __future__ import annotations

"""Simple reusable helper functions.

These helpers are side-effect-free and contain no GUI or disk I/O; they can be
used across all layers of the toolkit.
"""

import re
import uuid
from datetime import datetime, timezone

__all__ = [
    "slugify",
    "generate_element_id",
    "generate_project_id",
    "generate_block_id",
    "default_label",
    "utc_timestamp",
]


def slugify(text: str) -> str:
    """Return a submission-safe slug version of *text*.

    Removes non-alphanumeric chars, converts whitespace/dashes to underscores,
    and lower-cases the result. Used for the ``name`` of new form fields.
    """
    text = re.sub(r"[^\w\s-]", "", text).strip().lower()
    return re.sub(r"[-\s]+", "_", text)


def generate_element_id() -> str:
    """Generate a globally unique ID suitable for tree elements."""
    return f"el-{uuid.uuid4()}"


def generate_project_id() -> str:
    return f"proj-{uuid.uuid4().hex}"


def generate_block_id() -> str:
    return f"block-{uuid.uuid4().hex}"


def default_label(element_type: str) -> str:
    """Return the label given to a freshly created element of *element_type*.

    Examples:
        >>> default_label("text")
        'New Text'
        >>> default_label("star-rating")
        'New Star-rating'
    """
    if not element_type:
        return ""
    return f"New {element_type[0].upper()}{element_type[1:]}"


def utc_timestamp() -> str:
    """Current UTC time as an ISO-8601 string (used for export and projects)."""
    return datetime.now(timezone.utc).isoformat()
