"""Shared fixtures for the Canvas Toolkit test-suite.

Every test runs against the packaged configuration: the user override
directory is redirected to a temporary folder and the ConfigManager
singleton is reset around each test.
"""

import itertools
import logging
import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from canvas_toolkit.config import ConfigManager
from canvas_toolkit.core.element_factory import ElementFactory
from canvas_toolkit.core.services.structure_editing_service import StructureEditingService

# Configure test logging
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point user config overrides at an empty temp dir and reload config."""
    config_dir = tmp_path / "user_config"
    monkeypatch.setenv("CANVAS_TOOLKIT_CONFIG_DIR", str(config_dir))
    ConfigManager.reset()
    yield config_dir
    ConfigManager.reset()


@pytest.fixture
def id_factory():
    """Deterministic id allocator: el-1, el-2, ..."""
    counter = itertools.count(1)
    return lambda: f"el-{next(counter)}"


@pytest.fixture
def factory(id_factory):
    return ElementFactory(id_factory=id_factory)


@pytest.fixture
def bare_factory(id_factory):
    """Factory whose columns and rows start with every slot EMPTY."""
    defaults = ConfigManager().get_element_defaults()
    types = dict(defaults.get("types") or {})
    columns = dict(types.get("columns") or {})
    columns.pop("slot_fill", None)
    types["columns"] = columns
    return ElementFactory(defaults=dict(defaults, types=types), id_factory=id_factory)


@pytest.fixture
def service(factory):
    return StructureEditingService(factory=factory)


@pytest.fixture
def bare_service(bare_factory):
    return StructureEditingService(factory=bare_factory)
