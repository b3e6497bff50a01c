import logging

import pytest

from canvas_toolkit.logging_config import setup_logging


@pytest.fixture(autouse=True)
def restore_logging(tmp_path, monkeypatch):
    """Run setup_logging against a temp log dir and undo its global effects."""
    monkeypatch.setenv("CANVAS_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("CANVAS_DEBUG_EDITS", raising=False)
    monkeypatch.delenv("CANVAS_DEBUG_MODULES", raising=False)
    names = ["canvas_toolkit", "canvas_toolkit.core.services.structure_editing_service",
             "canvas_toolkit.core.store", "canvas_toolkit.core.tree"]
    saved = {n: (logging.getLogger(n).level, list(logging.getLogger(n).handlers), logging.getLogger(n).propagate)
             for n in names}
    root_handlers = list(logging.getLogger().handlers)
    root_level = logging.getLogger().level
    yield tmp_path / "logs"
    for name, (level, handlers, propagate) in saved.items():
        logger = logging.getLogger(name)
        for handler in logger.handlers:
            if handler not in handlers:
                handler.close()
        logger.setLevel(level)
        logger.handlers = handlers
        logger.propagate = propagate
    logging.getLogger().handlers = root_handlers
    logging.getLogger().setLevel(root_level)


def test_setup_logging_writes_to_log_dir(restore_logging):
    setup_logging()
    logging.getLogger("canvas_toolkit.core.store").info("hello from test")
    for handler in logging.getLogger("canvas_toolkit").handlers:
        handler.flush()
    log_file = restore_logging / "app.log"
    assert log_file.exists()
    assert "hello from test" in log_file.read_text(encoding="utf-8")


def test_debug_edits_override(monkeypatch):
    monkeypatch.setenv("CANVAS_DEBUG_EDITS", "true")
    setup_logging()
    assert logging.getLogger("canvas_toolkit.core.services.structure_editing_service").level == logging.DEBUG
    assert logging.getLogger("canvas_toolkit.core.store").level == logging.DEBUG


def test_debug_modules_override(monkeypatch):
    monkeypatch.setenv("CANVAS_DEBUG_MODULES", "canvas_toolkit.core.tree, ")
    setup_logging()
    assert logging.getLogger("canvas_toolkit.core.tree").level == logging.DEBUG


def test_invalid_config_falls_back_to_minimal(monkeypatch, isolated_config):
    isolated_config.mkdir(parents=True, exist_ok=True)
    (isolated_config / "logging.yml").write_text(
        "version: 1\nhandlers:\n  console:\n    class: no.such.Handler\n", encoding="utf-8"
    )
    setup_logging()
    root = logging.getLogger()
    assert root.level == logging.INFO
    assert any(isinstance(h, logging.StreamHandler) for h in root.handlers)
