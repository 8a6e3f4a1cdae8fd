from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import pytest


# Ensure src/ is importable without an installed package
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from aio_emitter import EventEmitter  # noqa: E402


def pytest_collection_modifyitems(config, items):
    """Default every test to the 'unit' marker unless it already has one."""
    for item in items:
        if "unit" not in {m.name for m in item.iter_markers()}:
            item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def reset_default_max_listeners():
    """Class-level default cap is global state; restore it around each test."""
    EventEmitter.default_max_listeners = 10
    yield
    EventEmitter.default_max_listeners = 10


@pytest.fixture
def emitter() -> EventEmitter:
    return EventEmitter()


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Run config resolution from an empty directory with no EMITTER_* variables set."""
    for key in list(os.environ):
        if key.startswith("EMITTER_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture(autouse=True)
def reset_emitter_logger():
    """Undo handler, level and propagation changes made to the emitter's logger namespace."""
    yield
    namespace = logging.getLogger("aio_emitter")
    for handler in list(namespace.handlers):
        namespace.removeHandler(handler)
        handler.close()
    namespace.setLevel(logging.NOTSET)
    namespace.propagate = True
