from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from tests.helpers.module_renderer import ModuleRenderer


@pytest.fixture(autouse=True)
def _reset_promptline_logger() -> Iterator[None]:
    """Undo handler/propagation changes made by `configure_logging` so caplog keeps working."""

    logger = logging.getLogger("promptline")
    handlers = list(logger.handlers)
    level = logger.level
    propagate = logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Point config discovery at an empty location so a developer's own config never leaks in."""

    monkeypatch.setenv("PROMPTLINE_CONFIG", str(tmp_path / "missing-promptline.toml"))
    monkeypatch.delenv("PROMPTLINE_LOG", raising=False)
    monkeypatch.delenv("NO_COLOR", raising=False)


@pytest.fixture
def renderer_factory(tmp_path: Path):
    """Return a factory building `ModuleRenderer` instances rooted at a fresh project directory."""

    def factory(name: str) -> ModuleRenderer:
        project = tmp_path / "project"
        project.mkdir(exist_ok=True)
        return ModuleRenderer(name, project)

    return factory
