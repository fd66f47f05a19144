from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from litdoc.logging import NOISY_LOGGERS
from litdoc.orchestrator import Orchestrator
from tests._fixtures.analysis import RecordingFactory


@pytest.fixture
def service_factory() -> RecordingFactory:
    """Provide a fake analysis session factory that records its sessions."""
    return RecordingFactory()


@pytest.fixture
def orchestrator(service_factory: RecordingFactory) -> Orchestrator:
    return Orchestrator(service_factory=service_factory)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A small literate project: one library module and one consumer in a subdirectory."""
    src = tmp_path / "src"
    (src / "sub").mkdir(parents=True)
    (src / "lib.ts").write_text(
        "/// # Library\n/// Shared helpers.\nexport function helper() {}\n",
        encoding="utf-8",
    )
    (src / "sub" / "main.ts").write_text(
        "/// Calls into the library.\nhelper();\n",
        encoding="utf-8",
    )
    return src


@pytest.fixture(autouse=True)
def _reset_litdoc_logger() -> Iterator[None]:
    # configure_logging detaches the package logger from the root; undo it so caplog keeps working.
    yield
    logger = logging.getLogger("litdoc")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET)
