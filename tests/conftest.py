from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

# Ensure src/ is importable when the package is not installed.
ROOT = TESTS_DIR.parent
for extra in (ROOT / "src",):
    path_str = str(extra)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from fixtures import ProjectBuilder  # noqa: E402

from confgen.core.logging import release_logger  # noqa: E402
from confgen.registry import REGISTRY, ConfigRegistry  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_global_state() -> Iterator[None]:
    REGISTRY.clear()
    yield
    REGISTRY.clear()
    release_logger(logging.getLogger("confgen"))


@pytest.fixture
def registry() -> ConfigRegistry:
    """A fresh registry that does not touch the process-wide one."""

    return ConfigRegistry()


@pytest.fixture
def project(tmp_path: Path) -> Iterator[ProjectBuilder]:
    """Helper for writing sample app modules and config files under tmp."""

    builder = ProjectBuilder(tmp_path)
    yield builder
    for name in builder.modules:
        sys.modules.pop(name, None)
