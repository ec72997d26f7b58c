# Copyright (c) Syntropy Systems
"""Pytest fixtures for workflowsets tests."""

import os
import tempfile
from collections.abc import Generator
from pathlib import Path

import fakes
import pytest

from workflowsets import WorkflowSet, workflow_set
from workflowsets.config import WorkflowSetConfig

# Store original cwd at module load time
_original_cwd = Path.cwd()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def project_dir(temp_dir: Path) -> Generator[Path, None, None]:
    """Change into a temporary project directory."""
    os.chdir(temp_dir)

    yield temp_dir

    # Always return to original cwd
    os.chdir(_original_cwd)


@pytest.fixture
def config() -> WorkflowSetConfig:
    """Default config, independent of any workflowsets.yaml on disk."""
    return WorkflowSetConfig()


@pytest.fixture
def preprocessors() -> dict[str, fakes.FakePreprocessor]:
    return {"plain": fakes.plain, "scaled": fakes.scaled}


@pytest.fixture
def models() -> dict[str, fakes.FakeModel]:
    return {"glm": fakes.glm, "cart": fakes.cart, "knn": fakes.knn}


@pytest.fixture
def knn_grid() -> dict[str, dict[str, object]]:
    """Per-entry grid options for the tunable knn model."""
    grid = {"grid": {"neighbors": [3, 5, 7]}}
    return {"plain_knn": grid, "scaled_knn": grid}


@pytest.fixture
def wset(preprocessors, models, knn_grid) -> WorkflowSet:
    """A 2 x 3 cross set of fake workflows, not yet executed."""
    return workflow_set(preprocessors, models, options=knn_grid)
