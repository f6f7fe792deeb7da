"""Fixtures and configuration for pytest."""

from pathlib import Path

import pytest

EXAMPLES_DIR = Path(__file__).parent.parent / "examples"


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "gold: mark test as a gold file comparison")
    config.addinivalue_line("markers", "gpu: mark test as requiring a WebGPU adapter")


@pytest.fixture
def collision_path() -> Path:
    """Path of the collision example module."""
    return EXAMPLES_DIR / "collision.py"


@pytest.fixture
def collision_source(collision_path: Path) -> str:
    """Source text of the collision example module."""
    return collision_path.read_text()
