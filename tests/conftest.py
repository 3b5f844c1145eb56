"""Pytest configuration and fixtures."""

import tempfile
from pathlib import Path
from typing import Generator

import pytest

from flowtoml.registry.documents import DocumentRegistry
from flowtoml.storage.manager import DocumentStore
from flowtoml.storage.paths import FixedDirectoryResolver


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def config_root(temp_dir: Path) -> Path:
    """Return the directory used as the per-user configuration root."""
    return temp_dir / "config"


@pytest.fixture
def registry() -> DocumentRegistry:
    """Provide an empty document registry."""
    return DocumentRegistry()


@pytest.fixture
def store(registry: DocumentRegistry, config_root: Path) -> DocumentStore:
    """Provide a document store rooted in a temporary directory."""
    return DocumentStore(registry, FixedDirectoryResolver(config_root))


@pytest.fixture
def sample_toml() -> str:
    """Provide a small TOML document."""
    return """title = "demo"
volume = 7

[network]
port = "8080"
timeout = 2.5
"""
