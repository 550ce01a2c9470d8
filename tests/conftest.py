"""Pytest configuration and fixtures for packedancestrymap tests."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent))

from fixtures.geno_generator import (  # noqa: E402
    GenoGenerator,
    SyntheticDataset,
    make_small_dataset,
)


@pytest.fixture
def small_dataset(tmp_path: Path) -> SyntheticDataset:
    """3-individual, 2-marker dataset with a valid header."""
    return make_small_dataset(tmp_path / "small")


@pytest.fixture
def random_dataset(tmp_path: Path) -> SyntheticDataset:
    """250 individuals (wider than the 48-byte minimum) across 40 markers."""
    return GenoGenerator.random(tmp_path / "random", n_individuals=250, n_markers=40, seed=7)


@pytest.fixture
def write_table(tmp_path: Path):
    """Write text content to a file under tmp_path and return its path."""

    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.write_text(content)
        return path

    return _write
