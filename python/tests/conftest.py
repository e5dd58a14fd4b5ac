"""Shared fixtures for hexsplit tests."""

from pathlib import Path

import numpy as np
import pytest

from hexsplit.mesh import HexMesh, structured_box

# Path to shared test data directory
TEST_DATA_DIR = Path(__file__).resolve().parent.parent.parent / "tests" / "test_data"


# Unit cube corners in local slot order
UNIT_HEX = np.array([
    [0.0, 0.0, 0.0],
    [1.0, 0.0, 0.0],
    [1.0, 1.0, 0.0],
    [0.0, 1.0, 0.0],
    [0.0, 0.0, 1.0],
    [1.0, 0.0, 1.0],
    [1.0, 1.0, 1.0],
    [0.0, 1.0, 1.0],
])

TWO_HEX_NODES = np.array([
    [0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0],
    [0, 0, 1], [1, 0, 1], [1, 1, 1], [0, 1, 1],
    [2, 0, 0], [2, 1, 0], [2, 0, 1], [2, 1, 1],
], dtype=float)

TWO_HEX_ELEMENTS = np.array([
    [0, 1, 2, 3, 4, 5, 6, 7],
    [1, 8, 9, 2, 5, 10, 11, 6],
])


@pytest.fixture
def single_hex():
    """One isolated unit hexahedron."""
    return HexMesh(nodes=UNIT_HEX.copy(), elements=np.arange(8)[np.newaxis, :])


@pytest.fixture
def two_hex():
    """Two unit hexahedra sharing the face through nodes {1, 2, 5, 6}."""
    return HexMesh(nodes=TWO_HEX_NODES.copy(), elements=TWO_HEX_ELEMENTS.copy())


@pytest.fixture
def box_mesh():
    """A 2 x 3 x 4 block of hexahedra."""
    return structured_box(2, 3, 4, size=(2.0, 3.0, 4.0))


@pytest.fixture(scope="session")
def two_hex_path():
    """Path to the two-element text mesh."""
    p = TEST_DATA_DIR / "two_hex.txt"
    if not p.exists():
        pytest.skip(f"Test mesh not found: {p}")
    return p
