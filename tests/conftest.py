import numpy as np
import pytest

from shadebuilder.mesh import Mesh, loft
from shadebuilder.params import ShellParams


@pytest.fixture
def small_shell():
    """Coarse shell so that every family builds in milliseconds."""
    return ShellParams(angular_resolution=24, height_steps=6)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def unit_cube() -> Mesh:
    square = np.array([[0, 0], [1, 0], [1, 1], [0, 1]], dtype=float)
    rings = np.stack([
        np.column_stack([square, np.zeros(4)]),
        np.column_stack([square, np.ones(4)]),
    ])
    return loft(rings)


def gradient_image(height=20, width=30):
    """Horizontal black → white ramp, (H, W, 3) uint8."""
    ramp = np.linspace(0, 255, width).astype(np.uint8)
    return np.repeat(np.tile(ramp, (height, 1))[:, :, None], 3, axis=2)
