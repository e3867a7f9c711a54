"""
Indexed triangle mesh and the lofting primitive shared by every builder.
"""
from dataclasses import dataclass
from typing import Optional

import numpy as np


@dataclass
class Mesh:
    """
    vertices : (N, 3) float64
    faces    : (M, 3) int64   triangle corner indices, counter-clockwise
                              seen from outside
    normals  : (N, 3) float64 per-vertex normals, filled by the assembler
    """
    vertices: np.ndarray
    faces: np.ndarray
    normals: Optional[np.ndarray] = None

    def __post_init__(self):
        self.vertices = np.asarray(self.vertices, dtype=np.float64).reshape(-1, 3)
        self.faces = np.asarray(self.faces, dtype=np.int64).reshape(-1, 3)
        if self.normals is not None:
            self.normals = np.asarray(self.normals, dtype=np.float64).reshape(-1, 3)

    @classmethod
    def empty(cls) -> "Mesh":
        return cls(np.zeros((0, 3)), np.zeros((0, 3), dtype=np.int64))

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def face_count(self) -> int:
        return len(self.faces)

    @property
    def is_empty(self) -> bool:
        return self.face_count == 0


def signed_volume(mesh: Mesh) -> float:
    """Volume enclosed by a closed mesh; negative when the faces point inward."""
    if mesh.is_empty:
        return 0.0
    v0 = mesh.vertices[mesh.faces[:, 0]]
    v1 = mesh.vertices[mesh.faces[:, 1]]
    v2 = mesh.vertices[mesh.faces[:, 2]]
    return float(np.einsum("ij,ij->i", v0, np.cross(v1, v2)).sum() / 6.0)


def orient_outward(mesh: Mesh) -> Mesh:
    """Flip every face of a closed, consistently wound mesh if it points inward."""
    if signed_volume(mesh) < 0.0:
        mesh.faces = mesh.faces[:, ::-1].copy()
    return mesh


def ring_quads(rows: int, cols: int, wrap_rows: bool = False) -> np.ndarray:
    """
    Triangles for a (rows × cols) vertex grid whose columns wrap around.
    Row r is joined to row r+1 (and the last row to the first when
    ``wrap_rows``).  Winding: (a, b, c), (c, b, d) with b/d one column on.
    """
    grid = np.arange(rows * cols, dtype=np.int64).reshape(rows, cols)
    if wrap_rows:
        a = grid
        c = np.roll(grid, -1, axis=0)
    else:
        a = grid[:-1, :]
        c = grid[1:, :]
    b = np.roll(a, -1, axis=1)
    d = np.roll(c, -1, axis=1)
    return np.concatenate([
        np.stack([a.ravel(), b.ravel(), c.ravel()], axis=1),
        np.stack([c.ravel(), b.ravel(), d.ravel()], axis=1),
    ], axis=0)


def loft_faces(n_rings: int, k: int, closed: bool = False) -> np.ndarray:
    """
    Face template for ``n_rings`` rings of ``k`` corners stacked in vertex
    order.  When the corners run counter-clockwise around the direction
    of travel from the first ring to the last, the template points outward.
    """
    faces = [ring_quads(n_rings, k, wrap_rows=closed)]
    if not closed:
        fan = np.arange(1, k - 1, dtype=np.int64)
        root = np.zeros(k - 2, dtype=np.int64)
        # Start cap reverses the side winding, end cap follows it
        faces.append(np.stack([root, fan + 1, fan], axis=1))
        last = (n_rings - 1) * k
        faces.append(np.stack([root + last, fan + last, fan + 1 + last], axis=1))
    return np.concatenate(faces, axis=0)


def loft(rings: np.ndarray, closed: bool = False) -> Mesh:
    """
    Skin a stack of polygonal rings into a closed solid.

    rings  : (L, K, 3)  L cross-sections of K corners each, corners in the
             same rotational order on every ring
    closed : join the last ring back to the first (ring-shaped solids such
             as the fitter ring or the rim) instead of capping both ends

    The result is oriented outward regardless of the corner order.
    """
    rings = np.asarray(rings, dtype=np.float64)
    mesh = Mesh(rings.reshape(-1, 3), loft_faces(rings.shape[0], rings.shape[1], closed))
    return orient_outward(mesh)


def polar(theta, radius, z) -> np.ndarray:
    """Stack cylindrical coordinates into (..., 3) cartesian points."""
    theta, radius, z = np.broadcast_arrays(theta, radius, z)
    return np.stack([radius * np.cos(theta), radius * np.sin(theta), z], axis=-1)
