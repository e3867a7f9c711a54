"""
Mesh assembler.

Merges sub-meshes (shell, ribs, rim, fitter, struts) into one buffer,
welds coincident vertices and computes per-vertex normals.  Also carries
the topology diagnostics used by the CLI report and the tests.
"""
import logging
from typing import Iterable, Tuple

import numpy as np

from . import config
from .errors import MeshAssemblyFailure
from .mesh import Mesh

logger = logging.getLogger(__name__)


def combine_meshes(*parts: Mesh) -> Mesh:
    """
    Concatenate any number of meshes into one, adjusting index offsets
    automatically.  Empty parts contribute nothing.
    """
    all_v, all_i = [], []
    offset = 0
    for part in parts:
        all_v.append(part.vertices)
        all_i.append(part.faces + offset)
        offset += part.vertex_count
    if not all_v:
        return Mesh.empty()
    return Mesh(np.concatenate(all_v, axis=0), np.concatenate(all_i, axis=0))


def weld_vertices(mesh: Mesh, epsilon: float = config.WELD_EPSILON) -> Mesh:
    """
    Snap vertices onto an ``epsilon`` grid and merge the ones that share a
    cell.  The first vertex of each cell is kept as the representative.
    """
    if mesh.vertex_count == 0 or epsilon <= 0:
        return mesh
    keys = np.round(mesh.vertices / epsilon).astype(np.int64)
    _, first, inverse = np.unique(keys, axis=0, return_index=True, return_inverse=True)
    inverse = inverse.reshape(-1)

    # Keep the original vertex order of the representatives
    order = np.argsort(first)
    remap = np.empty_like(order)
    remap[order] = np.arange(len(order))
    vertices = mesh.vertices[first[order]]
    faces = remap[inverse][mesh.faces]

    merged = mesh.vertex_count - len(vertices)
    if merged:
        logger.debug(f"[mesh] Welded {merged:,} duplicate vertices (eps={epsilon:g})")
    return Mesh(vertices, faces)


def drop_degenerate_faces(mesh: Mesh) -> Mesh:
    """Remove triangles that collapsed onto fewer than three distinct vertices."""
    f = mesh.faces
    keep = (f[:, 0] != f[:, 1]) & (f[:, 1] != f[:, 2]) & (f[:, 2] != f[:, 0])
    if np.all(keep):
        return mesh
    logger.debug(f"[mesh] Dropped {int(np.count_nonzero(~keep)):,} degenerate triangles")
    return Mesh(mesh.vertices, f[keep])


def compute_normals(verts: np.ndarray, indices: np.ndarray, n_verts: int) -> np.ndarray:
    """Accumulate face normals into per-vertex normals."""
    normals = np.zeros((n_verts, 3), dtype=np.float64)
    if len(indices) == 0:
        return normals
    v0 = verts[indices[:, 0]]
    v1 = verts[indices[:, 1]]
    v2 = verts[indices[:, 2]]
    fn = np.cross(v1 - v0, v2 - v0)

    for i in range(3):
        np.add.at(normals, indices[:, i], fn)

    nlen = np.linalg.norm(normals, axis=1, keepdims=True)
    nlen = np.where(nlen == 0, 1.0, nlen)
    return normals / nlen


def check_integrity(mesh: Mesh) -> None:
    """Index bounds must match the vertex buffer; anything else is a builder bug."""
    if mesh.face_count == 0:
        return
    i_min = int(mesh.faces.min())
    i_max = int(mesh.faces.max())
    if i_min < 0 or i_max >= mesh.vertex_count:
        raise MeshAssemblyFailure(
            f"[mesh] Invalid index range: min={i_min}, max={i_max}, vertex_count={mesh.vertex_count}"
        )
    if not np.all(np.isfinite(mesh.vertices)):
        raise MeshAssemblyFailure("[mesh] Non-finite vertex coordinates")


def finalize(mesh: Mesh) -> Mesh:
    check_integrity(mesh)
    mesh.normals = compute_normals(mesh.vertices, mesh.faces, mesh.vertex_count)
    return mesh


def assemble(parts: Iterable[Mesh], weld: bool = True,
             weld_epsilon: float = config.WELD_EPSILON) -> Mesh:
    """
    Weld each part → combine → normals.

    Parts are overlapping solids, not a boolean union, so vertices are only
    merged within a part.  A rib or rim touching the shell on the radius
    floor must not be welded into it.
    """
    parts = list(parts)
    for part in parts:
        check_integrity(part)
    if weld:
        parts = [drop_degenerate_faces(weld_vertices(part, weld_epsilon)) for part in parts]
    mesh = finalize(combine_meshes(*parts))
    logger.info(f"[mesh] Assembled {len(parts)} parts: "
                f"{mesh.vertex_count:,} vertices  |  {mesh.face_count:,} triangles")
    return mesh


# ──────────────────────────────────────────────────────────────────────────────
# Diagnostics
# ──────────────────────────────────────────────────────────────────────────────

def edge_use_counts(mesh: Mesh) -> Tuple[np.ndarray, np.ndarray]:
    """
    Returns
    -------
    edges  : (E, 2) int64  undirected edges, sorted vertex pairs
    counts : (E,)   int64  number of triangles using each edge
    """
    f = mesh.faces
    e = np.concatenate([f[:, [0, 1]], f[:, [1, 2]], f[:, [2, 0]]], axis=0)
    e = np.sort(e, axis=1)
    edges, counts = np.unique(e, axis=0, return_counts=True)
    return edges, counts


def is_watertight(mesh: Mesh) -> bool:
    """Every edge is shared by exactly two triangles."""
    if mesh.is_empty:
        return False
    _, counts = edge_use_counts(mesh)
    return bool(np.all(counts == 2))


def euler_characteristic(mesh: Mesh) -> int:
    """V − E + F over the vertices actually referenced by faces."""
    edges, _ = edge_use_counts(mesh)
    used = len(np.unique(mesh.faces))
    return int(used - len(edges) + mesh.face_count)


def bounds(mesh: Mesh) -> np.ndarray:
    """(2, 3) array of min / max corners."""
    if mesh.vertex_count == 0:
        return np.zeros((2, 3))
    return np.stack([mesh.vertices.min(axis=0), mesh.vertices.max(axis=0)])
