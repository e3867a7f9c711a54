"""
Lattice / strut mesh builder for the wireframe pattern families.

An anchor grid of (segments + 1) × (layers + 1) points is placed on the
evaluated surface; the family's connectivity rule picks anchor pairs and
every pair becomes an independent prism ("strut").  Struts never share
vertices.  They are lengthened slightly past their anchors so that
neighbouring struts overlap and print as one fused frame.

Column ``segments`` of the grid sits at θ = 2π, on top of column 0, so
rules only ever walk columns [0, segments) and step to i + 1.
"""
import logging
from typing import List, Tuple

import numpy as np

from . import config
from .displacement import TWO_PI
from .mesh import Mesh, loft_faces
from .params import PatternFamily, ShellParams
from .surface import outer_wall_radius

logger = logging.getLogger(__name__)

Edge = Tuple[int, int]

# Families whose rule alternates by column parity need an even column count
# so the pattern closes at the seam.
_EVEN_COLUMNS = {PatternFamily.LATTICE_HONEYCOMB, PatternFamily.LATTICE_WEAVE}


def lattice_segments(params: ShellParams) -> int:
    segments = int(params.grid_density)
    if params.pattern in _EVEN_COLUMNS and segments % 2:
        segments += 1
    return segments


def anchor_grid(params: ShellParams) -> np.ndarray:
    """(segments + 1, layers + 1, 3) anchor points on the evaluated outer surface."""
    segments = lattice_segments(params)
    layers = int(params.lattice_layers)
    theta = np.arange(segments + 1, dtype=np.float64) * (TWO_PI / segments)
    t = np.linspace(0.0, 1.0, layers + 1)
    aa, tt = np.meshgrid(theta, t, indexing="ij")
    r = outer_wall_radius(aa, tt, params)
    return np.stack([r * np.cos(aa), r * np.sin(aa), tt * params.height], axis=-1)


def cell_centres(params: ShellParams) -> np.ndarray:
    """(segments, layers, 3) points at the middle of every anchor cell (star family)."""
    segments = lattice_segments(params)
    layers = int(params.lattice_layers)
    theta = (np.arange(segments, dtype=np.float64) + 0.5) * (TWO_PI / segments)
    t = (np.arange(layers, dtype=np.float64) + 0.5) / layers
    aa, tt = np.meshgrid(theta, t, indexing="ij")
    r = outer_wall_radius(aa, tt, params)
    return np.stack([r * np.cos(aa), r * np.sin(aa), tt * params.height], axis=-1)


def lattice_edges(pattern: PatternFamily, segments: int, layers: int) -> np.ndarray:
    """
    Connectivity rule for one wireframe family.

    Anchor (i, j) has index i·(layers + 1) + j; star cell centres follow
    the anchor block, centre (i, j) at offset i·layers + j.  Every family
    also gets the bottom and top rings so the frame stands on its own.
    """
    pattern = PatternFamily(pattern)
    stride = layers + 1

    def a(i, j):
        return i * stride + j

    edges: List[Edge] = []

    def ring(j):
        edges.extend((a(i, j), a(i + 1, j)) for i in range(segments))

    def verticals(keep=lambda i, j: True):
        edges.extend((a(i, j), a(i, j + 1))
                     for i in range(segments) for j in range(layers) if keep(i, j))

    def diagonals(up=True, down=True):
        for i in range(segments):
            for j in range(layers):
                if up:
                    edges.append((a(i, j), a(i + 1, j + 1)))
                if down:
                    edges.append((a(i + 1, j), a(i, j + 1)))

    if pattern is PatternFamily.LATTICE_VERTICAL:
        verticals()
        ring(0)
        ring(layers)
    elif pattern is PatternFamily.LATTICE_TRIANGULAR:
        verticals()
        diagonals(down=False)
        for j in range(layers + 1):
            ring(j)
    elif pattern is PatternFamily.LATTICE_HONEYCOMB:
        # Brick-offset hexagons: every ring, every other vertical
        verticals(lambda i, j: (i + j) % 2 == 0)
        for j in range(layers + 1):
            ring(j)
    elif pattern is PatternFamily.LATTICE:
        diagonals()
        ring(0)
        ring(layers)
    elif pattern is PatternFamily.LATTICE_STAR:
        base = (segments + 1) * stride
        for i in range(segments):
            for j in range(layers):
                c = base + i * layers + j
                edges.extend([(c, a(i, j)), (c, a(i + 1, j)),
                              (c, a(i, j + 1)), (c, a(i + 1, j + 1))])
        for j in range(layers + 1):
            ring(j)
    elif pattern is PatternFamily.LATTICE_WEAVE:
        diagonals()
        for j in range(layers + 1):
            ring(j)
    else:
        raise ValueError(f"[lattice] {pattern.value} is not a wireframe family")

    return np.asarray(edges, dtype=np.int64).reshape(-1, 2)


def weave_ends(points: np.ndarray, edges: np.ndarray, layers: int, lift: float):
    """
    Strut end points for lattice_weave.

    The two diagonals of a cell cross at its middle.  One is lifted outward
    by ``lift`` and the other pushed inward, swapping with the cell's
    checkerboard parity, so crossing struts pass over / under each other.
    Anchors themselves stay on the surface; rings are not moved.
    """
    stride = layers + 1
    e0, e1 = edges[:, 0], edges[:, 1]
    step = e1 - e0
    up = step == stride + 1
    down = step == 1 - stride

    # Cell (i, j) of each diagonal
    i = np.where(up, e0 // stride, e1 // stride)
    j = np.where(up, e0 % stride, e1 % stride - 1)
    sign = np.where((i + j) % 2 == 0, 1.0, -1.0)
    sign = np.where(up, sign, np.where(down, -sign, 0.0))

    def shifted(p):
        rho = np.hypot(p[:, 0], p[:, 1])
        scale = np.maximum(rho + sign * lift, config.INNER_RADIUS_FLOOR) / np.maximum(rho, 1e-12)
        return np.column_stack([p[:, 0] * scale, p[:, 1] * scale, p[:, 2]])

    return shifted(points[e0]), shifted(points[e1])


def strut_mesh(p0: np.ndarray, p1: np.ndarray, radius: float,
               sides: int = config.STRUT_SIDES,
               overlap: float = config.STRUT_END_OVERLAP) -> Mesh:
    """
    One capped prism per (p0[k], p1[k]) pair, all built in one pass.

    Each prism is extended by ``overlap · radius`` past both endpoints.
    Zero-length pairs are skipped.
    """
    p0 = np.asarray(p0, dtype=np.float64).reshape(-1, 3)
    p1 = np.asarray(p1, dtype=np.float64).reshape(-1, 3)
    d = p1 - p0
    length = np.linalg.norm(d, axis=1)
    keep = length > 1e-9
    if not np.any(keep):
        return Mesh.empty()
    p0, p1, d = p0[keep], p1[keep], d[keep] / length[keep, None]

    ext = overlap * radius
    p0 = p0 - d * ext
    p1 = p1 + d * ext

    # Right-handed frame (u, v, d) per strut
    helper = np.where(np.abs(d[:, 2:3]) < 0.9, [[0.0, 0.0, 1.0]], [[1.0, 0.0, 0.0]])
    u = np.cross(d, helper)
    u /= np.linalg.norm(u, axis=1, keepdims=True)
    v = np.cross(d, u)

    phi = np.arange(sides, dtype=np.float64) * (TWO_PI / sides)
    offsets = radius * (np.cos(phi)[None, :, None] * u[:, None, :]
                        + np.sin(phi)[None, :, None] * v[:, None, :])     # (E, K, 3)
    rings = np.stack([p0[:, None, :] + offsets, p1[:, None, :] + offsets], axis=1)  # (E, 2, K, 3)

    n = len(p0)
    per = 2 * sides
    template = loft_faces(2, sides)
    faces = template[None, :, :] + (np.arange(n, dtype=np.int64) * per)[:, None, None]
    return Mesh(rings.reshape(-1, 3), faces.reshape(-1, 3))


def build_lattice(params: ShellParams) -> Mesh:
    """Anchor grid → family edges → fused strut frame."""
    segments = lattice_segments(params)
    layers = int(params.lattice_layers)
    points = anchor_grid(params).reshape(-1, 3)
    if params.pattern is PatternFamily.LATTICE_STAR:
        points = np.concatenate([points, cell_centres(params).reshape(-1, 3)], axis=0)

    edges = lattice_edges(params.pattern, segments, layers)
    radius = params.effective_strut_radius
    if params.pattern is PatternFamily.LATTICE_WEAVE:
        p0, p1 = weave_ends(points, edges, layers, radius)
    else:
        p0, p1 = points[edges[:, 0]], points[edges[:, 1]]
    mesh = strut_mesh(p0, p1, radius)
    logger.info(f"[lattice] {params.pattern.value}: {segments}×{layers} cells, "
                f"{len(edges):,} struts (r={radius:g})  →  {mesh.vertex_count:,} vertices")
    return mesh
