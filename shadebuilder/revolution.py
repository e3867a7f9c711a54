"""
Revolution mesh builder.

Samples the evaluated surface on an angle × height grid and lathes the
outer and inner profiles into one closed double-wall shell.  Also builds
the solids that hang off the shell: internal ribs and the top rim.

Vertex layout of one shell (R = height rows, M = angular samples):

    [0, R·M)        outer grid, row-major (row = height)
    [R·M, 2·R·M)    inner grid, same order

The seam at θ = 2π is closed by index wrap, never by duplicated vertices.
"""
import logging
from typing import List

import numpy as np

from . import config
from .assembler import combine_meshes
from .displacement import preferred_segments, TWO_PI
from .mesh import Mesh, loft, polar, ring_quads
from .params import PatternFamily, ShellParams
from .surface import fused_end_radius, wall_radii

logger = logging.getLogger(__name__)


def shell_grid(params: ShellParams):
    """
    Returns
    -------
    theta : (R, M) angles in [0, 2π)
    t     : (R, M) height fractions in [0, 1]
    """
    segments = preferred_segments(params)
    t = np.linspace(0.0, 1.0, int(params.height_steps) + 1)
    theta = np.arange(segments, dtype=np.float64) * (TWO_PI / segments)
    tt, aa = np.meshgrid(t, theta, indexing="ij")
    return aa, tt


def lathe(theta: np.ndarray, z: np.ndarray, outer: np.ndarray, inner: np.ndarray) -> Mesh:
    """
    Close an outer and an inner (R, M) radius grid into one solid.

    Outer faces point away from the axis, inner faces towards it, and the
    top / bottom annuli bridge the two walls.
    """
    rows, cols = outer.shape
    n = rows * cols
    vertices = np.concatenate([
        polar(theta, outer, z).reshape(-1, 3),
        polar(theta, inner, z).reshape(-1, 3),
    ], axis=0)

    outer_faces = ring_quads(rows, cols)
    inner_faces = outer_faces[:, ::-1] + n

    idx = np.arange(cols, dtype=np.int64)
    nxt = np.roll(idx, -1)
    top = (rows - 1) * cols
    o0, o1 = top + idx, top + nxt
    i0, i1 = o0 + n, o1 + n
    top_faces = np.concatenate([
        np.stack([o0, o1, i0], axis=1),
        np.stack([o1, i1, i0], axis=1),
    ])
    o0, o1 = idx, nxt
    i0, i1 = o0 + n, o1 + n
    bottom_faces = np.concatenate([
        np.stack([o0, i0, o1], axis=1),
        np.stack([o1, i0, i1], axis=1),
    ])

    faces = np.concatenate([outer_faces, inner_faces, top_faces, bottom_faces], axis=0)
    return Mesh(vertices, faces)


def shell_parts(params: ShellParams) -> List[Mesh]:
    """
    Lathe the evaluated surface into closed shells, one solid per list entry.

    ``double_wall`` adds a second concentric shell inset by
    ``gap_distance`` from the first one's inner wall.  On a floor-clamped
    silhouette the two walls can touch, so they stay separate solids.
    """
    theta, t = shell_grid(params)
    z = t * params.height
    outer, inner = wall_radii(theta, t, params)
    parts = [lathe(theta, z, outer, inner)]

    if params.pattern is PatternFamily.DOUBLE_WALL:
        outer2 = np.maximum(inner - params.gap_distance, config.OUTER_RADIUS_FLOOR)
        inner2 = np.maximum(outer2 - params.wall_thickness, config.INNER_RADIUS_FLOOR)
        parts.append(lathe(theta, z, outer2, inner2))

    rows, cols = theta.shape
    logger.info(f"[shell] {params.pattern.value} / {params.silhouette.value}: "
                f"{rows} rows × {cols} segments  →  {sum(p.vertex_count for p in parts):,} vertices")
    return parts


def build_shell(params: ShellParams) -> Mesh:
    """The shell solids of ``shell_parts`` in one buffer, sharing no vertices."""
    return combine_meshes(*shell_parts(params))


# ──────────────────────────────────────────────────────────────────────────────
# Internal ribs & rim
# ──────────────────────────────────────────────────────────────────────────────

def _rib(phi: float, params: ShellParams, t: np.ndarray) -> Mesh:
    half = params.rib_thickness / 2.0
    w = params.wall_thickness
    f = params.fitter

    # Tangential offset → angular offset at the local inner radius
    _, inner = wall_radii(phi, t, params)
    outer_r = []
    inner_r = []
    angles = []
    for s in (-half, half):
        a = phi + s / inner
        r = fused_end_radius(a, t, params, f.safety_fraction, f.fusion_fraction)
        angles.append(a)
        outer_r.append(r)
        inner_r.append(np.maximum(r - params.internal_rib_depth - f.fusion_fraction * w,
                                  config.ATTACHMENT_RADIUS_FLOOR))

    z = t * params.height
    corners = [
        polar(angles[0], outer_r[0], z),
        polar(angles[1], outer_r[1], z),
        polar(phi + half / np.maximum(inner_r[1], half), inner_r[1], z),
        polar(phi - half / np.maximum(inner_r[0], half), inner_r[0], z),
    ]
    rings = np.stack(corners, axis=1)       # (rows, 4, 3)
    return loft(rings)


def build_internal_ribs(params: ShellParams) -> Mesh:
    """
    ``internal_ribs`` vertical ribs running the full height on the inside
    of the shell.  The outer face of each rib follows the fused end radius
    so the rib bonds with the wall and never breaks through it.
    """
    n = int(params.internal_ribs)
    if n <= 0:
        return Mesh.empty()
    t = np.linspace(0.0, 1.0, int(params.height_steps) + 1)
    ribs = combine_meshes(*[_rib(TWO_PI * k / n, params, t) for k in range(n)])
    logger.info(f"[shell] {n} internal ribs  (w={params.rib_thickness:g}  depth={params.internal_rib_depth:g})")
    return ribs


def build_rim(params: ShellParams) -> Mesh:
    """
    Reinforcement band on the inside of the top edge.  Cross-section is a
    rectangle ``rim_width`` deep and ``rim_height`` tall whose outer edge
    follows the fused end radius around the whole circumference.
    """
    if params.rim_height <= 0:
        return Mesh.empty()
    segments = preferred_segments(params)
    theta = np.arange(segments, dtype=np.float64) * (TWO_PI / segments)
    t_top = 1.0
    t_bottom = 1.0 - params.rim_height / params.height
    f = params.fitter

    r_top = fused_end_radius(theta, t_top, params, f.safety_fraction, f.fusion_fraction)
    r_bottom = fused_end_radius(theta, t_bottom, params, f.safety_fraction, f.fusion_fraction)
    in_top = np.maximum(r_top - params.rim_width, config.ATTACHMENT_RADIUS_FLOOR)
    in_bottom = np.maximum(r_bottom - params.rim_width, config.ATTACHMENT_RADIUS_FLOOR)

    z_top = params.height
    z_bottom = params.height - params.rim_height
    rings = np.stack([
        polar(theta, r_bottom, z_bottom),
        polar(theta, r_top, z_top),
        polar(theta, in_top, z_top),
        polar(theta, in_bottom, z_bottom),
    ], axis=1)                              # (segments, 4, 3)
    mesh = loft(rings, closed=True)
    logger.info(f"[shell] Rim  (h={params.rim_height:g}  w={params.rim_width:g})")
    return mesh
