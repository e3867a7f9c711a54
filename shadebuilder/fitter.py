"""
Fitter attachment generator.

Builds the socket ring plus radial spokes that hold a shell on a lamp
socket.  Every spoke corner is clamped against the shell wall evaluated at
that corner's own angle and height (see ``surface.fused_end_radius``), so
spokes fuse into the wall on any silhouette / pattern without breaking
through the outer surface.
"""
import logging

import numpy as np

from .assembler import combine_meshes
from .displacement import TWO_PI
from .errors import InvalidParameter, UnsupportedFamilyCombination
from .mesh import Mesh, loft, polar
from .params import PatternFamily, ShellParams
from .surface import fused_end_radius, inner_wall_radius

logger = logging.getLogger(__name__)

RING_SEGMENTS = 64


def spoke_angles(params: ShellParams) -> np.ndarray:
    """
    Evenly spaced spoke angles.  On a geometric polygon shell each spoke is
    snapped to the nearest polygon corner, where the wall is furthest out.
    """
    n = params.fitter.spokes
    angles = np.arange(n, dtype=np.float64) * (TWO_PI / max(n, 1))
    if params.pattern is PatternFamily.GEOMETRIC_POLY:
        sector = TWO_PI / int(params.sides)
        angles = np.mod(np.round(angles / sector) * sector, TWO_PI)
    return angles


def spoke_end_radius(theta, height, params: ShellParams) -> np.ndarray:
    """Radius of a spoke's outer end at absolute ``height`` (0 … params.height)."""
    f = params.fitter
    t = np.asarray(height, dtype=np.float64) / params.height
    return fused_end_radius(theta, t, params, f.safety_fraction, f.fusion_fraction)


def build_ring(params: ShellParams) -> Mesh:
    f = params.fitter
    ri, ro = f.inner_diameter / 2.0, f.outer_diameter / 2.0
    z0 = f.mount_height_from_base - f.ring_height / 2.0
    z1 = f.mount_height_from_base + f.ring_height / 2.0
    theta = np.arange(RING_SEGMENTS, dtype=np.float64) * (TWO_PI / RING_SEGMENTS)
    rings = np.stack([
        polar(theta, ri, z0),
        polar(theta, ro, z0),
        polar(theta, ro, z1),
        polar(theta, ri, z1),
    ], axis=1)
    return loft(rings, closed=True)


def build_spoke(phi: float, params: ShellParams) -> Mesh:
    """
    Rectangular spoke from the middle of the ring to the wall.  The four
    outer corners are clamped independently.
    """
    f = params.fitter
    ri, ro = f.inner_diameter / 2.0, f.outer_diameter / 2.0
    r_start = (ri + ro) / 2.0
    hw, ht = f.spoke_width / 2.0, f.spoke_thickness / 2.0
    zc = f.mount_height_from_base

    r_local = float(inner_wall_radius(phi, zc / params.height, params))
    s = np.array([-hw, hw, hw, -hw])
    z = zc + np.array([-ht, -ht, ht, ht])

    end_theta = phi + s / r_local
    end_r = spoke_end_radius(end_theta, z, params)
    if np.any(end_r <= ro):
        raise InvalidParameter(
            "fitter.outer_diameter",
            f"ring (r={ro:g}) does not fit inside the shell wall at mount height "
            f"(local end radius {float(end_r.min()):.3f})",
        )

    start = polar(phi + s / r_start, r_start, z)
    end = polar(end_theta, end_r, z)
    return loft(np.stack([start, end], axis=0))


def build_fitter(params: ShellParams) -> Mesh:
    f = params.fitter
    if not f.enabled:
        return Mesh.empty()
    if params.pattern.is_lattice:
        raise UnsupportedFamilyCombination(
            "fitter.kind",
            f"{f.kind.value} fitter needs a solid wall; {params.pattern.value} is a wireframe pattern",
        )

    parts = [build_ring(params)] + [build_spoke(phi, params) for phi in spoke_angles(params)]
    mesh = combine_meshes(*parts)
    logger.info(f"[fitter] {f.kind.value}: ring Ø{f.inner_diameter:g}/{f.outer_diameter:g} "
                f"at z={f.mount_height_from_base:g}, {len(parts) - 1} spokes")
    return mesh
