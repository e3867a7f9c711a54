"""
Evaluated shell surface: silhouette radius plus displacement, with the
floor clamps and the radius-clamp contract shared by every attachment
that has to fuse into the wall (fitter spokes, internal ribs, rim).
"""
import logging

import numpy as np

from . import config
from .displacement import displacement_field
from .params import ShellParams
from .silhouette import profile_radius

logger = logging.getLogger(__name__)


def wall_radii(theta, t, params: ShellParams):
    """
    Outer and inner wall radius over broadcastable angle / height-fraction
    arrays.

    outer = max(silhouette + displacement, OUTER_RADIUS_FLOOR)
    inner = max(outer − wall_thickness,    INNER_RADIUS_FLOOR)

    Degenerate samples are clamped rather than rejected.
    """
    theta = np.asarray(theta, dtype=np.float64)
    t = np.asarray(t, dtype=np.float64)
    raw_outer = profile_radius(t, params) + displacement_field(theta, t, params)
    outer = np.maximum(raw_outer, config.OUTER_RADIUS_FLOOR)
    raw_inner = outer - params.wall_thickness
    inner = np.maximum(raw_inner, config.INNER_RADIUS_FLOOR)

    clamped = int(np.count_nonzero(raw_outer < config.OUTER_RADIUS_FLOOR)
                  + np.count_nonzero(raw_inner < config.INNER_RADIUS_FLOOR))
    if clamped:
        logger.debug(f"[shell] Clamped {clamped:,} degenerate radius samples to the floor")
    return outer, inner


def outer_wall_radius(theta, t, params: ShellParams) -> np.ndarray:
    return wall_radii(theta, t, params)[0]


def inner_wall_radius(theta, t, params: ShellParams) -> np.ndarray:
    return wall_radii(theta, t, params)[1]


def fused_end_radius(theta, t, params: ShellParams,
                     safety_fraction: float = config.FITTER_SAFETY_FRACTION,
                     fusion_fraction: float = config.FITTER_FUSION_FRACTION) -> np.ndarray:
    """
    Radius for the outer end of anything attached to the inside of the wall.

        min(outer − safety_fraction·wall,  inner + fusion_fraction·wall)

    The end is driven ``fusion_fraction`` of the wall into the material
    but always stays ``safety_fraction`` of the wall short of the outer
    surface, both measured at the local (angle, height) of the end.

    Where the wall sits on the radius floor the end is held at
    INNER_RADIUS_FLOOR, still inside the outer floor and never through the
    axis.
    """
    outer, inner = wall_radii(theta, t, params)
    w = params.wall_thickness
    end = np.minimum(outer - safety_fraction * w, inner + fusion_fraction * w)
    return np.maximum(end, config.INNER_RADIUS_FLOOR)
