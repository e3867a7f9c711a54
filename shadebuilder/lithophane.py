"""
Heightfield mesher (lithophane path).

LuminanceGrid + LithophaneParams → two-sided relief panel.

Every grid sample gets a front vertex (at its relief height) and a back
vertex (at zero thickness), whether or not it is used.  Faces are only
emitted for cells whose four corners are valid, and side walls only along
cell edges whose neighbouring cell is invalid or off the grid, so the
panel is closed along the outline and around the hole.  A border turns
the area outside the outline into a raised frame instead of cutting it.

Curved and cylindrical outlines only change where the vertices are put;
validity and triangulation are the same as for the flat panel.
"""
import logging
import math

import numpy as np
from PIL import Image, ImageFilter

from . import config
from .assembler import finalize
from .imaging import as_luminance_grid
from .mesh import Mesh
from .params import LithophaneParams, MappingMode, OutlineShape

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────────────────────────────────────
# Tone
# ──────────────────────────────────────────────────────────────────────────────

def smooth_grid(grid: np.ndarray, radius: int) -> np.ndarray:
    """Box blur of ``radius`` pixels, edges clamped."""
    if radius <= 0:
        return grid
    img = Image.fromarray(grid).filter(ImageFilter.BoxBlur(int(radius)))
    return np.asarray(img, dtype=np.uint8)


def tone_map(grid: np.ndarray, params: LithophaneParams) -> np.ndarray:
    """
    Per-pixel normalized height in [0, 1].

    brightness / contrast use the usual 8-bit contrast factor
    259·(c + 255) / (255·(259 − c)); gamma is applied per channel before
    the luma weights.  Dark pixels come out high (thick) unless ``invert``.
    """
    c = params.contrast
    factor = (259.0 * (c + 255.0)) / (255.0 * (259.0 - c))
    v = factor * (grid.astype(np.float64) + params.brightness - 128.0) + 128.0
    v = np.clip(v, 0.0, 255.0) / 255.0
    v = v ** (1.0 / params.gamma)
    gray = v @ np.asarray(config.LUMA_WEIGHTS)
    return gray if params.invert else 1.0 - gray


def sample_bilinear(field: np.ndarray, u: np.ndarray, v: np.ndarray) -> np.ndarray:
    """Sample an (H, W) field at normalized (u, v); v = 0 is the bottom row of the image."""
    H, W = field.shape
    x = u * (W - 1)
    y = (1.0 - v) * (H - 1)
    x1 = np.clip(np.floor(x).astype(np.int64), 0, W - 1)
    y1 = np.clip(np.floor(y).astype(np.int64), 0, H - 1)
    x2 = np.minimum(x1 + 1, W - 1)
    y2 = np.minimum(y1 + 1, H - 1)
    dx = x - x1
    dy = y - y1
    return (field[y1, x1] * (1 - dx) * (1 - dy) + field[y1, x2] * dx * (1 - dy)
            + field[y2, x1] * (1 - dx) * dy + field[y2, x2] * dx * dy)


def apply_mapping(values: np.ndarray, mode: MappingMode) -> np.ndarray:
    if mode is MappingMode.EXPONENTIAL:
        return (np.exp(values) - 1.0) / (math.e - 1.0)
    if mode is MappingMode.LOGARITHMIC:
        return np.log1p(values * (math.e - 1.0))
    return values


# ──────────────────────────────────────────────────────────────────────────────
# Masks
# ──────────────────────────────────────────────────────────────────────────────

def outline_contains(x: np.ndarray, y: np.ndarray, outline: OutlineShape) -> np.ndarray:
    """Inside test in panel coordinates centred on the panel, x, y ∈ [−0.5, 0.5]."""
    if outline is OutlineShape.CIRCLE:
        return x * x + y * y <= 0.25
    if outline is OutlineShape.HEART:
        hx = x * 2.2
        hy = y * 2.2 + 0.2
        return (hx * hx + hy * hy - 1.0) ** 3 - hx * hx * hy ** 3 <= 0.0
    if outline is OutlineShape.BADGE:
        return (np.abs(x) <= 0.4) & (y <= 0.4) & (y >= -0.5 + np.abs(x))
    return (np.abs(x) <= 0.5) & (np.abs(y) <= 0.5)


def sample_masks(u: np.ndarray, v: np.ndarray, params: LithophaneParams):
    """
    Returns
    -------
    valid  : bool array   sample belongs to the panel (not in the hole)
    border : bool array   valid sample raised to the border height

    Without a border the panel is the outline.  With one, the whole
    rectangle is kept and everything outside the outline shrunk by the
    border width becomes a raised frame around the relief.
    """
    x = u - 0.5
    y = v - 0.5
    if params.border.enabled:
        valid = np.ones(np.broadcast(x, y).shape, dtype=bool)
    else:
        valid = outline_contains(x, y, params.outline)
    if params.hole.enabled:
        valid = valid & (np.hypot(x, y - params.hole.offset) >= params.hole.radius)

    border = np.zeros_like(valid)
    if params.border.enabled:
        s = 1.0 / (1.0 - 2.0 * params.border.width)
        core = outline_contains(x * s, y * s, params.outline)
        border = valid & ~core
    return valid, border


# ──────────────────────────────────────────────────────────────────────────────
# Geometry
# ──────────────────────────────────────────────────────────────────────────────

def grid_shape(image_shape, params: LithophaneParams):
    """(gx, gy): samples across / up the panel, following the image aspect."""
    H, W = image_shape[:2]
    gy = int(params.resolution)
    gx = max(2, int(math.floor(params.resolution * W / H)))
    return gx, gy


def project(u: np.ndarray, v: np.ndarray, thickness: np.ndarray, params: LithophaneParams) -> np.ndarray:
    """Panel (u, v, thickness) → 3-D position for the configured outline."""
    x = (u - 0.5) * params.width
    y = (v - 0.5) * params.height
    if params.outline is OutlineShape.CURVED:
        R = params.curve_radius
        a = x / R
        return np.stack([np.sin(a) * (R + thickness), y, np.cos(a) * (R + thickness) - R], axis=-1)
    if params.outline is OutlineShape.CYLINDRICAL:
        R = params.width / (2.0 * math.pi)
        a = u * 2.0 * math.pi
        return np.stack([np.sin(a) * (R + thickness), y, np.cos(a) * (R + thickness)], axis=-1)
    return np.stack([x, y, thickness], axis=-1)


def _walls(p: np.ndarray, q: np.ndarray, n: int) -> np.ndarray:
    """Side wall under the front edge p → q (as wound by the front faces)."""
    return np.concatenate([
        np.stack([q, p, p + n], axis=1),
        np.stack([q, p + n, q + n], axis=1),
    ])


def heightfield_faces(valid: np.ndarray) -> np.ndarray:
    """
    Faces for a (gy, gx) validity grid whose front vertices are numbered
    row-major and whose back vertices follow at offset gy·gx.
    """
    gy, gx = valid.shape
    n = gy * gx
    idx = np.arange(n, dtype=np.int64).reshape(gy, gx)
    a, b = idx[:-1, :-1], idx[:-1, 1:]
    c, d = idx[1:, :-1], idx[1:, 1:]
    cell = valid[:-1, :-1] & valid[:-1, 1:] & valid[1:, :-1] & valid[1:, 1:]

    a, b, c, d = a[cell], b[cell], c[cell], d[cell]
    front = np.concatenate([np.stack([a, b, c], axis=1), np.stack([b, d, c], axis=1)])
    back = np.concatenate([np.stack([a, c, b], axis=1), np.stack([b, c, d], axis=1)]) + n

    padded = np.pad(cell, 1, constant_values=False)
    core = padded[1:-1, 1:-1]
    open_below = (core & ~padded[:-2, 1:-1])[cell]
    open_above = (core & ~padded[2:, 1:-1])[cell]
    open_left = (core & ~padded[1:-1, :-2])[cell]
    open_right = (core & ~padded[1:-1, 2:])[cell]

    walls = [
        _walls(a[open_below], b[open_below], n),
        _walls(b[open_right], d[open_right], n),
        _walls(d[open_above], c[open_above], n),
        _walls(c[open_left], a[open_left], n),
    ]
    return np.concatenate([front, back] + walls, axis=0)


def generate_lithophane(grid, params: LithophaneParams) -> Mesh:
    """
    Build the relief panel.  Vertex count is always 2·gx·gy; samples outside
    the panel are kept but never referenced by a face.
    """
    params.validate()
    pixels = as_luminance_grid(grid)
    gx, gy = grid_shape(pixels.shape, params)
    logger.info(f"[litho] {params.outline.value} {params.width:g} × {params.height:g}  "
                f"grid {gx} × {gy}  relief {params.min_relief:g}–{params.max_relief:g}")

    heights = tone_map(smooth_grid(pixels, params.smoothing), params)

    u = np.arange(gx, dtype=np.float64) / (gx - 1)
    v = np.arange(gy, dtype=np.float64) / (gy - 1)
    uu, vv = np.meshgrid(u, v)                       # (gy, gx), row = v
    valid, border = sample_masks(uu, vv, params)

    level = apply_mapping(sample_bilinear(heights, uu, vv), params.mapping)
    relief = params.min_relief + level * (params.max_relief - params.min_relief)
    thickness = np.maximum(relief, params.base_thickness)
    thickness = np.where(border, params.border.height, thickness)
    thickness = np.where(valid, thickness, 0.0)

    front = project(uu, vv, thickness, params).reshape(-1, 3)
    back = project(uu, vv, np.zeros_like(thickness), params).reshape(-1, 3)
    faces = heightfield_faces(valid)

    mesh = finalize(Mesh(np.concatenate([front, back]), faces))
    logger.info(f"[litho] {mesh.vertex_count:,} vertices  |  {mesh.face_count:,} triangles  "
                f"({int(valid.sum()):,} of {gx * gy:,} samples inside)")
    return mesh
