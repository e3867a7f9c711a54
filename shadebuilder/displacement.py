"""
Displacement fields.

A displacement field maps (angle, height fraction, ShellParams) to a signed
radial offset in length units that is added to the silhouette radius.
Every family is a plain numpy expression over broadcast arrays, so a whole
angle × height grid is evaluated in one call.  The family → function table
is built once at import time.

Families fall into four groups:

  periodic       closed-form sine / triangle sums, optionally twisted by height
  distance       nearest / second-nearest distance to hashed seed points
  noise          value noise over a deterministic sine hash, 1–2 octaves
  tiling         angle / height quantized into cells; parity or hashed values

The sine hash is kept exactly as the original product used it so that a
design seed always reproduces the same surface.
"""
import math
from typing import Callable, Dict

import numpy as np

from .errors import OutOfRange
from .params import PatternFamily, ShellParams, LATTICE_PATTERNS
from .silhouette import profile_radius

TWO_PI = 2.0 * math.pi

# Elementary cellular automaton used by the cellular_automata family.
CA_RULE = 30

# Fraction of the silhouette radius kept by the recessed core of "slotted".
SLOT_CORE_SCALE = 0.8

FieldFn = Callable[[np.ndarray, np.ndarray, ShellParams], np.ndarray]


# ──────────────────────────────────────────────────────────────────────────────
# Hashing & noise
# ──────────────────────────────────────────────────────────────────────────────

def hash_3d(x, y, z, seed):
    """Deterministic hash → [0, 1).  Same inputs always give the same bits."""
    n = np.sin(x * 12.9898 + y * 78.233 + z * 37.719 + seed) * 43758.5453
    return n - np.floor(n)


def _smoothstep(e0, e1, x):
    s = np.clip((x - e0) / (e1 - e0), 0.0, 1.0)
    return s * s * (3.0 - 2.0 * s)


def value_noise(x, y, z, seed):
    """Trilinear value noise over the integer lattice, smoothstep-faded. Range [0, 1)."""
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    z = np.asarray(z, dtype=np.float64)
    xi, yi, zi = np.floor(x), np.floor(y), np.floor(z)
    fx, fy, fz = x - xi, y - yi, z - zi
    ux = fx * fx * (3.0 - 2.0 * fx)
    uy = fy * fy * (3.0 - 2.0 * fy)
    uz = fz * fz * (3.0 - 2.0 * fz)

    def lerp_x(dy, dz):
        a = hash_3d(xi, yi + dy, zi + dz, seed)
        b = hash_3d(xi + 1.0, yi + dy, zi + dz, seed)
        return a + (b - a) * ux

    x00 = lerp_x(0.0, 0.0)
    x10 = lerp_x(1.0, 0.0)
    x01 = lerp_x(0.0, 1.0)
    x11 = lerp_x(1.0, 1.0)
    y0 = x00 + (x10 - x00) * uy
    y1 = x01 + (x11 - x01) * uy
    return y0 + (y1 - y0) * uz


def _surface_noise(theta, t, p: ShellParams, scale: float, stretch=(1.0, 1.0), octaves: int = 2):
    """
    Noise sampled on the unrolled shell.  The angle is embedded as a circle
    (cos θ, sin θ) so the field is seamless at 0 / 2π.
    """
    sa, sz = stretch
    z = t * p.height
    weights = (0.6, 0.4) if octaves == 2 else (1.0,)
    acc = 0.0
    for octave, w in enumerate(weights):
        s = scale * (2.0 ** octave)
        acc = acc + w * value_noise(np.cos(theta) * s * sa, z * s * sz, np.sin(theta) * s * sa, p.seed)
    return acc


def _ridged(n):
    return (1.0 - np.abs(2.0 * n - 1.0)) ** 2


def _tri(x):
    """Triangle wave, period 1, range [0, 1]."""
    return 2.0 * np.abs(x - np.floor(x) - 0.5)


def _whole(x: float) -> int:
    """Angular frequencies are rounded to whole numbers so the seam closes."""
    return max(1, int(round(x)))


def _twist(p: ShellParams) -> float:
    return math.radians(p.twist_angle)


# ──────────────────────────────────────────────────────────────────────────────
# Periodic
# ──────────────────────────────────────────────────────────────────────────────

def _smooth(theta, t, p):
    return np.zeros(np.broadcast(theta, t).shape)


def _ribbed_drum(theta, t, p):
    return np.sin(theta * _whole(p.rib_count)) * p.rib_depth


def _spiral_twist(theta, t, p):
    return np.sin(_whole(p.rib_count) * (theta + t * _twist(p))) * p.rib_depth


def _wave_shell(theta, t, p):
    return np.sin(theta * _whole(p.frequency) + t * TWO_PI) * p.amplitude


def _knurled(theta, t, p):
    n = _whole(p.rib_count)
    k = _twist(p)
    return 0.5 * p.rib_depth * (np.sin(n * (theta + t * k)) + np.sin(n * (theta - t * k)))


def _chevron(theta, t, p):
    saw = _tri(theta * _whole(p.rib_count) / TWO_PI)
    return p.amplitude * (2.0 * _tri(t * p.frequency + 0.5 * saw) - 1.0)


def _ripple(theta, t, p):
    return np.sin(TWO_PI * t * p.frequency) * p.amplitude


def _fluted(theta, t, p):
    return -p.rib_depth * np.maximum(0.0, np.cos(theta * _whole(p.rib_count))) ** 2


def _scalloped(theta, t, p):
    return p.rib_depth * np.abs(np.sin(theta * _whole(p.rib_count) / 2.0))


def _basket_weave(theta, t, p):
    u = theta * p.tile_cols / TWO_PI
    v = t * p.tile_rows
    parity = np.mod(np.floor(u) + np.floor(v), 2.0)
    along = np.sin(math.pi * (u - np.floor(u)))
    across = np.sin(math.pi * (v - np.floor(v)))
    return p.tile_depth * np.where(parity == 0.0, along, across)


def _double_helix(theta, t, p):
    n = _whole(p.rib_count)
    k = _twist(p)
    a = np.maximum(0.0, np.cos(n * (theta + t * k))) ** 4
    b = np.maximum(0.0, np.cos(n * (theta - t * k))) ** 4
    return p.rib_depth * np.minimum(a + b, 1.0)


def _zigzag(theta, t, p):
    return p.rib_depth * np.cos(_whole(p.rib_count) * theta + math.pi * _tri(t * p.frequency))


def _bamboo(theta, t, p):
    f = np.mod(t * p.tile_rows, 1.0)
    node = np.exp(-(np.minimum(f, 1.0 - f) / 0.05) ** 2)
    return p.rib_depth * (node + 0.3 * np.sin(math.pi * f))


def _pleated(theta, t, p):
    return p.fold_depth * (2.0 * _tri(theta * _whole(p.fold_count) / TWO_PI) - 1.0)


def _petal(theta, t, p):
    return p.rib_depth * np.maximum(0.0, np.cos(theta * _whole(p.rib_count))) ** 3 * np.sin(math.pi * t)


def _moire(theta, t, p):
    n = _whole(p.rib_count)
    return 0.5 * p.amplitude * (np.sin(n * theta) + np.sin((n + 1) * theta + TWO_PI * t * p.frequency))


def _lobed(theta, t, p):
    return p.amplitude * np.cos(theta * p.sides)


def _wave_interference(theta, t, p):
    n = _whole(p.rib_count)
    w = TWO_PI * t * p.frequency
    return 0.5 * p.amplitude * (np.sin(n * theta + w) + np.sin(n * theta - w))


def _spiral_grooves(theta, t, p):
    return -p.rib_depth * np.maximum(0.0, np.cos(_whole(p.rib_count) * (theta + t * _twist(p)))) ** 6


def _geometric_poly(theta, t, p):
    n = int(p.sides)
    sector = TWO_PI / n
    r = profile_radius(t, p)
    local = np.mod(theta, sector) - sector / 2.0
    return r * (math.cos(math.pi / n) / np.cos(local) - 1.0)


# ──────────────────────────────────────────────────────────────────────────────
# Distance fields (pseudo-Voronoi)
# ──────────────────────────────────────────────────────────────────────────────

def seed_points(p: ShellParams) -> np.ndarray:
    """
    The fixed set of ``cell_count`` surface points hashed from the seed.

    Returns
    -------
    (K, 3) float64 positions on the silhouette surface.
    """
    i = np.arange(int(p.cell_count), dtype=np.float64)
    a = hash_3d(i, 0.0, 0.0, p.seed) * TWO_PI
    h = hash_3d(0.0, i, 0.0, p.seed)
    r = profile_radius(h, p)
    return np.stack([np.cos(a) * r, np.sin(a) * r, h * p.height], axis=1)


def _nearest_distances(theta, t, p):
    """Distances to the nearest and second-nearest seed point."""
    pts = seed_points(p)
    theta, t = np.broadcast_arrays(np.asarray(theta, dtype=np.float64),
                                   np.asarray(t, dtype=np.float64))
    r = profile_radius(t, p)
    q = np.stack([np.cos(theta) * r, np.sin(theta) * r, t * p.height], axis=-1)
    d = np.linalg.norm(q[..., np.newaxis, :] - pts, axis=-1)
    if d.shape[-1] == 1:
        d1 = d[..., 0]
        return d1, d1 + p.height
    part = np.partition(d, 1, axis=-1)
    return part[..., 0], part[..., 1]


def _cell_spacing(p: ShellParams) -> float:
    mean_r = 0.5 * (p.top_radius + p.bottom_radius)
    return math.sqrt(TWO_PI * mean_r * p.height / max(1, p.cell_count))


def _voronoi(theta, t, p):
    d1, _ = _nearest_distances(theta, t, p)
    return -np.exp(-d1 * 0.5) * 1.5


def _voronoi_ridges(theta, t, p):
    d1, d2 = _nearest_distances(theta, t, p)
    return p.amplitude * np.exp(-(d2 - d1) / 0.3)


def _voronoi_crackle(theta, t, p):
    d1, d2 = _nearest_distances(theta, t, p)
    return -p.amplitude * np.exp(-((d2 - d1) / 0.15) ** 2)


def _voronoi_bubbles(theta, t, p):
    d1, _ = _nearest_distances(theta, t, p)
    cell_r = 0.5 * _cell_spacing(p)
    return p.amplitude * np.sqrt(np.maximum(0.0, 1.0 - (d1 / cell_r) ** 2))


def _craters(theta, t, p):
    d1, _ = _nearest_distances(theta, t, p)
    cr = 0.3 * _cell_spacing(p)
    rim = 0.5 * np.exp(-((d1 - cr) / (0.15 * cr)) ** 2)
    bowl = np.where(d1 < cr, 1.0 - (d1 / cr) ** 2, 0.0)
    return p.amplitude * (rim - bowl)


# ──────────────────────────────────────────────────────────────────────────────
# Hash noise
# ──────────────────────────────────────────────────────────────────────────────

def _perlin_noise(theta, t, p):
    return _surface_noise(theta, t, p, p.noise_scale) * p.noise_strength


def _organic_cell(theta, t, p):
    n = _surface_noise(theta, t, p, p.noise_scale)
    return p.noise_strength * _smoothstep(0.45, 0.55, n)


def _coral(theta, t, p):
    return p.noise_strength * _ridged(_surface_noise(theta, t, p, p.noise_scale))


def _veins(theta, t, p):
    r = _ridged(_surface_noise(theta, t, p, p.noise_scale * 1.5))
    return -p.noise_strength * _smoothstep(0.8, 0.95, r)


def _hammered(theta, t, p):
    n = _surface_noise(theta, t, p, p.noise_scale * 4.0, octaves=1)
    return -p.noise_strength * 0.5 * n * n


def _bark(theta, t, p):
    return p.noise_strength * _surface_noise(theta, t, p, p.noise_scale, stretch=(4.0, 0.5))


def _stucco(theta, t, p):
    return 0.3 * p.noise_strength * _surface_noise(theta, t, p, p.noise_scale * 6.0)


def _lava(theta, t, p):
    n = _surface_noise(theta, t, p, p.noise_scale * 0.5)
    return p.noise_strength * np.floor(n * 4.0) / 4.0


# ──────────────────────────────────────────────────────────────────────────────
# Tiling / indexed
# ──────────────────────────────────────────────────────────────────────────────

def _cells(theta, t, p):
    u = np.asarray(theta) * p.tile_cols / TWO_PI
    v = np.asarray(t) * p.tile_rows
    return u, v


def _origami(theta, t, p):
    folds = _whole(p.fold_count)
    index = np.round(theta / TWO_PI * (folds * 2))
    return np.where(np.mod(index, 2.0) != 0.0, -p.fold_depth, 0.0)


def _diamond_plate(theta, t, p):
    u, v = _cells(theta, t, p)
    fu, fv = u - np.floor(u), v - np.floor(v)
    inside = (np.abs(fu - 0.5) + np.abs(fv - 0.5)) < 0.3
    return p.tile_depth * inside


def _bricks(theta, t, p):
    u, v = _cells(theta, t, p)
    row = np.floor(v)
    u = u + 0.5 * np.mod(row, 2.0)
    fu, fv = u - np.floor(u), v - row
    mortar = (np.minimum(fu, 1.0 - fu) < 0.06) | (np.minimum(fv, 1.0 - fv) < 0.08)
    return -p.tile_depth * mortar


def _geometric_tiles(theta, t, p):
    u, v = _cells(theta, t, p)
    return p.tile_depth * hash_3d(np.floor(u), np.floor(v), 0.0, p.seed)


def automaton_rows(p: ShellParams) -> np.ndarray:
    """Rule-30 automaton, one row per tile row, seeded from the design seed."""
    cols, rows = int(p.tile_cols), int(p.tile_rows)
    state = hash_3d(np.arange(cols, dtype=np.float64), 0.0, 0.0, p.seed) > 0.5
    out = np.zeros((rows, cols), dtype=bool)
    for r in range(rows):
        out[r] = state
        left = np.roll(state, 1)
        right = np.roll(state, -1)
        pattern = (left.astype(np.int64) << 2) | (state.astype(np.int64) << 1) | right.astype(np.int64)
        state = ((CA_RULE >> pattern) & 1).astype(bool)
    return out


def _cellular_automata(theta, t, p):
    u, v = _cells(theta, t, p)
    grid = automaton_rows(p)
    ci = np.clip(np.floor(u).astype(np.int64), 0, grid.shape[1] - 1)
    ri = np.clip(np.floor(v).astype(np.int64), 0, grid.shape[0] - 1)
    return p.tile_depth * grid[ri, ci]


def _checkerboard(theta, t, p):
    u, v = _cells(theta, t, p)
    return p.tile_depth * np.mod(np.floor(u) + np.floor(v), 2.0)


def _hex_tiles(theta, t, p):
    u, v = _cells(theta, t, p)
    u = u + 0.5 * np.mod(np.floor(v), 2.0)
    fu, fv = u - np.floor(u), v - np.floor(v)
    edge = np.minimum(np.minimum(fu, 1.0 - fu), np.minimum(fv, 1.0 - fv))
    return p.tile_depth * np.clip(edge / 0.15, 0.0, 1.0)


def _studs(theta, t, p):
    u, v = _cells(theta, t, p)
    fu, fv = u - np.floor(u), v - np.floor(v)
    r = np.hypot(fu - 0.5, fv - 0.5)
    return p.tile_depth * np.sqrt(np.maximum(0.0, 1.0 - (r / 0.35) ** 2))


def _slotted(theta, t, p):
    f = np.mod(theta * _whole(p.slot_count) / TWO_PI, 1.0)
    fin = np.abs(f - 0.5) < p.slot_width / 2.0
    core = -(1.0 - SLOT_CORE_SCALE) * profile_radius(t, p)
    return np.where(fin, 0.0, core)


def _louvers(theta, t, p):
    _, v = _cells(theta, t, p)
    return p.tile_depth * (v - np.floor(v))


def _staircase(theta, t, p):
    rows = int(p.tile_rows)
    phase = np.minimum(np.floor(t * rows), rows - 1) / rows * _twist(p)
    return p.rib_depth * np.sin(_whole(p.rib_count) * (theta + phase))


# ──────────────────────────────────────────────────────────────────────────────
# Family table
# ──────────────────────────────────────────────────────────────────────────────

FIELDS: Dict[PatternFamily, FieldFn] = {
    PatternFamily.SMOOTH: _smooth,
    PatternFamily.RIBBED_DRUM: _ribbed_drum,
    PatternFamily.SPIRAL_TWIST: _spiral_twist,
    PatternFamily.WAVE_SHELL: _wave_shell,
    PatternFamily.KNURLED: _knurled,
    PatternFamily.CHEVRON: _chevron,
    PatternFamily.RIPPLE: _ripple,
    PatternFamily.FLUTED: _fluted,
    PatternFamily.SCALLOPED: _scalloped,
    PatternFamily.BASKET_WEAVE: _basket_weave,
    PatternFamily.DOUBLE_HELIX: _double_helix,
    PatternFamily.ZIGZAG: _zigzag,
    PatternFamily.BAMBOO: _bamboo,
    PatternFamily.PLEATED: _pleated,
    PatternFamily.PETAL: _petal,
    PatternFamily.MOIRE: _moire,
    PatternFamily.LOBED: _lobed,
    PatternFamily.WAVE_INTERFERENCE: _wave_interference,
    PatternFamily.SPIRAL_GROOVES: _spiral_grooves,
    PatternFamily.GEOMETRIC_POLY: _geometric_poly,
    PatternFamily.DOUBLE_WALL: _smooth,
    PatternFamily.VORONOI: _voronoi,
    PatternFamily.VORONOI_RIDGES: _voronoi_ridges,
    PatternFamily.VORONOI_CRACKLE: _voronoi_crackle,
    PatternFamily.VORONOI_BUBBLES: _voronoi_bubbles,
    PatternFamily.CRATERS: _craters,
    PatternFamily.PERLIN_NOISE: _perlin_noise,
    PatternFamily.ORGANIC_CELL: _organic_cell,
    PatternFamily.CORAL: _coral,
    PatternFamily.VEINS: _veins,
    PatternFamily.HAMMERED: _hammered,
    PatternFamily.BARK: _bark,
    PatternFamily.STUCCO: _stucco,
    PatternFamily.LAVA: _lava,
    PatternFamily.ORIGAMI: _origami,
    PatternFamily.DIAMOND_PLATE: _diamond_plate,
    PatternFamily.BRICKS: _bricks,
    PatternFamily.GEOMETRIC_TILES: _geometric_tiles,
    PatternFamily.CELLULAR_AUTOMATA: _cellular_automata,
    PatternFamily.CHECKERBOARD: _checkerboard,
    PatternFamily.HEX_TILES: _hex_tiles,
    PatternFamily.STUDS: _studs,
    PatternFamily.SLOTTED: _slotted,
    PatternFamily.LOUVERS: _louvers,
    PatternFamily.STAIRCASE: _staircase,
}
# Wireframe families sit on the bare silhouette; the lattice builder adds
# its own anchor offsets.
FIELDS.update({family: _smooth for family in LATTICE_PATTERNS})

PATTERN_GROUPS = {
    "periodic": (
        PatternFamily.SMOOTH, PatternFamily.RIBBED_DRUM, PatternFamily.SPIRAL_TWIST,
        PatternFamily.WAVE_SHELL, PatternFamily.KNURLED, PatternFamily.CHEVRON,
        PatternFamily.RIPPLE, PatternFamily.FLUTED, PatternFamily.SCALLOPED,
        PatternFamily.BASKET_WEAVE, PatternFamily.DOUBLE_HELIX, PatternFamily.ZIGZAG,
        PatternFamily.BAMBOO, PatternFamily.PLEATED, PatternFamily.PETAL,
        PatternFamily.MOIRE, PatternFamily.LOBED, PatternFamily.WAVE_INTERFERENCE,
        PatternFamily.SPIRAL_GROOVES, PatternFamily.GEOMETRIC_POLY, PatternFamily.DOUBLE_WALL,
    ),
    "distance": (
        PatternFamily.VORONOI, PatternFamily.VORONOI_RIDGES, PatternFamily.VORONOI_CRACKLE,
        PatternFamily.VORONOI_BUBBLES, PatternFamily.CRATERS,
    ),
    "noise": (
        PatternFamily.PERLIN_NOISE, PatternFamily.ORGANIC_CELL, PatternFamily.CORAL,
        PatternFamily.VEINS, PatternFamily.HAMMERED, PatternFamily.BARK,
        PatternFamily.STUCCO, PatternFamily.LAVA,
    ),
    "tiling": (
        PatternFamily.ORIGAMI, PatternFamily.DIAMOND_PLATE, PatternFamily.BRICKS,
        PatternFamily.GEOMETRIC_TILES, PatternFamily.CELLULAR_AUTOMATA,
        PatternFamily.CHECKERBOARD, PatternFamily.HEX_TILES, PatternFamily.STUDS,
        PatternFamily.SLOTTED, PatternFamily.LOUVERS, PatternFamily.STAIRCASE,
    ),
    "lattice": tuple(sorted(LATTICE_PATTERNS, key=lambda f: f.value)),
}


def field_for(pattern: PatternFamily) -> FieldFn:
    return FIELDS[PatternFamily(pattern)]


def displacement_field(theta, t, params: ShellParams) -> np.ndarray:
    """Vectorized displacement over broadcastable angle / height-fraction arrays."""
    theta = np.mod(np.asarray(theta, dtype=np.float64), TWO_PI)
    t = np.asarray(t, dtype=np.float64)
    out = field_for(params.pattern)(theta, t, params)
    return np.broadcast_to(np.asarray(out, dtype=np.float64), np.broadcast(theta, t).shape)


def displacement_at(angle: float, height: float, params: ShellParams) -> float:
    """
    Radial offset at one surface point.

    ``angle`` is wrapped into [0, 2π); ``height`` is measured from the base
    and must lie within [0, params.height].
    """
    if not (0.0 <= height <= params.height):
        raise OutOfRange("height", f"must lie within [0, {params.height:g}]")
    return float(displacement_field(angle, height / params.height, params))


def preferred_segments(params: ShellParams) -> int:
    """
    Angular resolution actually used for a shell.  Faceted families round the
    configured resolution up so that every corner / fold lands on a sample.
    """
    segments = int(params.angular_resolution)
    if params.pattern is PatternFamily.GEOMETRIC_POLY:
        step = int(params.sides)
    elif params.pattern is PatternFamily.ORIGAMI:
        step = 2 * _whole(params.fold_count)
    else:
        return segments
    return step * int(math.ceil(segments / step))
