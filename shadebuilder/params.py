"""
Parameter records handed to the kernel.

Every record is a frozen dataclass: the kernel reads it, never mutates it.
Use ``dataclasses.replace`` to derive a variant.  Validation is explicit
(``validate()``) and is called by every generation entry point before any
geometry is produced.
"""
import math
import numbers
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from . import config
from .errors import InvalidParameter


class SilhouetteFamily(str, Enum):
    STRAIGHT = "straight"
    HOURGLASS = "hourglass"
    BELL = "bell"
    CONVEX = "convex"
    CONCAVE = "concave"
    ONION = "onion"
    TRUMPET = "trumpet"
    STEPPED = "stepped"
    TULIP = "tulip"
    VASE = "vase"
    BARREL = "barrel"
    DOME = "dome"
    TEARDROP = "teardrop"
    GOURD = "gourd"
    LANTERN = "lantern"
    PAGODA = "pagoda"
    WAVY = "wavy"
    DIABOLO = "diabolo"
    EGG = "egg"
    URN = "urn"
    CHALICE = "chalice"
    PINCHED = "pinched"
    FLARED = "flared"
    SKIRT = "skirt"
    CAPSULE = "capsule"
    BULB = "bulb"
    SPINDLE = "spindle"
    TWIN_BULGE = "twin_bulge"
    CINCHED = "cinched"
    OGEE = "ogee"


class PatternFamily(str, Enum):
    # periodic
    SMOOTH = "smooth"
    RIBBED_DRUM = "ribbed_drum"
    SPIRAL_TWIST = "spiral_twist"
    WAVE_SHELL = "wave_shell"
    KNURLED = "knurled"
    CHEVRON = "chevron"
    RIPPLE = "ripple"
    FLUTED = "fluted"
    SCALLOPED = "scalloped"
    BASKET_WEAVE = "basket_weave"
    DOUBLE_HELIX = "double_helix"
    ZIGZAG = "zigzag"
    BAMBOO = "bamboo"
    PLEATED = "pleated"
    PETAL = "petal"
    MOIRE = "moire"
    LOBED = "lobed"
    WAVE_INTERFERENCE = "wave_interference"
    SPIRAL_GROOVES = "spiral_grooves"
    GEOMETRIC_POLY = "geometric_poly"
    DOUBLE_WALL = "double_wall"
    # distance field
    VORONOI = "voronoi"
    VORONOI_RIDGES = "voronoi_ridges"
    VORONOI_CRACKLE = "voronoi_crackle"
    VORONOI_BUBBLES = "voronoi_bubbles"
    CRATERS = "craters"
    # hash noise
    PERLIN_NOISE = "perlin_noise"
    ORGANIC_CELL = "organic_cell"
    CORAL = "coral"
    VEINS = "veins"
    HAMMERED = "hammered"
    BARK = "bark"
    STUCCO = "stucco"
    LAVA = "lava"
    # tiling / indexed
    ORIGAMI = "origami"
    DIAMOND_PLATE = "diamond_plate"
    BRICKS = "bricks"
    GEOMETRIC_TILES = "geometric_tiles"
    CELLULAR_AUTOMATA = "cellular_automata"
    CHECKERBOARD = "checkerboard"
    HEX_TILES = "hex_tiles"
    STUDS = "studs"
    SLOTTED = "slotted"
    LOUVERS = "louvers"
    STAIRCASE = "staircase"
    # wireframe
    LATTICE = "lattice"
    LATTICE_VERTICAL = "lattice_vertical"
    LATTICE_TRIANGULAR = "lattice_triangular"
    LATTICE_HONEYCOMB = "lattice_honeycomb"
    LATTICE_STAR = "lattice_star"
    LATTICE_WEAVE = "lattice_weave"

    @property
    def is_lattice(self) -> bool:
        return self in LATTICE_PATTERNS


LATTICE_PATTERNS = frozenset({
    PatternFamily.LATTICE,
    PatternFamily.LATTICE_VERTICAL,
    PatternFamily.LATTICE_TRIANGULAR,
    PatternFamily.LATTICE_HONEYCOMB,
    PatternFamily.LATTICE_STAR,
    PatternFamily.LATTICE_WEAVE,
})


class FitterKind(str, Enum):
    NONE = "none"
    SPIDER = "spider"
    UNO = "uno"
    CUSTOM = "custom"


class OutlineShape(str, Enum):
    RECT = "rect"
    CIRCLE = "circle"
    HEART = "heart"
    BADGE = "badge"
    CURVED = "curved"
    CYLINDRICAL = "cylindrical"


class MappingMode(str, Enum):
    LINEAR = "linear"
    EXPONENTIAL = "exponential"
    LOGARITHMIC = "logarithmic"


def _require(ok: bool, parameter: str, message: str) -> None:
    if not ok:
        raise InvalidParameter(parameter, message)


def _finite(value: float) -> bool:
    return isinstance(value, numbers.Real) and math.isfinite(value)


def _count(value, minimum: int) -> bool:
    return _finite(value) and int(value) >= minimum


# ──────────────────────────────────────────────────────────────────────────────
# Fitter
# ──────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class FitterSpec:
    kind: FitterKind = FitterKind.NONE
    inner_diameter: float = 2.9         # socket ring bore (E27 ≈ 2.9 cm)
    outer_diameter: float = 3.6
    ring_height: float = 0.4
    mount_height_from_base: float = 13.0
    spoke_thickness: float = 0.2        # vertical extent
    spoke_width: float = 0.14           # tangential extent
    spoke_count: int = 4                # only used by FitterKind.CUSTOM
    safety_fraction: float = config.FITTER_SAFETY_FRACTION
    fusion_fraction: float = config.FITTER_FUSION_FRACTION

    def __post_init__(self):
        object.__setattr__(self, "kind", FitterKind(self.kind))

    @property
    def enabled(self) -> bool:
        return self.kind is not FitterKind.NONE

    @property
    def spokes(self) -> int:
        if self.kind is FitterKind.SPIDER:
            return 3
        if self.kind is FitterKind.UNO:
            return 4
        if self.kind is FitterKind.CUSTOM:
            return int(self.spoke_count)
        return 0

    def validate(self, shell_height: float) -> None:
        if not self.enabled:
            return
        _require(_finite(self.inner_diameter) and self.inner_diameter > 0,
                 "fitter.inner_diameter", "must be > 0")
        _require(_finite(self.outer_diameter) and self.outer_diameter > self.inner_diameter,
                 "fitter.outer_diameter", "must be > fitter.inner_diameter")
        _require(_finite(self.ring_height) and self.ring_height > 0,
                 "fitter.ring_height", "must be > 0")
        half = self.ring_height / 2.0
        _require(_finite(self.mount_height_from_base)
                 and half <= self.mount_height_from_base <= shell_height - half,
                 "fitter.mount_height_from_base",
                 f"must keep the ring inside the shell (between {half:g} and {shell_height - half:g})")
        _require(_finite(self.spoke_thickness) and self.spoke_thickness > 0,
                 "fitter.spoke_thickness", "must be > 0")
        _require(_finite(self.spoke_width) and self.spoke_width > 0,
                 "fitter.spoke_width", "must be > 0")
        if self.kind is FitterKind.CUSTOM:
            _require(_count(self.spoke_count, 1), "fitter.spoke_count", "must be >= 1")
        _require(0.0 < self.safety_fraction < 1.0,
                 "fitter.safety_fraction", "must be within (0, 1)")
        _require(0.0 <= self.fusion_fraction < 1.0,
                 "fitter.fusion_fraction", "must be within [0, 1)")


# ──────────────────────────────────────────────────────────────────────────────
# Shell
# ──────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ShellParams:
    pattern: PatternFamily = PatternFamily.RIBBED_DRUM
    silhouette: SilhouetteFamily = SilhouetteFamily.STRAIGHT
    height: float = config.DEFAULT_HEIGHT
    top_radius: float = config.DEFAULT_TOP_RADIUS
    bottom_radius: float = config.DEFAULT_BOTTOM_RADIUS
    wall_thickness: float = config.DEFAULT_WALL_THICKNESS
    angular_resolution: int = config.DEFAULT_ANGULAR_RESOLUTION
    height_steps: int = config.DEFAULT_HEIGHT_STEPS
    seed: int = config.DEFAULT_SEED

    # structure
    internal_ribs: int = 0
    rib_thickness: float = 0.2
    internal_rib_depth: float = 0.5
    rim_height: float = 0.0
    rim_width: float = 0.3
    fitter: FitterSpec = field(default_factory=FitterSpec)

    # family-specific
    rib_count: int = 20
    rib_depth: float = 0.5
    twist_angle: float = 360.0          # degrees over the full height
    cell_count: int = 12
    amplitude: float = 0.5
    frequency: float = 8.0
    sides: int = 6
    fold_count: int = 12
    fold_depth: float = 0.8
    noise_scale: float = 1.5
    noise_strength: float = 0.4
    slot_count: int = 16
    slot_width: float = 0.3             # fin width as a fraction of the fin pitch
    gap_distance: float = 0.5
    tile_rows: int = 10
    tile_cols: int = 24
    tile_depth: float = 0.3
    grid_density: int = config.DEFAULT_LATTICE_SEGMENTS
    lattice_layers: int = config.DEFAULT_LATTICE_LAYERS
    strut_radius: Optional[float] = None

    def __post_init__(self):
        object.__setattr__(self, "pattern", PatternFamily(self.pattern))
        object.__setattr__(self, "silhouette", SilhouetteFamily(self.silhouette))

    @property
    def effective_strut_radius(self) -> float:
        if self.strut_radius is None:
            return self.wall_thickness / 2.0
        return float(self.strut_radius)

    def validate(self) -> None:
        """Raise InvalidParameter for the first out-of-range field."""
        _require(_finite(self.height) and self.height > 0, "height", "must be > 0")
        _require(_finite(self.top_radius) and self.top_radius > 0, "top_radius", "must be > 0")
        _require(_finite(self.bottom_radius) and self.bottom_radius > 0,
                 "bottom_radius", "must be > 0")
        _require(_finite(self.wall_thickness) and self.wall_thickness > 0,
                 "wall_thickness", "must be > 0")
        _require(self.wall_thickness < min(self.top_radius, self.bottom_radius),
                 "wall_thickness", "must be < min(top_radius, bottom_radius)")
        _require(_count(self.angular_resolution, config.MIN_ANGULAR_RESOLUTION),
                 "angular_resolution", f"must be >= {config.MIN_ANGULAR_RESOLUTION}")
        _require(_count(self.height_steps, 1), "height_steps", "must be >= 1")

        _require(self.internal_ribs >= 0, "internal_ribs", "must be >= 0")
        if self.internal_ribs > 0:
            _require(_finite(self.rib_thickness) and self.rib_thickness > 0,
                     "rib_thickness", "must be > 0")
            _require(_finite(self.internal_rib_depth) and self.internal_rib_depth > 0,
                     "internal_rib_depth", "must be > 0")
        _require(_finite(self.rim_height) and self.rim_height >= 0, "rim_height", "must be >= 0")
        if self.rim_height > 0:
            _require(self.rim_height <= self.height, "rim_height", "must be <= height")
            _require(_finite(self.rim_width) and self.rim_width > 0, "rim_width", "must be > 0")

        for name in ("rib_count", "cell_count", "fold_count", "slot_count",
                     "tile_rows", "tile_cols", "lattice_layers"):
            _require(_count(getattr(self, name), 1), name, "must be >= 1")
        _require(_count(self.sides, 3), "sides", "must be >= 3")
        _require(_count(self.grid_density, 3), "grid_density", "must be >= 3")
        for name in ("rib_depth", "amplitude", "fold_depth", "noise_strength",
                     "tile_depth", "gap_distance", "frequency", "twist_angle"):
            _require(_finite(getattr(self, name)), name, "must be finite")
        _require(_finite(self.noise_scale) and self.noise_scale > 0, "noise_scale", "must be > 0")
        _require(0.0 < self.slot_width < 1.0, "slot_width", "must be within (0, 1)")
        if self.pattern is PatternFamily.DOUBLE_WALL:
            _require(self.gap_distance > 0, "gap_distance", "must be > 0 for double_wall")
        if self.strut_radius is not None:
            _require(_finite(self.strut_radius) and self.strut_radius > 0,
                     "strut_radius", "must be > 0")
        self.fitter.validate(self.height)


# ──────────────────────────────────────────────────────────────────────────────
# Lithophane
# ──────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class HoleSpec:
    enabled: bool = False
    size: float = config.LITHO_HOLE_SIZE         # hole radius, percent of the panel
    offset: float = config.LITHO_HOLE_OFFSET     # centre above the panel centre

    @property
    def radius(self) -> float:
        return self.size / 100.0


@dataclass(frozen=True)
class BorderSpec:
    enabled: bool = False
    width: float = config.LITHO_BORDER_WIDTH     # fraction of the panel
    height: float = config.LITHO_BORDER_HEIGHT


@dataclass(frozen=True)
class LithophaneParams:
    outline: OutlineShape = OutlineShape.RECT
    width: float = config.LITHO_WIDTH
    height: float = config.LITHO_HEIGHT
    min_relief: float = config.LITHO_MIN_RELIEF
    max_relief: float = config.LITHO_MAX_RELIEF
    base_thickness: float = config.LITHO_BASE_THICKNESS
    resolution: int = config.LITHO_RESOLUTION
    invert: bool = False
    brightness: float = 0.0
    contrast: float = 0.0
    gamma: float = 1.0
    mapping: MappingMode = MappingMode.LINEAR
    smoothing: int = 0
    curve_radius: float = config.LITHO_CURVE_RADIUS
    hole: HoleSpec = field(default_factory=HoleSpec)
    border: BorderSpec = field(default_factory=BorderSpec)

    def __post_init__(self):
        object.__setattr__(self, "outline", OutlineShape(self.outline))
        object.__setattr__(self, "mapping", MappingMode(self.mapping))

    def validate(self) -> None:
        _require(_finite(self.width) and self.width > 0, "width", "must be > 0")
        _require(_finite(self.height) and self.height > 0, "height", "must be > 0")
        _require(_finite(self.min_relief) and self.min_relief >= 0, "min_relief", "must be >= 0")
        _require(_finite(self.max_relief) and self.min_relief < self.max_relief,
                 "max_relief", "must be > min_relief")
        _require(_finite(self.base_thickness) and self.base_thickness >= 0,
                 "base_thickness", "must be >= 0")
        _require(_count(self.resolution, 2), "resolution", "must be >= 2")
        _require(-255.0 <= self.brightness <= 255.0, "brightness", "must be within [-255, 255]")
        _require(-255.0 <= self.contrast <= 255.0, "contrast", "must be within [-255, 255]")
        _require(_finite(self.gamma) and self.gamma > 0, "gamma", "must be > 0")
        _require(_count(self.smoothing, 0), "smoothing", "must be >= 0")
        if self.outline is OutlineShape.CURVED:
            _require(_finite(self.curve_radius) and self.curve_radius > 0,
                     "curve_radius", "must be > 0")
        if self.hole.enabled:
            _require(0.0 < self.hole.size < 50.0, "hole.size", "must be within (0, 50)")
            _require(-0.5 < self.hole.offset < 0.5, "hole.offset", "must be within (-0.5, 0.5)")
        if self.border.enabled:
            _require(0.0 < self.border.width < 0.5, "border.width", "must be within (0, 0.5)")
            _require(_finite(self.border.height) and self.border.height > 0,
                     "border.height", "must be > 0")
