"""
config.py
=========
Global defaults for the shade builder.  Edit the CONFIG block below to
change what a bare ``ShellParams()`` / ``LithophaneParams()`` produces and
how the kernel clamps degenerate geometry.

All lengths are in the same (arbitrary) units as the parameter records;
the product works in centimetres for shades and millimetres for
lithophanes.
"""

# ──────────────────────────────────────────────────────────────────────────────
# CONFIG  ← edit these values
# ──────────────────────────────────────────────────────────────────────────────

# ── Radius floors ────────────────────────────────────────────────────────────
# Silhouettes and displacement fields may drive a ring to zero or below.
# Rings are clamped to these floors instead of aborting the build.
OUTER_RADIUS_FLOOR = 0.1
INNER_RADIUS_FLOOR = 0.05
# Inner face of ribs and rim; stays below INNER_RADIUS_FLOOR so those parts
# keep a positive depth even where the wall is on the floor.
ATTACHMENT_RADIUS_FLOOR = 0.025

# ── Shell sampling ───────────────────────────────────────────────────────────
# Height steps used by the revolution builder (rows = steps + 1).
DEFAULT_HEIGHT_STEPS = 60
# Smallest angular resolution accepted for any shell.
MIN_ANGULAR_RESOLUTION = 12

# ── Shell defaults ───────────────────────────────────────────────────────────
DEFAULT_HEIGHT = 15.0
DEFAULT_TOP_RADIUS = 5.0
DEFAULT_BOTTOM_RADIUS = 8.0
DEFAULT_WALL_THICKNESS = 0.2
DEFAULT_ANGULAR_RESOLUTION = 128
DEFAULT_SEED = 42

# ── Lattice / strut ──────────────────────────────────────────────────────────
# Sides of the prism used for every strut (6 = hexagonal struts).
STRUT_SIDES = 6
# Struts are lengthened by this fraction of their radius at both ends so
# neighbouring struts overlap at the anchors.
STRUT_END_OVERLAP = 0.5
DEFAULT_LATTICE_SEGMENTS = 12
DEFAULT_LATTICE_LAYERS = 8

# ── Fitter fusion ────────────────────────────────────────────────────────────
# Spoke / rib ends stay this fraction of the wall thickness inside the
# outer surface.
FITTER_SAFETY_FRACTION = 0.25
# Spoke / rib ends are driven this fraction of the wall thickness into the
# wall, measured from the inner surface.
FITTER_FUSION_FRACTION = 0.25

# ── Assembly ─────────────────────────────────────────────────────────────────
# Vertices closer than this are snapped together by the assembler.
WELD_EPSILON = 1e-4

# ── Lithophane ───────────────────────────────────────────────────────────────
LITHO_WIDTH = 100.0           # mm
LITHO_HEIGHT = 80.0           # mm
LITHO_MIN_RELIEF = 0.8        # mm, thinnest (brightest) area
LITHO_MAX_RELIEF = 3.2        # mm, thickest (darkest) area
LITHO_BASE_THICKNESS = 0.6    # mm, front surface never drops below this
LITHO_RESOLUTION = 120        # samples along the panel height
LITHO_CURVE_RADIUS = 80.0     # mm, arc radius for the curved outline
LITHO_BORDER_HEIGHT = 3.5     # mm
LITHO_BORDER_WIDTH = 0.05     # fraction of the panel
LITHO_HOLE_SIZE = 5.0         # percent of the panel (hole radius)
LITHO_HOLE_OFFSET = 0.4       # hole centre above panel centre, fraction

# Luma weights used to turn RGB into a single intensity.
LUMA_WEIGHTS = (0.299, 0.587, 0.114)

# ── Image ingress ────────────────────────────────────────────────────────────
# Images larger than this (in either direction) are downscaled on load.
IMAGE_MAX_DIMENSION = 1024

# ──────────────────────────────────────────────────────────────────────────────
