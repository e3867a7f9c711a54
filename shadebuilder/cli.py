"""
Command line front end.

    shadebuilder lampshade --pattern voronoi --silhouette bell -o shade
    shadebuilder lithophane photo.jpg --outline heart --hole -o heart
    shadebuilder dna <code>
"""
import argparse
import logging
import sys
from dataclasses import asdict, replace
from typing import Optional, Sequence

from . import __version__, config, dna
from .assembler import bounds, euler_characteristic, is_watertight
from .errors import ShadeBuilderError
from .export import FORMATS, export_mesh
from .imaging import load_image
from .logging_config import setup_logging
from .params import (BorderSpec, FitterKind, FitterSpec, HoleSpec, LithophaneParams,
                     MappingMode, OutlineShape, PatternFamily, ShellParams, SilhouetteFamily)
from .pipeline import generate_lampshade, generate_lithophane

logger = logging.getLogger(__name__)

# CLI flag dest → ShellParams field (flags default to None = keep base value)
SHELL_FLAGS = {
    "pattern": "pattern", "silhouette": "silhouette", "height": "height",
    "top_radius": "top_radius", "bottom_radius": "bottom_radius", "wall": "wall_thickness",
    "segments": "angular_resolution", "height_steps": "height_steps", "seed": "seed",
    "internal_ribs": "internal_ribs", "rib_thickness": "rib_thickness",
    "internal_rib_depth": "internal_rib_depth", "rim_height": "rim_height", "rim_width": "rim_width",
    "rib_count": "rib_count", "rib_depth": "rib_depth", "twist_angle": "twist_angle",
    "cell_count": "cell_count", "amplitude": "amplitude", "frequency": "frequency",
    "sides": "sides", "fold_count": "fold_count", "fold_depth": "fold_depth",
    "noise_scale": "noise_scale", "noise_strength": "noise_strength",
    "slot_count": "slot_count", "slot_width": "slot_width", "gap": "gap_distance",
    "tile_rows": "tile_rows", "tile_cols": "tile_cols", "tile_depth": "tile_depth",
    "grid_density": "grid_density", "layers": "lattice_layers", "strut_radius": "strut_radius",
}
FITTER_FLAGS = {
    "fitter": "kind", "fitter_inner": "inner_diameter", "fitter_outer": "outer_diameter",
    "fitter_height": "mount_height_from_base", "ring_height": "ring_height",
    "spokes": "spoke_count", "spoke_width": "spoke_width", "spoke_thickness": "spoke_thickness",
}


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("-o", "--output", default=None, help="Output file stem (no export when omitted).")
    p.add_argument("--format", choices=FORMATS, default="stl", help="Export format.")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    p.add_argument("--log-file", default=None, help="Also write the log to this file.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="shadebuilder",
                                     description="Procedural lampshade and lithophane mesh generator.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    # ── lampshade ─────────────────────────────────────────────────────────
    ls = sub.add_parser("lampshade", help="Generate a lampshade shell.")
    ls.add_argument("--dna", default=None, help="Start from a design code.")
    ls.add_argument("--print-dna", action="store_true", help="Print the design code of the result.")
    ls.add_argument("--pattern", choices=[f.value for f in PatternFamily], default=None)
    ls.add_argument("--silhouette", choices=[f.value for f in SilhouetteFamily], default=None)
    for flag, kind in (("height", float), ("top-radius", float), ("bottom-radius", float),
                       ("wall", float), ("segments", int), ("height-steps", int), ("seed", int),
                       ("internal-ribs", int), ("rib-thickness", float), ("internal-rib-depth", float),
                       ("rim-height", float), ("rim-width", float),
                       ("rib-count", int), ("rib-depth", float), ("twist-angle", float),
                       ("cell-count", int), ("amplitude", float), ("frequency", float),
                       ("sides", int), ("fold-count", int), ("fold-depth", float),
                       ("noise-scale", float), ("noise-strength", float),
                       ("slot-count", int), ("slot-width", float), ("gap", float),
                       ("tile-rows", int), ("tile-cols", int), ("tile-depth", float),
                       ("grid-density", int), ("layers", int), ("strut-radius", float),
                       ("fitter-inner", float), ("fitter-outer", float), ("fitter-height", float),
                       ("ring-height", float), ("spokes", int), ("spoke-width", float),
                       ("spoke-thickness", float)):
        ls.add_argument(f"--{flag}", type=kind, default=None)
    ls.add_argument("--fitter", choices=[k.value for k in FitterKind], default=None)
    _add_common(ls)

    # ── lithophane ────────────────────────────────────────────────────────
    li = sub.add_parser("lithophane", help="Generate a lithophane panel from an image.")
    li.add_argument("image", help="Input raster image.")
    li.add_argument("--outline", choices=[o.value for o in OutlineShape], default=OutlineShape.RECT.value)
    li.add_argument("--width", type=float, default=config.LITHO_WIDTH)
    li.add_argument("--height", type=float, default=config.LITHO_HEIGHT)
    li.add_argument("--min-relief", type=float, default=config.LITHO_MIN_RELIEF)
    li.add_argument("--max-relief", type=float, default=config.LITHO_MAX_RELIEF)
    li.add_argument("--base", type=float, default=config.LITHO_BASE_THICKNESS)
    li.add_argument("--resolution", type=int, default=config.LITHO_RESOLUTION)
    li.add_argument("--invert", action="store_true")
    li.add_argument("--brightness", type=float, default=0.0)
    li.add_argument("--contrast", type=float, default=0.0)
    li.add_argument("--gamma", type=float, default=1.0)
    li.add_argument("--mapping", choices=[m.value for m in MappingMode], default=MappingMode.LINEAR.value)
    li.add_argument("--smoothing", type=int, default=0)
    li.add_argument("--curve-radius", type=float, default=config.LITHO_CURVE_RADIUS)
    li.add_argument("--hole", action="store_true")
    li.add_argument("--hole-size", type=float, default=config.LITHO_HOLE_SIZE)
    li.add_argument("--hole-offset", type=float, default=config.LITHO_HOLE_OFFSET)
    li.add_argument("--border", action="store_true")
    li.add_argument("--border-width", type=float, default=config.LITHO_BORDER_WIDTH)
    li.add_argument("--border-height", type=float, default=config.LITHO_BORDER_HEIGHT)
    li.add_argument("--crop", type=int, nargs=4, metavar=("LEFT", "UPPER", "RIGHT", "LOWER"), default=None)
    li.add_argument("--rotate", type=float, default=0.0)
    li.add_argument("--max-dimension", type=int, default=config.IMAGE_MAX_DIMENSION)
    _add_common(li)

    # ── dna ───────────────────────────────────────────────────────────────
    dn = sub.add_parser("dna", help="Decode a design code and print its parameters.")
    dn.add_argument("code")
    return parser


def shell_params_from_args(args: argparse.Namespace) -> ShellParams:
    base = dna.decode(args.dna) if args.dna else ShellParams()
    shell = {field: getattr(args, dest) for dest, field in SHELL_FLAGS.items()
             if getattr(args, dest) is not None}
    fitter = {field: getattr(args, dest) for dest, field in FITTER_FLAGS.items()
              if getattr(args, dest) is not None}
    if fitter:
        shell["fitter"] = replace(base.fitter, **fitter)
    return replace(base, **shell)


def lithophane_params_from_args(args: argparse.Namespace) -> LithophaneParams:
    return LithophaneParams(
        outline=args.outline, width=args.width, height=args.height,
        min_relief=args.min_relief, max_relief=args.max_relief, base_thickness=args.base,
        resolution=args.resolution, invert=args.invert,
        brightness=args.brightness, contrast=args.contrast, gamma=args.gamma,
        mapping=args.mapping, smoothing=args.smoothing, curve_radius=args.curve_radius,
        hole=HoleSpec(enabled=args.hole, size=args.hole_size, offset=args.hole_offset),
        border=BorderSpec(enabled=args.border, width=args.border_width, height=args.border_height),
    )


def _banner(title: str, params) -> None:
    print("=" * 60)
    print(f"  shadebuilder {title}")
    print("=" * 60)
    for key, value in asdict(params).items():
        if isinstance(value, dict):
            value = "  ".join(f"{k}={getattr(v, 'value', v)}" for k, v in value.items())
        print(f"  {key:<20}: {getattr(value, 'value', value)}")
    print("=" * 60)


def _summary(mesh) -> None:
    lo, hi = bounds(mesh)
    print(f"  vertices        : {mesh.vertex_count:,}")
    print(f"  triangles       : {mesh.face_count:,}")
    print(f"  watertight      : {is_watertight(mesh)}  (euler={euler_characteristic(mesh)})")
    print(f"  bounds          : ({lo[0]:.2f}, {lo[1]:.2f}, {lo[2]:.2f}) … ({hi[0]:.2f}, {hi[1]:.2f}, {hi[2]:.2f})")


def _run(args: argparse.Namespace) -> int:
    if args.command == "dna":
        params = dna.decode(args.code)
        _banner("design code", params)
        return 0

    if args.command == "lampshade":
        params = shell_params_from_args(args)
        _banner("lampshade", params)
        mesh = generate_lampshade(params)
        if args.print_dna:
            print(f"  dna             : {dna.encode(params)}")
    else:
        params = lithophane_params_from_args(args)
        _banner("lithophane", params)
        grid = load_image(args.image, crop=args.crop, rotate=args.rotate,
                          max_dimension=args.max_dimension)
        mesh = generate_lithophane(grid, params)

    _summary(mesh)
    if args.output:
        path = export_mesh(mesh, args.output, args.format)
        print(f"  written         : {path}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    verbose = getattr(args, "verbose", False)
    setup_logging(logging.DEBUG if verbose else logging.INFO, getattr(args, "log_file", None))
    try:
        return _run(args)
    except ShadeBuilderError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
