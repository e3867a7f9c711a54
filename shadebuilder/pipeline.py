"""
Generation entry points.

    generate_lampshade(ShellParams)            → Mesh
    generate_lithophane(grid, LithophaneParams) → Mesh

Both are pure: parameters in, a fresh Mesh out, nothing kept between calls.
"""
import logging

from . import config
from .assembler import assemble
from .errors import UnsupportedFamilyCombination
from .fitter import build_fitter
from .lattice import build_lattice
from .lithophane import generate_lithophane
from .mesh import Mesh
from .params import ShellParams
from .revolution import build_internal_ribs, build_rim, shell_parts

logger = logging.getLogger(__name__)

__all__ = ["check_combination", "generate_lampshade", "generate_lithophane"]


def check_combination(params: ShellParams) -> None:
    """Wireframe shells have no wall for ribs, rims or a fitter to fuse into."""
    if not params.pattern.is_lattice:
        return
    family = params.pattern.value
    if params.fitter.enabled:
        raise UnsupportedFamilyCombination(
            "fitter.kind", f"{params.fitter.kind.value} fitter needs a solid wall; {family} is a wireframe pattern")
    if params.internal_ribs > 0:
        raise UnsupportedFamilyCombination(
            "internal_ribs", f"internal ribs need a solid wall; {family} is a wireframe pattern")
    if params.rim_height > 0:
        raise UnsupportedFamilyCombination(
            "rim_height", f"a rim needs a solid wall; {family} is a wireframe pattern")


def generate_lampshade(params: ShellParams, weld_epsilon: float = config.WELD_EPSILON) -> Mesh:
    """
    Validate → build the shell (or strut frame) → ribs / rim / fitter →
    weld and finalize.  Raises before any geometry is built if a
    parameter is out of range or features cannot be combined.
    """
    params.validate()
    check_combination(params)

    if params.pattern.is_lattice:
        parts = [build_lattice(params)]
    else:
        parts = shell_parts(params) + [
            build_internal_ribs(params),
            build_rim(params),
            build_fitter(params),
        ]
    return assemble(parts, weld_epsilon=weld_epsilon)
