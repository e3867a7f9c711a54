"""
shadebuilder: procedural lampshade and lithophane mesh kernel.
"""
__version__ = "0.1.0"

from .errors import (CodecError, InvalidParameter, MeshAssemblyFailure, OutOfRange,
                     ShadeBuilderError, UnsupportedFamilyCombination)
from .mesh import Mesh
from .params import (BorderSpec, FitterKind, FitterSpec, HoleSpec, LithophaneParams,
                     MappingMode, OutlineShape, PatternFamily, ShellParams, SilhouetteFamily)
from .pipeline import generate_lampshade, generate_lithophane
from .silhouette import radius_at
from .displacement import displacement_at
