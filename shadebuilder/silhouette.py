"""
Silhouette evaluator.

A silhouette is the side-view outline of the shade: it maps a height
fraction t ∈ [0, 1] (0 = base, 1 = top rim) to a radius.  Every family is
a linear top/bottom interpolation multiplied by a closed-form shape factor.

All factor functions take numpy arrays and broadcast.
"""
import logging
import math
from typing import Callable, Dict

import numpy as np

from . import config
from .errors import OutOfRange
from .params import ShellParams, SilhouetteFamily

logger = logging.getLogger(__name__)

π = math.pi


def _gauss(t, centre, width):
    return np.exp(-((t - centre) / width) ** 2)


# ──────────────────────────────────────────────────────────────────────────────
# Shape factors  (t → multiplier, 1.0 = plain linear taper)
# ──────────────────────────────────────────────────────────────────────────────

SHAPE_FACTORS: Dict[SilhouetteFamily, Callable[[np.ndarray], np.ndarray]] = {
    SilhouetteFamily.STRAIGHT:   lambda t: np.ones_like(t),
    SilhouetteFamily.HOURGLASS:  lambda t: 1.0 - np.sin(π * t) ** 2 * 0.3,
    SilhouetteFamily.BELL:       lambda t: 1.0 + (1.0 - t) ** 2 * 0.4,
    SilhouetteFamily.CONVEX:     lambda t: 1.0 + np.sin(π * t) * 0.2,
    SilhouetteFamily.CONCAVE:    lambda t: 1.0 - np.sin(π * t) * 0.2,
    SilhouetteFamily.ONION:      lambda t: 1.0 + 0.6 * _gauss(t, 0.35, 0.22) - 0.35 * t ** 3,
    SilhouetteFamily.TRUMPET:    lambda t: 1.0 + 0.8 * t ** 3,
    SilhouetteFamily.STEPPED:    lambda t: 1.0 - 0.3 * np.minimum(np.floor(t * 4.0), 3.0) / 3.0,
    SilhouetteFamily.TULIP:      lambda t: 1.0 + 0.25 * np.sin(π * t) + 0.15 * t ** 2,
    SilhouetteFamily.VASE:       lambda t: 1.0 + 0.25 * np.sin(1.5 * π * t),
    SilhouetteFamily.BARREL:     lambda t: 1.0 + 0.15 * (1.0 - (2.0 * t - 1.0) ** 2),
    SilhouetteFamily.DOME:       lambda t: np.sqrt(np.maximum(1.0 - 0.9 * t ** 2, 0.0)),
    SilhouetteFamily.TEARDROP:   lambda t: 0.3 + 0.9 * np.sin(π * t ** 0.7),
    SilhouetteFamily.GOURD:      lambda t: 0.8 + 0.35 * np.abs(np.sin(2.0 * π * t + 0.4)),
    SilhouetteFamily.LANTERN:    lambda t: 1.0 + 0.2 * np.abs(np.sin(3.0 * π * t)),
    SilhouetteFamily.PAGODA:     lambda t: 1.0 + 0.25 * (1.0 - np.mod(3.0 * t, 1.0)),
    SilhouetteFamily.WAVY:       lambda t: 1.0 + 0.1 * np.sin(6.0 * π * t),
    SilhouetteFamily.DIABOLO:    lambda t: 1.0 - 0.45 * np.sin(π * t),
    SilhouetteFamily.EGG:        lambda t: 0.55 + 0.5 * np.sin(π * (0.15 + 0.85 * t)),
    SilhouetteFamily.URN:        lambda t: 1.0 + 0.3 * np.sin(π * t) ** 2 - 0.15 * t,
    SilhouetteFamily.CHALICE:    lambda t: 0.6 + 0.6 * t ** 2,
    SilhouetteFamily.PINCHED:    lambda t: 1.0 - 0.35 * _gauss(t, 0.5, 0.08),
    SilhouetteFamily.FLARED:     lambda t: 1.0 + 0.5 * t ** 2,
    SilhouetteFamily.SKIRT:      lambda t: 1.0 + 0.6 * (1.0 - t) ** 4,
    SilhouetteFamily.CAPSULE:    lambda t: np.sqrt(np.maximum(1.0 - (2.0 * t - 1.0) ** 8, 0.0)),
    SilhouetteFamily.BULB:       lambda t: 1.0 + 0.5 * _gauss(t, 0.3, 0.2),
    SilhouetteFamily.SPINDLE:    lambda t: 0.4 + 0.8 * np.sin(π * t),
    SilhouetteFamily.TWIN_BULGE: lambda t: 1.0 + 0.25 * np.abs(np.sin(2.0 * π * t)),
    SilhouetteFamily.CINCHED:    lambda t: 1.0 - 0.25 * _gauss(t, 0.3, 0.1) - 0.25 * _gauss(t, 0.7, 0.1),
    SilhouetteFamily.OGEE:       lambda t: 1.0 + 0.2 * np.sin(2.0 * π * t),
}


def _check_fraction(t: np.ndarray) -> None:
    if t.size and (not np.all(np.isfinite(t)) or t.min() < 0.0 or t.max() > 1.0):
        raise OutOfRange("height_fraction", "must lie within [0, 1]")


def silhouette_radius(t, family: SilhouetteFamily, base_top: float, base_bottom: float) -> np.ndarray:
    """
    Vectorized silhouette radius, clamped to ``config.OUTER_RADIUS_FLOOR``.

    Parameters
    ----------
    t : array-like   height fractions in [0, 1]
    family : SilhouetteFamily
    base_top, base_bottom : radii of the plain linear taper at t=1 / t=0
    """
    t = np.asarray(t, dtype=np.float64)
    _check_fraction(t)
    linear = base_bottom + (base_top - base_bottom) * t
    r = linear * SHAPE_FACTORS[SilhouetteFamily(family)](t)
    return np.maximum(r, config.OUTER_RADIUS_FLOOR)


def radius_at(height_fraction: float, family: SilhouetteFamily,
              base_top: float, base_bottom: float) -> float:
    """Radius of ``family`` at one height fraction.  Raises OutOfRange outside [0, 1]."""
    return float(silhouette_radius(height_fraction, family, base_top, base_bottom))


def profile_radius(t, params: ShellParams) -> np.ndarray:
    """Silhouette radius for a shell's own family and radii."""
    return silhouette_radius(t, params.silhouette, params.top_radius, params.bottom_radius)
