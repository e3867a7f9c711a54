"""
Design codes ("lamp DNA").

A design code is a short, URL-safe string carrying the most salient
ShellParams fields:

    b"LD"  version(1)  27 fixed-width fields, little endian

Floats are stored as scaled integers, so they round-trip to the precision
given by their scale (height to 0.01, wall thickness to 0.001, ...).
Fields that are not packed come back at their defaults.

Older codes were plain base64 of a JSON object with camelCase keys; they
are still accepted by ``decode``.
"""
import base64
import binascii
import json
import logging
import struct
from dataclasses import replace
from typing import Any, Dict

from .errors import CodecError
from .params import FitterKind, FitterSpec, PatternFamily, ShellParams, SilhouetteFamily

logger = logging.getLogger(__name__)

MAGIC = b"LD"
VERSION = 1

_PATTERNS = list(PatternFamily)
_SILHOUETTES = list(SilhouetteFamily)
_FITTERS = list(FitterKind)

# (attribute, struct code, scale); "fitter.x" reads FitterSpec.x
FIELDS = (
    ("pattern",                        "B", None),
    ("silhouette",                     "B", None),
    ("height",                         "H", 100),
    ("top_radius",                     "H", 100),
    ("bottom_radius",                  "H", 100),
    ("wall_thickness",                 "H", 1000),
    ("angular_resolution",             "H", 1),
    ("height_steps",                   "H", 1),
    ("seed",                           "I", 1),
    ("internal_ribs",                  "B", 1),
    ("rib_thickness",                  "H", 1000),
    ("rim_height",                     "H", 100),
    ("fitter.kind",                    "B", None),
    ("fitter.inner_diameter",          "H", 100),
    ("fitter.mount_height_from_base",  "H", 100),
    ("rib_count",                      "H", 1),
    ("rib_depth",                      "h", 1000),
    ("twist_angle",                    "h", 10),
    ("cell_count",                     "H", 1),
    ("amplitude",                      "h", 1000),
    ("frequency",                      "H", 100),
    ("sides",                          "B", 1),
    ("grid_density",                   "H", 1),
    ("fold_count",                     "H", 1),
    ("fold_depth",                     "h", 1000),
    ("noise_scale",                    "H", 1000),
    ("noise_strength",                 "h", 1000),
)

_BODY = struct.Struct("<" + "".join(code for _, code, _ in FIELDS))
_HEADER = struct.Struct("<2sB")
PACKED_SIZE = _HEADER.size + _BODY.size

_ENUMS = {"pattern": _PATTERNS, "silhouette": _SILHOUETTES, "fitter.kind": _FITTERS}


def _get(params: ShellParams, name: str):
    if name.startswith("fitter."):
        return getattr(params.fitter, name.split(".", 1)[1])
    return getattr(params, name)


def encode(params: ShellParams) -> str:
    """Pack ``params`` into a URL-safe design code (no padding)."""
    values = []
    for name, code, scale in FIELDS:
        value = _get(params, name)
        if scale is None:
            values.append(_ENUMS[name].index(value))
        else:
            values.append(int(round(value * scale)))
    try:
        body = _BODY.pack(*values)
    except struct.error as e:
        raise CodecError(f"[dna] A field does not fit the compact format: {e}") from e
    raw = _HEADER.pack(MAGIC, VERSION) + body
    code = base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")
    logger.debug(f"[dna] Encoded {len(raw)} bytes → {code}")
    return code


def _b64decode(text: str, urlsafe: bool) -> bytes:
    padded = text + "=" * (-len(text) % 4)
    try:
        if urlsafe:
            return base64.urlsafe_b64decode(padded.encode("ascii"))
        return base64.b64decode(padded.encode("ascii"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise CodecError(f"[dna] Not a base64 design code: {e}") from e


def _unpack(raw: bytes) -> ShellParams:
    if len(raw) != PACKED_SIZE:
        raise CodecError(f"[dna] Design code is {len(raw)} bytes, expected {PACKED_SIZE}")
    _, version = _HEADER.unpack_from(raw)
    if version != VERSION:
        raise CodecError(f"[dna] Unsupported design code version {version}")

    shell: Dict[str, Any] = {}
    fitter: Dict[str, Any] = {}
    for (name, _, scale), value in zip(FIELDS, _BODY.unpack_from(raw, _HEADER.size)):
        if scale is None:
            table = _ENUMS[name]
            if value >= len(table):
                raise CodecError(f"[dna] {name}: unknown index {value}")
            value = table[value]
        elif scale != 1:
            value = value / scale
        if name.startswith("fitter."):
            fitter[name.split(".", 1)[1]] = value
        else:
            shell[name] = value
    spec = FitterSpec()
    fitter["outer_diameter"] = fitter["inner_diameter"] + (spec.outer_diameter - spec.inner_diameter)
    return ShellParams(fitter=replace(spec, **fitter), **shell)


# camelCase key → (ShellParams field, converter)
LEGACY_KEYS = {
    "type": ("pattern", PatternFamily),
    "silhouette": ("silhouette", SilhouetteFamily),
    "height": ("height", float),
    "topRadius": ("top_radius", float),
    "bottomRadius": ("bottom_radius", float),
    "thickness": ("wall_thickness", float),
    "segments": ("angular_resolution", int),
    "seed": ("seed", int),
    "internalRibs": ("internal_ribs", int),
    "ribThickness": ("rib_thickness", float),
    "ribCount": ("rib_count", int),
    "ribDepth": ("rib_depth", float),
    "twistAngle": ("twist_angle", float),
    "cellCount": ("cell_count", int),
    "amplitude": ("amplitude", float),
    "frequency": ("frequency", float),
    "sides": ("sides", int),
    "gridDensity": ("grid_density", int),
    "foldCount": ("fold_count", int),
    "foldDepth": ("fold_depth", float),
    "noiseScale": ("noise_scale", float),
    "noiseStrength": ("noise_strength", float),
    "slotCount": ("slot_count", int),
    "slotWidth": ("slot_width", float),
    "gapDistance": ("gap_distance", float),
}


# Legacy fitter fields: diameter in millimetres, mount height measured
# down from the top edge of the shade.
LEGACY_MM_PER_UNIT = 10.0


def from_legacy(data: Dict[str, Any]) -> ShellParams:
    """Build ShellParams from a legacy camelCase JSON object; unknown keys are ignored."""
    if not isinstance(data, dict):
        raise CodecError("[dna] Legacy design code is not a JSON object")
    shell: Dict[str, Any] = {}
    try:
        for key, (name, convert) in LEGACY_KEYS.items():
            if data.get(key) is not None:
                shell[name] = convert(data[key])
        fitter = FitterSpec()
        if data.get("fitterType") is not None:
            fitter = replace(fitter, kind=FitterKind(data["fitterType"]))
        if data.get("fitterDiameter") is not None:
            d = float(data["fitterDiameter"]) / LEGACY_MM_PER_UNIT
            fitter = replace(fitter, inner_diameter=d,
                             outer_diameter=d + (fitter.outer_diameter - fitter.inner_diameter))
        if data.get("fitterHeight") is not None:
            height = shell.get("height", ShellParams().height)
            fitter = replace(fitter, mount_height_from_base=height - float(data["fitterHeight"]))
    except (TypeError, ValueError) as e:
        raise CodecError(f"[dna] Legacy design code has an invalid value: {e}") from e
    return ShellParams(fitter=fitter, **shell)


def to_legacy(params: ShellParams) -> str:
    """Legacy (JSON + base64) form, for tools that predate compact codes."""
    data = {key: _jsonable(getattr(params, name)) for key, (name, _) in LEGACY_KEYS.items()}
    data["fitterType"] = params.fitter.kind.value
    data["fitterDiameter"] = params.fitter.inner_diameter * LEGACY_MM_PER_UNIT
    data["fitterHeight"] = params.height - params.fitter.mount_height_from_base
    return base64.b64encode(json.dumps(data).encode("utf-8")).decode("ascii")


def _jsonable(value):
    return value.value if isinstance(value, (PatternFamily, SilhouetteFamily)) else value


def decode(code: str) -> ShellParams:
    """
    Design code → ShellParams.  Compact codes are recognised by their magic
    bytes; anything else is tried as a legacy JSON code.
    """
    text = code.strip()
    if not text:
        raise CodecError("[dna] Empty design code")

    try:
        raw = _b64decode(text, urlsafe=True)
    except CodecError:
        raw = b""
    if raw[:len(MAGIC)] == MAGIC:
        return _unpack(raw)

    raw = _b64decode(text, urlsafe=False)
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CodecError(f"[dna] Design code is neither compact nor legacy JSON: {e}") from e
    logger.debug("[dna] Decoded a legacy JSON design code")
    return from_legacy(data)
