"""
Image ingress: raster file → LuminanceGrid.

A LuminanceGrid is a plain ``uint8`` array of shape (H, W, 3).  Cropping,
rotation and downscaling all happen here, before the heightfield mesher
sees the pixels.
"""
import logging
from typing import Optional, Tuple

import numpy as np
from PIL import Image, ImageOps

from . import config
from .errors import InvalidParameter

logger = logging.getLogger(__name__)

CropBox = Tuple[int, int, int, int]     # left, upper, right, lower (pixels)


def as_luminance_grid(pixels) -> np.ndarray:
    """
    Normalise an array into a (H, W, 3) uint8 grid.  Greyscale input is
    replicated into three channels, an alpha channel is dropped.
    """
    arr = np.asarray(pixels)
    if arr.ndim == 2:
        arr = np.repeat(arr[:, :, None], 3, axis=2)
    if arr.ndim != 3 or arr.shape[2] not in (3, 4):
        raise InvalidParameter("image", f"expected (H, W), (H, W, 3) or (H, W, 4) pixels, got {arr.shape}")
    arr = arr[:, :, :3]
    if arr.shape[0] < 1 or arr.shape[1] < 1:
        raise InvalidParameter("image", "image is empty")
    if arr.dtype != np.uint8:
        arr = np.asarray(arr, dtype=np.float64)
        if not np.all(np.isfinite(arr)):
            raise InvalidParameter("image", "pixel values must be finite")
        arr = np.clip(np.round(arr), 0, 255).astype(np.uint8)
    return arr


def load_image(path: str,
               crop: Optional[CropBox] = None,
               rotate: float = 0.0,
               max_dimension: int = config.IMAGE_MAX_DIMENSION) -> np.ndarray:
    """
    Returns
    -------
    grid : np.ndarray  uint8 (H, W, 3)
    """
    with Image.open(path) as src:
        img = ImageOps.exif_transpose(src).convert("RGB")
    W, H = img.size
    logger.info(f"[litho] Source image  : {W} × {H} px")

    if crop is not None:
        left, upper, right, lower = (int(c) for c in crop)
        if not (0 <= left < right <= W and 0 <= upper < lower <= H):
            raise InvalidParameter("crop", f"box {crop} does not fit a {W} × {H} image")
        img = img.crop((left, upper, right, lower))
        logger.info(f"[litho] Cropped → {img.size[0]} × {img.size[1]} px")

    if rotate:
        # Corners uncovered by the rotation read as white (thinnest relief)
        img = img.rotate(float(rotate), resample=Image.BICUBIC, expand=True,
                         fillcolor=(255, 255, 255))

    if max(img.size) > max_dimension:
        img.thumbnail((max_dimension, max_dimension), Image.LANCZOS)
        logger.info(f"[litho] Downscaled → {img.size[0]} × {img.size[1]} px")

    return as_luminance_grid(np.array(img, dtype=np.uint8))
