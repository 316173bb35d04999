# python/mapforge/output.py
# PNG export of composed rasters and collision-free output naming
# RELEVANT FILES: python/mapforge/renderer.py, python/mapforge/compositor.py, tests/test_output.py
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


def find_new_file(path: PathLike) -> Path:
    """Return ``path`` if it is free, else the first free ``stem_NNN.suffix`` beside it."""
    path = Path(path)
    if not path.exists():
        return path
    index = 1
    while True:
        candidate = path.with_name(f"{path.stem}_{index:03d}{path.suffix}")
        if not candidate.exists():
            return candidate
        index += 1


def save_png(path: PathLike, rgba: np.ndarray) -> Path:
    """Save an ``(H, W, 3|4)`` raster as PNG with fixed encoder settings.

    Float input is treated as normalized [0, 1] colour.
    """
    if not isinstance(rgba, np.ndarray) or rgba.ndim != 3 or rgba.shape[2] not in (3, 4):
        raise ValueError("rgba must be numpy array with shape (H,W,3|4)")
    if rgba.shape[0] == 0 or rgba.shape[1] == 0:
        raise ValueError("cannot save an empty raster")

    if rgba.dtype == np.uint8:
        arr = rgba
    elif rgba.dtype in (np.float32, np.float64):
        arr = (np.clip(rgba, 0.0, 1.0) * 255.0 + 0.5).astype(np.uint8)
    else:
        arr = rgba.astype(np.uint8)

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(np.ascontiguousarray(arr)).save(path, format="PNG", optimize=False, compress_level=6)
    logger.info(f"Saved {arr.shape[1]}x{arr.shape[0]} PNG to {path}")
    return path


def load_png(path: PathLike) -> np.ndarray:
    with Image.open(path) as img:
        return np.asarray(img.convert("RGBA"), dtype=np.uint8).copy()
