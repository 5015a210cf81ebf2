"""
Color space conversion between device RGB and the clustering space.

Supported spaces:
- "lab": CIE Lab via OpenCV's float conversion (L in [0, 100])
- "rgb": device RGB as float64, channels in [0, 255]
"""

import cv2
import numpy as np

from colorscan.config import config


def _check_space(space: str) -> None:
    if not config.validate_space(space):
        raise ValueError(f"Unsupported color space: {space!r} (expected one of {config.SUPPORTED_SPACES})")


def to_clustering_space(pixels_rgb: np.ndarray, space: str = "lab") -> np.ndarray:
    """
    Convert RGB pixels to clustering vectors.

    Args:
        pixels_rgb: (N, 3) or (h, w, 3) RGB array, channels in [0, 255]
        space: Target clustering space

    Returns:
        (N, 3) float64 vectors
    """
    _check_space(space)
    flat = np.asarray(pixels_rgb).reshape(-1, 3)

    if space == "rgb":
        return flat.astype(np.float64)

    rgb01 = (flat.astype(np.float32) / 255.0).reshape(-1, 1, 3)
    lab = cv2.cvtColor(rgb01, cv2.COLOR_RGB2Lab)
    return lab.reshape(-1, 3).astype(np.float64)


def from_clustering_space(vectors: np.ndarray, space: str = "lab") -> np.ndarray:
    """
    Convert clustering vectors back to device RGB.

    Out-of-gamut values are clipped; the result is rounded to uint8.

    Returns:
        (N, 3) uint8 RGB array
    """
    _check_space(space)
    flat = np.asarray(vectors, dtype=np.float64).reshape(-1, 3)

    if space == "rgb":
        rgb = flat
    else:
        lab = flat.astype(np.float32).reshape(-1, 1, 3)
        rgb = cv2.cvtColor(lab, cv2.COLOR_Lab2RGB).reshape(-1, 3).astype(np.float64) * 255.0

    return np.clip(np.rint(rgb), 0, 255).astype(np.uint8)
