"""
colorscan Imaging Utilities
Handles raster validation, decoding and bounded downscaling.
"""
import io
from pathlib import Path
from typing import Optional, Tuple, Union

import cv2
import numpy as np
from loguru import logger
from PIL import Image, UnidentifiedImageError

from colorscan.config import config
from colorscan.services.errors import InvalidImageError
from colorscan.services.observability import performance_tracked


def as_rgb_raster(image: np.ndarray) -> np.ndarray:
    """
    Validate a decoded raster and normalize it to RGB uint8.

    Args:
        image: Array of shape (h, w), (h, w, 3) or (h, w, 4)

    Returns:
        Array of shape (h, w, 3), dtype uint8

    Raises:
        InvalidImageError: For absent, zero-dimension or malformed rasters
    """
    if image is None:
        raise InvalidImageError("Image is absent")

    if not isinstance(image, np.ndarray):
        raise InvalidImageError(f"Expected numpy array, got {type(image).__name__}")

    if image.ndim not in (2, 3):
        raise InvalidImageError(f"Unsupported raster rank: {image.ndim}")

    height, width = image.shape[:2]
    if width == 0 or height == 0:
        raise InvalidImageError(f"Degenerate image dimensions: {width}×{height}")

    if image.ndim == 2:
        image = np.stack([image] * 3, axis=-1)
    elif image.shape[2] == 4:
        image = image[:, :, :3]
    elif image.shape[2] != 3:
        raise InvalidImageError(f"Unsupported channel count: {image.shape[2]}")

    if image.dtype != np.uint8:
        image = np.clip(np.rint(image), 0, 255).astype(np.uint8)

    return np.ascontiguousarray(image)


def target_dimensions(width: int, height: int, max_side: int) -> Tuple[int, int]:
    """
    Halve both dimensions until neither exceeds max_side.

    Each halving truncates, and neither side drops below one pixel.
    """
    while width > max_side or height > max_side:
        width = max(1, width // 2)
        height = max(1, height // 2)
    return width, height


@performance_tracked("downscale")
def downscale(image: Optional[np.ndarray], max_side: int = None) -> Optional[np.ndarray]:
    """
    Bound image dimensions before per-pixel work.

    Args:
        image: Decoded RGB raster, or None
        max_side: Maximum width and height (default from config)

    Returns:
        New raster with both sides <= max_side, or None for absent/invalid input
    """
    if max_side is None:
        max_side = config.MAX_SIDE
    if not config.validate_max_side(max_side):
        raise ValueError(f"max_side must be >= 1, got {max_side}")

    if image is None:
        logger.warning("downscale called without an image")
        return None

    try:
        rgb = as_rgb_raster(image)
    except InvalidImageError as e:
        logger.error(f"Cannot downscale invalid image: {e}")
        return None

    height, width = rgb.shape[:2]
    new_width, new_height = target_dimensions(width, height, max_side)

    if (new_width, new_height) == (width, height):
        return rgb.copy()

    # INTER_AREA averages source pixels, smoother than bilinear when shrinking
    resized = cv2.resize(rgb, (new_width, new_height), interpolation=cv2.INTER_AREA)
    logger.debug(f"Image resized from {width}×{height} to {new_width}×{new_height}")

    return resized


def get_image_dimensions(image: np.ndarray) -> Tuple[int, int]:
    """Return (width, height) of a raster."""
    height, width = image.shape[:2]
    return width, height


def decode_image_bytes(data: bytes) -> Optional[np.ndarray]:
    """
    Decode encoded image bytes (PNG, JPEG, ...) into an RGB raster.

    Returns:
        RGB uint8 array, or None if the bytes are not a decodable image
    """
    if not data:
        logger.warning("Cannot decode empty image payload")
        return None

    try:
        pil_image = Image.open(io.BytesIO(data))
        if pil_image.mode != 'RGB':
            pil_image = pil_image.convert('RGB')
        return np.array(pil_image)
    except (UnidentifiedImageError, OSError) as e:
        logger.error(f"Failed to decode image: {e}")
        return None


def save_image(image: np.ndarray, path: Union[str, Path]) -> Path:
    """Write an RGB raster to disk, format chosen from the file extension."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(as_rgb_raster(image)).save(path)
    return path
