"""
Test configuration and fixtures for colorscan tests.
"""
import io

import numpy as np
import pytest
from PIL import Image


@pytest.fixture(autouse=True)
def reset_metrics():
    """Reset metrics before each test."""
    from colorscan.services.observability import reset_metrics
    reset_metrics()


@pytest.fixture
def solid_image():
    """Factory for single-color RGB rasters."""
    def _make(color, width=4, height=4):
        return np.full((height, width, 3), color, dtype=np.uint8)
    return _make


@pytest.fixture
def rgb_2x2():
    """Two red pixels, one green, one blue."""
    return np.array([
        [[255, 0, 0], [255, 0, 0]],
        [[0, 255, 0], [0, 0, 255]],
    ], dtype=np.uint8)


@pytest.fixture
def noise_image():
    """Deterministic random-color raster with many distinct colors."""
    rng = np.random.default_rng(7)
    return rng.integers(0, 256, size=(20, 24, 3), dtype=np.uint8)


@pytest.fixture
def banner_image():
    """White canvas with a red block and a smaller blue block."""
    img = np.full((10, 10, 3), 255, dtype=np.uint8)
    img[0:4, 0:4] = (255, 0, 0)      # 16 red pixels
    img[6:8, 6:8] = (0, 0, 255)      # 4 blue pixels
    return img


@pytest.fixture
def png_bytes():
    """Encode an RGB raster as PNG bytes."""
    def _encode(array):
        buffer = io.BytesIO()
        Image.fromarray(array).save(buffer, format="PNG")
        return buffer.getvalue()
    return _encode
