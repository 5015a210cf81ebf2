"""
Color extraction entry points.

This module composes the color pipeline stages into the operations used by
the batch orchestrator:

- quantize: convert, cluster, assign, convert back (recolored raster)
- dominant_colors: cluster, assign, name centroids, rank by pixel coverage
- extract_palette: per-cluster hex/name/ratio report
"""

from typing import Iterable, List, Optional, Tuple

import numpy as np
from loguru import logger

from colorscan.config import config
from colorscan.schemas import PaletteEntry
from colorscan.services.errors import InvalidImageError
from colorscan.services.imaging import as_rgb_raster
from colorscan.services.observability import performance_tracked
from .clustering import ClusteringResult, cluster_pixels, recolor
from .colorspace import from_clustering_space, to_clustering_space
from .naming import CATALOG
from .ranking import count_color_names, rank_colors


def rgb_to_hex(rgb_u8: np.ndarray) -> str:
    """Convert RGB uint8 array to hex color string."""
    r, g, b = [int(x) for x in rgb_u8]
    return f"#{r:02X}{g:02X}{b:02X}"


def member_palette(rgb: np.ndarray, result: ClusteringResult) -> np.ndarray:
    """
    RGB color of every cluster.

    Non-empty clusters take the rounded mean of their members' original
    pixels, so a cluster of identical pixels keeps its exact color. Empty
    clusters fall back to converting their centroid.

    Returns:
        (K, 3) uint8 RGB palette indexed by cluster id
    """
    pixels = rgb.reshape(-1, 3).astype(np.float64)
    counts = result.counts()
    filled = counts > 0

    sums = np.stack(
        [np.bincount(result.labels, weights=pixels[:, c], minlength=result.k) for c in range(3)],
        axis=1
    )

    palette = from_clustering_space(result.centroids, result.space)
    means = np.rint(sums[filled] / counts[filled, None])
    palette[filled] = np.clip(means, 0, 255).astype(np.uint8)
    return palette


def _cluster_image(image: np.ndarray,
                   k: int,
                   space: str,
                   seed: int,
                   max_iter: Optional[int]) -> Tuple[np.ndarray, ClusteringResult, np.ndarray]:
    """
    Run the shared convert -> cluster -> assign stages on one image.

    Returns:
        Tuple of (rgb raster, clustering result, (K, 3) uint8 RGB palette)

    Raises:
        InvalidImageError: If the image is absent or degenerate
    """
    rgb = as_rgb_raster(image)
    vectors = to_clustering_space(rgb, space)
    result = cluster_pixels(vectors, k=k, max_iter=max_iter, seed=seed, space=space)
    palette_rgb = member_palette(rgb, result)
    return rgb, result, palette_rgb


@performance_tracked("quantize")
def quantize(image: Optional[np.ndarray],
             k: int = None,
             space: str = None,
             seed: int = None,
             max_iter: Optional[int] = None) -> Optional[np.ndarray]:
    """
    Reduce an image to at most k distinct colors.

    Args:
        image: RGB raster
        k: Number of clusters (default from config)
        space: Clustering space, "lab" or "rgb" (default from config)
        seed: Initialization seed (default from config)
        max_iter: Iteration cap, None for exact mode

    Returns:
        Recolored RGB raster of the same shape, or None for absent/invalid input
    """
    k = config.CLUSTERS if k is None else k
    space = config.COLOR_SPACE if space is None else space
    seed = config.SEED if seed is None else seed

    try:
        rgb, result, palette_rgb = _cluster_image(image, k, space, seed, max_iter)
    except InvalidImageError as e:
        logger.warning(f"Skipping quantization: {e}")
        return None

    quantized = recolor(result.labels, palette_rgb, rgb.shape)
    logger.debug(f"Quantized {rgb.shape[1]}×{rgb.shape[0]} image to "
                 f"{result.effective_clusters()} colors in {result.n_iter} iteration(s)")
    return quantized


@performance_tracked("dominant_colors")
def dominant_colors(image: Optional[np.ndarray],
                    n: int = None,
                    excluded: Iterable[str] = None,
                    k: int = None,
                    space: str = None,
                    seed: int = None,
                    max_iter: Optional[int] = None) -> Optional[List[str]]:
    """
    Find the top-n canonical color names by pixel coverage.

    Each centroid is named once and credited with its cluster's pixel count,
    which equals naming every pixel of the quantized image.

    Args:
        image: RGB raster
        n: Number of names to return (default from config)
        excluded: Names never returned (default from config)
        k: Number of clusters (default from config)
        space: Clustering space (default from config)
        seed: Initialization seed (default from config)
        max_iter: Iteration cap, None for exact mode

    Returns:
        Names ordered by descending count (ties alphabetical), or None for
        absent/invalid input

    Raises:
        CatalogError: If an excluded name is not in the catalog
        ValueError: If n is negative
    """
    n = config.TOP_N if n is None else n
    excluded = config.excluded_names() if excluded is None else list(excluded)
    k = config.CLUSTERS if k is None else k
    space = config.COLOR_SPACE if space is None else space
    seed = config.SEED if seed is None else seed

    CATALOG.require(excluded)
    if not config.validate_top_n(n):
        raise ValueError(f"n must be >= 0, got {n}")

    try:
        _, result, palette_rgb = _cluster_image(image, k, space, seed, max_iter)
    except InvalidImageError as e:
        logger.warning(f"Skipping dominant color search: {e}")
        return None

    counts = count_color_names(CATALOG.name_many(palette_rgb), result.counts())
    colors = rank_colors(counts, n, excluded)

    logger.debug(f"Dominant colors: {colors} (from {len(counts)} named clusters)")
    return colors


def extract_palette(image: Optional[np.ndarray],
                    k: int = None,
                    space: str = None,
                    seed: int = None,
                    max_iter: Optional[int] = None) -> Optional[List[PaletteEntry]]:
    """
    Describe every non-empty cluster of an image.

    Returns:
        PaletteEntry list sorted by descending count (ties by cluster id), or None for absent/invalid input
    """
    k = config.CLUSTERS if k is None else k
    space = config.COLOR_SPACE if space is None else space
    seed = config.SEED if seed is None else seed

    try:
        _, result, palette_rgb = _cluster_image(image, k, space, seed, max_iter)
    except InvalidImageError as e:
        logger.warning(f"Skipping palette extraction: {e}")
        return None

    counts = result.counts()
    total = int(counts.sum())
    names = CATALOG.name_many(palette_rgb)

    order = sorted(np.flatnonzero(counts), key=lambda i: (-counts[i], i))

    palette = []
    for i in order:
        palette.append(PaletteEntry(
            hex=rgb_to_hex(palette_rgb[i]),
            rgb=palette_rgb[i].tolist(),
            name=names[i],
            count=int(counts[i]),
            ratio=float(counts[i] / total)
        ))

    ratios_str = [f"{p.ratio:.3f}" for p in palette]
    logger.debug(f"Palette ratios: {ratios_str}")
    return palette
