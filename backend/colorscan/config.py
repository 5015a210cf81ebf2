"""
colorscan Configuration
Manages environment variables and defaults for the dominant color pipeline.
"""
import os
from typing import List, Literal, Optional


class Config:
    """Configuration class for colorscan services."""

    # Downscaling
    MAX_SIDE: int = int(os.environ.get("COLORSCAN_MAX_SIDE", "200"))

    # Clustering
    CLUSTERS: int = int(os.environ.get("COLORSCAN_CLUSTERS", "16"))
    COLOR_SPACE: Literal["lab", "rgb"] = os.environ.get("COLORSCAN_COLOR_SPACE", "lab")
    SEED: int = int(os.environ.get("COLORSCAN_SEED", "42"))
    MAX_ITER: int = int(os.environ.get("COLORSCAN_MAX_ITER", "0"))  # 0 = iterate to convergence

    # Ranking
    TOP_N: int = int(os.environ.get("COLORSCAN_TOP_N", "3"))
    EXCLUDE: str = os.environ.get("COLORSCAN_EXCLUDE", "White")

    # Batch processing
    WORKERS: int = int(os.environ.get("COLORSCAN_WORKERS", "1"))
    FETCH_TIMEOUT: float = float(os.environ.get("COLORSCAN_FETCH_TIMEOUT", "10"))
    DELIMITER: str = os.environ.get("COLORSCAN_DELIMITER", ";")

    # Logging
    LOG_LEVEL: str = os.environ.get("COLORSCAN_LOG_LEVEL", "INFO")

    SUPPORTED_SPACES = ("lab", "rgb")

    @classmethod
    def excluded_names(cls, raw: str = None) -> List[str]:
        """Split a comma-separated exclusion list into color names."""
        raw = cls.EXCLUDE if raw is None else raw
        return [name.strip() for name in raw.split(",") if name.strip()]

    @classmethod
    def max_iterations(cls, value: int = None) -> Optional[int]:
        """
        Map an iteration setting to the clustering cap.

        None reads COLORSCAN_MAX_ITER; 0 (or less) means exact mode, returned as None.
        """
        value = cls.MAX_ITER if value is None else value
        return value if value > 0 else None

    @classmethod
    def validate_space(cls, space: str) -> bool:
        """Validate clustering color space."""
        return space in cls.SUPPORTED_SPACES

    @classmethod
    def validate_clusters(cls, k: int) -> bool:
        """Validate cluster count."""
        return 1 <= k <= 256

    @classmethod
    def validate_max_side(cls, max_side: int) -> bool:
        """Validate downscale bound."""
        return max_side >= 1

    @classmethod
    def validate_top_n(cls, n: int) -> bool:
        """Validate requested number of dominant colors."""
        return n >= 0

    @classmethod
    def validate_max_iter(cls, value: Optional[int]) -> bool:
        """Validate iteration setting (None for config, 0 for exact mode)."""
        return value is None or value >= 0

    @classmethod
    def validate_workers(cls, workers: int) -> bool:
        return 1 <= workers <= 64


# Global config instance
config = Config()
