"""
colorscan error taxonomy.

Per-image conditions (InvalidImageError, ClusteringNonConvergence) are absorbed
by the public operations. CatalogError signals a setup problem and is fatal.
"""


class InvalidImageError(ValueError):
    """Absent, zero-dimension or malformed raster."""
    pass


class ClusteringNonConvergence(RuntimeWarning):
    """Centroid refinement hit its iteration cap before assignments stabilized."""
    pass


class CatalogError(RuntimeError):
    """Color name catalog is misconfigured or a requested name is unknown."""
    pass
