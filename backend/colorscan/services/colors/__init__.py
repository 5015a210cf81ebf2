"""
colorscan Colors Module

Provides color-space conversion, fixed-K clustering, canonical color naming
and dominant color ranking for raster images.
"""

__version__ = "1.0.0"
