"""
colorscan

Reduces raster images to a small palette by clustering in color space and
reports the most dominant canonical color names per image.
"""

__version__ = "1.0.0"
