"""
Raster backends (GDAL).
"""

from .api import GDAL, GDALRasterAPI, RasterAPI

__all__ = ["RasterAPI", "GDALRasterAPI", "GDAL"]
