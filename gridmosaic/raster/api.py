"""
Raster backend.

GDAL access through rasterio. All operations take a raster path (or any
URI rasterio/GDAL can open) and read metadata only, never pixel data,
except for band statistics.
"""

import json
import logging
from typing import Any, Dict, List

import rasterio
from shapely.geometry import Polygon, box

logger = logging.getLogger(__name__)


class RasterAPI:
    """Raster backend base class."""

    name: str = ""

    @staticmethod
    def apply(name: str) -> "RasterAPI":
        """Backend by name (only ``"GDAL"``)."""
        if name == GDAL.name:
            return GDAL
        raise ValueError(f"Raster API {name!r} not supported.")


class GDALRasterAPI(RasterAPI):
    """Raster metadata via rasterio/GDAL."""

    name = "GDAL"

    def metadata(self, path: str) -> Dict[str, Any]:
        """
        Dataset level metadata.

        Returns:
            Dict with driver, size, band count, CRS, transform and the
            dataset tags
        """
        with rasterio.open(path) as src:
            return {
                "driver": src.driver,
                "width": src.width,
                "height": src.height,
                "count": src.count,
                "dtypes": list(src.dtypes),
                "crs": src.crs.to_string() if src.crs else None,
                "transform": list(src.transform.to_gdal()),
                "nodata": src.nodata,
                "tags": src.tags(),
            }

    def metadata_json(self, path: str) -> str:
        return json.dumps(self.metadata(path))

    def num_bands(self, path: str) -> int:
        with rasterio.open(path) as src:
            return src.count

    def width(self, path: str) -> int:
        with rasterio.open(path) as src:
            return src.width

    def height(self, path: str) -> int:
        with rasterio.open(path) as src:
            return src.height

    def srid(self, path: str) -> int:
        """EPSG code of the raster CRS, 0 when it has none or no EPSG match."""
        with rasterio.open(path) as src:
            if src.crs is None:
                logger.warning(f"No CRS found in {path}")
                return 0
            return src.crs.to_epsg() or 0

    def geotransform(self, path: str) -> List[float]:
        """GDAL ordered geotransform (x0, dx, rx, y0, ry, dy)."""
        with rasterio.open(path) as src:
            return list(src.transform.to_gdal())

    def bounding_box(self, path: str) -> Polygon:
        with rasterio.open(path) as src:
            return box(*src.bounds)

    def subdatasets(self, path: str) -> List[str]:
        with rasterio.open(path) as src:
            return list(src.subdatasets)

    def band_statistics(self, path: str, band: int = 1) -> Dict[str, float]:
        """Min, max, mean and std of a band, ignoring nodata."""
        with rasterio.open(path) as src:
            data = src.read(band, masked=True)
        return {
            "min": float(data.min()),
            "max": float(data.max()),
            "mean": float(data.mean()),
            "std": float(data.std()),
        }


GDAL = GDALRasterAPI()
