"""
gridmosaic - spatial SQL functions for DuckDB on H3, BNG or custom grids.

Verwendung:
    from gridmosaic import MosaicSession, MosaicSQL

    session = (
        MosaicSession.builder()
        .config("mosaic.index.system", "H3")
        .config("mosaic.geometry.api", "ESRI")
        .with_extensions(MosaicSQL())
        .get_or_create()
    )
    session.sql("SELECT point_index(st_point(-73.98, 40.75), 9)").fetchone()

or, without the extension:

    from gridmosaic import MosaicContext, H3, JTS, GDAL

    ctx = MosaicContext.build(H3, JTS, GDAL)
    ctx.register(session)
"""

from .config import MOSAIC_GEOMETRY_API, MOSAIC_INDEX_SYSTEM, MOSAIC_RASTER_API
from .converter import BNG, H3, IndexSystemFactory
from .engine import MosaicContext, MosaicSession, MosaicSQL, SessionConf
from .errors import MosaicError, UnsupportedBackendError
from .geometry import ESRI, JTS, GeometryAPI
from .raster import GDAL, RasterAPI
from .analyzer import MosaicAnalyzer, MosaicFrame, SampleStrategy

__version__ = "0.1.0"

__all__ = [
    "MOSAIC_INDEX_SYSTEM",
    "MOSAIC_GEOMETRY_API",
    "MOSAIC_RASTER_API",
    "H3",
    "BNG",
    "IndexSystemFactory",
    "JTS",
    "ESRI",
    "GeometryAPI",
    "GDAL",
    "RasterAPI",
    "MosaicContext",
    "MosaicSession",
    "MosaicSQL",
    "SessionConf",
    "MosaicError",
    "UnsupportedBackendError",
    "MosaicAnalyzer",
    "MosaicFrame",
    "SampleStrategy",
]
