"""
Index systems and geometry to cell conversion.
"""

from .index_system import IndexSystem, RegularGridIndexSystem
from .h3_index import H3, H3IndexSystem, H3_AVG_HEXAGON_AREA_M2
from .bng_index import BNG, BNGIndexSystem
from .custom_index import CustomIndexSystem, GridConf
from .factory import IndexSystemFactory
from .converter import (
    Chip,
    point_to_index,
    polyfill,
    tessellate,
    mosaic_fill,
    tessellate_geodataframe,
)

__all__ = [
    "IndexSystem",
    "RegularGridIndexSystem",
    "H3",
    "H3IndexSystem",
    "H3_AVG_HEXAGON_AREA_M2",
    "BNG",
    "BNGIndexSystem",
    "CustomIndexSystem",
    "GridConf",
    "IndexSystemFactory",
    "Chip",
    "point_to_index",
    "polyfill",
    "tessellate",
    "mosaic_fill",
    "tessellate_geodataframe",
]
