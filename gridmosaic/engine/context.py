"""
MosaicContext: a validated combination of index system, geometry API and
raster API, able to register its SQL functions into a session.
"""

import logging
from typing import List, Optional

from ..converter import IndexSystem, converter
from ..errors import UnsupportedBackendError
from ..geometry.api import GeometryAPI, GeometryInput
from ..raster.api import RasterAPI
from .functions import FunctionSpec, build_functions
from .session import MosaicSession

logger = logging.getLogger(__name__)

# Supported (index system, geometry API, raster API) combinations
SUPPORTED_BACKENDS: frozenset[tuple[str, str, str]] = frozenset({
    ("CUSTOM", "JTS", "GDAL"),
    ("CUSTOM", "ESRI", "GDAL"),
    ("H3", "JTS", "GDAL"),
    ("H3", "ESRI", "GDAL"),
    ("BNG", "JTS", "GDAL"),
    ("BNG", "ESRI", "GDAL"),
})


class MosaicContext:
    """Index system + geometry API + raster API.

    Use build() rather than the constructor so the combination is checked
    against SUPPORTED_BACKENDS.

    Example:
        ctx = MosaicContext.build(H3, ESRI, GDAL)
        ctx.register(session)
        session.sql("SELECT point_index(st_point(7.5, 47.5), 9)")
    """

    def __init__(self, index_system: IndexSystem, geometry_api: GeometryAPI, raster_api: RasterAPI):
        self.index_system = index_system
        self.geometry_api = geometry_api
        self.raster_api = raster_api

    def __repr__(self) -> str:
        return (f"MosaicContext({self.index_system.name}, "
                f"{self.geometry_api.name}, {self.raster_api.name})")

    @classmethod
    def build(cls, index_system: IndexSystem, geometry_api: GeometryAPI, raster_api: RasterAPI) -> "MosaicContext":
        """
        Validate the backend combination and create a context.

        Raises:
            UnsupportedBackendError: If the combination is not supported
        """
        key = (index_system.name, geometry_api.name, raster_api.name)
        if key not in SUPPORTED_BACKENDS:
            raise UnsupportedBackendError(*key)
        return cls(index_system, geometry_api, raster_api)

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def functions(self, groups: Optional[List[str]] = None) -> List[FunctionSpec]:
        """SQL function specs of this context (groups: geometry, index, raster)."""
        return build_functions(self, groups)

    def register(self, session: MosaicSession, groups: Optional[List[str]] = None) -> List[str]:
        """
        Create all functions of this context in the session catalog.

        Functions registered earlier under the same name are replaced.

        Returns:
            Names of the registered functions
        """
        specs = self.functions(groups)
        for spec in specs:
            session.register_function(spec.name, spec.function, spec.parameters, spec.return_type)
        logger.debug(f"Registered {len(specs)} functions for {self!r}")
        return [spec.name for spec in specs]

    # -------------------------------------------------------------------------
    # Python API
    # -------------------------------------------------------------------------

    def point_index(self, geometry: GeometryInput, resolution: int) -> int:
        return converter.point_to_index(self.geometry_api.geometry(geometry), resolution, self.index_system)

    def polyfill(self, geometry: GeometryInput, resolution: int) -> List[int]:
        return converter.polyfill(self.geometry_api.geometry(geometry), resolution, self.index_system)

    def tessellate(self, geometry: GeometryInput, resolution: int, keep_core_geometries: bool = True) -> List[converter.Chip]:
        return converter.tessellate(
            self.geometry_api.geometry(geometry), resolution, self.index_system, self.geometry_api,
            keep_core_geometries=keep_core_geometries,
        )
