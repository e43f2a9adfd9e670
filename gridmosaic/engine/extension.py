"""
Session extension registering the SQL functions at session startup.
"""

import logging

from ..config import MOSAIC_GEOMETRY_API, MOSAIC_INDEX_SYSTEM
from ..converter import BNG, H3, IndexSystemFactory
from ..errors import UnsupportedBackendError
from ..geometry.api import ESRI, JTS
from ..raster.api import GDAL
from .context import MosaicContext
from .session import CheckRule, MosaicSession, SessionExtensions

logger = logging.getLogger(__name__)


class MosaicSQL:
    """
    Supports automatic registration of SQL functions at session start up.

    Injects a rule that, based on the configured index system and geometry
    API, builds a MosaicContext and registers its functions into the
    session. The rule runs right after the session has been created. An
    unsupported combination fails the session creation, so a session never
    starts with the wrong (or a partial) function set.

    Usage:
        session = (
            MosaicSession.builder()
            .config("mosaic.index.system", "BNG")
            .config("mosaic.geometry.api", "JTS")
            .with_extensions(MosaicSQL())
            .get_or_create()
        )
    """

    def __call__(self, ext: SessionExtensions) -> None:
        ext.inject_check_rule(self._register)

    def _register(self, session: MosaicSession) -> CheckRule:
        index_system = session.conf.get(MOSAIC_INDEX_SYSTEM)
        custom_index_system = None

        # CUSTOM(...) carries the grid definition, build it with the factory
        if index_system.startswith("CUSTOM"):
            custom_index_system = IndexSystemFactory.get_index_system(index_system)
            index_system = "CUSTOM"

        geometry_api = session.conf.get(MOSAIC_GEOMETRY_API)
        # Only GDAL is available as raster API
        raster_api = "GDAL"

        builders = {
            ("CUSTOM", "JTS", "GDAL"): lambda: MosaicContext.build(custom_index_system, JTS, GDAL),
            ("CUSTOM", "ESRI", "GDAL"): lambda: MosaicContext.build(custom_index_system, ESRI, GDAL),
            ("H3", "JTS", "GDAL"): lambda: MosaicContext.build(H3, JTS, GDAL),
            ("H3", "ESRI", "GDAL"): lambda: MosaicContext.build(H3, ESRI, GDAL),
            ("BNG", "JTS", "GDAL"): lambda: MosaicContext.build(BNG, JTS, GDAL),
            ("BNG", "ESRI", "GDAL"): lambda: MosaicContext.build(BNG, ESRI, GDAL),
        }
        builder = builders.get((index_system, geometry_api, raster_api))
        if builder is None:
            raise UnsupportedBackendError(index_system, geometry_api, raster_api)

        mosaic_context = builder()
        logger.info(f"Registering Mosaic SQL Extensions ({index_system}, {geometry_api}, {raster_api}).")
        mosaic_context.register(session)

        # No-op rule, registration is the only startup work
        return lambda relation: None
