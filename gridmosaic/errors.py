"""
Exceptions raised by gridmosaic.
"""


class MosaicError(Exception):
    """Base class for gridmosaic errors."""


class UnsupportedBackendError(MosaicError):
    """Raised when an index system / geometry API / raster API combination
    is not part of the supported matrix.

    Raised at session startup, before any function has been registered.
    """

    def __init__(self, index_system: str, geometry_api: str, raster_api: str):
        self.index_system = index_system
        self.geometry_api = geometry_api
        self.raster_api = raster_api
        super().__init__(
            f"Index system, geometry API and raster API: "
            f"({index_system}, {geometry_api}, {raster_api}) not supported."
        )
