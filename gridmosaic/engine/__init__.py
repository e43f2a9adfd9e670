"""
DuckDB session, MosaicContext and the SQL session extension.
"""

from .session import MosaicSession, SessionBuilder, SessionConf, SessionExtensions
from .functions import FunctionSpec, build_functions
from .context import MosaicContext, SUPPORTED_BACKENDS
from .extension import MosaicSQL

__all__ = [
    "MosaicSession",
    "SessionBuilder",
    "SessionConf",
    "SessionExtensions",
    "FunctionSpec",
    "build_functions",
    "MosaicContext",
    "SUPPORTED_BACKENDS",
    "MosaicSQL",
]
