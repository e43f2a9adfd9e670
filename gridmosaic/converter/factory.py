"""
Lookup of index systems by name.
"""

from .bng_index import BNG
from .custom_index import CustomIndexSystem, GridConf
from .h3_index import H3
from .index_system import IndexSystem


class IndexSystemFactory:
    """Resolves configuration strings to index system instances."""

    @staticmethod
    def get_index_system(name: str) -> IndexSystem:
        """
        Return the index system for a configuration value.

        Args:
            name: ``"H3"``, ``"BNG"`` or a ``"CUSTOM(...)"`` grid definition

        Returns:
            IndexSystem instance

        Raises:
            ValueError: If the name is unknown or the custom grid is malformed
        """
        if name == H3.name:
            return H3
        if name == BNG.name:
            return BNG
        if name.startswith("CUSTOM"):
            return CustomIndexSystem(GridConf.parse(name))
        raise ValueError(f"Index system {name!r} not supported.")
