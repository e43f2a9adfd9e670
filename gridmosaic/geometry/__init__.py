"""
Geometry backends (JTS, ESRI).
"""

from .api import ESRI, JTS, ESRIGeometryAPI, GeometryAPI, JTSGeometryAPI

__all__ = ["GeometryAPI", "JTSGeometryAPI", "ESRIGeometryAPI", "JTS", "ESRI"]
