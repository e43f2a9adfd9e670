"""
Geometry backends.

Both backends read and write the same encodings and expose the same
operations; they differ in how geometries are prepared before evaluation:

  - JTS:  shapely (GEOS, the C++ port of JTS) at full floating precision.
          Geometries are used as read, invalid ones included.
  - ESRI: geometries are simplified on read (made valid) and snapped to a
          fixed xy tolerance grid, the way the ESRI geometry engine
          normalises its inputs.
"""

import re
from typing import Iterable, List, Optional, Union

import shapely
from pyproj import CRS, Transformer
from shapely.geometry import (
    LineString,
    MultiLineString,
    MultiPoint,
    MultiPolygon,
    Point,
    Polygon,
)
from shapely.geometry.base import BaseGeometry
from shapely.ops import transform

GeometryInput = Union[str, bytes, bytearray, memoryview, BaseGeometry]

_HEX_PATTERN = re.compile(r"^(?:[0-9a-fA-F]{2})+$")

# Type ids of the internal coordinate representation
GEOMETRY_TYPE_IDS: dict[str, int] = {
    "Point": 1,
    "MultiPoint": 2,
    "LineString": 3,
    "MultiLineString": 4,
    "Polygon": 5,
    "MultiPolygon": 6,
}

_MULTI_TYPES = {
    "MultiPoint": MultiPoint,
    "MultiLineString": MultiLineString,
    "MultiPolygon": MultiPolygon,
}


class GeometryAPI:
    """Geometry backend base class."""

    name: str = ""

    # -------------------------------------------------------------------------
    # Readers / writers
    # -------------------------------------------------------------------------

    def geometry(self, value: GeometryInput) -> BaseGeometry:
        """
        Read a geometry from any supported encoding.

        Accepts shapely geometries, WKB bytes, hex encoded WKB, GeoJSON and
        WKT strings.

        Raises:
            TypeError: If the value type is not supported
        """
        if isinstance(value, BaseGeometry):
            geom = value
        elif isinstance(value, (bytes, bytearray, memoryview)):
            geom = shapely.from_wkb(bytes(value))
        elif isinstance(value, str):
            text = value.strip()
            if text.startswith("{"):
                geom = shapely.from_geojson(text)
            elif _HEX_PATTERN.match(text):
                geom = shapely.from_wkb(text)
            else:
                geom = shapely.from_wkt(text)
        else:
            raise TypeError(f"Unsupported geometry input: {type(value)}")
        return self.prepare(geom)

    def prepare(self, geom: BaseGeometry) -> BaseGeometry:
        """Hook applied to every geometry entering the backend."""
        return geom

    def to_wkt(self, geom: BaseGeometry) -> str:
        return shapely.to_wkt(geom, trim=True)

    def to_wkb(self, geom: BaseGeometry) -> bytes:
        return shapely.to_wkb(geom)

    def to_hex(self, geom: BaseGeometry) -> str:
        return shapely.to_wkb(geom, hex=True)

    def to_geojson(self, geom: BaseGeometry) -> str:
        return shapely.to_geojson(geom)

    def to_coords(self, geom: BaseGeometry, srid: int = 0) -> dict:
        """
        Internal coordinate representation (see ``types.InternalGeometryType``).

        Every geometry is split into parts; each part has a list of
        boundaries and a list of holes, each ring a list of [x, y] pairs.
        """
        geom_type = geom.geom_type
        if geom_type not in GEOMETRY_TYPE_IDS:
            raise ValueError(f"Unsupported geometry type: {geom_type}")

        parts = list(geom.geoms) if geom_type.startswith("Multi") else [geom]
        boundaries = []
        holes = []
        for part in parts:
            if isinstance(part, Polygon):
                boundaries.append([list(c) for c in part.exterior.coords])
                holes.append([[list(c) for c in ring.coords] for ring in part.interiors])
            else:
                boundaries.append([list(c) for c in part.coords])
                holes.append([])
        return {
            "type_id": GEOMETRY_TYPE_IDS[geom_type],
            "srid": srid,
            "boundaries": boundaries,
            "holes": holes,
        }

    def from_coords(self, value: dict) -> BaseGeometry:
        """Inverse of to_coords()."""
        type_ids = {v: k for k, v in GEOMETRY_TYPE_IDS.items()}
        geom_type = type_ids.get(value["type_id"])
        if geom_type is None:
            raise ValueError(f"Unsupported geometry type id: {value['type_id']}")

        boundaries = value["boundaries"] or []
        holes = value["holes"] or [[]] * len(boundaries)
        if len(holes) != len(boundaries):
            raise ValueError(f"Expected one holes list per boundary, got {len(holes)} for {len(boundaries)}")
        if not boundaries:
            raise ValueError("Geometry without boundaries")

        parts = []
        for boundary, part_holes in zip(boundaries, holes):
            ring = [tuple(c) for c in boundary]
            if geom_type.endswith("Polygon"):
                interiors = [[tuple(c) for c in hole] for hole in part_holes or []]
                parts.append(Polygon(ring, interiors))
            elif geom_type.endswith("LineString"):
                parts.append(LineString(ring))
            else:
                parts.append(Point(ring[0]))

        if geom_type.startswith("Multi"):
            geom = _MULTI_TYPES[geom_type](parts)
        else:
            geom = parts[0]
        return self.prepare(geom)

    # -------------------------------------------------------------------------
    # Constructors
    # -------------------------------------------------------------------------

    def point(self, x: float, y: float) -> Point:
        return Point(x, y)

    def make_line(self, geoms: Iterable[BaseGeometry]) -> LineString:
        """Line through the coordinates of the given points/lines, in order."""
        coords = []
        for geom in geoms:
            coords.extend(shapely.get_coordinates(geom).tolist())
        return LineString(coords)

    def make_polygon(self, ring: BaseGeometry, holes: Optional[List[BaseGeometry]] = None) -> BaseGeometry:
        shell = list(ring.coords)
        interiors = [list(h.coords) for h in holes or []]
        return self.prepare(Polygon(shell, interiors))

    # -------------------------------------------------------------------------
    # Measurements / accessors
    # -------------------------------------------------------------------------

    def area(self, geom: BaseGeometry) -> float:
        return geom.area

    def length(self, geom: BaseGeometry) -> float:
        return geom.length

    def distance(self, a: BaseGeometry, b: BaseGeometry) -> float:
        return a.distance(b)

    def num_points(self, geom: BaseGeometry) -> int:
        return int(shapely.get_num_coordinates(geom))

    def geometry_type(self, geom: BaseGeometry) -> str:
        return geom.geom_type.upper()

    def is_valid(self, geom: BaseGeometry) -> bool:
        return bool(geom.is_valid)

    def bounds(self, geom: BaseGeometry) -> tuple:
        return geom.bounds

    def dimension(self, geom: BaseGeometry) -> int:
        return int(shapely.get_dimensions(geom))

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def centroid(self, geom: BaseGeometry) -> BaseGeometry:
        return geom.centroid

    def buffer(self, geom: BaseGeometry, radius: float) -> BaseGeometry:
        return self.prepare(geom.buffer(radius))

    def convex_hull(self, geom: BaseGeometry) -> BaseGeometry:
        return geom.convex_hull

    def envelope(self, geom: BaseGeometry) -> BaseGeometry:
        return geom.envelope

    def simplify(self, geom: BaseGeometry, tolerance: float) -> BaseGeometry:
        return geom.simplify(tolerance, preserve_topology=True)

    def intersection(self, a: BaseGeometry, b: BaseGeometry) -> BaseGeometry:
        return a.intersection(b)

    def union(self, a: BaseGeometry, b: BaseGeometry) -> BaseGeometry:
        return a.union(b)

    def difference(self, a: BaseGeometry, b: BaseGeometry) -> BaseGeometry:
        return a.difference(b)

    def transform(self, geom: BaseGeometry, source_crs: Union[str, int], target_crs: Union[str, int]) -> BaseGeometry:
        """
        Reproject a geometry.

        Args:
            geom: Shapely geometry
            source_crs: EPSG code as int or any pyproj CRS input
            target_crs: EPSG code as int or any pyproj CRS input
        """
        if isinstance(source_crs, int):
            source_crs = f"EPSG:{source_crs}"
        if isinstance(target_crs, int):
            target_crs = f"EPSG:{target_crs}"

        transformer = Transformer.from_crs(
            CRS.from_user_input(source_crs),
            CRS.from_user_input(target_crs),
            always_xy=True
        )
        return self.prepare(transform(transformer.transform, geom))

    # -------------------------------------------------------------------------
    # Predicates
    # -------------------------------------------------------------------------

    def contains(self, a: BaseGeometry, b: BaseGeometry) -> bool:
        return bool(a.contains(b))

    def intersects(self, a: BaseGeometry, b: BaseGeometry) -> bool:
        return bool(a.intersects(b))

    def within(self, a: BaseGeometry, b: BaseGeometry) -> bool:
        return bool(a.within(b))

    def touches(self, a: BaseGeometry, b: BaseGeometry) -> bool:
        return bool(a.touches(b))

    @staticmethod
    def apply(name: str) -> "GeometryAPI":
        """Backend by name (``"JTS"`` or ``"ESRI"``)."""
        for api in (JTS, ESRI):
            if api.name == name:
                return api
        raise ValueError(f"Geometry API {name!r} not supported.")


class JTSGeometryAPI(GeometryAPI):
    """GEOS/JTS semantics, geometries used as read."""

    name = "JTS"


class ESRIGeometryAPI(GeometryAPI):
    """ESRI semantics: inputs are simplified and snapped to the xy tolerance."""

    name = "ESRI"

    def __init__(self, xy_tolerance: float = 1e-9):
        self.xy_tolerance = xy_tolerance

    def prepare(self, geom: BaseGeometry) -> BaseGeometry:
        if geom.is_empty:
            return geom
        if not geom.is_valid:
            geom = shapely.make_valid(geom)
        return shapely.set_precision(geom, self.xy_tolerance)

    def intersection(self, a: BaseGeometry, b: BaseGeometry) -> BaseGeometry:
        return shapely.intersection(a, b, grid_size=self.xy_tolerance)

    def union(self, a: BaseGeometry, b: BaseGeometry) -> BaseGeometry:
        return shapely.union(a, b, grid_size=self.xy_tolerance)

    def difference(self, a: BaseGeometry, b: BaseGeometry) -> BaseGeometry:
        return shapely.difference(a, b, grid_size=self.xy_tolerance)


JTS = JTSGeometryAPI()
ESRI = ESRIGeometryAPI()
