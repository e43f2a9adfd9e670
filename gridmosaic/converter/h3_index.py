"""
H3 DGGS index system.

Cell ids are the 64-bit H3 integers; their string form is the usual H3 hex
string. Geometries are expected in WGS84 (x = lng, y = lat).
"""

from typing import List, Union

import h3
from pyproj import Geod
from shapely.geometry import MultiPolygon, Point, Polygon
from shapely.geometry.base import BaseGeometry

from .index_system import IndexSystem


# Average hexagon areas in m² per H3 resolution level
# Source: https://h3geo.org/docs/core-library/restable/
H3_AVG_HEXAGON_AREA_M2: dict[int, float] = {
    0:  4_357_449_416_078.392,
    1:    609_788_441_794.134,
    2:     86_801_780_398.997,
    3:     12_393_434_655.088,
    4:      1_770_347_654.491,
    5:        252_903_858.182,
    6:         36_129_062.164,
    7:          5_161_293.360,
    8:            737_327.598,
    9:            105_332.513,
    10:            15_047.502,
    11:             2_149.643,
    12:               307.092,
    13:                43.870,
    14:                 6.267,
    15:                 0.895,
}

# WGS84 ellipsoid for geodesic area calculations
_WGS84_GEOD = Geod(ellps='WGS84')


def _polygon_to_h3_cells(polygon: Polygon, resolution: int) -> set[str]:
    """
    Convert a single polygon to the H3 cells whose centre lies inside it.

    Args:
        polygon: Shapely Polygon in WGS84
        resolution: H3 resolution level

    Returns:
        Set of H3 cell IDs (strings)
    """
    # H3 expects (lat, lng) but shapely uses (x, y) = (lng, lat)
    exterior_coords = [(coord[1], coord[0]) for coord in polygon.exterior.coords]

    holes = []
    for interior in polygon.interiors:
        hole_coords = [(coord[1], coord[0]) for coord in interior.coords]
        holes.append(hole_coords)

    h3_poly = h3.LatLngPoly(exterior_coords, *holes)
    return set(h3.polygon_to_cells(h3_poly, resolution))


def _calculate_geodesic_area_m2(polygon: Union[Polygon, MultiPolygon]) -> float:
    """
    Calculate the geodesic area of a polygon in square meters using WGS84 ellipsoid.

    Args:
        polygon: Shapely Polygon or MultiPolygon in WGS84 coordinates

    Returns:
        Area in square meters (always positive)
    """
    area, _ = _WGS84_GEOD.geometry_area_perimeter(polygon)
    return abs(area)


class H3IndexSystem(IndexSystem):
    """Hexagonal global grid backed by the h3 library."""

    name = "H3"
    crs = 4326

    @property
    def resolutions(self) -> range:
        return range(0, 16)

    def point_to_index(self, x: float, y: float, resolution: int) -> int:
        resolution = self.get_resolution(resolution)
        return h3.str_to_int(h3.latlng_to_cell(y, x, resolution))

    def index_to_geometry(self, index_id: int) -> Polygon:
        boundary = h3.cell_to_boundary(h3.int_to_str(index_id))
        return Polygon([(lng, lat) for lat, lng in boundary])

    def index_resolution(self, index_id: int) -> int:
        return h3.get_resolution(h3.int_to_str(index_id))

    def k_ring(self, index_id: int, k: int) -> List[int]:
        return [h3.str_to_int(cell) for cell in h3.grid_disk(h3.int_to_str(index_id), k)]

    def polyfill(self, geometry: BaseGeometry, resolution: int) -> List[int]:
        resolution = self.get_resolution(resolution)
        if geometry.is_empty:
            return []

        if isinstance(geometry, Polygon):
            parts = [geometry]
        elif isinstance(geometry, MultiPolygon):
            parts = list(geometry.geoms)
        else:
            # Points and lines have no interior to fill
            return []

        cells = set()
        for polygon in parts:
            cells.update(_polygon_to_h3_cells(polygon, resolution))
        return sorted(h3.str_to_int(cell) for cell in cells)

    def buffer_radius(self, geometry: BaseGeometry, resolution: int) -> float:
        # Circumradius of the cell under the centroid, in degrees. Cell sizes
        # vary slightly across the globe, hence the margin.
        centroid = geometry.centroid
        cell = self.point_to_index(centroid.x, centroid.y, resolution)
        cell_geometry = self.index_to_geometry(cell)
        center = cell_geometry.centroid
        radius = max(
            center.distance(Point(x, y))
            for x, y in cell_geometry.exterior.coords
        )
        return radius * 1.2

    def cell_area(self, resolution: int) -> float:
        return H3_AVG_HEXAGON_AREA_M2[self.get_resolution(resolution)]

    def area(self, geometry: BaseGeometry) -> float:
        return _calculate_geodesic_area_m2(geometry)

    def format(self, index_id: int) -> str:
        return h3.int_to_str(index_id)

    def parse(self, value: str) -> int:
        if not h3.is_valid_cell(value):
            raise ValueError(f"Invalid H3 cell: {value!r}")
        return h3.str_to_int(value)


H3 = H3IndexSystem()
