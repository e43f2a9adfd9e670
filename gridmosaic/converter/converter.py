"""
Geometry to grid cell conversion.

Converts geometries into cell ids (point indexing, polyfill) and into
chips: the pieces of a geometry cut along the cell boundaries of an index
system. Chips fully covered by the geometry are "core" chips and can be
joined on the cell id alone; "border" chips carry the clipped geometry so
exact predicates only have to be evaluated on them.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Union

import shapely
from shapely.geometry import LineString, MultiLineString, MultiPoint, MultiPolygon, Point, Polygon
from shapely.geometry.base import BaseGeometry

from ..geometry.api import GeometryAPI
from .index_system import IndexSystem


@dataclass
class Chip:
    """Part of a geometry inside a single cell."""

    is_core: bool
    index_id: int
    geometry: Optional[BaseGeometry]

    def to_row(self, geometry_api: GeometryAPI) -> dict:
        """Row matching ``types.ChipType`` (geometry as hex WKB)."""
        return {
            "is_core": self.is_core,
            "index_id": self.index_id,
            "wkb": geometry_api.to_hex(self.geometry) if self.geometry is not None else None,
        }


def point_to_index(point: Point, resolution: int, index_system: IndexSystem) -> int:
    """
    Cell id of a point geometry.

    Raises:
        ValueError: If the geometry is not a point
    """
    if not isinstance(point, Point) or point.is_empty:
        raise ValueError(f"point_index expects a point geometry, got {point.geom_type}")
    return index_system.point_to_index(point.x, point.y, resolution)


def polyfill(geometry: BaseGeometry, resolution: int, index_system: IndexSystem) -> List[int]:
    """Cells whose centre lies inside the geometry."""
    return index_system.polyfill(geometry, resolution)


def _points_to_chips(
    geometry: Union[Point, MultiPoint],
    resolution: int,
    index_system: IndexSystem,
) -> List[Chip]:
    points = geometry.geoms if isinstance(geometry, MultiPoint) else [geometry]
    chips: dict[int, List[Point]] = {}
    for point in points:
        cell = index_system.point_to_index(point.x, point.y, resolution)
        chips.setdefault(cell, []).append(point)
    return [
        Chip(False, cell, pts[0] if len(pts) == 1 else MultiPoint(pts))
        for cell, pts in sorted(chips.items())
    ]


def tessellate(
    geometry: BaseGeometry,
    resolution: int,
    index_system: IndexSystem,
    geometry_api: GeometryAPI,
    keep_core_geometries: bool = True,
) -> List[Chip]:
    """
    Cut a geometry into chips along the cells of an index system.

    Candidate cells are the polyfill of the geometry buffered by the index
    system's carving radius, plus the cells of all vertices. Each candidate
    is classified:

      - cell fully inside the geometry   -> core chip
      - cell intersecting the geometry   -> border chip (clipped geometry)
      - otherwise                        -> dropped

    Border chips whose intersection has a lower dimension than the input
    (a polygon touching a cell along an edge) are dropped as well.

    Args:
        geometry: Shapely geometry in the index system's CRS
        resolution: Index resolution
        index_system: IndexSystem instance
        geometry_api: GeometryAPI used for predicates and clipping
        keep_core_geometries: If False, core chips carry no geometry

    Returns:
        List of Chip, ordered by cell id
    """
    resolution = index_system.get_resolution(resolution)
    if geometry.is_empty:
        return []

    if isinstance(geometry, (Point, MultiPoint)):
        return _points_to_chips(geometry, resolution, index_system)

    radius = index_system.buffer_radius(geometry, resolution)
    carved = geometry.buffer(radius)

    candidates = set(index_system.polyfill(carved, resolution))
    for x, y in shapely.get_coordinates(geometry).tolist():
        if index_system.is_valid_point(x, y):
            candidates.add(index_system.point_to_index(x, y, resolution))

    dimension = geometry_api.dimension(geometry)
    chips = []
    for cell in sorted(candidates):
        cell_geometry = index_system.index_to_geometry(cell)

        if dimension == 2 and geometry_api.contains(geometry, cell_geometry):
            chips.append(Chip(True, cell, cell_geometry if keep_core_geometries else None))
            continue

        if not geometry_api.intersects(geometry, cell_geometry):
            continue

        clipped = geometry_api.intersection(geometry, cell_geometry)
        if clipped.is_empty or geometry_api.dimension(clipped) < dimension:
            continue
        chips.append(Chip(False, cell, clipped))

    return chips


def mosaic_fill(
    geometry: BaseGeometry,
    resolution: int,
    index_system: IndexSystem,
    geometry_api: GeometryAPI,
    keep_core_geometries: bool = True,
) -> dict:
    """Tessellation as a ``types.MosaicType`` row."""
    chips = tessellate(geometry, resolution, index_system, geometry_api, keep_core_geometries)
    return {"chips": [chip.to_row(geometry_api) for chip in chips]}


def tessellate_geodataframe(
    gdf: Any,
    resolution: int,
    index_system: IndexSystem,
    geometry_api: GeometryAPI,
    geometry_column: str = 'geometry',
    keep_core_geometries: bool = True,
) -> List[List[Chip]]:
    """
    Batch tessellation of GeoDataFrame geometries.

    Reprojects the whole frame to the index system's CRS in one operation
    before cutting, instead of transforming geometry by geometry.

    Args:
        gdf: GeoDataFrame with geometries to convert
        resolution: Index resolution
        index_system: IndexSystem instance
        geometry_api: GeometryAPI instance
        geometry_column: Name of the geometry column, default 'geometry'
        keep_core_geometries: If False, core chips carry no geometry

    Returns:
        List of chip lists, one per row

    Example:
        >>> import geopandas as gpd
        >>> gdf = gpd.read_file('neighbourhoods.geojson')
        >>> gdf['chips'] = tessellate_geodataframe(gdf, 9, H3, ESRI)
    """
    if gdf.crs is not None and index_system.crs is not None:
        gdf = gdf.to_crs(epsg=index_system.crs)

    chips_list = []
    for geom in gdf[geometry_column]:
        if geom is None:
            chips_list.append([])
            continue
        if not isinstance(geom, (Point, LineString, Polygon, MultiPoint, MultiLineString, MultiPolygon)):
            raise ValueError(f"Unsupported geometry type: {type(geom)}")
        chips_list.append(tessellate(
            geometry_api.prepare(geom), resolution, index_system, geometry_api,
            keep_core_geometries=keep_core_geometries,
        ))
    return chips_list
