"""
SQL function definitions of a MosaicContext.

Geometries enter SQL functions as VARCHAR (WKT, hex WKB or GeoJSON) and are
returned as WKT unless the function name says otherwise (st_aswkb,
st_asgeojson, ...). Cell ids are BIGINT. NULL inputs give NULL results.
"""

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Callable, List, Optional

import duckdb
from duckdb.typing import BIGINT, BLOB, BOOLEAN, DOUBLE, INTEGER, VARCHAR, DuckDBPyType

from .. import types
from ..converter import converter

if TYPE_CHECKING:
    from .context import MosaicContext


GEOMETRY = VARCHAR
GEOMETRY_LIST = duckdb.list_type(VARCHAR)
BIGINT_LIST = duckdb.list_type(BIGINT)
DOUBLE_LIST = duckdb.list_type(DOUBLE)
VARCHAR_LIST = duckdb.list_type(VARCHAR)


@dataclass(frozen=True)
class FunctionSpec:
    """A scalar function to be created in the session catalog."""

    name: str
    function: Callable
    parameters: List[DuckDBPyType]
    return_type: DuckDBPyType
    group: str = ""


def geometry_functions(ctx: "MosaicContext") -> List[FunctionSpec]:
    api = ctx.geometry_api
    read = api.geometry
    wkt = api.to_wkt

    def st_makeline(geoms: list) -> str:
        return wkt(api.make_line(read(g) for g in geoms if g is not None))

    def st_makepolygon(ring: str) -> str:
        geom = read(ring)
        if geom.geom_type == "Polygon":
            geom = geom.exterior
        return wkt(api.make_polygon(geom))

    def st_transform(geom: str, source_srid: int, target_srid: int) -> str:
        return wkt(api.transform(read(geom), source_srid, target_srid))

    def as_hex(geom: str) -> dict:
        return {"hex": api.to_hex(read(geom))}

    def as_json(geom: str) -> dict:
        return {"json": api.to_geojson(read(geom))}

    specs = [
        # constructors / readers
        FunctionSpec("st_point", lambda x, y: wkt(api.point(x, y)), [DOUBLE, DOUBLE], GEOMETRY),
        FunctionSpec("st_makeline", st_makeline, [GEOMETRY_LIST], GEOMETRY),
        FunctionSpec("st_makepolygon", st_makepolygon, [GEOMETRY], GEOMETRY),
        FunctionSpec("st_geomfromwkt", lambda g: wkt(read(g)), [VARCHAR], GEOMETRY),
        FunctionSpec("st_geomfromwkb", lambda g: wkt(read(bytes(g))), [BLOB], GEOMETRY),
        FunctionSpec("st_geomfromgeojson", lambda g: wkt(read(g)), [VARCHAR], GEOMETRY),
        FunctionSpec("st_geomfromcoords", lambda c: wkt(api.from_coords(c)), [types.InternalGeometryType], GEOMETRY),
        # writers
        FunctionSpec("st_astext", lambda g: wkt(read(g)), [GEOMETRY], VARCHAR),
        FunctionSpec("st_aswkt", lambda g: wkt(read(g)), [GEOMETRY], VARCHAR),
        FunctionSpec("st_aswkb", lambda g: api.to_wkb(read(g)), [GEOMETRY], BLOB),
        FunctionSpec("st_ashex", lambda g: api.to_hex(read(g)), [GEOMETRY], VARCHAR),
        FunctionSpec("st_asgeojson", lambda g: api.to_geojson(read(g)), [GEOMETRY], VARCHAR),
        FunctionSpec("st_ascoords", lambda g: api.to_coords(read(g)), [GEOMETRY], types.InternalGeometryType),
        FunctionSpec("as_hex", as_hex, [GEOMETRY], types.HexType),
        FunctionSpec("as_json", as_json, [GEOMETRY], types.JSONType),
        # measurements / accessors
        FunctionSpec("st_area", lambda g: api.area(read(g)), [GEOMETRY], DOUBLE),
        FunctionSpec("st_length", lambda g: api.length(read(g)), [GEOMETRY], DOUBLE),
        FunctionSpec("st_perimeter", lambda g: api.length(read(g)), [GEOMETRY], DOUBLE),
        FunctionSpec("st_distance", lambda a, b: api.distance(read(a), read(b)), [GEOMETRY, GEOMETRY], DOUBLE),
        FunctionSpec("st_x", lambda g: read(g).x, [GEOMETRY], DOUBLE),
        FunctionSpec("st_y", lambda g: read(g).y, [GEOMETRY], DOUBLE),
        FunctionSpec("st_xmin", lambda g: api.bounds(read(g))[0], [GEOMETRY], DOUBLE),
        FunctionSpec("st_ymin", lambda g: api.bounds(read(g))[1], [GEOMETRY], DOUBLE),
        FunctionSpec("st_xmax", lambda g: api.bounds(read(g))[2], [GEOMETRY], DOUBLE),
        FunctionSpec("st_ymax", lambda g: api.bounds(read(g))[3], [GEOMETRY], DOUBLE),
        FunctionSpec("st_numpoints", lambda g: api.num_points(read(g)), [GEOMETRY], INTEGER),
        FunctionSpec("st_geometrytype", lambda g: api.geometry_type(read(g)), [GEOMETRY], VARCHAR),
        FunctionSpec("st_isvalid", lambda g: api.is_valid(read(g)), [GEOMETRY], BOOLEAN),
        # operations
        FunctionSpec("st_centroid", lambda g: wkt(api.centroid(read(g))), [GEOMETRY], GEOMETRY),
        FunctionSpec("st_buffer", lambda g, r: wkt(api.buffer(read(g), r)), [GEOMETRY, DOUBLE], GEOMETRY),
        FunctionSpec("st_convexhull", lambda g: wkt(api.convex_hull(read(g))), [GEOMETRY], GEOMETRY),
        FunctionSpec("st_envelope", lambda g: wkt(api.envelope(read(g))), [GEOMETRY], GEOMETRY),
        FunctionSpec("st_simplify", lambda g, t: wkt(api.simplify(read(g), t)), [GEOMETRY, DOUBLE], GEOMETRY),
        FunctionSpec("st_intersection", lambda a, b: wkt(api.intersection(read(a), read(b))), [GEOMETRY, GEOMETRY], GEOMETRY),
        FunctionSpec("st_union", lambda a, b: wkt(api.union(read(a), read(b))), [GEOMETRY, GEOMETRY], GEOMETRY),
        FunctionSpec("st_difference", lambda a, b: wkt(api.difference(read(a), read(b))), [GEOMETRY, GEOMETRY], GEOMETRY),
        FunctionSpec("st_transform", st_transform, [GEOMETRY, INTEGER, INTEGER], GEOMETRY),
        # predicates
        FunctionSpec("st_contains", lambda a, b: api.contains(read(a), read(b)), [GEOMETRY, GEOMETRY], BOOLEAN),
        FunctionSpec("st_intersects", lambda a, b: api.intersects(read(a), read(b)), [GEOMETRY, GEOMETRY], BOOLEAN),
        FunctionSpec("st_within", lambda a, b: api.within(read(a), read(b)), [GEOMETRY, GEOMETRY], BOOLEAN),
        FunctionSpec("st_touches", lambda a, b: api.touches(read(a), read(b)), [GEOMETRY, GEOMETRY], BOOLEAN),
    ]
    return [replace(s, group="geometry") for s in specs]


def index_functions(ctx: "MosaicContext") -> List[FunctionSpec]:
    api = ctx.geometry_api
    index = ctx.index_system
    read = api.geometry

    def point_index(geom: str, resolution: int) -> int:
        return converter.point_to_index(read(geom), resolution, index)

    def mosaic_explode(geom: str, resolution: int) -> list:
        chips = converter.tessellate(read(geom), resolution, index, api)
        return [chip.to_row(api) for chip in chips]

    specs = [
        FunctionSpec("point_index", point_index, [GEOMETRY, INTEGER], BIGINT),
        FunctionSpec("point_index_lonlat", lambda x, y, r: index.point_to_index(x, y, r), [DOUBLE, DOUBLE, INTEGER], BIGINT),
        FunctionSpec("polyfill", lambda g, r: converter.polyfill(read(g), r, index), [GEOMETRY, INTEGER], BIGINT_LIST),
        FunctionSpec("mosaicfill", lambda g, r: converter.mosaic_fill(read(g), r, index, api), [GEOMETRY, INTEGER], types.MosaicType),
        FunctionSpec("mosaic_explode", mosaic_explode, [GEOMETRY, INTEGER], duckdb.list_type(types.ChipType)),
        FunctionSpec("index_geometry", lambda i: api.to_wkt(index.index_to_geometry(i)), [BIGINT], GEOMETRY),
        FunctionSpec("grid_kring", lambda i, k: index.k_ring(i, k), [BIGINT, INTEGER], BIGINT_LIST),
        FunctionSpec("grid_resolution", lambda i: index.index_resolution(i), [BIGINT], INTEGER),
        FunctionSpec("grid_format", lambda i: index.format(i), [BIGINT], VARCHAR),
        FunctionSpec("grid_parse", lambda s: index.parse(s), [VARCHAR], BIGINT),
    ]
    return [replace(s, group="index") for s in specs]


def raster_functions(ctx: "MosaicContext") -> List[FunctionSpec]:
    raster = ctx.raster_api
    api = ctx.geometry_api

    specs = [
        FunctionSpec("rst_metadata", raster.metadata_json, [VARCHAR], VARCHAR),
        FunctionSpec("rst_numbands", raster.num_bands, [VARCHAR], INTEGER),
        FunctionSpec("rst_width", raster.width, [VARCHAR], INTEGER),
        FunctionSpec("rst_height", raster.height, [VARCHAR], INTEGER),
        FunctionSpec("rst_srid", raster.srid, [VARCHAR], INTEGER),
        FunctionSpec("rst_geotransform", raster.geotransform, [VARCHAR], DOUBLE_LIST),
        FunctionSpec("rst_boundingbox", lambda p: api.to_wkt(raster.bounding_box(p)), [VARCHAR], GEOMETRY),
        FunctionSpec("rst_subdatasets", raster.subdatasets, [VARCHAR], VARCHAR_LIST),
    ]
    return [replace(s, group="raster") for s in specs]


def build_functions(ctx: "MosaicContext", groups: Optional[List[str]] = None) -> List[FunctionSpec]:
    """All function specs of a context, optionally restricted to groups."""
    specs = geometry_functions(ctx) + index_functions(ctx) + raster_functions(ctx)
    if groups is not None:
        specs = [s for s in specs if s.group in groups]
    return specs
