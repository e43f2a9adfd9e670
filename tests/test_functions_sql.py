import duckdb
import h3
import pytest

SQUARE = "POLYGON ((10 10, 60 10, 60 60, 10 60, 10 10))"


def scalar(session, query):
    return session.sql(query).fetchone()[0]


# ---------------------------------------------------------------------------
# Geometry functions
# ---------------------------------------------------------------------------


def test_constructors_and_accessors(grid_session):
    assert scalar(grid_session, "SELECT st_point(1.5, 2)") == "POINT (1.5 2)"
    assert scalar(grid_session, "SELECT st_x(st_point(1.5, 2))") == 1.5
    assert scalar(grid_session, "SELECT st_y(st_point(1.5, 2))") == 2.0
    line = scalar(grid_session, "SELECT st_makeline([st_point(0, 0), st_point(3, 4)])")
    assert line == "LINESTRING (0 0, 3 4)"
    assert scalar(grid_session, f"SELECT st_length('{line}')") == pytest.approx(5.0)
    polygon = scalar(grid_session, "SELECT st_makepolygon('LINESTRING (0 0, 2 0, 2 2, 0 0)')")
    assert scalar(grid_session, f"SELECT st_geometrytype('{polygon}')") == "POLYGON"


def test_measurements(grid_session):
    row = grid_session.sql(f"""
        SELECT st_area('{SQUARE}'), st_perimeter('{SQUARE}'), st_numpoints('{SQUARE}'),
               st_xmin('{SQUARE}'), st_ymax('{SQUARE}'),
               st_distance('POINT (0 0)', 'POINT (3 4)')
    """).fetchone()
    assert row == (2500.0, 200.0, 5, 10.0, 60.0, 5.0)


def test_encodings(grid_session):
    hex_wkb = scalar(grid_session, "SELECT st_ashex('POINT (1 2)')")
    assert scalar(grid_session, f"SELECT st_astext('{hex_wkb}')") == "POINT (1 2)"
    geojson = scalar(grid_session, "SELECT st_asgeojson('POINT (1 2)')")
    assert scalar(grid_session, f"SELECT st_geomfromgeojson('{geojson}')") == "POINT (1 2)"
    assert scalar(grid_session, "SELECT st_geomfromwkb(st_aswkb('POINT (1 2)'))") == "POINT (1 2)"
    assert scalar(grid_session, "SELECT struct_extract(as_hex('POINT (1 2)'), 'hex')") == hex_wkb
    assert scalar(grid_session, "SELECT struct_extract(as_json('POINT (1 2)'), 'json')") == geojson


def test_coords_struct(grid_session):
    coords = scalar(grid_session, f"SELECT st_ascoords('{SQUARE}')")
    assert coords["type_id"] == 5
    assert coords["boundaries"][0][0] == [10.0, 10.0]
    assert scalar(grid_session, f"SELECT st_geomfromcoords(st_ascoords('{SQUARE}'))") == SQUARE


def test_operations_and_predicates(grid_session):
    other = "POLYGON ((50 50, 80 50, 80 80, 50 80, 50 50))"
    assert scalar(grid_session, f"SELECT st_area(st_intersection('{SQUARE}', '{other}'))") == 100.0
    assert scalar(grid_session, f"SELECT st_area(st_union('{SQUARE}', '{other}'))") == 3300.0
    assert scalar(grid_session, f"SELECT st_area(st_difference('{SQUARE}', '{other}'))") == 2400.0
    assert scalar(grid_session, f"SELECT st_astext(st_centroid('{SQUARE}'))") == "POINT (35 35)"
    assert scalar(grid_session, f"SELECT st_area(st_envelope(st_buffer('POINT (0 0)', 1)))") == pytest.approx(4.0)
    assert scalar(grid_session, f"SELECT st_contains('{SQUARE}', 'POINT (20 20)')") is True
    assert scalar(grid_session, f"SELECT st_within('POINT (20 20)', '{SQUARE}')") is True
    assert scalar(grid_session, f"SELECT st_intersects('{SQUARE}', '{other}')") is True
    assert scalar(grid_session, "SELECT st_touches('POLYGON ((0 0, 1 0, 1 1, 0 1, 0 0))', "
                                "'POLYGON ((1 0, 2 0, 2 1, 1 1, 1 0))')") is True


def test_transform(bng_session):
    wkt = scalar(bng_session, "SELECT st_transform(st_point(-0.1281, 51.5080), 4326, 27700)")
    assert scalar(bng_session, f"SELECT st_x('{wkt}')") == pytest.approx(530_000, abs=500)


def test_null_in_null_out(grid_session):
    assert scalar(grid_session, "SELECT st_area(NULL)") is None
    assert scalar(grid_session, "SELECT point_index(NULL, 2)") is None


def test_invalid_geometry_text_is_an_error(grid_session):
    with pytest.raises(duckdb.Error):
        grid_session.sql("SELECT st_area('POLYGON ((0 0, 1 0')").fetchall()


# ---------------------------------------------------------------------------
# Index functions
# ---------------------------------------------------------------------------


def test_point_index_custom(grid_session):
    cell = scalar(grid_session, "SELECT point_index(st_point(30, 80), 2)")
    assert scalar(grid_session, f"SELECT index_geometry({cell})") == \
        "POLYGON ((50 75, 50 100, 25 100, 25 75, 50 75))"
    assert scalar(grid_session, f"SELECT grid_resolution({cell})") == 2
    assert scalar(grid_session, "SELECT point_index_lonlat(30, 80, 2)") == cell


def test_point_index_outside_grid_is_an_error(grid_session):
    with pytest.raises(duckdb.Error):
        grid_session.sql("SELECT point_index(st_point(130, 80), 2)").fetchall()


def test_point_index_h3(h3_session):
    cell = scalar(h3_session, "SELECT point_index(st_point(-73.98, 40.75), 9)")
    assert scalar(h3_session, f"SELECT grid_format({cell})") == h3.latlng_to_cell(40.75, -73.98, 9)
    assert scalar(h3_session, f"SELECT len(grid_kring({cell}, 1))") == 7
    assert scalar(h3_session, f"SELECT grid_parse(grid_format({cell}))") == cell


def test_bng_references(bng_session):
    assert scalar(bng_session, "SELECT grid_format(point_index(st_point(530500, 180500), 3))") == "TQ3080"
    assert scalar(bng_session, "SELECT st_xmin(index_geometry(grid_parse('TQ3415')))") == 534_000.0


def test_polyfill(grid_session):
    cells = scalar(grid_session, "SELECT polyfill('POLYGON ((0 0, 50 0, 50 50, 0 50, 0 0))', 2)")
    assert len(cells) == 4


def test_mosaic_explode(grid_session):
    rows = grid_session.sql(f"""
        SELECT mosaic_index.is_core, mosaic_index.index_id, st_area(mosaic_index.wkb) AS area
        FROM (SELECT unnest(mosaic_explode('{SQUARE}', 2)) AS mosaic_index)
    """).fetchall()
    assert len(rows) == 9
    assert sum(1 for is_core, _, _ in rows if is_core) == 1
    assert sum(area for _, _, area in rows) == pytest.approx(2500.0)


def test_mosaicfill(grid_session):
    assert scalar(grid_session, f"SELECT len(struct_extract(mosaicfill('{SQUARE}', 2), 'chips'))") == 9


def test_chip_join(grid_session):
    grid_session.sql(f"""
        CREATE TABLE zones AS
        SELECT 'a' AS zone, unnest(mosaic_explode('{SQUARE}', 2)) AS mosaic_index
    """)
    grid_session.sql("""
        CREATE TABLE points AS
        SELECT st_point(x, y) AS geom, point_index(st_point(x, y), 2) AS cell
        FROM (VALUES (30, 30), (12, 12), (8, 8), (90, 90)) t(x, y)
    """)
    matched = grid_session.sql("""
        SELECT p.geom
        FROM points p
        JOIN zones z ON z.mosaic_index.index_id = p.cell
        WHERE z.mosaic_index.is_core OR st_contains(z.mosaic_index.wkb, p.geom)
        ORDER BY p.geom
    """).fetchall()
    assert matched == [("POINT (12 12)",), ("POINT (30 30)",)]


# ---------------------------------------------------------------------------
# Raster functions
# ---------------------------------------------------------------------------


def test_raster_functions(h3_session, tiny_geotiff):
    row = h3_session.sql(f"""
        SELECT rst_width('{tiny_geotiff}'), rst_height('{tiny_geotiff}'),
               rst_numbands('{tiny_geotiff}'), rst_srid('{tiny_geotiff}')
    """).fetchone()
    assert row == (4, 3, 2, 4326)
    assert scalar(h3_session, f"SELECT rst_geotransform('{tiny_geotiff}')") == [10.0, 0.5, 0.0, 50.0, 0.0, -0.5]
    assert scalar(h3_session, f"SELECT st_xmax(rst_boundingbox('{tiny_geotiff}'))") == 12.0
    assert scalar(h3_session, f"SELECT rst_subdatasets('{tiny_geotiff}')") == []


def test_geomfromcoords_without_holes(grid_session):
    wkt = scalar(grid_session, """
        SELECT st_geomfromcoords({
            'type_id': 5,
            'srid': 0,
            'boundaries': [[[0.0, 0.0], [2.0, 0.0], [2.0, 2.0], [0.0, 0.0]]],
            'holes': []
        }::STRUCT(type_id INTEGER, srid INTEGER, boundaries DOUBLE[][][], holes DOUBLE[][][][]))
    """)
    assert wkt == "POLYGON ((0 0, 2 0, 2 2, 0 0))"
