import geopandas as gpd
import pytest
import shapely
from shapely.geometry import LineString, MultiPoint, Point, box

from conftest import SMALL_GRID
from gridmosaic.converter import BNG, IndexSystemFactory, mosaic_fill, tessellate, tessellate_geodataframe
from gridmosaic.geometry import ESRI, JTS

GRID = IndexSystemFactory.get_index_system(SMALL_GRID)


@pytest.mark.parametrize("api", [JTS, ESRI])
def test_polygon_chips_cover_polygon(api):
    polygon = box(10, 10, 60, 60)
    chips = tessellate(polygon, 2, GRID, api)

    assert len(chips) == 9
    assert [c.index_id for c in chips] == sorted(c.index_id for c in chips)
    core = [c for c in chips if c.is_core]
    assert len(core) == 1
    assert core[0].geometry.bounds == (25.0, 25.0, 50.0, 50.0)
    assert sum(c.geometry.area for c in chips) == pytest.approx(2500.0)


def test_core_chip_without_geometry():
    chips = tessellate(box(10, 10, 60, 60), 2, GRID, JTS, keep_core_geometries=False)
    assert all(c.geometry is None for c in chips if c.is_core)
    assert all(c.geometry is not None for c in chips if not c.is_core)


def test_cell_aligned_polygon_has_only_core_chips():
    chips = tessellate(box(0, 0, 50, 50), 2, GRID, JTS)
    assert len(chips) == 4
    assert all(c.is_core for c in chips)


def test_point_gives_single_border_chip():
    chips = tessellate(Point(30, 30), 2, GRID, JTS)
    assert len(chips) == 1
    assert chips[0].is_core is False
    assert chips[0].index_id == GRID.point_to_index(30, 30, 2)


def test_multipoint_groups_by_cell():
    chips = tessellate(MultiPoint([(30, 30), (31, 31), (80, 80)]), 2, GRID, JTS)
    assert len(chips) == 2
    assert sorted(len(shapely.get_coordinates(c.geometry)) for c in chips) == [1, 2]


def test_line_chips_are_never_core():
    line = LineString([(5, 5), (95, 5)])
    chips = tessellate(line, 2, GRID, JTS)
    assert len(chips) == 4
    assert not any(c.is_core for c in chips)
    assert sum(c.geometry.length for c in chips) == pytest.approx(90.0)


def test_empty_geometry():
    assert tessellate(shapely.from_wkt("POLYGON EMPTY"), 2, GRID, JTS) == []


def test_invalid_resolution():
    with pytest.raises(ValueError):
        tessellate(box(10, 10, 60, 60), 99, GRID, JTS)


def test_mosaic_fill_rows():
    result = mosaic_fill(box(10, 10, 60, 60), 2, GRID, JTS)
    chips = result["chips"]
    assert len(chips) == 9
    assert set(chips[0]) == {"is_core", "index_id", "wkb"}
    border = next(c for c in chips if not c["is_core"])
    assert JTS.geometry(border["wkb"]).area > 0


def test_tessellate_geodataframe_reprojects():
    gdf = gpd.GeoDataFrame(
        {"name": ["a", None]},
        geometry=[box(-0.13, 51.50, -0.12, 51.51), None],
        crs="EPSG:4326",
    )
    chips = tessellate_geodataframe(gdf, 3, BNG, ESRI)
    assert len(chips) == 2
    assert chips[1] == []
    assert len(chips[0]) > 0
    # ~700m x 1100m box on the 1km grid
    assert sum(c.geometry.area for c in chips[0]) == pytest.approx(
        gdf.to_crs(epsg=27700).geometry.iloc[0].area, rel=1e-6
    )
