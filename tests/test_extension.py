import logging

import pytest

from conftest import SMALL_GRID, make_session
from gridmosaic import MosaicSession, MosaicSQL, UnsupportedBackendError
from gridmosaic.config import MOSAIC_GEOMETRY_API, MOSAIC_INDEX_SYSTEM


@pytest.mark.parametrize("index_system", ["H3", "BNG", SMALL_GRID])
@pytest.mark.parametrize("geometry_api", ["JTS", "ESRI"])
def test_supported_combinations_register_functions(index_system, geometry_api):
    with make_session(index_system, geometry_api) as session:
        assert "st_area" in session.registered_functions
        assert "point_index" in session.registered_functions
        assert "rst_metadata" in session.registered_functions
        area = session.sql("SELECT st_area('POLYGON ((0 0, 2 0, 2 2, 0 2, 0 0))')").fetchone()[0]
        assert area == pytest.approx(4.0)


def test_default_settings_are_h3_esri():
    with MosaicSession.builder().with_extensions(MosaicSQL()).get_or_create() as session:
        assert session.conf.get(MOSAIC_INDEX_SYSTEM) == "H3"
        assert session.conf.get(MOSAIC_GEOMETRY_API) == "ESRI"
        assert "mosaic_explode" in session.registered_functions


@pytest.mark.parametrize(
    "index_system, geometry_api",
    [
        ("S2", "JTS"),
        ("H3", "GEOS"),
        ("h3", "JTS"),
        ("BNG", "esri"),
        ("", "JTS"),
    ],
)
def test_unsupported_combination_fails_session_creation(index_system, geometry_api):
    with pytest.raises(UnsupportedBackendError) as exc:
        make_session(index_system, geometry_api)
    assert str(exc.value) == (
        "Index system, geometry API and raster API: "
        f"({index_system}, {geometry_api}, GDAL) not supported."
    )


def test_custom_grid_reported_as_custom_when_unsupported():
    with pytest.raises(UnsupportedBackendError) as exc:
        make_session(SMALL_GRID, "GEOS")
    assert exc.value.index_system == "CUSTOM"
    assert exc.value.raster_api == "GDAL"


def test_malformed_custom_grid_raises_value_error():
    with pytest.raises(ValueError):
        make_session("CUSTOM(0,100,0,100)", "JTS")


def test_missing_setting_raises_key_error():
    builder = MosaicSession.builder().with_extensions(MosaicSQL())
    builder._settings.pop(MOSAIC_GEOMETRY_API)
    with pytest.raises(KeyError):
        builder.get_or_create()


def test_registration_is_logged(caplog):
    caplog.set_level(logging.INFO, logger="gridmosaic")
    with make_session("BNG", "JTS"):
        pass
    assert "Registering Mosaic SQL Extensions (BNG, JTS, GDAL)." in caplog.messages


def test_custom_grid_logged_as_custom(caplog):
    caplog.set_level(logging.INFO, logger="gridmosaic")
    with make_session(SMALL_GRID, "ESRI"):
        pass
    assert "Registering Mosaic SQL Extensions (CUSTOM, ESRI, GDAL)." in caplog.messages


def test_nothing_registered_for_unsupported_combination(caplog):
    caplog.set_level(logging.INFO, logger="gridmosaic")
    with pytest.raises(UnsupportedBackendError):
        make_session("S2", "ESRI")
    assert not any("Registering" in m for m in caplog.messages)


def test_geometry_backend_follows_configuration(grid_session):
    # The bowtie is invalid as read (JTS) and made valid on read (ESRI)
    bowtie = "POLYGON ((0 0, 2 2, 2 0, 0 2, 0 0))"
    assert grid_session.sql(f"SELECT st_isvalid('{bowtie}')").fetchone()[0] is False
    with make_session(SMALL_GRID, "ESRI") as esri:
        assert esri.sql(f"SELECT st_isvalid('{bowtie}')").fetchone()[0] is True
