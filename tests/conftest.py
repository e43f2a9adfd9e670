import sys
from pathlib import Path

import pytest

# Ensure the project root is on sys.path so tests can import `gridmosaic`
# without an installed package.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from gridmosaic import MosaicSession, MosaicSQL  # noqa: E402
from gridmosaic.config import MOSAIC_GEOMETRY_API, MOSAIC_INDEX_SYSTEM  # noqa: E402

# 100 x 100 units, 2 x 2 splits per level: resolution 2 cells are 25 x 25
SMALL_GRID = "CUSTOM(0,100,0,100,2,100,100)"


def make_session(index_system: str, geometry_api: str) -> MosaicSession:
    return (
        MosaicSession.builder()
        .config(MOSAIC_INDEX_SYSTEM, index_system)
        .config(MOSAIC_GEOMETRY_API, geometry_api)
        .with_extensions(MosaicSQL())
        .get_or_create()
    )


@pytest.fixture(autouse=True)
def clean_mosaic_environment(monkeypatch):
    """Sessions read MOSAIC_* variables; keep the caller's shell out of the tests."""
    for name in ("MOSAIC_INDEX_SYSTEM", "MOSAIC_GEOMETRY_API", "MOSAIC_RASTER_API"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def h3_session():
    with make_session("H3", "JTS") as session:
        yield session


@pytest.fixture
def bng_session():
    with make_session("BNG", "ESRI") as session:
        yield session


@pytest.fixture
def grid_session():
    with make_session(SMALL_GRID, "JTS") as session:
        yield session


@pytest.fixture
def tiny_geotiff(tmp_path):
    """4 x 3 two band GeoTIFF at (10, 50), 0.5 degree pixels."""
    import numpy as np
    import rasterio
    from rasterio.transform import from_origin

    path = tmp_path / "tiny.tif"
    data = np.arange(24, dtype="uint8").reshape(2, 3, 4)
    with rasterio.open(
        path,
        "w",
        driver="GTiff",
        width=4,
        height=3,
        count=2,
        dtype="uint8",
        crs="EPSG:4326",
        transform=from_origin(10, 50, 0.5, 0.5),
        nodata=0,
    ) as dst:
        dst.write(data)
        dst.update_tags(source="test")
    return str(path)
