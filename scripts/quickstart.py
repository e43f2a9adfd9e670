"""
Quickstart
----------
Walkthrough of the gridmosaic SQL functions on DuckDB:

  1. Polygone laden (GeoJSON via geopandas, oder synthetische Zonen)
  2. Geometrie-Attribute berechnen (st_area, st_length)
  3. Punkte indexieren (point_index) und Polygone in Chips zerlegen
     (mosaic_explode)
  4. Spatial Join ueber die Cell-ID: Core-Chips matchen direkt, nur
     Border-Chips brauchen st_contains
  5. Optimale Resolution bestimmen (MosaicAnalyzer)

Konfiguration:
  Index System und Geometry API kommen aus config.yaml (Abschnitt mosaic)
  bzw. den Umgebungsvariablen MOSAIC_INDEX_SYSTEM / MOSAIC_GEOMETRY_API.
  Die Beispieldaten liegen in WGS84, daher ist H3 das passende Index System.

Verwendung:
  python scripts/quickstart.py [zones.geojson]
"""

import sys
import time
from pathlib import Path

import geopandas as gpd
import numpy as np
import pandas as pd
from shapely.geometry import box

# Projektverzeichnis zum Importpfad hinzufuegen
sys.path.insert(0, str(Path(__file__).parent.parent))
from gridmosaic import MosaicAnalyzer, MosaicFrame, MosaicSession, MosaicSQL, SampleStrategy
from gridmosaic.config import CONFIG_PATH, MOSAIC_GEOMETRY_API, MOSAIC_INDEX_SYSTEM, load_config, session_settings
from gridmosaic.converter import IndexSystemFactory
from gridmosaic.engine import MosaicContext
from gridmosaic.geometry import GeometryAPI
from gridmosaic.raster import GDAL


# ---------------------------------------------------------------------------
# Beispieldaten
# ---------------------------------------------------------------------------


def synthetic_zones() -> gpd.GeoDataFrame:
    """3x3 rectangular zones over lower Manhattan (WGS84)."""
    zones = []
    x0, y0, step = -74.02, 40.70, 0.02
    for i in range(3):
        for j in range(3):
            zones.append({
                "zone": f"zone_{i}{j}",
                "geometry": box(x0 + i * step, y0 + j * step, x0 + (i + 1) * step, y0 + (j + 1) * step),
            })
    return gpd.GeoDataFrame(zones, crs="EPSG:4326")


def synthetic_trips(n: int = 1000, seed: int = 7) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    return pd.DataFrame({
        "trip_distance": rng.uniform(0.5, 10.0, n),
        "pickup_longitude": rng.uniform(-74.02, -73.96, n),
        "pickup_latitude": rng.uniform(40.70, 40.76, n),
        "dropoff_longitude": rng.uniform(-74.02, -73.96, n),
        "dropoff_latitude": rng.uniform(40.70, 40.76, n),
    })


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main():
    print("\n" + "=" * 60)
    print("  gridmosaic Quickstart")
    print("=" * 60)

    config = load_config(CONFIG_PATH) or {}
    settings = session_settings(config)
    resolution = int((config.get("quickstart") or {}).get("resolution", 9))
    database = (config.get("quickstart") or {}).get("database", ":memory:")

    print(f"\n  Index System: {settings[MOSAIC_INDEX_SYSTEM]}")
    print(f"  Geometry API: {settings[MOSAIC_GEOMETRY_API]}")
    print(f"  Resolution:   {resolution}")

    session = (
        MosaicSession.builder()
        .database(database)
        .config_all(settings)
        .with_extensions(MosaicSQL())
        .get_or_create()
    )

    # 1. Polygone
    print("\n1. Lade Polygone...")
    if len(sys.argv) > 1:
        zones = gpd.read_file(sys.argv[1]).to_crs(epsg=4326)
    else:
        zones = synthetic_zones()
    zones_df = pd.DataFrame({
        "zone": zones["zone"] if "zone" in zones.columns else [str(i) for i in range(len(zones))],
        "geometry": zones.geometry.to_wkt(),
    })
    session.conn.register("raw_zones", zones_df)
    session.sql("CREATE TABLE neighbourhoods AS SELECT zone, st_astext(geometry) AS geometry FROM raw_zones")
    print(f"   {len(zones_df)} Zonen geladen")

    # 2. Attribute
    print("\n2. Geometrie-Attribute:")
    print(session.sql("""
        SELECT zone, st_area(geometry) AS area, st_length(geometry) AS length
        FROM neighbourhoods
        LIMIT 5
    """).df())

    # 3. Indexieren
    print("\n3. Indexiere Punkte und Polygone...")
    session.conn.register("raw_trips", synthetic_trips())
    start = time.time()
    session.sql(f"""
        CREATE TABLE trips_with_index AS
        SELECT
            trip_distance,
            st_point(pickup_longitude, pickup_latitude) AS pickup_geom,
            st_point(dropoff_longitude, dropoff_latitude) AS dropoff_geom,
            point_index(st_point(pickup_longitude, pickup_latitude), {resolution}) AS pickup_cell,
            point_index(st_point(dropoff_longitude, dropoff_latitude), {resolution}) AS dropoff_cell,
            st_makeline([st_point(pickup_longitude, pickup_latitude),
                         st_point(dropoff_longitude, dropoff_latitude)]) AS trip_line
        FROM raw_trips
    """)
    session.sql(f"""
        CREATE TABLE neighbourhoods_with_index AS
        SELECT zone, unnest(mosaic_explode(geometry, {resolution})) AS mosaic_index
        FROM neighbourhoods
    """)
    chips = session.sql("""
        SELECT count(*) AS chips, count(*) FILTER (WHERE mosaic_index.is_core) AS core_chips
        FROM neighbourhoods_with_index
    """).fetchone()
    print(f"   {chips[0]:,} Chips ({chips[1]:,} Core) in {time.time() - start:.1f}s")

    # 4. Spatial Join
    print("\n4. Spatial Join (Pickup-Zone)...")
    start = time.time()
    joined = session.sql("""
        SELECT t.trip_distance, t.pickup_geom, t.pickup_cell, n.zone AS pickup_zone
        FROM trips_with_index t
        JOIN neighbourhoods_with_index n
          ON n.mosaic_index.index_id = t.pickup_cell
        WHERE n.mosaic_index.is_core OR st_contains(n.mosaic_index.wkb, t.pickup_geom)
    """).df()
    print(f"   {len(joined):,} Trips zugeordnet in {time.time() - start:.1f}s")
    print(joined.groupby("pickup_zone").size().rename("trips").to_string())

    # 5. Resolution
    print("\n5. Optimale Resolution:")
    context = MosaicContext.build(
        IndexSystemFactory.get_index_system(settings[MOSAIC_INDEX_SYSTEM]),
        GeometryAPI.apply(settings[MOSAIC_GEOMETRY_API]),
        GDAL,
    )
    frame = MosaicFrame(session.sql("SELECT * FROM neighbourhoods"), context).set_geometry_column("geometry")
    analyzer = MosaicAnalyzer(frame)
    print(f"   Optimal: {analyzer.get_optimal_resolution(1.0)}")
    print(analyzer.get_resolution_metrics(SampleStrategy(sample_rows=100)).to_string(index=False))

    session.close()

    print("\n" + "=" * 60)
    print("  Fertig!")
    print("=" * 60)


if __name__ == "__main__":
    main()
