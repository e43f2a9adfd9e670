"""
Index resolution analysis.

Picks an index resolution for a set of geometries by comparing their areas
with the average cell area of each resolution. As a rule of thumb it is
better to under index than over index: when unsure, pick the coarser
resolution.

Verwendung:
    frame = MosaicFrame(session.sql("SELECT * FROM neighbourhoods"), ctx)
    frame.set_geometry_column("geometry")

    analyzer = MosaicAnalyzer(frame)
    analyzer.get_optimal_resolution(0.5)
    analyzer.get_resolution_metrics(SampleStrategy(sample_rows=1000))
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Union

import duckdb
import numpy as np
import pandas as pd
from shapely.geometry.base import BaseGeometry

from .engine.context import MosaicContext
from .errors import MosaicError


@dataclass
class SampleStrategy:
    """Which rows of a frame are analysed.

    sample_rows takes precedence over sample_fraction; with neither set all
    rows are used.
    """

    sample_fraction: Optional[float] = None
    sample_rows: Optional[int] = None
    seed: int = 42

    def apply(self, df: pd.DataFrame) -> pd.DataFrame:
        if self.sample_rows is not None:
            return df.head(self.sample_rows)
        if self.sample_fraction is not None:
            if not 0 < self.sample_fraction <= 1:
                raise ValueError(f"sample_fraction must be in (0, 1], got {self.sample_fraction}")
            if df.empty:
                return df
            # Small frames keep at least one row
            n = max(1, round(len(df) * self.sample_fraction))
            return df.sample(n=n, random_state=self.seed)
        return df


class MosaicFrame:
    """A relation (or DataFrame) with a designated geometry column."""

    def __init__(self, data: Union[duckdb.DuckDBPyRelation, pd.DataFrame], context: MosaicContext):
        self.data = data
        self.context = context
        self.geometry_column: Optional[str] = None

    def set_geometry_column(self, name: str) -> "MosaicFrame":
        columns = self.data.columns
        if name not in list(columns):
            raise ValueError(f"Column {name!r} not found; available: {list(columns)}")
        self.geometry_column = name
        return self

    def to_pandas(self) -> pd.DataFrame:
        if isinstance(self.data, pd.DataFrame):
            return self.data
        return self.data.df()

    def geometries(self, strategy: Optional[SampleStrategy] = None) -> List[BaseGeometry]:
        """Sampled, non-null geometries read through the context's geometry API."""
        if self.geometry_column is None:
            raise MosaicError("Geometry column not set, call set_geometry_column() first")
        df = (strategy or SampleStrategy()).apply(self.to_pandas())
        read = self.context.geometry_api.geometry
        return [read(value) for value in df[self.geometry_column] if value is not None]


class MosaicAnalyzer:
    """Resolution metrics for a MosaicFrame."""

    def __init__(self, frame: MosaicFrame):
        self.frame = frame
        self.index_system = frame.context.index_system

    def _areas(self, strategy: SampleStrategy) -> np.ndarray:
        areas = np.array([self.index_system.area(g) for g in self.frame.geometries(strategy)], dtype=float)
        areas = areas[areas > 0]
        if areas.size == 0:
            raise MosaicError("No geometries with a positive area to analyse")
        return areas

    def get_resolution_metrics(self, strategy: Optional[SampleStrategy] = None) -> pd.DataFrame:
        """
        Cells per geometry for every resolution of the index system.

        Returns:
            DataFrame with columns resolution, cell_area, mean_cells,
            percentile_25_cells, percentile_50_cells, percentile_75_cells
        """
        areas = self._areas(strategy or SampleStrategy())
        rows = []
        for resolution in self.index_system.resolutions:
            cell_area = self.index_system.cell_area(resolution)
            cells = areas / cell_area
            rows.append({
                "resolution": resolution,
                "cell_area": cell_area,
                "mean_cells": float(cells.mean()),
                "percentile_25_cells": float(np.percentile(cells, 25)),
                "percentile_50_cells": float(np.percentile(cells, 50)),
                "percentile_75_cells": float(np.percentile(cells, 75)),
            })
        return pd.DataFrame(rows)

    def get_optimal_resolution(self, sample_fraction: float = 1.0) -> int:
        """
        Resolution whose cell area is closest (log scale) to the median
        geometry area. Ties go to the coarser resolution.
        """
        areas = self._areas(SampleStrategy(sample_fraction=sample_fraction))
        target = math.log(float(np.median(areas)))

        best_resolution = None
        best_distance = math.inf
        for resolution in self.index_system.resolutions:
            distance = abs(math.log(self.index_system.cell_area(resolution)) - target)
            if distance < best_distance:
                best_resolution = resolution
                best_distance = distance
        return best_resolution
