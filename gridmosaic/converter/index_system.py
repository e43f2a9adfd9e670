"""
Index system base classes.

An index system assigns integer cell ids to regions of space at a set of
resolutions. Concrete systems:

  - H3IndexSystem:     hexagonal global grid (h3 library), EPSG:4326
  - BNGIndexSystem:    British National Grid, EPSG:27700
  - CustomIndexSystem: regular grid over user supplied bounds

Coordinates are always (x, y) = (lng, lat) / (easting, northing).
"""

import math
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

import numpy as np
import shapely
from shapely.geometry import Polygon, box
from shapely.geometry.base import BaseGeometry


class IndexSystem(ABC):
    """Abstract index system."""

    name: str = ""

    #: EPSG code of the coordinates the grid is defined in (None = unknown)
    crs: Optional[int] = None

    @property
    @abstractmethod
    def resolutions(self) -> Sequence[int]:
        """Supported resolutions, coarse to fine."""

    def get_resolution(self, resolution) -> int:
        """Validate a resolution and return it as int.

        Raises:
            ValueError: If the resolution is not supported by this system
        """
        try:
            value = int(resolution)
        except (TypeError, ValueError):
            raise ValueError(
                f"{self.name} resolution {resolution!r} is not an integer"
            ) from None
        if value not in self.resolutions:
            raise ValueError(
                f"{self.name} resolution {value} not supported; "
                f"valid resolutions: {self.resolutions[0]}..{self.resolutions[-1]}"
            )
        return value

    def is_valid_point(self, x: float, y: float) -> bool:
        """True if (x, y) falls inside the grid extent."""
        return True

    @abstractmethod
    def point_to_index(self, x: float, y: float, resolution: int) -> int:
        """Cell id containing the point (x, y)."""

    @abstractmethod
    def index_to_geometry(self, index_id: int) -> Polygon:
        """Cell boundary as a shapely Polygon."""

    @abstractmethod
    def index_resolution(self, index_id: int) -> int:
        """Resolution encoded in a cell id."""

    @abstractmethod
    def k_ring(self, index_id: int, k: int) -> List[int]:
        """All cells within grid distance k of index_id (including itself)."""

    @abstractmethod
    def polyfill(self, geometry: BaseGeometry, resolution: int) -> List[int]:
        """Cells whose centre lies inside the geometry."""

    @abstractmethod
    def buffer_radius(self, geometry: BaseGeometry, resolution: int) -> float:
        """Carving radius: any cell intersecting the geometry has its centre
        within this distance of the geometry."""

    @abstractmethod
    def cell_area(self, resolution: int) -> float:
        """Average cell area at a resolution (same unit as area())."""

    def area(self, geometry: BaseGeometry) -> float:
        """Area of a geometry in the unit used by cell_area()."""
        return geometry.area

    def format(self, index_id: int) -> str:
        """String representation of a cell id."""
        return str(index_id)

    def parse(self, value: str) -> int:
        """Inverse of format()."""
        return int(value)


class RegularGridIndexSystem(IndexSystem):
    """Rectangular grid with a fixed origin and a cell size per resolution.

    Subclasses define the extent, the cell size and the id encoding.
    """

    x_min: float
    y_min: float
    x_max: float
    y_max: float

    @abstractmethod
    def cell_size(self, resolution: int) -> Tuple[float, float]:
        """(width, height) of a cell at a resolution."""

    @abstractmethod
    def encode(self, resolution: int, col: int, row: int) -> int:
        """Cell id for column/row at a resolution."""

    @abstractmethod
    def decode(self, index_id: int) -> Tuple[int, int, int]:
        """(resolution, col, row) of a cell id."""

    def grid_shape(self, resolution: int) -> Tuple[int, int]:
        """(number of columns, number of rows) at a resolution."""
        width, height = self.cell_size(resolution)
        cols = int(math.ceil(round((self.x_max - self.x_min) / width, 9)))
        rows = int(math.ceil(round((self.y_max - self.y_min) / height, 9)))
        return cols, rows

    def index_resolution(self, index_id: int) -> int:
        return self.decode(index_id)[0]

    def is_valid_point(self, x: float, y: float) -> bool:
        return self.x_min <= x <= self.x_max and self.y_min <= y <= self.y_max

    def point_to_index(self, x: float, y: float, resolution: int) -> int:
        resolution = self.get_resolution(resolution)
        if not self.is_valid_point(x, y):
            raise ValueError(
                f"Point ({x}, {y}) outside of {self.name} extent "
                f"({self.x_min}, {self.y_min}, {self.x_max}, {self.y_max})"
            )
        width, height = self.cell_size(resolution)
        cols, rows = self.grid_shape(resolution)
        # Points on the upper edges belong to the last column/row
        col = min(int((x - self.x_min) // width), cols - 1)
        row = min(int((y - self.y_min) // height), rows - 1)
        return self.encode(resolution, col, row)

    def index_to_geometry(self, index_id: int) -> Polygon:
        resolution, col, row = self.decode(index_id)
        width, height = self.cell_size(resolution)
        x0 = self.x_min + col * width
        y0 = self.y_min + row * height
        return box(x0, y0, x0 + width, y0 + height)

    def k_ring(self, index_id: int, k: int) -> List[int]:
        resolution, col, row = self.decode(index_id)
        cols, rows = self.grid_shape(resolution)
        cells = []
        for r in range(max(row - k, 0), min(row + k, rows - 1) + 1):
            for c in range(max(col - k, 0), min(col + k, cols - 1) + 1):
                cells.append(self.encode(resolution, c, r))
        return cells

    def polyfill(self, geometry: BaseGeometry, resolution: int) -> List[int]:
        resolution = self.get_resolution(resolution)
        if geometry.is_empty:
            return []
        width, height = self.cell_size(resolution)
        cols, rows = self.grid_shape(resolution)

        # Restrict to the cells under the geometry's bounding box
        gx_min, gy_min, gx_max, gy_max = geometry.bounds
        c0 = max(int((gx_min - self.x_min) // width), 0)
        c1 = min(int((gx_max - self.x_min) // width), cols - 1)
        r0 = max(int((gy_min - self.y_min) // height), 0)
        r1 = min(int((gy_max - self.y_min) // height), rows - 1)
        if c0 > c1 or r0 > r1:
            return []

        col_idx, row_idx = np.meshgrid(np.arange(c0, c1 + 1), np.arange(r0, r1 + 1))
        col_idx = col_idx.ravel()
        row_idx = row_idx.ravel()
        xs = self.x_min + (col_idx + 0.5) * width
        ys = self.y_min + (row_idx + 0.5) * height

        inside = shapely.contains_xy(geometry, xs, ys)
        return [
            self.encode(resolution, int(c), int(r))
            for c, r in zip(col_idx[inside], row_idx[inside])
        ]

    def buffer_radius(self, geometry: BaseGeometry, resolution: int) -> float:
        # Half the cell diagonal plus a small margin for points on cell edges
        width, height = self.cell_size(self.get_resolution(resolution))
        return math.hypot(width, height) / 2 * 1.01

    def cell_area(self, resolution: int) -> float:
        width, height = self.cell_size(self.get_resolution(resolution))
        return width * height
