"""
Custom regular grid index system.

Configured with a string of the form

    CUSTOM(xmin,xmax,ymin,ymax,splits,root_cell_size_x,root_cell_size_y[,srid])

Resolution 0 divides the bounds into root cells; every further resolution
splits each cell into ``splits`` x ``splits`` children, so the cell size at
resolution r is ``root_cell_size / splits**r``.

Cell ids carry the resolution in the top byte and the row-major cell
position below it.
"""

import re
from dataclasses import dataclass
from typing import Optional, Tuple

from .index_system import RegularGridIndexSystem


MAX_CUSTOM_RESOLUTION = 20

_RESOLUTION_SHIFT = 56
_POSITION_MASK = (1 << _RESOLUTION_SHIFT) - 1

_NUMBER = r"\s*(-?\d+(?:\.\d+)?)\s*"
_INTEGER = r"\s*(\d+)\s*"
_CUSTOM_PATTERN = re.compile(
    r"^CUSTOM\("
    + ",".join([_NUMBER] * 4 + [_INTEGER] + [_NUMBER] * 2)
    + r"(?:," + _INTEGER + r")?\)$"
)


@dataclass(frozen=True)
class GridConf:
    """Parameters of a custom grid."""

    x_min: float
    x_max: float
    y_min: float
    y_max: float
    splits: int
    root_cell_size_x: float
    root_cell_size_y: float
    srid: Optional[int] = None

    @classmethod
    def parse(cls, value: str) -> "GridConf":
        """Parse a ``CUSTOM(...)`` string.

        Raises:
            ValueError: If the string is malformed or the parameters are invalid
        """
        match = _CUSTOM_PATTERN.match(value.strip())
        if not match:
            raise ValueError(
                f"Invalid custom index system {value!r}; expected "
                "CUSTOM(xmin,xmax,ymin,ymax,splits,root_cell_size_x,root_cell_size_y[,srid])"
            )
        x_min, x_max, y_min, y_max, splits, root_x, root_y, srid = match.groups()
        conf = cls(
            x_min=float(x_min),
            x_max=float(x_max),
            y_min=float(y_min),
            y_max=float(y_max),
            splits=int(splits),
            root_cell_size_x=float(root_x),
            root_cell_size_y=float(root_y),
            srid=int(srid) if srid is not None else None,
        )
        conf.validate()
        return conf

    def validate(self) -> None:
        if self.x_min >= self.x_max or self.y_min >= self.y_max:
            raise ValueError(f"Invalid custom grid bounds: {self}")
        if self.splits < 2:
            raise ValueError(f"Custom grid splits must be >= 2, got {self.splits}")
        if self.root_cell_size_x <= 0 or self.root_cell_size_y <= 0:
            raise ValueError(f"Custom grid root cell sizes must be positive: {self}")


class CustomIndexSystem(RegularGridIndexSystem):
    """Regular grid over user supplied bounds."""

    name = "CUSTOM"

    def __init__(self, conf: GridConf):
        self.conf = conf
        self.crs = conf.srid
        self.x_min = conf.x_min
        self.x_max = conf.x_max
        self.y_min = conf.y_min
        self.y_max = conf.y_max
        self._max_resolution = self._compute_max_resolution()

    def __repr__(self) -> str:
        c = self.conf
        return (f"CustomIndexSystem(CUSTOM({c.x_min:g},{c.x_max:g},{c.y_min:g},{c.y_max:g},"
                f"{c.splits},{c.root_cell_size_x:g},{c.root_cell_size_y:g}))")

    def _compute_max_resolution(self) -> int:
        # Finest resolution whose cell positions still fit below the resolution byte
        resolution = 0
        while resolution < MAX_CUSTOM_RESOLUTION:
            cols, rows = self.grid_shape(resolution + 1)
            if cols * rows > _POSITION_MASK:
                break
            resolution += 1
        return resolution

    @property
    def resolutions(self) -> range:
        return range(0, self._max_resolution + 1)

    def cell_size(self, resolution: int) -> Tuple[float, float]:
        factor = self.conf.splits ** resolution
        return self.conf.root_cell_size_x / factor, self.conf.root_cell_size_y / factor

    def encode(self, resolution: int, col: int, row: int) -> int:
        cols, _ = self.grid_shape(resolution)
        return (resolution << _RESOLUTION_SHIFT) | (row * cols + col)

    def decode(self, index_id: int) -> Tuple[int, int, int]:
        index_id = int(index_id)
        resolution = index_id >> _RESOLUTION_SHIFT
        if resolution not in self.resolutions:
            raise ValueError(f"Invalid {self.name} cell id: {index_id}")
        cols, rows = self.grid_shape(resolution)
        row, col = divmod(index_id & _POSITION_MASK, cols)
        if row >= rows:
            raise ValueError(f"Invalid {self.name} cell id: {index_id}")
        return resolution, col, row
