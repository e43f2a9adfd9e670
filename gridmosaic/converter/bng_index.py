"""
British National Grid (BNG) index system.

Cells are the OS grid squares at 100km, 10km, 1km, 100m, 10m and 1m, i.e.
resolutions 1..6. Coordinates are eastings/northings in EPSG:27700.

Cell ids pack the resolution and the easting/northing cell position:

    id = resolution * 10^14 + easting_index * 10^7 + northing_index

The string form is the letter grid reference, e.g. ``TQ3415`` for the 1km
square with south-west corner (534000, 115000).
"""

import re
from typing import Tuple

from .index_system import RegularGridIndexSystem


# Named resolutions accepted in addition to 1..6
BNG_RESOLUTION_NAMES: dict[str, int] = {
    "100km": 1,
    "10km": 2,
    "1km": 3,
    "100m": 4,
    "10m": 5,
    "1m": 6,
}

_GRID_REFERENCE = re.compile(r"^([A-HJ-Z]{2})(\d*)$")


def _square_letters(easting: float, northing: float) -> str:
    """Two-letter 100km square for a coordinate inside the grid."""
    e100k = int(easting // 100_000)
    n100k = int(northing // 100_000)

    l1 = (19 - n100k) - (19 - n100k) % 5 + (e100k + 10) // 5
    l2 = (19 - n100k) * 5 % 25 + e100k % 5

    # The letter I is not used
    if l1 > 7:
        l1 += 1
    if l2 > 7:
        l2 += 1
    return chr(l1 + ord("A")) + chr(l2 + ord("A"))


def _square_origin(letters: str) -> Tuple[int, int]:
    """South-west corner (easting, northing) of a 100km square."""
    l1 = ord(letters[0]) - ord("A")
    l2 = ord(letters[1]) - ord("A")
    if l1 > 7:
        l1 -= 1
    if l2 > 7:
        l2 -= 1

    e100k = ((l1 - 2) % 5) * 5 + (l2 % 5)
    n100k = (19 - (l1 // 5) * 5) - (l2 // 5)
    return e100k * 100_000, n100k * 100_000


class BNGIndexSystem(RegularGridIndexSystem):
    """British National Grid."""

    name = "BNG"
    crs = 27700

    x_min = 0.0
    y_min = 0.0
    x_max = 700_000.0
    y_max = 1_300_000.0

    @property
    def resolutions(self) -> range:
        return range(1, 7)

    def get_resolution(self, resolution) -> int:
        if isinstance(resolution, str) and resolution.lower() in BNG_RESOLUTION_NAMES:
            return BNG_RESOLUTION_NAMES[resolution.lower()]
        return super().get_resolution(resolution)

    def cell_size(self, resolution: int) -> Tuple[float, float]:
        size = 10.0 ** (6 - resolution)
        return size, size

    def encode(self, resolution: int, col: int, row: int) -> int:
        return resolution * 10**14 + col * 10**7 + row

    def decode(self, index_id: int) -> Tuple[int, int, int]:
        resolution, rest = divmod(int(index_id), 10**14)
        col, row = divmod(rest, 10**7)
        if resolution not in self.resolutions:
            raise ValueError(f"Invalid BNG cell id: {index_id}")
        return resolution, col, row

    def format(self, index_id: int) -> str:
        resolution, col, row = self.decode(index_id)
        size = int(self.cell_size(resolution)[0])
        easting = col * size
        northing = row * size

        letters = _square_letters(easting, northing)
        digits = resolution - 1
        if digits == 0:
            return letters
        e_part = (easting % 100_000) // size
        n_part = (northing % 100_000) // size
        return f"{letters}{e_part:0{digits}d}{n_part:0{digits}d}"

    def parse(self, value: str) -> int:
        reference = value.replace(" ", "").upper()
        match = _GRID_REFERENCE.match(reference)
        if not match or len(match.group(2)) % 2 or len(match.group(2)) > 10:
            raise ValueError(f"Invalid BNG grid reference: {value!r}")

        letters, numbers = match.groups()
        digits = len(numbers) // 2
        resolution = digits + 1
        size = int(self.cell_size(resolution)[0])

        e0, n0 = _square_origin(letters)
        if not (0 <= e0 < self.x_max and 0 <= n0 < self.y_max):
            raise ValueError(f"Grid square {letters} outside of the national grid")

        easting = e0 + (int(numbers[:digits]) * size if digits else 0)
        northing = n0 + (int(numbers[digits:]) * size if digits else 0)
        return self.encode(resolution, easting // size, northing // size)


BNG = BNGIndexSystem()
