# hexgrid.py - offset hex layout math (odd rows shifted right) and helpers
from __future__ import annotations
import math
from typing import Iterator, Tuple

GridIndex = Tuple[int, int]            # (row, col)
WorldPosition = Tuple[float, float, float]

# Vertical distance between row centres as a fraction of the tile length
ROW_COMPRESSION = 0.75

# Neighbour deltas (drow, dcol) for even and odd rows of an odd-r layout
_EVEN_ROW_DELTAS = ((0, +1), (-1, 0), (-1, -1), (0, -1), (+1, -1), (+1, 0))
_ODD_ROW_DELTAS = ((0, +1), (-1, +1), (-1, 0), (0, -1), (+1, 0), (+1, +1))


def grid_origin(width: int, height: int, tile_width: float, tile_length: float) -> WorldPosition:
    """World position of tile (0, 0) so the whole grid is centred on the origin."""
    x = -tile_width * width / 2.0 + tile_width / 2.0
    z = height / 2.0 * tile_length - tile_length / 2.0
    return x, 0.0, z


def offset_to_world(row: int, col: int, width: int, height: int,
                    tile_width: float, tile_length: float) -> WorldPosition:
    """Grid index -> world (x, y, z).  ``y`` is left at 0 for the caller."""
    ox, _, oz = grid_origin(width, height, tile_width, tile_length)
    shift = tile_width / 2.0 if row % 2 != 0 else 0.0
    x = ox + shift + col * tile_width
    z = oz - row * tile_length * ROW_COMPRESSION
    return x, 0.0, z


def world_to_offset(x: float, z: float, width: int, height: int,
                    tile_width: float, tile_length: float) -> GridIndex:
    """World (x, z) -> nearest grid index along rows, then columns.

    Exact for tile centres; the result may lie outside the grid and should
    be checked with :func:`in_bounds` by callers that need a real tile.
    """
    ox, _, oz = grid_origin(width, height, tile_width, tile_length)
    row = int(round((oz - z) / (tile_length * ROW_COMPRESSION)))
    shift = tile_width / 2.0 if row % 2 != 0 else 0.0
    col = int(round((x - ox - shift) / tile_width))
    return row, col


def neighbors_offset(row: int, col: int) -> Iterator[GridIndex]:
    """The six neighbours of (row, col); bounds are not checked."""
    deltas = _ODD_ROW_DELTAS if row % 2 != 0 else _EVEN_ROW_DELTAS
    for dr, dc in deltas:
        yield row + dr, col + dc


def in_bounds(row: int, col: int, width: int, height: int) -> bool:
    return 0 <= row < height and 0 <= col < width


def idx(row: int, col: int, width: int) -> int:
    return row * width + col


def offset_to_axial(row: int, col: int) -> Tuple[int, int]:
    """Convert odd-r offset coordinates to axial (q, r)."""
    q = col - (row - (row & 1)) // 2
    return q, row


def axial_to_offset(q: int, r: int) -> GridIndex:
    """Convert axial (q, r) back to odd-r offset (row, col)."""
    col = q + (r - (r & 1)) // 2
    return r, col


def distance(a: GridIndex, b: GridIndex) -> int:
    """Hex step distance between two grid indices."""
    q1, r1 = offset_to_axial(*a)
    q2, r2 = offset_to_axial(*b)
    return (abs(q1 - q2) + abs(q1 + r1 - q2 - r2) + abs(r1 - r2)) // 2


def hex_corners(cx: float, cz: float, tile_width: float) -> list[Tuple[float, float]]:
    """Corner points of a pointy-top hex centred at (cx, cz)."""
    radius = tile_width / math.sqrt(3.0)
    points = []
    for i in range(6):
        angle = math.radians(60 * i - 30)
        points.append((cx + radius * math.cos(angle), cz + radius * math.sin(angle)))
    return points
