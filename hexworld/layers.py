# layers.py - full-grid scalar layers sampled from noise fields
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable

import numpy as np

from .errors import ConfigurationError
from .noise import NoiseField

logger = logging.getLogger(__name__)

# Latitude bands for the heat layer: (max distance from the centre line, temperature)
HEAT_BANDS = (
    (0.3, 1.0),
    (0.5, 0.6),
    (0.7, 0.4),
    (0.8, 0.2),
)
POLAR_TEMPERATURE = 0.0


@dataclass(frozen=True, eq=False)
class MapLayer:
    """A read-only ``(height, width)`` grid of float32 samples."""

    values: np.ndarray

    def __post_init__(self) -> None:
        arr = np.array(self.values, dtype=np.float32)
        if arr.ndim != 2:
            raise ConfigurationError(f"layer values must be 2D, got shape {arr.shape}")
        arr.setflags(write=False)
        object.__setattr__(self, "values", arr)

    @property
    def height(self) -> int:
        return int(self.values.shape[0])

    @property
    def width(self) -> int:
        return int(self.values.shape[1])

    @property
    def shape(self) -> tuple[int, int]:
        return self.height, self.width

    def value_at(self, row: int, col: int) -> float:
        return float(self.values[row, col])

    def remapped(self, fn: Callable[[np.ndarray], np.ndarray]) -> "MapLayer":
        """New layer with ``fn`` applied to a copy of the values."""
        return MapLayer(fn(self.values.astype(np.float32, copy=True)))

    def to_unit(self, field: NoiseField) -> "MapLayer":
        """Grayscale copy in ``[0, 1]`` using the remap rule of ``field``."""
        if field.signed:
            return self.remapped(lambda v: np.clip((v + np.float32(1.0)) * np.float32(0.5), 0.0, 1.0))
        return self.remapped(lambda v: np.clip(v, 0.0, 1.0))

    def min(self) -> float:
        return float(self.values.min())

    def max(self) -> float:
        return float(self.values.max())

    def mean(self) -> float:
        return float(self.values.mean())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MapLayer):
            return NotImplemented
        return self.values.shape == other.values.shape and bool(np.array_equal(self.values, other.values))

    __hash__ = None  # type: ignore[assignment]


def _check_dims(width: int, height: int) -> None:
    # Sampling divides by (width - 1) and (height - 1)
    if width <= 1 or height <= 1:
        raise ConfigurationError(f"grid must be at least 2x2 (got {width}x{height})")


def _fill(width: int, height: int, row_fn: Callable[[int], np.ndarray], workers: int) -> np.ndarray:
    out = np.empty((height, width), dtype=np.float32)
    if workers <= 1:
        for r in range(height):
            out[r, :] = row_fn(r)
        return out
    # Every row lands in its own slot, so scheduling order cannot change the result
    with ThreadPoolExecutor(max_workers=workers) as ex:
        for r, row in zip(range(height), ex.map(row_fn, range(height))):
            out[r, :] = row
    return out


def build_layer(field: NoiseField, width: int, height: int, workers: int = 1) -> MapLayer:
    """Sample ``field`` once per cell: ``values[r, c] = sample(c/(w-1), r/(h-1))``."""
    _check_dims(width, height)
    dx = width - 1.0
    dy = height - 1.0

    def row_fn(r: int) -> np.ndarray:
        fy = r / dy
        return np.array([field.sample(c / dx, fy) for c in range(width)], dtype=np.float32)

    logger.debug("Building %dx%d %s layer (seed=%d)", width, height, field.variant.value, field.seed)
    return MapLayer(_fill(width, height, row_fn, workers))


def build_derived_layer(field: NoiseField, width: int, height: int, modifier: MapLayer,
                        workers: int = 1) -> MapLayer:
    """Like :func:`build_layer`, but the row coordinate is warped by ``modifier``.

    ``fy = r / ((height - 1) + modifier[r, c])``, which correlates the new
    layer with the modifier (e.g. vegetation density with temperature).  A
    modifier of all zeros reproduces :func:`build_layer` exactly.
    """
    _check_dims(width, height)
    if modifier.shape != (height, width):
        raise ConfigurationError(
            f"modifier layer shape {modifier.shape} != {(height, width)}")
    dx = width - 1.0
    base = height - 1.0
    mod = modifier.values

    def row_fn(r: int) -> np.ndarray:
        out = np.empty(width, dtype=np.float32)
        for c in range(width):
            denom = base + float(mod[r, c])
            fy = r / denom if denom != 0.0 else 0.0
            out[c] = field.sample(c / dx, fy)
        return out

    logger.debug("Building derived %dx%d %s layer", width, height, field.variant.value)
    return MapLayer(_fill(width, height, row_fn, workers))


def heat_at(row: int, height: int) -> float:
    """Banded temperature for a row: hottest at the centre line, 0 at the poles."""
    ny = row / float(height)
    dist = abs(ny - 0.5) * 2.0
    for limit, temp in HEAT_BANDS:
        if dist < limit:
            return temp
    return POLAR_TEMPERATURE


def build_heat_layer(width: int, height: int) -> MapLayer:
    """Latitude heat layer; deterministic and independent of the seed."""
    _check_dims(width, height)
    column = np.array([heat_at(r, height) for r in range(height)], dtype=np.float32)
    return MapLayer(np.repeat(column[:, None], width, axis=1))


__all__ = [
    "MapLayer",
    "build_layer",
    "build_derived_layer",
    "build_heat_layer",
    "heat_at",
    "HEAT_BANDS",
]
