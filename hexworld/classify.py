# classify.py - threshold rules turning layer samples into entity decisions
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

import numpy as np

from .entities import EntityCategory, EntityType
from .errors import ConfigurationError
from .hexgrid import GridIndex
from .layers import MapLayer

# Vertical scale for cells at the very top of the elevation range
TALL_SCALE = 2.0

# Height of a vegetation entity above the surface tile it stands on
VEGETATION_OFFSETS: Dict[EntityType, float] = {
    EntityType.MAPLE_TREE: 1.25,
    EntityType.BUSH: 2.1,
}

_ONE = np.float32(1.0)


class VegetationMode(Enum):
    """Which vegetation entity the vegetation pass places."""

    BUSH = "bush"
    MAPLE_TREE = "maple_tree"

    @property
    def entity_type(self) -> EntityType:
        return EntityType.BUSH if self is VegetationMode.BUSH else EntityType.MAPLE_TREE

    @classmethod
    def from_name(cls, name: "str | VegetationMode") -> "VegetationMode":
        if isinstance(name, VegetationMode):
            return name
        key = str(name).strip().lower().replace("-", "_")
        for m in cls:
            if m.value == key or m.name.lower() == key:
                return m
        valid = ", ".join(m.value for m in cls)
        raise ConfigurationError(f"Unknown vegetation mode {name!r}. Valid values: {valid}")


@dataclass(frozen=True)
class ClassifierRules:
    water_elevation: float
    sand_level_min: float
    sand_level_max: float
    elevation_step: float
    vegetation_threshold: float
    placement_threshold: float
    vegetation_mode: VegetationMode = VegetationMode.MAPLE_TREE
    height_jitter: float = 0.0

    def __post_init__(self) -> None:
        if self.sand_level_min > self.sand_level_max:
            raise ConfigurationError(
                f"sand_level_min {self.sand_level_min} > sand_level_max {self.sand_level_max}")
        object.__setattr__(self, "vegetation_mode", VegetationMode.from_name(self.vegetation_mode))

    @classmethod
    def from_config(cls, config) -> "ClassifierRules":
        return cls(
            water_elevation=config.water_elevation,
            sand_level_min=config.sand_level_min,
            sand_level_max=config.sand_level_max,
            elevation_step=config.elevation_step,
            vegetation_threshold=config.vegetation_threshold,
            placement_threshold=config.placement_threshold,
            vegetation_mode=config.vegetation_mode,
            height_jitter=config.height_jitter,
        )


@dataclass(frozen=True)
class CellDecision:
    """Outcome of classifying one cell; no entity objects involved.

    ``category``/``type`` are the cell's final kind (vegetation when the
    vegetation pass placed something, otherwise the surface).  The surface
    beneath is always recorded in ``surface_type`` and ``surface_y``.
    """

    row: int
    col: int
    category: EntityCategory
    type: EntityType
    surface_type: EntityType
    elevation: float
    surface_y: float
    scale_y: float = 1.0
    tall: bool = False
    vegetation_y: Optional[float] = None

    @property
    def grid_index(self) -> GridIndex:
        return self.row, self.col

    @property
    def has_vegetation(self) -> bool:
        return self.vegetation_y is not None


class DecisionGrid:
    """Row-major ``height x width`` grid of :class:`CellDecision`."""

    def __init__(self, cells: List[List[CellDecision]]):
        self._cells = cells

    @property
    def height(self) -> int:
        return len(self._cells)

    @property
    def width(self) -> int:
        return len(self._cells[0]) if self._cells else 0

    def at(self, row: int, col: int) -> CellDecision:
        return self._cells[row][col]

    def __iter__(self) -> Iterator[CellDecision]:
        for row in self._cells:
            yield from row

    def __len__(self) -> int:
        return self.height * self.width

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DecisionGrid):
            return NotImplemented
        return self._cells == other._cells

    __hash__ = None  # type: ignore[assignment]

    def types(self) -> List[List[EntityType]]:
        return [[d.type for d in row] for row in self._cells]

    def type_counts(self) -> Counter:
        """Cells per final type."""
        return Counter(d.type for d in self)

    def entity_counts(self) -> Counter:
        """Entities needed to place this grid: one surface per cell plus vegetation."""
        counts: Counter = Counter(d.surface_type for d in self)
        counts.update(d.type for d in self if d.has_vegetation)
        return counts


class WorldClassifier:
    """Applies the surface and vegetation rules to every cell.

    Surface rules, first match wins:
      1. elevation == 1.0 -> tall (scale only, type unchanged)
      2. elevation <  water_elevation              -> WATER
      3. sand_level_min <= elevation <= sand_level_max -> SAND
      4. otherwise                                 -> GRASS
    The vegetation pass runs after the surface is final and only on grass.
    Comparisons happen in float32 so thresholds match stored samples exactly.
    """

    def __init__(self, rules: ClassifierRules):
        self.rules = rules
        self._water = np.float32(rules.water_elevation)
        self._sand_min = np.float32(rules.sand_level_min)
        self._sand_max = np.float32(rules.sand_level_max)
        self._veg_threshold = np.float32(rules.vegetation_threshold)

    def classify_surface(self, elevation: float) -> Tuple[EntityType, float]:
        """Surface type and tile y for a single elevation sample."""
        e = np.float32(elevation)
        if e < self._water:
            return EntityType.WATER, -self.rules.water_elevation
        if self._sand_min <= e <= self._sand_max:
            return EntityType.SAND, -self.rules.water_elevation
        return EntityType.GRASS, float(e) * self.rules.elevation_step

    def classify(self, elevation: MapLayer, vegetation: Optional[MapLayer] = None,
                 rng: Optional[np.random.Generator] = None) -> DecisionGrid:
        """Classify every cell of ``elevation`` (grayscale, ``[0, 1]``).

        Per-cell draws for vegetation placement and height jitter come from
        ``rng``; both arrays are drawn up front, so the result depends only
        on the layers and the generator state.  Without ``rng`` a generator
        seeded with 0 is used.
        """
        if vegetation is not None and vegetation.shape != elevation.shape:
            raise ConfigurationError(
                f"vegetation layer shape {vegetation.shape} != elevation shape {elevation.shape}")
        rules = self.rules
        if rng is None:
            rng = np.random.default_rng(0)
        H, W = elevation.shape
        placement = rng.random((H, W))
        jitter = rng.random((H, W)) * rules.height_jitter

        veg_type = rules.vegetation_mode.entity_type
        veg_offset = VEGETATION_OFFSETS[veg_type]
        elev = elevation.values
        veg = vegetation.values if vegetation is not None else None

        cells: List[List[CellDecision]] = []
        for r in range(H):
            row: List[CellDecision] = []
            for c in range(W):
                e = elev[r, c]
                tall = bool(e == _ONE)
                scale = TALL_SCALE if tall else 1.0 + float(jitter[r, c])
                surface, y = self.classify_surface(e)

                category, type_, veg_y = EntityCategory.SURFACE, surface, None
                if (veg is not None
                        and surface is EntityType.GRASS
                        and placement[r, c] > rules.placement_threshold
                        and veg[r, c] > self._veg_threshold):
                    category, type_ = veg_type.category, veg_type
                    veg_y = y + veg_offset

                row.append(CellDecision(
                    row=r, col=c, category=category, type=type_, surface_type=surface,
                    elevation=float(e), surface_y=y, scale_y=scale, tall=tall,
                    vegetation_y=veg_y,
                ))
            cells.append(row)
        return DecisionGrid(cells)


__all__ = [
    "CellDecision",
    "ClassifierRules",
    "DecisionGrid",
    "TALL_SCALE",
    "VEGETATION_OFFSETS",
    "VegetationMode",
    "WorldClassifier",
]
