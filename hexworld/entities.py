"""Entity categories, types and the placeable Entity record.

Surface types:
  Grass, Sand, Water
Vegetation types:
  Bush
Quercus (oak, maple and other broadleaf trees):
  MapleTree
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Set

from .hexgrid import GridIndex, WorldPosition


class EntityCategory(Enum):
    SURFACE = "surface"
    VEGETATION = "vegetation"
    QUERCUS = "quercus"


class EntityType(Enum):
    GRASS = "grass"
    SAND = "sand"
    WATER = "water"
    BUSH = "bush"
    MAPLE_TREE = "maple_tree"

    @property
    def category(self) -> EntityCategory:
        return ENTITY_CATEGORIES[self]


ENTITY_CATEGORIES = {
    EntityType.GRASS: EntityCategory.SURFACE,
    EntityType.SAND: EntityCategory.SURFACE,
    EntityType.WATER: EntityCategory.SURFACE,
    EntityType.BUSH: EntityCategory.VEGETATION,
    EntityType.MAPLE_TREE: EntityCategory.QUERCUS,
}


@dataclass(eq=False)
class Entity:
    """
    A classified, positioned unit of the generated world.

    Entities compare by identity: the pool tracks instances, not values.

    Attributes:
      entity_id: Sequence number assigned by the allocating pool.
      type: Specific kind (grass, sand, ...). ``category`` follows from it
        unless reclassified explicitly.
      grid_index: (row, col) of the owning cell while live, else None.
      world_position: (x, y, z); y carries the elevation offset.
      neighbors: Grid indices of occupied adjacent cells.
      active: True while handed out by the pool.
      scale_y: Vertical scale (tall tiles 2.0, otherwise 1.0 + jitter).
      ground: For vegetation, the surface entity it stands on.
    """

    entity_id: int
    type: EntityType
    category: EntityCategory = None  # type: ignore[assignment]
    grid_index: Optional[GridIndex] = None
    world_position: WorldPosition = (0.0, 0.0, 0.0)
    neighbors: Set[GridIndex] = field(default_factory=set)
    active: bool = False
    scale_y: float = 1.0
    ground: Optional["Entity"] = None

    def __post_init__(self) -> None:
        if not isinstance(self.type, EntityType):
            raise TypeError(f"type must be an EntityType, not {type(self.type)}")
        if self.category is None:
            self.category = self.type.category

    def reclassify(self, category: EntityCategory, type_: EntityType) -> None:
        """Change kind in place; the pool files the entity under its new type on release."""
        self.category = category
        self.type = type_

    def reset(self) -> None:
        """Clear per-run fields before the entity goes back to a pool bucket."""
        self.active = False
        self.grid_index = None
        self.neighbors = set()
        self.world_position = (0.0, 0.0, 0.0)
        self.scale_y = 1.0
        self.ground = None

    @property
    def is_vegetation(self) -> bool:
        return self.category is not EntityCategory.SURFACE

    def __repr__(self) -> str:
        base = f"Entity(#{self.entity_id}, {self.category.value}/{self.type.value}"
        if self.grid_index is not None:
            base += f", at={self.grid_index}"
        if not self.active:
            base += ", pooled"
        return base + ")"

    def to_json(self) -> dict:
        return {
            "id": self.entity_id,
            "category": self.category.value,
            "type": self.type.value,
            "grid_index": list(self.grid_index) if self.grid_index is not None else None,
            "world_position": [float(v) for v in self.world_position],
            "neighbors": sorted([list(n) for n in self.neighbors]),
            "scale_y": float(self.scale_y),
        }


__all__ = ["Entity", "EntityCategory", "EntityType", "ENTITY_CATEGORIES"]
