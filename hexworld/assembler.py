# assembler.py - one-shot pipeline: layers -> decisions -> placed entities
from __future__ import annotations

import logging
import threading
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, FrozenSet, Iterator, List, Optional, Union

import numpy as np

from .classify import ClassifierRules, DecisionGrid, WorldClassifier
from .config import WorldConfig, check_seed
from .entities import Entity
from .errors import GenerationCancelled
from .hexgrid import GridIndex, in_bounds, neighbors_offset, offset_to_world
from .layers import MapLayer, build_derived_layer, build_heat_layer, build_layer
from .noise import NoiseField, NoiseVariant, derive_seed
from .pool import EntityPool

logger = logging.getLogger(__name__)

CancelToken = Union[threading.Event, Callable[[], bool], None]

# Salts for the secondary random streams derived from the world seed
_RAIN_SALT = 0x5241
_DRAW_SALT = 0x5645


class GenerationState(Enum):
    IDLE = "idle"
    BUILDING_LAYERS = "building_layers"
    CLASSIFYING = "classifying"
    PLACING = "placing"
    DONE = "done"


@dataclass
class WorldResult:
    """Everything one ``generate`` call produced."""

    seed: int
    config: WorldConfig
    elevation: MapLayer
    vegetation: MapLayer
    decisions: DecisionGrid
    entities: List[List[Entity]]
    adjacency: Dict[GridIndex, FrozenSet[GridIndex]]
    heat: Optional[MapLayer] = None
    rain: Optional[MapLayer] = None
    raw_elevation: Optional[MapLayer] = field(default=None, repr=False)

    @property
    def width(self) -> int:
        return self.config.width

    @property
    def height(self) -> int:
        return self.config.height

    def entity_at(self, row: int, col: int) -> Entity:
        """Top entity of a cell: the vegetation piece if any, else the surface tile."""
        return self.entities[row][col]

    def surface_at(self, row: int, col: int) -> Entity:
        ent = self.entities[row][col]
        return ent.ground if ent.ground is not None else ent

    def iter_entities(self) -> Iterator[Entity]:
        """Every live entity, surface tiles before the vegetation on them."""
        for row in self.entities:
            for ent in row:
                if ent.ground is not None:
                    yield ent.ground
                yield ent

    def layers(self) -> Dict[str, MapLayer]:
        out = {"elevation": self.elevation, "vegetation": self.vegetation}
        if self.heat is not None:
            out["heat"] = self.heat
        if self.rain is not None:
            out["rain"] = self.rain
        return out

    def type_counts(self) -> Counter:
        return Counter(e.type for e in self.iter_entities())

    def summary(self) -> dict:
        return {
            "seed": self.seed,
            "width": self.width,
            "height": self.height,
            "entities": sum(1 for _ in self.iter_entities()),
            "types": {t.value: n for t, n in sorted(self.type_counts().items(), key=lambda kv: kv[0].value)},
        }

    def to_dict(self) -> dict:
        cells = []
        for row in self.entities:
            for ent in row:
                item = ent.to_json()
                if ent.ground is not None:
                    item["ground"] = ent.ground.to_json()
                cells.append(item)
        return {"summary": self.summary(), "config": self.config.to_dict(), "cells": cells}


def _is_cancelled(cancel: CancelToken) -> bool:
    if cancel is None:
        return False
    if isinstance(cancel, threading.Event):
        return cancel.is_set()
    return bool(cancel())


def compute_adjacency(width: int, height: int,
                      occupied: Optional[Callable[[int, int], bool]] = None
                      ) -> Dict[GridIndex, FrozenSet[GridIndex]]:
    """Six-way neighbours of every occupied cell, restricted to occupied cells."""
    occ = occupied or (lambda r, c: True)
    adj: Dict[GridIndex, FrozenSet[GridIndex]] = {}
    for r in range(height):
        for c in range(width):
            if not occ(r, c):
                continue
            adj[(r, c)] = frozenset(
                (nr, nc) for nr, nc in neighbors_offset(r, c)
                if in_bounds(nr, nc, width, height) and occ(nr, nc)
            )
    return adj


class WorldAssembler:
    """Drives a generation run end to end and owns the live entity grid.

    Each ``generate`` call walks IDLE -> BUILDING_LAYERS -> CLASSIFYING ->
    PLACING -> DONE.  Configuration is validated before anything is built,
    and the previous result's entities go back to the pool only once the new
    run reaches PLACING, so a failed or cancelled call leaves the previous
    result current.
    """

    def __init__(self, pool: Optional[EntityPool] = None, warm_pool: bool = True):
        self.pool = pool if pool is not None else EntityPool()
        self.warm_pool = warm_pool
        self.state = GenerationState.IDLE
        self.result: Optional[WorldResult] = None
        self.runs = 0

    # ----------------------------------------------------------------- phases

    def build_layers(self, config: WorldConfig, seed: int) -> Dict[str, Optional[MapLayer]]:
        w, h, workers = config.width, config.height, config.workers
        elev_field = NoiseField(seed, config.frequency, config.amplitude, config.noise_variant)
        raw = build_layer(elev_field, w, h, workers)
        layers: Dict[str, Optional[MapLayer]] = {
            "raw_elevation": raw,
            "elevation": raw.to_unit(elev_field),
            "heat": build_heat_layer(w, h) if config.build_heat else None,
            "rain": None,
        }
        if config.build_rain:
            rain_field = NoiseField(derive_seed(seed, _RAIN_SALT), config.effective_rain_frequency,
                                    config.amplitude, NoiseVariant.PERLIN)
            layers["rain"] = build_layer(rain_field, w, h, workers).to_unit(rain_field)

        veg_field = NoiseField(seed, config.vegetation_frequency, config.vegetation_amplitude,
                               config.noise_variant)
        if layers["heat"] is not None:
            veg = build_derived_layer(veg_field, w, h, layers["heat"], workers)
        else:
            veg = build_layer(veg_field, w, h, workers)
        layers["vegetation"] = veg.to_unit(veg_field)
        return layers

    def classify(self, config: WorldConfig, seed: int, elevation: MapLayer,
                 vegetation: Optional[MapLayer]) -> DecisionGrid:
        classifier = WorldClassifier(ClassifierRules.from_config(config))
        rng = np.random.default_rng(derive_seed(seed, _DRAW_SALT))
        return classifier.classify(elevation, vegetation, rng)

    def place(self, config: WorldConfig, decisions: DecisionGrid,
              adjacency: Dict[GridIndex, FrozenSet[GridIndex]]) -> List[List[Entity]]:
        w, h = config.width, config.height
        grid: List[List[Entity]] = []
        for r in range(h):
            row: List[Entity] = []
            for c in range(w):
                d = decisions.at(r, c)
                x, _, z = offset_to_world(r, c, w, h, config.tile_width, config.tile_length)
                surface = self.pool.acquire(d.surface_type)
                surface.category = d.surface_type.category
                surface.grid_index = (r, c)
                surface.world_position = (x, d.surface_y, z)
                surface.scale_y = d.scale_y
                surface.neighbors = set(adjacency[(r, c)])
                top = surface
                if d.has_vegetation:
                    top = self.pool.acquire(d.type)
                    top.category = d.category
                    top.grid_index = (r, c)
                    top.world_position = (x, d.vegetation_y, z)
                    top.neighbors = set(adjacency[(r, c)])
                    top.ground = surface
                row.append(top)
            grid.append(row)
        return grid

    def release_all(self) -> None:
        """Return every entity of the current result to the pool."""
        if self.result is None:
            return
        for ent in list(self.result.iter_entities()):
            self.pool.release(ent)
        self.result = None

    # --------------------------------------------------------------- pipeline

    def generate(self, config: WorldConfig, seed: Optional[int] = None,
                 cancel: CancelToken = None) -> WorldResult:
        """Run the whole pipeline and make the outcome the current result."""
        self.state = GenerationState.IDLE
        config.validate()
        if seed is None:
            seed = config.seed
        if seed is None:
            seed = int(np.random.default_rng().integers(0, 2**31 - 1))
            logger.info("Generated seed: %d", seed)
        seed = check_seed(seed)
        config = config.with_seed(seed)
        logger.info("Generating %dx%d world, seed %d", config.width, config.height, seed)

        try:
            self._check(cancel)
            self._enter(GenerationState.BUILDING_LAYERS)
            layers = self.build_layers(config, seed)

            self._check(cancel)
            self._enter(GenerationState.CLASSIFYING)
            decisions = self.classify(config, seed, layers["elevation"], layers["vegetation"])
            self._check(cancel)
        except GenerationCancelled:
            self.state = GenerationState.IDLE
            logger.info("Generation cancelled; keeping previous result")
            raise
        except Exception:
            self.state = GenerationState.IDLE
            raise

        self._enter(GenerationState.PLACING)
        self.release_all()
        if self.warm_pool and self.runs == 0:
            self.pool.initialize(decisions.entity_counts())
        adjacency = compute_adjacency(config.width, config.height)
        entities = self.place(config, decisions, adjacency)

        result = WorldResult(
            seed=seed,
            config=config,
            elevation=layers["elevation"],
            vegetation=layers["vegetation"],
            decisions=decisions,
            entities=entities,
            adjacency=adjacency,
            heat=layers["heat"],
            rain=layers["rain"],
            raw_elevation=layers["raw_elevation"],
        )
        self.result = result
        self.runs += 1
        self.state = GenerationState.DONE
        logger.info("World done: %s", result.summary()["types"])
        return result

    def _enter(self, state: GenerationState) -> None:
        self.state = state
        logger.info("Phase: %s", state.value)

    def _check(self, cancel: CancelToken) -> None:
        if _is_cancelled(cancel):
            raise GenerationCancelled(f"cancelled during {self.state.value}")


def generate_world(config: WorldConfig, seed: Optional[int] = None) -> WorldResult:
    """Convenience wrapper: one run with a fresh assembler and pool."""
    return WorldAssembler().generate(config, seed)


__all__ = [
    "GenerationState",
    "WorldAssembler",
    "WorldResult",
    "compute_adjacency",
    "generate_world",
]
