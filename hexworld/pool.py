# pool.py - per-type cache of reusable entities
from __future__ import annotations

import logging
import threading
from collections import deque
from contextlib import nullcontext
from typing import Deque, Dict, Mapping

from .entities import Entity, EntityType

logger = logging.getLogger(__name__)


class EntityPool:
    """Buckets of inactive entities keyed by :class:`EntityType`.

    ``acquire`` never fails: an empty bucket falls back to allocating a new
    entity.  An entity is in at most one bucket, and never while active.
    Pass ``threadsafe=True`` to guard each bucket with its own lock when
    several generation runs share one pool.
    """

    def __init__(self, threadsafe: bool = False) -> None:
        self._buckets: Dict[EntityType, Deque[Entity]] = {t: deque() for t in EntityType}
        self._pooled: Dict[int, EntityType] = {}  # id(entity) -> bucket it sits in
        self._allocated: Dict[EntityType, int] = {t: 0 for t in EntityType}
        self._next_id = 0
        self._locks = {t: threading.Lock() for t in EntityType} if threadsafe else None
        self._id_lock = threading.Lock() if threadsafe else None

    def _guard(self, type_: EntityType):
        return self._locks[type_] if self._locks is not None else nullcontext()

    def _allocate(self, type_: EntityType) -> Entity:
        with self._id_lock if self._id_lock is not None else nullcontext():
            eid = self._next_id
            self._next_id += 1
        self._allocated[type_] += 1
        return Entity(entity_id=eid, type=type_)

    def acquire(self, type_: EntityType) -> Entity:
        """Hand out an inactive entity of ``type_``, allocating if none is pooled."""
        with self._guard(type_):
            bucket = self._buckets[type_]
            if bucket:
                ent = bucket.popleft()
                del self._pooled[id(ent)]
            else:
                ent = self._allocate(type_)
                logger.debug("Pool empty for %s, allocated #%d", type_.value, ent.entity_id)
            ent.active = True
            return ent

    def release(self, entity: Entity) -> None:
        """Deactivate ``entity`` and file it under its current type.

        Releasing an entity that is already pooled is a no-op.
        """
        type_ = entity.type
        with self._guard(type_):
            if id(entity) in self._pooled:
                logger.debug("Entity #%d already pooled, ignoring release", entity.entity_id)
                return
            entity.reset()
            self._buckets[type_].append(entity)
            self._pooled[id(entity)] = type_

    def initialize(self, expected_counts: Mapping[EntityType, int]) -> None:
        """Warm up: top each bucket up to at least ``count`` inactive entities."""
        for type_, count in expected_counts.items():
            with self._guard(type_):
                bucket = self._buckets[type_]
                missing = int(count) - len(bucket)
                for _ in range(max(0, missing)):
                    ent = self._allocate(type_)
                    bucket.append(ent)
                    self._pooled[id(ent)] = type_
                if missing > 0:
                    logger.debug("Pre-allocated %d %s entities", missing, type_.value)

    def pooled_count(self, type_: EntityType) -> int:
        return len(self._buckets[type_])

    def allocated_count(self, type_: EntityType) -> int:
        """Entities ever allocated as ``type_``; reclassified ones keep counting here."""
        return self._allocated[type_]

    def __contains__(self, entity: object) -> bool:
        return id(entity) in self._pooled

    def __len__(self) -> int:
        return len(self._pooled)


__all__ = ["EntityPool"]
