"""
hexworld: procedural hex-grid world generation.

Noise layers -> per-cell classification -> pooled entities placed on an
odd-row offset hex grid.
"""

from .assembler import GenerationState, WorldAssembler, WorldResult, generate_world
from .classify import CellDecision, ClassifierRules, DecisionGrid, VegetationMode, WorldClassifier
from .config import DEFAULT_PRESET, WorldConfig, load_config
from .entities import Entity, EntityCategory, EntityType
from .errors import ConfigurationError, GenerationCancelled, HexworldError
from .layers import MapLayer, build_derived_layer, build_heat_layer, build_layer
from .noise import NoiseField, NoiseVariant, derive_seed
from .pool import EntityPool

__all__ = [
    "CellDecision",
    "ClassifierRules",
    "ConfigurationError",
    "DEFAULT_PRESET",
    "DecisionGrid",
    "Entity",
    "EntityCategory",
    "EntityPool",
    "EntityType",
    "GenerationCancelled",
    "GenerationState",
    "HexworldError",
    "MapLayer",
    "NoiseField",
    "NoiseVariant",
    "VegetationMode",
    "WorldAssembler",
    "WorldClassifier",
    "WorldConfig",
    "WorldResult",
    "build_derived_layer",
    "build_heat_layer",
    "build_layer",
    "derive_seed",
    "generate_world",
    "load_config",
]
