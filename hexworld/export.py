# export.py - persist generation results for external tools
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Union

import numpy as np

from .assembler import WorldResult
from .errors import HexworldError
from .layers import MapLayer

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def result_to_json(result: WorldResult, path: PathLike) -> None:
    """Write summary, config and every placed cell as JSON."""
    p = Path(path)
    with open(p, "w", encoding="utf-8") as f:
        json.dump(result.to_dict(), f, indent=2)
    logger.info("Wrote %s", p)


def layers_to_npz(result: WorldResult, path: PathLike) -> None:
    """Save the grayscale layers (and the seed) as a compressed ``.npz``."""
    p = Path(path)
    arrays = {name: layer.values for name, layer in result.layers().items()}
    np.savez_compressed(p, seed=np.int64(result.seed), **arrays)
    logger.info("Wrote %d layers to %s", len(arrays), p)


def load_layers(path: PathLike) -> Dict[str, MapLayer]:
    """Read back layers written by :func:`layers_to_npz`."""
    p = Path(path)
    if not p.exists():
        raise HexworldError(f"{p}: no such layer archive")
    with np.load(p) as data:
        return {name: MapLayer(data[name]) for name in data.files if name != "seed"}


__all__ = ["result_to_json", "layers_to_npz", "load_layers"]
