# config.py - generation inputs, validation and loading
from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import MISSING, asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import numpy as np

from .classify import VegetationMode
from .errors import ConfigurationError
from .noise import NoiseVariant

logger = logging.getLogger(__name__)

# Tuned starting point for the CLI; library callers must pass every value.
DEFAULT_PRESET: Dict[str, Any] = {
    "world_size_x": 48,
    "world_size_y": 32,
    "tile_width": 1.75,            # keep at 1.75 x 2.0 for the stock hex mesh
    "tile_length": 2.0,
    "water_elevation": 0.2,
    "sand_level_min": 0.2,
    "sand_level_max": 0.3,
    "noise_variant": "perlin",
    "frequency": 4.0,
    "amplitude": 1.0,
    "vegetation_frequency_offset": 1.0,
    "vegetation_amplitude_offset": 0.1,
    "vegetation_threshold": 0.55,
    "placement_threshold": 0.6,
    "elevation_step": 10.0,
}

_INT_FIELDS = {"world_size_x", "world_size_y", "workers"}
_BOOL_FIELDS = {"build_heat", "build_rain"}


@dataclass(frozen=True)
class WorldConfig:
    """Every knob of one generation run.

    The first block mirrors the required inputs; ``seed`` may be None to
    have one generated.  The second block are optional extras with defaults.
    """

    world_size_x: int
    world_size_y: int
    tile_width: float
    tile_length: float
    water_elevation: float
    sand_level_min: float
    sand_level_max: float
    noise_variant: NoiseVariant
    frequency: float
    amplitude: float
    vegetation_frequency_offset: float
    vegetation_amplitude_offset: float
    vegetation_threshold: float
    placement_threshold: float
    elevation_step: float
    seed: Optional[int] = None

    rain_frequency: Optional[float] = None
    vegetation_mode: VegetationMode = VegetationMode.MAPLE_TREE
    height_jitter: float = 0.25
    build_heat: bool = True
    build_rain: bool = True
    workers: int = 1

    def __post_init__(self) -> None:
        object.__setattr__(self, "noise_variant", NoiseVariant.from_name(self.noise_variant))
        object.__setattr__(self, "vegetation_mode", VegetationMode.from_name(self.vegetation_mode))

    # Derived values ----------------------------------------------------------

    @property
    def width(self) -> int:
        return self.world_size_x

    @property
    def height(self) -> int:
        return self.world_size_y

    @property
    def vegetation_frequency(self) -> float:
        return self.frequency - self.vegetation_frequency_offset

    @property
    def vegetation_amplitude(self) -> float:
        return self.amplitude - self.vegetation_amplitude_offset

    @property
    def effective_rain_frequency(self) -> float:
        return self.frequency if self.rain_frequency is None else self.rain_frequency

    def validate(self) -> None:
        """Raise ConfigurationError for any input that would break sampling."""
        if self.world_size_x <= 1 or self.world_size_y <= 1:
            raise ConfigurationError(
                f"world size must be at least 2x2 (got {self.world_size_x}x{self.world_size_y})")
        if not self.frequency > 0:
            raise ConfigurationError(f"frequency must be > 0 (got {self.frequency})")
        if not self.vegetation_frequency > 0:
            raise ConfigurationError(
                "vegetation frequency (frequency - vegetation_frequency_offset) must be > 0 "
                f"(got {self.vegetation_frequency})")
        if not self.effective_rain_frequency > 0:
            raise ConfigurationError(f"rain_frequency must be > 0 (got {self.rain_frequency})")
        if self.sand_level_min > self.sand_level_max:
            raise ConfigurationError(
                f"sand_level_min {self.sand_level_min} > sand_level_max {self.sand_level_max}")
        if not (self.tile_width > 0 and self.tile_length > 0):
            raise ConfigurationError("tile_width and tile_length must be > 0")
        if self.height_jitter < 0:
            raise ConfigurationError(f"height_jitter cannot be negative (got {self.height_jitter})")
        if self.workers < 1:
            raise ConfigurationError(f"workers must be >= 1 (got {self.workers})")
        check_seed(self.seed)
        for f in fields(self):
            v = getattr(self, f.name)
            if isinstance(v, float) and not math.isfinite(v):
                raise ConfigurationError(f"{f.name} must be finite (got {v})")

    def with_seed(self, seed: Optional[int]) -> "WorldConfig":
        return replace(self, seed=seed)

    # Loading -----------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "WorldConfig":
        """Build a config from snake_case or camelCase keys.

        Missing required keys and non-numeric values raise
        ConfigurationError; numeric strings are accepted with a warning.
        Unknown keys are ignored with a warning.
        """
        known = {f.name: f for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for raw_key, value in data.items():
            key = _snake(raw_key)
            if key not in known:
                logger.warning("Ignoring unknown config key %r", raw_key)
                continue
            kwargs[key] = _coerce(key, value)

        missing = [name for name, f in known.items()
                   if name not in kwargs and f.default is MISSING and f.default_factory is MISSING]
        if missing:
            raise ConfigurationError(f"missing required config values: {', '.join(missing)}")
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["noise_variant"] = self.noise_variant.value
        out["vegetation_mode"] = self.vegetation_mode.value
        return out


def check_seed(seed: Any) -> Optional[int]:
    """Return ``seed`` as a plain int (None passes through); reject non-integers."""
    if seed is None:
        return None
    if isinstance(seed, bool) or not isinstance(seed, (int, np.integer)):
        raise ConfigurationError(f"seed must be an integer (got {seed!r})")
    return int(seed)


def _snake(key: str) -> str:
    # worldSizeX -> world_size_x, sandLevelMin -> sand_level_min
    return re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", str(key).strip()).lower()


def _coerce(key: str, value: Any) -> Any:
    if key in ("noise_variant", "vegetation_mode"):
        return value
    if key in ("seed", "rain_frequency") and value is None:
        return None
    if key in _BOOL_FIELDS:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("true", "false", "1", "0", "yes", "no"):
            return value.strip().lower() in ("true", "1", "yes")
        raise ConfigurationError(f"{key} must be a boolean (got {value!r})")
    if key in _INT_FIELDS or key == "seed":
        return _to_int(key, value)
    return _to_float(key, value)


def _to_int(key: str, value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        s = value.strip()
        if s and (s.isdigit() or (s[0] in {"+", "-"} and s[1:].isdigit())):
            logger.warning("%s: coercing string %r to int", key, value)
            return int(s)
    raise ConfigurationError(f"{key} must be an integer (got {value!r})")


def _to_float(key: str, value: Any) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        f = float(value)
    elif isinstance(value, str):
        try:
            f = float(value.strip())
        except ValueError:
            raise ConfigurationError(f"{key} must be a number (got {value!r})") from None
        logger.warning("%s: coercing string %r to float", key, value)
    else:
        raise ConfigurationError(f"{key} must be a number (got {value!r})")
    if not math.isfinite(f):
        raise ConfigurationError(f"{key} must be finite (got {value!r})")
    return f


def load_config(path: Union[str, Path], overrides: Optional[Mapping[str, Any]] = None) -> WorldConfig:
    """Read a JSON config file, apply ``overrides`` and build a WorldConfig."""
    p = Path(path)
    try:
        with p.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"{p}: invalid JSON ({exc})") from exc
    except UnicodeDecodeError as exc:
        raise ConfigurationError(f"{p}: not UTF-8 text ({exc})") from exc
    except OSError as exc:
        raise ConfigurationError(f"{p}: cannot read config ({exc.strerror or exc})") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"{p}: expected a JSON object at the top level")
    if overrides:
        data.update(overrides)
    return WorldConfig.from_dict(data)


__all__ = ["WorldConfig", "DEFAULT_PRESET", "check_seed", "load_config"]
