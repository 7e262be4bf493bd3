# noise.py - seeded scalar noise fields over normalized 2D coordinates
from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple

import numpy as np
from opensimplex import OpenSimplex

from .errors import ConfigurationError

_MASK32 = 0xFFFFFFFF
_MASK64 = 0xFFFFFFFFFFFFFFFF

# Eight gradient directions for 2D Perlin noise (diagonals + axes)
_GRADIENTS: Tuple[Tuple[int, int], ...] = (
    (1, 1), (-1, 1), (1, -1), (-1, -1),
    (1, 0), (-1, 0), (0, 1), (0, -1),
)


class NoiseVariant(str, Enum):
    PERLIN = "perlin"
    VALUE = "value"
    SIMPLEX = "simplex"
    VORONOI = "voronoi"
    WORLEY = "worley"

    @classmethod
    def from_name(cls, name: "str | NoiseVariant") -> "NoiseVariant":
        """Case-insensitive lookup; raises ConfigurationError for unknown names."""
        if isinstance(name, NoiseVariant):
            return name
        key = str(name).strip().lower()
        for v in cls:
            if v.value == key or v.name.lower() == key:
                return v
        valid = ", ".join(v.value for v in cls)
        raise ConfigurationError(f"Unknown noise variant {name!r}. Valid values: {valid}")


def derive_seed(seed: int, salt: int) -> int:
    """Mix ``seed`` with ``salt`` into a 31-bit seed for a secondary stream."""
    s = (seed ^ (seed >> 32)) & _MASK32
    s = (s ^ ((salt * 0x9E3779B9) & _MASK32)) & _MASK32
    # xorshift on 32 bits
    s ^= (s << 13) & _MASK32
    s ^= s >> 17
    s ^= (s << 5) & _MASK32
    return s & 0x7FFFFFFF


def _fade(t: float) -> float:
    return t * t * t * (t * (t * 6.0 - 15.0) + 10.0)


def _lerp(a: float, b: float, t: float) -> float:
    return a + t * (b - a)


def _grad(h: int, x: float, y: float) -> float:
    gx, gy = _GRADIENTS[h & 7]
    return gx * x + gy * y


@dataclass(frozen=True)
class NoiseField:
    """Deterministic scalar noise over ``[0,1] x [0,1]``.

    ``frequency`` scales the input coordinates before lookup and
    ``amplitude`` scales the output.  Gradient and value variants return
    values nominally in ``[-1, 1]``; the cellular variants (Worley and
    Voronoi) return non-negative distances.  The only state besides the
    four parameters is a set of lookup tables computed once from ``seed``.
    """

    seed: int
    frequency: float = 1.0
    amplitude: float = 1.0
    variant: NoiseVariant = NoiseVariant.PERLIN

    _perm: Tuple[int, ...] = field(init=False, repr=False, compare=False)
    _lattice: Tuple[float, ...] = field(init=False, repr=False, compare=False)
    _jitter: Tuple[Tuple[float, float], ...] = field(init=False, repr=False, compare=False)
    _simplex: OpenSimplex | None = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if isinstance(self.seed, bool) or not isinstance(self.seed, (int, np.integer)):
            raise ConfigurationError(f"seed must be an integer, not {type(self.seed).__name__}")
        if not self.frequency > 0:
            raise ConfigurationError(f"frequency must be > 0 (got {self.frequency!r})")
        if not math.isfinite(float(self.amplitude)):
            raise ConfigurationError(f"amplitude must be finite (got {self.amplitude!r})")
        object.__setattr__(self, "variant", NoiseVariant.from_name(self.variant))

        seed64 = int(self.seed) & _MASK64
        rng = np.random.default_rng(seed64)
        p = rng.permutation(256)
        object.__setattr__(self, "_perm", tuple(int(v) for v in np.concatenate([p, p])))
        object.__setattr__(self, "_lattice", tuple(float(v) for v in rng.uniform(-1.0, 1.0, 256)))
        object.__setattr__(self, "_jitter", tuple((float(a), float(b)) for a, b in rng.random((256, 2))))
        simplex = OpenSimplex(seed=seed64 & 0x7FFFFFFFFFFFFFFF) if self.variant is NoiseVariant.SIMPLEX else None
        object.__setattr__(self, "_simplex", simplex)

    @property
    def signed(self) -> bool:
        """True for variants whose raw output is centred on zero."""
        return self.variant in (NoiseVariant.PERLIN, NoiseVariant.VALUE, NoiseVariant.SIMPLEX)

    def sample(self, fx: float, fy: float) -> float:
        """Return the noise value at normalized coordinates ``(fx, fy)``."""
        x = fx * self.frequency
        y = fy * self.frequency
        v = self.variant
        if v is NoiseVariant.PERLIN:
            raw = self._perlin(x, y)
        elif v is NoiseVariant.VALUE:
            raw = self._value(x, y)
        elif v is NoiseVariant.SIMPLEX:
            raw = self._simplex.noise2(x, y)
        elif v is NoiseVariant.WORLEY:
            raw = self._cellular(x, y)[0]
        else:
            d1, d2 = self._cellular(x, y)
            raw = d2 - d1
        return float(raw) * self.amplitude

    def to_unit(self, value: float) -> float:
        """Remap a raw sample of this field to grayscale ``[0, 1]``."""
        if self.signed:
            value = (value + 1.0) * 0.5
        return min(1.0, max(0.0, value))

    # ------------------------------------------------------------------ kernels

    def _hash(self, ix: int, iy: int) -> int:
        p = self._perm
        return p[p[ix & 255] + (iy & 255)]

    def _perlin(self, x: float, y: float) -> float:
        xi = math.floor(x)
        yi = math.floor(y)
        xf = x - xi
        yf = y - yi
        u = _fade(xf)
        v = _fade(yf)
        n00 = _grad(self._hash(xi, yi), xf, yf)
        n10 = _grad(self._hash(xi + 1, yi), xf - 1.0, yf)
        n01 = _grad(self._hash(xi, yi + 1), xf, yf - 1.0)
        n11 = _grad(self._hash(xi + 1, yi + 1), xf - 1.0, yf - 1.0)
        return _lerp(_lerp(n00, n10, u), _lerp(n01, n11, u), v)

    def _value(self, x: float, y: float) -> float:
        xi = math.floor(x)
        yi = math.floor(y)
        u = _fade(x - xi)
        v = _fade(y - yi)
        lat = self._lattice
        n00 = lat[self._hash(xi, yi)]
        n10 = lat[self._hash(xi + 1, yi)]
        n01 = lat[self._hash(xi, yi + 1)]
        n11 = lat[self._hash(xi + 1, yi + 1)]
        return _lerp(_lerp(n00, n10, u), _lerp(n01, n11, u), v)

    def _cellular(self, x: float, y: float) -> Tuple[float, float]:
        """Distances to the nearest and second-nearest feature points."""
        xi = math.floor(x)
        yi = math.floor(y)
        d1 = d2 = math.inf
        for oy in (-1, 0, 1):
            for ox in (-1, 0, 1):
                cx = xi + ox
                cy = yi + oy
                jx, jy = self._jitter[self._hash(cx, cy)]
                d = math.hypot(cx + jx - x, cy + jy - y)
                if d < d1:
                    d2 = d1
                    d1 = d
                elif d < d2:
                    d2 = d
        return d1, d2


__all__ = ["NoiseField", "NoiseVariant", "derive_seed"]
