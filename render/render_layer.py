# render_layer.py - one pixel per cell previews of scalar layers
from __future__ import annotations
from typing import Tuple

import numpy as np
from PIL import Image

from hexworld.layers import MapLayer


def _lerp(a: float, b: float, t: float) -> float:
    t = min(1.0, max(0.0, t))
    return a + (b - a) * t


def heat_color(temperature: float) -> Tuple[int, int, int]:
    """White poles, blue cold, orange temperate, red hot."""
    t = float(temperature)
    if t < 0.2:
        rgb = (1.0, 1.0, 1.0)
    elif t < 0.45:
        rgb = (0.0, 0.0, _lerp(0.45, 1.0, (t - 0.55) / 0.2))
    elif t < 0.8:
        rgb = (_lerp(0.85, 1.0, (t - 0.4) / 0.2), _lerp(0.0, 0.4, (t - 0.4) / 0.2), 0.0)
    else:
        rgb = (_lerp(0.15, 1.0, (t - 0.85) / 0.2), 0.0, 0.0)
    return tuple(int(round(c * 255)) for c in rgb)


def render_layer(layer: MapLayer, heat: bool = False, scale: int = 1) -> Image.Image:
    """Grayscale (or heat-coloured) image of ``layer``; row 0 is the top line."""
    vals = np.clip(layer.values, 0.0, 1.0)
    H, W = vals.shape
    if heat:
        rgb = np.zeros((H, W, 3), dtype=np.uint8)
        for r in range(H):
            for c in range(W):
                rgb[r, c] = heat_color(vals[r, c])
        img = Image.fromarray(rgb)
    else:
        img = Image.fromarray((vals * 255.0).round().astype(np.uint8))
    if scale > 1:
        img = img.resize((W * scale, H * scale), Image.NEAREST)
    return img
