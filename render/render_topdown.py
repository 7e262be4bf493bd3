# render_topdown.py - simple top-down (2D) hex fill of a generated world
from __future__ import annotations
from typing import Dict, Tuple

from PIL import Image, ImageDraw

from hexworld.assembler import WorldResult
from hexworld.entities import EntityType
from hexworld.hexgrid import hex_corners, offset_to_world

COLORS: Dict[EntityType, Tuple[int, int, int]] = {
    EntityType.GRASS: (int(0.20*255), int(0.70*255), int(0.20*255)),
    EntityType.SAND: (int(0.95*255), int(0.85*255), int(0.25*255)),
    EntityType.WATER: (int(0.05*255), int(0.15*255), int(0.45*255)),
    EntityType.BUSH: (int(0.35*255), int(0.55*255), int(0.15*255)),
    EntityType.MAPLE_TREE: (int(0.10*255), int(0.40*255), int(0.10*255)),
}
BACKGROUND = (16, 18, 24, 255)


def render_topdown(result: WorldResult, px_per_unit: float = 8.0) -> Image.Image:
    """Fill each cell's hex with the colour of its top entity.

    World x maps to image x, world z to image y flipped, so row 0 is drawn
    at the top as in the layer previews.
    """
    cfg = result.config
    W, H = cfg.width, cfg.height
    tw, tl = cfg.tile_width, cfg.tile_length

    xs, zs = [], []
    for r in range(H):
        for c in range(W):
            x, _, z = offset_to_world(r, c, W, H, tw, tl)
            xs.append(x)
            zs.append(z)

    padding = tw
    min_x, max_x = min(xs) - padding, max(xs) + padding
    min_z, max_z = min(zs) - padding, max(zs) + padding
    img_w = max(1, int((max_x - min_x) * px_per_unit))
    img_h = max(1, int((max_z - min_z) * px_per_unit))

    img = Image.new("RGBA", (img_w, img_h), BACKGROUND)
    draw = ImageDraw.Draw(img)

    for r in range(H):
        for c in range(W):
            x, _, z = offset_to_world(r, c, W, H, tw, tl)
            pts = [((px - min_x) * px_per_unit, (max_z - pz) * px_per_unit)
                   for px, pz in hex_corners(x, z, tw)]
            draw.polygon(pts, fill=COLORS[result.entity_at(r, c).type])
    return img
