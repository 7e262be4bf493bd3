# render/__init__.py
# PNG previews of generated worlds

from .render_layer import render_layer, heat_color
from .render_topdown import render_topdown

__all__ = ["render_layer", "heat_color", "render_topdown"]
