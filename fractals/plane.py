"""Flat plane view: discrete escape indices looked up in the palette."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
import PIL.Image

from .errors import ConfigurationError
from .evaluator import DISCRETE_RADIUS, Recurrence, sweep_discrete
from .frame import Frame, pixel_axes
from .palette import RGB, palette_array


@dataclass(frozen=True)
class PlaneView:
    """Escape indices and colors of a rendered plane view.

    Row ``0`` holds the lowest imaginary part, matching ``v = 0`` of the shader.
    """

    indices: np.ndarray
    rgb: np.ndarray
    frame: Frame
    limit: int

    def to_image(self) -> PIL.Image.Image:
        pixels = np.uint8(np.clip(self.rgb[::-1] * 255.0 + 0.5, 0, 255))
        return PIL.Image.fromarray(pixels)


def render_plane(
    recurrence: Recurrence,
    frame: Frame,
    palette: Sequence[RGB],
    limit: int,
    x_res: int,
    y_res: int,
    *,
    device: Optional[str] = None,
) -> PlaneView:
    """Evaluate every pixel center of ``frame`` the way the generated fragment shader does."""

    colors = palette_array(palette)
    if len(colors) < limit + 1:
        raise ConfigurationError("palette", f"{len(colors)} colors; the plane view needs at least {limit + 1}")

    re_axis, im_axis = pixel_axes(frame, x_res, y_res)
    re, im = np.meshgrid(re_axis, im_axis, indexing="xy")
    indices = sweep_discrete(re, im, recurrence, limit, DISCRETE_RADIUS, device=device)
    return PlaneView(indices=indices, rgb=colors[indices], frame=frame, limit=limit)
