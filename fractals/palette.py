"""Palette construction for escape-index coloring."""

from __future__ import annotations

import colorsys
from enum import Enum
from typing import Sequence, Union

import numpy as np
from matplotlib import colors as mcolors

RGB = tuple[float, float, float]
ColorLike = Union[str, Sequence[float]]

MIN_LEVELS = 2
MAX_LEVELS = 64


class ColorModel(str, Enum):
    RAINBOW = "rainbow"
    BINARY = "binary"
    GRADIENT = "gradient"


def parse_color(value: ColorLike) -> RGB:
    """Return ``value`` as an RGB triple in [0, 1]; accepts ``#rrggbb``, color names and triples."""

    r, g, b = mcolors.to_rgb(value)
    return (float(r), float(g), float(b))


def _lerp(a: RGB, b: RGB, t: float) -> RGB:
    return tuple(a[k] + (b[k] - a[k]) * t for k in range(3))


def build_palette(levels: int, model: ColorModel | str, color1: ColorLike, color2: ColorLike) -> tuple[RGB, ...]:
    """Build ``levels + 1`` colors; entry ``i`` colors samples escaping after step ``i``.

    The last entry colors bounded samples. ``levels`` is validated by the caller.
    """

    model = ColorModel(model)
    if model is ColorModel.RAINBOW:
        return tuple(colorsys.hls_to_rgb(i / levels, 0.5, 1.0) for i in range(levels + 1))
    if model is ColorModel.BINARY:
        first, second = parse_color(color1), parse_color(color2)
        if levels % 2 == 0:
            first, second = second, first
        return tuple(first if i % 2 == 0 else second for i in range(levels + 1))
    if model is ColorModel.GRADIENT:
        first, second = parse_color(color1), parse_color(color2)
        return tuple(_lerp(first, second, (i / levels) ** 2) for i in range(levels + 1))
    raise AssertionError(f"unhandled color model {model!r}")


def extend_palette(palette: Sequence[RGB]) -> tuple[RGB, ...]:
    """Append a copy of the last color so ``palette[floor(v) + 1]`` exists for ``v == limit``."""

    palette = tuple(tuple(color) for color in palette)
    return palette + (palette[-1],)


def palette_array(palette: Sequence[RGB]) -> np.ndarray:
    return np.asarray(palette, dtype=np.float64).reshape(-1, 3)
