"""Height-mapped landscape built from continuous escape values."""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Sequence

import numpy as np

from .errors import ConfigurationError
from .evaluator import CONTINUOUS_RADIUS, Recurrence, sweep_continuous
from .frame import Frame, grid_axes
from .palette import RGB, palette_array


@dataclass(frozen=True)
class LandscapeGrid:
    """A ``(resolution + 1) x (resolution + 1)`` grid of heights and vertex colors.

    Axis 0 follows the real axis and axis 1 the imaginary axis. Heights are
    unscaled; :meth:`scaled_heights` applies the vertical exaggeration used for display.
    """

    heights: np.ndarray
    colors: np.ndarray
    values: np.ndarray
    frame: Frame
    limit: int
    inverted: bool = False

    @property
    def resolution(self) -> int:
        return self.heights.shape[0] - 1

    def scaled_heights(self, zscale: float) -> np.ndarray:
        return self.heights * np.float64(zscale)

    def vertices(self, size: float = 2.0) -> np.ndarray:
        """Vertex positions on a ``size`` x ``size`` plane, ordered ``i * (resolution + 1) + j``."""

        res1 = self.resolution + 1
        steps = np.linspace(-size / 2.0, size / 2.0, res1, dtype=np.float64)
        x, y = np.meshgrid(steps, steps, indexing="ij")
        return np.stack((x, y, self.heights), axis=-1).reshape(res1 * res1, 3)

    def to_npz(self, path: Path | str) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        np.savez(
            str(path),
            heights=self.heights,
            colors=self.colors,
            values=self.values,
            frame=np.array(self.frame.as_tuple(), dtype=np.float64),
            limit=np.int64(self.limit),
            inverted=np.bool_(self.inverted),
        )
        return path


def _frozen(array: np.ndarray) -> np.ndarray:
    array.setflags(write=False)
    return array


def interpolate_colors(values: np.ndarray, palette: Sequence[RGB]) -> np.ndarray:
    """Blend ``palette[floor(v)]`` toward ``palette[floor(v) + 1]`` by the fractional part of ``v``."""

    colors = palette_array(palette)
    k = np.clip(np.floor(values), 0, len(colors) - 2).astype(np.intp)
    frac = np.clip(values - k, 0.0, 1.0)[..., np.newaxis]
    lower = colors[k]
    upper = colors[k + 1]
    return lower + (upper - lower) * frac


def build_landscape(
    frame: Frame,
    resolution: int,
    limit: int,
    palette: Sequence[RGB],
    invert: bool = False,
    *,
    height_scale: float = 1.0,
    recurrence: Optional[Recurrence] = None,
    device: Optional[str] = None,
) -> LandscapeGrid:
    """Sample ``frame`` on the landscape grid and derive heights and colors.

    ``palette`` must be the extended palette (``limit + 2`` colors or more) so
    that bounded samples, whose value is exactly ``limit``, have a successor.
    """

    if len(palette) < limit + 2:
        raise ConfigurationError("palette", f"{len(palette)} colors; the landscape needs at least {limit + 2}")
    recurrence = recurrence if recurrence is not None else Recurrence.mandelbrot()

    re_axis, im_axis = grid_axes(frame, resolution)
    re, im = np.meshgrid(re_axis, im_axis, indexing="ij")
    values = sweep_continuous(re, im, recurrence, limit, CONTINUOUS_RADIUS, device=device)

    heights = -(values / np.float64(limit)) * np.float64(height_scale)
    grid = LandscapeGrid(
        heights=_frozen(heights),
        colors=_frozen(interpolate_colors(values, palette)),
        values=_frozen(values),
        frame=frame,
        limit=limit,
    )
    return invert_landscape(grid) if invert else grid


def invert_landscape(grid: LandscapeGrid) -> LandscapeGrid:
    """Mirror every height about -1/2 (``h -> -(1 + h)``); applying it twice restores the grid."""

    heights = -(1.0 + grid.heights)
    return replace(grid, heights=_frozen(heights), inverted=not grid.inverted)
