"""Frame arithmetic: normalized samples to complex-plane points and sub-frame zoom."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

import numpy as np

from .errors import ConfigurationError, require_range

ZOOM_FACTORS = (1, 2, 3, 4)


class ZoomDirection(str, Enum):
    IN = "in"
    OUT = "out"


@dataclass(frozen=True)
class Frame:
    """Rectangle ``[min_re, min_re + width] x [min_im, min_im + height]`` of the complex plane."""

    min_re: float
    min_im: float
    width: float
    height: float

    def __post_init__(self) -> None:
        for name in ("min_re", "min_im", "width", "height"):
            if not math.isfinite(getattr(self, name)):
                raise ConfigurationError(f"frame.{name}", f"{getattr(self, name)!r} is not finite")
        if self.width <= 0 or self.height <= 0:
            raise ConfigurationError("frame", f"zero-area frame {self.width!r} x {self.height!r}")

    @property
    def max_re(self) -> float:
        return self.min_re + self.width

    @property
    def max_im(self) -> float:
        return self.min_im + self.height

    @property
    def center(self) -> complex:
        return complex(self.min_re + 0.5 * self.width, self.min_im + 0.5 * self.height)

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.min_re, self.min_im, self.width, self.height)


JULIA_FRAME = Frame(-1.5, -1.5, 3.01, 3.01)
MANDELBROT_FRAME = Frame(-2.1, -1.5, 3.1, 3.001)
MANDELBROT_PLANE_FRAME = Frame(-2.0, -1.4, 3.0, 2.8)


def plane_point(u, v, frame: Frame):
    """Map normalized ``(u, v)`` to the complex plane.

    Scalars give a ``complex``; numpy arrays give a ``(re, im)`` pair of float64 arrays.
    """

    re = np.float64(frame.width) * u + np.float64(frame.min_re)
    im = np.float64(frame.height) * v + np.float64(frame.min_im)
    if np.ndim(re) == 0 and np.ndim(im) == 0:
        return complex(float(re), float(im))
    return np.asarray(re, dtype=np.float64), np.asarray(im, dtype=np.float64)


def marker_to_selection(x: float, y: float) -> tuple[float, float]:
    """Convert a marker position on the ``[-1, 1]`` display square to normalized coordinates."""

    return ((x + 1.0) / 2.0, (y + 1.0) / 2.0)


def recompute_frame(
    frame: Frame,
    selection: tuple[float, float],
    zoom_factor: int,
    direction: ZoomDirection | str,
) -> Frame:
    """Return the frame of ``zoom_factor`` scale centered on the selection.

    ``frame`` is only read; the caller publishes the returned frame in place of it.
    """

    if zoom_factor not in ZOOM_FACTORS:
        raise ConfigurationError("zoom_factor", f"{zoom_factor!r} is not one of {ZOOM_FACTORS}")
    direction = ZoomDirection(direction)
    u, v = selection
    require_range("selection.u", u, 0.0, 1.0)
    require_range("selection.v", v, 0.0, 1.0)
    if zoom_factor == 1:
        return frame

    scale = np.float64(zoom_factor)
    if direction is ZoomDirection.IN:
        scale = 1.0 / scale
    new_width = np.float64(frame.width) * scale
    new_height = np.float64(frame.height) * scale
    center = plane_point(u, v, frame)
    return Frame(
        min_re=float(center.real - 0.5 * new_width),
        min_im=float(center.imag - 0.5 * new_height),
        width=float(new_width),
        height=float(new_height),
    )


def grid_axes(frame: Frame, resolution: int) -> tuple[np.ndarray, np.ndarray]:
    """Real and imaginary sample coordinates of a ``(resolution + 1)``-point landscape grid.

    Sample ``i`` sits at ``u = i / (resolution + 1)``, so the far edge of the frame is not reached.
    """

    if resolution < 1:
        raise ConfigurationError("resolution", f"{resolution!r} must be at least 1")
    steps = np.arange(resolution + 1, dtype=np.float64) / np.float64(resolution + 1)
    re, im = plane_point(steps, steps, frame)
    return re, im


def pixel_axes(frame: Frame, x_res: int, y_res: int) -> tuple[np.ndarray, np.ndarray]:
    """Pixel-center sample coordinates for a ``x_res`` by ``y_res`` plane view."""

    if x_res < 1 or y_res < 1:
        raise ConfigurationError("resolution", f"{x_res!r} x {y_res!r} must be at least 1 x 1")
    u = (np.arange(x_res, dtype=np.float64) + 0.5) / np.float64(x_res)
    v = (np.arange(y_res, dtype=np.float64) + 0.5) / np.float64(y_res)
    re, _ = plane_point(u, np.zeros(1), frame)
    _, im = plane_point(np.zeros(1), v, frame)
    return re, im
