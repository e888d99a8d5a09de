"""Escape-time evaluation of the quadratic map ``z <- z**2 + c``.

Two forms are provided. The discrete form reports the step after which the
orbit left the disc of radius ``escape_radius``. The continuous form refines
that step with the log-log smoothing term

    value = n + log2(log(R)) - log2(log(|z_n|))

where ``n`` is the number of map applications performed (``index + 1``) and
``|z_n| > R`` the first modulus beyond the escape radius. Since ``|z_n|`` can
overshoot ``R**2`` the value is clamped to at least ``index``, which keeps
``floor(value) == index``. Bounded samples get ``value == limit``.

Scalar functions serve single samples; the ``sweep_*`` functions evaluate
whole grids with TensorFlow.
"""

from __future__ import annotations

import math
import warnings
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

import numpy as np
import tensorflow as tf

from .errors import ConfigurationError, NumericDegeneracyWarning

DISCRETE_RADIUS = 2.0
CONTINUOUS_RADIUS = 16.0
ORBIT_BOUND = 20.0


class FractalKind(str, Enum):
    JULIA = "julia"
    MANDELBROT = "mandelbrot"


@dataclass(frozen=True)
class Recurrence:
    """Which quadratic family is iterated.

    For Julia sets ``z`` starts at the sample and ``c`` is ``constant``; for the
    Mandelbrot set ``z`` starts at 0 and ``c`` is the sample.
    """

    kind: FractalKind
    constant: complex = 0j

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", FractalKind(self.kind))
        object.__setattr__(self, "constant", complex(self.constant))

    @classmethod
    def julia(cls, cr: float, ci: float) -> "Recurrence":
        return cls(FractalKind.JULIA, complex(cr, ci))

    @classmethod
    def mandelbrot(cls) -> "Recurrence":
        return cls(FractalKind.MANDELBROT)

    def start(self, point: complex) -> tuple[complex, complex]:
        """Return ``(z0, c)`` for ``point``."""

        if self.kind is FractalKind.JULIA:
            return complex(point), self.constant
        return 0j, complex(point)


@dataclass(frozen=True)
class Escaped:
    index: int
    continuous_value: float


@dataclass(frozen=True)
class Bounded:
    pass


EscapeResult = Union[Escaped, Bounded]


def _check(limit: int, escape_radius: float) -> None:
    if limit < 1:
        raise ConfigurationError("limit", f"{limit!r} must be at least 1")
    if not escape_radius > 1.0:
        raise ConfigurationError("escape_radius", f"{escape_radius!r} must be greater than 1")


def _iterate(point: complex, recurrence: Recurrence, limit: int, escape_radius: float) -> tuple[Optional[int], float]:
    z0, c = recurrence.start(point)
    zr, zi = z0.real, z0.imag
    cr, ci = c.real, c.imag
    radius2 = escape_radius * escape_radius
    for i in range(limit):
        zr2 = zr * zr
        zi2 = zi * zi
        zi = 2.0 * zr * zi + ci
        zr = zr2 - zi2 + cr
        modulus2 = zr * zr + zi * zi
        if modulus2 > radius2:
            return i, modulus2
    return None, zr * zr + zi * zi


def _smooth(index: int, modulus2: float, escape_radius: float) -> float:
    modulus = math.sqrt(modulus2)
    if modulus > 1.0 and math.isfinite(modulus):
        value = (index + 1) + math.log2(math.log(escape_radius)) - math.log2(math.log(modulus))
        if math.isfinite(value):
            return max(value, float(index))
    warnings.warn(
        f"modulus {modulus!r} outside the smoothing domain; using escape index {index}",
        NumericDegeneracyWarning,
        stacklevel=3,
    )
    return float(index)


def evaluate(point: complex, recurrence: Recurrence, limit: int, escape_radius: float = DISCRETE_RADIUS) -> EscapeResult:
    """Classify ``point``: :class:`Escaped` after step ``index`` or :class:`Bounded` within ``limit`` steps."""

    _check(limit, escape_radius)
    index, modulus2 = _iterate(point, recurrence, limit, escape_radius)
    if index is None:
        return Bounded()
    return Escaped(index=index, continuous_value=_smooth(index, modulus2, escape_radius))


def evaluate_continuous(point: complex, recurrence: Recurrence, limit: int, escape_radius: float = CONTINUOUS_RADIUS) -> float:
    _check(limit, escape_radius)
    index, modulus2 = _iterate(point, recurrence, limit, escape_radius)
    if index is None:
        return float(limit)
    return _smooth(index, modulus2, escape_radius)


def orbit(c: complex, iterations: int, bound: float = ORBIT_BOUND) -> list[complex]:
    """Mandelbrot orbit of ``c`` starting at 0.

    The orbit stops once the point being squared has ``|z|**2 > bound``; the
    returned list never contains the image of such a point.
    """

    c = complex(c)
    zr = zi = 0.0
    points = [0j]
    for _ in range(iterations):
        zr2 = zr * zr
        zi2 = zi * zi
        zi = 2.0 * zr * zi + c.imag
        zr = zr2 - zi2 + c.real
        if zr2 + zi2 > bound:
            break
        points.append(complex(zr, zi))
    return points


@tf.function
def _escape_step(zr: tf.Tensor, zi: tf.Tensor, cr: tf.Tensor, ci: tf.Tensor, ns: tf.Tensor, active: tf.Tensor, radius2: tf.Tensor) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Perform a single iteration for samples that have not escaped."""

    zr2 = zr * zr
    zi2 = zi * zi
    zi_new = 2.0 * zr * zi + ci
    zr_new = zr2 - zi2 + cr
    zr = tf.where(active, zr_new, zr)
    zi = tf.where(active, zi_new, zi)
    ns = ns + tf.cast(active, tf.int32)
    new_active = tf.logical_and(active, zr * zr + zi * zi <= radius2)
    return zr, zi, ns, new_active


@tf.function
def _escape_run(zr: tf.Tensor, zi: tf.Tensor, cr: tf.Tensor, ci: tf.Tensor, limit: tf.Tensor, radius2: tf.Tensor) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Iterate every sample with a TensorFlow while loop until all escape or ``limit`` is reached."""

    limit = tf.cast(limit, tf.int32)
    i = tf.constant(0, dtype=tf.int32)
    ns = tf.zeros_like(zr, dtype=tf.int32)
    active = tf.ones_like(ns, tf.bool)

    def cond(i: tf.Tensor, zr: tf.Tensor, zi: tf.Tensor, ns: tf.Tensor, active: tf.Tensor) -> tf.Tensor:
        return tf.logical_and(tf.less(i, limit), tf.reduce_any(active))

    def body(i: tf.Tensor, zr: tf.Tensor, zi: tf.Tensor, ns: tf.Tensor, active: tf.Tensor) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
        zr, zi, ns, active = _escape_step(zr, zi, cr, ci, ns, active, radius2)
        return i + 1, zr, zi, ns, active

    _, zr, zi, ns, active = tf.while_loop(cond, body, (i, zr, zi, ns, active))
    return zr, zi, ns, active


def _start_arrays(re, im, recurrence: Recurrence) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    re, im = np.broadcast_arrays(np.asarray(re, dtype=np.float64), np.asarray(im, dtype=np.float64))
    if recurrence.kind is FractalKind.JULIA:
        cr = np.full(re.shape, recurrence.constant.real, dtype=np.float64)
        ci = np.full(re.shape, recurrence.constant.imag, dtype=np.float64)
        return re, im, cr, ci
    zeros = np.zeros(re.shape, dtype=np.float64)
    return zeros, zeros.copy(), re, im


def _run(re, im, recurrence: Recurrence, limit: int, escape_radius: float, device: Optional[str]):
    _check(limit, escape_radius)
    zr, zi, cr, ci = _start_arrays(re, im, recurrence)
    with tf.device(device if device is not None else "/CPU:0"):
        return _escape_run(
            tf.convert_to_tensor(zr, dtype=tf.float64),
            tf.convert_to_tensor(zi, dtype=tf.float64),
            tf.convert_to_tensor(cr, dtype=tf.float64),
            tf.convert_to_tensor(ci, dtype=tf.float64),
            tf.constant(limit, dtype=tf.int32),
            tf.constant(escape_radius * escape_radius, dtype=tf.float64),
        )


def sweep_discrete(re, im, recurrence: Recurrence, limit: int, escape_radius: float = DISCRETE_RADIUS, *, device: Optional[str] = None) -> np.ndarray:
    """Escape indices for every ``(re, im)`` sample; bounded samples hold ``limit``."""

    _, _, ns, active = _run(re, im, recurrence, limit, escape_radius, device)
    indices = tf.where(active, tf.fill(tf.shape(ns), tf.constant(limit, dtype=tf.int32)), ns - 1)
    return indices.numpy()


def sweep_continuous(re, im, recurrence: Recurrence, limit: int, escape_radius: float = CONTINUOUS_RADIUS, *, device: Optional[str] = None) -> np.ndarray:
    """Continuous escape values for every ``(re, im)`` sample; bounded samples hold ``limit``."""

    zr, zi, ns, active = _run(re, im, recurrence, limit, escape_radius, device)
    with tf.device(device if device is not None else "/CPU:0"):
        az = tf.sqrt(zr * zr + zi * zi)
        log_az = tf.math.log(az)
        log2 = tf.math.log(tf.constant(2.0, dtype=tf.float64))
        ns_float = tf.cast(ns, tf.float64)
        rp = tf.constant(math.log2(math.log(escape_radius)), dtype=tf.float64)
        smooth = ns_float + rp - tf.math.log(log_az) / log2
        escaped = tf.logical_not(active)
        refined = tf.logical_and(tf.greater(az, 1.0), tf.math.is_finite(smooth))
        index = ns_float - 1.0
        value = tf.where(refined, tf.maximum(smooth, index), index)
        value = tf.where(escaped, value, tf.cast(limit, tf.float64))
        degenerate = int(tf.reduce_sum(tf.cast(tf.logical_and(escaped, tf.logical_not(refined)), tf.int32)))

    if degenerate:
        warnings.warn(
            f"{degenerate} samples outside the smoothing domain; using their escape index",
            NumericDegeneracyWarning,
            stacklevel=2,
        )
    return value.numpy()
