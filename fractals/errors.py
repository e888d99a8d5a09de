"""Error types shared by the fractal modules."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """A parameter lies outside its legal range."""

    def __init__(self, parameter: str, message: str) -> None:
        super().__init__(f"{parameter}: {message}")
        self.parameter = parameter


class NumericDegeneracyWarning(RuntimeWarning):
    """The continuous escape smoothing hit log(modulus) <= 0 and fell back to the escape index."""


def require_range(parameter: str, value, low, high) -> None:
    if not (low <= value <= high):
        raise ConfigurationError(parameter, f"{value!r} is outside [{low}, {high}]")
