"""Public API for escape-time fractal evaluation, landscapes and shader generation."""

from .errors import ConfigurationError, NumericDegeneracyWarning
from .evaluator import (
    Bounded,
    Escaped,
    EscapeResult,
    FractalKind,
    Recurrence,
    evaluate,
    evaluate_continuous,
    orbit,
    sweep_continuous,
    sweep_discrete,
)
from .frame import (
    JULIA_FRAME,
    MANDELBROT_FRAME,
    MANDELBROT_PLANE_FRAME,
    Frame,
    ZoomDirection,
    grid_axes,
    marker_to_selection,
    pixel_axes,
    plane_point,
    recompute_frame,
)
from .landscape import LandscapeGrid, build_landscape, interpolate_colors, invert_landscape
from .palette import ColorModel, build_palette, extend_palette, parse_color
from .plane import PlaneView, render_plane
from .shader import ShaderProgram, generate_shader
from .view import FractalView, ViewSettings, default_frame

__all__ = [
    "Bounded",
    "ColorModel",
    "ConfigurationError",
    "Escaped",
    "EscapeResult",
    "FractalKind",
    "FractalView",
    "Frame",
    "JULIA_FRAME",
    "LandscapeGrid",
    "MANDELBROT_FRAME",
    "MANDELBROT_PLANE_FRAME",
    "NumericDegeneracyWarning",
    "PlaneView",
    "Recurrence",
    "ShaderProgram",
    "ViewSettings",
    "ZoomDirection",
    "build_landscape",
    "build_palette",
    "default_frame",
    "evaluate",
    "evaluate_continuous",
    "extend_palette",
    "generate_shader",
    "grid_axes",
    "interpolate_colors",
    "invert_landscape",
    "marker_to_selection",
    "orbit",
    "parse_color",
    "pixel_axes",
    "plane_point",
    "recompute_frame",
    "render_plane",
    "sweep_continuous",
    "sweep_discrete",
]
