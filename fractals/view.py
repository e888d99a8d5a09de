"""Session state of one fractal view: settings, current frame and derived artifacts."""

from __future__ import annotations

import threading
from dataclasses import dataclass, fields, replace
from typing import Any, Iterable, Optional

import numpy as np

from .errors import ConfigurationError, require_range
from .evaluator import FractalKind, Recurrence
from .frame import (
    JULIA_FRAME,
    MANDELBROT_FRAME,
    MANDELBROT_PLANE_FRAME,
    ZOOM_FACTORS,
    Frame,
    ZoomDirection,
    recompute_frame,
)
from .landscape import LandscapeGrid, build_landscape, invert_landscape
from .palette import MAX_LEVELS, MIN_LEVELS, ColorLike, ColorModel, build_palette, extend_palette, parse_color
from .shader import ShaderProgram, generate_shader

JULIA_CONSTANT_RANGE = (-1.98, 1.98)
ZSCALE_RANGE = (0.05, 0.5)
MAX_RESOLUTION = 1024

PALETTE = "palette"
SHADER = "shader"
LANDSCAPE = "landscape"
INVERT = "invert"
ARTIFACTS = (PALETTE, SHADER, LANDSCAPE)

_COLORS = (PALETTE, SHADER, LANDSCAPE)
_GEOMETRY = (SHADER, LANDSCAPE)

# Parameter -> derived artifacts to rebuild, in rebuild order.
REBUILDS: dict[str, tuple[str, ...]] = {
    "kind": _COLORS,
    "levels": _COLORS,
    "limit": _GEOMETRY,
    "color_model": _COLORS,
    "color1": _COLORS,
    "color2": _COLORS,
    "cr": _GEOMETRY,
    "ci": _GEOMETRY,
    "resolution": (LANDSCAPE,),
    "landscape": (LANDSCAPE,),
    "invert": (INVERT,),
    "frame": _GEOMETRY,
    "zscale": (),
    "frame_zoom": (),
    "zoom_direction": (),
}


@dataclass(frozen=True)
class ViewSettings:
    """The legal parameter set of a view. ``limit`` defaults to ``levels``."""

    kind: FractalKind = FractalKind.MANDELBROT
    levels: int = 16
    color_model: ColorModel = ColorModel.RAINBOW
    color1: ColorLike = "#1562c9"
    color2: ColorLike = "#e22e2a"
    cr: float = 0.01
    ci: float = 0.01
    frame_zoom: int = 1
    zoom_direction: ZoomDirection = ZoomDirection.IN
    zscale: float = 0.2
    invert: bool = False
    resolution: int = 300
    limit: Optional[int] = None
    landscape: bool = True

    @classmethod
    def julia(cls, **overrides: Any) -> "ViewSettings":
        defaults = dict(kind=FractalKind.JULIA, levels=8, color2="#2ee288", landscape=False)
        defaults.update(overrides)
        return cls(**defaults)

    @classmethod
    def mandelbrot(cls, **overrides: Any) -> "ViewSettings":
        return cls(**overrides)

    @property
    def iteration_limit(self) -> int:
        return self.levels if self.limit is None else self.limit

    @property
    def recurrence(self) -> Recurrence:
        if self.kind is FractalKind.JULIA:
            return Recurrence.julia(self.cr, self.ci)
        return Recurrence.mandelbrot()

    def validate(self) -> "ViewSettings":
        """Return a normalized copy, raising :class:`ConfigurationError` on the first illegal parameter."""

        try:
            kind = FractalKind(self.kind)
        except ValueError as exc:
            raise ConfigurationError("kind", str(exc)) from exc
        try:
            color_model = ColorModel(self.color_model)
        except ValueError as exc:
            raise ConfigurationError("color_model", str(exc)) from exc
        try:
            direction = ZoomDirection(self.zoom_direction)
        except ValueError as exc:
            raise ConfigurationError("zoom_direction", str(exc)) from exc
        colors = {}
        for name in ("color1", "color2"):
            try:
                colors[name] = parse_color(getattr(self, name))
            except ValueError as exc:
                raise ConfigurationError(name, str(exc)) from exc

        require_range("levels", self.levels, MIN_LEVELS, MAX_LEVELS)
        if self.limit is not None:
            require_range("limit", self.limit, 1, self.levels)
        require_range("cr", self.cr, *JULIA_CONSTANT_RANGE)
        require_range("ci", self.ci, *JULIA_CONSTANT_RANGE)
        if self.frame_zoom not in ZOOM_FACTORS:
            raise ConfigurationError("frame_zoom", f"{self.frame_zoom!r} is not one of {ZOOM_FACTORS}")
        require_range("zscale", self.zscale, *ZSCALE_RANGE)
        require_range("resolution", self.resolution, 1, MAX_RESOLUTION)

        return replace(
            self,
            kind=kind,
            color_model=color_model,
            zoom_direction=direction,
            invert=bool(self.invert),
            landscape=bool(self.landscape),
            **colors,
        )


def default_frame(settings: ViewSettings) -> Frame:
    if FractalKind(settings.kind) is FractalKind.JULIA:
        return JULIA_FRAME
    return MANDELBROT_FRAME if settings.landscape else MANDELBROT_PLANE_FRAME


def affected_artifacts(parameters: Iterable[str]) -> tuple[str, ...]:
    """Union of the rebuild lists of ``parameters`` in palette, shader, landscape, invert order."""

    wanted = set()
    for name in parameters:
        wanted.update(REBUILDS[name])
    return tuple(name for name in (*ARTIFACTS, INVERT) if name in wanted)


class FractalView:
    """Own one view's frame, settings, selection marker and published artifacts.

    Each rebuild draws a generation number when it starts and publishes an
    artifact only if no later generation has published it already, so a slow
    rebuild never overwrites the result of a newer one.
    """

    def __init__(self, settings: Optional[ViewSettings] = None, frame: Optional[Frame] = None, *, device: Optional[str] = None) -> None:
        self._settings = (settings or ViewSettings()).validate()
        self._frame = frame if frame is not None else default_frame(self._settings)
        self._selection = (0.5, 0.5)
        self._device = device
        self._lock = threading.Lock()
        self._issued = 0
        self._published: dict[str, int] = {}
        self._artifacts: dict[str, Any] = dict.fromkeys(ARTIFACTS)
        self.rebuild()

    @property
    def settings(self) -> ViewSettings:
        return self._settings

    @property
    def frame(self) -> Frame:
        return self._frame

    @property
    def selection(self) -> tuple[float, float]:
        return self._selection

    @property
    def selection_extent(self) -> float:
        """Side of the selection marker relative to the frame."""

        return 1.0 / self._settings.frame_zoom

    @property
    def palette(self) -> tuple:
        return self._artifacts[PALETTE]

    @property
    def shader(self) -> ShaderProgram:
        return self._artifacts[SHADER]

    @property
    def landscape(self) -> Optional[LandscapeGrid]:
        return self._artifacts[LANDSCAPE]

    def scaled_heights(self) -> Optional[np.ndarray]:
        grid = self.landscape
        return None if grid is None else grid.scaled_heights(self._settings.zscale)

    def _begin(self) -> tuple[int, ViewSettings, Frame]:
        with self._lock:
            self._issued += 1
            return self._issued, self._settings, self._frame

    def _publish(self, name: str, value: Any, generation: int) -> bool:
        with self._lock:
            if self._published.get(name, 0) > generation:
                return False
            self._artifacts[name] = value
            self._published[name] = generation
            return True

    def rebuild(self, artifacts: Iterable[str] = ARTIFACTS) -> dict[str, bool]:
        """Rebuild ``artifacts`` from a snapshot of the settings and frame.

        Returns which artifacts were published; ``False`` marks a result
        superseded by a newer rebuild.
        """

        artifacts = tuple(artifacts)
        if not artifacts:
            return {}
        generation, settings, frame = self._begin()
        limit = settings.iteration_limit
        palette = build_palette(settings.levels, settings.color_model, settings.color1, settings.color2)
        published = {}

        if PALETTE in artifacts:
            published[PALETTE] = self._publish(PALETTE, palette, generation)
        if SHADER in artifacts:
            program = generate_shader(settings.recurrence, frame, palette, limit)
            published[SHADER] = self._publish(SHADER, program, generation)
        if LANDSCAPE in artifacts:
            grid = None
            if settings.landscape:
                grid = build_landscape(
                    frame,
                    settings.resolution,
                    limit,
                    extend_palette(palette),
                    settings.invert,
                    recurrence=settings.recurrence,
                    device=self._device,
                )
            published[LANDSCAPE] = self._publish(LANDSCAPE, grid, generation)
        if INVERT in artifacts and LANDSCAPE not in artifacts:
            grid = self.landscape
            if grid is not None and grid.inverted != settings.invert:
                published[LANDSCAPE] = self._publish(LANDSCAPE, invert_landscape(grid), generation)
        return published

    def update(self, **changes: Any) -> dict[str, bool]:
        """Apply parameter changes and rebuild what they affect.

        Invalid changes raise :class:`ConfigurationError` and leave the view
        untouched. A change of ``kind`` or ``landscape`` that moves the default
        frame also resets the frame to that default.
        """

        known = {field.name for field in fields(ViewSettings)}
        for name in changes:
            if name not in known:
                raise ConfigurationError(name, "unknown parameter")
        with self._lock:
            current = self._settings
            candidate = replace(current, **changes).validate()
            changed = [name for name in changes if getattr(candidate, name) != getattr(current, name)]
            if not changed:
                return {}
            self._settings = candidate
            frame = default_frame(candidate)
            if frame is not default_frame(current):
                self._swap_frame(frame)
                changed.append("frame")
        return self.rebuild(affected_artifacts(changed))

    def set_frame(self, frame: Frame) -> dict[str, bool]:
        with self._lock:
            self._swap_frame(frame)
        return self.rebuild(affected_artifacts(["frame"]))

    def _swap_frame(self, frame: Frame) -> None:
        self._frame = frame
        self._selection = (0.5, 0.5)

    def move_selection(self, u: float, v: float) -> None:
        require_range("selection.u", u, 0.0, 1.0)
        require_range("selection.v", v, 0.0, 1.0)
        with self._lock:
            self._selection = (float(u), float(v))

    def zoom(self) -> Frame:
        """Replace the frame by the selected sub-frame (or its enlargement) and rebuild.

        A zoom factor of 1 leaves everything as is.
        """

        with self._lock:
            frame, settings = self._frame, self._settings
            new_frame = recompute_frame(frame, self._selection, settings.frame_zoom, settings.zoom_direction)
            if new_frame is frame:
                return frame
            self._swap_frame(new_frame)
        self.rebuild(affected_artifacts(["frame"]))
        return new_frame
