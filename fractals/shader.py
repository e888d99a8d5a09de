"""GLSL program generation for the per-pixel discrete evaluator.

The frame, the iteration limit, the recurrence constant and the palette are
written into the source as literals, so a program is regenerated whenever any
of them changes.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from .errors import ConfigurationError
from .evaluator import DISCRETE_RADIUS, FractalKind, Recurrence
from .frame import Frame
from .palette import RGB

VERTEX_SOURCE = """\
varying vec2 vUv;

void main() {
    vUv = uv;
    gl_Position = projectionMatrix * modelViewMatrix * vec4(position, 1.0);
}
"""

_FRAGMENT_TEMPLATE = """\
precision highp float;
varying vec2 vUv;

vec3 paletteColor(int i) {{
{palette_lookup}
}}

vec3 {name}(vec2 p) {{
{start}
    for (int i = 0; i < {limit}; i++) {{
        // (zr, zi) = (zr, zi)**2 + c
        float zr2 = zr * zr;
        float zi2 = zi * zi;
        zi = 2.0 * zr * zi + ci;
        zr = zr2 - zi2 + cr;
        if (zr * zr + zi * zi > {radius2})
            return paletteColor(i);
    }}
    return paletteColor({limit});
}}

void main() {{
    float posr = {width} * vUv.x + {min_re};
    float posi = {height} * vUv.y + {min_im};
    gl_FragColor = vec4({name}(vec2(posr, posi)), 1.0);
}}
"""

_JULIA_START = """\
    float cr = {cr};
    float ci = {ci};
    float zr = p.x;
    float zi = p.y;"""

_MANDELBROT_START = """\
    float cr = p.x;
    float ci = p.y;
    float zr = 0.0;
    float zi = 0.0;"""


@dataclass(frozen=True)
class ShaderProgram:
    vertex_source: str
    fragment_source: str
    recurrence: Recurrence
    frame: Frame
    limit: int
    palette: tuple[RGB, ...]

    def write(self, directory: Path | str, stem: str | None = None) -> tuple[Path, Path]:
        """Write ``<stem>.vert`` and ``<stem>.frag`` into ``directory``."""

        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        stem = stem or self.recurrence.kind.value
        vertex_path = directory / f"{stem}.vert"
        fragment_path = directory / f"{stem}.frag"
        vertex_path.write_text(self.vertex_source, encoding="utf-8")
        fragment_path.write_text(self.fragment_source, encoding="utf-8")
        return vertex_path, fragment_path


def glsl_float(value: float) -> str:
    """Format ``value`` as a GLSL float literal that round-trips to the same double."""

    text = repr(float(value))
    if "." not in text and "e" not in text:
        text += ".0"
    return text


def _vec3(color: RGB) -> str:
    return "vec3({})".format(", ".join(glsl_float(channel) for channel in color))


def _palette_lookup(palette: Sequence[RGB]) -> str:
    lines = [f"    if (i == {i}) return {_vec3(color)};" for i, color in enumerate(palette[:-1])]
    lines.append(f"    return {_vec3(palette[-1])};")
    return "\n".join(lines)


def generate_shader(recurrence: Recurrence, frame: Frame, palette: Sequence[RGB], limit: int) -> ShaderProgram:
    """Emit the vertex and fragment sources evaluating ``recurrence`` over ``frame``.

    At ``vUv = (u, v)`` the fragment shader yields ``palette[index]`` for a
    sample escaping after step ``index`` and ``palette[limit]`` for bounded
    samples.
    """

    if limit < 1:
        raise ConfigurationError("limit", f"{limit!r} must be at least 1")
    if len(palette) < limit + 1:
        raise ConfigurationError("palette", f"{len(palette)} colors; the shader needs at least {limit + 1}")

    colors = tuple(tuple(float(channel) for channel in color) for color in palette[: limit + 1])
    if recurrence.kind is FractalKind.JULIA:
        start = _JULIA_START.format(cr=glsl_float(recurrence.constant.real), ci=glsl_float(recurrence.constant.imag))
    else:
        start = _MANDELBROT_START

    fragment = _FRAGMENT_TEMPLATE.format(
        name=recurrence.kind.value,
        palette_lookup=_palette_lookup(colors),
        start=start,
        limit=limit,
        radius2=glsl_float(DISCRETE_RADIUS * DISCRETE_RADIUS),
        width=glsl_float(frame.width),
        height=glsl_float(frame.height),
        min_re=glsl_float(frame.min_re),
        min_im=glsl_float(frame.min_im),
    )
    return ShaderProgram(
        vertex_source=VERTEX_SOURCE,
        fragment_source=fragment,
        recurrence=recurrence,
        frame=frame,
        limit=limit,
        palette=colors,
    )
