import os
import sys
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_env_log_level = os.environ.get("TF_CPP_MIN_LOG_LEVEL")
_suppress_messages = (not _cli_verbose) and _env_log_level != "0"

if _suppress_messages and _env_log_level is None:
    os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

if _suppress_messages:
    warnings.filterwarnings(
        "ignore",
        message=r"Protobuf gencode version .* is exactly one major version older than the runtime version .*",
        category=UserWarning,
        module="google.protobuf",
    )

VERBOSE = _cli_verbose


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


import tensorflow as tf
import numpy as np

if _suppress_messages:
    tf.get_logger().setLevel("ERROR")
    for handler in tf.get_logger().handlers:
        handler.setLevel("ERROR")

# Imports for output
import PIL.Image
import imageio

from fractals import (
    ConfigurationError,
    FractalKind,
    FractalView,
    Frame,
    LandscapeGrid,
    ViewSettings,
    default_frame,
    orbit,
    render_plane,
)

log("TensorFlow version: %s" % tf.__version__)

# Run the sweeps on the first visible GPU when there is one, on the CPU otherwise.
gpus = tf.config.list_physical_devices('GPU')
if gpus:
    try:
        for gpu in gpus:
            tf.config.experimental.set_memory_growth(gpu, True)
        DEVICE = '/GPU:0'
        log("GPU found, using %s" % gpus[0].name)
    except RuntimeError as e:
        if VERBOSE:
            print(e)
        DEVICE = '/CPU:0'
else:
    DEVICE = '/CPU:0'
    log("No GPU found, using CPU")

from argparse import ArgumentParser

VALID_MODES = ("plane", "landscape", "shader", "gif", "orbit")
ORBIT_C_RANGE = (-2.0, 2.0)


@dataclass
class OutputConfig:
    modes: tuple[str, ...]
    output_dir: Path
    image_format: str
    gif_duration: float

    def path(self, name: str, suffix: str | None = None) -> Path:
        suffix = self.image_format if suffix is None else suffix
        return self.output_dir / f"{name}.{suffix}"


def build_parser():
    parser = ArgumentParser(description="Escape-time fractal explorer: plane views, 3D landscapes and GLSL programs.")

    parser.add_argument('--fractal', choices=[kind.value for kind in FractalKind], default='mandelbrot',
                        help='recurrence to iterate: julia (z starts at the sample) or mandelbrot (c is the sample)')

    parser.add_argument('--levels', type=int,
                        dest='levels', help='number of color bands, 2 to 64 (default: 16 for mandelbrot, 8 for julia)',
                        metavar='LEVELS', default=None)

    parser.add_argument('--limit', type=int,
                        dest='limit', help='iteration limit, at most LEVELS (default: LEVELS)',
                        metavar='LIMIT', default=None)

    parser.add_argument('--color-model', choices=['rainbow', 'binary', 'gradient'], default='rainbow',
                        dest='color_model', help='palette model')

    parser.add_argument('--color1', type=str, default=None,
                        help='first palette color for the binary and gradient models (e.g. "#1562c9")')

    parser.add_argument('--color2', type=str, default=None,
                        help='second palette color for the binary and gradient models')

    parser.add_argument('--cr', type=float, default=0.01,
                        help='real part of the Julia constant, in [-1.98, 1.98]')

    parser.add_argument('--ci', type=float, default=0.01,
                        help='imaginary part of the Julia constant, in [-1.98, 1.98]')

    parser.add_argument('--frame', type=float, nargs=4, default=None,
                        metavar=('MIN_RE', 'MIN_IM', 'WIDTH', 'HEIGHT'),
                        help='starting window on the complex plane (default depends on the fractal)')

    parser.add_argument('--frame-zoom', type=int, choices=[1, 2, 3, 4], default=1,
                        dest='frame_zoom', help='zoom factor applied by each zoom step; 1 disables zooming')

    parser.add_argument('--zoom', choices=['in', 'out'], default='in',
                        dest='zoom_direction', help='zoom direction')

    parser.add_argument('--select', type=float, nargs=2, default=(0.5, 0.5),
                        metavar=('U', 'V'), help='normalized center of the zoom selection, each in [0, 1]')

    parser.add_argument('--zooms', type=int, default=0,
                        help='number of zoom steps applied before the outputs are written')

    parser.add_argument('--mode', dest='modes', action='append', metavar='MODE',
                        help='Outputs to generate. May be repeated. Choices: %s.' % ', '.join(VALID_MODES))

    parser.add_argument('--x-res', type=int,
                        dest='x_res', help='plane view width in pixels',
                        metavar='X_RES', default=512)

    parser.add_argument('--y-res', type=int,
                        dest='y_res', help='plane view height in pixels',
                        metavar='Y_RES', default=512)

    parser.add_argument('--resolution', type=int, default=300,
                        help='landscape grid resolution; the grid has (RESOLUTION + 1)**2 samples')

    parser.add_argument('--zscale', type=float, default=0.2,
                        help='vertical exaggeration of the landscape, in [0.05, 0.5]')

    parser.add_argument('--invert', action='store_true',
                        help='invert the landscape heights')

    parser.add_argument('--orbit-iterations', type=int, default=8,
                        dest='orbit_iterations', help='number of orbit points for the orbit mode, 4 to 28')

    parser.add_argument('--orbit-c', type=float, nargs=2, default=None,
                        dest='orbit_c', metavar=('RE', 'IM'),
                        help='parameter c of the orbit mode, each part in [-2, 2] (default: CR CI)')

    parser.add_argument('--output', type=str, default='output',
                        help='directory receiving the generated files')

    parser.add_argument('--format', type=str,
                        dest='format', help='file format for images. Can be any extension supported by Pillow. Default: "png".',
                        metavar='FORMAT', default='png')

    parser.add_argument('--gif-frame-duration', type=float, default=0.5,
                        dest='gif_duration', help='seconds each zoom step stays on screen in the gif mode')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow and hardware diagnostics.')

    return parser


def resolve_output_config(opt, parser: ArgumentParser) -> OutputConfig:
    modes: list[str] = []
    for mode in opt.modes or ["plane"]:
        if mode not in VALID_MODES:
            parser.error(f"Unknown output mode '{mode}'. Valid choices: {', '.join(VALID_MODES)}.")
        if mode not in modes:
            modes.append(mode)

    if "gif" in modes and opt.zooms < 1:
        parser.error("the gif mode needs --zooms of at least 1.")
    if opt.zooms < 0:
        parser.error("--zooms must not be negative.")
    if not 4 <= opt.orbit_iterations <= 28:
        parser.error("--orbit-iterations must be in [4, 28].")
    if opt.orbit_c is not None and not all(ORBIT_C_RANGE[0] <= part <= ORBIT_C_RANGE[1] for part in opt.orbit_c):
        parser.error("--orbit-c parts must be in [-2, 2].")
    if opt.gif_duration <= 0:
        parser.error("--gif-frame-duration must be positive.")

    output_dir = Path(opt.output).expanduser()
    if output_dir.exists() and not output_dir.is_dir():
        parser.error("--output must be a directory.")

    image_format = (opt.format or "png").lower().lstrip(".") or "png"

    return OutputConfig(
        modes=tuple(modes),
        output_dir=output_dir.resolve(),
        image_format=image_format,
        gif_duration=opt.gif_duration,
    )


def build_settings(opt, parser: ArgumentParser, modes: tuple[str, ...]) -> ViewSettings:
    overrides: dict[str, Any] = dict(
        color_model=opt.color_model,
        cr=opt.cr,
        ci=opt.ci,
        frame_zoom=opt.frame_zoom,
        zoom_direction=opt.zoom_direction,
        zscale=opt.zscale,
        invert=bool(opt.invert),
        resolution=opt.resolution,
        limit=opt.limit,
        landscape="landscape" in modes,
    )
    for name in ("levels", "color1", "color2"):
        value = getattr(opt, name)
        if value is not None:
            overrides[name] = value

    factory = ViewSettings.julia if opt.fractal == FractalKind.JULIA.value else ViewSettings.mandelbrot
    try:
        return factory(**overrides).validate()
    except ConfigurationError as exc:
        parser.error(str(exc))


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def write_single_image(image: PIL.Image.Image, output_path: Path, image_format: str) -> None:
    """Write a single image to ``output_path`` using the provided format."""

    pil_format = _pil_format_name(image_format)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    image.save(str(output_path), format=pil_format)


def write_gif(writer: Any, frame_array: np.ndarray) -> None:
    """Append ``frame_array`` to an active GIF writer."""

    writer.append_data(frame_array)


def landscape_images(grid: LandscapeGrid, zscale: float) -> tuple[PIL.Image.Image, PIL.Image.Image]:
    """Grayscale height map (bright is high) and vertex color image, imaginary axis pointing up."""

    heights = grid.scaled_heights(zscale)
    lo = float(heights.min())
    hi = max(float(heights.max()), lo + 1e-12)
    normalized = (heights - lo) / (hi - lo)
    # axis 0 of the grid runs along the real axis; images want rows along the imaginary axis
    mono = np.uint8(np.clip(normalized.T[::-1] * 255, 0, 255))
    color = np.uint8(np.clip(np.transpose(grid.colors, (1, 0, 2))[::-1] * 255, 0, 255))
    return PIL.Image.fromarray(mono), PIL.Image.fromarray(color)


def plane_frame_array(view: FractalView, opt) -> np.ndarray:
    settings = view.settings
    plane = render_plane(
        settings.recurrence,
        view.frame,
        view.palette,
        settings.iteration_limit,
        opt.x_res,
        opt.y_res,
        device=DEVICE,
    )
    return np.array(plane.to_image(), copy=True)


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(argv)

    output_config = resolve_output_config(opt, parser)

    global VERBOSE
    VERBOSE = VERBOSE or bool(opt.verbose)

    if opt.x_res < 1 or opt.y_res < 1:
        parser.error("--x-res and --y-res must be at least 1.")

    settings = build_settings(opt, parser, output_config.modes)
    try:
        frame = Frame(*opt.frame) if opt.frame is not None else default_frame(settings)
        view = FractalView(settings, frame, device=DEVICE)
        view.move_selection(*opt.select)
    except ConfigurationError as exc:
        parser.error(str(exc))

    log("Frame: %r" % (view.frame.as_tuple(),))
    output_config.output_dir.mkdir(parents=True, exist_ok=True)

    gif_writer = None
    if "gif" in output_config.modes:
        gif_writer = imageio.get_writer(
            str(output_config.path("zoom", "gif")), mode='I', duration=output_config.gif_duration, loop=0
        )

    try:
        for i in range(opt.zooms):
            print("zoom {0} out of {1}".format(i, opt.zooms), end='\r')
            if gif_writer is not None:
                write_gif(gif_writer, plane_frame_array(view, opt))
            view.move_selection(*opt.select)
            view.zoom()
            log("Frame after zoom %d: %r" % (i + 1, view.frame.as_tuple()))
        if gif_writer is not None:
            write_gif(gif_writer, plane_frame_array(view, opt))
    finally:
        if gif_writer is not None:
            gif_writer.close()

    if "plane" in output_config.modes:
        image = PIL.Image.fromarray(plane_frame_array(view, opt))
        write_single_image(image, output_config.path("plane"), output_config.image_format)

    if "landscape" in output_config.modes and view.landscape is not None:
        height_image, color_image = landscape_images(view.landscape, view.settings.zscale)
        write_single_image(height_image, output_config.path("landscape_height"), output_config.image_format)
        write_single_image(color_image, output_config.path("landscape_color"), output_config.image_format)
        view.landscape.to_npz(output_config.path("landscape", "npz"))

    if "shader" in output_config.modes:
        for path in view.shader.write(output_config.output_dir):
            log("Wrote %s" % path)

    if "orbit" in output_config.modes:
        c = complex(*opt.orbit_c) if opt.orbit_c is not None else complex(view.settings.cr, view.settings.ci)
        points = orbit(c, opt.orbit_iterations)
        table = np.array([[k, p.real, p.imag] for k, p in enumerate(points)], dtype=np.float64)
        np.savetxt(
            str(output_config.path("orbit", "csv")),
            table,
            delimiter=",",
            header="step,re,im",
            comments="",
            fmt=("%d", "%.17g", "%.17g"),
        )


if __name__ == '__main__':
    main()
