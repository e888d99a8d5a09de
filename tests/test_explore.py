import numpy as np
import pytest

import explore
from fractals import FractalKind


def _parse(*args):
    parser = explore.build_parser()
    return parser, parser.parse_args(list(args))


def test_default_output_config(tmp_path):
    parser, opt = _parse("--output", str(tmp_path))
    config = explore.resolve_output_config(opt, parser)
    assert config.modes == ("plane",)
    assert config.output_dir == tmp_path.resolve()
    assert config.path("plane") == tmp_path.resolve() / "plane.png"


def test_modes_are_deduplicated(tmp_path):
    parser, opt = _parse("--mode", "shader", "--mode", "plane", "--mode", "shader", "--output", str(tmp_path))
    assert explore.resolve_output_config(opt, parser).modes == ("shader", "plane")


@pytest.mark.parametrize(
    "args",
    [
        ("--mode", "movie"),
        ("--mode", "gif"),
        ("--zooms", "-1"),
        ("--orbit-iterations", "30"),
        ("--gif-frame-duration", "0"),
        ("--orbit-c", "2.5", "0"),
    ],
)
def test_invalid_output_options_exit(args, tmp_path):
    parser, opt = _parse(*args, "--output", str(tmp_path))
    with pytest.raises(SystemExit) as excinfo:
        explore.resolve_output_config(opt, parser)
    assert excinfo.value.code == 2


def test_julia_settings_use_julia_defaults():
    parser, opt = _parse("--fractal", "julia", "--cr", "-0.8", "--ci", "0.156")
    settings = explore.build_settings(opt, parser, ("plane",))
    assert settings.kind is FractalKind.JULIA
    assert settings.levels == 8
    assert settings.recurrence.constant == complex(-0.8, 0.156)
    assert not settings.landscape


@pytest.mark.parametrize("args", [("--levels", "65"), ("--limit", "20"), ("--cr", "3.0"), ("--zscale", "0.01")])
def test_out_of_range_settings_exit(args):
    parser, opt = _parse(*args)
    with pytest.raises(SystemExit) as excinfo:
        explore.build_settings(opt, parser, ("plane",))
    assert excinfo.value.code == 2


def test_zero_area_frame_exits(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        explore.main(["--frame", "0", "0", "0", "1", "--output", str(tmp_path)])
    assert excinfo.value.code == 2


def test_plane_and_shader_outputs(tmp_path):
    explore.main([
        "--fractal", "julia",
        "--mode", "plane",
        "--mode", "shader",
        "--x-res", "24",
        "--y-res", "16",
        "--output", str(tmp_path),
    ])
    image = tmp_path / "plane.png"
    assert image.is_file()
    from PIL import Image

    with Image.open(image) as loaded:
        assert loaded.size == (24, 16)
    assert "float cr = 0.01;" in (tmp_path / "julia.frag").read_text(encoding="utf-8")
    assert (tmp_path / "julia.vert").is_file()


def test_landscape_outputs(tmp_path):
    explore.main(["--mode", "landscape", "--resolution", "10", "--invert", "--output", str(tmp_path)])
    for name in ("landscape_height.png", "landscape_color.png", "landscape.npz"):
        assert (tmp_path / name).is_file()
    with np.load(tmp_path / "landscape.npz") as data:
        assert data["heights"].shape == (11, 11)
        assert bool(data["inverted"])


def test_gif_records_every_zoom_step(tmp_path):
    explore.main([
        "--mode", "gif",
        "--frame-zoom", "2",
        "--zooms", "2",
        "--x-res", "16",
        "--y-res", "16",
        "--output", str(tmp_path),
    ])
    assert (tmp_path / "zoom.gif").is_file()


def test_orbit_csv(tmp_path):
    explore.main(["--mode", "orbit", "--cr", "1.0", "--ci", "1.0", "--output", str(tmp_path)])
    table = np.loadtxt(tmp_path / "orbit.csv", delimiter=",", skiprows=1)
    np.testing.assert_allclose(table, [[0, 0, 0], [1, 1, 1], [2, 1, 3], [3, -7, 7]])


def test_orbit_parameter_reaches_beyond_julia_range(tmp_path):
    explore.main(["--mode", "orbit", "--orbit-c", "2.0", "0.0", "--output", str(tmp_path)])
    table = np.loadtxt(tmp_path / "orbit.csv", delimiter=",", skiprows=1)
    # 0 -> 2 -> 6, and 6 lies beyond the bound so its image is not recorded
    np.testing.assert_allclose(table, [[0, 0, 0], [1, 2, 0], [2, 6, 0]])
