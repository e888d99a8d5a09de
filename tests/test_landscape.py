import numpy as np
import pytest

from fractals import (
    ConfigurationError,
    Frame,
    MANDELBROT_FRAME,
    Recurrence,
    build_landscape,
    evaluate_continuous,
    interpolate_colors,
    invert_landscape,
    plane_point,
)

RESOLUTION = 12


@pytest.fixture
def grid(extended_rainbow16):
    return build_landscape(MANDELBROT_FRAME, RESOLUTION, 16, extended_rainbow16)


def test_grid_shapes(grid):
    assert grid.resolution == RESOLUTION
    assert grid.heights.shape == (RESOLUTION + 1, RESOLUTION + 1)
    assert grid.colors.shape == (RESOLUTION + 1, RESOLUTION + 1, 3)
    assert grid.values.shape == grid.heights.shape
    assert grid.limit == 16
    assert not grid.inverted


def test_cells_follow_continuous_evaluation(grid):
    res1 = RESOLUTION + 1
    mandelbrot = Recurrence.mandelbrot()
    for i, j in [(0, 0), (3, 7), (6, 6), (RESOLUTION, 2), (9, RESOLUTION)]:
        point = plane_point(i / res1, j / res1, MANDELBROT_FRAME)
        value = evaluate_continuous(point, mandelbrot, 16)
        assert grid.values[i, j] == pytest.approx(value, rel=1e-12)
        assert grid.heights[i, j] == pytest.approx(-value / 16)


def test_bounded_cells_sit_lowest_with_last_color(grid, extended_rainbow16):
    bounded = grid.values == 16.0
    assert bounded.any()
    np.testing.assert_array_equal(grid.heights[bounded], -1.0)
    np.testing.assert_allclose(grid.colors[bounded], np.broadcast_to(extended_rainbow16[16], (bounded.sum(), 3)))
    assert grid.heights.min() == -1.0


def test_height_scale_multiplies_heights(extended_rainbow16, grid):
    scaled = build_landscape(MANDELBROT_FRAME, RESOLUTION, 16, extended_rainbow16, height_scale=0.5)
    np.testing.assert_allclose(scaled.heights, grid.heights * 0.5)


def test_invert_twice_restores_heights(grid):
    once = invert_landscape(grid)
    assert once.inverted
    np.testing.assert_allclose(once.heights, -(1.0 + grid.heights))
    twice = invert_landscape(once)
    assert not twice.inverted
    np.testing.assert_allclose(twice.heights, grid.heights, atol=1e-12)
    np.testing.assert_array_equal(twice.colors, grid.colors)


def test_invert_flag_applies_inversion(grid, extended_rainbow16):
    inverted = build_landscape(MANDELBROT_FRAME, RESOLUTION, 16, extended_rainbow16, invert=True)
    assert inverted.inverted
    np.testing.assert_allclose(inverted.heights, invert_landscape(grid).heights)


def test_published_arrays_are_read_only(grid):
    with pytest.raises(ValueError):
        grid.heights[0, 0] = 1.0
    with pytest.raises(ValueError):
        invert_landscape(grid).heights[0, 0] = 1.0


def test_palette_must_be_extended(rainbow16):
    with pytest.raises(ConfigurationError):
        build_landscape(MANDELBROT_FRAME, 4, 16, rainbow16)


def test_julia_landscape(extended_rainbow16):
    grid = build_landscape(Frame(-1.5, -1.5, 3.0, 3.0), 8, 16, extended_rainbow16, recurrence=Recurrence.julia(0.01, 0.01))
    # the sample at u = v = 4/9 lies near the origin, inside the filled Julia set
    assert grid.values[4, 4] == 16.0


def test_interpolate_colors_blends_neighbours():
    palette = [(0.0, 0.0, 0.0), (1.0, 0.5, 0.0), (1.0, 0.5, 0.0)]
    colors = interpolate_colors(np.array([0.0, 0.5, 1.0, 2.0, -0.3]), palette)
    np.testing.assert_allclose(
        colors,
        [[0.0, 0.0, 0.0], [0.5, 0.25, 0.0], [1.0, 0.5, 0.0], [1.0, 0.5, 0.0], [0.0, 0.0, 0.0]],
    )


def test_scaled_heights_and_vertices(grid):
    np.testing.assert_allclose(grid.scaled_heights(0.2), grid.heights * 0.2)
    vertices = grid.vertices()
    res1 = RESOLUTION + 1
    assert vertices.shape == (res1 * res1, 3)
    np.testing.assert_array_equal(vertices[:, 2], grid.heights.ravel())
    assert vertices[0, :2].tolist() == [-1.0, -1.0]
    assert vertices[-1, :2].tolist() == [1.0, 1.0]
    # vertex i * res1 + j carries cell (i, j)
    assert vertices[2 * res1 + 5, 2] == grid.heights[2, 5]


def test_to_npz_round_trip(grid, tmp_path):
    path = grid.to_npz(tmp_path / "out" / "landscape.npz")
    with np.load(path) as data:
        np.testing.assert_array_equal(data["heights"], grid.heights)
        np.testing.assert_array_equal(data["colors"], grid.colors)
        np.testing.assert_array_equal(data["frame"], MANDELBROT_FRAME.as_tuple())
        assert int(data["limit"]) == 16
        assert not bool(data["inverted"])
