import pytest

from fractals import ColorModel, build_palette, extend_palette, parse_color

BLUE = "#1562c9"
RED = "#e22e2a"


@pytest.mark.parametrize("levels", [2, 7, 16, 64])
@pytest.mark.parametrize("model", list(ColorModel))
def test_palette_has_levels_plus_one_colors(levels, model):
    palette = build_palette(levels, model, BLUE, RED)
    assert len(palette) == levels + 1
    for color in palette:
        assert len(color) == 3
        assert all(0.0 <= channel <= 1.0 for channel in color)


def test_rainbow_walks_the_hue_circle():
    palette = build_palette(6, ColorModel.RAINBOW, BLUE, RED)
    assert palette[0] == pytest.approx((1.0, 0.0, 0.0))
    assert palette[2] == pytest.approx((0.0, 1.0, 0.0))
    assert palette[4] == pytest.approx((0.0, 0.0, 1.0))
    assert palette[6] == pytest.approx((1.0, 0.0, 0.0))


@pytest.mark.parametrize("levels", [2, 8, 16, 64])
def test_binary_endpoints_match_for_even_levels(levels):
    palette = build_palette(levels, "binary", BLUE, RED)
    assert palette[0] == palette[levels]
    assert palette[0] == parse_color(RED)
    assert palette[1] == parse_color(BLUE)


@pytest.mark.parametrize("levels", [3, 7, 63])
def test_binary_last_color_is_always_color2(levels):
    palette = build_palette(levels, "binary", BLUE, RED)
    assert palette[levels] == parse_color(RED)
    assert palette[0] == parse_color(BLUE)
    for i in range(levels):
        assert palette[i] != palette[i + 1]


@pytest.mark.parametrize("levels", [2, 5, 16])
def test_gradient_between_equal_colors_is_flat(levels):
    palette = build_palette(levels, "gradient", BLUE, BLUE)
    assert all(color == parse_color(BLUE) for color in palette)


def test_gradient_uses_squared_factor():
    palette = build_palette(4, "gradient", (0.0, 0.0, 0.0), (1.0, 1.0, 1.0))
    assert palette[0] == (0.0, 0.0, 0.0)
    assert palette[2] == pytest.approx((0.25, 0.25, 0.25))
    assert palette[4] == pytest.approx((1.0, 1.0, 1.0))


def test_extend_palette_duplicates_last_color():
    palette = build_palette(8, "rainbow", BLUE, RED)
    extended = extend_palette(palette)
    assert len(extended) == 10
    assert extended[-1] == extended[-2] == palette[-1]
    assert extended[:-1] == palette


def test_parse_color_forms():
    assert parse_color("#ff0000") == (1.0, 0.0, 0.0)
    assert parse_color("white") == (1.0, 1.0, 1.0)
    assert parse_color((0.0, 0.5, 1.0)) == (0.0, 0.5, 1.0)
    with pytest.raises(ValueError):
        parse_color("not-a-color")


def test_unknown_model():
    with pytest.raises(ValueError):
        build_palette(8, "sepia", BLUE, RED)
