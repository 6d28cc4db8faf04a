import pytest

from mandelreel.renderers.palette import BLACK, SCHEMES, Color, get_scheme, gradient_color, sinebow_color

RATIOS = [0.0, 0.01, 0.1, 0.25, 1 / 3, 0.5, 0.75, 0.999, 1.0]


def test_gradient_endpoints():
    assert gradient_color(0.0) == Color(0, 0, 255)
    assert gradient_color(1.0) == Color(255, 255, 0)


def test_gradient_floors():
    assert gradient_color(0.5) == Color(127, 127, 128)


def test_sinebow_inside_set_is_black():
    assert sinebow_color(1.0) == BLACK


def test_sinebow_wraps_negative_channels():
    # sin(0)=0, sin(120deg)*255=220.8, sin(240deg)*255=-220.8 -> -221 wraps to 35
    assert sinebow_color(0.0) == Color(0, 220, 35)


def test_sinebow_quarter_turn():
    assert sinebow_color(0.25) == Color(255, 128, 128)


@pytest.mark.parametrize("name", sorted(SCHEMES))
def test_schemes_are_deterministic_and_in_range(name):
    scheme = get_scheme(name)
    for ratio in RATIOS:
        first = scheme(ratio)
        assert first == scheme(ratio)
        assert all(isinstance(v, int) and 0 <= v <= 255 for v in first)


def test_get_scheme_returns_registered_functions():
    assert get_scheme("gradient") is gradient_color
    assert get_scheme("sinebow") is sinebow_color


def test_unknown_scheme():
    with pytest.raises(ValueError, match="Unknown color scheme"):
        get_scheme("viridis")
