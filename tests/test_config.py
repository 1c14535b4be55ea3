import pytest

from dotpic.colour import rainbow
from dotpic.config import (
    Atkinson,
    Auto,
    Average,
    Bayer,
    CenterPixel,
    ColorMode,
    Dominant,
    FloydSteinberg,
    Manual,
    NoDither,
    RenderConfig,
    parse_dither,
    parse_sampling,
)
from dotpic.errors import DotpicError, UnsupportedConfiguration


@pytest.mark.parametrize(
    "name, expected",
    [
        ("none", NoDither()),
        ("floyd-steinberg", FloydSteinberg()),
        ("FS", FloydSteinberg()),
        ("floyd_steinberg", FloydSteinberg()),
        ("atkinson", Atkinson()),
        ("bayer", Bayer(8)),
        ("bayer-2", Bayer(2)),
        ("bayer16", Bayer(16)),
    ],
)
def test_parse_dither(name, expected):
    assert parse_dither(name) == expected


@pytest.mark.parametrize("name", ["", "sparkle", "bayer-3", "bayer-x"])
def test_parse_dither_rejects_unknown(name):
    with pytest.raises(UnsupportedConfiguration):
        parse_dither(name)


def test_defaults():
    config = RenderConfig()
    assert config.dither == NoDither()
    assert config.threshold == Auto()
    assert config.color_mode is ColorMode.MONOCHROME
    assert config.extreme_aspect_ratio == 10.0
    assert config.max_upscale == 2.0
    assert config.sampling == Average()
    assert config.color_scheme is None
    assert not config.emits_colour


@pytest.mark.parametrize(
    "kwargs",
    [
        {"brightness": 2.1},
        {"contrast": -0.5},
        {"gamma": 0.0},
        {"dither": "bayer"},
        {"threshold": 128},
        {"color_mode": "color"},
        {"extreme_aspect_ratio": 0.5},
        {"max_upscale": 0},
        {"max_upscale": 0.5},
        {"sampling": "dominant"},
        {"color_scheme": "rainbow"},
    ],
)
def test_rejects_invalid_values(kwargs):
    with pytest.raises(UnsupportedConfiguration):
        RenderConfig(**kwargs)


def test_manual_threshold_range():
    assert Manual(0).value == 0
    assert Manual(255).value == 255
    with pytest.raises(UnsupportedConfiguration):
        Manual(256)
    with pytest.raises(ValueError):
        Manual(-1)


def test_errors_share_a_base():
    with pytest.raises(DotpicError):
        Bayer(5)


@pytest.mark.parametrize(
    "name, expected",
    [("average", Average()), ("Dominant", Dominant()), ("center", CenterPixel()), ("centre", CenterPixel())],
)
def test_parse_sampling(name, expected):
    assert parse_sampling(name) == expected


def test_parse_sampling_rejects_unknown():
    with pytest.raises(UnsupportedConfiguration):
        parse_sampling("median")


def test_colour_output_modes():
    assert RenderConfig(color_mode=ColorMode.COLOR).emits_colour
    assert RenderConfig(color_mode=ColorMode.GRAYSCALE).emits_colour
    assert RenderConfig(color_scheme=rainbow()).emits_colour
    assert RenderConfig(max_upscale=None).max_upscale is None
