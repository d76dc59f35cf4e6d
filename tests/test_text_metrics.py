import math

import pytest

from utils.text_metrics import TextMeasurer


@pytest.fixture(scope="module")
def measurer():
    return TextMeasurer()


def test_width_scales_with_font_size(measurer):
    small = measurer.text_width("Hello", 10)
    large = measurer.text_width("Hello", 20)
    assert small > 0
    assert large == pytest.approx(small * 2)


def test_autosize_grows_with_text(measurer):
    short = measurer.autosize_width("Hi", 16, padding=8, border=2)
    long = measurer.autosize_width("Hi there, this is longer", 16, padding=8, border=2)
    assert long > short


def test_autosize_includes_padding_border_and_one_pixel(measurer):
    width = measurer.text_width("Sample", 16)
    assert measurer.autosize_width("Sample", 16, padding=8, border=2, min_width=1) == math.ceil(width + 8 + 2 + 1)


def test_empty_text_measures_one_space(measurer):
    space = measurer.autosize_width(" ", 24, min_width=1)
    assert measurer.autosize_width("", 24, min_width=1) == space


def test_min_width_applies(measurer):
    assert measurer.autosize_width("", 8, min_width=40) == 40
