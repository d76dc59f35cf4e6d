import pytest

from models.overlay_models import PageSize
from utils.coordinate_utils import clamp, from_surface, round_half_up, to_pdf_point, to_surface

A4 = PageSize(595, 842)


def test_center_of_a4_maps_to_surface_and_pdf_baseline():
    assert to_surface((0.5, 0.5), A4) == (297.5, 421.0)
    assert to_pdf_point((0.5, 0.5), A4, 16) == (297.5, 405.0)


def test_top_edge_places_baseline_one_font_size_below_top():
    x, y = to_pdf_point((0.0, 0.0), A4, 16)
    assert x == 0.0
    assert y == 842 - 16


def test_bottom_edge_is_not_clamped():
    _, y = to_pdf_point((0.25, 1.0), A4, 16)
    assert y == -16


def test_drag_outside_surface_is_clamped():
    size = PageSize(800, 600)
    assert from_surface((-40, -3), size) == (0.0, 0.0)
    assert from_surface((1200, 900), size) == (1.0, 1.0)
    assert from_surface((400, 150), size) == (0.5, 0.25)


def test_degenerate_page_size_gives_origin():
    assert from_surface((10, 10), PageSize(0, 842)) == (0.0, 0.0)
    assert from_surface((10, 10), PageSize(595, -1)) == (0.0, 0.0)


@pytest.mark.parametrize("norm", [(0.0, 0.0), (0.5, 0.5), (0.123, 0.987), (1.0, 1.0)])
def test_surface_round_trip(norm):
    x, y = from_surface(to_surface(norm, A4), A4)
    assert x == pytest.approx(norm[0])
    assert y == pytest.approx(norm[1])


def test_round_half_up_differs_from_bankers_rounding():
    assert round_half_up(2.5) == 3
    assert round_half_up(11.9) == 12
    assert round_half_up(-0.5) == 0
    assert round(2.5) == 2


def test_clamp():
    assert clamp(5, 8, 72) == 8
    assert clamp(100, 8, 72) == 72
    assert clamp(30, 8, 72) == 30
