"""
Tests for the Pin Coordinate Mapper
===================================
Click-to-percent mapping under zoom and pan, bounds and pan clamping.
"""

import pytest

from creative_review.models import PinAnnotation
from creative_review.pins import OUT_OF_BOUNDS, OutOfBounds, PinCoordinateMapper


@pytest.fixture
def mapper() -> PinCoordinateMapper:
    return PinCoordinateMapper()


class TestToPercent:
    """Tests for PinCoordinateMapper.to_percent."""

    def test_center_click_at_identity_transform(self, mapper):
        pin = mapper.to_percent(400, 300, 800, 600)
        assert pin == PinAnnotation(50.0, 50.0)

    def test_click_left_of_content_is_out_of_bounds(self, mapper):
        assert mapper.to_percent(-5, 10, 800, 600) is OUT_OF_BOUNDS

    def test_click_below_content_is_out_of_bounds(self, mapper):
        assert mapper.to_percent(10, 601, 800, 600) is OUT_OF_BOUNDS

    def test_edges_are_inclusive(self, mapper):
        assert mapper.to_percent(0, 0, 200, 100) == PinAnnotation(0.0, 0.0)
        assert mapper.to_percent(200, 100, 200, 100) == PinAnnotation(100.0, 100.0)

    def test_rounds_to_one_decimal(self, mapper):
        pin = mapper.to_percent(100, 200, 300, 300)
        assert pin == PinAnnotation(33.3, 66.7)

    def test_zoom_scales_about_center(self, mapper):
        assert mapper.to_percent(100, 50, 200, 100, zoom=2) == PinAnnotation(50.0, 50.0)
        assert mapper.to_percent(0, 0, 200, 100, zoom=2) == PinAnnotation(25.0, 25.0)
        assert mapper.to_percent(200, 50, 200, 100, zoom=2) == PinAnnotation(75.0, 50.0)

    def test_pan_is_undone_before_scaling(self, mapper):
        assert mapper.to_percent(150, 50, 200, 100, pan_x=50) == PinAnnotation(50.0, 50.0)
        pin = mapper.to_percent(150, 70, 200, 100, zoom=2, pan_x=50, pan_y=20)
        assert pin == PinAnnotation(50.0, 50.0)

    def test_zoomed_out_click_outside_image_is_out_of_bounds(self, mapper):
        # At half zoom the image only covers the middle of the viewport
        assert mapper.to_percent(10, 50, 200, 100, zoom=0.5) is OUT_OF_BOUNDS

    def test_out_of_bounds_is_falsy_singleton(self):
        assert not OUT_OF_BOUNDS
        assert OutOfBounds() is OUT_OF_BOUNDS
        assert repr(OUT_OF_BOUNDS) == 'OUT_OF_BOUNDS'

    @pytest.mark.parametrize("kwargs", [
        {'zoom': 0},
        {'zoom': -1},
    ])
    def test_non_positive_zoom_rejected(self, mapper, kwargs):
        with pytest.raises(ValueError):
            mapper.to_percent(10, 10, 200, 100, **kwargs)

    def test_empty_viewport_rejected(self, mapper):
        with pytest.raises(ValueError):
            mapper.to_percent(10, 10, 0, 100)


class TestCssPosition:
    """Tests for rendering stored pins."""

    def test_identity_placement(self, mapper):
        assert mapper.to_css_position(PinAnnotation(12.5, 40.0)) == {'left': '12.5%', 'top': '40.0%'}


class TestClampPan:
    """Tests for PinCoordinateMapper.clamp_pan."""

    @pytest.mark.parametrize("zoom", [1, 0.5])
    def test_pan_reset_when_not_zoomed_in(self, mapper, zoom):
        assert mapper.clamp_pan(40, -30, zoom, 200, 100, 200, 100) == (0.0, 0.0)

    def test_pan_clamped_to_excursion(self, mapper):
        assert mapper.clamp_pan(150, -80, 2, 200, 100, 200, 100) == (100.0, -50.0)

    def test_pan_within_excursion_unchanged(self, mapper):
        assert mapper.clamp_pan(30, 10, 2, 200, 100, 200, 100) == (30.0, 10.0)

    def test_small_content_cannot_pan(self, mapper):
        assert mapper.clamp_pan(25, 25, 1.5, 100, 100, 400, 400) == (0.0, 0.0)
