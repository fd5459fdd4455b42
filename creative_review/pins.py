"""
Pin Coordinate Mapper v1.2.0
============================
Geometry for pin comments placed on a zoomed and panned image.

The review viewport applies ``translate(pan_x, pan_y) scale(zoom)``
anchored at its own center. A click is mapped back through that
transform to a percentage of the unscaled image box. Markers are
rendered inside the transformed viewport, so the inverse is plain
percentage placement.
"""

import math
from typing import Dict, Tuple, Union

from .models import PinAnnotation


class OutOfBounds:
    """Result returned when a click lands outside the rendered content."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return 'OUT_OF_BOUNDS'


OUT_OF_BOUNDS = OutOfBounds()

PinResult = Union[PinAnnotation, OutOfBounds]


def _round_tenth(value: float) -> float:
    """Round half-up to one decimal place, as browsers' Math.round does."""
    return math.floor(value * 10 + 0.5) / 10


def _require_positive(**values: float):
    for name, value in values.items():
        if value <= 0:
            raise ValueError(f"{name} must be positive, got {value}")


class PinCoordinateMapper:
    """
    Converts between viewport pixels and image-relative percentages.
    """

    def to_percent(
        self,
        click_x: float,
        click_y: float,
        viewport_width: float,
        viewport_height: float,
        zoom: float = 1.0,
        pan_x: float = 0.0,
        pan_y: float = 0.0
    ) -> PinResult:
        """
        Map a click in the viewport to a pin position.

        Args:
            click_x, click_y: Pointer position relative to the viewport
            viewport_width, viewport_height: Viewport size in pixels
            zoom: Current scale factor
            pan_x, pan_y: Current pan offset in pixels

        Returns:
            PinAnnotation with coordinates rounded to 0.1, or OUT_OF_BOUNDS

        Raises:
            ValueError: if zoom or the viewport size is not positive
        """
        _require_positive(zoom=zoom, viewport_width=viewport_width,
                          viewport_height=viewport_height)

        cx = viewport_width / 2
        cy = viewport_height / 2

        # Undo the pan, then undo the center-anchored scale
        img_x = (click_x - pan_x - cx) / zoom + cx
        img_y = (click_y - pan_y - cy) / zoom + cy

        pct_x = _round_tenth(img_x / viewport_width * 100)
        pct_y = _round_tenth(img_y / viewport_height * 100)

        if not (0 <= pct_x <= 100 and 0 <= pct_y <= 100):
            return OUT_OF_BOUNDS
        return PinAnnotation(x=pct_x, y=pct_y)

    def to_css_position(self, pin: PinAnnotation) -> Dict[str, str]:
        """
        Marker placement for a stored pin.

        The marker lives inside the transformed viewport and inherits its
        pan and zoom, so no transform is applied here.
        """
        return {'left': f"{pin.x}%", 'top': f"{pin.y}%"}

    def clamp_pan(
        self,
        pan_x: float,
        pan_y: float,
        zoom: float,
        content_width: float,
        content_height: float,
        viewport_width: float,
        viewport_height: float
    ) -> Tuple[float, float]:
        """
        Keep the pan offset within the zoomed content's excursion.

        Returns:
            (pan_x, pan_y) clamped to [-max, max] per axis; (0, 0) at zoom <= 1
        """
        if zoom <= 1:
            return (0.0, 0.0)

        max_x = max(0.0, (content_width * zoom - viewport_width) / 2)
        max_y = max(0.0, (content_height * zoom - viewport_height) / 2)
        return (
            float(min(max(pan_x, -max_x), max_x)),
            float(min(max(pan_y, -max_y), max_y)),
        )
