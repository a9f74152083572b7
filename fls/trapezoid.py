"""
Trapezoidal membership function primitive.

A trapezoid is described by four x-axis values and a runtime height::

          peak_left   peak_right
              *---------*          <- height
             /           \\
            /             \\
           *---------------*       <- 0
       foot_left        foot_right

The shape never flips upside down. When a foot equals its peak the leg is
vertical and the trapezoid degenerates towards a rectangle.

The trapezoid only answers geometric questions. Keeping its four points
consistent with its neighbours is the job of the owning FuzzyVariable.
"""

import uuid
from dataclasses import dataclass, field
from typing import Optional, Tuple

Color = Tuple[float, float, float, float]
Point = Tuple[float, float]

WHITE: Color = (1.0, 1.0, 1.0, 1.0)


def new_id() -> str:
    """Returns a fresh stable identifier for trapezoids, variables, nodes and systems."""
    return str(uuid.uuid4())


def height_adjusted_peak(peak_x: float, foot_x: float, height: float) -> Point:
    """
    Moves a peak point towards its foot in proportion to the height.

    The foot stays fixed while the trapezoid shrinks vertically, so a leg
    that reaches y=1 at peak_x reaches y=height at the returned x.

    Args:
        peak_x (float): The x value of the peak point at full height.
        foot_x (float): The x value of the foot point on the same side.
        height (float): The current height of the trapezoid.

    Returns:
        Point: The (x, y) position of the height-adjusted peak.
    """
    vx = (peak_x - foot_x) * height
    vy = height
    return foot_x + vx, vy


def intersect(peak_x: float, foot_x: float, crisp_x: float, height: float) -> Point:
    """
    Intersects a vertical line at crisp_x with the sloped leg foot -> peak.

    Only valid on a sloped leg. A vertical leg (peak_x == foot_x) has no
    single crossing point and must be handled as part of the flat top.

    Args:
        peak_x (float): The x value of the (height-adjusted) peak point.
        foot_x (float): The x value of the foot point.
        crisp_x (float): The x value of the vertical test line.
        height (float): The y value of the peak point.

    Returns:
        Point: The (x, y) crossing point.
    """
    if peak_x == foot_x:
        raise ValueError(f"Cannot intersect a vertical leg at x={peak_x}")
    t = (crisp_x - foot_x) / (peak_x - foot_x)
    return foot_x + t * (peak_x - foot_x), t * height


@dataclass
class Trapezoid:
    """
    One fuzzy set on a variable's axis.

    Attributes:
        id (str): Stable identifier used by inference nodes and serialization.
        name (str): Readable name used by hosts and config files.
        foot_left, peak_left, peak_right, foot_right (float): The shape.
        color (Color): RGBA presentation color.
        height (float): Runtime height in [0, 1], assigned by the inference
            graph on output variables and never persisted.
    """

    id: str = field(default_factory=new_id)
    name: str = ""
    foot_left: float = 0.0
    peak_left: float = 0.0
    peak_right: float = 0.0
    foot_right: float = 0.0
    color: Color = WHITE
    height: float = field(default=1.0, compare=False)

    def adjusted_peak_left(self) -> Point:
        return height_adjusted_peak(self.peak_left, self.foot_left, self.height)

    def adjusted_peak_right(self) -> Point:
        return height_adjusted_peak(self.peak_right, self.foot_right, self.height)

    def outline(self) -> Tuple[Point, Point, Point, Point]:
        """The four corners at the current height, left to right."""
        return (
            (self.foot_left, 0.0),
            self.adjusted_peak_left(),
            self.adjusted_peak_right(),
            (self.foot_right, 0.0),
        )

    def membership(self, crisp_value: float) -> Optional[float]:
        """
        Calculates the degree of membership for a crisp value.

        Args:
            crisp_value (float): The value on the variable's axis.

        Returns:
            Optional[float]: The membership in [0, height], or None when the
                value lies outside the trapezoid's support.
        """
        peak_left_x, _ = self.adjusted_peak_left()
        peak_right_x, _ = self.adjusted_peak_right()

        # left leg
        if self.foot_left <= crisp_value < peak_left_x:
            return intersect(peak_left_x, self.foot_left, crisp_value, self.height)[1]
        # right leg
        elif peak_right_x < crisp_value <= self.foot_right:
            return intersect(peak_right_x, self.foot_right, crisp_value, self.height)[1]
        # flat top, also covers vertical legs
        elif peak_left_x <= crisp_value <= peak_right_x:
            return self.height
        return None
