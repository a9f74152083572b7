"""
Computes the crisp output of an output variable by centroid defuzzification.

The aggregated fuzzy shape is rebuilt by sampling rather than by closed-form
trapezoid formulas, so any number of overlapping or gapped output sets is
handled the same way::

    1. Place evenly spaced sample points across the padded domain, plus every
       trapezoid's (height-adjusted) peak and foot x values so corners are
       never smoothed away.
    2. At each sample, intersect a vertical line with all trapezoids and keep
       the highest membership (the union envelope). Samples outside every
       trapezoid are skipped. Where the support starts and where it ends the
       outline drops to a baseline point (x, 0), so vertical legs stay
       vertical and gaps between sets run along the baseline.
    3. Close the outline along the baseline and take the polygon barycenter
       (shoelace formula). Its x value is the crisp output.

Precision grows with the variable's subdivision.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Tuple

import numpy as np

if TYPE_CHECKING:
    from fls.fuzzifier import FuzzyVariable

defuzzifier_log = logging.getLogger("defuzzifier")

Point = Tuple[float, float]

DOMAIN_PADDING = 1.0
AREA_EPSILON = 1e-9


@dataclass
class Defuzzification:
    """
    Result of one defuzzification pass.

    Attributes:
        centroid (Point): Barycenter (x, y) of the aggregated shape. The x
            value is the crisp output.
        outline (List[Point]): Closed outline, starting and ending on the
            baseline.
        baseline (List[Point]): The outline's x values projected onto y=0.
        degenerate (bool): True when the shape had no area and the centroid
            fell back to the domain midpoint.
    """

    centroid: Point
    outline: List[Point] = field(default_factory=list)
    baseline: List[Point] = field(default_factory=list)
    degenerate: bool = False

    @property
    def x(self) -> float:
        return self.centroid[0]


def polygon_centroid(points: np.ndarray) -> Tuple[float, float, float]:
    """
    Barycenter of a closed polygon by the shoelace formula.

    Args:
        points (np.ndarray): An (N, 2) array of vertices. The closing edge
            from the last vertex back to the first is implied.

    Returns:
        Tuple[float, float, float]: (cx, cy, signed_area). The centroid is
            NaN when the area is zero; callers must check the area first.
    """
    x = points[:, 0]
    y = points[:, 1]
    x_next = np.roll(x, -1)
    y_next = np.roll(y, -1)
    cross = x * y_next - x_next * y
    area = cross.sum() / 2.0
    if area == 0.0:
        return float("nan"), float("nan"), 0.0
    cx = ((x + x_next) * cross).sum() / (6.0 * area)
    cy = ((y + y_next) * cross).sum() / (6.0 * area)
    return float(cx), float(cy), float(area)


class Defuzzifier:
    """Performs sampled centroid defuzzification on an output variable."""

    def __init__(self):
        """Initializes the Defuzzifier."""
        defuzzifier_log.info("Defuzzifier initialized.")

    def sample_values(self, variable: "FuzzyVariable") -> Tuple[np.ndarray, float, float]:
        """
        Builds the sorted sample x values for a variable.

        Returns:
            Tuple[np.ndarray, float, float]: (samples, domain_min, domain_max)
                where the domain is the widest foot extent padded on both sides.
        """
        trapezoids = variable.trapezoids
        domain_min = min(t.foot_left for t in trapezoids) - DOMAIN_PADDING
        domain_max = max(t.foot_right for t in trapezoids) + DOMAIN_PADDING

        uniform = np.linspace(domain_min, domain_max, variable.subdivision, endpoint=False)
        corners = []
        for t in trapezoids:
            corners.extend(
                (t.adjusted_peak_left()[0], t.foot_left, t.adjusted_peak_right()[0], t.foot_right)
            )
        samples = np.sort(np.concatenate([uniform, np.asarray(corners, dtype=float)]))
        return samples, domain_min, domain_max

    def defuzzify(self, variable: "FuzzyVariable") -> Defuzzification:
        """
        Calculates the centroid of the union of all output trapezoids.

        Args:
            variable (FuzzyVariable): The output variable, with every
                trapezoid's height already assigned.

        Returns:
            Defuzzification: The centroid plus the sampled outline. When the
                shape has no area the centroid is the domain midpoint.
        """
        samples, domain_min, domain_max = self.sample_values(variable)

        outline: List[Point] = [(domain_min, 0.0)]
        last_x = None
        for x in samples:
            x = float(x)
            memberships = variable.fuzzify(x)
            if memberships:
                if last_x is None:
                    # drop to the baseline so vertical legs stay vertical
                    outline.append((x, 0.0))
                # union: keep the highest membership at this x
                outline.append((x, max(degree for degree, _ in memberships)))
                last_x = x
            elif last_x is not None:
                outline.append((last_x, 0.0))
                last_x = None
        if last_x is not None:
            outline.append((last_x, 0.0))
        outline.append((domain_max, 0.0))
        baseline = [(x, 0.0) for x, _ in outline]

        cx, cy, area = polygon_centroid(np.asarray(outline, dtype=float))
        if abs(area) < AREA_EPSILON:
            midpoint = (domain_min + domain_max) / 2.0
            defuzzifier_log.warning(
                "Output shape of '%s' has no area. Falling back to domain midpoint %.4f.",
                variable.name,
                midpoint,
            )
            return Defuzzification((midpoint, 0.0), outline, baseline, degenerate=True)

        defuzzifier_log.debug(
            "Defuzzified '%s': centroid=(%.4f, %.4f) from %d outline points, area=%.4f",
            variable.name,
            cx,
            cy,
            len(outline),
            abs(area),
        )
        return Defuzzification((cx, cy), outline, baseline)
