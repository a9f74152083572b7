"""
Fuzzifies crisp input values through an ordered set of trapezoids.

This module holds the FuzzyVariable, one axis of a fuzzy logic system. A
variable owns its trapezoids in a list whose order is meaningful: on an input
variable neighbouring trapezoids share their edges, so every foot point is
derived from the neighbour's peak point and the two shoulders reach the
extended domain bounds. The output variable runs in "independent feet" mode
where each trapezoid may be shaped freely inside the extended domain and
centroid defuzzification is available.

All edge clamping happens here, never inside a Trapezoid.
"""

import logging
import random
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from fls.defuzzifier import Defuzzification, Defuzzifier
from fls.trapezoid import Color, Trapezoid, new_id

fuzzifier_log = logging.getLogger("fuzzifier")

OUTPUT_EXTENSION = 0.5
SHOULDER_WIDTH = 0.2
LEFT_SHOULDER_COLOR: Color = (1.0, 0.0, 0.0, 1.0)
RIGHT_SHOULDER_COLOR: Color = (0.0, 1.0, 0.0, 1.0)

Membership = Tuple[float, Trapezoid]


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class FuzzyVariable:
    """
    One input axis, or the output axis of a system.

    Attributes:
        id (str): Stable identifier.
        name (str): Readable name used by hosts.
        independent_feet (bool): True for the output variable. Feet are then
            editable per trapezoid and the crisp value is not clamped.
        division (int): Number of grid divisions for presentation only.
        min_extension (float): Scale of the domain extension below 0.
        max_extension (float): Scale of the domain extension above max_value.
        revision (int): Incremented whenever trapezoids are added or removed.
    """

    def __init__(
        self,
        name: Optional[str] = None,
        max_value: float = 100.0,
        variable_id: Optional[str] = None,
        independent_feet: bool = False,
        division: int = 10,
        subdivision: int = 20,
        min_extension: Optional[float] = None,
        max_extension: Optional[float] = None,
        value: float = 0.0,
        create_shoulders: bool = True,
    ) -> None:
        self.id = variable_id or new_id()
        self.name = name or ""
        self.independent_feet = independent_feet
        self.division = int(division)

        default_extension = OUTPUT_EXTENSION if independent_feet else 0.0
        self.min_extension = default_extension if min_extension is None else float(min_extension)
        self.max_extension = default_extension if max_extension is None else float(max_extension)

        self._max_value = float(max_value)
        if self._max_value <= 0:
            raise ValueError(f"max_value must be positive, got {max_value}")
        self._value = 0.0
        self._subdivision = 20
        self.subdivision = subdivision
        self.revision = 0
        self._trapezoids: List[Trapezoid] = []
        self._defuzzifier = Defuzzifier() if independent_feet else None

        if create_shoulders:
            self._create_shoulders()
        self.value = value

        fuzzifier_log.info(
            "Variable '%s' created with domain [%.3f, %.3f] and %d trapezoids.",
            self.name,
            self.domain_min(),
            self.domain_max(),
            len(self._trapezoids),
        )

    # ------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------
    @classmethod
    def from_trapezoids(cls, trapezoids: Sequence[Trapezoid], **kwargs) -> "FuzzyVariable":
        """
        Builds a variable around existing trapezoids, keeping their ids.

        Used when restoring a serialized system. Input variables re-derive
        their shared edges afterwards so a hand-edited payload cannot break
        the neighbour invariants.
        """
        if len(trapezoids) < 2:
            raise ValueError("A variable needs at least two trapezoids (the shoulders).")
        variable = cls(create_shoulders=False, **kwargs)
        variable._trapezoids = list(trapezoids)
        if not variable.independent_feet:
            variable._rederive_edges()
        variable.value = kwargs.get("value", 0.0)
        return variable

    def _create_shoulders(self) -> None:
        low, high = self.domain_min(), self.domain_max()
        left = Trapezoid(color=LEFT_SHOULDER_COLOR)
        right = Trapezoid(color=RIGHT_SHOULDER_COLOR)
        self._trapezoids = [left, right]

        if self.independent_feet:
            left.peak_left = left.peak_right = 0.0
            left.foot_left = low * 0.5
            left.foot_right = abs(left.foot_left)

            right.peak_left = right.peak_right = self._max_value
            reach = (high - self._max_value) * 0.5
            right.foot_left = self._max_value - reach
            right.foot_right = self._max_value + reach
        else:
            left.peak_right = low + self._max_value * SHOULDER_WIDTH
            right.peak_left = high - self._max_value * SHOULDER_WIDTH
            self._rederive_edges()

    # ------------------------------------------------------------
    # Domain
    # ------------------------------------------------------------
    @property
    def max_value(self) -> float:
        return self._max_value

    @max_value.setter
    def max_value(self, max_value: float) -> None:
        if max_value <= 0:
            raise ValueError(f"max_value must be positive, got {max_value}")
        self._max_value = float(max_value)
        if not self.independent_feet:
            self._rederive_edges()
        self.value = self._value

    def domain_min(self) -> float:
        """Lower bound of the extended domain, -max_value * min_extension."""
        return -self._max_value * self.min_extension

    def domain_max(self) -> float:
        """Upper bound of the extended domain, max_value * (1 + max_extension)."""
        return self._max_value * (1.0 + self.max_extension)

    @property
    def value(self) -> float:
        return self._value

    @value.setter
    def value(self, value: float) -> None:
        if self.independent_feet:
            self._value = float(value)
        else:
            self._value = _clamp(float(value), 0.0, self._max_value)

    @property
    def subdivision(self) -> int:
        """Number of uniform samples used to rebuild the output shape."""
        return self._subdivision

    @subdivision.setter
    def subdivision(self, subdivision: int) -> None:
        if int(subdivision) < 1:
            raise ValueError(f"subdivision must be at least 1, got {subdivision}")
        self._subdivision = int(subdivision)

    # ------------------------------------------------------------
    # Trapezoid access
    # ------------------------------------------------------------
    @property
    def trapezoids(self) -> Tuple[Trapezoid, ...]:
        return tuple(self._trapezoids)

    def __len__(self) -> int:
        return len(self._trapezoids)

    def __iter__(self) -> Iterator[Trapezoid]:
        return iter(tuple(self._trapezoids))

    def get_trapezoid(self, index: int) -> Trapezoid:
        self._check_index(index)
        return self._trapezoids[index]

    def get_trapezoid_by_name(self, name: str) -> Optional[Trapezoid]:
        for trapezoid in self._trapezoids:
            if trapezoid.name == name:
                return trapezoid
        return None

    def get_trapezoid_by_id(self, trapezoid_id: str) -> Optional[Trapezoid]:
        for trapezoid in self._trapezoids:
            if trapezoid.id == trapezoid_id:
                return trapezoid
        return None

    def index_of(self, trapezoid: Trapezoid) -> int:
        for i, item in enumerate(self._trapezoids):
            if item is trapezoid:
                return i
        raise ValueError(f"Trapezoid '{trapezoid.name or trapezoid.id}' is not on variable '{self.name}'")

    def is_left_shoulder(self, trapezoid: Trapezoid) -> bool:
        return self.index_of(trapezoid) == 0

    def is_right_shoulder(self, trapezoid: Trapezoid) -> bool:
        return self.index_of(trapezoid) == len(self._trapezoids) - 1

    def previous_trapezoid(self, trapezoid: Trapezoid) -> Trapezoid:
        return self.get_trapezoid(self.index_of(trapezoid) - 1)

    def next_trapezoid(self, trapezoid: Trapezoid) -> Trapezoid:
        return self.get_trapezoid(self.index_of(trapezoid) + 1)

    # ------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------
    def add_trapezoid(self, name: str = "", color: Optional[Color] = None) -> Trapezoid:
        """
        Inserts a trapezoid just before the right shoulder.

        The new peak sits halfway between the neighbouring peaks and its feet
        rest on them.

        Returns:
            Trapezoid: The inserted trapezoid.
        """
        prev_one = self._trapezoids[-2]
        next_one = self._trapezoids[-1]
        if color is None:
            color = (random.random(), random.random(), random.random(), 1.0)

        peak = prev_one.peak_right + (next_one.peak_left - prev_one.peak_right) * 0.5
        trapezoid = Trapezoid(
            name=name,
            foot_left=prev_one.peak_right,
            peak_left=peak,
            peak_right=peak,
            foot_right=next_one.peak_left,
            color=color,
        )
        self._trapezoids.insert(len(self._trapezoids) - 1, trapezoid)
        if not self.independent_feet:
            self._rederive_edges()
        self.revision += 1
        fuzzifier_log.debug("Added trapezoid '%s' to '%s' at peak %.3f.", name, self.name, peak)
        return trapezoid

    def remove_trapezoid(self, index: int) -> Trapezoid:
        """Removes an interior trapezoid. The shoulders can never be removed."""
        self._check_index(index)
        if index == 0 or index == len(self._trapezoids) - 1:
            raise ValueError(f"Cannot remove shoulder trapezoid at index {index}")
        trapezoid = self._trapezoids.pop(index)
        if not self.independent_feet:
            self._rederive_edges()
        self.revision += 1
        fuzzifier_log.debug("Removed trapezoid '%s' from '%s'.", trapezoid.name, self.name)
        return trapezoid

    def move(
        self,
        index: int,
        *,
        foot_left: Optional[float] = None,
        peak_left: Optional[float] = None,
        peak_right: Optional[float] = None,
        foot_right: Optional[float] = None,
    ) -> Trapezoid:
        """
        Moves the points of one trapezoid, clamping them to stay valid.

        Peaks are applied before feet. When both peaks move to the right of
        the current right peak, the right peak goes first so the left one is
        not clamped against its old position. On the output variable a foot is
        pushed along when its peak passes it. On an input variable feet are
        derived from the neighbours and cannot be set.

        Args:
            index (int): Position of the trapezoid in the variable.
            foot_left, peak_left, peak_right, foot_right (Optional[float]):
                New values; None leaves a point untouched.

        Returns:
            Trapezoid: The moved trapezoid.
        """
        trapezoid = self.get_trapezoid(index)
        if not self.independent_feet and (foot_left is not None or foot_right is not None):
            raise ValueError("Feet of input variable trapezoids follow their neighbours' peaks.")

        peaks = [("peak_left", peak_left), ("peak_right", peak_right)]
        if peak_left is not None and peak_right is not None and peak_left > trapezoid.peak_right:
            peaks.reverse()
        for attr, value in peaks + [("foot_left", foot_left), ("foot_right", foot_right)]:
            if value is not None:
                setattr(trapezoid, attr, self._clamped(index, attr, float(value)))
            if self.independent_feet and attr.startswith("peak"):
                # a peak pushes its own foot ahead of it
                trapezoid.foot_left = min(trapezoid.foot_left, trapezoid.peak_left)
                trapezoid.foot_right = max(trapezoid.foot_right, trapezoid.peak_right)

        if not self.independent_feet:
            self._rederive_edges()
        return trapezoid

    def reshape(self, peaks: Sequence[Tuple[float, float]]) -> None:
        """
        Replaces every peak of an input variable in one step.

        Args:
            peaks (Sequence[Tuple[float, float]]): One (peak_left, peak_right)
                pair per trapezoid, left to right. The sequence must be
                non-decreasing and inside the extended domain. The outer
                peaks of the shoulders are pinned to the domain bounds.
        """
        if self.independent_feet:
            raise ValueError("reshape() is only defined for input variables; use move().")
        if len(peaks) != len(self._trapezoids):
            raise ValueError(f"Expected {len(self._trapezoids)} peak pairs, got {len(peaks)}")

        low, high = self.domain_min(), self.domain_max()
        flat = [low] + [float(x) for pair in peaks for x in pair][1:-1] + [high]
        for a, b in zip(flat, flat[1:]):
            if a > b:
                raise ValueError(f"Peaks must be non-decreasing inside [{low}, {high}], got {a} before {b}")

        for i, trapezoid in enumerate(self._trapezoids):
            trapezoid.peak_left = flat[2 * i]
            trapezoid.peak_right = flat[2 * i + 1]
        self._rederive_edges()

    def _clamped(self, index: int, attr: str, value: float) -> float:
        trapezoid = self._trapezoids[index]
        low, high = self.domain_min(), self.domain_max()
        last = len(self._trapezoids) - 1

        if self.independent_feet:
            if attr == "peak_left":
                return _clamp(value, low, trapezoid.peak_right)
            if attr == "peak_right":
                return _clamp(value, trapezoid.peak_left, high)
            if attr == "foot_left":
                return _clamp(value, low, trapezoid.peak_left)
            return _clamp(value, trapezoid.peak_right, high)

        if attr == "peak_left":
            if index == 0:
                return low
            return _clamp(value, self._trapezoids[index - 1].peak_right, trapezoid.peak_right)
        if index == last:
            return high
        return _clamp(value, trapezoid.peak_left, self._trapezoids[index + 1].peak_left)

    def _rederive_edges(self) -> None:
        ts = self._trapezoids
        low, high = self.domain_min(), self.domain_max()
        last = len(ts) - 1
        for trapezoid in ts:
            trapezoid.peak_left = _clamp(trapezoid.peak_left, low, high)
            trapezoid.peak_right = _clamp(trapezoid.peak_right, low, high)
        ts[0].peak_left = low
        ts[last].peak_right = high
        for i, trapezoid in enumerate(ts):
            trapezoid.foot_left = low if i == 0 else ts[i - 1].peak_right
            trapezoid.foot_right = high if i == last else ts[i + 1].peak_left

    def reset_heights(self, height: float = 1.0) -> None:
        for trapezoid in self._trapezoids:
            trapezoid.height = height

    # ------------------------------------------------------------
    # Fuzzification
    # ------------------------------------------------------------
    def fuzzify(self, crisp_value: Optional[float] = None) -> List[Membership]:
        """
        Intersects a vertical line at the crisp value with every trapezoid.

        Args:
            crisp_value (Optional[float]): The value to test. Defaults to the
                variable's current value.

        Returns:
            List[Membership]: (membership, trapezoid) pairs for every
                trapezoid whose support contains the value, in variable order.
        """
        x = self._value if crisp_value is None else crisp_value
        memberships = []
        for trapezoid in self._trapezoids:
            degree = trapezoid.membership(x)
            if degree is not None:
                memberships.append((degree, trapezoid))
        return memberships

    def membership(self, trapezoid: Trapezoid) -> float:
        """Membership of the current value in one trapezoid, 0 when it does not contribute."""
        for degree, item in self.fuzzify():
            if item is trapezoid:
                return degree
        return 0.0

    def degrees(self) -> Dict[str, float]:
        """Maps trapezoid names to their membership of the current value."""
        degrees = {trapezoid.name: degree for degree, trapezoid in self.fuzzify()}
        formatted = {k: f"{v:.3f}" for k, v in degrees.items()}
        fuzzifier_log.debug("Fuzzified %s= %.3f -> %s", self.name, self._value, formatted)
        return degrees

    # ------------------------------------------------------------
    # Defuzzification
    # ------------------------------------------------------------
    def defuzzify(self) -> Defuzzification:
        """Centroid of the union of all trapezoids at their current heights."""
        if self._defuzzifier is None:
            raise ValueError(f"Variable '{self.name}' is not an output variable.")
        return self._defuzzifier.defuzzify(self)

    def _check_index(self, index: int) -> None:
        if index < 0 or index >= len(self._trapezoids):
            raise IndexError(f"Trapezoid index {index} out of range for '{self.name}'")
