import numpy as np
import pytest

from fls.defuzzifier import Defuzzifier, polygon_centroid


@pytest.fixture
def defuzzifier():
    return Defuzzifier()


def _set_heights(variable, *heights):
    for trapezoid, height in zip(variable, heights):
        trapezoid.height = height


def test_polygon_centroid_unit_square():
    cx, cy, area = polygon_centroid(np.array([(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)]))
    assert (cx, cy) == pytest.approx((0.5, 0.5))
    assert area == pytest.approx(1.0)


def test_polygon_centroid_zero_area():
    _, _, area = polygon_centroid(np.array([(0.0, 0.0), (1.0, 0.0), (2.0, 0.0)]))
    assert area == 0.0


def test_single_symmetric_trapezoid(output_variable):
    mid = output_variable.add_trapezoid()
    output_variable.move(output_variable.index_of(mid), peak_left=40.0, peak_right=60.0, foot_left=30.0, foot_right=70.0)
    _set_heights(output_variable, 0.0, 1.0, 0.0)

    result = output_variable.defuzzify()
    assert result.x == pytest.approx(50.0, abs=1e-6)
    assert not result.degenerate


def test_symmetric_trapezoid_at_reduced_height(output_variable):
    mid = output_variable.add_trapezoid()
    output_variable.move(output_variable.index_of(mid), peak_left=40.0, peak_right=60.0, foot_left=30.0, foot_right=70.0)
    _set_heights(output_variable, 0.0, 0.3, 0.0)
    assert output_variable.defuzzify().x == pytest.approx(50.0, abs=1e-6)


def test_vertical_leg_triangle(output_variable):
    # right triangle from (0, 1) down to (30, 0): centroid at one third of the base
    output_variable.move(0, foot_left=0.0, foot_right=30.0)
    _set_heights(output_variable, 1.0, 0.0)
    assert output_variable.defuzzify().x == pytest.approx(10.0, abs=1e-6)


def test_left_shoulder_only(output_variable):
    _set_heights(output_variable, 1.0, 0.0)
    assert output_variable.defuzzify().x == pytest.approx(0.0, abs=1e-6)


def test_union_of_overlapping_sets_uses_max(output_variable, defuzzifier):
    mid = output_variable.add_trapezoid()
    output_variable.move(output_variable.index_of(mid), peak_left=0.0, peak_right=0.0, foot_left=-25.0, foot_right=25.0)
    _set_heights(output_variable, 1.0, 0.5, 0.0)
    # the lower duplicate hides under the shoulder
    assert defuzzifier.defuzzify(output_variable).x == pytest.approx(0.0, abs=1e-6)


def test_all_zero_heights_fall_back_to_midpoint(output_variable, defuzzifier):
    _set_heights(output_variable, 0.0, 0.0)
    samples, domain_min, domain_max = defuzzifier.sample_values(output_variable)
    result = defuzzifier.defuzzify(output_variable)
    assert result.degenerate
    assert result.x == pytest.approx((domain_min + domain_max) / 2.0)


def test_outline_is_closed_on_baseline(output_variable):
    _set_heights(output_variable, 1.0, 1.0)
    result = output_variable.defuzzify()
    assert result.outline[0][1] == 0.0
    assert result.outline[-1][1] == 0.0
    assert len(result.baseline) == len(result.outline)
    assert all(y == 0.0 for _, y in result.baseline)
    assert all(0.0 <= y <= 1.0 for _, y in result.outline)


def test_gap_between_sets_runs_along_baseline(output_variable):
    _set_heights(output_variable, 1.0, 1.0)
    result = output_variable.defuzzify()
    assert (25.0, 0.0) in result.outline
    assert (75.0, 0.0) in result.outline
    assert all(y == 0.0 for x, y in result.outline if 25.0 <= x <= 75.0)
    assert result.x == pytest.approx(50.0, abs=1e-6)


def test_sample_values_include_corners(output_variable, defuzzifier):
    output_variable.subdivision = 7
    samples, domain_min, domain_max = defuzzifier.sample_values(output_variable)
    assert len(samples) == 7 + 4 * len(output_variable)
    assert np.all(np.diff(samples) >= 0)
    assert domain_min == pytest.approx(-26.0)
    assert domain_max == pytest.approx(126.0)
    for corner in (-25.0, 0.0, 25.0, 75.0, 100.0, 125.0):
        assert corner in samples


@pytest.mark.parametrize("subdivision", [1, 5, 20, 200])
def test_piecewise_linear_shapes_are_exact_at_any_subdivision(output_variable, subdivision):
    output_variable.subdivision = subdivision
    _set_heights(output_variable, 1.0, 1.0)
    assert output_variable.defuzzify().x == pytest.approx(50.0, abs=1e-6)
