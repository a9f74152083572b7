import pytest

from fls.trapezoid import Trapezoid, height_adjusted_peak, intersect, new_id


@pytest.fixture
def trapezoid():
    return Trapezoid(name="t", foot_left=0.0, peak_left=10.0, peak_right=20.0, foot_right=30.0)


def test_new_id_is_unique():
    assert new_id() != new_id()
    assert Trapezoid().id != Trapezoid().id


def test_membership_full_height(trapezoid):
    assert trapezoid.membership(0.0) == pytest.approx(0.0)
    assert trapezoid.membership(5.0) == pytest.approx(0.5)
    assert trapezoid.membership(10.0) == pytest.approx(1.0)
    assert trapezoid.membership(15.0) == pytest.approx(1.0)
    assert trapezoid.membership(25.0) == pytest.approx(0.5)
    assert trapezoid.membership(30.0) == pytest.approx(0.0)


def test_membership_outside_support_is_none(trapezoid):
    assert trapezoid.membership(-0.1) is None
    assert trapezoid.membership(30.1) is None


def test_membership_never_exceeds_height(trapezoid):
    trapezoid.height = 0.5
    for x in range(0, 31):
        degree = trapezoid.membership(float(x))
        assert 0.0 <= degree <= 0.5


def test_height_adjusted_peak_keeps_slope(trapezoid):
    trapezoid.height = 0.5
    assert trapezoid.adjusted_peak_left() == pytest.approx((5.0, 0.5))
    assert trapezoid.adjusted_peak_right() == pytest.approx((25.0, 0.5))
    # the leg below the new peak is unchanged
    assert trapezoid.membership(2.5) == pytest.approx(0.25)
    assert trapezoid.membership(15.0) == pytest.approx(0.5)


def test_zero_height_is_flat(trapezoid):
    trapezoid.height = 0.0
    assert trapezoid.membership(0.0) == pytest.approx(0.0)
    assert trapezoid.membership(15.0) == pytest.approx(0.0)


def test_vertical_legs_behave_like_rectangle():
    rect = Trapezoid(foot_left=0.0, peak_left=0.0, peak_right=10.0, foot_right=10.0)
    assert rect.membership(0.0) == pytest.approx(1.0)
    assert rect.membership(10.0) == pytest.approx(1.0)
    assert rect.membership(10.5) is None


def test_outline_order(trapezoid):
    assert trapezoid.outline() == ((0.0, 0.0), (10.0, 1.0), (20.0, 1.0), (30.0, 0.0))


def test_height_adjusted_peak_function():
    assert height_adjusted_peak(10.0, 0.0, 0.5) == pytest.approx((5.0, 0.5))
    assert height_adjusted_peak(10.0, 20.0, 0.25) == pytest.approx((17.5, 0.25))


def test_intersect_sloped_leg():
    assert intersect(10.0, 0.0, 2.0, 1.0) == pytest.approx((2.0, 0.2))


def test_intersect_vertical_leg_raises():
    with pytest.raises(ValueError):
        intersect(5.0, 5.0, 5.0, 1.0)


def test_equality_ignores_height(trapezoid):
    other = Trapezoid(
        id=trapezoid.id, name="t", foot_left=0.0, peak_left=10.0, peak_right=20.0, foot_right=30.0
    )
    other.height = 0.3
    assert other == trapezoid
