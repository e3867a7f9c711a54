import numpy as np
import pytest

from shadebuilder import config
from shadebuilder.errors import InvalidParameter, OutOfRange
from shadebuilder.params import ShellParams, SilhouetteFamily
from shadebuilder.silhouette import profile_radius, radius_at, silhouette_radius


T = np.linspace(0.0, 1.0, 201)


@pytest.mark.parametrize("family", list(SilhouetteFamily))
def test_radius_is_positive_for_every_family(family):
    for top, bottom in ((5.0, 8.0), (8.0, 5.0), (0.2, 0.2), (30.0, 1.0)):
        r = silhouette_radius(T, family, top, bottom)
        assert r.shape == T.shape
        assert np.all(np.isfinite(r))
        assert np.all(r > 0.0)


def test_straight_interpolates_bottom_to_top():
    assert radius_at(0.0, SilhouetteFamily.STRAIGHT, 5.0, 8.0) == pytest.approx(8.0)
    assert radius_at(1.0, SilhouetteFamily.STRAIGHT, 5.0, 8.0) == pytest.approx(5.0)
    assert radius_at(0.5, SilhouetteFamily.STRAIGHT, 5.0, 8.0) == pytest.approx(6.5)


def test_closed_form_factors():
    # hourglass pinches 30 % at mid height, bell flares 40 % at the base
    assert radius_at(0.5, SilhouetteFamily.HOURGLASS, 6.0, 6.0) == pytest.approx(6.0 * 0.7)
    assert radius_at(0.0, SilhouetteFamily.BELL, 6.0, 6.0) == pytest.approx(6.0 * 1.4)
    assert radius_at(0.5, SilhouetteFamily.CONVEX, 6.0, 6.0) == pytest.approx(6.0 * 1.2)
    assert radius_at(0.5, SilhouetteFamily.CONCAVE, 6.0, 6.0) == pytest.approx(6.0 * 0.8)


def test_degenerate_radius_is_clamped_not_rejected():
    r = silhouette_radius(T, SilhouetteFamily.DOME, 0.01, 0.01)
    assert r.min() >= config.OUTER_RADIUS_FLOOR


@pytest.mark.parametrize("t", [-0.01, 1.0001, float("nan"), float("inf")])
def test_fraction_outside_unit_interval_is_rejected(t):
    with pytest.raises(OutOfRange) as info:
        radius_at(t, SilhouetteFamily.BELL, 5.0, 8.0)
    assert isinstance(info.value, InvalidParameter)
    assert isinstance(info.value, ValueError)
    assert info.value.parameter == "height_fraction"


def test_family_accepts_plain_strings():
    assert radius_at(0.0, "bell", 5.0, 5.0) == radius_at(0.0, SilhouetteFamily.BELL, 5.0, 5.0)


def test_profile_radius_uses_shell_fields():
    p = ShellParams(silhouette="straight", top_radius=4.0, bottom_radius=10.0)
    assert profile_radius(0.0, p) == pytest.approx(10.0)
    assert profile_radius(1.0, p) == pytest.approx(4.0)
