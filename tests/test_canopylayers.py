import numpy as np
import pytest

from sailrt.canopylayers import CanopyStructure, LITAB_BND, dcum, dladgen
from sailrt.utils import ConfigurationError


def test_default_lidf_is_normalised():
    can = CanopyStructure()
    assert can.lidf.shape == (13,)
    assert np.sum(can.lidf) == pytest.approx(1.0, abs=1e-9)
    assert np.all(can.lidf >= 0)


def test_uniform_inclination_distribution():
    lidf = dladgen(0.0, 0.0, LITAB_BND)
    # Uniform in angle, every bin holds its share of 90 degrees
    np.testing.assert_allclose(lidf, np.diff(LITAB_BND, axis=1)[:, 0] / 90.0, atol=1e-9)


def test_dcum_spans_zero_to_one():
    for a, b in [(0.0, 0.0), (-0.35, -0.15), (0.5, 0.2), (1.0, 0.0)]:
        assert dcum(a, b, 0.0) == pytest.approx(0.0, abs=1e-8)
        assert dcum(a, b, 90.0) == pytest.approx(1.0, abs=1e-8)


def test_planophile_distribution_favours_horizontal_leaves():
    lidf = dladgen(1.0, 0.0, LITAB_BND)
    assert lidf[0] > lidf[6]
    assert np.argmax(lidf) == 0


def test_spherical_shortcut_only_above_one():
    for t in (10.0, 45.0, 80.0):
        assert dcum(1.5, 0.0, t) == pytest.approx(1 - np.cos(np.deg2rad(t)))
        assert dcum(1.0, 0.0, t) != pytest.approx(1 - np.cos(np.deg2rad(t)), rel=1e-3)


def test_invalid_lidf_parameters():
    with pytest.raises(ConfigurationError):
        CanopyStructure(LIDFa=0.8, LIDFb=0.5)


@pytest.mark.parametrize("nLayer", [0, -3, 2.5])
def test_invalid_layer_count(nLayer):
    with pytest.raises(ConfigurationError):
        CanopyStructure(nLayer=nLayer)


def test_negative_lai():
    with pytest.raises(ConfigurationError):
        CanopyStructure(LAI=-1.0)


def test_lidf_must_sum_to_one():
    with pytest.raises(ConfigurationError):
        CanopyStructure(lidf=np.full(13, 0.1))


def test_lidf_must_match_litab():
    with pytest.raises(ConfigurationError):
        CanopyStructure(lidf=np.full(5, 0.2))


def test_layer_grid():
    can = CanopyStructure(nLayer=20, LAI=3.0, Omega=0.5)
    assert can.xl.shape == (21,)
    assert can.xl[0] == 0.0
    assert can.xl[-1] == -1.0
    np.testing.assert_array_equal(can.xl_e, can.xl)
    assert can.dx == pytest.approx(0.05)
    assert can.iLAI == pytest.approx(3.0 * 0.5 / 20)
    can.Omega = 1.0
    assert can.iLAI == pytest.approx(0.15)


def test_hot_spot_default():
    can = CanopyStructure(leaf_width=0.1, hc=2.0)
    assert can.hot == pytest.approx(0.05)


def test_cast_parameter_over_layers_uniform():
    can = CanopyStructure(nLayer=4)
    np.testing.assert_array_equal(can.cast_parameter_over_layers_uniform(2.0), np.full(4, 2.0))
    spectrum = np.array([0.1, 0.2, 0.3])
    layered = can.cast_parameter_over_layers_uniform(spectrum)
    assert layered.shape == (3, 4)
    np.testing.assert_array_equal(layered[:, 2], spectrum)
