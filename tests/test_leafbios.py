import numpy as np
import pytest

from sailrt.canopyrads import create_canopy_rads, create_incoming_radiation
from sailrt.canopylayers import CanopyStructure
from sailrt.leafbios import LeafBios, create_leaves, fluorescence_matrices, leaf_spectra
from sailrt.radiation_funcs import spectral_integral
from sailrt.soil import SoilOpticals, create_soil
from sailrt.utils import ConfigurationError, layer_values
from sailrt.wavelengths import WaveLengths


@pytest.fixture
def wls():
    return WaveLengths()


def test_wavelength_grids(wls):
    assert wls.WLE[0] >= 400.0 and wls.WLE[-1] <= 750.0
    assert wls.WLF[0] >= 640.0 and wls.WLF[-1] <= 850.0
    assert wls.nWLE == wls.iWLE.size
    np.testing.assert_array_equal(wls.WL[wls.iPAR], wls.WL[(wls.WL >= 400.0) & (wls.WL <= 700.0)])


def test_invalid_wavelength_grid():
    with pytest.raises(ConfigurationError):
        WaveLengths(WL=np.array([500.0, 450.0, 600.0]))
    with pytest.raises(ConfigurationError):
        WaveLengths(WL=np.arange(1000.0, 2000.0, 10.0))


def test_leaf_spectra_physical(wls):
    rho, tau, kChlrel = leaf_spectra(wls.WL, 40.0, 10.0, 0.012, 0.0)
    assert np.all(rho >= 0) and np.all(tau >= 0)
    assert np.all(rho + tau <= 1)
    assert np.all((kChlrel >= 0) & (kChlrel <= 1))
    green = np.argmin(np.abs(wls.WL - 550.0))
    red = np.argmin(np.abs(wls.WL - 670.0))
    assert rho[green] > rho[red]


def test_pigments_darken_leaf(wls):
    rho_low, _, _ = leaf_spectra(wls.WL, 10.0, 10.0, 0.012, 0.0)
    rho_high, _, _ = leaf_spectra(wls.WL, 60.0, 10.0, 0.012, 0.0)
    assert np.all(rho_high[wls.iPAR] <= rho_low[wls.iPAR])
    _, _, k0 = leaf_spectra(wls.WL, 40.0, 10.0, 0.012, 0.0)
    _, _, k1 = leaf_spectra(wls.WL, 40.0, 10.0, 0.012, 1.0)
    assert np.all(k1 <= k0)


def test_fluorescence_matrices(wls):
    leaf = create_leaves(wls, fqe=0.02)[0]
    assert leaf.Mb.shape == (wls.nWLF, wls.nWLE)
    assert np.all(leaf.Mf <= leaf.Mb)
    Mb, Mf = fluorescence_matrices(leaf, wls)
    np.testing.assert_allclose(Mb, leaf.Mb)
    # Emitted energy cannot exceed the absorbed excitation times the quantum efficiency
    emitted = spectral_integral(leaf.Mb + leaf.Mf, wls.WLF)
    absorbed = (1 - leaf.rho_SW - leaf.tau_SW)[wls.iWLE] * wls.dWL[wls.iWLE]
    assert np.all(emitted <= 0.02 * absorbed * 1.05)


def test_check_spectra(wls):
    with pytest.raises(ConfigurationError):
        LeafBios().check_spectra(wls)
    leaf = create_leaves(wls)[0]
    leaf.check_spectra(wls)
    leaf.rho_SW = leaf.rho_SW[:10]
    with pytest.raises(ConfigurationError):
        leaf.check_spectra(wls)


def test_layer_values(wls):
    leaves = create_leaves(wls, rho_LW=0.03)
    np.testing.assert_array_equal(layer_values(leaves, "rho_LW", 5), np.full(5, 0.03))
    assert layer_values(leaves, "rho_SW", 5).shape == (wls.nWL, 5)
    with pytest.raises(ConfigurationError):
        layer_values(leaves * 2, "rho_LW", 5)


def test_soil(wls):
    soil = create_soil(wls)
    assert soil.albedo_SW[0] == pytest.approx(0.10)
    assert soil.albedo_SW[-1] == pytest.approx(0.30)
    assert create_soil(wls, 0.2).albedo_SW.shape == (wls.nWL,)
    with pytest.raises(ConfigurationError):
        SoilOpticals(albedo_SW=np.full(3, 1.5))
    with pytest.raises(ConfigurationError):
        create_soil(wls, np.full(3, 0.2))


def test_incoming_radiation(wls):
    in_rad = create_incoming_radiation(wls, Rdir=600.0, Rdif=150.0)
    assert 1e-3 * spectral_integral(in_rad.E_direct, wls.WL) == pytest.approx(600.0)
    assert 1e-3 * spectral_integral(in_rad.E_diffuse, wls.WL) == pytest.approx(150.0)


def test_canopy_rads_temperatures(wls):
    can = CanopyStructure(nLayer=5)
    can_rad = create_canopy_rads(can, wls, T_sun=305.0)
    np.testing.assert_array_equal(can_rad.T_sun, np.full(5, 305.0))
    with pytest.raises(ConfigurationError):
        create_canopy_rads(can, wls, T_shade=np.full(4, 290.0))
