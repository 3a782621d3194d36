"""
Radiation helper functions used across more than one sailrt module
"""

import numpy as np
from scipy.integrate import trapezoid

## Physical constants
K_STEFAN = 5.670374419e-8  ## Stefan-Boltzmann constant (W m-2 K-4)
H_PLANCK = 6.62607015e-34  ## Planck constant (J s)
C_LIGHT = 299792458.0  ## Speed of light in vacuum (m s-1)
AVOGADRO = 6.02214076e23  ## Avogadro constant (mol-1)
K_BOLTZMANN = 1.380649e-23  ## Boltzmann constant (J K-1)
T_K0 = 273.15  ## Conversion factor from degrees Celsius to Kelvin


def stefan_boltzmann(T, emissivity=1.0):
    """
    Spectrally integrated hemispherical emission of a grey body.

    Parameters
    ----------
    T: float or ndarray
        Temperature, K

    emissivity: float or ndarray
        Emissivity (-)

    Returns
    -------
    Emitted flux, W m-2
    """
    return K_STEFAN * emissivity * np.asarray(T, dtype=float)**4


def planck(wl, T, emissivity=1.0):
    """
    Spectral hemispherical emission of a grey body following Planck's law.

    Parameters
    ----------
    wl: float or ndarray
        Wavelength, nm

    T: float or ndarray
        Temperature, K

    emissivity: float or ndarray
        Emissivity (-)

    Returns
    -------
    Spectral emitted flux, mW m-2 nm-1

    Notes
    -----
    Only used for diagnostics in this package. The thermal pipeline integrates with the Stefan-Boltzmann law.
    """
    wl_m = np.asarray(wl, dtype=float) * 1e-9
    c1 = 2.0 * np.pi * H_PLANCK * C_LIGHT**2
    c2 = H_PLANCK * C_LIGHT / K_BOLTZMANN
    # W m-2 m-1 -> mW m-2 nm-1
    return emissivity * c1 / (wl_m**5 * (np.exp(c2 / (wl_m * T)) - 1.0)) * 1e-6


def ephoton(wl):
    """
    Energy content of one photon.

    Parameters
    ----------
    wl: float or ndarray
        Wavelength, nm

    Returns
    -------
    Photon energy, J
    """
    return H_PLANCK * C_LIGHT / (np.asarray(wl, dtype=float) * 1e-9)


def e2phot(wl, E):
    """
    Converts energy flux to moles of photons.

    Parameters
    ----------
    wl: float or ndarray
        Wavelength, nm

    E: float or ndarray
        Energy flux, W m-2 (nm-1)

    Returns
    -------
    Photon flux, mol m-2 s-1 (nm-1)
    """
    return E / ephoton(wl) / AVOGADRO


def spectral_integral(flux, wl):
    """
    Integrates a spectral flux over wavelength with the trapezoidal rule.

    Parameters
    ----------
    flux: ndarray
        Spectral flux with wavelength along the first axis, e.g. mW m-2 nm-1

    wl: ndarray
        Wavelength, nm

    Returns
    -------
    Integrated flux (integrated over the first axis), e.g. mW m-2
    """
    flux = np.asarray(flux, dtype=float)
    if flux.shape[0] < 2:
        return np.zeros(flux.shape[1:]) if flux.ndim > 1 else 0.0
    return trapezoid(flux, wl, axis=0)
