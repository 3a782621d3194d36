"""
Leaf optical properties class: Includes the leaf reflectance, transmittance and fluorescence matrices consumed by the canopy radiative transfer

The canopy model only reads the spectra held by LeafBios. They can be supplied from a leaf optical model
(e.g. PROSPECT/Fluspect); for standalone runs `update_spectra` builds them from a compact parametric
description of pigment and water absorption.
"""

import numpy as np
from attrs import define, field
from sailrt.utils import ConfigurationError, check_shape
from sailrt.wavelengths import WaveLengths


@define
class LeafBios:
    """
    Leaf biochemistry and optical properties
    """
    Cab: float = field(default=40.0)  ## Chlorophyll a+b content, ug cm-2
    Car: float = field(default=10.0)  ## Carotenoid content, ug cm-2
    Cw: float = field(default=0.012)  ## Equivalent water thickness, cm
    Cx: float = field(default=0.0)  ## Zeaxanthin-violaxanthin conversion state (0 to 1)
    fqe: float = field(default=0.01)  ## Fluorescence quantum efficiency (-)
    rho_LW: float = field(default=0.01)  ## Broadband longwave leaf reflectance (-)
    tau_LW: float = field(default=0.01)  ## Broadband longwave leaf transmittance (-)

    rho_SW: np.ndarray = field(default=None)  ## Shortwave leaf reflectance (-), [nWL]
    tau_SW: np.ndarray = field(default=None)  ## Shortwave leaf transmittance (-), [nWL]
    kChlrel: np.ndarray = field(default=None)  ## Fraction of leaf absorption due to chlorophyll (-), [nWL]
    Mb: np.ndarray = field(default=None)  ## Backward fluorescence matrix, emission x excitation, [nWLF, nWLE]
    Mf: np.ndarray = field(default=None)  ## Forward fluorescence matrix, emission x excitation, [nWLF, nWLE]

    def update_spectra(self, wls: WaveLengths):
        """
        Recalculates the leaf spectra and fluorescence matrices from the leaf biochemistry.

        Parameters
        ----------
        wls : WaveLengths
            Wavelength grids

        Returns
        -------
        None
        """
        self.rho_SW, self.tau_SW, self.kChlrel = leaf_spectra(wls.WL, self.Cab, self.Car, self.Cw, self.Cx)
        self.Mb, self.Mf = fluorescence_matrices(self, wls)

    def check_spectra(self, wls: WaveLengths):
        """
        Checks that the leaf spectra are defined on the wavelength grids.

        Raises
        ------
        ConfigurationError
            If any spectrum is missing or has the wrong shape, or reflectance plus transmittance exceeds 1.
        """
        for name in ("rho_SW", "tau_SW", "kChlrel"):
            if getattr(self, name) is None:
                raise ConfigurationError(f"Leaf spectrum '{name}' is not defined, run update_spectra or assign it")
            check_shape(name, getattr(self, name), (wls.nWL,))
        for name in ("Mb", "Mf"):
            if getattr(self, name) is None:
                raise ConfigurationError(f"Leaf fluorescence matrix '{name}' is not defined, run update_spectra or assign it")
            check_shape(name, getattr(self, name), (wls.nWLF, wls.nWLE))
        if np.any(np.asarray(self.rho_SW) + np.asarray(self.tau_SW) > 1):
            raise ConfigurationError("Leaf reflectance plus transmittance cannot exceed 1")


def create_leaves(wls: WaveLengths, nleaves=1, **kwargs):
    """
    Creates a list of identical leaves with their spectra calculated on the wavelength grid.

    Parameters
    ----------
    wls : WaveLengths
        Wavelength grids
    nleaves : int
        Number of leaves: 1 for a leaf shared by all layers, or nLayer for one leaf per layer
    **kwargs
        LeafBios attributes

    Returns
    -------
    leaves : list of LeafBios
    """
    leaves = []
    for i in range(nleaves):
        leaf = LeafBios(**kwargs)
        leaf.update_spectra(wls)
        leaves.append(leaf)
    return leaves


def _gauss(wl, centre, width):
    return np.exp(-((wl - centre) / width)**2)


def leaf_spectra(wl, Cab, Car, Cw, Cx):
    """
    Parametric leaf reflectance and transmittance from pigment and water absorption.

    Parameters
    ----------
    wl : array_like
        Wavelength, nm
    Cab : float
        Chlorophyll a+b content, ug cm-2
    Car : float
        Carotenoid content, ug cm-2
    Cw : float
        Equivalent water thickness, cm
    Cx : float
        Zeaxanthin-violaxanthin conversion state (0 to 1), increases carotenoid absorption

    Returns
    -------
    rho : np.ndarray
        Leaf reflectance (-)
    tau : np.ndarray
        Leaf transmittance (-)
    kChlrel : np.ndarray
        Fraction of leaf absorption due to chlorophyll (-)

    Notes
    -----
    Absorption optical depths are Gaussian absorption bands scaled by the pigment and water contents.
    Unabsorbed light is scattered with a fixed surface reflection of 0.04 and the remainder split almost
    evenly between reflectance and transmittance, so that rho + tau <= 1 always holds.

    This is a placeholder for standalone runs, not PROSPECT. Band positions, widths and the scattering
    split are illustrative values chosen to give plausible green leaf spectra. For physically based
    spectra use a leaf optical model such as Fluspect (e.g. fluspect_B_CX in SCOPE) and assign
    rho_SW, tau_SW, kChlrel, Mb and Mf on the LeafBios directly.
    """
    wl = np.asarray(wl, dtype=float)
    k_chl = 0.9 * _gauss(wl, 435.0, 25.0) + 0.75 * _gauss(wl, 670.0, 22.0) + 0.35 * _gauss(wl, 560.0, 90.0)
    k_car = (1.0 + 0.3 * Cx) * _gauss(wl, 470.0, 35.0)
    k_w = 25.0 * _gauss(wl, 1450.0, 60.0) + 60.0 * _gauss(wl, 1940.0, 80.0) + 8.0 * np.clip((wl - 1300.0) / 1200.0, 0.0, None)

    K_chl = 0.1 * Cab * k_chl
    K_car = 0.15 * Car * k_car
    K = K_chl + K_car + Cw * k_w + 0.02

    A = 1 - np.exp(-K)
    s = 0.96 * (1 - A)
    rho = 0.04 + 0.5 * s
    tau = 0.46 * s
    kChlrel = K_chl / K
    return rho, tau, kChlrel


def fluorescence_matrices(leaf: LeafBios, wls: WaveLengths):
    """
    Backward and forward fluorescence excitation-emission matrices of a leaf.

    Parameters
    ----------
    leaf : LeafBios
        Leaf with rho_SW, tau_SW and kChlrel defined on wls.WL
    wls : WaveLengths
        Wavelength grids

    Returns
    -------
    Mb : np.ndarray
        Backward (same side as excitation) emission per unit incident irradiance, [nWLF, nWLE]
    Mf : np.ndarray
        Forward (opposite side) emission per unit incident irradiance, [nWLF, nWLE]

    Notes
    -----
    Absorbed excitation energy in each excitation bin is converted by chlorophyll with efficiency fqe
    and emitted with a two-peak (PSII 685 nm, PSI 740 nm) spectrum. Half is emitted to each side of the
    leaf; the forward half is partly re-absorbed on its way through the leaf.
    """
    rho = np.asarray(leaf.rho_SW)
    tau = np.asarray(leaf.tau_SW)
    absorbed = (1 - rho - tau) * np.asarray(leaf.kChlrel)

    WLF = wls.WLF
    phi = 0.35 * _gauss(WLF, 685.0, 12.0) + 0.65 * _gauss(WLF, 740.0, 28.0)
    phi = phi / np.sum(phi * wls.dWL[wls.iWLF])

    excitation = absorbed[wls.iWLE] * wls.dWL[wls.iWLE]
    Mb = 0.5 * leaf.fqe * np.outer(phi, excitation)
    transmission = (tau / (1 - rho))[wls.iWLF]
    Mf = Mb * (0.5 + 0.5 * transmission)[:, np.newaxis]
    return Mb, Mf
