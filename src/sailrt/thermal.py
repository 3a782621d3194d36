"""
Thermal radiative transfer: Includes the longwave emission of sunlit and shaded leaves and the soil, and the net longwave of each canopy layer
"""

import logging
from enum import Enum
import numpy as np
from sailrt.canopylayers import CanopyStructure
from sailrt.canopygeometry import CanopyOpticals
from sailrt.canopyrads import CanopyRads
from sailrt.soil import SoilOpticals
from sailrt.wavelengths import WaveLengths
from sailrt.twostream import diffusive_S
from sailrt.radiation_funcs import stefan_boltzmann
from sailrt.utils import ConfigurationError, check_leaf_count, layer_values

logger = logging.getLogger(__name__)


class EmissionModel(Enum):
    """Leaf and soil thermal emission calculation"""
    StefanBoltzmann = "StefanBoltzmann"  ## Broadband emission, sigma * emissivity * T^4
    Planck = "Planck"  ## Spectrally resolved emission (not implemented)


def resolve_emission_model(emission_model):
    """
    Converts an emission model name or EmissionModel to an EmissionModel.

    Raises
    ------
    ConfigurationError
        If the name is not an EmissionModel value.
    """
    try:
        return EmissionModel(emission_model)
    except ValueError as err:
        options = [m.value for m in EmissionModel]
        raise ConfigurationError(f"Unknown emission model '{emission_model}', options are {options}") from err


def check_emission_model(emission_model):
    """
    Resolves the emission model and rejects models that cannot be simulated.

    Returns
    -------
    EmissionModel

    Raises
    ------
    ConfigurationError
        If the emission model is unknown.
    NotImplementedError
        If the spectrally resolved Planck model is selected.
    """
    model = resolve_emission_model(emission_model)
    if model is EmissionModel.Planck:
        raise NotImplementedError("Spectrally resolved thermal emission (Planck) is not implemented, use StefanBoltzmann")
    return model


def sunlit_source(T_sun, emissivity, lidf):
    """
    Broadband emission of the sunlit leaves in each layer.

    Parameters
    ----------
    T_sun : np.ndarray
        Sunlit leaf temperature, K, either [nLayer] or angle resolved [nli, nlazi, nLayer]
    emissivity : np.ndarray
        Layer emissivity (-), [nLayer]
    lidf : np.ndarray
        Leaf inclination distribution, [nli]

    Returns
    -------
    S_sun : np.ndarray
        Emitted flux per layer, W m-2, [nLayer]. For angle resolved temperatures the emission is averaged
        over the leaf azimuths and weighted by the leaf inclination distribution.
    """
    T_sun = np.asarray(T_sun, dtype=float)
    if T_sun.ndim == 3:
        emitted = stefan_boltzmann(T_sun, emissivity[np.newaxis, np.newaxis, :])
        return np.einsum("i,ijl->l", lidf, emitted) / T_sun.shape[1]
    return stefan_boltzmann(T_sun, emissivity)


def thermal_fluxes(
    leaves,
    can_opt: CanopyOpticals,
    can_rad: CanopyRads,
    can: CanopyStructure,
    soil: SoilOpticals,
    incLW,
    wls: WaveLengths,
    emission_model="StefanBoltzmann",
):
    """
    Calculates the longwave radiation balance of the canopy layers and the soil.

    Parameters
    ----------
    leaves : list of LeafBios
        Either one leaf shared by all layers or one leaf per layer, with broadband rho_LW and tau_LW
    can_opt : CanopyOpticals
        Canopy optical coefficients from canopy_geometry
    can_rad : CanopyRads
        Canopy radiation buffer with leaf temperatures T_sun and T_shade; net longwave is written in place
    can : CanopyStructure
        Canopy structure
    soil : SoilOpticals
        Soil boundary condition (albedo_LW and soil_skinT)
    incLW : float or array_like
        Incoming longwave radiation at the top of the canopy, W m-2
    wls : WaveLengths
        Wavelength grids, used by spectrally resolved emission
    emission_model : str or EmissionModel
        Thermal emission calculation, "StefanBoltzmann" (default) or "Planck"

    Returns
    -------
    F_minus : np.ndarray
        Downward longwave flux at each layer edge, W m-2, [1, nLayer+1]
    F_plus : np.ndarray
        Upward longwave flux at each layer edge, W m-2, [1, nLayer+1]
    net_diffuse : np.ndarray
        Longwave absorbed by each layer, W m-2, [1, nLayer]

    Notes
    -----
    The leaf longwave reflectance and transmittance are turned into thin layer optical properties with the
    diffuse SAIL weights. Each layer emits S = iLAI * (fSun * S_sun + (1 - fSun) * S_shade) both upward and
    downward, where fSun is the sunlit fraction at mid-layer. Net longwave of a leaf is the absorbed flux
    minus the emission from its two sides.

    References
    ----------
    Verhoef et al., 2007, doi:10.1109/TGRS.2007.895844
    """
    check_emission_model(emission_model)

    nLayer = can.nLayer
    check_leaf_count(leaves, nLayer)
    iLAI = can.iLAI

    # 1. Sunlit fraction at mid-layer
    fSun = 0.5 * (can_opt.Ps[:-1] + can_opt.Ps[1:])

    # 2. Layer optical properties and emissivity
    rho_LW = layer_values(leaves, "rho_LW", nLayer)
    tau_LW = layer_values(leaves, "tau_LW", nLayer)
    sigf = can_opt.ddf * rho_LW + can_opt.ddb * tau_LW
    sigb = can_opt.ddb * rho_LW + can_opt.ddf * tau_LW
    tau_dd = 1 - (1 - sigf) * iLAI
    rho_dd = sigb * iLAI
    epsilon = 1 - tau_dd - rho_dd
    if np.any(tau_dd < 0):
        raise ConfigurationError(f"Layer leaf area {iLAI:.3f} is too large for the thin layer approximation, increase nLayer")

    # 3. Emission of shaded and sunlit leaves
    S_shade = stefan_boltzmann(can_rad.T_shade, epsilon)
    S_sun = sunlit_source(can_rad.T_sun, epsilon, can.lidf)

    # 4. Layer and soil sources
    S = iLAI * (fSun * S_sun + (1 - fSun) * S_shade)
    soil_emission = stefan_boltzmann(soil.soil_skinT, 1 - soil.albedo_LW)

    # 5. Two-stream solution
    F_minus, F_plus, net_diffuse = diffusive_S(
        tau_dd[np.newaxis, :], rho_dd[np.newaxis, :], S[np.newaxis, :], S[np.newaxis, :],
        incLW, soil_emission, soil.albedo_LW,
    )
    can_rad.intNetLW_sunlit[:] = net_diffuse[0] - 2 * S_sun
    can_rad.intNetLW_shade[:] = net_diffuse[0] - 2 * S_shade
    can_rad.RnSoilLW = float(F_minus[0, -1] - F_plus[0, -1])

    logger.debug("thermal_fluxes: outgoing LW %.2f W m-2, soil net LW %.2f W m-2", F_plus[0, 0], can_rad.RnSoilLW)
    return F_minus, F_plus, net_diffuse
