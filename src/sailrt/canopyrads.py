"""
Canopy radiation classes: Includes the incoming radiation at the top of the canopy and the radiative outputs of the canopy
"""

import numpy as np
from attrs import define, field
from sailrt.canopylayers import CanopyStructure
from sailrt.wavelengths import WaveLengths
from sailrt.radiation_funcs import planck, spectral_integral
from sailrt.utils import check_shape


@define
class IncomingRadiation:
    """
    Shortwave radiation incident at the top of the canopy
    """
    E_direct: np.ndarray   ## Direct solar irradiance on a horizontal plane, mW m-2 nm-1, [nWL]
    E_diffuse: np.ndarray  ## Diffuse sky irradiance, mW m-2 nm-1, [nWL]


@define
class CanopyRads:
    """
    Radiative outputs of the canopy. Written by the shortwave, fluorescence and thermal calculations.
    """
    ## Leaf temperatures (inputs to the thermal calculation)
    T_sun: np.ndarray    ## Sunlit leaf temperature, K, [nLayer] or [nli, nlazi, nLayer]
    T_shade: np.ndarray  ## Shaded leaf temperature, K, [nLayer]

    ## Shortwave flux profiles at the layer edges, mW m-2 nm-1, [nWL, nLayer+1]
    E_down: np.ndarray = field(default=None)    ## Downward diffuse flux
    E_up: np.ndarray = field(default=None)      ## Upward diffuse flux
    E_direct: np.ndarray = field(default=None)  ## Direct beam flux on a horizontal plane

    ## Top of canopy shortwave, [nWL]
    alb_obs: np.ndarray = field(default=None)      ## Reflectance in the viewing direction (-)
    alb_direct: np.ndarray = field(default=None)   ## Directional reflectance for direct incidence (-)
    alb_diffuse: np.ndarray = field(default=None)  ## Directional reflectance for diffuse incidence (-)
    alb_hemi: np.ndarray = field(default=None)     ## Hemispherical reflectance (-)
    Lo: np.ndarray = field(default=None)           ## Radiance in the viewing direction, mW m-2 nm-1 sr-1

    ## Absorbed shortwave per unit leaf area [nLayer]
    netSW_sunlit: np.ndarray = field(default=None)  ## Net shortwave of sunlit leaves, W m-2
    netSW_shade: np.ndarray = field(default=None)   ## Net shortwave of shaded leaves, W m-2
    absPAR_sun: np.ndarray = field(default=None)    ## PAR absorbed by chlorophyll of sunlit leaves, umol m-2 s-1
    absPAR_shade: np.ndarray = field(default=None)  ## PAR absorbed by chlorophyll of shaded leaves, umol m-2 s-1
    RnSoil: float = field(default=0.0)              ## Net shortwave of the soil, W m-2

    ## Fluorescence, [nWLF]
    SIF_hemi: np.ndarray = field(default=None)  ## Hemispherical fluorescence leaving the canopy top, mW m-2 nm-1
    SIF_obs: np.ndarray = field(default=None)   ## Fluorescence radiance in the viewing direction, mW m-2 nm-1 sr-1

    ## Longwave
    intNetLW_sunlit: np.ndarray = field(default=None)  ## Net longwave of sunlit leaves in each layer, W m-2, [nLayer]
    intNetLW_shade: np.ndarray = field(default=None)   ## Net longwave of shaded leaves in each layer, W m-2, [nLayer]
    RnSoilLW: float = field(default=0.0)               ## Net longwave of the soil, W m-2


def create_canopy_rads(can: CanopyStructure, wls: WaveLengths, T_sun=300.0, T_shade=295.0) -> CanopyRads:
    """
    Allocates the canopy radiation buffer.

    Parameters
    ----------
    can : CanopyStructure
        Canopy structure
    wls : WaveLengths
        Wavelength grids
    T_sun : float or array_like
        Sunlit leaf temperature, K. A float is used for every layer.
    T_shade : float or array_like
        Shaded leaf temperature, K. A float is used for every layer.

    Returns
    -------
    CanopyRads
    """
    nLayer = can.nLayer
    T_sun = np.asarray(T_sun, dtype=float)
    T_shade = np.asarray(T_shade, dtype=float)
    if T_sun.ndim == 0:
        T_sun = can.cast_parameter_over_layers_uniform(T_sun)
    if T_shade.ndim == 0:
        T_shade = can.cast_parameter_over_layers_uniform(T_shade)
    check_shape("T_shade", T_shade, (nLayer,))
    if T_sun.ndim == 3:
        check_shape("T_sun", T_sun, (can.nli, can.nlazi, nLayer))
    else:
        check_shape("T_sun", T_sun, (nLayer,))

    _edge = np.zeros((wls.nWL, nLayer + 1))
    _layer = np.zeros(nLayer)
    return CanopyRads(
        T_sun=T_sun, T_shade=T_shade,
        E_down=_edge.copy(), E_up=_edge.copy(), E_direct=_edge.copy(),
        alb_obs=np.zeros(wls.nWL), alb_direct=np.zeros(wls.nWL), alb_diffuse=np.zeros(wls.nWL),
        alb_hemi=np.zeros(wls.nWL), Lo=np.zeros(wls.nWL),
        netSW_sunlit=_layer.copy(), netSW_shade=_layer.copy(),
        absPAR_sun=_layer.copy(), absPAR_shade=_layer.copy(),
        SIF_hemi=np.zeros(wls.nWLF), SIF_obs=np.zeros(wls.nWLF),
        intNetLW_sunlit=_layer.copy(), intNetLW_shade=_layer.copy(),
    )


def create_incoming_radiation(wls: WaveLengths, Rdir=700.0, Rdif=100.0) -> IncomingRadiation:
    """
    Creates clear-sky incoming shortwave spectra with the shape of a 5778 K black body.

    Parameters
    ----------
    wls : WaveLengths
        Wavelength grids
    Rdir : float
        Broadband direct irradiance over the wavelength grid, W m-2
    Rdif : float
        Broadband diffuse irradiance over the wavelength grid, W m-2. The diffuse spectrum is shifted to the blue by a wl^-2 factor.

    Returns
    -------
    IncomingRadiation
    """
    WL = wls.WL
    shape_dir = planck(WL, 5778.0)
    shape_dif = shape_dir * (450.0 / WL)**2
    # W m-2 -> mW m-2
    E_direct = shape_dir * Rdir * 1e3 / spectral_integral(shape_dir, WL)
    E_diffuse = shape_dif * Rdif * 1e3 / spectral_integral(shape_dif, WL)
    return IncomingRadiation(E_direct=E_direct, E_diffuse=E_diffuse)
