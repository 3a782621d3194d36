"""
Soil class: Includes the soil optical properties and skin temperature used as the lower boundary of the canopy radiative transfer
"""

import numpy as np
from attrs import define, field
from sailrt.utils import ConfigurationError, check_shape
from sailrt.wavelengths import WaveLengths


@define
class SoilOpticals:
    """
    Soil boundary condition: shortwave reflectance spectrum, broadband longwave reflectance and skin temperature
    """
    albedo_SW: np.ndarray  ## Soil shortwave reflectance (-), [nWL]
    albedo_LW: float = field(default=0.06)  ## Soil longwave reflectance (-), emissivity is 1 - albedo_LW
    soil_skinT: float = field(default=290.0)  ## Soil skin temperature, K

    def __attrs_post_init__(self):
        self.albedo_SW = np.asarray(self.albedo_SW, dtype=float)
        if np.any(self.albedo_SW < 0) or np.any(self.albedo_SW > 1):
            raise ConfigurationError("Soil shortwave reflectance must be within [0, 1]")
        if not (0 <= self.albedo_LW <= 1):
            raise ConfigurationError(f"Soil longwave reflectance must be within [0, 1], got {self.albedo_LW}")


def create_soil(wls: WaveLengths, albedo_SW=None, **kwargs) -> SoilOpticals:
    """
    Creates the soil boundary condition on the wavelength grid.

    Parameters
    ----------
    wls : WaveLengths
        Wavelength grids
    albedo_SW : float or array_like, optional
        Soil shortwave reflectance. A float is used for all wavelengths. If not given, a bare soil
        reflectance increasing from 0.10 at 400 nm to 0.30 at 2500 nm is used.
    **kwargs
        Further SoilOpticals attributes (albedo_LW, soil_skinT)

    Returns
    -------
    SoilOpticals
    """
    if albedo_SW is None:
        albedo_SW = np.interp(wls.WL, [400.0, 2500.0], [0.10, 0.30])
    albedo_SW = np.asarray(albedo_SW, dtype=float)
    if albedo_SW.ndim == 0:
        albedo_SW = np.full(wls.nWL, float(albedo_SW))
    check_shape("albedo_SW", albedo_SW, (wls.nWL,))
    return SoilOpticals(albedo_SW=albedo_SW, **kwargs)
