"""
Wavelength grids: Includes the shortwave, fluorescence excitation, fluorescence emission and PAR wavelength definitions
"""

import numpy as np
from attrs import define, field
from sailrt.utils import ConfigurationError


@define
class WaveLengths:
    """
    Spectral grids for the shortwave, fluorescence and PAR calculations. The excitation and emission grids are subsets of WL.
    """
    WL: np.ndarray = field(factory=lambda: np.arange(400.0, 2501.0, 5.0))  ## Shortwave wavelength grid, nm
    minWLE: float = field(default=400.0)  ## Minimum wavelength of fluorescence excitation, nm
    maxWLE: float = field(default=750.0)  ## Maximum wavelength of fluorescence excitation, nm
    minWLF: float = field(default=640.0)  ## Minimum wavelength of fluorescence emission, nm
    maxWLF: float = field(default=850.0)  ## Maximum wavelength of fluorescence emission, nm
    minPAR: float = field(default=400.0)  ## Minimum wavelength of photosynthetically active radiation, nm
    maxPAR: float = field(default=700.0)  ## Maximum wavelength of photosynthetically active radiation, nm

    iWLE: np.ndarray = field(init=False)  ## Indices of WL within the excitation range
    iWLF: np.ndarray = field(init=False)  ## Indices of WL within the emission range
    iPAR: np.ndarray = field(init=False)  ## Indices of WL within the PAR range

    def __attrs_post_init__(self):
        self.WL = np.asarray(self.WL, dtype=float)
        if (self.WL.ndim != 1) or (self.WL.size < 2) or np.any(np.diff(self.WL) <= 0):
            raise ConfigurationError("Wavelength grid WL must be a strictly increasing 1D array with at least two values")
        self.iWLE = np.where((self.WL >= self.minWLE) & (self.WL <= self.maxWLE))[0]
        self.iWLF = np.where((self.WL >= self.minWLF) & (self.WL <= self.maxWLF))[0]
        self.iPAR = np.where((self.WL >= self.minPAR) & (self.WL <= self.maxPAR))[0]
        if (self.iWLE.size == 0) or (self.iWLF.size == 0):
            raise ConfigurationError("Fluorescence excitation and emission ranges must overlap the wavelength grid WL")

    @property
    def nWL(self):
        return self.WL.size

    @property
    def WLE(self):
        """Fluorescence excitation wavelengths, nm"""
        return self.WL[self.iWLE]

    @property
    def WLF(self):
        """Fluorescence emission wavelengths, nm"""
        return self.WL[self.iWLF]

    @property
    def nWLE(self):
        return self.iWLE.size

    @property
    def nWLF(self):
        return self.iWLF.size

    @property
    def dWL(self):
        """Width of each wavelength bin, nm"""
        return np.gradient(self.WL)
