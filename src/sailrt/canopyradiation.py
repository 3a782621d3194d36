"""
Canopy radiative transfer class: Includes the run options, working buffers and the calculation sequence from canopy geometry to longwave fluxes
"""

import logging
import numpy as np
from attrs import define, field
from sailrt.canopylayers import CanopyStructure
from sailrt.anglegeometry import SolarAngles, AngleContainer, create_angle_container
from sailrt.canopygeometry import CanopyOpticals, canopy_geometry, create_canopy_opticals
from sailrt.canopyrads import CanopyRads, IncomingRadiation, create_canopy_rads
from sailrt.soil import SoilOpticals
from sailrt.wavelengths import WaveLengths
from sailrt.shortwave import canopy_matrices, short_wave, canopy_fluxes
from sailrt.fluorescence import SIF_fluxes
from sailrt.thermal import check_emission_model, resolve_emission_model, thermal_fluxes
from sailrt.radiation_funcs import spectral_integral
from sailrt.utils import ConfigurationError, check_leaf_count

logger = logging.getLogger(__name__)


@define
class CanopyRT:
    """
    Canopy radiative transfer calculator. Holds the run options and the buffers that are overwritten on every call.
    """

    # Run options
    pso_rtol: float = field(default=1e-2)  ## Relative tolerance of the per-layer quadrature of the joint gap fraction Pso
    clamp_pso: bool = field(default=False)  ## Limit Pso to min(Ps, Po) after the quadrature
    emission_model: str = field(default="StefanBoltzmann")  ## Thermal emission calculation, "StefanBoltzmann" or "Planck" (name or EmissionModel)

    # Working buffers
    can: CanopyStructure = field(factory=CanopyStructure)  ## Canopy structure
    wls: WaveLengths = field(factory=WaveLengths)  ## Wavelength grids
    can_opt: CanopyOpticals = field(default=None)  ## Canopy optical coefficients
    can_rad: CanopyRads = field(default=None)  ## Canopy radiative outputs
    ang_con: AngleContainer = field(default=None)  ## Angle working buffer

    def __attrs_post_init__(self):
        resolve_emission_model(self.emission_model)
        if self.pso_rtol <= 0:
            raise ConfigurationError(f"Quadrature tolerance must be positive, got pso_rtol={self.pso_rtol}")
        if self.can_opt is None:
            self.can_opt = create_canopy_opticals(self.can, self.wls.nWL)
        if self.can_rad is None:
            self.can_rad = create_canopy_rads(self.can, self.wls)

    def calculate(
        self,
        angles: SolarAngles,
        leaves,
        in_rad: IncomingRadiation,
        soil: SoilOpticals,
        incLW=0.0,
    ) -> CanopyRads:
        """
        Runs the canopy radiative transfer for one sun-sensor geometry.

        Parameters
        ----------
        angles : SolarAngles
            Sun-sensor geometry
        leaves : list of LeafBios
            Either one leaf shared by all layers or one leaf per layer
        in_rad : IncomingRadiation
            Incoming direct and diffuse shortwave radiation
        soil : SoilOpticals
            Soil boundary condition
        incLW : float
            Incoming longwave radiation at the top of the canopy, W m-2

        Returns
        -------
        CanopyRads
            The canopy radiation buffer, updated in place

        Notes
        -----
        The sequence is canopy_geometry, canopy_matrices, short_wave, canopy_fluxes, SIF_fluxes, thermal_fluxes.
        Leaf count, leaf spectra and the emission model are checked before any calculation. The angle buffer is created on the first
        call and reused afterwards.
        """
        check_leaf_count(leaves, self.can.nLayer)
        check_emission_model(self.emission_model)
        for leaf in leaves:
            leaf.check_spectra(self.wls)
        if self.ang_con is None:
            self.ang_con = create_angle_container(self.can, angles)

        canopy_geometry(self.can, angles, self.can_opt, self.ang_con, pso_rtol=self.pso_rtol, clamp_pso=self.clamp_pso)
        canopy_matrices(leaves, self.can_opt)
        short_wave(self.can, self.can_opt, self.can_rad, in_rad, soil)
        canopy_fluxes(self.can, self.can_opt, self.can_rad, in_rad, soil, leaves, self.wls)
        SIF_fluxes(leaves, self.can_opt, self.can_rad, self.can, soil, self.wls)
        thermal_fluxes(leaves, self.can_opt, self.can_rad, self.can, soil, incLW, self.wls, emission_model=self.emission_model)

        logger.debug("CanopyRT.calculate: tts=%.1f tto=%.1f psi=%.1f, net SW sunlit top layer %.1f W m-2",
                     angles.tts, angles.tto, angles.psi, self.can_rad.netSW_sunlit[0])
        return self.can_rad

    def broadband_albedo(self, in_rad: IncomingRadiation):
        """
        Broadband hemispherical shortwave albedo of the canopy from the last calculation.

        Returns
        -------
        float
            Reflected over incident shortwave integrated over the wavelength grid (-)
        """
        E_tot = np.asarray(in_rad.E_direct) + np.asarray(in_rad.E_diffuse)
        return spectral_integral(self.can_rad.alb_hemi * E_tot, self.wls.WL) / spectral_integral(E_tot, self.wls.WL)
