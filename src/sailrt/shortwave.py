"""
Shortwave radiative transfer: Includes the spectral layer scattering coefficients, the shortwave flux profiles and
top-of-canopy reflectance, and the shortwave absorbed by sunlit and shaded leaves
"""

import logging
import numpy as np
from sailrt.canopylayers import CanopyStructure
from sailrt.canopygeometry import CanopyOpticals, layer_mean_factor
from sailrt.canopyrads import CanopyRads, IncomingRadiation
from sailrt.soil import SoilOpticals
from sailrt.wavelengths import WaveLengths
from sailrt.twostream import diffusive_S
from sailrt.radiation_funcs import e2phot, spectral_integral
from sailrt.utils import ConfigurationError, layer_values

logger = logging.getLogger(__name__)


def canopy_matrices(leaves, can_opt: CanopyOpticals):
    """
    Calculates the spectral scattering coefficients of each canopy layer from leaf reflectance and transmittance.

    Parameters
    ----------
    leaves : list of LeafBios
        Either one leaf shared by all layers or one leaf per layer
    can_opt : CanopyOpticals
        Canopy optical coefficients from canopy_geometry; the spectral coefficients are written in place

    Returns
    -------
    None

    References
    ----------
    Verhoef, 1984, doi:10.1016/0034-4257(84)90057-9
    """
    nLayer = can_opt.sigb.shape[1]
    rho = layer_values(leaves, "rho_SW", nLayer)
    tau = layer_values(leaves, "tau_SW", nLayer)
    if rho.shape != can_opt.sigb.shape:
        raise ConfigurationError(f"Leaf spectra have shape {rho.shape}, expected {can_opt.sigb.shape}")

    can_opt.sigb[:] = can_opt.ddb * rho + can_opt.ddf * tau
    can_opt.sigf[:] = can_opt.ddf * rho + can_opt.ddb * tau
    can_opt.sb[:] = can_opt.sdb * rho + can_opt.sdf * tau
    can_opt.sf[:] = can_opt.sdf * rho + can_opt.sdb * tau
    can_opt.vb[:] = can_opt.dob * rho + can_opt.dof * tau
    can_opt.vf[:] = can_opt.dof * rho + can_opt.dob * tau
    can_opt.w[:] = can_opt.sob * rho + can_opt.sof * tau
    can_opt.a[:] = 1 - can_opt.sigf


def layer_optics(can: CanopyStructure, can_opt: CanopyOpticals):
    """
    Diffuse and direct-to-diffuse reflectance and transmittance of each canopy layer.

    Parameters
    ----------
    can : CanopyStructure
        Canopy structure
    can_opt : CanopyOpticals
        Canopy optical coefficients with the spectral coefficients filled in by canopy_matrices

    Returns
    -------
    tau_dd, rho_dd, tau_sd, rho_sd : tuple of np.ndarray
        Layer optical properties, each [nWL, nLayer]
    """
    iLAI = can.iLAI
    tau_dd = 1 - can_opt.a * iLAI
    rho_dd = can_opt.sigb * iLAI
    if np.any(tau_dd < 0):
        raise ConfigurationError(f"Layer leaf area {iLAI:.3f} is too large for the thin layer approximation, increase nLayer")
    # Scattering of the direct beam intercepted by the layer, (1 - exp(-ks*iLAI))/ks per unit leaf area
    _intercept = iLAI * layer_mean_factor(can_opt.ks * iLAI)
    tau_sd = can_opt.sf * _intercept
    rho_sd = can_opt.sb * _intercept
    return tau_dd, rho_dd, tau_sd, rho_sd


def short_wave(
    can: CanopyStructure,
    can_opt: CanopyOpticals,
    can_rad: CanopyRads,
    in_rad: IncomingRadiation,
    soil: SoilOpticals,
):
    """
    Calculates the shortwave flux profiles in the canopy and the reflectance at the top of the canopy.

    Parameters
    ----------
    can : CanopyStructure
        Canopy structure
    can_opt : CanopyOpticals
        Canopy optical coefficients from canopy_geometry and canopy_matrices
    can_rad : CanopyRads
        Canopy radiation buffer, the shortwave profiles and reflectances are written in place
    in_rad : IncomingRadiation
        Incoming direct and diffuse shortwave radiation
    soil : SoilOpticals
        Soil boundary condition

    Returns
    -------
    None

    Notes
    -----
    The direct beam decays exponentially with the clumped leaf area. The radiation it scatters in each
    layer is the source of the diffuse radiation field, which is solved with the two-stream solver.
    The radiance in the viewing direction sums the diffuse radiation scattered towards the viewer by
    the visible leaves, the single scattering of the direct beam by sunlit and visible leaves, and the
    radiation reflected by the visible soil.

    References
    ----------
    Verhoef, 1984, doi:10.1016/0034-4257(84)90057-9
    van der Tol et al., 2009, doi:10.5194/bg-6-3109-2009
    """
    nLayer = can.nLayer
    iLAI = can.iLAI
    Ps, Po, Pso = can_opt.Ps, can_opt.Po, can_opt.Pso
    rs = soil.albedo_SW
    E_dir = np.asarray(in_rad.E_direct, dtype=float)
    E_dif = np.asarray(in_rad.E_diffuse, dtype=float)

    tau_dd, rho_dd, tau_sd, rho_sd = layer_optics(can, can_opt)

    # Direct beam on a horizontal plane at the layer edges
    Es = E_dir[:, np.newaxis] * np.exp(can_opt.ks * can.Omega * can.LAI * can.xl)[np.newaxis, :]

    # Diffuse radiation field with the scattered direct beam as source
    S_minus = tau_sd * Es[:, :-1]
    S_plus = rho_sd * Es[:, :-1]
    F_minus, F_plus, net_diffuse = diffusive_S(tau_dd, rho_dd, S_minus, S_plus, E_dif, rs * Es[:, -1], rs)
    # Contribution of the direct beam alone, for the directional reflectance split
    Fs_minus, Fs_plus, _ = diffusive_S(tau_dd, rho_dd, S_minus, S_plus, 0.0, rs * Es[:, -1], rs)

    can_rad.E_down[:] = F_minus
    can_rad.E_up[:] = F_plus
    can_rad.E_direct[:] = Es

    piLo_dir = _radiance_viewing_direction(can_opt, iLAI, rs, Fs_minus, Fs_plus, E_dir, Pso, Po)
    piLo = _radiance_viewing_direction(can_opt, iLAI, rs, F_minus, F_plus, E_dir, Pso, Po)
    piLo_dif = piLo - piLo_dir

    E_tot = E_dir + E_dif
    can_rad.Lo[:] = piLo / np.pi
    can_rad.alb_obs[:] = np.divide(piLo, E_tot, out=np.zeros_like(piLo), where=E_tot > 0)
    can_rad.alb_direct[:] = np.divide(piLo_dir, E_dir, out=np.zeros_like(piLo), where=E_dir > 0)
    can_rad.alb_diffuse[:] = np.divide(piLo_dif, E_dif, out=np.zeros_like(piLo), where=E_dif > 0)
    can_rad.alb_hemi[:] = np.divide(F_plus[:, 0], E_tot, out=np.zeros_like(piLo), where=E_tot > 0)

    # Conservation check: incident = reflected + absorbed by leaves + absorbed by soil
    direct_abs = Es[:, :-1] - Es[:, 1:] - S_minus - S_plus
    leaf_abs = np.sum(net_diffuse + direct_abs, axis=1)
    soil_abs = (1 - rs) * (Es[:, -1] + F_minus[:, -1])
    residual = np.max(np.abs(E_tot - F_plus[:, 0] - leaf_abs - soil_abs) / np.maximum(E_tot, 1e-12))
    if residual >= 1e-6:
        logger.warning("short_wave: shortwave radiation conservation error %.2e", residual)

    logger.debug("short_wave: alb_obs range %.4f-%.4f", np.min(can_rad.alb_obs), np.max(can_rad.alb_obs))


def _radiance_viewing_direction(can_opt, iLAI, rs, F_minus, F_plus, E_dir, Pso, Po):
    """Radiance (times pi) leaving the canopy in the viewing direction, mW m-2 nm-1"""
    E_minus_mid = 0.5 * (F_minus[:, :-1] + F_minus[:, 1:])
    E_plus_mid = 0.5 * (F_plus[:, :-1] + F_plus[:, 1:])
    piLoc = iLAI * np.sum(
        can_opt.vb * Po[np.newaxis, :-1] * E_minus_mid
        + can_opt.vf * Po[np.newaxis, :-1] * E_plus_mid
        + can_opt.w * Pso[np.newaxis, :-1] * E_dir[:, np.newaxis],
        axis=1,
    )
    piLos = rs * (F_minus[:, -1] * Po[-1] + E_dir * Pso[-1])
    return piLoc + piLos


def canopy_fluxes(
    can: CanopyStructure,
    can_opt: CanopyOpticals,
    can_rad: CanopyRads,
    in_rad: IncomingRadiation,
    soil: SoilOpticals,
    leaves,
    wls: WaveLengths,
):
    """
    Calculates the shortwave radiation and PAR absorbed by sunlit and shaded leaves in each layer and by the soil.

    Parameters
    ----------
    can : CanopyStructure
        Canopy structure
    can_opt : CanopyOpticals
        Canopy optical coefficients from canopy_geometry
    can_rad : CanopyRads
        Canopy radiation buffer with the shortwave profiles from short_wave; absorbed radiation is written in place
    in_rad : IncomingRadiation
        Incoming direct and diffuse shortwave radiation
    soil : SoilOpticals
        Soil boundary condition
    leaves : list of LeafBios
        Either one leaf shared by all layers or one leaf per layer
    wls : WaveLengths
        Wavelength grids

    Returns
    -------
    None

    Notes
    -----
    Shaded leaves absorb the mean diffuse radiation of the layer from both sides. Sunlit leaves absorb
    the same diffuse radiation plus the direct beam, projected on the leaf normal and averaged over the
    leaf orientations. Fluxes are per unit leaf area.
    """
    nLayer = can.nLayer
    rho = layer_values(leaves, "rho_SW", nLayer)
    tau = layer_values(leaves, "tau_SW", nLayer)
    kChlrel = layer_values(leaves, "kChlrel", nLayer)
    epsc = 1 - rho - tau
    WL = wls.WL
    iPAR = wls.iPAR

    E_dif_leaf = 0.5 * (can_rad.E_down[:, :-1] + can_rad.E_down[:, 1:] + can_rad.E_up[:, :-1] + can_rad.E_up[:, 1:])
    mean_fs = np.dot(can.lidf, np.mean(can_opt.absfs, axis=1))
    E_dir_leaf = mean_fs * np.asarray(in_rad.E_direct, dtype=float)[:, np.newaxis]

    abs_shade = E_dif_leaf * epsc
    abs_sun = abs_shade + E_dir_leaf * epsc

    # mW m-2 -> W m-2
    can_rad.netSW_shade[:] = 1e-3 * spectral_integral(abs_shade, WL)
    can_rad.netSW_sunlit[:] = 1e-3 * spectral_integral(abs_sun, WL)

    # mol m-2 s-1 -> umol m-2 s-1
    WL_PAR = WL[iPAR][:, np.newaxis]
    can_rad.absPAR_shade[:] = 1e6 * spectral_integral(e2phot(WL_PAR, 1e-3 * abs_shade[iPAR] * kChlrel[iPAR]), WL[iPAR])
    can_rad.absPAR_sun[:] = 1e6 * spectral_integral(e2phot(WL_PAR, 1e-3 * abs_sun[iPAR] * kChlrel[iPAR]), WL[iPAR])

    E_soil = can_rad.E_direct[:, -1] + can_rad.E_down[:, -1]
    can_rad.RnSoil = 1e-3 * spectral_integral((1 - soil.albedo_SW) * E_soil, WL)
