"""
Fluorescence radiative transfer: Includes the emission of chlorophyll fluorescence by sunlit and shaded leaves and its transport out of the canopy
"""

import logging
import numpy as np
from sailrt.canopylayers import CanopyStructure
from sailrt.canopygeometry import CanopyOpticals
from sailrt.canopyrads import CanopyRads
from sailrt.soil import SoilOpticals
from sailrt.wavelengths import WaveLengths
from sailrt.shortwave import layer_optics
from sailrt.twostream import diffusive_S
from sailrt.utils import check_leaf_count

logger = logging.getLogger(__name__)


def _layer_matrices(leaves, nLayer, attribute):
    """Stack a leaf fluorescence matrix over canopy layers, [nLayer, nWLF, nWLE]"""
    M = np.array([np.asarray(getattr(leaf, attribute), dtype=float) for leaf in leaves])
    if len(leaves) == 1:
        M = np.broadcast_to(M, (nLayer,) + M.shape[1:])
    return M


def SIF_fluxes(
    leaves,
    can_opt: CanopyOpticals,
    can_rad: CanopyRads,
    can: CanopyStructure,
    soil: SoilOpticals,
    wls: WaveLengths,
):
    """
    Calculates the solar induced fluorescence leaving the canopy, hemispherically and in the viewing direction.

    Parameters
    ----------
    leaves : list of LeafBios
        Either one leaf shared by all layers or one leaf per layer, with fluorescence matrices Mb and Mf
    can_opt : CanopyOpticals
        Canopy optical coefficients from canopy_geometry and canopy_matrices
    can_rad : CanopyRads
        Canopy radiation buffer with the shortwave profiles from short_wave; SIF_hemi and SIF_obs are written in place
    can : CanopyStructure
        Canopy structure
    soil : SoilOpticals
        Soil boundary condition
    wls : WaveLengths
        Wavelength grids

    Returns
    -------
    None

    Notes
    -----
    The excitation of each layer is the layer-mean diffuse shortwave flux at the excitation wavelengths and,
    for the sunlit part of the layer, the direct beam. The fluorescence matrices take the place of leaf
    reflectance (Mb, emission on the illuminated side) and transmittance (Mf, emission on the other side)
    in the SAIL scattering weights. The emitted fluorescence is a layer source for the two-stream solver,
    which accounts for re-absorption and scattering by leaves and soil. The soil does not fluoresce.

    References
    ----------
    van der Tol et al., 2009, doi:10.5194/bg-6-3109-2009
    """
    nLayer = can.nLayer
    check_leaf_count(leaves, nLayer)
    iLAI = can.iLAI
    iWLE, iWLF = wls.iWLE, wls.iWLF
    Po, Pso = can_opt.Po, can_opt.Pso

    Mb = _layer_matrices(leaves, nLayer, "Mb")
    Mf = _layer_matrices(leaves, nLayer, "Mf")

    # Excitation at the excitation wavelengths, [nWLE, nLayer]
    E_minus = 0.5 * (can_rad.E_down[iWLE, :-1] + can_rad.E_down[iWLE, 1:])
    E_plus = 0.5 * (can_rad.E_up[iWLE, :-1] + can_rad.E_up[iWLE, 1:])
    E_sun = can_rad.E_direct[iWLE, 0]

    # Emission per unit leaf area for each excitation source, [nWLF, nLayer]
    MbEmin = np.einsum("lfe,el->fl", Mb, E_minus)
    MfEmin = np.einsum("lfe,el->fl", Mf, E_minus)
    MbEplu = np.einsum("lfe,el->fl", Mb, E_plus)
    MfEplu = np.einsum("lfe,el->fl", Mf, E_plus)
    MbEsun = np.einsum("lfe,e->fl", Mb, E_sun)
    MfEsun = np.einsum("lfe,e->fl", Mf, E_sun)

    # Direct beam on the sunlit part of each layer
    Ps_layer = can_opt.Ps[:-1]

    # Upward and downward layer sources
    S_plus = (can_opt.ddb * MbEmin + can_opt.ddf * MfEmin) + (can_opt.ddf * MbEplu + can_opt.ddb * MfEplu) \
        + (can_opt.sdb * MbEsun + can_opt.sdf * MfEsun) * Ps_layer
    S_minus = (can_opt.ddf * MbEmin + can_opt.ddb * MfEmin) + (can_opt.ddb * MbEplu + can_opt.ddf * MfEplu) \
        + (can_opt.sdf * MbEsun + can_opt.sdb * MfEsun) * Ps_layer
    S_plus = iLAI * S_plus
    S_minus = iLAI * S_minus

    tau_dd, rho_dd, _, _ = layer_optics(can, can_opt)
    rs = soil.albedo_SW[iWLF]
    F_minus, F_plus, net_diffuse = diffusive_S(tau_dd[iWLF], rho_dd[iWLF], S_minus, S_plus, 0.0, 0.0, rs)

    # Emission and scattering towards the viewer
    F_minus_mid = 0.5 * (F_minus[:, :-1] + F_minus[:, 1:])
    F_plus_mid = 0.5 * (F_plus[:, :-1] + F_plus[:, 1:])
    emitted_view = (can_opt.dob * MbEmin + can_opt.dof * MfEmin) + (can_opt.dof * MbEplu + can_opt.dob * MfEplu)
    single_view = can_opt.sob * MbEsun + can_opt.sof * MfEsun
    scattered_view = can_opt.vb[iWLF] * F_minus_mid + can_opt.vf[iWLF] * F_plus_mid
    piLoc = iLAI * np.sum(Po[np.newaxis, :-1] * (emitted_view + scattered_view) + Pso[np.newaxis, :-1] * single_view, axis=1)
    piLos = rs * F_minus[:, -1] * Po[-1]

    can_rad.SIF_hemi[:] = F_plus[:, 0]
    can_rad.SIF_obs[:] = (piLoc + piLos) / np.pi

    logger.debug("SIF_fluxes: peak SIF_obs %.4f mW m-2 nm-1 sr-1 at %.0f nm",
                 np.max(can_rad.SIF_obs), wls.WLF[np.argmax(can_rad.SIF_obs)])
