"""
Canopy geometry: Includes the canopy optical coefficient buffer and the SAIL geometry calculations (extinction and scattering coefficients, gap fractions)
"""

import logging
import numpy as np
from attrs import define, field
from scipy.integrate import quad
from sailrt.canopylayers import CanopyStructure
from sailrt.anglegeometry import SolarAngles, AngleContainer, clumping_factor, volscatt
from sailrt.utils import ConfigurationError, check_layer_count

logger = logging.getLogger(__name__)


@define
class CanopyOpticals:
    """
    Canopy optical coefficients and gap fraction profiles. Overwritten in place on every geometry update.
    """
    ## Extinction and scattering coefficients (-)
    ks: float = field(default=0.0)   ## Extinction coefficient in the solar direction
    ko: float = field(default=0.0)   ## Extinction coefficient in the viewing direction
    bf: float = field(default=0.0)   ## Weighted squared cosine of leaf inclination
    sob: float = field(default=0.0)  ## Weight of leaf reflectance in bidirectional scattering
    sof: float = field(default=0.0)  ## Weight of leaf transmittance in bidirectional scattering
    sdb: float = field(default=0.0)  ## Weight of reflectance, direct to diffuse backward scattering
    sdf: float = field(default=0.0)  ## Weight of transmittance, direct to diffuse forward scattering
    dob: float = field(default=0.0)  ## Weight of reflectance, diffuse to viewing direction backward scattering
    dof: float = field(default=0.0)  ## Weight of transmittance, diffuse to viewing direction forward scattering
    ddb: float = field(default=0.0)  ## Weight of reflectance, diffuse to diffuse backward scattering
    ddf: float = field(default=0.0)  ## Weight of transmittance, diffuse to diffuse forward scattering

    ## Leaf orientation factors [nli, nlazi]
    fs: np.ndarray = field(default=None)       ## Projection of the solar direction on the leaf normal, relative to cos(tts)
    fo: np.ndarray = field(default=None)       ## Projection of the viewing direction on the leaf normal, relative to cos(tto)
    fsfo: np.ndarray = field(default=None)     ## fs * fo
    absfs: np.ndarray = field(default=None)    ## |fs|
    absfo: np.ndarray = field(default=None)    ## |fo|
    absfsfo: np.ndarray = field(default=None)  ## |fs * fo|
    cos_theta_l: np.ndarray = field(default=None)   ## Cosine of leaf inclination
    cos2_theta_l: np.ndarray = field(default=None)  ## Squared cosine of leaf inclination

    ## Gap fraction profiles at the layer edges [nLayer+1]
    Ps: np.ndarray = field(default=None)   ## Probability of a leaf (or the soil) being sunlit
    Po: np.ndarray = field(default=None)   ## Probability of a leaf (or the soil) being viewed
    Pso: np.ndarray = field(default=None)  ## Probability of a leaf (or the soil) being sunlit and viewed

    ## Spectral scattering coefficients per layer [nWL, nLayer], filled by canopy_matrices
    sigb: np.ndarray = field(default=None)  ## Diffuse backscatter
    sigf: np.ndarray = field(default=None)  ## Diffuse forward scatter
    sb: np.ndarray = field(default=None)    ## Direct to diffuse backscatter
    sf: np.ndarray = field(default=None)    ## Direct to diffuse forward scatter
    vb: np.ndarray = field(default=None)    ## Diffuse to directional backscatter
    vf: np.ndarray = field(default=None)    ## Diffuse to directional forward scatter
    w: np.ndarray = field(default=None)     ## Bidirectional scattering
    a: np.ndarray = field(default=None)     ## Attenuation of diffuse radiation


def create_canopy_opticals(can: CanopyStructure, nWL: int) -> CanopyOpticals:
    """
    Allocates the canopy optical coefficient buffer for a canopy and a number of shortwave wavelengths.

    Parameters
    ----------
    can : CanopyStructure
        Canopy structure, provides the number of layers and leaf angle bins
    nWL : int
        Number of shortwave wavelengths

    Returns
    -------
    CanopyOpticals
    """
    _ang = np.zeros((can.nli, can.nlazi))
    _edge = np.zeros(can.nLayer + 1)
    _spec = np.zeros((nWL, can.nLayer))
    return CanopyOpticals(
        fs=_ang.copy(), fo=_ang.copy(), fsfo=_ang.copy(), absfs=_ang.copy(), absfo=_ang.copy(),
        absfsfo=_ang.copy(), cos_theta_l=_ang.copy(), cos2_theta_l=_ang.copy(),
        Ps=_edge.copy(), Po=_edge.copy(), Pso=_edge.copy(),
        sigb=_spec.copy(), sigf=_spec.copy(), sb=_spec.copy(), sf=_spec.copy(),
        vb=_spec.copy(), vf=_spec.copy(), w=_spec.copy(), a=_spec.copy(),
    )


def psofunction(K, k, Omega, LAI, q, dso, xl):
    """
    Joint probability of a leaf at relative depth xl being sunlit and viewed, including the hot-spot correlation.

    Parameters
    ----------
    K : float
        Extinction coefficient in the viewing direction
    k : float
        Extinction coefficient in the solar direction
    Omega : float
        Clumping index
    LAI : float
        Leaf area index, m2 m-2
    q : float
        Hot-spot parameter, leaf width / canopy height
    dso : float
        Angular distance between the solar and viewing directions
    xl : float
        Relative depth in the canopy, 0 at the top and -1 at the bottom

    Returns
    -------
    pso : float

    References
    ----------
    Verhoef, 1998, PhD thesis, Wageningen University, Appendix IV
    """
    if dso != 0:
        alf = (dso / q) * 2 / (k + K)
        pso = np.exp((K + k) * Omega * LAI * xl + np.sqrt(K * k) * Omega * LAI / alf * (1 - np.exp(xl * alf)))
    else:
        pso = np.exp((K + k) * Omega * LAI * xl - np.sqrt(K * k) * Omega * LAI * xl)
    return pso


def layer_mean_factor(tau):
    """
    Mean of exp(-tau*s) over s in [0, 1], i.e. (1 - exp(-tau))/tau, using the limit 1 for vanishing optical depth.
    """
    if tau < 1e-9:
        return 1.0 - 0.5 * tau
    return -np.expm1(-tau) / tau


def clamp_pso_profile(can_opt: CanopyOpticals):
    """
    Limits the joint gap fraction to the smaller of the sunlit and viewed gap fractions (in place).

    Parameters
    ----------
    can_opt : CanopyOpticals
        Canopy optical coefficients with Ps, Po and Pso filled in

    Returns
    -------
    nclamped : int
        Number of layer edges where Pso was reduced
    """
    upper = np.minimum(can_opt.Ps, can_opt.Po)
    mask = can_opt.Pso > upper
    can_opt.Pso[mask] = upper[mask]
    return int(np.sum(mask))


def canopy_geometry(
    can: CanopyStructure,
    angles: SolarAngles,
    can_opt: CanopyOpticals,
    ang_con: AngleContainer,
    pso_rtol: float = 1e-2,
    clamp_pso: bool = False,
):
    """
    Calculates the canopy geometric quantities of the SAIL model: extinction coefficients for direct and
    diffuse radiation, scattering weights, leaf orientation factors and the gap fraction profiles.

    Parameters
    ----------
    can : CanopyStructure
        Canopy structure. Omega is updated from the solar zenith angle when clump_b > 0.
    angles : SolarAngles
        Sun-sensor geometry
    can_opt : CanopyOpticals
        Buffer where the optical coefficients are written
    ang_con : AngleContainer
        Working buffer of angle dependent quantities, updated in place
    pso_rtol : float
        Relative tolerance of the quadrature for the joint gap fraction of each layer
    clamp_pso : bool
        If True, limit Pso to min(Ps, Po) after the quadrature

    Returns
    -------
    None

    Notes
    -----
    Canopy clumping is implemented as in Pinty et al. (2006). The joint gap fraction Pso is the layer
    average of psofunction, integrated numerically with a loose tolerance since it runs once per layer
    per geometry update.

    References
    ----------
    Verhoef, 1984, doi:10.1016/0034-4257(84)90057-9
    van der Tol et al., 2009, doi:10.5194/bg-6-3109-2009
    """
    check_layer_count(can.nLayer)
    if len(can.lidf) != len(can.litab):
        raise ConfigurationError(f"Leaf inclination distribution has {len(can.lidf)} bins but litab has {len(can.litab)}")
    if can.LAI < 0:
        raise ConfigurationError(f"Leaf area index cannot be negative, got LAI={can.LAI}")

    # 1. Clumping index from solar zenith angle
    clumping_factor(can, angles)

    # 2. Solar angle dependent variables
    tts, tto, psi = angles.tts, angles.tto, angles.psi
    cos_tto = np.cos(np.deg2rad(tto))
    sin_tto = np.sin(np.deg2rad(tto))
    tan_tto = np.tan(np.deg2rad(tto))
    cos_tts = np.cos(np.deg2rad(tts))
    sin_tts = np.sin(np.deg2rad(tts))
    tan_tts = np.tan(np.deg2rad(tts))
    cos_psi = np.cos(np.deg2rad(psi))
    cts_cto = cos_tts * cos_tto
    dso = np.sqrt(max(tan_tts**2 + tan_tto**2 - 2 * tan_tts * tan_tto * cos_psi, 0.0))
    psi_vol = abs(psi - 360 * round(psi / 360))

    LAI, Omega, hot, dx = can.LAI, can.Omega, can.hot, can.dx
    xl = can.xl

    # 3. Viewing azimuth dependent part of the angle container
    ang_con.cos_philo[:] = np.cos(np.deg2rad(np.asarray(can.lazitab) - psi))
    cos_ttli, sin_ttli = ang_con.cos_ttli, ang_con.sin_ttli

    # 4. Extinction and scattering coefficients, integrated over leaf inclinations
    can_opt.ks = 0.0
    can_opt.ko = 0.0
    can_opt.bf = 0.0
    can_opt.sob = 0.0
    can_opt.sof = 0.0
    for i, (_lit, _lid, _ctl) in enumerate(zip(can.litab, can.lidf, cos_ttli)):
        volscatt(tts, tto, psi_vol, _lit, out=ang_con.vol_scatt)
        chi_s, chi_o, frho, ftau = ang_con.vol_scatt

        ksli = abs(chi_s / cos_tts)
        koli = abs(chi_o / cos_tto)

        # Reflectance and transmittance swap roles for leaves seen from their shaded side
        if ftau < 0:
            sobli = abs(ftau) * np.pi / cts_cto
            sofli = abs(frho) * np.pi / cts_cto
        else:
            sobli = frho * np.pi / cts_cto
            sofli = ftau * np.pi / cts_cto

        can_opt.ks += ksli * _lid
        can_opt.ko += koli * _lid
        can_opt.bf += _ctl**2 * _lid
        can_opt.sob += sobli * _lid
        can_opt.sof += sofli * _lid

    # 5. Geometric factors to be used with leaf reflectance and transmittance
    ks, ko, bf = can_opt.ks, can_opt.ko, can_opt.bf
    can_opt.sdb = 0.5 * (ks + bf)
    can_opt.sdf = 0.5 * (ks - bf)
    can_opt.dob = 0.5 * (ko + bf)
    can_opt.dof = 0.5 * (ko - bf)
    can_opt.ddb = 0.5 * (1 + bf)
    can_opt.ddf = 0.5 * (1 - bf)

    # 6. Projections of the sun and view directions on the leaf normals, eq. 19 in van der Tol et al. (2009)
    ang_con._Cs[:] = cos_ttli * cos_tts
    ang_con._Ss[:] = sin_ttli * sin_tts
    ang_con._Co[:] = cos_ttli * cos_tto
    ang_con._So[:] = sin_ttli * sin_tto
    np.matmul(ang_con._Cs[:, np.newaxis], ang_con._1s, out=ang_con.cds)
    np.matmul(ang_con._Ss[:, np.newaxis], ang_con.cos_ttlo[np.newaxis, :], out=ang_con._2d)
    ang_con.cds += ang_con._2d
    np.matmul(ang_con._Co[:, np.newaxis], ang_con._1s, out=ang_con.cdo)
    np.matmul(ang_con._So[:, np.newaxis], ang_con.cos_philo[np.newaxis, :], out=ang_con._2d)
    ang_con.cdo += ang_con._2d

    can_opt.fs[:] = ang_con.cds / cos_tts
    can_opt.fo[:] = ang_con.cdo / cos_tto
    can_opt.absfs[:] = np.abs(can_opt.fs)
    can_opt.absfo[:] = np.abs(can_opt.fo)
    can_opt.cos_theta_l[:] = cos_ttli[:, np.newaxis] * ang_con._1s
    can_opt.cos2_theta_l[:] = can_opt.cos_theta_l**2
    can_opt.fsfo[:] = can_opt.fs * can_opt.fo
    can_opt.absfsfo[:] = np.abs(can_opt.fsfo)

    # 7. Sunlit and viewed gap fractions, averaged over the layer below each edge
    _fac_s = layer_mean_factor(ks * Omega * LAI * dx)
    _fac_o = layer_mean_factor(ko * Omega * LAI * dx)
    can_opt.Ps[:] = np.exp(ks * Omega * LAI * xl) * _fac_s
    can_opt.Po[:] = np.exp(ko * Omega * LAI * xl) * _fac_o

    # 8. Joint gap fraction, numerically averaged over the same interval
    f = lambda x: psofunction(ko, ks, Omega, LAI, hot, dso, x)
    for j in range(len(xl)):
        can_opt.Pso[j] = quad(f, xl[j] - dx, xl[j], epsrel=pso_rtol)[0] / dx

    nexceed = int(np.sum(can_opt.Pso > np.minimum(can_opt.Ps, can_opt.Po) + 1e-6))
    if clamp_pso:
        clamp_pso_profile(can_opt)
    elif nexceed > 0:
        logger.warning("Pso exceeds min(Ps, Po) at %d layer edges (clamp disabled)", nexceed)

    logger.debug("canopy_geometry: ks=%.4f ko=%.4f bf=%.4f Omega=%.3f dso=%.4f", ks, ko, bf, Omega, dso)
