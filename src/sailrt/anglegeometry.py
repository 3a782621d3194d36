"""
Sun-sensor and leaf angle geometry: Includes the solar angles class, the angle working buffer and the SAIL volume scattering functions
"""

import numpy as np
from attrs import define, field
from sailrt.canopylayers import CanopyStructure


@define(frozen=True)
class SolarAngles:
    """
    Sun-sensor geometry for one simulation step
    """
    tts: float = field(default=30.0)  ## Solar zenith angle, degrees
    tto: float = field(default=0.0)  ## Viewing zenith angle, degrees
    psi: float = field(default=0.0)  ## Relative azimuth angle between sun and viewer, degrees

    def __attrs_post_init__(self):
        for name in ("tts", "tto"):
            value = getattr(self, name)
            if not (0 <= value < 90):
                raise ValueError(f"Zenith angle {name}={value} must be within [0, 90) degrees")


@define
class AngleContainer:
    """
    Working buffer of trigonometric quantities for the leaf inclination (nli) and leaf azimuth (nlazi) bins
    """
    cos_ttlo: np.ndarray   ## Cosine of leaf azimuth angles [nlazi]
    cos_philo: np.ndarray  ## Cosine of leaf azimuth angles relative to the viewing azimuth [nlazi]
    cos_ttli: np.ndarray   ## Cosine of leaf inclination angles [nli]
    sin_ttli: np.ndarray   ## Sine of leaf inclination angles [nli]
    vol_scatt: np.ndarray  ## Volume scattering functions chi_s, chi_o, frho, ftau of the current inclination bin [4]
    _Cs: np.ndarray  ## cos(leaf inclination) * cos(tts) [nli]
    _Ss: np.ndarray  ## sin(leaf inclination) * sin(tts) [nli]
    _Co: np.ndarray  ## cos(leaf inclination) * cos(tto) [nli]
    _So: np.ndarray  ## sin(leaf inclination) * sin(tto) [nli]
    _1s: np.ndarray = field(alias="ones_s")  ## Row of ones [1, nlazi]
    cds: np.ndarray  ## Cosine of the angle between leaf normal and sun direction [nli, nlazi]
    cdo: np.ndarray  ## Cosine of the angle between leaf normal and view direction [nli, nlazi]
    _2d: np.ndarray = field(alias="scratch_2d")  ## Scratch matrix [nli, nlazi]


def clumping_factor(can: CanopyStructure, angles: SolarAngles):
    """
    Updates the clumping index from the solar zenith angle.

    Parameters
    ----------
    can : CanopyStructure
        Canopy structure, Omega is updated in place
    angles : SolarAngles
        Sun-sensor geometry

    Notes
    -----
    When clump_b is zero, Omega is left untouched so that a user-prescribed clumping index is kept.

    References
    ----------
    Pinty et al., 2006, doi:10.1029/2005JD005952
    """
    if can.clump_b > 0:
        can.Omega = can.clump_a + can.clump_b * (1 - np.cos(np.deg2rad(angles.tts)))


def create_angle_container(can: CanopyStructure, angles: SolarAngles) -> AngleContainer:
    """
    Allocates the working buffer of angle dependent quantities for a canopy and sun-sensor configuration.

    Parameters
    ----------
    can : CanopyStructure
        Canopy structure, provides the leaf inclination and azimuth bins
    angles : SolarAngles
        Sun-sensor geometry, provides the relative azimuth

    Returns
    -------
    AngleContainer
        Fresh working buffer. cos_philo is refreshed by every call to canopy_geometry.
    """
    lazitab = np.asarray(can.lazitab, dtype=float)
    litab = np.asarray(can.litab, dtype=float)

    cos_ttlo = np.cos(np.deg2rad(lazitab))
    cos_philo = np.cos(np.deg2rad(lazitab - angles.psi))
    cos_ttli = np.cos(np.deg2rad(litab))
    sin_ttli = np.sin(np.deg2rad(litab))
    vol_scatt = np.ones(4)

    _Cs = np.zeros_like(cos_ttli)
    _Ss = np.zeros_like(sin_ttli)
    _Co = np.zeros_like(cos_ttli)
    _So = np.zeros_like(sin_ttli)
    _1s = np.ones((1, lazitab.size))
    cds = np.outer(_Cs, _1s) + np.outer(_Ss, cos_ttlo)
    cdo = np.outer(_Co, _1s) + np.outer(_So, cos_philo)
    _2d = np.outer(_Co, _1s)

    return AngleContainer(cos_ttlo, cos_philo, cos_ttli, sin_ttli, vol_scatt,
                          _Cs, _Ss, _Co, _So, _1s, cds, cdo, _2d)


def volscatt(tts, tto, psi, ttl, out=None):
    """
    Volume scattering functions and interception coefficients for one leaf inclination.

    Parameters
    ----------
    tts : float
        Solar zenith angle, degrees
    tto : float
        Viewing zenith angle, degrees
    psi : float
        Relative azimuth angle wrapped to the principal range [0, 180], degrees
    ttl : float
        Leaf inclination angle, degrees
    out : ndarray, optional
        Buffer of length 4 to write (chi_s, chi_o, frho, ftau) into

    Returns
    -------
    (chi_s, chi_o, frho, ftau) : tuple of floats
        Interception functions in the sun (chi_s) and view (chi_o) directions and the
        bidirectional reflectance (frho) and transmittance (ftau) multipliers.

    Notes
    -----
    frho and ftau are not clipped at zero. A negative ftau flags the geometry where the
    roles of leaf reflectance and transmittance swap in the area scattering coefficients.

    References
    ----------
    Verhoef, 1998, PhD thesis, Wageningen University, Appendix I
    """
    psi_rad = np.deg2rad(psi)
    cos_psi = np.cos(psi_rad)
    cos_ttli = np.cos(np.deg2rad(ttl))
    sin_ttli = np.sin(np.deg2rad(ttl))
    cos_tts = np.cos(np.deg2rad(tts))
    sin_tts = np.sin(np.deg2rad(tts))
    cos_tto = np.cos(np.deg2rad(tto))
    sin_tto = np.sin(np.deg2rad(tto))

    Cs = cos_ttli * cos_tts
    Ss = sin_ttli * sin_tts
    Co = cos_ttli * cos_tto
    So = sin_ttli * sin_tto

    As = max(Ss, Cs)
    Ao = max(So, Co)

    bts = np.arccos(np.clip(-Cs / As, -1.0, 1.0))
    bto = np.arccos(np.clip(-Co / Ao, -1.0, 1.0))

    chi_o = 2 / np.pi * ((bto - np.pi / 2) * Co + np.sin(bto) * So)
    chi_s = 2 / np.pi * ((bts - np.pi / 2) * Cs + np.sin(bts) * Ss)

    delta1 = abs(bts - bto)
    delta2 = np.pi - abs(bts + bto - np.pi)

    Tot = psi_rad + delta1 + delta2
    bt1 = min(psi_rad, delta1)
    bt3 = max(psi_rad, delta2)
    bt2 = Tot - bt1 - bt3

    T1 = 2 * Cs * Co + Ss * So * cos_psi
    T2 = np.sin(bt2) * (2 * As * Ao + Ss * So * np.cos(bt1) * np.cos(bt3))

    Jmin = bt2 * T1 - T2
    Jplus = (np.pi - bt2) * T1 + T2

    frho = Jplus / (2 * np.pi**2)
    ftau = -Jmin / (2 * np.pi**2)

    if out is not None:
        out[:] = (chi_s, chi_o, frho, ftau)

    return chi_s, chi_o, frho, ftau
