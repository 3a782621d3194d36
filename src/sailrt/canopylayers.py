"""
Canopy layers class: Includes parameters and functions to define canopy structure and discretise the canopy profile into layers.
"""

import numpy as np
from attrs import define, field
from sailrt.utils import ConfigurationError, check_layer_count

LITAB = np.array([5.0, 15.0, 25.0, 35.0, 45.0, 55.0, 65.0, 75.0, 81.0, 83.0, 85.0, 87.0, 89.0])
LITAB_BND = np.array([
    [0.0, 10.0], [10.0, 20.0], [20.0, 30.0], [30.0, 40.0], [40.0, 50.0], [50.0, 60.0], [60.0, 70.0],
    [70.0, 80.0], [80.0, 82.0], [82.0, 84.0], [84.0, 86.0], [86.0, 88.0], [88.0, 90.0],
])
LAZITAB = np.arange(5.0, 360.0, 10.0)


@define
class CanopyStructure:
    """
    Canopy structure for radiative transfer: leaf area, layer discretisation, leaf angle distributions, hot-spot and clumping.
    """
    nLayer: int = field(default=20)  ## Number of canopy layers
    LAI: float = field(default=3.0)  ## Leaf area index, m2 m-2
    Omega: float = field(default=1.0)  ## Clumping index (-). Updated from solar zenith angle when clump_b > 0, otherwise treated as a fixed user value.
    clump_a: float = field(default=1.0)  ## Clumping structure factor a (-), Pinty et al. (2015)
    clump_b: float = field(default=0.0)  ## Clumping structure factor b (-), Pinty et al. (2015). Set to 0 to keep Omega fixed.
    leaf_width: float = field(default=0.1)  ## Leaf width, m
    hc: float = field(default=2.0)  ## Canopy height, m
    hot: float = field(default=None)  ## Hot-spot parameter, leaf width / canopy height (-). Defaults to leaf_width/hc.
    LIDFa: float = field(default=0.0)  ## Leaf inclination distribution parameter a, average leaf slope (-1 to 1)
    LIDFb: float = field(default=0.0)  ## Leaf inclination distribution parameter b, bimodality (-1 to 1)
    litab: np.ndarray = field(factory=LITAB.copy)  ## Leaf inclination bin centres, degrees
    litab_bnd: np.ndarray = field(factory=LITAB_BND.copy)  ## Leaf inclination bin boundaries, degrees
    lazitab: np.ndarray = field(factory=LAZITAB.copy)  ## Leaf azimuth bin centres, degrees
    lidf: np.ndarray = field(default=None)  ## Leaf inclination distribution (probability of each litab bin). Generated from LIDFa and LIDFb if not given.

    def __attrs_post_init__(self):
        check_layer_count(self.nLayer)
        if self.LAI < 0:
            raise ConfigurationError(f"Leaf area index cannot be negative, got LAI={self.LAI}")
        if self.hot is None:
            self.hot = self.leaf_width / self.hc
        if self.lidf is None:
            self.lidf = dladgen(self.LIDFa, self.LIDFb, self.litab_bnd)
        self.lidf = np.asarray(self.lidf, dtype=float)
        if self.lidf.shape != np.shape(self.litab):
            raise ConfigurationError(f"Leaf inclination distribution has {self.lidf.size} bins but litab has {np.size(self.litab)}")
        if np.abs(np.sum(self.lidf) - 1) > 1e-6:
            raise ConfigurationError(f"Leaf inclination distribution must sum to 1, sums to {np.sum(self.lidf)}")

    @property
    def dx(self):
        """Relative thickness of one canopy layer (-)"""
        return 1.0 / self.nLayer

    @property
    def iLAI(self):
        """Clumped leaf area index of one canopy layer, m2 m-2"""
        return self.LAI * self.Omega / self.nLayer

    @property
    def xl(self):
        """Relative cumulative depth at the layer edges, from 0 at the canopy top to -1 at the soil (nLayer+1)"""
        return np.linspace(0.0, -1.0, self.nLayer + 1)

    @property
    def xl_e(self):
        """Layer edge grid used for the sunlit and viewed gap fractions (same grid as xl)"""
        return self.xl

    @property
    def nli(self):
        return len(self.litab)

    @property
    def nlazi(self):
        return len(self.lazitab)

    def cast_parameter_over_layers_uniform(self, p):
        """
        Assigns vertically resolved parameter assuming constant value over discrete canopy layers.

        Parameters
        ----------
        p : float or array_like
            Parameter value or spectrum of parameter values

        Returns
        -------
        layer_p : np.ndarray
            Parameter value at each canopy layer, shape (nLayer,) for a float or (p.size, nLayer) for a spectrum
        """
        p = np.asarray(p, dtype=float)
        if p.ndim == 0:
            return np.full(self.nLayer, float(p))
        return np.repeat(p[:, np.newaxis], self.nLayer, axis=1)


def dcum(a, b, t):
    """
    Cumulative leaf inclination distribution of Verhoef (1998).

    Parameters
    ----------
    a : float
        Leaf inclination distribution parameter a (average leaf slope)
    b : float
        Leaf inclination distribution parameter b (bimodality)
    t : float
        Leaf inclination angle, degrees

    Returns
    -------
    f : float
        Fraction of leaves with inclination below t
    """
    if a > 1:
        return 1 - np.cos(np.deg2rad(t))

    eps = 1e-8
    delx = 1.0
    x = 2 * np.deg2rad(t)
    p = x
    y = 0.0
    while delx >= eps:
        y = a * np.sin(x) + 0.5 * b * np.sin(2 * x)
        dx = 0.5 * (y - x + p)
        x = x + dx
        delx = abs(dx)
    return (2 * y + p) / np.pi


def dladgen(a, b, litab_bnd):
    """
    Leaf inclination distribution over the inclination bins.

    Parameters
    ----------
    a : float
        Leaf inclination distribution parameter a (average leaf slope)
    b : float
        Leaf inclination distribution parameter b (bimodality)
    litab_bnd : array_like
        Lower and upper boundaries of each inclination bin, degrees, shape (nli, 2)

    Returns
    -------
    lidf : np.ndarray
        Fraction of leaves in each inclination bin

    References
    ----------
    Verhoef, 1998, PhD thesis, Wageningen University, Appendix
    """
    if (a <= 1) and (abs(a) + abs(b) > 1):
        raise ConfigurationError(f"Leaf inclination parameters must satisfy |LIDFa| + |LIDFb| <= 1, got LIDFa={a}, LIDFb={b}")
    litab_bnd = np.asarray(litab_bnd, dtype=float)
    lidf = np.array([dcum(a, b, t2) - dcum(a, b, t1) for t1, t2 in litab_bnd])
    return lidf
