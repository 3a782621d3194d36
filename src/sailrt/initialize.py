"""
Initialization: Builds a complete default set of canopy radiative transfer inputs and buffers
"""

from sailrt.canopylayers import CanopyStructure
from sailrt.anglegeometry import SolarAngles
from sailrt.canopyradiation import CanopyRT
from sailrt.canopyrads import create_incoming_radiation
from sailrt.leafbios import create_leaves
from sailrt.soil import create_soil
from sailrt.wavelengths import WaveLengths


def initialize_rt_module(nLayer=20, LAI=3.0, tts=30.0, tto=0.0, psi=0.0, nleaves=1, leaf_kwargs=None, soil_kwargs=None, **kwargs):
    """
    Creates the inputs and buffers for a canopy radiative transfer run with default parameters.

    Parameters
    ----------
    nLayer : int
        Number of canopy layers
    LAI : float
        Leaf area index, m2 m-2
    tts, tto, psi : float
        Solar zenith, viewing zenith and relative azimuth angles, degrees
    nleaves : int
        Number of leaves, 1 (shared by all layers) or nLayer
    leaf_kwargs : dict, optional
        LeafBios attributes
    soil_kwargs : dict, optional
        Soil attributes passed to create_soil
    **kwargs
        Further CanopyStructure attributes (Omega, clump_a, clump_b, LIDFa, LIDFb, ...)

    Returns
    -------
    tuple
        (angles, can, can_opt, can_rad, in_rad, leaves, rt_con, soil, wls)
    """
    wls = WaveLengths()
    can = CanopyStructure(nLayer=nLayer, LAI=LAI, **kwargs)
    angles = SolarAngles(tts=tts, tto=tto, psi=psi)
    rt_con = CanopyRT(can=can, wls=wls)
    leaves = create_leaves(wls, nleaves=nleaves, **(leaf_kwargs or {}))
    soil = create_soil(wls, **(soil_kwargs or {}))
    in_rad = create_incoming_radiation(wls)
    return angles, can, rt_con.can_opt, rt_con.can_rad, in_rad, leaves, rt_con, soil, wls
