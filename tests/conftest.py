import numpy as np
import pytest

from sailrt.anglegeometry import SolarAngles, create_angle_container
from sailrt.canopygeometry import create_canopy_opticals, canopy_geometry
from sailrt.canopylayers import CanopyStructure
from sailrt.initialize import initialize_rt_module


@pytest.fixture
def rt_module():
    """Default 20-layer, LAI=3 configuration at tts=30, tto=0, psi=0"""
    return initialize_rt_module(nLayer=20, LAI=3.0)


@pytest.fixture
def run_geometry():
    """Runs canopy_geometry on fresh buffers and returns the canopy optical coefficients"""
    def _run(can=None, angles=None, nWL=1, **kwargs):
        can = CanopyStructure() if can is None else can
        angles = SolarAngles() if angles is None else angles
        can_opt = create_canopy_opticals(can, nWL)
        ang_con = create_angle_container(can, angles)
        canopy_geometry(can, angles, can_opt, ang_con, **kwargs)
        return can_opt
    return _run


@pytest.fixture
def rng():
    return np.random.default_rng(42)
