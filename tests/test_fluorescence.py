import numpy as np
import pytest

from sailrt.fluorescence import SIF_fluxes


def test_sif_spectrum(rt_module):
    angles, can, can_opt, can_rad, in_rad, leaves, rt_con, soil, wls = rt_module
    rt_con.calculate(angles, leaves, in_rad, soil)
    assert can_rad.SIF_obs.shape == (wls.nWLF,)
    assert np.all(can_rad.SIF_obs >= 0)
    assert np.all(can_rad.SIF_hemi >= 0)
    assert np.max(can_rad.SIF_obs) > 0
    # Emission peaks between the red and far-red fluorescence bands
    peak = wls.WLF[np.argmax(can_rad.SIF_obs)]
    assert 670.0 <= peak <= 760.0


def test_no_fluorescence_without_quantum_efficiency(rt_module):
    angles, can, can_opt, can_rad, in_rad, leaves, rt_con, soil, wls = rt_module
    for leaf in leaves:
        leaf.fqe = 0.0
        leaf.update_spectra(wls)
    rt_con.calculate(angles, leaves, in_rad, soil)
    np.testing.assert_allclose(can_rad.SIF_obs, 0.0, atol=1e-14)
    np.testing.assert_allclose(can_rad.SIF_hemi, 0.0, atol=1e-14)


def test_sif_linear_in_quantum_efficiency(rt_module):
    angles, can, can_opt, can_rad, in_rad, leaves, rt_con, soil, wls = rt_module
    rt_con.calculate(angles, leaves, in_rad, soil)
    SIF_obs = can_rad.SIF_obs.copy()
    for leaf in leaves:
        leaf.fqe = 2 * leaf.fqe
        leaf.update_spectra(wls)
    SIF_fluxes(leaves, can_opt, can_rad, can, soil, wls)
    np.testing.assert_allclose(can_rad.SIF_obs, 2 * SIF_obs, rtol=1e-10)


def test_leaf_change_leaves_structure_unchanged(rt_module):
    angles, can, can_opt, can_rad, in_rad, leaves, rt_con, soil, wls = rt_module
    rt_con.calculate(angles, leaves, in_rad, soil)
    Ps, Po, Pso = can_opt.Ps.copy(), can_opt.Po.copy(), can_opt.Pso.copy()
    SIF_obs = can_rad.SIF_obs.copy()

    for leaf in leaves:
        leaf.Cx = 0.5
        leaf.fqe = 0.004
        leaf.update_spectra(wls)
    rt_con.calculate(angles, leaves, in_rad, soil)

    np.testing.assert_array_equal(can_opt.Ps, Ps)
    np.testing.assert_array_equal(can_opt.Po, Po)
    np.testing.assert_array_equal(can_opt.Pso, Pso)
    assert not np.allclose(can_rad.SIF_obs, SIF_obs)
    assert np.max(can_rad.SIF_obs) < np.max(SIF_obs)


def test_per_layer_leaves_match_shared_leaf(rt_module):
    angles, can, can_opt, can_rad, in_rad, leaves, rt_con, soil, wls = rt_module
    rt_con.calculate(angles, leaves, in_rad, soil)
    SIF_obs = can_rad.SIF_obs.copy()
    SIF_fluxes(leaves * can.nLayer, can_opt, can_rad, can, soil, wls)
    np.testing.assert_allclose(can_rad.SIF_obs, SIF_obs, rtol=1e-12)


def test_directional_and_hemispherical_sif_consistent(rt_module):
    angles, can, can_opt, can_rad, in_rad, leaves, rt_con, soil, wls = rt_module
    rt_con.calculate(angles, leaves, in_rad, soil)
    # Nadir radiance of a near-Lambertian source is of the order of the exitance over pi
    ratio = np.pi * can_rad.SIF_obs / can_rad.SIF_hemi
    assert np.all(ratio > 0.2)
    assert np.all(ratio < 5.0)
