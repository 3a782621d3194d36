import logging

import numpy as np
import pytest
from scipy.integrate import quad

from sailrt.anglegeometry import SolarAngles, create_angle_container
from sailrt.canopygeometry import (
    canopy_geometry, clamp_pso_profile, create_canopy_opticals, layer_mean_factor, psofunction,
)
from sailrt.canopylayers import CanopyStructure
from sailrt.utils import ConfigurationError

GEOMETRIES = [(30.0, 0.0, 0.0), (30.0, 29.9, 0.0), (30.0, 30.0, 0.0), (45.0, 20.0, 90.0), (60.0, 30.0, 180.0), (20.0, 40.0, 270.0)]


@pytest.mark.parametrize("tts,tto,psi", GEOMETRIES)
def test_gap_fractions_are_probabilities(run_geometry, tts, tto, psi):
    can_opt = run_geometry(angles=SolarAngles(tts=tts, tto=tto, psi=psi))
    for P in (can_opt.Ps, can_opt.Po, can_opt.Pso):
        assert P.shape == (21,)
        assert np.all(P >= 0)
        assert np.all(P <= 1)
    assert np.all(can_opt.Pso <= np.minimum(can_opt.Ps, can_opt.Po) + 1e-6)


@pytest.mark.parametrize("tts,tto,psi", GEOMETRIES)
def test_coefficient_identities(run_geometry, tts, tto, psi):
    can_opt = run_geometry(angles=SolarAngles(tts=tts, tto=tto, psi=psi))
    assert can_opt.ddb + can_opt.ddf == pytest.approx(1.0)
    assert can_opt.sdb + can_opt.sdf == pytest.approx(can_opt.ks)
    assert can_opt.sdb - can_opt.sdf == pytest.approx(can_opt.bf)
    assert can_opt.dob + can_opt.dof == pytest.approx(can_opt.ko)
    assert can_opt.dob - can_opt.dof == pytest.approx(can_opt.bf)
    assert can_opt.sof >= 0


def test_gap_fractions_decrease_with_depth(run_geometry):
    can_opt = run_geometry()
    assert np.all(np.diff(can_opt.Ps) < 0)
    assert np.all(np.diff(can_opt.Po) < 0)
    assert np.all(np.diff(can_opt.Pso) < 0)


def test_extinction_matches_leaf_projections(run_geometry):
    can = CanopyStructure()
    can_opt = run_geometry(can=can, angles=SolarAngles(tts=40.0, tto=10.0, psi=60.0))
    mean_fs = np.dot(can.lidf, np.mean(can_opt.absfs, axis=1))
    mean_fo = np.dot(can.lidf, np.mean(can_opt.absfo, axis=1))
    assert mean_fs == pytest.approx(can_opt.ks, rel=1e-2)
    assert mean_fo == pytest.approx(can_opt.ko, rel=1e-2)
    np.testing.assert_allclose(can_opt.fsfo, can_opt.fs * can_opt.fo)
    np.testing.assert_allclose(can_opt.cos2_theta_l, can_opt.cos_theta_l**2)


def test_omega_unchanged_without_clump_b(run_geometry):
    can = CanopyStructure(Omega=0.8)
    for tts in (10.0, 50.0, 75.0):
        run_geometry(can=can, angles=SolarAngles(tts=tts))
        assert can.Omega == 0.8


def test_closed_form_with_clumping(run_geometry):
    angles = SolarAngles(tts=30.0, tto=0.0, psi=0.0)
    ref = run_geometry(can=CanopyStructure(), angles=angles)

    can = CanopyStructure(Omega=0.48)
    can_opt = run_geometry(can=can, angles=angles)

    ks, ko, LAI, dx, xl = can_opt.ks, can_opt.ko, can.LAI, can.dx, can.xl
    tau_s = ks * 0.48 * LAI * dx
    tau_o = ko * 0.48 * LAI * dx
    Ps = np.exp(ks * 0.48 * LAI * xl) * (1 - np.exp(-tau_s)) / tau_s
    Po = np.exp(ko * 0.48 * LAI * xl) * (1 - np.exp(-tau_o)) / tau_o
    np.testing.assert_allclose(can_opt.Ps, Ps, rtol=1e-12)
    np.testing.assert_allclose(can_opt.Po, Po, rtol=1e-12)

    dso = np.tan(np.deg2rad(30.0))
    f = lambda x: psofunction(ko, ks, 0.48, LAI, can.hot, dso, x)
    Pso = np.array([quad(f, x - dx, x, epsrel=1e-10)[0] / dx for x in xl])
    np.testing.assert_allclose(can_opt.Pso, Pso, rtol=1e-5)

    # Structure only, the extinction coefficients do not depend on clumping
    assert can_opt.ks == pytest.approx(ref.ks)
    assert not np.allclose(can_opt.Ps, ref.Ps)
    assert not np.allclose(can_opt.Po, ref.Po)
    assert not np.allclose(can_opt.Pso, ref.Pso)
    assert np.all(can_opt.Ps[1:] > ref.Ps[1:])


def test_zero_lai_is_fully_gap(run_geometry):
    can_opt = run_geometry(can=CanopyStructure(LAI=0.0))
    np.testing.assert_allclose(can_opt.Ps, 1.0)
    np.testing.assert_allclose(can_opt.Po, 1.0)
    np.testing.assert_allclose(can_opt.Pso, 1.0, rtol=1e-8)


def test_layer_mean_factor_limit():
    assert layer_mean_factor(0.0) == 1.0
    assert layer_mean_factor(1e-12) == pytest.approx(1.0)
    assert layer_mean_factor(1e-6) == pytest.approx((1 - np.exp(-1e-6)) / 1e-6, rel=1e-9)
    assert layer_mean_factor(2.0) == pytest.approx((1 - np.exp(-2.0)) / 2.0)


def test_hot_spot_limit():
    # At the hot spot the joint gap fraction follows the limiting exponential
    assert psofunction(0.5, 0.5, 1.0, 3.0, 0.05, 0.0, -0.5) == pytest.approx(np.exp(0.5 * 3.0 * -0.5))
    assert psofunction(0.5, 0.5, 1.0, 3.0, 0.05, 1e-9, -0.5) == pytest.approx(np.exp(0.5 * 3.0 * -0.5), rel=1e-6)


def test_clamp_pso_profile(run_geometry):
    can_opt = run_geometry()
    can_opt.Pso[3] = 1.0
    can_opt.Pso[7] = 1.0
    nclamped = clamp_pso_profile(can_opt)
    assert nclamped == 2
    assert can_opt.Pso[3] == pytest.approx(min(can_opt.Ps[3], can_opt.Po[3]))
    assert np.all(can_opt.Pso <= np.minimum(can_opt.Ps, can_opt.Po))


def test_clamp_disabled_by_default_keeps_quadrature(run_geometry):
    default = run_geometry()
    clamped = run_geometry(clamp_pso=True)
    np.testing.assert_allclose(clamped.Pso, np.minimum(default.Pso, np.minimum(default.Ps, default.Po)))


def test_bad_lidf_rejected():
    can = CanopyStructure()
    angles = SolarAngles()
    can_opt = create_canopy_opticals(can, 1)
    ang_con = create_angle_container(can, angles)
    can.lidf = np.full(5, 0.2)
    with pytest.raises(ConfigurationError):
        canopy_geometry(can, angles, can_opt, ang_con)


def test_repeated_calls_overwrite_buffers(run_geometry):
    can = CanopyStructure()
    can_opt = create_canopy_opticals(can, 1)
    ang_con = create_angle_container(can, SolarAngles())
    canopy_geometry(can, SolarAngles(tts=50.0, psi=90.0), can_opt, ang_con)
    canopy_geometry(can, SolarAngles(), can_opt, ang_con)
    fresh = run_geometry()
    assert can_opt.ks == pytest.approx(fresh.ks)
    np.testing.assert_allclose(can_opt.Pso, fresh.Pso)
    np.testing.assert_allclose(can_opt.fo, fresh.fo)


def test_debug_logging(run_geometry, caplog):
    with caplog.at_level(logging.DEBUG, logger="sailrt.canopygeometry"):
        run_geometry()
    assert any("ks=" in record.getMessage() for record in caplog.records)
