# ---
# jupyter:
#   jupytext:
#     text_representation:
#       extension: .py
#       format_name: percent
#       format_version: '1.3'
#       jupytext_version: 1.16.1
#   kernelspec:
#     display_name: Python 3 (ipykernel)
#     language: python
#     name: python3
# ---

# %%
import numpy as np
import matplotlib.pyplot as plt

# %%
from sailrt.initialize import initialize_rt_module
from sailrt.anglegeometry import SolarAngles, create_angle_container
from sailrt.canopygeometry import canopy_geometry
from sailrt.shortwave import canopy_matrices, short_wave, canopy_fluxes
from sailrt.fluorescence import SIF_fluxes
from sailrt.thermal import thermal_fluxes

# %% [markdown]
# ## Initialization
#
# Besides the individual functions to create the canopy, leaves, soil and radiation, a general function is provided to initialize everything at once.

# %%
angles, can, can_opt, can_rad, in_rad, leaves, rt_con, soil, wls = initialize_rt_module(nLayer=20, LAI=3.0)

print("Number of canopy layers:", can.nLayer)
print("Layer leaf area index:", can.iLAI)

# %% [markdown]
# ## Steps
#
# The calculator class runs the sequence below with `rt_con.calculate(angles, leaves, in_rad, soil, incLW)`. Here each step is called separately.

# %%
ang_con = create_angle_container(can, angles)

## 1. Update canopy optical properties (required)
canopy_geometry(can, angles, can_opt, ang_con)
## 2. Update scattering coefficients (required)
canopy_matrices(leaves, can_opt)
## 3. Simulate short wave radiative transfer (required)
short_wave(can, can_opt, can_rad, in_rad, soil)
## 4. Update integrated radiation fluxes (required for photosynthesis)
canopy_fluxes(can, can_opt, can_rad, in_rad, soil, leaves, wls)
## 5. Update SIF spectrum (required for SIF)
SIF_fluxes(leaves, can_opt, can_rad, can, soil, wls)
## 6. Update thermal fluxes (required for leaf energy budget)
thermal_fluxes(leaves, can_opt, can_rad, can, soil, 400.0, wls)

# %%
fig, axes = plt.subplots(1, 2, figsize=(9, 3.5))
axes[0].plot(wls.WL, can_rad.alb_obs, c="k")
axes[1].plot(wls.WLF, can_rad.SIF_obs, c="k")
axes[0].set_xlabel("Wavelength (nm)")
axes[1].set_xlabel("Wavelength (nm)")
axes[0].set_ylabel("Albedo")
axes[1].set_ylabel("obs SIF\n"+r"($\rm mW \; m^{-2} \; nm^{-1} \; sr^{-1}$)")
plt.tight_layout()

# %% [markdown]
# ## Change fluorescence quantum efficiency and clumping
#
# The leaf spectra are recalculated after changing the leaf biochemistry. Changing the clumping index changes the gap fractions.

# %%
alb_obs_ref = can_rad.alb_obs.copy()
SIF_obs_ref = can_rad.SIF_obs.copy()

for leaf in leaves:
    leaf.Cx = 0.5
    leaf.fqe = 0.004
    leaf.update_spectra(wls)
can.Omega = 0.48

rt_con.calculate(angles, leaves, in_rad, soil, incLW=400.0)

fig, axes = plt.subplots(1, 2, figsize=(9, 3.5))
axes[0].plot(wls.WL, alb_obs_ref, c="0.5", label="default")
axes[0].plot(wls.WL, can_rad.alb_obs, c="k", label=r"$\rm \Omega$=0.48, fqe=0.004")
axes[1].plot(wls.WLF, SIF_obs_ref, c="0.5")
axes[1].plot(wls.WLF, can_rad.SIF_obs, c="k")
axes[0].legend()
axes[0].set_xlabel("Wavelength (nm)")
axes[1].set_xlabel("Wavelength (nm)")
axes[0].set_ylabel("Albedo")
axes[1].set_ylabel("obs SIF\n"+r"($\rm mW \; m^{-2} \; nm^{-1} \; sr^{-1}$)")
plt.tight_layout()

# %% [markdown]
# ## Gap fractions and absorbed radiation through the canopy

# %%
fig, axes = plt.subplots(1, 3, figsize=(12, 3.5))

axes[0].plot(can_opt.Ps, can.xl, label="Ps")
axes[0].plot(can_opt.Po, can.xl, label="Po")
axes[0].plot(can_opt.Pso, can.xl, label="Pso")
axes[0].legend()
axes[0].set_xlabel("Gap fraction (-)")
axes[0].set_ylabel("Relative depth (-)")

xl_mid = 0.5 * (can.xl[:-1] + can.xl[1:])
axes[1].plot(can_rad.absPAR_sun, xl_mid, label="Sunlit")
axes[1].plot(can_rad.absPAR_shade, xl_mid, label="Shaded")
axes[1].legend()
axes[1].set_xlabel("Absorbed PAR\n"+r"($\rm \mu mol \; m^{-2} \; s^{-1}$)")

axes[2].plot(can_rad.intNetLW_sunlit, xl_mid, label="Sunlit")
axes[2].plot(can_rad.intNetLW_shade, xl_mid, label="Shaded")
axes[2].legend()
axes[2].set_xlabel("Net longwave\n"+r"($\rm W \; m^{-2}$)")
plt.tight_layout()

# %% [markdown]
# ## Sun angle dependence of the canopy reflectance

# %%
_tts = np.arange(0, 80, 10)
_alb = np.zeros(_tts.size)
can.Omega = 1.0
for i, tts in enumerate(_tts):
    rt_con.calculate(SolarAngles(tts=tts, tto=0.0, psi=0.0), leaves, in_rad, soil, incLW=400.0)
    _alb[i] = rt_con.broadband_albedo(in_rad)

fig, ax = plt.subplots(1, 1, figsize=(4, 3))
ax.plot(_tts, _alb, c="k")
ax.set_xlabel("Solar zenith angle (degrees)")
ax.set_ylabel("Broadband albedo (-)")
plt.tight_layout()
