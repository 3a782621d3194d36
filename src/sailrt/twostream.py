"""
Two-stream diffusive radiative transfer through discrete canopy layers with layer sources, shared by the shortwave, fluorescence and thermal calculations
"""

import numpy as np
from sailrt.utils import ConfigurationError, check_shape


def diffusive_S(tau_dd, rho_dd, S_minus, S_plus, boundary_top, boundary_bottom, rsoil):
    """
    Solves the two-stream diffuse radiation balance of a layered canopy with internal sources using the adding method.

    Parameters
    ----------
    tau_dd : array_like
        Diffuse transmittance of each layer, shape (nWL, nLayer) or (nLayer,)
    rho_dd : array_like
        Diffuse reflectance of each layer, same shape as tau_dd
    S_minus : array_like
        Downward source emitted by each layer, same shape as tau_dd
    S_plus : array_like
        Upward source emitted by each layer, same shape as tau_dd
    boundary_top : float or array_like
        Downward diffuse flux incident at the top of the canopy, scalar or (nWL,)
    boundary_bottom : float or array_like
        Upward flux leaving the soil independent of the canopy (emission, reflected direct beam), scalar or (nWL,)
    rsoil : float or array_like
        Diffuse reflectance of the soil, scalar or (nWL,)

    Returns
    -------
    F_minus : np.ndarray
        Downward diffuse flux at each layer edge, shape (nWL, nLayer+1), index 0 is the canopy top
    F_plus : np.ndarray
        Upward diffuse flux at each layer edge, shape (nWL, nLayer+1)
    net_diffuse : np.ndarray
        Diffuse radiation absorbed by each layer, shape (nWL, nLayer)

    Notes
    -----
    Working from the soil upward, the reflectance R of the canopy below each layer edge and the upward
    flux U generated below the edge are accumulated. Working from the top downward, the fluxes at each
    edge then follow from F_minus[j+1] = X[j]*F_minus[j] + Y[j] and F_plus[j] = R[j]*F_minus[j] + U[j].
    For every layer the incoming fluxes plus sources equal the outgoing fluxes plus absorption.

    References
    ----------
    Verhoef, 1985, doi:10.1016/0034-4257(85)90095-1
    van der Tol et al., 2009, doi:10.5194/bg-6-3109-2009
    """
    tau_dd = np.atleast_2d(np.asarray(tau_dd, dtype=float))
    rho_dd = np.atleast_2d(np.asarray(rho_dd, dtype=float))
    nWL, nLayer = tau_dd.shape
    check_shape("rho_dd", rho_dd, (nWL, nLayer))
    S_minus = _broadcast("S_minus", S_minus, (nWL, nLayer))
    S_plus = _broadcast("S_plus", S_plus, (nWL, nLayer))

    boundary_top = _broadcast("boundary_top", boundary_top, (nWL,))
    boundary_bottom = _broadcast("boundary_bottom", boundary_bottom, (nWL,))
    rsoil = _broadcast("rsoil", rsoil, (nWL,))

    R = np.zeros((nWL, nLayer + 1))
    U = np.zeros((nWL, nLayer + 1))
    X = np.zeros((nWL, nLayer))
    Y = np.zeros((nWL, nLayer))
    R[:, nLayer] = rsoil
    U[:, nLayer] = boundary_bottom

    # From the soil to the top of the canopy
    for j in range(nLayer - 1, -1, -1):
        dnorm = 1 - rho_dd[:, j] * R[:, j + 1]
        X[:, j] = tau_dd[:, j] / dnorm
        Y[:, j] = (rho_dd[:, j] * U[:, j + 1] + S_minus[:, j]) / dnorm
        R[:, j] = rho_dd[:, j] + tau_dd[:, j] * R[:, j + 1] * X[:, j]
        U[:, j] = tau_dd[:, j] * (R[:, j + 1] * Y[:, j] + U[:, j + 1]) + S_plus[:, j]

    # From the top of the canopy to the soil
    F_minus = np.zeros((nWL, nLayer + 1))
    F_plus = np.zeros((nWL, nLayer + 1))
    F_minus[:, 0] = boundary_top
    for j in range(nLayer):
        F_minus[:, j + 1] = X[:, j] * F_minus[:, j] + Y[:, j]
        F_plus[:, j] = R[:, j] * F_minus[:, j] + U[:, j]
    F_plus[:, nLayer] = R[:, nLayer] * F_minus[:, nLayer] + U[:, nLayer]

    net_diffuse = (F_minus[:, :-1] + F_plus[:, 1:]) * (1 - tau_dd - rho_dd)

    return F_minus, F_plus, net_diffuse


def _broadcast(name, arr, shape):
    """Broadcast a caller-supplied scalar or array to the solver shape"""
    arr = np.asarray(arr, dtype=float)
    try:
        return np.broadcast_to(arr, shape)
    except ValueError as err:
        raise ConfigurationError(f"Array '{name}' with shape {arr.shape} cannot be broadcast to {shape}") from err
