"""
Utilities: Includes error types and precondition checks shared across the sailrt radiative transfer modules
"""

import numpy as np


class ConfigurationError(ValueError):
    """Custom exception for canopy/leaf/spectral configurations that cannot be simulated."""
    pass


def check_layer_count(nLayer):
    """
    Checks that the number of canopy layers is a positive integer.

    Parameters
    ----------
    nLayer : int
        Number of canopy layers

    Raises
    ------
    ConfigurationError
        If nLayer is not a positive integer.
    """
    if (nLayer is None) or (int(nLayer) != nLayer) or (nLayer <= 0):
        raise ConfigurationError(f"Number of canopy layers must be a positive integer, got nLayer={nLayer}")


def check_leaf_count(leaves, nLayer):
    """
    Checks that there is either one leaf (big-leaf assumption, shared by every layer) or one leaf per layer.

    Parameters
    ----------
    leaves : list of LeafBios
        Leaf optical properties
    nLayer : int
        Number of canopy layers

    Returns
    -------
    nleaves : int
        Number of leaves, either 1 or nLayer

    Raises
    ------
    ConfigurationError
        If the number of leaves is neither 1 nor nLayer.
    """
    nleaves = len(leaves)
    if nleaves not in (1, nLayer):
        raise ConfigurationError(f"Array of leaves must have length 1 or nLayer={nLayer}, got {nleaves}")
    return nleaves


def check_shape(name, arr, shape):
    """
    Checks that a caller-supplied array has the expected shape.

    Parameters
    ----------
    name : str
        Name of the array, used in the error message
    arr : array_like
        Array to check
    shape : tuple
        Expected shape

    Raises
    ------
    ConfigurationError
        If the shape of arr does not equal shape.
    """
    arr_shape = np.shape(arr)
    if arr_shape != tuple(shape):
        raise ConfigurationError(f"Array '{name}' has shape {arr_shape}, expected {tuple(shape)}")


def layer_values(leaves, attribute, nLayer):
    """
    Collect a scalar leaf attribute over canopy layers, broadcasting a single shared leaf to all layers.

    Parameters
    ----------
    leaves : list of LeafBios
        Either a single leaf or one leaf per layer
    attribute : str
        Name of the LeafBios attribute
    nLayer : int
        Number of canopy layers

    Returns
    -------
    values : np.ndarray
        Attribute value for each canopy layer, shape (nLayer,) for scalar attributes or (n, nLayer) for spectra
    """
    check_leaf_count(leaves, nLayer)
    values = np.array([np.asarray(getattr(leaf, attribute), dtype=float) for leaf in leaves])
    if len(leaves) == 1:
        values = np.repeat(values, nLayer, axis=0)
    # Spectra are stored with wavelength as the first axis and layer as the second
    if values.ndim == 2:
        values = values.T
    return values
