"""Patch labeling."""

import numpy as np
from scipy import ndimage

from . import settings
from .errors import InvalidConnectivityError

__all__ = ["NEIGHBORHOOD_KERNEL_DICT", "check_connectivity", "label", "label_landscape"]

NEIGHBORHOOD_KERNEL_DICT = {
    "8": ndimage.generate_binary_structure(2, 2),  # Moore/queen
    "4": ndimage.generate_binary_structure(2, 1),  # Von Neumann/rook
}


def check_connectivity(connectivity):
    """Validate the neighborhood rule used to determine patch adjacencies.

    Parameters
    ----------
    connectivity : {8, 4, '8', '4'}, optional
        If no value is provided, the default value set in
        `settings.DEFAULT_NEIGHBORHOOD_RULE` will be taken.

    Returns
    -------
    connectivity : str
        Either '8' or '4'.
    """
    if connectivity is None:
        connectivity = settings.DEFAULT_NEIGHBORHOOD_RULE
    elif isinstance(connectivity, (int, np.integer)):
        connectivity = str(connectivity)
    if connectivity not in NEIGHBORHOOD_KERNEL_DICT:
        raise InvalidConnectivityError(
            f"`connectivity` {connectivity!r} is not among ('8', '4')"
        )
    return connectivity


def label_mask(mask, connectivity):
    """Label the connected components of a boolean mask.

    Parameters
    ----------
    mask : numpy.ndarray
        Boolean array.
    connectivity : {'8', '4'}
        Neighborhood rule, already validated.

    Returns
    -------
    label_arr : numpy.ndarray
        An integer raster where each patch has a unique label from 1 to the number of
        patches, and 0 elsewhere.
    num_patches : int
    """
    return ndimage.label(mask, structure=NEIGHBORHOOD_KERNEL_DICT[connectivity])


def label(grid, connectivity=None, *, cache=None):
    """Label the patches of each class of a grid.

    Parameters
    ----------
    grid : pylandcore.Grid
        The grid.
    connectivity : {8, 4, '8', '4'}, optional
        Neighborhood rule to determine patch adjacencies, i.e: 8 (queen's case/Moore
        neighborhood) or 4 (rook's case/Von Neumann neighborhood). If no value is
        provided, the default value set in `settings.DEFAULT_NEIGHBORHOOD_RULE` will be
        taken.
    cache : pylandcore.ExtrasCache, optional
        Pre-built cache for the same grid and connectivity.

    Returns
    -------
    class_label_dict : dict
        Mapping of each class present in the grid to its label array, where each patch
        has a unique label (from 1 to the number of patches of the class) and every
        cell of another class or of missing data is 0. Classes without any cell are
        omitted, so an all-missing grid yields an empty dictionary.
    """
    connectivity = check_connectivity(connectivity)
    if cache is not None and cache.connectivity == connectivity:
        return dict(cache.class_label_arrs)

    return {
        class_val: label_mask(grid.arr == class_val, connectivity)[0]
        for class_val in grid.classes
    }


def label_landscape(grid, connectivity=None, *, cache=None):
    """Label the patches of all the classes with globally unique ids.

    Ids are assigned class by class in ascending order of class values, e.g., the
    patches of the first class are labeled from 1 to n_1, the ones of the second class
    from n_1 + 1 to n_1 + n_2 and so on.

    Parameters
    ----------
    grid : pylandcore.Grid
        The grid.
    connectivity : {8, 4, '8', '4'}, optional
        Neighborhood rule to determine patch adjacencies. If no value is provided, the
        default value set in `settings.DEFAULT_NEIGHBORHOOD_RULE` will be taken.
    cache : pylandcore.ExtrasCache, optional
        Pre-built cache for the same grid and connectivity.

    Returns
    -------
    label_arr : numpy.ndarray
        An integer raster where each patch has a unique label and missing cells are 0.
    """
    connectivity = check_connectivity(connectivity)
    if cache is not None and cache.connectivity == connectivity:
        return cache.landscape_label_arr

    class_label_dict = label(grid, connectivity)
    label_arr = np.zeros(grid.shape, dtype=np.int64)
    offset = 0
    for class_val in grid.classes:
        class_label_arr = class_label_dict[class_val]
        patch_mask = class_label_arr != 0
        label_arr[patch_mask] = class_label_arr[patch_mask] + offset
        offset += class_label_arr.max()

    return label_arr
