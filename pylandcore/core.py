"""Edge and core classification."""

import numpy as np
import pandas as pd
from scipy import ndimage

from . import settings
from .labeling import NEIGHBORHOOD_KERNEL_DICT, check_connectivity, label_mask

__all__ = [
    "boundary",
    "core_mask",
    "core_label",
    "number_of_core_areas",
]


def _check_edge_depth(edge_depth):
    if edge_depth is None:
        edge_depth = settings.DEFAULT_EDGE_DEPTH
    if int(edge_depth) != edge_depth or edge_depth < 1:
        raise ValueError(f"`edge_depth` must be an integer >= 1, got {edge_depth!r}")
    return int(edge_depth)


def core_mask(label_arr, edge_depth=None, count_boundary=None):
    """Compute the core cells of a labeled patch array.

    A cell is edge at depth 1 if any of its rook's case neighbors is not part of a
    patch (i.e., is of another class or missing data) or, if `count_boundary` is True,
    lies outside the grid. For larger depths, the depth 1 edge is iteratively peeled off
    and the remaining cells are classified again, `edge_depth` times.

    Parameters
    ----------
    label_arr : numpy.ndarray
        An integer raster where each patch has a unique label and 0 means background.
    edge_depth : int, optional
        Number of cells considered as edge. If no value is provided, the default value
        set in `settings.DEFAULT_EDGE_DEPTH` will be taken.
    count_boundary : bool, optional
        Whether the outer boundary of the grid counts as edge. If False, cells that
        only neighbour the grid boundary can be core. If no value is provided, the
        default value set in `settings.DEFAULT_COUNT_BOUNDARY` will be taken.

    Returns
    -------
    core_mask : numpy.ndarray
        Boolean array, True for core cells.
    """
    edge_depth = _check_edge_depth(edge_depth)
    if count_boundary is None:
        count_boundary = settings.DEFAULT_COUNT_BOUNDARY

    # two distinct patches of the same class are never rook's case neighbors (otherwise
    # they would be a single patch), so eroding the mask of all the patches is
    # equivalent to eroding each patch separately.
    # ACHTUNG: we use the 4-neighborhood kernel to compute the core areas (this is how
    # it is done in FRAGSTATS/landscapemetrics), and `border_value` determines whether
    # the cells outside the grid count as background
    return ndimage.binary_erosion(
        label_arr != 0,
        structure=NEIGHBORHOOD_KERNEL_DICT["4"],
        iterations=edge_depth,
        border_value=0 if count_boundary else 1,
    )


def boundary(label_arr, edge_depth=None, count_boundary=None):
    """Compute the edge cells of a labeled patch array.

    Parameters
    ----------
    label_arr : numpy.ndarray
        An integer raster where each patch has a unique label and 0 means background.
    edge_depth : int, optional
        Number of cells considered as edge. If no value is provided, the default value
        set in `settings.DEFAULT_EDGE_DEPTH` will be taken.
    count_boundary : bool, optional
        Whether the outer boundary of the grid counts as edge. If no value is provided,
        the default value set in `settings.DEFAULT_COUNT_BOUNDARY` will be taken.

    Returns
    -------
    edge_mask : numpy.ndarray
        Boolean array, True for the edge cells. The edge cells and the core cells (see
        `core_mask`) partition the patch cells.
    """
    return (label_arr != 0) & ~core_mask(label_arr, edge_depth, count_boundary)


def core_label(label_arr, edge_depth=None, count_boundary=None, connectivity=None):
    """Label the core patches, i.e., connected components of the core cells.

    Parameters
    ----------
    label_arr : numpy.ndarray
        An integer raster where each patch has a unique label and 0 means background.
    edge_depth : int, optional
        Number of cells considered as edge.
    count_boundary : bool, optional
        Whether the outer boundary of the grid counts as edge.
    connectivity : {8, 4, '8', '4'}, optional
        Neighborhood rule to determine core patch adjacencies.

    Returns
    -------
    core_label_arr : numpy.ndarray
        An integer raster of core areas only where each core patch has a unique label.
    num_core_patches : int
    """
    connectivity = check_connectivity(connectivity)
    return label_mask(core_mask(label_arr, edge_depth, count_boundary), connectivity)


def number_of_core_areas(
    label_arr, edge_depth=None, count_boundary=None, connectivity=None
):
    """Number of disjunct core areas of each patch.

    Parameters
    ----------
    label_arr : numpy.ndarray
        An integer raster where each patch has a unique label and 0 means background.
    edge_depth : int, optional
        Number of cells considered as edge.
    count_boundary : bool, optional
        Whether the outer boundary of the grid counts as edge.
    connectivity : {8, 4, '8', '4'}, optional
        Neighborhood rule to determine core patch adjacencies.

    Returns
    -------
    ncore : pandas.Series
        Number of core areas (NCORE >= 0) indexed by patch id. Patches without any core
        cell have zero core areas.
    """
    num_patches = label_arr.max()
    core_label_arr, num_core_patches = core_label(
        label_arr, edge_depth, count_boundary, connectivity
    )

    # we only need the unique pairs of (patch id, core id), encoded as a single integer
    core_cond = core_label_arr != 0
    pair_codes = np.unique(
        label_arr[core_cond].astype(np.int64) * (num_core_patches + 1)
        + core_label_arr[core_cond]
    )
    ncore = np.bincount(
        pair_codes // (num_core_patches + 1), minlength=num_patches + 1
    )[1:]

    return pd.Series(
        ncore,
        index=pd.RangeIndex(1, num_patches + 1, name="patch_id"),
        name="number_of_core_areas",
    )
