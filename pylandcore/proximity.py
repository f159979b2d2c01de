"""Euclidean nearest neighbor distance between patches of the same class."""

import platform
import warnings

import numpy as np
import pandas as pd
import transonic

from .core import boundary
from .errors import InsufficientPatchesWarning
from .grid import validate_res

if platform.system() == "Windows":
    backend = "numba"
else:
    backend = "pythran"

transonic.set_backend_for_this_module(backend)

__all__ = ["boundary_points", "nearest_neighbor"]

# define type annotations outside signature to avoid ForwardAnnotationSyntaxError
# see https://github.com/PyCQA/pyflakes/issues/542
CoordArray = transonic.Array[np.float64, "1d"]
LabelArray = transonic.Array[np.int64, "1d"]


@transonic.boost
def compute_point_nearest_neighbor(xs: CoordArray, ys: CoordArray, labels: LabelArray):
    # `xs` must be sorted in ascending order. For each point, we sweep the sorted
    # sequence in both directions and stop as soon as the distance along the x axis
    # alone is not smaller than the closest point (of another patch) found so far
    num_points = xs.shape[0]
    min_sq_dists = np.full(num_points, np.inf)
    for i in range(num_points):
        min_sq_dist = np.inf
        j = i + 1
        while j < num_points:
            dx = xs[j] - xs[i]
            if dx * dx >= min_sq_dist:
                break
            if labels[j] != labels[i]:
                dy = ys[j] - ys[i]
                sq_dist = dx * dx + dy * dy
                if sq_dist < min_sq_dist:
                    min_sq_dist = sq_dist
            j += 1
        j = i - 1
        while j >= 0:
            dx = xs[i] - xs[j]
            if dx * dx >= min_sq_dist:
                break
            if labels[j] != labels[i]:
                dy = ys[j] - ys[i]
                sq_dist = dx * dx + dy * dy
                if sq_dist < min_sq_dist:
                    min_sq_dist = sq_dist
            j -= 1
        min_sq_dists[i] = min_sq_dist

    return np.sqrt(min_sq_dists)


def boundary_points(label_arr, res):
    """Get the cell-center coordinates of the patches' edge cells.

    The shortest edge-to-edge distance between two patches is certainly going to be
    between cells at their corresponding patch edges, so these are the only points
    required to compute nearest neighbor distances.

    Parameters
    ----------
    label_arr : numpy.ndarray
        Array with unique integer labels for each patch (0 means background).
    res : tuple
        The (x, y) resolution, in linear units.

    Returns
    -------
    points_df : pandas.DataFrame
        Data frame with the `patch_id` and the `x`, `y` coordinates (columns) of each
        edge cell (rows), sorted by `x`.
    """
    cell_width, cell_height = validate_res(res)
    # the closest cell of a patch to another patch always has a rook's case neighbor
    # outside its patch and towards the other patch, hence inside the grid, so we do not
    # need the cells that only neighbour the grid boundary
    nonzero_i_idx, nonzero_j_idx = np.nonzero(
        boundary(label_arr, edge_depth=1, count_boundary=False)
    )
    points_df = pd.DataFrame(
        {
            "patch_id": label_arr[nonzero_i_idx, nonzero_j_idx].astype(np.int64),
            "x": (nonzero_j_idx + 0.5) * cell_width,
            "y": (nonzero_i_idx + 0.5) * cell_height,
        }
    )
    return points_df.sort_values("x", kind="mergesort", ignore_index=True)


def nearest_neighbor(label_arr, res, *, class_val=None, points_df=None, cache=None):
    r"""Distance to the nearest neighboring patch of the same class.

    Based on the shortest edge-to-edge Euclidean distance, measured between the
    centers of the edge cells.

    .. math::
       ENN = h_{i,j} \quad [m]

    Parameters
    ----------
    label_arr : numpy.ndarray
        Array with unique integer labels for each patch of a class (0 means
        background).
    res : tuple
        The (x, y) resolution, in linear units.
    class_val : int, optional
        Class of the patches. Used to make warnings more informative and to retrieve
        the edge points of the class from `cache`.
    points_df : pandas.DataFrame, optional
        Pre-computed edge points of `label_arr` (see `boundary_points`).
    cache : pylandcore.ExtrasCache, optional
        Pre-built cache of the grid of `label_arr`. If provided along with `class_val`
        and `points_df` is not, the cached edge points of the class are used.

    Returns
    -------
    ENN : pandas.Series
        ENN > 0, without limit, indexed by patch id. If there are less than two patches,
        the distances are `NaN` and an `InsufficientPatchesWarning` is issued.
    """
    num_patches = label_arr.max()
    patch_index = pd.RangeIndex(1, num_patches + 1, name="patch_id")
    if num_patches < 2:
        warnings.warn(
            f"Class {class_val if class_val is not None else ''} has less than 2 "
            "patches. Euclidean-nearest-neighbor will be nan",
            InsufficientPatchesWarning,
        )
        return pd.Series(np.nan, index=patch_index, name="euclidean_nearest_neighbor")

    if points_df is None and cache is not None and class_val is not None:
        points_df = cache.boundary_points[class_val]
    if points_df is None:
        points_df = boundary_points(label_arr, res)
    else:
        points_df = points_df.sort_values("x", kind="mergesort")

    point_dists = compute_point_nearest_neighbor(
        points_df["x"].values.astype(np.float64),
        points_df["y"].values.astype(np.float64),
        points_df["patch_id"].values.astype(np.int64),
    )

    return (
        pd.Series(point_dists)
        .groupby(points_df["patch_id"].values)
        .min()
        .reindex(patch_index)
        .rename("euclidean_nearest_neighbor")
    )
