"""Class adjacency (co-occurrence) matrices and edge length."""

import numpy as np
import pandas as pd

from . import settings
from .errors import InvalidKernelError

__all__ = [
    "KERNEL_DICT",
    "get_kernel_offsets",
    "pad_grid",
    "adjacency",
    "total_edge",
    "percentage_of_like_adjacencies",
]

# 3x3 neighbor-offset kernels, any non-zero (and non-NaN) cell other than the center is
# a neighbor
KERNEL_DICT = {
    "4": np.array([[0, 1, 0], [1, 0, 1], [0, 1, 0]], dtype=np.int8),
    "8": np.array([[1, 1, 1], [1, 0, 1], [1, 1, 1]], dtype=np.int8),
    # left and right neighbors, which share a vertical cell side
    "horizontal": np.array([[0, 0, 0], [1, 0, 1], [0, 0, 0]], dtype=np.int8),
    # top and bottom neighbors, which share a horizontal cell side
    "vertical": np.array([[0, 1, 0], [0, 0, 0], [0, 1, 0]], dtype=np.int8),
}
# length of the shared cell side for the directional kernels
_DIRECTION_RES_DICT = {"horizontal": 1, "vertical": 0}


def get_kernel_offsets(kernel):
    """Get the neighbor offsets of a kernel.

    Since adjacency is a symmetric relation, an offset and its opposite describe the
    same pairs of cells, so only one of each is returned.

    Parameters
    ----------
    kernel : {4, 8, '4', '8', 'horizontal', 'vertical'} or numpy.ndarray, optional
        A named kernel or a square array of odd size where every non-zero and non-NaN
        cell other than the center marks a neighbor. If no value is provided, the
        default value set in `settings.DEFAULT_ADJACENCY_NEIGHBORHOOD` is taken.

    Returns
    -------
    offsets : tuple
        Sorted tuple of (row, column) offsets.
    """
    if kernel is None:
        kernel = settings.DEFAULT_ADJACENCY_NEIGHBORHOOD
    if isinstance(kernel, (int, np.integer)):
        kernel = str(kernel)
    if isinstance(kernel, str):
        try:
            kernel = KERNEL_DICT[kernel]
        except KeyError as kernel_e:
            raise InvalidKernelError(
                f"`kernel` {kernel!r} is not among {tuple(KERNEL_DICT)}"
            ) from kernel_e

    try:
        kernel = np.asarray(kernel, dtype=float)
    except (TypeError, ValueError) as kernel_e:
        raise InvalidKernelError("`kernel` must be a numeric array") from kernel_e
    if (
        kernel.ndim != 2
        or kernel.shape[0] != kernel.shape[1]
        or kernel.shape[0] % 2 == 0
    ):
        raise InvalidKernelError(
            f"`kernel` must be a square array of odd size, got shape {kernel.shape}"
        )

    center = kernel.shape[0] // 2
    offsets = set()
    for di, dj in np.argwhere(np.nan_to_num(kernel) != 0) - center:
        di, dj = int(di), int(dj)
        if (di, dj) == (0, 0):
            continue
        if (di, dj) < (0, 0):
            di, dj = -di, -dj
        offsets.add((di, dj))
    if not offsets:
        raise InvalidKernelError("`kernel` does not define any neighbor")

    return tuple(sorted(offsets))


def pad_grid(arr, pad_value, *, pad_cells=1, nodata=None):
    """Pad an array with a background sentinel along its border.

    Parameters
    ----------
    arr : numpy.ndarray
        The input raster.
    pad_value : int
        Value of the added cells.
    pad_cells : int, default 1
        Number of rows/columns added on each side.
    nodata : int, optional
        If provided, the cells of `arr` with this value are set to `pad_value` too.

    Returns
    -------
    padded_arr : numpy.ndarray
    """
    padded_arr = np.pad(
        arr, pad_width=pad_cells, mode="constant", constant_values=pad_value
    )
    if nodata is not None:
        padded_arr[padded_arr == nodata] = pad_value

    return padded_arr


def compute_adjacency_arr(code_arr, num_codes, offsets):
    """Compute the ordered adjacency array of a reclassified raster.

    Parameters
    ----------
    code_arr : numpy.ndarray
        Raster with integer codes from 0 to `num_codes - 1`.
    num_codes : int
        Number of codes.
    offsets : list-like
        (row, column) offsets, with non-negative row offsets (see `get_kernel_offsets`).

    Returns
    -------
    adjacency_arr : numpy.ndarray
        Square array where the cell (i, k) is the number of times that a cell of code i
        is adjacent to a cell of code k. Each adjacency is counted once from each of its
        two cells, so the array is symmetric and its diagonal holds twice the number of
        like adjacencies.
    """
    num_rows, num_cols = code_arr.shape
    adjacency_arr = np.zeros((num_codes, num_codes), dtype=np.int64)
    for di, dj in offsets:
        start_j, end_j = max(0, -dj), num_cols - max(0, dj)
        if di >= num_rows or start_j >= end_j:
            continue
        from_arr = code_arr[: num_rows - di, start_j:end_j]
        to_arr = code_arr[di:, start_j + dj : end_j + dj]
        # flat-index approach to count all the pairs at once
        adjacency_arr += np.bincount(
            (from_arr * num_codes + to_arr).ravel(), minlength=num_codes * num_codes
        ).reshape(num_codes, num_codes)

    return adjacency_arr + adjacency_arr.T


def adjacency(grid, kernel=None, ordered=None, *, pad=False, cache=None):
    """Compute the class adjacency matrix of a grid.

    Parameters
    ----------
    grid : pylandcore.Grid
        The grid.
    kernel : {4, 8, '4', '8', 'horizontal', 'vertical'} or numpy.ndarray, optional
        Neighbor-offset kernel (see `get_kernel_offsets`). If no value is provided, the
        default value set in `settings.DEFAULT_ADJACENCY_NEIGHBORHOOD` is taken.
    ordered : bool, optional
        If True, each pair of adjacent cells is counted twice, i.e., once from each
        cell. Otherwise, each pair is counted once, so that the matrix is exactly half
        the ordered one (the pairs of different classes are split evenly between the
        two symmetric cells). If no value is provided, the default value set in
        `settings.DEFAULT_ORDERED` is taken.
    pad : bool, default False
        Whether the grid should be padded with the background sentinel so that the
        adjacencies with the outside of the grid are counted.
    cache : pylandcore.ExtrasCache, optional
        Pre-built cache for the same grid.

    Returns
    -------
    adjacency_df : pandas.DataFrame
        Symmetric data frame indexed (rows and columns) by the classes of the grid
        followed by the background sentinel (i.e., the grid's nodata value), which
        stands for missing data and, if `pad` is True, for the outside of the grid.
    """
    offsets = get_kernel_offsets(kernel)
    if ordered is None:
        ordered = settings.DEFAULT_ORDERED

    if cache is not None and not pad:
        adjacency_df = cache.get_adjacency_df(offsets)
    else:
        adjacency_df = _compute_adjacency_df(grid, offsets, pad)

    if ordered:
        return adjacency_df.copy()
    else:
        return adjacency_df / 2


def _compute_code_arr(grid):
    num_classes = len(grid.classes)
    # reclassified array with the grid's shape where each class value will be an int
    # from 0 to `num_classes - 1` and the nodata value will be an int of value
    # `num_classes`
    code_arr = np.full(grid.shape, num_classes, dtype=np.int64)
    for i, class_val in enumerate(grid.classes):
        code_arr[grid.arr == class_val] = i
    return code_arr


def _compute_adjacency_df(grid, offsets, pad):
    num_classes = len(grid.classes)
    code_arr = _compute_code_arr(grid)
    if pad:
        code_arr = pad_grid(code_arr, num_classes)

    adjacency_cols = np.concatenate([grid.classes, [grid.nodata]])
    return pd.DataFrame(
        compute_adjacency_arr(code_arr, num_classes + 1, offsets),
        index=pd.Index(adjacency_cols, name="class_val"),
        columns=adjacency_cols,
    )


def total_edge(grid, class_val=None, *, count_boundary=None, cache=None):
    r"""Total edge length.

    If `class_val` is provided, the metric is computed at the class level as in:

    .. math::
       TE_i = \sum_{k=1}^{m} e_{i,k} \quad [m] \quad (class \; i)

    otherwise, the metric is computed at the landscape level as in:

    .. math::
       TE = E \quad [m] \quad (landscape)

    Parameters
    ----------
    grid : pylandcore.Grid
        The grid.
    class_val : int, optional
        If provided, the metric will be computed at the level of the corresponding
        class, otherwise it will be computed at the landscape level.
    count_boundary : bool, optional
        Whether the edges with the outer boundary of the grid and with missing data
        should be included in the total edge length. If no value is provided, the
        default value set in `settings.DEFAULT_TE_COUNT_BOUNDARY` is taken.
    cache : pylandcore.ExtrasCache, optional
        Pre-built cache for the same grid.

    Returns
    -------
    TE : numeric
        TE >= 0 ; TE equals 0 when the entire grid and its border consist of the
        corresponding class. `NaN` if the grid is all missing data.
    """
    if grid.warn_all_missing():
        return np.nan
    if count_boundary is None:
        count_boundary = settings.DEFAULT_TE_COUNT_BOUNDARY

    total = 0
    # separate tallies so that anisotropic resolutions are weighted properly
    for direction, res_i in _DIRECTION_RES_DICT.items():
        adjacency_df = adjacency(
            grid, kernel=direction, ordered=True, pad=count_boundary, cache=cache
        )
        if not count_boundary:
            adjacency_df = adjacency_df.drop(index=grid.nodata, columns=grid.nodata)
        if class_val is None:
            # each adjacency between different classes appears once in the upper
            # triangle
            num_edges = np.triu(adjacency_df.values, k=1).sum()
        elif class_val in adjacency_df.columns:
            num_edges = adjacency_df[class_val].drop(class_val).sum()
        else:
            num_edges = 0
        total += num_edges * grid.res[res_i]

    return total


def percentage_of_like_adjacencies(grid, *, percent=True):
    r"""Percentage of cell adjacencies involving the same class.

    .. math::
       PLADJ = \frac{\sum_{i=1}^{m} g_{i,i}}{\sum_{i=1}^{m} \sum_{k=1}^{m+1} g_{i,k}}

    where the class `m + 1` is the outside of the grid. Adjacencies with the outside of
    the grid count as unlike adjacencies, whereas adjacencies with missing data are
    ignored.

    Parameters
    ----------
    grid : pylandcore.Grid
        The grid.
    percent : bool, default True
        Whether the index should be expressed as proportion or converted to percentage.

    Returns
    -------
    PLADJ : numeric
        0 <= PLADJ <= 100, `NaN` if the grid is all missing data.
    """
    if grid.warn_all_missing():
        return np.nan

    num_classes = len(grid.classes)
    # codes `0..num_classes - 1` for the classes, `num_classes` for missing data and
    # `num_classes + 1` for the outside of the grid
    code_arr = pad_grid(_compute_code_arr(grid), num_classes + 1)
    adjacency_arr = compute_adjacency_arr(
        code_arr, num_classes + 2, get_kernel_offsets("4")
    )
    # the columns of the classes, without the rows of missing data
    class_adjacency_arr = np.delete(adjacency_arr, num_classes, axis=0)[:, :num_classes]
    pladj = np.trace(class_adjacency_arr) / class_adjacency_arr.sum()
    if percent:
        pladj *= 100

    return pladj
