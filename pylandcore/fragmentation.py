"""Subdivision and connectedness of the patches of a class or of the landscape."""

import warnings

import numpy as np
from scipy import stats

from . import settings
from .errors import InsufficientPatchesWarning
from .geometry import area, compute_patch_cell_counts, perimeter
from .labeling import label

__all__ = [
    "effective_mesh_size",
    "splitting_index",
    "patch_cohesion_index",
    "perimeter_area_fractal_dimension",
]


def _get_label_arrs(grid, class_val, connectivity, cache):
    if connectivity is None and cache is not None:
        connectivity = cache.connectivity
    class_label_dict = label(grid, connectivity, cache=cache)
    if class_val is None:
        return list(class_label_dict.values())
    try:
        return [class_label_dict[class_val]]
    except KeyError as class_e:
        raise ValueError(
            f"`class_val` {class_val!r} is not among {list(class_label_dict)}"
        ) from class_e


def _get_patch_areas(label_arrs, res):
    # areas in square linear units
    return np.concatenate(
        [area(label_arr, res, hectares=False).values for label_arr in label_arrs]
    )


def effective_mesh_size(
    grid, class_val=None, *, hectares=True, connectivity=None, cache=None
):
    r"""Measure of aggregation based on the cumulative patch size distribution.

    If `class_val` is provided, the metric is computed at the class level as in:

    .. math::
       MESH_i = \frac{1}{A} \sum_{j=1}^{n_i} a_{i,j}^2 \quad [hec] \quad (class \; i)

    otherwise, the metric is computed at the landscape level as in:

    .. math::
       MESH = \frac{1}{A} \sum_{i=1}^{m} \sum_{j=1}^{n_i} a_{i,j}^2 \quad [hec] \quad
       (landscape)

    where `A` is the area of the cells that are not missing data.

    Parameters
    ----------
    grid : pylandcore.Grid
        The grid.
    class_val : int, optional
        If provided, the metric will be computed at the level of the corresponding
        class, otherwise it will be computed at the landscape level.
    hectares : bool, default True
        Whether the mesh should be converted to hectares.
    connectivity : {8, 4, '8', '4'}, optional
        Neighborhood rule to determine patch adjacencies. If no value is provided, the
        connectivity of `cache` or otherwise the default value set in
        `settings.DEFAULT_NEIGHBORHOOD_RULE` is taken.
    cache : pylandcore.ExtrasCache, optional
        Pre-built cache for the same grid.

    Returns
    -------
    MESH : numeric
        cell_area / A <= MESH <= A ; MESH approaches its minimum when there is a single
        corresponding patch of one cell, and approaches its maximum when the landscape
        consists of a single patch. `NaN` if the grid is all missing data.
    """
    if grid.warn_all_missing():
        return np.nan

    patch_areas = _get_patch_areas(
        _get_label_arrs(grid, class_val, connectivity, cache), grid.res
    )
    mesh = np.sum(patch_areas**2) / grid.landscape_area
    if hectares:
        mesh /= 10000

    return mesh


def splitting_index(grid, class_val=None, *, connectivity=None, cache=None):
    r"""Number of patches obtained when subdividing the landscape into equal patches.

    If `class_val` is provided, the metric is computed at the class level as in:

    .. math::
       SPLIT_i = \frac{A^2}{\sum_{j=1}^{n_i} a_{i,j}^2} \quad (class \; i)

    otherwise, the sum runs over all the patches of the landscape. See
    `effective_mesh_size` for the description of the parameters.

    Returns
    -------
    SPLIT : numeric
        1 <= SPLIT <= number of cells, `NaN` if the grid is all missing data.
    """
    if grid.warn_all_missing():
        return np.nan

    patch_areas = _get_patch_areas(
        _get_label_arrs(grid, class_val, connectivity, cache), grid.res
    )
    return grid.landscape_area**2 / np.sum(patch_areas**2)


def patch_cohesion_index(
    grid,
    class_val=None,
    *,
    percent=True,
    count_boundary=None,
    connectivity=None,
    cache=None,
):
    r"""Physical connectedness of the patches.

    .. math::
       COHESION = \Bigg[ 1 - \frac{\sum_{j=1}^{n} p_{i,j}}{\sum_{j=1}^{n} p_{i,j}
         \sqrt{a_{i,j}^*}} \Bigg] \Bigg[ 1 - \frac{1}{\sqrt{Z}} \Bigg]^{-1}

    where `a*` is the number of cells of the patch and `Z` the number of cells that are
    not missing data. If `class_val` is provided, the sums run over the patches of the
    corresponding class, otherwise over all the patches of the landscape.

    Parameters
    ----------
    grid : pylandcore.Grid
        The grid.
    class_val : int, optional
        If provided, the metric will be computed at the level of the corresponding
        class, otherwise it will be computed at the landscape level.
    percent : bool, default True
        Whether the index should be expressed as proportion or converted to percentage.
    count_boundary : bool, optional
        Whether the outer boundary of the grid is part of the patch perimeters.
    connectivity : {8, 4, '8', '4'}, optional
        Neighborhood rule to determine patch adjacencies.
    cache : pylandcore.ExtrasCache, optional
        Pre-built cache for the same grid.

    Returns
    -------
    COHESION : numeric
        0 <= COHESION < 100 ; COHESION approaches 0 as the patches become more
        subdivided and less physically connected. `NaN` if the grid is all missing
        data.
    """
    if grid.warn_all_missing():
        return np.nan

    label_arrs = _get_label_arrs(grid, class_val, connectivity, cache)
    patch_perimeters = np.concatenate(
        [
            perimeter(label_arr, grid.res, count_boundary=count_boundary).values
            for label_arr in label_arrs
        ]
    )
    patch_cell_counts = np.concatenate(
        [compute_patch_cell_counts(label_arr) for label_arr in label_arrs]
    )
    num_cells = np.sum(grid.data_mask)
    cohesion = (
        1
        - np.sum(patch_perimeters)
        / np.sum(patch_perimeters * np.sqrt(patch_cell_counts))
    ) / (1 - 1 / np.sqrt(num_cells))
    if percent:
        cohesion *= 100

    return cohesion


def perimeter_area_fractal_dimension(
    grid, class_val=None, *, count_boundary=None, connectivity=None, cache=None
):
    r"""Fractal dimension of the patches derived from their perimeter-area relation.

    Computed as two divided by the slope of the least-squares regression of the
    logarithm of the patch areas against the logarithm of the patch perimeters, i.e.:

    .. math::
       PAFRAC = \frac{2}{\beta}

    If `class_val` is provided, the regression is fitted to the patches of the
    corresponding class, otherwise to all the patches of the landscape.

    Parameters
    ----------
    grid : pylandcore.Grid
        The grid.
    class_val : int, optional
        If provided, the metric will be computed at the level of the corresponding
        class, otherwise it will be computed at the landscape level.
    count_boundary : bool, optional
        Whether the outer boundary of the grid is part of the patch perimeters.
    connectivity : {8, 4, '8', '4'}, optional
        Neighborhood rule to determine patch adjacencies.
    cache : pylandcore.ExtrasCache, optional
        Pre-built cache for the same grid.

    Returns
    -------
    PAFRAC : numeric
        1 <= PAFRAC <= 2 ; PAFRAC approaches 1 for shapes with simple perimeters and 2
        for highly convoluted ones. `NaN` (with a warning) if there are less than
        `settings.PAFRAC_MIN_PATCHES` patches or if all the patches have the same
        perimeter.
    """
    if grid.warn_all_missing():
        return np.nan

    label_arrs = _get_label_arrs(grid, class_val, connectivity, cache)
    patch_areas = _get_patch_areas(label_arrs, grid.res)
    if len(patch_areas) < settings.PAFRAC_MIN_PATCHES:
        warnings.warn(
            f"The perimeter-area fractal dimension requires at least "
            f"{settings.PAFRAC_MIN_PATCHES} patches, got {len(patch_areas)}. Returning "
            "nan",
            InsufficientPatchesWarning,
        )
        return np.nan

    log_perimeters = np.log(
        np.concatenate(
            [
                perimeter(label_arr, grid.res, count_boundary=count_boundary).values
                for label_arr in label_arrs
            ]
        )
    )
    if np.ptp(log_perimeters) == 0:
        warnings.warn(
            "The perimeter-area fractal dimension cannot be computed when all the "
            "patches have the same perimeter. Returning nan",
            RuntimeWarning,
        )
        return np.nan

    return 2 / stats.linregress(log_perimeters, np.log(patch_areas)).slope
