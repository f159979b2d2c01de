"""Patch geometry."""

import numpy as np
import pandas as pd
from scipy import ndimage, spatial
from scipy.spatial import distance

from . import settings
from .core import core_label, core_mask
from .grid import validate_res

__all__ = [
    "CONTIGUITY_TEMPLATE",
    "area",
    "perimeter",
    "centroid",
    "perimeter_area_ratio",
    "shape_index",
    "fractal_dimension",
    "radius_of_gyration",
    "contiguity_index",
    "related_circumscribing_circle",
    "core_area",
    "core_area_index",
    "disjunct_core_areas",
]

# weights of the orthogonal neighbors, the diagonal neighbors and the cell itself
CONTIGUITY_TEMPLATE = np.array([[1, 2, 1], [2, 1, 2], [1, 2, 1]])


def _patch_index(num_patches):
    return pd.RangeIndex(1, num_patches + 1, name="patch_id")


def _is_isotropic(cell_width, cell_height):
    return np.isclose(cell_width, cell_height, rtol=settings.CELLLENGTH_RTOL)


# compute methods to obtain patchwise arrays


def compute_patch_cell_counts(label_arr):
    """Compute the number of cells of each patch in a labeled patch array.

    Parameters
    ----------
    label_arr : numpy.ndarray
        Array with unique integer labels for each patch.

    Returns
    -------
    cell_counts : numpy.ndarray
        One-dimensional array with the number of cells of each patch.
    """
    # we could use `ndimage.find_objects`, but since we do not need to preserve the
    # feature shapes, `np.bincount` is much faster
    return np.bincount(label_arr.ravel(), minlength=label_arr.max() + 1)[1:]


def compute_patch_edge_counts(label_arr, count_boundary):
    """Count the cell sides of each patch that face a different patch or background.

    Parameters
    ----------
    label_arr : numpy.ndarray
        Array with unique integer labels for each patch.
    count_boundary : bool
        Whether the sides that face the outside of the grid should be counted.

    Returns
    -------
    horizontal_counts, vertical_counts : numpy.ndarray
        One-dimensional arrays with the number of horizontal (i.e., between two rows,
        of length `cell_width`) and vertical (i.e., between two columns, of length
        `cell_height`) cell sides of each patch.
    """
    num_patches = label_arr.max()
    # padding with the edge values makes the outside of the grid indistinguishable from
    # the adjacent cell, hence outer sides are not counted
    if count_boundary:
        padded_arr = np.pad(label_arr, pad_width=1, mode="constant", constant_values=0)
    else:
        padded_arr = np.pad(label_arr, pad_width=1, mode="edge")

    def _count(arr_a, arr_b):
        diff_cond = arr_a != arr_b
        return (
            np.bincount(arr_a[diff_cond], minlength=num_patches + 1)
            + np.bincount(arr_b[diff_cond], minlength=num_patches + 1)
        )[1:]

    horizontal_counts = _count(padded_arr[:-1, 1:-1], padded_arr[1:, 1:-1])
    vertical_counts = _count(padded_arr[1:-1, :-1], padded_arr[1:-1, 1:])

    return horizontal_counts, vertical_counts


def compute_shape_index(patch_areas, patch_perimeters, cell_width, cell_height):
    """Compute the shape index of each patch.

    Parameters
    ----------
    patch_areas : list-like
        One-dimensional array with the area of each patch, in square linear units.
    patch_perimeters : list-like
        One-dimensional array with the perimeter of each patch.
    cell_width, cell_height : numeric
        Cell resolution.

    Returns
    -------
    shape_indices : numpy.ndarray
        One-dimensional array with the shape index of each patch.
    """
    patch_areas = np.asarray(patch_areas, dtype=float)
    patch_perimeters = np.asarray(patch_perimeters, dtype=float)
    if _is_isotropic(cell_width, cell_height):
        # adjust for the minimum perimeter of a maximally compact patch in the raster
        # format, i.e., a square or almost square
        patch_area_cells = patch_areas / (cell_width * cell_height)
        # we could also divide by `cell_height`
        patch_perimeter_cells = patch_perimeters / cell_width
        n = np.floor(np.sqrt(patch_area_cells))
        m = patch_area_cells - n**2
        min_p = np.ones(len(patch_area_cells))
        min_p = np.where(np.isclose(m, 0), 4 * n, min_p)
        min_p = np.where(
            (n**2 < patch_area_cells) & (patch_area_cells <= n * (n + 1)),
            4 * n + 2,
            min_p,
        )
        min_p = np.where(patch_area_cells > n * (n + 1), 4 * n + 4, min_p)

        return patch_perimeter_cells / min_p
    else:
        # not supported in FRAGSTATS: return the base formula without adjusting for the
        # square standard
        return 0.25 * patch_perimeters / np.sqrt(patch_areas)


# patch-level primitives


def area(label_arr, res, *, hectares=True):
    r"""Area of each patch.

    .. math::
       AREA = a_{i,j} \quad [hec] \; or \; [m^2]

    Parameters
    ----------
    label_arr : numpy.ndarray
        Array with unique integer labels for each patch (0 means background).
    res : tuple
        The (x, y) resolution, in linear units.
    hectares : bool, default True
        Whether the area should be converted to hectares (tends to yield more legible
        values).

    Returns
    -------
    AREA : pandas.Series
        AREA > 0, without limit, indexed by patch id.
    """
    cell_width, cell_height = validate_res(res)
    cell_area = cell_width * cell_height
    if hectares:
        cell_area /= 10000

    cell_counts = compute_patch_cell_counts(label_arr)
    return pd.Series(
        cell_counts * cell_area, index=_patch_index(len(cell_counts)), name="area"
    )


def perimeter(label_arr, res, *, count_boundary=None):
    r"""Perimeter of each patch.

    .. math::
       PERIM = p_{i,j} \quad [m]

    Parameters
    ----------
    label_arr : numpy.ndarray
        Array with unique integer labels for each patch (0 means background).
    res : tuple
        The (x, y) resolution, in linear units.
    count_boundary : bool, optional
        Whether the cell sides at the outer boundary of the grid are part of the
        perimeter. If no value is provided, the default value set in
        `settings.DEFAULT_COUNT_BOUNDARY` will be taken.

    Returns
    -------
    PERIM : pandas.Series
        PERIM >= 0, without limit, indexed by patch id.
    """
    cell_width, cell_height = validate_res(res)
    if count_boundary is None:
        count_boundary = settings.DEFAULT_COUNT_BOUNDARY

    horizontal_counts, vertical_counts = compute_patch_edge_counts(
        label_arr, count_boundary
    )
    return pd.Series(
        horizontal_counts * cell_width + vertical_counts * cell_height,
        index=_patch_index(len(horizontal_counts)),
        name="perimeter",
    )


def centroid(label_arr, res):
    """Centroid of each patch.

    The coordinates are those of the cell centers, with the origin at the top-left
    corner of the grid, `x` increasing towards the right and `y` increasing downwards.

    Parameters
    ----------
    label_arr : numpy.ndarray
        Array with unique integer labels for each patch (0 means background).
    res : tuple
        The (x, y) resolution, in linear units.

    Returns
    -------
    centroid_df : pandas.DataFrame
        Data frame with the `x` and `y` coordinates (columns) of each patch (index).
    """
    cell_width, cell_height = validate_res(res)
    num_patches = label_arr.max()
    i_idx, j_idx = np.indices(label_arr.shape)
    labels = label_arr.ravel()
    cell_counts = np.bincount(labels, minlength=num_patches + 1)[1:]

    def _mean_coord(idx, length):
        return (
            np.bincount(labels, weights=(idx.ravel() + 0.5) * length)[1:]
            / cell_counts
        )

    return pd.DataFrame(
        {"x": _mean_coord(j_idx, cell_width), "y": _mean_coord(i_idx, cell_height)},
        index=_patch_index(num_patches),
    )


def perimeter_area_ratio(label_arr, res, *, hectares=True, count_boundary=None):
    r"""Ratio between the perimeter and area of each patch.

    .. math::
       PARA = \frac{p_{i,j}}{a_{i,j}} \quad [m/hec] \; or \; [m/m^2]

    Parameters
    ----------
    label_arr : numpy.ndarray
        Array with unique integer labels for each patch (0 means background).
    res : tuple
        The (x, y) resolution, in linear units.
    hectares : bool, default True
        Whether the area should be converted to hectares.
    count_boundary : bool, optional
        Whether the outer boundary of the grid is part of the perimeter.

    Returns
    -------
    PARA : pandas.Series
        PARA > 0, without limit.
    """
    return (
        perimeter(label_arr, res, count_boundary=count_boundary)
        / area(label_arr, res, hectares=hectares)
    ).rename("perimeter_area_ratio")


def shape_index(label_arr, res, *, count_boundary=None):
    r"""Shape index of each patch.

    .. math::
       SHAPE = \frac{.25 \; p_{i,j}}{\sqrt{a_{i,j}}}

    Parameters
    ----------
    label_arr : numpy.ndarray
        Array with unique integer labels for each patch (0 means background).
    res : tuple
        The (x, y) resolution, in linear units.
    count_boundary : bool, optional
        Whether the outer boundary of the grid is part of the perimeter.

    Returns
    -------
    SHAPE : pandas.Series
        SHAPE >= 1, without limit ; SHAPE equals 1 when the patch is maximally compact.
    """
    cell_width, cell_height = validate_res(res)
    area_ser = area(label_arr, res, hectares=False)
    perimeter_ser = perimeter(label_arr, res, count_boundary=count_boundary)
    return pd.Series(
        compute_shape_index(
            area_ser.values, perimeter_ser.values, cell_width, cell_height
        ),
        index=area_ser.index,
        name="shape_index",
    )


def fractal_dimension(label_arr, res, *, count_boundary=None):
    r"""Fractal dimension of each patch.

    .. math::
       FRAC = \frac{2 \; ln (.25 \; p_{i,j})}{ln (a_{i,j})}

    Parameters
    ----------
    label_arr : numpy.ndarray
        Array with unique integer labels for each patch (0 means background).
    res : tuple
        The (x, y) resolution, in linear units.
    count_boundary : bool, optional
        Whether the outer boundary of the grid is part of the perimeter.

    Returns
    -------
    FRAC : pandas.Series
        1 <= FRAC <= 2 ; FRAC approaches 1 for shapes with simple perimeters and 2
        for highly convoluted ones. Since the denominator is `ln(a_{i,j})`, FRAC is
        `NaN` for patches of area 1 (i.e., one-cell patches when the area of a cell is
        one square unit), and should be interpreted with care for very small patches.
    """
    area_ser = area(label_arr, res, hectares=False)
    perimeter_ser = perimeter(label_arr, res, count_boundary=count_boundary)
    return (2 * np.log(0.25 * perimeter_ser) / np.log(area_ser)).rename(
        "fractal_dimension"
    )


def radius_of_gyration(label_arr, res):
    r"""Mean distance between each cell of a patch and the patch centroid.

    .. math::
       GYRATE = \sum_{r=1}^{z} \frac{h_{ijr}}{z} \quad [m]

    Parameters
    ----------
    label_arr : numpy.ndarray
        Array with unique integer labels for each patch (0 means background).
    res : tuple
        The (x, y) resolution, in linear units.

    Returns
    -------
    GYRATE : pandas.Series
        GYRATE >= 0 ; GYRATE equals 0 for single-cell patches.
    """
    cell_width, cell_height = validate_res(res)
    centroid_df = centroid(label_arr, res)
    patch_cond = label_arr != 0
    i_idx, j_idx = np.nonzero(patch_cond)
    labels = label_arr[patch_cond]
    # `labels - 1` gives the 0-based row of each cell's patch in `centroid_df`
    dists = np.hypot(
        (j_idx + 0.5) * cell_width - centroid_df["x"].values[labels - 1],
        (i_idx + 0.5) * cell_height - centroid_df["y"].values[labels - 1],
    )
    num_patches = len(centroid_df)
    return pd.Series(
        np.bincount(labels, weights=dists, minlength=num_patches + 1)[1:]
        / compute_patch_cell_counts(label_arr),
        index=centroid_df.index,
        name="radius_of_gyration",
    )


def contiguity_index(label_arr):
    r"""Contiguity index of each patch.

    Each cell is assigned the sum of the weights of a 3x3 template (2 for the
    orthogonal neighbors, 1 for the diagonal ones and for the cell itself) over the
    cells of its patch. Then:

    .. math::
       CONTIG = \frac{\Big[ \frac{\sum_{r=1}^{z} c_{ijr}}{a_{i,j}^*} \Big] - 1}{v - 1}

    where `v` is the sum of the template weights and `a*` is the number of cells of
    the patch.

    Parameters
    ----------
    label_arr : numpy.ndarray
        Array with unique integer labels for each patch (0 means background).

    Returns
    -------
    CONTIG : pandas.Series
        0 <= CONTIG <= 1 ; CONTIG equals 0 for a one-cell patch and increases to a
        limit of 1 as patch contiguity increases.
    """
    num_rows, num_cols = label_arr.shape
    padded_arr = np.pad(label_arr, pad_width=1, mode="constant", constant_values=0)
    contig_arr = np.zeros(label_arr.shape)
    for (di, dj), weight in np.ndenumerate(CONTIGUITY_TEMPLATE):
        contig_arr += weight * (
            padded_arr[di : di + num_rows, dj : dj + num_cols] == label_arr
        )

    cell_counts = compute_patch_cell_counts(label_arr)
    mean_contig = (
        np.bincount(
            label_arr.ravel(),
            weights=contig_arr.ravel(),
            minlength=len(cell_counts) + 1,
        )[1:]
        / cell_counts
    )
    return pd.Series(
        (mean_contig - 1) / (CONTIGUITY_TEMPLATE.sum() - 1),
        index=_patch_index(len(cell_counts)),
        name="contiguity_index",
    )


def related_circumscribing_circle(label_arr, res):
    r"""Ratio between the area of each patch and its circumscribing circle.

    .. math::
       CIRCLE = 1 - \Bigg[ \frac{a_{i,j}}{a_{i,j}^s} \Bigg]

    where the diameter of the circumscribing circle is the largest distance between
    two cell corners of the patch.

    Parameters
    ----------
    label_arr : numpy.ndarray
        Array with unique integer labels for each patch (0 means background).
    res : tuple
        The (x, y) resolution, in linear units.

    Returns
    -------
    CIRCLE : pandas.Series
        0 <= CIRCLE < 1 ; CIRCLE approaches 0 for circular patches and 1 for elongated
        linear patches.
    """
    cell_width, cell_height = validate_res(res)
    diameters = []
    for patch_id, patch_slice in enumerate(ndimage.find_objects(label_arr), start=1):
        i_idx, j_idx = np.nonzero(label_arr[patch_slice] == patch_id)
        corners = np.unique(
            np.column_stack(
                [
                    np.concatenate([j_idx, j_idx + 1, j_idx, j_idx + 1]),
                    np.concatenate([i_idx, i_idx, i_idx + 1, i_idx + 1]),
                ]
            ),
            axis=0,
        ) * np.array([cell_width, cell_height])
        # the farthest corners are vertices of the convex hull
        hull_corners = corners[spatial.ConvexHull(corners).vertices]
        diameters.append(distance.pdist(hull_corners).max())

    area_ser = area(label_arr, res, hectares=False)
    return (1 - area_ser / (np.pi * (np.array(diameters) / 2) ** 2)).rename(
        "related_circumscribing_circle"
    )


# core area primitives


def core_area(label_arr, res, *, edge_depth=None, count_boundary=None, hectares=True):
    r"""Core area of each patch.

    .. math::
       CORE = a_{i,j}^{core} \quad [hec] \; or \; [m^2]

    Parameters
    ----------
    label_arr : numpy.ndarray
        Array with unique integer labels for each patch (0 means background).
    res : tuple
        The (x, y) resolution, in linear units.
    edge_depth : int, optional
        Number of cells considered as edge.
    count_boundary : bool, optional
        Whether the outer boundary of the grid counts as edge.
    hectares : bool, default True
        Whether the area should be converted to hectares.

    Returns
    -------
    CORE : pandas.Series
        CORE >= 0 ; core area equals zero when every cell of the patch is within the
        specified depth distance from its edge.
    """
    # we cannot label the core cells and compute their areas because core patches are
    # not necessarily aligned with the original patches, instead we use the labels of
    # `label_arr` to identify the patch of each core cell
    return area(
        np.where(core_mask(label_arr, edge_depth, count_boundary), label_arr, 0),
        res,
        hectares=hectares,
    ).reindex(_patch_index(label_arr.max()), fill_value=0).rename("core_area")


def core_area_index(
    label_arr, res, *, edge_depth=None, count_boundary=None, percent=True
):
    r"""Ratio between the core area and the area of each patch.

    .. math::
       CAI = \frac{a_{i,j}^{core}}{a_{i,j}}

    Parameters
    ----------
    label_arr : numpy.ndarray
        Array with unique integer labels for each patch (0 means background).
    res : tuple
        The (x, y) resolution, in linear units.
    edge_depth : int, optional
        Number of cells considered as edge.
    count_boundary : bool, optional
        Whether the outer boundary of the grid counts as edge.
    percent : bool, default True
        Whether the index should be expressed as proportion or converted to percentage.

    Returns
    -------
    CAI : pandas.Series
        0 <= CAI < 100 (or 1 if `percent` is False).
    """
    # ACHTUNG: important to use the same units for both areas
    cai = core_area(
        label_arr,
        res,
        edge_depth=edge_depth,
        count_boundary=count_boundary,
        hectares=False,
    ) / area(label_arr, res, hectares=False)
    if percent:
        cai *= 100

    return cai.rename("core_area_index")


def disjunct_core_areas(
    label_arr,
    res,
    *,
    edge_depth=None,
    count_boundary=None,
    connectivity=None,
    hectares=True,
):
    """Area of each disjunct core area, i.e., each connected component of core cells.

    Parameters
    ----------
    label_arr : numpy.ndarray
        Array with unique integer labels for each patch (0 means background).
    res : tuple
        The (x, y) resolution, in linear units.
    edge_depth : int, optional
        Number of cells considered as edge.
    count_boundary : bool, optional
        Whether the outer boundary of the grid counts as edge.
    connectivity : {8, 4, '8', '4'}, optional
        Neighborhood rule to determine core patch adjacencies.
    hectares : bool, default True
        Whether the area should be converted to hectares.

    Returns
    -------
    DCORE : pandas.Series
        Area of each core patch, indexed by core patch id.
    """
    core_label_arr, _ = core_label(label_arr, edge_depth, count_boundary, connectivity)
    return area(core_label_arr, res, hectares=hectares).rename("disjunct_core_area")
