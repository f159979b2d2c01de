"""Normalized categorical grid."""

import warnings

import numpy as np
import rasterio as rio

from . import settings
from .errors import AllMissingGridWarning, InvalidResolutionError

__all__ = ["Grid", "validate_res"]


def validate_res(res):
    """Validate a cell resolution.

    Parameters
    ----------
    res : tuple
        The (x, y) resolution, i.e., cell width and height in linear units.

    Returns
    -------
    res : tuple
        The validated resolution as a tuple of two floats.
    """
    try:
        cell_width, cell_height = res
        cell_width, cell_height = float(cell_width), float(cell_height)
    except (TypeError, ValueError) as res_e:
        raise InvalidResolutionError(
            f"`res` must be a pair of numbers, got {res!r}"
        ) from res_e
    if not (np.isfinite(cell_width) and np.isfinite(cell_height)):
        raise InvalidResolutionError(f"`res` must be finite, got {res!r}")
    if cell_width <= 0 or cell_height <= 0:
        raise InvalidResolutionError(f"`res` must be positive, got {res!r}")

    return cell_width, cell_height


class Grid:
    """Single-layer categorical grid upon which the core primitives are computed."""

    def __init__(
        self, grid, *, res=None, nodata=None, transform=None, classes_max=None, **kwargs
    ):
        """Initialize the grid instance.

        Parameters
        ----------
        grid : numpy.ndarray or str, file-like object or pathlib.Path object
            A 2-D array with cell values corresponding to a set of land use/land cover
            classes, or a filename or URL, a file-like object opened in binary ('rb')
            mode, or a Path object. If not a `numpy.ndarray`, `grid` will be passed to
            `rasterio.open` and its first band will be read.
        res : tuple, optional
            The (x, y) resolution of the grid. Required if `grid` is a `numpy.ndarray`.
        nodata : int, optional
            Value of the cells with no data. If no value is provided, the default value
            set in `settings.DEFAULT_NODATA` will be taken. `NaN` cells of float arrays
            are always considered as missing data.
        transform : affine.Affine, optional
            Transformation from pixel coordinates to coordinate reference system. If
            `grid` is a path to a raster dataset, this argument will be ignored and
            extracted from the raster's metadata instead.
        classes_max : int, optional
            Maximum number of classes that could be present in the grid (e.g., the
            number of classes of the classification scheme). Only used by the
            relative patch richness.
        **kwargs : optional
            Keyword arguments to be passed to `rasterio.open`. Ignored if `grid` is a
            `numpy.ndarray`.
        """
        if isinstance(grid, np.ndarray):
            arr = np.copy(grid)
            if res is None:
                raise InvalidResolutionError(
                    "If `grid` is a `np.ndarray`, `res` must be provided"
                )
        else:
            with rio.open(grid, nodata=nodata, **kwargs) as src:
                arr = src.read(1)
                if res is None:
                    res = src.res
                if nodata is None:
                    nodata = src.nodata
                transform = src.transform

        if arr.ndim != 2:
            raise ValueError(f"`grid` must be 2-D, got {arr.ndim} dimensions")
        if nodata is None:
            nodata = settings.DEFAULT_NODATA

        # encode `NaN` cells with the nodata value so that the grid can be cast to an
        # integer dtype
        if np.issubdtype(arr.dtype, np.floating):
            nan_mask = np.isnan(arr)
            if np.isnan(nodata):
                nodata = settings.DEFAULT_NODATA
            arr = np.where(nan_mask, nodata, arr)
        nodata = int(nodata)
        self.arr = arr.astype(np.int64)
        self.nodata = nodata

        self.cell_width, self.cell_height = validate_res(res)
        self.res = (self.cell_width, self.cell_height)
        self.cell_area = self.cell_width * self.cell_height
        self.transform = transform
        self.classes_max = classes_max

        self.data_mask = self.arr != nodata
        self.classes = np.unique(self.arr[self.data_mask])

    def __repr__(self):  # noqa: D105
        return (
            f"Grid(shape={self.shape}, res={self.res}, nodata={self.nodata}, "
            f"classes={list(self.classes)})"
        )

    @property
    def shape(self):
        """Number of rows and columns."""
        return self.arr.shape

    @property
    def is_isotropic(self):
        """Whether the cell width and height are (approximately) equal."""
        return np.isclose(
            self.cell_width, self.cell_height, rtol=settings.CELLLENGTH_RTOL
        )

    @property
    def all_missing(self):
        """Whether every cell of the grid is missing data."""
        return not self.data_mask.any()

    @property
    def landscape_area(self):
        """Area of the non-missing cells, in square linear units."""
        return np.count_nonzero(self.data_mask) * self.cell_area

    def warn_all_missing(self):
        """Warn that the grid is all missing data, return whether it is."""
        if self.all_missing:
            warnings.warn(
                "The grid only contains missing data. Returning missing values",
                AllMissingGridWarning,
            )
            return True
        return False
