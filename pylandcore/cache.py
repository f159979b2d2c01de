"""Per-layer cache of the intermediate results shared across metrics."""

import logging
import types

import numpy as np

from . import settings
from .cooccurrence import _compute_adjacency_df, get_kernel_offsets
from .complexity import _check_base, compute_entropy_terms
from .labeling import check_connectivity, label
from .proximity import boundary_points

__all__ = ["ExtrasCache"]

logger = logging.getLogger(__name__)

# intermediate results required by each metric, used to eagerly build a cache
_PATCH_LABEL_FIELDS = ("class_label_arrs",)
_METRIC_FIELDS_DICT = {
    "euclidean_nearest_neighbor": _PATCH_LABEL_FIELDS + ("boundary_points",),
    "number_of_patches": ("num_patches_dict",),
    "total_edge": ("directional_adjacency",),
    "entropy": ("entropy_terms",),
    "joint_entropy": ("entropy_terms",),
    "conditional_entropy": ("entropy_terms",),
    "mutual_information": ("entropy_terms",),
    "relative_mutual_information": ("entropy_terms",),
    "contagion": ("contagion_adjacency",),
}
_ENTROPY_METRICS = [
    metric
    for metric, fields in _METRIC_FIELDS_DICT.items()
    if fields == ("entropy_terms",)
]


def _read_only(arr):
    arr = arr.view()
    arr.flags.writeable = False
    return arr


class ExtrasCache:
    """Intermediate results of a single grid, shared across a batch of metrics.

    Each field is computed lazily, i.e., the first time that it is accessed, and never
    modified afterwards: arrays are returned as read-only views and mappings as
    read-only proxies. A cache is tied to the grid and the parameters it was created
    with, so it must not be shared among grids.
    """

    def __init__(
        self, grid, connectivity=None, *, neighborhood=None, ordered=None, base=None
    ):
        """Initialize the cache.

        Parameters
        ----------
        grid : pylandcore.Grid
            The grid.
        connectivity : {8, 4, '8', '4'}, optional
            Neighborhood rule to determine patch adjacencies. If no value is provided,
            the default value set in `settings.DEFAULT_NEIGHBORHOOD_RULE` will be taken.
        neighborhood : {4, 8, '4', '8'} or numpy.ndarray, optional
            Neighbor-offset kernel of the co-occurrence matrix used for the cached
            entropy terms. If no value is provided, the default value set in
            `settings.DEFAULT_ADJACENCY_NEIGHBORHOOD` will be taken.
        ordered : bool, optional
            Whether the pairs of classes are ordered in the cached entropy terms. If no
            value is provided, the default value set in `settings.DEFAULT_ORDERED` will
            be taken.
        base : numeric or {'log2', 'log10', 'log'}, optional
            The base of the logarithm of the cached entropy terms. If no value is
            provided, the default value set in `settings.DEFAULT_LOG_BASE` will be
            taken.
        """
        self.grid = grid
        self.connectivity = check_connectivity(connectivity)
        if ordered is None:
            ordered = settings.DEFAULT_ORDERED
        self.entropy_params = (
            get_kernel_offsets(neighborhood),
            ordered,
            _check_base(base),
        )

        self._adjacency_dfs = {}

    def __repr__(self):  # noqa: D105
        prefix = "_cached_"
        cached = sorted(
            attr[len(prefix) :] for attr in vars(self) if attr.startswith(prefix)
        )
        return f"ExtrasCache(connectivity={self.connectivity!r}, cached={cached})"

    @classmethod
    def from_metrics(cls, grid, metrics, connectivity=None, *, metrics_kwargs=None):
        """Build a cache with the fields required by a list of metrics.

        Parameters
        ----------
        grid : pylandcore.Grid
            The grid.
        metrics : list-like
            Names of the metrics that will be computed with the cache.
        connectivity : {8, 4, '8', '4'}, optional
            Neighborhood rule to determine patch adjacencies.
        metrics_kwargs : dict, optional
            Dictionary mapping the keyword arguments (values) that will be passed to
            each metric (key). The entropy parameters (i.e., `neighborhood`, `ordered`
            and `base`) of the first entropy-based metric are used for the cached
            entropy terms.

        Returns
        -------
        cache : ExtrasCache
        """
        if metrics_kwargs is None:
            metrics_kwargs = {}

        entropy_kwargs = {}
        for metric in metrics:
            if metric in _ENTROPY_METRICS:
                entropy_kwargs = {
                    key: val
                    for key, val in metrics_kwargs.get(metric, {}).items()
                    if key in ("neighborhood", "ordered", "base")
                }
                break

        cache = cls(grid, connectivity, **entropy_kwargs)
        if grid.all_missing:
            return cache

        fields = set(_PATCH_LABEL_FIELDS)
        for metric in metrics:
            fields.update(_METRIC_FIELDS_DICT.get(metric, ()))
        for field in sorted(fields):
            getattr(cache, field)

        return cache

    # properties

    @property
    def classes(self):
        """Classes present in the grid, in ascending order."""
        return _read_only(self.grid.classes)

    @property
    def class_label_arrs(self):
        """Read-only mapping of each class to its label array."""
        try:
            return self._cached_class_label_arrs
        except AttributeError:
            logger.debug(
                "Labeling the patches of %d classes with %s-connectivity",
                len(self.grid.classes),
                self.connectivity,
            )
            self._cached_class_label_arrs = types.MappingProxyType(
                {
                    class_val: _read_only(label_arr)
                    for class_val, label_arr in label(
                        self.grid, self.connectivity
                    ).items()
                }
            )

            return self._cached_class_label_arrs

    @property
    def num_patches_dict(self):
        """Read-only mapping of each class to its number of patches."""
        try:
            return self._cached_num_patches_dict
        except AttributeError:
            self._cached_num_patches_dict = types.MappingProxyType(
                {
                    class_val: int(label_arr.max())
                    for class_val, label_arr in self.class_label_arrs.items()
                }
            )

            return self._cached_num_patches_dict

    @property
    def landscape_label_arr(self):
        """Label array with globally unique patch ids (see `label_landscape`)."""
        try:
            return self._cached_landscape_label_arr
        except AttributeError:
            label_arr = np.zeros(self.grid.shape, dtype=np.int64)
            offset = 0
            for class_val, class_label_arr in self.class_label_arrs.items():
                patch_mask = class_label_arr != 0
                label_arr[patch_mask] = class_label_arr[patch_mask] + offset
                offset += self.num_patches_dict[class_val]
            self._cached_landscape_label_arr = _read_only(label_arr)

            return self._cached_landscape_label_arr

    @property
    def boundary_points(self):
        """Read-only mapping of each class to its edge points (see `boundary_points`).

        The data frames must not be modified.
        """
        try:
            return self._cached_boundary_points
        except AttributeError:
            logger.debug("Extracting the patch edge points of each class")
            self._cached_boundary_points = types.MappingProxyType(
                {
                    class_val: boundary_points(label_arr, self.grid.res)
                    for class_val, label_arr in self.class_label_arrs.items()
                }
            )

            return self._cached_boundary_points

    def get_adjacency_df(self, offsets):
        """Get the (unpadded and ordered) adjacency data frame for a set of offsets.

        The returned data frame is shared and must not be modified, `adjacency` returns
        copies of it.

        Parameters
        ----------
        offsets : tuple
            (row, column) offsets, as returned by `get_kernel_offsets`.

        Returns
        -------
        adjacency_df : pandas.DataFrame
        """
        try:
            return self._adjacency_dfs[offsets]
        except KeyError:
            logger.debug("Computing the adjacency matrix for the offsets %s", offsets)
            adjacency_df = _compute_adjacency_df(self.grid, offsets, False)
            self._adjacency_dfs[offsets] = adjacency_df

            return adjacency_df

    @property
    def directional_adjacency(self):
        """Adjacency data frames of the horizontal and vertical neighbors."""
        try:
            return self._cached_directional_adjacency
        except AttributeError:
            self._cached_directional_adjacency = types.MappingProxyType(
                {
                    direction: self.get_adjacency_df(get_kernel_offsets(direction))
                    for direction in ("horizontal", "vertical")
                }
            )

            return self._cached_directional_adjacency

    @property
    def contagion_adjacency(self):
        """Adjacency data frame of the rook's case neighbors."""
        return self.get_adjacency_df(get_kernel_offsets("4"))

    @property
    def entropy_terms(self):
        """Marginal and joint entropy for the cache's entropy parameters."""
        try:
            return self._cached_entropy_terms
        except AttributeError:
            offsets, ordered, base = self.entropy_params
            logger.debug(
                "Computing the entropy terms (ordered=%s, base=%s)", ordered, base
            )
            cooccurrence_df = self.get_adjacency_df(offsets).drop(
                index=self.grid.nodata, columns=self.grid.nodata
            )
            self._cached_entropy_terms = compute_entropy_terms(
                cooccurrence_df.values, ordered, base
            )

            return self._cached_entropy_terms
