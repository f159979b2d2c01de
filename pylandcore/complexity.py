"""Landscape complexity (information theory) and diversity.

See https://doi.org/10.1007/s10980-019-00830-x
"""

import collections
import warnings

import numpy as np

from . import settings
from .cooccurrence import adjacency, get_kernel_offsets

__all__ = [
    "EntropyTerms",
    "compute_entropy",
    "compute_entropy_terms",
    "entropy",
    "joint_entropy",
    "conditional_entropy",
    "mutual_information",
    "relative_mutual_information",
    "contagion",
    "patch_richness",
    "relative_patch_richness",
    "shannon_diversity_index",
    "shannon_evenness_index",
]

_LOG_BASE_DICT = {"log2": 2, "log10": 10, "log": np.e}


class EntropyTerms(collections.namedtuple("EntropyTerms", ["ent", "joinent"])):
    """Marginal and joint entropy of a co-occurrence matrix.

    Every other entropy-based metric derives from these two terms.
    """

    __slots__ = ()

    @property
    def condent(self):  # noqa: D102
        return self.joinent - self.ent

    @property
    def mutinf(self):  # noqa: D102
        return self.ent - self.condent

    @property
    def relmutinf(self):  # noqa: D102
        mutinf = self.mutinf
        if mutinf == 0:
            return 1.0
        return mutinf / self.ent


def _check_base(base):
    if base is None:
        base = settings.DEFAULT_LOG_BASE
    if isinstance(base, str):
        try:
            base = _LOG_BASE_DICT[base]
        except KeyError as base_e:
            raise ValueError(
                f"`base` {base!r} is not among {tuple(_LOG_BASE_DICT)}"
            ) from base_e
    if base <= 0 or base == 1:
        raise ValueError(f"`base` must be positive and different from 1, got {base}")
    return base


def compute_entropy(counts, base=None):
    """Compute the Shannon entropy of a set of category counts.

    The proportions are derived from the counts, and zero counts are ignored. The base
    of the logarithm sets the units, i.e., bits for base 2, nats for base e and dits
    for base 10.

    Parameters
    ----------
    counts : list-like
        Number of occurrences of each category.
    base : numeric, optional
        Base of the logarithm. If no value is provided, the natural logarithm is used.

    Returns
    -------
    entropy : numeric
    """
    counts = np.asarray(counts, dtype=float)
    pcounts = (counts / counts.sum())[counts > 0]
    entropy = -np.sum(pcounts * np.log(pcounts))
    if base:
        entropy /= np.log(base)
    # avoid returning negative zeros
    return entropy + 0.0


def compute_entropy_terms(cooccurrence_arr, ordered, base):
    """Compute the marginal and joint entropy of a co-occurrence array.

    Parameters
    ----------
    cooccurrence_arr : numpy.ndarray
        Ordered (symmetric) co-occurrence array among the classes, without missing data.
    ordered : bool
        If True, the joint entropy is computed over ordered pairs of classes (i.e., the
        cells of the co-occurrence array), otherwise over unordered pairs (i.e., the
        cells of its upper triangle including the diagonal).
    base : numeric
        The base of the logarithm.

    Returns
    -------
    entropy_terms : EntropyTerms
    """
    # sum along column to get counts of each class
    ent = compute_entropy(cooccurrence_arr.sum(axis=0), base=base)
    if ordered:
        joint_counts = cooccurrence_arr.ravel()
    else:
        # the diagonal counts each like adjacency twice
        joint_counts = np.concatenate(
            [
                np.diag(cooccurrence_arr) / 2,
                cooccurrence_arr[np.triu_indices(len(cooccurrence_arr), k=1)],
            ]
        )
    joinent = compute_entropy(joint_counts, base=base)

    return EntropyTerms(ent, joinent)


def _entropy_terms(grid, neighborhood, ordered, base, cache):
    base = _check_base(base)
    offsets = get_kernel_offsets(neighborhood)
    if ordered is None:
        ordered = settings.DEFAULT_ORDERED

    if cache is not None and cache.entropy_params == (offsets, ordered, base):
        return cache.entropy_terms

    cooccurrence_df = adjacency(
        grid, kernel=neighborhood, ordered=True, cache=cache
    ).drop(index=grid.nodata, columns=grid.nodata)
    return compute_entropy_terms(cooccurrence_df.values, ordered, base)


def entropy(grid, *, neighborhood=None, ordered=None, base=None, cache=None):
    r"""Measure of diversity of landscape classes.

    Reflects the number of classes present in the landscape as well as the relative
    abundance of each class. It is computed at the landscape level as in:

    .. math::
       ENT = - \sum \limits_{i=1}^{m} \Big( P_i \; log_b P_i \Big)

    where `b` is the base logarithm and the proportions are taken from the marginal
    distribution of the co-occurrence matrix.

    Parameters
    ----------
    grid : pylandcore.Grid
        The grid.
    neighborhood : {4, 8, '4', '8'} or numpy.ndarray, optional
        Neighbor-offset kernel of the co-occurrence matrix. If no value is provided, the
        default value set in `settings.DEFAULT_ADJACENCY_NEIGHBORHOOD` is taken.
    ordered : bool, optional
        Whether the pairs of classes are ordered. If no value is provided, the default
        value set in `settings.DEFAULT_ORDERED` is taken.
    base : numeric or {'log2', 'log10', 'log'}, optional
        The base of the logarithm. If no value is provided, the default value set in
        `settings.DEFAULT_LOG_BASE` is taken.
    cache : pylandcore.ExtrasCache, optional
        Pre-built cache for the same grid.

    Returns
    -------
    ENT : numeric
        0 <= ENT <= log_b(m), `NaN` if the grid is all missing data.
    """
    if grid.warn_all_missing():
        return np.nan
    return _entropy_terms(grid, neighborhood, ordered, base, cache).ent


def joint_entropy(grid, *, neighborhood=None, ordered=None, base=None, cache=None):
    r"""Measure of spatial and categorical complexity of the landscape.

    .. math::
       JOINENT = - \sum \limits_{i=1}^{m} \sum \limits_{k=1}^{m} \Bigg[
         P_i \frac{g_{i,k}}{\sum \limits_{k=1}^{m} g_{i,k}} \Bigg] \Bigg[
         log_b \Bigg( P_i \frac{g_{i,k}}{\sum \limits_{k=1}^{m} g_{i,k}} \Bigg)
         \Bigg]

    See `entropy` for the description of the parameters.

    Returns
    -------
    JOINENT : numeric
        0 <= JOINENT <= 2 log_b(m), `NaN` if the grid is all missing data.
    """
    if grid.warn_all_missing():
        return np.nan
    return _entropy_terms(grid, neighborhood, ordered, base, cache).joinent


def conditional_entropy(
    grid, *, neighborhood=None, ordered=None, base=None, cache=None
):
    """Measure of spatial complexity of the landscape.

    Reflects only the spatial intricacy of the landscape pattern, computed as the joint
    entropy minus the entropy. See `entropy` for the description of the parameters.

    Returns
    -------
    CONDENT : numeric
        0 <= CONDENT <= log_b(m), `NaN` if the grid is all missing data.
    """
    if grid.warn_all_missing():
        return np.nan
    return _entropy_terms(grid, neighborhood, ordered, base, cache).condent


def mutual_information(grid, *, neighborhood=None, ordered=None, base=None, cache=None):
    """Measure of aggregation.

    Reflects the difference between diversity of categories and diversity of
    adjacencies, computed as the entropy minus the conditional entropy. See `entropy`
    for the description of the parameters.

    Returns
    -------
    MUTINF : numeric
        0 <= MUTINF <= log_b(m), `NaN` if the grid is all missing data.
    """
    if grid.warn_all_missing():
        return np.nan
    return _entropy_terms(grid, neighborhood, ordered, base, cache).mutinf


def relative_mutual_information(
    grid, *, neighborhood=None, ordered=None, base=None, cache=None
):
    """Mutual information standardized by the entropy.

    Equals 1 when the mutual information is zero (e.g., a single class). See `entropy`
    for the description of the parameters.

    Returns
    -------
    RELMUTINF : numeric
        0 <= RELMUTINF <= 1, `NaN` if the grid is all missing data.
    """
    if grid.warn_all_missing():
        return np.nan
    return _entropy_terms(grid, neighborhood, ordered, base, cache).relmutinf


def contagion(grid, *, percent=True, cache=None):
    r"""Measure of aggregation.

    .. math::
       CONTAG = 1 - \frac{JOINENT_e}{2 ln(m)}

    where the joint entropy is computed with the natural logarithm over ordered pairs of
    rook's case adjacencies.

    Parameters
    ----------
    grid : pylandcore.Grid
        The grid.
    percent : bool, default True
        Whether the index should be expressed as proportion or converted to percentage.
    cache : pylandcore.ExtrasCache, optional
        Pre-built cache for the same grid.

    Returns
    -------
    CONTAG : numeric
        0 < CONTAG <= 100 (or 1 if `percent` is False). `NaN` if there are less than two
        classes.
    """
    if grid.warn_all_missing():
        return np.nan
    if len(grid.classes) < 2:
        warnings.warn(
            "Contagion can only be computed in grids with at least two classes. "
            "Returning nan",
            RuntimeWarning,
        )
        return np.nan

    joinent = _entropy_terms(grid, "4", True, np.e, cache).joinent
    contag = 1 - joinent / (2 * np.log(len(grid.classes)))
    if percent:
        contag *= 100

    return contag


def patch_richness(grid):
    """Number of classes present in the grid.

    Returns
    -------
    PR : int
        PR >= 1, `NaN` if the grid is all missing data.
    """
    if grid.warn_all_missing():
        return np.nan
    return len(grid.classes)


def relative_patch_richness(grid, *, classes_max=None):
    """Number of classes present in the grid relative to the maximum possible.

    Parameters
    ----------
    grid : pylandcore.Grid
        The grid.
    classes_max : int, optional
        Maximum number of classes. If no value is provided, the `classes_max` attribute
        of the grid is taken.

    Returns
    -------
    RPR : numeric
        0 < RPR <= 100. `NaN` (with a warning) if the maximum number of classes is
        unknown.
    """
    if classes_max is None:
        classes_max = grid.classes_max
    if classes_max is None:
        warnings.warn(
            "No maximum number of classes provided. Returning nan", RuntimeWarning
        )
        return np.nan
    pr = patch_richness(grid)
    return pr / classes_max * 100


def shannon_diversity_index(grid):
    r"""Measure of diversity based on the proportion of the area of each class.

    .. math::
       SHDI = - \sum \limits_{i=1}^{m} \Big( P_i \; ln P_i \Big)

    where `P_i` is the proportion of the cells that are not missing data that belong
    to class `i`.

    Returns
    -------
    SHDI : numeric
        SHDI >= 0 ; SHDI equals 0 when the landscape consists of a single class, and
        increases as the number of classes increases and the distribution of area
        among classes becomes more equitable. `NaN` if the grid is all missing data.
    """
    if grid.warn_all_missing():
        return np.nan
    return compute_entropy(
        [np.sum(grid.arr == class_val) for class_val in grid.classes], base=np.e
    )


def shannon_evenness_index(grid):
    r"""Shannon diversity relative to its maximum for the number of classes.

    .. math::
       SHEI = \frac{SHDI}{ln(m)}

    Returns
    -------
    SHEI : numeric
        0 <= SHEI <= 1 ; SHEI equals 1 when the area is evenly distributed among the
        classes. `NaN` if there are less than two classes.
    """
    if grid.warn_all_missing():
        return np.nan
    if len(grid.classes) < 2:
        warnings.warn(
            "Shannon's evenness index can only be computed in grids with at least two "
            "classes. Returning nan",
            RuntimeWarning,
        )
        return np.nan

    return shannon_diversity_index(grid) / np.log(len(grid.classes))
