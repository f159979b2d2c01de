"""Fixed-schema metric records at the patch, class and landscape levels."""

import numpy as np
import pandas as pd

from . import settings
from .cooccurrence import percentage_of_like_adjacencies, total_edge
from .core import core_label, number_of_core_areas
from .cache import ExtrasCache
from .complexity import (
    conditional_entropy,
    contagion,
    entropy,
    joint_entropy,
    mutual_information,
    patch_richness,
    relative_mutual_information,
    relative_patch_richness,
    shannon_diversity_index,
    shannon_evenness_index,
)
from .fragmentation import (
    effective_mesh_size,
    patch_cohesion_index,
    perimeter_area_fractal_dimension,
    splitting_index,
)
from .geometry import (
    area,
    contiguity_index,
    core_area,
    core_area_index,
    fractal_dimension,
    perimeter,
    perimeter_area_ratio,
    radius_of_gyration,
    related_circumscribing_circle,
    shape_index,
)
from .labeling import check_connectivity
from .proximity import nearest_neighbor

__all__ = [
    "RECORD_COLUMNS",
    "PATCH_METRICS",
    "CLASS_METRICS",
    "LANDSCAPE_METRICS",
    "compute_patch_records",
    "compute_class_records",
    "compute_landscape_records",
    "compute_records",
]

RECORD_COLUMNS = ["level", "class", "id", "metric", "value"]


# metric adapters. Each of them takes the grid, the class value (except at the
# landscape level) and the cache, followed by the metric's keyword arguments


def _patch_ncore(grid, class_val, cache, *, edge_depth=None, count_boundary=None):
    return number_of_core_areas(
        cache.class_label_arrs[class_val],
        edge_depth=edge_depth,
        count_boundary=count_boundary,
        connectivity=cache.connectivity,
    )


def _patch_enn(grid, class_val, cache):
    return nearest_neighbor(
        cache.class_label_arrs[class_val],
        grid.res,
        class_val=class_val,
        cache=cache,
    )


def _patch_contig(grid, class_val, cache):
    return contiguity_index(cache.class_label_arrs[class_val])


def _patch_metric(func):
    def _compute(grid, class_val, cache, **metric_kwargs):
        return func(cache.class_label_arrs[class_val], grid.res, **metric_kwargs)

    return _compute


PATCH_METRIC_DICT = {
    "area": _patch_metric(area),
    "perimeter": _patch_metric(perimeter),
    "perimeter_area_ratio": _patch_metric(perimeter_area_ratio),
    "shape_index": _patch_metric(shape_index),
    "fractal_dimension": _patch_metric(fractal_dimension),
    "radius_of_gyration": _patch_metric(radius_of_gyration),
    "core_area": _patch_metric(core_area),
    "number_of_core_areas": _patch_ncore,
    "core_area_index": _patch_metric(core_area_index),
    "contiguity_index": _patch_contig,
    "related_circumscribing_circle": _patch_metric(related_circumscribing_circle),
    "euclidean_nearest_neighbor": _patch_enn,
}


def _class_total_area(grid, class_val, cache, *, hectares=True):
    return area(cache.class_label_arrs[class_val], grid.res, hectares=hectares).sum()


def _class_number_of_patches(grid, class_val, cache):
    return cache.num_patches_dict[class_val]


def _class_total_edge(grid, class_val, cache, *, count_boundary=None):
    return total_edge(grid, class_val, count_boundary=count_boundary, cache=cache)


def _class_total_core_area(
    grid, class_val, cache, *, edge_depth=None, count_boundary=None, hectares=True
):
    return core_area(
        cache.class_label_arrs[class_val],
        grid.res,
        edge_depth=edge_depth,
        count_boundary=count_boundary,
        hectares=hectares,
    ).sum()


def _class_ndca(grid, class_val, cache, *, edge_depth=None, count_boundary=None):
    # every core patch lies within a single patch
    return core_label(
        cache.class_label_arrs[class_val],
        edge_depth,
        count_boundary,
        cache.connectivity,
    )[1]


def _class_metric(func):
    def _compute(grid, class_val, cache, **metric_kwargs):
        return func(grid, class_val, cache=cache, **metric_kwargs)

    return _compute


CLASS_METRIC_DICT = {
    "total_area": _class_total_area,
    "number_of_patches": _class_number_of_patches,
    "total_edge": _class_total_edge,
    "total_core_area": _class_total_core_area,
    "number_of_disjunct_core_areas": _class_ndca,
    "effective_mesh_size": _class_metric(effective_mesh_size),
    "splitting_index": _class_metric(splitting_index),
    "patch_cohesion_index": _class_metric(patch_cohesion_index),
    "perimeter_area_fractal_dimension": _class_metric(
        perimeter_area_fractal_dimension
    ),
}


def _landscape_total_area(grid, cache, *, hectares=True):
    landscape_area = grid.landscape_area
    if hectares:
        landscape_area /= 10000
    return landscape_area


def _landscape_number_of_patches(grid, cache):
    return sum(cache.num_patches_dict.values())


def _landscape_metric(func, *, cache_kwarg=True):
    def _compute(grid, cache, **metric_kwargs):
        if cache_kwarg:
            metric_kwargs["cache"] = cache
        return func(grid, **metric_kwargs)

    return _compute


LANDSCAPE_METRIC_DICT = {
    "total_area": _landscape_total_area,
    "number_of_patches": _landscape_number_of_patches,
    "total_edge": _landscape_metric(total_edge),
    "entropy": _landscape_metric(entropy),
    "joint_entropy": _landscape_metric(joint_entropy),
    "conditional_entropy": _landscape_metric(conditional_entropy),
    "mutual_information": _landscape_metric(mutual_information),
    "relative_mutual_information": _landscape_metric(relative_mutual_information),
    "contagion": _landscape_metric(contagion),
    "percentage_of_like_adjacencies": _landscape_metric(
        percentage_of_like_adjacencies, cache_kwarg=False
    ),
    "patch_richness": _landscape_metric(patch_richness, cache_kwarg=False),
    "relative_patch_richness": _landscape_metric(
        relative_patch_richness, cache_kwarg=False
    ),
    "effective_mesh_size": _landscape_metric(effective_mesh_size),
    "splitting_index": _landscape_metric(splitting_index),
    "patch_cohesion_index": _landscape_metric(patch_cohesion_index),
    "perimeter_area_fractal_dimension": _landscape_metric(
        perimeter_area_fractal_dimension
    ),
    "shannon_diversity_index": _landscape_metric(
        shannon_diversity_index, cache_kwarg=False
    ),
    "shannon_evenness_index": _landscape_metric(
        shannon_evenness_index, cache_kwarg=False
    ),
}

PATCH_METRICS = list(PATCH_METRIC_DICT)
CLASS_METRICS = list(CLASS_METRIC_DICT)
LANDSCAPE_METRICS = list(LANDSCAPE_METRIC_DICT)


# utils


def _metric_abbrev(metric, level):
    if level == "class" and metric in settings.CLASS_ABBREV_OVERRIDE_DICT:
        return settings.CLASS_ABBREV_OVERRIDE_DICT[metric]
    return settings.metric_abbrev_dict[metric]


def _records_df(records):
    return pd.DataFrame(records, columns=RECORD_COLUMNS).astype(
        {"class": "Int64", "id": "Int64", "value": float}
    )


def _missing_records_df(metrics, level):
    return _records_df(
        [
            {
                "level": level,
                "class": pd.NA,
                "id": pd.NA,
                "metric": _metric_abbrev(metric, level),
                "value": np.nan,
            }
            for metric in metrics
        ]
    )


def _check_metrics(metrics, level, metric_dict):
    for metric in metrics:
        if metric not in metric_dict:
            # give a more informative message if the metric exists at another level
            for other_level, other_dict in [
                ("patch", PATCH_METRIC_DICT),
                ("class", CLASS_METRIC_DICT),
                ("landscape", LANDSCAPE_METRIC_DICT),
            ]:
                if metric in other_dict:
                    raise ValueError(
                        f"{metric} cannot be computed at the {level} level (it is a "
                        f"{other_level}-level metric)"
                    )
            raise ValueError(f"{metric} is not among {list(metric_dict)}")


def _get_cache(grid, metrics, connectivity, metrics_kwargs, cache):
    if cache is None:
        return ExtrasCache.from_metrics(
            grid, metrics, connectivity, metrics_kwargs=metrics_kwargs
        )
    if connectivity is not None and check_connectivity(connectivity) != (
        cache.connectivity
    ):
        raise ValueError(
            f"`connectivity` {connectivity!r} does not match the cache's connectivity "
            f"{cache.connectivity!r}"
        )
    return cache


def _compute_metric(metric_dict, metric, level, metrics_kwargs, *args):
    try:
        return metric_dict[metric](*args, **metrics_kwargs.get(metric, {}))
    except TypeError as metric_args_e:
        raise ValueError(
            f"{metric} cannot be computed at the {level} level with the keyword "
            f"arguments {metrics_kwargs.get(metric, {})}"
        ) from metric_args_e


# record producers


def compute_patch_records(
    grid, *, metrics=None, connectivity=None, metrics_kwargs=None, cache=None
):
    """Compute patch-level metric records.

    Parameters
    ----------
    grid : pylandcore.Grid
        The grid.
    metrics : list-like, optional
        A list-like of strings with the names of the metrics that should be computed.
        If `None`, all the implemented patch-level metrics will be computed.
    connectivity : {8, 4, '8', '4'}, optional
        Neighborhood rule to determine patch adjacencies. If no value is provided, the
        default value set in `settings.DEFAULT_NEIGHBORHOOD_RULE` will be taken.
    metrics_kwargs : dict, optional
        Dictionary mapping the keyword arguments (values) that should be passed to each
        metric (key), e.g., to compute `area` in meters instead of hectares,
        `metrics_kwargs` should map the string 'area' (metric name) to
        {'hectares': False}. If `None`, each metric will be computed according to
        FRAGSTATS defaults.
    cache : pylandcore.ExtrasCache, optional
        Pre-built cache for the same grid. If `None`, a cache with the intermediate
        results required by `metrics` is built.

    Returns
    -------
    records_df : pandas.DataFrame
        Data frame with the `level`, `class`, `id`, `metric` and `value` columns, where
        the patch ids are unique across classes (see `label_landscape`).
    """
    if metrics is None:
        metrics = PATCH_METRICS
    _check_metrics(metrics, "patch", PATCH_METRIC_DICT)
    if metrics_kwargs is None:
        metrics_kwargs = {}

    cache = _get_cache(grid, metrics, connectivity, metrics_kwargs, cache)
    if grid.warn_all_missing():
        return _missing_records_df(metrics, "patch")

    records_dfs = []
    offset = 0
    for class_val in cache.classes:
        for metric in metrics:
            metric_ser = _compute_metric(
                PATCH_METRIC_DICT,
                metric,
                "patch",
                metrics_kwargs,
                grid,
                class_val,
                cache,
            )
            records_dfs.append(
                pd.DataFrame(
                    {
                        "level": "patch",
                        "class": class_val,
                        "id": metric_ser.index.values + offset,
                        "metric": _metric_abbrev(metric, "patch"),
                        "value": metric_ser.values,
                    },
                    columns=RECORD_COLUMNS,
                )
            )
        offset += cache.num_patches_dict[class_val]
    if not records_dfs:
        return _records_df([])

    return _records_df(pd.concat(records_dfs, ignore_index=True))


def compute_class_records(
    grid, *, metrics=None, connectivity=None, metrics_kwargs=None, cache=None
):
    """Compute class-level metric records.

    Parameters
    ----------
    grid : pylandcore.Grid
        The grid.
    metrics : list-like, optional
        A list-like of strings with the names of the metrics that should be computed.
        If `None`, all the implemented class-level metrics will be computed.
    connectivity : {8, 4, '8', '4'}, optional
        Neighborhood rule to determine patch adjacencies.
    metrics_kwargs : dict, optional
        Dictionary mapping the keyword arguments (values) that should be passed to each
        metric (key), e.g., to include the boundary in the computation of `total_edge`,
        `metrics_kwargs` should map the string 'total_edge' (metric name) to
        {'count_boundary': True}.
    cache : pylandcore.ExtrasCache, optional
        Pre-built cache for the same grid.

    Returns
    -------
    records_df : pandas.DataFrame
        Data frame with the `level`, `class`, `id` (missing), `metric` and `value`
        columns.
    """
    if metrics is None:
        metrics = CLASS_METRICS
    _check_metrics(metrics, "class", CLASS_METRIC_DICT)
    if metrics_kwargs is None:
        metrics_kwargs = {}

    cache = _get_cache(grid, metrics, connectivity, metrics_kwargs, cache)
    if grid.warn_all_missing():
        return _missing_records_df(metrics, "class")

    return _records_df(
        [
            {
                "level": "class",
                "class": class_val,
                "id": pd.NA,
                "metric": _metric_abbrev(metric, "class"),
                "value": _compute_metric(
                    CLASS_METRIC_DICT,
                    metric,
                    "class",
                    metrics_kwargs,
                    grid,
                    class_val,
                    cache,
                ),
            }
            for class_val in cache.classes
            for metric in metrics
        ]
    )


def compute_landscape_records(
    grid, *, metrics=None, connectivity=None, metrics_kwargs=None, cache=None
):
    """Compute landscape-level metric records.

    Parameters
    ----------
    grid : pylandcore.Grid
        The grid.
    metrics : list-like, optional
        A list-like of strings with the names of the metrics that should be computed.
        If `None`, all the implemented landscape-level metrics will be computed.
    connectivity : {8, 4, '8', '4'}, optional
        Neighborhood rule to determine patch adjacencies.
    metrics_kwargs : dict, optional
        Dictionary mapping the keyword arguments (values) that should be passed to each
        metric (key), e.g., to compute the entropy in nats, `metrics_kwargs` should map
        the string 'entropy' (metric name) to {'base': 'log'}.
    cache : pylandcore.ExtrasCache, optional
        Pre-built cache for the same grid.

    Returns
    -------
    records_df : pandas.DataFrame
        Data frame with the `level`, `class` (missing), `id` (missing), `metric` and
        `value` columns.
    """
    if metrics is None:
        metrics = LANDSCAPE_METRICS
    _check_metrics(metrics, "landscape", LANDSCAPE_METRIC_DICT)
    if metrics_kwargs is None:
        metrics_kwargs = {}

    cache = _get_cache(grid, metrics, connectivity, metrics_kwargs, cache)
    if grid.warn_all_missing():
        return _missing_records_df(metrics, "landscape")

    return _records_df(
        [
            {
                "level": "landscape",
                "class": pd.NA,
                "id": pd.NA,
                "metric": _metric_abbrev(metric, "landscape"),
                "value": _compute_metric(
                    LANDSCAPE_METRIC_DICT,
                    metric,
                    "landscape",
                    metrics_kwargs,
                    grid,
                    cache,
                ),
            }
            for metric in metrics
        ]
    )


def compute_records(
    grid,
    *,
    patch_metrics=None,
    class_metrics=None,
    landscape_metrics=None,
    connectivity=None,
    metrics_kwargs=None,
):
    """Compute the metric records of the three levels with a single cache.

    Parameters
    ----------
    grid : pylandcore.Grid
        The grid.
    patch_metrics, class_metrics, landscape_metrics : list-like, optional
        Names of the metrics to compute at each level. If `None`, all the implemented
        metrics of the level will be computed. An empty list-like skips the level.
    connectivity : {8, 4, '8', '4'}, optional
        Neighborhood rule to determine patch adjacencies.
    metrics_kwargs : dict, optional
        Dictionary mapping the keyword arguments (values) that should be passed to each
        metric (key), regardless of the level.

    Returns
    -------
    records_df : pandas.DataFrame
        Concatenation of the patch, class and landscape records.
    """
    if patch_metrics is None:
        patch_metrics = PATCH_METRICS
    if class_metrics is None:
        class_metrics = CLASS_METRICS
    if landscape_metrics is None:
        landscape_metrics = LANDSCAPE_METRICS

    cache = ExtrasCache.from_metrics(
        grid,
        list(patch_metrics) + list(class_metrics) + list(landscape_metrics),
        connectivity,
        metrics_kwargs=metrics_kwargs,
    )
    records_dfs = [
        compute_level_records(
            grid, metrics=metrics, metrics_kwargs=metrics_kwargs, cache=cache
        )
        for compute_level_records, metrics in [
            (compute_patch_records, patch_metrics),
            (compute_class_records, class_metrics),
            (compute_landscape_records, landscape_metrics),
        ]
        if len(metrics) > 0
    ]
    if not records_dfs:
        return _records_df([])

    return pd.concat(records_dfs, ignore_index=True)
