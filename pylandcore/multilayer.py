"""Independent computation of the metric records of a stack of grids."""

import logging

import dask
import pandas as pd
from dask import diagnostics

from . import settings
from .grid import Grid
from .records import compute_records

__all__ = ["compute_layers_records"]

logger = logging.getLogger(__name__)


def compute_layers_records(
    grids, *, res=None, nodata=None, progress_bar=None, **compute_records_kwargs
):
    """Compute the metric records of each layer of a stack of grids.

    Layers share no state: each of them is computed by a separate task with its own
    cache.

    Parameters
    ----------
    grids : list-like
        List-like of `pylandcore.Grid` instances, or of any input accepted by
        `pylandcore.Grid` (e.g., the 2-D arrays obtained by iterating over a 3-D array).
    res : tuple, optional
        The (x, y) resolution, passed to `pylandcore.Grid` for the layers that are not
        `pylandcore.Grid` instances.
    nodata : int, optional
        Value of the cells with no data, passed to `pylandcore.Grid` for the layers that
        are not `pylandcore.Grid` instances.
    progress_bar : bool, optional
        Whether a dask progress bar should be displayed. If no value is provided, the
        default value set in `settings.COMPUTE_PROGRESS_BAR` will be taken.
    **compute_records_kwargs : optional
        Keyword arguments to be passed to `pylandcore.compute_records`.

    Returns
    -------
    records_df : pandas.DataFrame
        Concatenation of the records of each layer, with an additional `layer` column
        with the (1-based) position of the layer in `grids`.
    """
    if progress_bar is None:
        progress_bar = settings.COMPUTE_PROGRESS_BAR

    grids = [
        grid if isinstance(grid, Grid) else Grid(grid, res=res, nodata=nodata)
        for grid in grids
    ]
    logger.debug("Dispatching %d layers", len(grids))

    tasks = [
        dask.delayed(compute_records)(grid, **compute_records_kwargs) for grid in grids
    ]
    if progress_bar:
        with diagnostics.ProgressBar():
            dfs = dask.compute(*tasks)
    else:
        dfs = dask.compute(*tasks)

    return pd.concat(
        [df.assign(layer=i) for i, df in enumerate(dfs, start=1)], ignore_index=True
    )
