"""Class-count accumulation over an inclusion mask.

Pure reductions with no side effects, so polygons (and row partitions
of one polygon) can be counted independently and merged.

No QGIS or Qt imports. Only depends on: numpy.
"""

from typing import Dict, Mapping, Optional

import numpy as np


def accumulate_counts(
    mask: np.ndarray,
    values: np.ndarray,
    nodata: Optional[float] = None,
) -> Dict[int, int]:
    """Count class labels of the cells selected by a mask.

    Args:
        mask: Boolean inclusion mask, same shape as values.
        values: Class labels of the grid window.
        nodata: No-data sentinel. Matching cells are never counted.
            NaN cells of floating-point grids are always skipped.

    Returns:
        {class_value: cell_count}, ascending by class, zero counts omitted.
        An all-false mask gives an empty dict.

    Raises:
        ValueError: If a floating-point grid holds a non-integral class
            label among the counted cells (e.g. 1.5).
    """
    if mask.shape != values.shape:
        raise ValueError(
            f"Mask shape {mask.shape} does not match window shape {values.shape}"
        )

    selected = values[mask]
    if selected.size == 0:
        return {}

    if np.issubdtype(selected.dtype, np.floating):
        selected = selected[~np.isnan(selected)]
    if nodata is not None:
        selected = selected[selected != nodata]
    if selected.size == 0:
        return {}

    unique, cnts = np.unique(selected, return_counts=True)
    if np.issubdtype(unique.dtype, np.floating):
        fractional = unique[unique != np.round(unique)]
        if fractional.size:
            raise ValueError(
                f"Grid holds non-integral class labels "
                f"(e.g. {fractional[0]}); class grids must use integer codes"
            )
    return {int(val): int(cnt) for val, cnt in zip(unique, cnts)}


def merge_counts(*count_maps: Mapping[int, int]) -> Dict[int, int]:
    """Sum class counts from several partitions."""
    merged: Dict[int, int] = {}
    for counts in count_maps:
        for label, cnt in counts.items():
            merged[label] = merged.get(label, 0) + cnt
    return dict(sorted(merged.items()))
