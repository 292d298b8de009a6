"""Index window location for a polygon bounding box.

Inverts the grid geotransform to find the smallest block of rows and
columns whose cell centers could fall inside a bounding box.

No QGIS or Qt imports. Only depends on: math, domain models.
"""

import math
from typing import Optional, Tuple

from .models import GridStore, IndexWindow, check_window

# Tolerance in index units for centers lying exactly on the box
_INDEX_EPS = 1e-9


def _center_index_range(lo: float, hi: float, origin: float, step: float) -> Tuple[int, int]:
    """Half-open range of indices i with origin + (i + 0.5) * step in [lo, hi]."""
    a = (lo - origin) / step - 0.5
    b = (hi - origin) / step - 0.5
    first = math.ceil(min(a, b) - _INDEX_EPS)
    last = math.floor(max(a, b) + _INDEX_EPS)
    return first, last + 1


def locate_window(
    bbox: Tuple[float, float, float, float],
    grid: GridStore,
) -> Optional[IndexWindow]:
    """Locate the index window covering a bounding box.

    Args:
        bbox: (xmin, ymin, xmax, ymax) in grid coordinates.
        grid: Target grid.

    Returns:
        IndexWindow clamped to the grid, or None when no cell center of
        the grid can lie inside the box (no overlap).
    """
    xmin, ymin, xmax, ymax = bbox
    if not all(math.isfinite(v) for v in bbox):
        raise ValueError(f"Bounding box has non-finite coordinates: {bbox}")

    x0, dx, _, y0, _, dy = grid.geotransform
    col_min, col_max = _center_index_range(xmin, xmax, x0, dx)
    row_min, row_max = _center_index_range(ymin, ymax, y0, dy)

    col_min = max(col_min, 0)
    row_min = max(row_min, 0)
    col_max = min(col_max, grid.n_cols)
    row_max = min(row_max, grid.n_rows)

    if col_min >= col_max or row_min >= row_max:
        return None

    window = IndexWindow(row_min, row_max, col_min, col_max)
    check_window(window, grid)
    return window
