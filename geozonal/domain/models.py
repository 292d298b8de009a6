"""Domain data models for GeoZonal.

All models are frozen dataclasses (immutable once created).
This module has ZERO imports from qgis.* or PyQt5.*.
Only depends on: numpy, typing, dataclasses.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, Hashable, Iterator, Optional, Tuple

import numpy as np

from .result_table import ResultTable


# Zonal record statuses
STATUS_OK = "ok"
STATUS_EMPTY = "empty"              # overlaps the grid, no cell center captured
STATUS_NO_OVERLAP = "no_overlap"    # bounding box outside the grid extent


class GridIndexError(RuntimeError):
    """Raised when an index window falls outside the grid after clamping.

    Signals a bug in window location; never expected with valid input.
    """
    pass


# ---------------------------------------------------------------------------
# Grid index space
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class IndexWindow:
    """Half-open index window: rows [row_min, row_max), cols [col_min, col_max)."""
    row_min: int
    row_max: int
    col_min: int
    col_max: int

    @property
    def n_rows(self) -> int:
        return self.row_max - self.row_min

    @property
    def n_cols(self) -> int:
        return self.col_max - self.col_min

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.n_rows, self.n_cols)

    @property
    def n_cells(self) -> int:
        return self.n_rows * self.n_cols

    @property
    def slices(self) -> Tuple[slice, slice]:
        return (
            slice(self.row_min, self.row_max),
            slice(self.col_min, self.col_max),
        )

    def row_blocks(self, block_rows: int) -> Iterator["IndexWindow"]:
        """Split into contiguous row partitions of at most block_rows rows."""
        if block_rows < 1:
            raise ValueError(f"block_rows must be >= 1, got {block_rows}")
        for start in range(self.row_min, self.row_max, block_rows):
            yield IndexWindow(
                row_min=start,
                row_max=min(start + block_rows, self.row_max),
                col_min=self.col_min,
                col_max=self.col_max,
            )


@dataclass(frozen=True, eq=False)
class GridStore:
    """Immutable, georeferenced categorical raster.

    geotransform uses GDAL order:
        (x_origin, pixel_width, 0, y_origin, 0, pixel_height)
    Cell (row, col) has its top-left corner at
        (x_origin + col * pixel_width, y_origin + row * pixel_height)
    and its center half a cell further along both axes. pixel_height is
    negative for the usual north-up raster.
    """
    values: np.ndarray
    geotransform: Tuple[float, float, float, float, float, float]
    nodata: Optional[float] = None

    def __post_init__(self):
        values = np.asarray(self.values)
        if values.ndim != 2:
            raise ValueError(
                f"Grid values must be 2-D, got {values.ndim}-D array"
            )

        gt = tuple(float(v) for v in self.geotransform)
        if len(gt) != 6:
            raise ValueError(
                f"Geotransform must have 6 terms, got {len(gt)}"
            )
        if gt[2] != 0.0 or gt[4] != 0.0:
            raise ValueError(
                f"Rotated geotransforms are not supported "
                f"(rotation terms {gt[2]}, {gt[4]})"
            )
        if not all(math.isfinite(v) for v in gt):
            raise ValueError(f"Geotransform has non-finite terms: {gt}")
        if gt[1] == 0.0 or gt[5] == 0.0:
            raise ValueError(
                f"Pixel size must be non-zero, got {gt[1]} x {gt[5]}"
            )

        # Read-only view: shared across worker threads, never copied
        view = values.view()
        view.flags.writeable = False
        object.__setattr__(self, "values", view)
        object.__setattr__(self, "geotransform", gt)

    @classmethod
    def from_origin(
        cls,
        values: np.ndarray,
        x_min: float,
        y_max: float,
        cell_width: float,
        cell_height: float,
        nodata: Optional[float] = None,
    ) -> "GridStore":
        """Build a north-up grid from its top-left corner and cell size."""
        return cls(
            values=values,
            geotransform=(x_min, cell_width, 0.0, y_max, 0.0, -cell_height),
            nodata=nodata,
        )

    @property
    def n_rows(self) -> int:
        return self.values.shape[0]

    @property
    def n_cols(self) -> int:
        return self.values.shape[1]

    @property
    def shape(self) -> Tuple[int, int]:
        return self.values.shape

    @property
    def cell_width(self) -> float:
        return abs(self.geotransform[1])

    @property
    def cell_height(self) -> float:
        return abs(self.geotransform[5])

    @property
    def cell_area(self) -> float:
        return self.cell_width * self.cell_height

    @property
    def extent(self) -> Tuple[float, float, float, float]:
        """(xmin, ymin, xmax, ymax) of the outer cell edges."""
        x0, dx, _, y0, _, dy = self.geotransform
        xs = (x0, x0 + dx * self.n_cols)
        ys = (y0, y0 + dy * self.n_rows)
        return (min(xs), min(ys), max(xs), max(ys))

    def cell_center(self, row: int, col: int) -> Tuple[float, float]:
        x0, dx, _, y0, _, dy = self.geotransform
        return (x0 + (col + 0.5) * dx, y0 + (row + 0.5) * dy)

    def row_centers(self, window: IndexWindow) -> np.ndarray:
        """Cell-center y coordinate for every row of the window."""
        y0, dy = self.geotransform[3], self.geotransform[5]
        rows = np.arange(window.row_min, window.row_max, dtype=np.float64)
        return y0 + (rows + 0.5) * dy

    def col_centers(self, window: IndexWindow) -> np.ndarray:
        """Cell-center x coordinate for every column of the window."""
        x0, dx = self.geotransform[0], self.geotransform[1]
        cols = np.arange(window.col_min, window.col_max, dtype=np.float64)
        return x0 + (cols + 0.5) * dx

    def intersects(self, bbox: Tuple[float, float, float, float]) -> bool:
        """True if bbox (xmin, ymin, xmax, ymax) overlaps the grid extent."""
        xmin, ymin, xmax, ymax = self.extent
        return (
            bbox[0] < xmax and bbox[2] > xmin
            and bbox[1] < ymax and bbox[3] > ymin
        )

    def read_window(self, window: IndexWindow) -> np.ndarray:
        """Read-only view of the class labels inside the window."""
        check_window(window, self)
        return self.values[window.slices]


def check_window(window: IndexWindow, grid: GridStore) -> None:
    """Raise GridIndexError if the window is not inside the grid."""
    if not (
        0 <= window.row_min <= window.row_max <= grid.n_rows
        and 0 <= window.col_min <= window.col_max <= grid.n_cols
    ):
        raise GridIndexError(
            f"Window rows [{window.row_min}, {window.row_max}) "
            f"cols [{window.col_min}, {window.col_max}) exceeds grid "
            f"of {grid.n_rows} x {grid.n_cols}"
        )


# ---------------------------------------------------------------------------
# Vector input
# ---------------------------------------------------------------------------

def _ring_array(ring) -> np.ndarray:
    return np.asarray(ring, dtype=np.float64)


@dataclass(frozen=True, eq=False)
class Polygon:
    """A polygon zone: one exterior ring plus zero or more hole rings.

    Rings are (N, 2) arrays of (x, y) vertices, implicitly closed.
    """
    id: Hashable
    exterior: np.ndarray
    holes: Tuple[np.ndarray, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "exterior", _ring_array(self.exterior))
        object.__setattr__(
            self, "holes", tuple(_ring_array(h) for h in self.holes)
        )

    @property
    def rings(self) -> Tuple[np.ndarray, ...]:
        return (self.exterior,) + self.holes

    @property
    def bbox(self) -> Tuple[float, float, float, float]:
        """(xmin, ymin, xmax, ymax) of the exterior ring."""
        ext = self.exterior.reshape(-1, 2)
        return (
            float(ext[:, 0].min()), float(ext[:, 1].min()),
            float(ext[:, 0].max()), float(ext[:, 1].max()),
        )


@dataclass(frozen=True, eq=False)
class MultiPolygon:
    """A multi-part zone. Produces one result row for all of its parts."""
    id: Hashable
    parts: Tuple[Polygon, ...]

    def __post_init__(self):
        object.__setattr__(self, "parts", tuple(self.parts))

    @property
    def bbox(self) -> Tuple[float, float, float, float]:
        boxes = np.array([p.bbox for p in self.parts])
        return (
            float(boxes[:, 0].min()), float(boxes[:, 1].min()),
            float(boxes[:, 2].max()), float(boxes[:, 3].max()),
        )


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ZonalRecord:
    """Per-polygon outcome of the zonal pipeline."""
    polygon_id: Hashable
    status: str                          # STATUS_OK | STATUS_EMPTY | STATUS_NO_OVERLAP
    window: Optional[IndexWindow]
    n_cells: int                         # captured cell centers, incl. no-data
    counts: Dict[int, int] = field(default_factory=dict)
    areas: Dict[int, float] = field(default_factory=dict)


@dataclass(frozen=True)
class PolygonFailure:
    """A polygon rejected before rasterization."""
    polygon_id: Hashable
    message: str


@dataclass(frozen=True)
class ZonalResult:
    """Result of a zonal class-area run."""
    table: ResultTable
    records: Tuple[ZonalRecord, ...]
    failures: Tuple[PolygonFailure, ...] = ()

    @property
    def failed_ids(self) -> Tuple[Hashable, ...]:
        return tuple(f.polygon_id for f in self.failures)
