"""Zonal class-area workflow orchestrator.

Coordinates the per-polygon pipeline:
validate -> locate window -> rasterize -> accumulate -> convert,
and runs it over a polygon batch, sequentially or on a thread pool.
Results are assembled in polygon input order either way.

Depends on: domain.*.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Iterable, List, Optional, Sequence, Union

from ..domain.accumulator import accumulate_counts, merge_counts
from ..domain.area import counts_to_area
from ..domain.geometry import InvalidGeometryError, validate_polygon
from ..domain.models import (
    STATUS_EMPTY,
    STATUS_NO_OVERLAP,
    STATUS_OK,
    GridStore,
    MultiPolygon,
    Polygon,
    PolygonFailure,
    ZonalRecord,
    ZonalResult,
)
from ..domain.rasterizer import rasterize
from ..domain.result_table import ResultTable
from ..domain.window import locate_window

Geometry = Union[Polygon, MultiPolygon]
Outcome = Union[ZonalRecord, PolygonFailure]


def compute_zone(
    grid: GridStore,
    geometry: Geometry,
    block_rows: int = 256,
    check_simplicity: bool = True,
) -> ZonalRecord:
    """Run the zonal pipeline for a single polygon.

    The polygon's index window is processed in row blocks so that the
    inclusion mask never exceeds block_rows x window columns.

    Args:
        grid: Shared, read-only grid.
        geometry: Polygon or MultiPolygon in grid coordinates.
        block_rows: Rows per mask partition.
        check_simplicity: Run the ring self-intersection check.

    Returns:
        ZonalRecord with counts and areas (empty for no overlap).

    Raises:
        InvalidGeometryError: If the polygon fails the precheck.
    """
    validate_polygon(geometry, check_simplicity=check_simplicity)

    bbox = geometry.bbox
    window = locate_window(bbox, grid)
    if window is None:
        status = STATUS_EMPTY if grid.intersects(bbox) else STATUS_NO_OVERLAP
        return ZonalRecord(
            polygon_id=geometry.id, status=status, window=None, n_cells=0,
        )

    n_cells = 0
    partial_counts = []
    for block in window.row_blocks(block_rows):
        mask = rasterize(geometry, grid, block)
        n_cells += int(mask.sum())
        partial_counts.append(
            accumulate_counts(mask, grid.read_window(block), grid.nodata)
        )

    counts = merge_counts(*partial_counts)
    return ZonalRecord(
        polygon_id=geometry.id,
        status=STATUS_OK if n_cells > 0 else STATUS_EMPTY,
        window=window,
        n_cells=n_cells,
        counts=counts,
        areas=counts_to_area(counts, grid.cell_area),
    )


def _process(
    grid: GridStore,
    geometry: Geometry,
    block_rows: int,
    check_simplicity: bool,
) -> Outcome:
    """Per-polygon boundary: geometry failures become PolygonFailure."""
    try:
        return compute_zone(grid, geometry, block_rows, check_simplicity)
    except InvalidGeometryError as e:
        return PolygonFailure(polygon_id=geometry.id, message=str(e))


def run_zonal_areas(
    grid: GridStore,
    polygons: Iterable[Geometry],
    n_workers: int = 1,
    block_rows: int = 256,
    check_simplicity: bool = True,
    include_classes: Optional[Sequence[int]] = None,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> ZonalResult:
    """Compute per-class area for every polygon.

    Args:
        grid: Categorical grid (shared read-only by all workers).
        polygons: Polygons/MultiPolygons in grid coordinates.
        n_workers: Worker threads. 1 (or less) runs sequentially;
            results are identical either way.
        block_rows: Rows per mask partition within a polygon.
        check_simplicity: Reject self-intersecting rings.
        include_classes: Class labels always reported as table columns,
            even if absent from every polygon.
        progress_callback: Optional (done, total) reporter, called on the
            calling thread after each polygon. Raising from it (e.g.
            InterruptedError on cancel) stops the run.

    Returns:
        ZonalResult. Rejected polygons are omitted from the table and
        listed in result.failures.
    """
    if block_rows < 1:
        raise ValueError(f"block_rows must be >= 1, got {block_rows}")

    geometries: List[Geometry] = list(polygons)
    total = len(geometries)
    outcomes: List[Optional[Outcome]] = [None] * total

    if n_workers <= 1 or total <= 1:
        for i, geometry in enumerate(geometries):
            outcomes[i] = _process(grid, geometry, block_rows, check_simplicity)
            if progress_callback:
                progress_callback(i + 1, total)
    else:
        with ThreadPoolExecutor(max_workers=n_workers) as pool:
            futures = {
                pool.submit(_process, grid, geometry, block_rows, check_simplicity): i
                for i, geometry in enumerate(geometries)
            }
            try:
                for done, future in enumerate(as_completed(futures), start=1):
                    outcomes[futures[future]] = future.result()
                    if progress_callback:
                        progress_callback(done, total)
            except BaseException:
                for future in futures:
                    future.cancel()
                raise

    # Assemble in input order
    table = ResultTable()
    records: List[ZonalRecord] = []
    failures: List[PolygonFailure] = []
    for outcome in outcomes:
        if isinstance(outcome, PolygonFailure):
            failures.append(outcome)
            continue
        records.append(outcome)
        table.append(outcome.polygon_id, outcome.areas)

    table.finalize(extra_labels=include_classes or ())

    return ZonalResult(
        table=table,
        records=tuple(records),
        failures=tuple(failures),
    )
