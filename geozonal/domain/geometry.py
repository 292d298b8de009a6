"""Polygon ring normalization and validity prechecks.

Checks are per polygon and deliberately basic: vertex count, finite
coordinates, non-zero area and (optionally) ring simplicity. Topology
between polygons (overlaps, gaps) is never checked.

No QGIS or Qt imports. Only depends on: numpy.
"""

from typing import Union

import numpy as np

from .models import MultiPolygon, Polygon


class InvalidGeometryError(ValueError):
    """Raised when a polygon fails the geometry precheck."""
    pass


def normalize_ring(ring: np.ndarray) -> np.ndarray:
    """Return an (N, 2) float ring without the closing or repeated vertices.

    Raises:
        InvalidGeometryError: If the ring is not an (N, 2) coordinate array.
    """
    coords = np.asarray(ring, dtype=np.float64)
    if coords.ndim != 2 or coords.shape[1] != 2:
        raise InvalidGeometryError(
            f"Ring must be an (N, 2) array of (x, y) vertices, "
            f"got shape {coords.shape}"
        )
    if len(coords) == 0:
        return coords

    # Drop consecutive duplicates (includes an explicit closing vertex)
    nxt = np.roll(coords, -1, axis=0)
    keep = np.any(coords != nxt, axis=1)
    if not keep.any():
        return coords[:1]
    return coords[keep]


def ring_signed_area(ring: np.ndarray) -> float:
    """Shoelace area; positive for counter-clockwise rings."""
    x = ring[:, 0]
    y = ring[:, 1]
    return 0.5 * float(np.dot(x, np.roll(y, -1)) - np.dot(np.roll(x, -1), y))


def _orient(ax, ay, bx, by, cx, cy):
    """Sign of the cross product (b - a) x (c - a)."""
    return np.sign((bx - ax) * (cy - ay) - (by - ay) * (cx - ax))


def _within(px, py, qx, qy, rx, ry):
    """True where r lies inside the bounding box of segment p-q."""
    return (
        (np.minimum(px, qx) <= rx) & (rx <= np.maximum(px, qx))
        & (np.minimum(py, qy) <= ry) & (ry <= np.maximum(py, qy))
    )


def _segments_meet(px, py, qx, qy, rx, ry, sx, sy) -> np.ndarray:
    """True where segment p-q crosses or touches segment r-s."""
    d1 = _orient(rx, ry, sx, sy, px, py)
    d2 = _orient(rx, ry, sx, sy, qx, qy)
    d3 = _orient(px, py, qx, qy, rx, ry)
    d4 = _orient(px, py, qx, qy, sx, sy)

    proper = (d1 * d2 < 0) & (d3 * d4 < 0)
    touch = (
        ((d1 == 0) & _within(rx, ry, sx, sy, px, py))
        | ((d2 == 0) & _within(rx, ry, sx, sy, qx, qy))
        | ((d3 == 0) & _within(px, py, qx, qy, rx, ry))
        | ((d4 == 0) & _within(px, py, qx, qy, sx, sy))
    )
    return proper | touch


# Max candidate edge pairs tested per vectorized batch
_PAIR_BATCH = 1 << 18


def is_simple_ring(ring: np.ndarray) -> bool:
    """True if no two non-adjacent edges of the ring touch or cross.

    Edges are sorted by their lowest y and only pairs whose y-ranges
    overlap are tested, found with a searchsorted sweep. Candidate pairs
    are tested in vectorized batches of at most _PAIR_BATCH, so typical
    rings cost O(n log n); rings whose edges all share one y-band
    degrade to O(n²) pairs but memory stays bounded.
    """
    n = len(ring)
    if n < 4:
        return True  # a non-degenerate triangle is always simple

    ax, ay = ring[:, 0], ring[:, 1]
    bx, by = np.roll(ax, -1), np.roll(ay, -1)
    ymin, ymax = np.minimum(ay, by), np.maximum(ay, by)
    xmin, xmax = np.minimum(ax, bx), np.maximum(ax, bx)

    # Sorted position k pairs with positions k+1 .. end[k]-1
    order = np.argsort(ymin, kind="stable")
    end = np.searchsorted(ymin[order], ymax[order], side="right")
    start = np.arange(1, n + 1)
    counts = np.maximum(end - start, 0)
    cum = np.cumsum(counts)

    k0 = 0
    while k0 < n:
        base = cum[k0 - 1] if k0 > 0 else 0
        k1 = int(np.searchsorted(cum, base + _PAIR_BATCH, side="right"))
        k1 = max(k1, k0 + 1)

        c = counts[k0:k1]
        total = int(c.sum())
        if total:
            first = np.repeat(np.arange(k0, k1), c)
            offsets = np.arange(total) - np.repeat(np.cumsum(c) - c, c)
            second = np.repeat(start[k0:k1], c) + offsets
            i, j = order[first], order[second]

            gap = np.abs(i - j)
            keep = (
                (gap != 1) & (gap != n - 1)
                & (xmin[i] <= xmax[j]) & (xmin[j] <= xmax[i])
            )
            i, j = i[keep], j[keep]
            if len(i) and np.any(_segments_meet(
                ax[i], ay[i], bx[i], by[i], ax[j], ay[j], bx[j], by[j],
            )):
                return False

        k0 = k1

    return True


def validate_ring(ring: np.ndarray, check_simplicity: bool = True) -> np.ndarray:
    """Normalize a ring and check it is usable for rasterization.

    Returns:
        The normalized ring.

    Raises:
        InvalidGeometryError: On non-finite coordinates, fewer than 3
            distinct vertices, zero area or (optionally) self-intersection.
    """
    coords = normalize_ring(ring)
    if not np.all(np.isfinite(coords)):
        raise InvalidGeometryError("Ring has non-finite coordinates")
    if len(coords) < 3:
        raise InvalidGeometryError(
            f"Ring has {len(coords)} distinct vertices; at least 3 required"
        )
    if ring_signed_area(coords) == 0.0:
        raise InvalidGeometryError("Ring has zero area")
    if check_simplicity and not is_simple_ring(coords):
        raise InvalidGeometryError("Ring is self-intersecting")
    return coords


def validate_polygon(
    geometry: Union[Polygon, MultiPolygon],
    check_simplicity: bool = True,
) -> None:
    """Validate every ring of a polygon or multi-polygon.

    Raises:
        InvalidGeometryError: With the failing ring identified.
    """
    if isinstance(geometry, MultiPolygon):
        if not geometry.parts:
            raise InvalidGeometryError("MultiPolygon has no parts")
        for k, part in enumerate(geometry.parts):
            try:
                validate_polygon(part, check_simplicity)
            except InvalidGeometryError as e:
                raise InvalidGeometryError(f"Part {k}: {e}") from e
        return

    try:
        validate_ring(geometry.exterior, check_simplicity)
    except InvalidGeometryError as e:
        raise InvalidGeometryError(f"Exterior ring: {e}") from e

    for k, hole in enumerate(geometry.holes):
        try:
            validate_ring(hole, check_simplicity)
        except InvalidGeometryError as e:
            raise InvalidGeometryError(f"Hole {k}: {e}") from e
