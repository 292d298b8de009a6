"""Tests for scanline rasterization and the half-open boundary rule."""

import numpy as np
import pytest

from geozonal.domain.models import GridStore, IndexWindow, MultiPolygon, Polygon
from geozonal.domain.rasterizer import rasterize, rasterize_ring


def _full_window(grid):
    return IndexWindow(0, grid.n_rows, 0, grid.n_cols)


def _inside_ring(ring, x, y):
    """Crossing-number test, one point at a time, same half-open rule."""
    n = len(ring)
    count = 0
    for k in range(n):
        ax, ay = ring[k]
        bx, by = ring[(k + 1) % n]
        if by < ay:
            ax, ay, bx, by = bx, by, ax, ay
        if ay == by or not (ay <= y < by):
            continue
        xi = ax + (y - ay) * ((bx - ax) / (by - ay))
        if xi <= x:
            count += 1
    return count % 2 == 1


def _reference_mask(polygon, grid):
    mask = np.zeros(grid.shape, dtype=bool)
    for r in range(grid.n_rows):
        for c in range(grid.n_cols):
            x, y = grid.cell_center(r, c)
            if _inside_ring(polygon.exterior, x, y):
                mask[r, c] = not any(_inside_ring(h, x, y) for h in polygon.holes)
    return mask


class TestBoundaryRule:
    """Cell-center inclusion on and around polygon boundaries."""

    def test_single_cell_polygon(self, uniform_grid, make_square):
        # Vertices on the corners of the cell spanning x 2-3, y 3-4
        poly = make_square("cell", 2.0, 3.0, 1.0)
        mask = rasterize(poly, uniform_grid, _full_window(uniform_grid))
        np.testing.assert_array_equal(np.argwhere(mask), [[6, 2]])

    def test_vertices_on_cell_centers(self, uniform_grid, make_square):
        # Square (0.5, 0.5)-(2.5, 2.5): left/bottom centers in, right/top out
        poly = make_square("centers", 0.5, 0.5, 2.0)
        mask = rasterize(poly, uniform_grid, _full_window(uniform_grid))
        np.testing.assert_array_equal(
            np.argwhere(mask), [[8, 0], [8, 1], [9, 0], [9, 1]]
        )

    def test_orientation_does_not_matter(self, uniform_grid):
        ccw = Polygon("ccw", [(0.5, 0.5), (6.5, 1.5), (3.5, 7.5)])
        cw = Polygon("cw", [(3.5, 7.5), (6.5, 1.5), (0.5, 0.5)])
        window = _full_window(uniform_grid)
        np.testing.assert_array_equal(
            rasterize(ccw, uniform_grid, window),
            rasterize(cw, uniform_grid, window),
        )

    def test_closing_vertex_ignored(self, uniform_grid):
        open_ring = Polygon("open", [(1, 1), (5, 1), (5, 4)])
        closed_ring = Polygon("closed", [(1, 1), (5, 1), (5, 4), (1, 1)])
        window = _full_window(uniform_grid)
        np.testing.assert_array_equal(
            rasterize(open_ring, uniform_grid, window),
            rasterize(closed_ring, uniform_grid, window),
        )

    def test_shared_diagonal_assigned_once(self, uniform_grid):
        # The diagonal passes exactly through cell centers (k + 0.5, k + 0.5)
        whole = Polygon("whole", [(0.5, 0.5), (5.5, 0.5), (5.5, 5.5), (0.5, 5.5)])
        lower = Polygon("lower", [(0.5, 0.5), (5.5, 0.5), (5.5, 5.5)])
        upper = Polygon("upper", [(0.5, 0.5), (5.5, 5.5), (0.5, 5.5)])
        window = _full_window(uniform_grid)

        m_whole = rasterize(whole, uniform_grid, window)
        m_lower = rasterize(lower, uniform_grid, window)
        m_upper = rasterize(upper, uniform_grid, window)

        assert not np.any(m_lower & m_upper)
        np.testing.assert_array_equal(m_lower | m_upper, m_whole)
        assert m_whole.sum() == 25

    def test_sliver_captures_nothing(self, uniform_grid):
        sliver = Polygon("sliver", [(2.6, 0.0), (2.9, 0.0), (2.9, 10.0), (2.6, 10.0)])
        mask = rasterize(sliver, uniform_grid, _full_window(uniform_grid))
        assert not mask.any()


class TestHolesAndParts:
    """Hole subtraction and multi-part union."""

    def test_hole_subtracted(self, uniform_grid, make_square):
        hole = [(3.0, 3.0), (5.0, 3.0), (5.0, 5.0), (3.0, 5.0)]
        poly = make_square("donut", 1.0, 1.0, 6.0, holes=(hole,))
        mask = rasterize(poly, uniform_grid, _full_window(uniform_grid))
        assert mask.sum() == 36 - 4
        # Hole cell (center 3.5, 3.5) is row 6, col 3
        assert not mask[6, 3]

    def test_hole_partly_outside_exterior(self, uniform_grid, make_square):
        # Only the part of the hole inside the exterior removes cells
        hole = [(3.0, 3.0), (9.0, 3.0), (9.0, 5.0), (3.0, 5.0)]
        poly = make_square("bite", 1.0, 1.0, 4.0, holes=(hole,))
        mask = rasterize(poly, uniform_grid, _full_window(uniform_grid))
        assert mask.sum() == 16 - 4

    def test_multipolygon_union(self, uniform_grid, make_square):
        multi = MultiPolygon("multi", (
            make_square("a", 0.0, 0.0, 2.0),
            make_square("b", 6.0, 6.0, 3.0),
        ))
        mask = rasterize(multi, uniform_grid, _full_window(uniform_grid))
        assert mask.sum() == 4 + 9

    def test_overlapping_parts_counted_once(self, uniform_grid, make_square):
        multi = MultiPolygon("overlap", (
            make_square("a", 0.0, 0.0, 4.0),
            make_square("b", 2.0, 2.0, 4.0),
        ))
        mask = rasterize(multi, uniform_grid, _full_window(uniform_grid))
        assert mask.sum() == 16 + 16 - 4


class TestWindowing:
    """Masks depend only on absolute cell positions."""

    def test_sub_window_matches_full_mask(self, random_grid, zone_polygons):
        star = zone_polygons[0]
        full = rasterize(star, random_grid, _full_window(random_grid))
        window = IndexWindow(17, 123, 40, 201)
        sub = rasterize(star, random_grid, window)
        np.testing.assert_array_equal(sub, full[window.slices])

    def test_row_blocks_match_full_mask(self, random_grid, zone_polygons):
        donut = zone_polygons[1]
        window = IndexWindow(0, random_grid.n_rows, 0, random_grid.n_cols)
        full = rasterize(donut, random_grid, window)
        stacked = np.vstack([
            rasterize(donut, random_grid, block) for block in window.row_blocks(7)
        ])
        np.testing.assert_array_equal(stacked, full)

    def test_empty_window_shape(self, uniform_grid, make_square):
        mask = rasterize(make_square("a", 0, 0, 2), uniform_grid, IndexWindow(3, 3, 0, 4))
        assert mask.shape == (0, 4)

    def test_degenerate_ring_gives_empty_mask(self):
        mask = rasterize_ring(
            np.array([(0.0, 1.0), (5.0, 1.0)]), np.array([1.0]), np.array([0.5, 1.5])
        )
        assert mask.shape == (1, 2)
        assert not mask.any()


class TestAgainstReference:
    """Scanline masks equal a per-cell point-in-polygon test."""

    @pytest.mark.parametrize("index", [0, 1, 2])
    def test_matches_point_in_polygon(self, random_grid, zone_polygons, index):
        poly = zone_polygons[index]
        window = IndexWindow(0, 200, 0, 300)
        expected = _reference_mask(poly, random_grid)
        actual = rasterize(poly, random_grid, window)
        np.testing.assert_array_equal(actual, expected)

    def test_south_up_grid_matches_reference(self):
        grid = GridStore(np.zeros((40, 30)), (10.0, 0.5, 0.0, -5.0, 0.0, 0.5))
        poly = Polygon(
            "tri", [(11.1, -4.3), (24.2, 2.9), (13.7, 14.1)],
            holes=([(13.0, -1.0), (16.0, 0.0), (14.5, 3.3)],),
        )
        actual = rasterize(poly, grid, IndexWindow(0, 40, 0, 30))
        np.testing.assert_array_equal(actual, _reference_mask(poly, grid))
        assert actual.any()
