"""Test configuration for GeoZonal.

Domain and workflow tests run with plain pytest and numpy, no QGIS
needed. GDAL adapter tests are skipped when osgeo is not installed.
"""

import os
import sys

import numpy as np
import pytest

# Add the directory holding the plugin package to the path so
# `geozonal.*` imports work without installing
PLUGIN_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
REPO_DIR = os.path.dirname(PLUGIN_DIR)
if REPO_DIR not in sys.path:
    sys.path.insert(0, REPO_DIR)

from geozonal.domain.models import GridStore, Polygon  # noqa: E402


def square(zone_id, x0, y0, size, holes=()):
    """Axis-aligned square polygon with lower-left corner (x0, y0)."""
    return Polygon(
        id=zone_id,
        exterior=[(x0, y0), (x0 + size, y0), (x0 + size, y0 + size), (x0, y0 + size)],
        holes=holes,
    )


@pytest.fixture
def uniform_grid():
    """10x10 north-up grid, 1x1 cells, all class 3, extent (0,0)-(10,10)."""
    values = np.full((10, 10), 3, dtype=np.int32)
    return GridStore.from_origin(values, x_min=0.0, y_max=10.0,
                                 cell_width=1.0, cell_height=1.0, nodata=0)


@pytest.fixture
def striped_grid():
    """6x8 north-up grid, 1x1 cells, extent (0,0)-(8,6).

    Column c holds class (c // 2) + 1:  1 1 2 2 3 3 4 4
    The top row (row 0, y in [5, 6]) is no-data (0).
    """
    values = np.tile(np.repeat(np.arange(1, 5, dtype=np.int16), 2), (6, 1))
    values[0, :] = 0
    return GridStore.from_origin(values, x_min=0.0, y_max=6.0,
                                 cell_width=1.0, cell_height=1.0, nodata=0)


@pytest.fixture
def random_grid():
    """200x300 grid of 30 m cells with classes 1..6 and scattered no-data."""
    rng = np.random.RandomState(42)
    values = rng.randint(1, 7, size=(200, 300)).astype(np.uint8)
    values[rng.random_sample((200, 300)) < 0.05] = 255
    return GridStore.from_origin(values, x_min=500000.0, y_max=4200000.0,
                                 cell_width=30.0, cell_height=30.0, nodata=255)


@pytest.fixture
def zone_polygons():
    """A mix of polygons over random_grid's extent (x 500000-509000, y 4194000-4200000)."""
    star = Polygon(
        id="star",
        exterior=[
            (503000.0, 4195000.0), (504100.0, 4197300.0), (506500.0, 4197500.0),
            (504600.0, 4198400.0), (505200.0, 4199700.0), (503100.0, 4198700.0),
            (501000.0, 4199600.0), (501700.0, 4198000.0), (500300.0, 4196900.0),
            (502300.0, 4196800.0),
        ],
    )
    ring_with_hole = Polygon(
        id="donut",
        exterior=[(500500.0, 4194500.0), (503500.0, 4194500.0),
                  (503500.0, 4196500.0), (500500.0, 4196500.0)],
        holes=([(501500.0, 4195000.0), (502500.0, 4195000.0),
                (502500.0, 4196000.0), (501500.0, 4196000.0)],),
    )
    straddling = Polygon(
        id="edge",
        exterior=[(507000.0, 4193000.0), (510500.0, 4193500.0),
                  (509500.0, 4196000.0), (507500.0, 4195500.0)],
    )
    outside = square("outside", 600000.0, 4300000.0, 1000.0)
    return [star, ring_with_hole, straddling, outside]


@pytest.fixture
def make_square():
    """Factory for axis-aligned square polygons."""
    return square
