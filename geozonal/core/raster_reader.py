"""Raster reading utilities for GeoZonal.

Reads raster metadata and loads a single categorical band into an
immutable GridStore.

Depends on: GDAL, numpy.
"""

from typing import Optional

import numpy as np

from osgeo import gdal, osr

from ..domain.models import GridStore

# Raise Python exceptions instead of returning None
gdal.UseExceptions()


class GeographicCRSError(Exception):
    """Raised when projected map units are required but the CRS is geographic."""
    pass


def _open(raster_path: str):
    try:
        ds = gdal.Open(raster_path, gdal.GA_ReadOnly)
    except RuntimeError as e:
        raise FileNotFoundError(f"Cannot open raster: {raster_path}") from e
    if ds is None:
        raise FileNotFoundError(f"Cannot open raster: {raster_path}")
    return ds


def get_raster_info(raster_path: str) -> dict:
    """Read basic raster metadata without loading pixel data.

    Returns:
        dict with keys: width, height, crs_epsg, crs_is_geographic,
        pixel_size_x, pixel_size_y, extent (xmin, ymin, xmax, ymax),
        nodata, n_bands, dtype, geotransform
    """
    ds = _open(raster_path)

    gt = ds.GetGeoTransform()
    band = ds.GetRasterBand(1)
    srs = osr.SpatialReference()
    wkt = ds.GetProjection()
    if wkt:
        srs.ImportFromWkt(wkt)

    try:
        epsg = int(srs.GetAuthorityCode(None))
    except (TypeError, ValueError):
        epsg = 0  # Unknown CRS

    xs = (gt[0], gt[0] + gt[1] * ds.RasterXSize)
    ys = (gt[3], gt[3] + gt[5] * ds.RasterYSize)

    info = {
        "width": ds.RasterXSize,
        "height": ds.RasterYSize,
        "crs_epsg": epsg,
        "crs_is_geographic": bool(srs.IsGeographic()),
        "pixel_size_x": abs(gt[1]),
        "pixel_size_y": abs(gt[5]),
        "extent": (min(xs), min(ys), max(xs), max(ys)),
        "nodata": band.GetNoDataValue(),
        "n_bands": ds.RasterCount,
        "dtype": gdal.GetDataTypeName(band.DataType),
        "geotransform": gt,
    }

    ds = None  # close
    return info


def read_grid_store(
    raster_path: str,
    band_index: int = 1,
    require_projected: bool = False,
) -> GridStore:
    """Load one band of a categorical raster as a GridStore.

    Args:
        raster_path: Path to classified raster.
        band_index: Band to read (1-based). Other bands are ignored.
        require_projected: Reject geographic CRS, whose cell areas are
            in square degrees.

    Returns:
        GridStore with the band values, geotransform and nodata value.

    Raises:
        FileNotFoundError: If the raster cannot be opened.
        ValueError: If the band does not exist or the raster is rotated.
        GeographicCRSError: If require_projected and the CRS is geographic.
    """
    info = get_raster_info(raster_path)

    if require_projected and info["crs_is_geographic"]:
        raise GeographicCRSError(
            f"Raster CRS (EPSG:{info['crs_epsg']}) is geographic (degrees). "
            f"Area calculation requires a projected CRS. "
            f"Reproject the raster to a projected CRS (e.g., UTM) "
            f"before computing zonal areas."
        )

    gt = info["geotransform"]
    if gt[2] != 0 or gt[4] != 0:
        raise ValueError(
            f"Raster {raster_path} has a rotated geotransform; "
            f"warp it to a north-up grid first."
        )

    ds = _open(raster_path)
    if not 1 <= band_index <= ds.RasterCount:
        n_bands = ds.RasterCount
        ds = None
        raise ValueError(
            f"Band {band_index} not found; raster has {n_bands} band(s)"
        )

    band = ds.GetRasterBand(band_index)
    values = band.ReadAsArray()
    nodata: Optional[float] = band.GetNoDataValue()
    ds = None

    if nodata is not None and np.issubdtype(values.dtype, np.integer):
        nodata = int(nodata)

    return GridStore(values=values, geotransform=gt, nodata=nodata)
