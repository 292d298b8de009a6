"""Vector I/O for GeoZonal.

Reads polygon zones from vector layers (GeoPackage, Shapefile, ...).

Depends on: GDAL/OGR, numpy.
"""

from typing import List, Optional, Tuple, Union

import numpy as np

from osgeo import ogr

from ..domain.models import MultiPolygon, Polygon

ogr.UseExceptions()


def _ring_coords(ring_geom) -> np.ndarray:
    points = ring_geom.GetPoints() or []
    if not points:
        return np.empty((0, 2))
    return np.asarray(points, dtype=np.float64)[:, :2]


def _polygon_from_ogr(geom, feature_id) -> Polygon:
    rings = [
        _ring_coords(geom.GetGeometryRef(i))
        for i in range(geom.GetGeometryCount())
    ]
    if not rings:
        return Polygon(id=feature_id, exterior=np.empty((0, 2)))
    return Polygon(id=feature_id, exterior=rings[0], holes=tuple(rings[1:]))


def read_polygons(
    vector_path: str,
    id_field: Optional[str] = None,
    layer_index: int = 0,
) -> Tuple[List[Union[Polygon, MultiPolygon]], int]:
    """Read polygon zones and their identifiers.

    Args:
        vector_path: Path to vector file (GeoPackage, Shapefile, etc.).
        id_field: Attribute holding the zone identifier. None uses the
            feature FID.
        layer_index: Layer index within the file.

    Returns:
        (geometries, epsg):
          geometries: Polygon / MultiPolygon list in feature order.
            Null and non-polygonal geometries are skipped.
          epsg: CRS EPSG code (0 if unknown).
    """
    try:
        ds = ogr.Open(vector_path, 0)
    except RuntimeError as e:
        raise FileNotFoundError(f"Cannot open vector: {vector_path}") from e
    if ds is None:
        raise FileNotFoundError(f"Cannot open vector: {vector_path}")

    layer = ds.GetLayer(layer_index)
    if layer is None:
        raise ValueError(f"No layer at index {layer_index} in {vector_path}")

    srs = layer.GetSpatialRef()
    try:
        epsg = int(srs.GetAuthorityCode(None)) if srs else 0
    except (TypeError, ValueError):
        epsg = 0

    if id_field is not None:
        layer_defn = layer.GetLayerDefn()
        if layer_defn.GetFieldIndex(id_field) < 0:
            available = [
                layer_defn.GetFieldDefn(i).GetName()
                for i in range(layer_defn.GetFieldCount())
            ]
            raise ValueError(
                f"Field '{id_field}' not found. "
                f"Available fields: {available}"
            )

    geometries: List[Union[Polygon, MultiPolygon]] = []
    layer.ResetReading()
    for feature in layer:
        geom = feature.GetGeometryRef()
        if geom is None:
            continue

        zone_id = feature.GetField(id_field) if id_field else feature.GetFID()

        geom_type = ogr.GT_Flatten(geom.GetGeometryType())
        if geom_type == ogr.wkbPolygon:
            geometries.append(_polygon_from_ogr(geom, zone_id))
        elif geom_type == ogr.wkbMultiPolygon:
            parts = tuple(
                _polygon_from_ogr(geom.GetGeometryRef(i), zone_id)
                for i in range(geom.GetGeometryCount())
            )
            geometries.append(MultiPolygon(id=zone_id, parts=parts))

    ds = None

    return geometries, epsg
