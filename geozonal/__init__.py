"""
GeoZonal: Class Areas by Zone

A QGIS plugin computing, for each polygon zone, the area covered by
every class of a categorical raster. Polygons are rasterized by cell
center with a fixed half-open boundary rule, so results are exact and
reproducible, and zones are processed in parallel.
"""


def classFactory(iface):
    """QGIS plugin entry point. Called by QGIS to load the plugin.

    Args:
        iface: QgisInterface reference providing access to the QGIS GUI.

    Returns:
        GeoZonalPlugin instance.
    """
    from .plugin import GeoZonalPlugin
    return GeoZonalPlugin(iface)
