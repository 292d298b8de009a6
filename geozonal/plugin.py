"""Main plugin class for GeoZonal."""

import os

from qgis.core import Qgis, QgsMessageLog
from qgis.PyQt.QtCore import Qt
from qgis.PyQt.QtGui import QIcon
from qgis.PyQt.QtWidgets import QAction

from .gui.dock_widget import GeoZonalDockWidget

_MENU = "&GeoZonal"


class GeoZonalPlugin:
    """QGIS entry point: one Raster-menu/toolbar action toggling the
    zonal areas dock.

    On unload, a zonal computation still queued or running is cancelled
    before the dock is torn down, so no task reports into a deleted panel.
    """

    def __init__(self, iface):
        self.iface = iface
        self.plugin_dir = os.path.dirname(__file__)
        self.dock_widget = None
        self.action = None

    def initGui(self):
        icon_path = os.path.join(self.plugin_dir, "icon.png")
        icon = QIcon(icon_path) if os.path.exists(icon_path) else QIcon()

        self.action = QAction(icon, "Zonal Class Areas", self.iface.mainWindow())
        self.action.setObjectName("geozonalZonalAreas")
        self.action.setToolTip(
            "Per-polygon area of every class in a categorical raster"
        )
        self.action.setCheckable(True)
        self.action.toggled.connect(self._set_dock_visible)

        self.iface.addRasterToolBarIcon(self.action)
        self.iface.addPluginToRasterMenu(_MENU, self.action)

        self.dock_widget = GeoZonalDockWidget(self.iface)
        self.dock_widget.setObjectName("GeoZonalDock")
        self.iface.addDockWidget(Qt.RightDockWidgetArea, self.dock_widget)
        self.dock_widget.hide()
        self.dock_widget.visibilityChanged.connect(self.action.setChecked)

    def unload(self):
        if self.dock_widget is not None:
            if self.dock_widget.zonal_panel.cancel_running_task():
                QgsMessageLog.logMessage(
                    "Plugin unloaded; running zonal task cancelled",
                    "GeoZonal", Qgis.Info,
                )
            self.iface.removeDockWidget(self.dock_widget)
            self.dock_widget.deleteLater()
            self.dock_widget = None

        if self.action is not None:
            self.iface.removeRasterToolBarIcon(self.action)
            self.iface.removePluginRasterMenu(_MENU, self.action)
            self.action = None

    def _set_dock_visible(self, visible):
        if self.dock_widget is not None:
            self.dock_widget.setVisible(visible)
