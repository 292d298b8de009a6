"""Main dock widget for GeoZonal plugin."""

from qgis.PyQt.QtCore import pyqtSignal
from qgis.PyQt.QtWidgets import QDockWidget, QVBoxLayout, QWidget


class GeoZonalDockWidget(QDockWidget):
    """Primary UI container, docked to the right side of QGIS."""

    closed = pyqtSignal()

    def __init__(self, iface, parent=None):
        super().__init__("GeoZonal", parent)
        self.iface = iface
        self._setup_ui()

    def _setup_ui(self):
        """Build the dock widget contents."""
        container = QWidget()
        layout = QVBoxLayout(container)
        layout.setContentsMargins(4, 4, 4, 4)

        # Import panel here to avoid circular imports at module level
        from .zonal_panel import ZonalPanel

        self.zonal_panel = ZonalPanel(self.iface)
        layout.addWidget(self.zonal_panel)
        self.setWidget(container)

    def closeEvent(self, event):
        self.closed.emit()
        event.accept()
