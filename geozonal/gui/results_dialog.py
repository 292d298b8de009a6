"""Results display dialog for GeoZonal.

Shows the dense polygon x class area table.
"""

from qgis.PyQt.QtCore import Qt
from qgis.PyQt.QtWidgets import (
    QDialog,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QPushButton,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
)

from ..domain.models import ZonalResult


class ZonalAreaDialog(QDialog):
    """Dialog showing per-polygon class areas as a table.

    Args:
        result: Zonal run result.
        unit_to_metre: Length of one raster map unit in metres. When
            given, areas are shown in hectares; None shows them in map
            units² (geographic or unknown units).
    """

    def __init__(self, result: ZonalResult, unit_to_metre=None, parent=None):
        super().__init__(parent)
        self.setWindowTitle("GeoZonal: Class Areas by Zone")
        self.setMinimumSize(700, 450)
        self._result = result
        if unit_to_metre is not None:
            self._table = result.table.to_hectares(unit_to_metre)
            self._unit = "ha"
        else:
            self._table = result.table
            self._unit = "map units²"
        self._build_ui()

    def _build_ui(self):
        layout = QVBoxLayout(self)
        layout.addWidget(QLabel(f"Areas in {self._unit}"))
        layout.addWidget(self._create_table_widget())

        btn_row = QHBoxLayout()
        btn_row.addStretch()
        btn_close = QPushButton("Close")
        btn_close.clicked.connect(self.close)
        btn_row.addWidget(btn_close)
        layout.addLayout(btn_row)

    def _create_table_widget(self):
        table = self._table
        labels = [str(lbl) for lbl in table.class_labels]
        areas = table.to_array()
        totals = areas.sum(axis=1)
        ids = table.polygon_ids
        k = len(labels)

        widget = QTableWidget(len(ids), k + 1)
        widget.setHorizontalHeaderLabels(labels + ["Total"])
        widget.setVerticalHeaderLabels([str(pid) for pid in ids])

        for i in range(len(ids)):
            for j in range(k + 1):
                value = areas[i, j] if j < k else totals[i]
                item = QTableWidgetItem(f"{value:,.4f}")
                item.setTextAlignment(Qt.AlignRight | Qt.AlignVCenter)
                item.setFlags(item.flags() & ~Qt.ItemIsEditable)
                widget.setItem(i, j, item)

        widget.horizontalHeader().setSectionResizeMode(QHeaderView.Stretch)
        return widget
