"""Zonal class-area panel.

Wires GUI controls to the ZonalTask workflow and shows a short result
summary with a button to open the full per-polygon table.
"""

from qgis.PyQt.QtWidgets import (
    QCheckBox,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QSpinBox,
    QVBoxLayout,
    QWidget,
)
from qgis.gui import QgsFieldComboBox, QgsMapLayerComboBox
from qgis.core import (
    Qgis,
    QgsApplication,
    QgsMapLayerProxyModel,
    QgsTask,
    QgsUnitTypes,
)

from ..domain.models import MultiPolygon, Polygon

# Cross-version layer filter compatibility (3.34 vs 3.44+)
try:
    _RasterFilter = Qgis.LayerFilter.RasterLayer
    _PolygonFilter = Qgis.LayerFilter.PolygonLayer
except AttributeError:
    _RasterFilter = QgsMapLayerProxyModel.RasterLayer
    _PolygonFilter = QgsMapLayerProxyModel.PolygonLayer

# Cross-version distance unit compatibility (< 3.30 vs 3.30+)
try:
    _Metres = Qgis.DistanceUnit.Meters
    _NonLinearUnits = (Qgis.DistanceUnit.Degrees, Qgis.DistanceUnit.Unknown)
except AttributeError:
    _Metres = QgsUnitTypes.DistanceMeters
    _NonLinearUnits = (QgsUnitTypes.DistanceDegrees, QgsUnitTypes.DistanceUnknownUnit)


def map_unit_to_metre(crs):
    """Length of one map unit of crs in metres.

    Returns None for invalid or geographic CRS and for angular or
    unknown map units, where a hectare conversion would be wrong.
    """
    if not crs.isValid() or crs.isGeographic():
        return None
    units = crs.mapUnits()
    if units in _NonLinearUnits:
        return None
    factor = QgsUnitTypes.fromUnitToUnitFactor(units, _Metres)
    return factor if factor > 0 else None


def _ring_xy(ring):
    return [(p.x(), p.y()) for p in ring]


def _polygon_from_rings(zone_id, rings):
    return Polygon(
        id=zone_id,
        exterior=_ring_xy(rings[0]),
        holes=tuple(_ring_xy(r) for r in rings[1:]),
    )


def geometry_to_zone(zone_id, geom):
    """Convert a QgsGeometry to a domain Polygon/MultiPolygon (or None)."""
    if geom is None or geom.isEmpty():
        return None
    if geom.isMultipart():
        parts = [p for p in geom.asMultiPolygon() if p]
        if not parts:
            return None
        return MultiPolygon(
            id=zone_id,
            parts=tuple(_polygon_from_rings(zone_id, rings) for rings in parts),
        )
    rings = geom.asPolygon()
    if not rings:
        return None
    return _polygon_from_rings(zone_id, rings)


class ZonalPanel(QWidget):
    """Zonal areas tab.

    Workflow:
      1. User selects classified raster + polygon layer (+ id field)
      2. Run -> polygons extracted on the main thread, task launched
      3. Summary shown in panel; full table in a dialog
    """

    def __init__(self, iface, parent=None):
        super().__init__(parent)
        self.iface = iface
        self._last_result = None
        self._unit_to_metre = None
        self._current_task = None
        self._setup_ui()
        self._connect_signals()
        self._on_polygons_changed(self.cmb_polygons.currentLayer())

    def _setup_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(4, 4, 4, 4)

        # -- Input section --
        input_group = QGroupBox("Input Data")
        input_layout = QVBoxLayout(input_group)

        input_layout.addWidget(QLabel("Classified raster:"))
        self.cmb_raster = QgsMapLayerComboBox()
        self.cmb_raster.setFilters(_RasterFilter)
        input_layout.addWidget(self.cmb_raster)

        input_layout.addWidget(QLabel("Polygon zones:"))
        self.cmb_polygons = QgsMapLayerComboBox()
        self.cmb_polygons.setFilters(_PolygonFilter)
        input_layout.addWidget(self.cmb_polygons)

        input_layout.addWidget(QLabel("Zone id field (empty = feature id):"))
        self.cmb_id_field = QgsFieldComboBox()
        self.cmb_id_field.setAllowEmptyFieldName(True)
        input_layout.addWidget(self.cmb_id_field)

        layout.addWidget(input_group)

        # -- Options --
        options_group = QGroupBox("Options")
        options_layout = QVBoxLayout(options_group)

        workers_row = QHBoxLayout()
        workers_row.addWidget(QLabel("Worker threads:"))
        self.spin_workers = QSpinBox()
        self.spin_workers.setRange(1, 32)
        self.spin_workers.setValue(4)
        workers_row.addWidget(self.spin_workers)
        options_layout.addLayout(workers_row)

        self.chk_simplicity = QCheckBox("Reject self-intersecting polygons")
        self.chk_simplicity.setChecked(True)
        options_layout.addWidget(self.chk_simplicity)

        self.chk_projected = QCheckBox("Require projected CRS")
        self.chk_projected.setChecked(True)
        options_layout.addWidget(self.chk_projected)

        self.chk_hectares = QCheckBox("Report areas in hectares")
        self.chk_hectares.setChecked(True)
        options_layout.addWidget(self.chk_hectares)

        layout.addWidget(options_group)

        # -- Run button --
        self.btn_run = QPushButton("Compute Zonal Areas")
        self.btn_run.setMinimumHeight(36)
        layout.addWidget(self.btn_run)

        # -- Results section --
        self.results_group = QGroupBox("Results")
        self.results_group.setVisible(False)
        results_layout = QVBoxLayout(self.results_group)

        self.lbl_summary = QLabel()
        self.lbl_summary.setWordWrap(True)
        results_layout.addWidget(self.lbl_summary)

        self.btn_view_table = QPushButton("View Area Table")
        self.btn_view_table.setEnabled(False)
        results_layout.addWidget(self.btn_view_table)

        self.warnings_label = QLabel()
        self.warnings_label.setWordWrap(True)
        self.warnings_label.setStyleSheet(
            "QLabel { background-color: #FFF3CD; color: #664D03; "
            "border: 1px solid #FFECB5; border-radius: 4px; padding: 6px; }"
        )
        self.warnings_label.setVisible(False)
        results_layout.addWidget(self.warnings_label)

        layout.addWidget(self.results_group)
        layout.addStretch()

    def _connect_signals(self):
        self.cmb_polygons.layerChanged.connect(self._on_polygons_changed)
        self.btn_run.clicked.connect(self._on_run)
        self.btn_view_table.clicked.connect(self._on_view_table)

    # ------------------------------------------------------------------
    # Signal handlers
    # ------------------------------------------------------------------

    def _on_polygons_changed(self, layer):
        """Update field combo when polygon layer changes."""
        self.cmb_id_field.setLayer(layer)

    def _on_run(self):
        """Launch zonal computation task."""
        raster_layer = self.cmb_raster.currentLayer()
        polygon_layer = self.cmb_polygons.currentLayer()
        id_field = self.cmb_id_field.currentField()

        if not raster_layer:
            self._show_warning("Please select a classified raster.")
            return
        if not polygon_layer:
            self._show_warning("Please select a polygon layer.")
            return

        if polygon_layer.crs() != raster_layer.crs():
            self._show_error(
                "Polygon layer and raster use different CRS. "
                "Reproject one of them before computing zonal areas."
            )
            return

        # --- Extract polygons on the main thread (QGIS API) ---
        polygons = []
        skipped = 0
        for feature in polygon_layer.getFeatures():
            zone_id = feature[id_field] if id_field else feature.id()
            zone = geometry_to_zone(zone_id, feature.geometry())
            if zone is None:
                skipped += 1
                continue
            polygons.append(zone)

        if not polygons:
            self._show_warning("No polygon features found in the selected layer.")
            return

        if skipped > 0:
            self.iface.messageBar().pushMessage(
                "GeoZonal",
                f"{skipped} features skipped (null or empty geometry).",
                level=Qgis.Warning, duration=5,
            )

        self._unit_to_metre = map_unit_to_metre(raster_layer.crs())

        # --- Build config dict (all data copied, thread-safe) ---
        config = {
            "raster_path": raster_layer.source(),
            "polygons": polygons,
            "n_workers": self.spin_workers.value(),
            "check_simplicity": self.chk_simplicity.isChecked(),
            "require_projected": self.chk_projected.isChecked(),
        }

        self.btn_run.setEnabled(False)
        self.btn_run.setText("Running...")
        self.btn_view_table.setEnabled(False)
        self.results_group.setVisible(False)
        self.warnings_label.setVisible(False)

        from ..tasks.zonal_task import ZonalTask

        task = ZonalTask(config)
        self._current_task = task  # prevent garbage collection

        task.taskCompleted.connect(lambda: self._on_task_finished(True))
        task.taskTerminated.connect(lambda: self._on_task_finished(False))

        QgsApplication.taskManager().addTask(task)

    def cancel_running_task(self):
        """Cancel the zonal task if it is still queued or running."""
        task = self._current_task
        if task is None:
            return False
        if task.status() in (QgsTask.Queued, QgsTask.OnHold, QgsTask.Running):
            task.cancel()
            return True
        return False

    def _on_task_finished(self, success):
        """Handle zonal task completion on the main thread."""
        self.btn_run.setEnabled(True)
        self.btn_run.setText("Compute Zonal Areas")

        task, self._current_task = self._current_task, None
        if task is None:
            return

        if success and task.result is not None:
            self.display_results(task.result)
            self.iface.messageBar().pushMessage(
                "GeoZonal",
                f"Zonal areas computed for {len(task.result.table)} polygons.",
                level=Qgis.Success, duration=5,
            )
        else:
            msg = str(task.exception) if task.exception else "Task cancelled or failed."
            self._show_error(msg)

    def _on_view_table(self):
        """Open the per-polygon area table."""
        if self._last_result is None:
            self._show_warning("No results available. Run the computation first.")
            return

        from .results_dialog import ZonalAreaDialog

        unit_to_metre = None
        if self.chk_hectares.isChecked():
            unit_to_metre = self._unit_to_metre
            if unit_to_metre is None:
                self._show_warning(
                    "Raster map units are not linear (geographic or unknown "
                    "CRS); areas are shown in map units² instead of hectares."
                )

        dlg = ZonalAreaDialog(self._last_result, unit_to_metre=unit_to_metre, parent=self)
        dlg.exec_()

    # ------------------------------------------------------------------
    # Result display
    # ------------------------------------------------------------------

    def display_results(self, result):
        """Populate the results section from a ZonalResult."""
        self._last_result = result
        self.results_group.setVisible(True)

        table = result.table
        self.lbl_summary.setText(
            f"Polygons: {len(table)}\n"
            f"Classes found: {len(table.class_labels)}\n"
            f"Rejected polygons: {len(result.failures)}"
        )
        self.btn_view_table.setEnabled(len(table) > 0)

        if result.failures:
            shown = result.failures[:10]
            bullets = [f"• {f.polygon_id}: {f.message}" for f in shown]
            if len(result.failures) > len(shown):
                bullets.append(f"• ... and {len(result.failures) - len(shown)} more")
            self.warnings_label.setText("\n".join(bullets))
            self.warnings_label.setVisible(True)
        else:
            self.warnings_label.setVisible(False)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _show_warning(self, message):
        self.iface.messageBar().pushMessage(
            "GeoZonal", message, level=Qgis.Warning, duration=8,
        )

    def _show_error(self, message):
        self.iface.messageBar().pushMessage(
            "GeoZonal", message, level=Qgis.Critical, duration=10,
        )
