"""Background task for zonal class-area computation.

Wraps the zonal workflow in a QgsTask for non-blocking execution.

Depends on: qgis.core, core.zonal_workflow.
"""

from typing import Optional

from qgis.core import Qgis, QgsMessageLog, QgsTask

from ..core.raster_reader import read_grid_store
from ..core.vector_io import read_polygons
from ..core.zonal_workflow import run_zonal_areas
from ..domain.models import ZonalResult

_LOG_TAG = "GeoZonal"


class ZonalTask(QgsTask):
    """Background task that computes per-class area for each polygon.

    Config keys:
        raster_path (required): classified raster.
        polygons: list of Polygon/MultiPolygon extracted on the main thread,
            or vector_path (+ optional id_field) to read them with OGR.
        n_workers, block_rows, check_simplicity, require_projected,
        include_classes: forwarded to the workflow.

    Usage:
        task = ZonalTask(config)
        task.taskCompleted.connect(on_done)
        QgsApplication.taskManager().addTask(task)
    """

    def __init__(self, config: dict):
        super().__init__("Computing zonal class areas", QgsTask.CanCancel)

        # COPY all data before task starts; never reference GUI objects
        self._raster_path: str = config["raster_path"]
        self._polygons: Optional[list] = (
            list(config["polygons"]) if config.get("polygons") is not None else None
        )
        self._vector_path: str = config.get("vector_path", "")
        self._id_field: Optional[str] = config.get("id_field") or None
        self._n_workers: int = config.get("n_workers", 1)
        self._block_rows: int = config.get("block_rows", 256)
        self._check_simplicity: bool = config.get("check_simplicity", True)
        self._require_projected: bool = config.get("require_projected", False)
        self._include_classes = tuple(config.get("include_classes", ()))

        # Results (populated in run(), read in finished())
        self.result: Optional[ZonalResult] = None
        self.exception: Optional[Exception] = None

    def run(self) -> bool:
        """Execute in background thread. NEVER touch GUI here."""
        try:
            QgsMessageLog.logMessage(
                "Starting zonal class-area computation...",
                _LOG_TAG, Qgis.Info,
            )

            grid = read_grid_store(
                self._raster_path, require_projected=self._require_projected,
            )

            polygons = self._polygons
            if polygons is None:
                polygons, _ = read_polygons(self._vector_path, self._id_field)

            self.setProgress(5)

            def progress(step, total):
                if self.isCanceled():
                    raise InterruptedError("Task cancelled")
                self.setProgress(5 + step / total * 95)

            self.result = run_zonal_areas(
                grid,
                polygons,
                n_workers=self._n_workers,
                block_rows=self._block_rows,
                check_simplicity=self._check_simplicity,
                include_classes=self._include_classes,
                progress_callback=progress,
            )

            for failure in self.result.failures:
                QgsMessageLog.logMessage(
                    f"Polygon {failure.polygon_id} skipped: {failure.message}",
                    _LOG_TAG, Qgis.Warning,
                )

            QgsMessageLog.logMessage(
                f"Zonal areas computed for {len(self.result.table)} polygons "
                f"({len(self.result.failures)} rejected, "
                f"{len(self.result.table.class_labels)} classes)",
                _LOG_TAG, Qgis.Info,
            )
            return True

        except InterruptedError:
            return False
        except Exception as e:
            self.exception = e
            QgsMessageLog.logMessage(
                f"Zonal computation failed: {e}", _LOG_TAG, Qgis.Critical,
            )
            return False

    def finished(self, success: bool):
        """Called on the main thread. Safe to update GUI here."""
        if self.exception:
            QgsMessageLog.logMessage(
                f"Error: {self.exception}", _LOG_TAG, Qgis.Critical,
            )

    def cancel(self):
        QgsMessageLog.logMessage(
            "Zonal task cancelled", _LOG_TAG, Qgis.Info,
        )
        super().cancel()
