"""Per-polygon class-area table.

Rows are appended in polygon input order. The run-global class set is
only known once every polygon has been processed, so the table is
densified in a single finalize() step: every row then carries an area
for every class label, with 0.0 where the class is absent.

No QGIS or Qt imports. Only depends on: numpy.
"""

from dataclasses import dataclass
from typing import Any, Dict, Hashable, Iterable, List, Mapping, Tuple

import numpy as np

from .area import to_hectares


@dataclass(frozen=True)
class ResultRow:
    """One polygon's dense per-class areas (ascending class label order)."""
    polygon_id: Hashable
    areas: Dict[int, float]

    @property
    def total_area(self) -> float:
        return float(sum(self.areas.values()))


class ResultTable:
    """Ordered polygon x class area table.

    Usage:
        table = ResultTable()
        table.append("zone-a", {3: 16.0})
        table.append("zone-b", {})
        table.finalize()
        table.class_labels   # (3,)
        table.to_array()     # [[16.0], [0.0]]
    """

    def __init__(self):
        self._ids: List[Hashable] = []
        self._sparse: List[Dict[int, float]] = []
        self._class_labels: Tuple[int, ...] = ()
        self._dense: List[ResultRow] = []
        self._finalized = False

    def __len__(self) -> int:
        return len(self._ids)

    @property
    def is_finalized(self) -> bool:
        return self._finalized

    def append(self, polygon_id: Hashable, areas: Mapping[int, float]) -> None:
        if self._finalized:
            raise RuntimeError("Cannot append to a finalized ResultTable")
        self._ids.append(polygon_id)
        self._sparse.append({int(k): float(v) for k, v in areas.items()})

    def finalize(self, extra_labels: Iterable[int] = ()) -> "ResultTable":
        """Densify all rows over the run-global class set.

        Args:
            extra_labels: Class labels to report even if no polygon
                contains them (e.g. every class of a legend).

        Returns:
            self, for chaining.
        """
        if self._finalized:
            raise RuntimeError("ResultTable is already finalized")

        labels = {int(v) for v in extra_labels}
        for areas in self._sparse:
            labels.update(k for k, v in areas.items() if v != 0)
        self._class_labels = tuple(sorted(labels))

        self._dense = [
            ResultRow(
                polygon_id=pid,
                areas={label: areas.get(label, 0.0) for label in self._class_labels},
            )
            for pid, areas in zip(self._ids, self._sparse)
        ]
        self._finalized = True
        return self

    # ------------------------------------------------------------------
    # Finalized views
    # ------------------------------------------------------------------

    def _require_finalized(self):
        if not self._finalized:
            raise RuntimeError(
                "ResultTable has not been finalized; call finalize() "
                "after all polygons are appended"
            )

    @property
    def class_labels(self) -> Tuple[int, ...]:
        self._require_finalized()
        return self._class_labels

    @property
    def polygon_ids(self) -> Tuple[Hashable, ...]:
        return tuple(self._ids)

    def rows(self) -> List[ResultRow]:
        self._require_finalized()
        return list(self._dense)

    def to_array(self) -> np.ndarray:
        """(n_polygons x n_classes) float array in class_labels order."""
        self._require_finalized()
        arr = np.zeros((len(self._dense), len(self._class_labels)), dtype=np.float64)
        for i, row in enumerate(self._dense):
            for j, label in enumerate(self._class_labels):
                arr[i, j] = row.areas[label]
        return arr

    def total_areas(self) -> np.ndarray:
        """Total classified area per polygon (no-data excluded)."""
        return self.to_array().sum(axis=1)

    def to_records(self, id_key: str = "polygon_id") -> List[Dict[str, Any]]:
        """Rows as flat dicts: {id_key: id, "<label>": area, ...}."""
        self._require_finalized()
        records = []
        for row in self._dense:
            rec: Dict[str, Any] = {id_key: row.polygon_id}
            for label, area in row.areas.items():
                rec[str(label)] = area
            records.append(rec)
        return records

    def to_hectares(self, unit_to_metre: float = 1.0) -> "ResultTable":
        """New finalized table with every area converted to hectares."""
        self._require_finalized()
        converted = ResultTable()
        for row in self._dense:
            converted.append(row.polygon_id, to_hectares(row.areas, unit_to_metre))
        return converted.finalize(extra_labels=self._class_labels)
