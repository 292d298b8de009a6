"""Cell count to area conversion.

Areas are in the grid's native squared linear unit. Unit conversion
(e.g. to hectares) is a separate post-processing step.

No QGIS or Qt imports. Pure Python.
"""

from typing import Dict, Mapping

# 1 ha = 10,000 m²
SQUARE_METRES_PER_HECTARE = 10000.0


def counts_to_area(counts: Mapping[int, int], cell_area: float) -> Dict[int, float]:
    """Multiply each class count by the cell area.

    Args:
        counts: {class_value: cell_count}.
        cell_area: Cell width x height in map units squared.

    Returns:
        {class_value: area} in map units squared, same key order.
    """
    if not cell_area > 0:
        raise ValueError(f"Cell area must be positive, got {cell_area}")
    return {label: count * cell_area for label, count in counts.items()}


def to_hectares(areas: Mapping[int, float], unit_to_metre: float = 1.0) -> Dict[int, float]:
    """Convert areas in map units squared to hectares.

    Args:
        areas: {class_value: area in map units squared}.
        unit_to_metre: Length of one map unit in metres (1.0 for metric
            projected CRS, 0.3048 for international feet).
    """
    factor = unit_to_metre * unit_to_metre / SQUARE_METRES_PER_HECTARE
    return {label: area * factor for label, area in areas.items()}
