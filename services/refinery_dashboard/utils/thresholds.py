# services/refinery_dashboard/utils/thresholds.py

from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

NORMAL = "normal"
WARNING = "warning"
CRITICAL = "critical"
UNKNOWN = "unknown"

# Water parameter name -> column of water_treatment_data
WATER_PARAMETER_COLUMNS = {
    "ph": "ph_level",
    "ta": "ta_level",
    "tac": "tac_level",
    "th": "th_level",
    "sio2": "sio2_level",
    "chlore": "chlore_libre",
    "phosphate": "phosphates",
    "temperature": "temperature",
    "pressure": "pressure",
    "flow_rate": "flow_rate",
}

# Reference limits of the lab sheet, used when no limit is configured
# for an equipment type.
COOLING_WATER_LIMITS = {
    "ph": {"min": 8.1, "max": 8.3},
    "ta": {"min": 20, "max": 40},
    "tac": {"min": 40, "max": 70},
    "th": {"max": 0.2},
    "sio2": {"max": 150},
    "chlore": {"max": 0.2},
}

BOILER_WATER_LIMITS = {
    "ph": {"min": 10.5, "max": 12},
    "ta": {"min": 30, "max": 60},
    "tac": {"min": 60, "max": 120},
    "sio2": {"min": 20, "max": 40},
    "phosphate": {"min": 30, "max": 60},
}

DEFAULT_WATER_LIMITS = {
    "circulation": COOLING_WATER_LIMITS,
    "tour_refroidissement": COOLING_WATER_LIMITS,
    "chaudiere": BOILER_WATER_LIMITS,
}


def is_out_of_range(value: Optional[float],
                    min_value: Optional[float] = None,
                    max_value: Optional[float] = None) -> bool:
    """True when the value is below a present min or above a present max."""
    if value is None:
        return False
    if min_value is not None and value < min_value:
        return True
    if max_value is not None and value > max_value:
        return True
    return False


def classify(value: Optional[float], threshold: Any) -> str:
    """
    Grades a value against a threshold with a warning and a critical band.
    The critical band is checked first.
    """
    if value is None:
        return UNKNOWN
    if is_out_of_range(value, _attr(threshold, "critical_min"), _attr(threshold, "critical_max")):
        return CRITICAL
    if is_out_of_range(value, _attr(threshold, "warning_min"), _attr(threshold, "warning_max")):
        return WARNING
    return NORMAL


def limits_for(equipment_type: Optional[str], configured: Iterable[Any]) -> List[Dict[str, Any]]:
    """
    Limits applicable to one equipment type as plain dicts.
    Configured rows win, the reference tables are only a fallback.
    """
    rows = [
        {
            "parameter_name": _attr(limit, "parameter_name"),
            "min_value": _attr(limit, "min_value"),
            "max_value": _attr(limit, "max_value"),
            "unit": _attr(limit, "unit"),
        }
        for limit in configured
        if _attr(limit, "equipment_type") == equipment_type
    ]
    if rows:
        return rows

    defaults = DEFAULT_WATER_LIMITS.get(equipment_type or "", {})
    return [
        {
            "parameter_name": name,
            "min_value": bounds.get("min"),
            "max_value": bounds.get("max"),
            "unit": None,
        }
        for name, bounds in defaults.items()
    ]


def evaluate_reading(reading: Any, configured_limits: Iterable[Any]) -> List[Dict[str, Any]]:
    """Out-of-range parameters of one water reading."""
    violations = []
    for limit in limits_for(_attr(reading, "equipment_type"), configured_limits):
        name = limit["parameter_name"]
        column = WATER_PARAMETER_COLUMNS.get(name, name)
        value = _attr(reading, column)
        if is_out_of_range(value, limit["min_value"], limit["max_value"]):
            violations.append(
                {
                    "parameter_name": name,
                    "value": value,
                    "min_value": limit["min_value"],
                    "max_value": limit["max_value"],
                    "unit": limit["unit"],
                }
            )
    return violations


def standard_applies(standard: Any, on: datetime | date | None) -> bool:
    """Whether a commercial standard is valid on the given test date."""
    if on is None:
        return True
    day = on.date() if isinstance(on, datetime) else on
    valid_from = _attr(standard, "valid_from")
    valid_to = _attr(standard, "valid_to")
    if valid_from is not None and day < valid_from:
        return False
    if valid_to is not None and day > valid_to:
        return False
    return True


def check_conformity(test: Any, standards: Iterable[Any]) -> List[Dict[str, Any]]:
    """
    Compares a product test with the commercial standards of its product.
    Each entry reports one parameter; parameters the test does not carry
    are reported with value None and conforming True.
    """
    results = []
    for standard in standards:
        if _attr(standard, "product_name") != _attr(test, "product_name"):
            continue
        if not standard_applies(standard, _attr(test, "test_date")):
            continue
        name = _attr(standard, "parameter_name")
        value = _attr(test, name)
        if not isinstance(value, (int, float)) or isinstance(value, bool):
            value = None
        results.append(
            {
                "parameter_name": name,
                "value": value,
                "min_value": _attr(standard, "min_value"),
                "max_value": _attr(standard, "max_value"),
                "unit": _attr(standard, "unit"),
                "conforming": not is_out_of_range(
                    value, _attr(standard, "min_value"), _attr(standard, "max_value")
                ),
            }
        )
    return results


def _attr(obj: Any, key: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)
