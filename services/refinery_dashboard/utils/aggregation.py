# services/refinery_dashboard/utils/aggregation.py

from collections import Counter
from typing import Any, Dict, Iterable, List, Optional

SHUTDOWN_EVENT_TYPES = ("shutdown", "planned_shutdown", "emergency_shutdown")


def _get(row: Any, key: str) -> Any:
    if isinstance(row, dict):
        return row.get(key)
    return getattr(row, key, None)


def _between(value: Optional[float], low: float, high: float) -> bool:
    return value is not None and low <= value <= high


def _gt(value: Optional[float], limit: float) -> bool:
    return value is not None and value > limit


def _lt(value: Optional[float], limit: float) -> bool:
    return value is not None and value < limit


def percentage(part: int, total: int) -> float:
    return (part / total) * 100 if total > 0 else 0.0


def count_by(rows: Iterable[Any], key: str, default: str = "unknown") -> Dict[str, int]:
    return dict(Counter(_get(row, key) or default for row in rows))


def water_treatment_stats(rows: List[Any]) -> Dict[str, int]:
    """
    Normal / warning / critical counts of water readings.

    The three buckets are independent tests and may overlap: a reading at
    pH 5.5 is both warning and critical. A missing value fails every test.
    """
    normal = warning = critical = 0
    for row in rows:
        ph = _get(row, "ph_level")
        temp = _get(row, "temperature")

        if _between(ph, 6.5, 8.5) and temp is not None and temp <= 80:
            normal += 1
        if _lt(ph, 6.5) or _gt(ph, 8.5) or (_gt(temp, 80) and temp <= 90):
            warning += 1
        if _gt(temp, 90) or _lt(ph, 6) or _gt(ph, 9):
            critical += 1

    return {"normal": normal, "warning": warning, "critical": critical, "total": len(rows)}


def product_quality_stats(rows: List[Any]) -> Dict[str, Any]:
    by_status = count_by(rows, "quality_status", default="pending")
    total = len(rows)
    return {
        "conformity_rate": percentage(by_status.get("conforming", 0), total),
        "tests_in_progress": by_status.get("pending", 0),
        "non_conforming": by_status.get("non_conforming", 0),
        "total_tests": total,
        "by_status": by_status,
    }


def equipment_stats(rows: List[Any]) -> Dict[str, Any]:
    by_status = count_by(rows, "status")
    total = len(rows)
    efficiency_sum = sum(_get(row, "efficiency_percentage") or 0 for row in rows)
    return {
        "availability": percentage(by_status.get("operational", 0), total),
        "in_maintenance": by_status.get("maintenance", 0),
        "total": total,
        "average_efficiency": efficiency_sum / total if total else 0.0,
        "by_status": by_status,
    }


def shutdown_stats(rows: List[Any]) -> Dict[str, Any]:
    causes = count_by(rows, "cause_category")
    return {
        "events": len(rows),
        "planned": causes.get("planned", 0),
        "unplanned": causes.get("unplanned", 0),
        "by_event_type": count_by(rows, "event_type"),
        "by_status": count_by(rows, "status"),
    }


def shutdown_synthesis(rows: List[Any]) -> Dict[str, Any]:
    """Shutdown/startup counts and shutdown hours per unit."""
    shutdowns = [row for row in rows if _get(row, "event_type") in SHUTDOWN_EVENT_TYPES]
    startups = [row for row in rows if _get(row, "event_type") == "startup"]

    hours_by_unit: Dict[str, float] = {}
    for row in shutdowns:
        hours = _get(row, "duration_hours")
        if not hours:
            continue
        unit = _get(row, "unit_name")
        hours_by_unit[unit] = hours_by_unit.get(unit, 0.0) + hours

    return {
        "shutdown_count": len(shutdowns),
        "startup_count": len(startups),
        "shutdown_hours_by_unit": hours_by_unit,
        "total_shutdown_hours": sum(hours_by_unit.values()),
    }
