# services/refinery_dashboard/utils/crud.py

from typing import Any, Dict, List, Optional, Type

from fastapi import HTTPException
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import settings
from utils.logging import setup_logging
from utils.periods import resolve_period

logger = setup_logging()

FAILURE_DETAIL = "Operation failed, please try again"


def check_limit(limit: Optional[int]) -> int:
    if limit is None:
        return settings.DEFAULT_PAGE_LIMIT
    if limit <= 0:
        raise HTTPException(status_code=400, detail="limit must be positive")
    return min(limit, settings.MAX_PAGE_LIMIT)


def period_bounds(period: Optional[str]):
    try:
        return resolve_period(period)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def list_rows(
    db: Session,
    model: Type[Any],
    order_by: Any,
    period: Optional[str] = None,
    date_column: Any = None,
    limit: Optional[int] = None,
    filters: Optional[Dict[str, Any]] = None,
) -> List[Any]:
    """
    Rows of a table ordered by `order_by`, optionally restricted to a
    period on `date_column` and to exact-match filters.
    """
    query = db.query(model)
    if period is not None and date_column is not None:
        start, end = period_bounds(period)
        query = query.filter(date_column >= start, date_column <= end)
    for key, value in (filters or {}).items():
        if value is not None:
            query = query.filter(getattr(model, key) == value)
    query = query.order_by(order_by)
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def get_or_404(db: Session, model: Type[Any], row_id: str, label: str) -> Any:
    obj = db.get(model, row_id)
    if obj is None:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return obj


def commit_changes(db: Session, action: str, label: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"❌ Failed to {action} {label}: {e}")
        raise HTTPException(status_code=500, detail=FAILURE_DETAIL)


def create_row(db: Session, model: Type[Any], data: BaseModel, label: str, **extra: Any) -> Any:
    # None fields are left to the column defaults
    obj = model(**data.model_dump(exclude_none=True), **extra)
    db.add(obj)
    commit_changes(db, "create", label)
    db.refresh(obj)
    logger.info(f"➕ {label} created, id={obj.id}")
    return obj


def merged_value(obj: Any, data: BaseModel, field: str) -> Any:
    """Value the row will hold once the PATCH body is applied."""
    if field in data.model_fields_set:
        return getattr(data, field)
    return getattr(obj, field)


def check_merged_order(obj: Any, data: BaseModel, low_field: str, high_field: str) -> None:
    """
    Ordering rules have to hold on the merged row: a PATCH may send only
    one end of a range and still invert it.
    """
    low = merged_value(obj, data, low_field)
    high = merged_value(obj, data, high_field)
    if low is not None and high is not None and low > high:
        logger.warning(f"⚠️ Rejected update of id={obj.id}: {low_field}={low} > {high_field}={high}")
        raise HTTPException(status_code=400, detail=f"{low_field} must not exceed {high_field}")


def update_row(db: Session, obj: Any, data: BaseModel, label: str) -> Any:
    changes = data.model_dump(exclude_unset=True)
    for key, value in changes.items():
        setattr(obj, key, value)
    commit_changes(db, "update", label)
    db.refresh(obj)
    logger.info(f"✏️ {label} updated, id={obj.id}, fields={sorted(changes)}")
    return obj


def delete_row(db: Session, obj: Any, label: str) -> None:
    obj_id = obj.id
    db.delete(obj)
    commit_changes(db, "delete", label)
    logger.info(f"🗑️ {label} deleted, id={obj_id}")
