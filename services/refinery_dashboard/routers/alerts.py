from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from database import get_db
from models import AlertThreshold, SystemAlert
from schemas import (
    AlertThresholdCreate,
    AlertThresholdOut,
    AlertThresholdUpdate,
    SystemAlertCreate,
    SystemAlertOut,
    ThresholdCheckRequest,
    ThresholdCheckResult,
)
from utils.access import (
    ALERTS,
    CurrentUser,
    can_edit,
    get_current_user,
    require_deleter,
    require_editor,
)
from utils.crud import (
    check_limit,
    check_merged_order,
    commit_changes,
    create_row,
    delete_row,
    get_or_404,
    period_bounds,
    update_row,
)
from utils.export import csv_response
from utils.logging import setup_logging
from utils.periods import utcnow
from utils.thresholds import UNKNOWN, classify

logger = setup_logging()

router = APIRouter(prefix="/api/v1/alerts", tags=["alerts"])

THRESHOLD_LABEL = "Alert threshold"
ALERT_LABEL = "System alert"

CSV_COLUMNS = [
    ("created_at", "Created at"),
    ("alert_type", "Type"),
    ("module_name", "Module"),
    ("title", "Title"),
    ("message", "Message"),
    ("is_acknowledged", "Acknowledged"),
    ("acknowledged_by", "Acknowledged by"),
    ("acknowledged_at", "Acknowledged at"),
]


# ---------- Thresholds ----------

@router.get("/thresholds", response_model=List[AlertThresholdOut])
async def list_thresholds(
    module_name: Optional[str] = None,
    active_only: bool = False,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    query = db.query(AlertThreshold)
    if module_name is not None:
        query = query.filter(AlertThreshold.module_name == module_name)
    if active_only:
        query = query.filter(AlertThreshold.is_active.is_(True))
    return query.order_by(AlertThreshold.module_name.asc(), AlertThreshold.parameter_name.asc()).all()


@router.post("/thresholds", response_model=AlertThresholdOut, status_code=201)
async def create_threshold(
    body: AlertThresholdCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_editor(ALERTS)),
):
    return create_row(db, AlertThreshold, body, THRESHOLD_LABEL, created_by=user.id)


@router.post("/thresholds/check", response_model=ThresholdCheckResult)
async def check_threshold(
    body: ThresholdCheckRequest,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """Grades a value against the active threshold of a module parameter."""
    threshold = (
        db.query(AlertThreshold)
        .filter(
            AlertThreshold.module_name == body.module_name,
            AlertThreshold.parameter_name == body.parameter_name,
            AlertThreshold.is_active.is_(True),
        )
        .order_by(AlertThreshold.updated_at.desc())
        .first()
    )
    if threshold is None:
        raise HTTPException(status_code=404, detail=f"{THRESHOLD_LABEL} not found")

    level = classify(body.value, threshold)
    if level not in ("normal", UNKNOWN):
        logger.warning(
            f"⚠️ {body.module_name}.{body.parameter_name}={body.value} is {level}"
        )
    return ThresholdCheckResult(
        module_name=body.module_name,
        parameter_name=body.parameter_name,
        value=body.value,
        level=level,
        threshold_id=threshold.id,
    )


@router.patch("/thresholds/{threshold_id}", response_model=AlertThresholdOut)
async def update_threshold(
    threshold_id: str,
    body: AlertThresholdUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_editor(ALERTS)),
):
    obj = get_or_404(db, AlertThreshold, threshold_id, THRESHOLD_LABEL)
    check_merged_order(obj, body, "warning_min", "warning_max")
    check_merged_order(obj, body, "critical_min", "critical_max")
    return update_row(db, obj, body, THRESHOLD_LABEL)


@router.delete("/thresholds/{threshold_id}", status_code=204)
async def delete_threshold(
    threshold_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_deleter),
):
    obj = get_or_404(db, AlertThreshold, threshold_id, THRESHOLD_LABEL)
    delete_row(db, obj, THRESHOLD_LABEL)
    return Response(status_code=204)


# ---------- System alerts ----------

def _alerts(
    db: Session,
    module_name: Optional[str],
    unacknowledged_only: bool,
    period: Optional[str],
    limit: Optional[int],
):
    query = db.query(SystemAlert)
    if period is not None:
        start, end = period_bounds(period)
        query = query.filter(SystemAlert.created_at >= start, SystemAlert.created_at <= end)
    if module_name is not None:
        query = query.filter(SystemAlert.module_name == module_name)
    if unacknowledged_only:
        query = query.filter(SystemAlert.is_acknowledged.is_(False))
    query = query.order_by(SystemAlert.created_at.desc())
    if limit is not None:
        query = query.limit(limit)
    return query.all()


@router.get("/export.csv")
async def export_alerts(
    module_name: Optional[str] = None,
    unacknowledged_only: bool = False,
    period: Optional[str] = None,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    rows = _alerts(db, module_name, unacknowledged_only, period, None)
    return csv_response(rows, CSV_COLUMNS, "System alerts")


@router.get("", response_model=List[SystemAlertOut])
async def list_alerts(
    module_name: Optional[str] = None,
    unacknowledged_only: bool = False,
    period: Optional[str] = None,
    limit: Optional[int] = None,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return _alerts(db, module_name, unacknowledged_only, period, check_limit(limit))


@router.post("", response_model=SystemAlertOut, status_code=201)
async def create_alert(
    body: SystemAlertCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_editor(ALERTS)),
):
    alert = create_row(db, SystemAlert, body, ALERT_LABEL)
    logger.warning(f"🚨 [{alert.alert_type}] {alert.module_name}: {alert.title}")
    return alert


@router.get("/{alert_id}", response_model=SystemAlertOut)
async def get_alert(
    alert_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return get_or_404(db, SystemAlert, alert_id, ALERT_LABEL)


@router.post("/{alert_id}/acknowledge", response_model=SystemAlertOut)
async def acknowledge_alert(
    alert_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """Only editors of the module that raised the alert may acknowledge it."""
    alert = get_or_404(db, SystemAlert, alert_id, ALERT_LABEL)
    if not can_edit(user, alert.module_name):
        logger.warning(f"🔒 user={user.id} cannot acknowledge alerts of module={alert.module_name}")
        raise HTTPException(status_code=403, detail="Insufficient permissions")
    if alert.is_acknowledged:
        return alert

    alert.is_acknowledged = True
    alert.acknowledged_at = utcnow()
    alert.acknowledged_by = user.id
    commit_changes(db, "acknowledge", ALERT_LABEL)
    db.refresh(alert)
    logger.info(f"✅ Alert {alert.id} acknowledged by user={user.id}")
    return alert


@router.delete("/{alert_id}", status_code=204)
async def delete_alert(
    alert_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_deleter),
):
    obj = get_or_404(db, SystemAlert, alert_id, ALERT_LABEL)
    delete_row(db, obj, ALERT_LABEL)
    return Response(status_code=204)
