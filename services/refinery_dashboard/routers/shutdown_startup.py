from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from database import get_db
from models import ShutdownStartupEvent
from schemas import (
    ShutdownStartupCreate,
    ShutdownStartupOut,
    ShutdownStartupUpdate,
    ShutdownStats,
    ShutdownSynthesis,
)
from utils.access import (
    SHUTDOWN_STARTUP,
    CurrentUser,
    get_current_user,
    require_deleter,
    require_editor,
)
from utils.aggregation import shutdown_stats, shutdown_synthesis
from utils.crud import (
    check_limit,
    create_row,
    delete_row,
    get_or_404,
    list_rows,
    merged_value,
    update_row,
)
from utils.export import csv_response
from utils.logging import setup_logging
from utils.periods import filter_by_period, in_interval, month_range_bounds, utcnow

logger = setup_logging()

router = APIRouter(prefix="/api/v1/shutdown-startup", tags=["shutdown-startup"])

LABEL = "Shutdown/startup event"

CSV_COLUMNS = [
    ("unit_name", "Unit"),
    ("event_type", "Event"),
    ("start_time", "Start"),
    ("end_time", "End"),
    ("duration_hours", "Duration (h)"),
    ("reason", "Reason"),
    ("cause_category", "Cause"),
    ("impact_level", "Impact"),
    ("status", "Status"),
    ("operator_name", "Operator"),
]


def _events(db: Session, period: Optional[str], limit: Optional[int],
            unit_name: Optional[str] = None, status: Optional[str] = None):
    return list_rows(
        db,
        ShutdownStartupEvent,
        order_by=ShutdownStartupEvent.start_time.desc(),
        period=period,
        date_column=ShutdownStartupEvent.start_time,
        limit=limit,
        filters={"unit_name": unit_name, "status": status},
    )


@router.get("/synthesis", response_model=ShutdownSynthesis)
async def get_synthesis(
    from_month: Optional[str] = Query(default=None, alias="from", description="YYYY-MM"),
    to_month: Optional[str] = Query(default=None, alias="to", description="YYYY-MM"),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """
    Shutdown and startup counts and shutdown hours per unit over a range
    of months. Defaults to the current month.
    """
    current = utcnow().strftime("%Y-%m")
    try:
        start, end = month_range_bounds(from_month or current, to_month or from_month or current)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    rows = [e for e in db.query(ShutdownStartupEvent).all() if in_interval(e.start_time, start, end)]
    result = shutdown_synthesis(rows)
    logger.info(
        f"🏭 Synthesis {start:%Y-%m}..{end:%Y-%m}: shutdowns={result['shutdown_count']}, "
        f"startups={result['startup_count']}, hours={result['total_shutdown_hours']:.1f}"
    )
    return ShutdownSynthesis(period_start=start, period_end=end, **result)


@router.get("/stats", response_model=ShutdownStats)
async def get_stats(
    period: Optional[str] = "today",
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    try:
        rows = filter_by_period(db.query(ShutdownStartupEvent).all(), "start_time", period)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ShutdownStats(**shutdown_stats(rows))


@router.get("/export.csv")
async def export_events(
    period: Optional[str] = None,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return csv_response(_events(db, period, None), CSV_COLUMNS, "Shutdown startup events")


@router.get("", response_model=List[ShutdownStartupOut])
async def list_events(
    period: Optional[str] = None,
    unit_name: Optional[str] = None,
    status: Optional[str] = None,
    limit: Optional[int] = None,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return _events(db, period, check_limit(limit), unit_name, status)


@router.post("", response_model=ShutdownStartupOut, status_code=201)
async def create_event(
    body: ShutdownStartupCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_editor(SHUTDOWN_STARTUP)),
):
    return create_row(db, ShutdownStartupEvent, body, LABEL, created_by=user.id)


@router.get("/{event_id}", response_model=ShutdownStartupOut)
async def get_event(
    event_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return get_or_404(db, ShutdownStartupEvent, event_id, LABEL)


@router.patch("/{event_id}", response_model=ShutdownStartupOut)
async def update_event(
    event_id: str,
    body: ShutdownStartupUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_editor(SHUTDOWN_STARTUP)),
):
    obj = get_or_404(db, ShutdownStartupEvent, event_id, LABEL)

    # the timing rule has to hold on the merged row, not only on the patch
    start = merged_value(obj, body, "start_time")
    end = merged_value(obj, body, "end_time")
    if end is not None and end < start:
        raise HTTPException(status_code=400, detail="end_time must not be before start_time")
    if end is not None and "duration_hours" not in body.model_fields_set and (
        "end_time" in body.model_fields_set or "start_time" in body.model_fields_set
    ):
        body.duration_hours = (end - start).total_seconds() / 3600

    return update_row(db, obj, body, LABEL)


@router.delete("/{event_id}", status_code=204)
async def delete_event(
    event_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_deleter),
):
    obj = get_or_404(db, ShutdownStartupEvent, event_id, LABEL)
    delete_row(db, obj, LABEL)
    return Response(status_code=204)
