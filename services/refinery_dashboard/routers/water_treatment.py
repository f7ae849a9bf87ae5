from typing import List, Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from database import get_db
from models import WaterParameterLimit, WaterTreatmentReading
from schemas import (
    ReadingEvaluation,
    WaterLimitCreate,
    WaterLimitOut,
    WaterLimitUpdate,
    WaterTreatmentCreate,
    WaterTreatmentOut,
    WaterTreatmentStats,
    WaterTreatmentUpdate,
)
from utils.access import (
    WATER_TREATMENT,
    CurrentUser,
    get_current_user,
    require_deleter,
    require_editor,
)
from utils.aggregation import water_treatment_stats
from utils.crud import (
    check_limit,
    check_merged_order,
    create_row,
    delete_row,
    get_or_404,
    list_rows,
    update_row,
)
from utils.export import csv_response
from utils.logging import setup_logging
from utils.thresholds import evaluate_reading

logger = setup_logging()

router = APIRouter(prefix="/api/v1/water-treatment", tags=["water-treatment"])

LABEL = "Water treatment reading"

CSV_COLUMNS = [
    ("timestamp", "Date"),
    ("equipment_name", "Equipment"),
    ("equipment_type", "Type"),
    ("chaudiere_number", "Boiler"),
    ("ph_level", "pH"),
    ("temperature", "Temperature"),
    ("pressure", "Pressure"),
    ("flow_rate", "Flow rate"),
    ("chlore_libre", "Free chlorine"),
    ("phosphates", "Phosphates"),
    ("sio2_level", "SiO2"),
    ("ta_level", "TA"),
    ("th_level", "TH"),
    ("tac_level", "TAC"),
    ("status", "Status"),
]


def _readings(db: Session, period: Optional[str], limit: Optional[int]):
    return list_rows(
        db,
        WaterTreatmentReading,
        order_by=WaterTreatmentReading.timestamp.desc(),
        period=period,
        date_column=WaterTreatmentReading.timestamp,
        limit=limit,
    )


def _evaluation(reading: WaterTreatmentReading, limits) -> ReadingEvaluation:
    violations = evaluate_reading(reading, limits)
    return ReadingEvaluation(
        reading_id=reading.id,
        equipment_name=reading.equipment_name,
        equipment_type=reading.equipment_type,
        timestamp=reading.timestamp,
        out_of_range=bool(violations),
        violations=violations,
    )


# ---------- Parameter limits ----------
# declared before /{reading_id} so "limits" is not taken for an id

@router.get("/limits", response_model=List[WaterLimitOut])
async def list_limits(
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return (
        db.query(WaterParameterLimit)
        .order_by(WaterParameterLimit.equipment_type.asc(), WaterParameterLimit.parameter_name.asc())
        .all()
    )


@router.post("/limits", response_model=WaterLimitOut, status_code=201)
async def create_limit(
    body: WaterLimitCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_editor(WATER_TREATMENT)),
):
    return create_row(db, WaterParameterLimit, body, "Water parameter limit")


@router.patch("/limits/{limit_id}", response_model=WaterLimitOut)
async def update_limit(
    limit_id: str,
    body: WaterLimitUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_editor(WATER_TREATMENT)),
):
    obj = get_or_404(db, WaterParameterLimit, limit_id, "Water parameter limit")
    check_merged_order(obj, body, "min_value", "max_value")
    return update_row(db, obj, body, "Water parameter limit")


@router.delete("/limits/{limit_id}", status_code=204)
async def delete_limit(
    limit_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_deleter),
):
    obj = get_or_404(db, WaterParameterLimit, limit_id, "Water parameter limit")
    delete_row(db, obj, "Water parameter limit")
    return Response(status_code=204)


# ---------- Alerts and statistics ----------

@router.get("/alerts", response_model=List[ReadingEvaluation])
async def list_out_of_range(
    period: Optional[str] = None,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """
    Readings with at least one parameter outside its limits.
    Recomputed on every call, nothing is stored.
    """
    limits = db.query(WaterParameterLimit).all()
    evaluations = [_evaluation(r, limits) for r in _readings(db, period, None)]
    flagged = [e for e in evaluations if e.out_of_range]
    logger.info(f"🚨 {len(flagged)}/{len(evaluations)} water readings out of range (period={period})")
    return flagged


@router.get("/stats", response_model=WaterTreatmentStats)
async def get_stats(
    period: Optional[str] = "today",
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return WaterTreatmentStats(**water_treatment_stats(_readings(db, period, None)))


@router.get("/export.csv")
async def export_readings(
    period: Optional[str] = None,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return csv_response(_readings(db, period, None), CSV_COLUMNS, "Water treatment data")


# ---------- Readings ----------

@router.get("", response_model=List[WaterTreatmentOut])
async def list_readings(
    period: Optional[str] = None,
    limit: Optional[int] = None,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """Water readings, newest first."""
    return _readings(db, period, check_limit(limit))


@router.post("", response_model=WaterTreatmentOut, status_code=201)
async def create_reading(
    body: WaterTreatmentCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_editor(WATER_TREATMENT)),
):
    return create_row(db, WaterTreatmentReading, body, LABEL, created_by=user.id)


@router.get("/{reading_id}", response_model=WaterTreatmentOut)
async def get_reading(
    reading_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return get_or_404(db, WaterTreatmentReading, reading_id, LABEL)


@router.get("/{reading_id}/evaluation", response_model=ReadingEvaluation)
async def evaluate(
    reading_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    reading = get_or_404(db, WaterTreatmentReading, reading_id, LABEL)
    limits = (
        db.query(WaterParameterLimit)
        .filter(WaterParameterLimit.equipment_type == reading.equipment_type)
        .all()
    )
    return _evaluation(reading, limits)


@router.patch("/{reading_id}", response_model=WaterTreatmentOut)
async def update_reading(
    reading_id: str,
    body: WaterTreatmentUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_editor(WATER_TREATMENT)),
):
    obj = get_or_404(db, WaterTreatmentReading, reading_id, LABEL)
    return update_row(db, obj, body, LABEL)


@router.delete("/{reading_id}", status_code=204)
async def delete_reading(
    reading_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_deleter),
):
    obj = get_or_404(db, WaterTreatmentReading, reading_id, LABEL)
    delete_row(db, obj, LABEL)
    return Response(status_code=204)
