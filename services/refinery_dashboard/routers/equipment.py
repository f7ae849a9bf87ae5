from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from database import get_db
from models import Equipment, MaintenanceTask
from schemas import (
    EquipmentCreate,
    EquipmentOut,
    EquipmentStats,
    EquipmentUpdate,
    MaintenanceTaskCreate,
    MaintenanceTaskOut,
    MaintenanceTaskUpdate,
)
from utils.access import (
    EQUIPMENT,
    CurrentUser,
    get_current_user,
    require_deleter,
    require_editor,
)
from utils.aggregation import equipment_stats
from utils.crud import check_limit, create_row, delete_row, get_or_404, list_rows, update_row
from utils.export import csv_response

router = APIRouter(prefix="/api/v1/equipment", tags=["equipment"])

LABEL = "Equipment"
TASK_LABEL = "Maintenance task"

CSV_COLUMNS = [
    ("equipment_id", "ID"),
    ("equipment_name", "Name"),
    ("equipment_type", "Type"),
    ("equipment_category", "Category"),
    ("location", "Location"),
    ("tag", "Tag"),
    ("status", "Status"),
    ("operating_hours", "Operating hours"),
    ("efficiency_percentage", "Efficiency (%)"),
    ("last_maintenance", "Last maintenance"),
    ("next_maintenance", "Next maintenance"),
]


def _equipment(db: Session, status: Optional[str], location: Optional[str], limit: Optional[int]):
    return list_rows(
        db,
        Equipment,
        order_by=Equipment.equipment_name.asc(),
        limit=limit,
        filters={"status": status, "location": location},
    )


def _check_equipment_ref(db: Session, equipment_id: Optional[str]) -> None:
    if equipment_id is not None and db.get(Equipment, equipment_id) is None:
        raise HTTPException(status_code=400, detail="Unknown equipment for maintenance task")


# ---------- Maintenance tasks ----------

@router.get("/maintenance-tasks", response_model=List[MaintenanceTaskOut])
async def list_tasks(
    equipment_id: Optional[str] = None,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """Maintenance tasks by due date, soonest first."""
    query = db.query(MaintenanceTask)
    if equipment_id is not None:
        query = query.filter(MaintenanceTask.equipment_id == equipment_id)
    if status is not None:
        query = query.filter(MaintenanceTask.status == status)
    return query.order_by(MaintenanceTask.due_date.asc()).all()


@router.post("/maintenance-tasks", response_model=MaintenanceTaskOut, status_code=201)
async def create_task(
    body: MaintenanceTaskCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_editor(EQUIPMENT)),
):
    _check_equipment_ref(db, body.equipment_id)
    return create_row(db, MaintenanceTask, body, TASK_LABEL)


@router.get("/maintenance-tasks/{task_id}", response_model=MaintenanceTaskOut)
async def get_task(
    task_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return get_or_404(db, MaintenanceTask, task_id, TASK_LABEL)


@router.patch("/maintenance-tasks/{task_id}", response_model=MaintenanceTaskOut)
async def update_task(
    task_id: str,
    body: MaintenanceTaskUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_editor(EQUIPMENT)),
):
    obj = get_or_404(db, MaintenanceTask, task_id, TASK_LABEL)
    _check_equipment_ref(db, body.equipment_id)
    return update_row(db, obj, body, TASK_LABEL)


@router.delete("/maintenance-tasks/{task_id}", status_code=204)
async def delete_task(
    task_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_deleter),
):
    obj = get_or_404(db, MaintenanceTask, task_id, TASK_LABEL)
    delete_row(db, obj, TASK_LABEL)
    return Response(status_code=204)


# ---------- Statistics and export ----------

@router.get("/stats", response_model=EquipmentStats)
async def get_stats(
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """Availability over the whole fleet, not restricted to a period."""
    return EquipmentStats(**equipment_stats(db.query(Equipment).all()))


@router.get("/export.csv")
async def export_equipment(
    status: Optional[str] = None,
    location: Optional[str] = None,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return csv_response(_equipment(db, status, location, None), CSV_COLUMNS, "Equipment data")


# ---------- Equipment ----------

@router.get("", response_model=List[EquipmentOut])
async def list_equipment(
    status: Optional[str] = None,
    location: Optional[str] = None,
    limit: Optional[int] = None,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return _equipment(db, status, location, check_limit(limit))


@router.post("", response_model=EquipmentOut, status_code=201)
async def create_equipment(
    body: EquipmentCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_editor(EQUIPMENT)),
):
    return create_row(db, Equipment, body, LABEL, created_by=user.id)


@router.get("/{equipment_pk}", response_model=EquipmentOut)
async def get_equipment(
    equipment_pk: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return get_or_404(db, Equipment, equipment_pk, LABEL)


@router.patch("/{equipment_pk}", response_model=EquipmentOut)
async def update_equipment(
    equipment_pk: str,
    body: EquipmentUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_editor(EQUIPMENT)),
):
    obj = get_or_404(db, Equipment, equipment_pk, LABEL)
    return update_row(db, obj, body, LABEL)


@router.delete("/{equipment_pk}", status_code=204)
async def delete_equipment(
    equipment_pk: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_deleter),
):
    obj = get_or_404(db, Equipment, equipment_pk, LABEL)
    delete_row(db, obj, LABEL)
    return Response(status_code=204)
