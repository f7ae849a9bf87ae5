from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from models import ProductionTonnage
from schemas import ProductionTonnageCreate, ProductionTonnageOut
from utils.access import SHUTDOWN_STARTUP, CurrentUser, get_current_user, require_editor
from utils.crud import check_limit, create_row, list_rows

router = APIRouter(prefix="/api/v1/production-tonnages", tags=["production"])


@router.get("", response_model=List[ProductionTonnageOut])
async def list_tonnages(
    period: Optional[str] = None,
    unit_name: Optional[str] = None,
    limit: Optional[int] = None,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """Hourly tonnages, most recent first."""
    return list_rows(
        db,
        ProductionTonnage,
        order_by=ProductionTonnage.recorded_at.desc(),
        period=period,
        date_column=ProductionTonnage.recorded_at,
        limit=check_limit(limit),
        filters={"unit_name": unit_name},
    )


# tonnages are logged by unit operators, hence the shutdown/startup module
@router.post("", response_model=ProductionTonnageOut, status_code=201)
async def create_tonnage(
    body: ProductionTonnageCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_editor(SHUTDOWN_STARTUP)),
):
    return create_row(db, ProductionTonnage, body, "Production tonnage", created_by=user.id)
