from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from models import (
    Equipment,
    ProductQualityTest,
    Profile,
    ShutdownStartupEvent,
    SystemAlert,
    WaterTreatmentReading,
)
from schemas import (
    DashboardStats,
    EquipmentStats,
    ProductQualityStats,
    ShutdownStats,
    WaterTreatmentStats,
)
from utils.access import CurrentUser, get_current_user
from utils.aggregation import (
    equipment_stats,
    product_quality_stats,
    shutdown_stats,
    water_treatment_stats,
)
from utils.crud import period_bounds
from utils.logging import setup_logging
from utils.periods import TODAY

logger = setup_logging()

router = APIRouter(prefix="/api/v1/dashboard", tags=["dashboard"])


def _in_period(db: Session, model, column, start, end):
    return db.query(model).filter(column >= start, column <= end).all()


@router.get("", response_model=DashboardStats)
async def get_dashboard(
    period: Optional[str] = TODAY,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """
    Headline figures of the refinery for a day ("today") or a month (YYYY-MM).

    Equipment availability covers the whole fleet; every other figure is
    restricted to the period. alerts_count counts the unacknowledged alerts
    raised since the start of the period.
    """
    period = period or TODAY
    start, end = period_bounds(period)

    water = _in_period(db, WaterTreatmentReading, WaterTreatmentReading.timestamp, start, end)
    tests = _in_period(db, ProductQualityTest, ProductQualityTest.test_date, start, end)
    events = _in_period(db, ShutdownStartupEvent, ShutdownStartupEvent.start_time, start, end)
    fleet = db.query(Equipment).all()

    alerts_count = (
        db.query(SystemAlert)
        .filter(SystemAlert.is_acknowledged.is_not(True), SystemAlert.created_at >= start)
        .count()
    )
    active_users = db.query(Profile).count()

    stats = DashboardStats(
        period=period,
        period_start=start,
        period_end=end,
        water_treatment=WaterTreatmentStats(**water_treatment_stats(water)),
        product_quality=ProductQualityStats(**product_quality_stats(tests)),
        equipment=EquipmentStats(**equipment_stats(fleet)),
        shutdowns=ShutdownStats(**shutdown_stats(events)),
        alerts_count=alerts_count,
        active_users=active_users,
        data_collected=len(water) + len(tests) + len(events),
    )
    logger.info(
        f"📊 Dashboard period={period}: readings={len(water)}, tests={len(tests)}, "
        f"events={len(events)}, alerts={alerts_count}"
    )
    return stats
