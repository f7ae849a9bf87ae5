# services/refinery_dashboard/models.py

import uuid
from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base, REFINERY_SCHEMA
from utils.periods import utcnow

_SCHEMA_ARGS = {"schema": REFINERY_SCHEMA}


def _new_id() -> str:
    return str(uuid.uuid4())


def _fk(target: str) -> str:
    return f"{REFINERY_SCHEMA}.{target}" if REFINERY_SCHEMA else target


class TimestampMixin:
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )


# -------------------------------------------------------------------
# 1. Water treatment
# -------------------------------------------------------------------

class WaterTreatmentReading(TimestampMixin, Base):
    """
    One laboratory reading of a cooling or boiler water circuit.
    Chemistry columns follow the plant's lab sheet (TA, TAC, TH, SiO2...).
    """
    __tablename__ = "water_treatment_data"
    __table_args__ = _SCHEMA_ARGS

    equipment_name: Mapped[str] = mapped_column(String(200), nullable=False)
    equipment_type: Mapped[str | None] = mapped_column(String(50), index=True)
    chaudiere_number: Mapped[int | None] = mapped_column(Integer)

    ph_level: Mapped[float | None] = mapped_column(Float)
    temperature: Mapped[float | None] = mapped_column(Float)
    pressure: Mapped[float | None] = mapped_column(Float)
    flow_rate: Mapped[float | None] = mapped_column(Float)
    chlore_libre: Mapped[float | None] = mapped_column(Float)
    phosphates: Mapped[float | None] = mapped_column(Float)
    sio2_level: Mapped[float | None] = mapped_column(Float)
    ta_level: Mapped[float | None] = mapped_column(Float)
    th_level: Mapped[float | None] = mapped_column(Float)
    tac_level: Mapped[float | None] = mapped_column(Float)

    status: Mapped[str | None] = mapped_column(String(30))
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False, index=True)
    created_by: Mapped[str | None] = mapped_column(String(36))


class WaterParameterLimit(TimestampMixin, Base):
    """Min/max bound of one water parameter for one equipment type."""
    __tablename__ = "water_parameter_limits"
    __table_args__ = _SCHEMA_ARGS

    equipment_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    parameter_name: Mapped[str] = mapped_column(String(50), nullable=False)
    min_value: Mapped[float | None] = mapped_column(Float)
    max_value: Mapped[float | None] = mapped_column(Float)
    unit: Mapped[str | None] = mapped_column(String(30))


# -------------------------------------------------------------------
# 2. Product quality
# -------------------------------------------------------------------

class ProductQualityTest(TimestampMixin, Base):
    __tablename__ = "product_quality_data"
    __table_args__ = _SCHEMA_ARGS

    product_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    batch_number: Mapped[str] = mapped_column(String(50), nullable=False)
    test_date: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False, index=True)

    density: Mapped[float | None] = mapped_column(Float)
    viscosity: Mapped[float | None] = mapped_column(Float)
    sulfur_content: Mapped[float | None] = mapped_column(Float)
    octane_rating: Mapped[float | None] = mapped_column(Float)
    cetane: Mapped[float | None] = mapped_column(Float)
    point_initial: Mapped[float | None] = mapped_column(Float)
    point_final: Mapped[float | None] = mapped_column(Float)
    cristallisation: Mapped[float | None] = mapped_column(Float)
    trouble: Mapped[float | None] = mapped_column(Float)
    indice: Mapped[float | None] = mapped_column(Float)
    evaporation_95: Mapped[float | None] = mapped_column(Float)
    ecoulement: Mapped[float | None] = mapped_column(Float)
    couleur: Mapped[str | None] = mapped_column(String(50))
    residue_type: Mapped[str | None] = mapped_column(String(50))

    quality_status: Mapped[str | None] = mapped_column(String(30), index=True)
    created_by: Mapped[str | None] = mapped_column(String(36))


class CommercialStandard(TimestampMixin, Base):
    """Commercial limit of a product parameter, valid over a date range."""
    __tablename__ = "commercial_standards"
    __table_args__ = _SCHEMA_ARGS

    product_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    parameter_name: Mapped[str] = mapped_column(String(50), nullable=False)
    min_value: Mapped[float | None] = mapped_column(Float)
    max_value: Mapped[float | None] = mapped_column(Float)
    unit: Mapped[str | None] = mapped_column(String(30))
    valid_from: Mapped[date | None] = mapped_column(Date)
    valid_to: Mapped[date | None] = mapped_column(Date)


# -------------------------------------------------------------------
# 3. Equipment
# -------------------------------------------------------------------

class Equipment(TimestampMixin, Base):
    __tablename__ = "equipment_data"
    __table_args__ = _SCHEMA_ARGS

    equipment_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    equipment_name: Mapped[str] = mapped_column(String(200), nullable=False)
    equipment_type: Mapped[str] = mapped_column(String(50), nullable=False)
    equipment_category: Mapped[str | None] = mapped_column(String(50))
    status: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    location: Mapped[str | None] = mapped_column(String(100))
    tag: Mapped[str | None] = mapped_column(String(50))
    operating_hours: Mapped[float | None] = mapped_column(Float)
    efficiency_percentage: Mapped[float | None] = mapped_column(Float)
    last_maintenance: Mapped[datetime | None] = mapped_column(DateTime)
    next_maintenance: Mapped[datetime | None] = mapped_column(DateTime)
    is_available: Mapped[bool | None] = mapped_column(Boolean, default=True)
    created_by: Mapped[str | None] = mapped_column(String(36))

    tasks: Mapped[list["MaintenanceTask"]] = relationship(
        back_populates="equipment"
    )


class MaintenanceTask(TimestampMixin, Base):
    __tablename__ = "maintenance_tasks"
    __table_args__ = _SCHEMA_ARGS

    task_title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    equipment_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey(_fk("equipment_data.id"), ondelete="SET NULL")
    )
    assigned_to: Mapped[str | None] = mapped_column(String(100))
    due_date: Mapped[datetime | None] = mapped_column(DateTime, index=True)
    status: Mapped[str | None] = mapped_column(String(30))
    percentage_completed: Mapped[float | None] = mapped_column(Float, default=0.0)

    equipment: Mapped[Equipment | None] = relationship(back_populates="tasks")


# -------------------------------------------------------------------
# 4. Shutdown / startup events and production
# -------------------------------------------------------------------

class ShutdownStartupEvent(TimestampMixin, Base):
    __tablename__ = "shutdown_startup_events"
    __table_args__ = _SCHEMA_ARGS

    unit_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    event_type: Mapped[str] = mapped_column(String(30), nullable=False)
    start_time: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    end_time: Mapped[datetime | None] = mapped_column(DateTime)
    duration_hours: Mapped[float | None] = mapped_column(Float)
    status: Mapped[str] = mapped_column(String(30), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text)
    cause_category: Mapped[str | None] = mapped_column(String(50))
    impact_level: Mapped[str | None] = mapped_column(String(30))
    operator_name: Mapped[str | None] = mapped_column(String(100))
    comments: Mapped[str | None] = mapped_column(Text)
    created_by: Mapped[str | None] = mapped_column(String(36))


class ProductionTonnage(TimestampMixin, Base):
    __tablename__ = "production_tonnages"
    __table_args__ = _SCHEMA_ARGS

    unit_name: Mapped[str] = mapped_column(String(100), nullable=False)
    tonnage_per_hour: Mapped[float] = mapped_column(Float, nullable=False)
    recorded_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False, index=True)
    created_by: Mapped[str | None] = mapped_column(String(36))


# -------------------------------------------------------------------
# 5. Users and roles
# -------------------------------------------------------------------

class Profile(TimestampMixin, Base):
    __tablename__ = "profiles"
    __table_args__ = _SCHEMA_ARGS

    first_name: Mapped[str | None] = mapped_column(String(100))
    last_name: Mapped[str | None] = mapped_column(String(100))
    email: Mapped[str | None] = mapped_column(String(200), index=True)
    department: Mapped[str | None] = mapped_column(String(100))

    roles: Mapped[list["UserRole"]] = relationship(
        back_populates="profile", cascade="all, delete-orphan"
    )


class UserRole(TimestampMixin, Base):
    """
    Role granted to a user. A null module means the role applies to
    every module of the dashboard.
    """
    __tablename__ = "user_roles"
    __table_args__ = _SCHEMA_ARGS

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey(_fk("profiles.id"), ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    module: Mapped[str | None] = mapped_column(String(50))

    profile: Mapped[Profile] = relationship(back_populates="roles")


# -------------------------------------------------------------------
# 6. Alerting
# -------------------------------------------------------------------

class AlertThreshold(TimestampMixin, Base):
    __tablename__ = "alert_thresholds"
    __table_args__ = _SCHEMA_ARGS

    module_name: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    parameter_name: Mapped[str] = mapped_column(String(50), nullable=False)
    warning_min: Mapped[float | None] = mapped_column(Float)
    warning_max: Mapped[float | None] = mapped_column(Float)
    critical_min: Mapped[float | None] = mapped_column(Float)
    critical_max: Mapped[float | None] = mapped_column(Float)
    unit: Mapped[str | None] = mapped_column(String(30))
    is_active: Mapped[bool | None] = mapped_column(Boolean, default=True)
    created_by: Mapped[str | None] = mapped_column(String(36))


class SystemAlert(TimestampMixin, Base):
    __tablename__ = "system_alerts"
    __table_args__ = _SCHEMA_ARGS

    alert_type: Mapped[str] = mapped_column(String(20), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    module_name: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    source_table: Mapped[str | None] = mapped_column(String(50))
    source_id: Mapped[str | None] = mapped_column(String(36))
    is_acknowledged: Mapped[bool | None] = mapped_column(Boolean, default=False, index=True)
    acknowledged_at: Mapped[datetime | None] = mapped_column(DateTime)
    acknowledged_by: Mapped[str | None] = mapped_column(String(36))
