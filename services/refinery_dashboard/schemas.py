from datetime import date, datetime
from typing import Annotated, ClassVar, Dict, List, Literal, Optional, Tuple

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator

from utils.periods import to_naive_utc

# Datetimes are stored as naive UTC
UtcDatetime = Annotated[datetime, AfterValidator(to_naive_utc)]

WaterEquipmentType = Literal["circulation", "chaudiere", "tour_refroidissement", "traitement_primaire"]
QualityStatus = Literal["pending", "conforming", "non_conforming"]
EquipmentStatus = Literal["operational", "maintenance", "stopped", "alarm"]
EventType = Literal["shutdown", "startup", "planned_shutdown", "emergency_shutdown"]
EventStatus = Literal["planned", "ongoing", "completed", "cancelled"]
ImpactLevel = Literal["low", "medium", "high", "critical"]
AppRole = Literal["admin", "operator", "supervisor", "viewer"]
AlertType = Literal["critical", "warning", "info"]

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


def _check_bounds(low: Optional[float], high: Optional[float], what: str) -> None:
    if low is not None and high is not None and low > high:
        raise ValueError(f"{what}: minimum must not exceed maximum")


class PartialUpdate(BaseModel):
    """
    Base of the PATCH bodies: fields left out keep their stored value,
    but columns listed in NOT_NULL may not be cleared with an explicit null.
    """
    NOT_NULL: ClassVar[Tuple[str, ...]] = ()

    @model_validator(mode="after")
    def _not_null(self):
        cleared = [name for name in self.NOT_NULL if name in self.model_fields_set and getattr(self, name) is None]
        if cleared:
            raise ValueError(f"{', '.join(cleared)} cannot be null")
        return self


class RowOut(BaseModel):
    id: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ------------------------------------------------------------
#  WATER TREATMENT
# ------------------------------------------------------------

class WaterTreatmentBase(BaseModel):
    temperature: Optional[float] = Field(default=None, description="°C")
    pressure: Optional[float] = Field(default=None, description="bar")
    flow_rate: Optional[float] = Field(default=None, description="m³/h")
    chlore_libre: Optional[float] = None
    phosphates: Optional[float] = None
    sio2_level: Optional[float] = None
    ta_level: Optional[float] = None
    th_level: Optional[float] = None
    tac_level: Optional[float] = None


class WaterTreatmentCreate(WaterTreatmentBase):
    """Lab reading as entered on the water treatment form."""
    equipment_name: str = Field(min_length=1, description="Circuit or boiler name")
    equipment_type: WaterEquipmentType = "circulation"
    chaudiere_number: int = Field(default=1, ge=1, description="Boiler number")
    ph_level: float = Field(default=7.0, ge=0, le=14, description="pH between 0 and 14")
    status: Optional[str] = "operational"
    timestamp: Optional[UtcDatetime] = None


class WaterTreatmentUpdate(WaterTreatmentBase, PartialUpdate):
    NOT_NULL = ("equipment_name", "timestamp")

    equipment_name: Optional[str] = Field(default=None, min_length=1)
    equipment_type: Optional[WaterEquipmentType] = None
    chaudiere_number: Optional[int] = Field(default=None, ge=1)
    ph_level: Optional[float] = Field(default=None, ge=0, le=14)
    status: Optional[str] = None
    timestamp: Optional[UtcDatetime] = None


class WaterTreatmentOut(WaterTreatmentBase, RowOut):
    equipment_name: str
    equipment_type: Optional[str] = None
    chaudiere_number: Optional[int] = None
    ph_level: Optional[float] = None
    status: Optional[str] = None
    timestamp: datetime
    created_by: Optional[str] = None


class WaterLimitCreate(BaseModel):
    equipment_type: str = Field(min_length=1)
    parameter_name: str = Field(min_length=1)
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    unit: Optional[str] = None

    @model_validator(mode="after")
    def _bounds(self):
        _check_bounds(self.min_value, self.max_value, self.parameter_name)
        return self


class WaterLimitUpdate(PartialUpdate):
    NOT_NULL = ("equipment_type", "parameter_name")

    equipment_type: Optional[str] = Field(default=None, min_length=1)
    parameter_name: Optional[str] = Field(default=None, min_length=1)
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    unit: Optional[str] = None

    @model_validator(mode="after")
    def _bounds(self):
        _check_bounds(self.min_value, self.max_value, self.parameter_name or "limit")
        return self


class WaterLimitOut(RowOut):
    equipment_type: str
    parameter_name: str
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    unit: Optional[str] = None


class ParameterViolation(BaseModel):
    parameter_name: str
    value: Optional[float] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    unit: Optional[str] = None


class ReadingEvaluation(BaseModel):
    """Out-of-range check of one reading, recomputed on each request."""
    reading_id: str
    equipment_name: str
    equipment_type: Optional[str] = None
    timestamp: datetime
    out_of_range: bool
    violations: List[ParameterViolation] = Field(default_factory=list)


# ------------------------------------------------------------
#  PRODUCT QUALITY
# ------------------------------------------------------------

class ProductQualityBase(BaseModel):
    density: Optional[float] = None
    viscosity: Optional[float] = None
    sulfur_content: Optional[float] = None
    octane_rating: Optional[float] = None
    cetane: Optional[float] = None
    point_initial: Optional[float] = None
    point_final: Optional[float] = None
    cristallisation: Optional[float] = None
    trouble: Optional[float] = None
    indice: Optional[float] = None
    evaporation_95: Optional[float] = None
    ecoulement: Optional[float] = None
    couleur: Optional[str] = None
    residue_type: Optional[str] = None


class ProductQualityCreate(ProductQualityBase):
    product_name: str = Field(min_length=1)
    batch_number: str = Field(min_length=1)
    test_date: Optional[UtcDatetime] = None
    quality_status: QualityStatus = "pending"


class ProductQualityUpdate(ProductQualityBase, PartialUpdate):
    NOT_NULL = ("product_name", "batch_number", "test_date")

    product_name: Optional[str] = Field(default=None, min_length=1)
    batch_number: Optional[str] = Field(default=None, min_length=1)
    test_date: Optional[UtcDatetime] = None
    quality_status: Optional[QualityStatus] = None


class ProductQualityOut(ProductQualityBase, RowOut):
    product_name: str
    batch_number: str
    test_date: datetime
    quality_status: Optional[str] = None
    created_by: Optional[str] = None


class ParameterConformity(ParameterViolation):
    conforming: bool


class ConformityReport(BaseModel):
    test_id: str
    product_name: str
    batch_number: str
    conforming: bool
    parameters: List[ParameterConformity] = Field(default_factory=list)


# ------------------------------------------------------------
#  COMMERCIAL STANDARDS
# ------------------------------------------------------------

class CommercialStandardCreate(BaseModel):
    product_name: str = Field(min_length=1, description="Product name is required")
    parameter_name: str = Field(min_length=1, description="Parameter name is required")
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    unit: Optional[str] = None
    valid_from: Optional[date] = None
    valid_to: Optional[date] = None

    @model_validator(mode="after")
    def _ranges(self):
        _check_bounds(self.min_value, self.max_value, self.parameter_name)
        if self.valid_from and self.valid_to and self.valid_from > self.valid_to:
            raise ValueError("valid_from must not be after valid_to")
        return self


class CommercialStandardUpdate(PartialUpdate):
    NOT_NULL = ("product_name", "parameter_name")

    product_name: Optional[str] = Field(default=None, min_length=1)
    parameter_name: Optional[str] = Field(default=None, min_length=1)
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    unit: Optional[str] = None
    valid_from: Optional[date] = None
    valid_to: Optional[date] = None

    @model_validator(mode="after")
    def _ranges(self):
        _check_bounds(self.min_value, self.max_value, self.parameter_name or "standard")
        if self.valid_from and self.valid_to and self.valid_from > self.valid_to:
            raise ValueError("valid_from must not be after valid_to")
        return self


class CommercialStandardOut(RowOut):
    product_name: str
    parameter_name: str
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    unit: Optional[str] = None
    valid_from: Optional[date] = None
    valid_to: Optional[date] = None


# ------------------------------------------------------------
#  EQUIPMENT
# ------------------------------------------------------------

class EquipmentBase(BaseModel):
    equipment_category: Optional[str] = None
    location: Optional[str] = None
    tag: Optional[str] = None
    operating_hours: Optional[float] = Field(default=None, ge=0)
    efficiency_percentage: Optional[float] = Field(default=None, ge=0, le=100)
    last_maintenance: Optional[UtcDatetime] = None
    next_maintenance: Optional[UtcDatetime] = None
    is_available: Optional[bool] = None


class EquipmentCreate(EquipmentBase):
    equipment_id: str = Field(min_length=1)
    equipment_name: str = Field(min_length=1)
    equipment_type: str = Field(min_length=1)
    status: EquipmentStatus = "operational"
    is_available: Optional[bool] = True


class EquipmentUpdate(EquipmentBase, PartialUpdate):
    NOT_NULL = ("equipment_id", "equipment_name", "equipment_type", "status")

    equipment_id: Optional[str] = Field(default=None, min_length=1)
    equipment_name: Optional[str] = Field(default=None, min_length=1)
    equipment_type: Optional[str] = Field(default=None, min_length=1)
    status: Optional[EquipmentStatus] = None


class EquipmentOut(EquipmentBase, RowOut):
    equipment_id: str
    equipment_name: str
    equipment_type: str
    status: str
    created_by: Optional[str] = None


class MaintenanceTaskCreate(BaseModel):
    task_title: str = Field(min_length=1)
    description: Optional[str] = None
    equipment_id: Optional[str] = None
    assigned_to: Optional[str] = None
    due_date: Optional[UtcDatetime] = None
    status: Optional[str] = "pending"
    percentage_completed: Optional[float] = Field(default=0.0, ge=0, le=100)


class MaintenanceTaskUpdate(PartialUpdate):
    NOT_NULL = ("task_title",)

    task_title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    equipment_id: Optional[str] = None
    assigned_to: Optional[str] = None
    due_date: Optional[UtcDatetime] = None
    status: Optional[str] = None
    percentage_completed: Optional[float] = Field(default=None, ge=0, le=100)


class EquipmentSummary(BaseModel):
    equipment_id: str
    equipment_name: str
    location: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class MaintenanceTaskOut(RowOut):
    task_title: str
    description: Optional[str] = None
    equipment_id: Optional[str] = None
    assigned_to: Optional[str] = None
    due_date: Optional[datetime] = None
    status: Optional[str] = None
    percentage_completed: Optional[float] = None
    equipment: Optional[EquipmentSummary] = None


# ------------------------------------------------------------
#  SHUTDOWN / STARTUP
# ------------------------------------------------------------

class ShutdownStartupBase(BaseModel):
    reason: Optional[str] = None
    cause_category: Optional[str] = None
    impact_level: Optional[ImpactLevel] = None
    operator_name: Optional[str] = None
    comments: Optional[str] = None


class ShutdownStartupCreate(ShutdownStartupBase):
    unit_name: str = Field(min_length=1)
    event_type: EventType = "shutdown"
    start_time: UtcDatetime
    end_time: Optional[UtcDatetime] = None
    duration_hours: Optional[float] = Field(default=None, ge=0)
    status: EventStatus = "planned"

    @model_validator(mode="after")
    def _timing(self):
        if self.end_time is not None:
            if self.end_time < self.start_time:
                raise ValueError("end_time must not be before start_time")
            if self.duration_hours is None:
                self.duration_hours = (self.end_time - self.start_time).total_seconds() / 3600
        return self


class ShutdownStartupUpdate(ShutdownStartupBase, PartialUpdate):
    NOT_NULL = ("unit_name", "event_type", "start_time", "status")

    unit_name: Optional[str] = Field(default=None, min_length=1)
    event_type: Optional[EventType] = None
    start_time: Optional[UtcDatetime] = None
    end_time: Optional[UtcDatetime] = None
    duration_hours: Optional[float] = Field(default=None, ge=0)
    status: Optional[EventStatus] = None


class ShutdownStartupOut(ShutdownStartupBase, RowOut):
    unit_name: str
    event_type: str
    start_time: datetime
    end_time: Optional[datetime] = None
    duration_hours: Optional[float] = None
    status: str
    impact_level: Optional[str] = None
    created_by: Optional[str] = None


class ShutdownSynthesis(BaseModel):
    period_start: datetime
    period_end: datetime
    shutdown_count: int
    startup_count: int
    shutdown_hours_by_unit: Dict[str, float]
    total_shutdown_hours: float


# ------------------------------------------------------------
#  PRODUCTION
# ------------------------------------------------------------

class ProductionTonnageCreate(BaseModel):
    unit_name: str = Field(min_length=1)
    tonnage_per_hour: float = Field(ge=0)
    recorded_at: Optional[UtcDatetime] = None


class ProductionTonnageOut(RowOut):
    unit_name: str
    tonnage_per_hour: float
    recorded_at: datetime
    created_by: Optional[str] = None


# ------------------------------------------------------------
#  USERS AND ROLES
# ------------------------------------------------------------

class ProfileCreate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    department: Optional[str] = None
    email: Optional[str] = Field(default=None, pattern=EMAIL_PATTERN, description="Invalid e-mail format")


class ProfileUpdate(ProfileCreate):
    pass


class UserRoleCreate(BaseModel):
    user_id: str
    role: AppRole
    module: Optional[str] = None


class UserRoleUpdate(PartialUpdate):
    NOT_NULL = ("role",)

    role: Optional[AppRole] = None
    module: Optional[str] = None


class UserRoleOut(RowOut):
    user_id: str
    role: str
    module: Optional[str] = None


class ProfileOut(RowOut):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    department: Optional[str] = None
    email: Optional[str] = None
    roles: List[UserRoleOut] = Field(default_factory=list)


# ------------------------------------------------------------
#  ALERTS
# ------------------------------------------------------------

class AlertThresholdCreate(BaseModel):
    module_name: str = Field(min_length=1)
    parameter_name: str = Field(min_length=1)
    warning_min: Optional[float] = None
    warning_max: Optional[float] = None
    critical_min: Optional[float] = None
    critical_max: Optional[float] = None
    unit: Optional[str] = None
    is_active: bool = True

    @model_validator(mode="after")
    def _bands(self):
        _check_bounds(self.warning_min, self.warning_max, "warning band")
        _check_bounds(self.critical_min, self.critical_max, "critical band")
        return self


class AlertThresholdUpdate(PartialUpdate):
    NOT_NULL = ("module_name", "parameter_name")

    module_name: Optional[str] = Field(default=None, min_length=1)
    parameter_name: Optional[str] = Field(default=None, min_length=1)
    warning_min: Optional[float] = None
    warning_max: Optional[float] = None
    critical_min: Optional[float] = None
    critical_max: Optional[float] = None
    unit: Optional[str] = None
    is_active: Optional[bool] = None

    @model_validator(mode="after")
    def _bands(self):
        _check_bounds(self.warning_min, self.warning_max, "warning band")
        _check_bounds(self.critical_min, self.critical_max, "critical band")
        return self


class AlertThresholdOut(RowOut):
    module_name: str
    parameter_name: str
    warning_min: Optional[float] = None
    warning_max: Optional[float] = None
    critical_min: Optional[float] = None
    critical_max: Optional[float] = None
    unit: Optional[str] = None
    is_active: Optional[bool] = None
    created_by: Optional[str] = None


class ThresholdCheckRequest(BaseModel):
    module_name: str
    parameter_name: str
    value: Optional[float] = None


class ThresholdCheckResult(BaseModel):
    module_name: str
    parameter_name: str
    value: Optional[float] = None
    level: Literal["normal", "warning", "critical", "unknown"]
    threshold_id: Optional[str] = None


class SystemAlertCreate(BaseModel):
    alert_type: AlertType
    title: str = Field(min_length=1)
    message: str = Field(min_length=1)
    module_name: str = Field(min_length=1)
    source_table: Optional[str] = None
    source_id: Optional[str] = None


class SystemAlertOut(RowOut):
    alert_type: str
    title: str
    message: str
    module_name: str
    source_table: Optional[str] = None
    source_id: Optional[str] = None
    is_acknowledged: Optional[bool] = None
    acknowledged_at: Optional[datetime] = None
    acknowledged_by: Optional[str] = None


# ------------------------------------------------------------
#  DASHBOARD
# ------------------------------------------------------------

class WaterTreatmentStats(BaseModel):
    normal: int
    warning: int
    critical: int
    total: int


class ProductQualityStats(BaseModel):
    conformity_rate: float = Field(ge=0, le=100)
    tests_in_progress: int
    non_conforming: int
    total_tests: int
    by_status: Dict[str, int] = Field(default_factory=dict)


class EquipmentStats(BaseModel):
    availability: float = Field(ge=0, le=100)
    in_maintenance: int
    total: int
    average_efficiency: float
    by_status: Dict[str, int] = Field(default_factory=dict)


class ShutdownStats(BaseModel):
    events: int
    planned: int
    unplanned: int
    by_event_type: Dict[str, int] = Field(default_factory=dict)
    by_status: Dict[str, int] = Field(default_factory=dict)


class DashboardStats(BaseModel):
    """
    Main DTO of /api/v1/dashboard: one block per module plus
    global counters for the selected period.
    """
    period: str
    period_start: datetime
    period_end: datetime
    water_treatment: WaterTreatmentStats
    product_quality: ProductQualityStats
    equipment: EquipmentStats
    shutdowns: ShutdownStats
    alerts_count: int
    active_users: int
    data_collected: int


class SimulationRequest(BaseModel):
    seed: Optional[int] = None
    water_readings: int = Field(default=100, ge=0, le=1000)
    quality_tests: int = Field(default=80, ge=0, le=1000)
    equipment: int = Field(default=50, ge=0, le=1000)
    events: int = Field(default=30, ge=0, le=1000)


class SimulationResult(BaseModel):
    water_readings: int
    quality_tests: int
    equipment: int
    events: int
