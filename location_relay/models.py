# location_relay/models.py
from enum import Enum
from pydantic import BaseModel, Field
from typing import Annotated, Optional, Dict, Any, List, Union

HEALTH_METRICS = (
    "steps",
    "heartRate",
    "restingHeartRate",
    "heartRateVariability",
    "bloodPressureSystolic",
    "bloodPressureDiastolic",
    "bloodOxygen",
    "activeEnergy",
    "basalEnergy",
    "distance",
    "flightsClimbed",
    "sleepDuration",
)

# JSON numbers only: no numeric strings, no booleans, no nan/inf
NonNegativeNumber = Union[
    Annotated[int, Field(strict=True, ge=0)],
    Annotated[float, Field(strict=True, ge=0, allow_inf_nan=False)],
]


class HealthMetrics(BaseModel):
    steps: Optional[NonNegativeNumber] = None
    heartRate: Optional[NonNegativeNumber] = None
    restingHeartRate: Optional[NonNegativeNumber] = None
    heartRateVariability: Optional[NonNegativeNumber] = None
    bloodPressureSystolic: Optional[NonNegativeNumber] = None
    bloodPressureDiastolic: Optional[NonNegativeNumber] = None
    bloodOxygen: Optional[NonNegativeNumber] = None
    activeEnergy: Optional[NonNegativeNumber] = None
    basalEnergy: Optional[NonNegativeNumber] = None
    distance: Optional[NonNegativeNumber] = None
    flightsClimbed: Optional[NonNegativeNumber] = None
    sleepDuration: Optional[NonNegativeNumber] = None
    workouts: Optional[List[Any]] = Field(None, strict=True, description="Opaque workout objects")


class SyncSettings(BaseModel):
    # client-side preferences, echoed back but never enforced here
    location_poll_interval_minutes: NonNegativeNumber = 5
    healthkit_sync_interval_hours: NonNegativeNumber = 3
    sync_on_app_open: bool = Field(True, strict=True)
    notifications_enabled: bool = Field(True, strict=True)


class LocationRecord(BaseModel):
    latitude: Optional[float] = Field(None, description="Decimal degrees, not range checked")
    longitude: Optional[float] = Field(None, description="Decimal degrees, not range checked")
    timestamp: Optional[str] = Field(None, description="Client timestamp, defaults to receipt time")
    device: Optional[str] = None
    deviceModel: Optional[str] = None
    userId: Optional[str] = None
    altitude: Optional[float] = None
    speed: Optional[float] = None
    health: Optional[Dict[str, Any]] = Field(None, description="Sparse metric mapping plus optional workouts")
    settings: Optional[SyncSettings] = None
    receivedAt: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.latitude is None


class ErrorKind(str, Enum):
    MISSING_REQUIRED_FIELD = "missing_required_field"
    TYPE_VALIDATION_FAILURE = "type_validation_failure"
    MALFORMED_ENCODED_PAYLOAD = "malformed_encoded_payload"
    UNHANDLED_FAILURE = "unhandled_failure"


class SubmissionError(BaseModel):
    kind: ErrorKind
    message: str
    field: Optional[str] = None
    hint: Optional[str] = None
