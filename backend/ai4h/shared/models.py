from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

HospitalCapability = Literal["ICU", "Ventilator", "Cardio", "Peds", "Neuro"]
CAPABILITIES: tuple[str, ...] = ("ICU", "Ventilator", "Cardio", "Peds", "Neuro")

TriageLevel = Literal["red", "yellow", "green"]
EmergencyStatus = Literal["active", "assigned", "enroute", "arrived", "completed", "cancelled"]
IncidentKind = Literal[
    "created",
    "triage",
    "assigned",
    "reroute",
    "enroute",
    "arrived",
    "completed",
    "notified",
    "note",
]
UserRole = Literal["patient", "driver", "hospital", "admin"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _ordered_unique(values: Optional[List[str]]) -> List[str]:
    seen: List[str] = []
    for value in values or []:
        if value not in seen:
            seen.append(value)
    return seen


class Vitals(BaseModel):
    hr: Optional[float] = None
    spo2: Optional[float] = None
    sbp: Optional[float] = None
    rr: Optional[float] = None
    gcs: Optional[float] = None


class TriageResult(BaseModel):
    score: int = Field(ge=0, le=100)
    level: TriageLevel
    reason: str
    needs: List[str] = Field(default_factory=list)


class Hospital(BaseModel):
    id: str
    name: str
    lat: float = Field(ge=-90, le=90, allow_inf_nan=False)
    lon: float = Field(ge=-180, le=180, allow_inf_nan=False)
    beds_available: Optional[int] = 0
    doctors_available: Optional[int] = 0
    capabilities: List[str] = Field(default_factory=list)
    accepting_emergencies: Optional[bool] = True
    created_at: Optional[datetime] = None

    @field_validator("capabilities", mode="before")
    @classmethod
    def _dedupe_capabilities(cls, value):
        return _ordered_unique(value)


class NewEmergency(BaseModel):
    patient_id: str
    lat: Optional[float] = None
    lon: Optional[float] = None
    type: str = "Unknown"
    needs: List[str] = Field(default_factory=list)
    triage_score: int = Field(default=0, ge=0, le=100)
    vitals: Optional[Vitals] = None

    @field_validator("needs", mode="before")
    @classmethod
    def _dedupe_needs(cls, value):
        return _ordered_unique(value)


class Emergency(NewEmergency):
    id: str
    status: EmergencyStatus = "active"
    assigned_hospital_id: Optional[str] = None
    rerouted_to_id: Optional[str] = None
    assigned_eta_min: Optional[int] = None
    duplicate_of: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class EmergencyFilter(BaseModel):
    status: Optional[List[str]] = None
    triage_level: Optional[List[str]] = None
    needs: Optional[List[str]] = None


class Profile(BaseModel):
    id: str
    role: UserRole
    name: Optional[str] = None
    phone: Optional[str] = None
    created_at: Optional[datetime] = None


class IncidentEvent(BaseModel):
    id: str
    emergency_id: str
    kind: IncidentKind
    data: Dict[str, Any] = Field(default_factory=dict)
    ts: datetime = Field(default_factory=utcnow)


class AmbulancePosition(BaseModel):
    id: Optional[str] = None
    ambulance_id: str
    lat: float
    lon: float
    ts: datetime = Field(default_factory=utcnow)


class RoutingOptions(BaseModel):
    """Tunable knobs for a single matching call."""

    max_distance_km: float = 50.0
    speed_kmh: float = 30.0
    require_all_capabilities: bool = True


class HospitalMatch(BaseModel):
    hospital: Hospital
    distance: float
    eta: int
    capability_match: float = Field(ge=0, le=1)
    available: bool
    reason: Optional[str] = None


class RoutingResult(BaseModel):
    primary: Optional[HospitalMatch] = None
    alternatives: List[HospitalMatch] = Field(default_factory=list)
    reason: str
