from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ai4h.shared.models import (
    AmbulancePosition,
    Emergency,
    EmergencyStatus,
    Hospital,
    HospitalCapability,
    UserRole,
    Vitals,
)


class HealthResponse(BaseModel):
    status: str = "ok"
    websocket_clients: int = 0


class EmergencyCreateRequest(BaseModel):
    patient_id: str = Field(..., min_length=1)
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)
    type: str = Field(..., min_length=1)
    vitals: Optional[Vitals] = None
    needs: Optional[List[HospitalCapability]] = None


class EmergencyStatusUpdate(BaseModel):
    status: EmergencyStatus
    note: Optional[str] = None


class RerouteRequest(BaseModel):
    reason: Optional[str] = None


class HospitalUpdateRequest(BaseModel):
    beds_available: Optional[int] = Field(None, ge=0)
    doctors_available: Optional[int] = Field(None, ge=0)
    capabilities: Optional[List[HospitalCapability]] = None
    accepting_emergencies: Optional[bool] = None


class SetUnavailableRequest(BaseModel):
    emergency_id: Optional[str] = None
    reason: Optional[str] = None


class CsvImportRequest(BaseModel):
    csv_data: str = ""


class CsvImportResponse(BaseModel):
    message: str
    imported: int
    hospitals: List[Hospital]


class PositionsRequest(BaseModel):
    positions: List[Dict[str, Any]]


class PositionsResponse(BaseModel):
    message: str
    positions: List[AmbulancePosition]


class ProfileUpsertRequest(BaseModel):
    role: UserRole
    name: Optional[str] = None
    phone: Optional[str] = None


class DashboardResponse(BaseModel):
    stats: Dict[str, int]
    emergencies: List[Emergency]
    hospitals: List[Hospital]


class ArchiveResponse(BaseModel):
    archived: int


class EtaRequest(BaseModel):
    origin: Dict[str, float]
    destination: Dict[str, float]
    speed_kmh: float = Field(30.0, gt=0)


class EtaResponse(BaseModel):
    minutes: Optional[float]
    distance_km: Optional[float]
    source: str
