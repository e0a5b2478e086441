from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from ai4h.config.settings import get_settings
from ai4h.dispatch.service import (
    CreationOutcome,
    DispatchService,
    EmergencyNotFound,
    HospitalNotFound,
    HospitalUnavailableOutcome,
    RerouteOutcome,
)
from ai4h.geo.travel_time import get_travel_time_minutes
from ai4h.repo.select_repo import select_repo
from ai4h.shared.models import (
    AmbulancePosition,
    Emergency,
    EmergencyFilter,
    Hospital,
    IncidentEvent,
    Profile,
)
from ai4h.supply.hospital_csv import HospitalImportError

from .schemas import (
    ArchiveResponse,
    CsvImportRequest,
    CsvImportResponse,
    DashboardResponse,
    EmergencyCreateRequest,
    EmergencyStatusUpdate,
    EtaRequest,
    EtaResponse,
    HealthResponse,
    HospitalUpdateRequest,
    PositionsRequest,
    PositionsResponse,
    ProfileUpsertRequest,
    RerouteRequest,
    SetUnavailableRequest,
)
from .websocket import EventHub

settings = get_settings()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="AI4H Dispatch API", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

hub = EventHub()


def get_service() -> DispatchService:
    return DispatchService(select_repo(), get_settings().routing_options())


@app.exception_handler(EmergencyNotFound)
async def emergency_not_found(request: Request, exc: EmergencyNotFound) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": "Emergency not found"})


@app.exception_handler(HospitalNotFound)
async def hospital_not_found(request: Request, exc: HospitalNotFound) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": "Hospital not found"})


@app.get("/api/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(websocket_clients=hub.connected_count())


# emergencies


@app.get("/api/emergencies", response_model=List[Emergency])
def list_emergencies(
    status: Optional[List[str]] = Query(None),
    triage_level: Optional[List[str]] = Query(None),
    needs: Optional[List[str]] = Query(None),
    service: DispatchService = Depends(get_service),
) -> List[Emergency]:
    return service.list_emergencies(
        EmergencyFilter(status=status, triage_level=triage_level, needs=needs)
    )


@app.post("/api/emergencies", response_model=CreationOutcome, status_code=201)
async def create_emergency(
    payload: EmergencyCreateRequest,
    service: DispatchService = Depends(get_service),
) -> CreationOutcome:
    outcome = service.create_emergency(
        patient_id=payload.patient_id,
        lat=payload.lat,
        lon=payload.lon,
        emergency_type=payload.type,
        vitals=payload.vitals,
        needs=payload.needs,
    )
    await hub.broadcast("emergency_created", outcome)
    return outcome


@app.get("/api/emergencies/{emergency_id}", response_model=Emergency)
def get_emergency(emergency_id: str, service: DispatchService = Depends(get_service)) -> Emergency:
    return service.get_emergency(emergency_id)


@app.patch("/api/emergencies/{emergency_id}", response_model=Emergency)
async def update_emergency_status(
    emergency_id: str,
    payload: EmergencyStatusUpdate,
    service: DispatchService = Depends(get_service),
) -> Emergency:
    emergency = service.update_status(emergency_id, payload.status, note=payload.note)
    await hub.broadcast("emergency_status_changed", emergency)
    return emergency


@app.get("/api/emergencies/{emergency_id}/timeline", response_model=List[IncidentEvent])
def emergency_timeline(
    emergency_id: str, service: DispatchService = Depends(get_service)
) -> List[IncidentEvent]:
    return service.timeline(emergency_id)


@app.post("/api/emergencies/{emergency_id}/reroute", response_model=RerouteOutcome)
async def reroute_emergency(
    emergency_id: str,
    payload: Optional[RerouteRequest] = None,
    service: DispatchService = Depends(get_service),
) -> RerouteOutcome:
    outcome = service.reroute(emergency_id, reason=payload.reason if payload else None)
    if not outcome.rerouted:
        raise HTTPException(
            status_code=400,
            detail={
                "message": "No alternative hospitals available",
                "routing": outcome.routing.model_dump(mode="json"),
            },
        )
    await hub.broadcast("emergency_rerouted", outcome)
    return outcome


# hospitals


@app.get("/api/hospitals", response_model=List[Hospital])
def list_hospitals(service: DispatchService = Depends(get_service)) -> List[Hospital]:
    return service.list_hospitals()


@app.get("/api/hospitals/{hospital_id}", response_model=Hospital)
def get_hospital(hospital_id: str, service: DispatchService = Depends(get_service)) -> Hospital:
    return service.get_hospital(hospital_id)


@app.patch("/api/hospitals/{hospital_id}", response_model=Hospital)
async def update_hospital(
    hospital_id: str,
    payload: HospitalUpdateRequest,
    service: DispatchService = Depends(get_service),
) -> Hospital:
    hospital = service.update_hospital(hospital_id, payload.model_dump(exclude_unset=True))
    await hub.broadcast("hospital_updated", hospital)
    return hospital


@app.post("/api/hospitals/{hospital_id}/set-unavailable", response_model=HospitalUnavailableOutcome)
async def set_hospital_unavailable(
    hospital_id: str,
    payload: Optional[SetUnavailableRequest] = None,
    service: DispatchService = Depends(get_service),
) -> HospitalUnavailableOutcome:
    payload = payload or SetUnavailableRequest()
    outcome = service.set_hospital_unavailable(
        hospital_id, emergency_id=payload.emergency_id, reason=payload.reason
    )
    await hub.broadcast("hospital_updated", outcome.hospital)
    if outcome.reroute is not None and outcome.reroute.rerouted:
        await hub.broadcast("emergency_updated", outcome.reroute.emergency)
    return outcome


@app.post("/api/hospitals/import-csv", response_model=CsvImportResponse)
def import_hospitals_csv(
    payload: CsvImportRequest, service: DispatchService = Depends(get_service)
) -> CsvImportResponse:
    try:
        hospitals = service.import_hospitals(payload.csv_data)
    except HospitalImportError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return CsvImportResponse(
        message=f"Imported {len(hospitals)} hospitals",
        imported=len(hospitals),
        hospitals=hospitals,
    )


# ambulance tracking


@app.post("/api/ambulance/positions", response_model=PositionsResponse)
def save_ambulance_positions(
    payload: PositionsRequest, service: DispatchService = Depends(get_service)
) -> PositionsResponse:
    saved: List[AmbulancePosition] = []
    for raw in payload.positions:
        try:
            position = AmbulancePosition(
                ambulance_id=raw.get("ambulance_id") or raw.get("ambulanceId"),
                lat=raw.get("lat"),
                lon=raw.get("lon"),
            )
        except ValidationError:
            logger.debug("Skipping invalid ambulance position: %s", raw)
            continue
        saved.append(service.repo.add_ambulance_position(position))
    return PositionsResponse(message=f"Saved {len(saved)} positions", positions=saved)


@app.get("/api/ambulance/positions/{ambulance_id}", response_model=List[AmbulancePosition])
def list_ambulance_positions(
    ambulance_id: str,
    limit: int = Query(100, ge=1, le=1000),
    service: DispatchService = Depends(get_service),
) -> List[AmbulancePosition]:
    return service.repo.list_ambulance_positions(ambulance_id, limit=limit)


# profiles


@app.get("/api/profiles/{profile_id}", response_model=Profile)
def get_profile(profile_id: str, service: DispatchService = Depends(get_service)) -> Profile:
    profile = service.repo.get_profile(profile_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


@app.put("/api/profiles/{profile_id}", response_model=Profile)
def upsert_profile(
    profile_id: str,
    payload: ProfileUpsertRequest,
    service: DispatchService = Depends(get_service),
) -> Profile:
    return service.repo.upsert_profile(Profile(id=profile_id, **payload.model_dump()))


# routing helpers


@app.post("/api/routing/eta", response_model=EtaResponse)
def routing_eta(payload: EtaRequest) -> EtaResponse:
    try:
        result = get_travel_time_minutes(payload.origin, payload.destination, payload.speed_kmh)
    except KeyError as exc:
        raise HTTPException(status_code=400, detail=f"Missing coordinate: {exc}") from exc
    return EtaResponse(**result)


# admin


@app.get("/api/admin/dashboard", response_model=DashboardResponse)
def admin_dashboard(service: DispatchService = Depends(get_service)) -> DashboardResponse:
    return DashboardResponse(**service.dashboard())


@app.post("/api/admin/archive", response_model=ArchiveResponse)
def admin_archive(
    older_than_days: int = Query(30, ge=0),
    service: DispatchService = Depends(get_service),
) -> ArchiveResponse:
    return ArchiveResponse(archived=service.archive_completed(older_than_days))


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await hub.connect(websocket)
    try:
        while True:
            message = await websocket.receive_text()
            await hub.acknowledge(websocket, message)
    except WebSocketDisconnect:
        hub.disconnect(websocket)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000, log_level=settings.log_level.lower())
