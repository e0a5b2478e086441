from __future__ import annotations

import logging
import threading
import uuid
from datetime import timedelta
from typing import Dict, List, Optional

from ai4h.geo.haversine import haversine_km
from ai4h.shared.models import (
    AmbulancePosition,
    Emergency,
    EmergencyFilter,
    Hospital,
    IncidentEvent,
    NewEmergency,
    Profile,
    utcnow,
)
from ai4h.triage.scorer import level_for_score

logger = logging.getLogger(__name__)

DUPLICATE_WINDOW = timedelta(minutes=5)
DUPLICATE_RADIUS_KM = 0.1
MAX_POSITIONS_PER_AMBULANCE = 100
CLOSED_STATUSES = ("completed", "cancelled")

DEMO_HOSPITALS = [
    {
        "id": "hosp-001",
        "name": "City General Hospital",
        "lat": 12.9716,
        "lon": 77.5946,
        "beds_available": 15,
        "doctors_available": 8,
        "capabilities": ["ICU", "Ventilator", "Cardio"],
        "accepting_emergencies": True,
    },
    {
        "id": "hosp-002",
        "name": "Apollo Specialty Center",
        "lat": 12.9352,
        "lon": 77.6245,
        "beds_available": 8,
        "doctors_available": 12,
        "capabilities": ["ICU", "Ventilator", "Peds", "Neuro"],
        "accepting_emergencies": True,
    },
    {
        "id": "hosp-003",
        "name": "Fortis Healthcare",
        "lat": 12.9698,
        "lon": 77.7500,
        "beds_available": 20,
        "doctors_available": 15,
        "capabilities": ["ICU", "Ventilator", "Cardio", "Peds", "Neuro"],
        "accepting_emergencies": True,
    },
]

DEMO_PROFILES = [
    {"id": "demo-admin", "role": "admin", "name": "Demo Admin", "phone": "+91-98765-43210"},
    {"id": "demo-patient", "role": "patient", "name": "Rahul Mehta", "phone": "+91-90000-00000"},
    {"id": "demo-driver", "role": "driver", "name": "Ambulance Driver", "phone": "+91-88888-88888"},
]


class InMemoryRepo:
    """Dict-backed repository. Returned records are copies; mutate via the API."""

    def __init__(self, seed_demo_data: bool = True) -> None:
        self._lock = threading.RLock()
        self._profiles: Dict[str, Profile] = {}
        self._hospitals: Dict[str, Hospital] = {}
        self._emergencies: Dict[str, Emergency] = {}
        self._incident_events: Dict[str, List[IncidentEvent]] = {}
        self._ambulance_positions: Dict[str, List[AmbulancePosition]] = {}
        if seed_demo_data:
            self._seed()

    def _seed(self) -> None:
        for item in DEMO_HOSPITALS:
            self.upsert_hospital(Hospital(**item))
        for item in DEMO_PROFILES:
            self.upsert_profile(Profile(**item))
        logger.info(
            "Seeded in-memory repo with %s hospitals and %s profiles",
            len(DEMO_HOSPITALS),
            len(DEMO_PROFILES),
        )

    # profiles

    def get_profile(self, user_id: str) -> Optional[Profile]:
        with self._lock:
            profile = self._profiles.get(user_id)
            return profile.model_copy() if profile else None

    def upsert_profile(self, profile: Profile) -> Profile:
        with self._lock:
            existing = self._profiles.get(profile.id)
            if existing is not None:
                created_at = existing.created_at
            else:
                created_at = profile.created_at or utcnow()
            stored = profile.model_copy(update={"created_at": created_at})
            self._profiles[stored.id] = stored
        return stored.model_copy()

    # hospitals

    def list_hospitals(self) -> List[Hospital]:
        with self._lock:
            hospitals = [h.model_copy(deep=True) for h in self._hospitals.values()]
        return sorted(hospitals, key=lambda h: h.name)

    def get_hospital(self, hospital_id: str) -> Optional[Hospital]:
        with self._lock:
            hospital = self._hospitals.get(hospital_id)
            return hospital.model_copy(deep=True) if hospital else None

    def upsert_hospital(self, hospital: Hospital) -> Hospital:
        stored = hospital.model_copy(
            update={"created_at": hospital.created_at or utcnow()}, deep=True
        )
        with self._lock:
            self._hospitals[stored.id] = stored
        return stored.model_copy(deep=True)

    # emergencies

    def create_emergency(self, emergency: NewEmergency) -> Emergency:
        now = utcnow()
        with self._lock:
            duplicate_of = self._find_duplicate(emergency, now)
            record = Emergency(
                id=str(uuid.uuid4()),
                **emergency.model_dump(),
                status="active",
                duplicate_of=duplicate_of,
                created_at=now,
                updated_at=now,
            )
            self._emergencies[record.id] = record
            self.add_incident_event(
                IncidentEvent(
                    id=str(uuid.uuid4()),
                    emergency_id=record.id,
                    kind="created",
                    data={
                        "triage_score": record.triage_score,
                        "type": record.type,
                        "needs": list(record.needs),
                        "duplicate_of": duplicate_of,
                    },
                    ts=now,
                )
            )
        if duplicate_of:
            logger.info("Emergency %s flagged as duplicate of %s", record.id, duplicate_of)
        return record.model_copy(deep=True)

    def _find_duplicate(self, emergency: NewEmergency, now) -> Optional[str]:
        if emergency.lat is None or emergency.lon is None:
            return None
        for existing in self._emergencies.values():
            if existing.patient_id != emergency.patient_id:
                continue
            if existing.status in CLOSED_STATUSES:
                continue
            if now - existing.created_at >= DUPLICATE_WINDOW:
                continue
            if existing.lat is None or existing.lon is None:
                continue
            distance = haversine_km(existing.lat, existing.lon, emergency.lat, emergency.lon)
            if distance < DUPLICATE_RADIUS_KM:
                return existing.id
        return None

    def list_emergencies(self, filter: Optional[EmergencyFilter] = None) -> List[Emergency]:
        with self._lock:
            emergencies = [e.model_copy(deep=True) for e in self._emergencies.values()]

        if filter and filter.status:
            emergencies = [e for e in emergencies if e.status in filter.status]
        if filter and filter.triage_level:
            emergencies = [
                e for e in emergencies if level_for_score(e.triage_score) in filter.triage_level
            ]
        if filter and filter.needs:
            wanted = set(filter.needs)
            emergencies = [e for e in emergencies if wanted & set(e.needs)]

        return sorted(emergencies, key=lambda e: e.created_at, reverse=True)

    def get_emergency(self, emergency_id: str) -> Optional[Emergency]:
        with self._lock:
            emergency = self._emergencies.get(emergency_id)
            return emergency.model_copy(deep=True) if emergency else None

    def update_emergency(self, emergency_id: str, **patch) -> Optional[Emergency]:
        with self._lock:
            existing = self._emergencies.get(emergency_id)
            if existing is None:
                return None
            data = existing.model_dump()
            data.update(patch)
            data["updated_at"] = utcnow()
            updated = Emergency(**data)
            self._emergencies[emergency_id] = updated
        return updated.model_copy(deep=True)

    # incident timeline

    def add_incident_event(self, event: IncidentEvent) -> None:
        with self._lock:
            self._incident_events.setdefault(event.emergency_id, []).append(event)

    def list_incident_events(self, emergency_id: str) -> List[IncidentEvent]:
        with self._lock:
            events = list(self._incident_events.get(emergency_id, []))
        return sorted(events, key=lambda ev: ev.ts)

    # ambulance positions

    def add_ambulance_position(self, position: AmbulancePosition) -> AmbulancePosition:
        stored = position.model_copy(update={"id": position.id or str(uuid.uuid4())})
        with self._lock:
            positions = self._ambulance_positions.setdefault(stored.ambulance_id, [])
            positions.append(stored)
            if len(positions) > MAX_POSITIONS_PER_AMBULANCE:
                del positions[: len(positions) - MAX_POSITIONS_PER_AMBULANCE]
        return stored

    def list_ambulance_positions(self, ambulance_id: str, limit: int = 50) -> List[AmbulancePosition]:
        with self._lock:
            positions = list(self._ambulance_positions.get(ambulance_id, []))
        positions.sort(key=lambda p: p.ts, reverse=True)
        return positions[:limit]

    # archival

    def archive_completed(self, older_than_days: int) -> int:
        cutoff = utcnow() - timedelta(days=older_than_days)
        archived = 0
        with self._lock:
            for emergency_id, emergency in list(self._emergencies.items()):
                if emergency.status == "completed" and emergency.updated_at < cutoff:
                    del self._emergencies[emergency_id]
                    self._incident_events.pop(emergency_id, None)
                    archived += 1
        if archived:
            logger.info("Archived %s completed emergencies older than %s days", archived, older_than_days)
        return archived
