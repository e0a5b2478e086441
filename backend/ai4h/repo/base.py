from __future__ import annotations

from typing import List, Optional, Protocol

from ai4h.shared.models import (
    AmbulancePosition,
    Emergency,
    EmergencyFilter,
    Hospital,
    IncidentEvent,
    NewEmergency,
    Profile,
)


class Repo(Protocol):
    """Key-value persistence consumed by the dispatch service."""

    def get_profile(self, user_id: str) -> Optional[Profile]: ...

    def upsert_profile(self, profile: Profile) -> Profile: ...

    def list_hospitals(self) -> List[Hospital]: ...

    def get_hospital(self, hospital_id: str) -> Optional[Hospital]: ...

    def upsert_hospital(self, hospital: Hospital) -> Hospital: ...

    def create_emergency(self, emergency: NewEmergency) -> Emergency: ...

    def list_emergencies(self, filter: Optional[EmergencyFilter] = None) -> List[Emergency]: ...

    def get_emergency(self, emergency_id: str) -> Optional[Emergency]: ...

    def update_emergency(self, emergency_id: str, **patch) -> Optional[Emergency]: ...

    def add_incident_event(self, event: IncidentEvent) -> None: ...

    def list_incident_events(self, emergency_id: str) -> List[IncidentEvent]: ...

    def add_ambulance_position(self, position: AmbulancePosition) -> AmbulancePosition: ...

    def list_ambulance_positions(self, ambulance_id: str, limit: int = 50) -> List[AmbulancePosition]: ...

    def archive_completed(self, older_than_days: int) -> int: ...
