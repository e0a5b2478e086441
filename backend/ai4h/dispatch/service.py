"""Emergency lifecycle on top of the repository and the matching engine.

The service reads a hospital snapshot from the repository before every
matching call, persists the chosen assignment and records the incident
timeline. It never publishes events itself; callers broadcast the returned
outcomes.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from ai4h.matching.hospital_matcher import pick_hospital
from ai4h.matching.reroute import find_alternative_route
from ai4h.repo.base import Repo
from ai4h.shared.models import (
    Emergency,
    EmergencyFilter,
    Hospital,
    IncidentEvent,
    NewEmergency,
    RoutingOptions,
    RoutingResult,
    TriageResult,
    Vitals,
)
from ai4h.supply.hospital_csv import parse_hospitals_csv
from ai4h.triage.scorer import triage_score

logger = logging.getLogger(__name__)

STATUS_EVENT_KINDS = {
    "enroute": "enroute",
    "arrived": "arrived",
    "completed": "completed",
}
DASHBOARD_EMERGENCY_LIMIT = 50


class EmergencyNotFound(LookupError):
    pass


class HospitalNotFound(LookupError):
    pass


class CreationOutcome(BaseModel):
    emergency: Emergency
    triage: TriageResult
    routing: Optional[RoutingResult] = None


class RerouteOutcome(BaseModel):
    rerouted: bool
    emergency: Emergency
    routing: RoutingResult
    hospital: Optional[Hospital] = None
    eta: Optional[int] = None


class HospitalUnavailableOutcome(BaseModel):
    hospital: Hospital
    reroute: Optional[RerouteOutcome] = None


class DispatchService:
    def __init__(self, repo: Repo, routing_options: Optional[RoutingOptions] = None) -> None:
        self.repo = repo
        self.routing_options = routing_options or RoutingOptions()

    # emergencies

    def create_emergency(
        self,
        patient_id: str,
        lat: float,
        lon: float,
        emergency_type: str,
        vitals: Optional[Vitals] = None,
        needs: Optional[List[str]] = None,
    ) -> CreationOutcome:
        triage = triage_score(vitals, emergency_type)
        emergency = self.repo.create_emergency(
            NewEmergency(
                patient_id=patient_id,
                lat=lat,
                lon=lon,
                type=emergency_type,
                needs=needs if needs else triage.needs,
                triage_score=triage.score,
                vitals=vitals,
            )
        )
        logger.info(
            "Created emergency %s (triage %s/%s, needs=%s)",
            emergency.id,
            triage.score,
            triage.level,
            emergency.needs,
        )

        routing: Optional[RoutingResult] = None
        try:
            routing = pick_hospital(emergency, self.repo.list_hospitals(), self.routing_options)
            if routing.primary is not None and routing.primary.available:
                emergency = self.repo.update_emergency(
                    emergency.id,
                    assigned_hospital_id=routing.primary.hospital.id,
                    assigned_eta_min=routing.primary.eta,
                    status="assigned",
                )
                self._record(
                    emergency.id,
                    "assigned",
                    {
                        "hospital": routing.primary.hospital.model_dump(mode="json"),
                        "eta": routing.primary.eta,
                    },
                )
            self._record(
                emergency.id,
                "triage",
                {
                    "triage": triage.model_dump(mode="json"),
                    "routing_result": routing.model_dump(mode="json"),
                },
            )
        except Exception as exc:
            logger.warning("Hospital routing failed for %s: %s", emergency.id, exc, exc_info=True)

        return CreationOutcome(emergency=emergency, triage=triage, routing=routing)

    def get_emergency(self, emergency_id: str) -> Emergency:
        emergency = self.repo.get_emergency(emergency_id)
        if emergency is None:
            raise EmergencyNotFound(emergency_id)
        return emergency

    def list_emergencies(self, filter: Optional[EmergencyFilter] = None) -> List[Emergency]:
        return self.repo.list_emergencies(filter)

    def update_status(self, emergency_id: str, status: str, note: Optional[str] = None) -> Emergency:
        current = self.get_emergency(emergency_id)
        emergency = self.repo.update_emergency(emergency_id, status=status)
        kind = STATUS_EVENT_KINDS.get(status, "note")
        self._record(
            emergency_id,
            kind,
            {"from_status": current.status, "to_status": status, "note": note},
        )
        logger.info("Emergency %s status %s -> %s", emergency_id, current.status, status)
        return emergency

    def timeline(self, emergency_id: str) -> List[IncidentEvent]:
        self.get_emergency(emergency_id)
        return self.repo.list_incident_events(emergency_id)

    # rerouting

    def reroute(self, emergency_id: str, reason: Optional[str] = None) -> RerouteOutcome:
        emergency = self.get_emergency(emergency_id)
        exclude_ids = [
            hospital_id
            for hospital_id in (emergency.assigned_hospital_id, emergency.rerouted_to_id)
            if hospital_id
        ]
        return self._reroute(
            emergency,
            exclude_ids,
            from_hospital_id=emergency.rerouted_to_id or emergency.assigned_hospital_id,
            reason=reason or "Manual reroute",
        )

    def set_hospital_unavailable(
        self,
        hospital_id: str,
        emergency_id: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> HospitalUnavailableOutcome:
        hospital = self.repo.get_hospital(hospital_id)
        if hospital is None:
            raise HospitalNotFound(hospital_id)
        hospital = self.repo.upsert_hospital(
            hospital.model_copy(update={"accepting_emergencies": False})
        )
        logger.info("Hospital %s marked as not accepting emergencies", hospital_id)

        outcome = HospitalUnavailableOutcome(hospital=hospital)
        if emergency_id:
            emergency = self.repo.get_emergency(emergency_id)
            if emergency is not None:
                outcome.reroute = self._reroute(
                    emergency,
                    [hospital_id],
                    from_hospital_id=hospital_id,
                    reason=reason or "Hospital marked as unavailable",
                )
        return outcome

    def _reroute(
        self,
        emergency: Emergency,
        exclude_ids: List[str],
        from_hospital_id: Optional[str],
        reason: str,
    ) -> RerouteOutcome:
        routing = find_alternative_route(emergency, self.repo.list_hospitals(), exclude_ids)
        primary = routing.primary
        if primary is None or not primary.available:
            logger.warning("No alternative hospital for emergency %s: %s", emergency.id, routing.reason)
            return RerouteOutcome(rerouted=False, emergency=emergency, routing=routing)

        emergency = self.repo.update_emergency(
            emergency.id,
            rerouted_to_id=primary.hospital.id,
            assigned_eta_min=primary.eta,
            status="assigned",
        )
        self._record(
            emergency.id,
            "reroute",
            {
                "from_hospital_id": from_hospital_id,
                "to_hospital": primary.hospital.model_dump(mode="json"),
                "reason": reason,
                "eta": primary.eta,
            },
        )
        logger.info(
            "Rerouted emergency %s from %s to %s (%s min)",
            emergency.id,
            from_hospital_id,
            primary.hospital.id,
            primary.eta,
        )
        return RerouteOutcome(
            rerouted=True,
            emergency=emergency,
            routing=routing,
            hospital=primary.hospital,
            eta=primary.eta,
        )

    # hospitals

    def list_hospitals(self) -> List[Hospital]:
        return self.repo.list_hospitals()

    def get_hospital(self, hospital_id: str) -> Hospital:
        hospital = self.repo.get_hospital(hospital_id)
        if hospital is None:
            raise HospitalNotFound(hospital_id)
        return hospital

    def update_hospital(self, hospital_id: str, changes: Dict[str, Any]) -> Hospital:
        hospital = self.get_hospital(hospital_id)
        updates = {key: value for key, value in changes.items() if value is not None}
        merged = Hospital(**{**hospital.model_dump(), **updates})
        return self.repo.upsert_hospital(merged)

    def import_hospitals(self, csv_data: str) -> List[Hospital]:
        imported = [self.repo.upsert_hospital(h) for h in parse_hospitals_csv(csv_data)]
        logger.info("Imported %s hospitals from CSV", len(imported))
        return imported

    # admin

    def dashboard(self) -> Dict[str, Any]:
        emergencies = self.repo.list_emergencies()
        hospitals = self.repo.list_hospitals()
        stats = {
            "total_emergencies": len(emergencies),
            "active": sum(1 for e in emergencies if e.status == "active"),
            "assigned": sum(1 for e in emergencies if e.status == "assigned"),
            "enroute": sum(1 for e in emergencies if e.status == "enroute"),
            "completed": sum(1 for e in emergencies if e.status == "completed"),
            "hospitals_count": len(hospitals),
            "hospitals_accepting": sum(1 for h in hospitals if h.accepting_emergencies is not False),
        }
        return {
            "stats": stats,
            "emergencies": emergencies[:DASHBOARD_EMERGENCY_LIMIT],
            "hospitals": hospitals,
        }

    def archive_completed(self, older_than_days: int) -> int:
        return self.repo.archive_completed(older_than_days)

    def _record(self, emergency_id: str, kind: str, data: Dict[str, Any]) -> None:
        self.repo.add_incident_event(
            IncidentEvent(id=str(uuid.uuid4()), emergency_id=emergency_id, kind=kind, data=data)
        )
