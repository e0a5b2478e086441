"""Rank candidate hospitals for a single emergency.

Each call is a pure function of its inputs: the emergency, a snapshot of the
hospital list and the routing options. Hospitals outside the search radius are
dropped; everything else is returned as a ``HospitalMatch`` (full or closed
hospitals included, flagged unavailable) so callers can see "closest but full"
instead of nothing.
"""

from __future__ import annotations

import logging
from functools import cmp_to_key
from typing import List, Optional, Sequence

from ai4h.geo.haversine import haversine_km
from ai4h.geo.travel_time import eta_minutes
from ai4h.matching.capability import capability_match
from ai4h.shared.models import Emergency, Hospital, HospitalMatch, RoutingOptions, RoutingResult

logger = logging.getLogger(__name__)

MAX_ALTERNATIVES = 5
CAPABILITY_NEAR_TIE = 0.1
RELAXED_CAPABILITY_THRESHOLD = 0.5

REASON_NO_LOCATION = "Emergency location not available"
REASON_NO_HOSPITALS = "No hospitals available"
REASON_NONE_IN_RANGE = "No suitable hospitals found within range"

UNAVAILABLE_NO_BEDS = "No available beds"
UNAVAILABLE_NOT_ACCEPTING = "Not accepting emergencies"
UNAVAILABLE_CAPABILITIES = "Insufficient capabilities"


def pick_hospital(
    emergency: Emergency,
    hospitals: Sequence[Hospital],
    options: Optional[RoutingOptions] = None,
) -> RoutingResult:
    options = options or RoutingOptions()

    if emergency.lat is None or emergency.lon is None:
        return RoutingResult(primary=None, alternatives=[], reason=REASON_NO_LOCATION)
    if not hospitals:
        return RoutingResult(primary=None, alternatives=[], reason=REASON_NO_HOSPITALS)

    matches: List[HospitalMatch] = []
    for hospital in hospitals:
        match = _evaluate(emergency, hospital, options)
        if match is not None:
            matches.append(match)

    ranked = sorted(matches, key=cmp_to_key(_compare_matches))
    primary = ranked[0] if ranked else None
    alternatives = ranked[1 : MAX_ALTERNATIVES + 1]

    result = RoutingResult(
        primary=primary,
        alternatives=alternatives,
        reason=_build_reason(primary),
    )
    logger.debug(
        "Routing emergency %s: %s candidates in range, primary=%s",
        emergency.id,
        len(ranked),
        primary.hospital.id if primary else None,
    )
    return result


def _evaluate(
    emergency: Emergency, hospital: Hospital, options: RoutingOptions
) -> Optional[HospitalMatch]:
    distance = haversine_km(emergency.lat, emergency.lon, hospital.lat, hospital.lon)
    if distance > options.max_distance_km:
        return None

    needs = emergency.needs
    match_ratio = capability_match(needs, hospital.capabilities)
    if options.require_all_capabilities:
        meets_capabilities = match_ratio == 1.0 or not needs
    else:
        meets_capabilities = match_ratio > RELAXED_CAPABILITY_THRESHOLD

    has_capacity = (hospital.beds_available or 0) > 0
    accepting = True if hospital.accepting_emergencies is None else hospital.accepting_emergencies

    reason = None
    if not has_capacity:
        reason = UNAVAILABLE_NO_BEDS
    elif not accepting:
        reason = UNAVAILABLE_NOT_ACCEPTING
    elif not meets_capabilities:
        reason = UNAVAILABLE_CAPABILITIES

    return HospitalMatch(
        hospital=hospital,
        distance=distance,
        eta=eta_minutes(distance, options.speed_kmh),
        capability_match=match_ratio,
        available=has_capacity and accepting and meets_capabilities,
        reason=reason,
    )


def _compare_matches(a: HospitalMatch, b: HospitalMatch) -> int:
    # Available first, then capability match unless within the near-tie band,
    # then distance.
    if a.available != b.available:
        return -1 if a.available else 1
    if abs(a.capability_match - b.capability_match) > CAPABILITY_NEAR_TIE:
        return _sign(b.capability_match - a.capability_match)
    return _sign(a.distance - b.distance)


def _sign(value: float) -> int:
    return (value > 0) - (value < 0)


def _build_reason(primary: Optional[HospitalMatch]) -> str:
    if primary is None:
        return REASON_NONE_IN_RANGE
    if primary.available:
        return f"Assigned to {primary.hospital.name} ({primary.eta} min ETA)"
    return (
        f"Best match {primary.hospital.name} unavailable: {primary.reason}. "
        "Auto-routing to alternatives."
    )
