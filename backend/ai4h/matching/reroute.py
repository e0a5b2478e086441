from __future__ import annotations

import logging
from typing import Iterable, Sequence

from ai4h.matching.hospital_matcher import pick_hospital
from ai4h.shared.models import Emergency, Hospital, RoutingOptions, RoutingResult

logger = logging.getLogger(__name__)

# Widen-and-retry ladder: the first pass prefers quality at moderate range,
# the second trades quality for finding any hospital at all.
REROUTE_ATTEMPTS = (
    RoutingOptions(max_distance_km=75, speed_kmh=35, require_all_capabilities=False),
    RoutingOptions(max_distance_km=100, speed_kmh=40, require_all_capabilities=False),
)


def find_alternative_route(
    emergency: Emergency,
    hospitals: Sequence[Hospital],
    exclude_ids: Iterable[str] = (),
) -> RoutingResult:
    """Re-run matching without the excluded hospitals under relaxed constraints.

    Returns the result of the last attempt made. Callers must check
    ``primary.available`` themselves; an unsuccessful search is a normal
    result, not an error.
    """
    excluded = frozenset(exclude_ids)
    candidates = [h for h in hospitals if h.id not in excluded]

    result = None
    for attempt, options in enumerate(REROUTE_ATTEMPTS, start=1):
        result = pick_hospital(emergency, candidates, options)
        if result.primary is not None and result.primary.available:
            break
        logger.info(
            "Reroute attempt %s for emergency %s found no available hospital within %s km",
            attempt,
            emergency.id,
            options.max_distance_km,
        )
    return result
