from __future__ import annotations

import math
from typing import Dict, Optional

from ai4h.geo.haversine import haversine_km

DEFAULT_SPEED_KMH = 30.0


def eta_minutes(distance_km: float, speed_kmh: float = DEFAULT_SPEED_KMH) -> int:
    # speed_kmh must be > 0; callers guarantee it.
    return int(math.ceil((distance_km / speed_kmh) * 60))


def get_travel_time_minutes(
    origin: Dict[str, float],
    destination: Dict[str, float],
    speed_kmh: float = DEFAULT_SPEED_KMH,
) -> Dict[str, Optional[float]]:
    distance_km = haversine_km(
        float(origin["lat"]),
        float(origin["lon"]),
        float(destination["lat"]),
        float(destination["lon"]),
    )
    return {
        "minutes": eta_minutes(distance_km, speed_kmh),
        "distance_km": round(distance_km, 2),
        "source": "haversine",
    }
