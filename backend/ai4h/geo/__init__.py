from ai4h.geo.haversine import haversine_km
from ai4h.geo.travel_time import eta_minutes

__all__ = ["haversine_km", "eta_minutes"]
