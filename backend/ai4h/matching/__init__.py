# Hospital assignment engine: capability scoring, ranking and rerouting
from ai4h.matching.capability import capability_match
from ai4h.matching.hospital_matcher import pick_hospital
from ai4h.matching.reroute import find_alternative_route

__all__ = ["capability_match", "pick_hospital", "find_alternative_route"]
