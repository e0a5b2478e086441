import math

from ai4h.matching.hospital_matcher import pick_hospital
from ai4h.matching.reroute import REROUTE_ATTEMPTS, find_alternative_route
from ai4h.shared.models import Emergency, Hospital

ORIGIN = (12.9716, 77.5946)
KM_PER_DEGREE_LAT = 111.195


def _emergency(needs=("Cardio",)):
    return Emergency(id="em-1", patient_id="p-1", lat=ORIGIN[0], lon=ORIGIN[1], needs=list(needs))


def _hospital(hospital_id, km, capabilities=("Cardio",), beds=5, accepting=True):
    return Hospital(
        id=hospital_id,
        name=hospital_id,
        lat=ORIGIN[0] + km / KM_PER_DEGREE_LAT,
        lon=ORIGIN[1],
        beds_available=beds,
        capabilities=list(capabilities),
        accepting_emergencies=accepting,
    )


def test_attempt_ladder():
    assert [(o.max_distance_km, o.speed_kmh) for o in REROUTE_ATTEMPTS] == [(75, 35), (100, 40)]
    assert all(not o.require_all_capabilities for o in REROUTE_ATTEMPTS)


def test_first_attempt_finds_hospital_beyond_default_radius():
    h1 = _hospital("H1", 5)
    h2 = _hospital("H2", 60)
    assert pick_hospital(_emergency(), [h2]).primary is None

    result = find_alternative_route(_emergency(), [h1, h2], exclude_ids=["H1"])
    assert result.primary.hospital.id == "H2"
    assert result.primary.available is True
    assert result.primary.eta == math.ceil(result.primary.distance / 35 * 60)


def test_second_attempt_widens_to_100_km():
    result = find_alternative_route(_emergency(), [_hospital("H1", 5), _hospital("H3", 90)], ["H1"])
    assert result.primary.hospital.id == "H3"
    assert result.primary.eta == math.ceil(result.primary.distance / 40 * 60)


def test_excluded_hospitals_never_returned():
    hospitals = [_hospital("H1", 1), _hospital("H2", 2)]
    result = find_alternative_route(_emergency(), hospitals, exclude_ids=["H1", "H2"])
    assert result.primary is None
    assert result.reason == "No suitable hospitals found within range"


def test_returns_last_attempt_when_nothing_available():
    full = _hospital("full", 10, beds=0)
    result = find_alternative_route(_emergency(), [full])
    assert result.primary.hospital.id == "full"
    assert result.primary.available is False
    # second attempt's speed
    assert result.primary.eta == math.ceil(result.primary.distance / 40 * 60)


def test_relaxed_capabilities_accept_partial_match():
    partial = _hospital("partial", 10, capabilities=("Cardio", "ICU"))
    result = find_alternative_route(_emergency(("Cardio", "ICU", "Neuro")), [partial])
    assert result.primary.available is True
