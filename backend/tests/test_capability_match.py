import pytest

from ai4h.matching.capability import capability_match


def test_empty_needs_match_any_hospital():
    assert capability_match([], []) == 1.0
    assert capability_match([], ["ICU"]) == 1.0


def test_full_and_partial_match():
    assert capability_match(["Cardio"], ["ICU", "Cardio"]) == 1.0
    assert capability_match(["Cardio", "ICU"], ["ICU"]) == 0.5
    assert capability_match(["Cardio", "ICU", "Neuro"], ["ICU", "Neuro"]) == pytest.approx(2 / 3)


def test_no_overlap():
    assert capability_match(["Peds"], []) == 0.0


def test_duplicates_count_once():
    assert capability_match(["ICU", "ICU", "Cardio"], ["ICU"]) == 0.5
