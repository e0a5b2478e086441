"""Rule-based triage from vital signs and an emergency-type label.

Produces a 0-100 severity score, a red/yellow/green level and the list of
hospital capabilities the patient is likely to need. The hospital matcher only
consumes ``needs``; score and level travel with the emergency as metadata.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from ai4h.shared.models import TriageResult, Vitals

RED_THRESHOLD = 70
YELLOW_THRESHOLD = 30

# (keywords, needs) checked independently; every hit contributes.
TYPE_NEEDS: List[Tuple[Tuple[str, ...], Tuple[str, ...]]] = [
    (("cardiac", "heart", "chest pain"), ("Cardio", "ICU")),
    (("respiratory", "asthma", "breathing"), ("Ventilator",)),
    (("stroke", "seizure", "head", "neurological"), ("Neuro", "ICU")),
    (("pediatric", "child", "infant"), ("Peds",)),
    (("trauma", "accident", "injury"), ("ICU",)),
    (("critical", "severe", "emergency"), ("ICU",)),
]

# (keywords, points) checked in order; first hit wins.
TYPE_SEVERITY: List[Tuple[Tuple[str, ...], int]] = [
    (("cardiac arrest", "stroke", "severe trauma"), 30),
    (("heart attack", "respiratory failure", "severe bleeding"), 25),
    (("chest pain", "difficulty breathing", "head injury"), 20),
    (("asthma", "seizure", "severe pain"), 15),
    (("allergic reaction", "overdose", "burn"), 10),
    (("injury", "fall", "accident"), 5),
]


class _Findings:
    def __init__(self) -> None:
        self.score = 0
        self.reasons: List[str] = []
        self.needs: List[str] = []

    def add(self, points: int, reason: str, *needs: str) -> None:
        self.score += points
        self.reasons.append(reason)
        self.add_needs(needs)

    def add_needs(self, needs) -> None:
        for need in needs:
            if need not in self.needs:
                self.needs.append(need)


def triage_score(vitals: Optional[Vitals], emergency_type: Optional[str] = None) -> TriageResult:
    vitals = vitals or Vitals()
    findings = _Findings()

    _score_heart_rate(vitals.hr, findings)
    _score_spo2(vitals.spo2, findings)
    _score_blood_pressure(vitals.sbp, findings)
    _score_respiratory_rate(vitals.rr, findings)
    _score_gcs(vitals.gcs, findings)

    if emergency_type:
        findings.add_needs(infer_needs_from_type(emergency_type))
        severity = type_severity(emergency_type)
        findings.score += severity
        if severity > 0:
            findings.reasons.append(f"{emergency_type} emergency")

    score = min(findings.score, 100)
    return TriageResult(
        score=score,
        level=level_for_score(score),
        reason="; ".join(findings.reasons) if findings.reasons else "Normal vitals",
        needs=findings.needs,
    )


def level_for_score(score: int) -> str:
    if score >= RED_THRESHOLD:
        return "red"
    if score >= YELLOW_THRESHOLD:
        return "yellow"
    return "green"


def infer_needs_from_type(emergency_type: str) -> List[str]:
    text = emergency_type.lower()
    needs: List[str] = []
    for keywords, capabilities in TYPE_NEEDS:
        if any(keyword in text for keyword in keywords):
            needs.extend(capabilities)
    return needs


def type_severity(emergency_type: str) -> int:
    text = emergency_type.lower()
    for keywords, points in TYPE_SEVERITY:
        if any(keyword in text for keyword in keywords):
            return points
    return 0


def _score_heart_rate(hr: Optional[float], findings: _Findings) -> None:
    if hr is None:
        return
    if hr > 140 or hr < 40:
        findings.add(25, "Critical heart rate", "ICU", "Cardio")
    elif hr > 120 or hr < 50:
        findings.add(15, "Abnormal heart rate", "Cardio")
    elif hr > 100 or hr < 60:
        findings.add(5, "Elevated heart rate")


def _score_spo2(spo2: Optional[float], findings: _Findings) -> None:
    if spo2 is None:
        return
    if spo2 < 85:
        findings.add(30, "Critical oxygen levels", "ICU", "Ventilator")
    elif spo2 < 92:
        findings.add(20, "Low oxygen saturation", "Ventilator")
    elif spo2 < 95:
        findings.add(10, "Mild oxygen desaturation")


def _score_blood_pressure(sbp: Optional[float], findings: _Findings) -> None:
    if sbp is None:
        return
    if sbp > 180 or sbp < 70:
        findings.add(20, "Critical blood pressure", "ICU", "Cardio")
    elif sbp > 160 or sbp < 90:
        findings.add(10, "Abnormal blood pressure", "Cardio")


def _score_respiratory_rate(rr: Optional[float], findings: _Findings) -> None:
    if rr is None:
        return
    if rr > 35 or rr < 8:
        findings.add(25, "Critical respiratory distress", "ICU", "Ventilator")
    elif rr > 25 or rr < 10:
        findings.add(15, "Respiratory distress", "Ventilator")
    elif rr > 20 or rr < 12:
        findings.add(5, "Mild respiratory changes")


def _score_gcs(gcs: Optional[float], findings: _Findings) -> None:
    if gcs is None:
        return
    if gcs < 9:
        findings.add(30, "Severe neurological impairment", "ICU", "Neuro", "Ventilator")
    elif gcs < 13:
        findings.add(20, "Moderate neurological impairment", "Neuro")
    elif gcs < 15:
        findings.add(10, "Mild neurological changes", "Neuro")
