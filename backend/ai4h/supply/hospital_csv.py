"""Parse hospital rows from CSV text.

Expected column order, no header row::

    name, lat, lon, beds_available, doctors_available, capabilities, accepting_emergencies

``capabilities`` is ``;``-separated. Rows missing a name or usable coordinates
are skipped.
"""

from __future__ import annotations

import csv
import io
import logging
import math
import uuid
from typing import Any, List, Optional

from ai4h.shared.models import CAPABILITIES, Hospital

logger = logging.getLogger(__name__)


class HospitalImportError(ValueError):
    pass


def parse_hospitals_csv(csv_data: str) -> List[Hospital]:
    if not csv_data or not csv_data.strip():
        raise HospitalImportError("No CSV data provided")

    hospitals: List[Hospital] = []
    reader = csv.reader(io.StringIO(csv_data.strip()), skipinitialspace=True)
    for line_no, row in enumerate(reader, start=1):
        cells = [cell.strip().replace('"', "") for cell in row]
        cells += [""] * (7 - len(cells))
        name, lat_raw, lon_raw, beds, doctors, capabilities, accepting = cells[:7]

        lat = _safe_float(lat_raw, limit=90.0)
        lon = _safe_float(lon_raw, limit=180.0)
        if not name or lat is None or lon is None:
            logger.debug("Skipping CSV line %s: missing name or coordinates", line_no)
            continue

        hospitals.append(
            Hospital(
                id=str(uuid.uuid4()),
                name=name,
                lat=lat,
                lon=lon,
                beds_available=_safe_int(beds, 0),
                doctors_available=_safe_int(doctors, 0),
                capabilities=_parse_capabilities(capabilities, line_no),
                accepting_emergencies=accepting.lower() == "true",
            )
        )
    return hospitals


def _parse_capabilities(raw: str, line_no: int) -> List[str]:
    known: List[str] = []
    for part in raw.split(";"):
        value = part.strip()
        if not value:
            continue
        if value not in CAPABILITIES:
            logger.warning("Dropping unknown capability %r on CSV line %s", value, line_no)
            continue
        known.append(value)
    return known


def _safe_float(value: str, limit: float) -> Optional[float]:
    if not value:
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    if not math.isfinite(number) or abs(number) > limit:
        return None
    return number


def _safe_int(value: Any, fallback: int) -> int:
    text = str(value or "").strip()
    if not text:
        return fallback
    try:
        number = float(text)
    except ValueError:
        return fallback
    if not math.isfinite(number) or number < 0:
        return fallback
    return int(number)
