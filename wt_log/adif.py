"""Minimal ADIF import/export for log QSOs.

The parser is intentionally simple and tolerant: it looks for <TAG:len>value
pairs, ignores everything before <EOH> and splits records on <EOR>.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from .models import QSO, StationSettings

logger = logging.getLogger(__name__)

# ADIF spec: https://www.adif.org/

PROGRAM_ID = "WT-Log"
ADIF_VERSION = "3.1"

FIELD_MAP_IN = {
    "CALL": "call_sign",
    "NAME": "name",
    "RST_SENT": "rst_sent",
    "RST_RCVD": "rst_received",
    "BAND": "band",
    "MODE": "mode",
    "FREQ": "frequency",
    "TX_PWR": "power",
    "GRIDSQUARE": "grid_square",
    "CQZ": "cq_zone",
    "ITUZ": "itu_zone",
    "QTH": "qth",
    "COUNTRY": "country",
    "COMMENT": "notes",
    "NOTES": "notes",
}

FIELD_MAP_OUT = {
    "call_sign": "CALL",
    "band": "BAND",
    "mode": "MODE",
    "frequency": "FREQ",
    "rst_sent": "RST_SENT",
    "rst_received": "RST_RCVD",
    "power": "TX_PWR",
    "name": "NAME",
    "qth": "QTH",
    "grid_square": "GRIDSQUARE",
    "cq_zone": "CQZ",
    "itu_zone": "ITUZ",
    "country": "COUNTRY",
    "notes": "COMMENT",
}

_EOH = re.compile(r"<eoh>", re.IGNORECASE)
_EOR = re.compile(r"<eor>", re.IGNORECASE)


def _parse_adif_record(text: str) -> Dict[str, str]:
    """Extract a dict of ADIF tag->value from a single record chunk.

    This is a best-effort parser that respects <TAG:len>value and ignores type hints.
    """
    i = 0
    n = len(text)
    rec: Dict[str, str] = {}
    while i < n:
        if text[i] != "<":
            i += 1
            continue
        j = text.find(">", i)
        if j == -1:
            break
        parts = text[i + 1 : j].split(":")
        name = parts[0].strip().upper()
        length = None
        if len(parts) >= 2:
            try:
                length = int(parts[1])
            except ValueError:
                length = None
        # Skip type (parts[2]) if present
        i = j + 1
        if length is None:
            continue
        rec[name] = text[i : i + length]
        i += length
    return rec


def _record_to_qso(rec: Dict[str, str]) -> Optional[QSO]:
    """Build a QSO from parsed tags; None when CALL, QSO_DATE or TIME_ON is unusable."""
    call = rec.get("CALL", "").strip()
    date = rec.get("QSO_DATE", "").strip()
    time = rec.get("TIME_ON", "").strip()
    if not call or not date or not time:
        return None
    try:
        # yyyymmdd + hhmm[ss]
        day = datetime.strptime(date[:8], "%Y%m%d")
        clock = datetime.strptime(time[:4], "%H%M")
    except ValueError:
        return None

    fields = {attr: rec[tag].strip() for tag, attr in FIELD_MAP_IN.items() if rec.get(tag)}
    fields["call_sign"] = call.upper()
    return QSO(date=day.strftime("%Y-%m-%d"), time=clock.strftime("%H:%M"), **fields)


def load_adif(text: str) -> List[QSO]:
    """Parse ADIF text into a list of QSOs (best effort).

    Records without CALL or without a valid QSO_DATE and TIME_ON are skipped.
    """
    parts = _EOH.split(text, maxsplit=1)
    body = parts[1] if len(parts) == 2 else parts[0]
    records: List[QSO] = []
    skipped = 0
    for chunk in _EOR.split(body):
        rec = _parse_adif_record(chunk)
        if not rec:
            continue
        qso = _record_to_qso(rec)
        if qso is None:
            skipped += 1
            continue
        records.append(qso)
    if skipped:
        logger.warning("Skipped %d ADIF records without call, date or time", skipped)
    return records


def _field(tag: str, value: str) -> str:
    return f"<{tag}:{len(value)}>{value}"


def dump_adif(qsos: Iterable[QSO], settings: Optional[StationSettings] = None) -> str:
    """Serialize QSOs to ADIF text with a minimal header and <EOR>-terminated records.

    When settings are given, each record also carries the station's callsign
    and grid square.
    """
    lines: List[str] = [
        _field("ADIF_VER", ADIF_VERSION),
        _field("PROGRAMID", PROGRAM_ID),
        "<EOH>",
    ]
    for q in qsos:
        rec: List[str] = []
        date = q.date.replace("-", "")
        time = q.time.replace(":", "")
        if date:
            rec.append(_field("QSO_DATE", date))
        if time:
            rec.append(_field("TIME_ON", time.ljust(6, "0")))
        for attr, tag in FIELD_MAP_OUT.items():
            value = getattr(q, attr)
            if value:
                rec.append(_field(tag, value.upper() if tag == "CALL" else value))
        if settings is not None:
            if settings.callsign:
                rec.append(_field("STATION_CALLSIGN", settings.callsign))
            if settings.grid_square:
                rec.append(_field("MY_GRIDSQUARE", settings.grid_square))
        rec.append("<EOR>")
        lines.append("".join(rec))
    return "\n".join(lines) + "\n"
