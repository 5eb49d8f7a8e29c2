"""Data models used by WT-Log.

Three pydantic records describe everything persisted on disk:

- StationSettings: the station/operator configuration (one per installation).
- QSO: a single contact, only ever stored inside a Log.
- Log: a named collection of QSOs saved as one JSON file.

JSON keys are camelCase, matching the files the desktop application writes;
Python attributes are snake_case. Keys the models do not know about are kept
and written back unchanged.
"""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Dict, List, Literal, Mapping, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def now_utc() -> datetime:
    """Return the current time as an aware UTC datetime with millisecond precision."""
    now = datetime.now(UTC)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def epoch_ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


def iso_timestamp(dt: datetime) -> str:
    """Format dt like JavaScript's Date.toISOString(), e.g. 2025-06-28T14:03:00.000Z."""
    return dt.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: Optional[str]) -> datetime:
    """Parse an ISO-8601 string into an aware datetime, or EPOCH if that fails.

    Naive values are taken as UTC.
    """
    if not value:
        return EPOCH
    try:
        dt = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return EPOCH
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


class _Record(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        coerce_numbers_to_str=True,
    )

    @field_validator("*", mode="before")
    @classmethod
    def _none_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        """Read null as "" for text fields and as the empty default for nested ones."""
        if value is None:
            field = cls.model_fields[info.field_name]
            if field.annotation is str:
                return ""
            if field.default_factory is not None:
                return field.default_factory()
        return value

    def to_json(self) -> str:
        """Pretty-printed JSON as stored on disk."""
        return self.model_dump_json(by_alias=True, indent=2)


class StationSettings(_Record):
    """Station and operator configuration.

    Every field is a free-form string; format checks (callsign characters,
    zone digits, locator pattern) belong to whoever collects the input.
    """

    callsign: str = ""
    operator_name: str = ""
    name: str = ""
    city: str = ""
    qth: str = ""
    country: str = ""
    grid_square: str = Field(
        default="",
        alias="gridSquare",
        validation_alias=AliasChoices("gridSquare", "locator", "grid_square"),
    )
    cq_zone: str = ""
    itu_zone: str = ""
    theme: Literal["light", "dark"] = "light"

    @field_validator("theme", mode="before")
    @classmethod
    def _known_theme(cls, value: Any) -> str:
        return value if value in ("light", "dark") else "light"


def default_settings() -> StationSettings:
    """Settings used on first run, before anything has been saved."""
    return StationSettings(country="Argentina", itu_zone="14", cq_zone="13")


class QSO(_Record):
    """A single contact as entered in the QSO form.

    Attributes
    - id: Client-side identifier (epoch milliseconds when assigned by Log.add_qso).
    - date/time: UTC date (YYYY-MM-DD) and time (HH:MM) of the contact.
    - call_sign: Worked station's callsign.
    - rst_sent/rst_received: Signal reports.
    - band/mode/frequency/power: Radio details, free text like "20m" or "FT8".
    - name/qth/country/grid_square/cq_zone/itu_zone: Other station's details.
    - notes: Free-form notes.
    """

    id: Optional[Union[int, str]] = None
    date: str = ""
    time: str = ""
    call_sign: str = ""
    name: str = ""
    rst_sent: str = ""
    rst_received: str = ""
    band: str = ""
    mode: str = ""
    frequency: str = ""
    power: str = ""
    grid_square: str = ""
    cq_zone: str = ""
    itu_zone: str = ""
    qth: str = ""
    country: str = ""
    notes: str = ""


class Log(_Record):
    """A named log file: header fields, a settings snapshot and its QSOs.

    file_name and file_path are filled in by the store when a log is read or
    created and are never written to disk.
    """

    id: str = ""
    name: str = ""
    created_at: str = ""
    settings: StationSettings = Field(default_factory=StationSettings)
    qsos: List[QSO] = Field(default_factory=list)

    file_name: Optional[str] = Field(default=None, exclude=True)
    file_path: Optional[Path] = Field(default=None, exclude=True)

    @property
    def created(self) -> datetime:
        """created_at as a datetime, for sorting (EPOCH when missing or invalid)."""
        return parse_timestamp(self.created_at)

    def to_payload(self) -> Dict[str, Any]:
        """JSON-compatible dict including the runtime fileName/filePath keys."""
        data = self.model_dump(mode="json", by_alias=True)
        data["fileName"] = self.file_name
        data["filePath"] = str(self.file_path) if self.file_path else None
        return data

    # QSO editing; callers persist the result with LogStore.save_log

    def find_qso(self, qso_id: Union[int, str]) -> Optional[QSO]:
        return next((q for q in self.qsos if _same_id(q.id, qso_id)), None)

    def add_qso(self, qso: Union[QSO, Mapping[str, Any]]) -> QSO:
        """Append a QSO, assigning an id from the current time if it has none."""
        if not isinstance(qso, QSO):
            qso = QSO.model_validate(qso)
        if qso.id is None:
            new_id = epoch_ms(now_utc())
            taken = {str(q.id) for q in self.qsos}
            while str(new_id) in taken:
                new_id += 1
            qso = qso.model_copy(update={"id": new_id})
        self.qsos.append(qso)
        return qso

    def update_qso(self, qso_id: Union[int, str], changes: Union[QSO, Mapping[str, Any]]) -> QSO:
        """Merge changes into the QSO with qso_id, keeping its id and position.

        Raises KeyError if no QSO has that id.
        """
        for index, current in enumerate(self.qsos):
            if _same_id(current.id, qso_id):
                break
        else:
            raise KeyError(qso_id)
        if not isinstance(changes, QSO):
            changes = QSO.model_validate(changes)
        merged = current.model_dump(by_alias=True)
        merged.update(changes.model_dump(by_alias=True, exclude_unset=True))
        merged["id"] = current.id
        updated = QSO.model_validate(merged)
        self.qsos[index] = updated
        return updated

    def remove_qso(self, qso_id: Union[int, str]) -> bool:
        """Drop the QSO with qso_id, returning True if it was present."""
        before = len(self.qsos)
        self.qsos = [q for q in self.qsos if not _same_id(q.id, qso_id)]
        return len(self.qsos) != before


def _same_id(a: Optional[Union[int, str]], b: Optional[Union[int, str]]) -> bool:
    # ids round-trip through JSON and the CLI, so 17 and "17" are the same QSO
    return a is not None and b is not None and str(a) == str(b)
