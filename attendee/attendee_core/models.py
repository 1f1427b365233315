"""
Typed views over backend JSON records.

Records are built once from the response and never mutated afterwards, with
the one exception of AttendanceEvent.subscribed (flipped after a confirmed
toggle). Every list record exposes ``id`` for de-duplication.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import List, Optional


def _to_float(value) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_int(value, default=0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _to_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


def parse_timestamp(value) -> Optional[datetime]:
    """Parse the backend's ISO-ish timestamps; None when absent or garbled."""
    if not value:
        return None
    text = str(value).strip().replace("Z", "+00:00")
    for candidate in (text, text.replace(" ", "T", 1)):
        try:
            return datetime.fromisoformat(candidate)
        except ValueError:
            continue
    return None


@dataclass(frozen=True)
class GeoSample:
    latitude: float
    longitude: float


@dataclass
class AttendanceEvent:
    """Result of resolving a shortcode; lives until the flow resets."""
    event_title: str
    location_label: str
    location_name: str
    checked_in_count: int
    coordinates: Optional[GeoSample]
    column_id: int
    already_marked: bool = False
    subscribed: bool = False

    @classmethod
    def from_api(cls, data):
        lat = _to_float(data.get("latitude"))
        lon = _to_float(data.get("longitude"))
        return cls(
            event_title=data.get("book_title") or "",
            location_label=data.get("column_name") or "",
            location_name=data.get("location_name") or "",
            checked_in_count=_to_int(data.get("total_attendance")),
            coordinates=GeoSample(lat, lon) if lat is not None and lon is not None else None,
            column_id=data.get("column_id"),
            already_marked=_to_bool(data.get("hasMarkedAttendance")),
            subscribed=_to_bool(data.get("isSubscribed")),
        )


@dataclass
class PageResult:
    records: List = field(default_factory=list)
    current_page: int = 1
    total_pages: int = 1
    has_more: bool = False
    meta: Optional[object] = None   # page-independent header, e.g. BookDetails

    @classmethod
    def from_counts(cls, records, current_page, total_pages):
        current_page = _to_int(current_page, 1)
        total_pages = _to_int(total_pages, current_page)
        return cls(records, current_page, total_pages, current_page < total_pages)


@dataclass(frozen=True)
class Book:
    id: int
    title: str
    level: str = ""
    total_columns: int = 0
    average_score: str = ""

    @classmethod
    def from_api(cls, data):
        return cls(
            id=data.get("book_id"),
            title=data.get("book_title") or data.get("name") or "",
            level=str(data.get("level") or ""),
            total_columns=_to_int(data.get("total_columns")),
            average_score=str(data.get("average_score") or ""),
        )


@dataclass(frozen=True)
class BookDetails:
    book_id: int
    name: str
    total_students: int = 0

    @classmethod
    def from_api(cls, data):
        return cls(
            book_id=data.get("book_id"),
            name=data.get("name") or "",
            total_students=_to_int(data.get("total_students")),
        )


@dataclass(frozen=True)
class BookEvent:
    id: int
    name: str
    type: str = "physical"
    short_code: str = ""
    attendance_count: int = 0

    @classmethod
    def from_api(cls, data):
        return cls(
            id=data.get("id"),
            name=data.get("name") or "",
            type=data.get("type") or "physical",
            short_code=str(data.get("short_code") or ""),
            attendance_count=_to_int(data.get("attendance_count")),
        )


@dataclass(frozen=True)
class Notification:
    id: int
    title: str
    description: str = ""
    timestamp: Optional[datetime] = None
    type: str = "message"
    is_read: bool = False

    @classmethod
    def from_api(cls, data):
        return cls(
            id=data.get("id"),
            title=data.get("title") or "",
            description=data.get("description") or "",
            timestamp=parse_timestamp(data.get("timestamp")),
            type=data.get("type") or "message",
            is_read=_to_bool(data.get("is_read")),
        )

    def as_read(self):
        return replace(self, is_read=True)


@dataclass(frozen=True)
class Subscription:
    id: int
    book_name: str
    subscription_date: Optional[datetime] = None

    @classmethod
    def from_api(cls, data):
        return cls(
            id=data.get("id"),
            book_name=data.get("book_name") or "",
            subscription_date=parse_timestamp(data.get("subscription_date")),
        )


@dataclass(frozen=True)
class HistoryRecord:
    id: int
    book_title: str
    column_name: str = ""
    attendance_time: Optional[datetime] = None

    @classmethod
    def from_api(cls, data):
        return cls(
            id=data.get("id") or data.get("attendance_id"),
            book_title=data.get("book_title") or data.get("lecture") or "",
            column_name=data.get("column_name") or "",
            attendance_time=parse_timestamp(data.get("attendance_time")),
        )


@dataclass(frozen=True)
class Profile:
    username: str
    university: str = ""
    faculty: str = ""
    department: str = ""
    level: str = ""

    @classmethod
    def from_api(cls, data):
        return cls(
            username=data.get("username") or "",
            university=data.get("university_name") or "",
            faculty=data.get("faculty_name") or "",
            department=data.get("department_name") or "",
            level=f"{data['level']} Level" if data.get("level") else "",
        )
