"""
Book and event (column) creation forms: local validation and request payloads.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from .errors import ValidationError

EVENT_TYPES = ("physical", "virtual")
DEFAULT_RADIUS_M = 200


@dataclass
class BookSpec:
    name: str
    description: str = ""
    level: str = ""

    def validate(self):
        if not self.name.strip():
            raise ValidationError("Book name is required")
        if self.level and not str(self.level).isdigit():
            raise ValidationError("Level must be a number")


@dataclass
class ColumnSpec:
    column_name: str
    event_date: date
    start_time: datetime
    end_time: datetime
    radius: int = DEFAULT_RADIUS_M
    event_type: str = "physical"
    location_name: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    def validate(self):
        if not self.column_name.strip():
            raise ValidationError("Column name is required")
        try:
            radius = int(self.radius)
        except (TypeError, ValueError):
            raise ValidationError("Radius must be a number")
        if radius <= 0:
            raise ValidationError("Radius must be positive")
        if self.event_type not in EVENT_TYPES:
            raise ValidationError("Event type must be physical or virtual")
        if self.end_time <= self.start_time:
            raise ValidationError("End time must be after start time")
        if self.event_type == "physical" and (self.latitude is None or self.longitude is None):
            raise ValidationError("Please select a location")

    def payload(self):
        body = {
            "column_name": self.column_name.strip(),
            "radius": str(int(self.radius)),
            "event_type": self.event_type,
            "location_name": self.location_name.strip() or None,
            "event_starttime": self.start_time.isoformat(),
            "event_endtime": self.end_time.isoformat(),
            "event_date": self.event_date.isoformat(),
        }
        if self.latitude is not None and self.longitude is not None:
            body["latitude"] = str(self.latitude)
            body["longitude"] = str(self.longitude)
        return body
