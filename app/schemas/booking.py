from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

CAMEL_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DaySlotPayload(BaseModel):
    start_time: str | None = Field(default=None, validation_alias=AliasChoices("startTime", "start_time", "start"))
    end_time: str | None = Field(default=None, validation_alias=AliasChoices("endTime", "end_time", "end"))

    model_config = CAMEL_CONFIG

    def to_stored(self) -> dict[str, str | None]:
        return {"startTime": self.start_time, "endTime": self.end_time}


class BookingFields(BaseModel):
    hall_name: str | None = None
    date: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    day_slots: dict[str, DaySlotPayload | None] | None = None
    slot: str | None = None
    slot_title: str | None = None
    booking_name: str | None = None
    email: str | None = None
    department: str | None = None
    phone: str | None = None
    status: str | None = None
    created_by: str | None = None
    remarks: str | None = None
    cancellation_reason: str | None = None
    applied_at: str | None = None

    model_config = CAMEL_CONFIG

    def to_fields(self) -> dict[str, Any]:
        """Non-null fields keyed by model attribute, daySlots in stored form."""
        fields: dict[str, Any] = {}
        for name in type(self).model_fields:
            value = getattr(self, name)
            if value is None:
                continue
            if name == "day_slots":
                value = {key: slot.to_stored() if slot is not None else None for key, slot in value.items()}
            fields[name] = value
        return fields


class BookingCreateRequest(BookingFields):
    pass


class BookingUpdateRequest(BookingFields):
    pass


class CancelRequest(BaseModel):
    cancellation_reason: str | None = None
    remarks: str | None = None

    model_config = CAMEL_CONFIG


class BookingResponse(BaseModel):
    id: int
    hall_name: str | None
    date: str | None
    start_time: str | None
    end_time: str | None
    start_date: str | None
    end_date: str | None
    day_slots: dict[str, dict[str, str | None] | None] | None
    slot: str | None
    slot_title: str | None
    booking_name: str | None
    email: str | None
    department: str | None
    phone: str | None
    status: str
    created_by: str | None
    remarks: str | None
    cancellation_reason: str | None
    applied_at: str | None
    created_at: datetime | None = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class CalendarDaySummaryResponse(BaseModel):
    date: str
    free: bool
    count: int

    model_config = ConfigDict(from_attributes=True)
