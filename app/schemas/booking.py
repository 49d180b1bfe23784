from datetime import date, datetime, time
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

BookingStatus = Literal["pending_payment", "confirmed", "cancelled", "completed", "expired"]
PaymentStatus = Literal["pending", "paid", "failed"]


class BookingCreate(BaseModel):
    field_id: int
    date: date
    start_time: time
    end_time: time

    @field_validator("date")
    @classmethod
    def not_in_past(cls, v: date) -> date:
        if v < date.today():
            raise ValueError("date must not be in the past")
        return v

    @model_validator(mode="after")
    def end_after_start(self):
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class BookingPatch(BaseModel):
    """The only booking columns an update may touch."""
    model_config = ConfigDict(extra="forbid")

    status: Optional[BookingStatus] = None
    payment_status: Optional[PaymentStatus] = None
    booking_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    notes: Optional[str] = None


class CancelRequest(BaseModel):
    reason: Optional[str] = None


class BookingCreated(BaseModel):
    booking_id: str
    status: str
    total_price: float
    payment_due: Optional[datetime] = None


class BookingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    field_id: int
    user_id: str
    booking_date: date
    start_time: time
    end_time: time
    total_price: float
    status: str
    payment_status: str
    payment_due: Optional[datetime] = None
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Pagination(BaseModel):
    total_results: int
    current_page: int
    total_pages: int
    limit: int


class BookingPage(BaseModel):
    data: List[BookingOut]
    pagination: Pagination


class BookingStatistics(BaseModel):
    total_bookings: int = 0
    pending_bookings: int = 0
    confirmed_bookings: int = 0
    cancelled_bookings: int = 0
    completed_bookings: int = 0
    expired_bookings: int = 0
    total_revenue: float = 0
    average_booking_value: float = 0
