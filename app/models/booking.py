from decimal import Decimal
from sqlalchemy import String, Date, Time, DateTime, Numeric, Text, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column
from datetime import date, datetime, time, timezone
from app.db.session import Base

# Statuses whose rows no longer hold their slot
RELEASED_STATUSES = ("cancelled", "expired")

class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_bookings_field_date_status", "field_id", "booking_date", "status"),
        CheckConstraint("end_time > start_time", name="ck_bookings_time_range"),
    )

    id: Mapped[str] = mapped_column(String(20), primary_key=True)  # BK-YYYYMMDD-XXXXXX

    field_id: Mapped[int] = mapped_column(ForeignKey("fields.id"), index=True)
    user_id: Mapped[str] = mapped_column(String(36), index=True)

    booking_date: Mapped[date] = mapped_column(Date)
    start_time: Mapped[time] = mapped_column(Time)
    end_time: Mapped[time] = mapped_column(Time)

    total_price: Mapped[Decimal] = mapped_column(Numeric(12, 2))

    status: Mapped[str] = mapped_column(String(30), default="pending_payment")  # pending_payment, confirmed, cancelled, completed, expired
    payment_status: Mapped[str] = mapped_column(String(30), default="pending")  # pending, paid, failed
    payment_due: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)

    notes: Mapped[str] = mapped_column(Text, nullable=True)

    cancellation_reason: Mapped[str] = mapped_column(String(500), nullable=True)
    cancelled_by: Mapped[str] = mapped_column(String(320), nullable=True)
    cancelled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
