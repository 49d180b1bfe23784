from decimal import Decimal
from sqlalchemy import String, Integer, DateTime, Boolean, Numeric, Float, Text, JSON, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from app.db.session import Base

class Field(Base):
    __tablename__ = "fields"
    __table_args__ = (CheckConstraint("price_per_hour > 0", name="ck_fields_price_positive"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200))
    location_summary: Mapped[str] = mapped_column(String(200), index=True)
    address: Mapped[str] = mapped_column(String(300), default="")
    sport_type: Mapped[str] = mapped_column(String(60), index=True)  # Futsal, Soccer, Basketball, Badminton
    description: Mapped[str] = mapped_column(Text, default="")

    capacity: Mapped[int] = mapped_column(Integer, default=0)
    rating: Mapped[float] = mapped_column(Float, default=0)
    reviews_count: Mapped[int] = mapped_column(Integer, default=0)
    main_image_url: Mapped[str] = mapped_column(String(512), nullable=True)
    facilities: Mapped[list] = mapped_column(JSON, default=list)

    price_per_hour: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    currency: Mapped[str] = mapped_column(String(8), default="Rp")

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
