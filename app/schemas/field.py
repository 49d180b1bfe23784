from datetime import datetime, time
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field as PydField

from app.schemas.booking import Pagination


class FieldBase(BaseModel):
    name: str
    location_summary: str
    address: str = ""
    sport_type: str
    description: str = ""
    capacity: int = PydField(ge=1)
    main_image_url: Optional[str] = None
    facilities: List[str] = []
    price_per_hour: float = PydField(gt=0)
    currency: str = "Rp"


class FieldCreate(FieldBase):
    pass


class FieldUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    location_summary: Optional[str] = None
    address: Optional[str] = None
    sport_type: Optional[str] = None
    description: Optional[str] = None
    capacity: Optional[int] = PydField(default=None, ge=1)
    main_image_url: Optional[str] = None
    facilities: Optional[List[str]] = None
    price_per_hour: Optional[float] = PydField(default=None, gt=0)
    currency: Optional[str] = None
    is_active: Optional[bool] = None


class FieldSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    location_summary: str
    sport_type: str
    rating: float = 0
    reviews_count: int = 0
    main_image_url: Optional[str] = None
    capacity: int
    price_per_hour: float
    currency: str
    facilities: List[str] = []


class BookedSlot(BaseModel):
    start_time: time
    end_time: time


class FieldDetail(FieldSummary):
    address: str = ""
    description: str = ""
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    booked_slots: Optional[List[BookedSlot]] = None


class FieldPage(BaseModel):
    data: List[FieldSummary]
    pagination: Pagination


class PriceRange(BaseModel):
    min: float
    max: float


class FilterOptions(BaseModel):
    price_range: PriceRange
    sport_types: List[str]
    facilities: List[str]
