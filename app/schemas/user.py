from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict

from app.schemas.booking import Pagination


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    role: str
    is_active: bool = True
    created_at: Optional[datetime] = None


class UserPage(BaseModel):
    data: List[UserOut]
    pagination: Pagination


class RoleUpdate(BaseModel):
    role: Literal["customer", "admin"]


class UserStatistics(BaseModel):
    total_users: int
    customers: int
    admins: int
    new_users_last_30_days: int
