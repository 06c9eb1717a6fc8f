import datetime as dt
from typing import Optional

from pydantic import BaseModel

from app.schemas.schedule import UserSummary


class OrderAdminResponse(BaseModel):
    id_order: int
    has_assigned_admin: bool
    admin: Optional[UserSummary] = None
    assigned_at: Optional[dt.datetime] = None
    source: Optional[str] = None
    message: str
