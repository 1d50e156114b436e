import datetime as dt
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class HolidayCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    date: dt.date
    is_active: bool = True


class HolidayUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    date: Optional[dt.date] = None
    is_active: Optional[bool] = None


class HolidayOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    date: dt.date
    is_active: bool
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None
