# app/schemas/academic.py - Academic term schemas
from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Literal, Optional
from uuid import UUID

TermType = Literal["FALL", "SPRING", "SUMMER"]
TermStatus = Literal["ACTIVE", "INACTIVE", "COMPLETED"]

class AcademicTermCreate(BaseModel):
    batch_id: UUID
    name: str = Field(..., min_length=1, max_length=64)
    type: TermType = "FALL"
    status: TermStatus = "INACTIVE"
    start_date: date
    end_date: date
    registration_start: datetime
    registration_end: datetime

    @model_validator(mode="after")
    def check_ranges(self):
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        if self.registration_start > self.registration_end:
            raise ValueError("registration_start must not be after registration_end")
        return self

class AcademicTermUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=64)
    type: Optional[TermType] = None
    status: Optional[TermStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    registration_start: Optional[datetime] = None
    registration_end: Optional[datetime] = None

class AcademicTermOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    batch_id: UUID
    name: str
    type: str
    status: str
    start_date: date
    end_date: date
    registration_start: datetime
    registration_end: datetime
