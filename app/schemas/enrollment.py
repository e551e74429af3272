# app/schemas/enrollment.py - Registration requests, validation results and schedule projections
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from uuid import UUID

class EnrollmentCreate(BaseModel):
    student_id: UUID
    section_id: UUID
    # Honoured only for callers holding registration.override
    bypass_validation: bool = False

class EnrollmentValidationRequest(BaseModel):
    student_id: UUID
    section_id: UUID
    skip_time_check: bool = False

class EnrollmentValidationResult(BaseModel):
    valid: bool
    errors: List[str] = Field(default_factory=list)

class EnrollmentDrop(BaseModel):
    bypass_time_check: bool = False
    reason: Optional[str] = None

class EnrollmentWithdraw(BaseModel):
    reason: str = Field(..., min_length=1, max_length=256)

class EnrollmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    student_id: UUID
    section_id: UUID
    status: str
    enrolled_at: datetime
    dropped_at: Optional[datetime] = None

class EnrollmentStatusEventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    enrollment_id: UUID
    prev_status: Optional[str]
    new_status: str
    reason: Optional[str]
    created_at: datetime

# Schedule projection
class ScheduleSlotOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    day: int
    start_time: str
    end_time: str
    room: Optional[str] = None

class ScheduleEntryOut(BaseModel):
    enrollment_id: UUID
    section_id: UUID
    section_code: str
    course_code: str
    course_name: str
    credits: int
    faculty_name: Optional[str] = None
    slots: List[ScheduleSlotOut] = Field(default_factory=list)

class StudentScheduleOut(BaseModel):
    student_id: UUID
    term_id: UUID
    total_credits: int
    entries: List[ScheduleEntryOut] = Field(default_factory=list)

# Roster
class RosterEntryOut(BaseModel):
    enrollment_id: UUID
    student_id: UUID
    student_code: str
    student_name: str
    enrolled_at: datetime
