# app/schemas/attendance.py
from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import Literal, Optional, List
from uuid import UUID

AttendanceStatus = Literal["PRESENT", "ABSENT", "EXCUSED"]

class AttendanceCreate(BaseModel):
    enrollment_id: UUID
    session_date: date
    status: AttendanceStatus
    excuse: Optional[str] = Field(None, max_length=256)

class AttendanceUpdate(BaseModel):
    status: Optional[AttendanceStatus] = None
    excuse: Optional[str] = Field(None, max_length=256)

class AttendanceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    enrollment_id: UUID
    session_date: date
    status: str
    excuse: Optional[str]
    created_at: datetime

class AttendanceStats(BaseModel):
    enrollment_id: UUID
    total_sessions: int
    present: int
    absent: int
    excused: int
    attendance_rate: float  # percent present

class SectionAttendanceEntry(BaseModel):
    attendance_id: UUID
    enrollment_id: UUID
    student_code: str
    student_name: str
    session_date: date
    status: str
    excuse: Optional[str] = None

class SectionAttendanceOut(BaseModel):
    section_id: UUID
    session_date: Optional[date] = None
    records: List[SectionAttendanceEntry] = Field(default_factory=list)
