# app/schemas/catalog.py - Prerequisites, curricula, sections and schedule slots
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Literal, Optional, List
from uuid import UUID

from app.services.schedule import is_valid_time

# Prerequisites
class PrerequisiteCreate(BaseModel):
    prerequisite_id: UUID
    type: Literal["PREREQUISITE", "COREQUISITE"] = "PREREQUISITE"

class PrerequisiteOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    course_id: UUID
    prerequisite_id: UUID
    type: str

class PrerequisiteNode(BaseModel):
    course_id: UUID
    code: str
    name: str
    type: Optional[str] = None  # edge type from the parent; None at the root
    prerequisites: List["PrerequisiteNode"] = Field(default_factory=list)

PrerequisiteNode.model_rebuild()

# Curriculum
class CurriculumCourseCreate(BaseModel):
    course_id: UUID
    year: int = Field(..., ge=1, le=8)
    semester: int = Field(..., ge=1, le=2)
    is_required: bool = True

class CurriculumCourseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    curriculum_id: UUID
    course_id: UUID
    year: int
    semester: int
    is_required: bool

class CurriculumSummary(BaseModel):
    total_courses: int
    placed_credits: int
    declared_credits: int
    required_courses: int
    elective_courses: int

class CurriculumValidation(BaseModel):
    is_valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    summary: CurriculumSummary

# Sections
class SectionCreate(BaseModel):
    course_id: UUID
    term_id: UUID
    faculty_id: Optional[UUID] = None
    code: str = Field(..., min_length=1, max_length=16)
    capacity: int = Field(..., gt=0)

class SectionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    course_id: UUID
    term_id: UUID
    faculty_id: Optional[UUID]
    code: str
    capacity: int

class ScheduleCreate(BaseModel):
    day: int = Field(..., ge=0, le=6)  # 0 = Sunday
    start_time: str
    end_time: str
    room: Optional[str] = Field(None, max_length=32)

    @field_validator("start_time", "end_time")
    @classmethod
    def check_time_format(cls, v):
        if not is_valid_time(v):
            raise ValueError("time must be a zero-padded HH:MM string")
        return v

class ScheduleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    section_id: UUID
    day: int
    start_time: str
    end_time: str
    room: Optional[str]
