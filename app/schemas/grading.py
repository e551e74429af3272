# app/schemas/grading.py - Components, grade sheets, publish results, GPA and transcripts
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from uuid import UUID

# Grade components
class GradeComponentCreate(BaseModel):
    section_id: UUID
    name: str = Field(..., min_length=1, max_length=64)
    weight: float = Field(..., ge=0, le=100)
    max_score: float = Field(..., gt=0)

class GradeComponentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=64)
    weight: Optional[float] = Field(None, ge=0, le=100)
    max_score: Optional[float] = Field(None, gt=0)

class GradeComponentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    section_id: UUID
    name: str
    weight: float
    max_score: float

# Grades
class GradeRecord(BaseModel):
    enrollment_id: UUID
    component_id: UUID
    score: float

class GradeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    enrollment_id: UUID
    component_id: UUID
    score: float
    updated_at: datetime

class ComponentScoreOut(BaseModel):
    component_id: UUID
    name: str
    weight: float
    max_score: float
    score: Optional[float] = None  # None = not graded yet
    contribution: Optional[float] = None

class FinalGradeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    letter_grade: str
    grade_point: float
    total_score: float
    status: str
    published_at: Optional[datetime] = None

class GradeSheetOut(BaseModel):
    enrollment_id: UUID
    section_id: UUID
    course_code: str
    course_name: str
    status: str
    components: List[ComponentScoreOut] = Field(default_factory=list)
    total_weighted_score: float
    final_grade: Optional[FinalGradeOut] = None

class GradeOverviewEntry(BaseModel):
    enrollment_id: UUID
    course_code: str
    course_name: str
    credits: int
    term_name: str
    status: str
    total_weighted_score: float
    letter_grade: str
    grade_point: float
    is_published: bool

# Publishing
class PublishFailure(BaseModel):
    enrollment_id: UUID
    error: str

class PublishResult(BaseModel):
    section_id: UUID
    published: List[UUID] = Field(default_factory=list)
    failed: List[PublishFailure] = Field(default_factory=list)
    skipped: List[UUID] = Field(default_factory=list)

# GPA
class GPACalculation(BaseModel):
    student_id: UUID
    term_id: UUID
    term_gpa: float
    credits_earned: int
    credits_attempted: int
    cumulative_gpa: float
    total_credits: int
    academic_standing: str

class TranscriptCourse(BaseModel):
    course_code: str
    course_name: str
    credits: int
    letter_grade: str
    grade_point: float

class TranscriptTerm(BaseModel):
    term_id: UUID
    term_name: str
    courses: List[TranscriptCourse] = Field(default_factory=list)
    computed_gpa: float
    credits_attempted: int
    credits_earned: int
    stored_gpa: Optional[float] = None

class TranscriptOut(BaseModel):
    student_id: UUID
    student_code: str
    student_name: str
    batch_name: Optional[str] = None
    department_name: Optional[str] = None
    terms: List[TranscriptTerm] = Field(default_factory=list)
    cumulative_gpa: float = 0.0
    total_credits: int = 0
    academic_standing: Optional[str] = None
