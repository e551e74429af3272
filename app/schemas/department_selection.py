# app/schemas/department_selection.py
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Dict, Literal, Optional, List
from uuid import UUID

class EligibilityReasons(BaseModel):
    has_minimum_gpa: bool
    has_available_seats: bool
    is_correct_year: bool
    has_no_existing_department: bool
    has_no_pending_application: bool
    is_good_academic_standing: bool

class DepartmentEligibility(BaseModel):
    department_id: UUID
    department_code: str
    department_name_en: str
    department_name_ar: Optional[str] = None
    college_name_en: str
    min_gpa: float
    capacity: int
    enrolled_count: int
    available_seats: int
    is_eligible: bool
    eligibility_reasons: EligibilityReasons

class StudentEligibilityStatus(BaseModel):
    can_apply: bool
    student_gpa: float
    current_year: int
    has_department: bool
    has_pending_application: bool
    academic_standing: str
    reasons: List[str] = Field(default_factory=list)

class DepartmentApplicationCreate(BaseModel):
    student_id: Optional[UUID] = None  # resolved from the caller for students
    department_id: UUID
    statement: Optional[str] = Field(None, max_length=2000)

class ApplicationDecision(BaseModel):
    status: Literal["APPROVED", "REJECTED"]
    rejection_reason: Optional[str] = Field(None, max_length=512)

    @model_validator(mode="after")
    def reason_for_rejection(self):
        if self.status == "REJECTED" and not self.rejection_reason:
            raise ValueError("rejection_reason is required when rejecting")
        return self

class DepartmentApplicationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    student_id: UUID
    department_id: UUID
    student_gpa: float
    statement: Optional[str] = None
    status: str
    rejection_reason: Optional[str] = None
    submitted_at: datetime
    processed_at: Optional[datetime] = None
    processed_by: Optional[UUID] = None

class ApplicationStatistics(BaseModel):
    total: int
    pending: int
    approved: int
    rejected: int
    withdrawn: int
    by_department: Dict[str, Dict[str, int]] = Field(default_factory=dict)
