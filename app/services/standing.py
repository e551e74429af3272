# app/services/standing.py - The one academic standing policy used by GPA and department selection
import logging

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.system_settings import SystemSetting

logger = logging.getLogger(__name__)

STANDING_SETTING_KEY = "academic_standing_rules"

GOOD_STANDING = "GOOD_STANDING"
ACADEMIC_WARNING = "ACADEMIC_WARNING"
ACADEMIC_PROBATION = "ACADEMIC_PROBATION"


class AcademicStandingPolicy(BaseModel):
    """CGPA cut-offs: below ``probation_below`` is probation, below ``warning_below`` a warning"""

    model_config = ConfigDict(frozen=True)

    probation_below: float = Field(ge=0.0, le=4.0)
    warning_below: float = Field(ge=0.0, le=4.0)

    @model_validator(mode="after")
    def check_order(self):
        if self.warning_below < self.probation_below:
            raise ValueError("warning_below must not be lower than probation_below")
        return self

    def classify(self, cgpa: float) -> str:
        if cgpa < self.probation_below:
            return ACADEMIC_PROBATION
        if cgpa < self.warning_below:
            return ACADEMIC_WARNING
        return GOOD_STANDING

    @staticmethod
    def may_apply_for_department(standing: str) -> bool:
        return standing in (GOOD_STANDING, ACADEMIC_WARNING)


def default_policy() -> AcademicStandingPolicy:
    return AcademicStandingPolicy(
        probation_below=settings.STANDING_PROBATION_BELOW,
        warning_below=settings.STANDING_WARNING_BELOW,
    )


def load_standing_policy(db: Session) -> AcademicStandingPolicy:
    """
    Policy from the ``academic_standing_rules`` system setting, falling back
    to configured defaults when the row is absent or malformed.
    """
    row = db.get(SystemSetting, STANDING_SETTING_KEY)
    if row is None:
        return default_policy()

    try:
        return AcademicStandingPolicy.model_validate(row.value)
    except ValidationError as e:
        logger.warning(f"Ignoring invalid {STANDING_SETTING_KEY} setting: {e}")
        return default_policy()
