"""
Marks Schemas

Range checks (0 <= score <= total_marks, total_marks > 0) live in the marks
service so direct service callers get the same errors as API callers.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional


class MarkCreate(BaseModel):
    student_id: str = Field(..., min_length=1)
    subject_id: str = Field(..., min_length=1)
    score: float = Field(..., allow_inf_nan=False)
    total_marks: Optional[float] = Field(None, allow_inf_nan=False, description="Defaults to 100")
    exam_type: str = Field(..., max_length=50, description="internal, midterm, final, ...")
    year: int = Field(..., ge=1900, le=2999, description="Academic year")
    class_id: Optional[str] = None

    @field_validator('exam_type')
    @classmethod
    def normalize_exam_type(cls, v):
        v = v.strip().lower()
        if not v:
            raise ValueError("must not be blank")
        return v


class MarkUpdate(BaseModel):
    score: float = Field(..., allow_inf_nan=False)
    total_marks: Optional[float] = Field(None, allow_inf_nan=False, description="Keep the stored total when omitted")
