"""
Marks Models
Per-exam score records; optionally tied to the class they were earned in
"""
from sqlalchemy import Column, String, Integer, Float, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.sql import func

from app.core.database import Base
from app.core.types import GUID, generate_uuid


# Trend charts list these first, in this order; other exam types follow alphabetically
EXAM_TYPE_ORDER = ("internal", "midterm", "final")

DEFAULT_TOTAL_MARKS = 100.0


class Mark(Base):
    """A single exam score"""
    __tablename__ = "marks"

    id = Column(GUID, primary_key=True, default=generate_uuid)

    student_id = Column(GUID, ForeignKey("students.id"), nullable=False)
    subject_id = Column(GUID, ForeignKey("subjects.id"), nullable=False)
    teacher_id = Column(GUID, ForeignKey("teachers.id"), nullable=False)
    class_id = Column(GUID, ForeignKey("classes.id"), nullable=True)

    score = Column(Float, nullable=False)
    total_marks = Column(Float, nullable=False, default=DEFAULT_TOTAL_MARKS)
    exam_type = Column(String(50), nullable=False)  # internal, midterm, final, ...
    year = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("total_marks > 0", name="ck_marks_total_positive"),
        CheckConstraint("score >= 0 AND score <= total_marks", name="ck_marks_score_range"),
        Index("ix_marks_student_subject", "student_id", "subject_id"),
        Index("ix_marks_class", "class_id"),
    )

    def __repr__(self):
        return f"<Mark {self.student_id} {self.exam_type} {self.score}/{self.total_marks}>"
