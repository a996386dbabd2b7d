from sqlalchemy import Column, String, Date, DateTime, ForeignKey, UniqueConstraint, CheckConstraint, Index
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class AttendanceStatus(str, enum.Enum):
    PRESENT = "present"
    ABSENT = "absent"


class Attendance(Base):
    """One row per (class, student, date); re-submission overwrites the status"""
    __tablename__ = "attendance"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    class_id = Column(GUID, ForeignKey("classes.id"), nullable=False)
    student_id = Column(GUID, ForeignKey("students.id"), nullable=False)
    date = Column(Date, nullable=False)
    status = Column(String(10), nullable=False)
    recorded_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("class_id", "student_id", "date", name="uq_attendance_class_student_date"),
        CheckConstraint("status IN ('present', 'absent')", name="ck_attendance_status"),
        Index("ix_attendance_student_date", "student_id", "date"),
    )

    def __repr__(self):
        return f"<Attendance {self.student_id} {self.date} {self.status}>"
