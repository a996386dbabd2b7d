"""
Attendance Schemas

Only ``present`` and ``absent`` are accepted; anything else is rejected as a
validation error before the recorder runs.
"""

from datetime import date as Date
from typing import List

from pydantic import BaseModel, Field

from app.models.attendance import AttendanceStatus


class AttendanceRecordIn(BaseModel):
    student_id: str = Field(..., min_length=1)
    status: AttendanceStatus


class AttendanceBatch(BaseModel):
    """One session of a class: a date and a status per student"""
    date: Date
    records: List[AttendanceRecordIn] = Field(..., min_length=1)


class AttendanceSingle(BaseModel):
    class_id: str = Field(..., min_length=1)
    student_id: str = Field(..., min_length=1)
    date: Date
    status: AttendanceStatus
