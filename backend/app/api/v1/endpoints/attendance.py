"""
Attendance Endpoints
- Class sessions (batch) and single records, teacher only
- Per-date, per-student and summary views for the class teacher / HOD
- A student's own history
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.user import UserRole
from app.modules.auth.dependencies import get_actor
from app.schemas.attendance import AttendanceBatch, AttendanceSingle
from app.services.attendance_service import attendance_service
from app.services.identity_service import Actor

router = APIRouter()


@router.post("/classes/{class_id}/attendance", status_code=status.HTTP_201_CREATED)
async def record_class_attendance(
    class_id: str,
    data: AttendanceBatch,
    actor: Actor = Depends(get_actor(UserRole.TEACHER)),
    db: AsyncSession = Depends(get_db)
):
    """Record a whole session; all records are saved or none are"""
    saved = await attendance_service.record_batch(db, actor, class_id, data.date, data.records)
    return {"message": "Attendance saved.", "count": saved}


@router.get("/classes/{class_id}/attendance")
async def list_class_attendance(
    class_id: str,
    session_date: date = Query(..., alias="date"),
    actor: Actor = Depends(get_actor(UserRole.TEACHER)),
    db: AsyncSession = Depends(get_db)
):
    return {
        "date": session_date.isoformat(),
        "records": await attendance_service.list_by_date(db, actor, class_id, session_date),
    }


@router.get("/classes/{class_id}/attendance/summary")
async def class_attendance_summary(
    class_id: str,
    actor: Actor = Depends(get_actor(UserRole.TEACHER, UserRole.HOD)),
    db: AsyncSession = Depends(get_db)
):
    return {"summary": await attendance_service.summary(db, actor, class_id)}


@router.get("/classes/{class_id}/attendance/top")
async def class_attendance_top(
    class_id: str,
    actor: Actor = Depends(get_actor(UserRole.TEACHER)),
    db: AsyncSession = Depends(get_db)
):
    return {"top": await attendance_service.top(db, actor, class_id)}


@router.get("/classes/{class_id}/attendance/student/{student_id}")
async def student_attendance_in_class(
    class_id: str,
    student_id: str,
    actor: Actor = Depends(get_actor(UserRole.TEACHER)),
    db: AsyncSession = Depends(get_db)
):
    return {"records": await attendance_service.list_for_student(db, actor, class_id, student_id)}


@router.get("/classes/{class_id}/my-attendance")
async def my_attendance_in_class(
    class_id: str,
    actor: Actor = Depends(get_actor(UserRole.STUDENT)),
    db: AsyncSession = Depends(get_db)
):
    return {"records": await attendance_service.list_mine_for_class(db, actor, class_id)}


@router.post("/attendance", status_code=status.HTTP_201_CREATED)
async def record_single_attendance(
    data: AttendanceSingle,
    actor: Actor = Depends(get_actor(UserRole.TEACHER)),
    db: AsyncSession = Depends(get_db)
):
    record = await attendance_service.record_single(
        db, actor, data.class_id, data.student_id, data.date, data.status
    )
    return {"message": "Attendance saved.", "attendance": record}


@router.get("/attendance/me")
async def my_attendance(
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    actor: Actor = Depends(get_actor(UserRole.STUDENT)),
    db: AsyncSession = Depends(get_db)
):
    return {"records": await attendance_service.list_mine(db, actor, date_from, date_to)}
