"""
Announcement Service - class-scoped notices from the class teacher
"""

from datetime import datetime
from typing import List, Dict, Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging_config import get_logger
from app.models.college_management import Announcement, CourseClass, Teacher
from app.schemas.college import AnnouncementCreate
from app.services.identity_service import Actor
from app.services.scope_service import announcement_scope, ensure_class_in_scope, ensure_owned_class

logger = get_logger("announcements")


class AnnouncementService:

    async def create(
        self, db: AsyncSession, actor: Actor, class_id: str, data: AnnouncementCreate
    ) -> Dict[str, Any]:
        await ensure_owned_class(db, actor, class_id)

        announcement = Announcement(
            class_id=class_id,
            teacher_id=actor.teacher_id,
            title=data.title,
            body=data.body,
            created_at=datetime.utcnow(),
        )
        db.add(announcement)
        await db.commit()
        await db.refresh(announcement)

        logger.log_db_write("insert", "announcements", 1, class_id=class_id)
        return {
            "id": announcement.id,
            "class_id": announcement.class_id,
            "title": announcement.title,
            "body": announcement.body,
            "created_at": announcement.created_at.isoformat(),
        }

    async def _list(self, db: AsyncSession, *criteria) -> List[Dict[str, Any]]:
        result = await db.execute(
            select(
                Announcement.id,
                Announcement.class_id,
                Announcement.title,
                Announcement.body,
                Announcement.created_at,
                CourseClass.name.label("class_name"),
                Teacher.name.label("teacher_name"),
            )
            .join(CourseClass, CourseClass.id == Announcement.class_id)
            .join(Teacher, Teacher.id == Announcement.teacher_id)
            .where(*criteria)
            .order_by(Announcement.created_at.desc())
        )
        return [
            {
                "id": row.id,
                "class_id": row.class_id,
                "class_name": row.class_name,
                "teacher_name": row.teacher_name,
                "title": row.title,
                "body": row.body,
                "created_at": row.created_at.isoformat() if row.created_at else None,
            }
            for row in result.all()
        ]

    async def list_for_class(self, db: AsyncSession, actor: Actor, class_id: str) -> List[Dict[str, Any]]:
        await ensure_class_in_scope(db, actor, class_id)
        return await self._list(db, Announcement.class_id == class_id)

    async def list_visible(self, db: AsyncSession, actor: Actor) -> List[Dict[str, Any]]:
        """Everything the caller can see across their classes, newest first"""
        return await self._list(db, announcement_scope(actor))


# Singleton instance
announcement_service = AnnouncementService()
