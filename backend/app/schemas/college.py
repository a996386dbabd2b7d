"""
College Schemas - departments, subjects, classes and announcements
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional


class DepartmentCreate(BaseModel):
    name: str = Field(..., max_length=255)
    code: Optional[str] = Field(None, max_length=20)

    @field_validator('name')
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class SubjectCreate(BaseModel):
    name: str = Field(..., max_length=255)

    @field_validator('name')
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class ClassCreate(BaseModel):
    """A class is always owned by the teacher who creates it"""
    name: str = Field(..., max_length=255)
    subject_id: str
    year: int = Field(..., ge=1, le=10)

    @field_validator('name')
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class AnnouncementCreate(BaseModel):
    title: str = Field(..., max_length=500)
    body: str

    @field_validator('title', 'body')
    @classmethod
    def strip_text(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v
