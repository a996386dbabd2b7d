from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional


def _required_text(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class AccountOut(BaseModel):
    id: str
    email: str
    role: str


class LoginResponse(BaseModel):
    token: str
    user: AccountOut


class TeacherRegister(BaseModel):
    """Teacher sign-up. HOD and admin accounts are never self-registered."""
    name: str = Field(..., max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8)
    department_id: Optional[str] = None

    @field_validator('name')
    @classmethod
    def strip_name(cls, v):
        return _required_text(v)


class StudentRegister(BaseModel):
    name: str = Field(..., max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8)
    roll_no: str = Field(..., max_length=50)
    year: int = Field(..., ge=1, le=10, description="Year of study")
    class_id: Optional[str] = Field(None, description="Home class")

    @field_validator('name', 'roll_no')
    @classmethod
    def strip_text(cls, v):
        return _required_text(v)
