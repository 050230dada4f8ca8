from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    username: str = Field(..., min_length=2, max_length=50, pattern=r"^[a-zA-Z0-9\s_-]+$")
    university_id: Optional[int] = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("password")
    @classmethod
    def password_has_digit(cls, value: str) -> str:
        if not any(ch.isdigit() for ch in value):
            raise ValueError("Password must contain at least one digit")
        return value


class UserResponse(BaseModel):
    id: int
    email: EmailStr
    username: str
    role: str
    karma_points: int
    university_id: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class UserProfile(UserResponse):
    university_name: Optional[str] = None
    university_city: Optional[str] = None
    updated_at: Optional[datetime] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.lower()


class AuthResponse(BaseModel):
    message: str
    token: str
    token_type: str = "bearer"
    user: UserProfile


class UpdateRoleRequest(BaseModel):
    role: str = Field(..., pattern="^(user|admin)$")


class MessageResponse(BaseModel):
    message: str


# Catalog

class UniversityResponse(BaseModel):
    id: int
    name: str
    city: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class FacultyResponse(BaseModel):
    id: int
    name: str
    university_id: int
    university_name: str


class MajorResponse(BaseModel):
    id: int
    name: str
    faculty_id: int
    faculty_name: str


class CourseResponse(BaseModel):
    id: int
    name: str
    code: Optional[str] = None
    semester: Optional[int] = None
    major_id: int
    major_name: str


# Documents

class DocumentResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    course_id: int
    uploaded_by: Optional[int] = None
    file_url: str
    file_size: int
    file_hash: str
    downloads_count: int
    status: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class DocumentListItem(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    file_url: str
    file_size: int
    downloads_count: int
    created_at: Optional[datetime] = None
    course_name: str
    course_code: Optional[str] = None
    semester: Optional[int] = None
    major_name: str
    faculty_name: str
    university_name: str
    uploaded_by_username: Optional[str] = None


class DocumentDetail(DocumentResponse):
    course_name: str
    course_code: Optional[str] = None
    semester: Optional[int] = None
    major_id: int
    major_name: str
    faculty_id: int
    faculty_name: str
    university_id: int
    university_name: str
    university_city: Optional[str] = None
    uploader_id: Optional[int] = None
    uploader_username: Optional[str] = None
    uploader_karma: Optional[int] = None


class MyDocument(DocumentResponse):
    course_name: str
    course_code: Optional[str] = None


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    pages: int


class DocumentListResponse(BaseModel):
    documents: list[DocumentListItem]
    pagination: Pagination


class MyDocumentsResponse(BaseModel):
    documents: list[MyDocument]
    total: int


class UploadResponse(BaseModel):
    message: str
    document: DocumentResponse
