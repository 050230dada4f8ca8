from datetime import datetime, timezone

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base


def utcnow():
    return datetime.now(timezone.utc)


class University(Base):
    __tablename__ = "universities"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False)
    city = Column(String(100))
    created_at = Column(DateTime(timezone=True), default=utcnow)

    faculties = relationship("Faculty", back_populates="university", cascade="all, delete-orphan")


class Faculty(Base):
    __tablename__ = "faculties"
    __table_args__ = (UniqueConstraint("university_id", "name"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    university_id = Column(Integer, ForeignKey("universities.id", ondelete="CASCADE"), nullable=False)

    university = relationship("University", back_populates="faculties")
    majors = relationship("Major", back_populates="faculty", cascade="all, delete-orphan")


class Major(Base):
    __tablename__ = "majors"
    __table_args__ = (UniqueConstraint("faculty_id", "name"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    faculty_id = Column(Integer, ForeignKey("faculties.id", ondelete="CASCADE"), nullable=False)

    faculty = relationship("Faculty", back_populates="majors")
    courses = relationship("Course", back_populates="major", cascade="all, delete-orphan")


class Course(Base):
    __tablename__ = "courses"
    __table_args__ = (UniqueConstraint("major_id", "name"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    code = Column(String(50))
    semester = Column(Integer)
    major_id = Column(Integer, ForeignKey("majors.id", ondelete="CASCADE"), nullable=False)

    major = relationship("Major", back_populates="courses")
    documents = relationship("Document", back_populates="course")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    username = Column(String(50), nullable=False)
    role = Column(String(20), default="user", nullable=False)
    karma_points = Column(Integer, default=0, nullable=False)
    university_id = Column(Integer, ForeignKey("universities.id", ondelete="SET NULL"))
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    university = relationship("University")
    documents = relationship("Document", back_populates="uploader", passive_deletes=True)
    downloads = relationship("Download", back_populates="user", cascade="all, delete-orphan")


class Document(Base):
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    uploaded_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True)
    file_url = Column(String(500), nullable=False)
    file_size = Column(BigInteger, nullable=False)
    file_hash = Column(String(64), unique=True, nullable=False, index=True)
    downloads_count = Column(Integer, default=0, nullable=False)
    status = Column(String(20), default="approved", nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    course = relationship("Course", back_populates="documents")
    uploader = relationship("User", back_populates="documents")
    downloads = relationship("Download", back_populates="document", cascade="all, delete-orphan")


class Download(Base):
    __tablename__ = "downloads"
    __table_args__ = (UniqueConstraint("user_id", "document_id", name="uq_download_user_document"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    document_id = Column(Integer, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False)
    downloaded_at = Column(DateTime(timezone=True), default=utcnow)

    user = relationship("User", back_populates="downloads")
    document = relationship("Document", back_populates="downloads")
