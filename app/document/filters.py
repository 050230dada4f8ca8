"""Document list filters.

Optional query parameters become a list of small predicate objects which
``to_clauses`` translates into SQLAlchemy expressions. Predicates combine
with AND. Values always travel as bound parameters.
"""
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import or_

from app.models import Course, Document, Faculty, Major


@dataclass(frozen=True)
class StatusIs:
    status: str


@dataclass(frozen=True)
class UniversityIs:
    university_id: int


@dataclass(frozen=True)
class FacultyIs:
    faculty_id: int


@dataclass(frozen=True)
class MajorIs:
    major_id: int


@dataclass(frozen=True)
class CourseIs:
    course_id: int


@dataclass(frozen=True)
class TextContains:
    text: str


def build_document_filters(
    university_id: Optional[int] = None,
    faculty_id: Optional[int] = None,
    major_id: Optional[int] = None,
    course_id: Optional[int] = None,
    search: Optional[str] = None,
    status: str = "approved",
) -> list:
    predicates = [StatusIs(status)]
    if university_id is not None:
        predicates.append(UniversityIs(university_id))
    if faculty_id is not None:
        predicates.append(FacultyIs(faculty_id))
    if major_id is not None:
        predicates.append(MajorIs(major_id))
    if course_id is not None:
        predicates.append(CourseIs(course_id))
    if search:
        predicates.append(TextContains(search))
    return predicates


# Assumes the query joins Document -> Course -> Major -> Faculty.
_TRANSLATORS = {
    StatusIs: lambda p: Document.status == p.status,
    UniversityIs: lambda p: Faculty.university_id == p.university_id,
    FacultyIs: lambda p: Major.faculty_id == p.faculty_id,
    MajorIs: lambda p: Course.major_id == p.major_id,
    CourseIs: lambda p: Document.course_id == p.course_id,
    TextContains: lambda p: or_(
        Document.title.icontains(p.text, autoescape=True),
        Document.description.icontains(p.text, autoescape=True),
    ),
}


def to_clauses(predicates) -> list:
    clauses = []
    for predicate in predicates:
        translate = _TRANSLATORS.get(type(predicate))
        if translate is None:
            raise TypeError(f"Unsupported document filter: {predicate!r}")
        clauses.append(translate(predicate))
    return clauses
