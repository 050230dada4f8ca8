from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app import schemas
from app.database import get_db
from app.models import Course, Faculty, Major, University

router = APIRouter()


@router.get("/universities", response_model=dict[str, list[schemas.UniversityResponse]])
def get_universities(db: Session = Depends(get_db)):
    return {"universities": db.query(University).order_by(University.name).all()}


@router.get("/faculties", response_model=dict[str, list[schemas.FacultyResponse]])
def get_faculties(university_id: Optional[int] = None, db: Session = Depends(get_db)):
    query = db.query(Faculty, University.name).join(University, Faculty.university_id == University.id)
    if university_id is not None:
        query = query.filter(Faculty.university_id == university_id)

    faculties = [
        {"id": f.id, "name": f.name, "university_id": f.university_id, "university_name": name}
        for f, name in query.order_by(Faculty.name).all()
    ]
    return {"faculties": faculties}


@router.get("/majors", response_model=dict[str, list[schemas.MajorResponse]])
def get_majors(faculty_id: Optional[int] = None, db: Session = Depends(get_db)):
    query = db.query(Major, Faculty.name).join(Faculty, Major.faculty_id == Faculty.id)
    if faculty_id is not None:
        query = query.filter(Major.faculty_id == faculty_id)

    majors = [
        {"id": m.id, "name": m.name, "faculty_id": m.faculty_id, "faculty_name": name}
        for m, name in query.order_by(Major.name).all()
    ]
    return {"majors": majors}


@router.get("/courses", response_model=dict[str, list[schemas.CourseResponse]])
def get_courses(major_id: Optional[int] = None, db: Session = Depends(get_db)):
    query = db.query(Course, Major.name).join(Major, Course.major_id == Major.id)
    if major_id is not None:
        query = query.filter(Course.major_id == major_id)

    courses = [
        {
            "id": c.id,
            "name": c.name,
            "code": c.code,
            "semester": c.semester,
            "major_id": c.major_id,
            "major_name": name,
        }
        for c, name in query.order_by(Course.semester, Course.name).all()
    ]
    return {"courses": courses}
