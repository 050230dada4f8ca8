"""Create the PolyShare schema and optionally seed a demo catalog.

    python -m app.init_db [--seed]
"""
import argparse
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import Database
from app.models import Course, Document, Faculty, Major, University, User

logger = logging.getLogger("polyshare.init_db")

DEMO_CATALOG = {
    ("Université Polytechnique", "Montréal"): {
        "Faculty of Engineering": {
            "Computer Engineering": [
                ("Algorithms and Data Structures", "INF2010", 3),
                ("Operating Systems", "INF2610", 4),
            ],
            "Electrical Engineering": [
                ("Circuit Analysis", "ELE1600", 2),
            ],
        },
        "Faculty of Sciences": {
            "Applied Mathematics": [
                ("Linear Algebra", "MTH1007", 1),
                ("Probability and Statistics", "MTH2302", 3),
            ],
        },
    },
}


def seed_catalog(db: Session, catalog=DEMO_CATALOG) -> bool:
    """Insert ``catalog`` when no university exists yet. Returns True if seeded."""
    if db.query(University.id).first() is not None:
        logger.info("Catalog already populated, skipping seed")
        return False

    for (university_name, city), faculties in catalog.items():
        university = University(name=university_name, city=city)
        for faculty_name, majors in faculties.items():
            faculty = Faculty(name=faculty_name)
            university.faculties.append(faculty)
            for major_name, courses in majors.items():
                major = Major(name=major_name)
                faculty.majors.append(major)
                for name, code, semester in courses:
                    major.courses.append(Course(name=name, code=code, semester=semester))
        db.add(university)

    db.commit()
    return True


def table_counts(db: Session) -> dict:
    return {
        model.__tablename__: db.query(func.count(model.id)).scalar()
        for model in (University, Faculty, Major, Course, User, Document)
    }


def main(argv=None):
    parser = argparse.ArgumentParser(description="Initialise the PolyShare database")
    parser.add_argument("--seed", action="store_true", help="insert a demo catalog when empty")
    args = parser.parse_args(argv)

    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s - %(levelname)s - %(message)s")

    database = Database(settings.database_url, echo=settings.sql_echo)
    try:
        database.create_all()
        with database.session() as db:
            if args.seed and seed_catalog(db):
                logger.info("Demo catalog inserted")
            for table, count in table_counts(db).items():
                logger.info(f"{table}: {count}")
    finally:
        database.dispose()


if __name__ == "__main__":
    main()
