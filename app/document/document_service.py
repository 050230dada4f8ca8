import logging
import math

from sqlalchemy import func
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app import schemas
from app.errors import DuplicateContent, Forbidden, InsufficientKarma, NotFound, Unexpected, ValidationFailed
from app.models import Course, Document, Download, Faculty, Major, University, User
from .filters import to_clauses
from .fingerprint import fingerprint
from .karma import KarmaLedger
from .storage import LocalStorage, StorageError

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {"application/pdf"}
DEFAULT_MAX_UPLOAD_BYTES = 20 * 1024 * 1024

_UPSERT_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": postgresql_insert,
}


class DocumentCatalogService:
    """Upload, browse, download and delete documents, keeping karma in step.

    One instance per request. Every mutating operation commits once at the end
    and rolls back on failure, so the catalog and the karma balances never
    disagree.
    """

    def __init__(self, db: Session, storage: LocalStorage, max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES):
        self.db = db
        self.storage = storage
        self.max_upload_bytes = max_upload_bytes
        self.karma = KarmaLedger(db)

    # -- queries --------------------------------------------------------

    def _catalog_query(self, *entities):
        return (
            self.db.query(*entities)
            .select_from(Document)
            .join(Course, Document.course_id == Course.id)
            .join(Major, Course.major_id == Major.id)
            .join(Faculty, Major.faculty_id == Faculty.id)
            .join(University, Faculty.university_id == University.id)
        )

    def list_documents(self, predicates, page: int = 1, page_size: int = 20):
        if page < 1 or page_size < 1:
            raise ValidationFailed("page and limit must be positive")

        clauses = to_clauses(predicates)
        total = self._catalog_query(func.count(Document.id)).filter(*clauses).scalar()

        rows = (
            self._catalog_query(Document, Course, Major, Faculty, University, User.username)
            .outerjoin(User, Document.uploaded_by == User.id)
            .filter(*clauses)
            .order_by(Document.created_at.desc(), Document.id.desc())
            .limit(page_size)
            .offset((page - 1) * page_size)
            .all()
        )

        documents = [
            schemas.DocumentListItem(
                id=document.id,
                title=document.title,
                description=document.description,
                file_url=document.file_url,
                file_size=document.file_size,
                downloads_count=document.downloads_count,
                created_at=document.created_at,
                course_name=course.name,
                course_code=course.code,
                semester=course.semester,
                major_name=major.name,
                faculty_name=faculty.name,
                university_name=university.name,
                uploaded_by_username=username,
            )
            for document, course, major, faculty, university, username in rows
        ]
        return documents, total

    @staticmethod
    def page_count(total: int, page_size: int) -> int:
        return math.ceil(total / page_size) if page_size else 0

    def get_by_id(self, document_id: int) -> schemas.DocumentDetail:
        row = (
            self._catalog_query(Document, Course, Major, Faculty, University, User)
            .outerjoin(User, Document.uploaded_by == User.id)
            .filter(Document.id == document_id)
            .first()
        )
        if row is None:
            raise NotFound("Document not found")

        document, course, major, faculty, university, uploader = row
        base = schemas.DocumentResponse.model_validate(document).model_dump()
        return schemas.DocumentDetail(
            **base,
            course_name=course.name,
            course_code=course.code,
            semester=course.semester,
            major_id=major.id,
            major_name=major.name,
            faculty_id=faculty.id,
            faculty_name=faculty.name,
            university_id=university.id,
            university_name=university.name,
            university_city=university.city,
            uploader_id=uploader.id if uploader else None,
            uploader_username=uploader.username if uploader else None,
            uploader_karma=uploader.karma_points if uploader else None,
        )

    def list_mine(self, uploader: User) -> list[schemas.MyDocument]:
        rows = (
            self.db.query(Document, Course)
            .join(Course, Document.course_id == Course.id)
            .filter(Document.uploaded_by == uploader.id)
            .order_by(Document.created_at.desc(), Document.id.desc())
            .all()
        )
        return [
            schemas.MyDocument(
                **schemas.DocumentResponse.model_validate(document).model_dump(),
                course_name=course.name,
                course_code=course.code,
            )
            for document, course in rows
        ]

    # -- upload ---------------------------------------------------------

    def _validate_file(self, content: bytes, content_type: str | None):
        if not content:
            raise ValidationFailed("No file provided")
        if content_type not in ALLOWED_CONTENT_TYPES:
            raise ValidationFailed("Only PDF files are accepted")
        if len(content) > self.max_upload_bytes:
            limit_mb = self.max_upload_bytes // (1024 * 1024)
            raise ValidationFailed(f"File is too large (max {limit_mb} MB)")

    def _find_by_fingerprint(self, file_hash: str):
        return self.db.query(Document.id, Document.title).filter(Document.file_hash == file_hash).first()

    def _discard(self, location: str):
        try:
            self.storage.delete(location)
        except (StorageError, OSError):
            logger.exception(f"Could not discard stored file {location}")

    def upload(
        self,
        uploader: User,
        course_id: int,
        title: str,
        description: str | None,
        content: bytes,
        content_type: str | None = "application/pdf",
    ) -> Document:
        self._validate_file(content, content_type)

        if self.db.get(Course, course_id) is None:
            raise NotFound("Course not found")

        file_hash = fingerprint(content)
        duplicate = self._find_by_fingerprint(file_hash)
        if duplicate is not None:
            logger.info(f"Rejected duplicate upload by user {uploader.id} (matches document {duplicate.id})")
            raise DuplicateContent(duplicate_id=duplicate.id)

        try:
            location = self.storage.write(content)
        except StorageError as exc:
            logger.exception("Storage write failed during upload")
            raise Unexpected("Error while uploading the document") from exc

        try:
            document = Document(
                title=title,
                description=description,
                course_id=course_id,
                uploaded_by=uploader.id,
                file_url=location,
                file_size=len(content),
                file_hash=file_hash,
            )
            self.db.add(document)
            self.db.flush()
            self.karma.credit_upload(uploader.id)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            self._discard(location)
            winner_id = self.db.query(Document.id).filter(Document.file_hash == file_hash).scalar()
            if winner_id is not None:
                raise DuplicateContent(duplicate_id=winner_id) from exc
            logger.exception("Integrity error during upload")
            raise Unexpected("Error while uploading the document") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            self._discard(location)
            logger.exception("Database error during upload")
            raise Unexpected("Error while uploading the document") from exc
        except Exception:
            self.db.rollback()
            self._discard(location)
            raise

        self.db.refresh(document)
        self.karma.forget(uploader.id)
        logger.info(f"User {uploader.id} uploaded document {document.id} ({document.file_size} bytes) +10 karma")
        return document

    # -- download -------------------------------------------------------

    def _insert_download_record(self, user_id: int, document_id: int):
        insert = _UPSERT_INSERTS.get(self.db.get_bind().dialect.name)
        if insert is not None:
            stmt = (
                insert(Download)
                .values(user_id=user_id, document_id=document_id)
                .on_conflict_do_nothing(index_elements=["user_id", "document_id"])
            )
            self.db.execute(stmt)
            return

        exists = (
            self.db.query(Download.id)
            .filter(Download.user_id == user_id, Download.document_id == document_id)
            .first()
        )
        if exists is None:
            self.db.add(Download(user_id=user_id, document_id=document_id))
            self.db.flush()

    def record_download(self, user: User, document_id: int):
        document = self.db.get(Document, document_id)
        if document is None:
            raise NotFound("Document not found")

        try:
            if not self.karma.debit_download(user.id):
                self.db.rollback()
                raise InsufficientKarma()

            self._insert_download_record(user.id, document_id)
            self.db.query(Document).filter(Document.id == document_id).update(
                {Document.downloads_count: Document.downloads_count + 1},
                synchronize_session=False,
            )
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Database error while recording download")
            raise Unexpected("Error while recording the download") from exc

        self.karma.forget(user.id)
        self.db.expire(document, ["downloads_count"])
        logger.info(f"User {user.id} downloaded document {document_id} -1 karma")

    # -- delete ---------------------------------------------------------

    def delete(self, user: User, document_id: int):
        document = self.db.get(Document, document_id)
        if document is None:
            raise NotFound("Document not found")

        if document.uploaded_by != user.id and user.role != "admin":
            raise Forbidden("You do not have permission to delete this document")

        try:
            if not self.storage.delete(document.file_url):
                logger.warning(f"Stored file {document.file_url} was already missing")
        except (StorageError, OSError):
            logger.warning(f"Could not remove stored file {document.file_url}", exc_info=True)

        uploader_id = document.uploaded_by
        try:
            self.db.delete(document)
            self.db.flush()
            if uploader_id is not None:
                self.karma.debit_deletion(uploader_id)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Database error while deleting document")
            raise Unexpected("Error while deleting the document") from exc

        if uploader_id is not None:
            self.karma.forget(uploader_id)
        logger.info(f"User {user.id} deleted document {document_id}")
