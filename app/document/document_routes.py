from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile, status
from sqlalchemy.orm import Session

from app import schemas
from app.auth.auth_service import get_current_user
from app.database import get_db
from app.errors import ValidationFailed
from app.models import User
from .document_service import DocumentCatalogService
from .filters import build_document_filters

router = APIRouter()

TITLE_MIN, TITLE_MAX = 3, 255
DESCRIPTION_MAX = 2000


def get_catalog(request: Request, db: Session = Depends(get_db)) -> DocumentCatalogService:
    return DocumentCatalogService(
        db,
        request.app.state.storage,
        max_upload_bytes=request.app.state.settings.max_upload_bytes,
    )


@router.post("", response_model=schemas.UploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_document(
    title: str = Form(...),
    course_id: int = Form(...),
    description: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    catalog: DocumentCatalogService = Depends(get_catalog),
    current_user: User = Depends(get_current_user),
):
    title = title.strip()
    if not TITLE_MIN <= len(title) <= TITLE_MAX:
        raise ValidationFailed(f"Title must be between {TITLE_MIN} and {TITLE_MAX} characters")

    if description is not None:
        description = description.strip() or None
        if description and len(description) > DESCRIPTION_MAX:
            raise ValidationFailed(f"Description cannot exceed {DESCRIPTION_MAX} characters")

    if file is None:
        raise ValidationFailed("No file provided")

    content = await file.read()
    document = catalog.upload(
        current_user,
        course_id=course_id,
        title=title,
        description=description,
        content=content,
        content_type=file.content_type,
    )
    return {
        "message": "Document uploaded successfully! +10 karma",
        "document": schemas.DocumentResponse.model_validate(document),
    }


@router.get("", response_model=schemas.DocumentListResponse)
def list_documents(
    university_id: Optional[int] = None,
    faculty_id: Optional[int] = None,
    major_id: Optional[int] = None,
    course_id: Optional[int] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    catalog: DocumentCatalogService = Depends(get_catalog),
):
    predicates = build_document_filters(
        university_id=university_id,
        faculty_id=faculty_id,
        major_id=major_id,
        course_id=course_id,
        search=search,
    )
    documents, total = catalog.list_documents(predicates, page=page, page_size=limit)
    return {
        "documents": documents,
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "pages": catalog.page_count(total, limit),
        },
    }


# Declared before /{document_id} so "my" is not parsed as an id.
@router.get("/my/uploads", response_model=schemas.MyDocumentsResponse)
def my_documents(
    catalog: DocumentCatalogService = Depends(get_catalog),
    current_user: User = Depends(get_current_user),
):
    documents = catalog.list_mine(current_user)
    return {"documents": documents, "total": len(documents)}


@router.get("/{document_id}", response_model=schemas.DocumentDetail)
def get_document(document_id: int, catalog: DocumentCatalogService = Depends(get_catalog)):
    return catalog.get_by_id(document_id)


@router.post("/{document_id}/download", response_model=schemas.MessageResponse)
def record_download(
    document_id: int,
    catalog: DocumentCatalogService = Depends(get_catalog),
    current_user: User = Depends(get_current_user),
):
    catalog.record_download(current_user, document_id)
    return {"message": "Download recorded. -1 karma"}


@router.delete("/{document_id}", response_model=schemas.MessageResponse)
def delete_document(
    document_id: int,
    catalog: DocumentCatalogService = Depends(get_catalog),
    current_user: User = Depends(get_current_user),
):
    catalog.delete(current_user, document_id)
    return {"message": "Document deleted successfully"}
