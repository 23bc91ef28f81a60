import os
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Path, Query, UploadFile, status
from pydantic import UUID4
from sqlalchemy.orm import Session

from capconnect.api.deps import get_current_user, get_founder_company
from capconnect.api.schemas import AccessLevel, DocumentDownload, DocumentOut, DocumentType
from capconnect.database import crud
from capconnect.database.database import get_db
from capconnect.database.models import Company, Document, User
from capconnect.formatting import format_file_size
from capconnect.notifications.notifier import notify_user
from capconnect.storage.documents import remove_document_file, storage_path_from_url, upload_document_file
from capconnect.storage.text_extraction import chunk_text, extract_text, is_extractable

logger = logging.getLogger(__name__)
router = APIRouter()

MAX_UPLOAD_SIZE_MB = int(os.getenv("MAX_UPLOAD_SIZE_MB", "25"))
INVESTOR_ACCESS_LEVELS = ("public", "investors")


def document_out(document: Document) -> DocumentOut:
    out = DocumentOut.model_validate(document)
    out.file_size_display = format_file_size(document.file_size)
    return out


def _default_name(filename: str) -> str:
    return filename.rsplit(".", 1)[0] if "." in filename else filename


def _visible_to(document: Document, user: User, db: Session) -> bool:
    """Founders see their own company's documents; investors the shared ones."""
    if user.role == "founder":
        company = crud.get_company_for_user(db, user.id)
        return company is not None and company.id == document.company_id
    return document.access_level in INVESTOR_ACCESS_LEVELS


def _store_chunks(db: Session, document: Document, data: bytes, content_type: Optional[str]) -> None:
    if not is_extractable(content_type):
        return
    try:
        text = extract_text(data, content_type)
        count = crud.add_document_chunks(db, document, chunk_text(text))
        logger.info("Stored %d text chunks for document %s", count, document.id)
    except Exception as e:
        # the upload itself stands without searchable text
        logger.warning("Text extraction failed for document %s: %s", document.id, e)


@router.post("/documents", response_model=DocumentOut, status_code=status.HTTP_201_CREATED)
def upload_document(
    file: UploadFile = File(...),
    name: Optional[str] = Form(None),
    type: DocumentType = Form("pitch_deck"),
    access_level: AccessLevel = Form("investors"),
    company: Company = Depends(get_founder_company),
    db: Session = Depends(get_db),
) -> DocumentOut:
    """
    Store a data-room file in the documents bucket and record it. A second
    upload under an existing name becomes the next version of that document.
    """
    data = file.file.read()
    if len(data) > MAX_UPLOAD_SIZE_MB * 1024 * 1024:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds the {MAX_UPLOAD_SIZE_MB} MB upload limit",
        )
    if not data:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    filename = file.filename or "document"
    display_name = (name or "").strip() or _default_name(filename)
    content_type = file.content_type or "application/octet-stream"

    stored = upload_document_file(company.id, filename, data, content_type)

    document = Document(
        company_id=company.id,
        name=display_name,
        type=type,
        url=stored["public_url"],
        storage_path=stored["storage_path"],
        file_size=len(data),
        access_level=access_level,
        version=crud.next_document_version(db, company.id, display_name),
        uploaded_by=company.user_id,
    )
    db.add(document)
    db.flush()
    _store_chunks(db, document, data, content_type)
    db.commit()

    logger.info(
        "Uploaded %s v%d (%s, %s) for company %s",
        document.name, document.version, document.type, format_file_size(document.file_size), company.id,
    )
    return document_out(document)


@router.get("/documents", response_model=List[DocumentOut])
def list_documents(
    company_id: Optional[UUID4] = Query(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[DocumentOut]:
    if user.role == "founder":
        company = crud.get_company_for_user(db, user.id)
        if company is None:
            raise HTTPException(status_code=404, detail="company_required")
        documents = crud.list_documents(db, company.id)
    else:
        if company_id is None:
            raise HTTPException(status_code=400, detail="company_id is required")
        documents = crud.list_documents(db, company_id, access_levels=INVESTOR_ACCESS_LEVELS)
    return [document_out(d) for d in documents]


@router.get("/documents/{document_id}/download", response_model=DocumentDownload)
def download_document(
    document_id: UUID4 = Path(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> DocumentDownload:
    document = crud.get_document(db, document_id)
    if document is None or not _visible_to(document, user, db):
        raise HTTPException(status_code=404, detail="Document not found")

    notify_user(
        db,
        user.id,
        f'Document "{document.name}" was downloaded',
        type="view",
        related_id=document.id,
    )
    if user.role == "investor":
        crud.record_document_view(db, document.company_id, user.id)
        company = crud.get_company(db, document.company_id)
        crud.record_engagement(db, company, user.id)
    else:
        crud.record_document_view(db, document.company_id)
    db.commit()

    return DocumentDownload(id=document.id, name=document.name, url=document.url)


@router.delete("/documents/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_document(
    document_id: UUID4 = Path(...),
    company: Company = Depends(get_founder_company),
    db: Session = Depends(get_db),
) -> None:
    document = crud.get_document(db, document_id)
    if document is None or document.company_id != company.id:
        raise HTTPException(status_code=404, detail="Document not found")

    storage_path = document.storage_path or storage_path_from_url(document.url)
    db.delete(document)
    db.commit()
    remove_document_file(storage_path)
    logger.info("Deleted document %s (%s) from company %s", document_id, storage_path, company.id)
