"""
Text extraction for uploaded data-room documents.

PDFs go through PyMuPDF page by page; text/* uploads are decoded as UTF-8.
The text is then split into fixed 1000-character chunks that are stored in
`document_chunks` for later retrieval.
"""

import logging
from typing import List, Optional

import fitz  # PyMuPDF

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1000


def is_extractable(content_type: Optional[str]) -> bool:
    if not content_type:
        return False
    return "text" in content_type or "pdf" in content_type


def extract_pdf_text(pdf_bytes: bytes) -> str:
    """
    Extract text from a PDF (supplied as bytes) using PyMuPDF.
    Pages without a text layer are skipped.
    """
    all_text = []
    with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
        for page_index in range(doc.page_count):
            text = doc[page_index].get_text("text")
            if text.strip():
                all_text.append(text)
    return "\n".join(all_text)


def extract_text(data: bytes, content_type: str) -> str:
    if "pdf" in content_type:
        return extract_pdf_text(data)
    return data.decode("utf-8", errors="replace")


def chunk_text(text: str, chunk_size: int = CHUNK_SIZE) -> List[str]:
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    return [text[i:i + chunk_size] for i in range(0, len(text), chunk_size)]
