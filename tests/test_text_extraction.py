import re

import pytest

from capconnect.storage import documents as storage_documents
from capconnect.storage.text_extraction import chunk_text, extract_text, is_extractable


def test_chunk_text_splits_on_fixed_width():
    chunks = chunk_text("a" * 2500)
    assert [len(c) for c in chunks] == [1000, 1000, 500]
    assert chunk_text("") == []
    assert chunk_text("abcdef", chunk_size=4) == ["abcd", "ef"]


def test_chunk_text_rejects_bad_size():
    with pytest.raises(ValueError):
        chunk_text("abc", chunk_size=0)


@pytest.mark.parametrize("content_type, expected", [
    ("application/pdf", True),
    ("text/plain", True),
    ("text/csv", True),
    ("image/png", False),
    ("", False),
    (None, False),
])
def test_is_extractable(content_type, expected):
    assert is_extractable(content_type) is expected


def test_extract_plain_text():
    assert extract_text("Résumé of the round".encode("utf-8"), "text/plain") == "Résumé of the round"


def test_extract_invalid_utf8_does_not_raise():
    assert "�" in extract_text(b"bad \xff byte", "text/plain")


def test_build_storage_path():
    path = storage_documents.build_storage_path("company-1", "Q1 Report.PDF")
    assert re.fullmatch(r"company-1/\d{13}\.pdf", path)
    assert storage_documents.build_storage_path("c", "README").endswith(".bin")


def test_storage_path_from_url():
    url = "https://abc.supabase.co/storage/v1/object/public/documents/c1/1700000000000.pdf?download=1"
    assert storage_documents.storage_path_from_url(url) == "c1/1700000000000.pdf"
    assert storage_documents.storage_path_from_url("https://cdn.example.com/x/file.pdf") == "file.pdf"
