#!/usr/bin/env python3
# CUI // SP-PROPIN
"""Text extraction for uploaded RFP documents.

TextractExtractor   AWS Textract DetectDocumentText on the stored object,
                    falling back to decoding the object as plain text.
LocalTextExtractor  PDF (via pypdf), DOCX (via python-docx) and plain text,
                    read from whatever ObjectStore holds the upload.

Both raise ExtractionError when no text can be produced.
"""

import io
import logging
from abc import ABC, abstractmethod
from pathlib import PurePosixPath
from typing import Optional

import boto3
from docx import Document as DocxDocument
from pypdf import PdfReader

from healthrfp.rfx.errors import ExtractionError

logger = logging.getLogger("healthrfp.rfx.text_extractor")


class TextExtractor(ABC):
    """Produces text from a stored object reference."""

    @abstractmethod
    def extract(self, bucket: str, key: str) -> str:
        """Return extracted text or raise ExtractionError."""


# ── local parsing ──────────────────────────────────────────────────────────────

def _extract_pdf(data: bytes) -> str:
    reader = PdfReader(io.BytesIO(data))
    pages = []
    for page in reader.pages:
        t = page.extract_text() or ""
        pages.append(t)
    return "\n\n".join(pages)


def _extract_docx(data: bytes) -> str:
    doc = DocxDocument(io.BytesIO(data))
    paragraphs = [p.text for p in doc.paragraphs if p.text.strip()]
    return "\n\n".join(paragraphs)


def extract_bytes(data: bytes, file_name: str = "", mime_type: str = "") -> str:
    """Extract raw text from document bytes, dispatching on suffix or MIME type."""
    suffix = PurePosixPath(file_name).suffix.lower()
    try:
        if suffix == ".pdf" or "pdf" in mime_type:
            return _extract_pdf(data)
        if suffix == ".docx" or "word" in mime_type:
            return _extract_docx(data)
        return data.decode("utf-8", errors="replace")
    except Exception as e:
        raise ExtractionError(f"Failed to extract text from {file_name or 'document'}: {e}") from e


class LocalTextExtractor(TextExtractor):
    """Parses the object in-process; ``bucket`` is informational only."""

    def __init__(self, objects):
        self._objects = objects

    def extract(self, bucket, key):
        try:
            data = self._objects.get(key)
        except Exception as e:
            raise ExtractionError(f"Failed to read {key}: {e}") from e
        text = extract_bytes(data, file_name=key)
        logger.info("Extracted %d characters from %s", len(text), key)
        return text


# ── AWS Textract ───────────────────────────────────────────────────────────────

class TextractExtractor(TextExtractor):
    """Textract LINE blocks joined by newlines, with a plain-text fallback."""

    def __init__(self, objects, region: Optional[str] = None):
        self._objects = objects
        kwargs = {"region_name": region} if region else {}
        self._client = boto3.client("textract", **kwargs)

    def extract(self, bucket, key):
        try:
            response = self._client.detect_document_text(
                Document={"S3Object": {"Bucket": bucket, "Name": key}},
            )
            lines = [
                b.get("Text") for b in response.get("Blocks", [])
                if b.get("BlockType") == "LINE" and b.get("Text")
            ]
            text = "\n".join(lines)
            logger.info("Extracted %d characters from %s/%s", len(text), bucket, key)
            return text
        except Exception as e:
            logger.warning("Textract failed for %s/%s: %s", bucket, key, e)

        try:
            return self._objects.get(key).decode("utf-8")
        except Exception as e:
            logger.error("Fallback text extraction also failed for %s: %s", key, e)
            raise ExtractionError("Failed to extract text from document") from e
