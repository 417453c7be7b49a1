#!/usr/bin/env python3
# CUI // SP-PROPIN
"""Document intake: upload intent, upload completion and document lookup.

Upload is two-step. ``start_upload`` records a pending_upload Document and
hands back a presigned PUT URL for ``documents/{id}/original.{ext}``.
Once the client has PUT the file, ``complete_upload`` runs text extraction
and marks the Document uploaded.

Extraction failure does not fail the upload; the Document content becomes
"Error extracting text from document" and ``extraction_error`` records why.
"""

import logging
import uuid
from datetime import datetime, timezone
from pathlib import PurePosixPath

from healthrfp.rfx.errors import DocumentNotFound, ExtractionError, ValidationError

logger = logging.getLogger("healthrfp.rfx.documents")

EXTRACTION_FAILED_TEXT = "Error extracting text from document"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _extension(file_name) -> str:
    if not file_name:
        return "txt"
    suffix = PurePosixPath(file_name).suffix
    return suffix[1:] if suffix else file_name.rsplit(".", 1)[-1]


class DocumentProcessor:
    """Creates and completes Document records."""

    def __init__(self, store, objects, extractor, audit, tables, settings):
        self._store = store
        self._objects = objects
        self._extractor = extractor
        self._audit = audit
        self._table = tables.documents
        self._expires_in = int(settings.get("storage", "upload_url_expires_in"))

    def get_document(self, document_id: str) -> dict:
        if not document_id:
            raise ValidationError("document_id is required")
        doc = self._store.get(self._table, {"document_id": document_id})
        if doc is None:
            raise DocumentNotFound(f"Document not found: {document_id}")
        return doc

    def start_upload(self, data: dict) -> dict:
        data = data or {}
        document_id = str(uuid.uuid4())
        now = _now()
        content_type = data.get("content_type") or "application/octet-stream"
        s3_key = f"documents/{document_id}/original.{_extension(data.get('file_name'))}"

        upload_url = self._objects.presigned_put(s3_key, content_type, self._expires_in)

        record = {
            "document_id": document_id,
            "client_name": data.get("client_name") or "Unknown Client",
            "region": data.get("region") or "Unknown Region",
            "industry": data.get("industry") or "Healthcare",
            "status": "pending_upload",
            "created_at": now,
            "updated_at": now,
            "file_type": data.get("file_type") or "document",
            "file_name": data.get("file_name") or "document",
            "content_type": content_type,
            "file_size": data.get("file_size") or 0,
            "s3_key": s3_key,
            "s3_bucket": self._objects.bucket,
            "content": data.get("content") or "",
        }
        self._store.put(self._table, record)
        logger.info("Upload initiated for document %s (%s)", document_id, s3_key)

        self._audit.log_action(
            document_id, "document_upload_initiated",
            "Document upload initiated with presigned URL",
            {"document_id": document_id, "s3_key": s3_key,
             "file_name": data.get("file_name")},
        )
        return {
            "message": "Document upload initiated successfully",
            "document_id": document_id,
            "status": "pending_upload",
            "upload_url": upload_url,
            "expires_in": self._expires_in,
            "s3_key": s3_key,
        }

    def complete_upload(self, document_id: str) -> dict:
        doc = self.get_document(document_id)

        extracted = ""
        extraction_error = None
        if doc.get("s3_key"):
            try:
                extracted = self._extractor.extract(doc.get("s3_bucket", ""), doc["s3_key"])
            except ExtractionError as exc:
                logger.error("Error extracting text for %s: %s", document_id, exc)
                extracted = EXTRACTION_FAILED_TEXT
                extraction_error = str(exc)

        doc.update({
            "status": "uploaded",
            "content": extracted or doc.get("content", ""),
            "updated_at": _now(),
            "text_extraction_completed": True,
        })
        if extraction_error:
            doc["extraction_error"] = extraction_error
        self._store.put(self._table, doc)

        self._audit.log_action(
            document_id, "document_upload_completed",
            "File upload completed and text extracted",
            {"document_id": document_id, "text_length": len(extracted),
             "s3_key": doc.get("s3_key")},
        )
        return {
            "message": "File upload completed successfully",
            "document_id": document_id,
            "status": "uploaded",
            "content": extracted,
            "text_length": len(extracted),
        }
