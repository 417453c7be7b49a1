#!/usr/bin/env python3
# CUI // SP-PROPIN
"""Response archiver: writes the final RFP response document to object storage.

The archived Markdown holds the draft, the compliance summary, the full
compliance review and generation metadata. Keys sort by time within a
document:

    rfp-responses/{document_id}/{document_id}-response-{timestamp}.md

Archive failures are not absorbed; they surface as ArchiveError.
"""

import logging
import re
from datetime import datetime, timezone

from healthrfp.rfx.errors import ArchiveError

logger = logging.getLogger("healthrfp.rfx.archiver")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_response_document(document_id: str, draft: dict, compliance: dict,
                            generated_on: str = "") -> str:
    """Render the archived Markdown document."""
    status = str(compliance.get("status", "")).upper()
    return f"""# RFP Response - {document_id}

## Generated On
{generated_on or _now()}

## Compliance Status
**Status**: {status}
**Compliance Score**: {compliance.get("compliance_score", 0)}%
**Issues Found**: {compliance.get("issues", "")}
**Recommendations**: {compliance.get("recommendations", "")}

---

## Generated RFP Response

{draft.get("draft", "")}

---

## Compliance Review Details

{compliance.get("review", "")}

---

## Metadata
- **Word Count**: {draft.get("word_count", 0)}
- **Generated At**: {draft.get("timestamp", "")}
- **Compliance Review At**: {compliance.get("timestamp", "")}
"""


class ResponseArchiver:
    """Stores assembled responses in the documents bucket."""

    def __init__(self, objects, prefix: str = "rfp-responses"):
        self._objects = objects
        self._prefix = prefix.strip("/")

    def response_key(self, document_id: str, timestamp: str) -> str:
        stamp = re.sub(r"[:.]", "-", timestamp)
        return f"{self._prefix}/{document_id}/{document_id}-response-{stamp}.md"

    def archive_response(self, document_id: str, draft: dict, compliance: dict) -> str:
        """Write the response document and return its storage key."""
        now = _now()
        key = self.response_key(document_id, now)
        body = build_response_document(document_id, draft, compliance, generated_on=now)
        metadata = {
            "document_id": document_id,
            "compliance_status": str(compliance.get("status", "")),
            "compliance_score": str(compliance.get("compliance_score", 0)),
            "generated_at": str(draft.get("timestamp", "")),
            "reviewed_at": str(compliance.get("timestamp", "")),
        }
        try:
            self._objects.put(key, body, "text/markdown", metadata=metadata)
        except Exception as e:
            logger.error("Error storing RFP response for %s: %s", document_id, e)
            raise ArchiveError(f"Failed to archive response for {document_id}: {e}") from e
        logger.info("RFP response stored: %s", key)
        return key
