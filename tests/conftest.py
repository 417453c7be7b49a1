#!/usr/bin/env python3
# CUI // SP-PROPIN
"""Shared test fixtures for the HealthRFP test suite.

Every test runs against the local backend: a temporary SQLite item store,
a temporary object directory, and scripted fakes for the completion
service and text extraction.
"""

import sys
import uuid
from pathlib import Path

import pytest

# Add project root to path
BASE_DIR = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(BASE_DIR))

from healthrfp.pipeline.config import PipelineSettings, Tables  # noqa: E402
from healthrfp.rfx.errors import ExtractionError, LLMUnavailableError  # noqa: E402
from healthrfp.rfx.llm_bridge import CompletionService  # noqa: E402
from healthrfp.rfx.text_extractor import TextExtractor  # noqa: E402
from healthrfp.storage.kv_store import SQLiteKeyValueStore  # noqa: E402
from healthrfp.storage.object_store import LocalObjectStore  # noqa: E402


RFP_TEXT = (
    "Request for Proposal: Electronic Health Record Modernization.\n"
    "Lakeside Regional Health seeks a partner to migrate its EHR to Epic, "
    "stand up a patient portal and deliver HIPAA-compliant analytics. "
    "Budget range $1.2M-$1.8M. Go-live within 10 months of award."
)

DECISION_BID = (
    "BID\n\nReasoning: North America is one of our service regions, the EHR "
    "scope matches our Epic specialty and the budget exceeds our $500K minimum."
)

DECISION_NO_BID = "NO_BID. We do not have capacity for this timeline."

DRAFT_TEXT = (
    "## Executive Summary\n"
    "We bring 15 years of healthcare IT delivery to Lakeside Regional Health.\n\n"
    "## Company Overview\nEpic and Cerner certified specialists.\n"
)

REVIEW_TEXT = (
    "1. Healthcare Compliance: ✅ PASS\n"
    "2. Professional Standards: ✅ PASS\n"
    "3. Certification Claims: ✅ PASS\n"
    "4. Pricing Consistency: ❌ FAIL\n\n"
    "STATUS: COMPLIANT\n"
    "ISSUES: Pricing section lacks a cost breakdown\n"
    "RECOMMENDATIONS: Add phase-level pricing"
)

DEFAULT_RESPONSES = {
    "bid_decision": DECISION_BID,
    "draft_generation": DRAFT_TEXT,
    "compliance_review": REVIEW_TEXT,
}


class ScriptedCompletion(CompletionService):
    """Completion fake: canned text per pipeline function, or a failure."""

    def __init__(self, responses=None):
        self.responses = dict(DEFAULT_RESPONSES)
        self.responses.update(responses or {})
        self.fail = False
        self.calls = []

    def complete(self, prompt, max_tokens, temperature, function="default", process_id=""):
        self.calls.append({
            "function": function,
            "process_id": process_id,
            "prompt": prompt,
            "max_tokens": max_tokens,
            "temperature": temperature,
        })
        if self.fail:
            raise LLMUnavailableError("completion service unreachable")
        value = self.responses.get(function, "")
        if isinstance(value, Exception):
            raise value
        return value

    def functions(self):
        return [c["function"] for c in self.calls]


class StaticExtractor(TextExtractor):
    """Extraction fake returning fixed text, or raising ExtractionError."""

    def __init__(self, text="Extracted RFP text", error=None):
        self.text = text
        self.error = error
        self.calls = []

    def extract(self, bucket, key):
        self.calls.append((bucket, key))
        if self.error:
            raise ExtractionError(self.error)
        return self.text


@pytest.fixture
def tables():
    return Tables()


@pytest.fixture
def settings():
    return PipelineSettings()


@pytest.fixture
def kv_store(tmp_path, tables):
    """Temporary SQLite item store with the pipeline's key schema."""
    return SQLiteKeyValueStore(tmp_path / "healthrfp.db", tables.key_schema())


@pytest.fixture
def object_store(tmp_path):
    return LocalObjectStore(tmp_path / "objects", bucket="test-documents")


@pytest.fixture
def llm():
    return ScriptedCompletion()


@pytest.fixture
def extractor():
    return StaticExtractor()


@pytest.fixture
def services(kv_store, object_store, extractor, llm, tables, settings):
    from healthrfp.pipeline.services import build_services
    return build_services(
        backend="local", store=kv_store, objects=object_store,
        extractor=extractor, llm=llm, tables=tables, settings=settings,
    )


@pytest.fixture
def make_document(kv_store, tables):
    """Insert an uploaded Document and return its id."""

    def _make(region="North America", content=RFP_TEXT, client_name="Lakeside Regional Health",
              industry="Healthcare"):
        document_id = str(uuid.uuid4())
        kv_store.put(tables.documents, {
            "document_id": document_id,
            "status": "uploaded",
            "client_name": client_name,
            "region": region,
            "industry": industry,
            "content": content,
            "file_name": "rfp.txt",
            "s3_key": f"documents/{document_id}/original.txt",
            "s3_bucket": "test-documents",
        })
        return document_id

    return _make


@pytest.fixture
def app_client(services):
    """Flask test client around the test services."""
    from healthrfp.dashboard.app import create_app
    app = create_app(services)
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client
