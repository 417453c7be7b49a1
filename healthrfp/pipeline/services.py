#!/usr/bin/env python3
# CUI // SP-PROPIN
"""Wires storage, LLM and knowledge collaborators into the pipeline services.

HEALTHRFP_BACKEND selects the collaborators:

  local  SQLite item store, filesystem object store, pypdf/python-docx
         extraction (default; used for development and tests)
  aws    DynamoDB, S3 (S3_DOCUMENTS_BUCKET), Textract

The LLM router is the same for both; args/llm_config.yaml decides which
provider answers each pipeline function.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any

from healthrfp.audit.audit_logger import AuditLogger
from healthrfp.knowledge.context_resolver import KnowledgeContext
from healthrfp.knowledge.kb_manager import KnowledgeBaseManager
from healthrfp.pipeline.config import (
    PipelineSettings, Tables, default_db_path, default_object_dir,
)
from healthrfp.pipeline.orchestrator import RfpPipeline
from healthrfp.pipeline.process_status import ProcessStatusService
from healthrfp.rfx.document_processor import DocumentProcessor
from healthrfp.rfx.llm_bridge import RouterCompletionService
from healthrfp.rfx.response_archiver import ResponseArchiver
from healthrfp.rfx.text_extractor import LocalTextExtractor, TextractExtractor
from healthrfp.storage.kv_store import DynamoDBKeyValueStore, SQLiteKeyValueStore
from healthrfp.storage.object_store import LocalObjectStore, S3ObjectStore

logger = logging.getLogger("healthrfp.services")


@dataclass
class Services:
    backend: str
    store: Any
    objects: Any
    extractor: Any
    llm: Any
    tables: Tables
    settings: PipelineSettings
    audit: AuditLogger

    def knowledge_context(self) -> KnowledgeContext:
        return KnowledgeContext(self.store, self.tables.knowledge_base)

    def knowledge_manager(self) -> KnowledgeBaseManager:
        return KnowledgeBaseManager(self.store, self.tables.knowledge_base)

    def archiver(self) -> ResponseArchiver:
        return ResponseArchiver(self.objects,
                                prefix=self.settings.get("storage", "response_prefix"))

    def pipeline(self) -> RfpPipeline:
        return RfpPipeline(
            store=self.store,
            llm=self.llm,
            knowledge=self.knowledge_context(),
            audit=self.audit,
            archiver=self.archiver(),
            tables=self.tables,
            settings=self.settings,
        )

    def documents(self) -> DocumentProcessor:
        return DocumentProcessor(self.store, self.objects, self.extractor,
                                 self.audit, self.tables, self.settings)

    def status(self) -> ProcessStatusService:
        return ProcessStatusService(self.store, self.objects, self.tables, self.settings)


def build_services(backend=None, store=None, objects=None, extractor=None,
                   llm=None, tables=None, settings=None) -> Services:
    """Build Services for ``backend``; any collaborator passed in is used as-is."""
    backend = (backend or os.environ.get("HEALTHRFP_BACKEND", "local")).lower()
    if backend not in ("local", "aws"):
        raise ValueError(f"Unknown backend '{backend}' (expected local or aws)")

    tables = tables or Tables.from_env()
    settings = settings or PipelineSettings.load()
    region = os.environ.get("AWS_REGION")

    if store is None:
        if backend == "aws":
            store = DynamoDBKeyValueStore(region=region)
        else:
            store = SQLiteKeyValueStore(default_db_path(), tables.key_schema())

    if objects is None:
        if backend == "aws":
            objects = S3ObjectStore(os.environ.get("S3_DOCUMENTS_BUCKET", ""), region=region)
        else:
            objects = LocalObjectStore(default_object_dir(),
                                       bucket=os.environ.get("S3_DOCUMENTS_BUCKET",
                                                             "local-documents"))

    if extractor is None:
        if backend == "aws":
            extractor = TextractExtractor(objects, region=region)
        else:
            extractor = LocalTextExtractor(objects)

    llm = llm or RouterCompletionService()
    audit = AuditLogger(store, tables.audit_logs,
                        ttl_days=settings.get("audit", "ttl_days"))

    logger.info("Services built (backend=%s)", backend)
    return Services(backend=backend, store=store, objects=objects, extractor=extractor,
                    llm=llm, tables=tables, settings=settings, audit=audit)
