#!/usr/bin/env python3
# CUI // SP-PROPIN
"""Pipeline configuration: table names, storage locations and tunables.

Tunables come from args/pipeline_config.yaml (path overridable with
HEALTHRFP_PIPELINE_CONFIG). Keys missing from the file keep the
built-in DEFAULTS below. Table and bucket names come from the environment,
matching the deployed Lambda configuration.
"""

import copy
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger("healthrfp.pipeline.config")

BASE_DIR = Path(__file__).resolve().parent.parent.parent
DEFAULT_CONFIG_PATH = BASE_DIR / "args" / "pipeline_config.yaml"

DEFAULTS = {
    "decision": {
        "content_chars": 2000,
        "max_tokens": 300,
        "temperature": 0.1,
        "model_confidence": 0.8,
        "fallback_confidence": 0.6,
        "fallback_bid_region": "North America",
    },
    "generation": {
        "content_chars": 3000,
        "max_tokens": 2000,
        "temperature": 0.3,
    },
    "compliance": {
        "max_tokens": 1000,
        "temperature": 0.1,
    },
    "storage": {
        "upload_url_expires_in": 3600,
        "download_url_expires_in": 3600,
        "response_prefix": "rfp-responses",
    },
    "audit": {
        "ttl_days": 30,
    },
}


def _merge(base: dict, override: dict) -> dict:
    out = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if value is None:
            # an empty YAML section keeps its defaults
            continue
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out


@dataclass
class PipelineSettings:
    values: dict = field(default_factory=lambda: copy.deepcopy(DEFAULTS))

    @classmethod
    def load(cls, path=None) -> "PipelineSettings":
        path = Path(path or os.environ.get("HEALTHRFP_PIPELINE_CONFIG", DEFAULT_CONFIG_PATH))
        if not path.exists():
            logger.info("Pipeline config not found at %s, using defaults", path)
            return cls()
        with open(path, "r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
        return cls(values=_merge(DEFAULTS, loaded))

    def section(self, name: str) -> dict:
        return self.values.get(name) or DEFAULTS.get(name, {})

    def get(self, section: str, key: str):
        return self.section(section).get(key, DEFAULTS.get(section, {}).get(key))


@dataclass
class Tables:
    documents: str = "healthcare-uc-rfp-documents"
    processes: str = "healthcare-uc-rfp-processes"
    knowledge_base: str = "healthcare-uc-rfp-knowledge-base"
    audit_logs: str = "healthcare-uc-rfp-audit-logs"

    @classmethod
    def from_env(cls) -> "Tables":
        d = cls()
        return cls(
            documents=os.environ.get("TABLE_RFP_DOCUMENTS", d.documents),
            processes=os.environ.get("TABLE_RFP_PROCESSES", d.processes),
            knowledge_base=os.environ.get("TABLE_RFP_KNOWLEDGE_BASE", d.knowledge_base),
            audit_logs=os.environ.get("TABLE_RFP_AUDIT_LOGS", d.audit_logs),
        )

    def key_schema(self) -> dict:
        """Partition key attribute per table."""
        return {
            self.documents: "document_id",
            self.processes: "process_id",
            self.knowledge_base: "content_id",
            self.audit_logs: "log_id",
        }


def default_db_path() -> Path:
    return Path(os.environ.get(
        "HEALTHRFP_DB_PATH", str(BASE_DIR / "data" / "healthrfp.db")
    ))


def default_object_dir() -> Path:
    return Path(os.environ.get(
        "HEALTHRFP_OBJECT_DIR", str(BASE_DIR / "data" / "objects")
    ))
