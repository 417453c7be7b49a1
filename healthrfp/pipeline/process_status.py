#!/usr/bin/env python3
# CUI // SP-PROPIN
"""Read-only views over Process records for status polling."""

import logging

from healthrfp.rfx.errors import ProcessNotFound, ResponseNotArchived, StepNotFound

logger = logging.getLogger("healthrfp.pipeline.status")


class ProcessStatusService:

    def __init__(self, store, objects, tables, settings):
        self._store = store
        self._objects = objects
        self._table = tables.processes
        self._expires_in = int(settings.get("storage", "download_url_expires_in"))

    def get_status(self, process_id: str) -> dict:
        process = self._store.get(self._table, {"process_id": process_id}) if process_id else None
        if process is None:
            raise ProcessNotFound(f"Process not found: {process_id}")
        return process

    def get_result(self, process_id: str) -> dict:
        process = self.get_status(process_id)
        return {
            "process_id": process_id,
            "status": process.get("status"),
            "steps": process.get("steps", {}),
            "created_at": process.get("created_at"),
            "updated_at": process.get("updated_at"),
        }

    def _step_result(self, process_id: str, step: str, label: str) -> dict:
        result = (self.get_status(process_id).get("steps", {}).get(step) or {}).get("result")
        if not result:
            raise StepNotFound(f"{label} not found")
        return result

    def get_decision(self, process_id):
        return self._step_result(process_id, "decision", "Decision")

    def get_draft(self, process_id):
        return self._step_result(process_id, "generation", "Draft")

    def get_compliance_review(self, process_id):
        return self._step_result(process_id, "compliance", "Compliance review")

    def download_response(self, process_id: str) -> dict:
        process = self.get_status(process_id)
        key = process.get("s3_response_key")
        if not key:
            raise ResponseNotArchived(
                "RFP response not found. Process may not be completed yet."
            )
        return {
            "download_url": self._objects.presigned_get(key, self._expires_in),
            "s3_key": key,
            "process_id": process_id,
            "expires_in": self._expires_in,
        }
