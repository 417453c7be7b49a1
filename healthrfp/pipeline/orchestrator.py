#!/usr/bin/env python3
# CUI // SP-PROPIN
# Controlled by: HealthRFP Portal
# CUI Category: PROPIN (Proprietary Business Information)
# Distribution: D
# POC: HealthRFP System Administrator
"""RFP processing pipeline: ingestion -> decision -> generation -> compliance.

One call to ``start_processing`` runs the whole pipeline synchronously for
one document and keeps a Process record current after every step
transition (write-then-proceed):

  ingestion   completed at creation; the document text is already extracted
  decision    always completes; model decision or the region rule
  generation  BID only; a failed completion leaves an error draft
  compliance  BID only; a failed completion leaves an error review,
              after which the response is archived to object storage

Completion-service failures never escape a stage. Only a missing document
(before any Process exists) or an unexpected error inside the run, archive
failure included, stops the pipeline; the latter marks the Process failed
and surfaces as PipelineError.

Usage:
    python -m healthrfp.pipeline.orchestrator --document-id <id> [--json]
"""

import argparse
import json
import logging
import sys
import uuid
from datetime import datetime, timezone

from healthrfp.rfx.errors import DocumentNotFound, PipelineError
from healthrfp.rfx.prompts import (
    build_compliance_prompt, build_decision_prompt, build_draft_prompt,
)
from healthrfp.rfx.response_parser import (
    compliance_score, parse_bid_decision, parse_compliance_review,
)

logger = logging.getLogger("healthrfp.pipeline")

STEP_NAMES = ("ingestion", "decision", "generation", "compliance")

DRAFT_ERROR_TEXT = "Error generating draft. Please try again."
REVIEW_ERROR_TEXT = "Error reviewing compliance. Please check manually."


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_process(process_id: str, document_id: str) -> dict:
    """Initial Process record: ingestion completed, every other step pending."""
    now = _now()
    steps = {name: {"status": "pending", "timestamp": None} for name in STEP_NAMES}
    steps["ingestion"] = {"status": "completed", "timestamp": now}
    return {
        "process_id": process_id,
        "document_id": document_id,
        "status": "processing",
        "created_at": now,
        "updated_at": now,
        "steps": steps,
    }


class RfpPipeline:
    """Drives one document through the four pipeline steps."""

    def __init__(self, store, llm, knowledge, audit, archiver, tables, settings):
        self._store = store
        self._llm = llm
        self._knowledge = knowledge
        self._audit = audit
        self._archiver = archiver
        self._tables = tables
        self._settings = settings

    # ── persistence ──────────────────────────────────────────────────────────

    def _save(self, process: dict) -> None:
        process["updated_at"] = _now()
        self._store.put(self._tables.processes, process)

    def _set_step(self, process: dict, name: str, status: str, result=None) -> None:
        step = {"status": status, "timestamp": _now()}
        if result is not None:
            step["result"] = result
        process["steps"][name] = step
        self._save(process)

    def _load_document(self, document_id: str) -> dict:
        doc = self._store.get(self._tables.documents, {"document_id": document_id})
        if doc is None:
            raise DocumentNotFound(f"Document not found: {document_id}")
        if not doc.get("content"):
            raise DocumentNotFound(f"Document {document_id} has no extracted content")
        return doc

    # ── entry point ──────────────────────────────────────────────────────────

    def start_processing(self, document_id: str) -> dict:
        document = self._load_document(document_id)

        process_id = str(uuid.uuid4())
        process = new_process(process_id, document_id)
        self._save(process)
        logger.info("Process %s started for document %s", process_id, document_id)

        try:
            self._run(process, document)
        except Exception as exc:
            self._fail(process, exc)
            raise PipelineError(str(exc), process_id=process_id) from exc

        return {
            "message": "Processing started successfully",
            "process_id": process_id,
            "status": "processing",
        }

    def _run(self, process: dict, document: dict) -> None:
        pid = process["process_id"]

        self._set_step(process, "decision", "in_progress")
        decision = self.make_bid_decision(document, process_id=pid)
        process["status"] = "decision_completed"
        self._set_step(process, "decision", "completed", decision)
        self._audit.log_action(pid, "decision_completed", "Bid decision completed", decision)

        if decision["decision"] != "BID":
            process["status"] = "completed"
            self._save(process)
            self._audit.log_action(
                pid, "processing_completed", "Processing completed with NO_BID decision",
                {"decision": decision["decision"]},
            )
            return

        self._set_step(process, "generation", "in_progress")
        draft = self.generate_draft(document, decision, process_id=pid)
        self._set_step(process, "generation", "completed", draft)
        self._audit.log_action(pid, "draft_generated", "Response draft generated",
                               {"word_count": draft.get("word_count", 0),
                                "error": draft.get("error")})

        self._set_step(process, "compliance", "in_progress")
        compliance = self.review_compliance(draft, document, process_id=pid)
        self._set_step(process, "compliance", "completed", compliance)

        process["s3_response_key"] = self._archiver.archive_response(
            document["document_id"], draft, compliance,
        )
        process["status"] = "completed"
        self._save(process)
        self._audit.log_action(pid, "processing_completed", "All processing steps completed",
                               {"draft": draft, "compliance": compliance})

    def _fail(self, process: dict, exc: Exception) -> None:
        pid = process["process_id"]
        logger.error("Process %s failed: %s", pid, exc, exc_info=True)
        process["status"] = "failed"
        process["error"] = str(exc)
        try:
            self._save(process)
        except Exception as save_exc:
            logger.error("Could not persist failure for %s: %s", pid, save_exc)
        self._audit.log_action(pid, "processing_failed", "Processing failed",
                               {"error": str(exc)})

    # ── stages ───────────────────────────────────────────────────────────────

    def make_bid_decision(self, document: dict, process_id: str = "") -> dict:
        cfg = self._settings.section("decision")
        ctx = self._knowledge.get_business_context()
        prompt = build_decision_prompt(document, ctx, content_chars=cfg["content_chars"])
        try:
            text = self._llm.complete(
                prompt, cfg["max_tokens"], cfg["temperature"], function="bid_decision",
                process_id=process_id,
            )
        except Exception as exc:
            logger.warning("Bid decision model unavailable for %s, using region rule: %s",
                           document.get("document_id"), exc)
            return self._rule_based_decision(document)

        parsed = parse_bid_decision(text)
        if not parsed.ok:
            logger.info("No BID/NO_BID token in decision for %s; treating as NO_BID",
                        document.get("document_id"))
        return {
            "decision": parsed.value,
            "reasoning": text,
            "confidence": cfg["model_confidence"],
            "timestamp": _now(),
            "source": "model",
        }

    def _rule_based_decision(self, document: dict) -> dict:
        cfg = self._settings.section("decision")
        bid_region = cfg["fallback_bid_region"]
        region = document.get("region", "")
        if region == bid_region:
            decision, reasoning = "BID", f"Rule-based decision: Serving {bid_region} region"
        else:
            decision, reasoning = "NO_BID", f"Rule-based decision: Not serving this region ({region})"
        return {
            "decision": decision,
            "reasoning": reasoning,
            "confidence": cfg["fallback_confidence"],
            "timestamp": _now(),
            "source": "rule",
        }

    def generate_draft(self, document: dict, decision: dict, process_id: str = "") -> dict:
        cfg = self._settings.section("generation")
        ctx = self._knowledge.get_business_context()
        templates = self._knowledge.get_response_templates()
        prompt = build_draft_prompt(document, ctx, templates, decision.get("reasoning", ""),
                                    content_chars=cfg["content_chars"])
        try:
            text = self._llm.complete(
                prompt, cfg["max_tokens"], cfg["temperature"], function="draft_generation",
                process_id=process_id,
            )
        except Exception as exc:
            logger.error("Error generating draft for %s: %s",
                         document.get("document_id"), exc, exc_info=True)
            return {
                "draft": DRAFT_ERROR_TEXT,
                "timestamp": _now(),
                "error": str(exc),
                "word_count": 0,
            }
        return {
            "draft": text,
            "timestamp": _now(),
            "word_count": len(text.split()),
        }

    def review_compliance(self, draft: dict, document: dict, process_id: str = "") -> dict:
        cfg = self._settings.section("compliance")
        rules = self._knowledge.get_compliance_rules()
        ctx = self._knowledge.get_business_context()
        prompt = build_compliance_prompt(draft.get("draft", ""), document, ctx, rules)
        try:
            review = self._llm.complete(
                prompt, cfg["max_tokens"], cfg["temperature"], function="compliance_review",
                process_id=process_id,
            )
        except Exception as exc:
            logger.error("Error reviewing compliance for %s: %s",
                         document.get("document_id"), exc, exc_info=True)
            return {
                "review": REVIEW_ERROR_TEXT,
                "status": "error",
                "issues": "System error during compliance review",
                "recommendations": "Manual review required",
                "timestamp": _now(),
                "error": str(exc),
                "compliance_score": 0,
            }

        result = {"review": review}
        result.update(parse_compliance_review(review))
        result["timestamp"] = _now()
        result["compliance_score"] = compliance_score(review)
        return result


def main():
    parser = argparse.ArgumentParser(description="Run the RFP pipeline for one document")
    parser.add_argument("--document-id", required=True)
    parser.add_argument("--backend", choices=("local", "aws"))
    parser.add_argument("--json", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO,
                        format="%(asctime)s %(levelname)s [%(name)s] %(message)s")

    from healthrfp.pipeline.services import build_services
    services = build_services(backend=args.backend)
    try:
        result = services.pipeline().start_processing(args.document_id)
    except (DocumentNotFound, PipelineError) as exc:
        print(json.dumps({"error": str(exc)}) if args.json else f"Error: {exc}",
              file=sys.stderr)
        sys.exit(1)

    if args.json:
        print(json.dumps(result, indent=2))
    else:
        print(f"Process {result['process_id']}: {result['message']}")


if __name__ == "__main__":
    main()
