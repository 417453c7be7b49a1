#!/usr/bin/env python3
# CUI // SP-PROPIN
"""End-to-end RFP pipeline CLI.

Runs the whole workflow in-process against the configured backend:
  1. Register the upload and store the local file in object storage
  2. Extract text from the stored file
  3. Run the pipeline (decision -> draft -> compliance -> archive)
  4. Print a summary with the decision, score and archived response key

Usage examples:
  # Process a local RFP document
  python -m healthrfp.scripts.rfp_pipeline --doc rfps/clinic-ehr.pdf \\
    --client "Lakeside Clinic" --region "North America"

  # Upload + extract only, no AI stages
  python -m healthrfp.scripts.rfp_pipeline --doc rfps/clinic-ehr.pdf --dry-run

  # Show the status of an earlier run
  python -m healthrfp.scripts.rfp_pipeline --process-id <id>
"""

import argparse
import json
import logging
import mimetypes
import sys
from pathlib import Path

from healthrfp.rfx.errors import HealthRfpError

GREEN  = "\033[32m"
RED    = "\033[31m"
YELLOW = "\033[33m"
CYAN   = "\033[36m"
RESET  = "\033[0m"
BOLD   = "\033[1m"


def _ok(msg):   print(f"{GREEN}  ✓{RESET} {msg}")
def _warn(msg): print(f"{YELLOW}  ⚠{RESET} {msg}")
def _err(msg):  print(f"{RED}  ✗{RESET} {msg}")
def _info(msg): print(f"{CYAN}  →{RESET} {msg}")
def _step(n, total, msg): print(f"\n{BOLD}[{n}/{total}] {msg}{RESET}")


def step_upload(services, doc_path: Path, client: str, region: str, industry: str) -> str:
    content_type = mimetypes.guess_type(doc_path.name)[0] or "application/octet-stream"
    data = doc_path.read_bytes()
    started = services.documents().start_upload({
        "client_name": client,
        "region": region,
        "industry": industry,
        "file_name": doc_path.name,
        "file_size": len(data),
        "content_type": content_type,
    })
    services.objects.put(started["s3_key"], data, content_type)
    _ok(f"Stored {doc_path.name} as {started['s3_key']}")
    return started["document_id"]


def step_extract(services, document_id: str) -> int:
    result = services.documents().complete_upload(document_id)
    if result["text_length"] == 0:
        _warn("No text extracted")
    else:
        _ok(f"Extracted {result['text_length']} characters")
    return result["text_length"]


def step_process(services, document_id: str) -> str:
    result = services.pipeline().start_processing(document_id)
    _ok(f"Process {result['process_id']} finished")
    return result["process_id"]


def summarize(services, process_id: str) -> dict:
    process = services.status().get_status(process_id)
    steps = process.get("steps", {})
    decision = (steps.get("decision") or {}).get("result") or {}
    compliance = (steps.get("compliance") or {}).get("result") or {}
    return {
        "process_id": process_id,
        "document_id": process.get("document_id"),
        "status": process.get("status"),
        "decision": decision.get("decision"),
        "decision_source": decision.get("source"),
        "confidence": decision.get("confidence"),
        "compliance_status": compliance.get("status"),
        "compliance_score": compliance.get("compliance_score"),
        "s3_response_key": process.get("s3_response_key"),
        "error": process.get("error"),
    }


def _print_summary(summary: dict):
    print(f"\n{BOLD}Summary{RESET}")
    for key, value in summary.items():
        if value is not None:
            _info(f"{key}: {value}")


def main():
    parser = argparse.ArgumentParser(
        description="HealthRFP end-to-end pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--doc", help="Local RFP document (pdf, docx, txt)")
    parser.add_argument("--process-id", help="Print status of an existing process")
    parser.add_argument("--client", default="Unknown Client")
    parser.add_argument("--region", default="Unknown Region")
    parser.add_argument("--industry", default="Healthcare")
    parser.add_argument("--backend", choices=("local", "aws"))
    parser.add_argument("--dry-run", action="store_true",
                        help="Upload and extract only")
    parser.add_argument("--json", action="store_true", dest="json_output")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    if not args.doc and not args.process_id:
        parser.error("one of --doc or --process-id is required")

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    from healthrfp.pipeline.services import build_services
    services = build_services(backend=args.backend)

    try:
        if args.process_id:
            summary = summarize(services, args.process_id)
        else:
            doc_path = Path(args.doc)
            if not doc_path.exists():
                _err(f"File not found: {doc_path}")
                sys.exit(1)
            total = 2 if args.dry_run else 3
            _step(1, total, "Upload")
            document_id = step_upload(services, doc_path, args.client,
                                      args.region, args.industry)
            _step(2, total, "Extract text")
            step_extract(services, document_id)
            if args.dry_run:
                summary = {"document_id": document_id, "status": "uploaded"}
            else:
                _step(3, total, "Decision, draft and compliance review")
                summary = summarize(services, step_process(services, document_id))
    except HealthRfpError as exc:
        _err(str(exc))
        sys.exit(1)

    if args.json_output:
        print(json.dumps(summary, indent=2))
    else:
        _print_summary(summary)


if __name__ == "__main__":
    main()
