#!/usr/bin/env python3
# CUI // SP-PROPIN
# Controlled by: HealthRFP Portal
# CUI Category: PROPIN
# Distribution: D
# POC: HealthRFP System Administrator
"""HealthRFP API — Flask JSON service for the RFP processing pipeline.

Routes:
    POST   /rfp                          — Start upload (presigned PUT URL)
    POST   /rfp/complete-upload          — Run text extraction on the upload
    POST   /rfp/process                  — Run the pipeline for a document
    GET    /rfp/status/<process_id>      — Full process record
    GET    /rfp/result/<process_id>      — Status + steps
    GET    /rfp/decision/<process_id>    — Bid decision result
    GET    /rfp/draft/<process_id>       — Draft result
    GET    /rfp/compliance/<process_id>  — Compliance review result
    GET    /rfp/download/<process_id>    — Presigned link to the archived response
    GET    /knowledge-base[/<content_id>] — List (?content_type=) or get entries
    POST   /knowledge-base               — Add entry
    PUT    /knowledge-base[/<content_id>] — Update entry
    DELETE /knowledge-base[/<content_id>] — Delete entry
    GET    /health                       — Liveness
    GET    /health/components            — Component checks

Usage:
    python -m healthrfp.dashboard.app [--port 5001] [--debug] [--backend local]
"""

import logging
import os
from datetime import datetime, timezone
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from healthrfp.rfx.errors import NotFound, PipelineError, ValidationError

logger = logging.getLogger("healthrfp.api")

BASE_DIR = Path(__file__).resolve().parent.parent.parent

SERVICE_NAME = "healthcare-uc-rfp-processor"
SERVICE_VERSION = "1.0.0"


def _now():
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def create_app(services=None) -> Flask:
    """Build the Flask app around a Services bundle (built from env if omitted)."""
    if services is None:
        from healthrfp.pipeline.services import build_services
        services = build_services()

    app = Flask(__name__)
    app.config["SERVICES"] = services
    app.json.sort_keys = False

    # =====================================================================
    # ERROR HANDLERS
    # =====================================================================
    @app.errorhandler(NotFound)
    def _not_found(e):
        return jsonify({"error": str(e)}), 404

    @app.errorhandler(ValidationError)
    def _bad_request(e):
        return jsonify({"error": str(e)}), 400

    @app.errorhandler(PipelineError)
    def _pipeline_failed(e):
        return jsonify({"error": "Processing failed", "message": str(e),
                        "process_id": e.process_id}), 500

    @app.errorhandler(HTTPException)
    def _http_error(e):
        return jsonify({"error": e.description}), e.code

    @app.errorhandler(Exception)
    def _internal_error(e):
        logger.error("500 Internal Server Error: %s", e, exc_info=True)
        return jsonify({"error": "Internal server error", "message": str(e)}), 500

    def _require(data: dict, field: str) -> str:
        value = data.get(field)
        if not value:
            raise ValidationError(f"{field} is required")
        return value

    # =====================================================================
    # HEALTH
    # =====================================================================
    @app.route("/health")
    def health():
        return jsonify({
            "status": "healthy",
            "timestamp": _now(),
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
        })

    @app.route("/health/components")
    def health_components():
        from healthrfp.testing.health_check import check_health
        return jsonify(check_health(services))

    # =====================================================================
    # RFP PIPELINE
    # =====================================================================
    @app.route("/rfp", methods=["POST"])
    def start_upload():
        return jsonify(services.documents().start_upload(_body()))

    @app.route("/rfp/complete-upload", methods=["POST"])
    def complete_upload():
        document_id = _require(_body(), "document_id")
        return jsonify(services.documents().complete_upload(document_id))

    @app.route("/rfp/process", methods=["POST"])
    def process_document():
        document_id = _require(_body(), "document_id")
        return jsonify(services.pipeline().start_processing(document_id))

    @app.route("/rfp/status/<process_id>")
    def get_status(process_id):
        return jsonify(services.status().get_status(process_id))

    @app.route("/rfp/result/<process_id>")
    def get_result(process_id):
        return jsonify(services.status().get_result(process_id))

    @app.route("/rfp/decision/<process_id>")
    def get_decision(process_id):
        return jsonify(services.status().get_decision(process_id))

    @app.route("/rfp/draft/<process_id>")
    def get_draft(process_id):
        return jsonify(services.status().get_draft(process_id))

    @app.route("/rfp/compliance/<process_id>")
    def get_compliance(process_id):
        return jsonify(services.status().get_compliance_review(process_id))

    @app.route("/rfp/download/<process_id>")
    def download_response(process_id):
        return jsonify(services.status().download_response(process_id))

    # =====================================================================
    # KNOWLEDGE BASE
    # =====================================================================
    @app.route("/knowledge-base", methods=["GET"])
    def kb_list():
        items = services.knowledge_manager().list_entries(request.args.get("content_type"))
        return jsonify({"items": items, "count": len(items)})

    @app.route("/knowledge-base/<content_id>", methods=["GET"])
    def kb_get(content_id):
        return jsonify(services.knowledge_manager().get_entry(content_id))

    @app.route("/knowledge-base", methods=["POST"])
    def kb_add():
        item = services.knowledge_manager().add_entry(_body())
        return jsonify({"message": "Knowledge base item added successfully",
                        "content_id": item["content_id"]})

    @app.route("/knowledge-base", methods=["PUT"])
    @app.route("/knowledge-base/<content_id>", methods=["PUT"])
    def kb_update(content_id=None):
        data = _body()
        if content_id:
            data["content_id"] = content_id
        item = services.knowledge_manager().update_entry(data)
        return jsonify({"message": "Knowledge base item updated successfully",
                        "content_id": item["content_id"]})

    @app.route("/knowledge-base", methods=["DELETE"])
    @app.route("/knowledge-base/<content_id>", methods=["DELETE"])
    def kb_delete(content_id=None):
        content_id = content_id or _body().get("content_id")
        services.knowledge_manager().delete_entry(content_id)
        return jsonify({"message": "Knowledge base item deleted successfully",
                        "content_id": content_id})

    return app


# =========================================================================
# MAIN
# =========================================================================
if __name__ == "__main__":
    import argparse

    # In production env vars are injected; .env is a development convenience.
    _env_path = BASE_DIR / ".env"
    if _env_path.exists():
        load_dotenv(_env_path, override=False)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

    parser = argparse.ArgumentParser(description="HealthRFP API")
    parser.add_argument("--port", type=int, default=5001)
    parser.add_argument("--debug", action="store_true")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--backend", choices=("local", "aws"))
    args = parser.parse_args()

    if args.backend:
        os.environ["HEALTHRFP_BACKEND"] = args.backend

    api = create_app()
    print(f"HealthRFP API starting on http://{args.host}:{args.port}")
    print(f"Backend: {api.config['SERVICES'].backend}")
    api.run(host=args.host, port=args.port, debug=args.debug)
