#!/usr/bin/env python3
# CUI // SP-PROPIN
# Controlled by: HealthRFP Portal
# CUI Category: PROPIN
# Distribution: D
# POC: HealthRFP System Administrator
"""Knowledge Base CRUD manager for HealthRFP.

Manages the entries the pipeline prompts are built from: business context
facts, response templates and compliance rules.

Usage:
    python -m healthrfp.knowledge.kb_manager --list [--type templates] [--json]
    python -m healthrfp.knowledge.kb_manager --get --id service_regions
    python -m healthrfp.knowledge.kb_manager --add --type templates --title "Executive Summary" --content "..."
    python -m healthrfp.knowledge.kb_manager --update --id team_size --value "30 specialists"
    python -m healthrfp.knowledge.kb_manager --delete --id pricing_template
    python -m healthrfp.knowledge.kb_manager --seed [--seed-file args/knowledge_seed.yaml]
"""

import argparse
import json
import logging
import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path

import yaml

from healthrfp.rfx.errors import KnowledgeEntryNotFound, ValidationError

logger = logging.getLogger("healthrfp.knowledge.kb_manager")

BASE_DIR = Path(__file__).resolve().parent.parent.parent
DEFAULT_SEED_PATH = BASE_DIR / "args" / "knowledge_seed.yaml"

VALID_CONTENT_TYPES = ("business_context", "templates", "compliance_rules")


def _now():
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _check_type(content_type):
    if content_type not in VALID_CONTENT_TYPES:
        raise ValidationError(
            f"Invalid content_type '{content_type}'. "
            f"Must be one of: {', '.join(VALID_CONTENT_TYPES)}"
        )


class KnowledgeBaseManager:
    """CRUD over the knowledge base table."""

    def __init__(self, store, table: str):
        self._store = store
        self._table = table

    def list_entries(self, content_type=None):
        """List entries, optionally restricted to one content_type."""
        if content_type:
            _check_type(content_type)
            return self._store.scan(self._table, {"content_type": content_type})
        return self._store.scan(self._table)

    def get_entry(self, content_id):
        if not content_id:
            raise ValidationError("content_id is required")
        item = self._store.get(self._table, {"content_id": content_id})
        if item is None:
            raise KnowledgeEntryNotFound(f"Knowledge base item not found: {content_id}")
        return item

    def add_entry(self, data):
        """Create an entry. Generates content_id when the caller omits it."""
        data = dict(data or {})
        content_type = data.get("content_type") or "business_context"
        _check_type(content_type)
        now = _now()
        item = {
            "content_id": data.get("content_id") or str(uuid.uuid4()),
            "content_type": content_type,
            "title": data.get("title") or "Knowledge Base Item",
            "content_data": data.get("content_data") or {},
            "description": data.get("description") or "",
            "industry": data.get("industry") or "Healthcare",
            "created_at": now,
            "updated_at": now,
            "created_by": data.get("created_by") or "system",
        }
        self._store.put(self._table, item)
        logger.info("Added knowledge base item %s (%s)", item["content_id"], content_type)
        return item

    def update_entry(self, data):
        """Merge ``data`` over the stored entry."""
        data = dict(data or {})
        content_id = data.get("content_id")
        if not content_id:
            raise ValidationError("content_id is required for updates")
        if "content_type" in data:
            _check_type(data["content_type"])
        existing = self.get_entry(content_id)
        existing.update(data)
        existing["updated_at"] = _now()
        self._store.put(self._table, existing)
        return existing

    def delete_entry(self, content_id):
        if not content_id:
            raise ValidationError("content_id is required for deletion")
        if not self._store.delete(self._table, {"content_id": content_id}):
            raise KnowledgeEntryNotFound(f"Knowledge base item not found: {content_id}")
        logger.info("Deleted knowledge base item %s", content_id)
        return {"content_id": content_id, "deleted": True}

    def seed_from_yaml(self, path=None):
        """Load entries from a seed YAML file. Existing ids are overwritten."""
        path = Path(path) if path else DEFAULT_SEED_PATH
        with open(path, "r", encoding="utf-8") as f:
            doc = yaml.safe_load(f) or {}
        added, failed = 0, 0
        for entry in doc.get("entries", []):
            try:
                self.add_entry(entry)
                added += 1
            except ValidationError as exc:
                logger.warning("Skipping seed entry %s: %s", entry.get("content_id"), exc)
                failed += 1
        logger.info("Seeded %d knowledge base items from %s", added, path)
        return {"status": "ok", "added": added, "failed": failed, "source": str(path)}


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def _build_parser():
    parser = argparse.ArgumentParser(description="HealthRFP Knowledge Base Manager")
    action = parser.add_mutually_exclusive_group(required=True)
    action.add_argument("--add", action="store_true", help="Add a new entry")
    action.add_argument("--update", action="store_true", help="Update an entry")
    action.add_argument("--get", action="store_true", help="Get an entry by id")
    action.add_argument("--list", action="store_true", help="List entries")
    action.add_argument("--delete", action="store_true", help="Delete an entry")
    action.add_argument("--seed", action="store_true", help="Load the seed YAML file")

    parser.add_argument("--id", help="Entry content_id")
    parser.add_argument("--type", dest="content_type", choices=VALID_CONTENT_TYPES)
    parser.add_argument("--title", help="Entry title")
    parser.add_argument("--content", help="Template / rule text (content_data.content)")
    parser.add_argument("--value", help="Business context value (content_data.value)")
    parser.add_argument("--description", help="Entry description")
    parser.add_argument("--seed-file", help="Seed YAML path")
    parser.add_argument("--backend", choices=("local", "aws"), help="Storage backend")
    parser.add_argument("--json", action="store_true", help="JSON output")
    return parser


def _content_data(args):
    data = {}
    if args.content:
        data["content"] = args.content
    if args.value:
        data["value"] = args.value
    return data


def main():
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args()

    from healthrfp.pipeline.services import build_services
    manager = build_services(backend=args.backend).knowledge_manager()

    try:
        if args.add:
            if not args.title:
                parser.error("--add requires --title")
            result = manager.add_entry({
                "content_id": args.id,
                "content_type": args.content_type,
                "title": args.title,
                "content_data": _content_data(args),
                "description": args.description,
            })
        elif args.update:
            if not args.id:
                parser.error("--update requires --id")
            updates = {"content_id": args.id}
            if args.title:
                updates["title"] = args.title
            if args.description:
                updates["description"] = args.description
            if args.content_type:
                updates["content_type"] = args.content_type
            data = _content_data(args)
            if data:
                updates["content_data"] = data
            result = manager.update_entry(updates)
        elif args.get:
            result = manager.get_entry(args.id)
        elif args.list:
            result = manager.list_entries(args.content_type)
        elif args.delete:
            result = manager.delete_entry(args.id)
        else:
            result = manager.seed_from_yaml(args.seed_file)

        if args.json:
            print(json.dumps(result, indent=2, default=str))
        elif isinstance(result, list):
            print(f"Found {len(result)} entries:")
            for entry in result:
                print(f"  [{entry.get('content_id')}] {entry.get('content_type')}: "
                      f"{entry.get('title')}")
        else:
            for key, value in result.items():
                print(f"  {key}: {value}")

    except (ValidationError, KnowledgeEntryNotFound) as exc:
        if args.json:
            print(json.dumps({"error": str(exc)}, indent=2))
        else:
            print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
