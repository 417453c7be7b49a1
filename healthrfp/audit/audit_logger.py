#!/usr/bin/env python3
# CUI // SP-PROPIN
"""Audit Logger — append-only audit trail for RFP pipeline actions.

Each entry carries an ``expires_at`` epoch (now + TTL days) that the
DynamoDB table uses as its TTL attribute. Writes are best-effort: a failed
write is logged and swallowed, never raised to the pipeline.

Usage:
    python -m healthrfp.audit.audit_logger --process-id <id> [--json]
"""

import argparse
import json
import logging
import time
from datetime import datetime, timezone
from uuid import uuid4

logger = logging.getLogger("healthrfp.audit")

DEFAULT_TTL_DAYS = 30


class AuditLogger:
    """Writes and lists audit entries in the audit table."""

    def __init__(self, store, table: str, ttl_days: int = DEFAULT_TTL_DAYS):
        self._store = store
        self._table = table
        self._ttl_seconds = int(ttl_days) * 24 * 60 * 60

    def log_action(self, process_id: str, action_type: str, description: str,
                   data: dict = None):
        """Append an entry. Returns it, or None if the write failed."""
        entry = {
            "log_id": str(uuid4()),
            "process_id": process_id,
            "action_type": action_type,
            "description": description,
            "data": data or {},
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds")
                         .replace("+00:00", "Z"),
            "expires_at": int(time.time()) + self._ttl_seconds,
        }
        try:
            self._store.put(self._table, entry)
        except Exception as exc:
            logger.warning("Error logging action %s for %s: %s",
                           action_type, process_id, exc)
            return None
        logger.debug("Action logged: %s", action_type)
        return entry

    def list_actions(self, process_id: str):
        """Entries for one process (document id for upload actions), oldest first."""
        items = self._store.query(
            self._table, {"process_id": process_id}, index_name="process_id-index",
        )
        return sorted(items, key=lambda e: e.get("timestamp", ""))


def main():
    parser = argparse.ArgumentParser(description="Audit Logger")
    parser.add_argument("--process-id", required=True)
    parser.add_argument("--backend", choices=("local", "aws"))
    parser.add_argument("--json", action="store_true")
    args = parser.parse_args()

    from healthrfp.pipeline.services import build_services
    result = build_services(backend=args.backend).audit.list_actions(args.process_id)

    if args.json:
        print(json.dumps(result, indent=2, default=str))
    else:
        for e in result:
            print(f"{e['timestamp']} [{e['action_type']}] {e['description']}")


if __name__ == "__main__":
    main()
