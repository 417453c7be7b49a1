#!/usr/bin/env python3
# CUI // SP-PROPIN
"""Key-value item storage for documents, processes, knowledge base and audit logs.

Two backends share one interface:
  - DynamoDBKeyValueStore: one DynamoDB table per logical table (production)
  - SQLiteKeyValueStore:   all tables in a single SQLite file (local dev, tests)

Items are plain dicts. Filters are attribute equality maps, e.g.
``{"content_type": "business_context"}``.
"""

import json
import logging
import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional

import boto3
from boto3.dynamodb.conditions import Attr, Key

logger = logging.getLogger("healthrfp.storage.kv")


class KeyValueStore(ABC):
    """Abstract item store with get/put/delete/query/scan semantics."""

    @abstractmethod
    def get(self, table: str, key: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Return the item for ``key`` or None."""

    @abstractmethod
    def put(self, table: str, item: Dict[str, Any]) -> None:
        """Create or fully replace an item."""

    @abstractmethod
    def delete(self, table: str, key: Dict[str, Any]) -> bool:
        """Delete an item. Returns True if it existed."""

    @abstractmethod
    def query(self, table: str, key_condition: Dict[str, Any],
              index_name: Optional[str] = None,
              filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Return items matching a single-attribute key condition."""

    @abstractmethod
    def scan(self, table: str,
             filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Return every item in the table, optionally filtered."""


def _matches(item: Dict[str, Any], filters: Optional[Dict[str, Any]]) -> bool:
    if not filters:
        return True
    return all(item.get(k) == v for k, v in filters.items())


# ---------------------------------------------------------------------------
# SQLite backend
# ---------------------------------------------------------------------------

class SQLiteKeyValueStore(KeyValueStore):
    """JSON items in a single SQLite table keyed by (table_name, item_key).

    ``key_schema`` maps each logical table to its partition key attribute,
    mirroring the DynamoDB table definitions.
    """

    def __init__(self, db_path, key_schema: Dict[str, str]):
        self._db_path = Path(db_path)
        self._key_schema = dict(key_schema)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _conn(self):
        c = sqlite3.connect(str(self._db_path))
        c.row_factory = sqlite3.Row
        c.execute("PRAGMA journal_mode=WAL")
        return c

    def _init_db(self):
        conn = self._conn()
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv_items (
                    table_name  TEXT NOT NULL,
                    item_key    TEXT NOT NULL,
                    body        TEXT NOT NULL,
                    updated_at  TEXT NOT NULL,
                    PRIMARY KEY (table_name, item_key)
                )
            """)
            conn.commit()
        finally:
            conn.close()

    def _key_attr(self, table: str) -> str:
        try:
            return self._key_schema[table]
        except KeyError:
            raise KeyError(f"No key schema registered for table '{table}'") from None

    def _key_value(self, table: str, data: Dict[str, Any]) -> str:
        attr = self._key_attr(table)
        value = data.get(attr)
        if value is None or value == "":
            raise ValueError(f"Item for table '{table}' is missing key '{attr}'")
        return str(value)

    def get(self, table, key):
        item_key = self._key_value(table, key)
        conn = self._conn()
        try:
            row = conn.execute(
                "SELECT body FROM kv_items WHERE table_name = ? AND item_key = ?",
                (table, item_key),
            ).fetchone()
        finally:
            conn.close()
        return json.loads(row["body"]) if row else None

    def put(self, table, item):
        item_key = self._key_value(table, item)
        body = json.dumps(item, default=str)
        now = datetime.now(timezone.utc).isoformat()
        conn = self._conn()
        try:
            conn.execute(
                """INSERT INTO kv_items (table_name, item_key, body, updated_at)
                   VALUES (?, ?, ?, ?)
                   ON CONFLICT(table_name, item_key)
                   DO UPDATE SET body = excluded.body, updated_at = excluded.updated_at""",
                (table, item_key, body, now),
            )
            conn.commit()
        finally:
            conn.close()

    def delete(self, table, key):
        item_key = self._key_value(table, key)
        conn = self._conn()
        try:
            cur = conn.execute(
                "DELETE FROM kv_items WHERE table_name = ? AND item_key = ?",
                (table, item_key),
            )
            conn.commit()
            return cur.rowcount > 0
        finally:
            conn.close()

    def query(self, table, key_condition, index_name=None, filters=None):
        # No secondary indexes locally; the key condition is just another filter.
        combined = dict(key_condition)
        combined.update(filters or {})
        return self.scan(table, combined)

    def scan(self, table, filters=None):
        conn = self._conn()
        try:
            rows = conn.execute(
                "SELECT body FROM kv_items WHERE table_name = ? ORDER BY rowid",
                (table,),
            ).fetchall()
        finally:
            conn.close()
        items = [json.loads(r["body"]) for r in rows]
        return [i for i in items if _matches(i, filters)]


# ---------------------------------------------------------------------------
# DynamoDB backend
# ---------------------------------------------------------------------------

def _to_dynamo(value):
    """DynamoDB rejects Python floats; round-trip through JSON as Decimal."""
    return json.loads(json.dumps(value, default=str), parse_float=Decimal)


def _from_dynamo(value):
    if isinstance(value, list):
        return [_from_dynamo(v) for v in value]
    if isinstance(value, dict):
        return {k: _from_dynamo(v) for k, v in value.items()}
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    return value


def _filter_expression(filters: Optional[Dict[str, Any]]):
    expr = None
    for attr, value in (filters or {}).items():
        cond = Attr(attr).eq(_to_dynamo(value))
        expr = cond if expr is None else expr & cond
    return expr


class DynamoDBKeyValueStore(KeyValueStore):
    """DynamoDB-backed store. Table names are physical DynamoDB table names."""

    def __init__(self, region: Optional[str] = None, endpoint_url: Optional[str] = None):
        kwargs: Dict[str, Any] = {}
        if region:
            kwargs["region_name"] = region
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        self._resource = boto3.resource("dynamodb", **kwargs)
        self._tables: Dict[str, Any] = {}

    def _table(self, name: str):
        if name not in self._tables:
            self._tables[name] = self._resource.Table(name)
        return self._tables[name]

    def get(self, table, key):
        resp = self._table(table).get_item(Key=_to_dynamo(key))
        item = resp.get("Item")
        return _from_dynamo(item) if item else None

    def put(self, table, item):
        self._table(table).put_item(Item=_to_dynamo(item))

    def delete(self, table, key):
        resp = self._table(table).delete_item(
            Key=_to_dynamo(key), ReturnValues="ALL_OLD",
        )
        return bool(resp.get("Attributes"))

    def query(self, table, key_condition, index_name=None, filters=None):
        if len(key_condition) != 1:
            raise ValueError("key_condition must name exactly one attribute")
        (attr, value), = key_condition.items()
        kwargs: Dict[str, Any] = {
            "KeyConditionExpression": Key(attr).eq(_to_dynamo(value)),
        }
        if index_name:
            kwargs["IndexName"] = index_name
        expr = _filter_expression(filters)
        if expr is not None:
            kwargs["FilterExpression"] = expr
        return self._paginate(self._table(table).query, kwargs)

    def scan(self, table, filters=None):
        kwargs: Dict[str, Any] = {}
        expr = _filter_expression(filters)
        if expr is not None:
            kwargs["FilterExpression"] = expr
        return self._paginate(self._table(table).scan, kwargs)

    @staticmethod
    def _paginate(op, kwargs) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        while True:
            resp = op(**kwargs)
            items.extend(_from_dynamo(i) for i in resp.get("Items", []))
            last = resp.get("LastEvaluatedKey")
            if not last:
                return items
            kwargs["ExclusiveStartKey"] = last
