#!/usr/bin/env python3
# CUI // SP-PROPIN
"""Parsers for model completions used by the pipeline stages.

Each field parse returns a FieldParse carrying the value and whether the
pattern actually matched, so callers can tell a parsed value from a
sentinel substituted on failure.
"""

import re
from dataclasses import dataclass

PASS_MARK = "✅"
FAIL_MARK = "❌"

STATUS_SENTINEL = "needs_review"
ISSUES_SENTINEL = "Unable to parse issues"
RECOMMENDATIONS_SENTINEL = "Unable to parse recommendations"

_DECISION_RE = re.compile(r"\bNO[_\s-]?BID\b|\bBID\b", re.IGNORECASE)
_STATUS_RE = re.compile(r"STATUS:\s*(\w+)", re.IGNORECASE)
_ISSUES_RE = re.compile(r"ISSUES:\s*(.*?)(?=RECOMMENDATIONS:|$)", re.DOTALL)
_RECOMMENDATIONS_RE = re.compile(r"RECOMMENDATIONS:\s*(.*)$", re.DOTALL)


@dataclass(frozen=True)
class FieldParse:
    value: str
    ok: bool


def parse_bid_decision(text: str) -> FieldParse:
    """Map a decision completion to BID / NO_BID.

    The first decision token wins, so "BID. ... a no-bid would ..." is a
    BID and "NO BID" or "no-bid" read as NO_BID. Without a standalone token,
    any "BID" in the text still counts as a BID. Text with neither parses
    as NO_BID with ``ok=False``.
    """
    text = text or ""
    m = _DECISION_RE.search(text)
    if m:
        token = m.group(0).upper()
        return FieldParse("BID" if token == "BID" else "NO_BID", True)
    if "BID" in text:
        return FieldParse("BID", True)
    return FieldParse("NO_BID", False)


def parse_status(review: str) -> FieldParse:
    m = _STATUS_RE.search(review or "")
    if m:
        return FieldParse(m.group(1).lower(), True)
    return FieldParse(STATUS_SENTINEL, False)


def parse_issues(review: str) -> FieldParse:
    m = _ISSUES_RE.search(review or "")
    if m:
        return FieldParse(m.group(1).strip(), True)
    return FieldParse(ISSUES_SENTINEL, False)


def parse_recommendations(review: str) -> FieldParse:
    m = _RECOMMENDATIONS_RE.search(review or "")
    if m:
        return FieldParse(m.group(1).strip(), True)
    return FieldParse(RECOMMENDATIONS_SENTINEL, False)


def parse_compliance_review(review: str) -> dict:
    """Parse the STATUS / ISSUES / RECOMMENDATIONS response format."""
    return {
        "status": parse_status(review).value,
        "issues": parse_issues(review).value,
        "recommendations": parse_recommendations(review).value,
    }


def compliance_score(review: str) -> int:
    """Percentage of pass markers among pass + fail markers; 0 with none."""
    review = review or ""
    passed = review.count(PASS_MARK)
    failed = review.count(FAIL_MARK)
    total = passed + failed
    if total == 0:
        return 0
    # half-up, not round()'s half-even
    score = int(passed * 100 / total + 0.5)
    return max(0, min(100, score))
