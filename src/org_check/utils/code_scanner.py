"""Regex-based inspection of Apex code and formulas."""

from __future__ import annotations

import re

_COMMENTS_AND_NEWLINES = re.compile(r"(/\*[\s\S]*?\*/|(?<!:)//.*\n|(?<!:)//[^\n]*|\n)", re.IGNORECASE)
_HARD_CODED_URLS = re.compile(r"([A-Za-z0-9-]{1,63}\.)+[A-Za-z]{2,6}", re.IGNORECASE)
_HARD_CODED_IDS = re.compile(r"[,\"'\s][a-zA-Z0-9]{5}0[a-zA-Z0-9]{9}([a-zA-Z0-9]{3})?[,\"'\s]", re.IGNORECASE)
_HAS_SOQL = re.compile(r"\[\s*(?:SELECT|FIND)")
_HAS_DML = re.compile(r"\b(?:insert|update|delete)\s*(?:\s\w+|\(|\[)")

SALESFORCE_DOMAINS = ("salesforce.com", ".force.")
SALESFORCE_MY_DOMAIN = ".my.salesforce.com"


def remove_comments_from_code(source_code: str | None) -> str:
    """Replace comments and newlines with a single space each."""
    if not source_code:
        return ""
    return _COMMENTS_AND_NEWLINES.sub(" ", source_code)


def find_hard_coded_urls(source_code: str | None) -> list[str]:
    """Sorted unique Salesforce domains, excluding My Domain hosts."""
    if not source_code:
        return []
    domains = {
        m.group(0)
        for m in _HARD_CODED_URLS.finditer(source_code)
        if any(sf_domain in m.group(0) for sf_domain in SALESFORCE_DOMAINS)
    }
    return sorted(d for d in domains if SALESFORCE_MY_DOMAIN not in d)


def find_hard_coded_ids(source_code: str | None) -> list[str]:
    """Sorted unique 15 or 18 character ids found between quotes, commas or spaces."""
    if not source_code:
        return []
    return sorted({m.group(0)[1:-1] for m in _HARD_CODED_IDS.finditer(source_code)})


def has_soql(source_code: str | None) -> bool:
    return bool(source_code) and _HAS_SOQL.search(source_code) is not None


def has_dml(source_code: str | None) -> bool:
    return bool(source_code) and _HAS_DML.search(source_code) is not None

