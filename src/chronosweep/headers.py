"""Normalization helpers for message headers and filter criteria."""

from __future__ import annotations

from email.utils import getaddresses

_LIST_ID_WRAPPERS = "<>\"' \t"
_CANDIDATE_SEPARATORS = str.maketrans({",": " ", ";": " ", "|": " "})


def normalize_list_id(raw: str) -> str:
    """Reduce a List-Id header or ``list:`` criterion to a bare identifier.

    "Alerts <Alerts.Example.com>" -> "alerts.example.com"
    '"<news.example.net>"'         -> "news.example.net"
    """
    raw = (raw or "").strip()
    # Display-name form: keep only the bracketed identifier.
    if "<" in raw:
        raw = raw.rsplit("<", 1)[1]
    return raw.strip(_LIST_ID_WRAPPERS).lower()


def split_candidates(raw: str) -> list[str]:
    """Split a from/to/subject criterion into lower-cased substrings.

    Separators are commas, semicolons, pipes and whitespace.  Quotes and
    parentheses are stripped and the ``OR`` keyword is dropped.
    """
    parts = (raw or "").translate(_CANDIDATE_SEPARATORS).split()
    out: list[str] = []
    for part in parts:
        part = part.strip("\"'()").lower()
        if not part or part == "or":
            continue
        out.append(part)
    return out


def _extract_domain(address: str) -> str:
    address = address.strip().lower()
    if "@" not in address:
        return ""
    return address.rsplit("@", 1)[1].strip(". ")


def domain_of(from_value: str) -> str:
    """Return the lower-cased sender domain of a From header, or ""."""
    from_value = (from_value or "").strip()
    if not from_value:
        return ""
    for _, address in getaddresses([from_value]):
        domain = _extract_domain(address)
        if domain:
            return domain
    return _extract_domain(from_value)
