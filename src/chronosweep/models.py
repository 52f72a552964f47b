"""Data models for chronosweep."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from types import MappingProxyType

_HEADER_FIELDS = {
    "from": "sender",
    "to": "to",
    "subject": "subject",
    "list-id": "list_id",
    "auto-submitted": "auto_submitted",
    "precedence": "precedence",
}


@dataclass(frozen=True)
class MessageMeta:
    """Header snapshot of a single Gmail message."""

    message_id: str
    sender: str = ""  # Full From header value
    to: str = ""
    subject: str = ""
    list_id: str = ""  # Raw List-Id header, e.g. "Alerts <alerts.example.com>"
    auto_submitted: str = ""
    precedence: str = ""
    label_ids: tuple[str, ...] = ()

    def header(self, name: str) -> str:
        """Return the value of a header by its RFC name, case-insensitively."""
        attr = _HEADER_FIELDS.get(name.strip().lower())
        if attr is None:
            return ""
        return getattr(self, attr)

    @classmethod
    def from_headers(
        cls, message_id: str, headers: dict[str, str], label_ids: list[str] | tuple[str, ...] = ()
    ) -> MessageMeta:
        """Build a snapshot from a header-name -> value mapping."""
        values = {}
        for name, value in headers.items():
            attr = _HEADER_FIELDS.get(name.strip().lower())
            if attr is not None and attr not in values:
                values[attr] = value
        return cls(message_id=message_id, label_ids=tuple(label_ids), **values)


@dataclass(frozen=True)
class ListPage:
    """One page of message IDs returned by the connector."""

    ids: tuple[str, ...] = ()
    next_page_token: str = ""


# --- gmailctl export ---


@dataclass(frozen=True)
class Label:
    id: str
    name: str
    type: str = ""


@dataclass(frozen=True)
class FilterCriteria:
    """The subset of Gmail search predicates a gmailctl filter can carry."""

    from_: str = ""
    to: str = ""
    subject: str = ""
    query: str = ""
    list_id: str = ""


@dataclass(frozen=True)
class FilterAction:
    add_label_ids: tuple[str, ...] = ()
    remove_label_ids: tuple[str, ...] = ()
    forward: str = ""


@dataclass(frozen=True)
class Filter:
    criteria: FilterCriteria = field(default_factory=FilterCriteria)
    action: FilterAction = field(default_factory=FilterAction)
    id: str = ""
    name: str = ""


@dataclass(frozen=True)
class FilterExport:
    """Output of ``gmailctl compile --format=json``."""

    filters: tuple[Filter, ...] = ()
    labels: tuple[Label, ...] = ()


# --- Findings ---


@dataclass(frozen=True)
class RuleAction:
    """Effects of a filter, reduced to what the findings engine reasons about."""

    archive: bool = False
    mark_read: bool = False
    star: bool = False
    labels: tuple[str, ...] = ()  # resolved label names, sorted


@dataclass(frozen=True)
class RuleFinding:
    name: str
    reason: str


@dataclass(frozen=True)
class Conflict:
    rules: tuple[str, ...]
    description: str


@dataclass(frozen=True)
class Findings:
    dead_rules: tuple[RuleFinding, ...] = ()
    missing_labels: tuple[str, ...] = ()
    conflicts: tuple[Conflict, ...] = ()

    def is_empty(self) -> bool:
        return not (self.dead_rules or self.missing_labels or self.conflicts)


# --- Report ---


@dataclass(frozen=True)
class SenderStat:
    domain: str
    count: int = 0
    preview_subject: str = ""


@dataclass(frozen=True)
class ListStat:
    list_id: str
    count: int = 0
    preview_subject: str = ""


@dataclass(frozen=True)
class Suggestions:
    archive_rules: tuple[str, ...] = ()  # gmailctl Jsonnet snippets
    remove_rules: tuple[RuleFinding, ...] = ()
    smells: tuple[Conflict, ...] = ()


@dataclass(frozen=True)
class Report:
    """Result of one audit run."""

    generated_at: datetime
    window: timedelta
    total: int = 0
    top_senders: tuple[SenderStat, ...] = ()
    top_lists: tuple[ListStat, ...] = ()
    coverage: Mapping[str, int] = field(default_factory=dict)
    suggestions: Suggestions = field(default_factory=Suggestions)
    findings: Findings = field(default_factory=Findings)

    def __post_init__(self) -> None:
        # label name -> count, frozen like the rest of the report
        object.__setattr__(self, "coverage", MappingProxyType(dict(self.coverage)))
