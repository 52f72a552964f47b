"""Compile gmailctl filters into replayable rules.

A compiled rule is a conjunction of matchers, one per header family:

    From / To / Subject  substring match against any candidate
    List-Id              normalized identifier, equality or containment

Compilation is deliberately conservative.  A filter whose criteria cannot
be translated faithfully (negated query terms, operators other than
``from:``/``to:``/``subject:``/``list:``, or no criteria at all) becomes
``NotEvaluable`` and is never replayed, so it can never be reported dead.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from .constants import INBOX_LABEL, RULE_NAME_PLACEHOLDER, STARRED_LABEL, UNREAD_LABEL
from .headers import normalize_list_id, split_candidates
from .models import FilterAction, FilterCriteria, FilterExport, MessageMeta, RuleAction


class MatcherKind(enum.Enum):
    FROM = "From"
    TO = "To"
    SUBJECT = "Subject"
    LIST = "List-Id"


_QUERY_PREFIXES = {
    "from:": MatcherKind.FROM,
    "to:": MatcherKind.TO,
    "subject:": MatcherKind.SUBJECT,
    "list:": MatcherKind.LIST,
}


@dataclass(frozen=True)
class Matcher:
    kind: MatcherKind
    values: tuple[str, ...]

    def matches(self, meta: MessageMeta) -> bool:
        header = meta.header(self.kind.value)
        if self.kind is MatcherKind.LIST:
            list_id = normalize_list_id(header)
            return any(list_id == val or val in list_id for val in self.values)
        header = header.lower()
        return any(val in header for val in self.values)


@dataclass(frozen=True)
class Evaluable:
    matchers: tuple[Matcher, ...]


@dataclass(frozen=True)
class NotEvaluable:
    reason: str


@dataclass(frozen=True)
class CompiledRule:
    name: str
    predicate: Evaluable | NotEvaluable
    action: RuleAction

    @property
    def evaluable(self) -> bool:
        return isinstance(self.predicate, Evaluable)

    @property
    def labels(self) -> tuple[str, ...]:
        return self.action.labels

    def matches(self, meta: MessageMeta) -> bool:
        """Return True when every matcher accepts the message.

        Non-evaluable rules never match.
        """
        if not isinstance(self.predicate, Evaluable):
            return False
        return all(m.matches(meta) for m in self.predicate.matchers)


# --- criteria ---


def _candidate_matcher(kind: MatcherKind, raw: str) -> Matcher | None:
    if kind is MatcherKind.LIST:
        list_id = normalize_list_id(raw)
        return Matcher(kind, (list_id,)) if list_id else None
    values = split_candidates(raw)
    return Matcher(kind, tuple(values)) if values else None


def _query_matchers(query: str) -> list[Matcher] | NotEvaluable:
    matchers: list[Matcher] = []
    for raw in query.split():
        token = raw.strip("()\"'")
        if not token or token.lower() == "or":
            continue
        if token.startswith("-"):
            return NotEvaluable(f"negated query term {token!r}")
        lower = token.lower()
        for prefix, kind in _QUERY_PREFIXES.items():
            if lower.startswith(prefix):
                matcher = _candidate_matcher(kind, token[len(prefix):])
                if matcher is None:
                    return NotEvaluable(f"empty query term {token!r}")
                matchers.append(matcher)
                break
        else:
            return NotEvaluable(f"unsupported query term {token!r}")
    if not matchers:
        return NotEvaluable("query has no replayable terms")
    return matchers


def build_predicate(criteria: FilterCriteria) -> Evaluable | NotEvaluable:
    """Translate filter criteria into matchers, or explain why not."""
    matchers: list[Matcher] = []
    for kind, raw in (
        (MatcherKind.FROM, criteria.from_),
        (MatcherKind.TO, criteria.to),
        (MatcherKind.SUBJECT, criteria.subject),
        (MatcherKind.LIST, criteria.list_id),
    ):
        if raw.strip():
            matcher = _candidate_matcher(kind, raw)
            if matcher is not None:
                matchers.append(matcher)

    if criteria.query.strip():
        parsed = _query_matchers(criteria.query)
        if isinstance(parsed, NotEvaluable):
            return parsed
        matchers.extend(parsed)

    if not matchers:
        return NotEvaluable("no replayable criteria")
    return Evaluable(tuple(matchers))


# --- actions ---


def map_actions(action: FilterAction, label_names: dict[str, str]) -> RuleAction:
    """Reduce label additions/removals to archive/mark-read/star/labels."""
    labels: set[str] = set()
    star = False
    for label_id in action.add_label_ids:
        if label_id == STARRED_LABEL:
            star = True
            continue
        name = label_names.get(label_id)
        if name:
            labels.add(name)
    return RuleAction(
        archive=INBOX_LABEL in action.remove_label_ids,
        mark_read=UNREAD_LABEL in action.remove_label_ids,
        star=star,
        labels=tuple(sorted(labels)),
    )


def describe_criteria(criteria: FilterCriteria) -> str:
    if criteria.from_.strip():
        return "from:" + criteria.from_.strip()
    if criteria.list_id.strip():
        return "list:" + criteria.list_id.strip()
    if criteria.subject.strip():
        return "subject:" + criteria.subject.strip()
    if criteria.query.strip():
        return criteria.query.strip()
    if criteria.to.strip():
        return "to:" + criteria.to.strip()
    return RULE_NAME_PLACEHOLDER


def compile_rules(export: FilterExport, labels_by_id: dict[str, str]) -> list[CompiledRule]:
    """Compile every filter of an export, preserving export order.

    Label names embedded in the export override the live catalog on
    id collisions.
    """
    label_names = dict(labels_by_id)
    for label in export.labels:
        if label.id and label.name:
            label_names[label.id] = label.name

    compiled: list[CompiledRule] = []
    for filt in export.filters:
        name = filt.name.strip() or filt.id.strip() or describe_criteria(filt.criteria)
        compiled.append(
            CompiledRule(
                name=name,
                predicate=build_predicate(filt.criteria),
                action=map_actions(filt.action, label_names),
            )
        )
    return compiled
