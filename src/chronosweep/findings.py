"""Derive lint findings from replay results."""

from __future__ import annotations

from collections.abc import Collection, Mapping, Sequence

from .constants import CONFLICT_DESCRIPTION, DEAD_RULE_REASON
from .models import Conflict, Findings, RuleFinding
from .rules import CompiledRule


def find_dead_rules(
    rules: Sequence[CompiledRule], matches: Mapping[str, Sequence[str]]
) -> list[RuleFinding]:
    """Evaluable rules that matched no sampled message, in rule order."""
    dead: list[RuleFinding] = []
    for rule in rules:
        if rule.evaluable and not matches.get(rule.name):
            dead.append(RuleFinding(name=rule.name, reason=DEAD_RULE_REASON))
    return dead


def find_missing_labels(
    rules: Sequence[CompiledRule], existing_labels: Collection[str]
) -> list[str]:
    """Label names referenced by any rule but absent from the catalog.

    Each name is reported once, in order of first reference.
    """
    missing: list[str] = []
    for rule in rules:
        for label in rule.labels:
            if label not in existing_labels and label not in missing:
                missing.append(label)
    return missing


def detect_conflicts(
    rules: Sequence[CompiledRule], matches: Mapping[str, Sequence[str]]
) -> list[Conflict]:
    """Find rule sets that both archive and star the same message.

    Identical rule sets seen on several messages are reported once.  The
    result is sorted by the joined rule names, so it does not depend on
    the order of the sample.
    """
    by_message: dict[str, list[CompiledRule]] = {}
    for rule in rules:
        for message_id in matches.get(rule.name, ()):
            by_message.setdefault(message_id, []).append(rule)

    keys: set[tuple[str, ...]] = set()
    for matched in by_message.values():
        archive_rules = {r.name for r in matched if r.action.archive}
        star_rules = {r.name for r in matched if r.action.star}
        if archive_rules and star_rules:
            keys.add(tuple(sorted(archive_rules | star_rules)))

    return [
        Conflict(rules=key, description=CONFLICT_DESCRIPTION)
        for key in sorted(keys, key="|".join)
    ]


def analyse(
    rules: Sequence[CompiledRule],
    matches: Mapping[str, Sequence[str]],
    existing_labels: Collection[str],
) -> Findings:
    return Findings(
        dead_rules=tuple(find_dead_rules(rules, matches)),
        missing_labels=tuple(find_missing_labels(rules, existing_labels)),
        conflicts=tuple(detect_conflicts(rules, matches)),
    )
