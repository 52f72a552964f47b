"""Replay compiled rules against a message sample."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from .models import MessageMeta
from .rules import CompiledRule


def evaluate_rules(
    rules: Iterable[CompiledRule],
    messages: Sequence[MessageMeta],
) -> dict[str, list[str]]:
    """Map each evaluable rule name to the IDs of the messages it matches.

    Every evaluable rule gets a key, even when it matched nothing.
    Non-evaluable rules are skipped and have no key at all.  IDs keep
    the sample order.
    """
    matches: dict[str, list[str]] = {}
    for rule in rules:
        if not rule.evaluable:
            continue
        matched = matches.setdefault(rule.name, [])
        for meta in messages:
            if rule.matches(meta):
                matched.append(meta.message_id)
    return matches
