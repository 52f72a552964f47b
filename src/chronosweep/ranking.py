"""Rank noisy senders and mailing lists and suggest filters for them."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from .constants import MAX_ARCHIVE_SUGGESTIONS
from .headers import domain_of, normalize_list_id
from .models import ListStat, MessageMeta, SenderStat

_LIST_SNIPPET = """{{
  filter: {{ list: "{list_id}" }},
  actions: {{ archive: true, markRead: true }},
}}"""

_SENDER_SNIPPET = """{{
  filter: {{ from: "*@{domain}" }},
  actions: {{ archive: true, markRead: true }},
}}"""


class _Tally:
    """Per-key message counts with the first non-empty subject as preview."""

    def __init__(self) -> None:
        self.counts: dict[str, int] = {}
        self.previews: dict[str, str] = {}

    def add(self, key: str, subject: str) -> None:
        self.counts[key] = self.counts.get(key, 0) + 1
        if subject and not self.previews.get(key):
            self.previews[key] = subject

    def top(self, top_n: int) -> list[tuple[str, int, str]]:
        ranked = sorted(self.counts.items(), key=lambda item: (-item[1], item[0]))
        return [(key, count, self.previews.get(key, "")) for key, count in ranked[:top_n]]


def build_rankings(
    messages: Sequence[MessageMeta], top_n: int
) -> tuple[list[SenderStat], list[ListStat]]:
    """Count messages per sender domain and per List-Id.

    Both tables are ordered by count descending, then key ascending, and
    truncated to ``top_n``.  The preview subject is the first non-empty
    subject seen for each key.
    """
    senders = _Tally()
    lists = _Tally()
    for msg in messages:
        domain = domain_of(msg.sender)
        if domain:
            senders.add(domain, msg.subject)
        list_id = normalize_list_id(msg.list_id)
        if list_id:
            lists.add(list_id, msg.subject)

    top_senders = [
        SenderStat(domain=key, count=count, preview_subject=subject)
        for key, count, subject in senders.top(top_n)
    ]
    top_lists = [
        ListStat(list_id=key, count=count, preview_subject=subject)
        for key, count, subject in lists.top(top_n)
    ]
    return top_senders, top_lists


def build_coverage(
    messages: Sequence[MessageMeta], labels_by_id: Mapping[str, str]
) -> dict[str, int]:
    """Histogram of live label names applied to the sampled messages."""
    coverage: dict[str, int] = {}
    for msg in messages:
        for label_id in msg.label_ids:
            name = labels_by_id.get(label_id)
            if name:
                coverage[name] = coverage.get(name, 0) + 1
    return dict(sorted(coverage.items()))


def build_archive_rules(
    lists: Sequence[ListStat], senders: Sequence[SenderStat]
) -> list[str]:
    """gmailctl snippets archiving the top lists first, then top senders."""
    snippets = [_LIST_SNIPPET.format(list_id=ls.list_id) for ls in lists]
    snippets += [_SENDER_SNIPPET.format(domain=sd.domain) for sd in senders]
    return snippets[:MAX_ARCHIVE_SUGGESTIONS]
