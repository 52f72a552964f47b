"""Audit orchestration - fetches a message sample, ranks it, replays filters."""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Protocol

from .constants import DEFAULT_TOP_N, METADATA_HEADERS, PAGE_SIZE
from .errors import AuditError, ConfigError, ExportError, FetchError, RunCancelled
from .findings import analyse
from .lint import LintReport
from .models import FilterExport, Findings, ListPage, MessageMeta, Report, Suggestions
from .ranking import build_archive_rules, build_coverage, build_rankings
from .replay import evaluate_rules
from .rules import NotEvaluable, compile_rules

logger = logging.getLogger(__name__)


class MailboxClient(Protocol):
    def list_messages(self, query: str, page_token: str, page_size: int) -> ListPage: ...

    def get_metadata(self, message_id: str, headers: list[str]) -> MessageMeta: ...

    def list_labels(self) -> tuple[dict[str, str], dict[str, str]]: ...


class FilterLoader(Protocol):
    def export_filters(self) -> FilterExport: ...


class Limiter(Protocol):
    def wait(self, cancel: threading.Event | None = None) -> None: ...


@dataclass(frozen=True)
class Options:
    window: timedelta
    top_n: int = DEFAULT_TOP_N
    page_size: int = PAGE_SIZE
    headers: tuple[str, ...] = field(default_factory=lambda: tuple(METADATA_HEADERS))


def days_from_window(window: timedelta) -> int:
    """Whole days covering ``window``, rounded up, at least 1."""
    return max(1, math.ceil(window / timedelta(days=1)))


def _now() -> datetime:
    return datetime.now(timezone.utc)


class AuditService:
    """Runs audits against one mailbox.

    ``loader`` is optional; without it the filter replay is skipped and
    reports carry rankings only.
    """

    def __init__(
        self,
        client: MailboxClient,
        limiter: Limiter | None = None,
        loader: FilterLoader | None = None,
        clock: Callable[[], datetime] = _now,
    ) -> None:
        self.client = client
        self.limiter = limiter
        self.loader = loader
        self.clock = clock

    def run(
        self,
        options: Options,
        cancel: threading.Event | None = None,
        callback: Callable[[int, int], None] | None = None,
    ) -> Report:
        """Produce a full audit report.

        ``callback(fetched, listed)`` is invoked after every metadata
        fetch.  Setting ``cancel`` aborts the fetch with RunCancelled.
        """
        if options.window <= timedelta(0):
            raise ConfigError("window must be positive")
        top_n = options.top_n if options.top_n > 0 else DEFAULT_TOP_N
        page_size = options.page_size if 0 < options.page_size <= PAGE_SIZE else PAGE_SIZE
        headers = list(options.headers) or list(METADATA_HEADERS)

        logger.info("running audit over %s", options.window)

        try:
            labels_by_name, labels_by_id = self.client.list_labels()
        except AuditError:
            raise
        except Exception as exc:
            raise FetchError(f"list labels: {exc}") from exc

        messages = self._fetch_metadata(options.window, headers, page_size, cancel, callback)
        generated_at = self.clock()

        if not messages:
            logger.info("no messages in window, nothing to analyse")
            return Report(generated_at=generated_at, window=options.window)

        top_senders, top_lists = build_rankings(messages, top_n)
        findings = self._analyse_filters(messages, labels_by_id, set(labels_by_name))

        return Report(
            generated_at=generated_at,
            window=options.window,
            total=len(messages),
            top_senders=tuple(top_senders),
            top_lists=tuple(top_lists),
            coverage=build_coverage(messages, labels_by_id),
            suggestions=Suggestions(
                archive_rules=tuple(build_archive_rules(top_lists, top_senders)),
                remove_rules=findings.dead_rules,
                smells=findings.conflicts,
            ),
            findings=findings,
        )

    def run_lint(
        self,
        options: Options,
        cancel: threading.Event | None = None,
        callback: Callable[[int, int], None] | None = None,
    ) -> LintReport:
        """Run the audit and keep only what CI gating needs."""
        rep = self.run(options, cancel=cancel, callback=callback)
        return LintReport(window=rep.window, total=rep.total, findings=rep.findings)

    # --- internals ---

    def _analyse_filters(
        self,
        messages: list[MessageMeta],
        labels_by_id: dict[str, str],
        existing_labels: set[str],
    ) -> Findings:
        if self.loader is None:
            return Findings()
        try:
            export = self.loader.export_filters()
        except AuditError:
            raise
        except Exception as exc:
            raise ExportError(f"load gmailctl filters: {exc}") from exc

        rules = compile_rules(export, labels_by_id)
        if not rules:
            return Findings()
        for rule in rules:
            if isinstance(rule.predicate, NotEvaluable):
                logger.debug("rule %r not replayed: %s", rule.name, rule.predicate.reason)
        skipped = sum(1 for rule in rules if not rule.evaluable)
        logger.info("replaying %d rules (%d not evaluable)", len(rules) - skipped, skipped)

        matches = evaluate_rules(rules, messages)
        findings = analyse(rules, matches, existing_labels)
        logger.info(
            "findings: %d dead, %d missing labels, %d conflicts",
            len(findings.dead_rules),
            len(findings.missing_labels),
            len(findings.conflicts),
        )
        return findings

    def _fetch_metadata(
        self,
        window: timedelta,
        headers: list[str],
        page_size: int,
        cancel: threading.Event | None,
        callback: Callable[[int, int], None] | None,
    ) -> list[MessageMeta]:
        query = f"newer_than:{days_from_window(window)}d"
        messages: list[MessageMeta] = []
        listed = 0
        token = ""
        while True:
            self._wait(cancel)
            try:
                page = self.client.list_messages(query, token, page_size)
            except AuditError:
                raise
            except Exception as exc:
                raise FetchError(f"list messages: {exc}") from exc
            listed += len(page.ids)
            logger.debug("listed %d ids (next page: %s)", len(page.ids), bool(page.next_page_token))

            for message_id in page.ids:
                self._wait(cancel)
                try:
                    meta = self.client.get_metadata(message_id, headers)
                except AuditError:
                    raise
                except Exception as exc:
                    raise FetchError(f"get metadata {message_id}: {exc}") from exc
                messages.append(meta)
                if callback:
                    callback(len(messages), listed)

            if not page.next_page_token:
                break
            token = page.next_page_token
        return messages

    def _wait(self, cancel: threading.Event | None) -> None:
        if cancel is not None and cancel.is_set():
            raise RunCancelled("audit cancelled")
        if self.limiter is not None:
            self.limiter.wait(cancel)
