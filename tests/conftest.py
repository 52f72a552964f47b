"""Shared fixtures and fakes for tests."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from chronosweep.audit import AuditService
from chronosweep.models import (
    Filter,
    FilterAction,
    FilterCriteria,
    FilterExport,
    Label,
    ListPage,
    MessageMeta,
)

FIXED_NOW = datetime(2024, 11, 14, 22, 13, 20, tzinfo=timezone.utc)


class FakeMailbox:
    """In-memory stand-in for GmailClient."""

    def __init__(self, pages=None, messages=None, labels=None):
        self.pages = list(pages or [])
        self.messages = {m.message_id: m for m in (messages or [])}
        self.labels = dict(labels or {})  # id -> name
        self.list_calls: list[tuple[str, str, int]] = []
        self.metadata_calls: list[str] = []
        self.fail_on: str | None = None

    def list_messages(self, query, page_token, page_size):
        self.list_calls.append((query, page_token, page_size))
        if self.fail_on == "list":
            raise RuntimeError("boom")
        if not self.pages:
            return ListPage()
        return self.pages.pop(0)

    def get_metadata(self, message_id, headers):
        self.metadata_calls.append(message_id)
        if self.fail_on == "metadata":
            raise RuntimeError("boom")
        return self.messages[message_id]

    def list_labels(self):
        if self.fail_on == "labels":
            raise RuntimeError("boom")
        return {name: lid for lid, name in self.labels.items()}, dict(self.labels)


class StubLoader:
    def __init__(self, export=None, error=None):
        self.export = export
        self.error = error
        self.calls = 0

    def export_filters(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.export


def single_page(messages) -> list[ListPage]:
    return [ListPage(ids=tuple(m.message_id for m in messages))]


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def make_mailbox():
    """Build a FakeMailbox; by default every message comes back on one page."""

    def make(messages=(), labels=None, pages=None) -> FakeMailbox:
        if pages is None:
            pages = single_page(messages)
        return FakeMailbox(pages, messages, labels)

    return make


@pytest.fixture
def make_loader():
    return StubLoader


@pytest.fixture
def make_service():
    def make(mailbox, loader=None, limiter=None) -> AuditService:
        return AuditService(mailbox, limiter=limiter, loader=loader, clock=lambda: FIXED_NOW)

    return make


@pytest.fixture
def alert_messages() -> list[MessageMeta]:
    return [
        MessageMeta(
            message_id="1",
            sender="alerts@example.com",
            subject="Alert 1",
            list_id="<alerts.example.com>",
            label_ids=("Label_bulk",),
        ),
        MessageMeta(
            message_id="2",
            sender="Updates <updates@example.com>",
            subject="Update",
            list_id="<alerts.example.com>",
            label_ids=("Label_bulk",),
        ),
        MessageMeta(
            message_id="3",
            sender="news@another.com",
            subject="News",
            list_id="<newsletters.example.net>",
            label_ids=("Label_news",),
        ),
    ]


@pytest.fixture
def catalog() -> dict[str, str]:
    return {"Label_bulk": "bulk", "Label_news": "newsletters"}


@pytest.fixture
def lint_export() -> FilterExport:
    return FilterExport(
        filters=(
            Filter(
                name="ArchiveAlerts",
                criteria=FilterCriteria(list_id="alerts.example.com"),
                action=FilterAction(remove_label_ids=("INBOX",), add_label_ids=("Label_bulk",)),
            ),
            Filter(
                name="StarAlerts",
                criteria=FilterCriteria(list_id="alerts.example.com"),
                action=FilterAction(add_label_ids=("STARRED",)),
            ),
            Filter(
                name="DeadRule",
                criteria=FilterCriteria(list_id="unused.example.com"),
                action=FilterAction(remove_label_ids=("INBOX",)),
            ),
            Filter(
                name="MissingLabelRule",
                criteria=FilterCriteria(list_id="alerts.example.com"),
                action=FilterAction(add_label_ids=("Label_missing",)),
            ),
        ),
        labels=(
            Label(id="Label_bulk", name="bulk"),
            Label(id="Label_missing", name="missing"),
        ),
    )
