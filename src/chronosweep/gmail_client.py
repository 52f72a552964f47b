"""Gmail API connector used by the audit service."""

from __future__ import annotations

from googleapiclient.discovery import Resource
from googleapiclient.errors import HttpError
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from chronosweep.constants import PAGE_SIZE
from chronosweep.models import ListPage, MessageMeta


def _is_retryable_http_error(exc: BaseException) -> bool:
    return isinstance(exc, HttpError) and exc.resp.status in (429, 500, 503)


@retry(
    retry=retry_if_exception(_is_retryable_http_error),
    wait=wait_exponential(multiplier=1, min=1, max=60),
    stop=stop_after_attempt(5),
    reraise=True,
)
def _execute(request) -> dict:
    return request.execute()


class GmailClient:
    """Read-only view of a mailbox through an authenticated Gmail service."""

    def __init__(self, service: Resource, user_id: str = "me") -> None:
        self._service = service
        self._user_id = user_id

    def list_messages(
        self,
        query: str,
        page_token: str = "",
        page_size: int = PAGE_SIZE,
    ) -> ListPage:
        """Return one page of message IDs matching ``query``."""
        kwargs: dict = {
            "userId": self._user_id,
            "maxResults": page_size,
            "fields": "messages/id,nextPageToken",
        }
        if query:
            kwargs["q"] = query
        if page_token:
            kwargs["pageToken"] = page_token

        resp = _execute(self._service.users().messages().list(**kwargs))
        ids = tuple(msg["id"] for msg in resp.get("messages", []))
        return ListPage(ids=ids, next_page_token=resp.get("nextPageToken", ""))

    def get_metadata(self, message_id: str, headers: list[str]) -> MessageMeta:
        """Fetch the requested headers and label IDs of one message."""
        resp = _execute(
            self._service.users().messages().get(
                userId=self._user_id,
                id=message_id,
                format="metadata",
                metadataHeaders=headers,
            )
        )
        values: dict[str, str] = {}
        for h in resp.get("payload", {}).get("headers", []):
            values.setdefault(h["name"], h["value"])
        return MessageMeta.from_headers(message_id, values, resp.get("labelIds", []))

    def list_labels(self) -> tuple[dict[str, str], dict[str, str]]:
        """Return the label catalog as (name -> id, id -> name)."""
        resp = _execute(self._service.users().labels().list(userId=self._user_id))
        by_name: dict[str, str] = {}
        by_id: dict[str, str] = {}
        for label in resp.get("labels", []):
            by_name[label["name"]] = label["id"]
            by_id[label["id"]] = label["name"]
        return by_name, by_id
