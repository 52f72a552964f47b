"""Load compiled gmailctl filters.

gmailctl compiles a Jsonnet config into Gmail filter definitions.  The
audit only needs the JSON form of that output::

    {
      "filters": [
        {"id": "...", "name": "...",
         "criteria": {"from": "...", "to": "...", "subject": "...",
                      "query": "...", "list": "..."},
         "action": {"addLabelIds": [...], "removeLabelIds": [...],
                    "forward": "..."}}
      ],
      "labels": [{"id": "...", "name": "...", "type": "..."}]
    }
"""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import Any

from .constants import GMAILCTL_BINARY, GMAILCTL_TIMEOUT
from .errors import ExportError
from .models import Filter, FilterAction, FilterCriteria, FilterExport, Label

logger = logging.getLogger(__name__)


def _text(obj: dict, key: str, where: str) -> str:
    value = obj.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ExportError(f"{where}.{key} must be a string, got {type(value).__name__}")
    return value


def _text_list(obj: dict, key: str, where: str) -> tuple[str, ...]:
    value = obj.get(key)
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ExportError(f"{where}.{key} must be a list of strings")
    return tuple(value)


def _object(obj: Any, where: str) -> dict:
    if obj is None:
        return {}
    if not isinstance(obj, dict):
        raise ExportError(f"{where} must be an object, got {type(obj).__name__}")
    return obj


def _objects(data: dict, key: str) -> list:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ExportError(f"{key} must be a list, got {type(value).__name__}")
    return value


def _parse_filter(raw: Any, where: str) -> Filter:
    raw = _object(raw, where)
    criteria = _object(raw.get("criteria"), f"{where}.criteria")
    action = _object(raw.get("action"), f"{where}.action")
    return Filter(
        id=_text(raw, "id", where),
        name=_text(raw, "name", where),
        criteria=FilterCriteria(
            from_=_text(criteria, "from", f"{where}.criteria"),
            to=_text(criteria, "to", f"{where}.criteria"),
            subject=_text(criteria, "subject", f"{where}.criteria"),
            query=_text(criteria, "query", f"{where}.criteria"),
            list_id=_text(criteria, "list", f"{where}.criteria"),
        ),
        action=FilterAction(
            add_label_ids=_text_list(action, "addLabelIds", f"{where}.action"),
            remove_label_ids=_text_list(action, "removeLabelIds", f"{where}.action"),
            forward=_text(action, "forward", f"{where}.action"),
        ),
    )


def _parse_label(raw: Any, where: str) -> Label:
    raw = _object(raw, where)
    return Label(
        id=_text(raw, "id", where),
        name=_text(raw, "name", where),
        type=_text(raw, "type", where),
    )


def parse_export(data: Any) -> FilterExport:
    """Validate decoded gmailctl JSON and build a FilterExport.

    Raises ExportError on malformed structure or when the export holds
    neither filters nor labels.
    """
    if not isinstance(data, dict):
        raise ExportError(f"export must be a JSON object, got {type(data).__name__}")
    filters = tuple(
        _parse_filter(raw, f"filters[{i}]") for i, raw in enumerate(_objects(data, "filters"))
    )
    labels = tuple(
        _parse_label(raw, f"labels[{i}]") for i, raw in enumerate(_objects(data, "labels"))
    )
    if not filters and not labels:
        raise ExportError("gmailctl returned no filters or labels")
    return FilterExport(filters=filters, labels=labels)


def _decode(text: str, source: str) -> FilterExport:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ExportError(f"decode {source}: {exc}") from exc
    return parse_export(data)


class GmailctlRunner:
    """Shells out to ``gmailctl compile --format=json``."""

    def __init__(
        self,
        binary: str = GMAILCTL_BINARY,
        config_dir: str | Path | None = None,
        timeout: float = GMAILCTL_TIMEOUT,
    ) -> None:
        self.binary = binary or GMAILCTL_BINARY
        self.config_dir = config_dir
        self.timeout = timeout

    def command(self) -> list[str]:
        args = [self.binary, "compile", "--format=json"]
        if self.config_dir and str(self.config_dir).strip():
            args += ["--config", str(self.config_dir)]
        return args

    def export_filters(self) -> FilterExport:
        args = self.command()
        logger.debug("running %s", " ".join(args))
        try:
            proc = subprocess.run(
                args, capture_output=True, text=True, timeout=self.timeout, check=False
            )
        except FileNotFoundError as exc:
            raise ExportError(f"gmailctl binary not found: {self.binary}") from exc
        except subprocess.TimeoutExpired as exc:
            raise ExportError(f"gmailctl timed out after {self.timeout}s") from exc

        if proc.returncode != 0:
            output = (proc.stderr or proc.stdout or "").strip()
            raise ExportError(f"run gmailctl: exit status {proc.returncode} (output: {output})")
        return _decode(proc.stdout, "gmailctl output")


class ExportFileLoader:
    """Reads a previously compiled gmailctl JSON export from disk."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def export_filters(self) -> FilterExport:
        try:
            text = self.path.read_text()
        except OSError as exc:
            raise ExportError(f"read {self.path}: {exc}") from exc
        return _decode(text, str(self.path))
