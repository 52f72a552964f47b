"""Export audit reports to JSON."""

from __future__ import annotations

import json
import os
from pathlib import Path

from .errors import OutputError
from .lint import format_window
from .models import Conflict, Findings, Report, RuleFinding


def _rule_finding(fr: RuleFinding) -> dict:
    return {"name": fr.name, "reason": fr.reason}


def _conflict(cf: Conflict) -> dict:
    return {"rules": list(cf.rules), "description": cf.description}


def findings_to_dict(findings: Findings) -> dict:
    return {
        "dead_rules": [_rule_finding(fr) for fr in findings.dead_rules],
        "missing_labels": list(findings.missing_labels),
        "conflicts": [_conflict(cf) for cf in findings.conflicts],
    }


def report_to_dict(report: Report) -> dict:
    """Convert a report into the machine-readable document shape."""
    return {
        "generated_at": report.generated_at.isoformat(),
        "window": format_window(report.window),
        "total": report.total,
        "top_senders": [
            {"domain": s.domain, "count": s.count, "preview_subject": s.preview_subject}
            for s in report.top_senders
        ],
        "top_lists": [
            {"list_id": ls.list_id, "count": ls.count, "preview_subject": ls.preview_subject}
            for ls in report.top_lists
        ],
        "coverage": dict(report.coverage),
        "suggestions": {
            "archive_rules": list(report.suggestions.archive_rules),
            "remove_rules": [_rule_finding(fr) for fr in report.suggestions.remove_rules],
            "smells": [_conflict(cf) for cf in report.suggestions.smells],
        },
        "findings": findings_to_dict(report.findings),
    }


def resolve_output_path(path: str) -> Path:
    """Resolve a user-supplied output path inside the working directory.

    Absolute paths and paths escaping the working directory are refused.
    """
    clean = (path or "").strip()
    if not clean:
        raise OutputError("output path must not be empty")
    clean = os.path.normpath(clean)
    if os.path.isabs(clean):
        raise OutputError(f"output path must be relative, got {clean}")
    if clean == ".." or clean.startswith(".." + os.sep):
        raise OutputError(f"output path {clean} escapes working directory")
    return Path.cwd() / clean


def write_json(report: Report, output_path: str) -> Path:
    """Write the report as indented JSON and return the written path."""
    target = resolve_output_path(output_path)
    try:
        fd = os.open(target, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            json.dump(report_to_dict(report), f, indent=2, sort_keys=True)
            f.write("\n")
    except OSError as exc:
        raise OutputError(f"write {target}: {exc}") from exc
    return target
