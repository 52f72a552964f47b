"""CI-oriented view of audit findings."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import timedelta

from .constants import FAIL_ON_CONFLICT, FAIL_ON_DEAD, FAIL_ON_MISSING_LABEL
from .models import Findings


def format_window(window: timedelta) -> str:
    """Compact window string: "30d", "36h", "90m" or "45s"."""
    seconds = int(window.total_seconds())
    for unit, size in (("d", 86400), ("h", 3600), ("m", 60)):
        if seconds and seconds % size == 0:
            return f"{seconds // size}{unit}"
    return f"{seconds}s"


def parse_fail_on(text: str) -> list[str]:
    """Split a comma separated --fail-on value into canonical tokens."""
    return [part.strip().lower() for part in (text or "").split(",") if part.strip()]


@dataclass(frozen=True)
class LintReport:
    window: timedelta
    total: int = 0
    findings: Findings = field(default_factory=Findings)

    def should_fail(self, fail_on: Iterable[str]) -> bool:
        """True when any requested condition has at least one finding.

        Tokens are case- and space-insensitive; unknown tokens are ignored.
        """
        flags = {
            FAIL_ON_DEAD: bool(self.findings.dead_rules),
            FAIL_ON_MISSING_LABEL: bool(self.findings.missing_labels),
            FAIL_ON_CONFLICT: bool(self.findings.conflicts),
        }
        return any(flags.get(token.strip().lower(), False) for token in fail_on)

    def human_summary(self) -> str:
        lines = [
            f"chronosweep lint - window {format_window(self.window)} "
            f"({self.total} messages checked)"
        ]
        if self.findings.is_empty():
            lines.append("no findings")
            return "\n".join(lines) + "\n"

        if self.findings.dead_rules:
            lines.append("dead rules:")
            for fr in sorted(self.findings.dead_rules, key=lambda f: f.name):
                lines.append(f"  {fr.name} - {fr.reason}")
        if self.findings.missing_labels:
            lines.append("missing labels:")
            for label in sorted(self.findings.missing_labels):
                lines.append(f"  {label}")
        if self.findings.conflicts:
            lines.append("conflicts:")
            for cf in sorted(self.findings.conflicts, key=lambda c: "|".join(c.rules)):
                lines.append(f"  {', '.join(cf.rules)} - {cf.description}")
        return "\n".join(lines) + "\n"
