"""Exceptions raised by the audit pipeline.

Every error below is terminal for the current run: the pipeline aborts
before a report is assembled.
"""


class AuditError(Exception):
    """Base class for chronosweep failures."""


class ConfigError(AuditError):
    """Invalid run configuration (e.g. a non-positive lookback window)."""


class FetchError(AuditError):
    """The mailbox connector failed to list labels, messages or metadata."""


class ExportError(AuditError):
    """The gmailctl export could not be produced or was malformed."""


class OutputError(AuditError):
    """The report could not be written to the requested location."""


class RunCancelled(AuditError):
    """The caller cancelled the run while messages were being fetched."""
