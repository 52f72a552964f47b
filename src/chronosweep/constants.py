"""Constants for chronosweep."""

from pathlib import Path

# --- Config paths ---
CONFIG_DIR = Path.home() / ".chronosweep"
CREDENTIALS_FILE = "credentials.json"
TOKEN_FILE = "token.json"

# --- Gmail API ---
SCOPES = ["https://www.googleapis.com/auth/gmail.readonly"]
PAGE_SIZE = 500  # messages per list page (API maximum)
METADATA_HEADERS = ["From", "To", "Subject", "List-Id", "Auto-Submitted", "Precedence"]
DEFAULT_RPS = 4

# --- System labels used by filter actions ---
INBOX_LABEL = "INBOX"
UNREAD_LABEL = "UNREAD"
STARRED_LABEL = "STARRED"

# --- gmailctl ---
GMAILCTL_BINARY = "gmailctl"
GMAILCTL_TIMEOUT = 120  # seconds
RULE_NAME_PLACEHOLDER = "gmailctl-rule"

# --- Audit defaults ---
DEFAULT_TOP_N = 20
MAX_ARCHIVE_SUGGESTIONS = 10
DEAD_RULE_REASON = "no messages matched in lookback"
CONFLICT_DESCRIPTION = "archive and star rules overlap"

# --- Lint ---
FAIL_ON_DEAD = "dead"
FAIL_ON_MISSING_LABEL = "missing-label"
FAIL_ON_CONFLICT = "conflict"
DEFAULT_FAIL_ON = "dead,conflict,missing-label"

# --- Display ---
PREVIEW_SUBJECT_DISPLAY_LIMIT = 60
