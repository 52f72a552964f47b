"""Authentication helpers for Gmail API."""

from __future__ import annotations

import os
from pathlib import Path

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build, Resource

from chronosweep.constants import CONFIG_DIR, CREDENTIALS_FILE, SCOPES, TOKEN_FILE


def _save_token(token_path: Path, payload: str) -> None:
    """Write the token readable by the owner only, tightening an existing file."""
    fd = os.open(token_path, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w") as f:
        f.write(payload)
    os.chmod(token_path, 0o600)


def get_gmail_service(config_dir: Path | None = None) -> Resource:
    """Return an authenticated, read-only Gmail API service object.

    Loads the cached token from ``<config_dir>/token.json`` if available.
    When the token is expired it is silently refreshed.  If no token
    exists, an OAuth browser flow is launched (requires credentials.json
    in the same directory).
    """
    config_dir = Path(config_dir or CONFIG_DIR)
    config_dir.mkdir(parents=True, exist_ok=True)
    credentials_path = config_dir / CREDENTIALS_FILE
    token_path = config_dir / TOKEN_FILE

    creds: Credentials | None = None

    if token_path.exists():
        creds = Credentials.from_authorized_user_file(str(token_path), SCOPES)

    if creds and creds.expired and creds.refresh_token:
        creds.refresh(Request())
    elif not creds or not creds.valid:
        if not credentials_path.exists():
            raise FileNotFoundError(
                f"Credentials file not found at {credentials_path}.\n"
                "Download your OAuth client credentials from the Google Cloud Console "
                "and save them as:\n"
                f"  {credentials_path}"
            )
        flow = InstalledAppFlow.from_client_secrets_file(str(credentials_path), SCOPES)
        creds = flow.run_local_server(port=0)

    _save_token(token_path, creds.to_json())

    return build("gmail", "v1", credentials=creds)


def authenticated_address(config_dir: Path | None = None) -> str:
    """Return the address of the account the cached token belongs to."""
    service = get_gmail_service(config_dir)
    profile = service.users().getProfile(userId="me").execute()
    return profile["emailAddress"]
