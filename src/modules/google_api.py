"""Google API utilities for Gmail delivery."""

import base64
import logging
import time
from email.message import EmailMessage
from pathlib import Path
from typing import List, Optional

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from src.utils.exceptions import NotificationError

logger = logging.getLogger(__name__)

# OAuth2 scope for sending mail only
SCOPES = ["https://www.googleapis.com/auth/gmail.send"]

MAX_RETRIES = 3


def authenticate_google(
    credentials_path: Path = Path("credentials.json"),
    token_path: Path = Path("token.json"),
    scopes: Optional[List[str]] = None,
):
    """Authenticate with Google API using OAuth2.

    Args:
        credentials_path: OAuth client secrets downloaded from Google Cloud Console.
        token_path: Cached user token, refreshed or created as needed.
        scopes: OAuth scopes; defaults to gmail.send.

    Returns:
        Credentials object for Google API calls.
    """
    if scopes is None:
        scopes = SCOPES

    creds = None
    if token_path.exists():
        creds = Credentials.from_authorized_user_file(str(token_path), scopes)

    if not creds or not creds.valid:
        if creds and creds.expired and creds.refresh_token:
            creds.refresh(Request())
        else:
            if not credentials_path.exists():
                raise FileNotFoundError(
                    f"{credentials_path.name} not found. "
                    "Please download it from Google Cloud Console."
                )
            flow = InstalledAppFlow.from_client_secrets_file(
                str(credentials_path), scopes
            )
            creds = flow.run_local_server(port=0)

        token_path.parent.mkdir(parents=True, exist_ok=True)
        with open(token_path, "w") as token_file:
            token_file.write(creds.to_json())

    return creds


def connect_to_gmail(credentials_path: Path, token_path: Path):
    """Connect to the Gmail API.

    Returns:
        Gmail service object.
    """
    creds = authenticate_google(credentials_path, token_path)
    return build("gmail", "v1", credentials=creds, cache_discovery=False)


def encode_message(message: EmailMessage) -> dict:
    """Wrap a MIME message as a Gmail API send body."""
    raw = base64.urlsafe_b64encode(message.as_bytes()).decode("ascii")
    return {"raw": raw}


def send_message(gmail_service, message: EmailMessage, max_retries: int = MAX_RETRIES):
    """Send a message with retry logic.

    Args:
        gmail_service: Gmail API service object.
        message: Fully built MIME message.
        max_retries: Attempts for rate-limited (429) requests.

    Returns:
        Gmail message id.

    Raises:
        NotificationError: On API errors or when retries are exhausted.
    """
    body = encode_message(message)

    for attempt in range(max_retries):
        try:
            result = (
                gmail_service.users().messages().send(userId="me", body=body).execute()
            )
            return result.get("id", "")
        except HttpError as e:
            if e.resp.status == 429:  # Rate limited
                wait_time = 2**attempt  # 1s, 2s, 4s...
                logger.warning(
                    f"Rate limited sending email, retrying in {wait_time}s "
                    f"(attempt {attempt + 1}/{max_retries})"
                )
                time.sleep(wait_time)
            else:
                raise NotificationError(f"Gmail API error: {e}") from e

    raise NotificationError(f"Failed to send email after {max_retries} retries")
