"""
Gmail API client for starred emails.

OAuth tokens are read from the oauth_tokens table. The Google auth library
refreshes expired access tokens itself; a refresh failure (or no stored
refresh token at all) surfaces as AuthenticationRequired carrying a fresh
consent URL.
"""

import base64
import re
from datetime import datetime, timezone
from html import unescape
from typing import Any

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow
from googleapiclient.discovery import build

from shootingstar.config import settings
from shootingstar.core.database import Database
from shootingstar.core.errors import AuthenticationRequired
from shootingstar.core.logging import get_logger
from shootingstar.core.models import Item

log = get_logger(__name__)

SCOPES = ["https://www.googleapis.com/auth/gmail.modify"]
TOKEN_URI = "https://oauth2.googleapis.com/token"
AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
TOKEN_PROVIDER = "gmail"
STARRED_QUERY = "is:starred"
STARRED_LABEL = "STARRED"

_TAG_RE = re.compile(r"<[^>]+>")
_STRIP_BLOCK_RE = re.compile(r"<(script|style)\b.*?</\1>", re.IGNORECASE | re.DOTALL)
_WHITESPACE_RE = re.compile(r"[ \t]+")


def decode_body_data(data: str) -> str:
    """Decode a Gmail base64url body payload (padding optional)."""
    padded = data + "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(padded).decode("utf-8", errors="replace")


def strip_html(html: str) -> str:
    """Crude tag removal for HTML-only emails."""
    text = _STRIP_BLOCK_RE.sub("", html)
    text = re.sub(r"<br\s*/?>|</p>|</div>", "\n", text, flags=re.IGNORECASE)
    text = unescape(_TAG_RE.sub("", text))
    lines = (_WHITESPACE_RE.sub(" ", line).strip() for line in text.splitlines())
    return "\n".join(line for line in lines if line)


def _find_part(parts: list[dict[str, Any]], mime_type: str) -> str | None:
    """Depth-first search for the first part of mime_type with body data."""
    for part in parts:
        data = (part.get("body") or {}).get("data")
        if part.get("mimeType") == mime_type and data:
            return decode_body_data(data)
        nested = part.get("parts")
        if nested:
            found = _find_part(nested, mime_type)
            if found is not None:
                return found
    return None


def find_text_body(payload: dict[str, Any] | None) -> str:
    """
    Extract the readable body from a Gmail message payload.

    Prefers the first text/plain part (depth-first), then the top-level
    body, then the first text/html part with tags stripped.
    """
    if not payload:
        return ""

    parts = payload.get("parts") or []
    if parts:
        text = _find_part(parts, "text/plain")
        if text is not None:
            return text

    data = (payload.get("body") or {}).get("data")
    if data:
        body = decode_body_data(data)
        if payload.get("mimeType") == "text/html":
            return strip_html(body)
        return body

    if parts:
        html = _find_part(parts, "text/html")
        if html is not None:
            return strip_html(html)

    return ""


def get_header(headers: list[dict[str, str]], name: str, default: str = "") -> str:
    """Case-insensitive header lookup."""
    lowered = name.lower()
    for header in headers:
        if header.get("name", "").lower() == lowered:
            return header.get("value", default)
    return default


def _parse_expiry(value: str | None) -> datetime | None:
    """Stored expiry is ISO-8601 or epoch milliseconds; google-auth wants naive UTC."""
    if not value:
        return None
    try:
        if value.isdigit():
            return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc).replace(tzinfo=None)
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


class GmailClient:
    """Gmail operations needed by the pipeline."""

    def __init__(
        self,
        db: Database,
        client_id: str | None = None,
        client_secret: str | None = None,
        redirect_uri: str | None = None,
        processed_label: str | None = None,
        service: Any = None,
    ):
        self.db = db
        self.client_id = client_id or settings.google_client_id
        self.client_secret = client_secret or settings.google_client_secret
        self.redirect_uri = redirect_uri or settings.google_redirect_uri
        self.processed_label = processed_label or settings.gmail_processed_label
        self._service = service
        self._label_ids: dict[str, str] = {}

    def get_auth_url(self) -> str:
        """Consent URL that yields an offline refresh token."""
        flow = Flow.from_client_config(
            {
                "web": {
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "auth_uri": AUTH_URI,
                    "token_uri": TOKEN_URI,
                    "redirect_uris": [self.redirect_uri],
                }
            },
            scopes=SCOPES,
            redirect_uri=self.redirect_uri,
        )
        auth_url, _ = flow.authorization_url(access_type="offline", prompt="consent")
        return auth_url

    def _load_credentials(self) -> Credentials:
        """Build credentials from the stored token, refreshing when expired."""
        stored = self.db.get_oauth_token(TOKEN_PROVIDER)
        if not stored or not stored.get("refresh_token"):
            raise AuthenticationRequired(self.get_auth_url())

        creds = Credentials(
            token=stored.get("access_token") or None,
            refresh_token=stored["refresh_token"],
            token_uri=TOKEN_URI,
            client_id=self.client_id,
            client_secret=self.client_secret,
            scopes=SCOPES,
            expiry=_parse_expiry(stored.get("expiry")),
        )

        if not creds.valid:
            try:
                creds.refresh(Request())
            except RefreshError as e:
                log.warning("gmail_token_refresh_failed", error=str(e))
                raise AuthenticationRequired(self.get_auth_url()) from e

            self.db.set_oauth_token(
                TOKEN_PROVIDER,
                creds.token,
                creds.refresh_token or stored["refresh_token"],
                creds.expiry.replace(tzinfo=timezone.utc).isoformat() if creds.expiry else "",
            )
            log.info("gmail_token_refreshed")

        return creds

    @property
    def service(self) -> Any:
        """Authenticated Gmail API resource, built on first use."""
        if self._service is None:
            self._service = build("gmail", "v1", credentials=self._load_credentials(), cache_discovery=False)
        return self._service

    def is_authenticated(self) -> bool:
        try:
            self._load_credentials()
            return True
        except AuthenticationRequired:
            return False

    def fetch_flagged_items(self, max_results: int | None = None) -> list[Item]:
        """
        Fetch starred emails, newest first.

        Args:
            max_results: Maximum number of emails (default from settings)

        Returns:
            List of Item

        Raises:
            AuthenticationRequired: If Gmail needs re-authorization
        """
        max_results = max_results or settings.gmail_max_results

        try:
            response = self.service.users().messages().list(
                userId="me", q=STARRED_QUERY, maxResults=max_results
            ).execute()

            items = []
            for message in response.get("messages", []):
                msg = self.service.users().messages().get(userId="me", id=message["id"]).execute()
                items.append(self._to_item(msg))
        except RefreshError as e:
            # Refresh token revoked after the service was built
            self._service = None
            log.warning("gmail_token_revoked", error=str(e))
            raise AuthenticationRequired(self.get_auth_url()) from e

        log.info("gmail_starred_fetched", count=len(items))
        return items

    @staticmethod
    def _to_item(msg: dict[str, Any]) -> Item:
        payload = msg.get("payload") or {}
        headers = payload.get("headers") or []
        return Item(
            id=msg["id"],
            thread_id=msg.get("threadId", ""),
            sender=get_header(headers, "From", "Unknown"),
            subject=get_header(headers, "Subject", "No Subject"),
            body=find_text_body(payload),
            labels=tuple(msg.get("labelIds") or ()),
        )

    def _get_or_create_label(self, label_name: str) -> str:
        if label_name in self._label_ids:
            return self._label_ids[label_name]

        labels = self.service.users().labels().list(userId="me").execute().get("labels", [])
        label_id = next((label["id"] for label in labels if label.get("name") == label_name), None)

        if label_id is None:
            created = self.service.users().labels().create(
                userId="me",
                body={
                    "name": label_name,
                    "labelListVisibility": "labelShow",
                    "messageListVisibility": "show",
                },
            ).execute()
            label_id = created["id"]
            log.info("gmail_label_created", label=label_name, label_id=label_id)

        self._label_ids[label_name] = label_id
        return label_id

    def label_item(self, item_id: str, label_name: str | None = None) -> None:
        """Apply a user label (created on first use) to a message."""
        label_id = self._get_or_create_label(label_name or self.processed_label)
        self.service.users().messages().modify(
            userId="me", id=item_id, body={"addLabelIds": [label_id]}
        ).execute()

    def unstar_item(self, item_id: str) -> None:
        self.service.users().messages().modify(
            userId="me", id=item_id, body={"removeLabelIds": [STARRED_LABEL]}
        ).execute()
