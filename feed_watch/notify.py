"""Digest delivery through an HTTP email API."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import requests

LOGGER = logging.getLogger(__name__)


class NotificationError(Exception):
    """Raised when a digest could not be delivered."""


class EmailNotifier:
    """Send a rendered digest as one email via a JSON HTTP API.

    The request body follows the common transactional-email shape
    (``from``, ``to``, ``subject``, ``html``, ``text``) and authenticates
    with a bearer token, which Resend and compatible services accept.
    """

    def __init__(
        self,
        api_url: str,
        api_key: Optional[str],
        sender: Optional[str],
        recipients: Sequence[str],
        timeout: float = 15.0,
    ) -> None:
        self.api_url = api_url
        self.api_key = api_key
        self.sender = sender
        self.recipients = list(recipients)
        self.timeout = timeout

    def is_configured(self) -> bool:
        return bool(self.api_key and self.sender and self.recipients)

    def send(self, subject: str, html_body: str, text_body: Optional[str] = None) -> None:
        if not self.is_configured():
            raise NotificationError("email notifier is missing EMAIL_API_KEY, EMAIL_FROM or EMAIL_TO")

        payload = {
            "from": self.sender,
            "to": self.recipients,
            "subject": subject,
            "html": html_body,
        }
        if text_body:
            payload["text"] = text_body
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            response = requests.post(self.api_url, json=payload, headers=headers, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise NotificationError(f"email API request failed: {exc}") from exc
        LOGGER.info("Digest sent to %d recipient(s)", len(self.recipients))
