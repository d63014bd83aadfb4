"""Outbound email through an HTTP mail provider.

The payload follows the SendGrid-style shape most providers accept. Failed
sends are retried on 429/5xx and network errors with increasing waits.
"""

import asyncio
from typing import Protocol

import httpx
import structlog

from app.config import Settings
from app.core.exceptions import UpstreamError

logger = structlog.get_logger(__name__)

RETRYABLE_STATUS = (429, 500, 502, 503, 504)


class EmailSender(Protocol):
    async def send(self, to: str, subject: str, body: str) -> None:
        ...


class HttpEmailSender:
    """Sends plain-text email via the configured provider endpoint."""

    def __init__(self, settings: Settings, max_retries: int = 3, retry_delay: float = 1.0):
        self.api_url = settings.EMAIL_API_URL
        self.api_key = settings.EMAIL_API_KEY
        self.sender = settings.EMAIL_FROM
        self.timeout = settings.EMAIL_HTTP_TIMEOUT_SECONDS
        self.max_retries = max_retries
        self.retry_delay = retry_delay

    async def send(self, to: str, subject: str, body: str) -> None:
        if not self.api_url or not self.api_key:
            logger.error("Email provider not configured")
            raise UpstreamError("Email service is not configured")

        payload = {
            "from": {"email": self.sender},
            "personalizations": [{"to": [{"email": to}], "subject": subject}],
            "content": [{"type": "text/plain", "value": body}],
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        last_error: Exception | None = None
        for attempt in range(1, self.max_retries + 1):
            try:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.api_url, json=payload, headers=headers)
                    response.raise_for_status()
                logger.info("Email sent", subject=subject, attempt=attempt)
                return
            except httpx.HTTPStatusError as e:
                last_error = e
                logger.warning(
                    "Email provider error",
                    attempt=attempt,
                    status_code=e.response.status_code,
                    body=e.response.text[:200],
                )
                if e.response.status_code not in RETRYABLE_STATUS:
                    break
            except httpx.HTTPError as e:
                last_error = e
                logger.warning("Email provider unreachable", attempt=attempt, error=str(e))

            if attempt < self.max_retries:
                await asyncio.sleep(self.retry_delay * attempt)

        logger.error("Email send failed", subject=subject, error=str(last_error))
        raise UpstreamError("Failed to send email", details={"details": str(last_error)})
