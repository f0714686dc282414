"""
NewsNext Backend — Transactional Email
=======================================

What:  Sends ad moderation emails (approved / rejected) to advertisers.
How:   JSON POST to an HTTP email API (Resend-compatible `/emails`
       endpoint) with httpx; 5xx and connection errors are retried with
       tenacity.

When EMAIL_API_KEY or EMAIL_FROM is missing the send is skipped with an
info log and `False` is returned, so local setups work without an email
provider. Callers in AdService treat email as best-effort and only log
failures.
"""

import logging
from datetime import datetime
from html import escape
from typing import Any, Dict, Iterable, List

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from newsnext.config import settings
from newsnext.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


class _RetryableEmailError(Exception):
    pass


def _dedupe_emails(emails: Iterable[str]) -> List[str]:
    seen = set()
    deduped = []
    for email in emails:
        normalized = email.strip().lower()
        if not normalized or normalized in seen:
            continue
        seen.add(normalized)
        deduped.append(normalized)
    return deduped


def _format_date(value: datetime) -> str:
    return value.strftime("%d %b %Y")


class EmailService:
    @property
    def is_configured(self) -> bool:
        return bool(settings.email_api_key and settings.email_from)

    async def send_email(
        self,
        to_emails: Iterable[str],
        subject: str,
        html_body: str,
        text_body: str,
    ) -> bool:
        """
        Send one email. Returns False when skipped (not configured / no
        recipients), True when accepted by the provider.

        Raises:
            ExternalServiceError: the provider rejected the message or stayed
                unreachable after retries.
        """
        if not self.is_configured:
            logger.info("Email skipped (missing configuration): %s", subject)
            return False

        recipients = _dedupe_emails(to_emails)
        if not recipients:
            logger.info("Email skipped (no recipients): %s", subject)
            return False

        payload: Dict[str, Any] = {
            "from": settings.email_from,
            "to": recipients,
            "subject": subject,
            "html": html_body,
            "text": text_body,
        }

        try:
            response = await self._post_with_retry(payload)
        except (_RetryableEmailError, httpx.TransportError) as e:
            raise ExternalServiceError(
                message="Email provider is unreachable",
                service="email",
                context={"error": str(e)},
            )

        if response.status_code >= 400:
            logger.warning(
                "Email provider rejected message (%d): %s",
                response.status_code,
                response.text[:200],
            )
            raise ExternalServiceError(
                message="Email provider rejected the message",
                service="email",
                context={"status_code": response.status_code},
            )

        logger.info("Email sent to %d recipient(s): %s", len(recipients), subject)
        return True

    @retry(
        retry=retry_if_exception_type((_RetryableEmailError, httpx.TransportError)),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _post_with_retry(self, payload: Dict[str, Any]) -> httpx.Response:
        url = settings.email_api_url.rstrip("/") + "/emails"
        headers = {
            "Authorization": f"Bearer {settings.email_api_key}",
            "Content-Type": "application/json",
        }
        async with httpx.AsyncClient(timeout=settings.email_timeout_seconds) as client:
            response = await client.post(url, headers=headers, json=payload)
        if response.status_code >= 500:
            raise _RetryableEmailError(f"Email provider returned {response.status_code}")
        return response

    # ── Ad moderation templates ───────────────────────────────────────────

    async def send_ad_approval_email(self, to_email: str, ad: Dict[str, Any]) -> bool:
        title = ad["title"]
        dashboard = f"{settings.frontend_url.rstrip('/')}/advertiser/ads/{ad['id']}"
        period = f"{_format_date(ad['start_date'])} – {_format_date(ad['end_date'])}"
        subject = f"Your ad \"{title}\" has been approved"
        text_body = (
            f"Good news! Your ad \"{title}\" ({ad['type']}) has been approved.\n"
            f"It will run {period}.\n\n"
            f"Track its performance: {dashboard}\n"
        )
        html_body = (
            f"<p>Good news! Your ad <strong>{escape(title)}</strong> "
            f"({escape(str(ad['type']))}) has been approved.</p>"
            f"<p>It will run {escape(period)}.</p>"
            f"<p><a href=\"{escape(dashboard)}\">Track its performance</a></p>"
        )
        return await self.send_email([to_email], subject, html_body, text_body)

    async def send_ad_rejection_email(self, to_email: str, ad: Dict[str, Any], reason: str) -> bool:
        title = ad["title"]
        dashboard = f"{settings.frontend_url.rstrip('/')}/advertiser/ads/{ad['id']}"
        subject = f"Your ad \"{title}\" was not approved"
        text_body = (
            f"Unfortunately your ad \"{title}\" was not approved.\n"
            f"Reason: {reason}\n\n"
            f"You can edit and resubmit it here: {dashboard}\n"
        )
        html_body = (
            f"<p>Unfortunately your ad <strong>{escape(title)}</strong> was not approved.</p>"
            f"<p><strong>Reason:</strong> {escape(reason)}</p>"
            f"<p><a href=\"{escape(dashboard)}\">Edit and resubmit</a></p>"
        )
        return await self.send_email([to_email], subject, html_body, text_body)


email_service = EmailService()
