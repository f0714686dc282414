"""
NewsNext Backend — Stripe Payment Service
==========================================

What:  Creates PaymentIntents for ad bookings and verifies webhook payloads.
How:   The official `stripe` SDK. Its HTTP calls are blocking, so they run
       in a worker thread; transient connection errors are retried with
       tenacity (exponential backoff + jitter).

Lazy client:
    The client is built on first use, not at import. A deployment without
    Stripe keys still boots and serves everything except payments, which
    fail with a message telling the operator what to set.

Webhook verification:
    With STRIPE_WEBHOOK_SECRET set, the `Stripe-Signature` header is checked
    against the raw body before the JSON is trusted. Without it (local
    development with `stripe listen` forwarding disabled) the body is parsed
    as-is and a warning is logged.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

import stripe
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from newsnext.config import settings
from newsnext.exceptions import PaymentServiceError, ValidationError

logger = logging.getLogger(__name__)

PLACEHOLDER_KEY = "sk_test_placeholder"
VALID_KEY_PREFIXES = ("sk_test_", "sk_live_")


class PaymentService:
    """Thin wrapper over the Stripe SDK with lazy, validated initialisation."""

    def __init__(self, secret_key: Optional[str] = None):
        self._secret_key = secret_key
        self._client: Optional[stripe.StripeClient] = None

    def get_client(self) -> stripe.StripeClient:
        """
        Build the Stripe client on first use.

        Raises:
            PaymentServiceError: key missing, placeholder, or not an
                sk_test_/sk_live_ secret key.
        """
        if self._client is not None:
            return self._client

        key = (self._secret_key if self._secret_key is not None else settings.stripe_secret_key) or ""
        key = key.strip()
        if not key or key == PLACEHOLDER_KEY:
            logger.error("STRIPE_SECRET_KEY is not set or is a placeholder")
            raise PaymentServiceError(
                message="Stripe secret key not configured. Please set STRIPE_SECRET_KEY.",
            )
        if not key.startswith(VALID_KEY_PREFIXES):
            logger.error("STRIPE_SECRET_KEY has an invalid prefix: %s...", key[:7])
            raise PaymentServiceError(
                message="Invalid Stripe secret key format. Must start with 'sk_test_' or 'sk_live_'.",
            )

        self._client = stripe.StripeClient(key)
        return self._client

    async def create_payment_intent(
        self,
        amount_cents: int,
        currency: str,
        metadata: Dict[str, str],
    ) -> Dict[str, Any]:
        """
        Create a PaymentIntent and return ``{"id", "client_secret"}``.

        Raises:
            PaymentServiceError: configuration problems, Stripe rejecting the
                request, or connection failures after all retries.
        """
        client = self.get_client()
        try:
            intent = await self._create_intent_with_retry(client, amount_cents, currency, metadata)
        except stripe.APIConnectionError as e:
            logger.error("Stripe unreachable after retries: %s", e)
            raise PaymentServiceError(
                message="Payment service is temporarily unavailable. Please try again later.",
                context={"attempts": settings.retry_max_attempts},
            )
        except stripe.StripeError as e:
            logger.error("Stripe rejected PaymentIntent: %s", e.user_message or str(e))
            raise PaymentServiceError(
                message=e.user_message or "The payment could not be created.",
                context={"stripe_code": e.code},
            )

        logger.info(
            "Created PaymentIntent %s for %d %s (metadata=%s)",
            intent.id,
            amount_cents,
            currency,
            metadata,
        )
        return {"id": intent.id, "client_secret": intent.client_secret}

    @retry(
        retry=retry_if_exception_type(stripe.APIConnectionError),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _create_intent_with_retry(
        self,
        client: stripe.StripeClient,
        amount_cents: int,
        currency: str,
        metadata: Dict[str, str],
    ):
        return await asyncio.to_thread(
            client.payment_intents.create,
            params={
                "amount": amount_cents,
                "currency": currency,
                "metadata": metadata,
            },
        )

    def parse_webhook_event(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """
        Verify (when a secret is configured) and decode a webhook body.

        Raises:
            ValidationError: bad signature or a body that is not a JSON event.
        """
        secret = settings.stripe_webhook_secret
        try:
            body = payload.decode("utf-8")
        except UnicodeDecodeError:
            raise ValidationError("Webhook payload is not valid JSON", field="body")

        if secret:
            if not signature:
                raise ValidationError("Missing Stripe-Signature header", field="Stripe-Signature")
            try:
                stripe.WebhookSignature.verify_header(body, signature, secret)
            except stripe.SignatureVerificationError as e:
                logger.warning("Rejected Stripe webhook with bad signature: %s", e)
                raise ValidationError("Invalid Stripe webhook signature", field="Stripe-Signature")
        else:
            logger.warning("STRIPE_WEBHOOK_SECRET not set; accepting unverified webhook payload")

        try:
            event = json.loads(body)
        except json.JSONDecodeError:
            raise ValidationError("Webhook payload is not valid JSON", field="body")
        if not isinstance(event, dict) or "type" not in event:
            raise ValidationError("Webhook payload is not a Stripe event", field="body")
        return event


payment_service = PaymentService()
