"""
Payment Verification Service
Confirms external payment references with the processor before admission
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import httpx

from courtside.config import settings
from courtside.errors import PaymentReferenceMissing, PaymentVerificationFailed
from courtside.models.booking import PaymentMethod

logger = logging.getLogger(__name__)


@dataclass
class PaymentConfirmation:
    """Outcome of a successful server-side check of a payment reference"""

    reference: str
    amount: Decimal
    currency: str
    status: str


class PaymentService:
    """
    Verifies Stripe payment intents over the Stripe REST API.

    Verification runs before the admission transaction opens, so no database
    lock is ever held while waiting on the processor. Without a configured
    STRIPE_SECRET_KEY references are trusted as-is (mock payment flow).
    """

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.secret_key = settings.STRIPE_SECRET_KEY
        self.base_url = settings.STRIPE_API_BASE
        self.transport = transport

    async def verify_payment(
        self,
        payment_method: PaymentMethod,
        payment_intent_id: Optional[str],
        expected_amount: Decimal,
    ) -> Optional[PaymentConfirmation]:
        """
        Check an external payment reference

        Args:
            payment_method: Method chosen for the booking
            payment_intent_id: Reference returned by the client-side payment flow
            expected_amount: Final amount the booking will charge

        Returns:
            PaymentConfirmation when the processor confirmed the payment,
            None when no verification applies (wallet, UPI, verification disabled)

        Raises:
            PaymentReferenceMissing: external method without a reference
            PaymentVerificationFailed: the processor does not confirm the payment
        """
        method = PaymentMethod(payment_method)
        if method == PaymentMethod.WALLET:
            return None

        reference = (payment_intent_id or "").strip()
        if not reference:
            raise PaymentReferenceMissing()

        if method != PaymentMethod.STRIPE or not self.secret_key:
            return None

        try:
            async with httpx.AsyncClient(base_url=self.base_url, transport=self.transport) as client:
                response = await client.get(
                    f"/v1/payment_intents/{reference}",
                    auth=(self.secret_key, ""),
                    timeout=15.0,
                )
        except httpx.HTTPError as e:
            logger.error(f"Stripe verification request failed for {reference}: {str(e)}")
            raise PaymentVerificationFailed("Payment processor unavailable, please try again")

        if response.status_code == 404:
            raise PaymentVerificationFailed("Unknown payment reference", details={"payment_intent_id": reference})
        if response.status_code >= 400:
            logger.error(f"Stripe returned {response.status_code} for payment intent {reference}")
            raise PaymentVerificationFailed(details={"payment_intent_id": reference})

        data = response.json()
        status = data.get("status")
        amount = Decimal(int(data.get("amount_received") or data.get("amount") or 0)) / Decimal(100)
        currency = (data.get("currency") or "").upper()

        if status != "succeeded":
            raise PaymentVerificationFailed(
                f"Payment has not completed (status: {status})",
                details={"payment_intent_id": reference, "status": status},
            )
        if currency != settings.CURRENCY.upper():
            raise PaymentVerificationFailed(
                "Payment currency does not match",
                details={"payment_intent_id": reference, "currency": currency},
            )
        if amount < expected_amount:
            raise PaymentVerificationFailed(
                "Paid amount is lower than the booking amount",
                details={"paid_amount": str(amount), "required_amount": str(expected_amount)},
            )

        logger.info(f"Payment intent {reference} verified for {amount} {currency}")
        return PaymentConfirmation(reference=reference, amount=amount, currency=currency, status=status)
