"""Synchronous card charges through Stripe.

A successful charge is real money: the resulting payment is committed in its
own session straight away, so nothing that fails later in the pledge
transaction can lose it.
"""

import logging
from typing import Any, Dict, Optional

import stripe
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ledger.errors import PaymentPayloadInvalid, ProviderRejected
from ledger.models.payment import (
    Payment,
    PaymentMethod,
    PaymentSource,
    PaymentStatus,
    PaymentType,
)
from ledger.models.pledge import PledgeStatus
from ledger.payments.base import PaymentContext, PaymentProvider, Settlement


class StripeGateway:
    def __init__(self, api_key: Optional[str]):
        self._client = stripe.StripeClient(api_key) if api_key else None

    async def charge(self, amount: int, currency: str, source: str) -> Dict[str, Any]:
        if self._client is None:
            raise ProviderRejected("STRIPE_SECRET_KEY is not configured")
        try:
            charge = await self._client.charges.create_async(
                params={"amount": amount, "currency": currency, "source": source}
            )
        except stripe.StripeError as e:
            logging.warning("Stripe charge declined: %s", e)
            raise ProviderRejected(f"stripe charge failed: {e}") from e
        return charge.to_dict()


class StripeProvider(PaymentProvider):
    method = PaymentMethod.STRIPE

    def __init__(
        self,
        gateway: StripeGateway,
        session_factory: async_sessionmaker[AsyncSession],
        currency: str,
    ):
        self.gateway = gateway
        self.session_factory = session_factory
        self.currency = currency

    async def settle(self, ctx: PaymentContext) -> Settlement:
        source_id = ctx.request.source_id
        if not source_id:
            raise PaymentPayloadInvalid("sourceId required")

        charge = await self.gateway.charge(ctx.pledge.total, self.currency, source_id)

        payment = Payment(
            type=PaymentType.PLEDGE,
            method=self.method,
            total=charge["amount"],
            status=PaymentStatus.PAID,
            psp_id=charge["id"],
            psp_payload=charge,
        )
        # Сохраняем платёж вне транзакции взноса, чтобы никогда его не потерять
        async with self.session_factory() as durable:
            async with durable.begin():
                durable.add(payment)
        logging.info(
            "Stripe charge %s (%s) recorded as payment %s",
            charge["id"],
            charge["amount"],
            payment.id,
        )

        source = charge.get("source") or {}
        if source.get("id"):
            ctx.db.add(
                PaymentSource(
                    method=self.method,
                    user_id=ctx.user.id,
                    psp_id=source["id"],
                    psp_payload=source,
                )
            )

        return Settlement(
            pledge_status=PledgeStatus.SUCCESSFUL,
            payment=payment,
            committed_separately=True,
        )
