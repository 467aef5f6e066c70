"""PayPal payments: the redirect hands us a transaction id, which we confirm
server-to-server with ``GetTransactionDetails`` (classic NVP API).
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional
from urllib.parse import parse_qsl

import httpx

from ledger.errors import PaymentPayloadInvalid, ProviderRejected
from ledger.models.payment import Payment, PaymentMethod, PaymentStatus, PaymentType
from ledger.models.pledge import PledgeStatus
from ledger.payments.base import PaymentContext, PaymentProvider, Settlement, to_minor_units

NVP_VERSION = "204.0"


@dataclass(frozen=True)
class Confirmation:
    ack: Optional[str]
    amount: Optional[str]
    payload: Dict[str, str]

    @property
    def succeeded(self) -> bool:
        return self.ack == "Success"


class PayPalClient:
    def __init__(
        self,
        url: str,
        user: Optional[str],
        pwd: Optional[str],
        signature: Optional[str],
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.credentials = {"USER": user, "PWD": pwd, "SIGNATURE": signature}
        self.timeout = timeout
        self.transport = transport

    async def confirm(self, transaction_id: str) -> Confirmation:
        form = {
            "METHOD": "GetTransactionDetails",
            "TRANSACTIONID": transaction_id,
            "VERSION": NVP_VERSION,
            **{key: value or "" for key, value in self.credentials.items()},
        }
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.post(self.url, data=form)
                response.raise_for_status()
        except httpx.HTTPError as e:
            logging.exception("PayPal GetTransactionDetails failed for %s", transaction_id)
            raise ProviderRejected(f"paypal confirmation failed: {e}") from e

        fields = dict(parse_qsl(response.text, keep_blank_values=True))
        return Confirmation(ack=fields.get("ACK"), amount=fields.get("AMT"), payload=fields)


class PayPalProvider(PaymentProvider):
    method = PaymentMethod.PAYPAL

    def __init__(self, client: PayPalClient):
        self.client = client

    async def settle(self, ctx: PaymentContext) -> Settlement:
        params = ctx.request.psp_payload or {}
        tx = params.get("tx")
        if not tx:
            raise PaymentPayloadInvalid("pspPayload(.tx) required")
        tx = str(tx)

        await self.ensure_not_replayed(ctx.db, tx)

        confirmation = await self.client.confirm(tx)
        if not confirmation.succeeded:
            logging.warning("PayPal transaction %s not confirmed: %s", tx, confirmation.ack)
            raise ProviderRejected("paypal transaction invalid")

        paid = to_minor_units(confirmation.amount)
        payment = await self.record(
            ctx.db,
            Payment(
                type=PaymentType.PLEDGE,
                method=self.method,
                total=paid,
                status=PaymentStatus.PAID,
                psp_id=tx,
                psp_payload=confirmation.payload,
            ),
        )
        return Settlement(
            pledge_status=PledgeStatus.SUCCESSFUL,
            payment=payment,
            mismatch=self.check_amount(ctx.pledge, paid),
        )
