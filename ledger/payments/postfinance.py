"""PostFinance card payments, confirmed by the signed redirect back to us.

The redirect carries the transaction parameters plus ``SHASIGN``, a SHA-1
over the parameters and a shared "SHA-OUT" secret. The amount arrives in
francs, not rappen.
"""

import hashlib
import hmac
import logging
from typing import Any, Mapping

from ledger.errors import PaymentPayloadInvalid, ProviderRejected
from ledger.models.payment import (
    Payment,
    PaymentMethod,
    PaymentSource,
    PaymentStatus,
    PaymentType,
)
from ledger.models.pledge import PledgeStatus
from ledger.payments.base import PaymentContext, PaymentProvider, Settlement, to_minor_units


def sha_out_signature(params: Mapping[str, Any], secret: str) -> str:
    """Uppercase hex SHA-1 of ``KEY=value<secret>`` for every non-empty param.

    Keys are compared and emitted in upper case.
    """
    parts = []
    for key in sorted(params, key=lambda k: k.upper()):
        value = params[key]
        if value:
            parts.append(f"{key.upper()}={value}{secret}")
    return hashlib.sha1("".join(parts).encode("utf-8")).hexdigest().upper()


class PostFinanceProvider(PaymentProvider):
    method = PaymentMethod.POSTFINANCECARD

    def __init__(self, sha_out_secret: str):
        self.sha_out_secret = sha_out_secret

    async def settle(self, ctx: PaymentContext) -> Settlement:
        params = dict(ctx.request.psp_payload or {})
        if not params:
            raise PaymentPayloadInvalid("pspPayload required")

        shasign = str(params.pop("SHASIGN", "") or "")
        expected = sha_out_signature(params, self.sha_out_secret)
        if not shasign or not hmac.compare_digest(shasign.upper(), expected):
            logging.warning("PostFinance SHASIGN mismatch for pledge %s", ctx.pledge.id)
            raise ProviderRejected("SHASIGN not correct!")

        pay_id = params.get("PAYID")
        if not pay_id:
            raise PaymentPayloadInvalid("pspPayload.PAYID required")
        pay_id = str(pay_id)
        await self.ensure_not_replayed(ctx.db, pay_id)

        paid = to_minor_units(params.get("amount"))
        payment = await self.record(
            ctx.db,
            Payment(
                type=PaymentType.PLEDGE,
                method=self.method,
                total=paid,
                status=PaymentStatus.PAID,
                psp_id=pay_id,
                psp_payload=params,
            ),
        )

        # Алиас карты для повторных платежей
        if params.get("ALIAS"):
            ctx.db.add(
                PaymentSource(
                    method=self.method,
                    user_id=ctx.user.id,
                    psp_id=str(params["ALIAS"]),
                )
            )

        return Settlement(
            pledge_status=PledgeStatus.SUCCESSFUL,
            payment=payment,
            mismatch=self.check_amount(ctx.pledge, paid),
        )
