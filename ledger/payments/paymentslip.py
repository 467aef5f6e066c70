import uuid

from ledger.models.payment import Payment, PaymentMethod, PaymentStatus, PaymentType
from ledger.models.pledge import PledgeStatus
from ledger.payments.base import PaymentContext, PaymentProvider, Settlement


class PaymentSlipProvider(PaymentProvider):
    """Offline bank transfer, reconciled by hand later on."""

    method = PaymentMethod.PAYMENTSLIP

    async def settle(self, ctx: PaymentContext) -> Settlement:
        payment = Payment(
            type=PaymentType.PLEDGE,
            method=self.method,
            total=ctx.pledge.total,
            status=PaymentStatus.WAITING,
            # Референс для сверки банковской выписки
            psp_id=uuid.uuid4().hex,
        )
        await self.record(ctx.db, payment)
        return Settlement(pledge_status=PledgeStatus.WAITING_FOR_PAYMENT, payment=payment)
