"""Common contract for payment providers.

Every provider turns a payment request for a pledge into a recorded
:class:`Payment` plus the status the pledge moves to. Providers that take
their transaction id from the client (redirect flows) must check it for
replay before recording anything.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ledger.errors import AmountMismatch, ProviderRejected, ReplayDetected
from ledger.models.payment import Payment
from ledger.models.pledge import Pledge
from ledger.models.user import User
from ledger.schemas import PaymentInput


@dataclass
class PaymentContext:
    db: AsyncSession
    pledge: Pledge
    user: User
    request: PaymentInput


@dataclass
class Settlement:
    pledge_status: str
    payment: Payment
    mismatch: Optional[AmountMismatch] = None
    # Платёж уже сохранён в отдельной транзакции и не откатывается
    committed_separately: bool = False


class PaymentProvider(ABC):
    method: str

    @abstractmethod
    async def settle(self, ctx: PaymentContext) -> Settlement:
        ...

    async def ensure_not_replayed(self, db: AsyncSession, psp_id: str) -> None:
        result = await db.execute(
            select(Payment.id).filter_by(method=self.method, psp_id=psp_id)
        )
        if result.first() is not None:
            logging.warning("Replay of %s transaction %s rejected", self.method, psp_id)
            raise ReplayDetected(f"this {self.method} transaction was used already")

    async def record(self, db: AsyncSession, payment: Payment) -> Payment:
        """Insert ``payment`` in the caller's transaction.

        The unique ``(method, psp_id)`` constraint settles races the
        replay query cannot see.
        """
        db.add(payment)
        try:
            await db.flush()
        except IntegrityError as e:
            logging.warning(
                "Concurrent replay of %s transaction %s rejected",
                payment.method,
                payment.psp_id,
            )
            raise ReplayDetected(f"this {payment.method} transaction was used already") from e
        return payment

    @staticmethod
    def check_amount(pledge: Pledge, paid: int) -> Optional[AmountMismatch]:
        if paid != pledge.total:
            return AmountMismatch(pledge.id, expected=pledge.total, paid=paid)
        return None


def to_minor_units(value: Any) -> int:
    """Convert a decimal major-unit amount ("49.90") to cents (4990)."""
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation as e:
        raise ProviderRejected(f"invalid amount {value!r}") from e
    if not amount.is_finite():
        raise ProviderRejected(f"invalid amount {value!r}")
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
