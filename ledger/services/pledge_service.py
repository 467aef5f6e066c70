"""Submitting, paying and reclaiming pledges.

Each operation runs in one database transaction; any error rolls it back
before it propagates. The single exception is a Stripe charge, whose payment
is committed on its own the moment the charge succeeds (see
:mod:`ledger.payments.stripe_gateway`).
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ledger.config import Settings
from ledger.errors import (
    AlreadyOwner,
    AmountMismatch,
    CannotClaimVerified,
    EmailMismatch,
    Inconsistent,
    LedgerError,
    NotFound,
    PledgeAlreadyPaid,
    Unauthorized,
    UnsupportedPaymentMethod,
)
from ledger.models.payment import Payment, PaymentType, PledgePayment
from ledger.models.pledge import Pledge, PledgeOption, PledgeStatus
from ledger.models.user import User
from ledger.payments.base import PaymentContext, PaymentProvider, Settlement
from ledger.schemas import AuthState, PaymentInput, PledgeClaimInput, PledgeInput
from ledger.services import catalog_service, user_service
from ledger.services.pledge_validator import validate_selection
from notifications.mailer import Mailer
from notifications.telegram_alerts import OperatorAlerts


@dataclass
class PaymentReceipt:
    pledge: Pledge
    payment: Payment
    mismatch: Optional[AmountMismatch] = None


class PledgeService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        providers: Dict[str, PaymentProvider],
        settings: Settings,
        mailer: Optional[Mailer] = None,
        alerts: Optional[OperatorAlerts] = None,
    ):
        self.session_factory = session_factory
        self.providers = providers
        self.settings = settings
        self.mailer = mailer
        self.alerts = alerts

    async def submit(self, pledge_input: PledgeInput, auth: AuthState) -> Pledge:
        async with self.session_factory() as db:
            try:
                async with db.begin():
                    # Снимок каталога читается один раз внутри транзакции
                    snapshot = await catalog_service.load_package_options(
                        db, (plo.template_id for plo in pledge_input.options)
                    )
                    validated = validate_selection(pledge_input, snapshot)
                    user = await user_service.resolve_pledge_user(
                        db, auth, pledge_input.user
                    )

                    pledge = Pledge(
                        user_id=user.id,
                        package_id=validated.package_id,
                        total=validated.total,
                        donation=validated.donation,
                        reason=validated.reason,
                        status=PledgeStatus.DRAFT,
                    )
                    pledge.options = [
                        PledgeOption(
                            template_id=line.template_id,
                            amount=line.amount,
                            price=line.price,
                        )
                        for line in validated.lines
                    ]
                    db.add(pledge)
                    await db.flush()
            except LedgerError as e:
                logging.info("submitPledge rejected (%s): %s", type(e).__name__, e)
                raise

        logging.info(
            "Pledge %s submitted: user=%s total=%s donation=%s",
            pledge.id,
            pledge.user_id,
            pledge.total,
            pledge.donation,
        )
        return pledge

    async def pay(self, payment_input: PaymentInput, auth: AuthState) -> PaymentReceipt:
        settlement: Optional[Settlement] = None
        async with self.session_factory() as db:
            try:
                async with db.begin():
                    pledge = await self._load_pledge(db, payment_input.pledge_id)
                    user = await self._load_owner(db, pledge)
                    if pledge.status != PledgeStatus.DRAFT:
                        raise PledgeAlreadyPaid(
                            f"pledge ({pledge.id}) is {pledge.status}, only DRAFT pledges can be paid"
                        )

                    if auth.is_authenticated and auth.user_id != user.id:
                        logging.info(
                            "Pledge %s doesn't belong to signed in user %s, transferring",
                            pledge.id,
                            auth.user_id,
                        )
                        user = await user_service.get_session_user(db, auth)
                        # Попадёт в БД вместе с первой записью платежа (autoflush выключен)
                        pledge.user_id = user.id

                    provider = self.providers.get(payment_input.method)
                    if provider is None:
                        raise UnsupportedPaymentMethod(
                            f"unsupported paymentMethod {payment_input.method!r}"
                        )
                    settlement = await provider.settle(
                        PaymentContext(db=db, pledge=pledge, user=user, request=payment_input)
                    )

                    if pledge.status != settlement.pledge_status:
                        pledge.status = settlement.pledge_status

                    # TODO generate memberships once reward fulfillment exists
                    db.add(
                        PledgePayment(
                            pledge_id=pledge.id,
                            payment_id=settlement.payment.id,
                            payment_type=PaymentType.PLEDGE,
                        )
                    )
                    await db.flush()
            except Exception as e:
                if settlement is not None and settlement.committed_separately:
                    logging.error(
                        "Payment %s (%s, %s) is recorded but pledge %s was rolled back",
                        settlement.payment.id,
                        settlement.payment.method,
                        settlement.payment.psp_id,
                        payment_input.pledge_id,
                    )
                if isinstance(e, LedgerError):
                    logging.info("payPledge rejected (%s): %s", type(e).__name__, e)
                raise

        logging.info(
            "Pledge %s paid via %s: payment=%s status=%s",
            pledge.id,
            settlement.payment.method,
            settlement.payment.id,
            pledge.status,
        )
        if settlement.mismatch is not None:
            await self._report_mismatch(settlement)
        return PaymentReceipt(
            pledge=pledge, payment=settlement.payment, mismatch=settlement.mismatch
        )

    async def reclaim(self, claim: PledgeClaimInput, auth: AuthState) -> Pledge:
        async with self.session_factory() as db:
            try:
                async with db.begin():
                    pledge = await self._load_pledge(db, claim.pledge_id)
                    owner = await self._load_owner(db, pledge)

                    if owner.email == claim.email:
                        raise AlreadyOwner("pledge already belongs to the claiming email")
                    if owner.verified:
                        raise CannotClaimVerified("cannot claim pledges of verified users")

                    if auth.is_authenticated:
                        if auth.email != claim.email:
                            raise EmailMismatch(
                                "logged in users can only claim pledges to themselves"
                            )
                        user = await user_service.get_session_user(db, auth)
                        pledge.user_id = user.id
                    else:
                        await user_service.change_email(db, owner, claim.email)
                    await db.flush()
            except LedgerError as e:
                logging.info("reclaimPledge rejected (%s): %s", type(e).__name__, e)
                raise

        logging.info("Pledge %s reclaimed for %s", pledge.id, claim.email)
        return pledge

    async def pledges_for(self, auth: AuthState) -> List[Pledge]:
        if not auth.is_authenticated:
            return []
        async with self.session_factory() as db:
            result = await db.execute(
                select(Pledge).filter_by(user_id=auth.user_id).order_by(Pledge.created_at)
            )
            return list(result.scalars().all())

    async def submit_question(self, auth: AuthState, question: str) -> Dict[str, bool]:
        if not auth.is_authenticated:
            raise Unauthorized("login required")
        async with self.session_factory() as db:
            user = await user_service.get_session_user(db, auth)

        to = self.settings.questions_mail_to_address
        if self.mailer is None or not to:
            logging.warning("Question from %s dropped: no questions mailbox configured", user.email)
        else:
            await self.mailer.send(
                to=to,
                from_=user.email,
                subject="new (FA)Question asked!",
                text=question,
            )
        return {"success": True}

    async def _load_pledge(self, db: AsyncSession, pledge_id: str) -> Pledge:
        result = await db.execute(select(Pledge).filter_by(id=pledge_id))
        pledge = result.scalars().first()
        if not pledge:
            raise NotFound(f"pledge ({pledge_id}) not found")
        return pledge

    async def _load_owner(self, db: AsyncSession, pledge: Pledge) -> User:
        user = await user_service.get_user(db, pledge.user_id)
        if not user:
            raise Inconsistent(f"user ({pledge.user_id}) of pledge {pledge.id} not found")
        return user

    async def _report_mismatch(self, settlement: Settlement) -> None:
        mismatch = settlement.mismatch
        logging.warning(
            "Amount mismatch on payment %s: %s", settlement.payment.id, mismatch
        )
        if self.alerts is not None:
            await self.alerts.send(
                f"⚠️ Payment {settlement.payment.id} ({settlement.payment.method}): "
                f"paid {mismatch.paid}, pledge {mismatch.pledge_id} expects {mismatch.expected}"
            )
