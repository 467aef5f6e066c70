from fastapi import APIRouter, Depends

from ledger.api.deps import get_auth_state, get_pledge_service
from ledger.models.pledge import Pledge
from ledger.schemas import (
    AuthState,
    PaymentInput,
    PledgeClaimInput,
    PledgeInput,
    QuestionInput,
)
from ledger.services.pledge_service import PledgeService

router = APIRouter()


def pledge_to_dict(pledge: Pledge) -> dict:
    return {
        "id": pledge.id,
        "user_id": pledge.user_id,
        "package_id": pledge.package_id,
        "total": pledge.total,
        "donation": pledge.donation,
        "reason": pledge.reason,
        "status": pledge.status,
        "options": [
            {
                "id": f"{plo.pledge_id}-{plo.template_id}",
                "template_id": plo.template_id,
                "amount": plo.amount,
                "price": plo.price,
            }
            for plo in pledge.options
        ],
    }


@router.get("/pledges")
async def my_pledges(
    auth: AuthState = Depends(get_auth_state),
    service: PledgeService = Depends(get_pledge_service),
):
    return [pledge_to_dict(p) for p in await service.pledges_for(auth)]


@router.post("/pledges")
async def submit_pledge(
    pledge: PledgeInput,
    auth: AuthState = Depends(get_auth_state),
    service: PledgeService = Depends(get_pledge_service),
):
    return pledge_to_dict(await service.submit(pledge, auth))


@router.post("/pledges/pay")
async def pay_pledge(
    payment: PaymentInput,
    auth: AuthState = Depends(get_auth_state),
    service: PledgeService = Depends(get_pledge_service),
):
    receipt = await service.pay(payment, auth)
    return {
        **pledge_to_dict(receipt.pledge),
        "payment_id": receipt.payment.id,
        # Расхождение суммы не ошибка для клиента: платёж уже проведён
        "amount_mismatch": receipt.mismatch is not None,
    }


@router.post("/pledges/reclaim")
async def reclaim_pledge(
    claim: PledgeClaimInput,
    auth: AuthState = Depends(get_auth_state),
    service: PledgeService = Depends(get_pledge_service),
):
    return pledge_to_dict(await service.reclaim(claim, auth))


@router.post("/questions")
async def submit_question(
    body: QuestionInput,
    auth: AuthState = Depends(get_auth_state),
    service: PledgeService = Depends(get_pledge_service),
):
    return await service.submit_question(auth, body.question)
