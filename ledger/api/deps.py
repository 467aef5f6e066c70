from typing import Optional

from fastapi import Header, Request

from ledger.schemas import AuthState
from ledger.services.pledge_service import PledgeService


async def get_db(request: Request):
    async with request.app.state.session_factory() as db:
        yield db


def get_pledge_service(request: Request) -> PledgeService:
    return request.app.state.pledge_service


def get_auth_state(
    x_user_id: Optional[str] = Header(None),
    x_user_email: Optional[str] = Header(None),
) -> AuthState:
    """Identity as forwarded by the session layer in front of this service."""
    if not x_user_id:
        return AuthState()
    return AuthState(user_id=x_user_id, email=x_user_email)
