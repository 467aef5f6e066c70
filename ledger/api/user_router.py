from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ledger.api.deps import get_auth_state, get_db
from ledger.schemas import AddressInput, AuthState
from ledger.services import user_service

router = APIRouter()


@router.get("/me")
async def me(auth: AuthState = Depends(get_auth_state), db: AsyncSession = Depends(get_db)):
    if not auth.is_authenticated:
        return None
    user = await user_service.get_session_user(db, auth)
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "verified": user.verified,
    }


@router.put("/me/address")
async def update_address(
    address: AddressInput,
    auth: AuthState = Depends(get_auth_state),
    db: AsyncSession = Depends(get_db),
):
    """Create or overwrite the signed-in user's postal address."""
    stored = await user_service.update_address(db, auth, address)
    if stored is None:
        return None
    return {"id": stored.id, **address.model_dump()}
