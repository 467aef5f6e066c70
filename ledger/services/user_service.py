"""Utility functions for working with :class:`User` via ``AsyncSession``.

Callers own the transaction; only ``update_address`` opens its own.
"""

import logging
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ledger.errors import (
    EmailTaken,
    IdentityConflict,
    IdentityRequired,
    Inconsistent,
    Unauthorized,
)
from ledger.models.user import Address, User
from ledger.schemas import AddressInput, AuthState, PledgeUserInput


async def get_user(db: AsyncSession, user_id: str):
    result = await db.execute(select(User).filter_by(id=user_id))
    return result.scalars().first()


async def get_user_by_email(db: AsyncSession, email: str):
    result = await db.execute(select(User).filter_by(email=email))
    return result.scalars().first()


async def get_session_user(db: AsyncSession, auth: AuthState) -> User:
    if not auth.is_authenticated:
        raise Unauthorized("login required")
    user = await get_user(db, auth.user_id)
    if not user:
        raise Inconsistent(f"session user ({auth.user_id}) not found")
    return user


async def resolve_pledge_user(
    db: AsyncSession, auth: AuthState, claimed: Optional[PledgeUserInput]
) -> User:
    """Find the user that will own a new pledge.

    Signed-in callers own their pledges and must not name another user.
    Anonymous callers get a placeholder (unverified) user for their email;
    an existing placeholder is reused, a verified one is off limits.
    """
    if auth.is_authenticated:
        if claimed is not None:
            raise IdentityConflict("logged in users must not provide pledge.user")
        return await get_session_user(db, auth)

    if claimed is None:
        raise IdentityRequired("pledge must provide a user if not logged in")

    user = await get_user_by_email(db, claimed.email)
    if user:
        if user.verified:
            raise EmailTaken(
                "a user with the email address pledge.user.email already exists, login!"
            )
        user.name = claimed.name
        return user

    user = User(email=claimed.email, name=claimed.name, verified=False)
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as e:
        # Параллельный запрос уже создал пользователя с этим email
        logging.info("Concurrent placeholder insert for %s rejected", claimed.email)
        raise EmailTaken("this email address is being used by another pledge") from e
    return user


async def change_email(db: AsyncSession, user: User, email: str) -> None:
    user.email = email
    try:
        await db.flush()
    except IntegrityError as e:
        raise EmailTaken(f"a user with the email address {email} already exists") from e


async def update_address(db: AsyncSession, auth: AuthState, address: AddressInput):
    """Attach a postal address to the signed-in user, or overwrite theirs."""
    async with db.begin():
        user = await get_session_user(db, auth)
        values = address.model_dump()
        if not user.address_id:
            new_address = Address(**values)
            db.add(new_address)
            await db.flush()
            user.address_id = new_address.id
            return new_address

        # Результат UPDATE не проверяется: пропавший адрес молча игнорируется
        await db.execute(
            update(Address).where(Address.id == user.address_id).values(**values)
        )
    return await db.get(Address, user.address_id, populate_existing=True)
