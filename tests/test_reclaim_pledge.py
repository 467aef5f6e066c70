import asyncio

import pytest

from conftest import add_user, fetch_all
from ledger.errors import AlreadyOwner, CannotClaimVerified, EmailMismatch, EmailTaken
from ledger.models.pledge import Pledge
from ledger.models.user import User
from ledger.schemas import ANONYMOUS, AuthState, PledgeClaimInput, PledgeInput


def submit(service, catalog, email="typo@x.com"):
    pledge_input = PledgeInput(
        options=[{"template_id": catalog.option_id, "amount": 2}],
        total=1000,
        user={"email": email, "name": "Anna"},
    )
    return asyncio.run(service.submit(pledge_input, ANONYMOUS))


def reclaim(service, pledge_id, email, auth=ANONYMOUS):
    return asyncio.run(
        service.reclaim(PledgeClaimInput(pledge_id=pledge_id, email=email), auth)
    )


def test_anonymous_reclaim_fixes_email_in_place(service, catalog, session_factory):
    pledge = submit(service, catalog)

    reclaimed = reclaim(service, pledge.id, "anna@x.com")

    assert reclaimed.user_id == pledge.user_id
    [user] = fetch_all(session_factory, User, id=pledge.user_id)
    assert user.email == "anna@x.com"
    assert fetch_all(session_factory, User, email="typo@x.com") == []


def test_reclaim_to_current_owner(service, catalog):
    pledge = submit(service, catalog)

    with pytest.raises(AlreadyOwner):
        reclaim(service, pledge.id, "typo@x.com")


def test_pledges_of_verified_users_cannot_be_claimed(service, catalog, session_factory):
    owner = add_user(session_factory, "owner@x.com", verified=True)
    pledge_input = PledgeInput(
        options=[{"template_id": catalog.option_id, "amount": 2}], total=1000
    )
    pledge = asyncio.run(
        service.submit(pledge_input, AuthState(user_id=owner.id, email=owner.email))
    )

    with pytest.raises(CannotClaimVerified):
        reclaim(service, pledge.id, "thief@x.com")


def test_signed_in_user_claims_only_for_own_email(service, catalog, session_factory):
    pledge = submit(service, catalog)
    me = add_user(session_factory, "me@x.com", verified=True)
    auth = AuthState(user_id=me.id, email=me.email)

    with pytest.raises(EmailMismatch):
        reclaim(service, pledge.id, "someone@x.com", auth=auth)

    reclaimed = reclaim(service, pledge.id, "me@x.com", auth=auth)

    assert reclaimed.user_id == me.id
    [stored] = fetch_all(session_factory, Pledge, id=pledge.id)
    assert stored.user_id == me.id


def test_anonymous_reclaim_to_taken_email(service, catalog, session_factory):
    pledge = submit(service, catalog)
    add_user(session_factory, "anna@x.com")

    with pytest.raises(EmailTaken):
        reclaim(service, pledge.id, "anna@x.com")

    [user] = fetch_all(session_factory, User, id=pledge.user_id)
    assert user.email == "typo@x.com"
