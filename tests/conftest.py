import asyncio
import sys
from pathlib import Path
from types import SimpleNamespace
from urllib.parse import parse_qs, urlencode

import httpx
import pytest
from sqlalchemy import func, select
from sqlalchemy.pool import NullPool

sys.path.append(str(Path(__file__).resolve().parents[1]))

from ledger.config import Settings
from ledger.db.session import create_session_factory, init_models
from ledger.errors import ProviderRejected
from ledger.models.catalog import Crowdfunding, Package, PackageOption
from ledger.payments.paypal import PayPalClient
from ledger.payments.registry import build_providers
from ledger.services.pledge_service import PledgeService

PF_SECRET = "Mysecretsig1875!?"


class FakeStripeGateway:
    def __init__(self):
        self.calls = []
        self.decline = False

    async def charge(self, amount, currency, source):
        self.calls.append((amount, currency, source))
        if self.decline:
            raise ProviderRejected("stripe charge failed: Your card was declined.")
        return {
            "id": f"ch_{len(self.calls)}",
            "object": "charge",
            "amount": amount,
            "currency": currency,
            "source": {"id": source, "brand": "Visa", "last4": "4242"},
        }


class FakePayPal:
    """Answers GetTransactionDetails from a dict of tx -> (ACK, AMT)."""

    def __init__(self):
        self.transactions = {}
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        form = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
        self.requests.append(form)
        ack, amount = self.transactions.get(form.get("TRANSACTIONID"), ("Failure", ""))
        return httpx.Response(200, text=urlencode({"ACK": ack, "AMT": amount}))

    def client(self) -> PayPalClient:
        return PayPalClient(
            "https://paypal.test/nvp",
            "user",
            "pwd",
            "sig",
            transport=httpx.MockTransport(self.handler),
        )


class FakeAlerts:
    def __init__(self):
        self.messages = []

    async def send(self, text):
        self.messages.append(text)
        return True


class FakeMailer:
    def __init__(self):
        self.sent = []

    async def send(self, to, from_, subject, text):
        self.sent.append({"to": to, "from": from_, "subject": subject, "text": text})
        return True


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        pf_sha_out_secret=PF_SECRET,
        questions_mail_to_address="questions@example.com",
    )


@pytest.fixture
def session_factory(settings):
    engine, factory = create_session_factory(settings.database_url, poolclass=NullPool)
    asyncio.run(init_models(engine))
    yield factory
    asyncio.run(engine.dispose())


@pytest.fixture
def catalog(session_factory):
    async def seed():
        async with session_factory() as db:
            async with db.begin():
                crowdfunding = Crowdfunding(name="TEST", goal_money=1000000, goal_people=10)
                abo = Package(name="ABO", crowdfunding=crowdfunding)
                other = Package(name="OTHER", crowdfunding=crowdfunding)
                option = PackageOption(
                    package=abo, name="abo", min_amount=1, max_amount=5, price=500
                )
                gift = PackageOption(
                    package=abo,
                    name="gift",
                    min_amount=0,
                    max_amount=2,
                    price=1000,
                    user_price=True,
                    min_user_price=200,
                )
                other_option = PackageOption(
                    package=other, name="other", min_amount=1, max_amount=1, price=300
                )
                db.add_all([crowdfunding, abo, other, option, gift, other_option])
        return SimpleNamespace(
            crowdfunding_id=crowdfunding.id,
            package_id=abo.id,
            option_id=option.id,
            gift_id=gift.id,
            other_option_id=other_option.id,
        )

    return asyncio.run(seed())


@pytest.fixture
def stripe_gateway():
    return FakeStripeGateway()


@pytest.fixture
def paypal():
    return FakePayPal()


@pytest.fixture
def alerts():
    return FakeAlerts()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def service(settings, session_factory, stripe_gateway, paypal, alerts, mailer):
    providers = build_providers(
        settings,
        session_factory,
        stripe_gateway=stripe_gateway,
        paypal_client=paypal.client(),
    )
    return PledgeService(session_factory, providers, settings, mailer=mailer, alerts=alerts)


def count_rows(session_factory, model, **filters):
    async def count():
        async with session_factory() as db:
            result = await db.execute(
                select(func.count()).select_from(model).filter_by(**filters)
            )
            return result.scalar_one()

    return asyncio.run(count())


def fetch_all(session_factory, model, **filters):
    async def fetch():
        async with session_factory() as db:
            result = await db.execute(select(model).filter_by(**filters))
            return list(result.scalars().all())

    return asyncio.run(fetch())


def add_user(session_factory, email, name="Anna", verified=False):
    from ledger.models.user import User

    async def add():
        async with session_factory() as db:
            async with db.begin():
                user = User(email=email, name=name, verified=verified)
                db.add(user)
        return user

    return asyncio.run(add())
