from typing import Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ledger.config import Settings
from ledger.payments.base import PaymentProvider
from ledger.payments.paymentslip import PaymentSlipProvider
from ledger.payments.paypal import PayPalClient, PayPalProvider
from ledger.payments.postfinance import PostFinanceProvider
from ledger.payments.stripe_gateway import StripeGateway, StripeProvider


def build_providers(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    stripe_gateway: Optional[StripeGateway] = None,
    paypal_client: Optional[PayPalClient] = None,
) -> Dict[str, PaymentProvider]:
    """All supported payment methods, keyed by method name."""
    providers = [
        PaymentSlipProvider(),
        StripeProvider(
            stripe_gateway or StripeGateway(settings.stripe_secret_key),
            session_factory,
            settings.currency,
        ),
        PostFinanceProvider(settings.pf_sha_out_secret),
        PayPalProvider(
            paypal_client
            or PayPalClient(
                settings.paypal_url,
                settings.paypal_user,
                settings.paypal_pwd,
                settings.paypal_signature,
                timeout=settings.http_timeout,
            )
        ),
    ]
    return {provider.method: provider for provider in providers}
