"""Runtime settings read once from the environment (``.env`` supported)."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent


@dataclass(frozen=True)
class Settings:
    database_url: str = f"sqlite+aiosqlite:///{BASE_DIR / 'db' / 'database.db'}"
    currency: str = "chf"
    http_timeout: float = 15.0

    # Stripe (card gateway)
    stripe_secret_key: Optional[str] = None

    # PostFinance (card-network redirect)
    pf_sha_out_secret: str = ""

    # PayPal (redirect + server-to-server confirmation)
    paypal_url: str = "https://api-3t.paypal.com/nvp"
    paypal_user: Optional[str] = None
    paypal_pwd: Optional[str] = None
    paypal_signature: Optional[str] = None

    # Mailgun
    mailgun_domain: Optional[str] = None
    mailgun_api_key: Optional[str] = None
    mail_from_address: str = "noreply@example.com"
    questions_mail_to_address: Optional[str] = None

    # Telegram operator alerts
    telegram_bot_token: Optional[str] = None
    operator_chat_id: Optional[int] = None

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "Settings":
        load_dotenv(dotenv_path=env_file)
        chat_id = os.getenv("OPERATOR_CHAT_ID")
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            currency=os.getenv("CURRENCY", cls.currency),
            http_timeout=float(os.getenv("HTTP_TIMEOUT", cls.http_timeout)),
            stripe_secret_key=os.getenv("STRIPE_SECRET_KEY"),
            pf_sha_out_secret=os.getenv("PF_SHA_OUT_SECRET", ""),
            paypal_url=os.getenv("PAYPAL_URL", cls.paypal_url),
            paypal_user=os.getenv("PAYPAL_USER"),
            paypal_pwd=os.getenv("PAYPAL_PWD"),
            paypal_signature=os.getenv("PAYPAL_SIGNATURE"),
            mailgun_domain=os.getenv("MAILGUN_DOMAIN"),
            mailgun_api_key=os.getenv("MAILGUN_API_KEY"),
            mail_from_address=os.getenv("MAIL_FROM_ADDRESS", cls.mail_from_address),
            questions_mail_to_address=os.getenv("QUESTIONS_MAIL_TO_ADDRESS"),
            telegram_bot_token=(
                os.getenv("TELEGRAM_BOT_TOKEN")
                or os.getenv("BOT_TOKEN")
            ),
            operator_chat_id=int(chat_id) if chat_id else None,
        )
