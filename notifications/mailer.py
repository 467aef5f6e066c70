"""Outgoing mail through the Mailgun HTTP API."""

import logging
from typing import Optional

import httpx

MAILGUN_API = "https://api.mailgun.net/v3"


class Mailer:
    def __init__(
        self,
        domain: Optional[str],
        api_key: Optional[str],
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.domain = domain
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    async def send(self, to: str, from_: str, subject: str, text: str) -> bool:
        """Send one plain-text mail. Failures are logged, not raised."""
        if not self.domain or not self.api_key:
            logging.warning("Mail to %s not sent: MAILGUN_DOMAIN/MAILGUN_API_KEY missing", to)
            return False
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.post(
                    f"{MAILGUN_API}/{self.domain}/messages",
                    auth=("api", self.api_key),
                    data={"to": to, "from": from_, "subject": subject, "text": text},
                )
                response.raise_for_status()
        except httpx.HTTPError:
            logging.exception("Mailgun delivery to %s failed", to)
            return False
        logging.info("Mail '%s' sent to %s", subject, to)
        return True
