import logging
from contextlib import asynccontextmanager
from typing import Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ledger.api import crowdfunding_router, pledge_router, user_router
from ledger.config import Settings
from ledger.db.session import create_session_factory, init_models
from ledger.errors import LedgerError
from ledger.payments.base import PaymentProvider
from ledger.payments.registry import build_providers
from ledger.services.pledge_service import PledgeService
from notifications.mailer import Mailer
from notifications.telegram_alerts import OperatorAlerts


def create_app(
    settings: Optional[Settings] = None,
    providers: Optional[Dict[str, PaymentProvider]] = None,
    mailer: Optional[Mailer] = None,
    alerts: Optional[OperatorAlerts] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    engine, session_factory = create_session_factory(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await init_models(engine)
        yield
        await engine.dispose()

    app = FastAPI(title="Crowdfunding Pledge Ledger", lifespan=lifespan)
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.pledge_service = PledgeService(
        session_factory,
        providers if providers is not None else build_providers(settings, session_factory),
        settings,
        mailer=mailer
        or Mailer(
            settings.mailgun_domain,
            settings.mailgun_api_key,
            timeout=settings.http_timeout,
        ),
        alerts=alerts or OperatorAlerts(settings.telegram_bot_token, settings.operator_chat_id),
    )

    @app.exception_handler(LedgerError)
    async def handle_ledger_error(request: Request, exc: LedgerError):
        if exc.public:
            logging.info("%s %s -> %s: %s", request.method, request.url.path, type(exc).__name__, exc)
        else:
            # Подробности только в лог, клиенту общее сообщение
            logging.warning(
                "%s %s -> %s: %s", request.method, request.url.path, type(exc).__name__, exc
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": type(exc).__name__, "detail": exc.client_message},
        )

    app.include_router(pledge_router.router, prefix="/api")
    app.include_router(crowdfunding_router.router, prefix="/api")
    app.include_router(user_router.router, prefix="/api")
    return app


logging.basicConfig(level=logging.INFO)
app = create_app()
