import hmac
from typing import Optional

import uvicorn
from fastapi import FastAPI, Header, HTTPException, Request
from prometheus_client import make_asgi_app

from tgupdater.channel import UpdateChannel
from tgupdater.enums.acquisition import SkipReason, UpdateSource
from tgupdater.exceptions.api import MalformedUpdateError
from tgupdater.exceptions.updater import ChannelClosedError
from tgupdater.logger import logger
from tgupdater.metrics import UPDATES_RECEIVED, UPDATES_SKIPPED, registry
from tgupdater.schemas.update import RawUpdate
from tgupdater.schemas.webhook import Webhook


def create_webhook_app(channel: UpdateChannel, webhook: Webhook) -> FastAPI:
    """
    Приложение с одним эндпоинтом: тело каждого запроса - ровно один апдейт,
    который без изменений уходит в канал. Offset в этом режиме не ведётся.
    """
    app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)
    secret = webhook.secret_token.get_secret_value() if webhook.secret_token else ""

    @app.post(webhook.route_path)
    async def receive_update(
        request: Request,
        x_telegram_bot_api_secret_token: Optional[str] = Header(default=None),
    ):
        if secret and not hmac.compare_digest(
            x_telegram_bot_api_secret_token or "", secret
        ):
            logger.warning("Запрос на вебхук с неверным secret token")
            raise HTTPException(status_code=401, detail="Invalid webhook secret")

        body = await request.body()
        try:
            update = RawUpdate.from_bytes(body)
        except MalformedUpdateError as e:
            UPDATES_SKIPPED.labels(
                source=UpdateSource.WEBHOOK.value, reason=SkipReason.MALFORMED.value
            ).inc()
            logger.error(f"Битый апдейт на вебхуке: {e}")
            raise HTTPException(status_code=400, detail="Invalid update payload")

        try:
            channel.put(update)
        except ChannelClosedError as e:
            logger.warning(f"Апдейт {update.update_id} не принят: {e}")
            raise HTTPException(status_code=503, detail="Updater is stopping")

        UPDATES_RECEIVED.labels(source=UpdateSource.WEBHOOK.value).inc()
        return {"ok": True}

    app.mount("/metrics", make_asgi_app(registry=registry))
    return app


class WebhookServer:
    def __init__(self, app: FastAPI, webhook: Webhook):
        self.app = app
        self.webhook = webhook
        self.config = uvicorn.Config(
            app,
            host=webhook.serve or "0.0.0.0",
            port=webhook.serve_port or 443,
            log_config=None,
            access_log=False,
        )
        self.server = uvicorn.Server(self.config)

    async def serve(self):
        logger.info(
            f"Слушаем вебхук на {self.webhook.listen_url}{self.webhook.route_path}"
        )
        await self.server.serve()

    def stop(self):
        self.server.should_exit = True
