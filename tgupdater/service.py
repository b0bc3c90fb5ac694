from typing import Optional

from prometheus_client import start_http_server

from tgupdater.clients.rabbit import RabbitProducerClient
from tgupdater.config import Settings
from tgupdater.exceptions.updater import UpdaterSetupError
from tgupdater.handlers.rabbit import RabbitForwardHandler
from tgupdater.logger import logger
from tgupdater.metrics import SERVICE_INFO, registry
from tgupdater.schemas.webhook import Webhook
from tgupdater.updater import Updater


def build_webhook(settings: Settings) -> Webhook:
    secret = settings.webhook.WEBHOOK_SECRET_TOKEN
    return Webhook(
        serve=settings.webhook.WEBHOOK_SERVE,
        serve_path=settings.webhook.WEBHOOK_SERVE_PATH,
        serve_port=settings.webhook.WEBHOOK_SERVE_PORT,
        url=settings.webhook.WEBHOOK_URL,
        max_connections=settings.webhook.WEBHOOK_MAX_CONNECTIONS,
        allowed_updates=settings.webhook.WEBHOOK_ALLOWED_UPDATES,
        secret_token=secret if secret.get_secret_value() else None,
    )


async def start_updater(
    settings: Settings, publisher: Optional[RabbitProducerClient] = None
) -> Updater:
    token = settings.bot.BOT_TOKEN.get_secret_value()
    if not token:
        raise UpdaterSetupError("BOT_TOKEN is not set")

    updater = await Updater.create(
        token,
        api_url=settings.bot.BOT_API_URL,
        request_timeout=settings.bot.BOT_REQUEST_TIMEOUT,
        poll_timeout=settings.polling.POLLING_TIMEOUT,
        poll_limit=settings.polling.POLLING_LIMIT,
        allowed_updates=settings.polling.POLLING_ALLOWED_UPDATES or None,
        api_error_backoff_sec=settings.polling.POLLING_API_ERROR_BACKOFF_SEC,
        max_workers=settings.dispatcher.DISPATCHER_MAX_WORKERS,
    )

    if publisher is not None:
        updater.dispatcher.add_handler(
            RabbitForwardHandler(publisher, settings.rabbit.RABBITMQ_UPDATES_QUEUE)
        )

    if settings.webhook.WEBHOOK_ENABLED:
        webhook = build_webhook(settings)
        if not await updater.set_webhook(webhook.serve_path, webhook):
            raise UpdaterSetupError("failed to set webhook")
        await updater.start_webhook(webhook)
        mode = "webhook"
    else:
        if settings.metrics.METRICS_ENABLED:
            start_http_server(settings.metrics.METRICS_PORT, registry=registry)
            logger.info(f"Метрики доступны на порту {settings.metrics.METRICS_PORT}")
        await updater.start_polling(clean=settings.polling.POLLING_CLEAN)
        mode = "polling"

    SERVICE_INFO.info({"mode": mode, "bot": updater.bot.username or str(updater.bot.id)})
    logger.info(f"Апдейтер запущен в режиме {mode}")
    return updater
