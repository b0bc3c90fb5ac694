import asyncio
from typing import List, Optional

from pydantic import ValidationError

from tgupdater.channel import UpdateChannel
from tgupdater.clients.base_client import BaseBotClient
from tgupdater.clients.bot_api import BotApiClient
from tgupdater.dispatcher import Dispatcher
from tgupdater.exceptions.api import BotClientError
from tgupdater.exceptions.updater import UpdaterSetupError
from tgupdater.logger import logger
from tgupdater.polling import PollingWorker
from tgupdater.schemas.user import BotUser
from tgupdater.schemas.webhook import Webhook, WebhookInfo
from tgupdater.utils.loop_settings import safe_create_task
from tgupdater.webhook import WebhookServer, create_webhook_app

STOP_GRACE_SEC = 5.0


class Updater:
    """
    Связывает получение апдейтов (поллинг или вебхук) с каналом и диспетчером.
    Режимы взаимоисключающие: запустить можно только один.
    """

    def __init__(
        self,
        client: BaseBotClient,
        channel: Optional[UpdateChannel] = None,
        dispatcher: Optional[Dispatcher] = None,
        poll_timeout: int = 0,
        poll_limit: Optional[int] = None,
        allowed_updates: Optional[List[str]] = None,
        api_error_backoff_sec: float = 1.0,
        max_workers: int = 16,
    ):
        self.client = client
        self.channel = channel or UpdateChannel()
        self.dispatcher = dispatcher or Dispatcher(self.channel, max_workers=max_workers)
        self.poll_timeout = poll_timeout
        self.poll_limit = poll_limit
        self.allowed_updates = allowed_updates
        self.api_error_backoff_sec = api_error_backoff_sec

        self.bot: Optional[BotUser] = None
        self.poller: Optional[PollingWorker] = None
        self.webhook_server: Optional[WebhookServer] = None

        self._acquisition_task: Optional[asyncio.Task] = None
        self._dispatcher_task: Optional[asyncio.Task] = None
        self._stopped = asyncio.Event()

    @classmethod
    async def create(
        cls,
        token: str,
        api_url: str = "https://api.telegram.org",
        request_timeout: float = 10.0,
        **kwargs,
    ) -> "Updater":
        updater = cls(BotApiClient(token, api_url, request_timeout), **kwargs)
        await updater.initialize()
        return updater

    async def initialize(self):
        """Узнаём, кто мы, и снимаем вебхук. Без этого получение апдейтов не стартует"""
        await self.client.create_client()
        try:
            await self._resolve_identity_and_clear_webhook()
        except UpdaterSetupError:
            await self.client.close_client()
            raise

    async def _resolve_identity_and_clear_webhook(self):
        try:
            self.bot = await self.client.get_me()
        except (BotClientError, ValidationError) as e:
            logger.error(f"Не удалось получить данные бота: {e}")
            raise UpdaterSetupError("unable to create new updater") from e
        logger.info(f"Бот авторизован: @{self.bot.username} (id={self.bot.id})")

        try:
            removed = await self.remove_webhook()
        except BotClientError as e:
            raise UpdaterSetupError("failed to remove webhook") from e
        if not removed:
            raise UpdaterSetupError("failed to remove webhook")

    @property
    def is_started(self) -> bool:
        return self._acquisition_task is not None

    async def start_polling(self, clean: bool = False, offset: int = 0):
        self._ensure_not_started()
        self.poller = PollingWorker(
            self.client,
            self.channel,
            offset=offset,
            timeout=self.poll_timeout,
            limit=self.poll_limit,
            allowed_updates=self.allowed_updates,
            clean=clean,
            api_error_backoff_sec=self.api_error_backoff_sec,
        )
        self._start_dispatcher()
        self._acquisition_task = safe_create_task(self.poller.start(), name="polling")

    async def start_clean_polling(self, offset: int = 0):
        await self.start_polling(clean=True, offset=offset)

    async def start_webhook(self, webhook: Webhook):
        self._ensure_not_started()
        app = create_webhook_app(self.channel, webhook)
        self.webhook_server = WebhookServer(app, webhook)
        self._start_dispatcher()
        self._acquisition_task = safe_create_task(
            self.webhook_server.serve(), name="webhook"
        )

    async def remove_webhook(self) -> bool:
        removed = await self.client.delete_webhook()
        logger.info(f"deleteWebhook: {removed}")
        return removed

    async def set_webhook(self, path: str, webhook: Webhook) -> bool:
        url = webhook.url.rstrip("/") + "/" + path.lstrip("/")
        ok = await self.client.set_webhook(
            url,
            max_connections=webhook.max_connections,
            allowed_updates=webhook.allowed_updates,
            secret_token=(
                webhook.secret_token.get_secret_value() if webhook.secret_token else None
            ),
        )
        logger.info(f"setWebhook {url}: {ok}")
        return ok

    async def get_webhook_info(self) -> WebhookInfo:
        return await self.client.get_webhook_info()

    async def idle(self):
        """Блокирует вызывающего, пока апдейтер не остановлен"""
        await self._stopped.wait()

    async def stop(self):
        if self._stopped.is_set():
            return
        logger.warning("Останавливаем получение апдейтов...")

        if self.poller:
            self.poller.stop()
        if self.webhook_server:
            self.webhook_server.stop()

        if self._acquisition_task:
            done, pending = await asyncio.wait(
                {self._acquisition_task}, timeout=STOP_GRACE_SEC
            )
            for task in pending:
                # offset сдвигается только после записи в канал, отмена ничего не теряет
                task.cancel()
            await asyncio.gather(self._acquisition_task, return_exceptions=True)

        self.channel.close()
        if self._dispatcher_task:
            await asyncio.gather(self._dispatcher_task, return_exceptions=True)

        await self.client.close_client()
        self._stopped.set()
        logger.info("Апдейтер остановлен")

    def _ensure_not_started(self):
        if self.is_started:
            raise RuntimeError("updater is already running, polling and webhook are mutually exclusive")

    def _start_dispatcher(self):
        self._dispatcher_task = safe_create_task(self.dispatcher.start(), name="dispatcher")
