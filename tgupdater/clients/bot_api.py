import json
from typing import Any, Dict, List, Mapping, Optional

import httpx

from tgupdater.clients.base_client import BaseBotClient
from tgupdater.exceptions.api import BotApiError, TransportError
from tgupdater.logger import logger
from tgupdater.metrics import get_token_suffix, metrics_middleware
from tgupdater.schemas.response import ResponseEnvelope
from tgupdater.schemas.user import BotUser
from tgupdater.schemas.webhook import WebhookInfo


class BotApiClient(BaseBotClient):
    """
    Слой запросов к Bot API.
    Принимает имя метода и набор параметров, возвращает разобранный ответ
    {ok, result, description}. Сетевые ошибки и неразбираемые ответы
    поднимаются как TransportError, ok=false возвращается как есть.
    """

    def __init__(
        self,
        token: str,
        api_url: str = "https://api.telegram.org",
        request_timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token
        self.token_suffix = get_token_suffix(self.token)

        self.api_url = api_url.rstrip("/")
        self.request_timeout = request_timeout
        self._transport = transport
        self.client: Optional[httpx.AsyncClient] = None

        self.request = metrics_middleware(token_suffix=self.token_suffix)(
            self._request
        )

    @property
    def base_url(self) -> str:
        return f"{self.api_url}/bot{self.token}/"

    async def create_client(self):
        if self.client is None:
            self.client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.request_timeout,
                transport=self._transport,
            )
            logger.info(f"Клиент Bot API создан для бота ...{self.token_suffix}")

    async def close_client(self):
        if self.client:
            await self.client.aclose()
            self.client = None
            logger.info("HTTPX клиент закрыт")

    @staticmethod
    def encode_params(params: Optional[Mapping[str, Any]]) -> Dict[str, str]:
        """Строки передаются как есть, остальное - в JSON. None отбрасываются"""
        encoded = {}
        for key, value in (params or {}).items():
            if value is None:
                continue
            encoded[key] = value if isinstance(value, str) else json.dumps(value)
        return encoded

    async def _request(
        self,
        method: str,
        params: Optional[Mapping[str, Any]] = None,
        files: Optional[Mapping[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> ResponseEnvelope:
        if self.client is None:
            await self.create_client()

        try:
            response = await self.client.post(
                method,
                data=self.encode_params(params),
                files=files,
                timeout=timeout if timeout is not None else self.request_timeout,
            )
        except httpx.HTTPError as e:
            logger.debug(f"Transport error in {method}: {e!r}")
            raise TransportError(f"{method}: {e!r}") from e

        try:
            return ResponseEnvelope.model_validate(response.json())
        except ValueError as e:
            raise TransportError(
                f"{method}: malformed response, HTTP {response.status_code}"
            ) from e

    async def call(
        self,
        method: str,
        params: Optional[Mapping[str, Any]] = None,
        files: Optional[Mapping[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """Выполняет метод и возвращает result, при ok=false поднимает BotApiError"""
        response = await self.request(method, params, files=files, timeout=timeout)
        if not response.ok:
            raise BotApiError(response.description, response.error_code)
        return response.result

    async def get_updates(
        self,
        offset: int = 0,
        timeout: int = 0,
        limit: Optional[int] = None,
        allowed_updates: Optional[List[str]] = None,
    ) -> ResponseEnvelope:
        params = {
            "offset": offset,
            "timeout": timeout,
            "limit": limit,
            "allowed_updates": allowed_updates,
        }
        # long polling держит соединение timeout секунд
        return await self.request(
            "getUpdates", params, timeout=timeout + self.request_timeout
        )

    async def get_me(self) -> BotUser:
        return BotUser.model_validate(await self.call("getMe"))

    async def delete_webhook(self, drop_pending_updates: bool = False) -> bool:
        params = {"drop_pending_updates": True} if drop_pending_updates else None
        return bool(await self.call("deleteWebhook", params))

    async def set_webhook(
        self,
        url: str,
        max_connections: Optional[int] = None,
        allowed_updates: Optional[List[str]] = None,
        secret_token: Optional[str] = None,
    ) -> bool:
        params = {
            "url": url,
            "max_connections": max_connections,
            "allowed_updates": allowed_updates if allowed_updates is not None else [],
            "secret_token": secret_token,
        }
        return bool(await self.call("setWebhook", params))

    async def get_webhook_info(self) -> WebhookInfo:
        return WebhookInfo.model_validate(await self.call("getWebhookInfo") or {})
