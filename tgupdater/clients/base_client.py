from abc import ABC, abstractmethod
from typing import List, Optional

from tgupdater.schemas.response import ResponseEnvelope
from tgupdater.schemas.user import BotUser
from tgupdater.schemas.webhook import WebhookInfo


class BaseBotClient(ABC):
    token: str
    token_suffix: str

    @abstractmethod
    async def create_client(self):
        pass

    @abstractmethod
    async def close_client(self):
        pass

    @abstractmethod
    async def get_updates(
        self,
        offset: int = 0,
        timeout: int = 0,
        limit: Optional[int] = None,
        allowed_updates: Optional[List[str]] = None,
    ) -> ResponseEnvelope:
        pass

    @abstractmethod
    async def get_me(self) -> BotUser:
        pass

    @abstractmethod
    async def delete_webhook(self, drop_pending_updates: bool = False) -> bool:
        pass

    @abstractmethod
    async def set_webhook(
        self,
        url: str,
        max_connections: Optional[int] = None,
        allowed_updates: Optional[List[str]] = None,
        secret_token: Optional[str] = None,
    ) -> bool:
        pass

    @abstractmethod
    async def get_webhook_info(self) -> WebhookInfo:
        pass
