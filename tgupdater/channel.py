import asyncio
from typing import Optional

from tgupdater.exceptions.updater import ChannelClosedError
from tgupdater.metrics import CHANNEL_SIZE
from tgupdater.schemas.update import RawUpdate

_CLOSED = object()


class UpdateChannel:
    """
    Неограниченная упорядоченная очередь между получением апдейтов и диспетчером.
    Запись никогда не блокируется и ничего не теряет, читатель один.
    """

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def qsize(self) -> int:
        return self._queue.qsize()

    def put(self, update: RawUpdate) -> None:
        if self._closed:
            raise ChannelClosedError(f"channel closed, update {update.update_id} rejected")
        self._queue.put_nowait(update)
        CHANNEL_SIZE.inc()

    async def get(self) -> Optional[RawUpdate]:
        """Следующий апдейт или None, если канал закрыт и вычитан"""
        item = await self._queue.get()
        if item is _CLOSED:
            # оставляем маркер для следующих вызовов get
            self._queue.put_nowait(_CLOSED)
            return None
        CHANNEL_SIZE.dec()
        return item

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_CLOSED)

    def __aiter__(self):
        return self

    async def __anext__(self) -> RawUpdate:
        update = await self.get()
        if update is None:
            raise StopAsyncIteration
        return update
