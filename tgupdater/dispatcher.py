import asyncio
from typing import Any, Awaitable, Callable, List, Set

from tgupdater.channel import UpdateChannel
from tgupdater.logger import logger
from tgupdater.metrics import HANDLER_ERRORS
from tgupdater.schemas.update import RawUpdate

Handler = Callable[[RawUpdate], Awaitable[Any]]


class Dispatcher:
    """
    Читает канал в порядке поступления и обрабатывает апдейты конкурентно,
    не более max_workers одновременно. Обработчики одного апдейта идут по очереди.
    """

    def __init__(self, channel: UpdateChannel, max_workers: int = 16):
        self.channel = channel
        self.max_workers = max_workers
        self.handlers: List[Handler] = []
        self.is_running = False

        self._semaphore = asyncio.Semaphore(max_workers)
        self._tasks: Set[asyncio.Task] = set()

    def add_handler(self, handler: Handler) -> Handler:
        self.handlers.append(handler)
        return handler

    async def start(self):
        self.is_running = True
        logger.info(f"Диспетчер запущен, обработчиков: {len(self.handlers)}")
        try:
            async for update in self.channel:
                await self._semaphore.acquire()
                task = asyncio.create_task(
                    self._process(update), name=f"update-{update.update_id}"
                )
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)
        finally:
            if self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)
            self.is_running = False
            logger.info("Диспетчер остановлен")

    async def _process(self, update: RawUpdate):
        try:
            if not self.handlers:
                logger.debug(f"Нет обработчиков для апдейта {update.update_id}")
            for handler in self.handlers:
                name = getattr(handler, "__name__", type(handler).__name__)
                try:
                    await handler(update)
                except Exception as e:
                    HANDLER_ERRORS.labels(handler=name).inc()
                    logger.exception(
                        f"Обработчик {name} упал на апдейте {update.update_id}: {e}"
                    )
        finally:
            self._semaphore.release()
