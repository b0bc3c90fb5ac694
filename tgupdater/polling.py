import asyncio
from typing import Any, List, Optional, Tuple

from tgupdater.channel import UpdateChannel
from tgupdater.clients.base_client import BaseBotClient
from tgupdater.enums.acquisition import PollingErrorKind, SkipReason, UpdateSource
from tgupdater.exceptions.api import MalformedUpdateError, TransportError
from tgupdater.logger import logger
from tgupdater.metrics import (
    POLLING_ERRORS,
    POLLING_OFFSET,
    UPDATES_RECEIVED,
    UPDATES_SKIPPED,
)
from tgupdater.schemas.update import RawUpdate


class PollingWorker:
    """
    Цикл getUpdates.

    Единственный владелец offset: после того как пачка целиком положена в канал,
    offset становится равным update_id последнего апдейта + 1. Назад не откатывается.
    Транспортные ошибки повторяются сразу, ошибки API (ok=false) - после паузы.
    """

    def __init__(
        self,
        client: BaseBotClient,
        channel: UpdateChannel,
        offset: int = 0,
        timeout: int = 0,
        limit: Optional[int] = None,
        allowed_updates: Optional[List[str]] = None,
        clean: bool = False,
        api_error_backoff_sec: float = 1.0,
    ):
        self.client = client
        self.channel = channel
        self.offset = offset
        self.timeout = timeout
        self.limit = limit
        self.allowed_updates = allowed_updates
        self.clean = clean
        self.api_error_backoff_sec = api_error_backoff_sec

        self.is_running = False
        self._stop_event = asyncio.Event()

    async def start(self):
        if self._stop_event.is_set():
            logger.info(f"Поллинг бота ...{self.client.token_suffix} остановлен до запуска")
            return

        self.is_running = True
        logger.info(
            f"Бот ...{self.client.token_suffix} начинает поллинг с offset={self.offset}, clean={self.clean}"
        )

        try:
            while self.is_running and not self._stop_event.is_set():
                await self.poll_once()
        finally:
            self.is_running = False
            logger.info(f"Поллинг бота ...{self.client.token_suffix} остановлен")

    def stop(self):
        self.is_running = False
        self._stop_event.set()

    async def poll_once(self) -> int:
        """Один запрос getUpdates. Возвращает количество апдейтов, переданных в канал"""
        try:
            response = await self.client.get_updates(
                offset=self.offset,
                timeout=self.timeout,
                limit=self.limit,
                allowed_updates=self.allowed_updates,
            )
        except TransportError as e:
            POLLING_ERRORS.labels(kind=PollingErrorKind.TRANSPORT.value).inc()
            logger.error(f"unable to getUpdates: {e}")
            # без паузы, только отдаём управление циклу событий
            await asyncio.sleep(0)
            return 0

        if not response.ok:
            await self._on_api_error(response.description)
            return 0

        batch = response.result if response.result is not None else []
        if not isinstance(batch, list):
            await self._on_api_error(
                f"getUpdates returned {type(batch).__name__} instead of a list"
            )
            return 0

        if not batch:
            if self.clean:
                logger.info("Бэклог пуст, clean-режим выключен")
                self.clean = False
            return 0

        updates, last_id = self.decode_batch(batch)
        if last_id is None:
            return 0

        if self.clean:
            # первая непустая пачка только выставляет offset
            self.clean = False
            self._advance(last_id)
            UPDATES_SKIPPED.labels(
                source=UpdateSource.POLLING.value, reason=SkipReason.CLEAN_START.value
            ).inc(len(updates))
            logger.info(
                f"Clean-старт: пропущено {len(updates)} апдейтов, offset={self.offset}"
            )
            return 0

        for update in updates:
            self.channel.put(update)
        UPDATES_RECEIVED.labels(source=UpdateSource.POLLING.value).inc(len(updates))

        # offset двигается только после того, как вся пачка в канале
        self._advance(last_id)
        logger.debug(f"Передано {len(updates)} апдейтов, offset={self.offset}")
        return len(updates)

    def decode_batch(self, batch: List[Any]) -> Tuple[List[RawUpdate], Optional[int]]:
        """
        Превращает сырую пачку в конверты, сохраняя порядок.
        Битые элементы и элементы с неубывающим update_id пропускаются с ошибкой в логе.
        :return: (конверты, update_id последнего принятого конверта или None)
        """
        updates: List[RawUpdate] = []
        last_id: Optional[int] = None

        for item in batch:
            try:
                update = RawUpdate.from_payload(item)
            except MalformedUpdateError as e:
                UPDATES_SKIPPED.labels(
                    source=UpdateSource.POLLING.value, reason=SkipReason.MALFORMED.value
                ).inc()
                logger.error(f"Пропускаем битый апдейт: {e}")
                continue

            floor = self.offset - 1 if last_id is None else last_id
            if update.update_id <= floor:
                UPDATES_SKIPPED.labels(
                    source=UpdateSource.POLLING.value,
                    reason=SkipReason.OUT_OF_ORDER.value,
                ).inc()
                logger.error(
                    f"update_id {update.update_id} не больше предыдущего ({floor}), апдейт пропущен"
                )
                continue

            updates.append(update)
            last_id = update.update_id

        return updates, last_id

    def _advance(self, last_id: int):
        self.offset = last_id + 1
        POLLING_OFFSET.set(self.offset)

    async def _on_api_error(self, description: Optional[str]):
        POLLING_ERRORS.labels(kind=PollingErrorKind.API.value).inc()
        logger.error(f"getUpdates error: {description}")
        logger.info(f"Sleeping for {self.api_error_backoff_sec} second(s)...")
        await self._pause(self.api_error_backoff_sec)

    async def _pause(self, seconds: float):
        """Пауза, которую прерывает stop()"""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass
