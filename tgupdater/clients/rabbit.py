from faststream.rabbit import RabbitBroker, RabbitQueue
import asyncio

from tgupdater.logger import logger
from tgupdater.exceptions.rabbit import RabbitBrokerNotStartedError


class RabbitProducerClient:
    def __init__(self, url: str, max_retries: int, backoff_sec: int):
        self.max_retries = max_retries
        self.backoff_sec = backoff_sec

        try:
            self.broker = RabbitBroker(url=url)
        except Exception as e:
            logger.error(f"Ошибка при подключении к RabbitMQ: {str(e)}")
            raise

        self._is_started = False

    async def start(self):
        if not self._is_started:
            try:
                await self.broker.start()
                self._is_started = True
            except Exception as e:
                logger.exception(f"Ошибка при старте RabbitBroker: {e}")
                raise

    async def stop(self):
        if self._is_started:
            await self.broker.stop()
            self._is_started = False

    async def declare_queue(self, name: str):
        await self.broker.declare_queue(RabbitQueue(name, durable=True))
        logger.info(f"Очередь {name} объявлена")

    async def send(self, message: dict, queue: str):
        if not self._is_started:
            logger.error("Ошибка при RabbitProducerClient send: брокер не запущен")
            raise RabbitBrokerNotStartedError

        for attempt in range(1, self.max_retries + 1):
            try:
                await self.broker.publish(message, queue=queue)
                logger.debug(f"Отправлено сообщение в queue {queue}")
                break
            except Exception as e:
                logger.warning(
                    f"Ошибка при попытке {attempt} отправки сообщения в queue {queue}: {str(e)}"
                )

                if attempt < self.max_retries:
                    await asyncio.sleep(self.backoff_sec)
                else:
                    logger.error(
                        f"Не удалось отправить сообщение в queue {queue} после {self.max_retries} попыток"
                    )
                    raise
