from typing import Optional

from tgupdater.clients.rabbit import RabbitProducerClient
from tgupdater.config import Settings
from tgupdater.logger import logger


async def get_rabbit_client(settings: Settings) -> RabbitProducerClient:
    client = RabbitProducerClient(
        url=settings.rabbit.RABBIT_URL.get_secret_value(),
        max_retries=settings.rabbit.RABBITMQ_MAX_RETRIES,
        backoff_sec=settings.rabbit.RABBITMQ_BACKOFF_SEC,
    )
    await client.start()
    return client


async def on_startup(settings: Settings) -> Optional[RabbitProducerClient]:
    if not settings.rabbit.RABBITMQ_ENABLED:
        logger.info("RabbitMQ выключен, апдейты обрабатываются только локально")
        return None

    logger.info("Инициализация очередей в RabbitMQ...")
    client = await get_rabbit_client(settings)
    await client.declare_queue(settings.rabbit.RABBITMQ_UPDATES_QUEUE)
    return client
