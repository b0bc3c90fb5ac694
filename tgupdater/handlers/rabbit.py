from tgupdater.clients.rabbit import RabbitProducerClient
from tgupdater.metrics import RABBITMQ_MESSAGES_ERROR, RABBITMQ_MESSAGES_SENT
from tgupdater.schemas.update import RawUpdate


class RabbitForwardHandler:
    """Публикует содержимое апдейта в очередь RabbitMQ"""

    def __init__(self, publisher: RabbitProducerClient, queue: str):
        self.publisher = publisher
        self.queue = queue
        self.__name__ = f"rabbit:{queue}"

    async def __call__(self, update: RawUpdate):
        try:
            await self.publisher.send(update.payload, self.queue)
        except Exception:
            RABBITMQ_MESSAGES_ERROR.labels(queue=self.queue).inc()
            raise
        RABBITMQ_MESSAGES_SENT.labels(queue=self.queue).inc()
