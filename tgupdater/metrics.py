from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    Info,
    CollectorRegistry,
)
import asyncio
from functools import wraps

# Создаём свой registry для изоляции метрик
registry = CollectorRegistry()

# Запросы к Bot API
REQUESTS_TOTAL = Counter(
    "bot_api_requests_total",
    "Общее количество запросов к Bot API",
    ["token_suffix", "method"],
    registry=registry,
)

REQUESTS_IN_PROGRESS = Gauge(
    "bot_api_requests_in_progress",
    "Количество запросов, обрабатываемых в данный момент",
    ["token_suffix"],
    registry=registry,
)

REQUESTS_DURATION = Histogram(
    "bot_api_requests_duration_seconds",
    "Длительность обработки запросов",
    ["token_suffix", "method"],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0],
    registry=registry,
)

REQUESTS_SUCCESS = Counter(
    "bot_api_requests_success_total",
    "Количество запросов, дошедших до API",
    ["token_suffix", "method"],
    registry=registry,
)

REQUESTS_ERROR = Counter(
    "bot_api_requests_error_total",
    "Количество запросов, завершившихся транспортной ошибкой",
    ["token_suffix", "method"],
    registry=registry,
)

# Получение апдейтов
UPDATES_RECEIVED = Counter(
    "updates_received_total",
    "Количество апдейтов, переданных в канал",
    ["source"],
    registry=registry,
)

UPDATES_SKIPPED = Counter(
    "updates_skipped_total",
    "Количество апдейтов, не переданных в канал",
    ["source", "reason"],
    registry=registry,
)

POLLING_ERRORS = Counter(
    "polling_errors_total",
    "Ошибки цикла поллинга",
    ["kind"],
    registry=registry,
)

POLLING_OFFSET = Gauge(
    "polling_offset",
    "Текущий offset поллинга",
    registry=registry,
)

CHANNEL_SIZE = Gauge(
    "update_channel_size",
    "Количество апдейтов, ожидающих диспетчера",
    registry=registry,
)

HANDLER_ERRORS = Counter(
    "dispatcher_handler_errors_total",
    "Ошибки обработчиков апдейтов",
    ["handler"],
    registry=registry,
)

# Метрики очереди RabbitMQ
RABBITMQ_MESSAGES_SENT = Counter(
    "rabbitmq_messages_sent_total",
    "Количество отправленных сообщений в RabbitMQ",
    ["queue"],
    registry=registry,
)

RABBITMQ_MESSAGES_ERROR = Counter(
    "rabbitmq_messages_error_total",
    "Количество ошибок при отправке в RabbitMQ",
    ["queue"],
    registry=registry,
)

SERVICE_INFO = Info("updater_service_info", "Информация о сервисе", registry=registry)


def get_token_suffix(token: str) -> str:
    """Получает последние 4 символа токена для меток"""
    return token[-4:] if token and len(token) >= 4 else "unknown"


def metrics_middleware(token_suffix: str):
    """Декоратор для сбора метрик запросов. Первый аргумент функции - имя метода API"""

    def decorator(func):
        @wraps(func)
        async def wrapper(method, *args, **kwargs):
            REQUESTS_IN_PROGRESS.labels(token_suffix=token_suffix).inc()

            start_time = asyncio.get_running_loop().time()

            try:
                result = await func(method, *args, **kwargs)
                REQUESTS_SUCCESS.labels(
                    token_suffix=token_suffix, method=method
                ).inc()
                return result
            except Exception:
                REQUESTS_ERROR.labels(token_suffix=token_suffix, method=method).inc()
                raise
            finally:
                REQUESTS_IN_PROGRESS.labels(token_suffix=token_suffix).dec()

                duration = asyncio.get_running_loop().time() - start_time
                REQUESTS_DURATION.labels(
                    token_suffix=token_suffix, method=method
                ).observe(duration)

                REQUESTS_TOTAL.labels(token_suffix=token_suffix, method=method).inc()

        return wrapper

    return decorator
