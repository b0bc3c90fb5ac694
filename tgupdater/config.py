from typing import List

from pydantic import SecretStr, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from tgupdater.enums.logging import LoggingLevel


def split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class BaseSettingsConfig(BaseSettings):
    """Базовые настройки конфигов"""

    model_config = SettingsConfigDict(
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
    )


class BotSettings(BaseSettingsConfig):
    """Настройки доступа к Bot API"""

    BOT_TOKEN: SecretStr = SecretStr("")
    BOT_API_URL: str = "https://api.telegram.org"
    BOT_REQUEST_TIMEOUT: float = 10.0


class PollingSettings(BaseSettingsConfig):
    """Настройки поллинга"""

    POLLING_TIMEOUT: int = 0
    POLLING_LIMIT: int = 100
    POLLING_CLEAN: bool = False
    POLLING_API_ERROR_BACKOFF_SEC: float = 1.0
    POLLING_ALLOWED_UPDATES_STR: str = ""

    @computed_field
    @property
    def POLLING_ALLOWED_UPDATES(self) -> List[str]:
        return split_csv(self.POLLING_ALLOWED_UPDATES_STR)


class WebhookSettings(BaseSettingsConfig):
    """Настройки вебхука"""

    WEBHOOK_ENABLED: bool = False
    WEBHOOK_URL: str = ""
    WEBHOOK_SERVE: str = "0.0.0.0"
    WEBHOOK_SERVE_PORT: int = 443
    WEBHOOK_SERVE_PATH: str = ""
    WEBHOOK_MAX_CONNECTIONS: int = 40
    WEBHOOK_ALLOWED_UPDATES_STR: str = ""
    WEBHOOK_SECRET_TOKEN: SecretStr = SecretStr("")

    @computed_field
    @property
    def WEBHOOK_ALLOWED_UPDATES(self) -> List[str]:
        return split_csv(self.WEBHOOK_ALLOWED_UPDATES_STR)


class DispatcherSettings(BaseSettingsConfig):
    """Настройки диспетчера апдейтов"""

    DISPATCHER_MAX_WORKERS: int = 16


class RabbitMQSettings(BaseSettingsConfig):
    """Настройки для подключения к RabbitMQ"""

    RABBITMQ_ENABLED: bool = False
    RABBITMQ_HOST: str = "localhost"
    RABBITMQ_PORT: int = 5672
    RABBITMQ_USER: SecretStr = SecretStr("guest")
    RABBITMQ_PASS: SecretStr = SecretStr("guest")

    RABBITMQ_MAX_RETRIES: int = 3
    RABBITMQ_BACKOFF_SEC: int = 5

    RABBITMQ_UPDATES_QUEUE: str = "updates"

    @computed_field
    @property
    def RABBIT_URL(self) -> SecretStr:
        return SecretStr(
            f"amqp://{self.RABBITMQ_USER.get_secret_value()}:{self.RABBITMQ_PASS.get_secret_value()}@{self.RABBITMQ_HOST}:{self.RABBITMQ_PORT}/"
        )


class LoggingSettings(BaseSettingsConfig):
    """Настройки логирования"""

    LOGGING_LEVEL: LoggingLevel = LoggingLevel.INFO
    LOGGING_SERIALIZE: bool = False
    LOGGING_TO_FILE: bool = True
    LOGGING_DIR: str = "logs"


class MetricsSettings(BaseSettingsConfig):
    """Настройки экспорта метрик в режиме поллинга"""

    METRICS_ENABLED: bool = False
    METRICS_PORT: int = 9000


class Settings(BaseSettings):
    """Общий класс настроек"""

    bot: BotSettings = BotSettings()
    polling: PollingSettings = PollingSettings()
    webhook: WebhookSettings = WebhookSettings()
    dispatcher: DispatcherSettings = DispatcherSettings()
    rabbit: RabbitMQSettings = RabbitMQSettings()
    logging: LoggingSettings = LoggingSettings()
    metrics: MetricsSettings = MetricsSettings()


settings = Settings()
