from typing import Optional


class BotClientError(Exception):
    """Базовая ошибка клиента Bot API"""


class TransportError(BotClientError):
    """Запрос не дошёл до API или ответ не удалось разобрать"""


class BotApiError(BotClientError):
    """API вернул ok=false"""

    def __init__(self, description: Optional[str], error_code: Optional[int] = None):
        self.description = description or "unknown error"
        self.error_code = error_code
        super().__init__(
            f"[{error_code}] {self.description}" if error_code else self.description
        )


class MalformedUpdateError(BotClientError):
    """Апдейт не является объектом с целочисленным update_id"""
