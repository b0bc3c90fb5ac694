import json
from functools import cached_property
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from tgupdater.exceptions.api import MalformedUpdateError


def extract_update_id(data: Any) -> int:
    if not isinstance(data, dict):
        raise MalformedUpdateError(f"update must be a JSON object, got {type(data).__name__}")
    update_id = data.get("update_id")
    # bool является подклассом int, отсекаем отдельно
    if not isinstance(update_id, int) or isinstance(update_id, bool):
        raise MalformedUpdateError(f"update has no integer update_id: {update_id!r}")
    return update_id


class RawUpdate(BaseModel):
    """
    Один апдейт в сыром виде.
    Хранит исходные байты и извлечённый update_id, само содержимое разбирается
    только при первом обращении к payload.

    from_bytes (вебхук) сохраняет тело запроса байт в байт. from_payload (поллинг)
    получает уже разобранный элемент пачки и сериализует его заново в компактный
    JSON, поэтому raw совпадает с ответом API по содержимому, но не по байтам.
    """

    model_config = ConfigDict(frozen=True)

    update_id: int
    raw: bytes

    @classmethod
    def from_bytes(cls, raw: bytes) -> "RawUpdate":
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise MalformedUpdateError(f"update is not valid JSON: {e}") from e
        return cls(update_id=extract_update_id(data), raw=bytes(raw))

    @classmethod
    def from_payload(cls, data: Any) -> "RawUpdate":
        update_id = extract_update_id(data)
        raw = json.dumps(data, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
        return cls(update_id=update_id, raw=raw)

    @cached_property
    def payload(self) -> Dict[str, Any]:
        return json.loads(self.raw)

    @cached_property
    def update_type(self) -> Optional[str]:
        """Тип апдейта: message, callback_query и т.д."""
        for key in self.payload:
            if key != "update_id":
                return key
        return None
