from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr


class Webhook(BaseModel):
    """Параметры регистрации вебхука и локального слушателя"""

    serve: str = "0.0.0.0"  # адрес, на котором слушаем
    serve_path: str = ""  # путь, на котором слушаем
    serve_port: int = 443  # порт, на котором слушаем
    url: str = ""  # куда API будет слать апдейты
    max_connections: int = Field(default=40, ge=1, le=100)
    allowed_updates: List[str] = Field(default_factory=list)
    secret_token: Optional[SecretStr] = None

    @property
    def listen_url(self) -> str:
        return f"{self.serve or '0.0.0.0'}:{self.serve_port or 443}"

    @property
    def route_path(self) -> str:
        return "/" + self.serve_path.strip("/")


class WebhookInfo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    url: str = ""
    has_custom_certificate: bool = False
    pending_update_count: int = 0
    ip_address: Optional[str] = None
    last_error_date: Optional[int] = None
    last_error_message: Optional[str] = None
    max_connections: Optional[int] = None
    allowed_updates: List[str] = Field(default_factory=list)
