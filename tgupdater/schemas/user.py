from typing import Optional

from pydantic import BaseModel, ConfigDict


class BotUser(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    is_bot: bool = True
    first_name: str
    username: Optional[str] = None
