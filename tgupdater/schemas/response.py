from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class ResponseEnvelope(BaseModel):
    """Ответ Bot API: {ok, result, description}"""

    model_config = ConfigDict(extra="ignore")

    ok: bool
    result: Any = None
    description: Optional[str] = None
    error_code: Optional[int] = None
    parameters: Optional[Dict[str, Any]] = None
