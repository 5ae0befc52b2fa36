from typing import Any, Optional, Union

from pydantic import BaseModel


class SendMessageRequest(BaseModel):
    # Optional so a missing text gets the relay's own 400 body instead of a 422
    text: Optional[str] = None
    # JSON-encoded string from browser clients, or an already decoded object
    reply_markup: Optional[Union[str, dict[str, Any]]] = None
    parse_mode: Optional[str] = "HTML"


class SendMessageResponse(BaseModel):
    ok: bool
    result: Optional[dict[str, Any]] = None
    error: Optional[str] = None


class CheckResponse(BaseModel):
    ok: bool
    callback_data: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    timestamp: str
