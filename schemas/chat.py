"""Chat request / response schemas."""

from typing import Optional, Dict, Any
from pydantic import BaseModel, ConfigDict, Field


class ChatRequest(BaseModel):
    """Body of POST /api/chat."""
    model_config = ConfigDict(populate_by_name=True)

    message: str = ""
    session_id: Optional[str] = Field(None, alias="sessionId")
    site: Optional[str] = None


class ChatResponse(BaseModel):
    """Body returned by POST /api/chat. ``reply`` is always present."""
    model_config = ConfigDict(populate_by_name=True)

    reply: str
    debug: Optional[Dict[str, Any]] = Field(None, alias="_debug")


class ChatResult(BaseModel):
    """Outcome of one relay exchange."""
    reply: str
    status_code: int = 200
    session_key: Optional[str] = None
    authenticated: bool = False
    persisted: bool = False
    debug: Optional[Dict[str, Any]] = None

    def to_response(self) -> Dict[str, Any]:
        """Public body: ``reply`` plus ``_debug`` when present."""
        body = ChatResponse(reply=self.reply, debug=self.debug).model_dump(by_alias=True)
        if body["_debug"] is None:
            del body["_debug"]
        return body
