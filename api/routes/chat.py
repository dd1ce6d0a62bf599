"""Chat endpoints.

Provides:
- POST /api/chat - Relay a message to the assistant
- GET /api/chat/history - Recent messages of the signed-in user
"""
from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from auth.session_provider import SessionCredentials, SessionUser
from orchestrator import EdgeAssistant
from schemas.chat import ChatRequest
from api.deps import get_assistant, get_credentials, require_session

router = APIRouter(prefix="/api/chat", tags=["chat"])


@router.post("")
def send_chat_message(
    request: ChatRequest,
    credentials: SessionCredentials = Depends(get_credentials),
    assistant: EdgeAssistant = Depends(get_assistant),
) -> JSONResponse:
    """
    Send a message to the assistant.

    Always answers with a ``reply`` field: 400 for an empty message, 200
    otherwise (with an apology when the model is unavailable).
    """
    result = assistant.relay.handle(
        message=request.message,
        session_key=request.session_id,
        site=request.site,
        credentials=credentials,
    )
    return JSONResponse(status_code=result.status_code, content=result.to_response())


@router.get("/history")
def get_chat_history(
    user: SessionUser = Depends(require_session),
    assistant: EdgeAssistant = Depends(get_assistant),
) -> List[Dict[str, Any]]:
    """Most recent persisted messages for the caller, oldest first."""
    messages = assistant.message_log.get_recent_messages(
        user.id, limit=assistant.settings.history_limit
    )
    return [
        {
            "role": m.role.value,
            "content": m.content,
            "site": m.site,
            "createdAt": m.created_at.isoformat(),
        }
        for m in messages
    ]
