"""FastAPI endpoints under /api.

The caller's identity comes from the X-User-Id header; authentication itself
happens upstream. ChatError subclasses map to 400/404, LLMError to 502.
"""

from fastapi import APIRouter, Header, HTTPException, Request
from pydantic import BaseModel

from legacy_agent.llm import LLMError
from legacy_agent.service import ChatService, InvalidRequest, NotFound

router = APIRouter()


class ChatBody(BaseModel):
    legacy_id: str | None = None
    conversation_id: str | None = None
    message: str | None = None


def _service(request: Request) -> ChatService:
    return request.app.state.chat


def _user(x_user_id: str) -> str:
    if not x_user_id.strip():
        raise HTTPException(401, "Missing X-User-Id header")
    return x_user_id.strip()


@router.get("/health")
async def health():
    return {"ok": True}


@router.post("/agent/chat")
async def agent_chat(body: ChatBody, request: Request, x_user_id: str = Header(default="")):
    """Send a message to the legacy assistant and return its reply."""
    user_id = _user(x_user_id)
    try:
        reply = await _service(request).send_message(
            user_id, body.legacy_id, body.message, body.conversation_id,
        )
    except InvalidRequest as e:
        raise HTTPException(400, str(e))
    except NotFound as e:
        raise HTTPException(404, str(e))
    except LLMError as e:
        raise HTTPException(502, str(e))
    return reply


@router.get("/agent/conversation/{legacy_id}")
async def get_conversation(
    legacy_id: str,
    request: Request,
    conversation_id: str | None = None,
    x_user_id: str = Header(default=""),
):
    """The requested (or latest) conversation with its messages, oldest first."""
    user_id = _user(x_user_id)
    try:
        return _service(request).get_conversation(user_id, legacy_id, conversation_id)
    except InvalidRequest as e:
        raise HTTPException(400, str(e))
    except NotFound as e:
        raise HTTPException(404, str(e))


@router.delete("/agent/conversation/{legacy_id}")
async def clear_conversation(
    legacy_id: str,
    request: Request,
    conversation_id: str | None = None,
    x_user_id: str = Header(default=""),
):
    user_id = _user(x_user_id)
    try:
        deleted = _service(request).clear_conversation(user_id, legacy_id, conversation_id)
    except InvalidRequest as e:
        raise HTTPException(400, str(e))
    except NotFound as e:
        raise HTTPException(404, str(e))
    return {"deleted": deleted}
