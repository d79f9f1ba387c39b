from fastapi import APIRouter, Depends, WebSocket
from pydantic import Field

from pawpaw.core.pagination import page_params
from pawpaw.core.schemas import CamelModel
from pawpaw.deps import get_current_user
from pawpaw.models.user import User
from pawpaw.realtime.endpoint import serve_events
from pawpaw.services import chat as chat_service

router = APIRouter()


class MessageCreate(CamelModel):
    content: str | None = Field(default=None, max_length=4000)
    image_url: str | None = None


@router.get("/conversations")
async def conversations_list(user: User = Depends(get_current_user)):
    """All conversations for the current user, most recently active first."""
    return await chat_service.list_conversations(str(user.id))


@router.get("/conversations/{match_id}")
async def conversation_for_match(match_id: str, user: User = Depends(get_current_user)):
    """Get or create the conversation for a match the user is part of."""
    return await chat_service.conversation_for_match(match_id, str(user.id))


@router.get("/conversations/{conversation_id}/messages")
async def messages_list(
    conversation_id: str,
    user: User = Depends(get_current_user),
    page: tuple[int, int] = Depends(page_params),
):
    limit, offset = page
    messages = await chat_service.list_messages(conversation_id, str(user.id), limit=limit, offset=offset)
    return [chat_service.message_view(m) for m in messages]


@router.post("/conversations/{conversation_id}/messages")
async def messages_send(conversation_id: str, body: MessageCreate, user: User = Depends(get_current_user)):
    msg = await chat_service.send_message(conversation_id, str(user.id), content=body.content, image_url=body.image_url)
    return chat_service.message_view(msg)


@router.post("/conversations/{conversation_id}/mark-read")
async def messages_mark_read(conversation_id: str, user: User = Depends(get_current_user)):
    marked = await chat_service.mark_read(conversation_id, str(user.id))
    return {"success": True, "markedCount": marked}


@router.websocket("/ws/chat")
async def chat_events(websocket: WebSocket):
    """Real-time delivery of new messages."""
    await serve_events(websocket, "chat")
