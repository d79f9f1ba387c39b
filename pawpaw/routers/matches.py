from fastapi import APIRouter, Depends, WebSocket

from pawpaw.deps import get_current_user
from pawpaw.models.user import User
from pawpaw.realtime.endpoint import serve_events
from pawpaw.services import matches as matches_service

router = APIRouter()


@router.get("/matches")
async def matches_list(user: User = Depends(get_current_user)):
    """Current user's matches, newest first."""
    return await matches_service.list_matches(str(user.id))


@router.websocket("/ws/matches")
async def matches_events(websocket: WebSocket):
    """Real-time match notifications."""
    await serve_events(websocket, "matches")
