from fastapi import APIRouter, Depends
from pydantic import Field

from pawpaw.core.schemas import CamelModel
from pawpaw.deps import get_current_user
from pawpaw.models.user import User
from pawpaw.services import live as live_service
from pawpaw.services import pets as pets_service

router = APIRouter()


class LiveStartRequest(CamelModel):
    pet_id: str
    title: str = Field(min_length=1, max_length=120)


@router.post("/start")
async def live_start(body: LiveStartRequest, user: User = Depends(get_current_user)):
    """Start a stream for one of the user's pets."""
    stream = await live_service.start_stream(str(user.id), body.pet_id, body.title)
    return {"streamId": str(stream.id), "streamUrl": live_service.stream_url(stream)}


@router.post("/end/{stream_id}")
async def live_end(stream_id: str, user: User = Depends(get_current_user)):
    await live_service.end_stream(str(user.id), stream_id)
    return {"success": True}


@router.get("/active")
async def live_active():
    """Active streams, newest first."""
    streams = await live_service.active_streams()
    return await live_service.stream_views(streams)


@router.get("/{stream_id}")
async def live_detail(stream_id: str):
    stream = await live_service.get_stream(stream_id)
    pet = await pets_service.get_pet(stream.pet_id)
    return live_service.stream_view(stream, pet)


@router.post("/{stream_id}/join")
async def live_join(stream_id: str, user: User = Depends(get_current_user)):
    count = await live_service.join_stream(str(user.id), stream_id)
    return {"success": True, "viewerCount": count}


@router.post("/{stream_id}/leave")
async def live_leave(stream_id: str, user: User = Depends(get_current_user)):
    count = await live_service.leave_stream(str(user.id), stream_id)
    return {"success": True, "viewerCount": count}
