"""Live streams: lifecycle and viewer counts. The stream URL is a placeholder; no media pipeline."""

from datetime import datetime, timedelta
from typing import Any

from beanie import PydanticObjectId
from bson.errors import InvalidId
from pymongo import ReturnDocument

from pawpaw.core.audit import log_event
from pawpaw.core.config import get_settings
from pawpaw.core.exceptions import ForbiddenError, InvalidOperationError, NotFoundError
from pawpaw.core.logging import get_logger
from pawpaw.models.live_stream import LiveStream
from pawpaw.services import pets as pets_service

log = get_logger(__name__)


def stream_url(stream: LiveStream) -> str:
    return f"{get_settings().live_stream_url_base.rstrip('/')}/{stream.id}"


async def get_stream(stream_id: str) -> LiveStream:
    try:
        stream = await LiveStream.get(PydanticObjectId(stream_id))
    except InvalidId:
        stream = None
    if not stream:
        log.warning("stream_not_found", stream_id=stream_id)
        raise NotFoundError("Stream not found")
    return stream


async def _end(stream_ids: list, now: datetime) -> int:
    result = await LiveStream.get_motor_collection().update_many(
        {"_id": {"$in": stream_ids}, "is_active": True},
        {"$set": {"is_active": False, "ended_at": now}},
    )
    return result.modified_count


async def start_stream(user_id: str, pet_id: str, title: str) -> LiveStream:
    """Start a stream for an owned pet; any stream still active for that pet is ended first."""
    await pets_service.require_owned_pet(pet_id, user_id)
    previous = await LiveStream.find(LiveStream.pet_id == pet_id, LiveStream.is_active == True).to_list()
    if previous:
        ended = await _end([s.id for s in previous], datetime.utcnow())
        log.info("previous_streams_ended", pet_id=pet_id, count=ended)
    stream = LiveStream(pet_id=pet_id, owner_id=user_id, title=title)
    await stream.insert()
    log.info("stream_started", stream_id=str(stream.id), pet_id=pet_id, user_id=user_id)
    await log_event(user_id, "live_started", "live_stream", str(stream.id), {"pet_id": pet_id})
    return stream


async def end_stream(user_id: str, stream_id: str) -> None:
    stream = await get_stream(stream_id)
    if stream.owner_id != user_id:
        log.warning("stream_not_owned", stream_id=stream_id, user_id=user_id, owner_id=stream.owner_id)
        raise ForbiddenError()
    await _end([stream.id], datetime.utcnow())
    log.info("stream_ended", stream_id=stream_id, user_id=user_id)
    await log_event(user_id, "live_ended", "live_stream", stream_id)


async def active_streams() -> list[LiveStream]:
    return await LiveStream.find(LiveStream.is_active == True).sort(-LiveStream.started_at).to_list()


async def stream_views(streams: list[LiveStream]) -> list[dict[str, Any]]:
    pets = await pets_service.get_pets([s.pet_id for s in streams])
    return [stream_view(s, pets.get(s.pet_id)) for s in streams if s.pet_id in pets]


def stream_view(stream: LiveStream, pet) -> dict[str, Any]:
    return {
        "id": str(stream.id),
        "pet": {"id": str(pet.id), "name": pet.name, "photoUrl": pet.photo_url} if pet else None,
        "ownerId": stream.owner_id,
        "title": stream.title,
        "viewerCount": stream.viewer_count,
        "isActive": stream.is_active,
        "startedAt": stream.started_at.isoformat(),
    }


async def join_stream(user_id: str, stream_id: str) -> int:
    """+1 viewer on an active stream. Returns the new count."""
    stream = await get_stream(stream_id)
    doc = await LiveStream.get_motor_collection().find_one_and_update(
        {"_id": stream.id, "is_active": True},
        {"$inc": {"viewer_count": 1}},
        return_document=ReturnDocument.AFTER,
    )
    if doc is None:
        log.warning("stream_not_active", stream_id=stream_id)
        raise InvalidOperationError("Stream is not active")
    log.info("stream_joined", stream_id=stream_id, user_id=user_id, viewer_count=doc["viewer_count"])
    return doc["viewer_count"]


async def leave_stream(user_id: str, stream_id: str) -> int:
    """-1 viewer, never below zero. Returns the new count."""
    stream = await get_stream(stream_id)
    doc = await LiveStream.get_motor_collection().find_one_and_update(
        {"_id": stream.id, "viewer_count": {"$gt": 0}},
        {"$inc": {"viewer_count": -1}},
        return_document=ReturnDocument.AFTER,
    )
    count = doc["viewer_count"] if doc else 0
    log.info("stream_left", stream_id=stream_id, user_id=user_id, viewer_count=count)
    return count


async def end_idle_streams(max_age_hours: int | None = None) -> int:
    """End streams that have been active longer than max_age_hours (owner never hung up)."""
    hours = max_age_hours if max_age_hours is not None else get_settings().live_stream_idle_hours
    cutoff = datetime.utcnow() - timedelta(hours=hours)
    stale = await LiveStream.find(LiveStream.is_active == True, LiveStream.started_at < cutoff).to_list()
    if not stale:
        return 0
    ended = await _end([s.id for s in stale], datetime.utcnow())
    log.info("idle_streams_ended", count=ended, cutoff=cutoff.isoformat())
    return ended

