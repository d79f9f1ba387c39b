"""Conversations between matched owners: lazy creation, messages, read state, live push."""

from datetime import datetime
from typing import Any

from beanie import PydanticObjectId
from beanie.operators import Or
from bson.errors import InvalidId
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from pawpaw.core.exceptions import BadRequestError, ForbiddenError, NotFoundError
from pawpaw.core.logging import get_logger
from pawpaw.models.conversation import Conversation
from pawpaw.models.match import Match
from pawpaw.models.message import Message
from pawpaw.realtime.base import get_registry
from pawpaw.services import pets as pets_service

log = get_logger(__name__)


async def _get_match(match_id: str) -> Match | None:
    try:
        return await Match.get(PydanticObjectId(match_id))
    except InvalidId:
        return None


async def require_participant(match_id: str, user_id: str) -> Match:
    match = await _get_match(match_id)
    if not match:
        log.warning("match_not_found", match_id=match_id)
        raise NotFoundError("Match not found")
    if not match.involves(user_id):
        log.warning("not_match_participant", match_id=match_id, user_id=user_id)
        raise ForbiddenError()
    return match


async def get_or_create_conversation(match_id: str) -> Conversation:
    """Insert-if-absent on the unique match_id index."""
    try:
        doc = await Conversation.get_motor_collection().find_one_and_update(
            {"match_id": match_id},
            {"$setOnInsert": {"match_id": match_id, "created_at": datetime.utcnow(), "updated_at": datetime.utcnow()}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
    except DuplicateKeyError:
        doc = await Conversation.get_motor_collection().find_one({"match_id": match_id})
    return await Conversation.get(doc["_id"])


async def require_conversation(conversation_id: str, user_id: str) -> tuple[Conversation, Match]:
    try:
        conversation = await Conversation.get(PydanticObjectId(conversation_id))
    except InvalidId:
        conversation = None
    if not conversation:
        log.warning("conversation_not_found", conversation_id=conversation_id)
        raise NotFoundError("Conversation not found")
    match = await require_participant(conversation.match_id, user_id)
    return conversation, match


async def _unread_count(conversation_id: str, user_id: str) -> int:
    return await Message.find(
        Message.conversation_id == conversation_id,
        Message.is_read == False,
        Message.sender_id != user_id,
    ).count()


def message_view(msg: Message) -> dict[str, Any]:
    return {
        "id": str(msg.id),
        "conversationId": msg.conversation_id,
        "senderId": msg.sender_id,
        "content": msg.content,
        "imageUrl": msg.image_url,
        "isRead": msg.is_read,
        "createdAt": msg.created_at.isoformat(),
    }


async def conversation_for_match(match_id: str, user_id: str) -> dict[str, Any]:
    match = await require_participant(match_id, user_id)
    conversation = await get_or_create_conversation(match_id)
    other_user_id, _, other_pet_id = match.other_side(user_id)
    other_pet = await pets_service.get_pet(other_pet_id)
    return {
        "id": str(conversation.id),
        "matchId": match_id,
        "otherUser": {"id": other_user_id},
        "otherPet": _other_pet_view(other_pet),
        "createdAt": conversation.created_at.isoformat(),
    }


async def list_conversations(user_id: str) -> list[dict[str, Any]]:
    """One entry per match with last message and unread count, most recently active first."""
    matches = await Match.find(Or(Match.user1_id == user_id, Match.user2_id == user_id)).to_list()
    pets = await pets_service.get_pets([m.pet1_id for m in matches] + [m.pet2_id for m in matches])
    rows = []
    for match in matches:
        conversation = await get_or_create_conversation(str(match.id))
        other_user_id, _, other_pet_id = match.other_side(user_id)
        last = (
            await Message.find(Message.conversation_id == str(conversation.id))
            .sort(-Message.created_at)
            .first_or_none()
        )
        rows.append(
            (conversation.updated_at, {
                "id": str(conversation.id),
                "matchId": str(match.id),
                "otherUser": {"id": other_user_id},
                "otherPet": _other_pet_view(pets.get(other_pet_id)),
                "lastMessage": {
                    "content": last.content,
                    "imageUrl": last.image_url,
                    "createdAt": last.created_at.isoformat(),
                    "senderId": last.sender_id,
                }
                if last
                else None,
                "unreadCount": await _unread_count(str(conversation.id), user_id),
                "createdAt": conversation.created_at.isoformat(),
                "updatedAt": conversation.updated_at.isoformat(),
            })
        )
    rows.sort(key=lambda row: row[0], reverse=True)
    return [entry for _, entry in rows]


def _other_pet_view(pet) -> dict[str, Any] | None:
    if pet is None:
        return None
    return {"id": str(pet.id), "name": pet.name, "photoUrl": pet.photo_url}


async def list_messages(conversation_id: str, user_id: str, limit: int = 200, offset: int = 0) -> list[Message]:
    await require_conversation(conversation_id, user_id)
    return (
        await Message.find(Message.conversation_id == conversation_id)
        .sort(+Message.created_at)
        .skip(offset)
        .limit(limit)
        .to_list()
    )


async def send_message(
    conversation_id: str,
    sender_id: str,
    content: str | None = None,
    image_url: str | None = None,
) -> Message:
    content = (content or "").strip() or None
    if not content and not image_url:
        raise BadRequestError("Message must have content or imageUrl")
    conversation, match = await require_conversation(conversation_id, sender_id)
    msg = Message(conversation_id=conversation_id, sender_id=sender_id, content=content, image_url=image_url)
    await msg.insert()
    conversation.updated_at = msg.created_at
    await conversation.save()
    log.info("message_sent", conversation_id=conversation_id, message_id=str(msg.id), user_id=sender_id)

    recipient_id, _, _ = match.other_side(sender_id)
    try:
        await get_registry("chat").send_if_present(recipient_id, {"type": "message", "data": message_view(msg)})
    except Exception as e:
        log.warning("message_push_failed", conversation_id=conversation_id, user_id=recipient_id, error=str(e))
    return msg


async def mark_read(conversation_id: str, user_id: str) -> int:
    """Mark the other participant's messages read; return how many changed."""
    await require_conversation(conversation_id, user_id)
    result = await Message.get_motor_collection().update_many(
        {"conversation_id": conversation_id, "sender_id": {"$ne": user_id}, "is_read": False},
        {"$set": {"is_read": True}},
    )
    log.info("messages_marked_read", conversation_id=conversation_id, user_id=user_id, count=result.modified_count)
    return result.modified_count
