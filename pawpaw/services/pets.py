"""Pet profiles: owner CRUD, discovery feed, leaderboard, featured pets."""

from typing import Any

from beanie import PydanticObjectId
from beanie.operators import In
from bson.errors import InvalidId

from pawpaw.core.config import get_settings
from pawpaw.core.exceptions import ForbiddenError, NotFoundError
from pawpaw.core.logging import get_logger
from pawpaw.models.live_stream import LiveStream
from pawpaw.models.pet_profile import PetProfile

log = get_logger(__name__)

EDITABLE_FIELDS = ("name", "breed", "age", "bio", "photo_url")


def pet_view(pet: PetProfile) -> dict[str, Any]:
    return {
        "id": str(pet.id),
        "ownerId": pet.owner_id,
        "name": pet.name,
        "breed": pet.breed,
        "age": pet.age,
        "bio": pet.bio,
        "photoUrl": pet.photo_url,
        "likesCount": pet.likes_count,
    }


def pet_summary(pet: PetProfile) -> dict[str, Any]:
    return {"id": str(pet.id), "name": pet.name, "breed": pet.breed, "photoUrl": pet.photo_url}


async def get_pet(pet_id: str) -> PetProfile | None:
    """Load a profile by id; malformed ids count as missing."""
    try:
        return await PetProfile.get(PydanticObjectId(pet_id))
    except InvalidId:
        return None


async def get_pets(pet_ids: list[str]) -> dict[str, PetProfile]:
    ids = []
    for pid in set(pet_ids):
        try:
            ids.append(PydanticObjectId(pid))
        except InvalidId:
            continue
    if not ids:
        return {}
    pets = await PetProfile.find(In(PetProfile.id, ids)).to_list()
    return {str(p.id): p for p in pets}


async def require_owned_pet(pet_id: str, user_id: str) -> PetProfile:
    pet = await get_pet(pet_id)
    if not pet:
        log.warning("pet_not_found", pet_id=pet_id)
        raise NotFoundError("Pet not found")
    if pet.owner_id != user_id:
        log.warning("pet_not_owned", pet_id=pet_id, user_id=user_id, owner_id=pet.owner_id)
        raise ForbiddenError()
    return pet


async def get_user_pet(user_id: str) -> PetProfile | None:
    """The user's pet: their earliest profile."""
    return await PetProfile.find(PetProfile.owner_id == user_id).sort(+PetProfile.created_at).first_or_none()


async def create_pet(
    owner_id: str,
    name: str,
    breed: str,
    age: int,
    photo_url: str,
    bio: str | None = None,
) -> PetProfile:
    pet = PetProfile(owner_id=owner_id, name=name, breed=breed, age=age, bio=bio, photo_url=photo_url)
    await pet.insert()
    log.info("pet_created", pet_id=str(pet.id), user_id=owner_id)
    return pet


async def update_pet(pet_id: str, user_id: str, updates: dict[str, Any]) -> PetProfile:
    pet = await require_owned_pet(pet_id, user_id)
    changed = False
    for field in EDITABLE_FIELDS:
        if updates.get(field) is not None:
            setattr(pet, field, updates[field])
            changed = True
    if changed:
        await pet.save()
    log.info("pet_updated", pet_id=pet_id, user_id=user_id, changed=changed)
    return pet


async def delete_pet(pet_id: str, user_id: str) -> None:
    """Delete the profile. Swipes and matches referencing it are kept as history."""
    pet = await require_owned_pet(pet_id, user_id)
    await pet.delete()
    log.info("pet_deleted", pet_id=pet_id, user_id=user_id)


async def discovery_feed(viewer_id: str | None = None, limit: int = 50, offset: int = 0) -> list[PetProfile]:
    """Profiles for the swipe deck, newest first, excluding the viewer's own."""
    query = PetProfile.find(PetProfile.owner_id != viewer_id) if viewer_id else PetProfile.find_all()
    return await query.sort(-PetProfile.created_at).skip(offset).limit(limit).to_list()


async def leaderboard() -> list[dict[str, Any]]:
    top = (
        await PetProfile.find_all()
        .sort(-PetProfile.likes_count, +PetProfile.created_at)
        .limit(get_settings().leaderboard_size)
        .to_list()
    )
    return [
        {
            "rank": index + 1,
            "pet": {
                "id": str(pet.id),
                "name": pet.name,
                "breed": pet.breed,
                "photoUrl": pet.photo_url,
                "likesCount": pet.likes_count,
                "owner": {"id": pet.owner_id},
            },
        }
        for index, pet in enumerate(top)
    ]


async def featured_pets() -> list[dict[str, Any]]:
    featured = await PetProfile.find(PetProfile.is_featured == True).to_list()
    live = await LiveStream.find(
        LiveStream.is_active == True,
        In(LiveStream.pet_id, [str(p.id) for p in featured]),
    ).to_list()
    live_pet_ids = {s.pet_id for s in live}
    return [
        {"id": str(p.id), "name": p.name, "photoUrl": p.photo_url, "isLive": str(p.id) in live_pet_ids}
        for p in featured
    ]


async def increment_likes(pet_id: str) -> None:
    """
    Denormalized like counter: +1 after a fresh like. Best effort: the swipe row is the
    source of truth, so failures are logged and never undo the swipe.
    """
    try:
        result = await PetProfile.get_motor_collection().update_one(
            {"_id": PydanticObjectId(pet_id)},
            {"$inc": {"likes_count": 1}},
        )
        if result.matched_count == 0:
            log.warning("likes_increment_missed", pet_id=pet_id)
        else:
            log.info("likes_incremented", pet_id=pet_id)
    except Exception as e:
        log.error("likes_increment_failed", pet_id=pet_id, error=str(e))
