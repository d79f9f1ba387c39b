"""Mutual-match detection, match notification and match listing."""

from dataclasses import dataclass
from typing import Any

from beanie.operators import Or
from pymongo.errors import DuplicateKeyError

from pawpaw.core.audit import log_event
from pawpaw.core.logging import get_logger
from pawpaw.models.match import Match, pair_key
from pawpaw.models.pet_profile import PetProfile
from pawpaw.models.swipe import Swipe
from pawpaw.realtime.base import get_registry
from pawpaw.services import pets as pets_service

log = get_logger(__name__)

MATCH_MESSAGE = "Pawsome! It's a Match!"


@dataclass
class MatchResult:
    match: Match
    created: bool  # False when an earlier or concurrent request already made it
    swiper_pet: PetProfile
    swiped_pet: PetProfile


async def find_match_between(user_a: str, user_b: str) -> Match | None:
    return await Match.find_one(Match.pair_key == pair_key(user_a, user_b))


async def check_and_create_match(
    swiper_id: str,
    swiper_pet_id: str,
    swiped_owner_id: str,
    swiped_pet_id: str,
) -> MatchResult | None:
    """
    Create the match for {swiper, swiped owner} if the reverse like exists.
    The pair_key unique index decides races: the losing insert returns the stored match.
    Missing profiles are an ordinary outcome and return None.
    """
    reverse_like = await Swipe.find_one(
        Swipe.swiper_id == swiped_owner_id,
        Swipe.swiped_pet_id == swiper_pet_id,
        Swipe.swipe_type == "like",
    )
    if not reverse_like:
        return None

    pets = await pets_service.get_pets([swiper_pet_id, swiped_pet_id])
    swiper_pet = pets.get(swiper_pet_id)
    swiped_pet = pets.get(swiped_pet_id)
    if swiper_pet is None or swiped_pet is None:
        log.info("match_skipped_missing_pet", swiper_pet_id=swiper_pet_id, swiped_pet_id=swiped_pet_id)
        return None

    match = Match(
        user1_id=swiper_id,
        user2_id=swiped_owner_id,
        pet1_id=swiper_pet_id,
        pet2_id=swiped_pet_id,
        pair_key=pair_key(swiper_id, swiped_owner_id),
    )
    try:
        await match.insert()
    except DuplicateKeyError:
        existing = await find_match_between(swiper_id, swiped_owner_id)
        log.info("match_already_exists", match_id=str(existing.id) if existing else None)
        if existing is None:
            raise
        return MatchResult(match=existing, created=False, swiper_pet=swiper_pet, swiped_pet=swiped_pet)

    log.info("match_created", match_id=str(match.id), user1=swiper_id, user2=swiped_owner_id)
    try:
        await log_event(swiper_id, "match_created", "match", str(match.id), {"other_user_id": swiped_owner_id})
    except Exception as e:
        log.error("match_audit_failed", match_id=str(match.id), error=str(e))
    return MatchResult(match=match, created=True, swiper_pet=swiper_pet, swiped_pet=swiped_pet)


def match_event(match: Match, pet: PetProfile) -> dict[str, Any]:
    return {
        "type": "match",
        "data": {
            "matchId": str(match.id),
            "message": MATCH_MESSAGE,
            "pet": {"name": pet.name, "photoUrl": pet.photo_url},
        },
    }


async def notify_match(match: Match, pet1: PetProfile, pet2: PetProfile) -> None:
    """
    One-shot push to both users' open sockets; each sees the other's pet.
    Offline users are skipped and nothing is queued.
    """
    registry = get_registry("matches")
    for user_id, other_pet in ((match.user1_id, pet2), (match.user2_id, pet1)):
        try:
            delivered = await registry.send_if_present(user_id, match_event(match, other_pet))
        except Exception as e:
            log.warning("match_notify_failed", match_id=str(match.id), user_id=user_id, error=str(e))
            continue
        log.info("match_notified", match_id=str(match.id), user_id=user_id, delivered=delivered)


async def list_matches(user_id: str) -> list[dict[str, Any]]:
    """User's matches, newest first, as my-pet / other-pet views."""
    matches = (
        await Match.find(Or(Match.user1_id == user_id, Match.user2_id == user_id))
        .sort(-Match.created_at)
        .to_list()
    )
    pets = await pets_service.get_pets([m.pet1_id for m in matches] + [m.pet2_id for m in matches])
    out = []
    for m in matches:
        other_user_id, my_pet_id, other_pet_id = m.other_side(user_id)
        my_pet = pets.get(my_pet_id)
        other_pet = pets.get(other_pet_id)
        if my_pet is None or other_pet is None:
            continue
        out.append(
            {
                "id": str(m.id),
                "otherUser": {"id": other_user_id},
                "myPet": _match_pet(my_pet),
                "otherPet": _match_pet(other_pet),
                "createdAt": m.created_at.isoformat(),
            }
        )
    return out


def _match_pet(pet: PetProfile) -> dict[str, Any]:
    return {"id": str(pet.id), "name": pet.name, "breed": pet.breed, "age": pet.age, "photoUrl": pet.photo_url}
