"""Swipe recording: uniqueness guard, like counter, mutual-match check, notification."""

from dataclasses import dataclass
from typing import Any

from pymongo.errors import DuplicateKeyError

from pawpaw.core.exceptions import InvalidArgumentError, InvalidOperationError, NotFoundError
from pawpaw.core.logging import get_logger
from pawpaw.models.match import Match
from pawpaw.models.swipe import Swipe
from pawpaw.services import matches as matches_service
from pawpaw.services import pets as pets_service

log = get_logger(__name__)

SWIPE_TYPES = ("like", "pass")


@dataclass
class SwipeResult:
    swipe: Swipe | None  # None when the swipe was a duplicate
    was_duplicate: bool
    match: Match | None = None
    match_created: bool = False
    other_pet: Any = None


async def record_swipe(swiper_id: str, swiped_pet_id: str, swipe_type: str) -> SwipeResult:
    """
    Recorder -> like counter -> match detector -> notifier, each step gated on the previous.
    A duplicate (swiper, pet) insert stops the chain: nothing is counted, matched or sent.
    """
    if swipe_type not in SWIPE_TYPES:
        raise InvalidArgumentError("Invalid swipe type", details={"swipe_type": swipe_type})
    swiped_pet = await pets_service.get_pet(swiped_pet_id)
    if not swiped_pet:
        log.warning("pet_not_found", pet_id=swiped_pet_id)
        raise NotFoundError("Pet not found")
    if swiped_pet.owner_id == swiper_id:
        log.warning("self_swipe_rejected", user_id=swiper_id, pet_id=swiped_pet_id)
        raise InvalidOperationError("Cannot swipe on own pet")

    swipe = Swipe(swiper_id=swiper_id, swiped_pet_id=swiped_pet_id, swipe_type=swipe_type)
    try:
        await swipe.insert()
    except DuplicateKeyError:
        log.warning("swipe_already_exists", user_id=swiper_id, pet_id=swiped_pet_id)
        existing_match = await matches_service.find_match_between(swiper_id, swiped_pet.owner_id)
        return SwipeResult(swipe=None, was_duplicate=True, match=existing_match, other_pet=swiped_pet)

    result = SwipeResult(swipe=swipe, was_duplicate=False, other_pet=swiped_pet)
    if swipe_type == "like":
        await pets_service.increment_likes(swiped_pet_id)
        swiper_pet = await pets_service.get_user_pet(swiper_id)
        if swiper_pet is not None:
            outcome = await matches_service.check_and_create_match(
                swiper_id,
                str(swiper_pet.id),
                swiped_pet.owner_id,
                swiped_pet_id,
            )
            if outcome is not None:
                result.match = outcome.match
                result.match_created = outcome.created
                if outcome.created:
                    await matches_service.notify_match(outcome.match, outcome.swiper_pet, outcome.swiped_pet)

    log.info(
        "swipe_recorded",
        swipe_id=str(swipe.id),
        user_id=swiper_id,
        pet_id=swiped_pet_id,
        swipe_type=swipe_type,
        match_created=result.match_created,
    )
    return result


async def swipe_history(user_id: str, limit: int = 50, offset: int = 0) -> list[dict[str, Any]]:
    """User's own swipes, newest first, with a summary of each swiped pet still on file."""
    swipes = (
        await Swipe.find(Swipe.swiper_id == user_id)
        .sort(-Swipe.created_at)
        .skip(offset)
        .limit(limit)
        .to_list()
    )
    pets = await pets_service.get_pets([s.swiped_pet_id for s in swipes])
    return [
        {
            "id": str(s.id),
            "swipedPet": pets_service.pet_summary(pets[s.swiped_pet_id]),
            "swipeType": s.swipe_type,
            "createdAt": s.created_at.isoformat(),
        }
        for s in swipes
        if s.swiped_pet_id in pets
    ]
