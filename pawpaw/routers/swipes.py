from typing import Literal

from fastapi import APIRouter, Depends

from pawpaw.core.exceptions import InvalidOperationError
from pawpaw.core.pagination import page_params
from pawpaw.core.schemas import CamelModel
from pawpaw.deps import get_current_user
from pawpaw.models.user import User
from pawpaw.services import swipes as swipes_service

router = APIRouter()


class SwipeRequest(CamelModel):
    swiped_pet_id: str
    swipe_type: Literal["like", "pass"]


@router.post("")
async def swipe_record(body: SwipeRequest, user: User = Depends(get_current_user)):
    """Record a like/pass; includes the match when this like completed a pair."""
    result = await swipes_service.record_swipe(str(user.id), body.swiped_pet_id, body.swipe_type)
    if result.was_duplicate:
        details = {"matchId": str(result.match.id)} if result.match else {}
        raise InvalidOperationError("Already swiped on this pet", code="ALREADY_SWIPED", details=details)
    response: dict = {"success": True}
    if result.match is not None:
        pet = result.other_pet
        response["match"] = {
            "matchId": str(result.match.id),
            "otherPet": {"id": str(pet.id), "name": pet.name, "breed": pet.breed, "photoUrl": pet.photo_url},
        }
    return response


@router.get("/history")
async def swipe_history(user: User = Depends(get_current_user), page: tuple[int, int] = Depends(page_params)):
    """Current user's swipes, newest first."""
    limit, offset = page
    return await swipes_service.swipe_history(str(user.id), limit=limit, offset=offset)
