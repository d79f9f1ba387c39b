from fastapi import APIRouter, Depends
from pydantic import Field

from pawpaw.core.pagination import page_params
from pawpaw.core.schemas import CamelModel
from pawpaw.deps import get_current_user, get_optional_user
from pawpaw.models.user import User
from pawpaw.services import pets as pets_service

router = APIRouter()


class PetCreate(CamelModel):
    name: str = Field(min_length=1, max_length=80)
    breed: str = Field(min_length=1, max_length=80)
    age: int = Field(ge=0, le=50)
    bio: str | None = Field(default=None, max_length=1000)
    photo_url: str = Field(min_length=1)


class PetUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=80)
    breed: str | None = Field(default=None, min_length=1, max_length=80)
    age: int | None = Field(default=None, ge=0, le=50)
    bio: str | None = Field(default=None, max_length=1000)
    photo_url: str | None = None


@router.get("/pets")
async def pets_feed(
    user: User | None = Depends(get_optional_user),
    page: tuple[int, int] = Depends(page_params),
):
    """Discovery feed. Signed-in users do not see their own pets."""
    limit, offset = page
    pets = await pets_service.discovery_feed(str(user.id) if user else None, limit=limit, offset=offset)
    return [pets_service.pet_view(p) for p in pets]


@router.get("/pets/my-pet")
async def pets_mine(user: User = Depends(get_current_user)):
    """Current user's pet profile, or null."""
    pet = await pets_service.get_user_pet(str(user.id))
    return pets_service.pet_view(pet) if pet else None


@router.post("/pets")
async def pets_create(body: PetCreate, user: User = Depends(get_current_user)):
    pet = await pets_service.create_pet(
        str(user.id),
        name=body.name,
        breed=body.breed,
        age=body.age,
        bio=body.bio,
        photo_url=body.photo_url,
    )
    return pets_service.pet_view(pet)


@router.put("/pets/{pet_id}")
async def pets_update(pet_id: str, body: PetUpdate, user: User = Depends(get_current_user)):
    pet = await pets_service.update_pet(pet_id, str(user.id), body.model_dump(exclude_unset=True))
    return pets_service.pet_view(pet)


@router.delete("/pets/{pet_id}")
async def pets_delete(pet_id: str, user: User = Depends(get_current_user)):
    await pets_service.delete_pet(pet_id, str(user.id))
    return {"success": True}


@router.get("/leaderboard")
async def leaderboard():
    """Top pets by likes."""
    return await pets_service.leaderboard()


@router.get("/featured-pets")
async def featured_pets():
    """Featured pets for the stories strip, flagged when live."""
    return await pets_service.featured_pets()
