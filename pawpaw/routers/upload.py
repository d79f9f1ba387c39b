from fastapi import APIRouter, Depends, File, UploadFile

from pawpaw.deps import get_current_user
from pawpaw.models.user import User
from pawpaw.services import uploads as uploads_service

router = APIRouter()


@router.post("/pet-photo")
async def upload_pet_photo(user: User = Depends(get_current_user), image: UploadFile = File(...)):
    """Upload a pet photo; returns a URL to store on the profile."""
    content = await image.read()
    return await uploads_service.upload_image(
        str(user.id), "pet-photos", image.filename or "image", content, image.content_type
    )


@router.post("/chat-image")
async def upload_chat_image(user: User = Depends(get_current_user), image: UploadFile = File(...)):
    """Upload an image to attach to a chat message."""
    content = await image.read()
    return await uploads_service.upload_image(
        str(user.id), "chat-images", image.filename or "image", content, image.content_type
    )
