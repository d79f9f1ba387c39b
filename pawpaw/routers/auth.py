from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from pawpaw.core.security import SESSION_MAX_AGE, create_session_token
from pawpaw.deps import SESSION_COOKIE_NAME, get_current_user
from pawpaw.models.user import User
from pawpaw.services import users as user_service

router = APIRouter()


class GoogleAuthRequest(BaseModel):
    id_token: str


@router.post("/google")
async def auth_google(body: GoogleAuthRequest, response: Response):
    """Exchange Google ID token for a session; set httpOnly cookie and return the token for mobile."""
    claims = user_service.verify_google_id_token(body.id_token)
    user = await user_service.upsert_user_from_google(claims)
    token = create_session_token(user_service.session_payload_for_user(user))
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        max_age=SESSION_MAX_AGE,
        httponly=True,
        secure=False,  # set True in prod with HTTPS
        samesite="lax",
        path="/",
    )
    return {"user": user_service.user_view(user), "token": token}


@router.post("/logout")
async def auth_logout(response: Response, user: User = Depends(get_current_user)):
    """Invalidate every session of the current user."""
    user.session_version += 1
    await user.save()
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")
    return {"success": True}


@router.get("/me")
async def auth_me(user: User = Depends(get_current_user)):
    """Return current user. Requires session."""
    return user_service.user_view(user)
