# Access token goes back in the JSON body; the refresh token only ever travels in the
# httpOnly `refreshToken` cookie.

from fastapi import APIRouter, Cookie, Depends, Response, status

from savora import config
from savora.auth.dependencies import get_current_user
from savora.database.mongo import get_db
from savora.models.user_model import UserLogin, UserRegister
from savora.utils.auth_helper import clear_refresh_cookie, set_refresh_cookie
from savora.utils.response_helper import success_response
from savora.utils.user_handlers import (
    get_me_handler,
    login_handler,
    logout_handler,
    refresh_handler,
    register_handler,
    toggle_favorite_handler,
)

router = APIRouter()


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(data: UserRegister, response: Response, db=Depends(get_db)):
    session = await register_handler(db, data)
    set_refresh_cookie(response, session.refresh_token)
    return success_response(
        {"user": session.user, "accessToken": session.access_token},
        "User registered successfully",
    )


@router.post("/login")
async def login(data: UserLogin, response: Response, db=Depends(get_db)):
    session = await login_handler(db, data)
    set_refresh_cookie(response, session.refresh_token)
    return success_response(
        {"user": session.user, "accessToken": session.access_token},
        "Login successful",
    )


@router.post("/refresh")
async def refresh(
    refresh_token: str | None = Cookie(None, alias=config.REFRESH_COOKIE_NAME),
    db=Depends(get_db),
):
    access_token = await refresh_handler(db, refresh_token)
    return success_response({"accessToken": access_token})


@router.post("/logout")
async def logout(
    response: Response,
    refresh_token: str | None = Cookie(None, alias=config.REFRESH_COOKIE_NAME),
    current_user=Depends(get_current_user),
    db=Depends(get_db),
):
    await logout_handler(db, refresh_token)
    clear_refresh_cookie(response)
    return success_response(message="Logged out successfully")


@router.get("/me")
async def get_me(current_user=Depends(get_current_user), db=Depends(get_db)):
    return success_response({"user": await get_me_handler(db, current_user)})


@router.post("/favorites/{recipe_id}")
async def toggle_favorite(recipe_id: str, current_user=Depends(get_current_user), db=Depends(get_db)):
    result = await toggle_favorite_handler(db, current_user, recipe_id)
    message = "Added to favorites" if result["added"] else "Removed from favorites"
    return success_response(result, message)
