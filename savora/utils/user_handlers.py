"""
User Route Handlers
Session lifecycle (register / login / logout / refresh / me) and favorites.
Handlers take the database explicitly and raise typed errors; routes only deal with HTTP.
"""
import logging
from datetime import datetime, timezone
from typing import NamedTuple

from pymongo.errors import DuplicateKeyError

from savora.auth.jwt_handler import (
    REFRESH,
    TokenError,
    create_access_token,
    create_refresh_token,
    decode_token,
)
from savora.database.mongo import RECIPES, USERS
from savora.models.user_model import UserLogin, UserRegister
from savora.utils.auth_helper import get_password_hash, verify_password
from savora.utils.errors import BadRequest, Conflict, Unauthorized
from savora.utils.recipe_helper import recipe_helper
from savora.utils.user_helper import PRIVATE_FIELDS, to_object_id, user_helper

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
INVALID_REFRESH = "Invalid or expired refresh token"


class AuthSession(NamedTuple):
    user: dict
    access_token: str
    refresh_token: str


async def _issue_session(db, user) -> AuthSession:
    """Issue access + refresh tokens and store the refresh token as the user's only valid one."""
    claims = {"userId": str(user["_id"])}
    access_token = create_access_token(claims)
    refresh_token = create_refresh_token(claims)
    await db[USERS].update_one(
        {"_id": user["_id"]},
        {"$set": {"refreshToken": refresh_token}},
    )
    return AuthSession(user_helper(user), access_token, refresh_token)


# ==================== SESSION HANDLERS ====================

async def register_handler(db, data: UserRegister) -> AuthSession:
    """
    Create an account; fails with Conflict if the email is taken
    """
    if await db[USERS].find_one({"email": data.email}, {"_id": 1}):
        raise Conflict("User with this email already exists")

    user_doc = {
        "name": data.name,
        "email": data.email,
        "password": get_password_hash(data.password),
        "refreshToken": None,
        "favorites": [],
        "createdAt": datetime.now(timezone.utc),
    }
    try:
        result = await db[USERS].insert_one(user_doc)
    except DuplicateKeyError as e:
        # lost a race against a concurrent registration of the same email
        raise Conflict("User with this email already exists") from e
    user_doc["_id"] = result.inserted_id

    logger.info("Registered user %s", user_doc["_id"])
    return await _issue_session(db, user_doc)


async def login_handler(db, data: UserLogin) -> AuthSession:
    """
    Same error for unknown email and wrong password
    """
    user = await db[USERS].find_one({"email": data.email})
    if not user or not verify_password(data.password, user.get("password")):
        logger.info("Failed login attempt")
        raise Unauthorized(INVALID_CREDENTIALS)

    # overwrites any previous refresh token: one session per user
    return await _issue_session(db, user)


async def logout_handler(db, refresh_token: str | None) -> None:
    """
    Clear the refresh token from whichever user holds this exact value; never fails
    """
    if not refresh_token:
        return
    result = await db[USERS].update_one(
        {"refreshToken": refresh_token},
        {"$set": {"refreshToken": None}},
    )
    if result.modified_count:
        logger.info("Refresh token revoked on logout")


async def refresh_handler(db, refresh_token: str | None) -> str:
    """
    Mint a new access token; the refresh token itself is not rotated
    """
    if not refresh_token:
        raise Unauthorized("No refresh token provided")

    try:
        claims = decode_token(refresh_token, REFRESH)
        user_id = to_object_id(claims.get("userId"))
    except (TokenError, BadRequest) as e:
        raise Unauthorized(INVALID_REFRESH) from e

    user = await db[USERS].find_one({"_id": user_id}, {"refreshToken": 1})
    if not user or user.get("refreshToken") != refresh_token:
        # covers reuse of a token that a later login replaced
        raise Unauthorized(INVALID_REFRESH)

    return create_access_token({"userId": str(user["_id"])})


async def get_me_handler(db, current_user: dict) -> dict:
    """
    Current user with favorites resolved to recipe summaries
    """
    user = await db[USERS].find_one({"_id": current_user["_id"]}, PRIVATE_FIELDS)
    if not user:
        raise Unauthorized("Not authorized, user not found")

    favorite_ids = user.get("favorites", [])
    favorites = []
    if favorite_ids:
        docs = await db[RECIPES].find({"_id": {"$in": favorite_ids}}).to_list(length=None)
        by_id = {d["_id"]: d for d in docs}
        # keep the user's order and skip recipes that no longer exist
        favorites = [recipe_helper(by_id[f]) for f in favorite_ids if f in by_id]
    return user_helper(user, favorites=favorites)


# ==================== FAVORITES HANDLERS ====================

async def toggle_favorite_handler(db, current_user: dict, recipe_id: str) -> dict:
    """
    Add the recipe to favorites if absent, remove it if present.
    Membership is decided by the store in one conditional update.
    """
    rid = to_object_id(recipe_id, "recipe id")
    users = db[USERS]

    added = await users.update_one(
        {"_id": current_user["_id"], "favorites": {"$ne": rid}},
        {"$addToSet": {"favorites": rid}},
    )
    is_added = added.modified_count == 1
    if not is_added:
        await users.update_one(
            {"_id": current_user["_id"]},
            {"$pull": {"favorites": rid}},
        )

    user = await users.find_one({"_id": current_user["_id"]}, {"favorites": 1})
    favorites = [str(f) for f in (user or {}).get("favorites", [])]
    return {"added": is_added, "favorites": favorites}
