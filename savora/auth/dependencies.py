import logging

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from savora.auth.jwt_handler import ACCESS, TokenError, decode_token
from savora.database.mongo import USERS, get_db
from savora.utils.errors import BadRequest, Unauthorized
from savora.utils.user_helper import PRIVATE_FIELDS, to_object_id

logger = logging.getLogger(__name__)

# auto_error=False so a missing header goes through our own 401 envelope
security = HTTPBearer(auto_error=False)


async def authenticate_request(credentials: HTTPAuthorizationCredentials | None, db) -> dict:
    """Resolve a bearer credential to the live user document (without password)."""
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Not authorized, no token provided")

    try:
        claims = decode_token(credentials.credentials, ACCESS)
        user_id = to_object_id(claims.get("userId"))
    except (TokenError, BadRequest) as e:
        logger.debug("Access token rejected: %s", type(e).__name__)
        raise Unauthorized("Not authorized, token failed") from e

    user = await db[USERS].find_one({"_id": user_id}, PRIVATE_FIELDS)
    if not user:
        raise Unauthorized("Not authorized, user not found")
    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db=Depends(get_db),
):
    return await authenticate_request(credentials, db)
