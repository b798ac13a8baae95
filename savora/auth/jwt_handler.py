# Issues and verifies the two kinds of signed tokens (access / refresh).
# Each kind has its own secret, so one can never be replayed as the other.
import uuid
from datetime import datetime, timezone

from jose import ExpiredSignatureError, JWTError, jwt

from savora import config
from savora.utils.errors import ConfigError

ALGORITHM = "HS256"
ACCESS = "access"
REFRESH = "refresh"


class TokenError(Exception):
    pass


class TokenInvalid(TokenError):
    pass


class TokenExpired(TokenError):
    pass


def _settings(kind: str):
    if kind == ACCESS:
        secret, expires_in = config.JWT_ACCESS_SECRET, config.JWT_ACCESS_EXPIRES_IN
    elif kind == REFRESH:
        secret, expires_in = config.JWT_REFRESH_SECRET, config.JWT_REFRESH_EXPIRES_IN
    else:
        raise ValueError(f"Unknown token kind: {kind}")
    if not secret:
        raise ConfigError(f"JWT {kind} secret is not set")
    return secret, config.parse_duration(expires_in)


def _create_token(claims: dict, kind: str) -> str:
    secret, lifetime = _settings(kind)
    now = datetime.now(timezone.utc)
    payload = {
        **claims,
        "iat": now,
        "exp": now + lifetime,
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def create_access_token(claims: dict) -> str:
    return _create_token(claims, ACCESS)


def create_refresh_token(claims: dict) -> str:
    return _create_token(claims, REFRESH)


def decode_token(token: str, kind: str = ACCESS) -> dict:
    secret, _ = _settings(kind)
    try:
        return jwt.decode(token, secret, algorithms=[ALGORITHM])
    except ExpiredSignatureError as e:
        raise TokenExpired("Token expired") from e
    except JWTError as e:
        raise TokenInvalid("Invalid token") from e
