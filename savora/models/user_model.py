from typing import Annotated

from pydantic import BaseModel, BeforeValidator, EmailStr, Field, field_validator


def _normalize_email(value):
    return value.strip().lower() if isinstance(value, str) else value


# Emails are compared lower-cased so uniqueness is effectively case-insensitive
NormalizedEmail = Annotated[EmailStr, BeforeValidator(_normalize_email)]


class UserRegister(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    email: NormalizedEmail
    password: str = Field(..., min_length=6)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class UserLogin(BaseModel):
    # Not validated as an email so malformed input fails like any unknown account
    email: Annotated[str, BeforeValidator(_normalize_email)] = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
