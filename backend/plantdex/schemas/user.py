"""
PlantDex Backend — User Schemas
================================

UserRecord carries the password hash between store and auth service only.
UserResponse is the public shape; it has no hash field at all, so a
UserRecord can never be serialized to a client by accident.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserRecord(BaseModel):
    id: int
    username: str
    password_hash: str

    model_config = ConfigDict(from_attributes=True)


class UserResponse(BaseModel):
    id: int
    username: str

    model_config = ConfigDict(from_attributes=True)


class Credentials(BaseModel):
    """Body of POST /api/register and POST /api/login."""
    username: str = Field(max_length=64)
    password: str = Field(max_length=256)

    @field_validator("username")
    @classmethod
    def username_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Username must not be empty")
        return v

    @field_validator("password")
    @classmethod
    def password_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("Password must not be empty")
        return v
